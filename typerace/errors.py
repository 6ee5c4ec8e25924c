"""Domain errors raised by the token, guard and race layers."""


class TypeRaceError(Exception):
    pass


class Unauthorized(TypeRaceError):
    """The caller is not authenticated. ``reason`` is sent back to the client."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class Conflict(TypeRaceError):
    pass


class SessionConflict(Conflict):
    def __init__(self, username: str):
        super().__init__(f"A session is already active for {username}")
        self.username = username


class UsernameTaken(Conflict):
    def __init__(self, username: str):
        super().__init__(f"Username already exists: {username}")
        self.username = username


class MalformedMessage(TypeRaceError):
    pass
