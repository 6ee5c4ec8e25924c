import logging

from typerace.auth.tokens import TokenStore
from typerace.auth.utils import decode_token
from typerace.errors import Unauthorized

logger = logging.getLogger(__name__)


class AuthorizationGuard:
    """Decides whether a token currently authenticates a user.

    The stored record and the signed payload must both name the same user,
    so a token whose row was tampered with (or a forged token that happens
    to be stored) is rejected either way.
    """

    def __init__(self, store: TokenStore):
        self.store = store

    def authorize(self, token: str | None) -> str:
        if not token or not isinstance(token, str):
            raise Unauthorized("missing token")
        if token.count(".") != 2:
            raise Unauthorized("malformed token")

        record = self.store.lookup(token)
        if record is None:
            raise Unauthorized("token not found")

        username = decode_token(token)
        if username is None:
            logger.warning(f"Revoking token with bad signature (stored for {record.username})")
            self.store.revoke(token)
            raise Unauthorized("invalid token")

        if username != record.username:
            logger.warning(f"Token for {username} is stored under {record.username}")
            raise Unauthorized("token mismatch")

        return username
