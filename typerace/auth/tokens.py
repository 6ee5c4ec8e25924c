"""Session token records.

Every record lives in the ``tokens`` table and is valid while
``now < expires_at``. Expired rows are filtered out of every read and
removed by :meth:`TokenStore.sweep`, which the application runs on a
fixed interval.
"""

import logging
import time
from dataclasses import dataclass
from typing import Callable

from typerace.auth.utils import create_token
from typerace.config import settings
from typerace.db import get_connection
from typerace.errors import SessionConflict

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TokenRecord:
    token: str
    username: str
    created_at: float
    expires_at: float


def _active_token(conn, username: str, now: float) -> str | None:
    row = conn.execute(
        "SELECT token FROM tokens WHERE username = ? AND expires_at > ? "
        "ORDER BY created_at DESC LIMIT 1",
        (username, now),
    ).fetchone()
    return row["token"] if row else None


class TokenStore:
    def __init__(self, ttl_seconds: int | None = None, clock: Callable[[], float] = time.time):
        self.ttl_seconds = ttl_seconds if ttl_seconds is not None else settings.token_ttl_seconds
        self.clock = clock

    def issue(self, username: str) -> TokenRecord:
        """Create a token for ``username``.

        Raises SessionConflict while the user still holds a valid token; the
        existing session is never replaced.
        """
        now = self.clock()
        expires_at = now + self.ttl_seconds
        token = create_token(username, now, expires_at)
        with get_connection() as conn:
            if _active_token(conn, username, now):
                raise SessionConflict(username)
            conn.execute(
                "INSERT INTO tokens (token, username, created_at, expires_at) VALUES (?, ?, ?, ?)",
                (token, username, now, expires_at),
            )
        logger.info(f"Issued session token for {username}")
        return TokenRecord(token=token, username=username, created_at=now, expires_at=expires_at)

    def lookup(self, token: str) -> TokenRecord | None:
        with get_connection() as conn:
            row = conn.execute(
                "SELECT token, username, created_at, expires_at FROM tokens "
                "WHERE token = ? AND expires_at > ?",
                (token, self.clock()),
            ).fetchone()
        if not row:
            return None
        return TokenRecord(
            token=row["token"],
            username=row["username"],
            created_at=row["created_at"],
            expires_at=row["expires_at"],
        )

    def revoke(self, token: str):
        with get_connection() as conn:
            conn.execute("DELETE FROM tokens WHERE token = ?", (token,))

    def sweep(self, now: float | None = None) -> int:
        """Delete every record with ``expires_at <= now`` and return how many went."""
        if now is None:
            now = self.clock()
        with get_connection() as conn:
            cursor = conn.execute("DELETE FROM tokens WHERE expires_at <= ?", (now,))
            removed = cursor.rowcount
        if removed:
            logger.info(f"Swept {removed} expired session token(s)")
        return removed

    def active_token_for(self, username: str) -> str | None:
        with get_connection() as conn:
            return _active_token(conn, username, self.clock())

    def active_usernames(self) -> list[str]:
        with get_connection() as conn:
            rows = conn.execute(
                "SELECT DISTINCT username FROM tokens WHERE expires_at > ? ORDER BY username",
                (self.clock(),),
            ).fetchall()
        return [row["username"] for row in rows]
