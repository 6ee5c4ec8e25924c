import time

import pytest
from jose import jwt

from typerace.auth.guard import AuthorizationGuard
from typerace.auth.tokens import TokenStore
from typerace.auth.utils import create_token
from typerace.db import get_connection
from typerace.errors import Unauthorized


class FakeClock:
    def __init__(self):
        self.now = time.time()

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(clock):
    return TokenStore(ttl_seconds=3600, clock=clock)


@pytest.fixture
def guard(store):
    return AuthorizationGuard(store)


def _store_raw(token: str, username: str, expires_at: float):
    with get_connection() as conn:
        conn.execute(
            "INSERT INTO tokens (token, username, created_at, expires_at) VALUES (?, ?, ?, ?)",
            (token, username, expires_at - 3600, expires_at),
        )


def _reason(guard, token) -> str:
    with pytest.raises(Unauthorized) as exc:
        guard.authorize(token)
    return exc.value.reason


def test_authorize_valid(guard, store):
    record = store.issue("alice")
    assert guard.authorize(record.token) == "alice"


def test_authorize_missing(guard):
    assert _reason(guard, None) == "missing token"
    assert _reason(guard, "") == "missing token"


def test_authorize_malformed(guard):
    assert _reason(guard, "not-a-jwt") == "malformed token"


def test_authorize_never_issued(guard, clock):
    token = create_token("alice", clock.now, clock.now + 3600)
    assert _reason(guard, token) == "token not found"


def test_authorize_revoked(guard, store):
    record = store.issue("alice")
    store.revoke(record.token)
    assert _reason(guard, record.token) == "token not found"


def test_authorize_expiry_boundary(guard, store, clock):
    record = store.issue("alice")
    clock.now = record.expires_at - 1
    assert guard.authorize(record.token) == "alice"

    clock.now = record.expires_at
    assert _reason(guard, record.token) == "token not found"


def test_authorize_bad_signature_revokes(guard, store, clock):
    forged = jwt.encode({"sub": "alice"}, "someone-elses-key", algorithm="HS512")
    _store_raw(forged, "alice", clock.now + 3600)

    assert _reason(guard, forged) == "invalid token"
    assert store.lookup(forged) is None


def test_authorize_username_mismatch(guard, store, clock):
    token = create_token("bob", clock.now, clock.now + 3600)
    _store_raw(token, "alice", clock.now + 3600)

    assert _reason(guard, token) == "token mismatch"
    # Mismatch does not revoke; only a bad signature does
    assert store.lookup(token) is not None
