import secrets

import bcrypt
from jose import JWTError, jwt

from typerace.config import settings


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt()).decode()


def verify_password(password: str, hashed: str) -> bool:
    return bcrypt.checkpw(password.encode(), hashed.encode())


def create_token(username: str, issued_at: float, expires_at: float) -> str:
    # jti makes every token unique and unguessable, even for the same second
    payload = {
        "sub": username,
        "iat": int(issued_at),
        "exp": int(expires_at),
        "jti": secrets.token_urlsafe(16),
    }
    return jwt.encode(payload, settings.secret_key, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> str | None:
    """Return the username signed into the token, or None if the signature is bad.

    Expiry is owned by the token store, so only the signature is checked here.
    """
    try:
        payload = jwt.decode(
            token,
            settings.secret_key,
            algorithms=[settings.jwt_algorithm],
            options={"verify_exp": False, "verify_iat": False},
        )
        username = payload["sub"]
    except (JWTError, KeyError):
        return None
    return username if isinstance(username, str) else None
