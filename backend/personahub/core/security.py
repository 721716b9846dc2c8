"""Password hashing and bearer-token helpers."""

import hashlib
import hmac
import secrets
from datetime import UTC, datetime, timedelta

import bcrypt
import jwt as pyjwt

from personahub.core.config import get_settings
from personahub.core.exceptions import AuthenticationError

_SCRYPT_PREFIX = "scrypt:"
_SCRYPT_MAXMEM = 64 * 1024 * 1024


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def _verify_scrypt(password: str, stored: str) -> bool:
    """Verify a legacy ``scrypt:N:r:p$salt$hexdigest`` hash."""
    try:
        header, salt, digest_hex = stored.split("$")
        _, n, r, p = header.split(":")
        expected = bytes.fromhex(digest_hex)
        derived = hashlib.scrypt(
            password.encode("utf-8"),
            salt=salt.encode("utf-8"),
            n=int(n),
            r=int(r),
            p=int(p),
            maxmem=_SCRYPT_MAXMEM,
            dklen=len(expected),
        )
    except ValueError:
        return False
    return hmac.compare_digest(derived, expected)


def verify_password(password: str, stored: str) -> bool:
    if stored.startswith(_SCRYPT_PREFIX):
        return _verify_scrypt(password, stored)
    try:
        return bcrypt.checkpw(password.encode("utf-8"), stored.encode("utf-8"))
    except ValueError:
        return False


def generate_api_token() -> str:
    return secrets.token_hex(24)


def create_access_token(user_id: int, is_admin: bool = False, now: datetime | None = None) -> str:
    """Issue a signed bearer token for a user."""
    settings = get_settings()
    now = now or datetime.now(UTC)
    payload = {
        "sub": str(user_id),
        "admin": is_admin,
        "iat": now,
        "exp": now + timedelta(minutes=settings.access_token_ttl_minutes),
    }
    return pyjwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> dict:
    """Verify and decode a bearer token.

    Raises ``AuthenticationError`` on any validation failure.
    """
    settings = get_settings()
    try:
        return pyjwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
            options={"require": ["sub", "exp", "iat"]},
        )
    except pyjwt.InvalidTokenError as exc:
        raise AuthenticationError("auth.invalid_token") from exc
