"""Tests for password hashing and bearer tokens."""

import hashlib
from datetime import UTC, datetime, timedelta

import pytest

from personahub.core.exceptions import AuthenticationError
from personahub.core.security import (
    create_access_token,
    decode_access_token,
    generate_api_token,
    hash_password,
    verify_password,
)

pytestmark = pytest.mark.unit


def _legacy_scrypt_hash(password: str, salt: str = "pepper") -> str:
    digest = hashlib.scrypt(password.encode(), salt=salt.encode(), n=16384, r=8, p=1, dklen=64)
    return f"scrypt:16384:8:1${salt}${digest.hex()}"


class TestPasswords:
    def test_bcrypt_roundtrip(self):
        stored = hash_password("secret123")

        assert stored.startswith("$2")
        assert verify_password("secret123", stored)
        assert not verify_password("secret124", stored)

    def test_legacy_scrypt_hashes_still_verify(self):
        stored = _legacy_scrypt_hash("secret123")

        assert verify_password("secret123", stored)
        assert not verify_password("wrong", stored)

    @pytest.mark.parametrize("stored", ["", "not-a-hash", "scrypt:garbage", "scrypt:1:2:3$salt$zz"])
    def test_malformed_hashes_never_verify(self, stored):
        assert verify_password("secret123", stored) is False


class TestTokens:
    def test_roundtrip(self):
        claims = decode_access_token(create_access_token(42, is_admin=True))

        assert claims["sub"] == "42"
        assert claims["admin"] is True

    def test_expired_token_is_rejected(self):
        token = create_access_token(42, now=datetime.now(UTC) - timedelta(days=365))

        with pytest.raises(AuthenticationError) as exc_info:
            decode_access_token(token)
        assert exc_info.value.message_key == "auth.invalid_token"

    def test_tampered_token_is_rejected(self):
        token = create_access_token(42)

        with pytest.raises(AuthenticationError):
            decode_access_token(token[:-2] + ("AA" if not token.endswith("AA") else "BB"))

    def test_api_tokens_are_unique(self):
        assert generate_api_token() != generate_api_token()
