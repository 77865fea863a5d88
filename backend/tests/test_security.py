"""
SkillSwap Backend — Security Helper Tests
===========================================

What we test:
    ✅ bcrypt hashes verify, wrong passwords and missing hashes do not
    ✅ JWT round trip carries sub / email / name
    ✅ Expired, tampered and subject-less tokens raise AuthenticationError
"""

import uuid
from datetime import timedelta

import pytest
from jose import jwt

from skillswap.config import settings
from skillswap.exceptions import AuthenticationError
from skillswap.security import (
    create_access_token,
    decode_access_token,
    hash_password,
    user_id_from_token,
    verify_password,
)


class TestPasswords:

    def test_hash_verifies(self):
        hashed = hash_password("secret123")
        assert hashed != "secret123"
        assert verify_password("secret123", hashed)

    def test_wrong_password_fails(self):
        assert not verify_password("nope", hash_password("secret123"))

    def test_missing_or_garbage_hash_fails(self):
        """OAuth accounts have no hash; a corrupt hash must not raise."""
        assert not verify_password("secret123", None)
        assert not verify_password("secret123", "not-a-bcrypt-hash")


class TestTokens:

    def test_round_trip(self):
        user_id = uuid.uuid4()
        token = create_access_token(user_id, "a@example.com", "Alice")

        claims = decode_access_token(token)
        assert claims["sub"] == str(user_id)
        assert claims["email"] == "a@example.com"
        assert claims["name"] == "Alice"
        assert "exp" in claims
        assert user_id_from_token(token) == user_id

    def test_expired_token(self):
        token = create_access_token(
            uuid.uuid4(), "a@example.com", "Alice", expires_delta=timedelta(seconds=-10)
        )
        with pytest.raises(AuthenticationError, match="Token expired"):
            decode_access_token(token)

    def test_token_signed_with_other_secret(self):
        token = jwt.encode({"sub": str(uuid.uuid4())}, "another-secret", algorithm="HS256")
        with pytest.raises(AuthenticationError, match="Invalid token"):
            decode_access_token(token)

    def test_garbage_token(self):
        with pytest.raises(AuthenticationError):
            user_id_from_token("not.a.jwt")

    def test_token_without_uuid_subject(self):
        token = jwt.encode(
            {"sub": "someone"}, settings.jwt_secret, algorithm=settings.jwt_algorithm
        )
        with pytest.raises(AuthenticationError, match="Invalid token subject"):
            user_id_from_token(token)

        token = jwt.encode({"email": "a@example.com"}, settings.jwt_secret, algorithm=settings.jwt_algorithm)
        with pytest.raises(AuthenticationError, match="Invalid token payload"):
            user_id_from_token(token)
