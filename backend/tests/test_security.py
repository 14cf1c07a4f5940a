"""
Unit tests for password hashing and access tokens.
"""
from __future__ import annotations

from datetime import timedelta

import jwt
import pytest

from app.core.config import settings
from app.core.security import (
    InvalidTokenError,
    create_access_token,
    decode_access_token,
    hash_password,
    verify_password,
)


class TestPasswords:
    def test_hash_roundtrip(self):
        hashed = hash_password("s3cret")
        assert hashed != "s3cret"
        assert verify_password("s3cret", hashed)
        assert not verify_password("wrong", hashed)

    def test_hash_uses_random_salt(self):
        assert hash_password("same") != hash_password("same")

    def test_malformed_hash_is_rejected(self):
        assert verify_password("anything", "not-a-bcrypt-hash") is False


class TestTokens:
    def test_payload_keeps_identity_claims(self):
        token = create_access_token(7, "hr", "hr")
        payload = decode_access_token(token)
        assert payload["userId"] == 7
        assert payload["username"] == "hr"
        assert payload["role"] == "hr"
        assert payload["exp"] > payload["iat"]

    def test_expired_token(self):
        token = create_access_token(1, "ed", "ed", expires_delta=timedelta(seconds=-5))
        with pytest.raises(InvalidTokenError, match="expired"):
            decode_access_token(token)

    def test_wrong_secret(self):
        token = jwt.encode(
            {"userId": 1, "username": "x", "role": "admin"}, "other-secret", algorithm="HS256"
        )
        with pytest.raises(InvalidTokenError):
            decode_access_token(token)

    def test_missing_claim(self):
        token = jwt.encode(
            {"userId": 1, "username": "x"}, settings.jwt_secret, algorithm=settings.jwt_algorithm
        )
        with pytest.raises(InvalidTokenError, match="role"):
            decode_access_token(token)
