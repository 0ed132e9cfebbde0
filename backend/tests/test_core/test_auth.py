"""
Unit tests for token issuing and password hashing

Author: TM3
Date: 2026-10-17
"""
import pytest
from datetime import datetime, timedelta, timezone
from fastapi import HTTPException
from jose import jwt

from marketplace.core.auth import (
    create_access_token,
    decode_access_token,
    hash_password,
    verify_password,
)
from marketplace.core.config import settings


class TestAccessToken:
    def test_round_trip_claims(self):
        issued = create_access_token(42, username="+77011234567", roles=["supplier"])

        payload = decode_access_token(issued.access_token)

        assert payload["sub"] == "42"
        assert payload["user_id"] == 42
        assert payload["roles"] == ["supplier"]
        assert payload["iss"] == settings.JWT_ISSUER
        assert issued.token_type == "bearer"

    def test_expiry_follows_settings(self):
        before = datetime.now(timezone.utc)

        issued = create_access_token(1)

        expected = before + timedelta(hours=settings.JWT_EXPIRATION_HOURS)
        assert abs((issued.expires_at - expected).total_seconds()) < 5

    def test_expired_token_rejected(self):
        past = datetime.now(timezone.utc) - timedelta(hours=1)
        token = jwt.encode(
            {"sub": "1", "user_id": 1, "iss": settings.JWT_ISSUER, "exp": int(past.timestamp())},
            settings.JWT_SECRET,
            algorithm=settings.JWT_ALGORITHM
        )

        with pytest.raises(HTTPException) as exc_info:
            decode_access_token(token)

        assert exc_info.value.status_code == 401
        assert exc_info.value.detail == "Token has expired"

    def test_foreign_signature_rejected(self):
        token = jwt.encode({"sub": "1", "iss": settings.JWT_ISSUER}, "another-secret", algorithm="HS256")

        with pytest.raises(HTTPException) as exc_info:
            decode_access_token(token)

        assert exc_info.value.detail == "Invalid token"


class TestPasswords:
    def test_hash_verifies(self):
        password_hash = hash_password("secret1")

        assert password_hash != "secret1"
        assert verify_password("secret1", password_hash) is True
        assert verify_password("secret2", password_hash) is False

    def test_account_without_password_never_matches(self):
        assert verify_password("anything", None) is False
