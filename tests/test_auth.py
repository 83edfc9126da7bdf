# =============================================================================
# tests/test_auth.py - Token Verification Tests
# =============================================================================
# Tokens are signed with the HS256 test secret set in conftest.
# =============================================================================

import time
from uuid import uuid4

import pytest
from fastapi import HTTPException
from jose import jwt

from app.auth.dependencies import decode_access_token, verification_key
from app.config import settings


def make_token(claims: dict | None = None, secret: str | None = None, **headers) -> str:
    payload = {
        "sub": str(uuid4()),
        "email": "student@example.com",
        "aud": "authenticated",
        "exp": int(time.time()) + 3600,
    }
    payload.update(claims or {})
    return jwt.encode(payload, secret or settings.SUPABASE_JWT_SECRET, algorithm="HS256", headers=headers or None)


class TestDecodeAccessToken:

    def test_valid_token(self):
        user_id = uuid4()
        user = decode_access_token(make_token({"sub": str(user_id)}))

        assert user.id == user_id
        assert user.email == "student@example.com"

    def test_expired(self):
        with pytest.raises(HTTPException) as exc:
            decode_access_token(make_token({"exp": int(time.time()) - 60}))
        assert exc.value.status_code == 401
        assert exc.value.detail == "Token has expired"

    def test_wrong_secret(self):
        with pytest.raises(HTTPException) as exc:
            decode_access_token(make_token(secret="someone-else"))
        assert exc.value.status_code == 401

    def test_wrong_audience(self):
        with pytest.raises(HTTPException):
            decode_access_token(make_token({"aud": "anon"}))

    def test_missing_subject(self):
        token = make_token({"sub": ""})
        with pytest.raises(HTTPException) as exc:
            decode_access_token(token)
        assert exc.value.detail == "Invalid token: missing user ID"

    def test_malformed_subject(self):
        with pytest.raises(HTTPException) as exc:
            decode_access_token(make_token({"sub": "user-42"}))
        assert exc.value.detail == "Invalid token: malformed user ID"


class TestVerificationKey:

    def test_hs256_uses_secret(self):
        assert verification_key(make_token()) == (settings.SUPABASE_JWT_SECRET, "HS256")

    def test_garbage_falls_back(self):
        assert verification_key("not-a-jwt") == (settings.SUPABASE_JWT_SECRET, "HS256")
