"""Tests for JWT token management."""

from datetime import datetime, timedelta, timezone

import jwt
import pytest

from santa.auth.jwt import _load_keys, create_access_token, create_refresh_token, verify_token
from santa.config import get_settings


class TestAccessToken:
    def test_create_and_verify(self):
        payload = verify_token(create_access_token(user_id=1, email="a@example.com"))
        assert payload["sub"] == "1"
        assert payload["email"] == "a@example.com"
        assert payload["type"] == "access"
        assert payload["iss"] == get_settings().jwt_issuer

    def test_refresh_token_rejected_as_access(self):
        token = create_refresh_token(user_id=1, email="a@example.com", token_id="test-id")
        with pytest.raises(jwt.InvalidTokenError, match="Expected token type"):
            verify_token(token, expected_type="access")

    def test_garbage_rejected(self):
        with pytest.raises(jwt.InvalidTokenError):
            verify_token("not.a.jwt")

    def test_expired_token_rejected(self):
        private_key, _ = _load_keys()
        past = datetime.now(timezone.utc) - timedelta(hours=2)
        token = jwt.encode(
            {
                "sub": "1",
                "iat": past,
                "exp": past + timedelta(minutes=5),
                "iss": get_settings().jwt_issuer,
                "type": "access",
            },
            private_key,
            algorithm="RS256",
        )
        with pytest.raises(jwt.InvalidTokenError, match="expired"):
            verify_token(token)

    def test_foreign_issuer_rejected(self):
        private_key, _ = _load_keys()
        now = datetime.now(timezone.utc)
        token = jwt.encode(
            {"sub": "1", "iat": now, "exp": now + timedelta(minutes=5), "iss": "someone-else", "type": "access"},
            private_key,
            algorithm="RS256",
        )
        with pytest.raises(jwt.InvalidTokenError):
            verify_token(token)


class TestRefreshToken:
    def test_create_includes_jti(self):
        token = create_refresh_token(user_id=2, email="b@example.com", token_id="abc-123")
        payload = verify_token(token, expected_type="refresh")
        assert payload["jti"] == "abc-123"
        assert payload["type"] == "refresh"
        assert payload["sub"] == "2"
