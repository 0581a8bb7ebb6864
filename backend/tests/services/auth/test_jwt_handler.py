# backend/tests/services/auth/test_jwt_handler.py
"""
Tests for bearer token handling.

Tests:
- Access token creation with correct claims
- Token validation (valid, expired, invalid, missing subject)
- Caller resolution (user token, service role key, missing token)
"""

import secrets
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest
from jose import jwt

from wealthtrack.config import settings
from wealthtrack.services.auth import Caller, JWTHandler, SERVICE_ROLE_LABEL
from wealthtrack.services.exceptions import InvalidCredentialsError

from tests.conftest import USER_ID

SERVICE_KEY = "service-role-key-for-tests"


@pytest.fixture
def service_role_key(monkeypatch) -> str:
    monkeypatch.setattr(settings, "service_role_key", SERVICE_KEY)
    return SERVICE_KEY


# =============================================================================
# TEST: ACCESS TOKEN CREATION
# =============================================================================


class TestCreateAccessToken:
    """Tests for access token creation."""

    def test_create_token_is_valid_jwt(self):
        """Created token should be a JWT (3 dot-separated parts)."""
        token = JWTHandler.create_access_token(USER_ID)

        assert len(token.split(".")) == 3  # header.payload.signature

    def test_token_contains_subject_and_times(self):
        payload = JWTHandler.validate_access_token(JWTHandler.create_access_token(USER_ID))

        assert payload["sub"] == USER_ID
        assert "exp" in payload
        assert "iat" in payload

    def test_token_with_custom_expiry(self):
        token = JWTHandler.create_access_token(USER_ID, expires_delta=timedelta(hours=2))

        payload = JWTHandler.validate_access_token(token)
        exp_time = datetime.fromtimestamp(payload["exp"], tz=timezone.utc)
        iat_time = datetime.fromtimestamp(payload["iat"], tz=timezone.utc)

        # Should be approximately 2 hours apart
        diff = exp_time - iat_time
        assert timedelta(hours=1, minutes=59) < diff < timedelta(hours=2, minutes=1)

    def test_extra_claims_are_kept(self):
        token = JWTHandler.create_access_token(USER_ID, extra_claims={"role": "authenticated"})

        assert JWTHandler.validate_access_token(token)["role"] == "authenticated"


# =============================================================================
# TEST: ACCESS TOKEN VALIDATION
# =============================================================================


class TestValidateAccessToken:
    """Tests for access token validation."""

    def test_expired_token_raises_error(self):
        token = JWTHandler.create_access_token(USER_ID, expires_delta=timedelta(seconds=-10))

        with pytest.raises(InvalidCredentialsError, match="expired"):
            JWTHandler.validate_access_token(token)

    def test_malformed_token_raises_error(self):
        with pytest.raises(InvalidCredentialsError):
            JWTHandler.validate_access_token("not.a.jwt")

    def test_wrong_secret_raises_error(self):
        token = jwt.encode(
            {"sub": USER_ID, "exp": datetime.now(timezone.utc) + timedelta(hours=1)},
            "some-other-secret-that-is-long-enough",
            algorithm="HS256",
        )

        with pytest.raises(InvalidCredentialsError):
            JWTHandler.validate_access_token(token)

    def test_token_without_subject_raises_error(self):
        token = jwt.encode(
            {"exp": datetime.now(timezone.utc) + timedelta(hours=1)},
            settings.jwt_secret_key,
            algorithm=settings.jwt_algorithm,
        )

        with pytest.raises(InvalidCredentialsError, match="subject"):
            JWTHandler.validate_access_token(token)

    def test_unconfigured_secret_rejects_everything(self, monkeypatch):
        token = JWTHandler.create_access_token(USER_ID)
        monkeypatch.setattr(settings, "jwt_secret_key", None)

        with pytest.raises(InvalidCredentialsError):
            JWTHandler.validate_access_token(token)


# =============================================================================
# TEST: CALLER RESOLUTION
# =============================================================================


class TestResolveCaller:

    def test_user_token(self):
        caller = JWTHandler.resolve_caller(JWTHandler.create_access_token(USER_ID))

        assert caller == Caller(user_id=USER_ID)
        assert caller.log_label == USER_ID

    def test_service_role_key(self, service_role_key):
        caller = JWTHandler.resolve_caller(service_role_key)

        assert caller.is_service_role
        assert caller.user_id is None
        assert caller.log_label == SERVICE_ROLE_LABEL

    def test_service_role_disabled_without_key(self, monkeypatch):
        monkeypatch.setattr(settings, "service_role_key", None)

        with pytest.raises(InvalidCredentialsError):
            JWTHandler.resolve_caller(SERVICE_KEY)

    @pytest.mark.parametrize("token", [None, ""])
    def test_missing_token(self, token):
        with pytest.raises(InvalidCredentialsError, match="Missing"):
            JWTHandler.resolve_caller(token)

    def test_garbage_token(self, service_role_key):
        with pytest.raises(InvalidCredentialsError):
            JWTHandler.resolve_caller("garbage")

    def test_service_role_key_compared_in_constant_time(self, service_role_key):
        with patch(
            "wealthtrack.services.auth.jwt_handler.secrets.compare_digest", wraps=secrets.compare_digest
        ) as compare:
            caller = JWTHandler.resolve_caller(service_role_key)

        assert caller.is_service_role
        compare.assert_called_once_with(service_role_key.encode(), service_role_key.encode())

    def test_same_length_near_miss_is_not_service_role(self, service_role_key):
        near_miss = service_role_key[:-1] + "X"

        with pytest.raises(InvalidCredentialsError):
            JWTHandler.resolve_caller(near_miss)

    def test_non_ascii_token_rejected_as_credentials_error(self, service_role_key):
        with pytest.raises(InvalidCredentialsError):
            JWTHandler.resolve_caller("clé-de-service")
