# backend/wealthtrack/services/auth/jwt_handler.py
"""
Bearer token verification.

Two kinds of callers reach the API:
- users, with an HS256 access token issued by the external auth provider;
  the `sub` claim is the user id (a UUID string)
- the scheduler, with the opaque service role key, which grants access to
  every user's assets

Tokens are never stored; verification is stateless.
"""

import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

from jose import JWTError, jwt

from wealthtrack.config import settings
from wealthtrack.services.exceptions import InvalidCredentialsError

SERVICE_ROLE_LABEL = "service-role"


@dataclass(frozen=True)
class Caller:
    """
    Authenticated identity.

    user_id is None for the service role, meaning "all users".
    """

    user_id: str | None
    is_service_role: bool = False

    @property
    def log_label(self) -> str:
        return SERVICE_ROLE_LABEL if self.is_service_role else str(self.user_id)


class JWTHandler:
    """
    Creates and validates access tokens.

    Access tokens contain:
    - sub: User ID (string)
    - exp: Expiration timestamp
    - iat: Issued at timestamp
    - aud: Audience (checked only when JWT_AUDIENCE is set)
    """

    @staticmethod
    def create_access_token(
        user_id: str,
        expires_delta: timedelta | None = None,
        extra_claims: dict[str, Any] | None = None,
    ) -> str:
        """
        Sign a token for a user. Used by tests and local tooling; production
        tokens come from the auth provider.
        """
        now = datetime.now(timezone.utc)
        payload: dict[str, Any] = {
            "sub": user_id,
            "iat": now,
            "exp": now + (expires_delta or timedelta(hours=1)),
        }
        if settings.jwt_audience:
            payload["aud"] = settings.jwt_audience
        if extra_claims:
            payload.update(extra_claims)

        return jwt.encode(
            payload,
            settings.jwt_secret_key,
            algorithm=settings.jwt_algorithm,
        )

    @staticmethod
    def validate_access_token(token: str) -> dict[str, Any]:
        """
        Validate an access token and return its payload.

        Raises:
            InvalidCredentialsError: If the token is expired, invalid or has no subject
        """
        if not settings.jwt_secret_key:
            raise InvalidCredentialsError("Token verification is not configured")

        options = {"verify_aud": settings.jwt_audience is not None}
        try:
            payload = jwt.decode(
                token,
                settings.jwt_secret_key,
                algorithms=[settings.jwt_algorithm],
                audience=settings.jwt_audience,
                options=options,
            )
        except jwt.ExpiredSignatureError:
            raise InvalidCredentialsError("Invalid or expired token")
        except JWTError as e:
            raise InvalidCredentialsError(f"Invalid token: {str(e)}")

        if not payload.get("sub"):
            raise InvalidCredentialsError("Token has no subject")

        return payload

    @classmethod
    def resolve_caller(cls, token: str | None) -> Caller:
        """
        Identify the caller behind a bearer token.

        Raises:
            InvalidCredentialsError: Missing token or unverifiable JWT
        """
        if not token:
            raise InvalidCredentialsError("Missing authorization header")

        if cls._is_service_role_key(token):
            return Caller(user_id=None, is_service_role=True)

        payload = cls.validate_access_token(token)
        return Caller(user_id=str(payload["sub"]))

    @staticmethod
    def _is_service_role_key(token: str) -> bool:
        """Constant-time comparison against the configured service role key."""
        if not settings.service_role_key:
            return False
        return secrets.compare_digest(token.encode("utf-8"), settings.service_role_key.encode("utf-8"))
