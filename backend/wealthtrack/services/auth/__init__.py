# backend/wealthtrack/services/auth/__init__.py
"""
Caller authentication.

Sign-up, login and sessions are handled by the external auth provider;
this package only verifies the bearer tokens it issues.
"""

from wealthtrack.services.auth.jwt_handler import Caller, JWTHandler, SERVICE_ROLE_LABEL

__all__ = [
    "Caller",
    "JWTHandler",
    "SERVICE_ROLE_LABEL",
]
