# backend/wealthtrack/services/exceptions.py
"""
Service layer exceptions.

These exceptions represent domain-specific errors and contain NO HTTP knowledge.
main.py maps them to HTTP responses.

Exception Hierarchy:
    ServiceError (base)
    ├── ValidationError
    ├── NotFoundError
    │   └── AssetNotFoundError
    ├── AuthenticationError
    │   └── InvalidCredentialsError
    ├── MarketDataError
    │   └── ExternalSourceError
    │       ├── ProviderUnavailableError
    │       └── RateLimitError
    └── StoreError

    InvalidRangeError (ValueError, from utils.date_utils)
        - Raised by date_range() for inverted or unparseable bounds
"""


class ServiceError(Exception):
    """
    Base exception for all service layer errors.

    Attributes:
        message: Human-readable error description
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message


# =============================================================================
# VALIDATION ERRORS
# =============================================================================


class ValidationError(ServiceError):
    """
    Raised when operation parameters are rejected before any I/O.

    Attributes:
        field: The field that failed validation (optional)
    """

    def __init__(self, message: str, field: str | None = None) -> None:
        self.field = field
        super().__init__(message)


# =============================================================================
# NOT FOUND ERRORS
# =============================================================================


class NotFoundError(ServiceError):
    """
    Base exception for resource not found errors.

    Attributes:
        resource_type: Type of resource (e.g., "Asset")
        resource_id: Identifier of the resource
    """

    def __init__(
            self,
            message: str,
            resource_type: str | None = None,
            resource_id: str | None = None,
    ) -> None:
        self.resource_type = resource_type
        self.resource_id = resource_id
        super().__init__(message)


class AssetNotFoundError(NotFoundError):
    """
    Raised when an asset does not exist or is not visible to the caller.

    Both cases share one error so that asset ids of other users are not
    disclosed.
    """

    def __init__(self, asset_id: str) -> None:
        self.asset_id = asset_id
        super().__init__(
            f"Asset {asset_id} not found",
            resource_type="Asset",
            resource_id=asset_id,
        )


# =============================================================================
# AUTHENTICATION ERRORS
# =============================================================================


class AuthenticationError(ServiceError):
    """Base exception for caller identification failures."""
    pass


class InvalidCredentialsError(AuthenticationError):
    """Raised when the bearer token is missing, malformed, expired or unsigned."""

    def __init__(self, message: str = "Invalid or missing credentials") -> None:
        super().__init__(message)


# =============================================================================
# MARKET DATA PROVIDER ERRORS
# =============================================================================


class MarketDataError(ServiceError):
    """
    Base exception for market data provider failures.

    Attributes:
        provider: Name of the provider that failed
    """

    def __init__(self, message: str, provider: str | None = None) -> None:
        self.provider = provider
        super().__init__(message)


class ExternalSourceError(MarketDataError):
    """
    The quote source could not be reached or answered with an error.

    Distinct from "no data": an unknown symbol yields an empty result,
    never this exception.
    """
    pass


class ProviderUnavailableError(ExternalSourceError):
    """
    Raised when a market data provider is temporarily unavailable.

    Examples:
    - Network timeout
    - Server errors (500, 502, 503)

    This is a retryable error.
    """

    def __init__(self, provider: str, reason: str) -> None:
        message = f"Provider '{provider}' is unavailable: {reason}"
        super().__init__(message, provider=provider)
        self.reason = reason


class RateLimitError(ExternalSourceError):
    """
    Raised when the provider answered HTTP 429.

    This is a retryable error (with backoff).

    Attributes:
        retry_after: Seconds to wait before retrying (if provided by API)
    """

    def __init__(self, provider: str, retry_after: int | None = None) -> None:
        message = f"Rate limit exceeded for provider '{provider}'"
        if retry_after:
            message += f" (retry after {retry_after}s)"
        super().__init__(message, provider=provider)
        self.retry_after = retry_after


# =============================================================================
# STORE ERRORS
# =============================================================================


class StoreError(ServiceError):
    """
    Raised when a database write fails.

    HistoryStore absorbs these into failure counts; AssetStore raises them
    so the refresh loop can record the asset as failed.
    """

    def __init__(self, message: str, operation: str | None = None) -> None:
        self.operation = operation
        super().__init__(message)


# =============================================================================
# RANGE ERRORS (re-exported for convenience)
# =============================================================================

from wealthtrack.utils.date_utils import InvalidRangeError

__all__ = [
    # Base
    "ServiceError",
    # Validation
    "ValidationError",
    # Not Found
    "NotFoundError",
    "AssetNotFoundError",
    # Authentication
    "AuthenticationError",
    "InvalidCredentialsError",
    # Market Data
    "MarketDataError",
    "ExternalSourceError",
    "ProviderUnavailableError",
    "RateLimitError",
    # Store
    "StoreError",
    # Ranges
    "InvalidRangeError",
]
