# backend/wealthtrack/middleware/rate_limit.py
"""
Rate limiting for API protection (slowapi).

Protects the quote provider from bursts: backfill and refresh each fan
out to Yahoo Finance, so they get much tighter limits than reads. Limits
live in services/constants.py.

Key by: Client IP address (X-Forwarded-For only behind a trusted proxy)
Storage: In-memory

Usage:
    @router.post("/refresh")
    @limiter.limit(RATE_LIMIT_REFRESH)
    def refresh(request: Request, ...):
        ...
"""

import logging

from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address
from starlette.requests import Request
from starlette.responses import JSONResponse

from wealthtrack.config import settings
from wealthtrack.schemas.errors import ErrorDetail
from wealthtrack.services.constants import (
    RATE_LIMIT_BACKFILL,
    RATE_LIMIT_DEFAULT,
    RATE_LIMIT_HEALTH,
    RATE_LIMIT_LIVE_QUOTES,
    RATE_LIMIT_REFRESH,
)

logger = logging.getLogger(__name__)

DEFAULT_RETRY_AFTER_SECONDS = 60


def _get_client_ip(request: Request) -> str:
    """
    Client address used as the rate limit key.

    Forwarded headers are honoured only when the direct peer is a trusted
    proxy (or TRUST_PROXY_HEADERS is on); otherwise any client could pick
    its own key.
    """
    direct_ip = get_remote_address(request)
    trusted = settings.trust_proxy_headers or direct_ip in settings.trusted_proxy_ips

    if trusted:
        forwarded_for = request.headers.get("X-Forwarded-For")
        if forwarded_for:
            return forwarded_for.split(",")[0].strip()
        real_ip = request.headers.get("X-Real-IP")
        if real_ip:
            return real_ip

    return direct_ip


limiter = Limiter(
    key_func=_get_client_ip,
    default_limits=[RATE_LIMIT_DEFAULT],
)


def _retry_after(exc: RateLimitExceeded) -> int:
    """Window length of the exceeded limit, in seconds."""
    try:
        return int(exc.limit.limit.get_expiry())
    except AttributeError:
        return DEFAULT_RETRY_AFTER_SECONDS


async def rate_limit_exceeded_handler(
    request: Request, exc: RateLimitExceeded
) -> JSONResponse:
    """429 in the standard ErrorDetail shape, with a Retry-After header."""
    retry_after = _retry_after(exc)
    limit_info = str(exc.detail) if exc.detail else "Rate limit exceeded"

    logger.warning(f"Rate limit exceeded for {_get_client_ip(request)}: {limit_info}")

    return JSONResponse(
        status_code=429,
        content=ErrorDetail(
            error="RateLimitError",
            message=f"Too many requests. {limit_info}",
            details={"retry_after": retry_after},
        ).model_dump(),
        headers={"Retry-After": str(retry_after)},
    )


__all__ = [
    "limiter",
    "rate_limit_exceeded_handler",
    "SlowAPIMiddleware",
    "RATE_LIMIT_DEFAULT",
    "RATE_LIMIT_BACKFILL",
    "RATE_LIMIT_REFRESH",
    "RATE_LIMIT_LIVE_QUOTES",
    "RATE_LIMIT_HEALTH",
]
