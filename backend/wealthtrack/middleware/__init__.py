# backend/wealthtrack/middleware/__init__.py
"""
ASGI middleware for WealthTrack.

- Correlation ID tracking for request tracing
- Rate limiting for API protection

Usage:
    from wealthtrack.middleware import CorrelationIdMiddleware, limiter

    app.add_middleware(CorrelationIdMiddleware)
    app.state.limiter = limiter
"""

from wealthtrack.middleware.correlation import CorrelationIdMiddleware
from wealthtrack.middleware.rate_limit import (
    limiter,
    rate_limit_exceeded_handler,
    SlowAPIMiddleware,
    RATE_LIMIT_DEFAULT,
    RATE_LIMIT_BACKFILL,
    RATE_LIMIT_REFRESH,
    RATE_LIMIT_LIVE_QUOTES,
    RATE_LIMIT_HEALTH,
)

__all__ = [
    "CorrelationIdMiddleware",
    "limiter",
    "rate_limit_exceeded_handler",
    "SlowAPIMiddleware",
    "RATE_LIMIT_DEFAULT",
    "RATE_LIMIT_BACKFILL",
    "RATE_LIMIT_REFRESH",
    "RATE_LIMIT_LIVE_QUOTES",
    "RATE_LIMIT_HEALTH",
]
