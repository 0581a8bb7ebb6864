# backend/wealthtrack/middleware/correlation.py
"""
Correlation ID middleware for request tracing.

Sources, in order of precedence:
1. X-Correlation-ID header (from client or upstream service)
2. X-Request-ID header
3. A generated UUID

Incoming IDs longer than 128 characters or containing anything other than
letters, digits, '-', '_', '.' and ':' are replaced by a generated one so
that log lines cannot be forged through the header.

The chosen ID is echoed back in the X-Correlation-ID response header.
"""

import logging
import re
import uuid
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from wealthtrack.utils.context import clear_caller_id, clear_correlation_id, set_correlation_id

logger = logging.getLogger(__name__)

CORRELATION_ID_HEADER = "X-Correlation-ID"
REQUEST_ID_HEADER = "X-Request-ID"

_VALID_ID = re.compile(r"^[A-Za-z0-9._:\-]{1,128}$")


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Stores a per-request correlation ID in context and returns it to the client."""

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Response],
    ) -> Response:
        correlation_id = resolve_correlation_id(
            request.headers.get(CORRELATION_ID_HEADER),
            request.headers.get(REQUEST_ID_HEADER),
        )
        set_correlation_id(correlation_id)

        try:
            response = await call_next(request)
            response.headers[CORRELATION_ID_HEADER] = correlation_id
            return response
        finally:
            clear_correlation_id()
            clear_caller_id()


def resolve_correlation_id(*candidates: str | None) -> str:
    """First well-formed candidate, or a new UUID."""
    for candidate in candidates:
        if candidate and _VALID_ID.match(candidate):
            return candidate
        if candidate:
            logger.debug("Ignoring malformed correlation ID header")
    return str(uuid.uuid4())
