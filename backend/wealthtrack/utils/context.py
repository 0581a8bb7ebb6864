# backend/wealthtrack/utils/context.py
"""
Request-scoped context for log enrichment.

Two values are tracked per request:
- correlation ID, set by CorrelationIdMiddleware
- caller ID, set once the bearer token is resolved ("service" for the
  service role, the user id otherwise)

Both live in contextvars, so worker threads started with
contextvars.copy_context() (the live quote fan-out) see the same values.

Usage:
    from wealthtrack.utils.context import get_correlation_id, set_caller_id

    set_caller_id(caller.log_label)
"""

from contextvars import ContextVar

_correlation_id_var: ContextVar[str | None] = ContextVar("correlation_id", default=None)
_caller_id_var: ContextVar[str | None] = ContextVar("caller_id", default=None)


# =============================================================================
# CORRELATION ID
# =============================================================================

def get_correlation_id() -> str | None:
    """Return the correlation ID of the current request, if any."""
    return _correlation_id_var.get()


def set_correlation_id(correlation_id: str) -> None:
    _correlation_id_var.set(correlation_id)


def clear_correlation_id() -> None:
    _correlation_id_var.set(None)


# =============================================================================
# CALLER
# =============================================================================

def get_caller_id() -> str | None:
    """Return the identity label of the authenticated caller, if any."""
    return _caller_id_var.get()


def set_caller_id(caller_id: str) -> None:
    _caller_id_var.set(caller_id)


def clear_caller_id() -> None:
    _caller_id_var.set(None)
