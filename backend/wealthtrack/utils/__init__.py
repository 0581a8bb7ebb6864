# backend/wealthtrack/utils/__init__.py
"""
Utility modules for WealthTrack.

This package contains cross-cutting utilities used throughout the application:
- logging: Logging configuration with correlation ID support
- context: Request context (correlation ID, caller) in contextvars
- date_utils: UTC calendar helpers (date ranges, weekend rule)

Usage:
    from wealthtrack.utils import setup_logging
    from wealthtrack.utils import get_correlation_id, set_correlation_id
    from wealthtrack.utils.date_utils import date_range
"""

from wealthtrack.utils.context import (
    get_correlation_id,
    set_correlation_id,
    clear_correlation_id,
    get_caller_id,
    set_caller_id,
    clear_caller_id,
)
from wealthtrack.utils.logging import setup_logging

__all__ = [
    # Logging
    "setup_logging",
    # Context
    "get_correlation_id",
    "set_correlation_id",
    "clear_correlation_id",
    "get_caller_id",
    "set_caller_id",
    "clear_caller_id",
]
