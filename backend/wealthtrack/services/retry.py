# backend/wealthtrack/services/retry.py
"""
Retry policy for calls to external quote sources.

A single tenacity configuration shared by every provider:
- retries only transient failures (ProviderUnavailableError, RateLimitError)
- exponential backoff starting at base_delay and doubling per attempt
- logs each retry at WARNING
- re-raises the last error once the attempt budget is spent

Usage:
    @with_retry(max_attempts=3, base_delay=1.0)
    def fetch():
        ...
"""

import logging
from typing import Callable, TypeVar

from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
    before_sleep_log,
)

from wealthtrack.services.exceptions import ProviderUnavailableError, RateLimitError

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable)

RETRYABLE_ERRORS: tuple[type[Exception], ...] = (ProviderUnavailableError, RateLimitError)

# Backoff never exceeds this, whatever the attempt count
MAX_BACKOFF_SECONDS: float = 30.0


def with_retry(
        max_attempts: int = 3,
        base_delay: float = 1.0,
        max_delay: float = MAX_BACKOFF_SECONDS,
        retry_on: tuple[type[Exception], ...] = RETRYABLE_ERRORS,
) -> Callable[[F], F]:
    """
    Build a retry decorator.

    Waits between attempts are base_delay, 2*base_delay, 4*base_delay ...
    capped at max_delay. A base_delay of 0 retries immediately (tests).

    Args:
        max_attempts: Total attempts, first call included
        base_delay: Wait before the second attempt, in seconds
        max_delay: Upper bound of a single wait
        retry_on: Exception types that trigger another attempt

    Returns:
        Decorator applying the policy to a function
    """
    if max_attempts < 1:
        raise ValueError(f"max_attempts must be >= 1, got {max_attempts}")

    return retry(
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(multiplier=base_delay, min=0, max=max_delay),
        retry=retry_if_exception_type(retry_on),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
