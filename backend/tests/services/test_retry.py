# backend/tests/services/test_retry.py
"""
Tests for the tenacity retry policy.
"""

from unittest.mock import MagicMock

import pytest

from wealthtrack.services.exceptions import (
    ProviderUnavailableError,
    RateLimitError,
    ValidationError,
)
from wealthtrack.services.retry import with_retry


class TestWithRetry:

    def test_success_first_try_calls_once(self):
        func = MagicMock(return_value=42)

        wrapped = with_retry(max_attempts=3, base_delay=0)(func)

        assert wrapped() == 42
        assert func.call_count == 1

    def test_transient_failure_then_success(self):
        func = MagicMock(side_effect=[
            ProviderUnavailableError("yahoo", "timeout"),
            RateLimitError("yahoo"),
            "ok",
        ])

        wrapped = with_retry(max_attempts=3, base_delay=0)(func)

        assert wrapped() == "ok"
        assert func.call_count == 3

    def test_reraises_last_error_after_budget(self):
        func = MagicMock(side_effect=ProviderUnavailableError("yahoo", "HTTP 503"))

        wrapped = with_retry(max_attempts=3, base_delay=0)(func)

        with pytest.raises(ProviderUnavailableError):
            wrapped()
        assert func.call_count == 3

    def test_non_retryable_error_propagates_immediately(self):
        func = MagicMock(side_effect=ValidationError("bad"))

        wrapped = with_retry(max_attempts=5, base_delay=0)(func)

        with pytest.raises(ValidationError):
            wrapped()
        assert func.call_count == 1

    def test_single_attempt_budget(self):
        func = MagicMock(side_effect=ProviderUnavailableError("yahoo", "down"))

        wrapped = with_retry(max_attempts=1, base_delay=0)(func)

        with pytest.raises(ProviderUnavailableError):
            wrapped()
        assert func.call_count == 1

    def test_zero_attempts_rejected(self):
        with pytest.raises(ValueError):
            with_retry(max_attempts=0)
