# backend/wealthtrack/services/market_data/base.py
"""
Abstract interface for market data providers.

This module defines the contract that quote sources must follow. The
history and refresh services depend on this interface only, so tests can
inject an in-memory provider and a second source can be added without
touching the orchestrators.

Contract:
- "No data" (unknown symbol, empty frame, missing fields) is a normal
  outcome: None or an empty list.
- Transport failures raise ExternalSourceError subclasses after the
  provider's own retry budget is spent.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import TypeVar, Callable, Any

from wealthtrack.services.constants import CURRENCY_PRECISION, HUNDRED, ZERO
from wealthtrack.services.retry import with_retry

logger = logging.getLogger(__name__)

T = TypeVar('T')


# =============================================================================
# DATA CLASSES
# =============================================================================

@dataclass(frozen=True)
class HistoricalDataPoint:
    """
    One daily closing price.

    Attributes:
        date: UTC calendar date
        price: Close, rounded to 2 decimals, always > 0
    """

    date: date
    price: Decimal

    def __post_init__(self) -> None:
        if self.price <= 0:
            raise ValueError(f"price must be positive, got {self.price}")


@dataclass(frozen=True)
class LiveQuote:
    """
    Latest price of a symbol with the previous session's close.

    change and change_percent are 0 when the previous close is unknown.
    """

    symbol: str
    price: Decimal
    previous_close: Decimal | None = None

    @property
    def change(self) -> Decimal:
        if not self.previous_close:
            return ZERO
        return (self.price - self.previous_close).quantize(CURRENCY_PRECISION, rounding=ROUND_HALF_UP)

    @property
    def change_percent(self) -> Decimal:
        if not self.previous_close:
            return ZERO
        raw = (self.price - self.previous_close) / self.previous_close * HUNDRED
        return raw.quantize(CURRENCY_PRECISION, rounding=ROUND_HALF_UP)


# =============================================================================
# ABSTRACT BASE CLASS
# =============================================================================

class MarketDataProvider(ABC):
    """
    Abstract base class for market data providers.

    Retry Behavior:
        `_execute_with_retry` applies services.retry.with_retry using the
        instance's retry budget (max_attempts, base_delay). Only
        ProviderUnavailableError and RateLimitError are retried.
    """

    MAX_RETRY_ATTEMPTS: int = 3
    RETRY_BASE_DELAY: float = 1.0

    def __init__(
            self,
            max_attempts: int | None = None,
            base_delay: float | None = None,
    ) -> None:
        self.max_attempts = max_attempts if max_attempts is not None else self.MAX_RETRY_ATTEMPTS
        self.base_delay = base_delay if base_delay is not None else self.RETRY_BASE_DELAY

    # =========================================================================
    # ABSTRACT PROPERTIES AND METHODS
    # =========================================================================

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider identifier used in logs and error messages (e.g. "yahoo")."""
        pass

    @abstractmethod
    def fetch_current_price(self, symbol: str) -> Decimal | None:
        """
        Latest market price of a symbol.

        Returns:
            Price rounded to 2 decimals, or None when the source has no
            valid price for the symbol

        Raises:
            ExternalSourceError: Source unreachable after retries
        """
        pass

    @abstractmethod
    def fetch_historical_series(
            self,
            symbol: str,
            start_date: date,
            end_date: date,
    ) -> list[HistoricalDataPoint]:
        """
        Daily closes between start_date and end_date, both inclusive.

        Returns:
            Points sorted by date ascending with unique dates; empty when
            the source has nothing for the symbol or window

        Raises:
            ExternalSourceError: Source unreachable after retries
        """
        pass

    @abstractmethod
    def fetch_quote(self, symbol: str) -> LiveQuote | None:
        """
        Latest price plus previous close.

        Returns:
            LiveQuote, or None when there is no valid price
        """
        pass

    # =========================================================================
    # RETRY HELPER METHOD
    # =========================================================================

    def _execute_with_retry(
            self,
            func: Callable[..., T],
            *args: Any,
            **kwargs: Any,
    ) -> T:
        """
        Run func under the shared retry policy.

        Raises:
            The last exception if all attempts fail
        """

        @with_retry(max_attempts=self.max_attempts, base_delay=self.base_delay)
        def _inner() -> T:
            return func(*args, **kwargs)

        return _inner()
