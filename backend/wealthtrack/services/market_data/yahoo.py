# backend/wealthtrack/services/market_data/yahoo.py
"""
Yahoo Finance market data provider implementation.

This module implements the MarketDataProvider interface using the yfinance
library. Symbols are passed through as Yahoo writes them (AAPL, BTC-USD,
SAP.DE, ^GSPC).

Data sources inside yfinance:
- Ticker.fast_info.last_price / previous_close   (live quote)
- Ticker.history(period="5d")                     (fallback for either)
- Ticker.history(start, end, interval="1d")       (daily closes, raw)

Error mapping:
- empty frame, unknown or delisted symbol -> no data (None / [])
- YFRateLimitError, "too many requests"   -> RateLimitError (retryable)
- anything else raised by yfinance        -> ProviderUnavailableError (retryable)

Limitations:
- Rate limits (not officially documented, but exist)
- Data may be delayed (15-20 minutes for some markets)
"""

import logging
import math
from datetime import date, timedelta
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any

import yfinance as yf
from yfinance.exceptions import YFRateLimitError

from wealthtrack.services.constants import CURRENCY_PRECISION
from wealthtrack.services.exceptions import (
    ProviderUnavailableError,
    RateLimitError,
)
from wealthtrack.services.market_data.base import (
    MarketDataProvider,
    HistoricalDataPoint,
    LiveQuote,
)

logger = logging.getLogger(__name__)

NO_DATA_MARKERS = ("not found", "no data", "delisted", "no price data")
RATE_LIMIT_MARKERS = ("rate limit", "too many requests")


class YahooFinanceProvider(MarketDataProvider):
    """
    Yahoo Finance implementation of MarketDataProvider.

    Configuration:
        timeout: Per-request timeout in seconds for history downloads (default: 5)
        max_attempts / base_delay: Retry budget (default: 3 attempts, 1s doubling)

    Retry Behavior (inherited from MarketDataProvider):
        - Retries on ProviderUnavailableError and RateLimitError
        - "No data" is a result, not an error, and is never retried

    Example:
        provider = YahooFinanceProvider(timeout=5)
        price = provider.fetch_current_price("AAPL")
        series = provider.fetch_historical_series("AAPL", date(2025, 1, 2), date.today())
    """

    # =========================================================================
    # INITIALIZATION
    # =========================================================================

    def __init__(
            self,
            timeout: float = 5.0,
            max_attempts: int | None = None,
            base_delay: float | None = None,
    ) -> None:
        super().__init__(max_attempts=max_attempts, base_delay=base_delay)
        self._timeout = timeout
        logger.info(
            f"YahooFinanceProvider initialized (timeout={timeout}s, attempts={self.max_attempts})"
        )

    @property
    def name(self) -> str:
        return "yahoo"

    # =========================================================================
    # PUBLIC METHODS
    # =========================================================================

    def fetch_current_price(self, symbol: str) -> Decimal | None:
        """
        Latest market price, rounded to 2 decimals.

        Raises:
            ProviderUnavailableError / RateLimitError: After retries
        """
        return self._execute_with_retry(self._fetch_current_price, symbol)

    def fetch_historical_series(
            self,
            symbol: str,
            start_date: date,
            end_date: date,
    ) -> list[HistoricalDataPoint]:
        """
        Daily closes in [start_date, end_date].

        Yahoo's end bound is exclusive, so the request runs to the day
        after end_date.
        """
        return self._execute_with_retry(
            self._fetch_historical_series,
            symbol,
            start_date,
            end_date,
        )

    def fetch_quote(self, symbol: str) -> LiveQuote | None:
        return self._execute_with_retry(self._fetch_quote, symbol)

    # =========================================================================
    # INTERNAL FETCHERS (called by retry wrapper)
    # =========================================================================

    def _fetch_current_price(self, symbol: str) -> Decimal | None:
        quote = self._fetch_quote(symbol, with_previous_close=False)
        if quote is None:
            logger.warning(f"No valid price found for symbol: {symbol}")
            return None
        return quote.price

    def _fetch_historical_series(
            self,
            symbol: str,
            start_date: date,
            end_date: date,
    ) -> list[HistoricalDataPoint]:
        logger.debug(f"Fetching historical prices for {symbol}: {start_date} to {end_date}")

        try:
            df = yf.Ticker(symbol).history(
                start=start_date.isoformat(),
                end=(end_date + timedelta(days=1)).isoformat(),
                interval="1d",
                auto_adjust=False,  # raw closes, dividends not folded in
                timeout=self._timeout,
            )
        except Exception as e:
            self._raise_for_error(e, symbol)
            return []

        points = self._parse_series(df, start_date, end_date)
        if not points:
            logger.warning(f"No historical data found for: {symbol}")
            return []

        logger.info(f"Fetched {len(points)} historical points for {symbol}")
        return points

    def _fetch_quote(self, symbol: str, with_previous_close: bool = True) -> LiveQuote | None:
        try:
            ticker = yf.Ticker(symbol)
            fast_info = ticker.fast_info
            price = self._to_price(self._fast_info_value(fast_info, "last_price"))
            previous_close = None
            if with_previous_close:
                previous_close = self._to_price(self._fast_info_value(fast_info, "previous_close"))

            if price is None or (with_previous_close and previous_close is None):
                closes = self._recent_closes(ticker)
                if price is None and closes:
                    price = closes[-1]
                if with_previous_close and previous_close is None and len(closes) >= 2:
                    previous_close = closes[-2]
        except Exception as e:
            self._raise_for_error(e, symbol)
            return None

        if price is None:
            return None
        return LiveQuote(symbol=symbol, price=price, previous_close=previous_close)

    def _recent_closes(self, ticker: Any) -> list[Decimal]:
        """Valid closes of the last five sessions, oldest first."""
        df = ticker.history(period="5d", interval="1d", auto_adjust=False, timeout=self._timeout)
        return [point.price for point in self._parse_series(df)]

    # =========================================================================
    # ERROR HANDLING
    # =========================================================================

    def _raise_for_error(self, error: Exception, symbol: str) -> None:
        """
        Translate a yfinance failure into the provider contract.

        Returns normally when the error only means the symbol has no data.
        """
        if isinstance(error, YFRateLimitError):
            raise RateLimitError(provider=self.name) from error

        error_str = str(error).lower()
        if any(marker in error_str for marker in RATE_LIMIT_MARKERS):
            raise RateLimitError(provider=self.name) from error
        if any(marker in error_str for marker in NO_DATA_MARKERS):
            logger.warning(f"No data for {symbol}: {error}")
            return

        logger.error(f"Yahoo Finance error for {symbol}: {error}")
        raise ProviderUnavailableError(provider=self.name, reason=str(error)) from error

    # =========================================================================
    # PARSING
    # =========================================================================

    @staticmethod
    def _fast_info_value(fast_info: Any, attr: str) -> Any:
        """
        Read one fast_info field.

        yfinance raises KeyError and friends when the quote document lacks
        the field; that is missing data, not a source failure.
        """
        try:
            value = getattr(fast_info, attr)
        except (KeyError, IndexError, TypeError, ValueError):
            return None
        return YahooFinanceProvider._plain(value)

    @staticmethod
    def _plain(value: Any) -> Any:
        """numpy scalar to the matching Python number."""
        item = getattr(value, "item", None)
        return item() if callable(item) else value

    def _parse_series(
            self,
            df: Any,
            start_date: date | None = None,
            end_date: date | None = None,
    ) -> list[HistoricalDataPoint]:
        """
        Closes of a yfinance frame, dropping invalid ones.

        Index timestamps map to the exchange's calendar date. If two rows
        fall on the same date the later one wins. Rows outside the
        optional bounds are dropped.
        """
        if df is None or df.empty or "Close" not in df.columns:
            return []

        by_date: dict[date, Decimal] = {}
        for idx, close in df["Close"].items():
            price = self._to_price(self._plain(close))
            if price is None:
                continue
            day = idx.date() if hasattr(idx, "date") else idx
            if start_date is not None and day < start_date:
                continue
            if end_date is not None and day > end_date:
                continue
            by_date[day] = price

        return [HistoricalDataPoint(date=d, price=p) for d, p in sorted(by_date.items())]

    @staticmethod
    def _to_price(value: Any) -> Decimal | None:
        """
        Finite, strictly positive number rounded to 2 decimals, else None.

        Booleans are rejected even though they are ints in Python.
        """
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return None
        if isinstance(value, float) and not math.isfinite(value):
            return None
        if value <= 0:
            return None
        try:
            price = Decimal(str(value)).quantize(CURRENCY_PRECISION, rounding=ROUND_HALF_UP)
        except InvalidOperation:
            return None
        return price if price > 0 else None
