# backend/wealthtrack/services/market_data/quotes_service.py
"""
Live quotes for the dashboard ticker strip.

Fetches every requested symbol at once through a bounded thread pool.
A symbol that fails (no data, provider error after retries) is logged and
left out of the result; it never fails the whole request.
"""

import contextvars
import logging
from concurrent.futures import ThreadPoolExecutor

from wealthtrack.services.exceptions import MarketDataError
from wealthtrack.services.market_data.base import LiveQuote, MarketDataProvider

logger = logging.getLogger(__name__)


class LiveQuotesService:
    """
    Concurrent quote fetcher.

    Example:
        service = LiveQuotesService(provider, max_workers=8)
        quotes = service.fetch_live_quotes(["AAPL", "BTC-USD"])
        quotes["AAPL"].change_percent
    """

    def __init__(self, provider: MarketDataProvider, max_workers: int = 8) -> None:
        if max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {max_workers}")
        self._provider = provider
        self._max_workers = max_workers

    def fetch_live_quotes(self, symbols: list[str]) -> dict[str, LiveQuote]:
        """
        Quotes keyed by symbol as requested.

        Blank and duplicate symbols are ignored; symbols without a quote
        are absent from the result.
        """
        unique: list[str] = []
        for raw in symbols:
            symbol = raw.strip() if raw else ""
            if symbol and symbol not in unique:
                unique.append(symbol)

        if not unique:
            return {}

        workers = min(self._max_workers, len(unique))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="live-quote") as pool:
            # Each task runs in a copy of the caller's context so log
            # records keep the request's correlation ID.
            futures = {
                symbol: pool.submit(contextvars.copy_context().run, self._fetch_one, symbol)
                for symbol in unique
            }
            results = {symbol: future.result() for symbol, future in futures.items()}

        quotes = {symbol: quote for symbol, quote in results.items() if quote is not None}
        logger.info(f"Live quotes: {len(quotes)}/{len(unique)} symbols resolved")
        return quotes

    def _fetch_one(self, symbol: str) -> LiveQuote | None:
        try:
            return self._provider.fetch_quote(symbol)
        except MarketDataError as e:
            logger.warning(f"Failed to fetch quote for {symbol}: {e}")
            return None
