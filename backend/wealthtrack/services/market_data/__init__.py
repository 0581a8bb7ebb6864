# backend/wealthtrack/services/market_data/__init__.py
"""
Market data services package.

This package contains:
- Abstract interface for market data providers (base.py)
- Yahoo Finance implementation over yfinance (yahoo.py)
- Concurrent live quote fetching (quotes_service.py)

Architecture:
    MarketDataProvider (ABC)
    └── YahooFinanceProvider (concrete)

    LiveQuotesService
    └── Fans out fetch_quote() over a thread pool
"""

from wealthtrack.services.market_data.base import (
    MarketDataProvider,
    HistoricalDataPoint,
    LiveQuote,
)
from wealthtrack.services.market_data.quotes_service import LiveQuotesService
from wealthtrack.services.market_data.yahoo import YahooFinanceProvider

__all__ = [
    "MarketDataProvider",
    "HistoricalDataPoint",
    "LiveQuote",
    "YahooFinanceProvider",
    "LiveQuotesService",
]
