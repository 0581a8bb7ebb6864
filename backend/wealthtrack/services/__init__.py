# backend/wealthtrack/services/__init__.py
"""
Service layer for business logic.

This package contains the service layer which encapsulates business logic
separate from the API (router) layer. Services:
- Have NO knowledge of HTTP (no HTTPException, no status codes)
- Raise domain-specific exceptions
- Receive database sessions as parameters (not via Depends)
- Are easily testable via dependency injection

Usage:
    from wealthtrack.services import HistoricalBackfillService, PriceRefreshService
    from wealthtrack.services import ValuationService
    from wealthtrack.services import AssetNotFoundError, ExternalSourceError

Architecture:
    services/
    ├── __init__.py              # This file - main exports
    ├── exceptions.py            # Domain exceptions
    ├── constants.py             # Business constants and limits
    ├── protocols.py             # Service interfaces (Protocol classes)
    ├── retry.py                 # tenacity retry policy for the quote source
    ├── assets.py                # Asset reads and price write-back
    ├── auth/                    # Bearer token verification
    ├── market_data/             # Market data package
    │   ├── base.py              # Abstract provider interface
    │   ├── yahoo.py             # Yahoo Finance implementation (yfinance)
    │   └── quotes_service.py    # Concurrent live quotes
    ├── history/                 # Price history package
    │   ├── forward_fill.py      # Gap filling of daily series
    │   ├── store.py             # asset_history upserts and reads
    │   ├── backfill_service.py  # Full / update backfill
    │   └── refresh_service.py   # Daily price refresh
    └── valuation/               # Valuation service
        ├── service.py           # Portfolio and asset views
        └── types.py             # Valuation data types
"""

# Assets
from wealthtrack.services.assets import AssetStore
# Exceptions
from wealthtrack.services.exceptions import (
    ServiceError,
    ValidationError,
    NotFoundError,
    AssetNotFoundError,
    AuthenticationError,
    InvalidCredentialsError,
    MarketDataError,
    ExternalSourceError,
    ProviderUnavailableError,
    RateLimitError,
    StoreError,
    InvalidRangeError,
)
# Price history
from wealthtrack.services.history import (
    HistoricalBackfillService,
    BackfillParams,
    BackfillResult,
    HistoryStore,
    PriceRefreshService,
    RefreshResult,
)
# Market data
from wealthtrack.services.market_data import (
    MarketDataProvider,
    YahooFinanceProvider,
    LiveQuotesService,
    LiveQuote,
    HistoricalDataPoint,
)
# Valuation Service
from wealthtrack.services.valuation import ValuationService

__all__ = [
    # ==========================================================================
    # Services
    # ==========================================================================
    "AssetStore",
    "HistoryStore",
    "HistoricalBackfillService",
    "BackfillParams",
    "BackfillResult",
    "PriceRefreshService",
    "RefreshResult",
    "MarketDataProvider",
    "YahooFinanceProvider",
    "LiveQuotesService",
    "LiveQuote",
    "HistoricalDataPoint",
    "ValuationService",

    # ==========================================================================
    # Exceptions
    # ==========================================================================
    "ServiceError",
    "ValidationError",
    "NotFoundError",
    "AssetNotFoundError",
    "AuthenticationError",
    "InvalidCredentialsError",
    "MarketDataError",
    "ExternalSourceError",
    "ProviderUnavailableError",
    "RateLimitError",
    "StoreError",
    "InvalidRangeError",
]
