# backend/wealthtrack/services/history/__init__.py
"""
Price history package.

This package contains:
- Forward-fill of sparse daily series (forward_fill.py)
- asset_history persistence with batched upserts (store.py)
- Full / update backfill of one asset (backfill_service.py)
- Daily refresh of current prices (refresh_service.py)
"""

from wealthtrack.services.history.forward_fill import forward_fill
from wealthtrack.services.history.store import HistoryStore, UpsertResult
from wealthtrack.services.history.backfill_service import (
    HistoricalBackfillService,
    BackfillParams,
    BackfillResult,
)
from wealthtrack.services.history.refresh_service import (
    PriceRefreshService,
    RefreshResult,
    PriceUpdate,
    PriceFailure,
)

__all__ = [
    "forward_fill",
    "HistoryStore",
    "UpsertResult",
    "HistoricalBackfillService",
    "BackfillParams",
    "BackfillResult",
    "PriceRefreshService",
    "RefreshResult",
    "PriceUpdate",
    "PriceFailure",
]
