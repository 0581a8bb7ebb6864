# backend/wealthtrack/routers/__init__.py
"""
API routers for the WealthTrack price history backend.

Each router handles a specific domain:
- history: Historical backfill of one asset
- prices: Daily price refresh and live quotes
- portfolio: Portfolio and asset history views, totals, allocation
"""

from wealthtrack.routers.history import router as history_router
from wealthtrack.routers.portfolio import router as portfolio_router
from wealthtrack.routers.prices import router as prices_router

__all__ = [
    "history_router",
    "prices_router",
    "portfolio_router",
]
