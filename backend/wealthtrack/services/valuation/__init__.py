# backend/wealthtrack/services/valuation/__init__.py
"""
Valuation Service Package.

Portfolio views recomputed from stored price history:
- Daily portfolio value series and its performance
- Single asset price series and performance
- Totals (invested vs current) and allocation breakdowns

Architecture:
    valuation/
    ├── __init__.py   # This file - package exports
    ├── types.py      # Internal data classes
    └── service.py    # ValuationService
"""

from wealthtrack.services.valuation.service import ValuationService
from wealthtrack.services.valuation.types import (
    AllocationGroup,
    AllocationSlice,
    AssetHistory,
    AssetPerformance,
    AssetPricePoint,
    PerformanceMetrics,
    PortfolioHistory,
    PortfolioTotals,
    PortfolioValuePoint,
    Trend,
)

__all__ = [
    "ValuationService",
    "AllocationGroup",
    "AllocationSlice",
    "AssetHistory",
    "AssetPerformance",
    "AssetPricePoint",
    "PerformanceMetrics",
    "PortfolioHistory",
    "PortfolioTotals",
    "PortfolioValuePoint",
    "Trend",
]
