# backend/wealthtrack/services/valuation/types.py
"""
Internal data types for the Valuation Service.

These dataclasses are NOT Pydantic schemas - those are defined in
wealthtrack/schemas/portfolio.py for API serialization.

Design Principles:
- Immutable value objects (frozen=True)
- Decimal for ALL financial values (never float)
- date (not datetime) for valuation dates

Type Hierarchy:
    PortfolioValuePoint - Portfolio value on one day
    PortfolioHistory    - Ordered value points
    PerformanceMetrics  - Start vs end of a history
    AssetPricePoint     - One asset's price on one day
    AssetHistory        - Ordered price points of one asset
    AssetPerformance    - Price move plus value vs invested for one asset
    PortfolioTotals     - Invested vs current across all assets
    AllocationSlice     - Share of one group in the portfolio
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal


class Trend(str, enum.Enum):
    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"


class AllocationGroup(str, enum.Enum):
    CATEGORY = "category"
    REGION = "region"
    SECTOR = "sector"


# =============================================================================
# PORTFOLIO HISTORY
# =============================================================================

@dataclass(frozen=True)
class PortfolioValuePoint:
    date: date
    value: Decimal


@dataclass(frozen=True)
class PortfolioHistory:
    """
    Daily portfolio values, oldest first.

    Attributes:
        user_id: Owner of the portfolio
        start_date: Lower bound of the window (None for all history)
        points: One point per date that has at least one history row
    """

    user_id: str
    start_date: date | None
    points: list[PortfolioValuePoint] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.points


@dataclass(frozen=True)
class PerformanceMetrics:
    """
    First vs last value of a history.

    percent_change is 0 when start_value is not positive.
    """

    current_value: Decimal
    start_value: Decimal
    absolute_change: Decimal
    percent_change: Decimal
    trend: Trend


# =============================================================================
# ASSET HISTORY
# =============================================================================

@dataclass(frozen=True)
class AssetPricePoint:
    date: date
    price: Decimal


@dataclass(frozen=True)
class AssetHistory:
    asset_id: str
    start_date: date | None
    points: list[AssetPricePoint] = field(default_factory=list)


@dataclass(frozen=True)
class AssetPerformance:
    """
    Price move over a history window plus unrealized gain of the holding.

    Current price falls back to the purchase price when the asset was
    never priced.
    """

    current_price: Decimal
    start_price: Decimal
    current_value: Decimal
    invested_value: Decimal
    price_change: Decimal
    price_change_percent: Decimal
    value_change: Decimal
    value_change_percent: Decimal
    trend: Trend
    data_points: int


# =============================================================================
# TOTALS / ALLOCATION
# =============================================================================

@dataclass(frozen=True)
class PortfolioTotals:
    total_invested: Decimal
    total_current: Decimal
    total_gain: Decimal
    gain_percent: Decimal
    asset_count: int

    @property
    def is_positive(self) -> bool:
        return self.total_gain >= 0


@dataclass(frozen=True)
class AllocationSlice:
    key: str
    value: Decimal
    percentage: Decimal
