# backend/wealthtrack/schemas/portfolio.py
"""
Pydantic schemas for portfolio and asset history views.

These mirror the dataclasses in services/valuation/types.py and are
built from them with model_validate (from_attributes).
"""

from datetime import date

from pydantic import Field

from wealthtrack.schemas.base import CamelModel, Money
from wealthtrack.services.valuation.types import Trend


# =============================================================================
# PORTFOLIO HISTORY
# =============================================================================

class PortfolioValuePointResponse(CamelModel):
    date: date
    value: Money


class PerformanceResponse(CamelModel):
    current_value: Money
    start_value: Money
    absolute_change: Money
    percent_change: Money
    trend: Trend


class PortfolioHistoryResponse(CamelModel):
    start_date: date | None = Field(..., description="None when all history was requested")
    points: list[PortfolioValuePointResponse]
    performance: PerformanceResponse


# =============================================================================
# ASSET HISTORY
# =============================================================================

class AssetPricePointResponse(CamelModel):
    date: date
    price: Money


class AssetPerformanceResponse(CamelModel):
    current_price: Money
    start_price: Money
    current_value: Money
    invested_value: Money
    price_change: Money
    price_change_percent: Money
    value_change: Money
    value_change_percent: Money
    trend: Trend
    data_points: int


class AssetHistoryResponse(CamelModel):
    asset_id: str
    symbol: str | None
    name: str
    start_date: date | None
    points: list[AssetPricePointResponse]
    performance: AssetPerformanceResponse


# =============================================================================
# TOTALS / ALLOCATION
# =============================================================================

class PortfolioSummaryResponse(CamelModel):
    total_invested: Money
    total_current: Money
    total_gain: Money
    gain_percent: Money
    asset_count: int
    is_positive: bool


class AllocationSliceResponse(CamelModel):
    key: str = Field(..., description="Category, region or sector")
    value: Money
    percentage: Money
