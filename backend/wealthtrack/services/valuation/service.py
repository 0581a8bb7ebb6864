# backend/wealthtrack/services/valuation/service.py
"""
Valuation Service - portfolio and asset views derived from asset_history.

Operations:
- get_portfolio_history(): daily sum of price x quantity over a window
- calculate_performance(): first vs last value of a portfolio history
- get_asset_history() / calculate_asset_performance(): one asset's chart
- get_portfolio_totals(): invested vs current over all assets
- get_allocation(): portfolio split by category, region or sector

Nothing here is stored: every view is recomputed from asset_history and
the assets table on each call.

Quantity caveat:
    Historical values use each asset's CURRENT quantity for every day of
    the window. Buying more shares therefore rescales the whole chart.
    Lot-level tracking is not modelled.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from datetime import date, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

from wealthtrack.models import Asset
from wealthtrack.services.constants import (
    CURRENCY_PRECISION,
    DEFAULT_HISTORY_DAYS,
    HUNDRED,
    TREND_THRESHOLD_PERCENT,
    ZERO,
)
from wealthtrack.services.history.store import HistoryStore
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
from wealthtrack.utils.date_utils import today

if TYPE_CHECKING:
    from wealthtrack.services.protocols import AssetStoreProtocol

logger = logging.getLogger(__name__)

UNASSIGNED_GROUP = "Unassigned"


def _round(value: Decimal) -> Decimal:
    return value.quantize(CURRENCY_PRECISION, rounding=ROUND_HALF_UP)


def _percent(change: Decimal, base: Decimal) -> Decimal:
    """change / base in percent; 0 for a non-positive base."""
    if base <= ZERO:
        return ZERO
    return change / base * HUNDRED


def _trend(percent_change: Decimal) -> Trend:
    if percent_change > TREND_THRESHOLD_PERCENT:
        return Trend.POSITIVE
    if percent_change < -TREND_THRESHOLD_PERCENT:
        return Trend.NEGATIVE
    return Trend.NEUTRAL


def _current_price(asset: Asset) -> Decimal:
    """Current price, falling back to the purchase price for never-priced assets."""
    if asset.current_price:
        return asset.current_price
    return asset.purchase_price or ZERO


class ValuationService:
    """
    Read-side aggregation over asset_history.

    Example:
        service = ValuationService(HistoryStore(), AssetStore())
        history = service.get_portfolio_history(db, user_id, days=90)
        metrics = service.calculate_performance(history)
    """

    def __init__(
            self,
            history_store: HistoryStore,
            asset_store: AssetStoreProtocol,
    ) -> None:
        self._history_store = history_store
        self._asset_store = asset_store

    # =========================================================================
    # PORTFOLIO HISTORY
    # =========================================================================

    def get_portfolio_history(
            self,
            db: Session,
            user_id: str,
            days: int | None = DEFAULT_HISTORY_DAYS,
            as_of: date | None = None,
    ) -> PortfolioHistory:
        """
        Portfolio value per day over the last `days` days.

        Args:
            db: Database session
            user_id: Portfolio owner
            days: Window length; None for all stored history
            as_of: End of the window (default: today)

        Returns:
            PortfolioHistory with values rounded to 2 decimals, oldest first
        """
        start = self._window_start(days, as_of)
        rows = self._history_store.get_user_history(db, user_id, start_date=start)

        quantities = {a.id: a.quantity or ZERO for a in self._asset_store.list_assets(db, user_id)}

        totals: dict[date, Decimal] = defaultdict(lambda: ZERO)
        for row in rows:
            totals[row.date] += row.price * quantities.get(row.asset_id, ZERO)

        points = [
            PortfolioValuePoint(date=d, value=_round(v))
            for d, v in sorted(totals.items())
        ]
        logger.debug(f"Portfolio history for {user_id}: {len(rows)} rows -> {len(points)} days")
        return PortfolioHistory(user_id=user_id, start_date=start, points=points)

    def calculate_performance(self, history: PortfolioHistory) -> PerformanceMetrics:
        """Compare the first and last value of a history; all zeros when empty."""
        if history.is_empty:
            return PerformanceMetrics(
                current_value=ZERO,
                start_value=ZERO,
                absolute_change=ZERO,
                percent_change=ZERO,
                trend=Trend.NEUTRAL,
            )

        start_value = history.points[0].value
        current_value = history.points[-1].value
        absolute_change = current_value - start_value
        percent_change = _percent(absolute_change, start_value)

        return PerformanceMetrics(
            current_value=_round(current_value),
            start_value=_round(start_value),
            absolute_change=_round(absolute_change),
            percent_change=_round(percent_change),
            trend=_trend(percent_change),
        )

    # =========================================================================
    # ASSET HISTORY
    # =========================================================================

    def get_asset_history(
            self,
            db: Session,
            asset_id: str,
            user_id: str | None,
            days: int | None = DEFAULT_HISTORY_DAYS,
            as_of: date | None = None,
    ) -> tuple[Asset, AssetHistory]:
        """
        Price series of one asset the caller may see.

        Raises:
            AssetNotFoundError: Missing asset or owned by another user
        """
        asset = self._asset_store.get_owned_asset(db, asset_id, user_id)
        start = self._window_start(days, as_of)
        rows = self._history_store.get_asset_history(db, asset_id, start_date=start)
        points = [AssetPricePoint(date=r.date, price=_round(r.price)) for r in rows]
        return asset, AssetHistory(asset_id=asset_id, start_date=start, points=points)

    def calculate_asset_performance(self, history: AssetHistory, asset: Asset) -> AssetPerformance:
        """
        Price move over the window and gain of the holding vs its cost.

        The trend follows the price move, not the gain.
        """
        quantity = asset.quantity or ZERO
        purchase_price = asset.purchase_price or ZERO
        current_price = _current_price(asset)

        if not history.points:
            return AssetPerformance(
                current_price=_round(current_price),
                start_price=ZERO,
                current_value=ZERO,
                invested_value=ZERO,
                price_change=ZERO,
                price_change_percent=ZERO,
                value_change=ZERO,
                value_change_percent=ZERO,
                trend=Trend.NEUTRAL,
                data_points=0,
            )

        start_price = history.points[0].price
        end_price = history.points[-1].price
        price_change = end_price - start_price
        price_change_percent = _percent(price_change, start_price)

        current_value = current_price * quantity
        invested_value = purchase_price * quantity
        value_change = current_value - invested_value

        return AssetPerformance(
            current_price=_round(current_price),
            start_price=_round(start_price),
            current_value=_round(current_value),
            invested_value=_round(invested_value),
            price_change=_round(price_change),
            price_change_percent=_round(price_change_percent),
            value_change=_round(value_change),
            value_change_percent=_round(_percent(value_change, invested_value)),
            trend=_trend(price_change_percent),
            data_points=len(history.points),
        )

    # =========================================================================
    # TOTALS / ALLOCATION
    # =========================================================================

    def get_portfolio_totals(self, db: Session, user_id: str) -> PortfolioTotals:
        assets = self._asset_store.list_assets(db, user_id)

        invested = sum(((a.purchase_price or ZERO) * (a.quantity or ZERO) for a in assets), ZERO)
        current = sum((_current_price(a) * (a.quantity or ZERO) for a in assets), ZERO)
        gain = current - invested

        return PortfolioTotals(
            total_invested=_round(invested),
            total_current=_round(current),
            total_gain=_round(gain),
            gain_percent=_round(_percent(gain, invested)),
            asset_count=len(assets),
        )

    def get_allocation(
            self,
            db: Session,
            user_id: str,
            group_by: AllocationGroup = AllocationGroup.CATEGORY,
    ) -> list[AllocationSlice]:
        """
        Current value per group, largest first.

        Assets without a region/sector are grouped under "Unassigned".
        Percentages are of the total current value; all 0 when it is 0.
        """
        values: dict[str, Decimal] = defaultdict(lambda: ZERO)
        for asset in self._asset_store.list_assets(db, user_id):
            values[self._group_key(asset, group_by)] += _current_price(asset) * (asset.quantity or ZERO)

        total = sum(values.values(), ZERO)
        slices = [
            AllocationSlice(key=key, value=_round(value), percentage=_round(_percent(value, total)))
            for key, value in values.items()
        ]
        return sorted(slices, key=lambda s: (-s.value, s.key))

    # =========================================================================
    # HELPERS
    # =========================================================================

    @staticmethod
    def _window_start(days: int | None, as_of: date | None) -> date | None:
        if days is None:
            return None
        if days < 0:
            raise ValueError(f"days must be >= 0, got {days}")
        return (as_of or today()) - timedelta(days=days)

    @staticmethod
    def _group_key(asset: Asset, group_by: AllocationGroup) -> str:
        if group_by == AllocationGroup.CATEGORY:
            return asset.category.value if asset.category else UNASSIGNED_GROUP
        if group_by == AllocationGroup.REGION:
            return asset.region or UNASSIGNED_GROUP
        return asset.sector or UNASSIGNED_GROUP
