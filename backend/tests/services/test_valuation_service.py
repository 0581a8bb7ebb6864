# backend/tests/services/test_valuation_service.py
"""
Tests for ValuationService.

Tests:
- Portfolio history: daily sum of price x current quantity, windowing
- Performance metrics and trend thresholds
- Asset history and per-asset performance, ownership
- Totals and allocation breakdowns
"""

from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy.orm import Session

from wealthtrack.models import AssetCategory
from wealthtrack.services.assets import AssetStore
from wealthtrack.services.exceptions import AssetNotFoundError
from wealthtrack.services.history import HistoryStore
from wealthtrack.services.valuation import (
    AllocationGroup,
    PortfolioHistory,
    PortfolioValuePoint,
    Trend,
    ValuationService,
)

from tests.conftest import OTHER_USER_ID, USER_ID, create_asset, create_history

D1 = date(2025, 3, 1)
D2 = date(2025, 3, 2)
D3 = date(2025, 3, 3)


@pytest.fixture
def service() -> ValuationService:
    return ValuationService(HistoryStore(), AssetStore())


@pytest.fixture
def portfolio(db: Session):
    """Two assets: 10 x stock priced every day, 2 x crypto missing a day."""
    stock = create_asset(
        db, name="Apple", symbol="AAPL", quantity="10", purchase_price="100",
        current_price="120", region="US", sector="Technology",
    )
    coin = create_asset(
        db, name="Bitcoin", symbol="BTC-USD", category=AssetCategory.CRYPTO,
        quantity="2", purchase_price="50",
    )
    create_history(db, stock, [(D1, "100"), (D2, "110"), (D3, "120")])
    create_history(db, coin, [(D1, "50"), (D3, "50")])
    return stock, coin


def _history(*values: str) -> PortfolioHistory:
    return PortfolioHistory(
        user_id=USER_ID,
        start_date=None,
        points=[PortfolioValuePoint(date=date(2025, 1, i + 1), value=Decimal(v)) for i, v in enumerate(values)],
    )


# =============================================================================
# PORTFOLIO HISTORY
# =============================================================================

class TestPortfolioHistory:

    def test_sums_price_times_quantity_per_day(self, db: Session, service, portfolio):
        history = service.get_portfolio_history(db, USER_ID, days=30, as_of=D3)

        assert [(p.date, p.value) for p in history.points] == [
            (D1, Decimal("1100.00")),
            (D2, Decimal("1100.00")),
            (D3, Decimal("1300.00")),
        ]

    def test_window_is_inclusive_of_start(self, db: Session, service, portfolio):
        history = service.get_portfolio_history(db, USER_ID, days=1, as_of=D3)

        assert history.start_date == D2
        assert [p.date for p in history.points] == [D2, D3]

    def test_zero_days_is_today_only(self, db: Session, service, portfolio):
        history = service.get_portfolio_history(db, USER_ID, days=0, as_of=D3)

        assert [p.date for p in history.points] == [D3]

    def test_all_history(self, db: Session, service, portfolio):
        history = service.get_portfolio_history(db, USER_ID, days=None)

        assert history.start_date is None
        assert len(history.points) == 3

    def test_other_users_rows_excluded(self, db: Session, service, portfolio):
        theirs = create_asset(db, user_id=OTHER_USER_ID, symbol="MSFT", quantity="1000")
        create_history(db, theirs, [(D1, "400")])

        history = service.get_portfolio_history(db, USER_ID, days=30, as_of=D3)

        assert history.points[0].value == Decimal("1100.00")

    def test_no_history_is_empty(self, db: Session, service):
        history = service.get_portfolio_history(db, USER_ID, days=30, as_of=D3)

        assert history.is_empty

    def test_negative_days_rejected(self, db: Session, service):
        with pytest.raises(ValueError):
            service.get_portfolio_history(db, USER_ID, days=-1)


class TestCalculatePerformance:

    def test_start_vs_end(self, service):
        metrics = service.calculate_performance(_history("1100", "1100", "1300"))

        assert metrics.start_value == Decimal("1100.00")
        assert metrics.current_value == Decimal("1300.00")
        assert metrics.absolute_change == Decimal("200.00")
        assert metrics.percent_change == Decimal("18.18")
        assert metrics.trend == Trend.POSITIVE

    @pytest.mark.parametrize("end, trend", [
        ("1005", Trend.NEUTRAL),
        ("995", Trend.NEUTRAL),
        ("1006", Trend.POSITIVE),
        ("994", Trend.NEGATIVE),
    ])
    def test_trend_threshold(self, service, end, trend):
        assert service.calculate_performance(_history("1000", end)).trend == trend

    def test_empty_history_is_all_zero(self, service):
        metrics = service.calculate_performance(_history())

        assert metrics.current_value == Decimal("0")
        assert metrics.percent_change == Decimal("0")
        assert metrics.trend == Trend.NEUTRAL

    def test_zero_start_value_gives_zero_percent(self, service):
        metrics = service.calculate_performance(_history("0", "500"))

        assert metrics.absolute_change == Decimal("500.00")
        assert metrics.percent_change == Decimal("0")
        assert metrics.trend == Trend.NEUTRAL


# =============================================================================
# ASSET HISTORY
# =============================================================================

class TestAssetHistory:

    def test_price_series_and_performance(self, db: Session, service, portfolio):
        stock, _ = portfolio

        asset, history = service.get_asset_history(db, stock.id, USER_ID, days=30, as_of=D3)
        perf = service.calculate_asset_performance(history, asset)

        assert [p.price for p in history.points] == [Decimal("100.00"), Decimal("110.00"), Decimal("120.00")]
        assert perf.start_price == Decimal("100.00")
        assert perf.current_price == Decimal("120.00")
        assert perf.price_change == Decimal("20.00")
        assert perf.price_change_percent == Decimal("20.00")
        assert perf.current_value == Decimal("1200.00")
        assert perf.invested_value == Decimal("1000.00")
        assert perf.value_change == Decimal("200.00")
        assert perf.value_change_percent == Decimal("20.00")
        assert perf.trend == Trend.POSITIVE
        assert perf.data_points == 3

    def test_never_priced_asset_uses_purchase_price(self, db: Session, service, portfolio):
        _, coin = portfolio

        asset, history = service.get_asset_history(db, coin.id, USER_ID, days=None)
        perf = service.calculate_asset_performance(history, asset)

        assert perf.current_price == Decimal("50.00")
        assert perf.value_change == Decimal("0.00")
        assert perf.trend == Trend.NEUTRAL

    def test_empty_history(self, db: Session, service):
        asset = create_asset(db, current_price="120")

        asset, history = service.get_asset_history(db, asset.id, USER_ID, days=30, as_of=D3)
        perf = service.calculate_asset_performance(history, asset)

        assert history.points == []
        assert perf.data_points == 0
        assert perf.current_price == Decimal("120.00")

    def test_other_users_asset_not_found(self, db: Session, service, portfolio):
        stock, _ = portfolio

        with pytest.raises(AssetNotFoundError):
            service.get_asset_history(db, stock.id, OTHER_USER_ID)

    def test_elevated_scope_sees_any_asset(self, db: Session, service, portfolio):
        stock, _ = portfolio

        asset, _ = service.get_asset_history(db, stock.id, None, days=None)

        assert asset.id == stock.id


# =============================================================================
# TOTALS / ALLOCATION
# =============================================================================

class TestTotalsAndAllocation:

    def test_totals(self, db: Session, service, portfolio):
        totals = service.get_portfolio_totals(db, USER_ID)

        assert totals.total_invested == Decimal("1100.00")
        assert totals.total_current == Decimal("1300.00")
        assert totals.total_gain == Decimal("200.00")
        assert totals.gain_percent == Decimal("18.18")
        assert totals.asset_count == 2
        assert totals.is_positive

    def test_totals_without_assets(self, db: Session, service):
        totals = service.get_portfolio_totals(db, USER_ID)

        assert totals.asset_count == 0
        assert totals.gain_percent == Decimal("0")

    def test_allocation_by_category_largest_first(self, db: Session, service, portfolio):
        slices = service.get_allocation(db, USER_ID, AllocationGroup.CATEGORY)

        assert [(s.key, s.value, s.percentage) for s in slices] == [
            ("STOCKS", Decimal("1200.00"), Decimal("92.31")),
            ("CRYPTO", Decimal("100.00"), Decimal("7.69")),
        ]

    def test_allocation_unassigned_group(self, db: Session, service, portfolio):
        slices = service.get_allocation(db, USER_ID, AllocationGroup.REGION)

        assert [s.key for s in slices] == ["US", "Unassigned"]

    def test_allocation_without_assets(self, db: Session, service):
        assert service.get_allocation(db, USER_ID, AllocationGroup.SECTOR) == []
