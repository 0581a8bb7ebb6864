# backend/tests/services/test_backfill_service.py
"""
Tests for HistoricalBackfillService.

Tests:
- Input validation (order and messages), no I/O on invalid input
- Quoted assets: fetch, forward-fill to today, no-data result
- Manual assets: constant series from the anchor, update writes today only
- Provider errors propagate; store failures become counts
"""

from datetime import date, timedelta
from decimal import Decimal
from unittest.mock import MagicMock

import pytest
from sqlalchemy.orm import Session

from wealthtrack.services.exceptions import ProviderUnavailableError, ValidationError
from wealthtrack.services.history import BackfillParams, HistoricalBackfillService, HistoryStore
from wealthtrack.services.history.store import UpsertResult

from tests.conftest import MockQuoteProvider, create_asset, create_history

ANCHOR = date(2025, 1, 2)
AS_OF = date(2025, 1, 12)


@pytest.fixture
def store() -> HistoryStore:
    return HistoryStore(batch_size=50)


@pytest.fixture
def service(mock_provider: MockQuoteProvider, store: HistoryStore) -> HistoricalBackfillService:
    return HistoricalBackfillService(provider=mock_provider, store=store, anchor_date=ANCHOR)


# =============================================================================
# VALIDATION
# =============================================================================

class TestValidation:

    def test_asset_id_must_be_uuid(self, service, mock_provider):
        with pytest.raises(ValidationError) as exc_info:
            service.backfill(MagicMock(), BackfillParams(asset_id="abc", user_id="u", symbol="AAPL"))

        assert exc_info.value.message == "assetId must be a valid UUID"
        assert exc_info.value.field == "assetId"
        assert mock_provider.calls == []

    def test_symbol_or_price_required(self, service):
        params = BackfillParams(asset_id="7d7a8f35-42f1-4d47-9b26-0fd7e0d3b0f2", user_id="u")

        with pytest.raises(ValidationError, match="Either symbol or referencePrice must be provided"):
            service.backfill(MagicMock(), params)

    def test_empty_symbol_without_price_rejected(self, service):
        params = BackfillParams(asset_id="7d7a8f35-42f1-4d47-9b26-0fd7e0d3b0f2", user_id="u", symbol="")

        with pytest.raises(ValidationError):
            service.backfill(MagicMock(), params)

    def test_non_string_symbol_rejected(self, service):
        params = BackfillParams(asset_id="7d7a8f35-42f1-4d47-9b26-0fd7e0d3b0f2", user_id="u", symbol=123)

        with pytest.raises(ValidationError, match="symbol must be a string"):
            service.backfill(MagicMock(), params)

    @pytest.mark.parametrize("price", [0, -10, float("nan"), float("inf"), True])
    def test_reference_price_must_be_positive_number(self, service, price):
        params = BackfillParams(
            asset_id="7d7a8f35-42f1-4d47-9b26-0fd7e0d3b0f2", user_id="u", reference_price=price
        )

        with pytest.raises(ValidationError) as exc_info:
            service.backfill(MagicMock(), params)

        assert exc_info.value.field == "referencePrice"

    def test_reference_price_rounding_to_zero_rejected(self, service):
        params = BackfillParams(
            asset_id="7d7a8f35-42f1-4d47-9b26-0fd7e0d3b0f2", user_id="u", reference_price=0.001
        )

        with pytest.raises(ValidationError):
            service.backfill(MagicMock(), params)

    def test_validate_returns_rounded_price(self):
        params = BackfillParams(
            asset_id="7d7a8f35-42f1-4d47-9b26-0fd7e0d3b0f2", user_id="u", reference_price=99.995
        )

        assert HistoricalBackfillService.validate(params) == Decimal("100.00")


# =============================================================================
# QUOTED ASSETS
# =============================================================================

class TestSymbolBackfill:

    def test_fetches_and_forward_fills_to_today(self, db: Session, service, store, mock_provider):
        asset = create_asset(db, symbol="AAPL")
        # Thu, Fri, then nothing until Mon
        mock_provider.set_series("AAPL", [
            (date(2025, 1, 2), "100"),
            (date(2025, 1, 3), "101"),
            (date(2025, 1, 6), "103"),
        ])

        result = service.backfill(
            db, BackfillParams(asset_id=asset.id, user_id=asset.user_id, symbol="AAPL"), as_of=AS_OF
        )

        assert result.success is True
        assert result.total_points == 11  # Jan 2 .. Jan 12
        assert result.inserted == 11
        assert result.failed == 0
        assert result.source == "Yahoo Finance (AAPL)"

        rows = {r.date: r.price for r in store.get_asset_history(db, asset.id)}
        assert rows[date(2025, 1, 4)] == Decimal("101.00")
        assert rows[date(2025, 1, 5)] == Decimal("101.00")
        assert rows[AS_OF] == Decimal("103.00")
        assert ("series", "AAPL") in mock_provider.calls

    def test_no_data_returns_unsuccessful_result(self, db: Session, service, store):
        asset = create_asset(db, symbol="NOPE")

        result = service.backfill(
            db, BackfillParams(asset_id=asset.id, user_id=asset.user_id, symbol="NOPE"), as_of=AS_OF
        )

        assert result.success is False
        assert result.inserted == 0
        assert result.total_points == 0
        assert result.source == "Yahoo Finance (NOPE) - no data"
        assert result.message == "No historical data available for this symbol"
        assert store.get_asset_history(db, asset.id) == []

    def test_symbol_wins_over_reference_price(self, db: Session, service, mock_provider):
        asset = create_asset(db, symbol="AAPL")
        mock_provider.set_series("AAPL", [(AS_OF, "150")])

        result = service.backfill(
            db,
            BackfillParams(asset_id=asset.id, user_id=asset.user_id, symbol="AAPL", reference_price=1),
            as_of=AS_OF,
        )

        assert result.source == "Yahoo Finance (AAPL)"
        assert result.total_points == 1

    def test_provider_error_propagates(self, db: Session, service, mock_provider):
        asset = create_asset(db, symbol="AAPL")
        mock_provider.set_error("AAPL", ProviderUnavailableError("mock", "down"))

        with pytest.raises(ProviderUnavailableError):
            service.backfill(
                db, BackfillParams(asset_id=asset.id, user_id=asset.user_id, symbol="AAPL"), as_of=AS_OF
            )


# =============================================================================
# MANUAL ASSETS
# =============================================================================

class TestConstantBackfill:

    def test_full_constant_series_from_anchor(self, db: Session, service, store):
        asset = create_asset(db, symbol=None, name="House")

        result = service.backfill(
            db,
            BackfillParams(asset_id=asset.id, user_id=asset.user_id, reference_price=250000),
            as_of=AS_OF,
        )

        assert result.success is True
        assert result.total_points == (AS_OF - ANCHOR).days + 1
        assert result.source == "Constant price (250000)"

        rows = store.get_asset_history(db, asset.id)
        assert rows[0].date == ANCHOR
        assert rows[-1].date == AS_OF
        assert {r.price for r in rows} == {Decimal("250000.00")}

    def test_source_label_keeps_significant_decimals(self, db: Session, service):
        asset = create_asset(db, symbol=None, name="Fund")

        result = service.backfill(
            db,
            BackfillParams(asset_id=asset.id, user_id=asset.user_id, reference_price=100.5),
            as_of=AS_OF,
        )

        assert result.source == "Constant price (100.5)"

    def test_update_writes_today_only(self, db: Session, service, store):
        asset = create_asset(db, symbol=None, name="Savings")
        earlier = [(AS_OF - timedelta(days=i), "1000") for i in range(1, 4)]
        create_history(db, asset, earlier)

        result = service.backfill(
            db,
            BackfillParams(asset_id=asset.id, user_id=asset.user_id, reference_price=1200, is_update=True),
            as_of=AS_OF,
        )

        assert result.total_points == 1
        assert result.inserted == 1
        assert result.source == "Constant price from today (1200)"

        rows = {r.date: r.price for r in store.get_asset_history(db, asset.id)}
        assert rows[AS_OF] == Decimal("1200.00")
        for day, _ in earlier:
            assert rows[day] == Decimal("1000.00")

    def test_anchor_after_today_writes_nothing(self, db: Session, store, mock_provider):
        service = HistoricalBackfillService(mock_provider, store, anchor_date=AS_OF + timedelta(days=5))
        asset = create_asset(db, symbol=None, name="Future")

        result = service.backfill(
            db,
            BackfillParams(asset_id=asset.id, user_id=asset.user_id, reference_price=10),
            as_of=AS_OF,
        )

        assert result.success is True
        assert result.total_points == 0


# =============================================================================
# STORE FAILURES
# =============================================================================

class TestStoreFailures:

    def test_failed_rows_reported_not_raised(self, mock_provider):
        store = MagicMock(spec=HistoryStore)
        store.to_records.return_value = [{}] * 11
        store.upsert_batch.return_value = UpsertResult(inserted=0, failed=11)
        service = HistoricalBackfillService(mock_provider, store, anchor_date=ANCHOR)

        result = service.backfill(
            MagicMock(),
            BackfillParams(
                asset_id="7d7a8f35-42f1-4d47-9b26-0fd7e0d3b0f2", user_id="u", reference_price=5
            ),
            as_of=AS_OF,
        )

        assert result.success is True
        assert result.inserted == 0
        assert result.failed == 11
