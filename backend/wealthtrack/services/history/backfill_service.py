# backend/wealthtrack/services/history/backfill_service.py
"""
Historical backfill of one asset's daily price series.

Two sources of history:
- Quoted assets (symbol set): daily closes from the market data provider,
  from the anchor date to today, forward-filled over weekends and
  holidays up to today.
- Manual assets (reference price): a constant series at the reference
  price. On creation it covers anchor..today; on a price edit only today
  is written, so the history before the edit keeps its old value.

Usage:
    service = HistoricalBackfillService(provider, HistoryStore(), date(2025, 1, 2))
    result = service.backfill(db, BackfillParams(asset_id=..., user_id=..., symbol="AAPL"))
"""

import logging
import math
import uuid
from dataclasses import dataclass
from datetime import date
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from sqlalchemy.orm import Session

from wealthtrack.services.constants import (
    CURRENCY_PRECISION,
    NO_HISTORICAL_DATA_MESSAGE,
    SOURCE_CONSTANT_TEMPLATE,
    SOURCE_CONSTANT_TODAY_TEMPLATE,
    SOURCE_PROVIDER_NO_DATA_TEMPLATE,
    SOURCE_PROVIDER_TEMPLATE,
)
from wealthtrack.services.exceptions import ValidationError
from wealthtrack.services.history.forward_fill import forward_fill
from wealthtrack.services.history.store import HistoryStore
from wealthtrack.services.market_data.base import HistoricalDataPoint, MarketDataProvider
from wealthtrack.utils.date_utils import date_range, today

logger = logging.getLogger(__name__)


# =============================================================================
# DATA CLASSES
# =============================================================================

@dataclass
class BackfillParams:
    """
    What to backfill and for whom.

    Exactly one pricing source is used: symbol when present, otherwise
    reference_price.
    """

    asset_id: str
    user_id: str
    symbol: str | None = None
    reference_price: Decimal | float | int | None = None
    is_update: bool = False


@dataclass
class BackfillResult:
    """Outcome of one backfill. success=False only for the no-data case."""

    success: bool
    inserted: int
    failed: int
    total_points: int
    source: str
    message: str | None = None


# =============================================================================
# SERVICE
# =============================================================================

class HistoricalBackfillService:
    """
    Builds and stores the daily history of one asset.

    Provider errors (ExternalSourceError) propagate to the caller. Store
    errors do not: they show up as the failed count of the result.
    """

    def __init__(
            self,
            provider: MarketDataProvider,
            store: HistoryStore,
            anchor_date: date,
    ) -> None:
        self._provider = provider
        self._store = store
        self._anchor_date = anchor_date

    def backfill(
            self,
            db: Session,
            params: BackfillParams,
            as_of: date | None = None,
    ) -> BackfillResult:
        """
        Fetch or generate the series and upsert it.

        Args:
            db: Database session
            params: Asset and pricing source
            as_of: Day treated as "today" (default: current UTC date)

        Raises:
            ValidationError: Invalid params, raised before any I/O
            ExternalSourceError: Provider unreachable after retries
        """
        reference_price = self.validate(params)
        end = as_of or today()

        if params.symbol:
            points, source = self._market_series(params.symbol, end)
            if not points:
                logger.info(f"No historical data for {params.symbol} (asset {params.asset_id})")
                return BackfillResult(
                    success=False,
                    inserted=0,
                    failed=0,
                    total_points=0,
                    source=source,
                    message=NO_HISTORICAL_DATA_MESSAGE,
                )
        else:
            points, source = self._constant_series(reference_price, params.is_update, end)

        records = self._store.to_records(params.asset_id, params.user_id, points)
        upsert = self._store.upsert_batch(db, records)

        logger.info(
            f"Backfill complete for asset {params.asset_id}: "
            f"{upsert.inserted} inserted, {upsert.failed} failed ({source})"
        )

        return BackfillResult(
            success=True,
            inserted=upsert.inserted,
            failed=upsert.failed,
            total_points=len(points),
            source=source,
        )

    # =========================================================================
    # SERIES BUILDERS
    # =========================================================================

    def _market_series(self, symbol: str, end: date) -> tuple[list[HistoricalDataPoint], str]:
        logger.info(f"Fetching historical data for {symbol} from {self._anchor_date} to {end}")
        raw = self._provider.fetch_historical_series(symbol, self._anchor_date, end)

        if not raw:
            return [], SOURCE_PROVIDER_NO_DATA_TEMPLATE.format(symbol=symbol)

        filled = forward_fill(raw, fill_to=end)
        logger.debug(f"Forward-filled {symbol}: {len(raw)} raw -> {len(filled)} daily points")
        return filled, SOURCE_PROVIDER_TEMPLATE.format(symbol=symbol)

    def _constant_series(
            self,
            price: Decimal,
            is_update: bool,
            end: date,
    ) -> tuple[list[HistoricalDataPoint], str]:
        label = _format_price(price)

        if is_update:
            logger.info(f"Updating manual asset from {end} with price {label}")
            return [HistoricalDataPoint(date=end, price=price)], \
                SOURCE_CONSTANT_TODAY_TEMPLATE.format(price=label)

        logger.info(f"Generating constant history from {self._anchor_date} with price {label}")
        days = date_range(self._anchor_date, end) if self._anchor_date <= end else []
        return [HistoricalDataPoint(date=d, price=price) for d in days], \
            SOURCE_CONSTANT_TEMPLATE.format(price=label)

    # =========================================================================
    # VALIDATION
    # =========================================================================

    @staticmethod
    def validate(params: BackfillParams) -> Decimal | None:
        """
        Check params and return the rounded reference price (if any).

        Raises:
            ValidationError: On the first invalid field
        """
        try:
            uuid.UUID(str(params.asset_id))
        except ValueError:
            raise ValidationError("assetId must be a valid UUID", field="assetId")

        if params.symbol is not None and not isinstance(params.symbol, str):
            raise ValidationError("symbol must be a string", field="symbol")

        price: Decimal | None = None
        if params.reference_price is not None:
            price = _to_reference_price(params.reference_price)

        if not params.symbol and price is None:
            raise ValidationError(
                "Either symbol or referencePrice must be provided",
                field="referencePrice",
            )

        return price


def _to_reference_price(value: Decimal | float | int) -> Decimal:
    if isinstance(value, bool):
        raise ValidationError("referencePrice must be a positive number", field="referencePrice")
    try:
        if isinstance(value, float) and not math.isfinite(value):
            raise InvalidOperation
        number = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError("referencePrice must be a positive number", field="referencePrice")

    if not number.is_finite() or number <= 0:
        raise ValidationError("referencePrice must be a positive number", field="referencePrice")

    rounded = number.quantize(CURRENCY_PRECISION, rounding=ROUND_HALF_UP)
    if rounded <= 0:
        raise ValidationError("referencePrice rounds to zero", field="referencePrice")
    return rounded


def _format_price(price: Decimal) -> str:
    """Shortest plain form: 100.00 -> "100", 100.50 -> "100.5"."""
    return f"{price.normalize():f}"
