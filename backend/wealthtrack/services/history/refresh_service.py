# backend/wealthtrack/services/history/refresh_service.py
"""
Daily price refresh of every asset in scope.

For each asset:
- quoted assets take the provider's current price
- manual assets carry yesterday's stored price forward (falling back to
  the asset's current_price when yesterday has no row)

A valid price updates the asset's current_price and writes today's history
row, both in one transaction. Any per-asset problem (no price, provider
error, failed write) is recorded as a failure and the loop moves on, so
one bad symbol never blocks the rest of the portfolio.

External fetches are serialized with a short pause between them to stay
under the provider's informal rate limit.

Usage:
    service = PriceRefreshService(provider, HistoryStore(), AssetStore())
    result = service.refresh_prices(db, user_id=None)   # all users
"""

import logging
import math
import time
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Callable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from wealthtrack.models import Asset
from wealthtrack.services.constants import (
    NO_VALID_PRICE_REASON,
    REFRESH_COMPLETED_MESSAGE,
    REFRESH_NO_ASSETS_MESSAGE,
)
from wealthtrack.services.exceptions import MarketDataError, StoreError
from wealthtrack.services.history.store import HistoryStore
from wealthtrack.services.market_data.base import HistoricalDataPoint, MarketDataProvider
from wealthtrack.services.protocols import AssetStoreProtocol
from wealthtrack.utils.date_utils import today

logger = logging.getLogger(__name__)


# =============================================================================
# DATA CLASSES
# =============================================================================

@dataclass
class PriceUpdate:
    asset_id: str
    symbol: str
    price: Decimal


@dataclass
class PriceFailure:
    asset_id: str
    symbol: str
    reason: str


@dataclass
class RefreshResult:
    """
    Summary of one refresh run.

    symbol in successes/failures is the asset's symbol, or its name for
    manual assets.
    """

    message: str
    successes: list[PriceUpdate] = field(default_factory=list)
    failures: list[PriceFailure] = field(default_factory=list)

    @property
    def updated(self) -> int:
        return len(self.successes)

    @property
    def failed(self) -> int:
        return len(self.failures)


@dataclass(frozen=True)
class _AssetSnapshot:
    """Plain copy of the fields the refresh needs; immune to session rollbacks."""

    id: str
    user_id: str
    symbol: str | None
    label: str
    current_price: Decimal | None

    @classmethod
    def of(cls, asset: Asset) -> "_AssetSnapshot":
        return cls(
            id=asset.id,
            user_id=asset.user_id,
            symbol=asset.symbol,
            label=asset.label,
            current_price=asset.current_price,
        )


# =============================================================================
# SERVICE
# =============================================================================

class PriceRefreshService:

    def __init__(
            self,
            provider: MarketDataProvider,
            history_store: HistoryStore,
            asset_store: AssetStoreProtocol,
            rate_limit_delay: float = 0.1,
            sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._provider = provider
        self._history_store = history_store
        self._asset_store = asset_store
        self._rate_limit_delay = rate_limit_delay
        self._sleep = sleep

    def refresh_prices(
            self,
            db: Session,
            user_id: str | None,
            as_of: date | None = None,
    ) -> RefreshResult:
        """
        Refresh current prices and record today's history point.

        Args:
            db: Database session
            user_id: Owner whose assets to refresh; None for every user
            as_of: Day treated as "today" (default: current UTC date)

        Returns:
            RefreshResult; never raises for per-asset problems
        """
        day = as_of or today()
        assets = [_AssetSnapshot.of(a) for a in self._asset_store.list_assets(db, user_id)]

        if not assets:
            logger.info("Price refresh: no assets found")
            return RefreshResult(message=REFRESH_NO_ASSETS_MESSAGE)

        scope = "all users" if user_id is None else f"user {user_id}"
        logger.info(f"Price refresh: {len(assets)} assets ({scope})")

        result = RefreshResult(message=REFRESH_COMPLETED_MESSAGE)
        resolved: list[tuple[_AssetSnapshot, Decimal]] = []
        fetched_externally = False

        # Phase 1: resolve a price for every asset
        for asset in assets:
            if asset.symbol:
                if fetched_externally and self._rate_limit_delay > 0:
                    self._sleep(self._rate_limit_delay)
                fetched_externally = True

            try:
                price = self._resolve_price(db, asset, day)
            except MarketDataError as e:
                logger.warning(f"Price fetch failed for {asset.label}: {e}")
                result.failures.append(PriceFailure(asset.id, asset.label, str(e)))
                continue
            except Exception as e:
                logger.exception(f"Unexpected error resolving price for {asset.label}")
                result.failures.append(PriceFailure(asset.id, asset.label, str(e) or type(e).__name__))
                continue

            if not _is_valid_price(price):
                logger.warning(f"No valid price for {asset.label}")
                result.failures.append(PriceFailure(asset.id, asset.label, NO_VALID_PRICE_REASON))
                continue

            resolved.append((asset, price))

        # Phase 2: persist asset price + today's history row per asset
        updated_at = datetime.now(timezone.utc)
        for asset, price in resolved:
            try:
                self._persist(db, asset, price, day, updated_at)
            except (StoreError, SQLAlchemyError) as e:
                db.rollback()
                logger.warning(f"Failed to store price for {asset.label}: {e}")
                result.failures.append(PriceFailure(asset.id, asset.label, str(e)))
                continue

            result.successes.append(PriceUpdate(asset.id, asset.label, price))
            logger.debug(f"Updated {asset.label}: {price} (daily snapshot recorded)")

        logger.info(f"Price refresh complete: {result.updated} updated, {result.failed} failed")
        return result

    def _resolve_price(self, db: Session, asset: _AssetSnapshot, day: date) -> Decimal | None:
        if asset.symbol:
            return self._provider.fetch_current_price(asset.symbol)

        previous = self._history_store.get_previous_day_price(db, asset.id, as_of=day)
        if previous is not None:
            return previous

        logger.info(f"No previous-day price for {asset.label}, using current_price")
        return asset.current_price

    def _persist(
            self,
            db: Session,
            asset: _AssetSnapshot,
            price: Decimal,
            day: date,
            updated_at: datetime,
    ) -> None:
        """Asset update and history upsert, committed together."""
        self._asset_store.update_current_price(db, asset.id, asset.user_id, price, updated_at)
        records = self._history_store.to_records(
            asset.id,
            asset.user_id,
            [HistoricalDataPoint(date=day, price=price)],
            recorded_at=updated_at,
        )
        self._history_store.stage_upsert(db, records)
        db.commit()


def _is_valid_price(price: Decimal | None) -> bool:
    if price is None:
        return False
    try:
        return math.isfinite(price) and price > 0
    except (TypeError, ValueError):
        return False
