# backend/wealthtrack/services/history/store.py
"""
Persistence of daily asset prices (table asset_history).

Writes are upserts keyed by (asset_id, date): re-writing a day overwrites
its price, so repeated backfills and refreshes converge to the last value
written. Upserts use INSERT ... ON CONFLICT DO UPDATE through the dialect
of the bound engine (PostgreSQL in production, SQLite in tests).

Error policy:
- upsert_batch() never raises for database errors; failed batches are
  rolled back and counted.
- stage_upsert() raises StoreError and does not commit, for callers that
  combine the history write with another update in one transaction.
- get_previous_day_price() returns None on absence and on read errors;
  a failed read rolls the session back so it stays usable.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import Any

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from wealthtrack.models import AssetHistory
from wealthtrack.services.exceptions import StoreError
from wealthtrack.services.market_data.base import HistoricalDataPoint
from wealthtrack.utils.date_utils import today

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 50


@dataclass
class UpsertResult:
    """Rows written and rows lost across all batches of one upsert call."""

    inserted: int = 0
    failed: int = 0

    @property
    def total(self) -> int:
        return self.inserted + self.failed


class HistoryStore:
    """
    Reads and writes of asset_history rows.

    Stateless; every method takes the session it works on.
    """

    def __init__(self, batch_size: int = DEFAULT_BATCH_SIZE) -> None:
        if batch_size < 1:
            raise ValueError(f"batch_size must be >= 1, got {batch_size}")
        self._batch_size = batch_size

    # =========================================================================
    # WRITES
    # =========================================================================

    @staticmethod
    def to_records(
            asset_id: str,
            user_id: str,
            points: list[HistoricalDataPoint],
            recorded_at: datetime | None = None,
    ) -> list[dict[str, Any]]:
        """Map price points to asset_history row dicts stamped with one recorded_at."""
        stamp = recorded_at or datetime.now(timezone.utc)
        return [
            {
                "id": str(uuid.uuid4()),
                "asset_id": asset_id,
                "user_id": user_id,
                "date": point.date,
                "price": point.price,
                "recorded_at": stamp,
            }
            for point in points
        ]

    def upsert_batch(
            self,
            db: Session,
            records: list[dict[str, Any]],
            batch_size: int | None = None,
    ) -> UpsertResult:
        """
        Upsert records in sequential batches, committing each batch.

        A failing batch is rolled back, logged and counted as failed;
        the following batches are still attempted.
        """
        if batch_size is not None and batch_size < 1:
            raise ValueError(f"batch_size must be >= 1, got {batch_size}")
        size = self._batch_size if batch_size is None else batch_size
        result = UpsertResult()

        for start in range(0, len(records), size):
            batch = records[start:start + size]
            try:
                self.stage_upsert(db, batch)
                db.commit()
                result.inserted += len(batch)
                logger.debug(f"Upserted history batch {start // size + 1} ({len(batch)} rows)")
            except (StoreError, SQLAlchemyError) as e:
                db.rollback()
                result.failed += len(batch)
                logger.warning(
                    f"History batch {start // size + 1} failed ({len(batch)} rows): {e}"
                )

        return result

    def stage_upsert(self, db: Session, records: list[dict[str, Any]]) -> None:
        """
        Execute the upsert statement without committing.

        Raises:
            StoreError: If the statement fails
        """
        if not records:
            return

        insert_fn = sqlite_insert if db.get_bind().dialect.name == "sqlite" else pg_insert
        stmt = insert_fn(AssetHistory).values(records)
        stmt = stmt.on_conflict_do_update(
            index_elements=["asset_id", "date"],
            set_={
                "price": stmt.excluded.price,
                "user_id": stmt.excluded.user_id,
                "recorded_at": stmt.excluded.recorded_at,
            },
        )

        try:
            db.execute(stmt)
        except SQLAlchemyError as e:
            raise StoreError(f"History upsert failed: {e}", operation="upsert")

    # =========================================================================
    # READS
    # =========================================================================

    def get_previous_day_price(
            self,
            db: Session,
            asset_id: str,
            as_of: date | None = None,
    ) -> Decimal | None:
        """
        Stored price for the day before as_of (default: yesterday).

        Only that exact date is looked up; older rows are not consulted.
        """
        target = (as_of or today()) - timedelta(days=1)
        try:
            return db.execute(
                select(AssetHistory.price).where(
                    AssetHistory.asset_id == asset_id,
                    AssetHistory.date == target,
                )
            ).scalar_one_or_none()
        except SQLAlchemyError as e:
            db.rollback()
            logger.warning(f"Previous-day price lookup failed for asset {asset_id}: {e}")
            return None

    def get_asset_history(
            self,
            db: Session,
            asset_id: str,
            start_date: date | None = None,
            end_date: date | None = None,
    ) -> list[AssetHistory]:
        """Rows of one asset, oldest first, optionally bounded (inclusive)."""
        stmt = select(AssetHistory).where(AssetHistory.asset_id == asset_id)
        if start_date is not None:
            stmt = stmt.where(AssetHistory.date >= start_date)
        if end_date is not None:
            stmt = stmt.where(AssetHistory.date <= end_date)
        return list(db.scalars(stmt.order_by(AssetHistory.date)).all())

    def get_user_history(
            self,
            db: Session,
            user_id: str,
            start_date: date | None = None,
            end_date: date | None = None,
    ) -> list[AssetHistory]:
        """Rows of all assets of one user, ordered by date then asset."""
        stmt = select(AssetHistory).where(AssetHistory.user_id == user_id)
        if start_date is not None:
            stmt = stmt.where(AssetHistory.date >= start_date)
        if end_date is not None:
            stmt = stmt.where(AssetHistory.date <= end_date)
        return list(db.scalars(stmt.order_by(AssetHistory.date, AssetHistory.asset_id)).all())
