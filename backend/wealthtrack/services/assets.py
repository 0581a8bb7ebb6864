# backend/wealthtrack/services/assets.py
"""
Asset reads and price updates used by the history services.

Asset CRUD belongs to the client application; this service only reads
assets and writes back the refreshed current price.
"""

import logging
from datetime import datetime
from decimal import Decimal

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from wealthtrack.models import Asset
from wealthtrack.services.exceptions import AssetNotFoundError, StoreError

logger = logging.getLogger(__name__)


class AssetStore:

    def list_assets(self, db: Session, user_id: str | None = None) -> list[Asset]:
        """
        Assets of one user, or of every user when user_id is None.

        Ordered by creation so refresh logs read in a stable order.
        """
        stmt = select(Asset)
        if user_id is not None:
            stmt = stmt.where(Asset.user_id == user_id)
        return list(db.scalars(stmt.order_by(Asset.created_at, Asset.id)).all())

    def get_asset(self, db: Session, asset_id: str) -> Asset:
        """
        Raises:
            AssetNotFoundError: If no asset has this id
        """
        asset = db.get(Asset, asset_id)
        if asset is None:
            raise AssetNotFoundError(asset_id)
        return asset

    def get_owned_asset(self, db: Session, asset_id: str, user_id: str | None) -> Asset:
        """
        Fetch an asset the caller may act on.

        user_id None is the elevated scope and may see any asset.

        Raises:
            AssetNotFoundError: If missing or owned by someone else
        """
        asset = self.get_asset(db, asset_id)
        if user_id is not None and asset.user_id != user_id:
            logger.warning(f"Asset {asset_id} requested by non-owner {user_id}")
            raise AssetNotFoundError(asset_id)
        return asset

    def update_current_price(
            self,
            db: Session,
            asset_id: str,
            user_id: str,
            price: Decimal,
            updated_at: datetime,
    ) -> None:
        """
        Set current_price and last_updated. Does not commit.

        Raises:
            StoreError: If the update fails or matches no row
        """
        try:
            result = db.execute(
                update(Asset)
                .where(Asset.id == asset_id, Asset.user_id == user_id)
                .values(current_price=price, last_updated=updated_at)
            )
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to update price of asset {asset_id}: {e}", operation="update")

        if result.rowcount == 0:
            raise StoreError(f"Asset {asset_id} no longer exists", operation="update")
