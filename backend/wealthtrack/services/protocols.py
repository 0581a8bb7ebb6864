# backend/wealthtrack/services/protocols.py
"""
Protocol interfaces for service dependency injection.

Using typing.Protocol enables structural subtyping:
- AssetStore satisfies these without inheriting from them
- Test doubles (MagicMock(spec=...), small fakes) work without inheritance
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Protocol, TYPE_CHECKING

if TYPE_CHECKING:
    from sqlalchemy.orm import Session
    from wealthtrack.models import Asset


class AssetStoreProtocol(Protocol):
    """Interface required by PriceRefreshService and ValuationService."""

    def list_assets(self, db: Session, user_id: str | None = None) -> list[Asset]:
        ...

    def get_owned_asset(self, db: Session, asset_id: str, user_id: str | None) -> Asset:
        ...

    def update_current_price(
        self,
        db: Session,
        asset_id: str,
        user_id: str,
        price: Decimal,
        updated_at: datetime,
    ) -> None:
        ...
