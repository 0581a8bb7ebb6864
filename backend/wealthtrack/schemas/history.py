# backend/wealthtrack/schemas/history.py
"""
Pydantic schemas for the historical backfill endpoint.

Field-level checks here are limited to types; business rules (UUID
asset id, symbol-or-price, positive price) are enforced by
HistoricalBackfillService so scripts calling the service directly get
the same checks.
"""

from pydantic import Field

from wealthtrack.schemas.base import CamelModel


class BackfillRequest(CamelModel):
    """Body of POST /history/backfill."""

    asset_id: str = Field(..., description="UUID of the asset to backfill")
    symbol: str | None = Field(
        default=None,
        max_length=32,
        description="Market symbol (e.g. 'AAPL', 'BTC-USD'); omit for manual assets",
    )
    reference_price: float | None = Field(
        default=None,
        description="Constant price for manual assets",
    )
    is_update: bool = Field(
        default=False,
        description="Manual assets only: write today's point instead of the full history",
    )


class BackfillResponse(CamelModel):
    success: bool
    inserted: int = Field(..., description="Rows written (new or overwritten)")
    failed: int = Field(..., description="Rows lost to failed batches")
    total_points: int = Field(..., description="Points in the generated series")
    source: str = Field(..., description="Where the prices came from")
    message: str | None = None
