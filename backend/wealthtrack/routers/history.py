# backend/wealthtrack/routers/history.py
"""
Historical backfill endpoint.

Called by the client right after an asset is created (full history) and
after the price of a manual asset is edited (isUpdate, today only).
"""

import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from wealthtrack.database import get_db
from wealthtrack.dependencies import (
    CallerDep,
    get_asset_store,
    get_backfill_service,
)
from wealthtrack.middleware.rate_limit import limiter, RATE_LIMIT_BACKFILL
from wealthtrack.schemas.history import BackfillRequest, BackfillResponse
from wealthtrack.services.assets import AssetStore
from wealthtrack.services.history import BackfillParams, HistoricalBackfillService

logger = logging.getLogger(__name__)

# =============================================================================
# ROUTER SETUP
# =============================================================================

router = APIRouter(
    prefix="/history",
    tags=["Price History"],
)


# =============================================================================
# ENDPOINTS
# =============================================================================

@router.post(
    "/backfill",
    response_model=BackfillResponse,
    response_model_by_alias=True,
    summary="Backfill an asset's daily price history",
    response_description="Rows written and where the prices came from",
)
@limiter.limit(RATE_LIMIT_BACKFILL)
def backfill_history(
        request: Request,  # Required for rate limiting
        body: BackfillRequest,
        caller: CallerDep,
        db: Session = Depends(get_db),
        service: HistoricalBackfillService = Depends(get_backfill_service),
        asset_store: AssetStore = Depends(get_asset_store),
) -> BackfillResponse:
    """
    Write the daily price history of one asset.

    - With **symbol**: daily closes from Yahoo Finance since the YTD start,
      forward-filled over weekends and holidays up to today.
    - With **referencePrice** only: a constant series at that price, or a
      single point for today when **isUpdate** is true.

    A response with `success: false` means the symbol has no data; nothing
    was written.

    Raises **400** for invalid input, **404** if the asset is not yours,
    **502** if Yahoo Finance is unreachable.
    """
    params = BackfillParams(
        asset_id=body.asset_id,
        user_id=caller.user_id or "",
        symbol=body.symbol,
        reference_price=body.reference_price,
        is_update=body.is_update,
    )
    # Reject bad input before touching the database
    service.validate(params)

    asset = asset_store.get_owned_asset(db, body.asset_id, caller.user_id)
    params.user_id = asset.user_id

    logger.info(
        f"Backfill requested for asset {asset.id} by {caller.log_label} "
        f"(symbol={body.symbol}, update={body.is_update})"
    )
    result = service.backfill(db, params)

    return BackfillResponse(
        success=result.success,
        inserted=result.inserted,
        failed=result.failed,
        total_points=result.total_points,
        source=result.source,
        message=result.message,
    )
