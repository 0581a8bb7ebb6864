# backend/wealthtrack/routers/prices.py
"""
Current price endpoints.

- POST /prices/refresh: daily refresh, normally triggered by the scheduler
  with the service role key (all users) or by a user (own assets)
- POST /prices/live-quotes: intraday quotes for display, nothing stored
"""

import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from wealthtrack.database import get_db
from wealthtrack.dependencies import (
    CallerDep,
    get_live_quotes_service,
    get_refresh_service,
)
from wealthtrack.middleware.rate_limit import (
    limiter,
    RATE_LIMIT_LIVE_QUOTES,
    RATE_LIMIT_REFRESH,
)
from wealthtrack.schemas.prices import (
    LiveQuoteItem,
    LiveQuotesRequest,
    LiveQuotesResponse,
    PriceFailureItem,
    PriceSuccess,
    RefreshDetails,
    RefreshResponse,
)
from wealthtrack.services.history import PriceRefreshService
from wealthtrack.services.market_data import LiveQuotesService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/prices",
    tags=["Prices"],
)


@router.post(
    "/refresh",
    response_model=RefreshResponse,
    response_model_by_alias=True,
    summary="Refresh current prices",
    response_description="Per-asset successes and failures",
)
@limiter.limit(RATE_LIMIT_REFRESH)
def refresh_prices(
        request: Request,  # Required for rate limiting
        caller: CallerDep,
        db: Session = Depends(get_db),
        service: PriceRefreshService = Depends(get_refresh_service),
) -> RefreshResponse:
    """
    Update the current price of every asset in scope and record today's
    history point.

    The service role refreshes every user's assets; a user refreshes only
    their own. Per-asset failures are reported in `details.failures` and
    never fail the request.
    """
    logger.info(f"Price refresh requested by {caller.log_label}")
    result = service.refresh_prices(db, caller.user_id)

    return RefreshResponse(
        message=result.message,
        updated=result.updated,
        failed=result.failed,
        details=RefreshDetails(
            successes=[
                PriceSuccess(id=s.asset_id, symbol=s.symbol, price=s.price)
                for s in result.successes
            ],
            failures=[
                PriceFailureItem(id=f.asset_id, symbol=f.symbol, reason=f.reason)
                for f in result.failures
            ],
        ),
    )


@router.post(
    "/live-quotes",
    response_model=LiveQuotesResponse,
    response_model_by_alias=True,
    summary="Fetch live quotes",
    response_description="Quote per symbol; unresolved symbols are omitted",
)
@limiter.limit(RATE_LIMIT_LIVE_QUOTES)
def live_quotes(
        request: Request,  # Required for rate limiting
        body: LiveQuotesRequest,
        caller: CallerDep,
        service: LiveQuotesService = Depends(get_live_quotes_service),
) -> LiveQuotesResponse:
    """
    Current price and change vs previous close for up to 100 symbols.
    """
    quotes = service.fetch_live_quotes(body.symbols)
    return LiveQuotesResponse(
        {
            symbol: LiveQuoteItem(
                price=quote.price,
                change=quote.change,
                change_percent=quote.change_percent,
            )
            for symbol, quote in quotes.items()
        }
    )
