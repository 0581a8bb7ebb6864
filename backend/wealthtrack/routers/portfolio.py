# backend/wealthtrack/routers/portfolio.py
"""
Portfolio views computed from stored price history.

Endpoints:
- GET /portfolio/history           daily portfolio value + performance
- GET /portfolio/summary           invested vs current totals
- GET /portfolio/allocation        split by category, region or sector
- GET /assets/{asset_id}/history   one asset's price series + performance

Every view is read-only and recomputed on each request.
"""

import logging

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from wealthtrack.database import get_db
from wealthtrack.dependencies import (
    CallerDep,
    PortfolioOwnerDep,
    get_valuation_service,
)
from wealthtrack.middleware.rate_limit import limiter, RATE_LIMIT_DEFAULT
from wealthtrack.schemas.portfolio import (
    AllocationSliceResponse,
    AssetHistoryResponse,
    AssetPerformanceResponse,
    AssetPricePointResponse,
    PerformanceResponse,
    PortfolioHistoryResponse,
    PortfolioSummaryResponse,
    PortfolioValuePointResponse,
)
from wealthtrack.services.constants import DEFAULT_HISTORY_DAYS, MAX_HISTORY_DAYS
from wealthtrack.services.exceptions import ValidationError
from wealthtrack.services.valuation import AllocationGroup, ValuationService

logger = logging.getLogger(__name__)

ALL_HISTORY = "all"

router = APIRouter(tags=["Portfolio"])


def parse_days(value: str) -> int | None:
    """
    Parse the `days` query parameter: a day count or "all".

    Raises:
        ValidationError: Not a whole number in 0..MAX_HISTORY_DAYS
    """
    if value.strip().lower() == ALL_HISTORY:
        return None
    try:
        days = int(value)
    except ValueError:
        raise ValidationError("days must be an integer or 'all'", field="days")
    if days < 0 or days > MAX_HISTORY_DAYS:
        raise ValidationError(f"days must be between 0 and {MAX_HISTORY_DAYS}", field="days")
    return days


DaysQuery = Query(
    default=str(DEFAULT_HISTORY_DAYS),
    description="Lookback in days, or 'all'",
)


# =============================================================================
# PORTFOLIO
# =============================================================================

@router.get(
    "/portfolio/history",
    response_model=PortfolioHistoryResponse,
    response_model_by_alias=True,
    summary="Portfolio value history",
)
@limiter.limit(RATE_LIMIT_DEFAULT)
def get_portfolio_history(
        request: Request,  # Required for rate limiting
        owner: PortfolioOwnerDep,
        days: str = DaysQuery,
        db: Session = Depends(get_db),
        service: ValuationService = Depends(get_valuation_service),
) -> PortfolioHistoryResponse:
    """
    Daily portfolio value (sum of price x quantity) over the window, with
    start vs end performance.

    Values use each asset's current quantity for every day.
    """
    history = service.get_portfolio_history(db, owner, days=parse_days(days))
    performance = service.calculate_performance(history)

    return PortfolioHistoryResponse(
        start_date=history.start_date,
        points=[PortfolioValuePointResponse.model_validate(p) for p in history.points],
        performance=PerformanceResponse.model_validate(performance),
    )


@router.get(
    "/portfolio/summary",
    response_model=PortfolioSummaryResponse,
    response_model_by_alias=True,
    summary="Portfolio totals",
)
@limiter.limit(RATE_LIMIT_DEFAULT)
def get_portfolio_summary(
        request: Request,  # Required for rate limiting
        owner: PortfolioOwnerDep,
        db: Session = Depends(get_db),
        service: ValuationService = Depends(get_valuation_service),
) -> PortfolioSummaryResponse:
    totals = service.get_portfolio_totals(db, owner)
    return PortfolioSummaryResponse.model_validate(totals)


@router.get(
    "/portfolio/allocation",
    response_model=list[AllocationSliceResponse],
    response_model_by_alias=True,
    summary="Portfolio allocation",
)
@limiter.limit(RATE_LIMIT_DEFAULT)
def get_portfolio_allocation(
        request: Request,  # Required for rate limiting
        owner: PortfolioOwnerDep,
        group_by: AllocationGroup = Query(default=AllocationGroup.CATEGORY, alias="groupBy"),
        db: Session = Depends(get_db),
        service: ValuationService = Depends(get_valuation_service),
) -> list[AllocationSliceResponse]:
    """
    Current value per group, largest first. Assets without a region or
    sector are grouped under "Unassigned".
    """
    slices = service.get_allocation(db, owner, group_by)
    return [AllocationSliceResponse.model_validate(s) for s in slices]


# =============================================================================
# ASSET
# =============================================================================

@router.get(
    "/assets/{asset_id}/history",
    response_model=AssetHistoryResponse,
    response_model_by_alias=True,
    summary="Asset price history",
)
@limiter.limit(RATE_LIMIT_DEFAULT)
def get_asset_history(
        request: Request,  # Required for rate limiting
        asset_id: str,
        caller: CallerDep,
        days: str = DaysQuery,
        db: Session = Depends(get_db),
        service: ValuationService = Depends(get_valuation_service),
) -> AssetHistoryResponse:
    """
    Daily prices of one asset and its performance.

    Raises **404** if the asset does not exist or is not yours.
    """
    asset, history = service.get_asset_history(
        db, asset_id, caller.user_id, days=parse_days(days)
    )
    performance = service.calculate_asset_performance(history, asset)

    return AssetHistoryResponse(
        asset_id=asset.id,
        symbol=asset.symbol,
        name=asset.name,
        start_date=history.start_date,
        points=[AssetPricePointResponse.model_validate(p) for p in history.points],
        performance=AssetPerformanceResponse.model_validate(performance),
    )
