# backend/wealthtrack/dependencies.py
"""
Dependency injection module for FastAPI services.

Services are process-wide singletons created lazily on first use, so the
HTTP client of the quote provider (and its connection pool) is shared by
every request.

Usage in routers:
    from wealthtrack.dependencies import CallerDep, get_backfill_service

    @router.post("/backfill")
    def backfill(
        caller: CallerDep,
        service: HistoricalBackfillService = Depends(get_backfill_service),
    ):
        ...
"""

import logging
from functools import lru_cache
from typing import Annotated

from fastapi import Depends, Query
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from wealthtrack.config import settings
from wealthtrack.services.assets import AssetStore
from wealthtrack.services.auth import Caller, JWTHandler
from wealthtrack.services.exceptions import ValidationError
from wealthtrack.services.history import (
    HistoricalBackfillService,
    HistoryStore,
    PriceRefreshService,
)
from wealthtrack.services.market_data import LiveQuotesService, YahooFinanceProvider
from wealthtrack.services.valuation import ValuationService
from wealthtrack.utils.context import set_caller_id

logger = logging.getLogger(__name__)

# auto_error=False so a missing header reaches our handler as a 401
_bearer_scheme = HTTPBearer(auto_error=False)


# =============================================================================
# SINGLETON SERVICE INSTANCES
# =============================================================================
# Order matters: define dependencies before dependents
# 1. get_market_data_provider, get_history_store, get_asset_store (no deps)
# 2. get_backfill_service, get_refresh_service, get_live_quotes_service
# 3. get_valuation_service


@lru_cache(maxsize=1)
def get_market_data_provider() -> YahooFinanceProvider:
    logger.debug("Initializing singleton YahooFinanceProvider")
    return YahooFinanceProvider(
        timeout=settings.quote_timeout_seconds,
        max_attempts=settings.quote_max_retries,
        base_delay=settings.quote_retry_base_delay_seconds,
    )


@lru_cache(maxsize=1)
def get_history_store() -> HistoryStore:
    logger.debug("Initializing singleton HistoryStore")
    return HistoryStore(batch_size=settings.history_batch_size)


@lru_cache(maxsize=1)
def get_asset_store() -> AssetStore:
    logger.debug("Initializing singleton AssetStore")
    return AssetStore()


@lru_cache(maxsize=1)
def get_backfill_service() -> HistoricalBackfillService:
    """
    Get the singleton HistoricalBackfillService instance.

    Histories start at YTD_START_DATE.
    """
    logger.debug("Initializing singleton HistoricalBackfillService")
    return HistoricalBackfillService(
        provider=get_market_data_provider(),
        store=get_history_store(),
        anchor_date=settings.ytd_start_date,
    )


@lru_cache(maxsize=1)
def get_refresh_service() -> PriceRefreshService:
    logger.debug("Initializing singleton PriceRefreshService")
    return PriceRefreshService(
        provider=get_market_data_provider(),
        history_store=get_history_store(),
        asset_store=get_asset_store(),
        rate_limit_delay=settings.rate_limit_delay_seconds,
    )


@lru_cache(maxsize=1)
def get_live_quotes_service() -> LiveQuotesService:
    logger.debug("Initializing singleton LiveQuotesService")
    return LiveQuotesService(
        provider=get_market_data_provider(),
        max_workers=settings.live_quotes_max_workers,
    )


@lru_cache(maxsize=1)
def get_valuation_service() -> ValuationService:
    logger.debug("Initializing singleton ValuationService")
    return ValuationService(
        history_store=get_history_store(),
        asset_store=get_asset_store(),
    )


# =============================================================================
# AUTHENTICATION DEPENDENCIES
# =============================================================================


def get_caller(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(_bearer_scheme)],
) -> Caller:
    """
    Identify the caller from the bearer token.

    The caller id is also bound to the logging context of the request.

    Raises:
        InvalidCredentialsError: Mapped to 401 by the global handler
    """
    token = credentials.credentials if credentials else None
    caller = JWTHandler.resolve_caller(token)
    set_caller_id(caller.log_label)
    return caller


CallerDep = Annotated[Caller, Depends(get_caller)]


def get_portfolio_owner(
    caller: CallerDep,
    user_id: Annotated[
        str | None,
        Query(alias="userId", description="Portfolio owner; service role only"),
    ] = None,
) -> str:
    """
    Resolve whose portfolio a read-side endpoint shows.

    Users always see their own portfolio and the userId parameter is
    ignored for them. The service role has no portfolio of its own and
    must name one.

    Raises:
        ValidationError: Service role without userId
    """
    if not caller.is_service_role:
        return caller.user_id

    if not user_id:
        raise ValidationError("userId is required for service role requests", field="userId")
    return user_id


PortfolioOwnerDep = Annotated[str, Depends(get_portfolio_owner)]


# =============================================================================
# CACHE MANAGEMENT
# =============================================================================

def clear_service_caches() -> None:
    """
    Clear all service caches.

    Useful for testing or when you need to reset state.
    """
    get_market_data_provider.cache_clear()
    get_history_store.cache_clear()
    get_asset_store.cache_clear()
    get_backfill_service.cache_clear()
    get_refresh_service.cache_clear()
    get_live_quotes_service.cache_clear()
    get_valuation_service.cache_clear()
    logger.info("Cleared all service singleton caches")
