# backend/wealthtrack/schemas/prices.py
"""
Pydantic schemas for price refresh and live quotes.
"""

from pydantic import Field, RootModel, field_validator

from wealthtrack.schemas.base import CamelModel, Money
from wealthtrack.services.constants import MAX_LIVE_QUOTE_SYMBOLS


# =============================================================================
# REFRESH
# =============================================================================

class PriceSuccess(CamelModel):
    id: str = Field(..., description="Asset id")
    symbol: str = Field(..., description="Symbol, or name for manual assets")
    price: Money


class PriceFailureItem(CamelModel):
    id: str
    symbol: str
    reason: str


class RefreshDetails(CamelModel):
    successes: list[PriceSuccess] = Field(default_factory=list)
    failures: list[PriceFailureItem] = Field(default_factory=list)


class RefreshResponse(CamelModel):
    """Body of POST /prices/refresh."""

    message: str
    updated: int
    failed: int
    details: RefreshDetails


# =============================================================================
# LIVE QUOTES
# =============================================================================

class LiveQuotesRequest(CamelModel):
    symbols: list[str] = Field(..., max_length=MAX_LIVE_QUOTE_SYMBOLS)

    @field_validator("symbols")
    @classmethod
    def strip_symbols(cls, value: list[str]) -> list[str]:
        return [s.strip() for s in value if s and s.strip()]


class LiveQuoteItem(CamelModel):
    price: Money
    change: Money
    change_percent: Money


class LiveQuotesResponse(RootModel[dict[str, LiveQuoteItem]]):
    """Symbol -> quote; symbols without a quote are omitted."""
    pass
