# backend/wealthtrack/services/constants.py
"""
Centralized constants for the WealthTrack services.

Tunable runtime values (timeouts, retry budget, anchor date, batch size)
live in config.Settings; this module holds the fixed business constants
and the slowapi rate limit strings.

Usage:
    from wealthtrack.services.constants import CURRENCY_PRECISION, TREND_THRESHOLD_PERCENT
"""

from decimal import Decimal


# =============================================================================
# DECIMAL PRECISION CONSTANTS
# =============================================================================

# Prices and money amounts: 2 decimal places, rounded half up
CURRENCY_PRECISION: Decimal = Decimal("0.01")

# Percentages shown to clients: 2 decimal places
DISPLAY_PERCENTAGE_PRECISION: Decimal = Decimal("0.01")

ZERO: Decimal = Decimal("0")
HUNDRED: Decimal = Decimal("100")


# =============================================================================
# PERFORMANCE CLASSIFICATION
# =============================================================================

# Moves within +/- 0.5 % of the start value are reported as neutral
TREND_THRESHOLD_PERCENT: Decimal = Decimal("0.5")


# =============================================================================
# HISTORY / VALUATION WINDOWS
# =============================================================================

# Default lookback of portfolio and asset history charts
DEFAULT_HISTORY_DAYS: int = 30

# Upper bound accepted by the history endpoints
MAX_HISTORY_DAYS: int = 365 * 20 + 5

# Upper bound of symbols in one live quote request
MAX_LIVE_QUOTE_SYMBOLS: int = 100


# =============================================================================
# BACKFILL SOURCE LABELS
# =============================================================================

SOURCE_PROVIDER_TEMPLATE: str = "Yahoo Finance ({symbol})"
SOURCE_PROVIDER_NO_DATA_TEMPLATE: str = "Yahoo Finance ({symbol}) - no data"
SOURCE_CONSTANT_TEMPLATE: str = "Constant price ({price})"
SOURCE_CONSTANT_TODAY_TEMPLATE: str = "Constant price from today ({price})"

NO_HISTORICAL_DATA_MESSAGE: str = "No historical data available for this symbol"


# =============================================================================
# REFRESH MESSAGES
# =============================================================================

REFRESH_COMPLETED_MESSAGE: str = "Price update completed"
REFRESH_NO_ASSETS_MESSAGE: str = "No assets found"
NO_VALID_PRICE_REASON: str = "No valid price found"


# =============================================================================
# RATE LIMITING CONSTANTS
# =============================================================================
# Format follows slowapi/limits syntax: "100/minute", "10/hour", etc.

# Read endpoints (portfolio history, summary, allocation)
RATE_LIMIT_DEFAULT: str = "100/minute"

# Backfill hits the quote provider for a full year of data
RATE_LIMIT_BACKFILL: str = "30/minute"

# Refresh fans out to the quote provider for every asset
RATE_LIMIT_REFRESH: str = "10/minute"

# Live quotes are polled by the dashboard
RATE_LIMIT_LIVE_QUOTES: str = "60/minute"

# Monitoring tools poll frequently
RATE_LIMIT_HEALTH: str = "300/minute"
