# backend/tests/conftest.py
"""
Pytest configuration and fixtures.

This module provides shared fixtures for all tests:
- Database session fixtures (in-memory SQLite)
- Mock quote provider
- Sample data factories
"""

import os

# Set required environment variables BEFORE importing wealthtrack modules
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("APP_NAME", "Test App")

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import Iterator
import uuid

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from wealthtrack.models import Base, Asset, AssetCategory, AssetHistory
from wealthtrack.services.market_data.base import (
    HistoricalDataPoint,
    LiveQuote,
    MarketDataProvider,
)

USER_ID = "11111111-1111-4111-8111-111111111111"
OTHER_USER_ID = "22222222-2222-4222-8222-222222222222"


# =============================================================================
# DATABASE FIXTURES
# =============================================================================

def _enable_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


@pytest.fixture(scope="function")
def db_engine():
    """Create an in-memory SQLite database engine for testing."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    event.listen(engine, "connect", _enable_foreign_keys)
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)


@pytest.fixture(scope="function")
def db(db_engine) -> Iterator[Session]:
    """Create a database session for testing."""
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture(autouse=True)
def reset_rate_limiter():
    """Every test starts with empty slowapi counters."""
    from wealthtrack.middleware.rate_limit import limiter

    limiter.reset()
    yield


# =============================================================================
# MOCK QUOTE PROVIDER
# =============================================================================

class MockQuoteProvider(MarketDataProvider):
    """
    In-memory MarketDataProvider.

    Configure per-symbol prices, series, quotes or errors; unknown symbols
    behave like the real provider's "no data" (None / []).
    """

    def __init__(self):
        super().__init__(max_attempts=1, base_delay=0)
        self._prices: dict[str, Decimal | None] = {}
        self._series: dict[str, list[HistoricalDataPoint]] = {}
        self._quotes: dict[str, LiveQuote] = {}
        self._errors: dict[str, Exception] = {}
        self.calls: list[tuple[str, str]] = []

    @property
    def name(self) -> str:
        return "mock"

    def set_price(self, symbol: str, price: Decimal | str | None) -> None:
        self._prices[symbol] = Decimal(price) if isinstance(price, str) else price

    def set_series(self, symbol: str, points: list[tuple[date, str]]) -> None:
        self._series[symbol] = [HistoricalDataPoint(date=d, price=Decimal(p)) for d, p in points]

    def set_quote(self, symbol: str, price: str, previous_close: str | None = None) -> None:
        self._quotes[symbol] = LiveQuote(
            symbol=symbol,
            price=Decimal(price),
            previous_close=Decimal(previous_close) if previous_close else None,
        )

    def set_error(self, symbol: str, error: Exception) -> None:
        self._errors[symbol] = error

    def _check_error(self, symbol: str) -> None:
        if symbol in self._errors:
            raise self._errors[symbol]

    def fetch_current_price(self, symbol: str) -> Decimal | None:
        self.calls.append(("price", symbol))
        self._check_error(symbol)
        return self._prices.get(symbol)

    def fetch_historical_series(
            self,
            symbol: str,
            start: date,
            end: date,
    ) -> list[HistoricalDataPoint]:
        self.calls.append(("series", symbol))
        self._check_error(symbol)
        return [p for p in self._series.get(symbol, []) if start <= p.date <= end]

    def fetch_quote(self, symbol: str) -> LiveQuote | None:
        self.calls.append(("quote", symbol))
        self._check_error(symbol)
        return self._quotes.get(symbol)


@pytest.fixture
def mock_provider() -> MockQuoteProvider:
    """Create a fresh mock provider for each test."""
    return MockQuoteProvider()


# =============================================================================
# SAMPLE DATA FACTORIES
# =============================================================================

def create_asset(
        db: Session,
        user_id: str = USER_ID,
        name: str = "Apple Inc.",
        symbol: str | None = "AAPL",
        category: AssetCategory = AssetCategory.STOCKS,
        quantity: str = "10",
        purchase_price: str = "100",
        current_price: str | None = None,
        region: str | None = None,
        sector: str | None = None,
        created_at: datetime | None = None,
) -> Asset:
    """Factory function for creating Asset entities in the database."""
    asset = Asset(
        id=str(uuid.uuid4()),
        user_id=user_id,
        name=name,
        symbol=symbol,
        category=category,
        quantity=Decimal(quantity),
        purchase_price=Decimal(purchase_price),
        current_price=Decimal(current_price) if current_price is not None else None,
        region=region,
        sector=sector,
        created_at=created_at or datetime.now(timezone.utc),
    )
    db.add(asset)
    db.commit()
    db.refresh(asset)
    return asset


def create_history(
        db: Session,
        asset: Asset,
        points: list[tuple[date, str]],
) -> list[AssetHistory]:
    """Factory function for asset_history rows of one asset."""
    rows = [
        AssetHistory(
            id=str(uuid.uuid4()),
            asset_id=asset.id,
            user_id=asset.user_id,
            date=d,
            price=Decimal(p),
        )
        for d, p in points
    ]
    db.add_all(rows)
    db.commit()
    return rows


def days_back(end: date, count: int) -> list[date]:
    """The `count` consecutive days ending at `end`, oldest first."""
    return [end - timedelta(days=count - 1 - i) for i in range(count)]


# =============================================================================
# API CLIENT FIXTURES
# =============================================================================

SERVICE_ROLE_KEY = "test-service-role-key"


def auth_headers(user_id: str = USER_ID) -> dict[str, str]:
    """Bearer header with a freshly signed user token."""
    from wealthtrack.services.auth import JWTHandler

    return {"Authorization": f"Bearer {JWTHandler.create_access_token(user_id)}"}


@pytest.fixture
def service_headers(monkeypatch) -> dict[str, str]:
    """Bearer header carrying the service role key."""
    from wealthtrack.config import settings

    monkeypatch.setattr(settings, "service_role_key", SERVICE_ROLE_KEY)
    return {"Authorization": f"Bearer {SERVICE_ROLE_KEY}"}


@pytest.fixture
def backfill_anchor() -> date:
    """First day written by backfills in API tests: five days before today."""
    from wealthtrack.utils.date_utils import today

    return today() - timedelta(days=5)


@pytest.fixture
def client(db: Session, mock_provider: MockQuoteProvider, backfill_anchor: date):
    """TestClient wired to the test session and the mock provider."""
    from fastapi.testclient import TestClient

    from wealthtrack import dependencies
    from wealthtrack.database import get_db
    from wealthtrack.main import app
    from wealthtrack.services.assets import AssetStore
    from wealthtrack.services.history import (
        HistoricalBackfillService,
        HistoryStore,
        PriceRefreshService,
    )
    from wealthtrack.services.market_data import LiveQuotesService
    from wealthtrack.services.valuation import ValuationService

    history_store = HistoryStore()
    asset_store = AssetStore()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[dependencies.get_asset_store] = lambda: asset_store
    app.dependency_overrides[dependencies.get_backfill_service] = lambda: HistoricalBackfillService(
        mock_provider, history_store, anchor_date=backfill_anchor
    )
    app.dependency_overrides[dependencies.get_refresh_service] = lambda: PriceRefreshService(
        mock_provider, history_store, asset_store, rate_limit_delay=0, sleep=lambda seconds: None
    )
    app.dependency_overrides[dependencies.get_live_quotes_service] = lambda: LiveQuotesService(
        mock_provider, max_workers=4
    )
    app.dependency_overrides[dependencies.get_valuation_service] = lambda: ValuationService(
        history_store, asset_store
    )

    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()
