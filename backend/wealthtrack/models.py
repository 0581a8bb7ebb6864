# backend/wealthtrack/models.py
import enum
import uuid
from datetime import date, datetime, timezone
from decimal import Decimal

from sqlalchemy import String, Date, DateTime, ForeignKey, Enum, Numeric, UniqueConstraint, Index
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""
    pass


def _new_uuid() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AssetCategory(str, enum.Enum):
    STOCKS = "STOCKS"
    CRYPTO = "CRYPTO"
    SAVINGS = "SAVINGS"
    REAL_ESTATE = "REAL_ESTATE"
    OTHER = "OTHER"


class Asset(Base):
    """
    A holding owned by one user.

    Assets with a symbol are priced from the market data provider. Assets
    without one (savings accounts, real estate) are priced manually: their
    history is a constant series at the reference price entered by the user.
    """
    __tablename__ = "assets"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_uuid)
    user_id: Mapped[str] = mapped_column(String(36), index=True)
    name: Mapped[str] = mapped_column(String)
    symbol: Mapped[str | None] = mapped_column(String, nullable=True)  # e.g. "AAPL", "BTC-USD"
    category: Mapped[AssetCategory] = mapped_column(Enum(AssetCategory), default=AssetCategory.OTHER)
    region: Mapped[str | None] = mapped_column(String, nullable=True)
    sector: Mapped[str | None] = mapped_column(String, nullable=True)

    # Numeric(18, 8) supports fractional crypto quantities
    quantity: Mapped[Decimal] = mapped_column(Numeric(18, 8), default=Decimal(0))
    purchase_price: Mapped[Decimal] = mapped_column(Numeric(18, 2), default=Decimal(0))
    current_price: Mapped[Decimal | None] = mapped_column(Numeric(18, 2), nullable=True)
    apy: Mapped[Decimal | None] = mapped_column(Numeric(6, 3), nullable=True)  # savings yield, informational

    last_updated: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)

    history: Mapped[list["AssetHistory"]] = relationship(
        back_populates="asset",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def label(self) -> str:
        """Symbol for quoted assets, name for manual ones."""
        return self.symbol or self.name


class AssetHistory(Base):
    """
    One closing price per asset per calendar day.

    The (asset_id, date) pair is unique; every write is an upsert that
    overwrites price, user_id and recorded_at. Gaps in market data
    (weekends, holidays) are forward-filled before writing, so the series
    is dense from the first known date.
    """
    __tablename__ = "asset_history"
    __table_args__ = (
        UniqueConstraint("asset_id", "date", name="uq_asset_history_asset_date"),
        # "All history for user X since date Y" (portfolio valuation)
        Index("ix_asset_history_user_date", "user_id", "date"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_uuid)
    asset_id: Mapped[str] = mapped_column(ForeignKey("assets.id", ondelete="CASCADE"), index=True)
    user_id: Mapped[str] = mapped_column(String(36))
    price: Mapped[Decimal] = mapped_column(Numeric(18, 2))
    date: Mapped[date] = mapped_column(Date)
    recorded_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)

    asset: Mapped["Asset"] = relationship(back_populates="history")
