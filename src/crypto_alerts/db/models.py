"""Database models for the crypto alerts service.

Users own alerts and paper-trading positions (cascade-deleted with the user).
PriceEntry is the persistent tier of the price cache: one row per symbol,
overwritten on every successful fetch.
"""
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum

from sqlalchemy import DateTime
from sqlalchemy.types import TypeDecorator
from sqlmodel import Field, Relationship, SQLModel

from crypto_alerts.utils import utcnow


class UtcDateTime(TypeDecorator):
    """Timezone-aware UTC timestamp column.

    Values are stored in UTC. Backends that drop the offset (SQLite) get it
    reattached on load, so every timestamp read back is aware.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):  # noqa: ANN001
        if value is None:
            return None
        if value.tzinfo is None:
            raise ValueError(f"Naive datetime {value!r} cannot be stored as UTC")
        return value.astimezone(timezone.utc)

    def process_result_value(self, value, dialect):  # noqa: ANN001
        if value is None or value.tzinfo is not None:
            return value
        return value.replace(tzinfo=timezone.utc)


class AlertType(str, Enum):
    """Direction of a threshold alert."""

    ABOVE = "above"
    BELOW = "below"


class User(SQLModel, table=True):
    """Alert owner; only the contact address is stored."""

    id: int | None = Field(default=None, primary_key=True)
    email: str = Field(unique=True, index=True)
    created_at: datetime = Field(default_factory=utcnow, sa_type=UtcDateTime)

    alerts: list["Alert"] = Relationship(back_populates="user", cascade_delete=True)
    positions: list["Position"] = Relationship(
        back_populates="user", cascade_delete=True
    )


class Alert(SQLModel, table=True):
    """Price threshold alert; triggered_at is set iff deactivated by a sweep."""

    id: int | None = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", index=True, ondelete="CASCADE")
    symbol: str = Field(index=True)
    target_price: Decimal = Field(max_digits=24, decimal_places=8)
    alert_type: AlertType
    is_active: bool = Field(default=True, index=True)
    created_at: datetime = Field(default_factory=utcnow, sa_type=UtcDateTime)
    triggered_at: datetime | None = Field(default=None, sa_type=UtcDateTime)

    user: User | None = Relationship(back_populates="alerts")


class Position(SQLModel, table=True):
    """Paper-trading position. Sold positions are kept as trade history."""

    id: int | None = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", index=True, ondelete="CASCADE")
    symbol: str = Field(index=True)
    quantity: Decimal = Field(max_digits=24, decimal_places=8)
    purchase_price: Decimal = Field(max_digits=24, decimal_places=8)
    purchase_date: datetime = Field(default_factory=utcnow, sa_type=UtcDateTime)
    is_sold: bool = Field(default=False)
    sold_price: Decimal | None = Field(default=None, max_digits=24, decimal_places=8)
    sold_date: datetime | None = Field(default=None, sa_type=UtcDateTime)

    user: User | None = Relationship(back_populates="positions")


class PriceEntry(SQLModel, table=True):
    """Last known USD price per symbol (persistent cache tier)."""

    __tablename__ = "price_entry"

    symbol: str = Field(primary_key=True)
    price: Decimal = Field(max_digits=24, decimal_places=8)
    last_updated: datetime = Field(default_factory=utcnow, sa_type=UtcDateTime)
