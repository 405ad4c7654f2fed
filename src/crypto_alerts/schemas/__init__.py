"""Pydantic schemas for API and runtime use. Not persisted to DB."""
from datetime import datetime
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

from crypto_alerts.db.models import AlertType
from crypto_alerts.utils import normalize_symbol, utcnow


class PriceSource(str, Enum):
    """Which tier of the price cache served a quote."""

    PERSISTENT = "persistent"
    MEMORY = "memory"
    LIVE = "live"
    BATCH = "batch"
    STALE_PERSISTENT = "stale_persistent"
    STALE_MEMORY = "stale_memory"

    @property
    def cached(self) -> bool:
        return self not in (PriceSource.LIVE, PriceSource.BATCH)


class PriceQuote(BaseModel):
    """USD price for a ticker plus the tier that produced it."""

    symbol: str
    price: Decimal
    source: PriceSource
    as_of: datetime = Field(default_factory=utcnow)

    @property
    def cached(self) -> bool:
        return self.source.cached


class PriceBatchRequest(BaseModel):
    """Up to ten tickers priced in one request."""

    symbols: list[str] = Field(min_length=1, max_length=10)

    @field_validator("symbols")
    @classmethod
    def _normalize(cls, v: list[str]) -> list[str]:
        return [normalize_symbol(s) for s in v if s.strip()]


class PriceLookup(BaseModel):
    """One entry of a batch price response: a quote or the reason it failed."""

    price: Decimal | None = None
    source: PriceSource | None = None
    as_of: datetime | None = None
    error: str | None = None


class ActiveAlert(BaseModel):
    """Active alert joined with its owner's contact address (sweep input)."""

    model_config = ConfigDict(frozen=True)

    id: int
    user_id: int
    email: str
    symbol: str
    target_price: Decimal
    alert_type: AlertType


class CoinSearchHit(BaseModel):
    """One entry from the provider's search or trending listing."""

    id: str
    name: str
    symbol: str
    market_cap_rank: int | None = None
    thumb: str | None = None
    price_change_percentage_24h: float | None = None


class CoinMarket(BaseModel):
    """One row of the top-by-market-cap listing."""

    id: str
    name: str
    symbol: str
    current_price: Decimal | None = None
    market_cap: float | None = None
    market_cap_rank: int | None = None
    price_change_percentage_24h: float | None = None
    image: str | None = None


class PricePoint(BaseModel):
    """Historical price sample."""

    timestamp: datetime
    price: Decimal


class CoinDetails(BaseModel):
    """Coin profile with USD market data from the provider's coin endpoint."""

    id: str
    name: str
    symbol: str
    description: str | None = None
    image: str | None = None
    current_price: Decimal | None = None
    market_cap: float | None = None
    market_cap_rank: int | None = None
    total_volume: float | None = None
    price_change_percentage_24h: float | None = None
    price_change_percentage_7d: float | None = None
    price_change_percentage_30d: float | None = None
    all_time_high: Decimal | None = None
    all_time_low: Decimal | None = None
    circulating_supply: float | None = None
    total_supply: float | None = None
    max_supply: float | None = None


class WatchlistEntry(BaseModel):
    """Last persisted price for a watched symbol."""

    price: Decimal
    last_updated: datetime


class Watchlist(BaseModel):
    """Cached prices for the symbols in a user's alerts and portfolio."""

    watchlist: dict[str, WatchlistEntry]


# ---- Users ----
class UserCreate(BaseModel):
    email: str = Field(min_length=3, pattern=r"^[^@\s]+@[^@\s]+$")


class UserRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    created_at: datetime


# ---- Alerts ----
class AlertCreate(BaseModel):
    """Request body for creating a price alert."""

    symbol: str = Field(min_length=1, max_length=20)
    target_price: Decimal = Field(gt=0)
    alert_type: AlertType

    @field_validator("symbol")
    @classmethod
    def _normalize(cls, v: str) -> str:
        return normalize_symbol(v)


class AlertUpdate(BaseModel):
    target_price: Decimal | None = Field(default=None, gt=0)
    alert_type: AlertType | None = None
    is_active: bool | None = None


class AlertRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    symbol: str
    target_price: Decimal
    alert_type: AlertType
    is_active: bool
    created_at: datetime
    triggered_at: datetime | None = None
    current_price: Decimal | None = None
    last_updated: datetime | None = None


class AlertTestResult(BaseModel):
    symbol: str
    current_price: Decimal
    target_price: Decimal
    alert_type: AlertType
    would_trigger: bool
    message: str


# ---- Portfolio ----
class PositionCreate(BaseModel):
    """Paper buy: quantity of a coin at a given purchase price."""

    symbol: str = Field(min_length=1, max_length=20)
    quantity: Decimal = Field(gt=0)
    purchase_price: Decimal = Field(gt=0)

    @field_validator("symbol")
    @classmethod
    def _normalize(cls, v: str) -> str:
        return normalize_symbol(v)


class PositionSell(BaseModel):
    sold_price: Decimal = Field(gt=0)


class PositionRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    symbol: str
    quantity: Decimal
    purchase_price: Decimal
    purchase_date: datetime
    is_sold: bool
    sold_price: Decimal | None = None
    sold_date: datetime | None = None


class PositionValuation(PositionRead):
    """Position with current value and P&L (None fields when price unavailable)."""

    purchase_value: Decimal
    current_price: Decimal | None = None
    current_value: Decimal | None = None
    unrealized_pnl: Decimal | None = None
    unrealized_pnl_percent: Decimal | None = None
    realized_pnl: Decimal = Decimal("0")
    realized_pnl_percent: Decimal = Decimal("0")
    total_pnl: Decimal | None = None
    total_pnl_percent: Decimal | None = None
    error: str | None = None


class PortfolioSummary(BaseModel):
    total_invested: Decimal
    total_current_value: Decimal
    total_pnl: Decimal
    total_pnl_percent: Decimal
    total_positions: int
    active_positions: int
    sold_positions: int


class PortfolioView(BaseModel):
    positions: list[PositionValuation]
    summary: PortfolioSummary


class SaleResult(BaseModel):
    position_id: int
    symbol: str
    quantity: Decimal
    purchase_price: Decimal
    sold_price: Decimal
    purchase_value: Decimal
    sold_value: Decimal
    realized_pnl: Decimal
    realized_pnl_percent: Decimal
    sold_date: datetime


class SymbolPerformance(BaseModel):
    symbol: str
    total_quantity: Decimal
    total_invested: Decimal
    average_purchase_price: Decimal
    current_price: Decimal | None = None
    current_value: Decimal | None = None
    total_pnl: Decimal | None = None
    total_pnl_percent: Decimal | None = None
    error: str | None = None


class TradeRecord(PositionRead):
    purchase_value: Decimal
    realized_pnl: Decimal
    realized_pnl_percent: Decimal
    status: str


# ---- Sweep ----
class SweepReport(BaseModel):
    """Outcome counters for one alert sweep."""

    started_at: datetime = Field(default_factory=utcnow)
    finished_at: datetime | None = None
    alerts_checked: int = 0
    symbols_checked: int = 0
    batch_hits: int = 0
    triggered: int = 0
    notification_failures: int = 0
    deactivation_failures: int = 0
    skipped_symbols: list[str] = Field(default_factory=list)
    skipped_run: bool = False


__all__ = [
    "ActiveAlert",
    "AlertCreate",
    "AlertRead",
    "AlertTestResult",
    "AlertType",
    "AlertUpdate",
    "CoinDetails",
    "CoinMarket",
    "CoinSearchHit",
    "PortfolioSummary",
    "PortfolioView",
    "PositionCreate",
    "PositionRead",
    "PositionSell",
    "PositionValuation",
    "PriceBatchRequest",
    "PriceLookup",
    "PricePoint",
    "PriceQuote",
    "PriceSource",
    "SaleResult",
    "SweepReport",
    "SymbolPerformance",
    "TradeRecord",
    "UserCreate",
    "UserRead",
    "Watchlist",
    "WatchlistEntry",
]
