"""Models for CoinGecko provider (API params)."""
from pydantic import BaseModel


class CoinGeckoSimplePriceParams(BaseModel):
    """Params for /simple/price. Merge with 'ids' at call site."""

    vs_currencies: str = "usd"


class CoinGeckoMarketsParams(BaseModel):
    """Params for /coins/markets (top by market cap)."""

    vs_currency: str = "usd"
    order: str = "market_cap_desc"
    per_page: int = 50
    page: int = 1
    sparkline: str = "false"


class CoinGeckoHistoryParams(BaseModel):
    """Params for /coins/{id}/market_chart."""

    vs_currency: str = "usd"
    days: int = 7
    interval: str | None = "daily"

    @classmethod
    def for_days(cls, days: int) -> "CoinGeckoHistoryParams":
        # Sub-day ranges come back at the automatic granularity.
        return cls(days=days, interval=None if days <= 1 else "daily")


class CoinGeckoCoinParams(BaseModel):
    """Params for /coins/{id}: market data only."""

    localization: str = "false"
    tickers: str = "false"
    market_data: str = "true"
    community_data: str = "false"
    developer_data: str = "false"
    sparkline: str = "false"
