"""Cryptocurrency price providers."""
from crypto_alerts.providers.crypto.coingecko.coin_gecko_provider import (
    CoinGeckoProvider,
)

__all__ = ["CoinGeckoProvider"]
