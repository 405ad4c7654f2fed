"""Price providers for cryptocurrencies.

Providers implement PriceProviderABC: they talk to the third-party API and
classify failures (throttled vs. not found vs. generic error) but never
cache or rate-limit. The pricing package wraps them with both.

- CoinGeckoProvider: prices, search, trending, markets and history via CoinGecko

Example:
    async with CoinGeckoProvider() as provider:
        price = await provider.get_price("bitcoin")
        prices = await provider.get_prices(["bitcoin", "ethereum"])
"""
from crypto_alerts.providers.core import PriceProviderABC
from crypto_alerts.providers.crypto import CoinGeckoProvider

__all__ = [
    "PriceProviderABC",
    "CoinGeckoProvider",
]
