from decimal import Decimal

from crypto_alerts.exceptions import ProviderError, RateLimited
from crypto_alerts.schemas import PriceSource


async def test_unmapped_symbol_is_dropped_from_batch(price_service, provider, limiter):
    prices = await price_service.get_batch_prices(["BTC", "ETH", "SOL", "PEPE"])

    assert prices == {
        "BTC": Decimal("50000"),
        "ETH": Decimal("3000"),
        "SOL": Decimal("150"),
    }
    assert provider.calls == [("get_prices", ["bitcoin", "ethereum", "solana"])]
    assert limiter.call_count == 1


async def test_no_mapped_symbols_makes_no_call(price_service, provider, limiter):
    assert await price_service.get_batch_prices(["PEPE", "WIF"]) == {}
    assert provider.calls == []
    assert limiter.call_count == 0


async def test_symbols_are_normalized_and_deduplicated(price_service, provider):
    prices = await price_service.get_batch_prices(["btc", " BTC ", "eth"])

    assert set(prices) == {"BTC", "ETH"}
    assert provider.calls_to("get_prices") == [["bitcoin", "ethereum"]]


async def test_missing_ids_are_simply_absent(price_service, provider):
    del provider.prices["solana"]
    prices = await price_service.get_batch_prices(["BTC", "SOL"])
    assert prices == {"BTC": Decimal("50000")}


async def test_throttled_batch_returns_empty(price_service, provider):
    provider.batch_error = RateLimited()
    assert await price_service.get_batch_prices(["BTC", "ETH"]) == {}


async def test_failed_batch_returns_empty(price_service, provider):
    provider.batch_error = ProviderError("timed out")
    assert await price_service.get_batch_prices(["BTC"]) == {}


async def test_batch_hits_populate_memory_tier(make_price_service, provider):
    service = make_price_service(store=None)
    await service.get_batch_prices(["BTC"])

    quote = await service.get_quote("BTC")

    assert quote.source is PriceSource.MEMORY
    assert provider.calls_to("get_price") == []
