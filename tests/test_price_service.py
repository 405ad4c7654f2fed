from datetime import timedelta
from decimal import Decimal

import pytest

from crypto_alerts.exceptions import (PriceUnavailable, ProviderError,
                                      RateLimited, SymbolNotFound)
from crypto_alerts.schemas import PriceSource


async def test_live_fetch_writes_through_both_tiers(price_service, fake_store, limiter, clock):
    quote = await price_service.get_quote("btc")

    assert quote.symbol == "BTC"
    assert quote.price == Decimal("50000")
    assert quote.source is PriceSource.LIVE
    assert quote.as_of == clock.now
    assert fake_store.upserts == [("BTC", Decimal("50000"))]
    assert price_service.memory_cache.get("BTC").fetched_at == clock.now
    assert limiter.call_count == 1


async def test_second_lookup_within_ten_minutes_makes_no_live_call(
    price_service, provider, clock
):
    await price_service.get_price("BTC")
    clock.advance(minutes=9)
    quote = await price_service.get_quote("BTC")

    assert quote.source is PriceSource.PERSISTENT
    assert provider.calls_to("get_price") == ["bitcoin"]


async def test_fresh_persistent_entry_is_served_without_provider(
    price_service, fake_store, provider
):
    fake_store.seed_price("ETH", "2999.5", age=timedelta(minutes=5))

    quote = await price_service.get_quote("ETH")

    assert quote.source is PriceSource.PERSISTENT
    assert quote.price == Decimal("2999.5")
    assert provider.calls == []


async def test_memory_tier_used_when_persistent_is_old(price_service, fake_store, provider, clock):
    price_service.memory_cache.set("ETH", Decimal("3001"), clock.now - timedelta(minutes=4))
    fake_store.seed_price("ETH", "2900", age=timedelta(minutes=11))

    quote = await price_service.get_quote("ETH")

    assert quote.source is PriceSource.MEMORY
    assert quote.price == Decimal("3001")
    assert provider.calls == []


async def test_memory_tier_alone_without_store(make_price_service, provider, clock):
    service = make_price_service(store=None)
    await service.get_price("SOL")
    clock.advance(minutes=4)
    assert (await service.get_quote("SOL")).source is PriceSource.MEMORY

    clock.advance(minutes=2)
    assert (await service.get_quote("SOL")).source is PriceSource.LIVE
    assert provider.calls_to("get_price") == ["solana", "solana"]


async def test_unresolvable_symbol_raises_and_caches_nothing(price_service, fake_store):
    with pytest.raises(SymbolNotFound):
        await price_service.get_price("XYZ")

    assert fake_store.upserts == []
    assert "XYZ" not in price_service.memory_cache


async def test_throttled_fetch_serves_45_minute_old_persistent_entry(
    price_service, fake_store, provider
):
    fake_store.seed_price("ETH", "2800", age=timedelta(minutes=45))
    provider.errors["ethereum"] = RateLimited()

    quote = await price_service.get_quote("ETH")

    assert quote.price == Decimal("2800")
    assert quote.source is PriceSource.STALE_PERSISTENT
    assert fake_store.upserts == []


async def test_throttled_fetch_falls_back_to_memory_of_any_age(
    price_service, fake_store, provider, clock
):
    fake_store.seed_price("ETH", "2800", age=timedelta(minutes=90))
    price_service.memory_cache.set("ETH", Decimal("2750"), clock.now - timedelta(hours=6))
    provider.errors["ethereum"] = RateLimited()

    quote = await price_service.get_quote("ETH")

    assert quote.price == Decimal("2750")
    assert quote.source is PriceSource.STALE_MEMORY


async def test_throttled_fetch_without_any_cache_is_unavailable(price_service, provider):
    provider.errors["ethereum"] = RateLimited()
    with pytest.raises(PriceUnavailable):
        await price_service.get_price("ETH")


async def test_generic_provider_error_does_not_serve_stale(price_service, fake_store, provider):
    fake_store.seed_price("ETH", "2800", age=timedelta(minutes=45))
    provider.errors["ethereum"] = ProviderError("upstream 500", status_code=500)

    with pytest.raises(PriceUnavailable):
        await price_service.get_price("ETH")


async def test_persistent_read_failure_is_treated_as_miss(price_service, fake_store):
    fake_store.fail_reads = True
    quote = await price_service.get_quote("BTC")
    assert quote.source is PriceSource.LIVE


async def test_persistent_write_failure_keeps_live_price(price_service, fake_store):
    fake_store.fail_writes = True
    quote = await price_service.get_quote("BTC")

    assert quote.price == Decimal("50000")
    assert "BTC" in price_service.memory_cache


async def test_history_requires_provider_support(price_service):
    with pytest.raises(NotImplementedError):
        await price_service.history("BTC", 7)


async def test_heuristically_resolved_price_is_not_fetched_twice(price_service, provider, fake_store):
    provider.prices["pepe"] = Decimal("0.0000012")

    quote = await price_service.get_quote("PEPE")

    assert quote.price == Decimal("0.0000012")
    assert quote.source is PriceSource.LIVE
    assert provider.calls_to("get_price") == ["pepe"]
    assert fake_store.upserts == [("PEPE", Decimal("0.0000012"))]
