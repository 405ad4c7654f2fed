from decimal import Decimal

import pytest

from crypto_alerts.exceptions import ProviderError, RateLimited, SymbolNotFound
from crypto_alerts.pricing import KNOWN_PROVIDER_IDS, SymbolResolver
from crypto_alerts.schemas import CoinSearchHit
from tests.helpers.fakes import FakeProvider


@pytest.fixture
def resolver(provider, limiter):
    return SymbolResolver(provider, limiter)


@pytest.mark.parametrize("ticker, expected", sorted(KNOWN_PROVIDER_IDS.items()))
async def test_static_table_hits_issue_no_calls(resolver, provider, limiter, ticker, expected):
    assert await resolver.resolve(ticker) == expected
    assert provider.calls == []
    assert limiter.call_count == 0


async def test_ticker_is_trimmed_and_uppercased(resolver, provider):
    assert await resolver.resolve("  avax ") == "avalanche-2"
    assert provider.calls == []


def test_known_provider_id_never_touches_network(resolver, provider):
    assert resolver.known_provider_id("matic") == "matic-network"
    assert resolver.known_provider_id("PEPE") is None
    assert provider.calls == []


def test_candidates_are_tried_in_order():
    assert SymbolResolver.candidates(" Pepe ") == ["pepe", "pepe-2", "pepecoin"]


async def test_candidate_lookups_stop_at_first_priced_candidate(limiter):
    provider = FakeProvider({"pepe-2": "0.0000012", "pepecoin": "1"})
    resolver = SymbolResolver(provider, limiter)

    assert await resolver.resolve("PEPE") == "pepe-2"
    assert provider.calls_to("get_price") == ["pepe", "pepe-2"]
    assert limiter.call_count == 2


async def test_search_fallback_matches_symbol_exactly(limiter):
    provider = FakeProvider()
    provider.search_hits = [
        CoinSearchHit(id="xyz-wrapped", name="Wrapped XYZ", symbol="WXYZ"),
        CoinSearchHit(id="xyz-network", name="XYZ Network", symbol="xyz"),
    ]
    resolver = SymbolResolver(provider, limiter)

    assert await resolver.resolve("xyz") == "xyz-network"
    assert provider.calls_to("get_price") == ["xyz", "xyz-2", "xyzcoin"]
    assert provider.calls_to("search") == ["XYZ"]
    assert limiter.call_count == 4


async def test_unresolvable_ticker_raises_symbol_not_found(limiter):
    resolver = SymbolResolver(FakeProvider(), limiter)
    with pytest.raises(SymbolNotFound) as exc_info:
        await resolver.resolve("XYZ")
    assert exc_info.value.symbol == "XYZ"


async def test_empty_ticker_is_not_found(resolver, provider):
    with pytest.raises(SymbolNotFound):
        await resolver.resolve("   ")
    assert provider.calls == []


async def test_throttled_candidate_lookup_propagates(limiter):
    provider = FakeProvider()
    provider.errors["abc"] = RateLimited()
    resolver = SymbolResolver(provider, limiter)

    with pytest.raises(RateLimited):
        await resolver.resolve("ABC")
    assert provider.calls_to("search") == []


async def test_failed_candidate_lookup_without_match_is_a_provider_error(limiter):
    provider = FakeProvider()
    provider.errors["abc"] = ProviderError("boom", status_code=500)
    resolver = SymbolResolver(provider, limiter)

    with pytest.raises(ProviderError) as exc_info:
        await resolver.resolve("ABC")
    assert exc_info.value.status_code == 500


async def test_failed_candidate_is_skipped_when_a_later_candidate_prices(limiter):
    provider = FakeProvider({"abccoin": "2"})
    provider.errors["abc"] = ProviderError("timeout")
    resolver = SymbolResolver(provider, limiter)

    assert await resolver.resolve("ABC") == "abccoin"


async def test_heuristic_price_is_returned_with_the_id(limiter):
    provider = FakeProvider({"pepe": "0.0000012"})
    resolver = SymbolResolver(provider, limiter)

    assert await resolver.resolve_with_price("pepe") == ("pepe", Decimal("0.0000012"))
    assert await resolver.resolve_with_price("BTC") == ("bitcoin", None)
