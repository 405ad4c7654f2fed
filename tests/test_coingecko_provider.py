from decimal import Decimal

import httpx
import pytest

from crypto_alerts.alerts import AlertSweep
from crypto_alerts.exceptions import (PriceUnavailable, ProviderError,
                                      RateLimited, SymbolNotFound)
from crypto_alerts.pricing import PriceService, RateLimiter
from crypto_alerts.providers import CoinGeckoProvider
from tests.helpers.fakes import FakeNotifier, FakeStore, active_alert


def make_provider(handler):
    client = httpx.AsyncClient(
        transport=httpx.MockTransport(handler), base_url=CoinGeckoProvider.BASE_URL
    )
    return CoinGeckoProvider(client=client)


def json_handler(payload, status_code=200, seen=None):
    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        return httpx.Response(status_code, json=payload)

    return handler


async def test_get_price_parses_usd_as_decimal():
    seen = []
    async with make_provider(json_handler({"bitcoin": {"usd": 64123.45}}, seen=seen)) as cg:
        price = await cg.get_price("Bitcoin")

    assert price == Decimal("64123.45")
    assert seen[0].url.path.endswith("/simple/price")
    assert seen[0].url.params["ids"] == "bitcoin"
    assert seen[0].url.params["vs_currencies"] == "usd"


async def test_get_price_missing_id_is_not_found():
    async with make_provider(json_handler({})) as cg:
        with pytest.raises(SymbolNotFound):
            await cg.get_price("nope")


async def test_get_price_missing_usd_is_not_found():
    async with make_provider(json_handler({"foo": {"eur": 1}})) as cg:
        with pytest.raises(SymbolNotFound):
            await cg.get_price("foo")


async def test_http_404_is_not_found():
    async with make_provider(json_handler({"error": "not found"}, status_code=404)) as cg:
        with pytest.raises(SymbolNotFound):
            await cg.get_price("foo")


async def test_http_429_is_rate_limited():
    async with make_provider(json_handler({"status": {"error_code": 429}}, status_code=429)) as cg:
        with pytest.raises(RateLimited):
            await cg.get_price("bitcoin")
        with pytest.raises(RateLimited):
            await cg.get_prices(["bitcoin"])


async def test_server_error_is_provider_error():
    async with make_provider(json_handler({}, status_code=503)) as cg:
        with pytest.raises(ProviderError) as exc_info:
            await cg.get_price("bitcoin")
    assert exc_info.value.status_code == 503


async def test_timeout_is_provider_error():
    def handler(request):
        raise httpx.ReadTimeout("slow", request=request)

    async with make_provider(handler) as cg:
        with pytest.raises(ProviderError):
            await cg.get_price("bitcoin", timeout=0.1)


async def test_get_prices_single_call_with_sorted_ids():
    seen = []
    payload = {"bitcoin": {"usd": 50000}, "ethereum": {"usd": 3000}}
    async with make_provider(json_handler(payload, seen=seen)) as cg:
        prices = await cg.get_prices(["ethereum", "bitcoin", "solana"])

    assert prices == {"bitcoin": Decimal("50000"), "ethereum": Decimal("3000")}
    assert len(seen) == 1
    assert seen[0].url.params["ids"] == "bitcoin,ethereum,solana"


async def test_get_prices_empty_makes_no_request():
    seen = []
    async with make_provider(json_handler({}, seen=seen)) as cg:
        assert await cg.get_prices([]) == {}
    assert seen == []


async def test_search_maps_coins():
    payload = {
        "coins": [
            {"id": "pepe", "name": "Pepe", "symbol": "pepe", "market_cap_rank": 30, "thumb": "t.png"}
        ]
    }
    async with make_provider(json_handler(payload)) as cg:
        [hit] = await cg.search("pepe")

    assert hit.id == "pepe"
    assert hit.symbol == "PEPE"
    assert hit.market_cap_rank == 30


async def test_top_markets_uses_limit():
    seen = []
    payload = [
        {
            "id": "bitcoin",
            "name": "Bitcoin",
            "symbol": "btc",
            "current_price": 50000.5,
            "market_cap": 1e12,
            "market_cap_rank": 1,
            "price_change_percentage_24h": 1.2,
            "image": "btc.png",
        }
    ]
    async with make_provider(json_handler(payload, seen=seen)) as cg:
        [coin] = await cg.top_markets(limit=5)

    assert seen[0].url.params["per_page"] == "5"
    assert coin.symbol == "BTC"
    assert coin.current_price == Decimal("50000.5")


async def test_history_converts_timestamps():
    payload = {"prices": [[1704067200000, 42000.1], [1704153600000, 43000.2]]}
    async with make_provider(json_handler(payload)) as cg:
        points = await cg.get_history("bitcoin", days=2)

    assert [p.price for p in points] == [Decimal("42000.1"), Decimal("43000.2")]
    assert points[0].timestamp.year == 2024


@pytest.mark.parametrize("bad", ["n/a", "Infinity", "NaN", [1]])
async def test_malformed_usd_value_is_provider_error(bad):
    async with make_provider(json_handler({"bitcoin": {"usd": bad}})) as cg:
        with pytest.raises(ProviderError):
            await cg.get_price("bitcoin")


async def test_batch_skips_malformed_rows():
    payload = {"bitcoin": {"usd": "n/a"}, "ethereum": {"usd": 3000}}
    async with make_provider(json_handler(payload)) as cg:
        prices = await cg.get_prices(["bitcoin", "ethereum"])

    assert prices == {"ethereum": Decimal("3000")}


async def test_malformed_price_is_contained_by_pricing_and_sweep():
    async with make_provider(json_handler({"bitcoin": {"usd": "n/a"}})) as cg:
        store = FakeStore()
        service = PriceService(cg, RateLimiter(1000, 60), store)

        assert await service.get_batch_prices(["BTC"]) == {}
        with pytest.raises(PriceUnavailable):
            await service.get_quote("BTC")

        store.alerts = [active_alert(1, "BTC", 40000)]
        notifier = FakeNotifier()
        report = await AlertSweep(
            store, service, notifier, individual_fetch_delay=0
        ).run_once()

    assert report.skipped_symbols == ["BTC"]
    assert report.triggered == 0
    assert notifier.sent == []
    assert store.upserts == []


async def test_details_maps_market_data():
    seen = []
    payload = {
        "id": "ethereum",
        "name": "Ethereum",
        "symbol": "eth",
        "description": {"en": "Ethereum is a smart contract platform. It runs dapps."},
        "image": {"large": "eth.png"},
        "market_cap_rank": 2,
        "market_data": {
            "current_price": {"usd": 3000.5},
            "market_cap": {"usd": 3.6e11},
            "total_volume": {"usd": 1.5e10},
            "price_change_percentage_24h": -1.5,
            "price_change_percentage_7d": 4.2,
            "price_change_percentage_30d": 10.0,
            "ath": {"usd": 4878.26},
            "atl": {"usd": 0.432979},
            "circulating_supply": 120000000.0,
            "total_supply": 120000000.0,
            "max_supply": None,
        },
    }
    async with make_provider(json_handler(payload, seen=seen)) as cg:
        details = await cg.get_details("ethereum")

    assert seen[0].url.path.endswith("/coins/ethereum")
    assert seen[0].url.params["market_data"] == "true"
    assert details.symbol == "ETH"
    assert details.description == "Ethereum is a smart contract platform."
    assert details.current_price == Decimal("3000.5")
    assert details.all_time_low == Decimal("0.432979")
    assert details.market_cap_rank == 2
    assert details.max_supply is None


async def test_details_unknown_coin_is_not_found():
    async with make_provider(json_handler({"error": "coin not found"}, status_code=404)) as cg:
        with pytest.raises(SymbolNotFound):
            await cg.get_details("nope")
