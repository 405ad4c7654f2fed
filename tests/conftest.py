import pytest

from crypto_alerts.db.sessions import create_db_engine, init_db
from crypto_alerts.db.store import SqlStore
from crypto_alerts.pricing import PriceService, RateLimiter
from tests.helpers.fakes import (FakeNotifier, FakeProvider, FakeStore,
                                 WallClock)


@pytest.fixture
def clock():
    return WallClock()


@pytest.fixture
def provider():
    return FakeProvider({"bitcoin": "50000", "ethereum": "3000", "solana": "150"})


@pytest.fixture
def limiter():
    # Large budget: these tests count slots, they never wait for one.
    return RateLimiter(1000, 60)


@pytest.fixture
def fake_store(clock):
    return FakeStore(now=clock)


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def make_price_service(provider, limiter, clock):
    def _make(store=None, **kwargs):
        return PriceService(provider, limiter, store, now=clock, **kwargs)

    return _make


@pytest.fixture
def price_service(make_price_service, fake_store):
    return make_price_service(fake_store)


@pytest.fixture
def engine():
    engine = create_db_engine("sqlite://")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def sql_store(engine):
    return SqlStore(engine)
