from decimal import Decimal

import pytest
from fastapi import HTTPException

from crypto_alerts.db.models import Position
from crypto_alerts.schemas import PositionCreate
from crypto_alerts.services import PortfolioService
from crypto_alerts.services.portfolio_service import (percent, summarize,
                                                      value_position)


def position(**kwargs) -> Position:
    defaults = {
        "id": 1,
        "user_id": 1,
        "symbol": "BTC",
        "quantity": Decimal("2"),
        "purchase_price": Decimal("100"),
    }
    return Position(**(defaults | kwargs))


def test_open_position_unrealized_pnl():
    v = value_position(position(), Decimal("150"))

    assert v.purchase_value == Decimal("200")
    assert v.current_value == Decimal("300")
    assert v.unrealized_pnl == Decimal("100")
    assert v.unrealized_pnl_percent == Decimal("50.00")
    assert v.realized_pnl == 0
    assert v.total_pnl == Decimal("100")


def test_sold_position_realized_pnl():
    p = position(is_sold=True, sold_price=Decimal("80"))
    v = value_position(p, Decimal("150"))

    assert v.current_value == Decimal("160")
    assert v.unrealized_pnl == 0
    assert v.realized_pnl == Decimal("-40")
    assert v.realized_pnl_percent == Decimal("-20.00")
    assert v.total_pnl == Decimal("-40")


def test_unpriced_open_position_reports_error():
    v = value_position(position(), None)
    assert v.current_value is None
    assert v.error == "Price unavailable"


def test_summary_counts_unpriced_at_cost():
    valuations = [
        value_position(position(id=1), Decimal("150")),
        value_position(position(id=2, symbol="ETH"), None),
        value_position(position(id=3, is_sold=True, sold_price=Decimal("120")), None),
    ]

    summary = summarize(valuations)

    assert summary.total_invested == Decimal("600")
    assert summary.total_current_value == Decimal("740")
    assert summary.total_pnl == Decimal("140")
    assert summary.total_pnl_percent == Decimal("23.33")
    assert summary.total_positions == 3
    assert summary.active_positions == 2
    assert summary.sold_positions == 1


def test_percent_of_zero_is_zero():
    assert percent(Decimal("5"), Decimal("0")) == 0


@pytest.fixture
def portfolio(sql_store, make_price_service):
    return PortfolioService(sql_store, make_price_service(sql_store))


@pytest.fixture
async def user(sql_store):
    return await sql_store.create_user("paper@example.com")


async def test_buy_rejects_unknown_coin(portfolio, user):
    with pytest.raises(HTTPException) as exc_info:
        await portfolio.buy(
            user.id,
            PositionCreate(symbol="XYZ", quantity=Decimal("1"), purchase_price=Decimal("1")),
        )
    assert exc_info.value.status_code == 400


async def test_buy_sell_and_view(portfolio, user):
    bought = await portfolio.buy(
        user.id,
        PositionCreate(symbol="eth", quantity=Decimal("2"), purchase_price=Decimal("2500")),
    )
    sale = await portfolio.sell(bought.id, user.id, Decimal("2750"))

    assert sale.realized_pnl == Decimal("500")
    assert sale.realized_pnl_percent == Decimal("10.00")

    view = await portfolio.view(user.id)
    assert view.summary.sold_positions == 1
    assert view.summary.total_pnl == Decimal("500")

    with pytest.raises(HTTPException) as exc_info:
        await portfolio.sell(bought.id, user.id, Decimal("3000"))
    assert exc_info.value.status_code == 404


async def test_sold_positions_cannot_be_deleted(portfolio, user):
    bought = await portfolio.buy(
        user.id,
        PositionCreate(symbol="BTC", quantity=Decimal("1"), purchase_price=Decimal("40000")),
    )
    await portfolio.sell(bought.id, user.id, Decimal("45000"))

    with pytest.raises(HTTPException) as exc_info:
        await portfolio.delete(bought.id, user.id)
    assert exc_info.value.status_code == 400


async def test_performance_groups_by_symbol(portfolio, user):
    for price in ("40000", "60000"):
        await portfolio.buy(
            user.id,
            PositionCreate(symbol="BTC", quantity=Decimal("1"), purchase_price=Decimal(price)),
        )

    [perf] = await portfolio.performance(user.id)

    assert perf.total_quantity == Decimal("2")
    assert perf.average_purchase_price == Decimal("50000")
    assert perf.current_value == Decimal("100000")
    assert perf.total_pnl == 0


async def test_history_marks_status(portfolio, user):
    bought = await portfolio.buy(
        user.id,
        PositionCreate(symbol="SOL", quantity=Decimal("10"), purchase_price=Decimal("100")),
    )
    await portfolio.buy(
        user.id,
        PositionCreate(symbol="SOL", quantity=Decimal("1"), purchase_price=Decimal("100")),
    )
    await portfolio.sell(bought.id, user.id, Decimal("90"))

    trades = await portfolio.history(user.id, limit=10)

    statuses = {t.id: t.status for t in trades}
    assert statuses[bought.id] == "sold"
    assert sorted(statuses.values()) == ["active", "sold"]
    sold = next(t for t in trades if t.id == bought.id)
    assert sold.realized_pnl == Decimal("-100")
