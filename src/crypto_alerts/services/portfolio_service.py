"""Paper-trading portfolio: positions, valuation and profit/loss."""
import asyncio
import logging
from collections.abc import Iterable
from decimal import ROUND_HALF_UP, Decimal

from fastapi import HTTPException

from crypto_alerts.db.models import Position
from crypto_alerts.db.store import SqlStore
from crypto_alerts.exceptions import (PersistenceFailure, PriceUnavailable,
                                      SymbolNotFound)
from crypto_alerts.pricing import PriceService
from crypto_alerts.providers.core import ErrorMapper
from crypto_alerts.schemas import (PortfolioSummary, PortfolioView,
                                   PositionCreate, PositionRead,
                                   PositionValuation, SaleResult,
                                   SymbolPerformance, TradeRecord)

logger = logging.getLogger(__name__)

_CENT = Decimal("0.01")
_ZERO = Decimal("0")


def percent(part: Decimal, whole: Decimal) -> Decimal:
    """`part` as a percentage of `whole`, rounded to two places (0 when whole is 0)."""
    if not whole:
        return _ZERO
    return (part / whole * 100).quantize(_CENT, rounding=ROUND_HALF_UP)


def value_position(position: Position, current_price: Decimal | None) -> PositionValuation:
    """Current value and P&L for one position.

    Sold positions are valued at their sale price and carry realized P&L only;
    open positions carry unrealized P&L against `current_price`, or None
    fields when no price is available.
    """
    base = PositionRead.model_validate(position).model_dump()
    purchase_value = position.quantity * position.purchase_price

    if position.is_sold and position.sold_price is not None:
        sold_value = position.quantity * position.sold_price
        realized = sold_value - purchase_value
        realized_pct = percent(realized, purchase_value)
        return PositionValuation(
            **base,
            purchase_value=purchase_value,
            current_price=current_price,
            current_value=sold_value,
            unrealized_pnl=_ZERO,
            unrealized_pnl_percent=_ZERO,
            realized_pnl=realized,
            realized_pnl_percent=realized_pct,
            total_pnl=realized,
            total_pnl_percent=realized_pct,
        )

    if current_price is None:
        return PositionValuation(**base, purchase_value=purchase_value, error="Price unavailable")

    current_value = position.quantity * current_price
    unrealized = current_value - purchase_value
    unrealized_pct = percent(unrealized, purchase_value)
    return PositionValuation(
        **base,
        purchase_value=purchase_value,
        current_price=current_price,
        current_value=current_value,
        unrealized_pnl=unrealized,
        unrealized_pnl_percent=unrealized_pct,
        total_pnl=unrealized,
        total_pnl_percent=unrealized_pct,
    )


def summarize(valuations: list[PositionValuation]) -> PortfolioSummary:
    """Portfolio totals; unpriced positions count at their purchase value."""
    invested = sum((v.purchase_value for v in valuations), _ZERO)
    current = sum(
        (v.current_value if v.current_value is not None else v.purchase_value for v in valuations),
        _ZERO,
    )
    pnl = current - invested
    sold = sum(1 for v in valuations if v.is_sold)
    return PortfolioSummary(
        total_invested=invested,
        total_current_value=current,
        total_pnl=pnl,
        total_pnl_percent=percent(pnl, invested),
        total_positions=len(valuations),
        active_positions=len(valuations) - sold,
        sold_positions=sold,
    )


def trade_record(position: Position) -> TradeRecord:
    base = PositionRead.model_validate(position).model_dump()
    purchase_value = position.quantity * position.purchase_price
    realized = _ZERO
    if position.is_sold and position.sold_price is not None:
        realized = position.quantity * position.sold_price - purchase_value
    return TradeRecord(
        **base,
        purchase_value=purchase_value,
        realized_pnl=realized,
        realized_pnl_percent=percent(realized, purchase_value),
        status="sold" if position.is_sold else "active",
    )


class PortfolioService:
    """Buy, sell, value and report on a user's paper positions."""

    def __init__(
        self,
        store: SqlStore,
        price_service: PriceService,
        error_mapper: ErrorMapper | None = None,
    ) -> None:
        self._store = store
        self._prices = price_service
        self._error_mapper = error_mapper or ErrorMapper()

    async def _price_or_none(self, symbol: str) -> Decimal | None:
        try:
            return await self._prices.get_price(symbol)
        except (SymbolNotFound, PriceUnavailable) as e:
            logger.warning("Price for %s unavailable: %s", symbol, e)
            return None

    async def _prices_for(self, symbols: Iterable[str]) -> dict[str, Decimal | None]:
        unique = sorted(set(symbols))
        prices = await asyncio.gather(*(self._price_or_none(s) for s in unique))
        return dict(zip(unique, prices))

    async def _positions(self, user_id: int, limit: int | None = None) -> list[Position]:
        try:
            return await self._store.list_positions(user_id, limit=limit)
        except PersistenceFailure as e:
            self._error_mapper.raise_http(e)

    async def view(self, user_id: int) -> PortfolioView:
        positions = await self._positions(user_id)
        prices = await self._prices_for(p.symbol for p in positions if not p.is_sold)
        valuations = [value_position(p, prices.get(p.symbol)) for p in positions]
        return PortfolioView(positions=valuations, summary=summarize(valuations))

    async def buy(self, user_id: int, data: PositionCreate) -> PositionRead:
        """Record a paper buy after checking the coin can be priced."""
        try:
            await self._prices.get_price(data.symbol)
        except SymbolNotFound as e:
            raise HTTPException(
                status_code=400, detail=f"Cryptocurrency {data.symbol} not found"
            ) from e
        except PriceUnavailable as e:
            self._error_mapper.raise_http(e, symbol=data.symbol)
        try:
            position = await self._store.add_position(
                user_id, data.symbol, data.quantity, data.purchase_price
            )
        except PersistenceFailure as e:
            self._error_mapper.raise_http(e)
        logger.info(
            "Position %d opened: %s x %s @ %s",
            position.id,
            data.symbol,
            data.quantity,
            data.purchase_price,
        )
        return PositionRead.model_validate(position)

    async def sell(self, position_id: int, user_id: int, sold_price: Decimal) -> SaleResult:
        try:
            position = await self._store.sell_position(position_id, user_id, sold_price)
        except PersistenceFailure as e:
            self._error_mapper.raise_http(e)
        if position is None:
            raise HTTPException(status_code=404, detail="Position not found or already sold")

        purchase_value = position.quantity * position.purchase_price
        sold_value = position.quantity * sold_price
        realized = sold_value - purchase_value
        return SaleResult(
            position_id=position.id,
            symbol=position.symbol,
            quantity=position.quantity,
            purchase_price=position.purchase_price,
            sold_price=sold_price,
            purchase_value=purchase_value,
            sold_value=sold_value,
            realized_pnl=realized,
            realized_pnl_percent=percent(realized, purchase_value),
            sold_date=position.sold_date,
        )

    async def performance(self, user_id: int) -> list[SymbolPerformance]:
        """Aggregate holdings per symbol and value them at the current price."""
        positions = await self._positions(user_id)
        totals: dict[str, tuple[Decimal, Decimal]] = {}
        for p in positions:
            quantity, invested = totals.get(p.symbol, (_ZERO, _ZERO))
            totals[p.symbol] = (quantity + p.quantity, invested + p.quantity * p.purchase_price)

        prices = await self._prices_for(totals)
        result = []
        for symbol, (quantity, invested) in totals.items():
            perf = SymbolPerformance(
                symbol=symbol,
                total_quantity=quantity,
                total_invested=invested,
                average_purchase_price=invested / quantity,
            )
            price = prices.get(symbol)
            if price is None:
                perf.error = "Price unavailable"
            else:
                perf.current_price = price
                perf.current_value = quantity * price
                perf.total_pnl = perf.current_value - invested
                perf.total_pnl_percent = percent(perf.total_pnl, invested)
            result.append(perf)
        return result

    async def history(self, user_id: int, limit: int = 50) -> list[TradeRecord]:
        positions = await self._positions(user_id, limit=limit)
        return [trade_record(p) for p in positions]

    async def delete(self, position_id: int, user_id: int) -> None:
        """Delete an open position. Sold positions are trade history and stay."""
        try:
            position = await self._store.get_position(position_id, user_id)
            if position is None:
                raise HTTPException(status_code=404, detail="Position not found")
            if position.is_sold:
                raise HTTPException(
                    status_code=400,
                    detail="Cannot delete sold positions. They are part of your trading history.",
                )
            await self._store.delete_position(position_id, user_id)
        except PersistenceFailure as e:
            self._error_mapper.raise_http(e)
