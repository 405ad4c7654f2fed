"""Paper-trading portfolio routes."""
from fastapi import APIRouter, Query, status

from crypto_alerts.deps import CurrentUser, PortfolioServiceDep
from crypto_alerts.schemas import (PortfolioView, PositionCreate, PositionRead,
                                   PositionSell, SaleResult, SymbolPerformance,
                                   TradeRecord)

router = APIRouter(prefix="/portfolio", tags=["portfolio"])


@router.get("", response_model=PortfolioView)
async def get_portfolio(user: CurrentUser, portfolio: PortfolioServiceDep) -> PortfolioView:
    """All positions valued at current prices, with portfolio totals."""
    return await portfolio.view(user.id)


@router.post("/buy", response_model=PositionRead, status_code=status.HTTP_201_CREATED)
async def buy(
    body: PositionCreate, user: CurrentUser, portfolio: PortfolioServiceDep
) -> PositionRead:
    return await portfolio.buy(user.id, body)


@router.post("/sell/{position_id}", response_model=SaleResult)
async def sell(
    position_id: int, body: PositionSell, user: CurrentUser, portfolio: PortfolioServiceDep
) -> SaleResult:
    """Close an open position at `sold_price` and report realized P&L."""
    return await portfolio.sell(position_id, user.id, body.sold_price)


@router.get("/performance", response_model=list[SymbolPerformance])
async def performance(
    user: CurrentUser, portfolio: PortfolioServiceDep
) -> list[SymbolPerformance]:
    """Holdings aggregated per symbol and valued at the current price."""
    return await portfolio.performance(user.id)


@router.get("/history", response_model=list[TradeRecord])
async def trade_history(
    user: CurrentUser,
    portfolio: PortfolioServiceDep,
    limit: int = Query(default=50, ge=1, le=100, description="Max trades"),
) -> list[TradeRecord]:
    return await portfolio.history(user.id, limit=limit)


@router.delete("/{position_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_position(
    position_id: int, user: CurrentUser, portfolio: PortfolioServiceDep
) -> None:
    """Delete an open position. Sold positions cannot be deleted."""
    await portfolio.delete(position_id, user.id)
