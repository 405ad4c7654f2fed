"""FastAPI dependency injection: app.state holds singletons; Depends() resolves them.

No external DI container. Lifespan (main.py) creates the store, provider,
pricing core, services and sweep scheduler once and attaches them to
app.state; these getters are used by Depends().
"""
from typing import Annotated

from fastapi import Depends, Header, HTTPException, Request

from crypto_alerts.alerts import SweepScheduler
from crypto_alerts.db.models import User
from crypto_alerts.pricing import PriceService
from crypto_alerts.services import (AlertsService, PortfolioService,
                                    UsersService)


def get_price_service(request: Request) -> PriceService:
    """Resolve the shared PriceService from app.state (created at startup)."""
    return request.app.state.price_service


def get_alerts_service(request: Request) -> AlertsService:
    return request.app.state.alerts_service


def get_portfolio_service(request: Request) -> PortfolioService:
    return request.app.state.portfolio_service


def get_users_service(request: Request) -> UsersService:
    return request.app.state.users_service


def get_sweep_scheduler(request: Request) -> SweepScheduler:
    return request.app.state.sweep_scheduler


async def get_current_user(
    users: Annotated[UsersService, Depends(get_users_service)],
    x_user_id: Annotated[int | None, Header()] = None,
) -> User:
    """Caller identity from the X-User-Id header (no authentication)."""
    if x_user_id is None:
        raise HTTPException(status_code=401, detail="X-User-Id header required")
    return await users.get(x_user_id)


# Type aliases for route injection
PriceServiceDep = Annotated[PriceService, Depends(get_price_service)]
AlertsServiceDep = Annotated[AlertsService, Depends(get_alerts_service)]
PortfolioServiceDep = Annotated[PortfolioService, Depends(get_portfolio_service)]
UsersServiceDep = Annotated[UsersService, Depends(get_users_service)]
SweepSchedulerDep = Annotated[SweepScheduler, Depends(get_sweep_scheduler)]
CurrentUser = Annotated[User, Depends(get_current_user)]
