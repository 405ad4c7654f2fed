"""Service layer: alert, portfolio and user operations with exception-to-HTTP mapping."""
from crypto_alerts.services.alerts_service import AlertsService
from crypto_alerts.services.portfolio_service import PortfolioService
from crypto_alerts.services.users_service import UsersService

__all__ = [
    "AlertsService",
    "PortfolioService",
    "UsersService",
]
