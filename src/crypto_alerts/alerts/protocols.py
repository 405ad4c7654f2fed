"""Protocols for the sweep's collaborators (store and notification dispatch)."""
from decimal import Decimal
from typing import Protocol

from crypto_alerts.db.models import AlertType
from crypto_alerts.schemas import ActiveAlert


class AlertStore(Protocol):
    """Alert side of the persistent store. Raises PersistenceFailure on I/O errors."""

    async def get_all_active_alerts(self) -> list[ActiveAlert]: ...

    async def deactivate_alert(self, alert_id: int) -> bool: ...


class Notifier(Protocol):
    """Delivers a triggered-alert notification to one recipient."""

    async def send_threshold_alert(
        self,
        email: str,
        symbol: str,
        current_price: Decimal,
        target_price: Decimal,
        alert_type: AlertType,
    ) -> None: ...
