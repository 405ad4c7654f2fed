"""Threshold evaluation shared by the sweep, alert creation and alert tests."""
from decimal import Decimal

from crypto_alerts.db.models import AlertType


def should_trigger(alert_type: AlertType, price: Decimal, target: Decimal) -> bool:
    """True when `price` has reached `target` in the alert's direction (inclusive)."""
    if alert_type is AlertType.ABOVE:
        return price >= target
    return price <= target
