"""Notifier that only logs; used when no SMTP server is configured."""
import logging
from decimal import Decimal

from crypto_alerts.db.models import AlertType

logger = logging.getLogger(__name__)


class LogNotifier:
    async def send_threshold_alert(
        self,
        email: str,
        symbol: str,
        current_price: Decimal,
        target_price: Decimal,
        alert_type: AlertType,
    ) -> None:
        logger.warning(
            "[ALERT] to=%s %s %s $%s (current $%s)",
            email,
            symbol,
            alert_type.value,
            target_price,
            current_price,
        )
