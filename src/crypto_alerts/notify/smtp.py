"""SMTP email notifier for triggered price alerts."""
import asyncio
import logging
import smtplib
from dataclasses import dataclass
from decimal import Decimal
from email.message import EmailMessage

from crypto_alerts.db.models import AlertType
from crypto_alerts.utils import utcnow

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SmtpConfig:
    host: str
    port: int = 587
    username: str | None = None
    password: str | None = None
    use_tls: bool = True
    from_address: str = "alerts@pricetracker.local"
    timeout_s: float = 15.0


def format_price(value: Decimal) -> str:
    return f"{value:,.2f}"


def build_alert_message(
    from_address: str,
    email: str,
    symbol: str,
    current_price: Decimal,
    target_price: Decimal,
    alert_type: AlertType,
) -> EmailMessage:
    """Plain text + HTML alert message."""
    direction = alert_type.value
    sent_at = utcnow().strftime("%Y-%m-%d %H:%M:%S UTC")

    msg = EmailMessage()
    msg["Subject"] = f"Price Alert: {symbol} {direction} ${target_price}"
    msg["From"] = from_address
    msg["To"] = email
    msg.set_content(
        f"Price alert triggered!\n\n"
        f"{symbol} has reached your target price.\n\n"
        f"Current price: ${format_price(current_price)}\n"
        f"Target price: ${target_price}\n"
        f"Alert type: {direction}\n"
        f"Time: {sent_at}\n\n"
        f"This is an automated alert from your price alert service.\n"
    )
    msg.add_alternative(
        f"""\
<h2>Price Alert Triggered!</h2>
<p><strong>{symbol}</strong> has reached your target price.</p>
<ul>
  <li>Current Price: <strong>${format_price(current_price)}</strong></li>
  <li>Target Price: <strong>${target_price}</strong></li>
  <li>Alert Type: <strong>{direction}</strong></li>
  <li>Time: <strong>{sent_at}</strong></li>
</ul>
<p>This is an automated alert from your price alert service.</p>
""",
        subtype="html",
    )
    return msg


class EmailNotifier:
    """Sends alert emails over SMTP.

    smtplib is blocking, so each delivery runs in a worker thread. Delivery
    errors propagate to the caller (the sweep logs and counts them).
    """

    def __init__(self, config: SmtpConfig) -> None:
        self._config = config

    async def send_threshold_alert(
        self,
        email: str,
        symbol: str,
        current_price: Decimal,
        target_price: Decimal,
        alert_type: AlertType,
    ) -> None:
        msg = build_alert_message(
            self._config.from_address, email, symbol, current_price, target_price, alert_type
        )
        await asyncio.to_thread(self._deliver, msg)
        logger.info("Alert email for %s sent to %s", symbol, email)

    def _deliver(self, msg: EmailMessage) -> None:
        cfg = self._config
        with smtplib.SMTP(cfg.host, cfg.port, timeout=cfg.timeout_s) as smtp:
            if cfg.use_tls:
                smtp.starttls()
            if cfg.username:
                smtp.login(cfg.username, cfg.password or "")
            smtp.send_message(msg)
