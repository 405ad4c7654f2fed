"""One pass over every active alert: group, price, evaluate, notify, deactivate."""
import asyncio
import logging
from collections.abc import Awaitable, Callable
from decimal import Decimal

from crypto_alerts.alerts.protocols import AlertStore, Notifier
from crypto_alerts.alerts.rules import should_trigger
from crypto_alerts.pricing import PriceService
from crypto_alerts.schemas import ActiveAlert, SweepReport
from crypto_alerts.utils import utcnow

logger = logging.getLogger(__name__)


def group_by_symbol(alerts: list[ActiveAlert]) -> dict[str, list[ActiveAlert]]:
    """Partition alerts by symbol, preserving first-seen order."""
    groups: dict[str, list[ActiveAlert]] = {}
    for alert in alerts:
        groups.setdefault(alert.symbol, []).append(alert)
    return groups


class AlertSweep:
    """Checks all active alerts against current prices.

    Symbol groups are processed one after another so the sweep stays inside
    the shared provider budget. Symbols priced by the batch call cost nothing
    extra; every other symbol goes through the tiered fetch and is followed by
    `individual_fetch_delay` seconds of sleep.
    """

    def __init__(
        self,
        store: AlertStore,
        price_service: PriceService,
        notifier: Notifier,
        *,
        individual_fetch_delay: float = 2.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._store = store
        self._prices = price_service
        self._notifier = notifier
        self._delay = individual_fetch_delay
        self._sleep = sleep

    async def run_once(self) -> SweepReport:
        """Run a full sweep. Only a failure to load the alert list escapes."""
        report = SweepReport()
        alerts = await self._store.get_all_active_alerts()
        report.alerts_checked = len(alerts)
        if not alerts:
            logger.debug("No active alerts to check")
            report.finished_at = utcnow()
            return report

        groups = group_by_symbol(alerts)
        report.symbols_checked = len(groups)
        logger.info("Checking %d alerts across %d symbols", len(alerts), len(groups))

        try:
            batch = await self._prices.get_batch_prices(groups.keys())
        except Exception:  # pylint: disable=broad-except
            logger.exception("Batch price fetch failed; pricing each symbol individually")
            batch = {}
        report.batch_hits = len(batch)

        for symbol, group in groups.items():
            try:
                price = await self._resolve_price(symbol, batch)
                await self._evaluate_group(symbol, price, group, report)
            except Exception:  # pylint: disable=broad-except
                logger.exception("Error checking alerts for %s", symbol)
                report.skipped_symbols.append(symbol)

        report.finished_at = utcnow()
        logger.info(
            "Alert sweep finished: %d triggered, %d symbols skipped",
            report.triggered,
            len(report.skipped_symbols),
        )
        return report

    async def _resolve_price(self, symbol: str, batch: dict[str, Decimal]) -> Decimal:
        price = batch.get(symbol)
        if price is not None:
            await self._prices.persist_price(symbol, price)
            return price
        try:
            quote = await self._prices.get_quote(symbol)
        finally:
            await self._sleep(self._delay)
        logger.debug("%s: $%s (%s)", symbol, quote.price, quote.source.value)
        return quote.price

    async def _evaluate_group(
        self,
        symbol: str,
        price: Decimal,
        group: list[ActiveAlert],
        report: SweepReport,
    ) -> None:
        for alert in group:
            if not should_trigger(alert.alert_type, price, alert.target_price):
                continue
            logger.info(
                "Alert %d triggered for %s: %s %s $%s (now $%s)",
                alert.id,
                alert.email,
                symbol,
                alert.alert_type.value,
                alert.target_price,
                price,
            )
            report.triggered += 1
            try:
                await self._notifier.send_threshold_alert(
                    alert.email, symbol, price, alert.target_price, alert.alert_type
                )
            except Exception:  # pylint: disable=broad-except
                logger.exception("Notification for alert %d failed", alert.id)
                report.notification_failures += 1
            try:
                await self._store.deactivate_alert(alert.id)
            except Exception:  # pylint: disable=broad-except
                logger.exception("Deactivating alert %d failed", alert.id)
                report.deactivation_failures += 1
