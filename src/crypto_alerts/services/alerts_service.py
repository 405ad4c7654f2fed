"""Alert management on top of the price service and the store.

Like the provider-backed services, this layer owns error mapping: pricing and
persistence exceptions become HTTPException through ErrorMapper.
"""
import logging
from decimal import Decimal

from fastapi import HTTPException

from crypto_alerts.alerts import should_trigger
from crypto_alerts.db.models import Alert
from crypto_alerts.db.store import SqlStore
from crypto_alerts.exceptions import (PersistenceFailure, PriceUnavailable,
                                      SymbolNotFound)
from crypto_alerts.pricing import PriceService
from crypto_alerts.providers.core import ErrorMapper
from crypto_alerts.schemas import (AlertCreate, AlertRead, AlertTestResult,
                                   AlertUpdate)

logger = logging.getLogger(__name__)


class AlertsService:
    """Create, list, test, update and delete a user's price alerts."""

    def __init__(
        self,
        store: SqlStore,
        price_service: PriceService,
        error_mapper: ErrorMapper | None = None,
    ) -> None:
        self._store = store
        self._prices = price_service
        self._error_mapper = error_mapper or ErrorMapper()

    async def _current_price(self, symbol: str) -> Decimal:
        try:
            return await self._prices.get_price(symbol)
        except (SymbolNotFound, PriceUnavailable) as e:
            logger.info("Could not price %s for alert validation: %s", symbol, e)
            raise HTTPException(
                status_code=400,
                detail=f"Cryptocurrency {symbol} not found or price could not be fetched.",
            ) from e

    async def create(self, user_id: int, data: AlertCreate) -> AlertRead:
        """Create an alert. Rejects alerts whose condition already holds."""
        current = await self._current_price(data.symbol)
        if should_trigger(data.alert_type, current, data.target_price):
            raise HTTPException(
                status_code=400,
                detail=(
                    f"Current price (${current:.2f}) is already {data.alert_type.value} or equal to "
                    f"target price (${data.target_price}). Alert would trigger immediately."
                ),
            )
        try:
            alert = await self._store.create_alert(
                user_id, data.symbol, data.target_price, data.alert_type
            )
        except PersistenceFailure as e:
            self._error_mapper.raise_http(e)
        logger.info(
            "Created alert %d: %s %s %s",
            alert.id,
            data.symbol,
            data.alert_type.value,
            data.target_price,
        )
        return AlertRead.model_validate(alert)

    async def list_alerts(self, user_id: int) -> list[AlertRead]:
        """Active alerts with the last persisted price for each symbol (no live fetch)."""
        try:
            alerts = await self._store.list_user_alerts(user_id)
        except PersistenceFailure as e:
            self._error_mapper.raise_http(e)
        try:
            cached = await self._store.get_prices(a.symbol for a in alerts)
        except PersistenceFailure as e:
            logger.warning("Could not read cached prices for alert list: %s", e)
            cached = {}

        result = []
        for alert in alerts:
            item = AlertRead.model_validate(alert)
            entry = cached.get(alert.symbol)
            if entry is not None:
                item.current_price = entry.price
                item.last_updated = entry.last_updated
            result.append(item)
        return result

    async def history(self, user_id: int) -> list[AlertRead]:
        try:
            alerts = await self._store.triggered_alerts(user_id)
        except PersistenceFailure as e:
            self._error_mapper.raise_http(e)
        return [AlertRead.model_validate(a) for a in alerts]

    async def test(self, data: AlertCreate) -> AlertTestResult:
        """Report whether an alert with these parameters would trigger now."""
        current = await self._current_price(data.symbol)
        would_trigger = should_trigger(data.alert_type, current, data.target_price)
        if would_trigger:
            message = (
                f"Alert would trigger! {data.symbol} is currently ${current:.2f}, "
                f"which is {data.alert_type.value} ${data.target_price}."
            )
        else:
            opposite = "below" if data.alert_type.value == "above" else "above"
            message = (
                f"Alert would not trigger. {data.symbol} is currently ${current:.2f}, "
                f"which is {opposite} ${data.target_price}."
            )
        return AlertTestResult(
            symbol=data.symbol,
            current_price=current,
            target_price=data.target_price,
            alert_type=data.alert_type,
            would_trigger=would_trigger,
            message=message,
        )

    async def update(self, alert_id: int, user_id: int, data: AlertUpdate) -> AlertRead:
        changes = data.model_dump(exclude_none=True)
        if not changes:
            raise HTTPException(status_code=400, detail="No valid fields provided for update")
        try:
            alert: Alert | None = await self._store.update_alert(alert_id, user_id, **changes)
        except PersistenceFailure as e:
            self._error_mapper.raise_http(e)
        if alert is None:
            raise HTTPException(
                status_code=404, detail="Alert not found or does not belong to user"
            )
        return AlertRead.model_validate(alert)

    async def delete(self, alert_id: int, user_id: int) -> None:
        try:
            deleted = await self._store.delete_alert(alert_id, user_id)
        except PersistenceFailure as e:
            self._error_mapper.raise_http(e)
        if not deleted:
            raise HTTPException(
                status_code=404, detail="Alert not found or does not belong to user"
            )
