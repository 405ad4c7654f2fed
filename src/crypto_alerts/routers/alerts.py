"""Price alert routes. Callers identify themselves with the X-User-Id header."""
import logging

from fastapi import APIRouter, status

from crypto_alerts.deps import AlertsServiceDep, CurrentUser, SweepSchedulerDep
from crypto_alerts.schemas import (AlertCreate, AlertRead, AlertTestResult,
                                   AlertUpdate, SweepReport)

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/alerts", tags=["alerts"])


@router.get("", response_model=list[AlertRead])
async def list_alerts(user: CurrentUser, alerts: AlertsServiceDep) -> list[AlertRead]:
    """Active alerts with the last cached price for each symbol."""
    return await alerts.list_alerts(user.id)


@router.post("", response_model=AlertRead, status_code=status.HTTP_201_CREATED)
async def create_alert(
    body: AlertCreate, user: CurrentUser, alerts: AlertsServiceDep
) -> AlertRead:
    """Create an alert. Returns 400 when the current price already satisfies it."""
    return await alerts.create(user.id, body)


@router.get("/history", response_model=list[AlertRead])
async def alert_history(user: CurrentUser, alerts: AlertsServiceDep) -> list[AlertRead]:
    """Alerts that have been triggered, most recent first."""
    return await alerts.history(user.id)


@router.post("/test", response_model=AlertTestResult)
async def test_alert(
    body: AlertCreate, user: CurrentUser, alerts: AlertsServiceDep
) -> AlertTestResult:
    """Check whether an alert would trigger at the current price (nothing is stored)."""
    return await alerts.test(body)


@router.post("/sweep", response_model=SweepReport)
async def run_sweep(scheduler: SweepSchedulerDep) -> SweepReport:
    """Run one alert sweep now. Skipped if a sweep is already in progress."""
    return await scheduler.trigger_now()


@router.put("/{alert_id}", response_model=AlertRead)
async def update_alert(
    alert_id: int, body: AlertUpdate, user: CurrentUser, alerts: AlertsServiceDep
) -> AlertRead:
    return await alerts.update(alert_id, user.id, body)


@router.delete("/{alert_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_alert(alert_id: int, user: CurrentUser, alerts: AlertsServiceDep) -> None:
    await alerts.delete(alert_id, user.id)
