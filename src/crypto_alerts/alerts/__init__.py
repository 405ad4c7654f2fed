"""Alert evaluation and the periodic sweep."""
from crypto_alerts.alerts.protocols import AlertStore, Notifier
from crypto_alerts.alerts.rules import should_trigger
from crypto_alerts.alerts.scheduler import SweepScheduler
from crypto_alerts.alerts.sweep import AlertSweep, group_by_symbol

__all__ = [
    "AlertStore",
    "AlertSweep",
    "Notifier",
    "SweepScheduler",
    "group_by_symbol",
    "should_trigger",
]
