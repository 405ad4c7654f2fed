"""Database package: models, session management and the SQL-backed store."""
from crypto_alerts.db.models import Alert, AlertType, Position, PriceEntry, User

__all__ = ["Alert", "AlertType", "Position", "PriceEntry", "User"]
