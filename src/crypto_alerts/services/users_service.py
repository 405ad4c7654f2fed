"""Contact-address registration for alert owners."""
import logging

from fastapi import HTTPException

from crypto_alerts.db.models import User
from crypto_alerts.db.store import SqlStore
from crypto_alerts.exceptions import PersistenceFailure
from crypto_alerts.providers.core import ErrorMapper
from crypto_alerts.schemas import Watchlist, WatchlistEntry

logger = logging.getLogger(__name__)


class UsersService:
    def __init__(self, store: SqlStore, error_mapper: ErrorMapper | None = None) -> None:
        self._store = store
        self._error_mapper = error_mapper or ErrorMapper()

    async def register(self, email: str) -> User:
        try:
            user = await self._store.create_user(email)
        except ValueError as e:
            raise HTTPException(status_code=409, detail=str(e)) from e
        except PersistenceFailure as e:
            self._error_mapper.raise_http(e)
        logger.info("Registered user %d", user.id)
        return user

    async def get(self, user_id: int) -> User:
        try:
            user = await self._store.get_user(user_id)
        except PersistenceFailure as e:
            self._error_mapper.raise_http(e)
        if user is None:
            raise HTTPException(status_code=404, detail=f"User {user_id} not found")
        return user

    async def delete(self, user_id: int) -> None:
        """Remove a user together with their alerts and positions."""
        try:
            deleted = await self._store.delete_user(user_id)
        except PersistenceFailure as e:
            self._error_mapper.raise_http(e)
        if not deleted:
            raise HTTPException(status_code=404, detail=f"User {user_id} not found")

    async def watchlist(self, user_id: int) -> Watchlist:
        """Persisted prices for every symbol in the user's alerts and portfolio.

        Reads the cache table only; symbols that were never priced are left out.
        """
        try:
            alerts = await self._store.list_user_alerts(user_id)
            positions = await self._store.list_positions(user_id)
            symbols = {a.symbol for a in alerts} | {p.symbol for p in positions}
            entries = await self._store.get_prices(symbols)
        except PersistenceFailure as e:
            self._error_mapper.raise_http(e)
        return Watchlist(
            watchlist={
                symbol: WatchlistEntry(price=entry.price, last_updated=entry.last_updated)
                for symbol, entry in sorted(entries.items())
            }
        )
