"""SQL-backed store: persistent price tier, alerts, users and paper positions.

SQLModel sessions are synchronous; every public method runs its session work
in a worker thread so the event loop (sweep, route handlers) never blocks on
I/O. SQLAlchemy errors surface as PersistenceFailure.
"""
import asyncio
import logging
from collections.abc import Callable, Iterable
from decimal import Decimal
from typing import TypeVar

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, col, select

from crypto_alerts.db.models import Alert, AlertType, Position, PriceEntry, User
from crypto_alerts.db.sessions import get_session
from crypto_alerts.exceptions import PersistenceFailure
from crypto_alerts.schemas import ActiveAlert
from crypto_alerts.utils import normalize_symbol, utcnow

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SqlStore:
    """Persistent store over a SQLAlchemy engine."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    async def _run(self, work: Callable[[Session], T]) -> T:
        def _in_session() -> T:
            with get_session(self._engine) as session:
                return work(session)

        try:
            return await asyncio.to_thread(_in_session)
        except SQLAlchemyError as exc:
            raise PersistenceFailure(str(exc)) from exc

    # ---- Price cache tier ----
    async def get_price(self, symbol: str) -> PriceEntry | None:
        key = normalize_symbol(symbol)
        return await self._run(lambda s: s.get(PriceEntry, key))

    async def get_prices(self, symbols: Iterable[str]) -> dict[str, PriceEntry]:
        keys = sorted({normalize_symbol(sym) for sym in symbols})
        if not keys:
            return {}

        def work(session: Session) -> dict[str, PriceEntry]:
            rows = session.exec(select(PriceEntry).where(col(PriceEntry.symbol).in_(keys)))
            return {row.symbol: row for row in rows}

        return await self._run(work)

    async def upsert_price(self, symbol: str, price: Decimal) -> None:
        key = normalize_symbol(symbol)

        def work(session: Session) -> None:
            entry = session.get(PriceEntry, key)
            if entry is None:
                entry = PriceEntry(symbol=key, price=price)
            else:
                entry.price = price
            entry.last_updated = utcnow()
            session.add(entry)

        await self._run(work)

    # ---- Sweep contract ----
    async def get_all_active_alerts(self) -> list[ActiveAlert]:
        def work(session: Session) -> list[ActiveAlert]:
            rows = session.exec(
                select(Alert, User.email)
                .join(User, col(Alert.user_id) == col(User.id))
                .where(col(Alert.is_active).is_(True))
                .order_by(col(Alert.id))
            )
            return [
                ActiveAlert(
                    id=alert.id,
                    user_id=alert.user_id,
                    email=email,
                    symbol=alert.symbol,
                    target_price=alert.target_price,
                    alert_type=alert.alert_type,
                )
                for alert, email in rows
            ]

        return await self._run(work)

    async def deactivate_alert(self, alert_id: int) -> bool:
        """Mark an active alert as triggered. False if missing or already inactive."""

        def work(session: Session) -> bool:
            alert = session.get(Alert, alert_id)
            if alert is None or not alert.is_active:
                return False
            alert.is_active = False
            alert.triggered_at = utcnow()
            session.add(alert)
            return True

        return await self._run(work)

    # ---- Users ----
    async def create_user(self, email: str) -> User:
        """Register a contact address. Raises ValueError if it is taken."""
        address = email.strip().lower()

        def work(session: Session) -> User:
            if session.exec(select(User).where(User.email == address)).first():
                raise ValueError(f"Email '{address}' is already registered")
            user = User(email=address)
            session.add(user)
            session.flush()
            session.refresh(user)
            return user

        return await self._run(work)

    async def get_user(self, user_id: int) -> User | None:
        return await self._run(lambda s: s.get(User, user_id))

    async def delete_user(self, user_id: int) -> bool:
        def work(session: Session) -> bool:
            user = session.get(User, user_id)
            if user is None:
                return False
            session.delete(user)
            return True

        return await self._run(work)

    # ---- Alerts ----
    async def create_alert(
        self,
        user_id: int,
        symbol: str,
        target_price: Decimal,
        alert_type: AlertType,
    ) -> Alert:
        def work(session: Session) -> Alert:
            alert = Alert(
                user_id=user_id,
                symbol=normalize_symbol(symbol),
                target_price=target_price,
                alert_type=alert_type,
            )
            session.add(alert)
            session.flush()
            session.refresh(alert)
            return alert

        return await self._run(work)

    async def list_user_alerts(self, user_id: int) -> list[Alert]:
        """Active alerts for a user, newest first."""

        def work(session: Session) -> list[Alert]:
            return list(
                session.exec(
                    select(Alert)
                    .where(Alert.user_id == user_id, col(Alert.is_active).is_(True))
                    .order_by(col(Alert.created_at).desc(), col(Alert.id).desc())
                )
            )

        return await self._run(work)

    async def triggered_alerts(self, user_id: int) -> list[Alert]:
        """Alerts deactivated by a sweep, most recently triggered first."""

        def work(session: Session) -> list[Alert]:
            return list(
                session.exec(
                    select(Alert)
                    .where(
                        Alert.user_id == user_id,
                        col(Alert.triggered_at).is_not(None),
                    )
                    .order_by(col(Alert.triggered_at).desc())
                )
            )

        return await self._run(work)

    async def get_user_alert(self, alert_id: int, user_id: int) -> Alert | None:
        def work(session: Session) -> Alert | None:
            alert = session.get(Alert, alert_id)
            return alert if alert is not None and alert.user_id == user_id else None

        return await self._run(work)

    async def update_alert(
        self,
        alert_id: int,
        user_id: int,
        *,
        target_price: Decimal | None = None,
        alert_type: AlertType | None = None,
        is_active: bool | None = None,
    ) -> Alert | None:
        def work(session: Session) -> Alert | None:
            alert = session.get(Alert, alert_id)
            if alert is None or alert.user_id != user_id:
                return None
            if target_price is not None:
                alert.target_price = target_price
            if alert_type is not None:
                alert.alert_type = alert_type
            if is_active is not None:
                alert.is_active = is_active
                if is_active:
                    alert.triggered_at = None
            session.add(alert)
            return alert

        return await self._run(work)

    async def delete_alert(self, alert_id: int, user_id: int) -> bool:
        def work(session: Session) -> bool:
            alert = session.get(Alert, alert_id)
            if alert is None or alert.user_id != user_id:
                return False
            session.delete(alert)
            return True

        return await self._run(work)

    # ---- Paper positions ----
    async def add_position(
        self,
        user_id: int,
        symbol: str,
        quantity: Decimal,
        purchase_price: Decimal,
    ) -> Position:
        def work(session: Session) -> Position:
            position = Position(
                user_id=user_id,
                symbol=normalize_symbol(symbol),
                quantity=quantity,
                purchase_price=purchase_price,
            )
            session.add(position)
            session.flush()
            session.refresh(position)
            return position

        return await self._run(work)

    async def list_positions(self, user_id: int, limit: int | None = None) -> list[Position]:
        """Positions for a user, newest purchase first."""

        def work(session: Session) -> list[Position]:
            stmt = (
                select(Position)
                .where(Position.user_id == user_id)
                .order_by(col(Position.purchase_date).desc(), col(Position.id).desc())
            )
            if limit is not None:
                stmt = stmt.limit(limit)
            return list(session.exec(stmt))

        return await self._run(work)

    async def get_position(self, position_id: int, user_id: int) -> Position | None:
        def work(session: Session) -> Position | None:
            position = session.get(Position, position_id)
            if position is None or position.user_id != user_id:
                return None
            return position

        return await self._run(work)

    async def sell_position(
        self, position_id: int, user_id: int, sold_price: Decimal
    ) -> Position | None:
        """Mark an open position as sold. None if missing or already sold."""

        def work(session: Session) -> Position | None:
            position = session.get(Position, position_id)
            if position is None or position.user_id != user_id or position.is_sold:
                return None
            position.is_sold = True
            position.sold_price = sold_price
            position.sold_date = utcnow()
            session.add(position)
            return position

        return await self._run(work)

    async def delete_position(self, position_id: int, user_id: int) -> bool:
        def work(session: Session) -> bool:
            position = session.get(Position, position_id)
            if position is None or position.user_id != user_id:
                return False
            session.delete(position)
            return True

        return await self._run(work)
