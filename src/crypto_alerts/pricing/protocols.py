"""Protocols for the persistent price tier."""
from collections.abc import Iterable
from decimal import Decimal
from typing import Protocol

from crypto_alerts.db.models import PriceEntry


class PriceStore(Protocol):
    """Persistent cache tier. Implementations raise PersistenceFailure on I/O errors."""

    async def get_price(self, symbol: str) -> PriceEntry | None: ...

    async def get_prices(self, symbols: Iterable[str]) -> dict[str, PriceEntry]: ...

    async def upsert_price(self, symbol: str, price: Decimal) -> None: ...
