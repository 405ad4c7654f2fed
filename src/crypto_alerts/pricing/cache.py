"""In-process price cache tier."""
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal

from crypto_alerts.utils import normalize_symbol


@dataclass(frozen=True)
class CacheEntry:
    symbol: str
    price: Decimal
    fetched_at: datetime

    def age(self, now: datetime) -> timedelta:
        return now - self.fetched_at


class MemoryPriceCache:
    """Volatile symbol -> last fetched price map; lost on restart.

    One entry per symbol, last write wins. No lock: concurrent writers at
    worst overwrite each other with equally fresh prices.
    """

    def __init__(self) -> None:
        self._entries: dict[str, CacheEntry] = {}

    def get(self, symbol: str) -> CacheEntry | None:
        return self._entries.get(normalize_symbol(symbol))

    def set(self, symbol: str, price: Decimal, fetched_at: datetime) -> CacheEntry:
        key = normalize_symbol(symbol)
        entry = CacheEntry(symbol=key, price=price, fetched_at=fetched_at)
        self._entries[key] = entry
        return entry

    def entries(self) -> list[CacheEntry]:
        return list(self._entries.values())

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, symbol: object) -> bool:
        return isinstance(symbol, str) and normalize_symbol(symbol) in self._entries
