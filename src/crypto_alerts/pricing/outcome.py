"""Tagged result of one live fetch attempt."""
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum


class FetchStatus(Enum):
    SUCCESS = "success"
    NOT_FOUND = "not_found"
    THROTTLED = "throttled"
    ERROR = "error"


@dataclass(frozen=True)
class FetchResult:
    """Outcome of a live fetch; the status alone decides the fallback path."""

    status: FetchStatus
    price: Decimal | None = None
    provider_id: str | None = None
    error: Exception | None = None

    @classmethod
    def success(cls, price: Decimal, provider_id: str) -> "FetchResult":
        return cls(FetchStatus.SUCCESS, price=price, provider_id=provider_id)

    @classmethod
    def not_found(cls, error: Exception) -> "FetchResult":
        return cls(FetchStatus.NOT_FOUND, error=error)

    @classmethod
    def throttled(cls, error: Exception) -> "FetchResult":
        return cls(FetchStatus.THROTTLED, error=error)

    @classmethod
    def failed(cls, error: Exception) -> "FetchResult":
        return cls(FetchStatus.ERROR, error=error)
