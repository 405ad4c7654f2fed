"""Shared utilities for the crypto alerts service."""
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation


def utcnow() -> datetime:
    """Timezone-aware UTC now. Every stored and compared timestamp is aware."""
    return datetime.now(timezone.utc)


def normalize_symbol(symbol: str) -> str:
    """Normalize a ticker symbol (trimmed, uppercase)."""
    return symbol.strip().upper()


def to_decimal(value: object) -> Decimal:
    """Convert a provider number to Decimal without float artefacts."""
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError) as exc:
        raise ValueError(f"Not a numeric price: {value!r}") from exc
