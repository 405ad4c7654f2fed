"""Shared utilities for price providers."""
from decimal import Decimal

from crypto_alerts.exceptions import ProviderError
from crypto_alerts.utils import to_decimal


def normalize_provider_id(provider_id: str) -> str:
    """Normalize a CoinGecko id (trimmed, lowercase)."""
    return provider_id.strip().lower()


def provider_decimal(value: object) -> Decimal:
    """Finite Decimal from a provider number.

    Raises:
        ProviderError: the value is not a finite number.
    """
    try:
        number = to_decimal(value)
    except ValueError as exc:
        raise ProviderError(f"Malformed price value {value!r}") from exc
    if not number.is_finite():
        raise ProviderError(f"Malformed price value {value!r}")
    return number


def usd_price(row: object) -> Decimal | None:
    """Positive USD price from a /simple/price row; None if the row has none.

    Raises:
        ProviderError: the `usd` value is present but not a finite number.
    """
    if not isinstance(row, dict):
        return None
    value = row.get("usd")
    if value is None:
        return None
    price = provider_decimal(value)
    return price if price > 0 else None
