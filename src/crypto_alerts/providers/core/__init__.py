"""Core provider abstractions."""
from crypto_alerts.providers.core.error_mapper import ErrorMapper
from crypto_alerts.providers.core.price_provider_abc import PriceProviderABC
from crypto_alerts.providers.core.utils import (normalize_provider_id,
                                               provider_decimal, usd_price)

__all__ = [
    "ErrorMapper",
    "PriceProviderABC",
    "normalize_provider_id",
    "provider_decimal",
    "usd_price",
]
