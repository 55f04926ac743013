"""Configuration modules for skewed dataset generation."""

from .distributions import (
    ENTITY_COUNTRY_BUCKETS,
    JURISDICTION_COUNTRY_BUCKETS,
    CURRENCY_BUCKETS,
    FILING_STATUS_THRESHOLDS,
    INVOICE_STATUS_THRESHOLDS,
    PAYMENT_METHOD_THRESHOLDS,
    FILING_TYPES,
)
from .settings import GeneratorConfig, load_settings

__all__ = [
    "ENTITY_COUNTRY_BUCKETS",
    "JURISDICTION_COUNTRY_BUCKETS",
    "CURRENCY_BUCKETS",
    "FILING_STATUS_THRESHOLDS",
    "INVOICE_STATUS_THRESHOLDS",
    "PAYMENT_METHOD_THRESHOLDS",
    "FILING_TYPES",
    "GeneratorConfig",
    "load_settings",
]
