"""
Synthetic data generators for the compliance filings performance labs.

This package contains all generation logic, keeping it separate from data models.
"""

from .skew import (
    client_bucket,
    modular_bucket,
    threshold_bucket,
    hot_key,
    cyclic_key,
    currency_for_entity,
    clamp_date,
)
from .profiler import profile_dataset, column_distribution, share_of
from .dataset_generator import SkewedDatasetGenerator, TABLE_ORDER

__all__ = [
    "client_bucket",
    "modular_bucket",
    "threshold_bucket",
    "hot_key",
    "cyclic_key",
    "currency_for_entity",
    "clamp_date",
    "profile_dataset",
    "column_distribution",
    "share_of",
    "SkewedDatasetGenerator",
    "TABLE_ORDER",
]
