"""
Data Loaders for the compliance filings lab.

Provides the relational schema and the loader that writes generated
datasets into PostgreSQL or SQLite.
"""

from .schema import TABLES, INDEX_SPECS, lab_indexes, metadata
from .sql_loader import SkewedDatasetLoader

__all__ = ["TABLES", "INDEX_SPECS", "lab_indexes", "metadata", "SkewedDatasetLoader"]
