"""
SkewLab - Skewed Compliance Dataset Generator for Database Performance Labs.

Generates a multi-table compliance filings dataset (entities, jurisdictions,
filing types, filings, invoices, payments) with deliberate skew: mega
clients, hot statuses, hot join keys. Loaded into PostgreSQL or SQLite, it
reliably reproduces parameter sniffing, scan vs seek, stale statistics and
memory spill behaviour for instructor-led labs.
"""

__version__ = "0.1.0"
