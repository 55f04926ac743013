"""
Distribution profiling for generated datasets.

Computes the same shares the lab's demo queries rely on (status mix,
mega-client concentration, country split, hot entity share) directly from
generated rows, without a database.
"""

from collections import Counter
from typing import Any, Dict, Iterable, List, Optional

from ..config.distributions import MEGA_CLIENT_PREFIX

# (table, column) pairs profiled by profile_dataset()
PROFILED_COLUMNS = [
    ("entities", "country_code"),
    ("entities", "risk_tier"),
    ("jurisdictions", "country_code"),
    ("compliance_filings", "filing_status"),
    ("invoices", "invoice_status"),
    ("invoices", "currency_code"),
    ("invoice_payments", "payment_method"),
]


def column_distribution(rows: Iterable[Dict[str, Any]], column: str) -> Dict[str, Any]:
    """
    Count the values of one column.

    Returns:
        Dict with ``total``, ``counts`` and ``pct`` (percent, 2 decimals)
    """
    counts = Counter(row[column] for row in rows)
    total = sum(counts.values())
    return {
        "total": total,
        "counts": dict(counts),
        "pct": {
            str(value): round(count / total * 100, 2)
            for value, count in counts.items()
        } if total else {},
    }


def share_of(rows: List[Dict[str, Any]], column: str, value: Any) -> float:
    """Fraction of rows whose column equals value (0.0 for no rows)."""
    if not rows:
        return 0.0
    return sum(1 for row in rows if row[column] == value) / len(rows)


def client_concentration(entities: List[Dict[str, Any]]) -> Dict[str, Any]:
    """Summarise mega-client share and the largest ordinary client."""
    counts = Counter(e["client_name"] for e in entities)
    mega = {name: c for name, c in counts.items() if name.startswith(MEGA_CLIENT_PREFIX)}
    pool = {name: c for name, c in counts.items() if not name.startswith(MEGA_CLIENT_PREFIX)}
    total = len(entities)

    return {
        "mega_clients": mega,
        "mega_share": round(sum(mega.values()) / total, 4) if total else 0.0,
        "pool_clients": len(pool),
        "pool_rows": sum(pool.values()),
        "max_pool_client_rows": max(pool.values()) if pool else 0,
    }


def hot_key_share(rows: List[Dict[str, Any]], column: str, hot_limit: int) -> float:
    """Fraction of rows whose foreign key falls in [1, hot_limit]."""
    if not rows:
        return 0.0
    return sum(1 for row in rows if row[column] <= hot_limit) / len(rows)


def profile_dataset(dataset: Dict[str, Any], hot_limit: Optional[int] = None) -> Dict[str, Any]:
    """
    Profile a generated dataset.

    Args:
        dataset: Dict keyed by table name (see SkewedDatasetGenerator)
        hot_limit: Upper entity id of the hot subrange; defaults to a fifth
            of the entity count

    Returns:
        Row counts, per-column distributions, client concentration and hot
        entity share of filings
    """
    stats: Dict[str, Any] = {"row_counts": {}, "distributions": {}}

    for table, rows in dataset.items():
        if isinstance(rows, list):
            stats["row_counts"][table] = len(rows)

    for table, column in PROFILED_COLUMNS:
        rows = dataset.get(table)
        if rows:
            stats["distributions"][f"{table}.{column}"] = column_distribution(rows, column)

    entities = dataset.get("entities") or []
    stats["clients"] = client_concentration(entities)

    filings = dataset.get("compliance_filings") or []
    if hot_limit is None:
        hot_limit = max(1, len(entities) // 5)
    stats["hot_entity_share"] = round(hot_key_share(filings, "entity_id", hot_limit), 4)

    return stats
