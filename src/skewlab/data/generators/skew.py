"""
Skew selection functions.

Pure functions mapping a 1-based row index (or a random seed in [0, 100))
to a category or a foreign key. They hold no state, draw no random numbers
and never touch the database, so the distribution logic can be checked on
its own.
"""

from datetime import date
from typing import List, Sequence, Tuple

from ..config.distributions import (
    CLIENT_POOL_SIZE,
    CURRENCY_BUCKETS,
    MEGA_CLIENT_PREFIX,
    MEGA_CLIENT_SHARES,
)

# Shares are compared in basis points to keep the tier edges exact
_BASIS = 10_000


def client_bucket(
    row_index: int,
    total: int,
    mega_shares: Sequence[float] = MEGA_CLIENT_SHARES,
    pool_size: int = CLIENT_POOL_SIZE,
) -> str:
    """
    Assign a client name to an entity row.

    The first rows go to the mega clients by cumulative share (with the
    default shares: first 5% -> Client-MEGA-01, next 4% -> Client-MEGA-02,
    next 3% -> Client-MEGA-03). Every other row lands in the ordinary pool
    by ``row_index mod pool_size``.

    Args:
        row_index: 1-based position of the entity in insert order
        total: Number of entities generated in this run
        mega_shares: Share of ``total`` owned by each mega client
        pool_size: Number of ordinary client identifiers

    Returns:
        Client name, e.g. ``Client-MEGA-02`` or ``Client-0042``
    """
    cumulative = 0
    for tier, share in enumerate(mega_shares, start=1):
        cumulative += round(share * _BASIS)
        if row_index * _BASIS <= total * cumulative:
            return f"{MEGA_CLIENT_PREFIX}{tier:02d}"
    return f"Client-{(row_index % pool_size) + 1:04d}"


def modular_bucket(row_index: int, buckets: List[Tuple[str, int]]) -> str:
    """
    Pick a category by ``row_index mod sum(widths)``.

    Deterministic given the row count: over any run of ``sum(widths)``
    consecutive rows each category appears exactly ``width`` times.
    """
    modulus = sum(width for _, width in buckets)
    slot = row_index % modulus
    for category, width in buckets:
        if slot < width:
            return category
        slot -= width
    raise ValueError(f"empty bucket table: {buckets!r}")


def threshold_bucket(seed: int, thresholds: List[Tuple[int, str]]) -> str:
    """Map a draw in [0, 100) through cumulative upper bounds."""
    for bound, category in thresholds:
        if seed < bound:
            return category
    raise ValueError(f"seed {seed} is outside the threshold table (max {thresholds[-1][0]})")


def hot_key(row_index: int, key_count: int, hot_share: float, hot_divisor: int) -> int:
    """
    Pick a 1-based foreign key with a hot low-valued subrange.

    ``hot_share`` of row indexes (by ``row_index mod 100``) fold into the
    first ``key_count // hot_divisor`` keys; the rest cycle over all keys.
    Results always fall in [1, key_count].
    """
    if key_count <= 0:
        raise ValueError("key_count must be positive")
    hot_range = max(1, key_count // hot_divisor)
    if row_index % 100 < round(hot_share * 100):
        return (row_index % hot_range) + 1
    return (row_index % key_count) + 1


def cyclic_key(row_index: int, key_count: int) -> int:
    """Pick a 1-based foreign key by ``row_index mod key_count``."""
    if key_count <= 0:
        raise ValueError("key_count must be positive")
    return (row_index % key_count) + 1


def currency_for_entity(entity_id: int) -> str:
    """Invoice currency for an entity: 70% INR, 20% USD, 10% GBP by id."""
    return modular_bucket(entity_id, CURRENCY_BUCKETS)


def clamp_date(value: date, start: date, end: date) -> date:
    """Pull a derived date back inside [start, end]."""
    if value < start:
        return start
    if value > end:
        return end
    return value
