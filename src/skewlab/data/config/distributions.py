"""
Skew distributions for synthetic compliance data.

Bucket tables are expressed as (category, width) pairs over a fixed modulus
for row-index driven columns, and as (upper_bound, category) cumulative
thresholds over [0, 100) for randomly drawn columns.
"""

from typing import Dict, List, Tuple


# Entity country skew over n % 10 (60/20/10/10)
ENTITY_COUNTRY_BUCKETS: List[Tuple[str, int]] = [
    ("IN", 6),
    ("US", 2),
    ("GB", 1),
    ("SG", 1),
]

# Jurisdiction country skew over n % 10 (40/20/10/10/10/10)
JURISDICTION_COUNTRY_BUCKETS: List[Tuple[str, int]] = [
    ("IN", 4),
    ("US", 2),
    ("GB", 1),
    ("SG", 1),
    ("AE", 1),
    ("AU", 1),
]

# Invoice currency by entity_id % 10 (70/20/10)
CURRENCY_BUCKETS: List[Tuple[str, int]] = [
    ("INR", 7),
    ("USD", 2),
    ("GBP", 1),
]

# Mega clients take the first rows in insert order: Client-MEGA-01, -02, -03
MEGA_CLIENT_PREFIX = "Client-MEGA-"
MEGA_CLIENT_SHARES: Tuple[float, ...] = (0.05, 0.04, 0.03)

CLIENT_POOL_SIZE = 500

FILING_STATUS_THRESHOLDS: List[Tuple[int, str]] = [
    (60, "Pending"),
    (90, "Filed"),
    (96, "Overdue"),
    (99, "Rejected"),
    (100, "Cancelled"),
]

INVOICE_STATUS_THRESHOLDS: List[Tuple[int, str]] = [
    (55, "Open"),
    (80, "Paid"),
    (92, "Partial"),
    (97, "Disputed"),
    (100, "WrittenOff"),
]

PAYMENT_METHOD_THRESHOLDS: List[Tuple[int, str]] = [
    (40, "NEFT"),
    (55, "UPI"),
    (70, "RTGS"),
    (85, "Card"),
    (100, "Cheque"),
]

# Fixed filing type lookup: label -> frequency category
FILING_TYPES: List[Tuple[str, str]] = [
    ("GST Return", "Monthly"),
    ("TDS Return", "Quarterly"),
    ("PF Return", "Monthly"),
    ("ESIC Return", "Monthly"),
    ("ROC Annual Filing", "Annual"),
    ("Trade License Renewal", "Annual"),
    ("Professional Tax", "Quarterly"),
    ("Adhoc Compliance", "Adhoc"),
]

# Lookback window (days) for how far before its due date a filing was lodged
FILED_OFFSET_DAYS: Dict[str, int] = {
    "Filed": 30,
    "Rejected": 10,
    "Cancelled": 10,
}

# Raw draw bounds, divided by 10 to get two-decimal money amounts
PENALTY_DRAW_BOUND = 50_000
INVOICE_AMOUNT_DRAW_BOUND = 2_000_000
PAYMENT_AMOUNT_DRAW_BOUND = 1_500_000

INVOICE_TERMS_MIN_DAYS = 30
INVOICE_TERMS_SPREAD_DAYS = 45
PAYMENT_LOOKBACK_DAYS = 60

ENTITY_CREATED_SPREAD_DAYS = 1460
INACTIVE_EVERY_N = 20
RISK_TIERS = 5


def expected_shares(thresholds: List[Tuple[int, str]]) -> Dict[str, float]:
    """Get the long-run share of each category in a threshold table."""
    shares = {}
    previous = 0
    for bound, category in thresholds:
        shares[category] = (bound - previous) / 100
        previous = bound
    return shares


def bucket_shares(buckets: List[Tuple[str, int]]) -> Dict[str, float]:
    """Get the exact share of each category in a modular bucket table."""
    modulus = sum(width for _, width in buckets)
    return {category: width / modulus for category, width in buckets}
