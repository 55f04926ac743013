"""
Compliance filing model.
"""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Optional, Dict, Any
from enum import Enum


class FilingStatus(str, Enum):
    """Filing lifecycle status."""
    PENDING = "Pending"
    FILED = "Filed"
    OVERDUE = "Overdue"
    REJECTED = "Rejected"
    CANCELLED = "Cancelled"


# Statuses for which a filing was actually lodged (filed_date is set)
LODGED_STATUSES = frozenset({FilingStatus.FILED, FilingStatus.REJECTED, FilingStatus.CANCELLED})


@dataclass
class ComplianceFiling:
    """
    A single compliance filing obligation.

    filing_id is None for rows whose key is assigned by the database
    (drift batches inserted after the initial load).
    """

    filing_id: Optional[int]
    entity_id: int
    jurisdiction_id: int
    filing_type_id: int
    due_date: date
    filing_status: FilingStatus
    penalty_amount: Decimal
    last_updated_at: datetime
    filed_date: Optional[date] = None
    notes: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        row = {
            "entity_id": self.entity_id,
            "jurisdiction_id": self.jurisdiction_id,
            "filing_type_id": self.filing_type_id,
            "due_date": self.due_date,
            "filed_date": self.filed_date,
            "filing_status": self.filing_status.value if isinstance(self.filing_status, Enum) else self.filing_status,
            "penalty_amount": self.penalty_amount,
            "last_updated_at": self.last_updated_at,
            "notes": self.notes,
        }
        if self.filing_id is not None:
            row["filing_id"] = self.filing_id
        return row

    @property
    def is_lodged(self) -> bool:
        return self.filing_status in LODGED_STATUSES
