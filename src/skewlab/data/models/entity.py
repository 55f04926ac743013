"""
Master data models: entities, jurisdictions and filing types.

Values are kept as native Python types (date, datetime, bool) so rows can be
bulk-inserted as-is; exporters handle string formatting.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict
from enum import Enum

from ..config.distributions import MEGA_CLIENT_PREFIX


class FilingFrequency(str, Enum):
    """How often a filing type recurs."""
    MONTHLY = "Monthly"
    QUARTERLY = "Quarterly"
    ANNUAL = "Annual"
    ADHOC = "Adhoc"


@dataclass
class Entity:
    """
    A legal entity managed on behalf of a client.

    client_name is deliberately skewed: the first rows belong to a handful of
    mega clients, the rest are spread over a fixed client pool.
    """

    entity_id: int
    client_name: str
    entity_name: str
    country_code: str
    risk_tier: int  # 1..5
    created_at: datetime
    is_active: bool = True

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "entity_id": self.entity_id,
            "client_name": self.client_name,
            "entity_name": self.entity_name,
            "country_code": self.country_code,
            "risk_tier": self.risk_tier,
            "created_at": self.created_at,
            "is_active": self.is_active,
        }

    @property
    def is_mega_client(self) -> bool:
        return self.client_name.startswith(MEGA_CLIENT_PREFIX)


@dataclass
class Jurisdiction:
    """A filing jurisdiction."""
    jurisdiction_id: int
    country_code: str
    jurisdiction_name: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "jurisdiction_id": self.jurisdiction_id,
            "country_code": self.country_code,
            "jurisdiction_name": self.jurisdiction_name,
        }


@dataclass
class FilingType:
    """A kind of compliance filing (GST Return, TDS Return, ...)."""
    filing_type_id: int
    filing_type: str
    frequency: FilingFrequency

    def to_dict(self) -> Dict[str, Any]:
        return {
            "filing_type_id": self.filing_type_id,
            "filing_type": self.filing_type,
            "frequency": self.frequency.value if isinstance(self.frequency, Enum) else self.frequency,
        }
