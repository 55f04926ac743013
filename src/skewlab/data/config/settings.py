"""
Generator and database configuration.

GeneratorConfig is the immutable set of scale and skew parameters passed into
every generation phase. load_settings() reads config/skewlab.yaml, overlays the
selected environment and substitutes ${VAR} / ${VAR:-default} placeholders.
"""

import os
import re
from datetime import date
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml
from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from ...exceptions import ConfigurationError
from .distributions import CLIENT_POOL_SIZE, FILING_TYPES, MEGA_CLIENT_SHARES


DEFAULT_CONFIG_PATH = Path(__file__).parents[4] / "config" / "skewlab.yaml"

_ENV_PATTERN = re.compile(r'\$\{([^:}]+)(?::-(.*?))?\}')


class GeneratorConfig(BaseModel):
    """Scale, date window and skew knobs for one generation run."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    entity_count: int = Field(20000, ge=0)
    jurisdiction_count: int = Field(120, ge=0)
    filing_type_count: int = Field(8, ge=0)
    filing_count: int = Field(350000, ge=0)
    invoice_count: int = Field(250000, ge=0)
    payment_count: int = Field(180000, ge=0)

    start_date: date = date(2022, 1, 1)
    end_date: date = date(2026, 12, 31)
    entity_epoch: date = date(2021, 1, 1)

    # None means unseeded (true random offsets, shape-only reproducibility)
    seed: Optional[int] = 42
    batch_size: int = Field(10000, gt=0)

    mega_client_shares: Tuple[float, ...] = MEGA_CLIENT_SHARES
    client_pool_size: int = Field(CLIENT_POOL_SIZE, gt=0)
    filing_hot_share: float = Field(0.7, ge=0.0, le=1.0)
    filing_hot_divisor: int = Field(5, gt=0)
    invoice_hot_share: float = Field(0.6, ge=0.0, le=1.0)
    invoice_hot_divisor: int = Field(6, gt=0)

    @field_validator("mega_client_shares")
    @classmethod
    def _check_mega_shares(cls, shares: Tuple[float, ...]) -> Tuple[float, ...]:
        if any(share < 0 for share in shares):
            raise ValueError("mega client shares must be non-negative")
        if sum(shares) > 1.0:
            raise ValueError("mega client shares must not exceed 1.0 in total")
        return shares

    @model_validator(mode="after")
    def _check_consistency(self) -> "GeneratorConfig":
        if self.start_date > self.end_date:
            raise ValueError(
                f"start_date {self.start_date} is after end_date {self.end_date}"
            )
        if self.filing_type_count > len(FILING_TYPES):
            raise ValueError(
                f"filing_type_count {self.filing_type_count} exceeds the "
                f"{len(FILING_TYPES)} known filing types"
            )
        if self.filing_count > 0:
            for parent in ("entity_count", "jurisdiction_count", "filing_type_count"):
                if getattr(self, parent) == 0:
                    raise ValueError(f"filing_count > 0 requires {parent} > 0")
        if self.invoice_count > 0 and self.entity_count == 0:
            raise ValueError("invoice_count > 0 requires entity_count > 0")
        if self.payment_count > 0 and self.invoice_count == 0:
            raise ValueError("payment_count > 0 requires invoice_count > 0")
        return self

    @property
    def days_in_window(self) -> int:
        """Number of calendar days in [start_date, end_date], inclusive."""
        return (self.end_date - self.start_date).days + 1

    def with_overrides(self, **overrides: Any) -> "GeneratorConfig":
        """Return a validated copy with some fields replaced."""
        values = self.model_dump()
        values.update({k: v for k, v in overrides.items() if v is not None})
        try:
            return self.__class__(**values)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid generator configuration: {e}") from e

    @classmethod
    def from_settings(cls, settings: Dict[str, Any]) -> "GeneratorConfig":
        """Build from the ``generator`` section of loaded settings."""
        try:
            return cls(**(settings.get("generator") or {}))
        except ValidationError as e:
            raise ConfigurationError(f"Invalid generator configuration: {e}") from e


def load_settings(
    config_path: Optional[str] = None,
    environment: str = "development",
) -> Dict[str, Any]:
    """
    Load and merge configuration.

    Args:
        config_path: Path to a YAML config file. Defaults to $SKEWLAB_CONFIG,
            then config/skewlab.yaml at the project root.
        environment: Name of the overlay under ``environments:``

    Returns:
        Dict with ``generator`` and ``database`` sections
    """
    if config_path is None:
        config_path = os.getenv("SKEWLAB_CONFIG", str(DEFAULT_CONFIG_PATH))

    config_path = Path(config_path)
    if not config_path.exists():
        raise ConfigurationError(f"Config file not found: {config_path}")

    with open(config_path, 'r') as f:
        config = yaml.safe_load(f) or {}

    if environment not in config.get('environments', {}):
        logger.warning(f"No '{environment}' overlay in {config_path}, using base settings")
    env_config = config.get('environments', {}).get(environment, {}) or {}

    merged = {}
    for section in ('generator', 'database'):
        merged[section] = {**(config.get(section) or {}), **(env_config.get(section) or {})}

    return _replace_env_vars(merged)


def _replace_env_vars(config: Any) -> Any:
    """Replace ${VAR} and ${VAR:-default} placeholders with environment variables"""
    if isinstance(config, str):
        return _ENV_PATTERN.sub(lambda m: os.getenv(m.group(1), m.group(2) or ""), config)
    if isinstance(config, dict):
        return {k: _replace_env_vars(v) for k, v in config.items()}
    if isinstance(config, list):
        return [_replace_env_vars(v) for v in config]
    return config
