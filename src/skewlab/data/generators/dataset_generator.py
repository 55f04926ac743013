"""
Skewed Compliance Dataset Generator

Produces the lab dataset in foreign-key dependency order:
- Lookup tables: FilingTypes, Jurisdictions
- Entities (mega-client and country skew)
- ComplianceFilings (status skew, hot entity subrange)
- Invoices / InvoicePayments (AR/AP style skew)

Row-index driven columns (clients, countries, foreign keys) go through the
pure functions in skew.py, so the shape of the data is fixed by the row
counts alone. Random columns (dates, statuses, amounts) are drawn per batch
from a numpy Generator seeded per phase, so each phase is reproducible on
its own when a seed is configured.
"""

import json
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

import numpy as np
import pandas as pd
from loguru import logger

from ...exceptions import ConfigurationError
from ..config.distributions import (
    ENTITY_COUNTRY_BUCKETS,
    ENTITY_CREATED_SPREAD_DAYS,
    FILED_OFFSET_DAYS,
    FILING_STATUS_THRESHOLDS,
    FILING_TYPES,
    INACTIVE_EVERY_N,
    INVOICE_AMOUNT_DRAW_BOUND,
    INVOICE_STATUS_THRESHOLDS,
    INVOICE_TERMS_MIN_DAYS,
    INVOICE_TERMS_SPREAD_DAYS,
    JURISDICTION_COUNTRY_BUCKETS,
    PAYMENT_AMOUNT_DRAW_BOUND,
    PAYMENT_LOOKBACK_DAYS,
    PAYMENT_METHOD_THRESHOLDS,
    PENALTY_DRAW_BOUND,
    RISK_TIERS,
)
from ..config.settings import GeneratorConfig
from ..models import (
    ComplianceFiling,
    Entity,
    FilingFrequency,
    FilingStatus,
    FilingType,
    Invoice,
    InvoicePayment,
    InvoiceStatus,
    Jurisdiction,
    LODGED_STATUSES,
    PaymentMethod,
)
from .profiler import profile_dataset
from .skew import (
    clamp_date,
    client_bucket,
    currency_for_entity,
    cyclic_key,
    hot_key,
    modular_bucket,
    threshold_bucket,
)


# Seed offsets so each phase draws from its own stream
PHASE_SEED_OFFSETS = {
    "filings": 1001,
    "invoices": 2002,
    "payments": 3003,
}

# Upper bound for raw offset draws, reduced modulo the per-status window
_RAW_DRAW_BOUND = 2**31 - 1

_CENTS = Decimal("0.01")

TABLE_ORDER = [
    "filing_types",
    "jurisdictions",
    "entities",
    "compliance_filings",
    "invoices",
    "invoice_payments",
]


def _money(raw: int) -> Decimal:
    """Turn a raw integer draw into a two-decimal amount (raw / 10)."""
    return (Decimal(raw) / 10).quantize(_CENTS)


class SkewedDatasetGenerator:
    """
    Generate the skewed compliance-filings dataset.

    Every ``generate_*`` method returns a list of row dicts keyed by column
    name; the matching ``iter_*_batches`` method streams the same rows in
    lists of at most ``config.batch_size`` for bulk inserts.

    Child phases draw foreign keys from the parent rows this generator last
    produced (``entity_range`` / ``invoice_range``), or from the config
    counts when that parent phase has not run yet.
    """

    def __init__(self, config: Optional[GeneratorConfig] = None):
        self.config = config or GeneratorConfig()
        # Shared last_updated_at/created_at stamp for the whole run
        self.generated_at = datetime.now(timezone.utc).replace(tzinfo=None, microsecond=0)
        # Parent id ranges actually produced; None until that phase runs
        self._entity_range: Optional[int] = None
        self._invoice_range: Optional[int] = None

    def _phase_rng(self, phase: str) -> np.random.Generator:
        seed = self.config.seed
        if seed is None:
            return np.random.default_rng()
        return np.random.default_rng(seed + PHASE_SEED_OFFSETS[phase])

    @property
    def entity_range(self) -> int:
        """Highest entity_id child rows may reference."""
        return self.config.entity_count if self._entity_range is None else self._entity_range

    @property
    def invoice_range(self) -> int:
        """Highest invoice_id payment rows may reference."""
        return self.config.invoice_count if self._invoice_range is None else self._invoice_range

    def _batch_bounds(self, count: int) -> Iterator[range]:
        """Yield 1-based row index ranges of at most batch_size rows."""
        batch_size = self.config.batch_size
        for start in range(1, count + 1, batch_size):
            yield range(start, min(start + batch_size, count + 1))

    # =========================================================================
    # LOOKUP TABLES
    # =========================================================================

    def generate_lookup_tables(self) -> Dict[str, List[Dict[str, Any]]]:
        """
        Generate the filing type and jurisdiction lookups.

        Returns:
            Dict with ``filing_types`` and ``jurisdictions`` row lists
        """
        filing_types = [
            FilingType(
                filing_type_id=n,
                filing_type=label,
                frequency=FilingFrequency(frequency),
            ).to_dict()
            for n, (label, frequency) in enumerate(FILING_TYPES[:self.config.filing_type_count], start=1)
        ]

        jurisdictions = []
        for n in range(1, self.config.jurisdiction_count + 1):
            country = modular_bucket(n, JURISDICTION_COUNTRY_BUCKETS)
            jurisdictions.append(Jurisdiction(
                jurisdiction_id=n,
                country_code=country,
                jurisdiction_name=f"{country}-Juris-{n:04d}",
            ).to_dict())

        return {"filing_types": filing_types, "jurisdictions": jurisdictions}

    # =========================================================================
    # ENTITIES
    # =========================================================================

    def iter_entity_batches(self, count: Optional[int] = None) -> Iterator[List[Dict[str, Any]]]:
        """Stream entity rows in batches."""
        count = self.config.entity_count if count is None else count
        cfg = self.config
        self._entity_range = count
        epoch = datetime.combine(cfg.entity_epoch, datetime.min.time())

        for bounds in self._batch_bounds(count):
            batch = []
            for n in bounds:
                batch.append(Entity(
                    entity_id=n,
                    client_name=client_bucket(n, count, cfg.mega_client_shares, cfg.client_pool_size),
                    entity_name=f"Entity-{n:06d}",
                    country_code=modular_bucket(n, ENTITY_COUNTRY_BUCKETS),
                    risk_tier=(n % RISK_TIERS) + 1,
                    created_at=epoch + timedelta(days=n % ENTITY_CREATED_SPREAD_DAYS),
                    is_active=n % INACTIVE_EVERY_N != 0,
                ).to_dict())
            yield batch

    def generate_entities(self, count: Optional[int] = None) -> List[Dict[str, Any]]:
        """
        Generate entities with client and country skew.

        Args:
            count: Number of entities (defaults to config.entity_count)

        Returns:
            Entity rows with ids 1..count
        """
        return [row for batch in self.iter_entity_batches(count) for row in batch]

    # =========================================================================
    # COMPLIANCE FILINGS
    # =========================================================================

    def iter_filing_batches(self, count: Optional[int] = None) -> Iterator[List[Dict[str, Any]]]:
        """Stream compliance filing rows in batches."""
        count = self.config.filing_count if count is None else count
        cfg = self.config
        entity_range = self.entity_range
        if count > 0 and min(entity_range, cfg.jurisdiction_count, cfg.filing_type_count) == 0:
            raise ConfigurationError("filings need entities, jurisdictions and filing types")

        rng = self._phase_rng("filings")

        for bounds in self._batch_bounds(count):
            size = len(bounds)
            day_offsets = rng.integers(0, cfg.days_in_window, size).tolist()
            status_seeds = rng.integers(0, 100, size).tolist()
            lodged_draws = rng.integers(0, _RAW_DRAW_BOUND, size).tolist()
            penalties = rng.integers(0, PENALTY_DRAW_BOUND, size).tolist()

            batch = []
            for i, n in enumerate(bounds):
                due_date = cfg.start_date + timedelta(days=day_offsets[i])
                status = FilingStatus(threshold_bucket(status_seeds[i], FILING_STATUS_THRESHOLDS))

                filed_date = None
                if status in LODGED_STATUSES:
                    window = FILED_OFFSET_DAYS[status.value]
                    filed_date = clamp_date(
                        due_date - timedelta(days=lodged_draws[i] % window),
                        cfg.start_date, cfg.end_date,
                    )

                batch.append(ComplianceFiling(
                    filing_id=n,
                    entity_id=hot_key(n, entity_range, cfg.filing_hot_share, cfg.filing_hot_divisor),
                    jurisdiction_id=cyclic_key(n, cfg.jurisdiction_count),
                    filing_type_id=cyclic_key(n, cfg.filing_type_count),
                    due_date=due_date,
                    filed_date=filed_date,
                    filing_status=status,
                    penalty_amount=_money(penalties[i]),
                    last_updated_at=self.generated_at,
                ).to_dict())
            logger.debug(f"Generated filings {bounds.start}..{bounds.stop - 1}")
            yield batch

    def generate_filings(self, count: Optional[int] = None) -> List[Dict[str, Any]]:
        """
        Generate compliance filings.

        Args:
            count: Number of filings (defaults to config.filing_count)

        Returns:
            Filing rows with ids 1..count
        """
        return [row for batch in self.iter_filing_batches(count) for row in batch]

    def generate_drift_batch(
        self,
        count: int = 50000,
        status: FilingStatus = FilingStatus.OVERDUE,
        entity_id: int = 1,
        jurisdiction_id: int = 1,
        filing_type_id: int = 1,
        start: Optional[date] = None,
        span_days: int = 365,
    ) -> List[Dict[str, Any]]:
        """
        Generate a single-key, single-status batch that shifts the filing
        distribution after statistics were last refreshed.

        Rows have no filing_id; the database assigns one on insert.

        Args:
            count: Number of rows
            status: Status given to every row
            entity_id: Entity every row points at
            jurisdiction_id: Jurisdiction every row points at
            filing_type_id: Filing type every row points at
            start: First due date (defaults to the last ``span_days`` of the window)
            span_days: Due dates cycle over this many days

        Returns:
            Filing rows without primary keys
        """
        cfg = self.config
        if count < 0 or span_days <= 0:
            raise ConfigurationError("drift count must be >= 0 and span_days > 0")
        for name, value, limit in (
            ("entity_id", entity_id, self.entity_range),
            ("jurisdiction_id", jurisdiction_id, cfg.jurisdiction_count),
            ("filing_type_id", filing_type_id, cfg.filing_type_count),
        ):
            if not 1 <= value <= limit:
                raise ConfigurationError(f"{name} {value} is outside the generated range 1..{limit}")

        if start is None:
            start = max(cfg.start_date, cfg.end_date - timedelta(days=span_days - 1))
        status = FilingStatus(status)

        return [
            ComplianceFiling(
                filing_id=None,
                entity_id=entity_id,
                jurisdiction_id=jurisdiction_id,
                filing_type_id=filing_type_id,
                due_date=clamp_date(start + timedelta(days=n % span_days), cfg.start_date, cfg.end_date),
                filed_date=None,
                filing_status=status,
                penalty_amount=Decimal("0.00"),
                last_updated_at=self.generated_at,
            ).to_dict()
            for n in range(1, count + 1)
        ]

    # =========================================================================
    # INVOICES & PAYMENTS
    # =========================================================================

    def iter_invoice_batches(self, count: Optional[int] = None) -> Iterator[List[Dict[str, Any]]]:
        """Stream invoice rows in batches."""
        count = self.config.invoice_count if count is None else count
        cfg = self.config
        entity_range = self.entity_range
        if count > 0 and entity_range == 0:
            raise ConfigurationError("invoices need entities")
        self._invoice_range = count

        rng = self._phase_rng("invoices")

        for bounds in self._batch_bounds(count):
            size = len(bounds)
            day_offsets = rng.integers(0, cfg.days_in_window, size).tolist()
            terms = rng.integers(0, INVOICE_TERMS_SPREAD_DAYS, size).tolist()
            amounts = rng.integers(0, INVOICE_AMOUNT_DRAW_BOUND, size).tolist()
            status_seeds = rng.integers(0, 100, size).tolist()

            batch = []
            for i, n in enumerate(bounds):
                entity_id = hot_key(n, entity_range, cfg.invoice_hot_share, cfg.invoice_hot_divisor)
                invoice_date = cfg.start_date + timedelta(days=day_offsets[i])
                due_date = invoice_date + timedelta(days=INVOICE_TERMS_MIN_DAYS + terms[i])
                batch.append(Invoice(
                    invoice_id=n,
                    entity_id=entity_id,
                    invoice_date=invoice_date,
                    due_date=clamp_date(due_date, cfg.start_date, cfg.end_date),
                    currency_code=currency_for_entity(entity_id),
                    amount=_money(amounts[i]),
                    invoice_status=InvoiceStatus(threshold_bucket(status_seeds[i], INVOICE_STATUS_THRESHOLDS)),
                    created_at=self.generated_at,
                ).to_dict())
            yield batch

    def generate_invoices(self, count: Optional[int] = None) -> List[Dict[str, Any]]:
        """Generate invoices (defaults to config.invoice_count rows)."""
        return [row for batch in self.iter_invoice_batches(count) for row in batch]

    def iter_payment_batches(self, count: Optional[int] = None) -> Iterator[List[Dict[str, Any]]]:
        """Stream invoice payment rows in batches."""
        count = self.config.payment_count if count is None else count
        cfg = self.config
        invoice_range = self.invoice_range
        if count > 0 and invoice_range == 0:
            raise ConfigurationError("payments need invoices")

        rng = self._phase_rng("payments")

        for bounds in self._batch_bounds(count):
            size = len(bounds)
            invoice_ids = (rng.integers(0, invoice_range, size) + 1).tolist()
            lookbacks = rng.integers(0, PAYMENT_LOOKBACK_DAYS, size).tolist()
            amounts = rng.integers(0, PAYMENT_AMOUNT_DRAW_BOUND, size).tolist()
            method_seeds = rng.integers(0, 100, size).tolist()

            batch = []
            for i, n in enumerate(bounds):
                batch.append(InvoicePayment(
                    payment_id=n,
                    invoice_id=invoice_ids[i],
                    payment_date=clamp_date(
                        cfg.end_date - timedelta(days=lookbacks[i]), cfg.start_date, cfg.end_date
                    ),
                    amount_paid=_money(amounts[i]),
                    payment_method=PaymentMethod(threshold_bucket(method_seeds[i], PAYMENT_METHOD_THRESHOLDS)),
                ).to_dict())
            yield batch

    def generate_payments(self, count: Optional[int] = None) -> List[Dict[str, Any]]:
        """Generate invoice payments (defaults to config.payment_count rows)."""
        return [row for batch in self.iter_payment_batches(count) for row in batch]

    # =========================================================================
    # FULL DATASET
    # =========================================================================

    def generate_full_dataset(self) -> Dict[str, Any]:
        """
        Generate every table in dependency order.

        Returns:
            Dict keyed by table name, plus ``metadata`` and ``statistics``
        """
        cfg = self.config
        logger.info(
            f"Generating skewed dataset: {cfg.entity_count} entities, "
            f"{cfg.filing_count} filings, {cfg.invoice_count} invoices, "
            f"{cfg.payment_count} payments ({cfg.start_date} to {cfg.end_date})"
        )

        logger.info("[1/5] Generating lookup tables...")
        dataset: Dict[str, Any] = dict(self.generate_lookup_tables())

        logger.info("[2/5] Generating entities...")
        dataset["entities"] = self.generate_entities()

        logger.info("[3/5] Generating compliance filings...")
        dataset["compliance_filings"] = self.generate_filings()

        logger.info("[4/5] Generating invoices...")
        dataset["invoices"] = self.generate_invoices()

        logger.info("[5/5] Generating invoice payments...")
        dataset["invoice_payments"] = self.generate_payments()

        dataset["metadata"] = {
            "generated_at": self.generated_at.isoformat(),
            "config": cfg.model_dump(mode="json"),
        }
        dataset["statistics"] = profile_dataset(
            dataset, hot_limit=max(1, self.entity_range // cfg.filing_hot_divisor)
        )

        logger.info(
            "Generation complete: "
            + ", ".join(f"{table}={len(dataset[table])}" for table in TABLE_ORDER)
        )
        return dataset

    def save_dataset(self, dataset: Dict[str, Any], output_dir: str) -> Path:
        """
        Save a generated dataset as one CSV per table plus JSON metadata.

        Args:
            dataset: Output of generate_full_dataset()
            output_dir: Target directory (created if missing)

        Returns:
            Path of the output directory
        """
        output_path = Path(output_dir)
        output_path.mkdir(parents=True, exist_ok=True)

        for table in TABLE_ORDER:
            rows = dataset.get(table)
            if rows is None:
                continue
            pd.DataFrame(rows).to_csv(output_path / f"{table}.csv", index=False)
            logger.debug(f"Wrote {len(rows)} rows to {table}.csv")

        for key in ("metadata", "statistics"):
            if key in dataset:
                with open(output_path / f"{key}.json", 'w') as f:
                    json.dump(dataset[key], f, indent=2, default=str)

        logger.info(f"Dataset saved to {output_path}")
        return output_path
