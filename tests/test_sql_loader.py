"""
Tests for the SQL loader against throwaway SQLite databases.
Covers schema lifecycle, phase loads, referential integrity, post-load
indexes, drift batches and the CLI commands that drive them.
"""

import pytest
import sys
import os
from decimal import Decimal

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.exc import IntegrityError

# Add src to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from skewlab.data.config import GeneratorConfig
from skewlab.data.generators import SkewedDatasetGenerator
from skewlab.data.loaders import INDEX_SPECS, TABLES, SkewedDatasetLoader
from skewlab.data.models import FilingStatus
from skewlab.exceptions import ConfigurationError, SchemaExistsError
from skewlab.runner import main


@pytest.fixture
def small_config():
    return GeneratorConfig(
        entity_count=300,
        jurisdiction_count=10,
        filing_count=2000,
        invoice_count=1000,
        payment_count=600,
        batch_size=500,
        seed=42,
    )


@pytest.fixture
def generator(small_config):
    return SkewedDatasetGenerator(small_config)


@pytest.fixture
def loader(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'lab.db'}")
    loader = SkewedDatasetLoader(engine=engine, environment="test")
    yield loader
    loader.close()


@pytest.fixture
def loaded(loader, generator):
    loader.create_schema()
    loader.load_dataset(generator)
    return loader


class TestSchema:
    """Test schema creation and teardown."""

    def test_create_schema(self, loader):
        loader.create_schema()
        assert loader.existing_tables() == list(TABLES)

    def test_create_on_existing_schema_refused(self, loader):
        loader.create_schema()
        with pytest.raises(SchemaExistsError, match="compliance_filings"):
            loader.create_schema()

    def test_drop_schema(self, loader):
        loader.create_schema()
        loader.drop_schema()
        assert loader.existing_tables() == []

        # An empty database accepts a fresh schema again
        loader.create_schema()
        assert loader.get_statistics()["entities"] == 0

    def test_no_secondary_indexes_before_build(self, loader):
        loader.create_schema()
        names = {ix["name"] for ix in inspect(loader.engine).get_indexes("compliance_filings")}
        assert not any(name.startswith("ix_") for name in names if name)


class TestLoadDataset:
    """Test phase-by-phase bulk loads."""

    def test_row_counts(self, loader, generator):
        loader.create_schema()
        counts = loader.load_dataset(generator)

        expected = {
            "filing_types": 8,
            "jurisdictions": 10,
            "entities": 300,
            "compliance_filings": 2000,
            "invoices": 1000,
            "invoice_payments": 600,
        }
        assert counts == expected
        assert loader.get_statistics() == expected

    def test_no_orphans(self, loaded):
        orphans = loaded.count_orphans()

        assert set(orphans) == {
            "compliance_filings.entity_id",
            "compliance_filings.jurisdiction_id",
            "compliance_filings.filing_type_id",
            "invoices.entity_id",
            "invoice_payments.invoice_id",
        }
        assert all(count == 0 for count in orphans.values())

    def test_mega_clients_loaded(self, loaded):
        clients = loaded.get_distribution("entities", "client_name")

        # 5% / 4% / 3% of 300 entities
        assert clients["Client-MEGA-01"] == 15
        assert clients["Client-MEGA-02"] == 12
        assert clients["Client-MEGA-03"] == 9
        assert list(clients)[0] == "Client-MEGA-01"

    def test_loaded_rows_match_generator(self, loaded, small_config):
        expected = SkewedDatasetGenerator(small_config).generate_filings()
        statuses = loaded.get_distribution("compliance_filings", "filing_status")

        for status in FilingStatus:
            count = sum(1 for row in expected if row["filing_status"] == status.value)
            assert statuses.get(status.value, 0) == count

    def test_foreign_key_violation_rolls_back_batch(self, loader, generator):
        """Test a single bad row rolls back the whole phase."""
        loader.create_schema()
        lookups = generator.generate_lookup_tables()
        loader.load_rows("filing_types", [lookups["filing_types"]])
        loader.load_rows("jurisdictions", [lookups["jurisdictions"]])
        loader.load_rows("entities", generator.iter_entity_batches())

        good = generator.generate_filings(10)
        bad = dict(good[-1], filing_id=11, entity_id=99999)

        with pytest.raises(IntegrityError):
            loader.load_rows("compliance_filings", [good, [bad]])

        assert loader.get_statistics()["compliance_filings"] == 0

    def test_failed_phase_keeps_earlier_phases(self, loader, small_config):
        """Test a failing phase leaves previously committed phases in place."""
        loader.create_schema()
        generator = SkewedDatasetGenerator(small_config)
        loader.load_dataset(generator)

        # Reloading collides on primary keys in the first phase
        with pytest.raises(IntegrityError):
            loader.load_dataset(generator)

        assert loader.get_statistics()["compliance_filings"] == 2000

    def test_empty_dataset(self, loader):
        loader.create_schema()
        config = GeneratorConfig(entity_count=0, filing_count=0, invoice_count=0, payment_count=0)
        counts = loader.load_dataset(SkewedDatasetGenerator(config))

        assert counts["entities"] == 0
        assert counts["compliance_filings"] == 0
        assert counts["jurisdictions"] == 120


class TestPostLoad:
    """Test index builds, statistics and lab mutations."""

    def test_build_indexes(self, loaded):
        created = loaded.build_indexes()

        assert created == [spec[0] for spec in INDEX_SPECS]
        names = {ix["name"] for ix in inspect(loaded.engine).get_indexes("compliance_filings")}
        assert "ix_filings_overdue_due_date" in names
        assert "ix_filings_status_due_date" in names

    def test_build_indexes_twice(self, loaded):
        loaded.build_indexes()
        assert len(loaded.build_indexes()) == len(INDEX_SPECS)

    def test_update_statistics(self, loaded):
        loaded.build_indexes()
        loaded.update_statistics()

        with loaded.engine.connect() as conn:
            analyzed = conn.execute(text("SELECT COUNT(*) FROM sqlite_stat1")).scalar()
        assert analyzed > 0

    def test_drift_batch(self, loaded, small_config):
        before = loaded.count_where("compliance_filings", "filing_status", "Overdue")
        rows = SkewedDatasetGenerator(small_config).generate_drift_batch(count=500, entity_id=7)

        inserted = loaded.insert_drift_batch(rows)

        assert inserted == 500
        assert loaded.count_where("compliance_filings", "filing_status", "Overdue") == before + 500
        assert loaded.count_where("compliance_filings", "entity_id", 7) >= 500
        # Database assigns keys to drift rows
        assert loaded.get_statistics()["compliance_filings"] == 2500

    def test_update_filing_status(self, loaded):
        updated = loaded.update_filing_status([1, 2, 3], FilingStatus.CANCELLED, notes="lab reset")

        assert updated == 3
        assert loaded.count_where("compliance_filings", "notes", "lab reset") == 3

    def test_update_unknown_filings(self, loaded):
        assert loaded.update_filing_status([999999], "Filed") == 0

    def test_penalties_survive_round_trip(self, loaded):
        penalties = loaded.get_distribution("compliance_filings", "penalty_amount")
        assert all(Decimal(str(value)) < Decimal("5000") for value in penalties)


class TestConnectionSettings:
    """Test engine construction from settings."""

    def test_sqlite_url_creates_directory(self, tmp_path):
        db_path = tmp_path / "nested" / "dir" / "lab.db"
        loader = SkewedDatasetLoader(settings={"database": {"url": f"sqlite:///{db_path}"}})
        try:
            loader.create_schema()
        finally:
            loader.close()

        assert db_path.exists()

    def test_used_engine_enforces_foreign_keys(self, tmp_path):
        """Test connections pooled before the loader existed are replaced."""
        engine = create_engine(f"sqlite:///{tmp_path / 'used.db'}")
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))

        loader = SkewedDatasetLoader(engine=engine)
        try:
            with loader.engine.connect() as conn:
                assert conn.execute(text("PRAGMA foreign_keys")).scalar() == 1
        finally:
            loader.close()

    def test_missing_postgres_settings(self):
        with pytest.raises(ConfigurationError, match="host"):
            SkewedDatasetLoader(settings={"database": {"database": "csc_perfdemo", "user": "lab"}})

    def test_postgres_url(self):
        loader = SkewedDatasetLoader(settings={"database": {
            "host": "db.internal",
            "port": "5433",
            "database": "csc_perfdemo",
            "user": "lab",
            "password": "secret",
        }})
        url = loader._build_url()

        assert url.drivername == "postgresql+psycopg2"
        assert url.port == 5433
        assert url.database == "csc_perfdemo"
        assert "secret" not in url.render_as_string(hide_password=True)


class TestRunner:
    """Test the CLI commands end to end against SQLite."""

    @pytest.fixture
    def config_file(self, tmp_path):
        path = tmp_path / "skewlab.yaml"
        path.write_text(
            "generator:\n"
            "  entity_count: 200\n"
            "  jurisdiction_count: 10\n"
            "  filing_count: 1500\n"
            "  invoice_count: 800\n"
            "  payment_count: 400\n"
            "environments:\n"
            "  development:\n"
            "    database:\n"
            f"      url: sqlite:///{tmp_path / 'cli.db'}\n"
        )
        return str(path)

    def test_load_then_stats(self, config_file, capsys):
        assert main(["--config", config_file, "load", "--drop"]) == 0
        assert main(["--config", config_file, "stats"]) == 0

        out = capsys.readouterr().out
        assert "compliance_filings" in out
        assert "Client-MEGA-01" in out

    def test_load_refuses_existing_schema(self, config_file):
        assert main(["--config", config_file, "load"]) == 0
        assert main(["--config", config_file, "load"]) == 1

    def test_drift(self, config_file, capsys):
        main(["--config", config_file, "load", "--no-indexes"])
        assert main(["--config", config_file, "drift", "--count", "250", "--entity-id", "3"]) == 0

        assert "Inserted 250" in capsys.readouterr().out

    def test_drift_entity_out_of_range(self, config_file):
        main(["--config", config_file, "load"])
        assert main(["--config", config_file, "drift", "--entity-id", "5000"]) == 1

    def test_export(self, config_file, tmp_path):
        output = tmp_path / "export"
        assert main(["--config", config_file, "export", "--output", str(output), "--filings", "900"]) == 0

        assert (output / "compliance_filings.csv").exists()
        assert (output / "statistics.json").exists()

    def test_invalid_override(self, config_file):
        assert main(["--config", config_file, "export", "--entities", "-1"]) == 1


@pytest.mark.slow
class TestLabScaleLoad:
    """Test the documented lab scale loads with its skew intact."""

    def test_lab_scale(self, tmp_path):
        engine = create_engine(f"sqlite:///{tmp_path / 'lab.db'}")
        loader = SkewedDatasetLoader(engine=engine)
        config = GeneratorConfig(invoice_count=0, payment_count=0)
        try:
            loader.create_schema()
            counts = loader.load_dataset(SkewedDatasetGenerator(config))
            loader.build_indexes()
            loader.update_statistics()

            assert counts["entities"] == 20000
            assert counts["compliance_filings"] == 350000

            overdue = loader.count_where("compliance_filings", "filing_status", "Overdue")
            assert 0.05 <= overdue / 350000 <= 0.07
            assert loader.count_where("entities", "client_name", "Client-MEGA-01") == 1000
            assert all(count == 0 for count in loader.count_orphans().values())
        finally:
            loader.close()


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
