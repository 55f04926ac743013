"""
SQL Loader for the Skewed Compliance Dataset

Writes generated rows into a relational database (PostgreSQL for lab
servers, SQLite for laptops and tests) and provides the maintenance and
inspection operations the labs need.

Usage:
    loader = SkewedDatasetLoader(environment="development")
    loader.create_schema()
    loader.load_dataset(SkewedDatasetGenerator(config))
    loader.build_indexes()
    loader.update_statistics()
"""

from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence

from loguru import logger
from sqlalchemy import create_engine, event, func, inspect, select, text
from sqlalchemy.engine import URL, Engine, make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import QueuePool

from ...exceptions import ConfigurationError, SchemaExistsError
from ..config.settings import load_settings
from ..generators.dataset_generator import SkewedDatasetGenerator
from ..models import FilingStatus
from .schema import TABLES, lab_indexes, metadata


# (table, primary key) for tables whose keys are loaded explicitly
_IDENTITY_COLUMNS = {
    "filing_types": "filing_type_id",
    "jurisdictions": "jurisdiction_id",
    "entities": "entity_id",
    "compliance_filings": "filing_id",
    "invoices": "invoice_id",
    "invoice_payments": "payment_id",
}


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class SkewedDatasetLoader:
    """
    Loader for the compliance filings lab schema.

    Handles:
    - Connection management with pooling
    - Schema creation on an empty database
    - Phase-by-phase bulk loads, one transaction per phase
    - Post-load index builds and statistics refresh
    - Drift batches and lab mutations
    - Row counts and distribution queries
    """

    def __init__(
        self,
        settings: Optional[Dict[str, Any]] = None,
        config_path: Optional[str] = None,
        environment: str = "development",
        engine: Optional[Engine] = None,
    ):
        """
        Initialize the loader.

        Args:
            settings: Already-loaded settings (see load_settings)
            config_path: Path to a skewlab.yaml file, used when settings is None
            environment: Environment overlay to apply when loading settings
            engine: Pre-built SQLAlchemy engine; skips config entirely
        """
        self.environment = environment
        if engine is not None:
            self.config: Dict[str, Any] = {}
            self.engine = engine
        else:
            if settings is None:
                settings = load_settings(config_path, environment)
            self.config = settings.get('database') or {}
            self.engine = self._create_engine()

        if self.engine.dialect.name == "sqlite":
            event.listen(self.engine, "connect", _enable_sqlite_foreign_keys)
            # Drop pooled connections opened before the listener existed
            self.engine.dispose()

        self.Session = sessionmaker(bind=self.engine)
        logger.info(f"Dataset loader initialized ({self.engine.dialect.name}, env: {environment})")

    def _build_url(self) -> URL:
        """Build the connection URL from config"""
        if self.config.get('url'):
            return make_url(self.config['url'])

        missing = [key for key in ('host', 'database', 'user') if not self.config.get(key)]
        if missing:
            raise ConfigurationError(f"Database config is missing: {', '.join(missing)}")

        return URL.create(
            "postgresql+psycopg2",
            username=self.config['user'],
            password=self.config.get('password') or None,
            host=self.config['host'],
            port=int(self.config.get('port', 5432)),
            database=self.config['database'],
        )

    def _create_engine(self) -> Engine:
        """Create SQLAlchemy engine with connection pooling"""
        url = self._build_url()
        echo = bool(self.config.get('echo', False))

        if url.get_backend_name() == "sqlite":
            if url.database and url.database != ":memory:":
                Path(url.database).parent.mkdir(parents=True, exist_ok=True)
            engine = create_engine(url, echo=echo)
        else:
            connect_args = {}
            if self.config.get('ssl_mode'):
                connect_args['sslmode'] = self.config['ssl_mode']

            engine = create_engine(
                url,
                poolclass=QueuePool,
                pool_size=int(self.config.get('pool_size', 5)),
                max_overflow=int(self.config.get('max_overflow', 10)),
                pool_timeout=int(self.config.get('pool_timeout', 30)),
                pool_recycle=int(self.config.get('pool_recycle', 3600)),
                echo=echo,
                connect_args=connect_args,
            )

        logger.info(f"SQLAlchemy engine created: {url.render_as_string(hide_password=True)}")
        return engine

    @contextmanager
    def session_scope(self):
        """Provide a transactional scope for database operations"""
        session = self.Session()
        try:
            yield session
            session.commit()
        except Exception as e:
            session.rollback()
            logger.error(f"Database error, phase rolled back: {e}")
            raise
        finally:
            session.close()

    # =========================================================================
    # SCHEMA OPERATIONS
    # =========================================================================

    def existing_tables(self) -> List[str]:
        """Lab tables already present in the target database."""
        present = set(inspect(self.engine).get_table_names())
        return [name for name in TABLES if name in present]

    def create_schema(self):
        """
        Create the lab tables on an empty database.

        Raises:
            SchemaExistsError: if any lab table already exists
        """
        existing = self.existing_tables()
        if existing:
            raise SchemaExistsError(
                f"Target database already has lab tables: {', '.join(existing)}. "
                f"Drop them first (skewlab load --drop)."
            )
        metadata.create_all(self.engine)
        logger.info(f"Created {len(TABLES)} tables")

    def drop_schema(self):
        """DANGEROUS: Drop every lab table and its data"""
        metadata.drop_all(self.engine)
        logger.warning("All lab tables dropped")

    def build_indexes(self) -> List[str]:
        """Create the secondary indexes. Run only after the bulk load."""
        created = []
        with self.engine.begin() as conn:
            for index in lab_indexes():
                index.create(conn, checkfirst=True)
                created.append(index.name)
        logger.info(f"Created {len(created)} indexes")
        return created

    def update_statistics(self):
        """Refresh optimizer statistics for every lab table."""
        with self.engine.begin() as conn:
            if self.engine.dialect.name == "postgresql":
                for name in TABLES:
                    conn.execute(text(f"ANALYZE {name}"))
            else:
                conn.execute(text("ANALYZE"))
        logger.info("Statistics updated")

    # =========================================================================
    # LOAD OPERATIONS
    # =========================================================================

    def load_rows(self, table_name: str, batches: Iterable[List[Dict[str, Any]]]) -> int:
        """
        Bulk insert batches of rows into one table inside a single transaction.

        Args:
            table_name: Lab table name
            batches: Iterable of row-dict lists; each list is one executemany

        Returns:
            Number of rows inserted
        """
        table = TABLES[table_name]
        inserted = 0

        with self.session_scope() as session:
            for batch in batches:
                if not batch:
                    continue
                session.execute(table.insert(), batch)
                inserted += len(batch)
                logger.debug(f"{table_name}: {inserted} rows")

            if inserted and self.engine.dialect.name == "postgresql":
                self._sync_identity(session, table_name)

        logger.info(f"Loaded {inserted} rows into {table_name}")
        return inserted

    def _sync_identity(self, session: Session, table_name: str):
        """Move a PostgreSQL serial sequence past explicitly loaded keys"""
        pk = _IDENTITY_COLUMNS[table_name]
        session.execute(
            text(
                f"SELECT setval(pg_get_serial_sequence('{table_name}', '{pk}'), "
                f"COALESCE((SELECT MAX({pk}) FROM {table_name}), 1))"
            )
        )

    def load_dataset(self, generator: SkewedDatasetGenerator) -> Dict[str, int]:
        """
        Load every phase in dependency order.

        Each phase commits on its own; a failure rolls back the failing phase
        and stops the run, leaving earlier phases in place.

        Returns:
            Rows inserted per table
        """
        lookups = generator.generate_lookup_tables()
        phases = [
            ("filing_types", lambda: [lookups["filing_types"]]),
            ("jurisdictions", lambda: [lookups["jurisdictions"]]),
            ("entities", generator.iter_entity_batches),
            ("compliance_filings", generator.iter_filing_batches),
            ("invoices", generator.iter_invoice_batches),
            ("invoice_payments", generator.iter_payment_batches),
        ]

        counts = {}
        for step, (table_name, batches) in enumerate(phases, start=1):
            logger.info(f"[{step}/{len(phases)}] Loading {table_name}...")
            try:
                counts[table_name] = self.load_rows(table_name, batches())
            except SQLAlchemyError:
                logger.error(f"Load aborted in phase {table_name}")
                raise
        return counts

    def insert_drift_batch(self, rows: List[Dict[str, Any]]) -> int:
        """
        Insert a drift batch (see generate_drift_batch) without refreshing
        statistics, leaving the optimizer with a stale picture.
        """
        inserted = self.load_rows("compliance_filings", [rows])
        logger.warning(f"Inserted {inserted} drift rows; statistics are now stale")
        return inserted

    def update_filing_status(
        self,
        filing_ids: Sequence[int],
        status: FilingStatus,
        notes: Optional[str] = None,
    ) -> int:
        """Change status (and optionally notes) on specific filings."""
        table = TABLES["compliance_filings"]
        values = {
            "filing_status": FilingStatus(status).value,
            "last_updated_at": datetime.now(timezone.utc).replace(tzinfo=None, microsecond=0),
        }
        if notes is not None:
            values["notes"] = notes

        with self.session_scope() as session:
            result = session.execute(
                table.update().where(table.c.filing_id.in_(list(filing_ids))).values(**values)
            )
            logger.info(f"Updated {result.rowcount} filings to {values['filing_status']}")
            return result.rowcount

    # =========================================================================
    # QUERY OPERATIONS
    # =========================================================================

    def get_statistics(self) -> Dict[str, int]:
        """Row counts per lab table"""
        with self.session_scope() as session:
            return {
                name: session.execute(select(func.count()).select_from(table)).scalar()
                for name, table in TABLES.items()
            }

    def get_distribution(self, table_name: str, column_name: str) -> Dict[Any, int]:
        """Row counts per value of one column"""
        table = TABLES[table_name]
        col = table.c[column_name]
        with self.session_scope() as session:
            rows = session.execute(
                select(col, func.count()).group_by(col).order_by(func.count().desc())
            ).all()
            return {value: count for value, count in rows}

    def count_where(self, table_name: str, column_name: str, value: Any) -> int:
        """Rows where column = value"""
        table = TABLES[table_name]
        with self.session_scope() as session:
            return session.execute(
                select(func.count()).select_from(table).where(table.c[column_name] == value)
            ).scalar()

    def count_orphans(self) -> Dict[str, int]:
        """
        Child rows whose foreign key has no parent row, per foreign key.

        Returns:
            Dict keyed by ``child.column`` with orphan counts
        """
        orphans = {}
        with self.session_scope() as session:
            for name, table in TABLES.items():
                for fk in table.foreign_keys:
                    parent_col = fk.column
                    stmt = (
                        select(func.count())
                        .select_from(table.outerjoin(parent_col.table, fk.parent == parent_col))
                        .where(parent_col.is_(None))
                    )
                    orphans[f"{name}.{fk.parent.name}"] = session.execute(stmt).scalar()
        return orphans

    def close(self):
        """Close database connections"""
        self.engine.dispose()
        logger.info("Database connections closed")
