"""
Relational schema for the compliance filings lab.

Tables carry primary and foreign keys only. Secondary indexes are described
separately in INDEX_SPECS and built by the loader after the bulk load, so the
load runs against heap-plus-PK tables and the lab starts from fresh indexes.
"""

from typing import Dict, List, Optional, Tuple

from sqlalchemy import (
    BigInteger, Boolean, Column, Date, DateTime, ForeignKey, Index, Integer,
    MetaData, Numeric, SmallInteger, String, Table,
)


metadata = MetaData()

entities = Table(
    "entities", metadata,
    Column("entity_id", Integer, primary_key=True, autoincrement=True),
    Column("client_name", String(120), nullable=False),
    Column("entity_name", String(200), nullable=False),
    Column("country_code", String(2), nullable=False),
    Column("risk_tier", SmallInteger, nullable=False),
    Column("created_at", DateTime, nullable=False),
    Column("is_active", Boolean, nullable=False),
)

jurisdictions = Table(
    "jurisdictions", metadata,
    Column("jurisdiction_id", Integer, primary_key=True, autoincrement=True),
    Column("country_code", String(2), nullable=False),
    Column("jurisdiction_name", String(150), nullable=False),
)

filing_types = Table(
    "filing_types", metadata,
    Column("filing_type_id", Integer, primary_key=True, autoincrement=True),
    Column("filing_type", String(80), nullable=False),
    Column("frequency", String(30), nullable=False),
)

compliance_filings = Table(
    "compliance_filings", metadata,
    Column("filing_id", BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True),
    Column("entity_id", Integer, ForeignKey("entities.entity_id", name="fk_filings_entity"), nullable=False),
    Column("jurisdiction_id", Integer, ForeignKey("jurisdictions.jurisdiction_id", name="fk_filings_juris"), nullable=False),
    Column("filing_type_id", Integer, ForeignKey("filing_types.filing_type_id", name="fk_filings_type"), nullable=False),
    Column("due_date", Date, nullable=False),
    Column("filed_date", Date, nullable=True),
    Column("filing_status", String(20), nullable=False),
    Column("penalty_amount", Numeric(12, 2), nullable=False),
    Column("last_updated_at", DateTime, nullable=False),
    Column("notes", String(200), nullable=True),
)

invoices = Table(
    "invoices", metadata,
    Column("invoice_id", BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True),
    Column("entity_id", Integer, ForeignKey("entities.entity_id", name="fk_invoices_entity"), nullable=False),
    Column("invoice_date", Date, nullable=False),
    Column("due_date", Date, nullable=False),
    Column("currency_code", String(3), nullable=False),
    Column("amount", Numeric(12, 2), nullable=False),
    Column("invoice_status", String(20), nullable=False),
    Column("created_at", DateTime, nullable=False),
)

invoice_payments = Table(
    "invoice_payments", metadata,
    Column("payment_id", BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True),
    Column("invoice_id", BigInteger().with_variant(Integer, "sqlite"), ForeignKey("invoices.invoice_id", name="fk_payments_invoice"), nullable=False),
    Column("payment_date", Date, nullable=False),
    Column("amount_paid", Numeric(12, 2), nullable=False),
    Column("payment_method", String(20), nullable=False),
)

# Creation order respects foreign keys; drop in reverse
TABLES: Dict[str, Table] = {
    "filing_types": filing_types,
    "jurisdictions": jurisdictions,
    "entities": entities,
    "compliance_filings": compliance_filings,
    "invoices": invoices,
    "invoice_payments": invoice_payments,
}

# (name, table, key columns, covering columns, partial-index predicate)
INDEX_SPECS: List[Tuple[str, str, List[str], List[str], Optional[str]]] = [
    ("ix_entities_country", "entities", ["country_code"],
     ["client_name", "entity_name", "risk_tier", "is_active"], None),
    ("ix_entities_client", "entities", ["client_name"],
     ["country_code", "entity_name", "risk_tier", "is_active"], None),
    ("ix_filings_entity_due_date", "compliance_filings", ["entity_id", "due_date"],
     ["filing_status", "jurisdiction_id", "filing_type_id", "penalty_amount"], None),
    ("ix_filings_status_due_date", "compliance_filings", ["filing_status", "due_date"],
     ["entity_id", "jurisdiction_id", "filing_type_id", "penalty_amount"], None),
    ("ix_invoices_entity_status_due", "invoices", ["entity_id", "invoice_status", "due_date"],
     ["amount", "currency_code", "invoice_date"], None),
    ("ix_invoices_status_due", "invoices", ["invoice_status", "due_date"],
     ["entity_id", "amount", "currency_code"], None),
    ("ix_payments_invoice_date", "invoice_payments", ["invoice_id", "payment_date"],
     ["amount_paid", "payment_method"], None),
    # Only helps Overdue lookups; used by the parameter sniffing lab
    ("ix_filings_overdue_due_date", "compliance_filings", ["due_date"],
     ["entity_id", "jurisdiction_id", "filing_type_id", "penalty_amount"], "Overdue"),
]


def lab_indexes(specs: List[Tuple[str, str, List[str], List[str], Optional[str]]] = INDEX_SPECS) -> List[Index]:
    """
    Build Index objects for the lab's secondary indexes.

    Covering columns map to PostgreSQL INCLUDE; the Overdue index is partial
    on both PostgreSQL and SQLite. Indexes are attached to copies of the
    tables in a scratch MetaData so the shared ``metadata`` never creates
    them as part of create_all().
    """
    scratch = MetaData()
    copies: Dict[str, Table] = {}
    indexes = []
    for name, table_name, keys, include, status in specs:
        if table_name not in copies:
            copies[table_name] = TABLES[table_name].to_metadata(scratch)
        table = copies[table_name]

        kwargs = {"postgresql_include": include}
        if status is not None:
            predicate = table.c.filing_status == status
            kwargs["postgresql_where"] = predicate
            kwargs["sqlite_where"] = predicate
        indexes.append(Index(name, *(table.c[key] for key in keys), **kwargs))
    return indexes
