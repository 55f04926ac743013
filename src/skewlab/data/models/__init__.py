"""
Data models for the compliance filings lab dataset.

This package contains pure data classes (dataclasses) only.
Generation logic is in the 'generators' package.
"""

from .entity import Entity, Jurisdiction, FilingType, FilingFrequency
from .filing import ComplianceFiling, FilingStatus, LODGED_STATUSES
from .invoice import Invoice, InvoicePayment, InvoiceStatus, PaymentMethod

__all__ = [
    # Master data
    "Entity",
    "Jurisdiction",
    "FilingType",
    "FilingFrequency",
    # Filings
    "ComplianceFiling",
    "FilingStatus",
    "LODGED_STATUSES",
    # Invoices
    "Invoice",
    "InvoicePayment",
    "InvoiceStatus",
    "PaymentMethod",
]
