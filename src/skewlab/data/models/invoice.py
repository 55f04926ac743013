"""
Invoice and payment models (AR/AP style data).
"""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Dict, Any
from enum import Enum


class InvoiceStatus(str, Enum):
    """Invoice settlement status."""
    OPEN = "Open"
    PAID = "Paid"
    PARTIAL = "Partial"
    DISPUTED = "Disputed"
    WRITTEN_OFF = "WrittenOff"


class PaymentMethod(str, Enum):
    """Payment rails."""
    NEFT = "NEFT"
    UPI = "UPI"
    RTGS = "RTGS"
    CARD = "Card"
    CHEQUE = "Cheque"


@dataclass
class Invoice:
    """An invoice raised against an entity."""

    invoice_id: int
    entity_id: int
    invoice_date: date
    due_date: date
    currency_code: str
    amount: Decimal
    invoice_status: InvoiceStatus
    created_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "invoice_id": self.invoice_id,
            "entity_id": self.entity_id,
            "invoice_date": self.invoice_date,
            "due_date": self.due_date,
            "currency_code": self.currency_code,
            "amount": self.amount,
            "invoice_status": self.invoice_status.value if isinstance(self.invoice_status, Enum) else self.invoice_status,
            "created_at": self.created_at,
        }


@dataclass
class InvoicePayment:
    """A payment received against an invoice."""

    payment_id: int
    invoice_id: int
    payment_date: date
    amount_paid: Decimal
    payment_method: PaymentMethod

    def to_dict(self) -> Dict[str, Any]:
        return {
            "payment_id": self.payment_id,
            "invoice_id": self.invoice_id,
            "payment_date": self.payment_date,
            "amount_paid": self.amount_paid,
            "payment_method": self.payment_method.value if isinstance(self.payment_method, Enum) else self.payment_method,
        }
