"""Billing record and payment transaction models."""

from dataclasses import dataclass, field
from decimal import Decimal

from plaza_billing.models.enums import BillingStatus


@dataclass(frozen=True)
class PaymentTransaction:
    """A single payment collected against a billing record."""

    id: str
    date: str  # Locale-formatted capture time, not a structured timestamp
    amount: Decimal
    collected_by: str
    note: str | None = None


@dataclass
class BillingRecord:
    """Per-period rent or maintenance due-and-collected record.

    ``shop_number``, ``owner_name`` and ``phone`` are copied from the shop when
    the record is generated and are not kept in sync with later shop edits.
    """

    id: str
    shop_id: str
    shop_number: str
    owner_name: str
    phone: str
    amount: Decimal  # Target due for the period
    collected: Decimal  # Running total paid
    due_date: str  # YYYY-MM-DD
    status: BillingStatus
    month: str  # YYYY-MM
    transactions: list[PaymentTransaction] = field(default_factory=list)  # Newest first

    @property
    def year(self) -> int:
        return int(self.month.split("-")[0])
