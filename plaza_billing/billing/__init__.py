"""Billing and collection core: generation, payments, history and reports."""

from plaza_billing.billing.generator import BillingRecordGenerator, GenerationResult
from plaza_billing.billing.history import ShopHistory, arrears, group_by_year
from plaza_billing.billing.ledger import PaymentLedger
from plaza_billing.billing.status import (
    derive_status,
    effective_status,
    format_period,
    outstanding_balance,
)

__all__ = [
    "BillingRecordGenerator",
    "GenerationResult",
    "PaymentLedger",
    "ShopHistory",
    "arrears",
    "derive_status",
    "effective_status",
    "format_period",
    "group_by_year",
    "outstanding_balance",
]
