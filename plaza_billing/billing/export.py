"""Flat tabular projection of billing records for spreadsheet export.

The projection is the contract; turning rows into delimited text is left to
the caller (for example :func:`csv.writer` over :meth:`ExportRow.as_list`).
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable

from plaza_billing.billing.status import outstanding_balance, parse_period
from plaza_billing.exceptions import ValidationError
from plaza_billing.models import BillingRecord

EXPORT_HEADERS = [
    "Month",
    "Shop No",
    "Owner",
    "Phone",
    "Total Due",
    "Collected",
    "Balance",
    "Status",
    "Due Date",
    "Transactions",
]


@dataclass(frozen=True)
class ExportRow:
    month: str
    shop_number: str
    owner_name: str
    phone: str
    amount: Decimal
    collected: Decimal
    balance: Decimal
    status: str
    due_date: str
    transactions: str

    def as_list(self) -> list[str]:
        """Cell values in :data:`EXPORT_HEADERS` order."""
        return [
            self.month,
            self.shop_number,
            self.owner_name,
            self.phone,
            str(self.amount),
            str(self.collected),
            str(self.balance),
            self.status,
            self.due_date,
            self.transactions,
        ]


def transaction_log(record: BillingRecord, currency_label: str = "Rs.") -> str:
    """One-line log of a record's payments, newest first."""
    return "; ".join(
        f"{tx.date} ({currency_label}{tx.amount}) by {tx.collected_by}" for tx in record.transactions
    )


def export_rows(
    records: Iterable[BillingRecord],
    start_period: str,
    end_period: str,
    shop_ids: Iterable[str] | None = None,
    currency_label: str = "Rs.",
) -> list[ExportRow]:
    """Project records within an inclusive period range onto export rows.

    Parameters
    ----------
    records : Iterable[BillingRecord]
        Records of one billing kind.
    start_period, end_period : str
        Inclusive ``YYYY-MM`` bounds.
    shop_ids : Iterable[str] | None
        Restrict to these shops; ``None`` exports every shop.
    currency_label : str
        Prefix for amounts in the transaction log.

    Returns
    -------
    list[ExportRow]
        Rows ordered by period, then shop number.
    """
    parse_period(start_period)
    parse_period(end_period)
    if start_period > end_period:
        raise ValidationError(f"Export range start {start_period} is after end {end_period}")

    wanted = set(shop_ids) if shop_ids is not None else None
    selected = [
        r
        for r in records
        if r.month
        and start_period <= r.month <= end_period
        and (wanted is None or r.shop_id in wanted)
    ]
    selected.sort(key=lambda r: (r.month, r.shop_number))

    return [
        ExportRow(
            month=r.month,
            shop_number=r.shop_number,
            owner_name=r.owner_name,
            phone=r.phone,
            amount=r.amount,
            collected=r.collected,
            balance=outstanding_balance(r.amount, r.collected),
            status=r.status.value,
            due_date=r.due_date,
            transactions=transaction_log(r, currency_label),
        )
        for r in selected
    ]
