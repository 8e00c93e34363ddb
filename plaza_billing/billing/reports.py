"""Revenue and dashboard aggregates across both billing kinds."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime, time
from decimal import Decimal
from typing import Iterable

from plaza_billing.billing.status import ZERO, outstanding_balance
from plaza_billing.models import (
    BillingKind,
    BillingRecord,
    PaymentTransaction,
    RepairRecord,
    RepairStatus,
    Shop,
)

EPOCH = datetime(1970, 1, 1)

# Formats seen in stored transaction dates, tried in order
TRANSACTION_DATE_FORMATS = [
    "%Y-%m-%d, %I:%M %p",
    "%Y-%m-%d, %I:%M:%S %p",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d %H:%M",
]

_DAY_FIRST = re.compile(r"^(\d{1,2})[/-](\d{1,2})[/-](\d{4})")
_CLOCK = re.compile(r"(\d{1,2}):(\d{2})(?::(\d{2}))?\s*(AM|PM)?", re.IGNORECASE)


def parse_transaction_date(value: str) -> datetime:
    """Best-effort parse of a free-form transaction date.

    Unparseable values map to the epoch so they sort last.
    """
    if not value:
        return EPOCH
    value = value.strip()
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        pass
    for fmt in TRANSACTION_DATE_FORMATS:
        try:
            return datetime.strptime(value, fmt)
        except ValueError:
            continue

    match = _DAY_FIRST.match(value)
    if match is None:
        return EPOCH
    day, month, year = (int(g) for g in match.groups())
    hours = minutes = seconds = 0
    clock = _CLOCK.search(value, match.end())
    if clock is not None:
        hours, minutes = int(clock.group(1)), int(clock.group(2))
        seconds = int(clock.group(3) or 0)
        period = (clock.group(4) or "").upper()
        if period == "PM" and hours < 12:
            hours += 12
        if period == "AM" and hours == 12:
            hours = 0
    try:
        return datetime(year, month, day, hours, minutes, seconds)
    except ValueError:
        return EPOCH


@dataclass(frozen=True)
class RevenueEntry:
    """A payment transaction with the context of the bill it settled."""

    transaction: PaymentTransaction
    kind: BillingKind
    shop_number: str
    owner_name: str
    bill_month: str
    timestamp: datetime

    @property
    def amount(self) -> Decimal:
        return self.transaction.amount

    def as_list(self) -> list[str]:
        """Cell values in :data:`REVENUE_EXPORT_HEADERS` order."""
        tx = self.transaction
        return [
            tx.date,
            self.kind.label,
            self.shop_number,
            self.owner_name,
            str(tx.amount),
            tx.collected_by,
            tx.note or "",
        ]


REVENUE_EXPORT_HEADERS = ["Date", "Type", "Shop No", "Owner", "Amount", "Collected By", "Note"]


def flatten_transactions(
    rent: Iterable[BillingRecord],
    maintenance: Iterable[BillingRecord],
) -> list[RevenueEntry]:
    """All payments from both kinds, newest first."""
    entries = []
    for kind, records in ((BillingKind.RENT, rent), (BillingKind.MAINTENANCE, maintenance)):
        for record in records:
            for tx in record.transactions:
                entries.append(
                    RevenueEntry(
                        transaction=tx,
                        kind=kind,
                        shop_number=record.shop_number,
                        owner_name=record.owner_name,
                        bill_month=record.month,
                        timestamp=parse_transaction_date(tx.date),
                    )
                )
    entries.sort(key=lambda e: e.timestamp, reverse=True)
    return entries


def filter_by_date_range(
    entries: Iterable[RevenueEntry],
    start: date,
    end: date,
    kind: BillingKind | None = None,
    search: str | None = None,
) -> list[RevenueEntry]:
    """Entries captured between ``start`` and ``end`` (whole days, inclusive).

    ``search`` matches shop number, owner, collector or note, ignoring case.
    """
    lower = datetime.combine(start, time.min)
    upper = datetime.combine(end, time.max)
    needle = (search or "").strip().lower()

    def matches(entry: RevenueEntry) -> bool:
        if not needle:
            return True
        haystack = [
            entry.shop_number,
            entry.owner_name,
            entry.transaction.collected_by,
            entry.transaction.note or "",
        ]
        return any(needle in field.lower() for field in haystack)

    return [
        e
        for e in entries
        if lower <= e.timestamp <= upper and (kind is None or e.kind is kind) and matches(e)
    ]


@dataclass
class RevenueSummary:
    rent: Decimal = ZERO
    maintenance: Decimal = ZERO
    count: int = 0

    @property
    def total(self) -> Decimal:
        return self.rent + self.maintenance


def revenue_summary(entries: Iterable[RevenueEntry]) -> RevenueSummary:
    """Totals per billing kind."""
    summary = RevenueSummary()
    for entry in entries:
        if entry.kind is BillingKind.RENT:
            summary.rent += entry.amount
        else:
            summary.maintenance += entry.amount
        summary.count += 1
    return summary


@dataclass
class DashboardStats:
    total_shops: int
    occupied_shops: int
    rent_collected: Decimal
    maintenance_collected: Decimal
    pending_rent: Decimal
    pending_maintenance: Decimal
    open_repairs: int


def dashboard_stats(
    shops: Iterable[Shop],
    rent: Iterable[BillingRecord],
    maintenance: Iterable[BillingRecord],
    repairs: Iterable[RepairRecord] = (),
) -> DashboardStats:
    """Headline numbers for the plaza overview."""
    shops = list(shops)
    rent = list(rent)
    maintenance = list(maintenance)
    return DashboardStats(
        total_shops=len(shops),
        occupied_shops=sum(1 for s in shops if s.is_occupied),
        rent_collected=sum((r.collected for r in rent), ZERO),
        maintenance_collected=sum((r.collected for r in maintenance), ZERO),
        pending_rent=sum((outstanding_balance(r.amount, r.collected) for r in rent), ZERO),
        pending_maintenance=sum(
            (outstanding_balance(r.amount, r.collected) for r in maintenance), ZERO
        ),
        open_repairs=sum(1 for r in repairs if r.status != RepairStatus.COMPLETED),
    )
