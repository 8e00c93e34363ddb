"""Per-shop billing history grouped by year."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable

from plaza_billing.billing.status import ZERO, outstanding_balance
from plaza_billing.models import BillingRecord


@dataclass
class HistoryTotals:
    """Summed amounts over a set of records."""

    amount: Decimal = ZERO
    collected: Decimal = ZERO
    balance: Decimal = ZERO

    def add(self, record: BillingRecord) -> None:
        self.amount += record.amount
        self.collected += record.collected
        self.balance += outstanding_balance(record.amount, record.collected)


@dataclass
class ShopHistory:
    """A shop's records of one billing kind, newest year first."""

    shop_id: str
    records_by_year: dict[int, list[BillingRecord]] = field(default_factory=dict)

    @property
    def years(self) -> list[int]:
        return list(self.records_by_year)

    @property
    def is_empty(self) -> bool:
        return not self.records_by_year

    def totals(self, year: int | None = None) -> HistoryTotals:
        """Totals for one year, or for the whole history when ``year`` is None."""
        totals = HistoryTotals()
        if year is None:
            groups: Iterable[list[BillingRecord]] = self.records_by_year.values()
        else:
            groups = [self.records_by_year.get(year, [])]
        for records in groups:
            for record in records:
                totals.add(record)
        return totals


def group_by_year(records: Iterable[BillingRecord], shop_id: str) -> ShopHistory:
    """Group a shop's records by the year of their period.

    Years are ordered newest first, and records within a year by period,
    newest first. Records without a period are ignored.

    Parameters
    ----------
    records : Iterable[BillingRecord]
        Records of a single billing kind (any shop).
    shop_id : str
        Shop to collect.

    Returns
    -------
    ShopHistory
        Grouped history; empty when the shop has no records.
    """
    grouped: dict[int, list[BillingRecord]] = {}
    for record in records:
        if record.shop_id != shop_id or not record.month:
            continue
        grouped.setdefault(record.year, []).append(record)

    history = ShopHistory(shop_id=shop_id)
    for year in sorted(grouped, reverse=True):
        history.records_by_year[year] = sorted(grouped[year], key=lambda r: r.month, reverse=True)
    return history


def arrears(records: Iterable[BillingRecord], shop_id: str, before_period: str) -> Decimal:
    """Outstanding balance of a shop over all periods before ``before_period``."""
    return sum(
        (
            outstanding_balance(r.amount, r.collected)
            for r in records
            if r.shop_id == shop_id and r.month and r.month < before_period
        ),
        ZERO,
    )
