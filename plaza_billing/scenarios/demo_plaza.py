"""Demo plaza scenario: shops, several months of bills and payment history."""

from __future__ import annotations

import logging
import random
from datetime import date, datetime
from decimal import Decimal

from plaza_billing.billing.generator import BillingRecordGenerator
from plaza_billing.billing.ledger import PaymentLedger
from plaza_billing.billing.status import current_period, parse_period
from plaza_billing.config import BillingConfig
from plaza_billing.generators import ShopGenerator, StaffGenerator
from plaza_billing.models import (
    BillingKind,
    BillingRecord,
    PlazaSettings,
    RepairPriority,
    RepairRecord,
    RepairStatus,
    Role,
)
from plaza_billing.services import RepairLog, SettingsService, ShopDirectory
from plaza_billing.store.base import USERS, DocumentStore
from plaza_billing.store.memory import MemoryDocumentStore
from plaza_billing.store.serialization import from_document, to_document

logger = logging.getLogger(__name__)

REPAIR_ISSUES = [
    "Water leakage from ceiling",
    "Shutter lock jammed",
    "Electrical wiring fault",
    "Broken glass panel",
    "Air conditioner not cooling",
    "Drainage blocked",
]


def previous_periods(count: int, today: date | None = None) -> list[str]:
    """The ``count`` periods ending with the current one, oldest first."""
    year, month = parse_period(current_period(today))
    periods = []
    for _ in range(count):
        periods.append(f"{year:04d}-{month:02d}")
        month -= 1
        if month == 0:
            year, month = year - 1, 12
    return list(reversed(periods))


class DemoPlazaScenario:
    """Populate a store with a realistic plaza.

    This scenario creates:
    - Shops across floors, some vacant
    - Rent and maintenance bills for every occupied shop and period
    - Payments with a mix of behaviour:
        - Full payment before the due date
        - Partial payment in one or two instalments
        - Nothing paid (arrears)
    - A handful of repair tickets and staff profiles
    """

    def __init__(
        self,
        num_shops: int = 20,
        months: int = 6,
        vacancy_rate: float = 0.1,
        full_payment_rate: float = 0.7,
        partial_payment_rate: float = 0.2,
        num_repairs: int = 5,
        seed: int | None = None,
        today: date | None = None,
        store: DocumentStore | None = None,
        config: BillingConfig | None = None,
    ) -> None:
        """Initialize the demo scenario.

        Parameters
        ----------
        num_shops : int
            Number of shop units.
        months : int
            Number of billing periods, ending with the current one.
        vacancy_rate : float
            Share of shops left vacant (0.0 to 1.0).
        full_payment_rate : float
            Share of bills paid in full.
        partial_payment_rate : float
            Share of bills paid in part; the rest stay unpaid.
        num_repairs : int
            Number of repair tickets.
        seed : int | None
            Random seed for reproducibility.
        today : date | None
            Reference date (default: today).
        store : DocumentStore | None
            Target store; a fresh in-memory store when omitted.
        config : BillingConfig | None
            Billing policy.
        """
        self.num_shops = num_shops
        self.months = months
        self.full_payment_rate = full_payment_rate
        self.partial_payment_rate = partial_payment_rate
        self.num_repairs = num_repairs
        self.today = today or date.today()
        self.config = config or BillingConfig()
        self.store = store if store is not None else MemoryDocumentStore()

        self._rng = random.Random(seed)
        self._shop_gen = ShopGenerator(seed=seed, vacancy_rate=vacancy_rate)
        self._staff_gen = StaffGenerator(seed=seed)
        self._payment_time = datetime.combine(self.today, datetime.min.time())

        self._generators = {
            kind: BillingRecordGenerator(self.store, kind, self.config) for kind in BillingKind
        }
        self._ledgers = {
            kind: PaymentLedger(self.store, kind, self.config, clock=lambda: self._payment_time)
            for kind in BillingKind
        }
        self._directory = ShopDirectory(
            self.store, self._generators[BillingKind.RENT], self._generators[BillingKind.MAINTENANCE]
        )

    def generate(self) -> DocumentStore:
        """Generate all data for the demo plaza.

        Returns
        -------
        DocumentStore
            Store containing the generated collections.
        """
        periods = previous_periods(self.months, self.today)
        logger.info(
            "Starting demo plaza scenario: %d shops over %d months (%s to %s)",
            self.num_shops,
            self.months,
            periods[0],
            periods[-1],
        )

        SettingsService(self.store).update(PlazaSettings(plaza_name="City Centre Plaza"))
        self._add_staff()

        shops = []
        for shop in self._shop_gen.generate_batch(self.num_shops):
            stored, _ = self._directory.add_shop(shop, periods[-1])
            shops.append(stored)
        logger.info("Generated %d shops", len(shops))

        for kind, generator in self._generators.items():
            for period in periods:
                generator.generate_all(period, shops)
            self._pay(kind)

        self._add_repairs(shops)
        logger.info("Demo plaza ready")
        return self.store

    def _add_staff(self) -> None:
        for role in (Role.ADMIN, Role.STAFF, Role.STAFF):
            user = self._staff_gen.generate(role)
            doc = to_document(user)
            doc.pop("uid")
            self.store.set(USERS, user.uid, doc)

    def _collectors(self) -> list[str]:
        return [doc["displayName"] for doc in self.store.list(USERS)] or [self.config.unknown_collector]

    def _pay(self, kind: BillingKind) -> None:
        collectors = self._collectors()
        ledger = self._ledgers[kind]
        records = [from_document(BillingRecord, doc) for doc in self.store.list(kind.collection)]
        current = current_period(self.today)
        paid = 0

        for record in records:
            behaviour = self._rng.choices(
                ["full", "partial", "none"],
                weights=[
                    self.full_payment_rate,
                    self.partial_payment_rate,
                    max(0.0, 1 - self.full_payment_rate - self.partial_payment_rate),
                ],
                k=1,
            )[0]
            if behaviour == "none" or record.amount <= 0:
                continue

            year, month = parse_period(record.month)
            last_day = self.today.day if record.month == current else 28
            if behaviour == "full":
                instalments = [record.amount]
            else:
                first = (record.amount * Decimal(self._rng.randint(3, 7)) / 10).quantize(Decimal("1"))
                instalments = [first]
                if self._rng.random() < 0.5:
                    instalments.append((record.amount - first) / 2)

            for amount in instalments:
                day = self._rng.randint(1, last_day)
                self._payment_time = datetime(year, month, day, self._rng.randint(9, 19), self._rng.choice([0, 15, 30, 45]))
                ledger.apply_payment(record.id, amount, collected_by=self._rng.choice(collectors))
                paid += 1

        logger.info("Recorded %d %s payments", paid, kind.value)

    def _add_repairs(self, shops: list) -> None:
        log = RepairLog(self.store)
        for _ in range(min(self.num_repairs, len(shops))):
            shop = self._rng.choice(shops)
            status = self._rng.choice(list(RepairStatus))
            reported = self.today.replace(day=self._rng.randint(1, self.today.day))
            repair = RepairRecord(
                id="",
                shop_id=shop.id,
                shop_number=shop.shop_number,
                issue=self._rng.choice(REPAIR_ISSUES),
                priority=self._rng.choice(list(RepairPriority)),
                status=status,
                date_reported=reported.isoformat(),
            )
            if status == RepairStatus.COMPLETED:
                repair.date_resolved = self.today.isoformat()
                repair.cost = Decimal(self._rng.randint(5, 50) * 100)
            log.add_repair(repair)
