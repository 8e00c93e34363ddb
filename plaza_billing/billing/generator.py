"""Monthly billing record generation."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable

from plaza_billing.billing.status import ZERO, due_date_for, parse_period
from plaza_billing.config import BillingConfig
from plaza_billing.exceptions import InvalidEntityStateError
from plaza_billing.models import BillingKind, BillingRecord, BillingStatus, Shop
from plaza_billing.store.base import PERIOD_KEYS, DocumentStore
from plaza_billing.store.serialization import to_document

logger = logging.getLogger(__name__)


@dataclass
class GenerationResult:
    """Outcome of a bulk generation run."""

    kind: BillingKind
    period: str
    created: list[BillingRecord] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)  # Shop ids already billed

    @property
    def count(self) -> int:
        return len(self.created)


class BillingRecordGenerator:
    """Create rent or maintenance records for occupied shops.

    Both the bulk and the single-shop operation insert through the store's
    atomic check-and-insert, so a shop is billed at most once per period no
    matter how many operators trigger generation concurrently. There is no
    batch transaction: if the store fails mid-run, records inserted before the
    failure stay, and re-running the same period fills in the rest.

    Parameters
    ----------
    store : DocumentStore
        Store holding the billing collection.
    kind : BillingKind
        Rent or maintenance.
    config : BillingConfig | None
        Billing policy (due days).
    """

    def __init__(
        self,
        store: DocumentStore,
        kind: BillingKind,
        config: BillingConfig | None = None,
    ) -> None:
        self.store = store
        self.kind = kind
        self.config = config or BillingConfig()

    @property
    def due_day(self) -> int:
        if self.kind is BillingKind.RENT:
            return self.config.rent_due_day
        return self.config.maintenance_due_day

    def build_record(self, shop: Shop, period: str) -> BillingRecord:
        """Fresh, unsaved record for ``shop`` in ``period``."""
        amount = shop.monthly_rent if self.kind is BillingKind.RENT else shop.monthly_maintenance
        return BillingRecord(
            id="",
            shop_id=shop.id,
            shop_number=shop.shop_number,
            owner_name=shop.owner_name,
            phone=shop.phone or "",
            amount=amount or ZERO,
            collected=ZERO,
            due_date=due_date_for(period, self.due_day),
            status=BillingStatus.PENDING,
            month=period,
            transactions=[],
        )

    def generate_all(self, period: str, shops: Iterable[Shop]) -> GenerationResult:
        """Bill every occupied shop that has no record for ``period`` yet.

        Parameters
        ----------
        period : str
            Billing period (``YYYY-MM``).
        shops : Iterable[Shop]
            Current shop directory; vacant shops are ignored.

        Returns
        -------
        GenerationResult
            Records created and shops skipped as already billed.
        """
        parse_period(period)
        result = GenerationResult(kind=self.kind, period=period)

        for shop in shops:
            if not shop.is_occupied:
                continue
            record = self._insert(shop, period)
            if record is None:
                result.skipped.append(shop.id)
            else:
                result.created.append(record)

        logger.info(
            "Generated %d %s bills for %s (%d already billed)",
            result.count,
            self.kind.value,
            period,
            len(result.skipped),
        )
        return result

    def generate_for_shop(self, shop: Shop, period: str) -> BillingRecord | None:
        """Bill one shop for ``period``.

        Returns
        -------
        BillingRecord | None
            The new record, or ``None`` if the shop was already billed.

        Raises
        ------
        InvalidEntityStateError
            If the shop is vacant.
        """
        parse_period(period)
        if not shop.is_occupied:
            raise InvalidEntityStateError(f"Shop {shop.shop_number} is vacant and cannot be billed")

        record = self._insert(shop, period)
        if record is None:
            logger.info("%s bill for shop %s in %s already exists", self.kind.label, shop.shop_number, period)
        else:
            logger.info("Generated %s bill for shop %s in %s", self.kind.value, shop.shop_number, period)
        return record

    def _insert(self, shop: Shop, period: str) -> BillingRecord | None:
        record = self.build_record(shop, period)
        doc = to_document(record)
        doc.pop("id", None)
        doc_id = self.store.insert_unique(self.kind.collection, doc, PERIOD_KEYS)
        if doc_id is None:
            return None
        record.id = doc_id
        return record
