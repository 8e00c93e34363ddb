"""Repair work-order log."""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import Any

from plaza_billing.billing.status import parse_amount
from plaza_billing.exceptions import ValidationError
from plaza_billing.models import RepairRecord, RepairStatus
from plaza_billing.store.base import REPAIR_RECORDS, DocumentStore
from plaza_billing.store.serialization import from_document, to_document

logger = logging.getLogger(__name__)


class RepairLog:
    """CRUD over repair records. Repairs never affect billing."""

    def __init__(self, store: DocumentStore) -> None:
        self.store = store

    @staticmethod
    def validate(repair: RepairRecord) -> None:
        if not repair.shop_id:
            raise ValidationError("Select a shop for the repair")
        if not (repair.issue or "").strip():
            raise ValidationError("Describe the issue")
        if repair.cost is not None:
            repair.cost = parse_amount(repair.cost, field="Repair cost", allow_zero=True)

    def add_repair(self, repair: RepairRecord) -> RepairRecord:
        """Store a new repair; ``date_reported`` defaults to today."""
        self.validate(repair)
        repair.date_reported = repair.date_reported or date.today().isoformat()
        doc = to_document(repair)
        doc.pop("id", None)
        repair.id = self.store.add(REPAIR_RECORDS, doc)
        logger.info("Logged %s priority repair for shop %s", repair.priority.value, repair.shop_number)
        return repair

    def update_repair(self, repair: RepairRecord) -> RepairRecord:
        if not repair.id:
            raise ValidationError("Repair ID is missing")
        self.validate(repair)
        doc = to_document(repair, keep_none=True)
        doc.pop("id", None)
        self.store.update(REPAIR_RECORDS, repair.id, doc)
        logger.info("Updated repair %s (%s)", repair.id, repair.status.value)
        return repair

    def resolve(
        self,
        repair_id: str,
        cost: Any = None,
        notes: str | None = None,
        resolved_on: date | None = None,
    ) -> None:
        """Mark a repair completed, optionally recording cost and notes."""
        changes: dict[str, Any] = {
            "status": RepairStatus.COMPLETED.value,
            "dateResolved": (resolved_on or date.today()).isoformat(),
        }
        if cost is not None and cost != "":
            changes["cost"] = str(parse_amount(cost, field="Repair cost", allow_zero=True))
        if notes:
            changes["resolutionNotes"] = notes
        self.store.update(REPAIR_RECORDS, repair_id, changes)
        logger.info("Resolved repair %s", repair_id)

    def list_repairs(self) -> list[RepairRecord]:
        return [from_document(RepairRecord, doc) for doc in self.store.list(REPAIR_RECORDS)]

    @staticmethod
    def total_cost(repairs: list[RepairRecord]) -> Decimal:
        return sum((r.cost for r in repairs if r.cost is not None), Decimal("0"))
