"""Repair work-order model."""

from dataclasses import dataclass
from decimal import Decimal

from plaza_billing.models.enums import RepairPriority, RepairStatus


@dataclass
class RepairRecord:
    """Repair or maintenance task reported for a shop."""

    id: str
    shop_id: str
    shop_number: str
    issue: str
    priority: RepairPriority
    status: RepairStatus
    date_reported: str  # YYYY-MM-DD
    date_resolved: str | None = None
    cost: Decimal | None = None
    resolution_notes: str | None = None
