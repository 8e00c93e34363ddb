"""Enumeration types for plaza entities."""

from enum import Enum


class ShopStatus(str, Enum):
    OCCUPIED = "Occupied"
    VACANT = "Vacant"


class BillingStatus(str, Enum):
    PAID = "Paid"
    PARTIAL = "Partial"
    PENDING = "Pending"
    OVERDUE = "Overdue"


class BillingKind(str, Enum):
    """The two parallel billing streams, each kept in its own collection."""

    RENT = "rent"
    MAINTENANCE = "maintenance"

    @property
    def collection(self) -> str:
        return "rentRecords" if self is BillingKind.RENT else "maintenanceCollections"

    @property
    def label(self) -> str:
        return "Rent" if self is BillingKind.RENT else "Maintenance"


class Role(str, Enum):
    ADMIN = "admin"
    STAFF = "staff"


class Permission(str, Enum):
    DASHBOARD = "dashboard"
    SHOPS = "shops"
    RENT = "rent"
    MAINTENANCE = "maintenance"
    SETTINGS = "settings"


class RepairPriority(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class RepairStatus(str, Enum):
    PENDING = "Pending"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"
