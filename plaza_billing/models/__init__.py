"""Plaza domain models."""

from plaza_billing.models.billing import BillingRecord, PaymentTransaction
from plaza_billing.models.enums import (
    BillingKind,
    BillingStatus,
    Permission,
    RepairPriority,
    RepairStatus,
    Role,
    ShopStatus,
)
from plaza_billing.models.repair import RepairRecord
from plaza_billing.models.shop import Shop
from plaza_billing.models.settings import PlazaSettings
from plaza_billing.models.staff import StaffUser

__all__ = [
    "BillingKind",
    "BillingRecord",
    "BillingStatus",
    "PaymentTransaction",
    "Permission",
    "PlazaSettings",
    "RepairPriority",
    "RepairRecord",
    "RepairStatus",
    "Role",
    "Shop",
    "ShopStatus",
    "StaffUser",
]
