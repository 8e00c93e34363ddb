"""Directory, repair, settings and staff services over a document store."""

from plaza_billing.services.repairs import RepairLog
from plaza_billing.services.settings import SettingsService
from plaza_billing.services.shops import ShopDirectory
from plaza_billing.services.staff import StaffDirectory

__all__ = ["RepairLog", "SettingsService", "ShopDirectory", "StaffDirectory"]
