"""Shop unit model."""

from dataclasses import dataclass
from decimal import Decimal

from plaza_billing.models.enums import ShopStatus


@dataclass
class Shop:
    """Leasable shop unit and its monthly billing configuration."""

    id: str
    shop_number: str  # Display key, e.g. "101"
    floor: int
    owner_name: str
    phone: str
    monthly_rent: Decimal
    monthly_maintenance: Decimal
    status: ShopStatus
    email: str | None = None

    @property
    def is_occupied(self) -> bool:
        return self.status == ShopStatus.OCCUPIED
