"""Plaza settings model."""

from dataclasses import dataclass
from decimal import Decimal


@dataclass
class PlazaSettings:
    """Singleton plaza configuration document."""

    plaza_name: str = "Plaza Manager"
    address: str = "City Center"
    contact_phone: str = ""
    late_fee_percentage: Decimal = Decimal("5")
