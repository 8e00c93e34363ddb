"""Shop and staff generators."""

from __future__ import annotations

from decimal import Decimal
from typing import Iterator

from plaza_billing.generators.base import BaseGenerator
from plaza_billing.models import Permission, Role, Shop, ShopStatus, StaffUser

BUSINESS_TRADES = [
    "Electronics",
    "Fabrics",
    "Pharmacy",
    "Mobiles",
    "Cafe",
    "Salon",
    "Bookstore",
    "Jewellers",
    "Opticians",
    "Footwear",
    "Bakers",
    "Printing",
]


class ShopGenerator(BaseGenerator):
    """Generate synthetic shop units floor by floor.

    Shop numbers follow the ``<floor><nn>`` convention (101, 102, ... 201).
    Rent is drawn in steps of 1,000 and maintenance in steps of 500; ground
    floor units are dearer.
    """

    RENT_RANGE = (25, 60)  # thousands
    MAINTENANCE_RANGE = (6, 12)  # multiples of 500

    def __init__(
        self,
        seed: int | None = None,
        shops_per_floor: int = 10,
        vacancy_rate: float = 0.1,
    ) -> None:
        super().__init__(seed)
        self.shops_per_floor = shops_per_floor
        self.vacancy_rate = vacancy_rate
        self._sequence = 0

    def generate(self) -> Shop:
        """Generate the next shop in numbering order."""
        floor, slot = divmod(self._sequence, self.shops_per_floor)
        floor += 1
        self._sequence += 1

        premium = Decimal("1.2") if floor == 1 else Decimal("1")
        rent = Decimal(self.rng.randint(*self.RENT_RANGE) * 1000) * premium
        maintenance = Decimal(self.rng.randint(*self.MAINTENANCE_RANGE) * 500)
        vacant = self.rng.random() < self.vacancy_rate

        trade = self.rng.choice(BUSINESS_TRADES)
        return Shop(
            id="",
            shop_number=f"{floor}{slot + 1:02d}",
            floor=floor,
            owner_name=f"{self.fake.last_name()} {trade}",
            phone=self.fake.numerify("03##-#######"),
            monthly_rent=rent.quantize(Decimal("1")),
            monthly_maintenance=maintenance,
            status=ShopStatus.VACANT if vacant else ShopStatus.OCCUPIED,
            email=None if self.rng.random() < 0.4 else self.fake.email(),
        )

    def generate_batch(self, count: int) -> Iterator[Shop]:
        """Generate multiple shops.

        Parameters
        ----------
        count : int
            Number of shops to generate.

        Yields
        ------
        Shop
            Generated shops.
        """
        for _ in range(count):
            yield self.generate()


class StaffGenerator(BaseGenerator):
    """Generate staff profiles with a random subset of feature permissions."""

    STAFF_PERMISSIONS = [Permission.DASHBOARD, Permission.SHOPS, Permission.RENT, Permission.MAINTENANCE]

    def generate(self, role: Role = Role.STAFF) -> StaffUser:
        name = self.fake.name()
        if role == Role.ADMIN:
            permissions = list(Permission)
        else:
            picked = self.rng.sample(self.STAFF_PERMISSIONS[1:], k=self.rng.randint(1, 3))
            permissions = [Permission.DASHBOARD, *sorted(picked, key=self.STAFF_PERMISSIONS.index)]
        return StaffUser(
            uid=self.fake.uuid4().replace("-", ""),
            email=self.fake.unique.email(),
            display_name=name,
            role=role,
            permissions=permissions,
        )
