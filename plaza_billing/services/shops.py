"""Shop directory maintenance."""

from __future__ import annotations

import logging
from typing import Iterable

from plaza_billing.billing.generator import BillingRecordGenerator
from plaza_billing.billing.status import current_period, parse_amount
from plaza_billing.exceptions import RecordNotFoundError, ShopNotFoundError, ValidationError
from plaza_billing.models import BillingKind, BillingRecord, Shop, ShopStatus
from plaza_billing.store.base import SHOPS, DocumentStore
from plaza_billing.store.serialization import from_document, to_document

logger = logging.getLogger(__name__)


class ShopDirectory:
    """Create, edit and look up shop units.

    A shop created as occupied is billed for the current period straight away
    through both generators. Editing a shop never touches records that were
    already generated: they keep the owner and amounts copied at generation.
    """

    def __init__(
        self,
        store: DocumentStore,
        rent_generator: BillingRecordGenerator,
        maintenance_generator: BillingRecordGenerator,
    ) -> None:
        self.store = store
        self.generators = {
            BillingKind.RENT: rent_generator,
            BillingKind.MAINTENANCE: maintenance_generator,
        }

    @staticmethod
    def validate(shop: Shop) -> None:
        """Check required fields and normalise amounts in place."""
        if not str(shop.shop_number or "").strip():
            raise ValidationError("Shop number is required")
        if not (shop.owner_name or "").strip():
            raise ValidationError("Owner name is required")
        if not (shop.phone or "").strip():
            raise ValidationError("Phone number is required")
        try:
            shop.floor = int(shop.floor)
        except (TypeError, ValueError) as e:
            raise ValidationError(f"Floor must be a whole number, got {shop.floor!r}") from e
        shop.monthly_rent = parse_amount(shop.monthly_rent, field="Monthly rent", allow_zero=True)
        shop.monthly_maintenance = parse_amount(
            shop.monthly_maintenance, field="Monthly maintenance", allow_zero=True
        )
        try:
            shop.status = ShopStatus(shop.status)
        except ValueError as e:
            raise ValidationError(f"Unknown shop status {shop.status!r}") from e

    def add_shop(
        self,
        shop: Shop,
        period: str | None = None,
    ) -> tuple[Shop, list[BillingRecord]]:
        """Store a new shop and bill it for ``period`` (default: current) if occupied.

        Returns
        -------
        tuple[Shop, list[BillingRecord]]
            The stored shop (with its new id) and any records generated for it.
        """
        self.validate(shop)
        doc = to_document(shop)
        doc.pop("id", None)
        shop.id = self.store.add(SHOPS, doc)
        logger.info("Added shop %s (%s)", shop.shop_number, shop.status.value)

        created = []
        if shop.is_occupied:
            period = period or current_period()
            for generator in self.generators.values():
                record = generator.generate_for_shop(shop, period)
                if record is not None:
                    created.append(record)
        return shop, created

    def update_shop(self, shop: Shop) -> Shop:
        """Overwrite a shop's fields; existing billing records are left alone."""
        if not shop.id:
            raise ValidationError("Shop ID is missing")
        self.validate(shop)
        doc = to_document(shop, keep_none=True)
        doc.pop("id", None)
        try:
            self.store.update(SHOPS, shop.id, doc)
        except RecordNotFoundError as e:
            raise ShopNotFoundError(f"Shop {shop.id} not found") from e
        logger.info("Updated shop %s", shop.shop_number)
        return shop

    def get_shop(self, shop_id: str) -> Shop:
        doc = self.store.get(SHOPS, shop_id)
        if doc is None:
            raise ShopNotFoundError(f"Shop {shop_id} not found")
        return from_document(Shop, doc)

    def list_shops(self) -> list[Shop]:
        return [from_document(Shop, doc) for doc in self.store.list(SHOPS)]

    @staticmethod
    def occupied(shops: Iterable[Shop]) -> list[Shop]:
        return [s for s in shops if s.is_occupied]

    @staticmethod
    def search(
        shops: Iterable[Shop],
        text: str | None = None,
        status: ShopStatus | None = None,
    ) -> list[Shop]:
        """Shops whose number, owner or phone contains ``text`` (case-insensitive)."""
        needle = (text or "").strip().lower()
        return [
            s
            for s in shops
            if (status is None or s.status == status)
            and (
                not needle
                or needle in s.shop_number.lower()
                or needle in s.owner_name.lower()
                or needle in (s.phone or "").lower()
            )
        ]
