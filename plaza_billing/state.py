"""Client-side mirror of the plaza collections."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable

from plaza_billing.exceptions import ShopNotFoundError, StoreError
from plaza_billing.models import (
    BillingKind,
    BillingRecord,
    PlazaSettings,
    RepairRecord,
    Shop,
    StaffUser,
)
from plaza_billing.store.base import (
    MAINTENANCE_COLLECTIONS,
    RENT_RECORDS,
    REPAIR_RECORDS,
    SETTINGS,
    SETTINGS_DOC_ID,
    SHOPS,
    USERS,
    Document,
    DocumentStore,
)
from plaza_billing.store.serialization import from_document

logger = logging.getLogger(__name__)


@dataclass
class PlazaState:
    """In-memory view of every collection, refreshed from store snapshots.

    Each snapshot replaces the corresponding list wholesale; nothing is merged.
    Billing records are kept newest period first.
    """

    shops: list[Shop] = field(default_factory=list)
    rent_records: list[BillingRecord] = field(default_factory=list)
    maintenance_records: list[BillingRecord] = field(default_factory=list)
    repairs: list[RepairRecord] = field(default_factory=list)
    staff: list[StaffUser] = field(default_factory=list)
    settings: PlazaSettings = field(default_factory=PlazaSettings)

    _unsubscribers: list[Callable[[], None]] = field(default_factory=list, repr=False)
    _listeners: list[Callable[[str], None]] = field(default_factory=list, repr=False)

    def attach(self, store: DocumentStore) -> None:
        """Subscribe to every collection of ``store``."""
        self.detach()
        for collection in (SHOPS, RENT_RECORDS, MAINTENANCE_COLLECTIONS, REPAIR_RECORDS, USERS, SETTINGS):
            self._unsubscribers.append(
                store.subscribe(collection, lambda docs, name=collection: self.apply_snapshot(name, docs))
            )

    def detach(self) -> None:
        """Drop all store subscriptions."""
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers.clear()

    def on_change(self, listener: Callable[[str], None]) -> None:
        """Call ``listener(collection)`` after each applied snapshot."""
        self._listeners.append(listener)

    def apply_snapshot(self, collection: str, docs: list[Document]) -> None:
        """Replace the mirror of ``collection`` with ``docs``."""
        if collection == SHOPS:
            self.shops = self._load(Shop, docs)
        elif collection == RENT_RECORDS:
            self.rent_records = self._by_period(self._load(BillingRecord, docs))
        elif collection == MAINTENANCE_COLLECTIONS:
            self.maintenance_records = self._by_period(self._load(BillingRecord, docs))
        elif collection == REPAIR_RECORDS:
            self.repairs = self._load(RepairRecord, docs)
        elif collection == USERS:
            self.staff = self._load(StaffUser, docs)
        elif collection == SETTINGS:
            doc = next((d for d in docs if d.get("id") == SETTINGS_DOC_ID), None)
            self.settings = from_document(PlazaSettings, doc) if doc else PlazaSettings()
        else:
            return
        for listener in self._listeners:
            listener(collection)

    @staticmethod
    def _load(cls: type, docs: list[Document]) -> list[Any]:
        items = []
        for doc in docs:
            try:
                items.append(from_document(cls, doc))
            except StoreError as e:
                logger.warning("Ignoring unreadable document: %s", e)
        return items

    @staticmethod
    def _by_period(records: list[BillingRecord]) -> list[BillingRecord]:
        return sorted(records, key=lambda r: r.month or "", reverse=True)

    def records(self, kind: BillingKind) -> list[BillingRecord]:
        return self.rent_records if kind is BillingKind.RENT else self.maintenance_records

    def find_shop(self, shop_id: str) -> Shop:
        for shop in self.shops:
            if shop.id == shop_id:
                return shop
        raise ShopNotFoundError(f"Shop {shop_id} not found")

    def find_record(self, kind: BillingKind, record_id: str) -> BillingRecord | None:
        return next((r for r in self.records(kind) if r.id == record_id), None)

    def record_for(self, kind: BillingKind, shop_id: str, period: str) -> BillingRecord | None:
        """The shop's record for ``period``, if generated."""
        return next(
            (r for r in self.records(kind) if r.shop_id == shop_id and r.month == period),
            None,
        )

    def find_staff(self, uid: str) -> StaffUser | None:
        return next((u for u in self.staff if u.uid == uid), None)
