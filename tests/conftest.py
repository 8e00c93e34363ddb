"""Pytest configuration and fixtures."""

from __future__ import annotations

from decimal import Decimal
from typing import Callable

import pytest

from plaza_billing.auth import AuthUser, IdentityProvider, SessionCallback
from plaza_billing.billing.generator import BillingRecordGenerator
from plaza_billing.billing.ledger import PaymentLedger
from plaza_billing.config import BillingConfig
from plaza_billing.exceptions import DuplicateCredentialError, StoreError
from plaza_billing.models import (
    BillingKind,
    BillingRecord,
    BillingStatus,
    PaymentTransaction,
    Shop,
    ShopStatus,
)
from plaza_billing.store.memory import MemoryDocumentStore


class FakeIdentityProvider(IdentityProvider):
    """In-process identity provider for tests."""

    def __init__(self) -> None:
        self.passwords: dict[str, str] = {}
        self.uids: dict[str, str] = {}
        self.resets: list[str] = []
        self.current: AuthUser | None = None
        self._callbacks: list[SessionCallback] = []

    def _emit(self) -> None:
        for callback in list(self._callbacks):
            callback(self.current)

    def _register(self, email: str, password: str) -> AuthUser:
        if email in self.passwords:
            raise DuplicateCredentialError(f"{email} is already in use")
        self.passwords[email] = password
        self.uids[email] = f"uid-{len(self.uids) + 1}"
        return AuthUser(uid=self.uids[email], email=email)

    def sign_in(self, email: str, password: str) -> AuthUser:
        if self.passwords.get(email) != password:
            raise StoreError("Invalid email or password")
        self.current = AuthUser(uid=self.uids[email], email=email)
        self._emit()
        return self.current

    def sign_up(self, email: str, password: str) -> AuthUser:
        self.current = self._register(email, password)
        self._emit()
        return self.current

    def create_user(self, email: str, password: str) -> AuthUser:
        return self._register(email, password)

    def sign_out(self) -> None:
        self.current = None
        self._emit()

    def send_password_reset(self, email: str) -> None:
        self.resets.append(email)

    def on_session_change(self, callback: SessionCallback) -> Callable[[], None]:
        self._callbacks.append(callback)
        callback(self.current)
        return lambda: self._callbacks.remove(callback)


@pytest.fixture
def seed() -> int:
    """Fixed seed for reproducible tests."""
    return 42


@pytest.fixture
def store() -> MemoryDocumentStore:
    """Create a fresh store for each test."""
    return MemoryDocumentStore()


@pytest.fixture
def billing_config() -> BillingConfig:
    return BillingConfig()


@pytest.fixture
def provider() -> FakeIdentityProvider:
    return FakeIdentityProvider()


@pytest.fixture
def make_shop() -> Callable[..., Shop]:
    """Factory for shops with sensible defaults."""

    def factory(
        shop_id: str = "shop-101",
        shop_number: str = "101",
        status: ShopStatus = ShopStatus.OCCUPIED,
        rent: str = "45000",
        maintenance: str = "5000",
        **kwargs: object,
    ) -> Shop:
        values: dict = {
            "id": shop_id,
            "shop_number": shop_number,
            "floor": 1,
            "owner_name": "Ali Electronics",
            "phone": "0300-1234567",
            "monthly_rent": Decimal(rent),
            "monthly_maintenance": Decimal(maintenance),
            "status": status,
        }
        values.update(kwargs)
        return Shop(**values)

    return factory


@pytest.fixture
def make_record() -> Callable[..., BillingRecord]:
    """Factory for billing records with sensible defaults."""

    def factory(
        record_id: str = "rec-1",
        shop_id: str = "shop-101",
        month: str = "2025-03",
        amount: str = "45000",
        collected: str = "0",
        status: BillingStatus | None = None,
        transactions: list[PaymentTransaction] | None = None,
        **kwargs: object,
    ) -> BillingRecord:
        values: dict = {
            "id": record_id,
            "shop_id": shop_id,
            "shop_number": "101",
            "owner_name": "Ali Electronics",
            "phone": "0300-1234567",
            "amount": Decimal(amount),
            "collected": Decimal(collected),
            "due_date": f"{month}-05",
            "status": status or BillingStatus.PENDING,
            "month": month,
            "transactions": transactions or [],
        }
        values.update(kwargs)
        return BillingRecord(**values)

    return factory


@pytest.fixture
def rent_generator(store: MemoryDocumentStore, billing_config: BillingConfig) -> BillingRecordGenerator:
    return BillingRecordGenerator(store, BillingKind.RENT, billing_config)


@pytest.fixture
def maintenance_generator(
    store: MemoryDocumentStore, billing_config: BillingConfig
) -> BillingRecordGenerator:
    return BillingRecordGenerator(store, BillingKind.MAINTENANCE, billing_config)


@pytest.fixture
def rent_ledger(store: MemoryDocumentStore, billing_config: BillingConfig) -> PaymentLedger:
    return PaymentLedger(store, BillingKind.RENT, billing_config)
