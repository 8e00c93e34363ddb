"""Tests for the operator console facade."""

import json
import logging
from datetime import date
from decimal import Decimal

import pytest

from plaza_billing.billing.status import current_period
from plaza_billing.console import Notice, PlazaConsole
from plaza_billing.logging import JsonFormatter
from plaza_billing.models import (
    BillingKind,
    BillingStatus,
    Permission,
    PlazaSettings,
    RepairPriority,
    RepairRecord,
    RepairStatus,
    ShopStatus,
)
from plaza_billing.services import StaffDirectory
from plaza_billing.store.base import RENT_RECORDS, USERS


@pytest.fixture
def console(store) -> PlazaConsole:
    return PlazaConsole(store)


@pytest.fixture
def notices(console) -> list[Notice]:
    received: list[Notice] = []
    console.on_notice(received.append)
    return received


class TestShopsAndBilling:
    """Write actions report through notices."""

    def test_add_shop(self, console, notices, make_shop) -> None:
        shop = console.add_shop(make_shop(shop_id=""), "2025-03")

        assert shop is not None
        assert notices == [Notice("success", "Shop 101 added")]
        assert len(console.state.rent_records) == 1
        assert len(console.state.maintenance_records) == 1

    def test_add_shop_defaults_to_current_period(self, console, make_shop) -> None:
        console.add_shop(make_shop(shop_id=""))

        assert console.state.rent_records[0].month == current_period()

    def test_validation_error_becomes_notice(self, console, notices, store, make_shop) -> None:
        result = console.add_shop(make_shop(shop_id="", owner_name=""), "2025-03")

        assert result is None
        assert notices[0].level == "error"
        assert "Owner name is required" in notices[0].message
        assert store.list("shops") == []

    def test_failure_logged_with_context(self, console, make_shop, caplog) -> None:
        with caplog.at_level(logging.WARNING, logger="plaza_billing.console"):
            console.add_shop(make_shop(shop_id="", owner_name=""), "2025-03")

        record = caplog.records[-1]
        assert record.extra == {"action": "add shop", "error": "ValidationError", "operator": None}
        assert json.loads(JsonFormatter().format(record))["action"] == "add shop"

    def test_generate_bills(self, console, notices, make_shop) -> None:
        console.add_shop(make_shop(shop_id=""), "2025-03")
        console.add_shop(make_shop(shop_id="", shop_number="102"), "2025-03")
        notices.clear()

        result = console.generate_bills(BillingKind.RENT, "2025-04")
        again = console.generate_bills(BillingKind.RENT, "2025-04")

        assert result.count == 2
        assert again.count == 0
        assert notices == [
            Notice("success", "Generated 2 Rent bills for April 2025"),
            Notice("info", "Rent bills for April 2025 already exist"),
        ]

    def test_create_bill(self, console, notices, make_shop) -> None:
        shop = console.add_shop(make_shop(shop_id=""), "2025-03")
        notices.clear()

        record = console.create_bill(BillingKind.MAINTENANCE, shop.id, "2025-04")
        duplicate = console.create_bill(BillingKind.MAINTENANCE, shop.id, "2025-04")

        assert record.month == "2025-04"
        assert duplicate is None
        assert notices[0] == Notice("success", "Maintenance bill generated for Shop 101")
        assert notices[1].level == "info"

    def test_create_bill_vacant(self, console, notices, make_shop) -> None:
        shop = console.add_shop(make_shop(shop_id="", status=ShopStatus.VACANT))
        notices.clear()

        assert console.create_bill(BillingKind.RENT, shop.id, "2025-04") is None
        assert notices[0].level == "error"
        assert "vacant" in notices[0].message

    def test_create_bill_unknown_shop(self, console, notices) -> None:
        assert console.create_bill(BillingKind.RENT, "ghost", "2025-04") is None
        assert notices[0].level == "error"

    def test_record_payment(self, console, notices, make_shop) -> None:
        shop = console.add_shop(make_shop(shop_id=""), "2025-03")
        record = console.state.record_for(BillingKind.RENT, shop.id, "2025-03")
        notices.clear()

        first = console.record_payment(BillingKind.RENT, record.id, "20000")
        second = console.record_payment(BillingKind.RENT, record.id, "25000", note="Balance")

        assert first.status == BillingStatus.PARTIAL
        assert second.status == BillingStatus.PAID
        assert notices[-1] == Notice("success", "Rent payment recorded for Shop 101 (Rs. 45,000 of 45,000)")
        mirrored = console.state.find_record(BillingKind.RENT, record.id)
        assert mirrored.collected == Decimal("45000")
        assert [t.amount for t in mirrored.transactions] == [Decimal("25000"), Decimal("20000")]

    def test_record_payment_invalid(self, console, notices) -> None:
        assert console.record_payment(BillingKind.RENT, "ghost", "0") is None
        assert "greater than zero" in notices[0].message

    def test_history_and_overdue(self, console, make_shop) -> None:
        shop = console.add_shop(make_shop(shop_id=""), "2025-02")
        console.create_bill(BillingKind.RENT, shop.id, "2025-03")
        console.state.settings = PlazaSettings(late_fee_percentage=Decimal("10"))

        history = console.history(BillingKind.RENT, shop.id)
        overdue = console.overdue(BillingKind.RENT, date(2025, 3, 10))
        fees = console.late_fees(BillingKind.RENT, date(2025, 3, 10))

        assert history.years == [2025]
        assert [r.month for r in history.records_by_year[2025]] == ["2025-03", "2025-02"]
        assert [r.month for r in overdue] == ["2025-03", "2025-02"]
        assert set(fees.values()) == {Decimal("4500.00")}
        assert console.arrears_for(BillingKind.RENT, shop.id, "2025-03") == Decimal("45000")
        assert console.display_status(overdue[0], date(2025, 3, 10)) == BillingStatus.OVERDUE
        assert console.state.records(BillingKind.RENT)[0].status == BillingStatus.PENDING


class TestReports:
    def test_export_empty_selection(self, console, notices) -> None:
        assert console.export(BillingKind.RENT, "2025-01", "2025-02") == []
        assert notices == [Notice("error", "No records found for the selected criteria")]

    def test_export_rows(self, console, notices, make_shop) -> None:
        console.add_shop(make_shop(shop_id=""), "2025-03")
        notices.clear()

        rows = console.export(BillingKind.RENT, "2025-01", "2025-12")

        assert [r.month for r in rows] == ["2025-03"]
        assert notices == []

    def test_export_revenue(self, console, notices, make_shop) -> None:
        shop = console.add_shop(make_shop(shop_id=""), "2025-03")
        record = console.state.record_for(BillingKind.RENT, shop.id, "2025-03")
        console.record_payment(BillingKind.RENT, record.id, "20000", note="Cash")
        notices.clear()

        entries = console.export_revenue(date(2000, 1, 1), date(2100, 1, 1), BillingKind.RENT, "cash")
        none = console.export_revenue(date(2000, 1, 1), date(2100, 1, 1), BillingKind.MAINTENANCE)

        assert [e.as_list()[1:] for e in entries] == [["Rent", "101", "Ali Electronics", "20000", "Unknown Staff", "Cash"]]
        assert none == []
        assert notices == [Notice("error", "No records found for the selected criteria")]

    def test_message_link(self, console, make_shop) -> None:
        shop = console.add_shop(make_shop(shop_id=""), "2025-03")
        record = console.state.record_for(BillingKind.MAINTENANCE, shop.id, "2025-03")

        link = console.message_link(BillingKind.MAINTENANCE, record.id, today=date(2025, 3, 12))

        assert link.startswith("https://wa.me/923001234567?text=")

    def test_message_link_unknown_record(self, console, notices) -> None:
        assert console.message_link(BillingKind.RENT, "ghost") is None
        assert notices[0].level == "error"

    def test_dashboard_and_revenue(self, console, make_shop) -> None:
        shop = console.add_shop(make_shop(shop_id=""), "2025-03")
        record = console.state.record_for(BillingKind.RENT, shop.id, "2025-03")
        console.record_payment(BillingKind.RENT, record.id, "20000")

        stats = console.dashboard()
        entries, summary = console.revenue(date(2000, 1, 1), date(2100, 1, 1))

        assert stats.rent_collected == Decimal("20000")
        assert stats.pending_rent == Decimal("25000")
        assert len(entries) == 1
        assert summary.rent == Decimal("20000")


class TestRepairsAndSettings:
    def test_repair_lifecycle(self, console, notices) -> None:
        repair = console.add_repair(
            RepairRecord("", "s1", "101", "Leak", RepairPriority.HIGH, RepairStatus.PENDING, "2025-03-01")
        )

        assert console.resolve_repair(repair.id, cost="500") is True
        assert console.state.repairs[0].status == RepairStatus.COMPLETED
        assert [n.message for n in notices] == ["Repair logged", "Repair marked as completed"]

    def test_update_settings(self, console, notices) -> None:
        console.update_settings(PlazaSettings(plaza_name="City Centre Plaza"))

        assert console.state.settings.plaza_name == "City Centre Plaza"
        assert notices == [Notice("success", "Settings saved")]


class TestPermissions:
    """Checks apply once an identity provider is configured."""

    @pytest.fixture
    def secured(self, store, provider) -> PlazaConsole:
        return PlazaConsole(store, provider=provider)

    def test_staff_limited_to_granted_areas(self, secured, store, provider, make_shop) -> None:
        StaffDirectory(provider, store).add_staff("staff@plaza.com", "secret1", "Ali Staff", [Permission.RENT])
        store.set(USERS, "boss", {"email": "b@x", "displayName": "Boss", "role": "admin"})
        received: list[Notice] = []
        secured.on_notice(received.append)

        assert secured.login("staff@plaza.com", "secret1") is True
        assert secured.current_user.display_name == "Ali Staff"
        assert secured.add_shop(make_shop(shop_id="")) is None
        assert "shops permission" in received[-1].message
        assert secured.add_staff("x@plaza.com", "secret1", "X") is None
        assert "administrators" in received[-1].message

    def test_collector_recorded(self, secured, store, provider, make_shop) -> None:
        secured.sign_up("owner@plaza.com", "secret1", "Super Admin")
        shop = secured.add_shop(make_shop(shop_id=""), "2025-03")
        record = secured.state.record_for(BillingKind.RENT, shop.id, "2025-03")

        paid = secured.record_payment(BillingKind.RENT, record.id, "100")

        assert paid.transactions[0].collected_by == "Super Admin"

    def test_admin_manages_staff(self, secured, store) -> None:
        secured.sign_up("owner@plaza.com", "secret1", "Owner")

        user = secured.add_staff("staff@plaza.com", "secret1", "Ali Staff", [Permission.RENT])
        assert secured.update_staff(user.uid, display_name="Ali") is True
        assert secured.state.find_staff(user.uid).display_name == "Ali"
        assert secured.delete_staff(user.uid) is True
        assert secured.state.find_staff(user.uid) is None

    def test_unknown_role_becomes_notice(self, secured) -> None:
        secured.sign_up("owner@plaza.com", "secret1", "Owner")
        user = secured.add_staff("staff@plaza.com", "secret1", "Ali Staff")
        received: list[Notice] = []
        secured.on_notice(received.append)

        assert secured.update_staff(user.uid, role="owner") is False
        assert received == [Notice("error", "Failed to update staff: Unknown role 'owner'")]

    def test_reset_password(self, secured, store, provider) -> None:
        secured.sign_up("owner@plaza.com", "secret1", "Owner")

        assert secured.reset_password("owner@plaza.com") is True
        assert secured.reset_password("ghost@plaza.com") is False
        assert provider.resets == ["owner@plaza.com"]

    def test_logout(self, secured) -> None:
        secured.sign_up("owner@plaza.com", "secret1", "Owner")

        secured.logout()

        assert secured.current_user is None

    def test_staff_actions_need_provider(self, console, notices) -> None:
        assert console.add_staff("x@plaza.com", "secret1", "X") is None
        assert console.login("x@plaza.com", "secret1") is False
        assert all(n.level == "error" for n in notices)

    def test_bad_login(self, secured) -> None:
        assert secured.login("nobody@plaza.com", "secret1") is False
