"""Operator console: the action surface behind the plaza screens.

:class:`PlazaConsole` wires a document store, the live :class:`PlazaState`
mirror and the services together. Write actions never raise domain errors to
the caller: a :class:`~plaza_billing.exceptions.PlazaError` is logged, turned
into an ``error`` :class:`Notice` and the action returns ``None``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any, Callable, Iterable, TypeVar

from plaza_billing.auth import (
    IdentityProvider,
    SessionManager,
    require_admin,
    require_permission,
)
from plaza_billing.billing.export import ExportRow, export_rows
from plaza_billing.billing.generator import BillingRecordGenerator, GenerationResult
from plaza_billing.billing.history import ShopHistory, arrears, group_by_year
from plaza_billing.billing.ledger import PaymentLedger
from plaza_billing.billing.messages import status_message, whatsapp_link
from plaza_billing.billing.reports import (
    DashboardStats,
    RevenueEntry,
    RevenueSummary,
    dashboard_stats,
    filter_by_date_range,
    flatten_transactions,
    revenue_summary,
)
from plaza_billing.billing.status import (
    current_period,
    effective_status,
    format_period,
    is_overdue,
    late_fee,
)
from plaza_billing.config import BillingConfig
from plaza_billing.exceptions import PlazaError, RecordNotFoundError
from plaza_billing.models import (
    BillingKind,
    BillingRecord,
    BillingStatus,
    Permission,
    PlazaSettings,
    RepairRecord,
    Shop,
    StaffUser,
)
from plaza_billing.services import RepairLog, SettingsService, ShopDirectory, StaffDirectory
from plaza_billing.state import PlazaState
from plaza_billing.store.base import DocumentStore

logger = logging.getLogger(__name__)

T = TypeVar("T")

NO_RECORDS = "No records found for the selected criteria"

KIND_PERMISSIONS = {
    BillingKind.RENT: Permission.RENT,
    BillingKind.MAINTENANCE: Permission.MAINTENANCE,
}


@dataclass(frozen=True)
class Notice:
    """Transient operator feedback."""

    level: str  # success, error or info
    message: str


class PlazaConsole:
    """Application facade used by the CLI and any UI.

    Parameters
    ----------
    store : DocumentStore
        Backing document store.
    config : BillingConfig | None
        Billing policy.
    provider : IdentityProvider | None
        Identity provider. Without one there is no session and permission
        checks are skipped (local tooling).
    """

    def __init__(
        self,
        store: DocumentStore,
        config: BillingConfig | None = None,
        provider: IdentityProvider | None = None,
    ) -> None:
        self.store = store
        self.config = config or BillingConfig()
        self.state = PlazaState()
        self.state.attach(store)

        self.generators = {
            kind: BillingRecordGenerator(store, kind, self.config) for kind in BillingKind
        }
        self.ledgers = {kind: PaymentLedger(store, kind, self.config) for kind in BillingKind}
        self.shops = ShopDirectory(
            store, self.generators[BillingKind.RENT], self.generators[BillingKind.MAINTENANCE]
        )
        self.repairs = RepairLog(store)
        self.settings = SettingsService(store)

        self.session: SessionManager | None = None
        self.staff: StaffDirectory | None = None
        if provider is not None:
            self.session = SessionManager(provider, store)
            self.staff = StaffDirectory(provider, store)
            self.session.start()

        self._listeners: list[Callable[[Notice], None]] = []

    def close(self) -> None:
        if self.session is not None:
            self.session.stop()
        self.state.detach()

    # Notices

    def on_notice(self, listener: Callable[[Notice], None]) -> None:
        self._listeners.append(listener)

    def notify(self, level: str, message: str) -> None:
        notice = Notice(level, message)
        for listener in self._listeners:
            listener(notice)

    @property
    def current_user(self) -> StaffUser | None:
        return self.session.user if self.session is not None else None

    @property
    def operator_name(self) -> str | None:
        user = self.current_user
        return user.display_name if user is not None else None

    def _check(self, permission: Permission | None) -> None:
        if self.session is not None and permission is not None:
            require_permission(self.current_user, permission)

    def _run(
        self,
        action: str,
        fn: Callable[[], T],
        success: Callable[[T], Notice | None] | str | None = None,
        permission: Permission | None = None,
    ) -> T | None:
        """Run a write action, converting domain errors into notices."""
        try:
            self._check(permission)
            result = fn()
        except PlazaError as e:
            logger.warning(
                "Failed to %s: %s",
                action,
                e,
                extra={"extra": {"action": action, "error": type(e).__name__, "operator": self.operator_name}},
            )
            self.notify("error", f"Failed to {action}: {e}")
            return None
        if callable(success):
            notice = success(result)
            if notice is not None:
                self.notify(notice.level, notice.message)
        elif success:
            self.notify("success", success)
        return result

    # Shops

    def add_shop(self, shop: Shop, period: str | None = None) -> Shop | None:
        outcome = self._run(
            "add shop",
            lambda: self.shops.add_shop(shop, period),
            lambda res: Notice("success", f"Shop {res[0].shop_number} added"),
            Permission.SHOPS,
        )
        return outcome[0] if outcome else None

    def update_shop(self, shop: Shop) -> Shop | None:
        return self._run(
            "update shop",
            lambda: self.shops.update_shop(shop),
            lambda s: Notice("success", f"Shop {s.shop_number} updated"),
            Permission.SHOPS,
        )

    # Billing

    def generate_bills(self, kind: BillingKind, period: str | None = None) -> GenerationResult | None:
        """Bill every occupied shop for ``period`` (default: current)."""
        period = period or current_period()

        def done(result: GenerationResult) -> Notice:
            if result.count == 0:
                return Notice("info", f"{kind.label} bills for {format_period(period)} already exist")
            return Notice("success", f"Generated {result.count} {kind.label} bills for {format_period(period)}")

        return self._run(
            f"generate {kind.value} bills",
            lambda: self.generators[kind].generate_all(period, self.state.shops),
            done,
            KIND_PERMISSIONS[kind],
        )

    def create_bill(self, kind: BillingKind, shop_id: str, period: str | None = None) -> BillingRecord | None:
        """Bill a single shop for ``period`` (default: current)."""
        period = period or current_period()
        shop_number: list[str] = []

        def create() -> BillingRecord | None:
            shop = self.state.find_shop(shop_id)
            shop_number.append(shop.shop_number)
            return self.generators[kind].generate_for_shop(shop, period)

        def done(record: BillingRecord | None) -> Notice:
            if record is None:
                return Notice("info", f"{kind.label} bill for {format_period(period)} already exists")
            return Notice("success", f"{kind.label} bill generated for Shop {shop_number[0]}")

        return self._run(f"generate {kind.value} bill", create, done, KIND_PERMISSIONS[kind])

    def record_payment(
        self,
        kind: BillingKind,
        record_id: str,
        amount: Any,
        note: str | None = None,
    ) -> BillingRecord | None:
        currency = self.config.currency_label
        return self._run(
            f"record {kind.value} payment",
            lambda: self.ledgers[kind].apply_payment(record_id, amount, note, self.operator_name),
            lambda r: Notice("success", f"{kind.label} payment recorded for Shop {r.shop_number} ({currency} {r.collected:,} of {r.amount:,})"),
            KIND_PERMISSIONS[kind],
        )

    def history(self, kind: BillingKind, shop_id: str) -> ShopHistory:
        return group_by_year(self.state.records(kind), shop_id)

    def arrears_for(self, kind: BillingKind, shop_id: str, period: str) -> Decimal:
        return arrears(self.state.records(kind), shop_id, period)

    def display_status(self, record: BillingRecord, today: date | None = None) -> BillingStatus:
        return effective_status(record, today, self.config.overdue_detection)

    def overdue(self, kind: BillingKind, today: date | None = None) -> list[BillingRecord]:
        """Records past their due date with money outstanding."""
        if not self.config.overdue_detection:
            return []
        return [r for r in self.state.records(kind) if is_overdue(r, today)]

    def late_fees(self, kind: BillingKind, today: date | None = None) -> dict[str, Decimal]:
        """Late fee per overdue record id, from the configured percentage."""
        percentage = self.state.settings.late_fee_percentage
        return {r.id: late_fee(r, percentage, today) for r in self.overdue(kind, today)}

    # Reports

    def export(
        self,
        kind: BillingKind,
        start_period: str,
        end_period: str,
        shop_ids: Iterable[str] | None = None,
    ) -> list[ExportRow]:
        """Export rows for a period range; an empty selection is reported."""

        def done(rows: list[ExportRow]) -> Notice | None:
            if not rows:
                return Notice("error", NO_RECORDS)
            return None

        rows = self._run(
            f"export {kind.value} records",
            lambda: export_rows(
                self.state.records(kind),
                start_period,
                end_period,
                shop_ids,
                self.config.currency_label,
            ),
            done,
        )
        return rows or []

    def message_link(self, kind: BillingKind, record_id: str, today: date | None = None) -> str | None:
        """Deep link carrying the status message for one record."""

        def build() -> str:
            record = self.state.find_record(kind, record_id)
            if record is None:
                raise RecordNotFoundError(f"{kind.label} record {record_id} not found")
            owed = None
            if kind is BillingKind.MAINTENANCE:
                owed = arrears(self.state.records(kind), record.shop_id, record.month)
            text = status_message(
                record,
                kind,
                self.state.settings,
                owed,
                generated_by=self.operator_name or "Admin",
                today=today,
                currency_label=self.config.currency_label,
            )
            return whatsapp_link(record.phone, text, self.config.phone_country_code)

        return self._run("build message", build)

    def dashboard(self) -> DashboardStats:
        return dashboard_stats(
            self.state.shops,
            self.state.rent_records,
            self.state.maintenance_records,
            self.state.repairs,
        )

    def revenue(
        self,
        start: date,
        end: date,
        kind: BillingKind | None = None,
        search: str | None = None,
    ) -> tuple[list[RevenueEntry], RevenueSummary]:
        entries = flatten_transactions(self.state.rent_records, self.state.maintenance_records)
        selected = filter_by_date_range(entries, start, end, kind, search)
        return selected, revenue_summary(selected)

    def export_revenue(
        self,
        start: date,
        end: date,
        kind: BillingKind | None = None,
        search: str | None = None,
    ) -> list[RevenueEntry]:
        """Filtered payments for the revenue export; an empty selection is reported."""
        entries, _ = self.revenue(start, end, kind, search)
        if not entries:
            self.notify("error", NO_RECORDS)
        return entries

    # Repairs

    def add_repair(self, repair: RepairRecord) -> RepairRecord | None:
        return self._run(
            "add repair",
            lambda: self.repairs.add_repair(repair),
            "Repair logged",
            Permission.MAINTENANCE,
        )

    def update_repair(self, repair: RepairRecord) -> RepairRecord | None:
        return self._run(
            "update repair",
            lambda: self.repairs.update_repair(repair),
            "Repair updated",
            Permission.MAINTENANCE,
        )

    def resolve_repair(
        self,
        repair_id: str,
        cost: Any = None,
        notes: str | None = None,
        resolved_on: date | None = None,
    ) -> bool:
        done = self._run(
            "resolve repair",
            lambda: self.repairs.resolve(repair_id, cost, notes, resolved_on) or True,
            "Repair marked as completed",
            Permission.MAINTENANCE,
        )
        return bool(done)

    # Settings and staff

    def update_settings(self, settings: PlazaSettings) -> PlazaSettings | None:
        return self._run(
            "save settings",
            lambda: self.settings.update(settings),
            "Settings saved",
            Permission.SETTINGS,
        )

    def _staff_action(self, action: str, fn: Callable[[StaffDirectory], T], success: str) -> T | None:
        def run() -> T:
            if self.staff is None or self.session is None:
                raise PlazaError("Staff management needs an identity provider")
            require_admin(self.current_user)
            return fn(self.staff)

        return self._run(action, run, success)

    def add_staff(
        self,
        email: str,
        password: str,
        display_name: str,
        permissions: Iterable[Permission] = (),
    ) -> StaffUser | None:
        return self._staff_action(
            "add staff",
            lambda staff: staff.add_staff(email, password, display_name, permissions),
            f"Staff member {display_name} added",
        )

    def update_staff(self, uid: str, **changes: Any) -> bool:
        done = self._staff_action(
            "update staff",
            lambda staff: staff.update_staff(uid, **changes) or True,
            "Staff member updated",
        )
        return bool(done)

    def delete_staff(self, uid: str) -> bool:
        done = self._staff_action(
            "remove staff",
            lambda staff: staff.delete_staff(uid) or True,
            "Staff member removed",
        )
        return bool(done)

    # Session

    def login(self, email: str, password: str) -> bool:
        def run() -> bool:
            if self.session is None:
                raise PlazaError("Sign-in needs an identity provider")
            self.session.login(email, password)
            return True

        return bool(self._run("sign in", run))

    def sign_up(self, email: str, password: str, display_name: str) -> StaffUser | None:
        def run() -> StaffUser:
            if self.staff is None:
                raise PlazaError("Sign-up needs an identity provider")
            return self.staff.sign_up(email, password, display_name)

        return self._run("create account", run, "Account created")

    def logout(self) -> None:
        if self.session is not None:
            self._run("sign out", lambda: self.session.logout())

    def reset_password(self, email: str) -> bool:
        def run() -> bool:
            if self.staff is None:
                raise PlazaError("Password reset needs an identity provider")
            self.staff.reset_password(email)
            return True

        return bool(self._run("reset password", run, f"Password reset email sent to {email}"))
