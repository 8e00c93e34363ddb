"""Pure helpers for billing periods, balances and status.

None of these functions touch a store; they take plain values (or a
:class:`~plaza_billing.models.BillingRecord`) and are deterministic given
their arguments.
"""

from __future__ import annotations

import re
from datetime import date
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from plaza_billing.exceptions import ValidationError
from plaza_billing.models import BillingRecord, BillingStatus

PERIOD_PATTERN = re.compile(r"^(\d{4})-(\d{2})$")

ZERO = Decimal("0")
CENT = Decimal("0.01")


def parse_amount(value: object, field: str = "amount", allow_zero: bool = False) -> Decimal:
    """Parse an operator-entered currency amount.

    Raises
    ------
    ValidationError
        If the value is missing, not numeric, negative, or zero when
        ``allow_zero`` is false.
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError(f"{field} is required")
    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation as e:
        raise ValidationError(f"{field} must be a number, got {value!r}") from e
    if not amount.is_finite():
        raise ValidationError(f"{field} must be a finite number")
    if amount < ZERO or (amount == ZERO and not allow_zero):
        qualifier = "zero or more" if allow_zero else "greater than zero"
        raise ValidationError(f"{field} must be {qualifier}, got {amount}")
    return amount


def derive_status(amount: Decimal, collected: Decimal) -> BillingStatus:
    """Derive the stored status of a record from its totals.

    ``Paid`` when ``collected >= amount``, ``Partial`` when something but not
    everything was collected, ``Pending`` when nothing was.
    """
    if collected >= amount:
        return BillingStatus.PAID
    if collected > ZERO:
        return BillingStatus.PARTIAL
    return BillingStatus.PENDING


def outstanding_balance(amount: Decimal, collected: Decimal) -> Decimal:
    """Amount still owed; never negative, even after an overpayment."""
    return max(ZERO, amount - collected)


def parse_period(period: str) -> tuple[int, int]:
    """Split a ``YYYY-MM`` period key into ``(year, month)``.

    Raises
    ------
    ValidationError
        If the key is not a valid period.
    """
    match = PERIOD_PATTERN.match(period or "")
    if match is None:
        raise ValidationError(f"Invalid billing period {period!r}, expected YYYY-MM")
    year, month = int(match.group(1)), int(match.group(2))
    if not 1 <= month <= 12:
        raise ValidationError(f"Invalid month in billing period {period!r}")
    return year, month


def format_period(period: str) -> str:
    """Human label for a period key, e.g. ``"2025-03"`` -> ``"March 2025"``."""
    year, month = parse_period(period)
    return date(year, month, 1).strftime("%B %Y")


def current_period(today: date | None = None) -> str:
    """Period key containing ``today``."""
    today = today or date.today()
    return f"{today.year:04d}-{today.month:02d}"


def due_date_for(period: str, day: int) -> str:
    """Due date (``YYYY-MM-DD``) on ``day`` of the period's month."""
    parse_period(period)
    return f"{period}-{day:02d}"


def is_overdue(record: BillingRecord, today: date | None = None) -> bool:
    """True once the due date has passed and the record is not fully paid."""
    today = today or date.today()
    if outstanding_balance(record.amount, record.collected) <= ZERO:
        return False
    try:
        due = date.fromisoformat(record.due_date)
    except ValueError:
        return False
    return due < today


def effective_status(
    record: BillingRecord,
    today: date | None = None,
    detect_overdue: bool = True,
) -> BillingStatus:
    """Status to display: the stored status, or ``Overdue`` when past due.

    ``Overdue`` is never persisted; it is derived on read.
    """
    if detect_overdue and is_overdue(record, today):
        return BillingStatus.OVERDUE
    return record.status


def late_fee(record: BillingRecord, percentage: Decimal, today: date | None = None) -> Decimal:
    """Late fee on the outstanding balance of an overdue record.

    Informational only: the fee is never added to ``record.amount``.
    """
    if not is_overdue(record, today):
        return ZERO
    balance = outstanding_balance(record.amount, record.collected)
    return (balance * Decimal(percentage) / Decimal("100")).quantize(CENT, rounding=ROUND_HALF_UP)
