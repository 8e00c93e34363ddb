"""Tests for billing status, period and amount helpers."""

from datetime import date
from decimal import Decimal

import pytest

from plaza_billing.billing.status import (
    current_period,
    derive_status,
    due_date_for,
    effective_status,
    format_period,
    is_overdue,
    late_fee,
    outstanding_balance,
    parse_amount,
    parse_period,
)
from plaza_billing.exceptions import ValidationError
from plaza_billing.models import BillingStatus


class TestDeriveStatus:
    """Stored status follows the collected/amount totals."""

    @pytest.mark.parametrize(
        ("amount", "collected", "expected"),
        [
            ("45000", "45000", BillingStatus.PAID),
            ("45000", "50000", BillingStatus.PAID),
            ("45000", "20000", BillingStatus.PARTIAL),
            ("45000", "0.01", BillingStatus.PARTIAL),
            ("45000", "0", BillingStatus.PENDING),
        ],
    )
    def test_mapping(self, amount: str, collected: str, expected: BillingStatus) -> None:
        assert derive_status(Decimal(amount), Decimal(collected)) == expected

    def test_zero_amount_is_paid(self) -> None:
        assert derive_status(Decimal("0"), Decimal("0")) == BillingStatus.PAID


class TestOutstandingBalance:
    def test_remaining(self) -> None:
        assert outstanding_balance(Decimal("45000"), Decimal("20000")) == Decimal("25000")

    def test_overpayment_never_negative(self) -> None:
        assert outstanding_balance(Decimal("45000"), Decimal("50000")) == Decimal("0")


class TestParseAmount:
    """Operator-entered amounts."""

    def test_valid(self) -> None:
        assert parse_amount(" 2500.50 ") == Decimal("2500.50")
        assert parse_amount(100) == Decimal("100")

    @pytest.mark.parametrize("value", [None, "", "   "])
    def test_missing(self, value: object) -> None:
        with pytest.raises(ValidationError, match="required"):
            parse_amount(value)

    @pytest.mark.parametrize("value", ["abc", "12,000", "1e"])
    def test_not_numeric(self, value: str) -> None:
        with pytest.raises(ValidationError, match="must be a number"):
            parse_amount(value)

    @pytest.mark.parametrize("value", ["NaN", "Infinity"])
    def test_not_finite(self, value: str) -> None:
        with pytest.raises(ValidationError, match="finite"):
            parse_amount(value)

    def test_zero_rejected_by_default(self) -> None:
        with pytest.raises(ValidationError, match="greater than zero"):
            parse_amount("0", field="Payment amount")

    def test_zero_allowed(self) -> None:
        assert parse_amount("0", allow_zero=True) == Decimal("0")

    def test_negative_rejected(self) -> None:
        with pytest.raises(ValidationError, match="zero or more"):
            parse_amount("-5", allow_zero=True)


class TestPeriods:
    """Period keys, labels and due dates."""

    def test_parse_period(self) -> None:
        assert parse_period("2025-03") == (2025, 3)

    @pytest.mark.parametrize("period", ["2025-3", "2025-13", "2025-00", "March 2025", "", None])
    def test_invalid_period(self, period: object) -> None:
        with pytest.raises(ValidationError):
            parse_period(period)

    def test_format_period(self) -> None:
        assert format_period("2025-03") == "March 2025"

    def test_current_period(self) -> None:
        assert current_period(date(2025, 1, 31)) == "2025-01"

    def test_due_date_for(self) -> None:
        assert due_date_for("2025-03", 5) == "2025-03-05"
        assert due_date_for("2025-03", 10) == "2025-03-10"


class TestOverdue:
    """Overdue is derived on read, never stored."""

    def test_unpaid_after_due_date(self, make_record) -> None:
        record = make_record()

        assert is_overdue(record, date(2025, 3, 6)) is True
        assert effective_status(record, date(2025, 3, 6)) == BillingStatus.OVERDUE
        assert record.status == BillingStatus.PENDING

    def test_not_overdue_on_due_date(self, make_record) -> None:
        assert is_overdue(make_record(), date(2025, 3, 5)) is False

    def test_paid_record_never_overdue(self, make_record) -> None:
        record = make_record(collected="45000", status=BillingStatus.PAID)

        assert effective_status(record, date(2026, 1, 1)) == BillingStatus.PAID

    def test_partial_after_due_date(self, make_record) -> None:
        record = make_record(collected="20000", status=BillingStatus.PARTIAL)

        assert effective_status(record, date(2025, 4, 1)) == BillingStatus.OVERDUE

    def test_detection_disabled(self, make_record) -> None:
        record = make_record()

        assert effective_status(record, date(2025, 4, 1), detect_overdue=False) == BillingStatus.PENDING

    def test_unparseable_due_date(self, make_record) -> None:
        assert is_overdue(make_record(due_date="soon"), date(2030, 1, 1)) is False


class TestLateFee:
    def test_fee_on_outstanding_balance(self, make_record) -> None:
        record = make_record(collected="20000", status=BillingStatus.PARTIAL)

        assert late_fee(record, Decimal("5"), date(2025, 3, 20)) == Decimal("1250.00")
        assert record.amount == Decimal("45000")

    def test_rounding(self, make_record) -> None:
        record = make_record(amount="333")

        assert late_fee(record, Decimal("2.5"), date(2025, 4, 1)) == Decimal("8.33")

    def test_no_fee_before_due(self, make_record) -> None:
        assert late_fee(make_record(), Decimal("5"), date(2025, 3, 1)) == Decimal("0")
