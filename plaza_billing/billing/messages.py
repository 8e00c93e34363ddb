"""Owner-facing status messages and messaging deep links."""

from __future__ import annotations

import re
from datetime import date
from decimal import Decimal
from urllib.parse import quote

from plaza_billing.billing.status import format_period, outstanding_balance
from plaza_billing.exceptions import ValidationError
from plaza_billing.models import BillingKind, BillingRecord, BillingStatus, PlazaSettings

WHATSAPP_URL = "https://wa.me/{phone}?text={text}"


def _money(value: Decimal, label: str) -> str:
    return f"{label} {value:,}"


def normalize_phone(phone: str, country_code: str = "92") -> str:
    """Digits-only international number; a leading trunk ``0`` becomes ``country_code``."""
    digits = re.sub(r"\D", "", phone or "")
    if not digits:
        raise ValidationError("No phone number registered for this shop owner")
    if digits.startswith("0"):
        digits = country_code + digits[1:]
    return digits


def rent_status_message(
    record: BillingRecord,
    settings: PlazaSettings,
    currency_label: str = "Rs.",
) -> str:
    """Short rent status summary for one period."""
    balance = outstanding_balance(record.amount, record.collected)
    return (
        f"*{settings.plaza_name} - RENT STATUS*\n"
        f"Shop: {record.shop_number} ({record.owner_name})\n"
        f"Month: {format_period(record.month)}\n"
        "\n"
        f"*Total Due: {_money(record.amount, currency_label)}*\n"
        f"Paid: {_money(record.collected, currency_label)}\n"
        f"*Balance: {_money(balance, currency_label)}*\n"
        "\n"
        f"Status: {record.status.value.upper()}"
    )


def maintenance_bill_message(
    record: BillingRecord,
    settings: PlazaSettings,
    arrears: Decimal,
    generated_by: str = "Admin",
    today: date | None = None,
    currency_label: str = "Rs.",
) -> str:
    """Maintenance bill including arrears from earlier periods."""
    today = today or date.today()
    balance = outstanding_balance(record.amount, record.collected)
    rule = "-" * 32
    settled = "*PAID IN FULL*" if record.status == BillingStatus.PAID else "*PAYMENT PENDING*"
    lines = [
        f"*{settings.plaza_name.upper()} - MAINTENANCE BILL*",
        rule,
        f"*Generated By:* {generated_by}",
        f"*Date:* {today.isoformat()}",
        "",
        "*SHOP DETAILS:*",
        f"Shop No: {record.shop_number}",
        f"Owner: {record.owner_name}",
        "",
        "*PREVIOUS DUES (ARREARS):*",
        _money(arrears, currency_label),
        "",
        f"*CURRENT MONTH ({format_period(record.month).upper()}):*",
        f"Target: {_money(record.amount, currency_label)}",
        f"Paid: {_money(record.collected, currency_label)}",
        f"*Current Balance: {_money(balance, currency_label)}*",
        "",
        rule,
        "*TOTAL PAYABLE AMOUNT:*",
        f"*{_money(arrears + balance, currency_label)}*",
        rule,
        settled,
    ]
    return "\n".join(lines)


def status_message(
    record: BillingRecord,
    kind: BillingKind,
    settings: PlazaSettings,
    arrears: Decimal | None = None,
    generated_by: str = "Admin",
    today: date | None = None,
    currency_label: str = "Rs.",
) -> str:
    """Message for a record of either kind."""
    if kind is BillingKind.RENT:
        return rent_status_message(record, settings, currency_label)
    return maintenance_bill_message(
        record,
        settings,
        arrears if arrears is not None else Decimal("0"),
        generated_by=generated_by,
        today=today,
        currency_label=currency_label,
    )


def whatsapp_link(phone: str, text: str, country_code: str = "92") -> str:
    """Deep link that opens a chat with ``phone`` prefilled with ``text``."""
    return WHATSAPP_URL.format(phone=normalize_phone(phone, country_code), text=quote(text, safe=""))
