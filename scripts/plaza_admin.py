#!/usr/bin/env python3
"""Plaza billing administration from the command line.

Subcommands:
- seed: populate the store with a demo plaza
- generate: bill every occupied shop for a period
- pay: record a payment against a shop's bill
- history: show a shop's billing history by year
- overdue: list bills past their due date
- export: write billing rows for a period range as CSV to stdout
- revenue: write payments captured in a date range as CSV to stdout
- stats: print dashboard figures

The backend comes from ``PLAZA_BACKEND`` (``memory`` or ``postgres``). The
memory backend starts empty on every run, so pass ``--demo`` to seed it first.
"""

import argparse
import csv
import logging
import sys
from datetime import date
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from plaza_billing.billing.export import EXPORT_HEADERS
from plaza_billing.billing.reports import REVENUE_EXPORT_HEADERS
from plaza_billing.billing.status import current_period, format_period, outstanding_balance
from plaza_billing.config import PlazaConfig
from plaza_billing.console import Notice, PlazaConsole
from plaza_billing.exceptions import PlazaError
from plaza_billing.logging import setup_logging
from plaza_billing.models import BillingKind
from plaza_billing.scenarios import DemoPlazaScenario
from plaza_billing.store import open_store

logger = logging.getLogger(__name__)


def print_notice(notice: Notice) -> None:
    print(f"[{notice.level}] {notice.message}", file=sys.stderr)


def find_shop_id(console: PlazaConsole, shop_number: str) -> str:
    for shop in console.state.shops:
        if shop.shop_number == shop_number:
            return shop.id
    raise SystemExit(f"No shop numbered {shop_number}")


def cmd_seed(console: PlazaConsole, args: argparse.Namespace, config: PlazaConfig) -> None:
    DemoPlazaScenario(
        num_shops=args.shops,
        months=args.months,
        seed=config.seed if config.seed is not None else args.seed,
        store=console.store,
        config=config.billing,
    ).generate()
    stats = console.dashboard()
    print(f"Seeded {stats.total_shops} shops ({stats.occupied_shops} occupied)")


def cmd_generate(console: PlazaConsole, args: argparse.Namespace, config: PlazaConfig) -> None:
    result = console.generate_bills(BillingKind(args.kind), args.period)
    if result is not None:
        print(f"{result.count} created, {len(result.skipped)} already billed")


def cmd_pay(console: PlazaConsole, args: argparse.Namespace, config: PlazaConfig) -> None:
    kind = BillingKind(args.kind)
    period = args.period or current_period()
    record = console.state.record_for(kind, find_shop_id(console, args.shop), period)
    if record is None:
        raise SystemExit(f"Shop {args.shop} has no {kind.value} bill for {format_period(period)}")
    amount = args.amount if args.amount is not None else console.ledgers[kind].default_amount(record)
    updated = console.record_payment(kind, record.id, amount, args.note)
    if updated is not None:
        print(f"{updated.status.value}: {updated.collected} of {updated.amount} collected")


def cmd_history(console: PlazaConsole, args: argparse.Namespace, config: PlazaConfig) -> None:
    kind = BillingKind(args.kind)
    history = console.history(kind, find_shop_id(console, args.shop))
    if history.is_empty:
        print("No billing history")
        return
    for year in history.years:
        totals = history.totals(year)
        print(f"{year}: due {totals.amount}, collected {totals.collected}, balance {totals.balance}")
        for record in history.records_by_year[year]:
            print(
                f"  {format_period(record.month):<16} {record.amount:>10} {record.collected:>10} "
                f"{console.display_status(record).value}"
            )


def cmd_overdue(console: PlazaConsole, args: argparse.Namespace, config: PlazaConfig) -> None:
    kind = BillingKind(args.kind)
    fees = console.late_fees(kind)
    for record in console.overdue(kind):
        balance = outstanding_balance(record.amount, record.collected)
        print(
            f"Shop {record.shop_number} {record.month}: balance {balance}, "
            f"due {record.due_date}, late fee {fees[record.id]}"
        )


def cmd_export(console: PlazaConsole, args: argparse.Namespace, config: PlazaConfig) -> None:
    shop_ids = [find_shop_id(console, n) for n in args.shop] if args.shop else None
    rows = console.export(BillingKind(args.kind), args.start, args.end, shop_ids)
    if not rows:
        return
    writer = csv.writer(sys.stdout)
    writer.writerow(EXPORT_HEADERS)
    for row in rows:
        writer.writerow(row.as_list())


def cmd_revenue(console: PlazaConsole, args: argparse.Namespace, config: PlazaConfig) -> None:
    kind = BillingKind(args.kind) if args.kind else None
    entries = console.export_revenue(args.start, args.end, kind, args.search)
    if not entries:
        return
    writer = csv.writer(sys.stdout)
    writer.writerow(REVENUE_EXPORT_HEADERS)
    for entry in entries:
        writer.writerow(entry.as_list())


def cmd_stats(console: PlazaConsole, args: argparse.Namespace, config: PlazaConfig) -> None:
    stats = console.dashboard()
    label = config.billing.currency_label
    print(f"Shops:                 {stats.total_shops} ({stats.occupied_shops} occupied)")
    print(f"Rent collected:        {label} {stats.rent_collected:,}")
    print(f"Maintenance collected: {label} {stats.maintenance_collected:,}")
    print(f"Pending rent:          {label} {stats.pending_rent:,}")
    print(f"Pending maintenance:   {label} {stats.pending_maintenance:,}")
    print(f"Open repairs:          {stats.open_repairs}")


COMMANDS = {
    "seed": cmd_seed,
    "generate": cmd_generate,
    "pay": cmd_pay,
    "history": cmd_history,
    "overdue": cmd_overdue,
    "export": cmd_export,
    "revenue": cmd_revenue,
    "stats": cmd_stats,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Plaza rent and maintenance billing")
    parser.add_argument(
        "--demo",
        action="store_true",
        help="Seed a demo plaza before running the command",
    )
    parser.add_argument(
        "--log-format",
        choices=["standard", "json"],
        default="standard",
        help="Log output format (default: standard)",
    )
    sub = parser.add_subparsers(dest="command", required=True)
    kinds = [k.value for k in BillingKind]

    seed = sub.add_parser("seed", help="Populate the store with a demo plaza")
    seed.add_argument("--shops", type=int, default=20, help="Number of shops (default: 20)")
    seed.add_argument("--months", type=int, default=6, help="Billing periods to generate (default: 6)")
    seed.add_argument("--seed", type=int, default=42, help="Random seed (default: 42)")

    generate = sub.add_parser("generate", help="Bill every occupied shop for a period")
    generate.add_argument("kind", choices=kinds)
    generate.add_argument("--period", help="Billing period YYYY-MM (default: current)")

    pay = sub.add_parser("pay", help="Record a payment")
    pay.add_argument("kind", choices=kinds)
    pay.add_argument("shop", help="Shop number")
    pay.add_argument("amount", nargs="?", help="Amount (default: outstanding balance)")
    pay.add_argument("--period", help="Billing period YYYY-MM (default: current)")
    pay.add_argument("--note", help="Payment note")

    history = sub.add_parser("history", help="Show a shop's billing history")
    history.add_argument("kind", choices=kinds)
    history.add_argument("shop", help="Shop number")

    overdue = sub.add_parser("overdue", help="List overdue bills with late fees")
    overdue.add_argument("kind", choices=kinds)

    export = sub.add_parser("export", help="Export billing rows as CSV")
    export.add_argument("kind", choices=kinds)
    export.add_argument("--start", required=True, help="First period YYYY-MM")
    export.add_argument("--end", required=True, help="Last period YYYY-MM")
    export.add_argument("--shop", action="append", help="Restrict to shop number (repeatable)")

    revenue = sub.add_parser("revenue", help="Export payments in a date range as CSV")
    revenue.add_argument("--from", dest="start", type=date.fromisoformat, required=True, help="First day YYYY-MM-DD")
    revenue.add_argument("--to", dest="end", type=date.fromisoformat, required=True, help="Last day YYYY-MM-DD")
    revenue.add_argument("--kind", choices=kinds, help="Only rent or maintenance payments")
    revenue.add_argument("--search", help="Match shop, owner, collector or note")

    sub.add_parser("stats", help="Print dashboard figures")
    return parser


def main() -> None:
    """Main entry point."""
    args = build_parser().parse_args()

    try:
        config = PlazaConfig.from_env()
    except PlazaError as e:
        raise SystemExit(f"Configuration error: {e}") from e
    setup_logging(config.log_level, args.log_format)

    try:
        store = open_store(config)
    except PlazaError as e:
        raise SystemExit(f"Cannot open {config.backend} store: {e}") from e
    console = PlazaConsole(store, config.billing)
    console.on_notice(print_notice)
    try:
        if args.demo and args.command != "seed":
            DemoPlazaScenario(seed=config.seed, store=store, config=config.billing).generate()
        COMMANDS[args.command](console, args, config)
    finally:
        console.close()
        store.close()


if __name__ == "__main__":
    main()
