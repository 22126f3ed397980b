"""
TripLedger
- Track shared trip expenses in two independent currencies (THB and HKD).
- Show who paid what, who owes what, and the transfers that settle everyone up.
- Import/export CSV snapshots, sync with a Google Sheet, export an Excel report.

Run:
  python trip_ledger.py summary --csv expenses.csv
  python trip_ledger.py export-excel report.xlsx --store expenses.json
  python trip_ledger.py sync --store expenses.json --config trip-config.json

Dependencies:
  pip install openpyxl gspread google-auth
"""
from __future__ import annotations
import argparse
import logging
import sys
from typing import List, Optional

from models import SUPPORTED_CURRENCIES, TripLedger
from config import load_config, load_local_expenses, save_local_expenses
from computations import (
    aggregate_balances,
    calculate_totals,
    format_currency,
    plan_all_settlements,
    warn_split_mismatch,
)
from csv_handler import export_expenses_to_csv, import_expenses_from_csv
from excel_export import export_excel
from queries import filter_expenses, sort_expenses
from sheets_sync import GoogleSheetsStore, sync_expenses

logger = logging.getLogger("trip_ledger")


def setup_logging(verbose: bool = False) -> None:
    root = logging.getLogger()
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(message)s"))
        root.addHandler(handler)
    root.setLevel(logging.DEBUG if verbose else logging.INFO)


def render_summary(ledger: TripLedger, person: Optional[str] = None) -> str:
    """Plain-text totals, balances and settlements per currency"""
    report = aggregate_balances(ledger.expenses, ledger.participants, check_split=warn_split_mismatch)
    settlements = plan_all_settlements(report)
    totals = calculate_totals(ledger.expenses)

    lines: List[str] = []
    for cur in SUPPORTED_CURRENCIES:
        lines.append(f"== {cur}: total {format_currency(totals[cur], cur)}")
        for b in report.people.values():
            if person and b.name != person:
                continue
            bal = b.balance[cur]
            sign = "+" if bal >= 0 else ""
            lines.append(
                f"  {b.name}: paid {format_currency(b.paid[cur], cur)}, "
                f"owes {format_currency(b.owed[cur], cur)}, balance {sign}{format_currency(bal, cur)}"
            )
        todo = [s for s in settlements[cur] if not person or person in (s.from_person, s.to_person)]
        if todo:
            lines.append("  Settle up:")
            for s in todo:
                lines.append(f"    {s.from_person} -> {s.to_person}: {format_currency(s.amount, cur)}")
        else:
            lines.append("  All settled!")
    if report.unsupported:
        lines.append(f"({len(report.unsupported)} expense(s) in other currencies not counted)")
    return "\n".join(lines)


def render_expenses(ledger: TripLedger, args) -> str:
    exps = filter_expenses(ledger.expenses, args.currency, args.category, args.person, args.date_from, args.date_to)
    lines = []
    for e in sort_expenses(exps, args.sort_by, args.order):
        lines.append(
            f"{e.date} {e.time:<5} {e.description[:30]:<30} {e.category:<14} "
            f"{format_currency(e.total_amount, e.currency):>16}  {e.paid_by} -> {', '.join(e.split_among)}"
        )
    return "\n".join(lines) if lines else "No expenses."


def load_ledger(args) -> TripLedger:
    config = load_config(args.config)
    if args.csv:
        expenses = import_expenses_from_csv(args.csv)
    else:
        expenses = load_local_expenses(args.store)
    return TripLedger(participants=list(config.participants), expenses=expenses)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="trip_ledger", description="Dual-currency trip expense splitter")
    parser.add_argument("--config", help="trip config JSON (participants, sheet id)")
    src = parser.add_mutually_exclusive_group()
    src.add_argument("--csv", help="read expenses from a CSV snapshot")
    src.add_argument("--store", help="local expense store (JSON)")
    parser.add_argument("-v", "--verbose", action="store_true")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("summary", help="balances and settlements per currency")
    p.add_argument("--person", help="only this participant")

    p = sub.add_parser("list", help="filtered, sorted expense list")
    p.add_argument("--currency")
    p.add_argument("--category")
    p.add_argument("--person")
    p.add_argument("--from", dest="date_from")
    p.add_argument("--to", dest="date_to")
    p.add_argument("--sort-by", default="date", choices=["date", "amount", "category"])
    p.add_argument("--order", default="desc", choices=["asc", "desc"])

    p = sub.add_parser("export-excel", help="write an .xlsx report")
    p.add_argument("output")

    p = sub.add_parser("export-csv", help="write a CSV snapshot")
    p.add_argument("output")

    sub.add_parser("sync", help="merge with the Google Sheet and save locally")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the application"""
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose)
    ledger = load_ledger(args)

    if args.command == "summary":
        print(render_summary(ledger, args.person))
    elif args.command == "list":
        print(render_expenses(ledger, args))
    elif args.command == "export-excel":
        export_excel(ledger, args.output)
    elif args.command == "export-csv":
        export_expenses_to_csv(ledger.expenses, args.output)
    elif args.command == "sync":
        config = load_config(args.config)
        try:
            store = GoogleSheetsStore.from_config(config)
            merged = sync_expenses(ledger.expenses, store)
        except Exception:
            logger.exception("Sync failed")
            return 1
        save_local_expenses(merged, args.store)
        print(f"Synced {len(merged)} expenses")
    return 0


if __name__ == "__main__":
    sys.exit(main())
