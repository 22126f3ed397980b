"""
CSV export and import functionality for TripLedger
"""
from __future__ import annotations
import csv
import io
import json
import logging
from datetime import datetime
from typing import Iterable, List, Optional, TextIO

from models import Expense
from utils import make_expense, new_expense_id, today_str

logger = logging.getLogger(__name__)

CSV_COLUMNS = [
    "expense_id", "date", "time", "description", "category", "total_amount",
    "currency", "paid_by", "split_among", "split_type", "custom_splits", "notes",
]


def export_expenses_to_csv(expenses: Iterable[Expense], filepath: str) -> None:
    """
    Export expenses list to CSV file in the published-sheet layout.
    split_among is comma-joined, custom_splits is JSON (empty for Equal).
    """
    with open(filepath, "w", newline="", encoding="utf-8") as f:
        write_expenses_csv(expenses, f)


def write_expenses_csv(expenses: Iterable[Expense], f: TextIO) -> int:
    writer = csv.writer(f)
    writer.writerow(CSV_COLUMNS)
    n = 0
    for e in expenses:
        writer.writerow([
            e.id,
            e.date,
            e.time,
            e.description,
            e.category,
            e.total_amount,
            e.currency,
            e.paid_by,
            ",".join(e.split_among),
            e.split_type,
            json.dumps(e.custom_splits, ensure_ascii=False) if e.custom_splits else "",
            e.notes,
        ])
        n += 1
    return n


def import_expenses_from_csv(filepath: str, now: Optional[datetime] = None) -> List[Expense]:
    """
    Import expenses list from CSV file
    Returns list of Expense objects
    """
    with open(filepath, "r", encoding="utf-8", newline="") as f:
        return read_expenses_csv(f, now)


def parse_expenses_csv(text: str, now: Optional[datetime] = None) -> List[Expense]:
    """Same as import_expenses_from_csv for CSV already held in memory"""
    return read_expenses_csv(io.StringIO(text), now)


def read_expenses_csv(f: TextIO, now: Optional[datetime] = None) -> List[Expense]:
    """
    Rows after the header with fewer than 12 fields, or with custom splits
    that are not valid JSON, are logged and skipped. Blank lines are ignored.
    """
    expenses = []
    reader = csv.reader(f)
    next(reader, None)  # header

    for row in reader:
        line = reader.line_num
        if not any(c.strip() for c in row):
            continue
        if len(row) < len(CSV_COLUMNS):
            logger.warning("Line %d: insufficient fields (%d/%d), skipping", line, len(row), len(CSV_COLUMNS))
            continue
        (exp_id, d, t, desc, cat, amount, cur, paid_by,
         split_among, split_type, custom, notes) = row[:len(CSV_COLUMNS)]
        split_type = split_type or "Equal"
        try:
            expense = make_expense(
                id=exp_id or new_expense_id(),
                date=d or today_str(),
                time=t,
                description=desc,
                category=cat,
                total_amount=amount,
                currency=cur or "THB",
                paid_by=paid_by,
                split_among=split_among,
                split_type=split_type,
                custom_splits=custom if split_type == "Custom" else None,
                notes=notes,
                now=now,
            )
        except ValueError as ex:
            logger.error("Line %d: could not parse expense (%s), skipping", line, ex)
            continue
        expenses.append(expense)

    logger.info("Loaded %d expenses from CSV", len(expenses))
    return expenses
