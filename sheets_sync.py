"""
Spreadsheet synchronisation for TripLedger

Rows live in one worksheet, header in row 1 and data from A2, eleven
columns A..K (no time-of-day column). Records are merged by expense id;
the spreadsheet copy wins when both sides have the same id.
"""
from __future__ import annotations
import json
import logging
from datetime import datetime
from typing import Any, Iterable, List, Optional, Protocol, Sequence

import gspread
from google.oauth2.service_account import Credentials

from config import TripConfig
from models import Expense
from utils import make_expense, new_expense_id, today_str

logger = logging.getLogger(__name__)

SHEET_HEADERS = [
    "expense_id", "date", "description", "category", "total_amount", "currency",
    "paid_by", "split_among", "split_type", "custom_splits", "notes",
]
DATA_RANGE = "A2:K"
SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]


class RemoteStore(Protocol):
    """Anything that can hand back and overwrite the data rows of the sheet"""

    def read_rows(self) -> List[List[str]]:
        ...

    def write_rows(self, rows: List[List[Any]]) -> None:
        ...


def _cell(row: Sequence[Any], i: int) -> str:
    return str(row[i]).strip() if i < len(row) and row[i] is not None else ""


def expense_to_row(e: Expense) -> List[Any]:
    return [
        e.id,
        e.date,
        e.description,
        e.category,
        e.total_amount,
        e.currency,
        e.paid_by,
        ",".join(e.split_among),
        e.split_type,
        json.dumps(e.custom_splits, ensure_ascii=False) if e.custom_splits else "",
        e.notes,
    ]


def row_to_expense(row: Sequence[Any], now: Optional[datetime] = None) -> Expense:
    """
    Spreadsheet row to Expense with the sheet defaults: generated id,
    today's date, THB, Equal split. Raises ValueError on bad split JSON.
    """
    return make_expense(
        id=_cell(row, 0) or new_expense_id(),
        date=_cell(row, 1) or today_str(),
        description=_cell(row, 2),
        category=_cell(row, 3),
        total_amount=_cell(row, 4),
        currency=_cell(row, 5) or "THB",
        paid_by=_cell(row, 6),
        split_among=_cell(row, 7),
        split_type=_cell(row, 8) or "Equal",
        custom_splits=_cell(row, 9) or None,
        notes=_cell(row, 10),
        now=now,
    )


def rows_to_expenses(rows: Iterable[Sequence[Any]], now: Optional[datetime] = None) -> List[Expense]:
    out = []
    for i, row in enumerate(rows, start=2):
        if not any(_cell(row, c) for c in range(len(SHEET_HEADERS))):
            continue
        try:
            out.append(row_to_expense(row, now))
        except ValueError as ex:
            logger.error("Sheet row %d: could not parse expense (%s), skipping", i, ex)
    return out


def merge_expenses(local: Iterable[Expense], remote: Iterable[Expense]) -> List[Expense]:
    """Remote records first, then local records whose id the remote lacks"""
    merged = list(remote)
    remote_ids = {e.id for e in merged}
    merged.extend(e for e in local if e.id not in remote_ids)
    return merged


def pull_expenses(store: RemoteStore, now: Optional[datetime] = None) -> List[Expense]:
    expenses = rows_to_expenses(store.read_rows(), now)
    logger.info("Read %d expenses from sheet", len(expenses))
    return expenses


def push_expenses(local: Iterable[Expense], store: RemoteStore) -> int:
    """Overwrite the sheet's data rows with the local list"""
    rows = [expense_to_row(e) for e in local]
    store.write_rows(rows)
    logger.info("Wrote %d expenses to sheet", len(rows))
    return len(rows)


def sync_expenses(local: Iterable[Expense], store: RemoteStore, now: Optional[datetime] = None) -> List[Expense]:
    """
    Pull, merge (sheet wins on id collision), and push back only when the
    local side had records the sheet did not.
    """
    local = list(local)
    remote = pull_expenses(store, now)
    merged = merge_expenses(local, remote)
    local_only = len(merged) - len(remote)
    if local_only:
        logger.info("Uploading %d local-only expenses", local_only)
        push_expenses(merged, store)
    return merged


class GoogleSheetsStore:
    """RemoteStore backed by a Google Sheets worksheet through gspread"""

    def __init__(self, worksheet: "gspread.Worksheet"):
        self.worksheet = worksheet

    @classmethod
    def from_config(cls, config: TripConfig) -> "GoogleSheetsStore":
        if not config.google_sheets_id:
            raise ValueError("google_sheets_id is not configured")
        if config.service_account_file:
            creds = Credentials.from_service_account_file(config.service_account_file, scopes=SCOPES)
        else:
            import google.auth
            creds, _ = google.auth.default(scopes=SCOPES)
        client = gspread.authorize(creds)
        spreadsheet = client.open_by_key(config.google_sheets_id)
        try:
            ws = spreadsheet.worksheet(config.google_sheets_name)
        except gspread.WorksheetNotFound:
            logger.info("Creating worksheet %s", config.google_sheets_name)
            ws = spreadsheet.add_worksheet(title=config.google_sheets_name, rows=1000, cols=len(SHEET_HEADERS))
            ws.update(range_name="A1", values=[SHEET_HEADERS], value_input_option="RAW")
        return cls(ws)

    def read_rows(self) -> List[List[str]]:
        return self.worksheet.get(DATA_RANGE) or []

    def write_rows(self, rows: List[List[Any]]) -> None:
        self.worksheet.batch_clear([DATA_RANGE])
        if rows:
            self.worksheet.update(range_name="A2", values=rows, value_input_option="USER_ENTERED")
