"""
Configuration and data loading/saving for TripLedger
"""
from __future__ import annotations
import json
import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional

from models import Expense, TripLedger
from utils import app_dir, make_expense

logger = logging.getLogger(__name__)

CONFIG_FILE = "trip-config.json"
STORE_FILE = "expenses.json"


@dataclass
class TripConfig:
    """Trip settings: participant directory and spreadsheet coordinates"""
    participants: List[str] = field(default_factory=list)
    google_sheets_id: str = ""
    google_sheets_name: str = "Expenses"
    google_sheets_csv_url: str = ""
    service_account_file: str = ""

    @property
    def sheets_enabled(self) -> bool:
        return bool(self.google_sheets_id)


def load_config(path: Optional[str] = None) -> TripConfig:
    """
    Load trip configuration from JSON. A missing file gives defaults.
    GOOGLE_SHEET_ID and GOOGLE_SERVICE_ACCOUNT_FILE override the file.
    """
    path = path or os.path.join(app_dir(), CONFIG_FILE)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        logger.info("No config at %s, using defaults", path)
        data = {}

    cfg = TripConfig(
        participants=[str(p).strip() for p in data.get("trip_participants", []) if str(p).strip()],
        google_sheets_id=str(data.get("google_sheets_id", "") or ""),
        google_sheets_name=str(data.get("google_sheets_name", "") or "") or "Expenses",
        google_sheets_csv_url=str(data.get("google_sheets_csv_url", "") or ""),
        service_account_file=str(data.get("service_account_file", "") or ""),
    )
    cfg.google_sheets_id = os.getenv("GOOGLE_SHEET_ID", "").strip() or cfg.google_sheets_id
    cfg.service_account_file = os.getenv("GOOGLE_SERVICE_ACCOUNT_FILE", "").strip() or cfg.service_account_file
    return cfg


def expense_to_record(e: Expense) -> Dict[str, Any]:
    """Expense as a JSON-friendly dict (field names of the published sheet)"""
    return {
        "expense_id": e.id,
        "timestamp": e.timestamp.isoformat() if e.timestamp else None,
        "date": e.date,
        "time": e.time,
        "description": e.description,
        "category": e.category,
        "total_amount": e.total_amount,
        "currency": e.currency,
        "paid_by": e.paid_by,
        "split_among": list(e.split_among),
        "split_type": e.split_type,
        "custom_splits": e.custom_splits,
        "notes": e.notes,
    }


def record_to_expense(d: Mapping[str, Any]) -> Expense:
    """Inverse of expense_to_record; tolerant of missing or malformed fields"""
    return make_expense(
        id=d.get("expense_id") or d.get("id"),
        date=d.get("date", ""),
        time=d.get("time", ""),
        timestamp=d.get("timestamp"),
        description=d.get("description", ""),
        category=d.get("category", ""),
        total_amount=d.get("total_amount", 0),
        currency=d.get("currency", "THB"),
        paid_by=d.get("paid_by", ""),
        split_among=d.get("split_among", ()),
        split_type=d.get("split_type", "Equal"),
        custom_splits=d.get("custom_splits"),
        notes=d.get("notes", ""),
    )


def ledger_to_dict(ledger: TripLedger) -> dict:
    """Convert TripLedger object to dictionary for JSON serialization"""
    return {
        "version": ledger.version,
        "participants": ledger.participants,
        "expenses": [expense_to_record(e) for e in ledger.expenses],
    }


def dict_to_ledger(d: dict) -> TripLedger:
    """Convert dictionary from JSON to TripLedger object"""
    return TripLedger(
        version=d.get("version", 1),
        participants=list(d.get("participants", [])),
        expenses=load_expense_records(d.get("expenses", [])),
    )


def load_expense_records(records: Iterable[Any]) -> List[Expense]:
    """Records that are not objects or fail to parse are logged and skipped"""
    out = []
    for i, rec in enumerate(records):
        if not isinstance(rec, Mapping):
            logger.warning("Skipping stored expense #%d: not an object", i)
            continue
        try:
            out.append(record_to_expense(rec))
        except (TypeError, ValueError) as ex:
            logger.warning("Skipping stored expense #%d: %s", i, ex)
    return out


def load_local_expenses(path: Optional[str] = None) -> List[Expense]:
    """Read the local expense store; missing or unreadable store is empty"""
    path = path or os.path.join(app_dir(), STORE_FILE)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        return []
    except json.JSONDecodeError as ex:
        logger.error("Error loading expenses from %s: %s", path, ex)
        return []
    if not isinstance(data, list):
        logger.error("Error loading expenses from %s: expected a list", path)
        return []
    return load_expense_records(data)


def save_local_expenses(expenses: Iterable[Expense], path: Optional[str] = None) -> None:
    """Overwrite the local expense store"""
    path = path or os.path.join(app_dir(), STORE_FILE)
    records = [expense_to_record(e) for e in expenses]
    with open(path, "w", encoding="utf-8") as f:
        json.dump(records, f, ensure_ascii=False, indent=2)
    logger.debug("Saved %d expenses to %s", len(records), path)


def get_default_ledger(config: Optional[TripConfig] = None) -> TripLedger:
    """Create ledger seeded with configured participants and the local store"""
    config = config or load_config()
    return TripLedger(participants=list(config.participants), expenses=load_local_expenses())
