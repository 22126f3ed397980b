"""
Utility functions for TripLedger
"""
from __future__ import annotations
import json
import logging
import math
import os
import time
import uuid
from datetime import date, datetime
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from models import DEFAULT_CATEGORY, CustomSplit, EqualSplit, Expense, Split, normalize_names

logger = logging.getLogger(__name__)

DateLike = Union[str, date, datetime, None]


def today_str() -> str:
    """Get today's date as ISO string"""
    return date.today().isoformat()


def parse_date(s: str) -> date:
    """Parse YYYY-MM-DD date string"""
    return datetime.strptime(s.strip(), "%Y-%m-%d").date()


def try_parse_date(s: Any) -> Optional[date]:
    """parse_date that returns None instead of raising"""
    if isinstance(s, datetime):
        return s.date()
    if isinstance(s, date):
        return s
    try:
        return parse_date(str(s))
    except (TypeError, ValueError):
        return None


def parse_time(s: str) -> Optional[Tuple[int, int]]:
    """Parse HH:MM (or HH:MM:SS) into (hour, minute); None when invalid"""
    text = (s or "").strip()
    for fmt in ("%H:%M", "%H:%M:%S"):
        try:
            t = datetime.strptime(text, fmt)
            return t.hour, t.minute
        except ValueError:
            continue
    return None


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse an ISO timestamp into a naive local datetime.
    Aware values (e.g. trailing Z) are converted to local time so that
    everything in the ledger compares against everything else.
    """
    if isinstance(value, datetime):
        dt = value
    else:
        text = str(value or "").strip()
        if not text:
            return None
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(text)
        except ValueError:
            return None
    if dt.tzinfo is not None:
        dt = dt.astimezone().replace(tzinfo=None)
    return dt


def build_timestamp(date_str: str, time_str: str = "", now: Optional[datetime] = None) -> datetime:
    """
    Timestamp of an expense from its date and optional time of day.
    Bad or missing time -> start of that day; bad or missing date -> now.
    """
    d = try_parse_date(date_str) if date_str else None
    if d is None:
        return now or datetime.now()
    hm = parse_time(time_str) if time_str else None
    if hm is None:
        return datetime(d.year, d.month, d.day)
    return datetime(d.year, d.month, d.day, hm[0], hm[1])


def safe_float(x: Any, default: float = 0.0) -> float:
    """Convert string to float safely, returning default on error"""
    try:
        v = float(x)
    except Exception:
        return default
    if not math.isfinite(v):
        return default
    return v


def parse_custom_splits(value: Any) -> Optional[Dict[str, float]]:
    """
    Share map from a dict or JSON object text. Amounts go through safe_float.
    Returns None for empty input; raises ValueError for text that is not a
    JSON object.
    """
    if value is None:
        return None
    if isinstance(value, Mapping):
        raw = value
    else:
        text = str(value).strip()
        if not text:
            return None
        raw = json.loads(text)
        if not isinstance(raw, dict):
            raise ValueError(f"custom splits must be a JSON object, got {type(raw).__name__}")
    return {str(k).strip(): safe_float(v) for k, v in raw.items() if str(k).strip()}


def build_split(split_type: Any, custom_splits: Any) -> Split:
    """Equal unless the record says Custom and actually carries shares"""
    if str(split_type or "").strip() == "Custom":
        shares = parse_custom_splits(custom_splits)
        if shares:
            return CustomSplit(shares)
    return EqualSplit()


def new_expense_id() -> str:
    """Unique id for expenses created without one"""
    return f"exp_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}"


def make_expense(
    *,
    id: Optional[str] = None,
    date: DateLike = "",
    time: str = "",
    timestamp: Any = None,
    description: str = "",
    category: str = "",
    total_amount: Any = 0,
    currency: str = "THB",
    paid_by: str = "",
    split_among: Any = (),
    split_type: str = "Equal",
    custom_splits: Any = None,
    notes: str = "",
    now: Optional[datetime] = None,
) -> Expense:
    """
    Build an Expense from loosely typed input, coercing instead of rejecting:
    bad amounts become 0, empty category becomes "Other", a missing timestamp
    is derived from date and time.
    """
    if isinstance(date, datetime):
        date = date.date().isoformat()
    elif hasattr(date, "isoformat"):
        date = date.isoformat()
    date_text = str(date or "").strip()
    time_text = str(time or "").strip()

    if timestamp is None or timestamp == "":
        ts = build_timestamp(date_text, time_text, now)
    else:
        ts = parse_timestamp(timestamp)
        if ts is None:
            logger.debug("Unparseable timestamp %r on expense %s, falling back to date", timestamp, id)

    amount = max(0.0, safe_float(total_amount))

    return Expense(
        id=str(id).strip() if id else new_expense_id(),
        date=date_text,
        timestamp=ts,
        description=str(description or ""),
        category=str(category or "").strip() or DEFAULT_CATEGORY,
        total_amount=amount,
        currency=str(currency or "").strip(),
        paid_by=str(paid_by or "").strip(),
        split_among=normalize_names(split_among),
        split=build_split(split_type, custom_splits),
        notes=str(notes or ""),
        time=time_text,
    )


def app_dir() -> str:
    """
    Get application data directory: ~/.trip_ledger (or $TRIP_LEDGER_HOME).
    Creates directory if it doesn't exist.
    """
    path = os.environ.get("TRIP_LEDGER_HOME") or os.path.expanduser("~/.trip_ledger")
    os.makedirs(path, exist_ok=True)
    return path
