"""
Filtering and sorting of expense lists for TripLedger views
"""
from __future__ import annotations
from datetime import date, datetime
from functools import cmp_to_key
from typing import Any, Iterable, List, Optional

from models import Expense
from utils import parse_timestamp, try_parse_date

ALL = "all"


def _active(value: Optional[str]) -> bool:
    return value is not None and value != ALL


def expense_instant(e: Expense) -> Optional[datetime]:
    """Timestamp when usable, else midnight of the date field, else None"""
    if e.timestamp is not None:
        return e.timestamp
    d = try_parse_date(e.date)
    if d is None:
        return None
    return datetime(d.year, d.month, d.day)


def by_currency(expenses: Iterable[Expense], currency: str) -> List[Expense]:
    return [e for e in expenses if e.currency == currency]


def by_category(expenses: Iterable[Expense], category: str) -> List[Expense]:
    return [e for e in expenses if e.category == category]


def by_participant(expenses: Iterable[Expense], person: str) -> List[Expense]:
    """Expenses the person paid for or shares in"""
    return [e for e in expenses if e.paid_by == person or person in e.split_among]


def _bound(value: Any):
    """
    Filter bound as (value, day_only). A plain date (or YYYY-MM-DD text) is
    compared by calendar day, a datetime by instant. None when unusable.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return parse_timestamp(value), False
    if isinstance(value, date):
        return value, True
    d = try_parse_date(value)
    if d is not None:
        return d, True
    ts = parse_timestamp(value)
    if ts is not None:
        return ts, False
    return None


def by_date_range(expenses: Iterable[Expense], date_from: Any = None, date_to: Any = None) -> List[Expense]:
    """
    Inclusive date range. Unusable bounds are ignored and expenses without a
    usable date are kept.
    """
    lo = _bound(date_from)
    hi = _bound(date_to)
    out = []
    for e in expenses:
        when = expense_instant(e)
        if when is None:
            out.append(e)
            continue
        if lo is not None:
            v, day_only = lo
            if (when.date() if day_only else when) < v:
                continue
        if hi is not None:
            v, day_only = hi
            if (when.date() if day_only else when) > v:
                continue
        out.append(e)
    return out


def filter_expenses(
    expenses: Iterable[Expense],
    currency: Optional[str] = None,
    category: Optional[str] = None,
    person: Optional[str] = None,
    date_from: Any = None,
    date_to: Any = None,
) -> List[Expense]:
    """Apply every given criterion; None or "all" switches a criterion off"""
    out = list(expenses)
    if _active(currency):
        out = by_currency(out, currency)
    if _active(category):
        out = by_category(out, category)
    if _active(person):
        out = by_participant(out, person)
    if date_from or date_to:
        out = by_date_range(out, date_from, date_to)
    return out


def _cmp(a, b) -> int:
    return (a > b) - (a < b)


def _compare_dates(a: Expense, b: Expense) -> int:
    da, db = expense_instant(a), expense_instant(b)
    if da is None or db is None:
        return 0
    return _cmp(da, db)


def _compare_amounts(a: Expense, b: Expense) -> int:
    return _cmp(a.total_amount, b.total_amount)


def _compare_categories(a: Expense, b: Expense) -> int:
    return _cmp(a.category, b.category)


_COMPARATORS = {
    "date": _compare_dates,
    "amount": _compare_amounts,
    "category": _compare_categories,
}


def sort_expenses(expenses: Iterable[Expense], sort_by: str = "date", order: str = "desc") -> List[Expense]:
    """
    Sorted copy. Expenses without a usable date compare equal to everything,
    an unknown sort key keeps the input order.
    """
    out = list(expenses)
    compare = _COMPARATORS.get(sort_by)
    if compare is None:
        return out
    sign = -1 if order == "desc" else 1
    out.sort(key=cmp_to_key(lambda a, b: sign * compare(a, b)))
    return out


def categories_in(expenses: Iterable[Expense]) -> List[str]:
    return sorted({e.category for e in expenses})
