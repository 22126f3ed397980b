"""
Data models for TripLedger
"""
from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

SUPPORTED_CURRENCIES: Tuple[str, ...] = ("THB", "HKD")
DEFAULT_CATEGORY = "Other"


def normalize_names(value: Any) -> Tuple[str, ...]:
    """
    Split-among list from comma text, a list, or a single name: trimmed,
    empties dropped, duplicates removed keeping the first occurrence.
    """
    if value is None:
        return ()
    if isinstance(value, str):
        items: Iterable[Any] = value.split(",")
    elif isinstance(value, Iterable):
        items = value
    else:
        items = [value]
    out: List[str] = []
    for item in items:
        name = str(item).strip()
        if name and name not in out:
            out.append(name)
    return tuple(out)


@dataclass(frozen=True)
class EqualSplit:
    """Total divided evenly among everyone in split_among"""
    split_type = "Equal"


@dataclass(frozen=True)
class CustomSplit:
    """Absolute per-person amounts in the expense currency, kept as (name, amount) pairs"""
    shares: Tuple[Tuple[str, float], ...] = ()
    split_type = "Custom"

    def __post_init__(self):
        items = self.shares.items() if isinstance(self.shares, Mapping) else self.shares
        object.__setattr__(self, "shares", tuple((str(k), float(v)) for k, v in items))

    def share_for(self, person: str) -> float:
        for name, amount in self.shares:
            if name == person:
                return amount
        return 0.0

    def as_dict(self) -> Dict[str, float]:
        return dict(self.shares)


Split = Union[EqualSplit, CustomSplit]


@dataclass(frozen=True)
class Expense:
    """Single shared expense"""
    id: str
    date: str  # YYYY-MM-DD as entered, kept for display fallback
    timestamp: Optional[datetime]
    description: str
    category: str
    total_amount: float
    currency: str
    paid_by: str
    split_among: Tuple[str, ...]
    split: Split = EqualSplit()
    notes: str = ""
    time: str = ""  # HH:MM, may be empty

    def __post_init__(self):
        object.__setattr__(self, "paid_by", str(self.paid_by or "").strip())
        object.__setattr__(self, "split_among", normalize_names(self.split_among))

    @property
    def split_type(self) -> str:
        return self.split.split_type

    @property
    def custom_splits(self) -> Optional[Dict[str, float]]:
        if isinstance(self.split, CustomSplit):
            return self.split.as_dict()
        return None


@dataclass(frozen=True)
class PersonBalance:
    """Paid / owed / net per currency for one person"""
    name: str
    paid: Dict[str, float]
    owed: Dict[str, float]
    balance: Dict[str, float]

    def balance_in(self, currency: str) -> float:
        return self.balance.get(currency, 0.0)


@dataclass(frozen=True)
class Settlement:
    """Suggested transfer from a debtor to a creditor"""
    from_person: str
    to_person: str
    amount: float
    currency: str


@dataclass
class BalanceReport:
    """Result of one aggregation pass"""
    people: Dict[str, PersonBalance]
    unsupported: List[Expense] = field(default_factory=list)  # unknown currency, excluded


@dataclass
class TripLedger:
    """Participants directory plus the ordered expense list"""
    participants: List[str]
    expenses: List[Expense] = field(default_factory=list)
    version: int = 1

    def find_expense(self, expense_id: str) -> Optional[Expense]:
        for e in self.expenses:
            if e.id == expense_id:
                return e
        return None

    def add_expense(self, expense: Expense) -> None:
        self.expenses.append(expense)

    def replace_expense(self, expense: Expense) -> bool:
        """Swap in a new version of an existing expense (matched by id)"""
        for i, e in enumerate(self.expenses):
            if e.id == expense.id:
                self.expenses[i] = expense
                return True
        return False

    def delete_expense(self, expense_id: str) -> bool:
        for i, e in enumerate(self.expenses):
            if e.id == expense_id:
                del self.expenses[i]
                return True
        return False
