"""
Business logic and computations for TripLedger
"""
from __future__ import annotations
import logging
import math
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Sequence

from models import (
    SUPPORTED_CURRENCIES,
    BalanceReport,
    CustomSplit,
    Expense,
    PersonBalance,
    Settlement,
)

logger = logging.getLogger(__name__)

EPSILON = 0.01  # balances within one cent/satang count as settled


def share_of(e: Expense, person: str) -> float:
    """Amount of expense e owed by person (no rounding)"""
    if person not in e.split_among:
        return 0.0
    if isinstance(e.split, CustomSplit):
        return e.split.share_for(person)
    return e.total_amount / len(e.split_among)


def accept_split(e: Expense) -> None:
    """Default split check: custom shares are trusted as entered"""


def warn_split_mismatch(e: Expense) -> None:
    """Split check that logs custom shares not covering the total"""
    if not isinstance(e.split, CustomSplit):
        return
    covered = sum(share_of(e, p) for p in e.split_among)
    if abs(covered - e.total_amount) > EPSILON:
        logger.warning(
            "Custom split of %s covers %.2f of %.2f %s",
            e.id, covered, e.total_amount, e.currency,
        )


SplitCheck = Callable[[Expense], None]


def aggregate_balances(
    expenses: Iterable[Expense],
    participants: Sequence[str] = (),
    check_split: SplitCheck = accept_split,
) -> BalanceReport:
    """
    Fold expenses into per-person paid/owed/balance, one ledger per currency.
    Everyone named anywhere gets a record, even with nothing to settle.
    Expenses in other currencies are collected in report.unsupported.
    """
    exps = list(expenses)

    people: List[str] = []
    seen = set()

    def _add(name: str) -> None:
        if name and name not in seen:
            seen.add(name)
            people.append(name)

    for p in participants:
        _add(str(p).strip())
    for e in exps:
        _add(e.paid_by)
        for p in e.split_among:
            _add(p)

    paid = {p: {c: 0.0 for c in SUPPORTED_CURRENCIES} for p in people}
    owed = {p: {c: 0.0 for c in SUPPORTED_CURRENCIES} for p in people}
    unsupported: List[Expense] = []

    for e in exps:
        cur = e.currency
        if cur not in SUPPORTED_CURRENCIES:
            unsupported.append(e)
            continue
        check_split(e)
        if e.paid_by:
            paid[e.paid_by][cur] += e.total_amount
        for p in e.split_among:
            owed[p][cur] += share_of(e, p)

    if unsupported:
        logger.debug("%d expense(s) in unsupported currencies left out of balances", len(unsupported))

    balances = {
        p: PersonBalance(
            name=p,
            paid=paid[p],
            owed=owed[p],
            balance={c: paid[p][c] - owed[p][c] for c in SUPPORTED_CURRENCIES},
        ) for p in people
    }
    return BalanceReport(people=balances, unsupported=unsupported)


def plan_settlements(balances: Iterable[PersonBalance], currency: str) -> List[Settlement]:
    """
    Greedy settlement for one currency: the largest debtor pays the largest
    creditor until one side runs out. Leftovers below EPSILON are dropped.
    """
    bals = [(b.name, b.balance_in(currency)) for b in balances]
    bals = [(name, v) for name, v in bals if math.isfinite(v)]  # overflowed totals cannot be settled
    creditors = [[name, v] for name, v in bals if v > EPSILON]
    debtors = [[name, -v] for name, v in bals if v < -EPSILON]
    creditors.sort(key=lambda x: x[1], reverse=True)
    debtors.sort(key=lambda x: x[1], reverse=True)

    transfers = []
    i = j = 0
    while i < len(debtors) and j < len(creditors):
        debtor, creditor = debtors[i], creditors[j]
        x = min(debtor[1], creditor[1])
        transfers.append(Settlement(from_person=debtor[0], to_person=creditor[0], amount=x, currency=currency))
        debtor[1] -= x
        creditor[1] -= x
        if debtor[1] < EPSILON:
            i += 1
        if creditor[1] < EPSILON:
            j += 1

    return transfers


def plan_all_settlements(report: BalanceReport) -> Dict[str, List[Settlement]]:
    """Settlements for every supported currency, each computed on its own"""
    people = list(report.people.values())
    return {c: plan_settlements(people, c) for c in SUPPORTED_CURRENCIES}


def calculate_totals(expenses: Iterable[Expense]) -> Dict[str, float]:
    """Total spent per supported currency"""
    totals = {c: 0.0 for c in SUPPORTED_CURRENCIES}
    for e in expenses:
        if e.currency in totals:
            totals[e.currency] += e.total_amount
    return totals


@dataclass
class CategoryStat:
    total: float = 0.0
    count: int = 0
    percentage: float = 0.0


def calculate_category_stats(expenses: Iterable[Expense]) -> Dict[str, Dict[str, CategoryStat]]:
    """Per currency: category -> total, count and share of the currency total"""
    exps = list(expenses)
    stats: Dict[str, Dict[str, CategoryStat]] = {c: {} for c in SUPPORTED_CURRENCIES}
    for e in exps:
        if e.currency not in stats:
            continue
        st = stats[e.currency].setdefault(e.category, CategoryStat())
        st.total += e.total_amount
        st.count += 1

    totals = calculate_totals(exps)
    for cur, cats in stats.items():
        if totals[cur] > 0:
            for st in cats.values():
                st.percentage = st.total / totals[cur] * 100
    return stats


def _pct(part: float, whole: float) -> float:
    return part / whole * 100 if whole > 0 else 0.0


def calculate_person_stats(expenses: Iterable[Expense], participants: Sequence[str] = ()) -> dict:
    """
    Averages per currency (total / number of people) and, per person,
    paid/owed/balance with their percentage of the currency total.
    """
    exps = list(expenses)
    report = aggregate_balances(exps, participants)
    totals = calculate_totals(exps)
    count = len(report.people) or 1

    people = {}
    for name, b in report.people.items():
        row = {}
        for c in SUPPORTED_CURRENCIES:
            key = c.lower()
            row[f"paid_{key}"] = b.paid[c]
            row[f"owed_{key}"] = b.owed[c]
            row[f"balance_{key}"] = b.balance[c]
            row[f"percentage_paid_{key}"] = _pct(b.paid[c], totals[c])
            row[f"percentage_owed_{key}"] = _pct(b.owed[c], totals[c])
        people[name] = row

    return {
        "averages": {c: totals[c] / count for c in SUPPORTED_CURRENCIES},
        "people": people,
    }


def format_currency(amount: float, currency: str = "THB") -> str:
    """1234.5 -> '1,234.50 THB'"""
    return f"{float(amount):,.2f} {currency}"


def format_percentage(percentage: float) -> str:
    return f"{percentage:.1f}%"
