from datetime import date, datetime

from queries import (
    by_date_range,
    categories_in,
    expense_instant,
    filter_expenses,
    sort_expenses,
)
from utils import make_expense

NOW = datetime(2025, 1, 1)


def exp(id, when="2025-03-01", time="", amount=100, currency="THB", category="Food",
        paid_by="A", split_among="A,B", timestamp=None):
    return make_expense(id=id, date=when, time=time, total_amount=amount, currency=currency,
                        category=category, paid_by=paid_by, split_among=split_among,
                        timestamp=timestamp, now=NOW)


EXPENSES = [
    exp("e1", "2025-03-01", "09:00", 300, "THB", "Food", "A", "A,B,C"),
    exp("e2", "2025-03-02", "", 50, "HKD", "Transport", "B", "B,C"),
    exp("e3", "2025-03-03", "20:15", 1000, "USD", "Hotel", "C", "C"),
    exp("e4", "2025-03-02", "13:30", 75, "THB", "Drinks", "C", "A,C"),
]


def ids(expenses):
    return [e.id for e in expenses]


def test_filter_by_currency():
    assert ids(filter_expenses(EXPENSES, currency="THB")) == ["e1", "e4"]
    assert ids(filter_expenses(EXPENSES, currency="HKD")) == ["e2"]


def test_unknown_currency_is_visible_only_unfiltered():
    assert "e3" in ids(filter_expenses(EXPENSES))
    assert "e3" in ids(filter_expenses(EXPENSES, currency="all"))
    assert "e3" not in ids(filter_expenses(EXPENSES, currency="THB"))
    assert "e3" not in ids(filter_expenses(EXPENSES, currency="HKD"))


def test_filter_by_category():
    assert ids(filter_expenses(EXPENSES, category="Transport")) == ["e2"]
    assert len(filter_expenses(EXPENSES, category="all")) == 4


def test_filter_by_participant_payer_or_member():
    assert ids(filter_expenses(EXPENSES, person="A")) == ["e1", "e4"]
    assert ids(filter_expenses(EXPENSES, person="B")) == ["e1", "e2"]


def test_filter_combined():
    assert ids(filter_expenses(EXPENSES, currency="THB", person="C", category="Drinks")) == ["e4"]


def test_date_range_inclusive_by_day():
    assert ids(by_date_range(EXPENSES, "2025-03-02", "2025-03-02")) == ["e2", "e4"]
    assert ids(filter_expenses(EXPENSES, date_from=date(2025, 3, 2))) == ["e2", "e3", "e4"]
    assert ids(filter_expenses(EXPENSES, date_to="2025-03-01")) == ["e1"]


def test_date_range_with_datetime_bound():
    got = by_date_range(EXPENSES, datetime(2025, 3, 2, 12, 0), None)
    assert ids(got) == ["e3", "e4"]


def test_invalid_bound_is_ignored():
    assert len(by_date_range(EXPENSES, "someday", None)) == 4


def test_expense_without_usable_date_is_kept():
    odd = exp("bad", "n/a", timestamp="garbage")
    assert expense_instant(odd) is None
    assert ids(by_date_range([odd], "2025-03-01", "2025-03-02")) == ["bad"]


def test_invalid_timestamp_falls_back_to_date():
    e = exp("x", "2025-03-05", timestamp="not-a-time")
    assert e.timestamp is None
    assert expense_instant(e) == datetime(2025, 3, 5)
    assert ids(by_date_range([e], "2025-03-05", "2025-03-05")) == ["x"]


def test_sort_by_date():
    assert ids(sort_expenses(EXPENSES, "date", "asc")) == ["e1", "e2", "e4", "e3"]
    assert ids(sort_expenses(EXPENSES)) == ["e3", "e4", "e2", "e1"]


def test_sort_by_amount_and_category():
    assert ids(sort_expenses(EXPENSES, "amount", "asc")) == ["e2", "e4", "e1", "e3"]
    assert ids(sort_expenses(EXPENSES, "category", "asc")) == ["e4", "e1", "e3", "e2"]


def test_sort_unknown_key_keeps_order():
    assert ids(sort_expenses(EXPENSES, "colour", "asc")) == ids(EXPENSES)


def test_sort_with_undated_expense_does_not_fail():
    odd = exp("bad", "n/a", timestamp="garbage")
    out = sort_expenses([EXPENSES[0], odd, EXPENSES[1]], "date", "asc")
    assert sorted(ids(out)) == ["bad", "e1", "e2"]


def test_sort_returns_copy():
    data = list(EXPENSES)
    sort_expenses(data, "amount", "desc")
    assert ids(data) == ids(EXPENSES)


def test_categories_in():
    assert categories_in(EXPENSES) == ["Drinks", "Food", "Hotel", "Transport"]
