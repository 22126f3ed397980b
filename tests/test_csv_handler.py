from datetime import datetime

from csv_handler import CSV_COLUMNS, export_expenses_to_csv, import_expenses_from_csv, parse_expenses_csv
from models import CustomSplit
from utils import make_expense

NOW = datetime(2025, 1, 1, 12, 0)
HEADER = ",".join(CSV_COLUMNS)


def test_parse_published_csv():
    text = "\n".join([
        HEADER,
        'EXP-1,2025-03-01,19:30,Dinner,Food,1200,THB,Alice,"Alice, Bob, Carol",Equal,,nice',
        'EXP-2,2025-03-02,,Ferry,Transport,90.5,HKD,Bob,"Bob,Carol",Custom,"{""Bob"": 40.5, ""Carol"": 50}",',
        "",
    ])
    expenses = parse_expenses_csv(text, NOW)
    assert [e.id for e in expenses] == ["EXP-1", "EXP-2"]

    dinner = expenses[0]
    assert dinner.split_among == ("Alice", "Bob", "Carol")
    assert dinner.total_amount == 1200
    assert dinner.timestamp == datetime(2025, 3, 1, 19, 30)
    assert dinner.notes == "nice"

    ferry = expenses[1]
    assert isinstance(ferry.split, CustomSplit)
    assert ferry.custom_splits == {"Bob": 40.5, "Carol": 50.0}
    assert ferry.timestamp == datetime(2025, 3, 2)


def test_short_and_malformed_rows_are_skipped():
    text = "\n".join([
        HEADER,
        "EXP-1,2025-03-01,,Too short",
        'EXP-2,2025-03-01,,Bad,Food,10,THB,A,"A,B",Custom,{broken,',
        "EXP-3,2025-03-01,,Ok,Food,10,THB,A,A,Equal,,",
    ])
    assert [e.id for e in parse_expenses_csv(text, NOW)] == ["EXP-3"]


def test_empty_fields_get_defaults():
    text = HEADER + "\n,,,Snack,,abc,,A,A,,,\n"
    (e,) = parse_expenses_csv(text, NOW)
    assert e.id.startswith("exp_")
    assert e.category == "Other"
    assert e.currency == "THB"
    assert e.total_amount == 0
    assert e.split_type == "Equal"
    assert e.date == datetime.now().date().isoformat()


def test_custom_splits_ignored_for_equal_rows():
    text = HEADER + '\nE,2025-03-01,,X,Food,10,THB,A,"A,B",Equal,"{""A"": 9}",\n'
    (e,) = parse_expenses_csv(text, NOW)
    assert e.custom_splits is None


def test_export_then_import(tmp_path):
    path = tmp_path / "expenses.csv"
    expenses = [
        make_expense(id="e1", date="2025-03-01", time="08:00", description="Breakfast, late",
                     category="Food", total_amount=250, currency="THB", paid_by="A",
                     split_among=["A", "B"], now=NOW),
        make_expense(id="e2", date="2025-03-02", description="Boat", total_amount=80,
                     currency="HKD", paid_by="B", split_among=["A", "B"], split_type="Custom",
                     custom_splits={"A": 30, "B": 50}, notes="ticket", now=NOW),
    ]
    export_expenses_to_csv(expenses, str(path))
    assert path.read_text(encoding="utf-8").splitlines()[0] == HEADER

    loaded = import_expenses_from_csv(str(path), NOW)
    assert loaded == expenses
