from datetime import datetime, timedelta, timezone

import pytest

from expense_tracker.db import dal
from expense_tracker.db.dal import Database
from expense_tracker.db.repository import ExpenseFilter, RepositoryError, SortKey

from conftest import make_expense

UTC = timezone.utc


def at(day, hour=0):
    return datetime(2024, 1, day, hour, tzinfo=UTC)


def test_create_assigns_id_and_timestamps(db):
    expense = db.create(make_expense())
    assert expense.id == 1
    assert expense.name == "Coffee"
    assert expense.amount == 4.5
    assert expense.created_at.tzinfo is not None
    assert expense.created_at == expense.updated_at


def test_ids_are_not_reused(db):
    first = db.create(make_expense())
    db.delete(first.id)
    second = db.create(make_expense())
    assert second.id > first.id


def test_find_by_id_missing_is_none(db):
    assert db.find_by_id(999) is None


def test_date_round_trips_as_same_instant(db):
    local = datetime(2024, 3, 15, 12, 30, 15, 250000, tzinfo=timezone(timedelta(hours=2)))
    stored = db.create(make_expense(date=local))
    fetched = db.find_by_id(stored.id)
    assert fetched.date == local
    assert fetched.date.utcoffset() == timedelta(0)


def test_default_ordering_newest_first_with_id_tiebreak(db):
    older = db.create(make_expense(name="older", date=at(1)))
    tie_a = db.create(make_expense(name="tie-a", date=at(5)))
    tie_b = db.create(make_expense(name="tie-b", date=at(5)))
    names = [e.name for e in db.find_many(ExpenseFilter())]
    assert names == ["tie-b", "tie-a", "older"]
    assert [tie_b.id, tie_a.id, older.id] == [e.id for e in db.find_many(ExpenseFilter())]


def test_filters_are_and_combined_with_inclusive_bounds(db):
    db.create(make_expense(name="a", category="Food", date=at(1)))
    db.create(make_expense(name="b", category="Food", date=at(2)))
    db.create(make_expense(name="c", category="Travel", date=at(2)))
    db.create(make_expense(name="d", category="Food", date=at(3)))

    same_day = ExpenseFilter(from_date=at(2), to_date=at(2))
    assert sorted(e.name for e in db.find_many(same_day)) == ["b", "c"]

    food_range = ExpenseFilter(category="Food", from_date=at(2), to_date=at(3))
    assert [e.name for e in db.find_many(food_range)] == ["d", "b"]
    assert db.count(food_range) == 2
    assert db.count(ExpenseFilter(category="Nothing")) == 0


def test_limit_and_offset(db):
    for day in range(1, 6):
        db.create(make_expense(name=f"e{day}", date=at(day)))
    page = db.find_many(ExpenseFilter(), limit=2, offset=2)
    assert [e.name for e in page] == ["e3", "e2"]
    assert [e.name for e in db.find_many(ExpenseFilter(), offset=4)] == ["e1"]
    assert db.count(ExpenseFilter()) == 5


def test_ordering_rejects_unknown_columns(db):
    with pytest.raises(ValueError):
        db.find_many(ExpenseFilter(), ordering=(SortKey("amount; DROP TABLE expenses"),))


def test_ascending_ordering(db):
    db.create(make_expense(name="cheap", amount=1))
    db.create(make_expense(name="dear", amount=50))
    rows = db.find_many(ExpenseFilter(), ordering=(SortKey("amount", descending=False),))
    assert [e.name for e in rows] == ["cheap", "dear"]


def test_update_writes_only_given_fields(db):
    created = db.create(make_expense())
    updated = db.update(created.id, {"amount": 9.75, "category": "Drinks"})
    assert updated.amount == 9.75
    assert updated.category == "Drinks"
    assert updated.name == created.name
    assert updated.date == created.date
    assert updated.created_at == created.created_at
    assert updated.updated_at >= created.updated_at


def test_update_missing_row_returns_none(db):
    assert db.update(404, {"name": "ghost"}) is None


def test_delete_reports_existence(db):
    created = db.create(make_expense())
    assert db.delete(created.id) is True
    assert db.delete(created.id) is False
    assert db.find_by_id(created.id) is None


def test_aggregates_on_empty_table(db):
    totals = db.aggregate_totals()
    assert (totals.total_amount, totals.total_count) == (0.0, 0)
    assert db.aggregate_by_category() == []


def test_aggregates(db):
    db.create(make_expense(category="Food", amount=10))
    db.create(make_expense(category="Food", amount=5))
    db.create(make_expense(category="Travel", amount=100))
    db.create(make_expense(category="Books", amount=15))
    totals = db.aggregate_totals()
    assert (totals.total_amount, totals.total_count) == (130.0, 4)
    rows = [(c.category, c.total, c.count) for c in db.aggregate_by_category()]
    # Equal totals fall back to category name.
    assert rows == [("Travel", 100.0, 1), ("Books", 15.0, 1), ("Food", 15.0, 2)]


def test_closed_database_raises_repository_error(tmp_path):
    database = Database(tmp_path / "nested" / "dir" / "x.sqlite3").open()
    assert database.ping() is True
    database.close()
    assert not database.is_open
    assert database.ping() is False
    with pytest.raises(RepositoryError) as info:
        database.find_by_id(1)
    assert info.value.operation == "find_by_id"


def test_in_memory_database():
    with Database(":memory:") as database:
        database.create(make_expense())
        assert database.count(ExpenseFilter()) == 1


def test_data_survives_reopen(tmp_path):
    path = tmp_path / "persist.sqlite3"
    with Database(path) as database:
        database.create(make_expense(name="kept"))
    with Database(path) as database:
        assert [e.name for e in database.find_many(ExpenseFilter())] == ["kept"]


def test_early_years_round_trip_and_sort(db):
    ancient = db.create(make_expense(name="ancient", date=datetime(999, 6, 1, tzinfo=UTC)))
    db.create(make_expense(name="recent", date=at(1)))
    assert db.find_by_id(ancient.id).date == datetime(999, 6, 1, tzinfo=UTC)
    assert [e.name for e in db.find_many(ExpenseFilter())] == ["recent", "ancient"]
    assert db.count(ExpenseFilter(to_date=datetime(1000, 1, 1, tzinfo=UTC))) == 1


def test_ids_beyond_integer_range_are_absent(db):
    huge = 2**63
    assert db.find_by_id(huge) is None
    assert db.update(huge, {"name": "ghost"}) is None
    assert db.delete(huge) is False


def test_failed_create_leaves_no_row(db, monkeypatch):
    def unreadable(row):
        raise ValueError("bad row")

    monkeypatch.setattr(dal, "_row_to_expense", unreadable)
    with pytest.raises(ValueError):
        db.create(make_expense(name="half-written"))
    monkeypatch.undo()

    db.create(make_expense(name="next"))
    assert [e.name for e in db.find_many(ExpenseFilter())] == ["next"]
