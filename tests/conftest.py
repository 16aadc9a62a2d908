from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from expense_tracker.core.config import Settings
from expense_tracker.db.dal import Database
from expense_tracker.db.repository import NewExpense
from expense_tracker.main import create_app
from expense_tracker.services.expense_service import ExpenseService


def make_expense(**overrides) -> NewExpense:
    values = {
        "name": "Coffee",
        "amount": 4.5,
        "currency": "USD",
        "category": "Food",
        "date": datetime(2024, 3, 15, 10, 30, tzinfo=timezone.utc),
    }
    values.update(overrides)
    return NewExpense(**values)


@pytest.fixture
def db(tmp_path):
    with Database(tmp_path / "test.sqlite3") as database:
        yield database


@pytest.fixture
def service(db):
    return ExpenseService(db)


@pytest.fixture
def settings(tmp_path):
    return Settings(db_path=tmp_path / "api.sqlite3", environment="test")


@pytest.fixture
def client(settings):
    app = create_app(settings_override=settings)
    with TestClient(app) as c:
        yield c


@pytest.fixture
def payload():
    return {
        "name": "Coffee",
        "amount": 4.5,
        "currency": "USD",
        "category": "Food",
        "date": "2024-03-15T10:30:00.000Z",
    }
