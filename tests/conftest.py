from __future__ import annotations

import os

# The limiter reads its switch when utils.rate_limit is first imported
os.environ["RATE_LIMIT_ENABLED"] = "false"

from datetime import timezone

import pytest
from fastapi.testclient import TestClient

from main import app
from routes import get_expense_store, get_expenses_timezone
from services.expenses_service import ExpenseStore


@pytest.fixture()
def store():
    return ExpenseStore()


@pytest.fixture()
def client(store):
    app.dependency_overrides[get_expense_store] = lambda: store
    app.dependency_overrides[get_expenses_timezone] = lambda: timezone.utc
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
