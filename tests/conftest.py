"""Shared fixtures: every test gets its own SQLite file under ``tmp_path``."""

from __future__ import annotations

from datetime import date
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from expense_api.core.config import Settings
from expense_api.db.dal import ExpenseStore
from expense_api.db.migrate import apply_migrations
from expense_api.main import create_app
from expense_api.models import NormalizedExpense


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    s = Settings(data_dir=tmp_path / "data", db_filename="test.sqlite3", debug=False)
    s.init_post_load()
    return s


@pytest.fixture
def store(settings: Settings) -> ExpenseStore:
    apply_migrations(settings.db_path)
    return ExpenseStore(settings.db_path, timeout=settings.db_timeout_seconds)


@pytest.fixture
def client(settings: Settings) -> TestClient:
    app = create_app(settings_override=settings)
    with TestClient(app) as c:
        yield c


@pytest.fixture
def make_expense():
    def _make(
        amount: int = 1000,
        category: str = "Food",
        description: str = "",
        day: date = date(2024, 1, 1),
    ) -> NormalizedExpense:
        return NormalizedExpense(
            amount=amount, category=category, description=description, date=day
        )

    return _make
