"""Shared fixtures: an isolated SQLite file per test and an app bound to it."""

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from expense_tracker.core.config import Settings
from expense_tracker.db.dal import Database
from expense_tracker.db.migrate import apply_migrations
from expense_tracker.db.seed import seed_currencies
from expense_tracker.main import create_app
from expense_tracker.services.rates.rate_table import RateTable


@pytest.fixture
def settings(tmp_path):
    s = Settings(
        data_dir=tmp_path,
        db_path=tmp_path / "test.sqlite3",
        reporting_currency="COP",
        rate_providers=["static"],
        exchange_api_key=None,
        fixer_api_key=None,
        debug=False,
    )
    s.init_post_load()
    return s


@pytest.fixture
def db(settings):
    apply_migrations(settings.db_path)
    seed_currencies(settings.db_path)
    return Database(settings.db_path)


@pytest.fixture
def app(settings):
    return create_app(settings_override=settings)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def rates():
    return RateTable(
        {
            "USD": Decimal("1"),
            "EUR": Decimal("0.92"),
            "COP": Decimal("4000"),
            "JPY": Decimal("150"),
        }
    )


@pytest.fixture
def category_id(db):
    return db.create_category("Housing", "#10B981", "home")
