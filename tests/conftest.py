"""Shared fixtures: both expense stores, a recording logger, and the service."""

from unittest.mock import MagicMock

import pytest
import pytest_asyncio

from family_budget.config import DatabaseSettings
from family_budget.events import EventLogger
from family_budget.services import ExpenseService
from family_budget.storage import (
    InMemoryExpenseStorage,
    SqlDatabase,
    SqlExpenseStorage,
)


MEMORY_DB_URL = "sqlite+aiosqlite://"


@pytest_asyncio.fixture
async def sql_database():
    """A fresh in-memory SQLite database with the schema created."""
    database = SqlDatabase(DatabaseSettings(url=MEMORY_DB_URL))
    await database.create_schema()
    yield database
    await database.dispose()


@pytest_asyncio.fixture(params=["memory", "sql"])
async def storage(request):
    """Each test using this fixture runs once per store implementation."""
    if request.param == "memory":
        yield InMemoryExpenseStorage()
    else:
        database = SqlDatabase(DatabaseSettings(url=MEMORY_DB_URL))
        await database.create_schema()
        yield SqlExpenseStorage(database)
        await database.dispose()


@pytest.fixture
def log_sink():
    """Stands in for the structlog logger so tests can inspect calls."""
    return MagicMock()


@pytest.fixture
def event_logger(log_sink):
    return EventLogger(logger=log_sink)


@pytest.fixture
def service(storage, event_logger):
    return ExpenseService(storage=storage, event_logger=event_logger)
