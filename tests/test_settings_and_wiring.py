"""Tests for configuration, the event logger and application wiring."""

import pytest
from datetime import datetime
from decimal import Decimal
from unittest.mock import MagicMock

from pydantic import ValidationError

from family_budget.config import (
    AppSettings,
    DatabaseSettings,
    Settings,
    get_settings,
    validate_all_settings,
)
from family_budget.events import EventLogger
from family_budget.models.events import ServiceEventBuilder
from family_budget.models.expense import Expense
from family_budget.orchestrator import create_app_components, initialize, shutdown
from family_budget.services import authenticated_as
from family_budget.storage import InMemoryExpenseStorage, SqlExpenseStorage


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    """Run from an empty directory so no .env file leaks in."""
    monkeypatch.chdir(tmp_path)
    for name in ("DATABASE_URL", "DATABASE_ECHO", "LOG_LEVEL", "STORAGE_BACKEND",
                 "DEMO_USER_ID", "SEED_DEMO_DATA"):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class TestSettings:

    def test_defaults(self):
        app = AppSettings()
        assert app.log_level == "INFO"
        assert app.storage_backend == "sql"
        assert app.demo_user_id == "demo-user-0001"
        assert app.seed_demo_data is False
        assert DatabaseSettings().url == "sqlite+aiosqlite:///./family_budget.db"

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
        monkeypatch.setenv("LOG_LEVEL", "debug")
        monkeypatch.setenv("DEMO_USER_ID", "showcase")

        settings = Settings()

        assert settings.database.url == "sqlite+aiosqlite:///:memory:"
        assert settings.database.is_sqlite_memory is True
        assert settings.app.log_level == "DEBUG"
        assert settings.app.demo_user_id == "showcase"

    def test_database_url_needs_async_driver(self):
        with pytest.raises(ValidationError):
            DatabaseSettings(url="sqlite:///budget.db")

    @pytest.mark.parametrize(
        "url,in_memory",
        [
            ("sqlite+aiosqlite://", True),
            ("sqlite+aiosqlite:///:memory:", True),
            ("sqlite+aiosqlite:///./family_budget.db", False),
            ("postgresql+asyncpg://user@localhost/budget", False),
        ],
    )
    def test_is_sqlite_memory(self, url, in_memory):
        assert DatabaseSettings(url=url).is_sqlite_memory is in_memory

    def test_unknown_log_level_rejected(self):
        with pytest.raises(ValidationError):
            AppSettings(log_level="verbose")

    def test_validate_all_settings_reports_errors(self, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "postgresql://no-driver/budget")

        results = validate_all_settings()

        assert results["app"] is True
        assert results["database"] is False
        assert "database_error" in results


class TestEventLogger:

    @pytest.mark.asyncio
    async def test_routes_by_severity(self):
        sink = MagicMock()
        logger = EventLogger(logger=sink)

        await logger.log(ServiceEventBuilder.expense_added(1, "alice"))
        await logger.log(ServiceEventBuilder.delete_target_missing(1, "alice"))
        await logger.log(ServiceEventBuilder.store_failure("find", RuntimeError("x")))
        await logger.log(ServiceEventBuilder.query_executed("list_expenses", "alice", 0))

        assert sink.info.call_count == 1
        assert sink.warning.call_count == 1
        assert sink.error.call_count == 1
        assert sink.debug.call_count == 1

    @pytest.mark.asyncio
    async def test_sink_failure_is_swallowed(self):
        sink = MagicMock()
        sink.error.side_effect = RuntimeError("sink down")
        logger = EventLogger(logger=sink)

        accepted = await logger.log(ServiceEventBuilder.store_failure("find", ValueError("x")))

        assert accepted is False

    @pytest.mark.asyncio
    async def test_default_logger_does_not_raise(self):
        logger = EventLogger()
        assert await logger.log(ServiceEventBuilder.expense_added(1, "alice")) is True


class TestWiring:

    @pytest.mark.asyncio
    async def test_memory_components_with_demo_seed(self, monkeypatch):
        monkeypatch.setenv("STORAGE_BACKEND", "memory")
        monkeypatch.setenv("SEED_DEMO_DATA", "true")

        components = create_app_components(Settings())
        await initialize(components)

        assert isinstance(components.storage, InMemoryExpenseStorage)
        assert components.database is None
        demo = await components.expense_service.list_expenses("demo-user-0001")
        assert len(demo) == 4
        await shutdown(components)

    @pytest.mark.asyncio
    async def test_sql_components_round_trip(self, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "sqlite+aiosqlite://")

        components = create_app_components(Settings())
        await initialize(components)
        try:
            assert isinstance(components.storage, SqlExpenseStorage)
            with authenticated_as("alice"):
                stored = await components.session_service.add_expense(
                    Expense(amount=Decimal("3.50"), category="Coffee",
                            date=datetime(2024, 3, 5))
                )
                report = await components.session_service.expense_report(2024, 3)
            assert stored.user_id == "alice"
            assert report == {"Coffee": Decimal("3.50")}
        finally:
            await shutdown(components)

    def test_use_sql_flag_overrides_backend(self):
        components = create_app_components(Settings(), use_sql=False)
        assert isinstance(components.storage, InMemoryExpenseStorage)
