"""
Application Wiring for Family Budget Tracker

Builds the store, logger and services from settings, and runs the
startup steps (schema creation, optional demo seeding).

The request layer (HTTP, CLI, UI) is expected to:
1. Call create_app_components() once at startup
2. await initialize(components)
3. Wrap each request in authenticated_as(user_id) and call
   components.session_service
4. await shutdown(components) on exit
"""

from dataclasses import dataclass
from typing import Optional

from family_budget.config import Settings, get_settings
from family_budget.events import EventLogger, configure_logging
from family_budget.services import (
    ExpenseService,
    IdentityProvider,
    SessionExpenseService,
)
from family_budget.storage import (
    ExpenseStorageInterface,
    InMemoryExpenseStorage,
    SqlDatabase,
    SqlExpenseStorage,
)


@dataclass
class AppComponents:
    """Everything a request layer needs, built once per process."""

    storage: ExpenseStorageInterface
    expense_service: ExpenseService
    session_service: SessionExpenseService
    event_logger: EventLogger
    database: Optional[SqlDatabase] = None
    seed_demo_data: bool = False


def create_app_components(
    settings: Optional[Settings] = None,
    use_sql: Optional[bool] = None,
    identity: Optional[IdentityProvider] = None,
) -> AppComponents:
    """
    Factory function to create all application components.

    Args:
        settings: Settings to build from. Defaults to get_settings().
        use_sql: Force the SQL (True) or in-memory (False) store.
                 Defaults to the configured storage_backend.
        identity: Where the session adapter reads the current user.
                  Defaults to the request context.

    Returns:
        AppComponents. Nothing touches the database until initialize().
    """
    settings = settings or get_settings()
    app_settings = settings.app

    configure_logging(app_settings.log_level)
    event_logger = EventLogger()

    if use_sql is None:
        use_sql = app_settings.storage_backend == "sql"

    database = None
    if use_sql:
        database = SqlDatabase(settings.database)
        storage: ExpenseStorageInterface = SqlExpenseStorage(database)
    else:
        storage = InMemoryExpenseStorage()

    expense_service = ExpenseService(
        storage=storage,
        event_logger=event_logger,
        demo_user_id=app_settings.demo_user_id,
    )
    session_service = SessionExpenseService(
        service=expense_service,
        identity=identity,
        event_logger=event_logger,
    )

    return AppComponents(
        storage=storage,
        expense_service=expense_service,
        session_service=session_service,
        event_logger=event_logger,
        database=database,
        seed_demo_data=app_settings.seed_demo_data,
    )


async def initialize(components: AppComponents) -> None:
    """Create the schema and seed demo data if configured."""
    if components.database is not None:
        await components.database.create_schema()
    if components.seed_demo_data:
        await components.expense_service.seed_demo_expenses()


async def shutdown(components: AppComponents) -> None:
    """Release database connections."""
    if components.database is not None:
        await components.database.dispose()
