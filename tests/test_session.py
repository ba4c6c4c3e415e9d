"""Tests for the session adapter and identity providers."""

import asyncio
import pytest
from datetime import datetime
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

from family_budget.models.expense import Expense
from family_budget.services import (
    ExpenseService,
    RequestContextIdentity,
    SessionExpenseService,
    StaticIdentity,
    UnauthenticatedError,
    authenticated_as,
)
from family_budget.storage import ExpenseStorageInterface, InMemoryExpenseStorage


@pytest.fixture
def session_service(event_logger):
    service = ExpenseService(InMemoryExpenseStorage(), event_logger)
    return SessionExpenseService(service, RequestContextIdentity(), event_logger)


class TestIdentityProviders:

    def test_request_context_is_empty_by_default(self):
        assert RequestContextIdentity().current_user_id() is None

    def test_authenticated_as_binds_and_restores(self):
        identity = RequestContextIdentity()
        with authenticated_as("alice"):
            assert identity.current_user_id() == "alice"
            with authenticated_as("bob"):
                assert identity.current_user_id() == "bob"
            assert identity.current_user_id() == "alice"
        assert identity.current_user_id() is None

    def test_static_identity(self):
        assert StaticIdentity("alice").current_user_id() == "alice"
        assert StaticIdentity(None).current_user_id() is None

    @pytest.mark.asyncio
    async def test_concurrent_tasks_see_their_own_user(self):
        identity = RequestContextIdentity()

        async def whoami(user_id):
            with authenticated_as(user_id):
                await asyncio.sleep(0)
                return identity.current_user_id()

        results = await asyncio.gather(whoami("alice"), whoami("bob"), whoami("carol"))
        assert results == ["alice", "bob", "carol"]


class TestSessionExpenseService:

    @pytest.mark.asyncio
    async def test_operations_use_current_user(self, session_service):
        with authenticated_as("alice"):
            stored = await session_service.add_expense(
                Expense(amount=Decimal("10"), category="Food", date=datetime(2024, 3, 5))
            )
            assert stored.user_id == "alice"
            assert await session_service.get_expense(stored.id) == stored
            assert await session_service.list_expenses("Fo", 2024) == [stored]
            assert await session_service.expense_report(2024, 3) == {"Food": Decimal("10")}

        with authenticated_as("bob"):
            assert await session_service.get_expense(stored.id) is None
            assert await session_service.delete_expense(stored.id) is False

        with authenticated_as("alice"):
            changed = stored.model_copy(update={"category": "Dining"})
            assert await session_service.update_expense(changed) is True
            assert await session_service.delete_expense(stored.id) is True

    @pytest.mark.asyncio
    @pytest.mark.parametrize("user_id", [None, ""])
    @pytest.mark.parametrize(
        "operation,args",
        [
            ("list_expenses", ()),
            ("get_expense", (1,)),
            ("add_expense", (Expense(amount=Decimal("1"), category="Food"),)),
            ("update_expense", (Expense(id=1, amount=Decimal("1"), category="Food"),)),
            ("delete_expense", (1,)),
            ("expense_report", (2024, 3)),
        ],
    )
    async def test_unauthenticated_calls_never_reach_store(
        self, event_logger, log_sink, user_id, operation, args
    ):
        storage = MagicMock(spec=ExpenseStorageInterface)
        for name in ("add", "add_many", "first", "find", "replace", "remove",
                     "exists", "sum_by_category"):
            setattr(storage, name, AsyncMock())
        service = ExpenseService(storage, event_logger)
        session_service = SessionExpenseService(service, StaticIdentity(user_id), event_logger)

        with pytest.raises(UnauthenticatedError) as excinfo:
            await getattr(session_service, operation)(*args)

        assert excinfo.value.operation == operation
        for name in ("add", "add_many", "first", "find", "replace", "remove",
                     "exists", "sum_by_category"):
            getattr(storage, name).assert_not_called()
        assert log_sink.warning.call_args.kwargs["event_type"] == "unauthenticated_access"

    @pytest.mark.asyncio
    async def test_outside_request_context_is_unauthenticated(self, session_service):
        with pytest.raises(UnauthenticatedError, match="not authenticated"):
            await session_service.list_expenses()
