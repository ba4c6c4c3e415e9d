"""
Session Adapter

Resolves the current user from the request context and calls the
explicit-user ExpenseService. This is the only place that knows
about "the current user"; the core never reads ambient state.

The request layer binds the authenticated user for the duration of
a request:

    with authenticated_as(claims["sub"]):
        expenses = await session_service.list_expenses(category="Food")
"""

from abc import ABC, abstractmethod
from contextlib import contextmanager
from contextvars import ContextVar
from decimal import Decimal
from typing import Iterator, Optional

from family_budget.events import EventLogger
from family_budget.models.expense import Expense
from family_budget.services.expense_service import ExpenseService


_current_user_id: ContextVar[Optional[str]] = ContextVar(
    "family_budget_current_user_id",
    default=None,
)


class UnauthenticatedError(Exception):
    """A session-derived call was made without an authenticated user."""

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__("User not authenticated. Please log in.")


class IdentityProvider(ABC):
    """Source of the authenticated user's id for the current request."""

    @abstractmethod
    def current_user_id(self) -> Optional[str]:
        """Return the user id, or None if nobody is authenticated."""
        pass


class RequestContextIdentity(IdentityProvider):
    """
    Reads the user id bound by authenticated_as().

    Backed by a ContextVar, so each asyncio task sees the identity of
    the request it is serving.
    """

    def current_user_id(self) -> Optional[str]:
        return _current_user_id.get()


class StaticIdentity(IdentityProvider):
    """Always reports the same user. For scripts and tests."""

    def __init__(self, user_id: Optional[str]):
        self._user_id = user_id

    def current_user_id(self) -> Optional[str]:
        return self._user_id


@contextmanager
def authenticated_as(user_id: Optional[str]) -> Iterator[None]:
    """Bind user_id as the current user inside the with block."""
    token = _current_user_id.set(user_id)
    try:
        yield
    finally:
        _current_user_id.reset(token)


class SessionExpenseService:
    """
    ExpenseService operations for the currently authenticated user.

    Every method fails with UnauthenticatedError, before touching the
    store, when the identity provider has no user id.
    """

    def __init__(
        self,
        service: ExpenseService,
        identity: Optional[IdentityProvider] = None,
        event_logger: Optional[EventLogger] = None,
    ):
        self._service = service
        self._identity = identity or RequestContextIdentity()
        self._events = event_logger or EventLogger()

    async def _require_user_id(self, operation: str) -> str:
        user_id = self._identity.current_user_id()
        if not user_id:
            await self._events.log_unauthenticated(operation)
            raise UnauthenticatedError(operation)
        return user_id

    async def list_expenses(
        self,
        category: Optional[str] = None,
        year: Optional[int] = None,
    ) -> list[Expense]:
        user_id = await self._require_user_id("list_expenses")
        return await self._service.list_expenses(user_id, category, year)

    async def get_expense(self, expense_id: int) -> Optional[Expense]:
        user_id = await self._require_user_id("get_expense")
        return await self._service.get_expense(user_id, expense_id)

    async def add_expense(self, expense: Expense) -> Expense:
        user_id = await self._require_user_id("add_expense")
        return await self._service.add_expense(user_id, expense)

    async def update_expense(self, expense: Expense) -> bool:
        user_id = await self._require_user_id("update_expense")
        return await self._service.update_expense(user_id, expense)

    async def delete_expense(self, expense_id: int) -> bool:
        user_id = await self._require_user_id("delete_expense")
        return await self._service.delete_expense(user_id, expense_id)

    async def expense_report(self, year: int, month: int) -> dict[str, Decimal]:
        user_id = await self._require_user_id("expense_report")
        return await self._service.expense_report(user_id, year, month)
