"""
Expense Service

CRUD and monthly reporting over expenses, scoped by owning user.

GUARANTEES:
- Every read, update and delete filters on (id, user_id) together,
  so a user can never see or change another user's expenses
- user_id on incoming expenses is ignored and overwritten
- Store failures are logged with context and re-raised unchanged
- Updating or deleting a missing (or foreign) expense is a no-op
  reported through the return value, not an exception

Every method takes the user id explicitly. Resolving it from a
request session is the job of SessionExpenseService.
"""

from datetime import datetime
from decimal import Decimal
from typing import Callable, Optional

from family_budget.config import DEFAULT_DEMO_USER_ID
from family_budget.events import EventLogger
from family_budget.models.expense import DEMO_EXPENSES, Expense
from family_budget.storage import (
    CategoryContains,
    ExpenseStorageInterface,
    InMonth,
    InYear,
    OwnedBy,
    all_of,
    owned_expense,
)


class ExpenseService:
    """
    Per-user expense operations on top of an expense store.

    Holds no state besides its collaborators, so one instance can
    serve any number of concurrent requests.
    """

    def __init__(
        self,
        storage: ExpenseStorageInterface,
        event_logger: Optional[EventLogger] = None,
        demo_user_id: str = DEFAULT_DEMO_USER_ID,
        clock: Callable[[], datetime] = datetime.now,
    ):
        """
        Initialize the service.

        Args:
            storage: Expense store to read and write
            event_logger: Structured log sink. Defaults to a local logger.
            demo_user_id: User that owns the seeded demo expenses
            clock: Source of "now" for demo data dates
        """
        self._storage = storage
        self._events = event_logger or EventLogger()
        self._demo_user_id = demo_user_id
        self._clock = clock

    @property
    def demo_user_id(self) -> str:
        return self._demo_user_id

    async def list_expenses(
        self,
        user_id: str,
        category: Optional[str] = None,
        year: Optional[int] = None,
    ) -> list[Expense]:
        """
        List a user's expenses, newest first.

        Args:
            user_id: Owning user
            category: Keep only categories containing this text (ignored if empty)
            year: Keep only expenses dated in this calendar year

        Returns:
            Matching expenses; empty if none
        """
        criteria = all_of(
            OwnedBy(user_id=user_id),
            CategoryContains(text=category) if category else None,
            InYear(year=year) if year is not None else None,
        )
        filters = {"category": category or None, "year": year}

        try:
            expenses = await self._storage.find(criteria)
        except Exception as e:
            await self._events.log_store_failure(
                operation="list_expenses",
                error=e,
                user_id=user_id,
                details=filters,
            )
            raise

        await self._events.log_query_executed(
            operation="list_expenses",
            user_id=user_id,
            result_count=len(expenses),
            filters=filters,
        )
        return expenses

    async def get_expense(self, user_id: str, expense_id: int) -> Optional[Expense]:
        """Look up one of the user's expenses. None if absent or not theirs."""
        try:
            expense = await self._storage.first(owned_expense(user_id, expense_id))
        except Exception as e:
            await self._events.log_store_failure(
                operation="get_expense",
                error=e,
                user_id=user_id,
                expense_id=expense_id,
            )
            raise

        await self._events.log_query_executed(
            operation="get_expense",
            user_id=user_id,
            result_count=0 if expense is None else 1,
            expense_id=expense_id,
        )
        return expense

    async def add_expense(self, user_id: str, expense: Expense) -> Expense:
        """
        Save a new expense owned by user_id.

        The input's id and user_id are ignored.

        Returns:
            The stored expense with its assigned id
        """
        if not user_id:
            raise ValueError("user_id is required to add an expense")
        owned = expense.model_copy(update={"id": None, "user_id": user_id})

        try:
            stored = await self._storage.add(owned)
        except Exception as e:
            await self._events.log_store_failure(
                operation="add_expense",
                error=e,
                user_id=user_id,
            )
            raise

        await self._events.log_expense_added(stored.id, user_id)
        return stored

    async def update_expense(self, user_id: str, expense: Expense) -> bool:
        """
        Overwrite one of the user's expenses with the given values.

        The stored id and owner are kept whatever the input says.

        Returns:
            True if the expense was updated, False if the user has
            no expense with that id (nothing is changed)
        """
        if expense.id is None:
            await self._events.log_update_target_missing(None, user_id)
            return False

        try:
            existing = await self._storage.first(owned_expense(user_id, expense.id))
            if existing is None:
                updated = False
            else:
                replacement = expense.model_copy(
                    update={"id": existing.id, "user_id": existing.user_id}
                )
                updated = await self._storage.replace(replacement)
        except Exception as e:
            await self._events.log_store_failure(
                operation="update_expense",
                error=e,
                user_id=user_id,
                expense_id=expense.id,
            )
            raise

        if updated:
            await self._events.log_expense_updated(expense.id, user_id)
        else:
            await self._events.log_update_target_missing(expense.id, user_id)
        return updated

    async def delete_expense(self, user_id: str, expense_id: int) -> bool:
        """
        Delete one of the user's expenses.

        Returns:
            True if deleted, False if the user has no expense with that id
        """
        try:
            existing = await self._storage.first(owned_expense(user_id, expense_id))
            deleted = existing is not None and await self._storage.remove(existing.id)
        except Exception as e:
            await self._events.log_store_failure(
                operation="delete_expense",
                error=e,
                user_id=user_id,
                expense_id=expense_id,
            )
            raise

        if deleted:
            await self._events.log_expense_deleted(expense_id, user_id)
        else:
            await self._events.log_delete_target_missing(expense_id, user_id)
        return deleted

    async def expense_report(
        self,
        user_id: str,
        year: int,
        month: int,
    ) -> dict[str, Decimal]:
        """
        Total the user's spending per category for one month.

        Returns:
            {category: total}. Categories with no expenses that month
            are absent.

        Raises:
            ValueError: If year or month is out of range
        """
        criteria = OwnedBy(user_id=user_id) & InMonth(year=year, month=month)

        try:
            report = await self._storage.sum_by_category(criteria)
        except Exception as e:
            await self._events.log_store_failure(
                operation="expense_report",
                error=e,
                user_id=user_id,
                details={"year": year, "month": month},
            )
            raise

        await self._events.log_query_executed(
            operation="expense_report",
            user_id=user_id,
            result_count=len(report),
            filters={"year": year, "month": month},
        )
        return report

    async def seed_demo_expenses(self) -> bool:
        """
        Give the demo user a fixed set of sample expenses.

        Idempotent: does nothing if the demo user already has expenses.

        Returns:
            True if the samples were inserted
        """
        user_id = self._demo_user_id

        try:
            if await self._storage.exists(OwnedBy(user_id=user_id)):
                await self._events.log_demo_data_present(user_id)
                return False

            now = self._clock()
            samples = [template.build(user_id, now) for template in DEMO_EXPENSES]
            await self._storage.add_many(samples)
        except Exception as e:
            await self._events.log_store_failure(
                operation="seed_demo_expenses",
                error=e,
                user_id=user_id,
            )
            raise

        await self._events.log_demo_data_seeded(user_id, len(samples))
        return True
