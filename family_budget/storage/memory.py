"""
In-Memory Storage Implementation

Keeps expenses in a dict keyed by id. Used by tests and demos.
Each method runs without awaiting, so under asyncio every call is
atomic with respect to the others.
"""

from decimal import Decimal
from typing import Optional, Sequence

from family_budget.models.expense import Expense
from family_budget.storage.criteria import Criterion
from family_budget.storage.interface import ExpenseStorageInterface


class InMemoryExpenseStorage(ExpenseStorageInterface):
    """
    Dict-backed expense storage.

    Expenses are copied on the way in and on the way out, so callers
    never hold a reference to stored state.
    """

    def __init__(self):
        self._rows: dict[int, Expense] = {}
        self._next_id = 1

    def _insert(self, expense: Expense) -> Expense:
        stored = expense.model_copy(update={"id": self._next_id})
        self._rows[stored.id] = stored
        self._next_id += 1
        return stored.model_copy()

    def _matching(self, criteria: Criterion) -> list[Expense]:
        rows = [self._rows[key] for key in sorted(self._rows)]
        matches = [row for row in rows if criteria.matches(row)]
        # Stable sort keeps ascending id among equal dates
        matches.sort(key=lambda row: row.date, reverse=True)
        return matches

    async def add(self, expense: Expense) -> Expense:
        return self._insert(expense)

    async def add_many(self, expenses: Sequence[Expense]) -> list[Expense]:
        return [self._insert(expense) for expense in expenses]

    async def first(self, criteria: Criterion) -> Optional[Expense]:
        matches = self._matching(criteria)
        return matches[0].model_copy() if matches else None

    async def find(self, criteria: Criterion) -> list[Expense]:
        return [row.model_copy() for row in self._matching(criteria)]

    async def replace(self, expense: Expense) -> bool:
        if expense.id not in self._rows:
            return False
        self._rows[expense.id] = expense.model_copy()
        return True

    async def remove(self, expense_id: int) -> bool:
        return self._rows.pop(expense_id, None) is not None

    async def exists(self, criteria: Criterion) -> bool:
        return any(criteria.matches(row) for row in self._rows.values())

    async def sum_by_category(self, criteria: Criterion) -> dict[str, Decimal]:
        totals: dict[str, Decimal] = {}
        for row in self._matching(criteria):
            totals[row.category] = totals.get(row.category, Decimal("0")) + row.amount
        return {category: totals[category] for category in sorted(totals)}

    def __len__(self) -> int:
        return len(self._rows)
