"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for expense storage.
This allows us to:
1. Run on any relational database SQLAlchemy supports
2. Use in-memory storage for testing
3. Keep the user-scoping logic in the service, not in each backend

Reads take Criterion objects (see criteria.py) rather than keyword
filters, so new filters do not change this interface.
"""

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Optional, Sequence

from family_budget.models.expense import Expense
from family_budget.storage.criteria import Criterion


class ExpenseStorageInterface(ABC):
    """
    Abstract interface for expense storage operations.

    Every method is atomic: it either fully succeeds or raises
    StorageError and leaves the store unchanged.
    """

    @abstractmethod
    async def add(self, expense: Expense) -> Expense:
        """
        Insert an expense.

        Any id on the input is ignored.

        Returns:
            The stored expense with its assigned id

        Raises:
            StorageError: If the insert fails
        """
        pass

    @abstractmethod
    async def add_many(self, expenses: Sequence[Expense]) -> list[Expense]:
        """
        Insert several expenses in one transaction.

        Returns:
            The stored expenses, in input order, with assigned ids
        """
        pass

    @abstractmethod
    async def first(self, criteria: Criterion) -> Optional[Expense]:
        """
        Return the first expense matching the criteria.

        Returns:
            The expense if found, None otherwise
        """
        pass

    @abstractmethod
    async def find(self, criteria: Criterion) -> list[Expense]:
        """
        Return every expense matching the criteria.

        Returns:
            Matching expenses, newest date first, ties by ascending id
        """
        pass

    @abstractmethod
    async def replace(self, expense: Expense) -> bool:
        """
        Overwrite the stored expense that has expense.id.

        Returns:
            True if a record was overwritten, False if none has that id
        """
        pass

    @abstractmethod
    async def remove(self, expense_id: int) -> bool:
        """
        Delete an expense by id.

        Returns:
            True if a record was deleted, False if none has that id
        """
        pass

    @abstractmethod
    async def exists(self, criteria: Criterion) -> bool:
        """Check whether any expense matches the criteria."""
        pass

    @abstractmethod
    async def sum_by_category(self, criteria: Criterion) -> dict[str, Decimal]:
        """
        Sum amounts of matching expenses, grouped by category.

        Returns:
            {category: total}; categories without matches are absent
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class StorageConnectionError(StorageError):
    """Could not connect to or prepare the storage backend."""
    pass
