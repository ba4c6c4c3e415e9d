"""
Storage Package

Provides the abstract expense store, composable query criteria,
and two implementations: SQLAlchemy (default) and in-memory.
"""

from family_budget.storage.criteria import (
    AllOf,
    CategoryContains,
    Criterion,
    DateRangeCriterion,
    HasId,
    InMonth,
    InYear,
    OwnedBy,
    all_of,
    fold_category,
    owned_expense,
)
from family_budget.storage.interface import (
    ExpenseStorageInterface,
    StorageConnectionError,
    StorageError,
)
from family_budget.storage.memory import InMemoryExpenseStorage
from family_budget.storage.sql import (
    ExpenseRecord,
    SqlDatabase,
    SqlExpenseStorage,
)

__all__ = [
    # Criteria
    "AllOf",
    "CategoryContains",
    "Criterion",
    "DateRangeCriterion",
    "HasId",
    "InMonth",
    "InYear",
    "OwnedBy",
    "all_of",
    "fold_category",
    "owned_expense",
    # Interface
    "ExpenseStorageInterface",
    # Exceptions
    "StorageConnectionError",
    "StorageError",
    # Implementations
    "ExpenseRecord",
    "InMemoryExpenseStorage",
    "SqlDatabase",
    "SqlExpenseStorage",
]
