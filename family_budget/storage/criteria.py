"""
Query Criteria

Filters are immutable objects handed to the store instead of a
query the service builds up step by step. Every store knows how
to evaluate or translate each criterion, so the service code stays
the same whatever backend is plugged in.

Criteria compose with `&`:

    OwnedBy(user_id="u1") & CategoryContains(text="foo") & InYear(year=2024)
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from family_budget.models.expense import Expense


class Criterion(BaseModel):
    """Base class for a single predicate over expenses."""
    model_config = ConfigDict(frozen=True)

    def matches(self, expense: Expense) -> bool:
        raise NotImplementedError

    def __and__(self, other: "Criterion") -> "AllOf":
        return all_of(self, other)


class OwnedBy(Criterion):
    """Expense belongs to the given user."""

    user_id: str = Field(..., min_length=1)

    def matches(self, expense: Expense) -> bool:
        return expense.user_id == self.user_id


class HasId(Criterion):
    """Expense has the given primary key."""

    expense_id: int

    def matches(self, expense: Expense) -> bool:
        return expense.id == self.expense_id


def fold_category(text: str) -> str:
    """Case-folded form of a category, shared by every store."""
    return text.casefold()


class CategoryContains(Criterion):
    """Category contains the text, ignoring case (Unicode aware)."""

    text: str = Field(..., min_length=1)

    def matches(self, expense: Expense) -> bool:
        return fold_category(self.text) in fold_category(expense.category)


class DateRangeCriterion(Criterion):
    """Expense date falls in the half-open range returned by bounds()."""

    def bounds(self) -> tuple[datetime, datetime]:
        raise NotImplementedError

    def matches(self, expense: Expense) -> bool:
        start, end = self.bounds()
        return start <= expense.date < end


class InYear(DateRangeCriterion):
    """Expense is dated in the given calendar year."""

    year: int = Field(..., ge=1, le=9998)

    def bounds(self) -> tuple[datetime, datetime]:
        return datetime(self.year, 1, 1), datetime(self.year + 1, 1, 1)


class InMonth(DateRangeCriterion):
    """Expense is dated in the given calendar month."""

    year: int = Field(..., ge=1, le=9998)
    month: int = Field(..., ge=1, le=12)

    def bounds(self) -> tuple[datetime, datetime]:
        start = datetime(self.year, self.month, 1)
        if self.month == 12:
            end = datetime(self.year + 1, 1, 1)
        else:
            end = datetime(self.year, self.month + 1, 1)
        return start, end


class AllOf(Criterion):
    """Conjunction of criteria. An empty AllOf matches everything."""

    criteria: tuple[Criterion, ...] = ()

    def matches(self, expense: Expense) -> bool:
        return all(criterion.matches(expense) for criterion in self.criteria)


def all_of(*criteria: Optional[Criterion]) -> AllOf:
    """
    Combine criteria into one flat AllOf.

    None entries are skipped, which lets callers pass optional
    filters straight through.
    """
    flat: list[Criterion] = []
    for criterion in criteria:
        if criterion is None:
            continue
        if isinstance(criterion, AllOf):
            flat.extend(criterion.criteria)
        else:
            flat.append(criterion)
    return AllOf(criteria=tuple(flat))


def owned_expense(user_id: str, expense_id: int) -> AllOf:
    """The point lookup every read, update and delete goes through."""
    return OwnedBy(user_id=user_id) & HasId(expense_id=expense_id)
