"""
Core Data Models for Family Budget Tracker

The Expense model is the validation boundary for incoming data:
amount range and non-empty category are enforced when an Expense
is constructed, so the service never re-validates them.

DESIGN DECISION: user_id is part of the model but never trusted.
The service overwrites it with the owning user's id on every write.
"""

from datetime import datetime, timedelta
from decimal import Decimal
from typing import Annotated, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


MIN_AMOUNT = Decimal("0.01")
MAX_AMOUNT = Decimal("1000000")


class Expense(BaseModel):
    """
    A single monetary outlay owned by one user.

    An Expense without an id has not been saved yet.
    An Expense without a user_id has no owner yet.
    """
    model_config = ConfigDict(
        str_strip_whitespace=True,
        from_attributes=True,
        validate_assignment=True,
    )

    # Identity (assigned by the store)
    id: Optional[int] = Field(
        default=None,
        description="Store-assigned primary key"
    )

    amount: Annotated[
        Decimal,
        Field(
            ge=MIN_AMOUNT,
            le=MAX_AMOUNT,
            decimal_places=2,
            description="Amount spent"
        )
    ]
    category: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Free-form category label (e.g. Food, Transport)"
    )
    date: datetime = Field(
        default_factory=datetime.now,
        description="When the money was spent"
    )

    # Ownership (set server-side)
    user_id: Optional[str] = Field(
        default=None,
        description="Identifier of the owning user"
    )

    @field_validator('date')
    @classmethod
    def to_naive_local(cls, v: datetime) -> datetime:
        """Store every date as naive local time."""
        if v.tzinfo is not None:
            return v.astimezone().replace(tzinfo=None)
        return v

    @property
    def is_saved(self) -> bool:
        return self.id is not None


class DemoExpenseTemplate(BaseModel):
    """A sample expense, dated relative to the moment it is seeded."""

    amount: Decimal
    category: str
    days_ago: int = Field(ge=0)

    def build(self, user_id: str, now: datetime) -> Expense:
        return Expense(
            amount=self.amount,
            category=self.category,
            date=now - timedelta(days=self.days_ago),
            user_id=user_id,
        )


DEMO_EXPENSES = (
    DemoExpenseTemplate(amount=Decimal("50"), category="Food", days_ago=2),
    DemoExpenseTemplate(amount=Decimal("20"), category="Transport", days_ago=1),
    DemoExpenseTemplate(amount=Decimal("100"), category="Rent", days_ago=10),
    DemoExpenseTemplate(amount=Decimal("15"), category="Utilities", days_ago=5),
)
