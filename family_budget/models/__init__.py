"""
Data Models Package

Pydantic models for expenses and the structured events the
service logs about them.
"""

from family_budget.models.expense import (
    DEMO_EXPENSES,
    MAX_AMOUNT,
    MIN_AMOUNT,
    DemoExpenseTemplate,
    Expense,
)
from family_budget.models.events import (
    EventSeverity,
    ServiceEvent,
    ServiceEventBuilder,
    ServiceEventType,
)

__all__ = [
    # Expense models
    "DEMO_EXPENSES",
    "MAX_AMOUNT",
    "MIN_AMOUNT",
    "DemoExpenseTemplate",
    "Expense",
    # Event models
    "EventSeverity",
    "ServiceEvent",
    "ServiceEventBuilder",
    "ServiceEventType",
]
