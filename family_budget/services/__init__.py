"""Services package."""

from family_budget.services.expense_service import ExpenseService
from family_budget.services.session import (
    IdentityProvider,
    RequestContextIdentity,
    SessionExpenseService,
    StaticIdentity,
    UnauthenticatedError,
    authenticated_as,
)

__all__ = [
    "ExpenseService",
    "IdentityProvider",
    "RequestContextIdentity",
    "SessionExpenseService",
    "StaticIdentity",
    "UnauthenticatedError",
    "authenticated_as",
]
