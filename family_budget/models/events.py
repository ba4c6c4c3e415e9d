"""
Service Event Models for Family Budget Tracker

Every expense operation emits one structured log line on success
and one on failure. These models give those lines a fixed shape.

DESIGN DECISION: Events are logged, never stored. They describe
what the service did, not the history of an expense.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field


class ServiceEventType(str, Enum):
    """Types of events the expense service emits."""
    # Mutations
    EXPENSE_ADDED = "expense_added"
    EXPENSE_UPDATED = "expense_updated"
    EXPENSE_DELETED = "expense_deleted"
    UPDATE_TARGET_MISSING = "update_target_missing"
    DELETE_TARGET_MISSING = "delete_target_missing"

    # Reads
    QUERY_EXECUTED = "query_executed"

    # Demo data
    DEMO_DATA_SEEDED = "demo_data_seeded"
    DEMO_DATA_PRESENT = "demo_data_present"

    # Failures
    UNAUTHENTICATED_ACCESS = "unauthenticated_access"
    STORE_FAILURE = "store_failure"


class EventSeverity(str, Enum):
    """Severity level for service events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class ServiceEvent(BaseModel):
    """A single structured log event."""

    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC)"
    )
    event_type: ServiceEventType
    severity: EventSeverity = EventSeverity.INFO

    # Context
    operation: str = Field(
        ...,
        description="Service operation that emitted the event (e.g. 'add_expense')"
    )
    user_id: Optional[str] = None
    expense_id: Optional[int] = None

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(default_factory=dict)

    # Error information (if applicable)
    error_type: Optional[str] = None
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """Convert to keyword arguments for a structured log call."""
        return {
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "operation": self.operation,
            "user_id": self.user_id,
            "expense_id": self.expense_id,
            "description": self.description,
            "details": self.details,
            "error_type": self.error_type,
            "error_message": self.error_message,
        }


class ServiceEventBuilder:
    """
    Helper class to build service events with common patterns.

    Usage:
        event = ServiceEventBuilder.expense_added(expense_id=7, user_id="u1")
        await event_logger.log(event)
    """

    @staticmethod
    def expense_added(expense_id: Optional[int], user_id: str) -> ServiceEvent:
        return ServiceEvent(
            event_type=ServiceEventType.EXPENSE_ADDED,
            operation="add_expense",
            user_id=user_id,
            expense_id=expense_id,
            description=f"Added expense {expense_id} for user {user_id}",
        )

    @staticmethod
    def expense_updated(expense_id: Optional[int], user_id: str) -> ServiceEvent:
        return ServiceEvent(
            event_type=ServiceEventType.EXPENSE_UPDATED,
            operation="update_expense",
            user_id=user_id,
            expense_id=expense_id,
            description=f"Updated expense {expense_id} for user {user_id}",
        )

    @staticmethod
    def expense_deleted(expense_id: int, user_id: str) -> ServiceEvent:
        return ServiceEvent(
            event_type=ServiceEventType.EXPENSE_DELETED,
            operation="delete_expense",
            user_id=user_id,
            expense_id=expense_id,
            description=f"Deleted expense {expense_id} for user {user_id}",
        )

    @staticmethod
    def update_target_missing(expense_id: Optional[int], user_id: str) -> ServiceEvent:
        return ServiceEvent(
            event_type=ServiceEventType.UPDATE_TARGET_MISSING,
            severity=EventSeverity.WARNING,
            operation="update_expense",
            user_id=user_id,
            expense_id=expense_id,
            description=f"No expense {expense_id} found for user {user_id} while updating",
        )

    @staticmethod
    def delete_target_missing(expense_id: int, user_id: str) -> ServiceEvent:
        return ServiceEvent(
            event_type=ServiceEventType.DELETE_TARGET_MISSING,
            severity=EventSeverity.WARNING,
            operation="delete_expense",
            user_id=user_id,
            expense_id=expense_id,
            description=f"No expense {expense_id} found for user {user_id} while deleting",
        )

    @staticmethod
    def query_executed(
        operation: str,
        user_id: str,
        result_count: int,
        filters: Optional[dict] = None,
        expense_id: Optional[int] = None,
    ) -> ServiceEvent:
        return ServiceEvent(
            event_type=ServiceEventType.QUERY_EXECUTED,
            severity=EventSeverity.DEBUG,
            operation=operation,
            user_id=user_id,
            expense_id=expense_id,
            description=f"{operation} returned {result_count} result(s)",
            details={"result_count": result_count, "filters": filters or {}},
        )

    @staticmethod
    def demo_data_seeded(user_id: str, count: int) -> ServiceEvent:
        return ServiceEvent(
            event_type=ServiceEventType.DEMO_DATA_SEEDED,
            operation="seed_demo_expenses",
            user_id=user_id,
            description=f"Seeded {count} demo expenses for user {user_id}",
            details={"count": count},
        )

    @staticmethod
    def demo_data_present(user_id: str) -> ServiceEvent:
        return ServiceEvent(
            event_type=ServiceEventType.DEMO_DATA_PRESENT,
            operation="seed_demo_expenses",
            user_id=user_id,
            description=f"Demo expenses already present for user {user_id}",
        )

    @staticmethod
    def unauthenticated_access(operation: str) -> ServiceEvent:
        return ServiceEvent(
            event_type=ServiceEventType.UNAUTHENTICATED_ACCESS,
            severity=EventSeverity.WARNING,
            operation=operation,
            description="No authenticated user found in request context",
        )

    @staticmethod
    def store_failure(
        operation: str,
        error: BaseException,
        user_id: Optional[str] = None,
        expense_id: Optional[int] = None,
        details: Optional[dict] = None,
    ) -> ServiceEvent:
        return ServiceEvent(
            event_type=ServiceEventType.STORE_FAILURE,
            severity=EventSeverity.ERROR,
            operation=operation,
            user_id=user_id,
            expense_id=expense_id,
            description=f"Error during {operation} for user {user_id}",
            details=details or {},
            error_type=type(error).__name__,
            error_message=str(error),
        )
