"""
Event Logger

Every expense operation logs one structured line when it succeeds
and one when it fails. The logger:
- Is async so the service awaits it the same way on every path
- Gracefully handles failures (a broken log sink never changes
  the outcome of an expense operation)
"""

import logging
import sys
from typing import Any, Optional

import structlog

from family_budget.models.events import (
    EventSeverity,
    ServiceEvent,
    ServiceEventBuilder,
)


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(level: str = "INFO") -> None:
    """Route structlog's JSON lines to stderr at the given stdlib level."""
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, level.upper(), logging.INFO),
    )


class EventLogger:
    """
    Structured logging sink for the expense service.

    Fire-and-forget: log() never raises.
    """

    def __init__(self, logger: Optional[Any] = None):
        """
        Initialize event logger.

        Args:
            logger: A structlog-style logger (info/warning/error/debug).
                    If None, a stdlib-backed structlog logger is used.
        """
        self._logger = logger or structlog.get_logger("family_budget")

    async def log(self, event: ServiceEvent) -> bool:
        """
        Log a service event.

        Returns True if the sink accepted the event.
        """
        try:
            log_dict = event.to_log_dict()

            if event.severity == EventSeverity.ERROR:
                self._logger.error("service_event", **log_dict)
            elif event.severity == EventSeverity.WARNING:
                self._logger.warning("service_event", **log_dict)
            elif event.severity == EventSeverity.DEBUG:
                self._logger.debug("service_event", **log_dict)
            else:
                self._logger.info("service_event", **log_dict)
            return True
        except Exception:
            # Logging must never affect the operation outcome
            return False

    async def _log_built(self, build, **kwargs) -> bool:
        try:
            event = build(**kwargs)
        except Exception:
            return False
        return await self.log(event)

    async def log_expense_added(self, expense_id: Optional[int], user_id: str) -> None:
        await self._log_built(
            ServiceEventBuilder.expense_added, expense_id=expense_id, user_id=user_id
        )

    async def log_expense_updated(self, expense_id: Optional[int], user_id: str) -> None:
        await self._log_built(
            ServiceEventBuilder.expense_updated, expense_id=expense_id, user_id=user_id
        )

    async def log_expense_deleted(self, expense_id: int, user_id: str) -> None:
        await self._log_built(
            ServiceEventBuilder.expense_deleted, expense_id=expense_id, user_id=user_id
        )

    async def log_update_target_missing(
        self,
        expense_id: Optional[int],
        user_id: str,
    ) -> None:
        await self._log_built(
            ServiceEventBuilder.update_target_missing,
            expense_id=expense_id,
            user_id=user_id,
        )

    async def log_delete_target_missing(self, expense_id: int, user_id: str) -> None:
        await self._log_built(
            ServiceEventBuilder.delete_target_missing,
            expense_id=expense_id,
            user_id=user_id,
        )

    async def log_query_executed(
        self,
        operation: str,
        user_id: str,
        result_count: int,
        filters: Optional[dict] = None,
        expense_id: Optional[int] = None,
    ) -> None:
        """Log a read (list, lookup or report)."""
        await self._log_built(
            ServiceEventBuilder.query_executed,
            operation=operation,
            user_id=user_id,
            result_count=result_count,
            filters=filters,
            expense_id=expense_id,
        )

    async def log_demo_data_seeded(self, user_id: str, count: int) -> None:
        await self._log_built(
            ServiceEventBuilder.demo_data_seeded, user_id=user_id, count=count
        )

    async def log_demo_data_present(self, user_id: str) -> None:
        await self._log_built(ServiceEventBuilder.demo_data_present, user_id=user_id)

    async def log_unauthenticated(self, operation: str) -> None:
        await self._log_built(
            ServiceEventBuilder.unauthenticated_access, operation=operation
        )

    async def log_store_failure(
        self,
        operation: str,
        error: BaseException,
        user_id: Optional[str] = None,
        expense_id: Optional[int] = None,
        details: Optional[dict] = None,
    ) -> None:
        """Log a persistence failure with its operation context."""
        await self._log_built(
            ServiceEventBuilder.store_failure,
            operation=operation,
            error=error,
            user_id=user_id,
            expense_id=expense_id,
            details=details,
        )
