"""Structured event logging."""

from family_budget.events.logger import EventLogger, configure_logging

__all__ = ["EventLogger", "configure_logging"]
