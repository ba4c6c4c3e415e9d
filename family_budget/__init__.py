"""
Family Budget Tracker - Core Package

Expense persistence and reporting for households.
Every expense belongs to exactly one user, and every read or write
is scoped by that user.

DESIGN PRINCIPLES:
1. The core takes explicit user ids; sessions are an adapter
2. Storage is swappable behind composable criteria
3. Store failures are logged and surfaced, never swallowed
"""

__version__ = "1.0.0"
__author__ = "Family Budget Tracker Team"
