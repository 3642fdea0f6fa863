"""
Maintenance task state machine.

Scheduled -> In Progress -> Completed, with Overdue derived from the due date
while the task is open and Cancelled as an admin-triggered terminal state.
Completed is reached only by quantity reconciliation.
"""

from __future__ import annotations

from datetime import datetime

SCHEDULED = "Scheduled"
IN_PROGRESS = "In Progress"
COMPLETED = "Completed"
OVERDUE = "Overdue"
CANCELLED = "Cancelled"

OPEN_STATUSES = frozenset({SCHEDULED, IN_PROGRESS, OVERDUE})
TERMINAL_STATUSES = frozenset({COMPLETED, CANCELLED})


def status_after_progress(current: str, maintained_quantity: int, quantity: int) -> str:
    if maintained_quantity == quantity:
        return COMPLETED
    if maintained_quantity > 0 and current == SCHEDULED:
        return IN_PROGRESS
    return current


def effective_status(status: str, due_date: datetime | None, now: datetime | None = None) -> str:
    if status in OPEN_STATUSES and due_date is not None and due_date < (now or datetime.utcnow()):
        return OVERDUE
    return status
