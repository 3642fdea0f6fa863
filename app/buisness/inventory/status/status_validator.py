from __future__ import annotations


class LedgerStatusValidator:
    """
    Centralized status transition validator for the records that justify ledger movements.

    String status codes, one transition table per entity type.
    """

    MAINTENANCE_TASK = {"Scheduled", "In Progress", "Completed", "Overdue", "Cancelled"}
    DISPOSAL = {"Pending", "Completed", "Cancelled"}
    BORROWING = {"pending", "approved", "rejected", "released", "returned", "overdue"}

    _STATUSES = {
        "maintenance_task": MAINTENANCE_TASK,
        "disposal": DISPOSAL,
        "borrowing": BORROWING,
    }

    _NEXT = {
        ("maintenance_task", "Scheduled"): {"In Progress", "Overdue", "Completed", "Cancelled"},
        ("maintenance_task", "In Progress"): {"Overdue", "Completed", "Cancelled"},
        ("maintenance_task", "Overdue"): {"In Progress", "Completed", "Cancelled"},
        ("maintenance_task", "Completed"): set(),
        ("maintenance_task", "Cancelled"): set(),
        ("disposal", "Pending"): {"Completed", "Cancelled"},
        ("disposal", "Completed"): set(),
        ("disposal", "Cancelled"): set(),
        ("borrowing", "pending"): {"approved", "rejected"},
        ("borrowing", "approved"): {"released", "rejected", "returned"},
        ("borrowing", "released"): {"returned", "overdue"},
        ("borrowing", "overdue"): {"returned"},
        ("borrowing", "rejected"): set(),
        ("borrowing", "returned"): set(),
    }

    @classmethod
    def is_known(cls, entity_type: str, status: str) -> bool:
        return status in cls._STATUSES.get(entity_type, set())

    @classmethod
    def can_transition(cls, entity_type: str, current_status: str, new_status: str) -> bool:
        if not cls.is_known(entity_type, new_status):
            return False
        allowed = cls._NEXT.get((entity_type, current_status))
        if allowed is None:
            return False
        return new_status in allowed

    @classmethod
    def is_terminal(cls, entity_type: str, status: str) -> bool:
        return cls._NEXT.get((entity_type, status)) == set()
