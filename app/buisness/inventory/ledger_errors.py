"""
Typed failures raised by the quantity ledger.

All of them derive from ValueError so request handlers can keep treating a
rejected ledger action as a client error.
"""


class LedgerError(ValueError):
    """Base class for every rejected ledger operation."""


class InvalidQuantity(LedgerError):
    def __init__(self, message, value=None):
        super().__init__(message)
        self.value = value


class InsufficientAvailability(LedgerError):
    def __init__(self, item_id, requested, available, purpose=None):
        action = f" for {purpose}" if purpose else ""
        super().__init__(
            f"Not enough available quantity{action} on item {item_id}. "
            f"Available: {available}, Requested: {requested}"
        )
        self.item_id = item_id
        self.requested = requested
        self.available = available


class CategoryNotDisposable(LedgerError):
    def __init__(self, category):
        super().__init__(
            f"Items in category '{category}' cannot be disposed through this workflow. "
            "Only Consumables and Liquids are disposable."
        )
        self.category = category


class ConcurrentModification(LedgerError):
    def __init__(self, item_id, attempts):
        super().__init__(
            f"Item {item_id} was modified concurrently; gave up after {attempts} attempts. "
            "Reload and try again."
        )
        self.item_id = item_id
        self.attempts = attempts


class InvariantViolation(LedgerError):
    def __init__(self, message, item_id=None):
        super().__init__(message)
        self.item_id = item_id


class RecordNotFound(LedgerError):
    def __init__(self, entity, entity_id):
        super().__init__(f"{entity} {entity_id} not found")
        self.entity = entity
        self.entity_id = entity_id


class InvalidStatusTransition(LedgerError):
    def __init__(self, entity, entity_id, from_status, to_status, detail=None):
        message = f"Invalid status transition for {entity} {entity_id}: {from_status} -> {to_status}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)
        self.from_status = from_status
        self.to_status = to_status


class BorrowingNotAllowed(LedgerError):
    def __init__(self, item_id, reason):
        super().__init__(f"Item {item_id} cannot be borrowed: {reason}")
        self.item_id = item_id
        self.reason = reason
