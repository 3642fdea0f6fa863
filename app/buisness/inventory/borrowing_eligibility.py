from __future__ import annotations

from dataclasses import dataclass

from app.buisness.inventory.quantity_record import QuantityRecord
from app.data.inventory.item_vocabulary import BORROWABLE_CONDITIONS, ITEM_STATUS_ACTIVE


@dataclass(frozen=True)
class BorrowingEligibility:
    can_borrow: bool
    reason: str
    borrowing_available_quantity: int
    restricted: bool = False

    def to_dict(self):
        return {
            'can_borrow': self.can_borrow,
            'reason': self.reason,
            'borrowing_available_quantity': self.borrowing_available_quantity,
            'borrowing_restricted': self.restricted,
        }


class BorrowingEligibilityEvaluator:
    """
    Read-only borrowing predicate.

    An item is borrowable when all hold: canBeBorrowed is not switched off, the
    condition is Excellent/Good/Fair, maintenanceNeeds is "No", status is
    Active, and enough units are available. Badge rendering may call this on a
    cached snapshot; the engine always re-evaluates on a fresh read.
    """

    @staticmethod
    def blocking_reason(record: QuantityRecord) -> str | None:
        """First non-quantity reason the item cannot be lent, or None."""
        if record.can_be_borrowed is False:
            return 'This equipment is not available for borrowing'
        if record.condition == 'Under Maintenance' or record.condition not in BORROWABLE_CONDITIONS:
            return f'Equipment condition: {record.condition}'
        if record.maintenance_needs != 'No':
            return f'Maintenance: {record.maintenance_needs}'
        if record.status != ITEM_STATUS_ACTIVE:
            return f'Status: {record.status}'
        return None

    @classmethod
    def evaluate(cls, record: QuantityRecord, requested_quantity: int = 1) -> BorrowingEligibility:
        reason = cls.blocking_reason(record)
        if reason is not None:
            return BorrowingEligibility(
                can_borrow=False,
                reason=reason,
                borrowing_available_quantity=0,
                restricted=record.can_be_borrowed is False,
            )

        available = max(0, record.available)
        if available <= 0:
            return BorrowingEligibility(False, 'No units currently available', 0)
        if available < requested_quantity:
            return BorrowingEligibility(False, f'Only {available} units available for borrowing', available)
        return BorrowingEligibility(True, 'Available for borrowing', available)

    @classmethod
    def is_borrowable(cls, record: QuantityRecord, requested_quantity: int = 1) -> bool:
        return cls.evaluate(record, requested_quantity).can_borrow
