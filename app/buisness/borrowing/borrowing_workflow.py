"""
Borrowing Workflow
Business logic for the lifecycle of a borrow request.

pending -> approved    units reserved (reserve_for_borrow)
pending -> rejected    nothing reserved yet
approved -> released   handed over, no quantity change
approved -> rejected   reservation released
approved/released/overdue -> returned   reservation released
released -> overdue    intended return date passed
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import update

from app import db
from app.buisness.core.status_claim import claim_status
from app.buisness.core.unit_of_work import ledger_transaction
from app.buisness.inventory.borrowing_eligibility import BorrowingEligibilityEvaluator
from app.buisness.inventory.ledger_errors import (
    BorrowingNotAllowed,
    InsufficientAvailability,
    InvalidStatusTransition,
    RecordNotFound,
)
from app.buisness.inventory.quantity_record import require_quantity
from app.buisness.inventory.status.status_validator import LedgerStatusValidator
from app.buisness.inventory.stock_allocation_engine import StockAllocationEngine
from app.data.borrowing.borrowing_record import BorrowingRecord
from app.utils.logger import get_logger

logger = get_logger("lab_ledger.borrowing.workflow")

# Statuses whose units sit in the item's borrowed bucket
HOLDING_STATUSES = frozenset({'approved', 'released', 'overdue'})


class BorrowingWorkflow:
    """
    Applies borrow request transitions and their ledger effects.

    Each transition claims the request's current status with a conditioned
    UPDATE, then moves units through the engine inside the same transaction.
    """

    ENTITY = "borrowing"

    def __init__(self, performed_by: Optional[str] = None, engine: Optional[StockAllocationEngine] = None):
        self.performed_by = performed_by
        self.engine = engine or StockAllocationEngine(performed_by=performed_by)

    def get_record(self, borrowing_id: int) -> BorrowingRecord:
        record = db.session.get(BorrowingRecord, borrowing_id)
        if record is None:
            raise RecordNotFound("Borrowing record", borrowing_id)
        return record

    def request(
        self,
        item_id: int,
        borrower_name: str,
        quantity: int = 1,
        *,
        purpose: Optional[str] = None,
        intended_borrow_date: Optional[datetime] = None,
        intended_return_date: Optional[datetime] = None,
    ) -> BorrowingRecord:
        """
        File a pending request.

        Eligibility is checked here for early feedback only; approval re-checks it
        on a fresh read before any unit moves.
        """
        require_quantity(quantity, "Borrow quantity")
        if not borrower_name or not borrower_name.strip():
            raise ValueError("borrower_name is required")
        if intended_borrow_date and intended_return_date and intended_return_date < intended_borrow_date:
            raise ValueError("intended_return_date cannot be before intended_borrow_date")

        snapshot = self.engine.get_record(item_id)
        reason = BorrowingEligibilityEvaluator.blocking_reason(snapshot)
        if reason is not None:
            raise BorrowingNotAllowed(item_id, reason)
        if quantity > snapshot.available:
            raise InsufficientAvailability(item_id, quantity, snapshot.available, "borrowing")

        with ledger_transaction():
            record = BorrowingRecord(
                item_id=item_id,
                borrower_name=borrower_name.strip(),
                quantity=quantity,
                status='pending',
                purpose=purpose,
                intended_borrow_date=intended_borrow_date,
                intended_return_date=intended_return_date,
                created_by=self.performed_by,
                updated_by=self.performed_by,
            )
            db.session.add(record)
            db.session.flush()
            borrowing_id = record.id

        logger.info(f"Borrow request {borrowing_id}: {borrower_name} asks for {quantity} of item {item_id}")
        return self.get_record(borrowing_id)

    def approve(self, borrowing_id: int, remarks: Optional[str] = None) -> BorrowingRecord:
        return self._transition(borrowing_id, 'approved', remarks=remarks)

    def reject(self, borrowing_id: int, remarks: Optional[str] = None) -> BorrowingRecord:
        return self._transition(borrowing_id, 'rejected', remarks=remarks)

    def release(self, borrowing_id: int, remarks: Optional[str] = None) -> BorrowingRecord:
        return self._transition(borrowing_id, 'released', remarks=remarks)

    def mark_returned(self, borrowing_id: int, remarks: Optional[str] = None,
                      returned_at: Optional[datetime] = None) -> BorrowingRecord:
        return self._transition(borrowing_id, 'returned', remarks=remarks, returned_at=returned_at)

    def mark_overdue(self, borrowing_id: int, remarks: Optional[str] = None) -> BorrowingRecord:
        return self._transition(borrowing_id, 'overdue', remarks=remarks)

    def update_status(self, borrowing_id: int, new_status: str, remarks: Optional[str] = None) -> BorrowingRecord:
        if not LedgerStatusValidator.is_known(self.ENTITY, new_status):
            current = self.get_record(borrowing_id).status
            raise InvalidStatusTransition("borrowing", borrowing_id, current, new_status, "unknown status")
        return self._transition(borrowing_id, new_status, remarks=remarks)

    def refresh_overdue(self, now: Optional[datetime] = None) -> int:
        """Persist overdue on released requests past their intended return date."""
        now = now or datetime.utcnow()
        values = {'status': 'overdue', 'updated_at': datetime.utcnow()}
        if self.performed_by:
            values['updated_by'] = self.performed_by

        with ledger_transaction():
            result = db.session.execute(
                update(BorrowingRecord)
                .where(
                    BorrowingRecord.status == 'released',
                    BorrowingRecord.intended_return_date.isnot(None),
                    BorrowingRecord.intended_return_date < now,
                )
                .values(**values)
                .execution_options(synchronize_session=False)
            )
        db.session.expire_all()

        if result.rowcount:
            logger.info(f"Marked {result.rowcount} borrowing(s) overdue")
        return result.rowcount

    def _transition(self, borrowing_id: int, new_status: str, remarks: Optional[str] = None,
                    returned_at: Optional[datetime] = None) -> BorrowingRecord:
        record = self.get_record(borrowing_id)
        current = record.status
        item_id = record.item_id
        quantity = record.quantity or 1

        values = {}
        if remarks is not None:
            values['admin_remarks'] = remarks
        if new_status == 'returned':
            values['actual_return_date'] = returned_at or datetime.utcnow()

        reference = ("borrowing", borrowing_id)
        with ledger_transaction():
            claim_status(BorrowingRecord, self.ENTITY, borrowing_id, current, new_status,
                         performed_by=self.performed_by, **values)
            if new_status == 'approved':
                self.engine.reserve_for_borrow(item_id, quantity, reference=reference)
            elif new_status in ('rejected', 'returned') and current in HOLDING_STATUSES:
                self.engine.release_from_borrow(item_id, quantity, reference=reference)

        logger.info(f"Borrowing {borrowing_id}: {current} -> {new_status}")
        return self.get_record(borrowing_id)
