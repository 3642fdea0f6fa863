from __future__ import annotations

from datetime import datetime
from typing import Optional

from app import db
from app.buisness.core.status_claim import claim_status
from app.buisness.core.unit_of_work import ledger_transaction
from app.buisness.inventory.disposal_gate import DisposalGate
from app.buisness.inventory.ledger_errors import InsufficientAvailability, RecordNotFound
from app.buisness.inventory.quantity_record import require_quantity
from app.buisness.inventory.stock_allocation_engine import StockAllocationEngine
from app.data.inventory.disposal_transaction import DISPOSAL_METHODS, DisposalTransaction
from app.utils.logger import get_logger

logger = get_logger("lab_ledger.inventory.disposal")

PENDING = "Pending"
COMPLETED = "Completed"
CANCELLED = "Cancelled"


class DisposalManager:
    """
    Disposal transactions for consumable/perishable items.

    A request is recorded as Pending without touching quantities. Completing it
    removes the units through the engine, which re-checks the category and the
    available quantity on a fresh read. Completed disposals are final.
    """

    def __init__(self, performed_by: str | None = None, engine: StockAllocationEngine | None = None):
        self.performed_by = performed_by
        self.engine = engine or StockAllocationEngine(performed_by=performed_by)

    def get_transaction(self, transaction_id: int) -> DisposalTransaction:
        transaction = db.session.get(DisposalTransaction, transaction_id)
        if transaction is None:
            raise RecordNotFound("Disposal transaction", transaction_id)
        return transaction

    def request_disposal(
        self,
        item_id: int,
        quantity: int,
        reason: str,
        *,
        category=None,
        disposal_method: str = 'Other',
        description: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> DisposalTransaction:
        with ledger_transaction():
            transaction_id = self._create_pending(
                item_id, quantity, reason, category, disposal_method, description, notes)
        logger.info(f"Disposal {transaction_id} requested for item {item_id}: {quantity} units ({reason})")
        return self.get_transaction(transaction_id)

    def complete_disposal(self, transaction_id: int) -> DisposalTransaction:
        with ledger_transaction():
            self._complete(transaction_id)
        logger.info(f"Disposal {transaction_id} completed")
        return self.get_transaction(transaction_id)

    def cancel_disposal(self, transaction_id: int, notes: Optional[str] = None) -> DisposalTransaction:
        transaction = self.get_transaction(transaction_id)
        values = {'notes': notes} if notes is not None else {}
        with ledger_transaction():
            claim_status(DisposalTransaction, "disposal", transaction_id, transaction.status, CANCELLED,
                         performed_by=self.performed_by, **values)
        logger.info(f"Disposal {transaction_id} cancelled")
        return self.get_transaction(transaction_id)

    def dispose_now(
        self,
        item_id: int,
        quantity: int,
        reason: str,
        *,
        category=None,
        disposal_method: str = 'Other',
        description: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> DisposalTransaction:
        """Request and complete a disposal in a single transaction."""
        with ledger_transaction():
            transaction_id = self._create_pending(
                item_id, quantity, reason, category, disposal_method, description, notes)
            self._complete(transaction_id)
        logger.info(f"Disposed {quantity} units of item {item_id} (disposal {transaction_id})")
        return self.get_transaction(transaction_id)

    def _create_pending(self, item_id, quantity, reason, category, disposal_method, description, notes) -> int:
        if category is not None:
            DisposalGate.check(category)
        require_quantity(quantity, "Disposal quantity")
        if not reason or not str(reason).strip():
            raise ValueError("A disposal reason is required")
        if disposal_method not in DISPOSAL_METHODS:
            raise ValueError(f"Invalid disposal method: {disposal_method!r}")

        record = self.engine.get_record(item_id)
        DisposalGate.check(record.category)
        if quantity > record.available:
            raise InsufficientAvailability(item_id, quantity, record.available, "disposal")

        transaction = DisposalTransaction(
            item_id=item_id,
            disposal_quantity=quantity,
            reason=str(reason).strip(),
            description=description,
            disposal_method=disposal_method,
            disposed_by=self.performed_by,
            status=PENDING,
            notes=notes,
            created_by=self.performed_by,
            updated_by=self.performed_by,
        )
        db.session.add(transaction)
        db.session.flush()
        return transaction.id

    def _complete(self, transaction_id: int) -> None:
        transaction = self.get_transaction(transaction_id)
        item_id = transaction.item_id
        quantity = transaction.disposal_quantity
        status = transaction.status

        values = {'disposal_date': datetime.utcnow()}
        if self.performed_by:
            values['disposed_by'] = self.performed_by
        claim_status(DisposalTransaction, "disposal", transaction_id, status, COMPLETED,
                     performed_by=self.performed_by, **values)
        self.engine.dispose_units(item_id, quantity, reference=("disposal", transaction_id))
