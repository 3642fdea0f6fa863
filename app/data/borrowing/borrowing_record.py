from datetime import datetime

from app import db
from app.data.core.ledger_record_base import LedgerRecordBase

BORROWING_STATUSES = ('pending', 'approved', 'rejected', 'released', 'returned', 'overdue')
ACTIVE_BORROWING_STATUSES = frozenset({'pending', 'approved', 'released'})


class BorrowingRecord(LedgerRecordBase):
    """
    A borrow request for units of one inventory item.

    Units move into the item's borrowed bucket when the request is approved and
    back to available on return or on rejection of an approved request.
    """
    __tablename__ = 'borrowing_records'

    item_id = db.Column(db.Integer, db.ForeignKey('inventory_items.id'), nullable=False, index=True)
    borrower_name = db.Column(db.String(100), nullable=False)
    quantity = db.Column(db.Integer, nullable=False, default=1)
    status = db.Column(db.String(20), nullable=False, default='pending', index=True)
    purpose = db.Column(db.Text, nullable=True)

    intended_borrow_date = db.Column(db.DateTime, nullable=True)
    intended_return_date = db.Column(db.DateTime, nullable=True)
    actual_return_date = db.Column(db.DateTime, nullable=True)
    admin_remarks = db.Column(db.Text, nullable=True)

    __table_args__ = (
        db.CheckConstraint('quantity >= 1', name='ck_borrowing_quantity_positive'),
    )

    item = db.relationship('InventoryItem', back_populates='borrowing_records')

    def __repr__(self):
        return f'<BorrowingRecord {self.id}: Item {self.item_id} x{self.quantity} {self.status}>'

    def is_active(self, now=None):
        """Currently borrowed: an open status and the intended return date not yet passed."""
        if self.status not in ACTIVE_BORROWING_STATUSES:
            return False
        if self.intended_return_date is None:
            return True
        return self.intended_return_date >= (now or datetime.utcnow())
