from app import db
from app.data.core.ledger_record_base import LedgerRecordBase
from datetime import datetime

DISPOSAL_METHODS = ('Recycle', 'Landfill', 'Incineration', 'Hazardous Waste', 'Donation', 'Other')


class DisposalTransaction(LedgerRecordBase):
    """
    A request to permanently remove units of a disposal-eligible item.

    Status: Pending -> Completed | Cancelled. Only completion moves quantities.
    """
    __tablename__ = 'disposal_transactions'

    item_id = db.Column(db.Integer, db.ForeignKey('inventory_items.id'), nullable=False, index=True)
    disposal_quantity = db.Column(db.Integer, nullable=False)
    reason = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    disposal_method = db.Column(db.String(30), nullable=False, default='Other')
    disposed_by = db.Column(db.String(100), nullable=True)
    disposal_date = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    status = db.Column(db.String(20), nullable=False, default='Pending', index=True)
    notes = db.Column(db.Text, nullable=True)

    __table_args__ = (
        db.CheckConstraint('disposal_quantity >= 1', name='ck_disposal_quantity_positive'),
    )

    item = db.relationship('InventoryItem', back_populates='disposal_transactions')

    def __repr__(self):
        return f'<DisposalTransaction {self.id}: Item {self.item_id} x{self.disposal_quantity} {self.status}>'
