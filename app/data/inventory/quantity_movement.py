from app import db
from app.data.core.ledger_record_base import LedgerRecordBase
from datetime import datetime


class QuantityMovement(LedgerRecordBase):
    """
    Append-only audit trail for every change to an item's quantity buckets.

    Conventions:
    - `quantity_delta` is the number of units moved (always > 0 for bucket moves);
      total adjustments record the signed change to `quantity`.
    - `from_bucket` / `to_bucket` name the buckets involved: available, borrowed,
      maintenance, disposal, or None for units entering/leaving the in-service total.
    - `version_after` is the item version written by the movement.
    """
    __tablename__ = 'quantity_movements'

    item_id = db.Column(db.Integer, db.ForeignKey('inventory_items.id'), nullable=False, index=True)

    # Movement Details
    movement_type = db.Column(db.String(30), nullable=False)
    quantity_delta = db.Column(db.Integer, nullable=False)
    from_bucket = db.Column(db.String(20), nullable=True)
    to_bucket = db.Column(db.String(20), nullable=True)
    movement_date = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    version_after = db.Column(db.Integer, nullable=False)

    # Reference Fields
    reference_type = db.Column(db.String(50), nullable=True)
    reference_id = db.Column(db.Integer, nullable=True)

    notes = db.Column(db.Text, nullable=True)

    item = db.relationship('InventoryItem', back_populates='movements')

    def __repr__(self):
        return f'<QuantityMovement {self.movement_type}: Item {self.item_id}, {self.from_bucket}->{self.to_bucket} x{self.quantity_delta}>'
