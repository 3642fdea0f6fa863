from sqlalchemy.orm import validates

from app import db
from app.data.core.ledger_record_base import LedgerRecordBase
from app.data.inventory.item_vocabulary import (
    CALIBRATION_STATES,
    CONDITIONS,
    ITEM_STATUSES,
    MAINTENANCE_NEEDS,
    ItemCategory,
)


class InventoryItem(LedgerRecordBase):
    """
    One inventory item and its quantity breakdown.

    The row is the single source of truth for the aggregate quantities. Quantity
    columns are only written by the StockAllocationEngine, always through a single
    UPDATE conditioned on `version`.
    """
    __tablename__ = 'inventory_items'

    item_code = db.Column(db.String(50), unique=True, nullable=False)
    name = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=True)
    room_assigned = db.Column(db.String(100), nullable=True)

    # Categorical state
    category = db.Column(db.String(50), nullable=False, default=ItemCategory.EQUIPMENT.value)
    condition = db.Column(db.String(30), nullable=False, default='Good')
    maintenance_needs = db.Column(db.String(20), nullable=False, default='No')
    calibration = db.Column(db.String(20), nullable=False, default='No')
    status = db.Column(db.String(20), nullable=False, default='Active')
    can_be_borrowed = db.Column(db.Boolean, nullable=False, default=True)

    # Quantities
    quantity = db.Column(db.Integer, nullable=False, default=1)
    available_quantity = db.Column(db.Integer, nullable=False, default=1)
    borrowed_quantity = db.Column(db.Integer, nullable=False, default=0)
    maintenance_quantity = db.Column(db.Integer, nullable=False, default=0)
    disposal_quantity = db.Column(db.Integer, nullable=False, default=0)

    # Optimistic concurrency token
    version = db.Column(db.Integer, nullable=False, default=1)

    __table_args__ = (
        db.CheckConstraint('available_quantity >= 0', name='ck_item_available_non_negative'),
        db.CheckConstraint('borrowed_quantity >= 0', name='ck_item_borrowed_non_negative'),
        db.CheckConstraint('maintenance_quantity >= 0', name='ck_item_maintenance_non_negative'),
        db.CheckConstraint('disposal_quantity >= 0', name='ck_item_disposal_non_negative'),
        db.CheckConstraint(
            'available_quantity + borrowed_quantity + maintenance_quantity = quantity',
            name='ck_item_quantity_conservation',
        ),
    )

    maintenance_tasks = db.relationship('MaintenanceTask', back_populates='item', lazy='dynamic')
    disposal_transactions = db.relationship('DisposalTransaction', back_populates='item', lazy='dynamic')
    borrowing_records = db.relationship('BorrowingRecord', back_populates='item', lazy='dynamic')
    movements = db.relationship('QuantityMovement', back_populates='item', lazy='dynamic')

    def __repr__(self):
        return (f'<InventoryItem {self.item_code}: qty={self.quantity} avail={self.available_quantity} '
                f'borrowed={self.borrowed_quantity} maint={self.maintenance_quantity} '
                f'disposed={self.disposal_quantity}>')

    @validates('category')
    def _validate_category(self, key, value):
        return ItemCategory.parse(value).value

    @validates('condition')
    def _validate_condition(self, key, value):
        return _one_of(key, value, CONDITIONS)

    @validates('maintenance_needs')
    def _validate_maintenance_needs(self, key, value):
        return _one_of(key, value, MAINTENANCE_NEEDS)

    @validates('calibration')
    def _validate_calibration(self, key, value):
        return _one_of(key, value, CALIBRATION_STATES)

    @validates('status')
    def _validate_status(self, key, value):
        return _one_of(key, value, ITEM_STATUSES)

    @property
    def lifetime_quantity(self):
        """Units ever held: in-service total plus everything disposed."""
        return (self.quantity or 0) + (self.disposal_quantity or 0)

    # NOTE: availability and borrowing rules live in the business layer
    # (buisness/inventory); this model only stores state.

    def _computed_fields(self):
        return {'lifetime_quantity': self.lifetime_quantity}


def _one_of(key, value, allowed):
    if value not in allowed:
        raise ValueError(f"Invalid {key}: {value!r}. Expected one of: {', '.join(allowed)}")
    return value
