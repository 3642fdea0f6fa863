import math
from datetime import datetime

from app import db
from app.data.core.ledger_record_base import LedgerRecordBase

MAINTENANCE_TYPES = ('Maintenance', 'Calibration', 'Repair')
MAINTENANCE_PRIORITIES = ('Low', 'Medium', 'High', 'Critical')


class MaintenanceTask(LedgerRecordBase):
    """
    Maintenance work against a reserved sub-quantity of one inventory item.

    `maintained_quantity` only grows; every increase returns the same number of
    units from the item's maintenance bucket to its available bucket. Status is
    driven by those quantities (see buisness/maintenance/maintenance_status.py).
    """
    __tablename__ = 'maintenance_tasks'

    item_id = db.Column(db.Integer, db.ForeignKey('inventory_items.id'), nullable=False, index=True)

    maintenance_type = db.Column(db.String(20), nullable=False, default='Maintenance')
    priority = db.Column(db.String(20), nullable=False, default='Medium')

    # Quantities
    quantity = db.Column(db.Integer, nullable=False)
    maintained_quantity = db.Column(db.Integer, nullable=False, default=0)

    status = db.Column(db.String(20), nullable=False, default='Scheduled', index=True)

    # Schedule
    scheduled_date = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    due_date = db.Column(db.DateTime, nullable=False, index=True)
    completed_date = db.Column(db.DateTime, nullable=True)

    assigned_to_name = db.Column(db.String(100), nullable=True)
    description = db.Column(db.Text, nullable=True)
    notes = db.Column(db.Text, nullable=True)

    __table_args__ = (
        db.CheckConstraint('quantity >= 1', name='ck_task_quantity_positive'),
        db.CheckConstraint('maintained_quantity >= 0', name='ck_task_maintained_non_negative'),
        db.CheckConstraint('maintained_quantity <= quantity', name='ck_task_maintained_within_quantity'),
    )

    item = db.relationship('InventoryItem', back_populates='maintenance_tasks')

    def __repr__(self):
        return f'<MaintenanceTask {self.id}: Item {self.item_id} {self.maintained_quantity}/{self.quantity} {self.status}>'

    @property
    def remaining_quantity(self):
        return (self.quantity or 0) - (self.maintained_quantity or 0)

    @property
    def quantity_completion_rate(self):
        if not self.quantity:
            return 0
        return round((self.maintained_quantity or 0) / self.quantity * 100)

    def days_until_due(self, now=None):
        if self.due_date is None:
            return None
        now = now or datetime.utcnow()
        return math.ceil((self.due_date - now).total_seconds() / 86400)

    def _computed_fields(self):
        return {
            'remaining_quantity': self.remaining_quantity,
            'quantity_completion_rate': self.quantity_completion_rate,
        }
