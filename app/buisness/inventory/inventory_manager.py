from __future__ import annotations

from typing import Optional

from app import db
from app.buisness.core.unit_of_work import ledger_transaction
from app.buisness.inventory.ledger_errors import RecordNotFound
from app.buisness.inventory.quantity_record import AVAILABLE, QuantityRecord, require_quantity
from app.buisness.inventory.stock_allocation_engine import StockAllocationEngine
from app.data.inventory.inventory_item import InventoryItem
from app.data.inventory.quantity_movement import QuantityMovement
from app.utils.logger import get_logger

logger = get_logger("lab_ledger.inventory.manager")

# Columns owned by the ledger; never taken from caller input
LEDGER_FIELDS = [
    'id', 'version',
    'quantity', 'available_quantity', 'borrowed_quantity', 'maintenance_quantity', 'disposal_quantity',
]


class InventoryManager:
    """
    Item registration and administrative edits.

    Responsibilities:
    - Register items with every unit available and a first movement row
    - Route total-quantity edits and categorical state changes through the engine
    """

    def __init__(self, performed_by: str | None = None, engine: StockAllocationEngine | None = None):
        self.performed_by = performed_by
        self.engine = engine or StockAllocationEngine(performed_by=performed_by)

    def get_item(self, item_id: int) -> InventoryItem:
        item = db.session.get(InventoryItem, item_id)
        if item is None:
            raise RecordNotFound("Inventory item", item_id)
        return item

    def create_item(self, data: dict) -> InventoryItem:
        """
        Register a new item.

        Args:
            data: item fields; `item_code` and `name` are required, `quantity`
                defaults to 1. Bucket columns in `data` are ignored.

        Raises:
            InvalidQuantity: quantity is not a whole number >= 1
            ValueError: missing/duplicate item code, missing name, unknown vocabulary value
        """
        quantity = require_quantity(data.get('quantity', 1), "Quantity")
        item_code = (data.get('item_code') or '').strip()
        name = (data.get('name') or '').strip()
        if not item_code:
            raise ValueError("item_code is required")
        if not name:
            raise ValueError("name is required")
        if InventoryItem.query.filter_by(item_code=item_code).first() is not None:
            raise ValueError(f"Item code {item_code} already exists")

        payload = dict(data, item_code=item_code, name=name)
        # An item that needs repair always needs maintenance
        if payload.get('condition') == 'Needs Repair' and payload.get('maintenance_needs', 'No') == 'No':
            payload['maintenance_needs'] = 'Yes'

        with ledger_transaction():
            item = InventoryItem.from_dict(payload, performed_by=self.performed_by, skip_fields=LEDGER_FIELDS)
            item.quantity = quantity
            item.available_quantity = quantity
            item.borrowed_quantity = 0
            item.maintenance_quantity = 0
            item.disposal_quantity = 0
            item.version = 1
            db.session.add(item)
            db.session.flush()
            item_id = item.id

            db.session.add(QuantityMovement(
                item_id=item_id,
                movement_type="Registration",
                quantity_delta=quantity,
                from_bucket=None,
                to_bucket=AVAILABLE,
                version_after=1,
                reference_type="inventory_item",
                reference_id=item_id,
                created_by=self.performed_by,
                updated_by=self.performed_by,
            ))

        logger.info(f"Registered item {item_code} ({name}) with {quantity} units")
        return self.get_item(item_id)

    def adjust_quantity(self, item_id: int, new_quantity: int) -> QuantityRecord:
        with ledger_transaction():
            record = self.engine.adjust_total_quantity(
                item_id, new_quantity, reference=("inventory_item", item_id))
        return record

    def set_borrowing_status(self, item_id: int, can_be_borrowed: bool) -> QuantityRecord:
        with ledger_transaction():
            record = self.engine.update_item_state(item_id, can_be_borrowed=can_be_borrowed)
        logger.info(f"Item {item_id} borrowing {'enabled' if can_be_borrowed else 'restricted'}")
        return record

    def update_state(self, item_id: int, **fields) -> QuantityRecord:
        """Change condition, maintenance needs, calibration, status or category."""
        if fields.get('condition') == 'Needs Repair' and 'maintenance_needs' not in fields:
            if self.engine.get_record(item_id).maintenance_needs == 'No':
                fields['maintenance_needs'] = 'Yes'
        with ledger_transaction():
            record = self.engine.update_item_state(item_id, **fields)
        return record
