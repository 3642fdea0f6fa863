"""
Inventory Service
Presentation service for item quantity breakdowns, borrowing badges and movement history.
"""

from typing import Any, Dict, List, Optional

from app import db
from app.buisness.inventory.borrowing_eligibility import BorrowingEligibilityEvaluator
from app.buisness.inventory.ledger_errors import RecordNotFound
from app.buisness.inventory.quantity_record import QuantityRecord
from app.data.inventory.inventory_item import InventoryItem
from app.data.inventory.item_vocabulary import BORROWABLE_CONDITIONS, ITEM_STATUS_ACTIVE
from app.data.inventory.quantity_movement import QuantityMovement


class InventoryService:
    """
    Service for inventory quantity presentation data.

    Provides read-only methods for:
    - Quantity breakdown of one item, with its borrowing badge
    - Listing items that can currently be borrowed
    - Movement history of one item
    """

    @staticmethod
    def get_borrowing_badge(record: QuantityRecord) -> Dict[str, Any]:
        """
        Badge data for display. Advisory only: approval re-evaluates eligibility
        inside the engine.
        """
        eligibility = BorrowingEligibilityEvaluator.evaluate(record)
        if eligibility.restricted:
            label = 'Restricted'
        elif eligibility.can_borrow:
            label = 'Available'
        else:
            label = 'Unavailable'
        badge = eligibility.to_dict()
        badge['label'] = label
        return badge

    @staticmethod
    def get_quantity_breakdown(item_id: int) -> Dict[str, Any]:
        """
        Current quantity breakdown of an item.

        Raises:
            RecordNotFound: unknown item
        """
        item = db.session.get(InventoryItem, item_id)
        if item is None:
            raise RecordNotFound("Inventory item", item_id)
        record = QuantityRecord.read(item_id)

        data = item.to_dict()
        data.update(record.to_dict())
        data['borrowing'] = InventoryService.get_borrowing_badge(record)
        return data

    @staticmethod
    def get_borrowable_items(category: Optional[str] = None) -> List[Dict[str, Any]]:
        query = InventoryItem.query.filter(
            InventoryItem.status == ITEM_STATUS_ACTIVE,
            InventoryItem.can_be_borrowed.is_(True),
            InventoryItem.maintenance_needs == 'No',
            InventoryItem.condition.in_(sorted(BORROWABLE_CONDITIONS)),
            InventoryItem.available_quantity > 0,
        )
        if category:
            query = query.filter(InventoryItem.category == category)

        results = []
        for item in query.order_by(InventoryItem.name).all():
            record = QuantityRecord.from_item(item)
            if not BorrowingEligibilityEvaluator.is_borrowable(record):
                continue
            results.append({
                'id': item.id,
                'item_code': item.item_code,
                'name': item.name,
                'category': item.category,
                'available_quantity': record.available,
            })
        return results

    @staticmethod
    def get_movement_history(item_id: int, movement_type: Optional[str] = None,
                             limit: int = 100) -> List[QuantityMovement]:
        """
        Movements of an item, most recent first.

        Args:
            item_id: Item ID
            movement_type: Filter by movement type (Registration, Disposal, BorrowReserve, etc.)
            limit: Maximum number of rows
        """
        query = QuantityMovement.query.filter_by(item_id=item_id)
        if movement_type:
            query = query.filter_by(movement_type=movement_type)
        return query.order_by(QuantityMovement.version_after.desc(), QuantityMovement.id.desc()).limit(limit).all()
