"""
Inventory models.

- inventory_item - the item row holding the quantity breakdown (source of truth)
- quantity_movement - append-only movement history
- disposal_transaction - disposal requests and their outcome
- item_vocabulary - closed vocabularies for item state
"""

from .inventory_item import InventoryItem
from .quantity_movement import QuantityMovement
from .disposal_transaction import DisposalTransaction

__all__ = [
    'InventoryItem',
    'QuantityMovement',
    'DisposalTransaction',
]
