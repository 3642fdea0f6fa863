"""
Inventory Services
Presentation services for inventory-related data retrieval and formatting.
"""

from .inventory_service import InventoryService

__all__ = [
    'InventoryService',
]
