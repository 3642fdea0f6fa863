"""
Closed vocabularies for inventory item state.

Category is a tagged enumeration: each member states whether units of that
category may be permanently removed through the disposal workflow.
"""

from enum import Enum


class ItemCategory(Enum):
    EQUIPMENT = ("Equipment", False)
    CONSUMABLES = ("Consumables", True)
    MATERIALS = ("Materials", False)
    INSTRUMENTS = ("Instruments", False)
    FURNITURE = ("Furniture", False)
    ELECTRONICS = ("Electronics", False)
    LIQUIDS = ("Liquids", True)
    SAFETY_GEAR = ("Safety Gear", False)
    LAB_SUPPLIES = ("Lab Supplies", False)
    TOOLS = ("Tools", False)

    def __new__(cls, label, disposal_eligible):
        member = object.__new__(cls)
        member._value_ = label
        member.disposal_eligible = disposal_eligible
        return member

    @classmethod
    def parse(cls, value):
        """Accept a member or its label; raise ValueError for anything else."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            raise ValueError(f"Unknown item category: {value!r}") from None

    @classmethod
    def labels(cls):
        return [member.value for member in cls]


CONDITIONS = (
    "Excellent", "Good", "Fair", "Poor", "Damaged",
    "Needs Repair", "Out of Stock", "Under Maintenance",
)
BORROWABLE_CONDITIONS = frozenset({"Excellent", "Good", "Fair"})

MAINTENANCE_NEEDS = ("Yes", "No", "Scheduled")
CALIBRATION_STATES = ("Yes", "No", "Due Soon", "Calibrated")

ITEM_STATUS_ACTIVE = "Active"
ITEM_STATUS_DISPOSED = "Disposed"
ITEM_STATUSES = (ITEM_STATUS_ACTIVE, "Inactive", ITEM_STATUS_DISPOSED, "Expired")
