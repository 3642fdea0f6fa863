from __future__ import annotations

from dataclasses import dataclass, replace
from typing import ClassVar, Dict, Optional

from sqlalchemy import select

from app import db
from app.buisness.inventory.ledger_errors import InvalidQuantity, InvariantViolation
from app.data.inventory.inventory_item import InventoryItem

AVAILABLE = "available"
BORROWED = "borrowed"
MAINTENANCE = "maintenance"
DISPOSAL = "disposal"

BUCKET_COLUMNS = {
    AVAILABLE: "available_quantity",
    BORROWED: "borrowed_quantity",
    MAINTENANCE: "maintenance_quantity",
    DISPOSAL: "disposal_quantity",
}


def require_quantity(value, name: str = "quantity", minimum: int = 1) -> int:
    """Boundary check for quantity arguments: integers only, bool excluded."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidQuantity(f"{name} must be a whole number, got {value!r}", value)
    if value < minimum:
        raise InvalidQuantity(f"{name} must be at least {minimum}, got {value}", value)
    return value


@dataclass(frozen=True)
class QuantityRecord:
    """
    Immutable snapshot of one item's persisted quantity state.

    Read with a plain column SELECT so the values always reflect the database,
    never a cached ORM instance. Ledger rules:

    - available + borrowed + maintenance == quantity (the in-service total)
    - each in-service bucket lies in [0, quantity]
    - disposal counts units permanently removed; it is >= 0 and sits outside
      the in-service total, so all four buckets sum to quantity + disposal
    """
    item_id: int
    version: int
    quantity: int
    available: int
    borrowed: int
    maintenance: int
    disposal: int
    category: str
    condition: str
    maintenance_needs: str
    calibration: str
    status: str
    can_be_borrowed: bool

    STATE_COLUMNS: ClassVar[Dict[str, str]] = {
        "category": "category",
        "condition": "condition",
        "maintenance_needs": "maintenance_needs",
        "calibration": "calibration",
        "status": "status",
        "can_be_borrowed": "can_be_borrowed",
    }

    @classmethod
    def read(cls, item_id: int) -> Optional["QuantityRecord"]:
        row = db.session.execute(
            select(
                InventoryItem.id,
                InventoryItem.version,
                InventoryItem.quantity,
                InventoryItem.available_quantity,
                InventoryItem.borrowed_quantity,
                InventoryItem.maintenance_quantity,
                InventoryItem.disposal_quantity,
                InventoryItem.category,
                InventoryItem.condition,
                InventoryItem.maintenance_needs,
                InventoryItem.calibration,
                InventoryItem.status,
                InventoryItem.can_be_borrowed,
            ).where(InventoryItem.id == item_id)
        ).one_or_none()
        if row is None:
            return None
        return cls(
            item_id=row.id,
            version=row.version,
            quantity=row.quantity or 0,
            available=row.available_quantity or 0,
            borrowed=row.borrowed_quantity or 0,
            maintenance=row.maintenance_quantity or 0,
            disposal=row.disposal_quantity or 0,
            category=row.category,
            condition=row.condition,
            maintenance_needs=row.maintenance_needs,
            calibration=row.calibration,
            status=row.status,
            can_be_borrowed=bool(row.can_be_borrowed),
        )

    @classmethod
    def from_item(cls, item: InventoryItem) -> "QuantityRecord":
        """Snapshot of an already-loaded item, for read-only display paths."""
        return cls(
            item_id=item.id,
            version=item.version,
            quantity=item.quantity or 0,
            available=item.available_quantity or 0,
            borrowed=item.borrowed_quantity or 0,
            maintenance=item.maintenance_quantity or 0,
            disposal=item.disposal_quantity or 0,
            category=item.category,
            condition=item.condition,
            maintenance_needs=item.maintenance_needs,
            calibration=item.calibration,
            status=item.status,
            can_be_borrowed=bool(item.can_be_borrowed),
        )

    @property
    def in_service(self) -> int:
        return self.available + self.borrowed + self.maintenance

    @property
    def allocated(self) -> int:
        """Units currently committed to a consumer other than plain availability."""
        return self.borrowed + self.maintenance

    @property
    def lifetime_quantity(self) -> int:
        return self.quantity + self.disposal

    def bucket(self, name: str) -> int:
        return getattr(self, name)

    def moved(self, source: str, target: str, units: int) -> "QuantityRecord":
        """Post-state after moving `units` from one bucket to another."""
        return replace(self, **{
            source: self.bucket(source) - units,
            target: self.bucket(target) + units,
        })

    def with_changes(self, **changes) -> "QuantityRecord":
        return replace(self, **changes)

    def violations(self) -> list:
        problems = []
        for name in (AVAILABLE, BORROWED, MAINTENANCE, DISPOSAL):
            if self.bucket(name) < 0:
                problems.append(f"{name} is negative ({self.bucket(name)})")
        for name in (AVAILABLE, BORROWED, MAINTENANCE):
            if self.bucket(name) > self.quantity:
                problems.append(f"{name} ({self.bucket(name)}) exceeds quantity ({self.quantity})")
        if self.in_service != self.quantity:
            problems.append(
                f"available + borrowed + maintenance = {self.in_service} but quantity = {self.quantity}"
            )
        return problems

    def check_conservation(self) -> "QuantityRecord":
        problems = self.violations()
        if problems:
            raise InvariantViolation(
                f"Item {self.item_id} quantity ledger would be inconsistent: " + "; ".join(problems),
                item_id=self.item_id,
            )
        return self

    def column_values(self) -> Dict[str, object]:
        """Column -> value mapping for the quantity and state columns."""
        values = {
            "quantity": self.quantity,
            "available_quantity": self.available,
            "borrowed_quantity": self.borrowed,
            "maintenance_quantity": self.maintenance,
            "disposal_quantity": self.disposal,
        }
        for attr, column in self.STATE_COLUMNS.items():
            values[column] = getattr(self, attr)
        return values

    def to_dict(self) -> Dict[str, object]:
        return {
            "item_id": self.item_id,
            "version": self.version,
            "quantity": self.quantity,
            "available_quantity": self.available,
            "borrowed_quantity": self.borrowed,
            "maintenance_quantity": self.maintenance,
            "disposal_quantity": self.disposal,
            "lifetime_quantity": self.lifetime_quantity,
        }
