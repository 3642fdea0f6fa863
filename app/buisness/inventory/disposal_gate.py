from __future__ import annotations

from app.buisness.inventory.ledger_errors import CategoryNotDisposable
from app.data.inventory.item_vocabulary import ItemCategory


class DisposalGate:
    """
    Category policy for disposal.

    Only consumable/perishable categories leave inventory through this workflow;
    durable equipment is decommissioned elsewhere. Quantity limits are enforced
    by the engine against a fresh read.
    """

    @staticmethod
    def is_disposable(category) -> bool:
        try:
            return ItemCategory.parse(category).disposal_eligible
        except ValueError:
            return False

    @classmethod
    def check(cls, category) -> ItemCategory:
        if not cls.is_disposable(category):
            label = category.value if isinstance(category, ItemCategory) else category
            raise CategoryNotDisposable(label)
        return ItemCategory.parse(category)
