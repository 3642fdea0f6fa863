from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, List, Optional, Tuple

from flask import current_app
from sqlalchemy import select, update

from app import db
from app.buisness.inventory.borrowing_eligibility import BorrowingEligibilityEvaluator
from app.buisness.inventory.disposal_gate import DisposalGate
from app.buisness.inventory.ledger_errors import (
    BorrowingNotAllowed,
    ConcurrentModification,
    InsufficientAvailability,
    InvalidQuantity,
    InvalidStatusTransition,
    InvariantViolation,
    RecordNotFound,
)
from app.buisness.inventory.quantity_record import (
    AVAILABLE,
    BORROWED,
    DISPOSAL,
    MAINTENANCE,
    QuantityRecord,
    require_quantity,
)
from app.buisness.maintenance import maintenance_status
from app.data.inventory.inventory_item import InventoryItem
from app.data.inventory.item_vocabulary import (
    CALIBRATION_STATES,
    CONDITIONS,
    ITEM_STATUS_DISPOSED,
    ITEM_STATUSES,
    MAINTENANCE_NEEDS,
    ItemCategory,
)
from app.data.inventory.quantity_movement import QuantityMovement
from app.data.maintenance.maintenance_task import MaintenanceTask
from app.utils.logger import get_logger

logger = get_logger("lab_ledger.inventory.engine")

DEFAULT_MAX_ATTEMPTS = 3

Reference = Optional[Tuple[str, int]]


@dataclass(frozen=True)
class PlannedMovement:
    movement_type: str
    quantity_delta: int
    from_bucket: Optional[str]
    to_bucket: Optional[str]
    notes: Optional[str] = None


@dataclass(frozen=True)
class TaskSnapshot:
    task_id: int
    item_id: int
    quantity: int
    maintained_quantity: int
    status: str


# A plan turns the freshly read record into (post-state, movements, extra write).
# Returning post-state None means "nothing to do".
Plan = Callable[[QuantityRecord], Tuple[Optional[QuantityRecord], List[PlannedMovement], Optional[Callable[[], None]]]]


class StockAllocationEngine:
    """
    The only component allowed to change an item's quantity columns.

    Every operation runs a bounded read-validate-write cycle:

    1. read the item's current QuantityRecord straight from the database
    2. validate the request against it and compute the post-state
    3. check the post-state against the conservation rules
    4. write it with one UPDATE conditioned on the version that was read

    A zero-row update means another writer committed in between; the cycle
    restarts from a fresh read, up to `max_attempts` times, then fails with
    ConcurrentModification. Nothing here commits: callers wrap each admin action
    in `ledger_transaction()` so a failure leaves no partial state.
    """

    def __init__(self, max_attempts: int | None = None, performed_by: str | None = None):
        if max_attempts is None:
            max_attempts = current_app.config.get('LEDGER_MAX_ATTEMPTS', DEFAULT_MAX_ATTEMPTS)
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        self.max_attempts = max_attempts
        self.performed_by = performed_by

    # ------------------------------------------------------------------ reads

    def get_record(self, item_id: int) -> QuantityRecord:
        return self._read_record(item_id)

    def _read_record(self, item_id: int) -> QuantityRecord:
        record = QuantityRecord.read(item_id)
        if record is None:
            raise RecordNotFound("Inventory item", item_id)
        return record

    def _read_task(self, task_id: int) -> TaskSnapshot:
        row = db.session.execute(
            select(
                MaintenanceTask.id,
                MaintenanceTask.item_id,
                MaintenanceTask.quantity,
                MaintenanceTask.maintained_quantity,
                MaintenanceTask.status,
            ).where(MaintenanceTask.id == task_id)
        ).one_or_none()
        if row is None:
            raise RecordNotFound("Maintenance task", task_id)
        return TaskSnapshot(row.id, row.item_id, row.quantity, row.maintained_quantity or 0, row.status)

    # ------------------------------------------------------------ operations

    def reserve_for_maintenance(self, item_id: int, qty: int, reference: Reference = None) -> QuantityRecord:
        """Move `qty` available units into the maintenance bucket."""
        require_quantity(qty, "Maintenance quantity")

        def plan(before):
            if qty > before.available:
                raise InsufficientAvailability(item_id, qty, before.available, "maintenance")
            after = before.moved(AVAILABLE, MAINTENANCE, qty)
            return after, [PlannedMovement("MaintenanceReserve", qty, AVAILABLE, MAINTENANCE)], None

        return self._run(item_id, plan, reference)

    def record_maintenance_progress(self, task_id: int, maintained_qty: int) -> QuantityRecord:
        """
        Record that `maintained_qty` units of the task are done in total.

        The increase over the previously recorded value returns from maintenance
        to available; reaching the task quantity completes the task. Repeating
        the recorded value is a no-op.
        """
        require_quantity(maintained_qty, "Maintained quantity", minimum=0)
        task = self._read_task(task_id)

        def plan(before):
            current = self._read_task(task_id)
            if maintained_qty > current.quantity:
                raise InvalidQuantity(
                    f"Maintained quantity cannot exceed total quantity ({current.quantity})", maintained_qty)
            if maintained_qty < current.maintained_quantity:
                raise InvalidQuantity(
                    f"Maintained quantity cannot be decreased (currently {current.maintained_quantity})",
                    maintained_qty)

            delta = maintained_qty - current.maintained_quantity
            if delta == 0:
                return None, [], None
            if current.status in maintenance_status.TERMINAL_STATUSES:
                raise InvalidStatusTransition(
                    "maintenance task", task_id, current.status, current.status,
                    "no further progress can be recorded")
            if delta > before.maintenance:
                raise InvariantViolation(
                    f"Item {before.item_id} holds {before.maintenance} units in maintenance "
                    f"but task {task_id} returns {delta}", item_id=before.item_id)

            new_status = maintenance_status.status_after_progress(current.status, maintained_qty, current.quantity)
            after = before.moved(MAINTENANCE, AVAILABLE, delta)
            movements = [PlannedMovement("MaintenanceReturn", delta, MAINTENANCE, AVAILABLE,
                                      f"{maintained_qty}/{current.quantity} maintained")]

            def write_task():
                self._write_task(current, maintained_qty, new_status)

            return after, movements, write_task

        return self._run(task.item_id, plan, ("maintenance_task", task_id))

    def release_maintenance(self, task_id: int) -> QuantityRecord:
        """Cancel a task: its remaining reserved units go back to available."""
        task = self._read_task(task_id)

        def plan(before):
            current = self._read_task(task_id)
            if current.status in maintenance_status.TERMINAL_STATUSES:
                raise InvalidStatusTransition(
                    "maintenance task", task_id, current.status, maintenance_status.CANCELLED)
            remaining = current.quantity - current.maintained_quantity
            if remaining > before.maintenance:
                raise InvariantViolation(
                    f"Item {before.item_id} holds {before.maintenance} units in maintenance "
                    f"but task {task_id} still reserves {remaining}", item_id=before.item_id)

            after = before.moved(MAINTENANCE, AVAILABLE, remaining)
            movements = [PlannedMovement("MaintenanceCancel", remaining, MAINTENANCE, AVAILABLE)] if remaining else []

            def write_task():
                self._write_task(current, current.maintained_quantity, maintenance_status.CANCELLED)

            return after, movements, write_task

        return self._run(task.item_id, plan, ("maintenance_task", task_id))

    def resize_maintenance(self, task_id: int, new_quantity: int) -> QuantityRecord:
        """
        Change how many units an open task reserves.

        Growing the task draws the difference from available, shrinking it
        returns the difference. The task cannot shrink below what is already
        maintained; shrinking exactly to it completes the task.
        """
        require_quantity(new_quantity, "Maintenance quantity")
        task = self._read_task(task_id)

        def plan(before):
            current = self._read_task(task_id)
            if current.status in maintenance_status.TERMINAL_STATUSES:
                raise InvalidStatusTransition(
                    "maintenance task", task_id, current.status, current.status,
                    "the reserved quantity can no longer change")
            if new_quantity < current.maintained_quantity:
                raise InvalidQuantity(
                    f"Maintenance quantity cannot be below the {current.maintained_quantity} units "
                    "already maintained", new_quantity)

            delta = new_quantity - current.quantity
            if delta == 0:
                return None, [], None
            if delta > 0:
                if delta > before.available:
                    raise InsufficientAvailability(before.item_id, delta, before.available, "maintenance")
                after = before.moved(AVAILABLE, MAINTENANCE, delta)
                movement = PlannedMovement("MaintenanceReserve", delta, AVAILABLE, MAINTENANCE,
                                           f"task quantity {current.quantity} -> {new_quantity}")
            else:
                if -delta > before.maintenance:
                    raise InvariantViolation(
                        f"Item {before.item_id} holds {before.maintenance} units in maintenance "
                        f"but task {task_id} returns {-delta}", item_id=before.item_id)
                after = before.moved(MAINTENANCE, AVAILABLE, -delta)
                movement = PlannedMovement("MaintenanceRelease", -delta, MAINTENANCE, AVAILABLE,
                                           f"task quantity {current.quantity} -> {new_quantity}")

            new_status = maintenance_status.status_after_progress(
                current.status, current.maintained_quantity, new_quantity)

            def write_task():
                self._write_task(current, current.maintained_quantity, new_status, quantity=new_quantity)

            return after, [movement], write_task

        return self._run(task.item_id, plan, ("maintenance_task", task_id))

    def dispose_units(self, item_id: int, qty: int, category=None, reference: Reference = None) -> QuantityRecord:
        """
        Permanently remove `qty` available units.

        Draws only from available stock. Decrements available and quantity,
        increments the disposal counter.
        """
        if category is not None:
            DisposalGate.check(category)
        require_quantity(qty, "Disposal quantity")

        def plan(before):
            DisposalGate.check(before.category)
            if qty > before.available:
                raise InsufficientAvailability(item_id, qty, before.available, "disposal")
            after = before.with_changes(
                available=before.available - qty,
                quantity=before.quantity - qty,
                disposal=before.disposal + qty,
            )
            if after.quantity == 0:
                after = after.with_changes(status=ITEM_STATUS_DISPOSED)
            return after, [PlannedMovement("Disposal", qty, AVAILABLE, DISPOSAL)], None

        return self._run(item_id, plan, reference)

    def reserve_for_borrow(self, item_id: int, qty: int = 1, reference: Reference = None) -> QuantityRecord:
        """Lend `qty` units, re-checking borrowing eligibility on the fresh record."""
        require_quantity(qty, "Borrow quantity")

        def plan(before):
            reason = BorrowingEligibilityEvaluator.blocking_reason(before)
            if reason is not None:
                raise BorrowingNotAllowed(item_id, reason)
            if qty > before.available:
                raise InsufficientAvailability(item_id, qty, before.available, "borrowing")
            after = before.moved(AVAILABLE, BORROWED, qty)
            return after, [PlannedMovement("BorrowReserve", qty, AVAILABLE, BORROWED)], None

        return self._run(item_id, plan, reference)

    def release_from_borrow(self, item_id: int, qty: int = 1, reference: Reference = None) -> QuantityRecord:
        require_quantity(qty, "Return quantity")

        def plan(before):
            if qty > before.borrowed:
                raise InvalidQuantity(
                    f"Cannot return {qty} units to item {item_id}: only {before.borrowed} are borrowed", qty)
            after = before.moved(BORROWED, AVAILABLE, qty)
            return after, [PlannedMovement("BorrowRelease", qty, BORROWED, AVAILABLE)], None

        return self._run(item_id, plan, reference)

    def adjust_total_quantity(self, item_id: int, new_quantity: int, reference: Reference = None) -> QuantityRecord:
        """
        Administrative edit of the in-service total.

        Rejected when it would shrink below the units currently lent out or in
        maintenance; availability is re-derived from the allocated buckets.
        """
        require_quantity(new_quantity, "Total quantity")

        def plan(before):
            if new_quantity < before.allocated:
                raise InvalidQuantity(
                    f"Total quantity cannot be reduced to {new_quantity}: {before.borrowed} borrowed and "
                    f"{before.maintenance} under maintenance are already allocated", new_quantity)
            if new_quantity == before.quantity:
                return None, [], None
            after = before.with_changes(
                quantity=new_quantity,
                available=new_quantity - before.allocated,
            )
            delta = new_quantity - before.quantity
            movement = PlannedMovement(
                "TotalAdjustment", delta, None if delta > 0 else AVAILABLE, AVAILABLE if delta > 0 else None,
                f"quantity {before.quantity} -> {new_quantity}")
            return after, [movement], None

        return self._run(item_id, plan, reference)

    def update_item_state(self, item_id: int, **fields) -> QuantityRecord:
        """
        Conditioned write of categorical state (condition, maintenance_needs,
        calibration, status, category, can_be_borrowed).

        Bumps the version so an in-flight borrow reservation re-evaluates
        eligibility against the new state.
        """
        changes = _validated_state_changes(fields)

        def plan(before):
            if all(getattr(before, key) == value for key, value in changes.items()):
                return None, [], None
            return before.with_changes(**changes), [], None

        return self._run(item_id, plan, None)

    # ------------------------------------------------------------- machinery

    def _run(self, item_id: int, plan: Plan, reference: Reference) -> QuantityRecord:
        db.session.flush()
        for attempt in range(1, self.max_attempts + 1):
            before = self._read_record(item_id)
            after, movements, extra_write = plan(before)
            if after is None:
                return before

            try:
                after.check_conservation()
            except InvariantViolation as e:
                logger.error(f"Invariant violation on item {item_id} (v{before.version}): {e}", stack_info=True)
                raise

            if not self._write_record(before, after):
                logger.warning(
                    f"Concurrent modification on item {item_id} (read v{before.version}), "
                    f"attempt {attempt}/{self.max_attempts}"
                )
                continue

            if extra_write is not None:
                extra_write()
            committed = after.with_changes(version=before.version + 1)
            self._record_movements(committed, movements, reference)
            db.session.flush()
            db.session.expire_all()

            for movement in movements:
                logger.info(
                    f"Item {item_id} {movement.movement_type}: {movement.from_bucket} -> {movement.to_bucket} "
                    f"x{movement.quantity_delta} (v{committed.version})"
                )
            return committed

        raise ConcurrentModification(item_id, self.max_attempts)

    def _write_record(self, before: QuantityRecord, after: QuantityRecord) -> bool:
        values = after.column_values()
        values['version'] = before.version + 1
        values['updated_at'] = datetime.utcnow()
        if self.performed_by:
            values['updated_by'] = self.performed_by
        result = db.session.execute(
            update(InventoryItem)
            .where(InventoryItem.id == before.item_id, InventoryItem.version == before.version)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def _write_task(self, current: TaskSnapshot, maintained_qty: int, new_status: str,
                    quantity: int | None = None) -> None:
        values = {
            'maintained_quantity': maintained_qty,
            'status': new_status,
            'updated_at': datetime.utcnow(),
        }
        if quantity is not None:
            values['quantity'] = quantity
        if new_status == maintenance_status.COMPLETED:
            values['completed_date'] = datetime.utcnow()
        if self.performed_by:
            values['updated_by'] = self.performed_by
        result = db.session.execute(
            update(MaintenanceTask)
            .where(
                MaintenanceTask.id == current.task_id,
                MaintenanceTask.quantity == current.quantity,
                MaintenanceTask.maintained_quantity == current.maintained_quantity,
                MaintenanceTask.status == current.status,
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            logger.warning(f"Maintenance task {current.task_id} changed while its item was being updated")
            raise ConcurrentModification(current.item_id, self.max_attempts)

    def _record_movements(self, committed: QuantityRecord, movements: List[PlannedMovement], reference: Reference) -> None:
        reference_type, reference_id = reference if reference else (None, None)
        for planned in movements:
            db.session.add(QuantityMovement(
                item_id=committed.item_id,
                movement_type=planned.movement_type,
                quantity_delta=planned.quantity_delta,
                from_bucket=planned.from_bucket,
                to_bucket=planned.to_bucket,
                version_after=committed.version,
                reference_type=reference_type,
                reference_id=reference_id,
                notes=planned.notes,
                created_by=self.performed_by,
                updated_by=self.performed_by,
            ))


_STATE_VOCABULARIES = {
    'condition': CONDITIONS,
    'maintenance_needs': MAINTENANCE_NEEDS,
    'calibration': CALIBRATION_STATES,
    'status': ITEM_STATUSES,
}


def _validated_state_changes(fields):
    changes = {}
    for key, value in fields.items():
        if key in _STATE_VOCABULARIES:
            if value not in _STATE_VOCABULARIES[key]:
                raise ValueError(f"Invalid {key}: {value!r}")
            changes[key] = value
        elif key == 'category':
            changes[key] = ItemCategory.parse(value).value
        elif key == 'can_be_borrowed':
            if not isinstance(value, bool):
                raise ValueError("can_be_borrowed must be true or false")
            changes[key] = value
        else:
            raise ValueError(f"Unknown item state field: {key}")
    if not changes:
        raise ValueError("No item state changes given")
    return changes
