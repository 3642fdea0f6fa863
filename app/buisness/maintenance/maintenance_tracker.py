"""
Maintenance Tracker
Business logic for maintenance tasks that hold a reserved sub-quantity of an item.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import select, update

from app import db
from app.buisness.core.status_claim import claim_status
from app.buisness.core.unit_of_work import ledger_transaction
from app.buisness.inventory.ledger_errors import InvalidStatusTransition, RecordNotFound
from app.buisness.inventory.quantity_record import QuantityRecord, require_quantity
from app.buisness.inventory.status.status_validator import LedgerStatusValidator
from app.buisness.inventory.stock_allocation_engine import StockAllocationEngine
from app.buisness.maintenance import maintenance_status
from app.data.maintenance.maintenance_task import (
    MAINTENANCE_PRIORITIES,
    MAINTENANCE_TYPES,
    MaintenanceTask,
)
from app.utils.logger import get_logger

logger = get_logger("lab_ledger.maintenance.tracker")

UNDER_MAINTENANCE = 'Under Maintenance'
NEEDS_REPAIR = 'Needs Repair'
# Conditions that completed maintenance resolves back to Good
REPAIRED_CONDITIONS = frozenset({UNDER_MAINTENANCE, NEEDS_REPAIR, 'Poor', 'Damaged'})


class MaintenanceTracker:
    """
    Schedules maintenance against available units and reconciles progress.

    Status follows the quantities: recording progress drives In Progress and
    Completed, a status-only update to Completed is rejected unless the task is
    fully maintained, and cancelling returns whatever is still reserved.
    All quantity effects go through the StockAllocationEngine.

    The item's maintenance state follows its maintenance bucket: scheduling
    marks maintenance_needs Scheduled (and the condition Under Maintenance once
    no units are left available), and when the last reserved unit comes back the
    item is released from maintenance. Both writes share the task's transaction.
    """

    def __init__(self, performed_by: Optional[str] = None, engine: Optional[StockAllocationEngine] = None):
        self.performed_by = performed_by
        self.engine = engine or StockAllocationEngine(performed_by=performed_by)

    def get_task(self, task_id: int) -> MaintenanceTask:
        task = db.session.get(MaintenanceTask, task_id)
        if task is None:
            raise RecordNotFound("Maintenance task", task_id)
        return task

    def schedule_maintenance(
        self,
        item_id: int,
        quantity: int,
        due_date: datetime,
        *,
        scheduled_date: Optional[datetime] = None,
        maintenance_type: str = 'Maintenance',
        priority: str = 'Medium',
        assigned_to_name: Optional[str] = None,
        description: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> MaintenanceTask:
        """
        Create a Scheduled task and reserve `quantity` available units for it.

        Raises:
            InvalidQuantity: quantity is not a positive whole number
            InsufficientAvailability: the item does not hold that many available units
            RecordNotFound: unknown item
            ValueError: unknown type/priority or missing due date
        """
        require_quantity(quantity, "Maintenance quantity")
        if maintenance_type not in MAINTENANCE_TYPES:
            raise ValueError(f"Invalid maintenance type: {maintenance_type!r}")
        if priority not in MAINTENANCE_PRIORITIES:
            raise ValueError(f"Invalid priority: {priority!r}")
        if due_date is None:
            raise ValueError("due_date is required")
        scheduled_date = scheduled_date or datetime.utcnow()
        if due_date < scheduled_date:
            raise ValueError("due_date cannot be before scheduled_date")

        with ledger_transaction():
            task = MaintenanceTask(
                item_id=item_id,
                maintenance_type=maintenance_type,
                priority=priority,
                quantity=quantity,
                maintained_quantity=0,
                status=maintenance_status.SCHEDULED,
                scheduled_date=scheduled_date,
                due_date=due_date,
                assigned_to_name=assigned_to_name,
                description=description,
                notes=notes,
                created_by=self.performed_by,
                updated_by=self.performed_by,
            )
            db.session.add(task)
            db.session.flush()
            task_id = task.id
            record = self.engine.reserve_for_maintenance(item_id, quantity, reference=("maintenance_task", task_id))
            self._mark_scheduled(record)

        logger.info(f"Scheduled maintenance task {task_id} for item {item_id}: {quantity} units due {due_date:%Y-%m-%d}")
        return self.get_task(task_id)

    def record_progress(self, task_id: int, maintained_quantity: int) -> MaintenanceTask:
        """Record the total number of units maintained so far."""
        with ledger_transaction():
            was_open = self.get_task(task_id).status not in maintenance_status.TERMINAL_STATUSES
            record = self.engine.record_maintenance_progress(task_id, maintained_quantity)
            if was_open:
                self._release_if_drained(record, completed=self._status(task_id) == maintenance_status.COMPLETED)
        task = self.get_task(task_id)
        logger.info(f"Maintenance task {task_id} progress: {task.maintained_quantity}/{task.quantity} ({task.status})")
        return task

    def change_quantity(self, task_id: int, new_quantity: int) -> MaintenanceTask:
        """
        Edit the number of units an open task reserves, moving the difference
        between available and maintenance.

        Raises:
            InvalidQuantity: below the units already maintained
            InsufficientAvailability: growing beyond what is available
            InvalidStatusTransition: the task is Completed or Cancelled
        """
        with ledger_transaction():
            record = self.engine.resize_maintenance(task_id, new_quantity)
            if record.maintenance:
                self._mark_scheduled(record)
            else:
                self._release_if_drained(record, completed=self._status(task_id) == maintenance_status.COMPLETED)
        task = self.get_task(task_id)
        logger.info(f"Maintenance task {task_id} now reserves {task.quantity} units ({task.status})")
        return task

    def cancel_task(self, task_id: int) -> MaintenanceTask:
        with ledger_transaction():
            record = self.engine.release_maintenance(task_id)
            self._release_if_drained(record, completed=False)
        logger.info(f"Cancelled maintenance task {task_id}")
        return self.get_task(task_id)

    def update_status(self, task_id: int, new_status: str, now: Optional[datetime] = None) -> MaintenanceTask:
        """
        Admin status update, re-validated against the task's quantities.

        Completed is only accepted when every reserved unit is maintained;
        Overdue only when the due date has passed. Cancelled releases the
        remaining reservation.
        """
        task = self.get_task(task_id)
        current = task.status
        if not LedgerStatusValidator.is_known("maintenance_task", new_status):
            raise InvalidStatusTransition("maintenance task", task_id, current, new_status, "unknown status")
        if new_status == current:
            return task
        if new_status == maintenance_status.CANCELLED:
            return self.cancel_task(task_id)

        values = {}
        if new_status == maintenance_status.COMPLETED:
            if task.maintained_quantity != task.quantity:
                raise InvalidStatusTransition(
                    "maintenance task", task_id, current, new_status,
                    f"only {task.maintained_quantity} of {task.quantity} units are maintained; "
                    "record the maintained quantity to complete the task")
            values['completed_date'] = datetime.utcnow()
        elif new_status == maintenance_status.OVERDUE:
            now = now or datetime.utcnow()
            if task.due_date >= now:
                raise InvalidStatusTransition(
                    "maintenance task", task_id, current, new_status, "the due date has not passed")

        with ledger_transaction():
            claim_status(MaintenanceTask, "maintenance_task", task_id, current, new_status,
                         performed_by=self.performed_by, **values)

        logger.info(f"Maintenance task {task_id}: {current} -> {new_status}")
        return self.get_task(task_id)

    def refresh_overdue(self, now: Optional[datetime] = None) -> int:
        """Persist Overdue on open tasks whose due date has passed. Returns the count."""
        now = now or datetime.utcnow()
        values = {'status': maintenance_status.OVERDUE, 'updated_at': datetime.utcnow()}
        if self.performed_by:
            values['updated_by'] = self.performed_by

        with ledger_transaction():
            result = db.session.execute(
                update(MaintenanceTask)
                .where(
                    MaintenanceTask.status.in_([maintenance_status.SCHEDULED, maintenance_status.IN_PROGRESS]),
                    MaintenanceTask.due_date < now,
                )
                .values(**values)
                .execution_options(synchronize_session=False)
            )
        db.session.expire_all()

        if result.rowcount:
            logger.info(f"Marked {result.rowcount} maintenance task(s) overdue")
        return result.rowcount

    @staticmethod
    def effective_status(task: MaintenanceTask, now: Optional[datetime] = None) -> str:
        return maintenance_status.effective_status(task.status, task.due_date, now)

    def _status(self, task_id: int) -> str:
        return db.session.execute(
            select(MaintenanceTask.status).where(MaintenanceTask.id == task_id)
        ).scalar_one()

    def _mark_scheduled(self, record: QuantityRecord) -> None:
        changes = {'maintenance_needs': 'Scheduled'}
        if record.available == 0:
            changes['condition'] = UNDER_MAINTENANCE
        self.engine.update_item_state(record.item_id, **changes)

    def _release_if_drained(self, record: QuantityRecord, completed: bool) -> None:
        """Clear the item's maintenance state once nothing is left in maintenance."""
        if record.maintenance:
            return
        condition = record.condition
        if condition == UNDER_MAINTENANCE or (completed and condition in REPAIRED_CONDITIONS):
            condition = 'Good'
        changes = {
            'condition': condition,
            'maintenance_needs': 'Yes' if condition == NEEDS_REPAIR else 'No',
        }
        self.engine.update_item_state(record.item_id, **changes)
