"""
Tests for maintenance scheduling, partial completion and cancellation
"""
from datetime import datetime, timedelta

import pytest

from app.buisness.inventory.borrowing_eligibility import BorrowingEligibilityEvaluator
from app.buisness.inventory.inventory_manager import InventoryManager
from app.buisness.inventory.ledger_errors import (
    InsufficientAvailability,
    InvalidQuantity,
    InvalidStatusTransition,
    RecordNotFound,
)
from app.buisness.inventory.quantity_record import QuantityRecord
from app.buisness.maintenance import maintenance_status
from app.buisness.maintenance.maintenance_tracker import MaintenanceTracker
from app.data.inventory.quantity_movement import QuantityMovement
from app.data.maintenance.maintenance_task import MaintenanceTask
from app.services.maintenance.maintenance_service import MaintenanceService


@pytest.fixture
def tracker(app):
    return MaintenanceTracker(performed_by='tech')


def _breakdown(item_id):
    record = QuantityRecord.read(item_id)
    assert record.violations() == []
    return record.available, record.maintenance


def test_reservation_and_full_completion(tracker, make_item, due_date):
    item = make_item(quantity=10)
    task = tracker.schedule_maintenance(item.id, 4, due_date)
    assert task.status == 'Scheduled'
    assert _breakdown(item.id) == (6, 4)

    task = tracker.record_progress(task.id, 4)
    assert task.status == 'Completed'
    assert task.completed_date is not None
    assert task.remaining_quantity == 0
    assert _breakdown(item.id) == (10, 0)


def test_partial_completion(tracker, make_item, due_date):
    item = make_item(quantity=10)
    task = tracker.schedule_maintenance(item.id, 4, due_date)

    task = tracker.record_progress(task.id, 2)
    assert task.status == 'In Progress'
    assert task.remaining_quantity == 2
    assert task.quantity_completion_rate == 50
    assert _breakdown(item.id) == (8, 2)


def test_progress_is_incremental(tracker, make_item, due_date):
    item = make_item(quantity=10)
    task = tracker.schedule_maintenance(item.id, 5, due_date)
    tracker.record_progress(task.id, 1)
    tracker.record_progress(task.id, 3)
    assert _breakdown(item.id) == (8, 2)
    task = tracker.record_progress(task.id, 5)
    assert task.status == 'Completed'
    assert _breakdown(item.id) == (10, 0)


def test_repeating_progress_moves_nothing(tracker, make_item, due_date):
    item = make_item(quantity=10)
    task = tracker.schedule_maintenance(item.id, 4, due_date)
    tracker.record_progress(task.id, 2)
    movements = QuantityMovement.query.filter_by(item_id=item.id).count()
    version = QuantityRecord.read(item.id).version

    tracker.record_progress(task.id, 2)

    assert QuantityMovement.query.filter_by(item_id=item.id).count() == movements
    assert QuantityRecord.read(item.id).version == version
    assert _breakdown(item.id) == (8, 2)


def test_repeating_completion_is_idempotent(tracker, make_item, due_date):
    item = make_item(quantity=3)
    task = tracker.schedule_maintenance(item.id, 3, due_date)
    tracker.record_progress(task.id, 3)
    task = tracker.record_progress(task.id, 3)
    assert task.status == 'Completed'
    assert _breakdown(item.id) == (3, 0)


def test_progress_cannot_decrease(tracker, make_item, due_date):
    item = make_item(quantity=10)
    task = tracker.schedule_maintenance(item.id, 4, due_date)
    tracker.record_progress(task.id, 3)
    with pytest.raises(InvalidQuantity):
        tracker.record_progress(task.id, 1)
    assert _breakdown(item.id) == (9, 1)


def test_progress_cannot_exceed_task_quantity(tracker, make_item, due_date):
    item = make_item(quantity=10)
    task = tracker.schedule_maintenance(item.id, 4, due_date)
    with pytest.raises(InvalidQuantity):
        tracker.record_progress(task.id, 5)
    assert _breakdown(item.id) == (6, 4)


def test_scheduling_more_than_available_rolls_back(tracker, make_item, due_date):
    item = make_item(quantity=2)
    with pytest.raises(InsufficientAvailability):
        tracker.schedule_maintenance(item.id, 3, due_date)
    assert MaintenanceTask.query.count() == 0
    assert _breakdown(item.id) == (2, 0)


def test_scheduling_for_unknown_item(tracker, due_date):
    with pytest.raises(RecordNotFound):
        tracker.schedule_maintenance(404, 1, due_date)
    assert MaintenanceTask.query.count() == 0


def test_scheduling_validates_type_and_priority(tracker, make_item, due_date):
    item = make_item()
    with pytest.raises(ValueError):
        tracker.schedule_maintenance(item.id, 1, due_date, maintenance_type='Polish')
    with pytest.raises(ValueError):
        tracker.schedule_maintenance(item.id, 1, due_date, priority='Someday')


def test_cancel_returns_remaining_reservation(tracker, make_item, due_date):
    item = make_item(quantity=10)
    task = tracker.schedule_maintenance(item.id, 5, due_date)
    tracker.record_progress(task.id, 2)

    task = tracker.cancel_task(task.id)
    assert task.status == 'Cancelled'
    assert task.maintained_quantity == 2
    assert _breakdown(item.id) == (10, 0)


def test_cancelled_task_rejects_further_progress(tracker, make_item, due_date):
    item = make_item(quantity=10)
    task = tracker.schedule_maintenance(item.id, 5, due_date)
    tracker.cancel_task(task.id)
    with pytest.raises(InvalidStatusTransition):
        tracker.record_progress(task.id, 1)
    with pytest.raises(InvalidStatusTransition):
        tracker.cancel_task(task.id)
    assert _breakdown(item.id) == (10, 0)


def test_completed_status_requires_reconciled_quantities(tracker, make_item, due_date):
    item = make_item(quantity=10)
    task = tracker.schedule_maintenance(item.id, 4, due_date)
    tracker.record_progress(task.id, 1)

    with pytest.raises(InvalidStatusTransition) as exc:
        tracker.update_status(task.id, 'Completed')
    assert '1 of 4' in str(exc.value)
    assert tracker.get_task(task.id).status == 'In Progress'


def test_status_update_to_cancelled_releases_units(tracker, make_item, due_date):
    item = make_item(quantity=6)
    task = tracker.schedule_maintenance(item.id, 6, due_date)
    task = tracker.update_status(task.id, 'Cancelled')
    assert task.status == 'Cancelled'
    assert _breakdown(item.id) == (6, 0)


def test_status_update_to_in_progress(tracker, make_item, due_date):
    item = make_item()
    task = tracker.schedule_maintenance(item.id, 1, due_date)
    task = tracker.update_status(task.id, 'In Progress')
    assert task.status == 'In Progress'
    assert task.updated_by == 'tech'


def test_overdue_status_requires_passed_due_date(tracker, make_item, due_date):
    item = make_item()
    task = tracker.schedule_maintenance(item.id, 1, due_date)
    with pytest.raises(InvalidStatusTransition):
        tracker.update_status(task.id, 'Overdue')
    task = tracker.update_status(task.id, 'Overdue', now=due_date + timedelta(days=1))
    assert task.status == 'Overdue'


def test_unknown_status_rejected(tracker, make_item, due_date):
    item = make_item()
    task = tracker.schedule_maintenance(item.id, 1, due_date)
    with pytest.raises(InvalidStatusTransition):
        tracker.update_status(task.id, 'Paused')


def test_refresh_overdue_marks_only_open_past_due_tasks(tracker, make_item):
    item = make_item(quantity=10)
    now = datetime.utcnow()
    late = tracker.schedule_maintenance(item.id, 1, now + timedelta(days=1), scheduled_date=now - timedelta(days=5))
    on_time = tracker.schedule_maintenance(item.id, 1, now + timedelta(days=30))
    done = tracker.schedule_maintenance(item.id, 1, now + timedelta(days=1))
    tracker.record_progress(done.id, 1)

    updated = tracker.refresh_overdue(now=now + timedelta(days=2))

    assert updated == 1
    assert tracker.get_task(late.id).status == 'Overdue'
    assert tracker.get_task(on_time.id).status == 'Scheduled'
    assert tracker.get_task(done.id).status == 'Completed'


def test_overdue_task_can_still_complete(tracker, make_item, due_date):
    item = make_item(quantity=4)
    task = tracker.schedule_maintenance(item.id, 2, due_date)
    tracker.update_status(task.id, 'Overdue', now=due_date + timedelta(hours=1))
    task = tracker.record_progress(task.id, 1)
    assert task.status == 'Overdue'
    task = tracker.record_progress(task.id, 2)
    assert task.status == 'Completed'
    assert _breakdown(item.id) == (4, 0)


def test_effective_status_derives_overdue(tracker, make_item, due_date):
    item = make_item()
    task = tracker.schedule_maintenance(item.id, 1, due_date)
    assert tracker.effective_status(task, now=due_date - timedelta(days=1)) == 'Scheduled'
    assert tracker.effective_status(task, now=due_date + timedelta(days=1)) == 'Overdue'

    progress = MaintenanceService.get_progress(task.id, now=due_date + timedelta(days=1))
    assert progress['effective_status'] == 'Overdue'
    assert progress['status'] == 'Scheduled'
    assert progress['remaining_quantity'] == 1


def test_status_after_progress_rules():
    assert maintenance_status.status_after_progress('Scheduled', 0, 3) == 'Scheduled'
    assert maintenance_status.status_after_progress('Scheduled', 1, 3) == 'In Progress'
    assert maintenance_status.status_after_progress('Overdue', 2, 3) == 'Overdue'
    assert maintenance_status.status_after_progress('In Progress', 3, 3) == 'Completed'


def test_days_until_due(tracker, make_item):
    item = make_item()
    now = datetime(2026, 1, 1, 12, 0)
    task = tracker.schedule_maintenance(item.id, 1, datetime(2026, 1, 4, 12, 0), scheduled_date=now)
    assert task.days_until_due(now) == 3


def _state(item_id):
    record = QuantityRecord.read(item_id)
    return record.condition, record.maintenance_needs


def test_scheduling_marks_item_for_maintenance(tracker, make_item, due_date):
    item = make_item(quantity=3)
    tracker.schedule_maintenance(item.id, 1, due_date)
    assert _state(item.id) == ('Good', 'Scheduled')
    assert not BorrowingEligibilityEvaluator.is_borrowable(QuantityRecord.read(item.id))


def test_reserving_every_available_unit_sets_under_maintenance(tracker, make_item, due_date):
    item = make_item(quantity=2)
    tracker.schedule_maintenance(item.id, 2, due_date)
    assert _state(item.id) == ('Under Maintenance', 'Scheduled')


def test_completion_restores_item_when_maintenance_drains(tracker, make_item, due_date):
    item = make_item(quantity=2, condition='Needs Repair')
    task = tracker.schedule_maintenance(item.id, 2, due_date)

    tracker.record_progress(task.id, 1)
    assert _state(item.id) == ('Under Maintenance', 'Scheduled')

    tracker.record_progress(task.id, 2)
    assert _state(item.id) == ('Good', 'No')
    assert BorrowingEligibilityEvaluator.is_borrowable(QuantityRecord.read(item.id))


def test_item_stays_scheduled_while_another_task_holds_units(tracker, make_item, due_date):
    item = make_item(quantity=5)
    first = tracker.schedule_maintenance(item.id, 1, due_date)
    tracker.schedule_maintenance(item.id, 1, due_date)

    tracker.record_progress(first.id, 1)
    assert _state(item.id) == ('Good', 'Scheduled')


def test_cancel_releases_item_without_repairing_it(tracker, make_item, due_date):
    item = make_item(quantity=4, condition='Needs Repair')
    task = tracker.schedule_maintenance(item.id, 1, due_date)
    tracker.cancel_task(task.id)
    assert _state(item.id) == ('Needs Repair', 'Yes')

    other = make_item(quantity=1)
    task = tracker.schedule_maintenance(other.id, 1, due_date)
    assert _state(other.id) == ('Under Maintenance', 'Scheduled')
    tracker.cancel_task(task.id)
    assert _state(other.id) == ('Good', 'No')


def test_repeated_completion_keeps_later_condition_edits(tracker, make_item, due_date):
    item = make_item(quantity=2)
    task = tracker.schedule_maintenance(item.id, 1, due_date)
    tracker.record_progress(task.id, 1)
    InventoryManager().update_state(item.id, condition='Damaged', maintenance_needs='Yes')

    tracker.record_progress(task.id, 1)
    assert _state(item.id) == ('Damaged', 'Yes')


def test_change_quantity_grows_and_shrinks_reservation(tracker, make_item, due_date):
    item = make_item(quantity=10)
    task = tracker.schedule_maintenance(item.id, 3, due_date)

    task = tracker.change_quantity(task.id, 5)
    assert task.quantity == 5
    assert _breakdown(item.id) == (5, 5)

    tracker.record_progress(task.id, 2)
    task = tracker.change_quantity(task.id, 4)
    assert (task.quantity, task.remaining_quantity, task.status) == (4, 2, 'In Progress')
    assert _breakdown(item.id) == (8, 2)

    movements = [m.movement_type for m in QuantityMovement.query.filter_by(item_id=item.id).all()]
    assert movements.count('MaintenanceRelease') == 1


def test_change_quantity_to_maintained_count_completes_task(tracker, make_item, due_date):
    item = make_item(quantity=6)
    task = tracker.schedule_maintenance(item.id, 4, due_date)
    tracker.record_progress(task.id, 1)

    task = tracker.change_quantity(task.id, 1)
    assert task.status == 'Completed'
    assert task.completed_date is not None
    assert _breakdown(item.id) == (6, 0)
    assert _state(item.id) == ('Good', 'No')


def test_change_quantity_rejections(tracker, make_item, due_date):
    item = make_item(quantity=4)
    task = tracker.schedule_maintenance(item.id, 3, due_date)
    tracker.record_progress(task.id, 2)

    with pytest.raises(InsufficientAvailability):
        tracker.change_quantity(task.id, 7)
    with pytest.raises(InvalidQuantity):
        tracker.change_quantity(task.id, 1)
    with pytest.raises(InvalidQuantity):
        tracker.change_quantity(task.id, 0)
    assert tracker.get_task(task.id).quantity == 3
    assert _breakdown(item.id) == (3, 1)

    tracker.cancel_task(task.id)
    with pytest.raises(InvalidStatusTransition):
        tracker.change_quantity(task.id, 3)
    assert _breakdown(item.id) == (4, 0)
