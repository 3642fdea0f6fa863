"""
Tests for the borrowing workflow and its ledger effects
"""
from datetime import datetime, timedelta

import pytest

from app.buisness.borrowing.borrowing_workflow import BorrowingWorkflow
from app.buisness.inventory.inventory_manager import InventoryManager
from app.buisness.inventory.ledger_errors import (
    BorrowingNotAllowed,
    InsufficientAvailability,
    InvalidStatusTransition,
)
from app.buisness.inventory.quantity_record import QuantityRecord
from app.data.borrowing.borrowing_record import BorrowingRecord
from app.services.borrowing.borrowing_service import BorrowingService


@pytest.fixture
def workflow(app):
    return BorrowingWorkflow(performed_by='lab admin')


def _buckets(item_id):
    record = QuantityRecord.read(item_id)
    assert record.violations() == []
    return record.available, record.borrowed


def test_request_reserves_nothing(workflow, make_item):
    item = make_item(quantity=3)
    record = workflow.request(item.id, 'Ada', 2, purpose='Titration lab')
    assert record.status == 'pending'
    assert _buckets(item.id) == (3, 0)


def test_approve_then_return(workflow, make_item):
    item = make_item(quantity=3)
    record = workflow.request(item.id, 'Ada', 2)

    workflow.approve(record.id)
    assert _buckets(item.id) == (1, 2)

    workflow.release(record.id)
    assert _buckets(item.id) == (1, 2)

    record = workflow.mark_returned(record.id, remarks='Returned clean')
    assert record.status == 'returned'
    assert record.actual_return_date is not None
    assert record.admin_remarks == 'Returned clean'
    assert _buckets(item.id) == (3, 0)


def test_reject_pending_moves_nothing(workflow, make_item):
    item = make_item(quantity=3)
    record = workflow.request(item.id, 'Ada')
    workflow.reject(record.id)
    assert _buckets(item.id) == (3, 0)


def test_reject_approved_releases_units(workflow, make_item):
    item = make_item(quantity=3)
    record = workflow.request(item.id, 'Ada', 3)
    workflow.approve(record.id)
    assert _buckets(item.id) == (0, 3)
    workflow.reject(record.id)
    assert _buckets(item.id) == (3, 0)


def test_approval_rechecks_availability(workflow, make_item):
    item = make_item(quantity=2)
    first = workflow.request(item.id, 'Ada', 2)
    second = workflow.request(item.id, 'Grace', 1)
    workflow.approve(first.id)

    with pytest.raises(InsufficientAvailability):
        workflow.approve(second.id)
    assert workflow.get_record(second.id).status == 'pending'
    assert _buckets(item.id) == (0, 2)


def test_approval_rechecks_eligibility(workflow, make_item):
    item = make_item(quantity=2)
    record = workflow.request(item.id, 'Ada')
    InventoryManager().update_state(item.id, condition='Damaged')

    with pytest.raises(BorrowingNotAllowed):
        workflow.approve(record.id)
    assert workflow.get_record(record.id).status == 'pending'


def test_request_rejected_when_item_restricted(workflow, make_item):
    item = make_item(quantity=2)
    InventoryManager().set_borrowing_status(item.id, False)
    with pytest.raises(BorrowingNotAllowed):
        workflow.request(item.id, 'Ada')
    assert BorrowingRecord.query.count() == 0


def test_invalid_transitions_rejected(workflow, make_item):
    item = make_item(quantity=2)
    record = workflow.request(item.id, 'Ada')
    with pytest.raises(InvalidStatusTransition):
        workflow.release(record.id)
    with pytest.raises(InvalidStatusTransition):
        workflow.update_status(record.id, 'lost')

    workflow.reject(record.id)
    with pytest.raises(InvalidStatusTransition):
        workflow.approve(record.id)


def test_returning_twice_releases_once(workflow, make_item):
    item = make_item(quantity=2)
    record = workflow.request(item.id, 'Ada')
    workflow.approve(record.id)
    workflow.mark_returned(record.id)
    with pytest.raises(InvalidStatusTransition):
        workflow.mark_returned(record.id)
    assert _buckets(item.id) == (2, 0)


def test_refresh_overdue_and_return(workflow, make_item):
    item = make_item(quantity=2)
    now = datetime.utcnow()
    record = workflow.request(item.id, 'Ada', intended_borrow_date=now, intended_return_date=now + timedelta(days=1))
    workflow.approve(record.id)
    workflow.release(record.id)

    assert workflow.refresh_overdue(now=now + timedelta(days=2)) == 1
    assert workflow.get_record(record.id).status == 'overdue'

    workflow.update_status(record.id, 'returned')
    assert _buckets(item.id) == (2, 0)


def test_active_borrowings(workflow, make_item):
    item = make_item(quantity=5)
    now = datetime.utcnow()
    open_request = workflow.request(item.id, 'Ada', intended_return_date=now + timedelta(days=3))
    stale = workflow.request(item.id, 'Grace', intended_return_date=now - timedelta(days=1))
    rejected = workflow.request(item.id, 'Alan')
    workflow.reject(rejected.id)

    active = BorrowingService.get_active_borrowings(item.id, now=now)
    assert [r.id for r in active] == [open_request.id]
    assert not stale.is_active(now)


def test_request_validates_dates_and_name(workflow, make_item):
    item = make_item()
    now = datetime.utcnow()
    with pytest.raises(ValueError):
        workflow.request(item.id, '')
    with pytest.raises(ValueError):
        workflow.request(item.id, 'Ada', intended_borrow_date=now, intended_return_date=now - timedelta(days=1))
