"""
Tests for the pure ledger policies: status transitions, borrowing eligibility, vocabularies
"""
import pytest

from app.buisness.inventory.borrowing_eligibility import BorrowingEligibilityEvaluator
from app.buisness.inventory.quantity_record import QuantityRecord
from app.buisness.inventory.status.status_validator import LedgerStatusValidator
from app.data.inventory.item_vocabulary import ItemCategory


def _record(**overrides):
    values = dict(
        item_id=1, version=1, quantity=3, available=3, borrowed=0, maintenance=0, disposal=0,
        category='Equipment', condition='Good', maintenance_needs='No', calibration='No',
        status='Active', can_be_borrowed=True,
    )
    values.update(overrides)
    return QuantityRecord(**values)


@pytest.mark.parametrize('entity, current, new, allowed', [
    ('maintenance_task', 'Scheduled', 'In Progress', True),
    ('maintenance_task', 'Overdue', 'Completed', True),
    ('maintenance_task', 'Completed', 'In Progress', False),
    ('maintenance_task', 'Cancelled', 'Scheduled', False),
    ('disposal', 'Pending', 'Completed', True),
    ('disposal', 'Completed', 'Cancelled', False),
    ('borrowing', 'pending', 'approved', True),
    ('borrowing', 'pending', 'returned', False),
    ('borrowing', 'released', 'overdue', True),
    ('borrowing', 'overdue', 'returned', True),
    ('borrowing', 'returned', 'approved', False),
    ('borrowing', 'pending', 'lost', False),
])
def test_status_transitions(entity, current, new, allowed):
    assert LedgerStatusValidator.can_transition(entity, current, new) is allowed


def test_terminal_statuses():
    assert LedgerStatusValidator.is_terminal('maintenance_task', 'Completed')
    assert LedgerStatusValidator.is_terminal('disposal', 'Cancelled')
    assert not LedgerStatusValidator.is_terminal('borrowing', 'released')


@pytest.mark.parametrize('condition', ['Excellent', 'Good', 'Fair'])
def test_borrowable_conditions(condition):
    assert BorrowingEligibilityEvaluator.is_borrowable(_record(condition=condition))


@pytest.mark.parametrize('overrides', [
    {'can_be_borrowed': False},
    {'condition': 'Poor'},
    {'condition': 'Under Maintenance'},
    {'maintenance_needs': 'Yes'},
    {'status': 'Expired'},
    {'available': 0, 'borrowed': 3},
])
def test_not_borrowable(overrides):
    assert not BorrowingEligibilityEvaluator.is_borrowable(_record(**overrides))


def test_eligibility_reports_partial_availability():
    result = BorrowingEligibilityEvaluator.evaluate(_record(available=1, borrowed=2), requested_quantity=2)
    assert not result.can_borrow
    assert result.borrowing_available_quantity == 1
    assert 'Only 1' in result.reason


def test_restricted_flag_only_for_admin_override():
    assert BorrowingEligibilityEvaluator.evaluate(_record(can_be_borrowed=False)).restricted
    assert not BorrowingEligibilityEvaluator.evaluate(_record(condition='Damaged')).restricted


def test_category_enumeration():
    assert ItemCategory.parse('Liquids') is ItemCategory.LIQUIDS
    assert [c.value for c in ItemCategory if c.disposal_eligible] == ['Consumables', 'Liquids']
    assert 'Safety Gear' in ItemCategory.labels()
    with pytest.raises(ValueError):
        ItemCategory.parse('Snacks')
