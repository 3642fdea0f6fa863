"""
Borrowing API
Borrow requests and their status transitions.
"""

from flask import Blueprint, jsonify, request

from app.buisness.borrowing.borrowing_workflow import BorrowingWorkflow
from app.presentation.routes.api import (
    json_body,
    ledger_action,
    parse_datetime,
    performed_by,
    require_id,
)
from app.services.borrowing.borrowing_service import BorrowingService

bp = Blueprint('borrowings_api', __name__)


@bp.get('')
def list_borrowings():
    item_id = request.args.get('item_id', type=int)
    if item_id and request.args.get('active', type=str) == 'true':
        records = BorrowingService.get_active_borrowings(item_id)
    else:
        records = BorrowingService.list_borrowings(
            status=request.args.get('status', type=str), item_id=item_id)
    return jsonify({'success': True, 'borrowings': [record.to_dict() for record in records]})


@bp.post('')
@ledger_action("request a borrowing")
def request_borrowing():
    data = json_body()
    record = BorrowingWorkflow(performed_by=performed_by(data)).request(
        require_id(data, 'item_id'),
        data.get('borrower_name'),
        data.get('quantity', 1),
        purpose=data.get('purpose'),
        intended_borrow_date=parse_datetime(data.get('intended_borrow_date'), 'intended_borrow_date'),
        intended_return_date=parse_datetime(data.get('intended_return_date'), 'intended_return_date'),
    )
    return jsonify({'success': True, 'borrowing': record.to_dict()}), 201


@bp.post('/refresh-overdue')
@ledger_action("refresh overdue borrowings")
def refresh_overdue():
    data = json_body()
    updated = BorrowingWorkflow(performed_by=performed_by(data)).refresh_overdue()
    return jsonify({'success': True, 'updated': updated})


@bp.get('/<int:borrowing_id>')
@ledger_action("load a borrowing")
def borrowing_detail(borrowing_id):
    record = BorrowingWorkflow().get_record(borrowing_id)
    return jsonify({'success': True, 'borrowing': record.to_dict()})


@bp.put('/<int:borrowing_id>/status')
@ledger_action("update borrowing status")
def update_status(borrowing_id):
    data = json_body()
    record = BorrowingWorkflow(performed_by=performed_by(data)).update_status(
        borrowing_id, data.get('status'), remarks=data.get('admin_remarks'))
    return jsonify({'success': True, 'borrowing': record.to_dict()})
