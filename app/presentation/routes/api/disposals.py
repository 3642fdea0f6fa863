from flask import Blueprint, jsonify

from app.buisness.inventory.disposal_manager import DisposalManager
from app.presentation.routes.api import json_body, ledger_action, performed_by, require_id

bp = Blueprint('disposals_api', __name__)


@bp.post('')
@ledger_action("request a disposal")
def request_disposal():
    data = json_body()
    transaction = DisposalManager(performed_by=performed_by(data)).request_disposal(
        require_id(data, 'item_id'),
        data.get('quantity'),
        data.get('reason'),
        category=data.get('category'),
        disposal_method=data.get('disposal_method', 'Other'),
        description=data.get('description'),
        notes=data.get('notes'),
    )
    return jsonify({'success': True, 'disposal': transaction.to_dict()}), 201


@bp.get('/<int:transaction_id>')
@ledger_action("load a disposal")
def disposal_detail(transaction_id):
    transaction = DisposalManager().get_transaction(transaction_id)
    return jsonify({'success': True, 'disposal': transaction.to_dict()})


@bp.post('/<int:transaction_id>/complete')
@ledger_action("complete a disposal")
def complete_disposal(transaction_id):
    data = json_body()
    transaction = DisposalManager(performed_by=performed_by(data)).complete_disposal(transaction_id)
    return jsonify({'success': True, 'disposal': transaction.to_dict()})


@bp.post('/<int:transaction_id>/cancel')
@ledger_action("cancel a disposal")
def cancel_disposal(transaction_id):
    data = json_body()
    transaction = DisposalManager(performed_by=performed_by(data)).cancel_disposal(
        transaction_id, notes=data.get('notes'))
    return jsonify({'success': True, 'disposal': transaction.to_dict()})
