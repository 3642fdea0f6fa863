"""
Inventory API
Item registration, quantity breakdowns, total-quantity edits, borrowing switch and disposal.
"""

from flask import Blueprint, jsonify, request

from app.buisness.inventory.disposal_manager import DisposalManager
from app.buisness.inventory.inventory_manager import InventoryManager
from app.presentation.routes.api import (
    json_body,
    ledger_action,
    parse_bool,
    performed_by,
)
from app.services.inventory.inventory_service import InventoryService
from app.utils.logger import get_logger

logger = get_logger("lab_ledger.routes.api.inventory")

bp = Blueprint('inventory_api', __name__)

STATE_FIELDS = ('condition', 'maintenance_needs', 'calibration', 'status', 'category')


@bp.post('')
@ledger_action("register an inventory item")
def create_item():
    data = json_body()
    item = InventoryManager(performed_by=performed_by(data)).create_item(data)
    return jsonify({'success': True, 'item': InventoryService.get_quantity_breakdown(item.id)}), 201


@bp.get('/borrowable')
def borrowable_items():
    category = request.args.get('category', type=str)
    return jsonify({'success': True, 'items': InventoryService.get_borrowable_items(category)})


@bp.get('/<int:item_id>')
@ledger_action("load an inventory item")
def item_detail(item_id):
    return jsonify({'success': True, 'item': InventoryService.get_quantity_breakdown(item_id)})


@bp.get('/<int:item_id>/movements')
@ledger_action("load item movements")
def item_movements(item_id):
    InventoryService.get_quantity_breakdown(item_id)
    movement_type = request.args.get('type', type=str)
    limit = request.args.get('limit', default=100, type=int)
    movements = InventoryService.get_movement_history(item_id, movement_type=movement_type, limit=limit)
    return jsonify({'success': True, 'movements': [m.to_dict() for m in movements]})


@bp.put('/<int:item_id>/quantity')
@ledger_action("adjust total quantity")
def adjust_quantity(item_id):
    data = json_body()
    InventoryManager(performed_by=performed_by(data)).adjust_quantity(item_id, data.get('quantity'))
    logger.info(f"Total quantity of item {item_id} set to {data.get('quantity')}")
    return jsonify({'success': True, 'item': InventoryService.get_quantity_breakdown(item_id)})


@bp.put('/<int:item_id>/borrowing-status')
@ledger_action("change borrowing status")
def set_borrowing_status(item_id):
    data = json_body()
    can_be_borrowed = parse_bool(data.get('can_be_borrowed'), 'can_be_borrowed')
    InventoryManager(performed_by=performed_by(data)).set_borrowing_status(item_id, can_be_borrowed)
    return jsonify({'success': True, 'item': InventoryService.get_quantity_breakdown(item_id)})


@bp.put('/<int:item_id>/state')
@ledger_action("update item state")
def update_state(item_id):
    data = json_body()
    fields = {key: data[key] for key in STATE_FIELDS if key in data}
    InventoryManager(performed_by=performed_by(data)).update_state(item_id, **fields)
    return jsonify({'success': True, 'item': InventoryService.get_quantity_breakdown(item_id)})


@bp.post('/<int:item_id>/dispose')
@ledger_action("dispose units")
def dispose_item(item_id):
    data = json_body()
    transaction = DisposalManager(performed_by=performed_by(data)).dispose_now(
        item_id,
        data.get('quantity'),
        data.get('reason'),
        category=data.get('category'),
        disposal_method=data.get('disposal_method', 'Other'),
        description=data.get('description'),
        notes=data.get('notes'),
    )
    return jsonify({
        'success': True,
        'disposal': transaction.to_dict(),
        'item': InventoryService.get_quantity_breakdown(item_id),
    }), 201
