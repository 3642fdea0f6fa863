"""
Maintenance API
Scheduling, partial completion, status updates and cancellation of maintenance tasks.
"""

from flask import Blueprint, jsonify, request

from app.buisness.maintenance.maintenance_tracker import MaintenanceTracker
from app.presentation.routes.api import (
    json_body,
    ledger_action,
    parse_datetime,
    performed_by,
    require_id,
)
from app.services.maintenance.maintenance_service import MaintenanceService

bp = Blueprint('maintenance_api', __name__)


@bp.get('')
def list_tasks():
    status = request.args.get('status', type=str)
    item_id = request.args.get('item_id', type=int)
    tasks = MaintenanceService.list_tasks(status=status, item_id=item_id)
    return jsonify({'success': True, 'tasks': [task.to_dict() for task in tasks]})


@bp.post('')
@ledger_action("schedule maintenance")
def schedule_maintenance():
    data = json_body()
    task = MaintenanceTracker(performed_by=performed_by(data)).schedule_maintenance(
        require_id(data, 'item_id'),
        data.get('quantity'),
        parse_datetime(data.get('due_date'), 'due_date', required=True),
        scheduled_date=parse_datetime(data.get('scheduled_date'), 'scheduled_date'),
        maintenance_type=data.get('maintenance_type', 'Maintenance'),
        priority=data.get('priority', 'Medium'),
        assigned_to_name=data.get('assigned_to_name'),
        description=data.get('description'),
        notes=data.get('notes'),
    )
    return jsonify({'success': True, 'task': MaintenanceService.get_progress(task.id)}), 201


@bp.post('/refresh-overdue')
@ledger_action("refresh overdue maintenance")
def refresh_overdue():
    data = json_body()
    updated = MaintenanceTracker(performed_by=performed_by(data)).refresh_overdue()
    return jsonify({'success': True, 'updated': updated})


@bp.get('/<int:task_id>')
@ledger_action("load a maintenance task")
def task_detail(task_id):
    return jsonify({'success': True, 'task': MaintenanceService.get_progress(task_id)})


@bp.put('/<int:task_id>/quantity')
@ledger_action("record maintenance progress")
def record_progress(task_id):
    data = json_body()
    MaintenanceTracker(performed_by=performed_by(data)).record_progress(task_id, data.get('maintained_quantity'))
    return jsonify({'success': True, 'task': MaintenanceService.get_progress(task_id)})


@bp.put('/<int:task_id>/reserved-quantity')
@ledger_action("change maintenance quantity")
def change_quantity(task_id):
    data = json_body()
    MaintenanceTracker(performed_by=performed_by(data)).change_quantity(task_id, data.get('quantity'))
    return jsonify({'success': True, 'task': MaintenanceService.get_progress(task_id)})


@bp.put('/<int:task_id>/status')
@ledger_action("update maintenance status")
def update_status(task_id):
    data = json_body()
    MaintenanceTracker(performed_by=performed_by(data)).update_status(task_id, data.get('status'))
    return jsonify({'success': True, 'task': MaintenanceService.get_progress(task_id)})


@bp.post('/<int:task_id>/cancel')
@ledger_action("cancel maintenance")
def cancel_task(task_id):
    data = json_body()
    MaintenanceTracker(performed_by=performed_by(data)).cancel_task(task_id)
    return jsonify({'success': True, 'task': MaintenanceService.get_progress(task_id)})
