"""
Maintenance Service
Presentation service for maintenance task progress and listings.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from app import db
from app.buisness.inventory.ledger_errors import RecordNotFound
from app.buisness.maintenance import maintenance_status
from app.data.maintenance.maintenance_task import MaintenanceTask


class MaintenanceService:
    """Read-only views of maintenance tasks."""

    @staticmethod
    def get_progress(task_id: int, now: Optional[datetime] = None) -> Dict[str, Any]:
        """
        Progress-bar data for one task.

        `effective_status` reports Overdue for an open task past its due date even
        before the stored status has been refreshed.
        """
        task = db.session.get(MaintenanceTask, task_id)
        if task is None:
            raise RecordNotFound("Maintenance task", task_id)
        now = now or datetime.utcnow()

        data = task.to_dict()
        data['effective_status'] = maintenance_status.effective_status(task.status, task.due_date, now)
        data['days_until_due'] = task.days_until_due(now)
        return data

    @staticmethod
    def list_tasks(status: Optional[str] = None, item_id: Optional[int] = None) -> List[MaintenanceTask]:
        query = MaintenanceTask.query
        if status:
            query = query.filter_by(status=status)
        if item_id:
            query = query.filter_by(item_id=item_id)
        return query.order_by(MaintenanceTask.due_date.asc()).all()
