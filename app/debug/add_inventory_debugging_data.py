#!/usr/bin/env python3
"""
Inventory Debug Data Insertion
Inserts sample items and a maintenance task from debug_data.json

Uses the business managers so seeded rows go through the same ledger rules
as admin actions.
"""

import json
from datetime import datetime, timedelta
from pathlib import Path

from app.buisness.maintenance.maintenance_tracker import MaintenanceTracker
from app.buisness.inventory.inventory_manager import InventoryManager
from app.data.inventory.inventory_item import InventoryItem
from app.utils.logger import get_logger

logger = get_logger("lab_ledger.debug.inventory")

DEBUG_DATA_FILE = Path(__file__).parent / 'debug_data.json'
SYSTEM_ACTOR = 'system'


def load_debug_data(path=DEBUG_DATA_FILE):
    with open(path, 'r') as f:
        return json.load(f)


def insert_inventory_debug_data(debug_data=None):
    """
    Insert debug items and maintenance tasks. Items whose code already exists are skipped.

    Raises:
        Exception: If insertion fails (fail-fast)
    """
    if debug_data is None:
        debug_data = load_debug_data()
    if not debug_data:
        logger.info("No inventory debug data to insert")
        return {}

    manager = InventoryManager(performed_by=SYSTEM_ACTOR)
    tracker = MaintenanceTracker(performed_by=SYSTEM_ACTOR)
    summary = {'items': 0, 'maintenance': 0}

    for item_data in debug_data.get('items', []):
        if InventoryItem.query.filter_by(item_code=item_data['item_code']).first():
            logger.debug(f"Debug item {item_data['item_code']} already present")
            continue
        manager.create_item(item_data)
        summary['items'] += 1

    for task_data in debug_data.get('maintenance', []):
        item = InventoryItem.query.filter_by(item_code=task_data['item_code']).first()
        if item is None or item.maintenance_tasks.count():
            continue
        tracker.schedule_maintenance(
            item.id,
            task_data['quantity'],
            datetime.utcnow() + timedelta(days=task_data.get('due_in_days', 7)),
            maintenance_type=task_data.get('maintenance_type', 'Maintenance'),
            priority=task_data.get('priority', 'Medium'),
            assigned_to_name=task_data.get('assigned_to_name'),
        )
        summary['maintenance'] += 1

    logger.info(f"Inventory debug data inserted: {summary}")
    return summary
