#!/usr/bin/env python3
"""
Build orchestrator for the Lab Quantity Ledger
Creates the schema and optionally inserts debug data
"""

from app import create_app, db
from app.utils.logger import get_logger

logger = get_logger("lab_ledger.build")


def build_models():
    """Create every ledger table that does not exist yet"""
    from app.data.inventory.inventory_item import InventoryItem
    from app.data.inventory.quantity_movement import QuantityMovement
    from app.data.inventory.disposal_transaction import DisposalTransaction
    from app.data.maintenance.maintenance_task import MaintenanceTask
    from app.data.borrowing.borrowing_record import BorrowingRecord

    db.create_all()
    logger.info("Ledger tables created: " + ", ".join(model.__tablename__ for model in (
        InventoryItem, QuantityMovement, DisposalTransaction, MaintenanceTask, BorrowingRecord)))


def build_database(enable_debug_data=False, app=None):
    """
    Build the database

    Args:
        enable_debug_data (bool): Whether to insert sample items (default: False)
        app: Flask app to build for; a new one is created when omitted
    """
    app = app or create_app()

    with app.app_context():
        logger.info("Starting database build")
        build_models()

        if enable_debug_data:
            from app.debug.add_inventory_debugging_data import insert_inventory_debug_data
            logger.info("Inserting debug data...")
            try:
                insert_inventory_debug_data()
            except Exception as e:
                logger.error(f"Debug data insertion failed: {e}")
                raise

        logger.info("Database build completed successfully")
    return app
