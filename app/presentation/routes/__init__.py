"""
Routes package for the lab quantity ledger
JSON blueprints mounted under /api
"""

from flask import Blueprint, jsonify
from flask_wtf.csrf import generate_csrf

from app.utils.logger import get_logger

logger = get_logger("lab_ledger.routes")

main = Blueprint('main', __name__)


@main.get('/api/csrf-token')
def csrf_token():
    """Token for the X-CSRFToken header required on mutating requests."""
    return jsonify({'csrf_token': generate_csrf()})


def init_app(app):
    """Initialize all route blueprints with the Flask app"""
    logger.debug("Initializing route blueprints")

    from .api import borrowings, disposals, inventory, maintenance

    app.register_blueprint(main)
    app.register_blueprint(inventory.bp, url_prefix='/api/inventory')
    app.register_blueprint(maintenance.bp, url_prefix='/api/maintenance')
    app.register_blueprint(disposals.bp, url_prefix='/api/disposals')
    app.register_blueprint(borrowings.bp, url_prefix='/api/borrowings')

    logger.info("All route blueprints registered successfully")
