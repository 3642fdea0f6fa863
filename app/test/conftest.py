"""
Pytest configuration and fixtures for the quantity ledger tests
"""
import logging
import os
import tempfile
from datetime import datetime, timedelta

import pytest

# Configure the environment before the app package creates its logger
os.environ.setdefault('SECRET_KEY', 'test_secret_key_for_ledger_testing')
os.environ.setdefault('LOG_DIR', tempfile.mkdtemp(prefix='lab_ledger_logs_'))
os.environ.setdefault('LOG_LEVEL', 'CRITICAL')
os.environ['DATABASE_URL'] = 'sqlite://'

from app import create_app  # noqa: E402
from app import db as _db  # noqa: E402
from app.buisness.inventory.inventory_manager import InventoryManager  # noqa: E402


@pytest.fixture(scope='session')
def app():
    """Create Flask application for testing"""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite://',
        'WTF_CSRF_ENABLED': False,
        'RATELIMIT_ENABLED': False,
        'ENABLE_HTTPS': False,
        'FORCE_HTTPS_REDIRECT': False,
        'SESSION_COOKIE_SECURE': False,
        'LEDGER_MAX_ATTEMPTS': 3,
    })

    with app.app_context():
        yield app


@pytest.fixture(autouse=True)
def database(app):
    """Fresh schema for every test"""
    _db.create_all()
    yield _db
    _db.session.remove()
    _db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create Flask test client"""
    return app.test_client()


@pytest.fixture
def make_item():
    """Register an item through the manager; keyword arguments override the defaults."""
    counter = {'n': 0}

    def _make_item(**overrides):
        counter['n'] += 1
        data = {
            'item_code': f"TEST-{counter['n']:03d}",
            'name': f"Test item {counter['n']}",
            'category': 'Equipment',
            'condition': 'Good',
            'quantity': 10,
        }
        data.update(overrides)
        return InventoryManager(performed_by='tester').create_item(data)

    return _make_item


@pytest.fixture
def due_date():
    return datetime.utcnow() + timedelta(days=7)


class _RecordingHandler(logging.Handler):
    def __init__(self):
        super().__init__(level=logging.DEBUG)
        self.records = []

    def emit(self, record):
        self.records.append(record)


@pytest.fixture
def ledger_log_records():
    """Records emitted on the ledger's logger tree during the test"""
    handler = _RecordingHandler()
    root = logging.getLogger('lab_ledger')
    root.addHandler(handler)
    yield handler.records
    root.removeHandler(handler)
