"""
JSON API for the quantity ledger.

Each area has its own blueprint; `init_app` in the parent package mounts them
under /api. Ledger failures are ValueErrors and come back as
{"success": false, "error": ..., "error_type": ...}.
"""

from datetime import datetime, timezone
from functools import wraps

from flask import jsonify, request

from app.buisness.inventory.ledger_errors import (
    ConcurrentModification,
    InvariantViolation,
    RecordNotFound,
)
from app.utils.logger import get_logger

logger = get_logger("lab_ledger.routes.api")

ERROR_STATUS_CODES = (
    (RecordNotFound, 404),
    (ConcurrentModification, 409),
    (InvariantViolation, 500),
)


def error_response(error, action=None):
    status = 400
    for error_type, code in ERROR_STATUS_CODES:
        if isinstance(error, error_type):
            status = code
            break

    context = f" while trying to {action}" if action else ""
    if status >= 500:
        logger.error(f"Ledger error{context}: {error}", exc_info=True)
    else:
        logger.warning(f"Rejected request{context}: {type(error).__name__}: {error}")

    return jsonify({
        'success': False,
        'error': str(error),
        'error_type': type(error).__name__,
    }), status


def ledger_action(action):
    """Turn ledger rejections raised by the view into JSON error responses."""
    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            try:
                return view(*args, **kwargs)
            except ValueError as e:
                return error_response(e, action)
        return wrapper
    return decorator


def json_body():
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError("Request body must be a JSON object")
    return data


def performed_by(data):
    return data.get('performed_by') or request.headers.get('X-Performed-By')


def require_id(data, field):
    value = data.get(field)
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{field} must be an integer id")
    return value


def parse_datetime(value, field, required=False):
    if value in (None, ''):
        if required:
            raise ValueError(f"{field} is required")
        return None
    if isinstance(value, str) and value.endswith(('Z', 'z')):
        value = value[:-1] + '+00:00'
    try:
        parsed = datetime.fromisoformat(value)
    except (TypeError, ValueError):
        raise ValueError(f"{field} must be an ISO 8601 date or datetime, got {value!r}") from None
    # Stored datetimes are naive UTC
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def parse_bool(value, field):
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.lower() in ('true', 'false'):
        return value.lower() == 'true'
    raise ValueError(f"{field} must be true or false")
