from datetime import datetime

from sqlalchemy import update

from app import db
from app.buisness.inventory.ledger_errors import InvalidStatusTransition
from app.buisness.inventory.status.status_validator import LedgerStatusValidator


def claim_status(model, entity_type, record_id, expected_status, new_status, performed_by=None, **values):
    """
    Move a record from `expected_status` to `new_status` with one conditioned UPDATE.

    The WHERE clause repeats the expected status, so two admins acting on the same
    request cannot both win: the loser sees zero rows and gets InvalidStatusTransition.
    Extra column values are written in the same statement.
    """
    label = entity_type.replace('_', ' ')
    if not LedgerStatusValidator.can_transition(entity_type, expected_status, new_status):
        raise InvalidStatusTransition(label, record_id, expected_status, new_status)

    values['status'] = new_status
    values['updated_at'] = datetime.utcnow()
    if performed_by:
        values['updated_by'] = performed_by

    db.session.flush()
    result = db.session.execute(
        update(model)
        .where(model.id == record_id, model.status == expected_status)
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise InvalidStatusTransition(label, record_id, expected_status, new_status,
                                      "the record changed in the meantime")
    db.session.expire_all()
