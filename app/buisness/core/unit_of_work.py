from contextlib import contextmanager

from app import db
from app.utils.logger import get_logger

logger = get_logger("lab_ledger.core.unit_of_work")


@contextmanager
def ledger_transaction():
    """
    Commit everything done inside the block, or nothing.

    Business managers wrap each admin action in one of these so a rejected
    ledger operation never leaves a half-applied record behind.
    """
    try:
        yield db.session
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        logger.debug(f"Rolled back ledger transaction: {type(e).__name__}: {e}")
        raise
