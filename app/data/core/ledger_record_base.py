from app import db
from datetime import datetime
from sqlalchemy.orm import declared_attr
from app.buisness.core.data_insertion_mixin import DataInsertionMixin


class LedgerRecordBase(db.Model, DataInsertionMixin):
    """Abstract base class for all ledger entities with audit trail"""

    __abstract__ = True

    @declared_attr
    def __tablename__(cls):
        return cls.__name__.lower() + 's'

    id = db.Column(db.Integer, primary_key=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    created_by = db.Column(db.String(100), nullable=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    updated_by = db.Column(db.String(100), nullable=True)
