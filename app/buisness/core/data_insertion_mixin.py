"""
Generic data insertion mixin for SQLAlchemy models
Provides from_dict and to_dict methods for serialization

Mixed into every ledger model through LedgerRecordBase. Audit fields are plain
actor names because authentication lives outside this application.
"""

from enum import Enum
from datetime import date, datetime

from sqlalchemy import inspect

from app.utils.logger import get_logger

logger = get_logger("lab_ledger.core.data_insertion")

AUDIT_FIELDS = ('created_at', 'updated_at', 'created_by', 'updated_by')


class DataInsertionMixin:
    """
    Mixin that provides generic data insertion capabilities for SQLAlchemy models

    This mixin adds:
    - from_dict(): Create model instance from dictionary
    - to_dict(): Convert model instance to dictionary
    """

    @classmethod
    def from_dict(cls, data_dict, performed_by=None, skip_fields=None):
        """
        Create a model instance from a dictionary

        Args:
            data_dict (dict): Dictionary containing model data
            performed_by (str, optional): Actor name for audit fields
            skip_fields (list, optional): Fields to skip during creation

        Returns:
            Model instance (not saved to database)
        """
        if skip_fields is None:
            skip_fields = []

        mapper = inspect(cls)
        columns = {c.key for c in mapper.column_attrs}

        filtered_data = {}
        for key, value in data_dict.items():
            if key not in columns:
                logger.debug(f"Ignoring unknown field '{key}' for {cls.__name__}")
                continue
            if key in skip_fields:
                continue
            if key in ('created_at', 'updated_at') and value is None:
                continue
            filtered_data[key] = value

        instance = cls(**filtered_data)

        if performed_by is not None:
            if not instance.created_by:
                instance.created_by = performed_by
            instance.updated_by = performed_by

        return instance

    def to_dict(self, include_audit_fields=True):
        """
        Convert model instance to dictionary

        Args:
            include_audit_fields (bool): Whether to include audit fields

        Returns:
            dict: Dictionary representation of the model, including any
            derived values reported by `_computed_fields()`
        """
        result = {}
        mapper = inspect(self.__class__)

        for attr in mapper.column_attrs:
            if not include_audit_fields and attr.key in AUDIT_FIELDS:
                continue
            result[attr.key] = _serialize(getattr(self, attr.key))

        for key, value in self._computed_fields().items():
            result[key] = _serialize(value)

        return result

    def _computed_fields(self):
        return {}


def _serialize(value):
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    return value
