"""
Core models package for the lab quantity ledger
"""

from .ledger_record_base import LedgerRecordBase

__all__ = [
    'LedgerRecordBase',
]
