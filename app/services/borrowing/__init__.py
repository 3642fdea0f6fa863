"""
Borrowing Services
Presentation services for borrow requests
"""

from .borrowing_service import BorrowingService

__all__ = [
    'BorrowingService',
]
