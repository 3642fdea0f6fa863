from .borrowing_record import BorrowingRecord

__all__ = ['BorrowingRecord']
