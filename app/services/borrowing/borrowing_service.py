from datetime import datetime
from typing import List, Optional

from app.data.borrowing.borrowing_record import ACTIVE_BORROWING_STATUSES, BorrowingRecord


class BorrowingService:
    """Read-only queries over borrow requests."""

    @staticmethod
    def get_active_borrowings(item_id: int, now: Optional[datetime] = None) -> List[BorrowingRecord]:
        """Requests currently counting against the item: open status, return date not passed."""
        now = now or datetime.utcnow()
        records = (BorrowingRecord.query
                   .filter(BorrowingRecord.item_id == item_id,
                           BorrowingRecord.status.in_(sorted(ACTIVE_BORROWING_STATUSES)))
                   .order_by(BorrowingRecord.created_at.asc())
                   .all())
        return [record for record in records if record.is_active(now)]

    @staticmethod
    def list_borrowings(status: Optional[str] = None, item_id: Optional[int] = None) -> List[BorrowingRecord]:
        query = BorrowingRecord.query
        if status:
            query = query.filter_by(status=status)
        if item_id:
            query = query.filter_by(item_id=item_id)
        return query.order_by(BorrowingRecord.created_at.desc()).all()
