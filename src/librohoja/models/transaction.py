from datetime import datetime
from enum import Enum
from typing import Optional

from librohoja.core.timeutils import utc_now
from librohoja.models.base import StoredRecord, UtcDatetime


class TransactionStatus(str, Enum):
    ACTIVE = "active"
    RETURNED = "returned"


class Transaction(StoredRecord):
    """
    A loan of one copy of a book to one user.

    `return_date` stays empty until the loan is checked in. At most one
    active transaction exists per (book_id, user_id) pair.
    """
    book_id: str
    user_id: str
    type: str = "checkout"
    checkout_date: Optional[UtcDatetime] = None
    due_date: Optional[UtcDatetime] = None
    return_date: Optional[UtcDatetime] = None
    status: TransactionStatus = TransactionStatus.ACTIVE
    notes: str = ""
    processed_by: Optional[str] = None

    @property
    def is_active(self) -> bool:
        return self.status == TransactionStatus.ACTIVE

    def is_overdue(self, now: Optional[datetime] = None) -> bool:
        if not self.is_active or self.due_date is None:
            return False
        return self.due_date < (now or utc_now())

    def __repr__(self) -> str:
        return f"<Transaction(id={self.id}, book_id={self.book_id}, user_id={self.user_id}, status={self.status.value})>"
