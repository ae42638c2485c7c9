from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from librohoja.models.transaction import Transaction


class CheckoutRequest(BaseModel):
    """Staff-mediated loan of `book_id` to `user_id`."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    book_id: str = Field(..., min_length=1)
    user_id: str = Field(..., min_length=1)
    due_date: Optional[datetime] = None
    notes: Optional[str] = None


class TransactionDetail(Transaction):
    """A transaction with the book and borrower it points at, resolved for display."""
    book_title: str = "Unknown"
    book_author: str = "Unknown"
    user_name: str = "Unknown"
    user_email: str = "Unknown"


class TransactionStats(BaseModel):
    active: int
    overdue: int
    returned: int
    total: int
    recent: List[TransactionDetail]
