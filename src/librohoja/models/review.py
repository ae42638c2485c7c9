# src/librohoja/models/review.py
from librohoja.models.base import StoredRecord


class Review(StoredRecord):
    book_id: str
    user_id: str
    # Snapshot of the author's name at review time
    user_name: str = ""
    rating: int
    comment: str = ""

    def __repr__(self):
        return f"<Review(id={self.id}, book_id={self.book_id}, user_id={self.user_id}, rating={self.rating})>"
