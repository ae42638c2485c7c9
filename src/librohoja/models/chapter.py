from typing import Optional

from librohoja.models.base import StoredRecord


class Chapter(StoredRecord):
    """A chapter of a book; `chapter_number` orders chapters within one book."""
    book_id: str
    chapter_number: int = 0
    title: str = ""
    summary: str = ""
    content: str = ""
    added_by: Optional[str] = None

    def __repr__(self) -> str:
        return f"<Chapter(id={self.id}, book_id={self.book_id}, number={self.chapter_number}, title='{self.title[:30]}')>"
