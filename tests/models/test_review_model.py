# tests/models/test_review_model.py
from datetime import datetime, timedelta, timezone

import pydantic
import pytest

from librohoja.models.chapter import Chapter
from librohoja.models.review import Review
from librohoja.models.transaction import Transaction, TransactionStatus


def test_review_from_record():
    """Test creating a valid Review from a stored record."""
    review = Review.from_record({
        "id": "r1",
        "bookId": "b1",
        "userId": "u1",
        "userName": "Ana",
        "rating": 4,
        "comment": "This is a test review.",
        "createdAt": "2024-05-01T10:00:00.000Z",
    })

    assert review.rating == 4
    assert review.user_name == "Ana"
    assert review.created_at == datetime(2024, 5, 1, 10, tzinfo=timezone.utc)


def test_review_requires_rating():
    with pytest.raises(pydantic.ValidationError):
        Review.from_record({"id": "r1", "bookId": "b1", "userId": "u1"})


def test_transaction_overdue():
    now = datetime(2024, 5, 20, tzinfo=timezone.utc)
    late = Transaction(id="t1", book_id="b1", user_id="u1", due_date=now - timedelta(days=1))
    on_time = Transaction(id="t2", book_id="b1", user_id="u1", due_date=now + timedelta(days=1))
    returned = Transaction(
        id="t3", book_id="b1", user_id="u1",
        due_date=now - timedelta(days=1), status=TransactionStatus.RETURNED,
    )

    assert late.is_overdue(now)
    assert not on_time.is_overdue(now)
    assert not returned.is_overdue(now)
    assert late.is_active and not returned.is_active


def test_naive_dates_are_utc():
    transaction = Transaction.from_record({
        "id": "t1", "bookId": "b1", "userId": "u1", "dueDate": "2024-05-01T10:00:00",
    })
    assert transaction.due_date.tzinfo == timezone.utc


def test_chapter_defaults():
    chapter = Chapter.from_record({"id": "c1", "bookId": "b1", "title": "Opening"})

    assert chapter.chapter_number == 0
    assert chapter.content == ""
    assert repr(chapter) == "<Chapter(id=c1, book_id=b1, number=0, title='Opening')>"
