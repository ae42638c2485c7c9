import logging
from typing import List, Optional

from ..core.exceptions import DuplicateError, NotFoundError, ValidationError
from ..db.session import LibraryDB
from ..models.book import Book
from ..models.review import Review
from ..schemas.review import ReviewCreate
from .utils import load_book, round_half_up

logger = logging.getLogger(__name__)


def _update_book_rating(db: LibraryDB, book_id: str) -> Optional[Book]:
    """
    Recalculates the book's rating as the mean of all its reviews, rounded to
    one decimal, and its rating_count as the number of reviews.
    """
    ratings = [int(r["rating"]) for r in db.reviews.find(lambda r: r.get("bookId") == book_id) if "rating" in r]
    average = round_half_up(sum(ratings) / len(ratings)) if ratings else 0
    record = db.books.update(book_id, {"rating": average, "ratingCount": len(ratings)})
    if record is None:
        raise NotFoundError("Book not found")
    logger.info(f"Book {book_id} rating recomputed: {average} from {len(ratings)} reviews")
    return Book.from_record(record)


def create_review(
    db: LibraryDB,
    review: ReviewCreate,
    user_id: str,
    book_id: str,
    user_name: Optional[str] = None,
) -> Review:
    with db.consistency_lock:
        load_book(db, book_id)
        if review.rating is None or not 1 <= int(review.rating) <= 5:
            raise ValidationError("Rating must be between 1 and 5")

        existing = db.reviews.find_one(lambda r: r.get("bookId") == book_id and r.get("userId") == user_id)
        if existing:
            logger.warning(f"User {user_id} tried to review book {book_id} twice")
            raise DuplicateError("You have already reviewed this book")

        if user_name is None:
            user = db.users.find_by_id(user_id)
            user_name = user.get("name", "") if user else ""

        record = db.reviews.create({
            "bookId": book_id,
            "userId": user_id,
            "userName": user_name,
            "rating": int(review.rating),
            "comment": review.comment or "",
        })

        # --- Update the aggregate; drop the review if that fails ---
        try:
            _update_book_rating(db, book_id)
        except Exception:
            logger.exception(f"Error updating rating for book {book_id}; removing review {record['id']}")
            db.reviews.delete(record["id"])
            raise

    logger.info(f"Review {record['id']} created for book {book_id} by user {user_id}.")
    return Review.from_record(record)


def get_reviews_for_book(db: LibraryDB, book_id: str) -> List[Review]:
    """Reviews of a book, newest first."""
    reviews = [Review.from_record(r) for r in db.reviews.find(lambda r: r.get("bookId") == book_id)]
    return sorted(reviews, key=lambda r: r.created_at.timestamp() if r.created_at else 0, reverse=True)


def get_review_by_id(db: LibraryDB, review_id: str) -> Optional[Review]:
    record = db.reviews.find_by_id(review_id)
    return Review.from_record(record) if record else None
