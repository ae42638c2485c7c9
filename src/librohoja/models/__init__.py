from .book import Book
from .chapter import Chapter
from .review import Review
from .transaction import Transaction, TransactionStatus
from .user import Provider, Role, STAFF_ROLES, User

__all__ = [
    "Book",
    "Chapter",
    "Review",
    "Transaction",
    "TransactionStatus",
    "Provider",
    "Role",
    "STAFF_ROLES",
    "User",
]
