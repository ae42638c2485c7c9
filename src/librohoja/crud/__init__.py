from .crud_user import (
    get_user_by_id,
    get_user_by_email,
    create_user,
    register_user,
    authenticate_user,
    get_or_create_oauth_user,
    get_users,
    list_user_choices,
    get_user_detail,
    update_user_role,
    set_user_status,
    update_profile,
)
from .crud_book import (
    create_book,
    get_book_by_id,
    get_book_by_isbn,
    get_book_with_reviews,
    list_books,
    search_books,
    update_book,
    delete_book,
    get_book_stats,
)
from .crud_review import create_review, get_reviews_for_book, get_review_by_id
from .crud_transaction import (
    checkout_book,
    self_checkout,
    checkin_book,
    get_transaction_by_id,
    get_active_transactions_for_user,
    list_transactions,
    get_transaction_stats,
)
from .crud_chapter import (
    get_chapters_for_book,
    get_chapter,
    get_chapter_count,
    create_chapter,
    bulk_create_chapters,
    update_chapter,
    delete_chapter,
    reorder_chapters,
)

__all__ = [
    "get_user_by_id",
    "get_user_by_email",
    "create_user",
    "register_user",
    "authenticate_user",
    "get_or_create_oauth_user",
    "get_users",
    "list_user_choices",
    "get_user_detail",
    "update_user_role",
    "set_user_status",
    "update_profile",
    "create_book",
    "get_book_by_id",
    "get_book_by_isbn",
    "get_book_with_reviews",
    "list_books",
    "search_books",
    "update_book",
    "delete_book",
    "get_book_stats",
    "create_review",
    "get_reviews_for_book",
    "get_review_by_id",
    "checkout_book",
    "self_checkout",
    "checkin_book",
    "get_transaction_by_id",
    "get_active_transactions_for_user",
    "list_transactions",
    "get_transaction_stats",
    "get_chapters_for_book",
    "get_chapter",
    "get_chapter_count",
    "create_chapter",
    "bulk_create_chapters",
    "update_chapter",
    "delete_chapter",
    "reorder_chapters",
]
