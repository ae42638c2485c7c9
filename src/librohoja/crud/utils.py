"""
Comprobaciones compartidas por las operaciones CRUD.
"""

import logging
import math
from typing import Optional

from ..core.exceptions import NotFoundError, PermissionDeniedError
from ..db.session import LibraryDB
from ..models.book import Book
from ..models.user import Role
from ..schemas.common import Actor

logger = logging.getLogger(__name__)


def require_role(actor: Optional[Actor], *roles: Role) -> Actor:
    """
    Comprueba que el llamante tiene uno de los roles indicados.

    Raises:
        PermissionDeniedError: Si no hay llamante o su rol no está permitido.
    """
    if actor is None:
        raise PermissionDeniedError("Authentication required")
    if actor.role not in roles:
        logger.warning(f"User {actor.id} with role '{actor.role.value}' denied; requires {[r.value for r in roles]}")
        raise PermissionDeniedError("Insufficient permissions")
    return actor


def load_book(db: LibraryDB, book_id: str) -> Book:
    """Devuelve el libro o lanza NotFoundError."""
    record = db.books.find_by_id(book_id)
    if record is None:
        raise NotFoundError("Book not found")
    return Book.from_record(record)


def round_half_up(value: float, digits: int = 1) -> float:
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor
