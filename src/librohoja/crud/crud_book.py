"""
Operaciones CRUD para los libros del catálogo.
Incluye el alta y la edición (con reajuste de ejemplares disponibles), la
búsqueda con filtros y ordenación, y las estadísticas del catálogo.
Pensado para ser utilizado por la capa HTTP y por el asistente conversacional.
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional

from ..core.exceptions import NotFoundError, ValidationError
from ..db.session import LibraryDB
from ..models.book import Book
from ..models.review import Review
from ..models.user import Role, STAFF_ROLES
from ..schemas.book import BookCreate, BookPage, BookStats, BookUpdate, BookWithReviews
from ..schemas.common import Actor
from .utils import load_book, require_role

logger = logging.getLogger(__name__)

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)

SORT_OPTIONS = ("title", "author", "year", "rating", "newest")


def _newest_first(books: List[Book]) -> List[Book]:
    return sorted(books, key=lambda b: b.created_at or _EPOCH, reverse=True)


def create_book(db: LibraryDB, book: BookCreate, actor: Actor) -> Book:
    """
    Da de alta un libro con todos sus ejemplares disponibles.

    Args:
        db (LibraryDB): Colecciones de la biblioteca.
        book (BookCreate): Datos del libro.
        actor (Actor): Quién realiza el alta (admin o librarian).

    Returns:
        Book: El libro creado.
    """
    require_role(actor, *STAFF_ROLES)
    fields = book.model_dump(by_alias=True)
    fields.update(
        availableCopies=book.total_copies,
        rating=0,
        ratingCount=0,
        addedBy=actor.id,
    )
    created = Book.from_record(db.books.create(fields))
    logger.info(f"Book {created.id} '{created.title}' added by {actor.id} with {created.total_copies} copies")
    return created


def get_book_by_id(db: LibraryDB, book_id: str) -> Optional[Book]:
    """
    Recupera un libro por su ID.

    Args:
        db (LibraryDB): Colecciones de la biblioteca.
        book_id (str): ID del libro a recuperar.

    Returns:
        Optional[Book]: El libro si se encuentra, None si no existe.
    """
    record = db.books.find_by_id(book_id)
    return Book.from_record(record) if record else None


def get_book_by_isbn(db: LibraryDB, isbn: str) -> Optional[Book]:
    """
    Recupera un libro por su ISBN.

    Args:
        db (LibraryDB): Colecciones de la biblioteca.
        isbn (str): ISBN del libro a recuperar.

    Returns:
        Optional[Book]: El libro si se encuentra, None si no existe.
    """
    if not isbn:
        return None
    record = db.books.find_one(lambda r: str(r.get("isbn", "")) == isbn)
    return Book.from_record(record) if record else None


def get_book_with_reviews(db: LibraryDB, book_id: str) -> BookWithReviews:
    """Libro junto con todas sus reseñas. Lanza NotFoundError si no existe."""
    book = load_book(db, book_id)
    reviews = [Review.from_record(r) for r in db.reviews.find(lambda r: r.get("bookId") == book_id)]
    return BookWithReviews(book=book, reviews=reviews)


def list_books(db: LibraryDB) -> List[Book]:
    return [Book.from_record(r) for r in db.books.read_all()]


def search_books(
    db: LibraryDB,
    query: Optional[str] = None,
    genre: Optional[str] = None,
    author: Optional[str] = None,
    year: Optional[int] = None,
    available: bool = False,
    sort: Optional[str] = None,
    page: int = 1,
    limit: int = 20,
) -> BookPage:
    """
    Busca libros según un término general y filtros opcionales.

    Args:
        db (LibraryDB): Colecciones de la biblioteca.
        query (Optional[str]): Término buscado en título, autor, ISBN, género o descripción.
        genre (Optional[str]): Género exacto, sin distinción de mayúsculas.
        author (Optional[str]): Filtra por autor (coincidencia parcial).
        year (Optional[int]): Año de publicación exacto.
        available (bool): Solo libros con ejemplares disponibles.
        sort (Optional[str]): title, author, year, rating o newest (por defecto).
        page (int): Página a devolver, empezando en 1.
        limit (int): Libros por página.

    Returns:
        BookPage: Página de libros y lista ordenada de todos los géneros.
    """
    if sort and sort not in SORT_OPTIONS:
        raise ValidationError(f"Unknown sort option '{sort}'")

    all_books = list_books(db)
    books = all_books

    if query:
        q = query.lower()
        books = [
            b for b in books
            if any(q in (value or "").lower() for value in (b.title, b.author, b.isbn, b.genre, b.description))
        ]
    if genre:
        books = [b for b in books if b.genre.lower() == genre.lower()]
    if author:
        books = [b for b in books if author.lower() in b.author.lower()]
    if year is not None:
        books = [b for b in books if str(b.publish_year) == str(year)]
    if available:
        books = [b for b in books if b.available_copies > 0]

    if sort == "title":
        books = sorted(books, key=lambda b: b.title.casefold())
    elif sort == "author":
        books = sorted(books, key=lambda b: b.author.casefold())
    elif sort == "year":
        books = sorted(books, key=lambda b: b.publish_year or 0, reverse=True)
    elif sort == "rating":
        books = sorted(books, key=lambda b: b.rating or 0, reverse=True)
    else:
        books = _newest_first(books)

    genres = sorted({b.genre for b in all_books if b.genre})
    return BookPage.build(books, page=page, limit=limit, genres=genres)


def update_book(db: LibraryDB, book_id: str, changes: BookUpdate, actor: Actor) -> Book:
    """
    Edita los campos permitidos de un libro.

    Si cambia total_copies, available_copies se desplaza en la misma diferencia
    sin bajar de cero.

    Raises:
        NotFoundError: Si el libro no existe.
    """
    require_role(actor, *STAFF_ROLES)
    updates = changes.model_dump(exclude_unset=True, by_alias=True)
    updates = {k: v for k, v in updates.items() if v is not None or k == "publishYear"}

    with db.consistency_lock:
        existing = load_book(db, book_id)
        if "totalCopies" in updates:
            diff = updates["totalCopies"] - existing.total_copies
            updates["availableCopies"] = max(0, existing.available_copies + diff)
        record = db.books.update(book_id, updates)

    if record is None:
        raise NotFoundError("Book not found")
    logger.info(f"Book {book_id} updated by {actor.id}: {sorted(updates)}")
    return Book.from_record(record)


def delete_book(db: LibraryDB, book_id: str, actor: Actor) -> bool:
    """
    Borra un libro. Solo administradores.

    No borra en cascada capítulos, reseñas ni préstamos: quedan huérfanos y
    los listados los muestran como "Unknown".
    """
    require_role(actor, Role.ADMIN)
    if not db.books.delete(book_id):
        raise NotFoundError("Book not found")
    logger.info(f"Book {book_id} deleted by {actor.id}")
    return True


def get_book_stats(db: LibraryDB) -> BookStats:
    books = list_books(db)
    genres = {}
    for b in books:
        if b.genre:
            genres[b.genre] = genres.get(b.genre, 0) + 1
    return BookStats(
        total=len(books),
        available=sum(1 for b in books if b.available_copies > 0),
        checked_out=sum(b.checked_out_copies for b in books),
        genres=genres,
        top_rated=sorted(books, key=lambda b: b.rating or 0, reverse=True)[:5],
        recently_added=_newest_first(books)[:5],
    )
