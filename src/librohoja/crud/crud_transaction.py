"""
Préstamos y devoluciones.

Cada préstamo escribe en dos colecciones (Transactions y Books). Las
precondiciones se comprueban antes de cualquier escritura y, si la segunda
escritura falla, se compensa la primera antes de relanzar el error.
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from ..core.config import settings
from ..core.exceptions import (
    CapacityExceededError,
    DuplicateError,
    InvalidStateError,
    LimitExceededError,
    NotFoundError,
    PermissionDeniedError,
)
from ..core.timeutils import to_iso, utc_now, utc_now_iso
from ..db.session import LibraryDB
from ..models.book import Book
from ..models.transaction import Transaction, TransactionStatus
from ..models.user import Role, STAFF_ROLES
from ..schemas.common import Actor, Page
from ..schemas.transaction import CheckoutRequest, TransactionDetail, TransactionStats
from .utils import load_book, require_role

logger = logging.getLogger(__name__)

ACTIVE = TransactionStatus.ACTIVE.value
RETURNED = TransactionStatus.RETURNED.value


def get_active_transactions_for_user(db: LibraryDB, user_id: str) -> List[Transaction]:
    records = db.transactions.find(lambda t: t.get("userId") == user_id and t.get("status") == ACTIVE)
    return [Transaction.from_record(r) for r in records]


def get_transaction_by_id(db: LibraryDB, transaction_id: str) -> Optional[Transaction]:
    record = db.transactions.find_by_id(transaction_id)
    return Transaction.from_record(record) if record else None


def _void_transaction(db: LibraryDB, transaction_id: str) -> None:
    try:
        db.transactions.delete(transaction_id)
        logger.warning(f"Transaction {transaction_id} voided after the book update failed")
    except Exception as e:
        logger.exception(f"Could not void transaction {transaction_id}; copy counts may drift: {e}")


def _checkout(
    db: LibraryDB,
    book_id: str,
    user_id: str,
    processed_by: str,
    due_date: Optional[datetime],
    notes: str,
    self_service: bool,
) -> Transaction:
    limit = settings.MAX_ACTIVE_CHECKOUTS

    with db.consistency_lock:
        book = load_book(db, book_id)
        if book.available_copies <= 0:
            raise CapacityExceededError("No copies available" if self_service else "No copies available for checkout")

        if not self_service and db.users.find_by_id(user_id) is None:
            raise NotFoundError("User not found")

        active = get_active_transactions_for_user(db, user_id)
        if len(active) >= limit:
            if self_service:
                raise LimitExceededError(f"Maximum checkout limit reached ({limit} books)")
            raise LimitExceededError(f"User has reached maximum checkout limit ({limit} books)")

        if any(t.book_id == book_id for t in active):
            if self_service:
                raise DuplicateError("You already have this book checked out")
            raise DuplicateError("User already has this book checked out")

        now = utc_now()
        due = due_date or now + timedelta(days=settings.LOAN_PERIOD_DAYS)
        record = db.transactions.create({
            "bookId": book_id,
            "userId": user_id,
            "type": "checkout",
            "checkoutDate": to_iso(now),
            "dueDate": to_iso(due),
            "returnDate": None,
            "status": ACTIVE,
            "notes": notes,
            "processedBy": processed_by,
        })

        try:
            updated = db.books.update(book_id, {"availableCopies": book.available_copies - 1})
            if updated is None:
                raise NotFoundError("Book not found")
        except Exception:
            _void_transaction(db, record["id"])
            raise

    logger.info(f"Book {book_id} checked out to user {user_id} (transaction {record['id']}, processed by {processed_by})")
    return Transaction.from_record(record)


def checkout_book(db: LibraryDB, request: CheckoutRequest, actor: Actor) -> Transaction:
    """
    Presta un ejemplar a un usuario, gestionado por el personal.

    Las precondiciones se evalúan en orden y gana el primer fallo: el libro
    existe, quedan ejemplares, el usuario existe, no supera el límite de
    préstamos activos y no tiene ya ese libro prestado.

    Args:
        db (LibraryDB): Colecciones de la biblioteca.
        request (CheckoutRequest): Libro, usuario, vencimiento y notas.
        actor (Actor): Admin o librarian que tramita el préstamo.

    Returns:
        Transaction: El préstamo activo creado.

    Raises:
        NotFoundError, CapacityExceededError, LimitExceededError, DuplicateError
    """
    require_role(actor, *STAFF_ROLES)
    return _checkout(
        db,
        book_id=request.book_id,
        user_id=request.user_id,
        processed_by=actor.id,
        due_date=request.due_date,
        notes=request.notes or "",
        self_service=False,
    )


def self_checkout(db: LibraryDB, book_id: str, actor: Actor) -> Transaction:
    """Préstamo en el que quien lo pide es también el prestatario. Cualquier rol."""
    if actor is None:
        raise PermissionDeniedError("Authentication required")
    return _checkout(
        db,
        book_id=book_id,
        user_id=actor.id,
        processed_by=actor.id,
        due_date=None,
        notes="Self-checkout",
        self_service=True,
    )


def checkin_book(db: LibraryDB, transaction_id: str, actor: Actor, notes: Optional[str] = None) -> Transaction:
    """
    Registra la devolución de un préstamo activo.

    Marca el préstamo como devuelto y suma un ejemplar disponible al libro,
    sin superar total_copies. Si el libro ya no existe solo se cierra el préstamo.

    Raises:
        NotFoundError: Si el préstamo no existe.
        InvalidStateError: Si el préstamo ya estaba devuelto.
    """
    require_role(actor, *STAFF_ROLES)

    with db.consistency_lock:
        transaction = get_transaction_by_id(db, transaction_id)
        if transaction is None:
            raise NotFoundError("Transaction not found")
        if transaction.status != TransactionStatus.ACTIVE:
            raise InvalidStateError("Book already returned")

        book_record = db.books.find_by_id(transaction.book_id)
        new_notes = f"{transaction.notes or ''} | Return note: {notes}" if notes else transaction.notes
        updated = db.transactions.update(transaction_id, {
            "status": RETURNED,
            "returnDate": utc_now_iso(),
            "notes": new_notes,
        })

        if book_record is None:
            logger.warning(f"Transaction {transaction_id} returned for missing book {transaction.book_id}")
        else:
            book = Book.from_record(book_record)
            try:
                db.books.update(book.id, {"availableCopies": min(book.total_copies, book.available_copies + 1)})
            except Exception:
                logger.exception(f"Restoring transaction {transaction_id} to active after the book update failed")
                db.transactions.update(transaction_id, {
                    "status": ACTIVE,
                    "returnDate": None,
                    "notes": transaction.notes,
                })
                raise

    logger.info(f"Transaction {transaction_id} checked in by {actor.id}")
    return Transaction.from_record(updated)


def _with_details(transactions: List[Transaction], db: LibraryDB) -> List[TransactionDetail]:
    books = {r.get("id"): r for r in db.books.read_all()}
    users = {r.get("id"): r for r in db.users.read_all()}
    details = []
    for t in transactions:
        book = books.get(t.book_id, {})
        user = users.get(t.user_id, {})
        extra: Dict[str, Any] = {
            "bookTitle": book.get("title") or "Unknown",
            "bookAuthor": book.get("author") or "Unknown",
            "userName": user.get("name") or "Unknown",
            "userEmail": user.get("email") or "Unknown",
        }
        details.append(TransactionDetail.model_validate({**t.to_record(), **extra}))
    return details


def _newest_first(transactions: List[Transaction]) -> List[Transaction]:
    return sorted(transactions, key=lambda t: t.created_at.timestamp() if t.created_at else 0, reverse=True)


def list_transactions(
    db: LibraryDB,
    actor: Actor,
    status: Optional[str] = None,
    user_id: Optional[str] = None,
    book_id: Optional[str] = None,
    type: Optional[str] = None,
    page: int = 1,
    limit: int = 20,
) -> Page[TransactionDetail]:
    """
    Lista préstamos, del más reciente al más antiguo, con libro y usuario resueltos.

    Los miembros solo ven sus propios préstamos.
    """
    if actor is None:
        raise PermissionDeniedError("Authentication required")

    transactions = [Transaction.from_record(r) for r in db.transactions.read_all()]
    if actor.role == Role.MEMBER:
        transactions = [t for t in transactions if t.user_id == actor.id]
    if status:
        transactions = [t for t in transactions if t.status.value == status]
    if user_id:
        transactions = [t for t in transactions if t.user_id == user_id]
    if book_id:
        transactions = [t for t in transactions if t.book_id == book_id]
    if type:
        transactions = [t for t in transactions if t.type == type]

    details = _with_details(_newest_first(transactions), db)
    return Page[TransactionDetail].build(details, page=page, limit=limit)


def get_transaction_stats(db: LibraryDB, now: Optional[datetime] = None) -> TransactionStats:
    now = now or utc_now()
    transactions = [Transaction.from_record(r) for r in db.transactions.read_all()]
    return TransactionStats(
        active=sum(1 for t in transactions if t.is_active),
        overdue=sum(1 for t in transactions if t.is_overdue(now)),
        returned=sum(1 for t in transactions if t.status == TransactionStatus.RETURNED),
        total=len(transactions),
        recent=_with_details(_newest_first(transactions)[:10], db),
    )
