"""
Operaciones CRUD para los capítulos de un libro.

Los capítulos se numeran solos cuando no se indica número: el siguiente al
número de capítulos que ya tiene el libro. No se comprueban colisiones
cuando el número se da explícitamente.
"""

import logging
from typing import List, Sequence

from ..core.exceptions import NotFoundError, ValidationError
from ..db.session import LibraryDB
from ..models.chapter import Chapter
from ..models.user import STAFF_ROLES
from ..schemas.chapter import (
    BulkChapterItem,
    ChapterCreate,
    ChapterList,
    ChapterOrder,
    ChapterUpdate,
)
from ..schemas.common import Actor
from .utils import load_book, require_role

logger = logging.getLogger(__name__)


def _chapters_of(db: LibraryDB, book_id: str) -> List[Chapter]:
    chapters = [Chapter.from_record(r) for r in db.chapters.find(lambda c: c.get("bookId") == book_id)]
    return sorted(chapters, key=lambda c: c.chapter_number or 0)


def get_chapters_for_book(db: LibraryDB, book_id: str) -> ChapterList:
    """
    Capítulos de un libro ordenados por número.

    Raises:
        NotFoundError: Si el libro no existe.
    """
    book = load_book(db, book_id)
    return ChapterList(chapters=_chapters_of(db, book_id), book_title=book.title)


def get_chapter(db: LibraryDB, chapter_id: str) -> Chapter:
    record = db.chapters.find_by_id(chapter_id)
    if record is None:
        raise NotFoundError("Chapter not found")
    return Chapter.from_record(record)


def create_chapter(db: LibraryDB, book_id: str, chapter: ChapterCreate, actor: Actor) -> Chapter:
    """
    Añade un capítulo a un libro.

    Args:
        db (LibraryDB): Colecciones de la biblioteca.
        book_id (str): Libro al que pertenece.
        chapter (ChapterCreate): Datos del capítulo.
        actor (Actor): Admin o librarian.

    Returns:
        Chapter: El capítulo creado; sin número explícito recibe
        (capítulos existentes del libro) + 1.
    """
    require_role(actor, *STAFF_ROLES)
    with db.consistency_lock:
        load_book(db, book_id)
        number = chapter.chapter_number or get_chapter_count(db, book_id) + 1
        record = db.chapters.create({
            "bookId": book_id,
            "chapterNumber": int(number),
            "title": chapter.title,
            "summary": chapter.summary or "",
            "content": chapter.content or "",
            "addedBy": actor.id,
        })
    logger.info(f"Chapter {record['id']} (#{number}) added to book {book_id}")
    return Chapter.from_record(record)


def bulk_create_chapters(
    db: LibraryDB,
    book_id: str,
    chapters: Sequence[BulkChapterItem],
    actor: Actor,
) -> List[Chapter]:
    """
    Añade varios capítulos en una sola escritura.

    Los que no traen número reciben base + posición en la lista, donde base es
    (capítulos existentes del libro) + 1; los que no traen título se llaman
    "Chapter <n>".
    """
    require_role(actor, *STAFF_ROLES)
    if not chapters:
        raise ValidationError("Book ID and chapters array are required")

    with db.consistency_lock:
        load_book(db, book_id)
        start = get_chapter_count(db, book_id) + 1
        items = [
            {
                "bookId": book_id,
                "chapterNumber": ch.chapter_number or (start + i),
                "title": ch.title or f"Chapter {start + i}",
                "summary": ch.summary or "",
                "content": ch.content or "",
                "addedBy": actor.id,
            }
            for i, ch in enumerate(chapters)
        ]
        created = db.chapters.create_many(items)
    logger.info(f"{len(created)} chapters added to book {book_id}")
    return [Chapter.from_record(r) for r in created]


def update_chapter(db: LibraryDB, chapter_id: str, changes: ChapterUpdate, actor: Actor) -> Chapter:
    require_role(actor, *STAFF_ROLES)
    updates = {k: v for k, v in changes.model_dump(exclude_unset=True, by_alias=True).items() if v is not None}
    record = db.chapters.update(chapter_id, updates)
    if record is None:
        raise NotFoundError("Chapter not found")
    return Chapter.from_record(record)


def delete_chapter(db: LibraryDB, chapter_id: str, actor: Actor) -> bool:
    require_role(actor, *STAFF_ROLES)
    if not db.chapters.delete(chapter_id):
        raise NotFoundError("Chapter not found")
    logger.info(f"Chapter {chapter_id} deleted by {actor.id}")
    return True


def reorder_chapters(
    db: LibraryDB,
    book_id: str,
    order: Sequence[ChapterOrder],
    actor: Actor,
) -> List[Chapter]:
    """
    Reasigna números de capítulo.

    Cada par (id, número) se aplica como una actualización independiente;
    no se verifica unicidad ni pertenencia al libro, y los ids desconocidos
    se ignoran.

    Returns:
        List[Chapter]: Capítulos del libro ordenados tras el cambio.
    """
    require_role(actor, *STAFF_ROLES)
    for item in order:
        if db.chapters.update(item.id, {"chapterNumber": int(item.chapter_number)}) is None:
            logger.warning(f"Reorder skipped unknown chapter {item.id}")
    return _chapters_of(db, book_id)


def get_chapter_count(db: LibraryDB, book_id: str) -> int:
    return len(db.chapters.find(lambda c: c.get("bookId") == book_id))
