"""
Script para crear los datos iniciales de LibroHoja.

Crea las tres cuentas de demostración (admin, librarian y member) y un
catálogo inicial de clásicos con algunos capítulos. Es idempotente: las
cuentas se buscan por email y el catálogo solo se crea si no hay libros.

Uso:
    python scripts/seed_data.py
    La carpeta de datos se toma de DATA_DIR (ver .env).
"""

import logging
import sys
from typing import Any, Dict, List

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)

from librohoja.core.config import settings
from librohoja.core.security import get_password_hash
from librohoja.crud.crud_book import create_book
from librohoja.crud.crud_chapter import bulk_create_chapters
from librohoja.crud.crud_user import create_user, get_user_by_email
from librohoja.db.session import LibraryDB, SessionLocal
from librohoja.models.user import Provider, Role, User
from librohoja.schemas.book import BookCreate
from librohoja.schemas.chapter import BulkChapterItem
from librohoja.schemas.common import Actor
from librohoja.schemas.user import UserCreate

DEMO_ACCOUNTS: List[Dict[str, Any]] = [
    {"name": "Admin User", "email": "admin@library.com", "role": Role.ADMIN},
    {"name": "Librarian User", "email": "librarian@library.com", "role": Role.LIBRARIAN},
    {"name": "Member User", "email": "member@library.com", "role": Role.MEMBER},
]

STARTER_BOOKS: List[Dict[str, Any]] = [
    {"title": "Pride and Prejudice", "author": "Jane Austen", "isbn": "9780141439518",
     "genre": "Romance", "publishYear": 1813, "publisher": "T. Egerton", "totalCopies": 3,
     "description": "Elizabeth Bennet navigates manners, marriage and first impressions in Regency England."},
    {"title": "Frankenstein", "author": "Mary Shelley", "isbn": "9780486282114",
     "genre": "Horror", "publishYear": 1818, "publisher": "Lackington", "totalCopies": 2,
     "description": "A young scientist creates a living being and must face the consequences."},
    {"title": "The Adventures of Sherlock Holmes", "author": "Arthur Conan Doyle", "isbn": "9780140437713",
     "genre": "Mystery", "publishYear": 1892, "publisher": "George Newnes", "totalCopies": 3,
     "description": "Twelve cases solved by the detective of Baker Street and his friend Dr. Watson."},
    {"title": "The Time Machine", "author": "H. G. Wells", "isbn": "9780451530707",
     "genre": "Science Fiction", "publishYear": 1895, "publisher": "Heinemann", "totalCopies": 2,
     "description": "A Victorian inventor travels to the distant future and finds humanity divided."},
    {"title": "Moby-Dick", "author": "Herman Melville", "isbn": "9780142437247",
     "genre": "Adventure", "publishYear": 1851, "publisher": "Harper & Brothers", "totalCopies": 1,
     "description": "Captain Ahab's obsessive quest for the white whale."},
    {"title": "Meditations", "author": "Marcus Aurelius", "isbn": "9780140449334",
     "genre": "Philosophy", "publishYear": 180, "publisher": "", "totalCopies": 2,
     "description": "Private notes of a Roman emperor on duty, virtue and the meaning of existence."},
]

STARTER_CHAPTERS: Dict[str, List[Dict[str, str]]] = {
    "The Time Machine": [
        {"title": "The Inventor", "summary": "The Time Traveller explains the fourth dimension to his guests.",
         "content": "The Time Traveller was expounding a recondite matter to us. Time is only a kind of space."},
        {"title": "The Machine", "summary": "A model of the machine vanishes before the guests.",
         "content": "The little machine suddenly swung round, became indistinct, and was gone."},
    ],
    "Frankenstein": [
        {"title": "Letter 1", "summary": "Robert Walton writes to his sister from St. Petersburg.",
         "content": "You will rejoice to hear that no disaster has accompanied the commencement of an enterprise."},
    ],
}


def seed_accounts(db: LibraryDB) -> Actor:
    """
    Crea las cuentas de demostración que falten.

    El administrador se escribe directamente (no hay nadie que pueda crearlo);
    el resto se crean a través de create_user con el administrador como actor.

    Returns:
        Actor: El administrador, para usarlo en el resto del sembrado.
    """
    admin_account = DEMO_ACCOUNTS[0]
    admin = get_user_by_email(db, admin_account["email"])
    if admin is None:
        record = db.users.create({
            "name": admin_account["name"],
            "email": admin_account["email"],
            "password": get_password_hash(settings.DEMO_PASSWORD),
            "role": Role.ADMIN.value,
            "provider": Provider.LOCAL.value,
            "isActive": True,
            "theme": "light",
        })
        admin = User.from_record(record)
        logger.info(f"  Cuenta creada: {admin.email} ({admin.role.value})")
    admin_actor = Actor.from_user(admin)

    for account in DEMO_ACCOUNTS[1:]:
        if get_user_by_email(db, account["email"]):
            logger.info(f"  Cuenta ya existe: {account['email']}. Saltando.")
            continue
        user_in = UserCreate(name=account["name"], email=account["email"], password=settings.DEMO_PASSWORD, role=account["role"])
        user = create_user(db, user_in, actor=admin_actor)
        logger.info(f"  Cuenta creada: {user.email} ({user.role.value})")
    return admin_actor


def seed_catalog(db: LibraryDB, actor: Actor) -> int:
    """Crea el catálogo inicial si la colección de libros está vacía."""
    if db.books.count():
        logger.info("El catálogo ya tiene libros. Saltando.")
        return 0

    added = 0
    for data in STARTER_BOOKS:
        book = create_book(db, BookCreate.model_validate(data), actor)
        added += 1
        chapters = STARTER_CHAPTERS.get(book.title)
        if chapters:
            items = [BulkChapterItem.model_validate(ch) for ch in chapters]
            bulk_create_chapters(db, book.id, items, actor)
        logger.info(f"  Añadido: '{book.title}' ({book.total_copies} ejemplares)")
    return added


def seed() -> None:
    db = SessionLocal()
    logger.info(f"--- Sembrando datos en {db.data_dir} ---")
    admin = seed_accounts(db)
    added = seed_catalog(db, admin)
    logger.info(f"--- Sembrado finalizado: {added} libros añadidos. ---")


if __name__ == "__main__":
    try:
        seed()
    except Exception as main_exc:
        logger.exception(f"Error CRÍTICO durante el sembrado: {main_exc}")
        sys.exit(1)
