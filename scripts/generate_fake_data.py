"""
Script para generación de datos falsos en LibroHoja.

Este módulo crea miembros, préstamos y reseñas de prueba utilizando Faker y
las funciones CRUD del proyecto, de modo que se respetan las mismas reglas
(límite de préstamos, una reseña por libro y usuario, ejemplares disponibles).

Uso:
    Ejecutar después de scripts/seed_data.py, que crea el catálogo y la
    cuenta de bibliotecario usada para tramitar los préstamos.

Nota:
    - El script NO crea libros, solo utiliza los existentes.
    - Los usuarios generados tendrán una contraseña común definida en FAKE_PASSWORD.
"""

import random
import logging
import sys
from faker import Faker
from typing import List

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)

from librohoja.core.exceptions import LibraryError
from librohoja.crud.crud_review import create_review
from librohoja.crud.crud_transaction import checkin_book, checkout_book
from librohoja.crud.crud_user import create_user, get_user_by_email
from librohoja.db.session import SessionLocal
from librohoja.models.user import STAFF_ROLES
from librohoja.schemas.common import Actor
from librohoja.schemas.review import ReviewCreate
from librohoja.schemas.transaction import CheckoutRequest
from librohoja.schemas.user import UserCreate

NUM_FAKE_USERS: int = 20
MAX_LOANS_PER_USER: int = 4
MAX_REVIEWS_PER_USER: int = 6
MIN_REVIEWS_PER_USER: int = 1
RETURN_PROBABILITY: float = 0.6
FAKE_PASSWORD: str = "password123"

fake = Faker(['es_ES', 'en_US'])
logger.info("Instancia de Faker creada.")


def generate_data() -> None:
    """
    Genera miembros, préstamos y reseñas falsas.

    Crea miembros con emails únicos; para cada uno tramita algunos préstamos
    (devolviendo parte de ellos) y escribe reseñas para libros existentes.
    Los rechazos de las reglas de negocio se registran y se continúa.
    """
    logger.info("=============================================")
    logger.info(" Iniciando script de generación de datos falsos")
    logger.info("=============================================")

    db = SessionLocal()
    staff = None
    for record in db.users.read_all():
        if record.get("role") in [role.value for role in STAFF_ROLES]:
            staff = Actor(id=record["id"], role=record["role"], name=record.get("name", ""))
            break
    if staff is None:
        logger.error("No hay ninguna cuenta de personal. Ejecuta antes scripts/seed_data.py.")
        return

    logger.info(f"--- Fase 1: Creando/Verificando {NUM_FAKE_USERS} Miembros Falsos ---")
    member_ids: List[str] = []
    for i in range(NUM_FAKE_USERS):
        fake_email: str = fake.unique.safe_email()
        existing_user = get_user_by_email(db, fake_email)
        if existing_user:
            logger.info(f"  ({i+1}/{NUM_FAKE_USERS}) Usuario Encontrado: {existing_user.email} (ID: {existing_user.id})")
            member_ids.append(existing_user.id)
            continue
        try:
            new_user = create_user(db, UserCreate(name=fake.name(), email=fake_email, password=FAKE_PASSWORD))
            member_ids.append(new_user.id)
            logger.info(f"  ({i+1}/{NUM_FAKE_USERS}) Usuario Creado: {new_user.email} (ID: {new_user.id})")
        except LibraryError as e:
            logger.warning(f"  ({i+1}/{NUM_FAKE_USERS}) No se pudo crear {fake_email}: {e.message}")

    book_ids: List[str] = [r["id"] for r in db.books.read_all()]
    if not book_ids:
        logger.error("No hay libros en el catálogo. No se pueden generar préstamos ni reseñas.")
        return
    logger.info(f"Se encontraron {len(book_ids)} libros disponibles.")

    logger.info(f"--- Fase 2: Generando Préstamos (hasta {MAX_LOANS_PER_USER} por miembro) ---")
    total_loans: int = 0
    total_returns: int = 0
    for user_id in member_ids:
        for book_id in random.sample(book_ids, min(random.randint(0, MAX_LOANS_PER_USER), len(book_ids))):
            try:
                transaction = checkout_book(db, CheckoutRequest(book_id=book_id, user_id=user_id), staff)
                total_loans += 1
                if random.random() < RETURN_PROBABILITY:
                    checkin_book(db, transaction.id, staff, notes=fake.sentence() if random.random() < 0.3 else None)
                    total_returns += 1
            except LibraryError as e:
                logger.warning(f"  Préstamo rechazado para User {user_id}, Book {book_id}: {e.message}")
    logger.info(f"--- Fase 2 Completada: {total_loans} préstamos, {total_returns} devueltos ---")

    logger.info(f"--- Fase 3: Generando Reseñas Falsas ({MIN_REVIEWS_PER_USER}-{MAX_REVIEWS_PER_USER} por miembro) ---")
    total_reviews_added: int = 0
    for user_id in member_ids:
        num_reviews: int = min(random.randint(MIN_REVIEWS_PER_USER, MAX_REVIEWS_PER_USER), len(book_ids))
        for book_id in random.sample(book_ids, num_reviews):
            comment = fake.paragraph(nb_sentences=random.randint(1, 4)) if random.random() < 0.7 else None
            try:
                create_review(db, ReviewCreate(rating=random.randint(1, 5), comment=comment), user_id=user_id, book_id=book_id)
                total_reviews_added += 1
            except LibraryError as e:
                logger.warning(f"  Reseña rechazada para User {user_id}, Book {book_id}: {e.message}")
    logger.info(f"--- Fase 3 Completada: Total reseñas falsas añadidas: {total_reviews_added} ---")


if __name__ == "__main__":
    try:
        generate_data()
    except Exception as e:
        logger.exception(f"Error CRÍTICO durante la generación de datos: {e}")
        sys.exit(1)
    logger.info("============================================")
    logger.info(" Script de Generación de Datos Finalizado")
    logger.info("============================================")
