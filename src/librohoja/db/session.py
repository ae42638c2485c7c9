"""
Configuración de las colecciones de LibroHoja.

Define las cinco colecciones (libros, usuarios, préstamos, reseñas y
capítulos), cada una con su propio libro .xlsx y su propio candado, agrupadas
en un LibraryDB. SessionLocal devuelve la instancia compartida del
proceso para un directorio.
"""

import logging
import threading
from functools import lru_cache
from pathlib import Path
from typing import Optional, Union

from librohoja.core.config import settings
from librohoja.db.excel_store import ExcelStore

logger = logging.getLogger(__name__)

COLLECTIONS = {
    "books": ("books.xlsx", "Books"),
    "users": ("users.xlsx", "Users"),
    "transactions": ("transactions.xlsx", "Transactions"),
    "reviews": ("reviews.xlsx", "Reviews"),
    "chapters": ("chapters.xlsx", "Chapters"),
}


class LibraryDB:
    """
    Agrupa las colecciones de una biblioteca que comparten directorio de datos.

    Atributos:
        data_dir (Path): Directorio con un libro .xlsx por colección.
        books, users, transactions, reviews, chapters (ExcelStore): Colecciones.
        consistency_lock (threading.RLock): Serializa las operaciones que
            leen y escriben varias colecciones.
    """

    def __init__(self, data_dir: Union[str, Path], lock_timeout: Optional[float] = None):
        self.data_dir = Path(data_dir)
        self.data_dir.mkdir(parents=True, exist_ok=True)
        timeout = settings.STORE_LOCK_TIMEOUT if lock_timeout is None else lock_timeout

        self.books = self._open("books", timeout)
        self.users = self._open("users", timeout)
        self.transactions = self._open("transactions", timeout)
        self.reviews = self._open("reviews", timeout)
        self.chapters = self._open("chapters", timeout)
        self.consistency_lock = threading.RLock()

    def _open(self, name: str, timeout: float) -> ExcelStore:
        filename, sheet_name = COLLECTIONS[name]
        return ExcelStore(self.data_dir / filename, sheet_name, lock_timeout=timeout)

    def __repr__(self) -> str:
        return f"<LibraryDB(data_dir='{self.data_dir}')>"


@lru_cache(maxsize=None)
def _library_for(data_dir: str) -> LibraryDB:
    logger.info(f"Opening library data directory {data_dir}")
    return LibraryDB(data_dir)


def SessionLocal(data_dir: Optional[str] = None) -> LibraryDB:
    """
    Devuelve la LibraryDB compartida para un directorio de datos.

    Las colecciones deben compartirse dentro del proceso para que sus
    candados sean efectivos, así que cada directorio tiene una única instancia.
    """
    return _library_for(str(Path(data_dir or settings.DATA_DIR).resolve()))
