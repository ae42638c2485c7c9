"""
Modelo tipado para la entidad Book de LibroHoja.
Define los campos de un libro del catálogo y sus contadores de ejemplares.
"""

from typing import Optional

from librohoja.models.base import StoredRecord


class Book(StoredRecord):
    """
    Representa un libro del catálogo.

    Atributos:
        title (str): Título del libro.
        author (str): Autor del libro.
        isbn (str): ISBN del libro (puede estar vacío).
        genre (str): Género literario.
        publish_year (Optional[int]): Año de publicación.
        publisher (str): Editorial.
        description (str): Descripción o sinopsis.
        cover_url (str): URL de la imagen de portada.
        total_copies (int): Ejemplares que posee la biblioteca.
        available_copies (int): Ejemplares en estantería, entre 0 y total_copies.
        rating (float): Media de las reseñas redondeada a un decimal (0 sin reseñas).
        rating_count (int): Número de reseñas.
        added_by (Optional[str]): ID del usuario que dio de alta el libro.
    """
    title: str = ""
    author: str = ""
    isbn: str = ""
    genre: str = ""
    publish_year: Optional[int] = None
    publisher: str = ""
    description: str = ""
    cover_url: str = ""
    total_copies: int = 1
    available_copies: int = 0
    rating: float = 0.0
    rating_count: int = 0
    added_by: Optional[str] = None

    @property
    def checked_out_copies(self) -> int:
        return self.total_copies - self.available_copies

    def __repr__(self) -> str:
        return f"<Book(id={self.id}, title='{self.title[:30]}...', isbn='{self.isbn}')>"
