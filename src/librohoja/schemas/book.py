"""
Esquemas Pydantic para la entidad Book.
Define los modelos de entrada para alta y edición de libros, y las estructuras
de salida de los listados y estadísticas del catálogo.
"""

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from librohoja.models.book import Book
from librohoja.models.review import Review
from librohoja.schemas.common import Page


class BookCreate(BaseModel):
    """
    Esquema para el alta de un libro.

    Atributos:
        title (str): Título, obligatorio.
        author (str): Autor, obligatorio.
        total_copies (int): Ejemplares iniciales; también los disponibles.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    title: str = Field(..., min_length=1)
    author: str = Field(..., min_length=1)
    isbn: str = ""
    genre: str = "Uncategorized"
    publish_year: Optional[int] = None
    publisher: str = ""
    description: str = ""
    cover_url: str = ""
    total_copies: int = Field(default=1, ge=1)


class BookUpdate(BaseModel):
    """
    Esquema para editar un libro. Solo se aplican los campos enviados.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    title: Optional[str] = Field(default=None, min_length=1)
    author: Optional[str] = Field(default=None, min_length=1)
    isbn: Optional[str] = None
    genre: Optional[str] = None
    publish_year: Optional[int] = None
    publisher: Optional[str] = None
    description: Optional[str] = None
    cover_url: Optional[str] = None
    total_copies: Optional[int] = Field(default=None, ge=1)


class BookPage(Page[Book]):
    """Página de libros junto con todos los géneros del catálogo."""
    genres: List[str] = Field(default_factory=list)


class BookWithReviews(BaseModel):
    book: Book
    reviews: List[Review]


class BookStats(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    total: int
    available: int
    checked_out: int
    genres: Dict[str, int]
    top_rated: List[Book]
    recently_added: List[Book]
