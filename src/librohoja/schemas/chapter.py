"""
Esquemas Pydantic para la entidad Chapter.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from librohoja.models.chapter import Chapter


class _ChapterInput(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ChapterCreate(_ChapterInput):
    """
    Esquema para añadir un capítulo.

    Atributos:
        chapter_number (Optional[int]): Si se omite, se asigna el siguiente número.
        title (str): Título del capítulo, obligatorio.
    """
    chapter_number: Optional[int] = Field(default=None, ge=1)
    title: str = Field(..., min_length=1)
    summary: str = ""
    content: str = ""


class BulkChapterItem(_ChapterInput):
    """Capítulo dentro de un alta masiva; el título también es opcional."""
    chapter_number: Optional[int] = Field(default=None, ge=1)
    title: Optional[str] = None
    summary: str = ""
    content: str = ""


class ChapterUpdate(_ChapterInput):
    chapter_number: Optional[int] = Field(default=None, ge=1)
    title: Optional[str] = Field(default=None, min_length=1)
    summary: Optional[str] = None
    content: Optional[str] = None


class ChapterOrder(_ChapterInput):
    id: str
    chapter_number: int


class ChapterList(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    chapters: List[Chapter]
    book_title: str
