"""
Búsqueda global de contenido en libros y capítulos.

Cada candidato recibe una relevancia fija según el campo donde aparece el
término (título > autor > resto) y los aciertos en el texto completo de un
capítulo suman 2 puntos por aparición. Un capítulo que ya coincidió por
título o resumen acumula su coincidencia de contenido en la misma fila.
"""

import logging
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ..core.exceptions import ValidationError
from ..db.session import LibraryDB
from ..models.book import Book
from ..models.chapter import Chapter
from ..schemas.common import Page

logger = logging.getLogger(__name__)

MIN_QUERY_LENGTH = 2
SEARCH_SCOPES = ("all", "books", "chapters", "content")
SNIPPET_CONTEXT = 120

# Relevancia base por campo
TITLE_RELEVANCE = 100
AUTHOR_RELEVANCE = 90
OTHER_BOOK_FIELD_RELEVANCE = 50
BOOK_FIELD_RELEVANCE = {"title": TITLE_RELEVANCE, "author": AUTHOR_RELEVANCE}
CHAPTER_TITLE_RELEVANCE = 80
CHAPTER_SUMMARY_RELEVANCE = 60
CONTENT_RELEVANCE = 40
OCCURRENCE_BONUS = 2


class SearchHit(BaseModel):
    """
    Una fila del resultado de búsqueda.

    Atributos:
        type (str): book, chapter o content.
        match_in (str): Campo que produjo la coincidencia.
        snippet (str): Fragmento del campo alrededor del término.
        content_snippet (Optional[str]): Fragmento del contenido cuando un
            capítulo coincidió también en su texto completo.
        occurrences (Optional[int]): Apariciones en el contenido del capítulo.
        relevance (int): Puntuación usada para ordenar.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    type: Literal["book", "chapter", "content"]
    book_id: str
    book_title: str = ""
    book_author: str = ""
    book_genre: str = ""
    chapter_id: Optional[str] = None
    chapter_number: Optional[int] = None
    chapter_title: Optional[str] = None
    match_in: str
    snippet: str = ""
    content_snippet: Optional[str] = None
    occurrences: Optional[int] = None
    relevance: int = 0


class SearchStats(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    book_hits: int = 0
    chapter_hits: int = 0
    content_hits: int = 0
    unique_books: int = 0


class SearchPage(Page[SearchHit]):
    stats: SearchStats = Field(default_factory=SearchStats)
    query: str = ""


def get_snippet(text: Optional[str], query: str, context_chars: int = SNIPPET_CONTEXT) -> str:
    """
    Extrae el contexto alrededor de la primera aparición de `query`.

    Args:
        text (Optional[str]): Texto del campo que coincidió.
        query (str): Término buscado (sin distinguir mayúsculas).
        context_chars (int): Caracteres de contexto a cada lado.

    Returns:
        str: El fragmento, con "..." donde se recortó el texto. Si el término
        no aparece literalmente, los primeros 2 * context_chars caracteres.
    """
    if not text:
        return ""
    text = str(text)
    idx = text.lower().find(query.lower())
    if idx == -1:
        head = text[:context_chars * 2]
        return head + ("..." if len(text) > context_chars * 2 else "")

    start = max(0, idx - context_chars)
    end = min(len(text), idx + len(query) + context_chars)
    snippet = text[start:end]
    if start > 0:
        snippet = "..." + snippet
    if end < len(text):
        snippet += "..."
    return snippet


def _contains(value, query_lower: str) -> bool:
    return bool(value) and query_lower in str(value).lower()


def _book_hits(books: List[Book], query: str) -> List[SearchHit]:
    q = query.lower()
    hits = []
    for book in books:
        fields = [
            ("title", book.title),
            ("author", book.author),
            ("isbn", book.isbn),
            ("genre", book.genre),
            ("description", book.description),
            ("description", book.publisher),
        ]
        match = next(((name, value) for name, value in fields if _contains(value, q)), None)
        if match is None:
            continue
        match_in, value = match

        hits.append(SearchHit(
            type="book",
            book_id=book.id,
            book_title=book.title,
            book_author=book.author,
            book_genre=book.genre,
            match_in=match_in,
            snippet=get_snippet(str(value), query),
            relevance=BOOK_FIELD_RELEVANCE.get(match_in, OTHER_BOOK_FIELD_RELEVANCE),
        ))
    return hits


def _chapter_hit(kind: str, chapter: Chapter, book: Book, **fields) -> SearchHit:
    return SearchHit(
        type=kind,
        book_id=chapter.book_id,
        book_title=book.title,
        book_author=book.author,
        book_genre=book.genre,
        chapter_id=chapter.id,
        chapter_number=chapter.chapter_number,
        chapter_title=chapter.title,
        **fields,
    )


def search_content(
    db: LibraryDB,
    query: Optional[str],
    scope: str = "all",
    page: int = 1,
    limit: int = 30,
) -> SearchPage:
    """
    Busca un término en libros, títulos/resúmenes de capítulos y texto completo.

    Args:
        db (LibraryDB): Colecciones de la biblioteca.
        query (Optional[str]): Término; al menos 2 caracteres sin espacios alrededor.
        scope (str): all, books, chapters o content.
        page (int): Página, empezando en 1.
        limit (int): Resultados por página.

    Returns:
        SearchPage: Resultados ordenados por relevancia descendente (orden
        estable: libros, luego capítulos, luego solo-contenido), paginados.

    Raises:
        ValidationError: Término demasiado corto o ámbito desconocido.
    """
    query = (query or "").strip()
    if len(query) < MIN_QUERY_LENGTH:
        raise ValidationError(f"Search query must be at least {MIN_QUERY_LENGTH} characters")
    scope = scope or "all"
    if scope not in SEARCH_SCOPES:
        raise ValidationError(f"Unknown search scope '{scope}'")

    q = query.lower()
    books = [Book.from_record(r) for r in db.books.read_all()]
    chapters = [Chapter.from_record(r) for r in db.chapters.read_all()]
    book_map: Dict[str, Book] = {b.id: b for b in books}

    results: List[SearchHit] = []
    chapter_rows: Dict[str, SearchHit] = {}

    if scope in ("all", "books"):
        results.extend(_book_hits(books, query))

    if scope in ("all", "chapters"):
        for ch in chapters:
            book = book_map.get(ch.book_id)
            if book is None:
                continue
            title_match = _contains(ch.title, q)
            summary_match = _contains(ch.summary, q)
            if not (title_match or summary_match):
                continue
            hit = _chapter_hit(
                "chapter", ch, book,
                match_in="chapter_title" if title_match else "chapter_summary",
                snippet=get_snippet(ch.title if title_match else ch.summary, query),
                relevance=CHAPTER_TITLE_RELEVANCE if title_match else CHAPTER_SUMMARY_RELEVANCE,
            )
            results.append(hit)
            chapter_rows[ch.id] = hit

    if scope in ("all", "content"):
        for ch in chapters:
            book = book_map.get(ch.book_id)
            if book is None:
                continue
            content = str(ch.content or "")
            occurrences = content.lower().count(q)
            if not occurrences:
                continue

            existing = chapter_rows.get(ch.id)
            if existing is not None:
                existing.content_snippet = get_snippet(content, query)
                existing.occurrences = occurrences
                existing.relevance += occurrences * OCCURRENCE_BONUS
            else:
                results.append(_chapter_hit(
                    "content", ch, book,
                    match_in="chapter_content",
                    snippet=get_snippet(content, query),
                    occurrences=occurrences,
                    relevance=CONTENT_RELEVANCE + occurrences * OCCURRENCE_BONUS,
                ))

    # sorted() es estable: los empates conservan el orden de recorrido
    results = sorted(results, key=lambda r: r.relevance, reverse=True)

    stats = SearchStats(
        book_hits=sum(1 for r in results if r.type == "book"),
        chapter_hits=sum(1 for r in results if r.type == "chapter"),
        content_hits=sum(1 for r in results if r.type == "content"),
        unique_books=len({r.book_id for r in results}),
    )
    logger.debug(f"Content search '{query}' ({scope}) matched {len(results)} rows")
    return SearchPage.build(results, page=page, limit=limit, stats=stats, query=query)
