# src/librohoja/agents/local.py

"""
Respuestas deterministas del asistente cuando no hay modelo configurado o la
llamada al modelo falla. Solo leen el catálogo; nunca escriben.
"""

import logging
from typing import Dict, Iterable, List, Literal, Tuple

from pydantic import BaseModel

from ..models.book import Book
from ..models.transaction import Transaction

logger = logging.getLogger(__name__)

GENRES = [
    "Fiction", "Non-Fiction", "Science Fiction", "Fantasy", "Mystery", "Romance",
    "Thriller", "Horror", "Biography", "History", "Science", "Philosophy",
    "Self-Help", "Poetry", "Drama", "Adventure", "Children", "Young Adult",
]
DEFAULT_GENRE = "Fiction"

# Palabras de la consulta que delatan un género aunque no se nombre
GENRE_SYNONYMS: Dict[str, List[str]] = {
    "fiction": ["fiction", "novel", "story", "stories", "narrative"],
    "science fiction": ["sci-fi", "science fiction", "space", "future", "dystopia", "dystopian"],
    "fantasy": ["fantasy", "magic", "wizard", "dragon", "mythical", "quest"],
    "romance": ["romance", "love", "relationship", "heart"],
    "mystery": ["mystery", "detective", "crime", "thriller", "suspense", "murder"],
    "classic": ["classic", "literature", "literary", "timeless"],
    "philosophy": ["philosophy", "philosophical", "meaning", "existence", "think"],
    "adventure": ["adventure", "journey", "explore", "quest", "travel"],
    "horror": ["horror", "scary", "fear", "dark", "ghost"],
}

TITLE_WEIGHT = 10
AUTHOR_WEIGHT = 8
GENRE_WEIGHT = 5
DESCRIPTION_WEIGHT = 3
SYNONYM_WEIGHT = 7

MAX_RECOMMENDATIONS = 8


class Recommendation(BaseModel):
    book: Book
    reason: str


class ChatReply(BaseModel):
    message: str
    source: Literal["ai", "local"] = "local"


def _score_book(book: Book, query: str, keywords: List[str]) -> int:
    title = book.title.lower()
    author = book.author.lower()
    genre = book.genre.lower()
    desc = book.description.lower()

    score = 0
    for kw in keywords:
        if kw in title:
            score += TITLE_WEIGHT
        if kw in author:
            score += AUTHOR_WEIGHT
        if kw in genre:
            score += GENRE_WEIGHT
        if kw in desc:
            score += DESCRIPTION_WEIGHT

    for name, synonyms in GENRE_SYNONYMS.items():
        if any(s in query for s in synonyms) and name in genre:
            score += SYNONYM_WEIGHT

    # Bonificaciones por intención
    year = book.publish_year
    if "available" in query and book.available_copies > 0:
        score += 3
    if "popular" in query and book.rating >= 4:
        score += 5
    if ("new" in query or "recent" in query) and year is not None and year >= 2020:
        score += 4
    if ("old" in query or "classic" in query) and year is not None and year < 1970:
        score += 4
    return score


def local_smart_search(query: str, books: Iterable[Book]) -> List[Book]:
    """
    Búsqueda por palabras clave ponderadas.

    Las palabras de más de 2 letras puntúan por campo (título 10, autor 8,
    género 5, descripción 3); los sinónimos de género y las palabras de
    intención ("available", "popular", "new", "classic"...) suman aparte.

    Returns:
        List[Book]: Libros con puntuación positiva, de mayor a menor.
    """
    q = (query or "").lower()
    keywords = [w for w in q.split() if len(w) > 2]
    scored = [(book, _score_book(book, q, keywords)) for book in books]
    ranked = sorted((s for s in scored if s[1] > 0), key=lambda s: s[1], reverse=True)
    return [book for book, _ in ranked]


def _build_reason(book: Book, genre_counts: Dict[str, int], author_counts: Dict[str, int]) -> str:
    reasons = []
    if book.author and author_counts.get(book.author):
        reasons.append(f"You've enjoyed books by {book.author}")
    if book.genre and genre_counts.get(book.genre):
        reasons.append(f"Based on your interest in {book.genre}")
    if book.rating >= 4.5:
        reasons.append("Highly rated")
    return ". ".join(reasons) or "You might enjoy this book"


def reading_history(
    user_id: str,
    books: List[Book],
    transactions: Iterable[Transaction],
) -> Tuple[List[Book], set]:
    """Libros que el usuario ha tomado prestados alguna vez y sus IDs."""
    borrowed_ids = {t.book_id for t in transactions if t.user_id == user_id}
    return [b for b in books if b.id in borrowed_ids], borrowed_ids


def local_recommendations(
    user_id: str,
    books: List[Book],
    transactions: Iterable[Transaction],
) -> List[Recommendation]:
    """
    Recomendaciones a partir del historial de préstamos.

    Cada libro no leído puntúa 3 por cada préstamo previo del mismo género,
    5 por cada uno del mismo autor, su valoración media y 2 si hay ejemplares
    disponibles. Devuelve como mucho 8, con una razón legible.
    """
    history, borrowed_ids = reading_history(user_id, books, transactions)

    genre_counts: Dict[str, int] = {}
    author_counts: Dict[str, int] = {}
    for b in history:
        if b.genre:
            genre_counts[b.genre] = genre_counts.get(b.genre, 0) + 1
        if b.author:
            author_counts[b.author] = author_counts.get(b.author, 0) + 1

    scored = []
    for book in books:
        if book.id in borrowed_ids:
            continue
        score = genre_counts.get(book.genre, 0) * 3 + author_counts.get(book.author, 0) * 5
        score += book.rating or 0
        if book.available_copies > 0:
            score += 2
        if score > 0:
            scored.append((score, book))

    scored.sort(key=lambda s: s[0], reverse=True)
    logger.debug(f"Local recommendations for {user_id}: {len(scored)} candidates")
    return [
        Recommendation(book=book, reason=_build_reason(book, genre_counts, author_counts))
        for _, book in scored[:MAX_RECOMMENDATIONS]
    ]


def catalog_stats(books: List[Book]) -> Dict:
    genres: List[str] = []
    for b in books:
        if b.genre and b.genre not in genres:
            genres.append(b.genre)
    return {
        "total": len(books),
        "available": sum(1 for b in books if b.available_copies > 0),
        "genres": genres,
        "top_rated": sorted(books, key=lambda b: b.rating or 0, reverse=True)[:5],
    }


def local_chat_reply(message: str, books: List[Book]) -> ChatReply:
    """Respuesta por reglas para el chat sin modelo."""
    q = (message or "").lower()
    stats = catalog_stats(books)

    if "how many" in q and "book" in q:
        text = (f"We currently have {stats['total']} books in our catalog, "
                f"with {stats['available']} available for borrowing.")
    elif "genre" in q or "categories" in q:
        text = f"Our library covers these genres: {', '.join(stats['genres'])}. What genre interests you?"
    elif "recommend" in q or "suggest" in q or "what should" in q:
        recs = ", ".join(f'"{b.title}" by {b.author} ({b.rating}/5)' for b in stats["top_rated"][:3])
        text = f"Here are our top-rated books: {recs}. Would you like suggestions in a specific genre?"
    elif "popular" in q or "best" in q or "top" in q:
        lines = "\n".join(f'• "{b.title}" by {b.author}: {b.rating}/5' for b in stats["top_rated"])
        text = f"Our most popular books:\n{lines}"
    elif "available" in q:
        text = f"We have {stats['available']} out of {stats['total']} books currently available for borrowing."
    else:
        matches = local_smart_search(message, books)[:3]
        if matches:
            lines = "\n".join(f'• "{b.title}" by {b.author} ({b.genre})' for b in matches)
            text = f"I found these books that might match your query:\n{lines}\n\nWould you like more details about any of them?"
        else:
            text = (
                "I'm your library assistant! I can help you with:\n"
                "• Finding books by title, author, or genre\n"
                "• Getting reading recommendations\n"
                "• Checking library statistics\n"
                "• Answering questions about our catalog\n\n"
                "What would you like to know?"
            )
    return ChatReply(message=text, source="local")


def local_categorize(title: str, author: str = "", description: str = "") -> str:
    """Primer género de GENRES que aparece en el texto; Fiction si ninguno."""
    text = f"{title or ''} {author or ''} {description or ''}".lower()
    return next((g for g in GENRES if g.lower() in text), DEFAULT_GENRE)
