# src/librohoja/agents/assistant.py

"""
Asistente de la biblioteca sobre un chat model de LangChain.

Cada operación hace una sola llamada al modelo con el catálogo como contexto
y, si no hay modelo o la respuesta no se puede interpretar, recurre a las
versiones locales de `local.py`.
"""

import json
import logging
from typing import Any, Dict, List, Optional, Sequence

from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI

from ..core.config import Settings
from ..db.session import LibraryDB
from ..models.book import Book
from ..models.transaction import Transaction
from .local import (
    GENRES,
    ChatReply,
    Recommendation,
    catalog_stats,
    local_categorize,
    local_chat_reply,
    local_recommendations,
    local_smart_search,
    reading_history,
)

logger = logging.getLogger(__name__)

HISTORY_WINDOW = 10
CATALOG_PREVIEW = 30
MAX_AI_RECOMMENDATIONS = 6

SEARCH_PROMPT = (
    "You are a library search assistant. Given a user query and a book catalog, return the IDs "
    "of the most relevant books as a JSON array. Consider semantic meaning, genre preferences, "
    "and reading intent. Return ONLY a JSON array of IDs, nothing else."
)
RECOMMEND_PROMPT = (
    "You are a book recommendation engine. Given a user's reading history and available catalog, "
    'recommend books. Return a JSON array of objects: [{"id": "...", "reason": "..."}]. '
    f"Max {MAX_AI_RECOMMENDATIONS} recommendations."
)
CATEGORIZE_PROMPT = (
    "You are a book categorization assistant. Given a book's title, author, and description, "
    f"suggest the best genre. Return ONLY the genre name. Choose from: {', '.join(GENRES)}."
)


def build_chat_model(settings: Settings) -> Optional[BaseChatModel]:
    """
    Crea el ChatOpenAI configurado, o None si no hay una API key real.
    """
    if not settings.ai_enabled:
        logger.info("No OpenAI API key, using local assistant fallbacks")
        return None
    logger.info(f"OpenAI assistant enabled with model {settings.OPENAI_MODEL}")
    return ChatOpenAI(model=settings.OPENAI_MODEL, temperature=0.3, api_key=settings.OPENAI_API_KEY)


def _parse_json(content: Any) -> Any:
    """Interpreta la respuesta del modelo como JSON, quitando las vallas ```json."""
    text = str(content).strip()
    if text.startswith("```json"):
        text = text[7:]
    elif text.startswith("```"):
        text = text[3:]
    if text.endswith("```"):
        text = text[:-3]
    return json.loads(text.strip())


def _to_messages(history: Sequence[Dict[str, str]]) -> List[BaseMessage]:
    messages: List[BaseMessage] = []
    for turn in list(history)[-HISTORY_WINDOW:]:
        content = turn.get("content", "")
        if turn.get("role") == "assistant":
            messages.append(AIMessage(content=content))
        else:
            messages.append(HumanMessage(content=content))
    return messages


class LibraryAssistant:
    """
    Búsqueda inteligente, recomendaciones, chat y categorización.

    Args:
        db (LibraryDB): Colecciones de la biblioteca; solo se leen.
        llm (Optional[BaseChatModel]): Modelo de chat. Con None todas las
            operaciones usan las respuestas locales.
    """

    def __init__(self, db: LibraryDB, llm: Optional[BaseChatModel] = None):
        self.db = db
        self.llm = llm

    @property
    def engine(self) -> str:
        return "ai" if self.llm is not None else "local"

    def _books(self) -> List[Book]:
        return [Book.from_record(r) for r in self.db.books.read_all()]

    def _transactions(self) -> List[Transaction]:
        return [Transaction.from_record(r) for r in self.db.transactions.read_all()]

    def _ask(self, messages: List[BaseMessage]) -> str:
        response = self.llm.invoke(messages)
        return str(response.content)

    def smart_search(self, query: str) -> List[Book]:
        books = self._books()
        if self.llm is None:
            return local_smart_search(query, books)

        catalog = "\n".join(
            f'[{b.id}] "{b.title}" by {b.author} | Genre: {b.genre} | Year: {b.publish_year} | '
            f"Available: {b.available_copies}/{b.total_copies} | Rating: {b.rating}/5"
            for b in books
        )
        try:
            content = self._ask([
                SystemMessage(content=SEARCH_PROMPT),
                HumanMessage(content=f'Query: "{query}"\n\nCatalog:\n{catalog}'),
            ])
            ids = _parse_json(content)
            if not isinstance(ids, list):
                raise ValueError("Model did not return a JSON array")
            wanted = {str(i) for i in ids}
            return [b for b in books if b.id in wanted]
        except Exception as e:
            logger.error(f"AI search error, falling back to local: {e}")
            return local_smart_search(query, books)

    def recommend(self, user_id: str) -> List[Recommendation]:
        """
        Recomendaciones personalizadas según los préstamos del usuario.

        Returns:
            List[Recommendation]: Libros que aún no ha tomado prestados, cada
            uno con una razón.
        """
        books = self._books()
        transactions = self._transactions()
        if self.llm is None:
            return local_recommendations(user_id, books, transactions)

        history, borrowed_ids = reading_history(user_id, books, transactions)
        history_str = ", ".join(f'"{b.title}" by {b.author} ({b.genre})' for b in history)
        catalog = "\n".join(
            f'[{b.id}] "{b.title}" by {b.author} | {b.genre} | Rating: {b.rating}'
            for b in books if b.id not in borrowed_ids
        )
        try:
            content = self._ask([
                SystemMessage(content=RECOMMEND_PROMPT),
                HumanMessage(content=f"Reading history: {history_str or 'No books borrowed yet'}\n\n"
                                     f"Available catalog:\n{catalog}"),
            ])
            picks = _parse_json(content)
            if not isinstance(picks, list):
                raise ValueError("Model did not return a JSON array")
            by_id = {b.id: b for b in books}
            recommendations = []
            for pick in picks:
                if not isinstance(pick, dict):
                    continue
                book = by_id.get(str(pick.get("id")))
                if book is not None:
                    recommendations.append(Recommendation(book=book, reason=str(pick.get("reason") or "")))
            return recommendations
        except Exception as e:
            logger.error(f"AI recommendation error, falling back to local: {e}")
            return local_recommendations(user_id, books, transactions)

    def chat(self, message: str, history: Optional[Sequence[Dict[str, str]]] = None) -> ChatReply:
        """
        Responde a un mensaje del usuario con el estado del catálogo como contexto.

        Args:
            message (str): Mensaje del usuario.
            history (Optional[Sequence[Dict[str, str]]]): Turnos previos como
                {"role": "user" | "assistant", "content": ...}; se usan los 10 últimos.
        """
        books = self._books()
        if self.llm is None:
            return local_chat_reply(message, books)

        stats = catalog_stats(books)
        top = ", ".join(f'"{b.title}" by {b.author} ({b.rating}/5)' for b in stats["top_rated"])
        catalog = "\n".join(
            f'"{b.title}" by {b.author} | {b.genre} | {b.publish_year} | '
            f"Available: {b.available_copies}/{b.total_copies}"
            for b in books[:CATALOG_PREVIEW]
        )
        system_prompt = (
            "You are a friendly and knowledgeable library assistant. You help users find books, "
            "answer questions about the library catalog, and provide reading suggestions.\n\n"
            f"Current library stats:\n- Total books: {stats['total']}\n"
            f"- Available books: {stats['available']}\n"
            f"- Genres available: {', '.join(stats['genres'])}\n"
            f"- Top rated books: {top}\n\n"
            f"Book catalog summary:\n{catalog}\n\n"
            "Be concise, helpful, and enthusiastic about reading. If asked about a book not in the "
            "catalog, say so and suggest similar ones that are available."
        )
        messages: List[BaseMessage] = [SystemMessage(content=system_prompt)]
        messages.extend(_to_messages(history or []))
        messages.append(HumanMessage(content=message))
        try:
            return ChatReply(message=self._ask(messages), source="ai")
        except Exception as e:
            logger.error(f"AI chat error, falling back to local: {e}")
            return local_chat_reply(message, books)

    def categorize(self, title: str, author: str = "", description: str = "") -> str:
        if self.llm is None:
            return local_categorize(title, author, description)
        try:
            genre = self._ask([
                SystemMessage(content=CATEGORIZE_PROMPT),
                HumanMessage(content=f"Title: {title}\nAuthor: {author}\nDescription: {description or 'N/A'}"),
            ]).strip()
            return genre or local_categorize(title, author, description)
        except Exception as e:
            logger.error(f"AI categorize error, falling back to local: {e}")
            return local_categorize(title, author, description)
