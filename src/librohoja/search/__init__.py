from .content_search import (
    MIN_QUERY_LENGTH,
    SEARCH_SCOPES,
    SearchHit,
    SearchPage,
    SearchStats,
    get_snippet,
    search_content,
)

__all__ = [
    "MIN_QUERY_LENGTH",
    "SEARCH_SCOPES",
    "SearchHit",
    "SearchPage",
    "SearchStats",
    "get_snippet",
    "search_content",
]
