# tests/search/test_content_search.py
import pytest

from librohoja.core.exceptions import ValidationError
from librohoja.crud import create_chapter, delete_book
from librohoja.schemas.chapter import ChapterCreate
from librohoja.search import get_snippet, search_content


@pytest.fixture
def library(db, make_book, librarian):
    legend = make_book(title="The Hobbit", author="J. R. R. Tolkien", genre="Fantasy",
                       description="Bilbo joins a company of dwarves to reclaim treasure from a dragon.")
    voyage = make_book(title="Sea Stories", author="Anonymous", genre="Adventure")
    lair = create_chapter(db, voyage.id, ChapterCreate(
        title="The Lair",
        content="The dragon slept. The dragon woke. Nobody fought the dragon that night.",
    ), librarian)
    harbour = create_chapter(db, voyage.id, ChapterCreate(
        title="Harbour",
        content="Sailors told tales of a dragon in the north.",
    ), librarian)
    return {"legend": legend, "voyage": voyage, "lair": lair, "harbour": harbour}


def test_description_and_content_matches(db, library):
    """A description match and a three-occurrence chapter outrank a single mention."""
    result = search_content(db, "dragon", scope="all")

    book_hits = [h for h in result.items if h.type == "book"]
    content_hits = {h.chapter_id: h for h in result.items if h.type == "content"}

    assert len(book_hits) == 1
    assert book_hits[0].book_id == library["legend"].id
    assert book_hits[0].match_in == "description"
    assert book_hits[0].relevance == 50

    lair = content_hits[library["lair"].id]
    harbour = content_hits[library["harbour"].id]
    assert lair.occurrences == 3
    assert lair.relevance == 46
    assert lair.relevance > harbour.relevance
    assert lair.book_title == "Sea Stories"

    assert result.stats.book_hits == 1
    assert result.stats.content_hits == 2
    assert result.stats.unique_books == 2
    assert result.query == "dragon"


def test_results_sorted_by_relevance(db, library):
    result = search_content(db, "dragon")
    scores = [h.relevance for h in result.items]
    assert scores == sorted(scores, reverse=True)


def test_title_beats_author(db, make_book):
    make_book(title="Wells of Time", author="Someone")
    make_book(title="Kipps", author="H. G. Wells")

    result = search_content(db, "wells", scope="books")

    assert [(h.book_title, h.match_in, h.relevance) for h in result.items] == [
        ("Wells of Time", "title", 100),
        ("Kipps", "author", 90),
    ]


def test_chapter_title_match_absorbs_content_match(db, make_book, librarian):
    book = make_book(title="Travels")
    chapter = create_chapter(db, book.id, ChapterCreate(
        title="Into the Storm", summary="Weather turns.", content="The storm grew. The storm broke.",
    ), librarian)

    result = search_content(db, "storm")

    assert len(result.items) == 1
    hit = result.items[0]
    assert hit.type == "chapter"
    assert hit.chapter_id == chapter.id
    assert hit.match_in == "chapter_title"
    assert hit.occurrences == 2
    assert hit.relevance == 80 + 4
    assert "storm" in hit.content_snippet


def test_summary_match(db, make_book, librarian):
    book = make_book(title="Travels")
    create_chapter(db, book.id, ChapterCreate(title="Arrival", summary="A long voyage ends."), librarian)

    hit = search_content(db, "voyage", scope="chapters").items[0]

    assert (hit.match_in, hit.relevance) == ("chapter_summary", 60)


def test_scopes_limit_sources(db, library):
    assert {h.type for h in search_content(db, "dragon", scope="books").items} == {"book"}
    assert {h.type for h in search_content(db, "dragon", scope="content").items} == {"content"}
    assert search_content(db, "dragon", scope="chapters").items == []


def test_chapters_of_deleted_books_are_skipped(db, library, admin):
    delete_book(db, library["voyage"].id, admin)

    result = search_content(db, "dragon")

    assert [h.type for h in result.items] == ["book"]


def test_pagination(db, library):
    result = search_content(db, "dragon", page=2, limit=2)

    assert result.total == 3
    assert result.total_pages == 2
    assert len(result.items) == 1


@pytest.mark.parametrize("query", ["", " ", "a", None])
def test_query_too_short(db, query):
    with pytest.raises(ValidationError, match="at least 2 characters"):
        search_content(db, query)


def test_unknown_scope(db):
    with pytest.raises(ValidationError):
        search_content(db, "dragon", scope="users")


def test_get_snippet():
    text = "x" * 200 + "Dragon" + "y" * 200

    snippet = get_snippet(text, "dragon", context_chars=10)

    assert snippet == "..." + "x" * 10 + "Dragon" + "y" * 10 + "..."
    assert get_snippet("short dragon", "dragon") == "short dragon"
    assert get_snippet("", "dragon") == ""
    assert get_snippet("no match here", "dragon", context_chars=3) == "no mat..."


def test_publisher_match_is_reported_as_description(db, make_book):
    book = make_book(title="Kipps", author="H. G. Wells", publisher="Macmillan")

    [hit] = search_content(db, "macmillan", scope="books").items

    assert hit.book_id == book.id
    assert hit.match_in == "description"
    assert hit.relevance == 50
    assert "Macmillan" in hit.snippet


def test_content_with_control_characters_is_searchable(db, make_book, librarian):
    book = make_book(title="Loose Pages")
    chapter = create_chapter(db, book.id, ChapterCreate(
        title="One", content="Page one\x0cthe dragon sleeps\x0bPage two",
    ), librarian)

    [hit] = search_content(db, "dragon", scope="content").items

    assert hit.chapter_id == chapter.id
    assert hit.occurrences == 1
