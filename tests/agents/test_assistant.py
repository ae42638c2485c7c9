# tests/agents/test_assistant.py
import json

import pytest
from langchain_core.language_models.fake_chat_models import FakeListChatModel
from langchain_openai import ChatOpenAI

from librohoja.agents import LibraryAssistant, build_chat_model
from librohoja.agents.local import local_categorize, local_smart_search
from librohoja.core.config import Settings
from librohoja.crud import self_checkout


@pytest.fixture
def shelf(make_book):
    return {
        "hobbit": make_book(title="The Hobbit", author="J. R. R. Tolkien", genre="Fantasy",
                            description="A reluctant hobbit and a dragon."),
        "silmarillion": make_book(title="The Silmarillion", author="J. R. R. Tolkien", genre="Fantasy"),
        "emma": make_book(title="Emma", author="Jane Austen", genre="Romance", publish_year=1815),
        "gone_girl": make_book(title="Gone Girl", author="Gillian Flynn", genre="Mystery", publish_year=2012),
    }


def test_build_chat_model_needs_real_key():
    assert build_chat_model(Settings(OPENAI_API_KEY="NO_API_KEY_SET")) is None
    assert build_chat_model(Settings(OPENAI_API_KEY="your-openai-api-key")) is None
    assert isinstance(build_chat_model(Settings(OPENAI_API_KEY="sk-test-key")), ChatOpenAI)


def test_engine(db):
    assert LibraryAssistant(db).engine == "local"
    assert LibraryAssistant(db, llm=FakeListChatModel(responses=["[]"])).engine == "ai"


def test_local_smart_search_weights(db, shelf):
    results = LibraryAssistant(db).smart_search("dragon magic")

    # Description keyword (3) plus the fantasy synonym bonus (7) on both Tolkien books
    assert results[0].id == shelf["hobbit"].id
    assert {b.id for b in results} == {shelf["hobbit"].id, shelf["silmarillion"].id}


def test_local_smart_search_intent_bonus(db, shelf):
    results = local_smart_search("classic romance", [shelf["emma"], shelf["gone_girl"]])
    assert [b.title for b in results] == ["Emma"]


def test_ai_smart_search_keeps_catalog_order(db, shelf):
    answer = "```json\n" + json.dumps([shelf["emma"].id, shelf["hobbit"].id, "unknown"]) + "\n```"
    assistant = LibraryAssistant(db, llm=FakeListChatModel(responses=[answer]))

    results = assistant.smart_search("something cosy")

    assert [b.title for b in results] == ["The Hobbit", "Emma"]


def test_ai_smart_search_falls_back_on_bad_output(db, shelf):
    assistant = LibraryAssistant(db, llm=FakeListChatModel(responses=["I think you'd like Emma!"]))

    results = assistant.smart_search("austen")

    assert [b.title for b in results] == ["Emma"]


def test_local_recommendations_follow_history(db, shelf, member):
    self_checkout(db, shelf["hobbit"].id, member)

    recs = LibraryAssistant(db).recommend(member.id)

    assert shelf["hobbit"].id not in {r.book.id for r in recs}
    assert recs[0].book.id == shelf["silmarillion"].id
    assert recs[0].reason == "You've enjoyed books by J. R. R. Tolkien. Based on your interest in Fantasy"
    assert len(recs) <= 8


def test_ai_recommendations(db, shelf, member):
    answer = json.dumps([
        {"id": shelf["gone_girl"].id, "reason": "A twisty read"},
        {"id": "unknown", "reason": "ignored"},
    ])
    assistant = LibraryAssistant(db, llm=FakeListChatModel(responses=[answer]))

    recs = assistant.recommend(member.id)

    assert [(r.book.title, r.reason) for r in recs] == [("Gone Girl", "A twisty read")]


def test_local_chat_replies(db, shelf):
    assistant = LibraryAssistant(db)

    counts = assistant.chat("How many books do you have?")
    genres = assistant.chat("Which genres are there?")

    assert counts.source == "local"
    assert counts.message == "We currently have 4 books in our catalog, with 4 available for borrowing."
    assert "Fantasy" in genres.message and "Romance" in genres.message


def test_ai_chat_uses_model_reply(db, shelf):
    assistant = LibraryAssistant(db, llm=FakeListChatModel(responses=["Try The Hobbit."]))

    reply = assistant.chat("Any fantasy?", history=[
        {"role": "user", "content": "Hi"},
        {"role": "assistant", "content": "Hello! How can I help?"},
    ])

    assert reply.source == "ai"
    assert reply.message == "Try The Hobbit."


@pytest.mark.parametrize("title, description, expected", [
    ("The Hound of the Baskervilles", "A mystery on the moors.", "Mystery"),
    ("Cosmos", "Popular science about the universe.", "Science"),
    ("Untitled", "", "Fiction"),
])
def test_local_categorize(title, description, expected):
    assert local_categorize(title, "", description) == expected


def test_ai_categorize(db):
    assistant = LibraryAssistant(db, llm=FakeListChatModel(responses=["  Horror\n"]))
    assert assistant.categorize("Dracula", "Bram Stoker") == "Horror"
