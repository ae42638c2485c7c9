# tests/conftest.py
import os
import sys
import uuid

import pytest

# Add the src directory to the Python path to allow imports
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
src_path = os.path.join(project_root, 'src')
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from librohoja.crud.crud_book import create_book
from librohoja.db.session import LibraryDB
from librohoja.models.user import Role, User
from librohoja.schemas.book import BookCreate
from librohoja.schemas.common import Actor


# --- Test Library Setup ---
# Each test gets its own data directory, so the workbooks start empty.
@pytest.fixture(scope="function")
def db(tmp_path):
    """Provides a fresh LibraryDB backed by a temporary directory."""
    return LibraryDB(tmp_path / "data", lock_timeout=2.0)


@pytest.fixture
def make_user(db):
    """
    Factory that writes a user straight into the Users sheet.
    Skips bcrypt so tests that don't log in stay fast.
    """
    def _make(name: str = "Test User", email: str = None, role: Role = Role.MEMBER) -> User:
        record = db.users.create({
            "name": name,
            "email": email or f"user-{uuid.uuid4().hex[:8]}@library.com",
            "password": "",
            "role": Role(role).value,
            "provider": "local",
            "isActive": True,
            "theme": "light",
        })
        return User.from_record(record)
    return _make


@pytest.fixture
def admin(make_user) -> Actor:
    return Actor.from_user(make_user(name="Admin", email="admin@library.com", role=Role.ADMIN))


@pytest.fixture
def librarian(make_user) -> Actor:
    return Actor.from_user(make_user(name="Librarian", email="librarian@library.com", role=Role.LIBRARIAN))


@pytest.fixture
def member(make_user) -> Actor:
    return Actor.from_user(make_user(name="Member", email="member@library.com", role=Role.MEMBER))


@pytest.fixture
def make_book(db, librarian):
    """Factory that adds a book through create_book as the librarian."""
    def _make(title: str = "Test Book", author: str = "Test Author", **fields):
        return create_book(db, BookCreate(title=title, author=author, **fields), librarian)
    return _make
