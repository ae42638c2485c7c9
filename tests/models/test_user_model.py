# tests/models/test_user_model.py
from librohoja.core.security import get_password_hash, verify_password
from librohoja.models.user import Provider, Role, User


def test_user_defaults():
    """Test a User decoded from a sparse record gets the documented defaults."""
    user = User.from_record({"id": "u1", "email": "test@library.com"})

    assert user.role == Role.MEMBER
    assert user.provider == Provider.LOCAL
    assert user.is_active is True
    assert user.theme == "light"
    assert user.is_staff is False


def test_staff_roles():
    assert User(id="u1", role=Role.ADMIN).is_staff
    assert User(id="u2", role=Role.LIBRARIAN).is_staff


def test_public_record_drops_password():
    hashed_password = get_password_hash("password123")
    user = User(id="u1", email="test@library.com", password=hashed_password)

    record = user.to_public_record()

    assert "password" not in record
    assert record["isActive"] is True
    assert verify_password("password123", user.password)
    assert not verify_password("password123", "")


def test_user_repr():
    """Test the __repr__ method of the User model."""
    user = User(id="u1", email="repr_test@library.com", password="secret-hash")

    assert repr(user) == "<User(id=u1, email='repr_test@library.com', role='member')>"
    assert "secret-hash" not in repr(user)
