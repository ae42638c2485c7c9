# tests/crud/test_crud_user.py
import threading

import pydantic
from passlib.hash import bcrypt
import pytest

from librohoja.core.exceptions import (
    DuplicateError,
    InvalidStateError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from librohoja.core.security import verify_password
from librohoja.crud import (
    authenticate_user,
    create_user,
    get_or_create_oauth_user,
    get_user_by_email,
    get_user_detail,
    get_users,
    list_user_choices,
    register_user,
    self_checkout,
    set_user_status,
    update_profile,
    update_user_role,
)
from librohoja.models.user import Provider, Role
from librohoja.schemas.user import ProfileUpdate, UserCreate

PASSWORD = "password123"


def test_register_user_hashes_password(db):
    """Test user registration stores a bcrypt hash, never the plain password."""
    user = register_user(db, UserCreate(name="Ana", email="ana@library.com", password=PASSWORD))

    assert user.email == "ana@library.com"
    assert user.role == Role.MEMBER
    assert user.is_active is True
    assert user.password != PASSWORD
    assert verify_password(PASSWORD, user.password)


def test_register_always_creates_members(db):
    user = register_user(db, UserCreate(name="Eve", email="eve@library.com", password=PASSWORD, role=Role.ADMIN))
    assert user.role == Role.MEMBER


def test_register_duplicate_email(db):
    register_user(db, UserCreate(name="Ana", email="ana@library.com", password=PASSWORD))

    with pytest.raises(DuplicateError, match="Email already registered"):
        register_user(db, UserCreate(name="Other Ana", email="ana@library.com", password="x"))
    assert db.users.count() == 1


def test_invalid_email_is_rejected_by_schema():
    with pytest.raises(pydantic.ValidationError):
        UserCreate(name="Ana", email="not-an-email", password=PASSWORD)


def test_only_admins_create_accounts_with_roles(db, admin, librarian):
    new_user = UserCreate(name="New Librarian", email="new@library.com", password=PASSWORD, role=Role.LIBRARIAN)

    with pytest.raises(PermissionDeniedError):
        create_user(db, new_user, actor=librarian)

    created = create_user(db, new_user, actor=admin)
    assert created.role == Role.LIBRARIAN


def test_authenticate_user(db):
    register_user(db, UserCreate(name="Ana", email="ana@library.com", password=PASSWORD))

    user = authenticate_user(db, "ana@library.com", PASSWORD)
    assert user.last_login is not None

    with pytest.raises(PermissionDeniedError, match="Invalid email or password"):
        authenticate_user(db, "ana@library.com", "wrong")
    with pytest.raises(PermissionDeniedError, match="Invalid email or password"):
        authenticate_user(db, "nobody@library.com", PASSWORD)
    with pytest.raises(ValidationError):
        authenticate_user(db, "ana@library.com", "")


def test_deactivated_account_cannot_log_in(db, admin):
    user = register_user(db, UserCreate(name="Ana", email="ana@library.com", password=PASSWORD))
    set_user_status(db, user.id, False, admin)

    with pytest.raises(InvalidStateError, match="Account is deactivated"):
        authenticate_user(db, "ana@library.com", PASSWORD)


def test_oauth_user_created_then_linked(db, make_user):
    created = get_or_create_oauth_user(db, "g-123", "oauth@library.com", "OAuth User", avatar="http://img/a.png")
    assert created.provider == Provider.GOOGLE
    assert created.role == Role.MEMBER
    assert created.password == ""

    again = get_or_create_oauth_user(db, "g-123", "oauth@library.com", "OAuth User")
    assert again.id == created.id
    assert again.avatar == "http://img/a.png"

    local = make_user(email="local@library.com")
    linked = get_or_create_oauth_user(db, "g-456", "local@library.com", "Local", avatar="http://img/b.png")
    assert linked.id == local.id
    assert linked.provider_id == "g-456"
    assert linked.avatar == "http://img/b.png"


def test_get_users_hides_passwords(db, admin, librarian, member):
    page = get_users(db)

    assert page.total == 3
    assert all("password" not in u.model_dump() for u in page.items)
    assert [u.email for u in get_users(db, query="LIBRARIAN").items] == ["librarian@library.com"]
    assert [u.role for u in get_users(db, role=Role.MEMBER).items] == [Role.MEMBER]


def test_user_choices(db, admin, member):
    choices = list_user_choices(db)
    assert {c.email for c in choices} == {"admin@library.com", "member@library.com"}


def test_user_detail_counts_loans(db, make_book, member):
    self_checkout(db, make_book(title="A").id, member)
    self_checkout(db, make_book(title="B").id, member)

    detail = get_user_detail(db, member.id)

    assert detail.user.email == "member@library.com"
    assert detail.stats.active_checkouts == 2
    assert detail.stats.total_borrowed == 2
    with pytest.raises(NotFoundError):
        get_user_detail(db, "missing")


def test_update_user_role(db, admin, member):
    updated = update_user_role(db, member.id, Role.LIBRARIAN, admin)
    assert updated.role == Role.LIBRARIAN

    with pytest.raises(ValidationError, match="Cannot change your own role"):
        update_user_role(db, admin.id, Role.MEMBER, admin)
    with pytest.raises(ValidationError, match="Invalid role"):
        update_user_role(db, member.id, "superuser", admin)
    with pytest.raises(NotFoundError):
        update_user_role(db, "missing", Role.MEMBER, admin)


def test_members_cannot_manage_users(db, member, librarian):
    with pytest.raises(PermissionDeniedError):
        update_user_role(db, librarian.id, Role.MEMBER, member)
    with pytest.raises(PermissionDeniedError):
        set_user_status(db, librarian.id, False, member)


def test_admin_cannot_deactivate_self(db, admin):
    with pytest.raises(ValidationError, match="Cannot deactivate your own account"):
        set_user_status(db, admin.id, False, admin)


def test_update_profile(db, member):
    updated = update_profile(db, member.id, ProfileUpdate(name="New Name", theme="dark"))

    assert updated.name == "New Name"
    assert updated.theme == "dark"
    assert get_user_by_email(db, "member@library.com").name == "New Name"


def test_login_upgrades_weak_hashes(db, make_user):
    weak_hash = bcrypt.using(rounds=4).hash(PASSWORD)
    user = make_user(email="legacy@library.com")
    db.users.update(user.id, {"password": weak_hash})

    logged_in = authenticate_user(db, "legacy@library.com", PASSWORD)

    assert logged_in.password != weak_hash
    assert verify_password(PASSWORD, logged_in.password)


def test_simultaneous_first_oauth_sign_ins_create_one_account(db):
    barrier = threading.Barrier(4)
    users = []

    def _sign_in():
        barrier.wait()
        users.append(get_or_create_oauth_user(db, "g-789", "twice@library.com", "Twice"))

    threads = [threading.Thread(target=_sign_in) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(users) == 4
    assert len({u.id for u in users}) == 1
    assert len(db.users.find(lambda u: u.get("email") == "twice@library.com")) == 1
