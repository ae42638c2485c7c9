"""
Operaciones CRUD para el modelo User del sistema LibroHoja.
Incluye funciones para crear y autenticar usuarios, enlazar cuentas OAuth,
listar usuarios y administrar su rol y su estado.
Pensado para ser utilizado por la capa de servicios y autenticación.
"""

import logging
from typing import List, Optional

from ..core.exceptions import (
    DuplicateError,
    InvalidStateError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from ..core.security import get_password_hash, verify_and_refresh
from ..core.timeutils import utc_now_iso
from ..db.session import LibraryDB
from ..models.transaction import TransactionStatus
from ..models.user import Provider, Role, User
from ..schemas.common import Actor, Page
from ..schemas.user import ProfileUpdate, UserChoice, UserCreate, UserDetail, UserSchema, UserStats
from .utils import require_role

logger = logging.getLogger(__name__)


def _public(user: User) -> UserSchema:
    return UserSchema.model_validate(user.to_public_record())


def get_user_by_id(db: LibraryDB, user_id: str) -> Optional[User]:
    record = db.users.find_by_id(user_id)
    return User.from_record(record) if record else None


def get_user_by_email(db: LibraryDB, email: str) -> Optional[User]:
    """
    Obtiene un usuario por su email.

    Args:
        db (LibraryDB): Colecciones de la biblioteca.
        email (str): Email del usuario a buscar.

    Returns:
        Optional[User]: El usuario si existe, None si no.
    """
    record = db.users.find_one(lambda u: u.get("email") == email)
    return User.from_record(record) if record else None


def create_user(db: LibraryDB, user: UserCreate, actor: Optional[Actor] = None) -> User:
    """
    Crea un nuevo usuario local con la contraseña hasheada.

    Sin `actor` es un auto-registro y el rol se fuerza a member; con `actor`
    solo un administrador puede crear cuentas, con el rol que indique.

    Args:
        db (LibraryDB): Colecciones de la biblioteca.
        user (UserCreate): Objeto con los datos del usuario a crear.
        actor (Optional[Actor]): Administrador que crea la cuenta.

    Returns:
        User: El usuario creado.

    Raises:
        DuplicateError: Si el email ya está registrado.
    """
    role = Role.MEMBER
    if actor is not None:
        require_role(actor, Role.ADMIN)
        role = user.role

    hashed_password: str = get_password_hash(user.password)
    with db.consistency_lock:
        if get_user_by_email(db, user.email):
            logger.warning(f"Registration rejected, email already in use: {user.email}")
            raise DuplicateError("Email already registered")
        record = db.users.create({
            "name": user.name,
            "email": user.email,
            "password": hashed_password,
            "role": role.value,
            "provider": Provider.LOCAL.value,
            "providerId": None,
            "avatar": None,
            "isActive": True,
            "theme": "light",
            "lastLogin": utc_now_iso() if actor is None else None,
        })
    logger.info(f"User {record['id']} created with role {role.value}")
    return User.from_record(record)


def register_user(db: LibraryDB, user: UserCreate) -> User:
    """Auto-registro: siempre crea un miembro."""
    return create_user(db, user)


def authenticate_user(db: LibraryDB, email: str, password: str) -> User:
    """
    Comprueba las credenciales de un usuario local y registra el inicio de sesión.

    Raises:
        PermissionDeniedError: Email desconocido o contraseña incorrecta.
        InvalidStateError: La cuenta está desactivada.
    """
    if not email or not password:
        raise ValidationError("Email and password are required")

    user = get_user_by_email(db, email)
    if user is None:
        raise PermissionDeniedError("Invalid email or password")
    if not user.is_active:
        raise InvalidStateError("Account is deactivated")
    matches, new_hash = verify_and_refresh(password, user.password)
    if not matches:
        logger.warning(f"Failed login for {email}")
        raise PermissionDeniedError("Invalid email or password")

    updates = {"lastLogin": utc_now_iso()}
    if new_hash:
        logger.info(f"Re-hashing password for user {user.id} with current bcrypt settings")
        updates["password"] = new_hash
    record = db.users.update(user.id, updates)
    return User.from_record(record) if record else user


def get_or_create_oauth_user(
    db: LibraryDB,
    provider_id: str,
    email: str,
    name: str,
    avatar: Optional[str] = None,
    provider: Provider = Provider.GOOGLE,
) -> User:
    """
    Resuelve la cuenta de un inicio de sesión OAuth.

    Busca primero por ID del proveedor y después por email; si no existe,
    crea un miembro sin contraseña. Si existe, enlaza el proveedor y
    conserva el avatar que ya tuviera.
    """
    with db.consistency_lock:
        record = db.users.find_one(
            lambda u: u.get("provider") == provider.value and str(u.get("providerId")) == provider_id
        )
        if record is None and email:
            record = db.users.find_one(lambda u: u.get("email") == email)

        if record is None:
            created = db.users.create({
                "name": name,
                "email": email or "",
                "password": "",
                "role": Role.MEMBER.value,
                "provider": provider.value,
                "providerId": provider_id,
                "avatar": avatar,
                "isActive": True,
                "theme": "light",
                "lastLogin": utc_now_iso(),
            })
            logger.info(f"User {created['id']} created from {provider.value} sign-in")
            return User.from_record(created)

        updated = db.users.update(record["id"], {
            "lastLogin": utc_now_iso(),
            "avatar": record.get("avatar") or avatar,
            "provider": provider.value,
            "providerId": provider_id,
        })
        return User.from_record(updated or record)


def get_users(
    db: LibraryDB,
    query: Optional[str] = None,
    role: Optional[Role] = None,
    page: int = 1,
    limit: int = 20,
) -> Page[UserSchema]:
    """
    Obtiene una página de usuarios, del más reciente al más antiguo.
    NO devuelve la contraseña hasheada.

    Args:
        db (LibraryDB): Colecciones de la biblioteca.
        query (Optional[str]): Texto buscado en nombre o email.
        role (Optional[Role]): Filtra por rol.
        page (int): Página, empezando en 1.
        limit (int): Usuarios por página.

    Returns:
        Page[UserSchema]: Página de usuarios sin datos sensibles.
    """
    users = [User.from_record(r) for r in db.users.read_all()]
    if query:
        q = query.lower()
        users = [u for u in users if q in u.name.lower() or q in u.email.lower()]
    if role:
        users = [u for u in users if u.role == Role(role)]
    users.sort(key=lambda u: u.created_at.timestamp() if u.created_at else 0, reverse=True)
    return Page[UserSchema].build([_public(u) for u in users], page=page, limit=limit)


def list_user_choices(db: LibraryDB) -> List[UserChoice]:
    """Lista reducida (id, nombre, email, rol) para selectores."""
    return [
        UserChoice(id=u.id, name=u.name, email=u.email, role=u.role)
        for u in (User.from_record(r) for r in db.users.read_all())
    ]


def get_user_detail(db: LibraryDB, user_id: str) -> UserDetail:
    user = get_user_by_id(db, user_id)
    if user is None:
        raise NotFoundError("User not found")
    transactions = db.transactions.find(lambda t: t.get("userId") == user_id)
    active = sum(1 for t in transactions if t.get("status") == TransactionStatus.ACTIVE.value)
    return UserDetail(
        user=_public(user),
        stats=UserStats(active_checkouts=active, total_borrowed=len(transactions)),
    )


def update_user_role(db: LibraryDB, user_id: str, role: Role, actor: Actor) -> User:
    """
    Cambia el rol de un usuario. Solo administradores, y nunca sobre sí mismos.
    """
    require_role(actor, Role.ADMIN)
    try:
        role = Role(role)
    except ValueError:
        raise ValidationError("Invalid role")
    if user_id == actor.id:
        raise ValidationError("Cannot change your own role")

    record = db.users.update(user_id, {"role": role.value})
    if record is None:
        raise NotFoundError("User not found")
    logger.info(f"User {user_id} role set to {role.value} by {actor.id}")
    return User.from_record(record)


def set_user_status(db: LibraryDB, user_id: str, is_active: bool, actor: Actor) -> User:
    """
    Activa o desactiva una cuenta. Solo administradores, y nunca sobre sí mismos.
    """
    require_role(actor, Role.ADMIN)
    if user_id == actor.id:
        raise ValidationError("Cannot deactivate your own account")

    record = db.users.update(user_id, {"isActive": bool(is_active)})
    if record is None:
        raise NotFoundError("User not found")
    logger.info(f"User {user_id} {'activated' if is_active else 'deactivated'} by {actor.id}")
    return User.from_record(record)


def update_profile(db: LibraryDB, user_id: str, changes: ProfileUpdate) -> User:
    """Actualiza nombre, avatar o tema del propio usuario."""
    updates = {}
    if changes.name:
        updates["name"] = changes.name
    if "avatar" in changes.model_fields_set:
        updates["avatar"] = changes.avatar
    if changes.theme:
        updates["theme"] = changes.theme

    record = db.users.update(user_id, updates)
    if record is None:
        raise NotFoundError("User not found")
    return User.from_record(record)
