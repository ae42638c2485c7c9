"""
Modelo tipado para la entidad User de LibroHoja.
Define los campos de una cuenta, su rol y su proveedor de identidad.
"""

from enum import Enum
from typing import Any, Dict, Optional

from pydantic import Field

from librohoja.models.base import StoredRecord, UtcDatetime


class Role(str, Enum):
    ADMIN = "admin"
    LIBRARIAN = "librarian"
    MEMBER = "member"


class Provider(str, Enum):
    LOCAL = "local"
    GOOGLE = "google"


STAFF_ROLES = (Role.ADMIN, Role.LIBRARIAN)


class User(StoredRecord):
    """
    Representa una cuenta registrada.

    Atributos:
        name (str): Nombre visible.
        email (str): Correo electrónico, único entre los usuarios.
        password (str): Hash bcrypt; vacío en cuentas solo OAuth.
        role (Role): admin, librarian o member.
        provider (Provider): local o google.
        provider_id (Optional[str]): ID externo para cuentas OAuth.
        avatar (Optional[str]): URL del avatar.
        is_active (bool): Las cuentas desactivadas no pueden iniciar sesión.
        theme (str): Preferencia de tema de la interfaz.
        last_login (Optional[datetime]): Último inicio de sesión.
    """
    name: str = ""
    email: str = ""
    password: str = Field(default="", repr=False)
    role: Role = Role.MEMBER
    provider: Provider = Provider.LOCAL
    provider_id: Optional[str] = None
    avatar: Optional[str] = None
    is_active: bool = True
    theme: str = "light"
    last_login: Optional[UtcDatetime] = None

    @property
    def is_staff(self) -> bool:
        return self.role in STAFF_ROLES

    def to_public_record(self) -> Dict[str, Any]:
        """Registro sin el hash de la contraseña, apto para enviarse al cliente."""
        record = self.to_record()
        record.pop("password", None)
        return record

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}', role='{self.role.value}')>"
