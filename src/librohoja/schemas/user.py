"""
Esquemas Pydantic para la entidad User en LibroHoja.
Define los modelos de entrada y salida para validación y serialización de usuarios.
"""

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel

from librohoja.models.user import Role

class UserCreate(BaseModel):
    """
    Esquema para la creación de un usuario.

    Atributos:
        name (str): Nombre visible.
        email (EmailStr): Correo electrónico del usuario.
        password (str): Contraseña en texto plano (será hasheada antes de almacenar).
        role (Role): Rol asignado; el auto-registro siempre crea miembros.
    """
    name: str = Field(..., min_length=1)
    email: EmailStr
    password: str = Field(..., min_length=1)
    role: Role = Role.MEMBER

class ProfileUpdate(BaseModel):
    """
    Cambios que un usuario puede hacer sobre su propio perfil.
    """
    name: Optional[str] = None
    avatar: Optional[str] = None
    theme: Optional[Literal["light", "dark"]] = None

class UserSchema(BaseModel):
    """
    Esquema de salida para un usuario (sin contraseña).

    Atributos:
        id (str): ID del usuario.
        name (str): Nombre visible.
        email (str): Correo electrónico del usuario.
        role (Role): Rol del usuario.
        is_active (bool): Estado de activación del usuario.
    """
    model_config = ConfigDict(from_attributes=True, alias_generator=to_camel, populate_by_name=True)

    id: str
    name: str
    email: str
    role: Role
    is_active: bool = True

class UserStats(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    active_checkouts: int
    total_borrowed: int

class UserDetail(BaseModel):
    user: UserSchema
    stats: UserStats

class UserChoice(BaseModel):
    """Entrada reducida para desplegables de selección de usuario."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    email: str
    role: Role

