"""
Esquemas Pydantic compartidos: identidad del llamante y páginas de resultados.
"""

import math
from typing import Generic, List, Sequence, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from librohoja.core.exceptions import ValidationError
from librohoja.models.user import Role, STAFF_ROLES, User

T = TypeVar("T")


class Actor(BaseModel):
    """
    Identidad y rol de quien realiza la operación, ya autenticado por la capa HTTP.

    Atributos:
        id (str): ID del usuario.
        role (Role): Rol con el que actúa.
        name (str): Nombre visible, usado como instantánea en las reseñas.
    """
    id: str
    role: Role
    name: str = ""

    @classmethod
    def from_user(cls, user: User) -> "Actor":
        return cls(id=user.id, role=user.role, name=user.name)

    @property
    def is_staff(self) -> bool:
        return self.role in STAFF_ROLES


class Page(BaseModel, Generic[T]):
    """
    Una página de resultados.

    Atributos:
        items (List[T]): Elementos de la página.
        total (int): Elementos totales antes de paginar.
        page (int): Número de página, empezando en 1.
        total_pages (int): Número de páginas.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    items: List[T] = Field(default_factory=list)
    total: int = 0
    page: int = 1
    total_pages: int = 0

    @classmethod
    def build(cls, items: Sequence[T], page: int = 1, limit: int = 20, **extra) -> "Page[T]":
        if page < 1 or limit < 1:
            raise ValidationError("Page and limit must be positive integers")
        start = (page - 1) * limit
        return cls(
            items=list(items[start:start + limit]),
            total=len(items),
            page=page,
            total_pages=math.ceil(len(items) / limit),
            **extra,
        )
