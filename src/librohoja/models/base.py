"""
Clase base para los registros tipados de LibroHoja.

Los registros se guardan en las hojas con claves camelCase (availableCopies,
createdAt...). Los modelos exponen atributos snake_case y toleran columnas
ausentes en registros antiguos aplicando valores por defecto.
"""

from datetime import datetime, timezone
from typing import Annotated, Any, Dict, Optional, Type, TypeVar

from pydantic import AfterValidator, BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


T = TypeVar("T", bound="StoredRecord")


def _assume_utc(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)

# Fechas sin zona horaria se interpretan como UTC.
UtcDatetime = Annotated[datetime, AfterValidator(_assume_utc)]


class StoredRecord(BaseModel):
    """
    Campos comunes a todos los registros.

    Atributos:
        id (str): Identificador opaco generado al crear el registro.
        created_at (datetime): Momento de creación, inmutable.
        updated_at (datetime): Momento de la última escritura.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        coerce_numbers_to_str=True,
        extra="ignore",
    )

    id: str
    created_at: Optional[UtcDatetime] = None
    updated_at: Optional[UtcDatetime] = None

    @classmethod
    def from_record(cls: Type[T], record: Dict[str, Any]) -> T:
        return cls.model_validate(record)

    def to_record(self) -> Dict[str, Any]:
        """Diccionario con claves camelCase y fechas en ISO-8601."""
        return self.model_dump(by_alias=True, mode="json")
