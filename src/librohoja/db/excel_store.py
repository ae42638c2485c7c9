"""
Almacén de registros respaldado por hojas de cálculo (.xlsx).

Cada instancia de ExcelStore gestiona una colección homogénea de registros
(diccionarios campo -> valor) guardada en un único libro de Excel con una sola
hoja. Toda lectura vuelve a parsear el fichero completo y toda escritura lo
reescribe entero bajo el candado de la colección.
"""

import logging
import math
import os
import re
import threading
import uuid
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional, Sequence

import pandas as pd
from openpyxl.cell.cell import ILLEGAL_CHARACTERS_RE

from ..core.exceptions import StorageCorruptionError, StoreLockTimeoutError, ValidationError
from ..core.timeutils import utc_now_iso

logger = logging.getLogger(__name__)

Record = Dict[str, Any]
Predicate = Callable[[Record], bool]

EXCEL_ENGINE = "openpyxl"
MAX_CELL_LENGTH = 32767

_ESCAPED_CHAR_RE = re.compile(r"_x(00[01][0-9A-Fa-f])_")


def _encode_text(value: str) -> str:
    """Escapa los caracteres de control que XML no admite como _xHHHH_."""
    return ILLEGAL_CHARACTERS_RE.sub(lambda m: "_x{:04X}_".format(ord(m.group(0))), value)


def _decode_text(value: str) -> str:
    def _sub(match):
        char = chr(int(match.group(1), 16))
        return char if ILLEGAL_CHARACTERS_RE.match(char) else match.group(0)

    if "_x" in value:
        return _ESCAPED_CHAR_RE.sub(_sub, value)
    return value


def _check_cells(records: Iterable[Record]) -> None:
    """
    Rechaza textos que no caben en una celda de Excel.

    Raises:
        ValidationError: Si algún valor supera MAX_CELL_LENGTH caracteres.
    """
    for record in records:
        for key, value in record.items():
            if isinstance(value, str) and len(_encode_text(value)) > MAX_CELL_LENGTH:
                raise ValidationError(
                    f"{key} is too long ({len(value)} characters)",
                    details=f"a single field holds at most {MAX_CELL_LENGTH} characters",
                )


def _clean_value(value: Any) -> Any:
    """Convierte escalares de numpy/pandas a tipos nativos de Python."""
    if isinstance(value, str):
        return _decode_text(value)
    if hasattr(value, "item") and not isinstance(value, bytes):
        value = value.item()
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def _is_empty(value: Any) -> bool:
    if value is None or value == "":
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


class ExcelStore:
    """
    Colección de registros persistida en un libro .xlsx.

    Atributos:
        file_path (Path): Ruta del libro que respalda la colección.
        sheet_name (str): Nombre de la hoja donde viven los registros.
        lock_timeout (float): Segundos que un escritor espera el candado.
    """

    def __init__(
        self,
        file_path: os.PathLike,
        sheet_name: str = "Sheet1",
        lock_timeout: float = 5.0,
        clock: Callable[[], str] = utc_now_iso,
    ):
        self.file_path = Path(file_path)
        self.sheet_name = sheet_name
        self.lock_timeout = lock_timeout
        self._clock = clock
        self._lock = threading.Lock()

    def __repr__(self) -> str:
        return f"<ExcelStore(sheet='{self.sheet_name}', file='{self.file_path.name}')>"

    # --- Candado ---

    @contextmanager
    def _write_lock(self) -> Iterator[None]:
        if not self._lock.acquire(timeout=self.lock_timeout):
            logger.error(f"Timed out after {self.lock_timeout}s waiting for the {self.sheet_name} lock")
            raise StoreLockTimeoutError(
                f"{self.sheet_name} is busy, try again",
                details=f"lock not acquired within {self.lock_timeout}s",
            )
        try:
            yield
        finally:
            self._lock.release()

    # --- Lectura / escritura del fichero ---

    def _read_records(self) -> List[Record]:
        if not self.file_path.exists():
            return []
        try:
            with pd.ExcelFile(self.file_path, engine=EXCEL_ENGINE) as workbook:
                if self.sheet_name not in workbook.sheet_names:
                    return []
                frame = workbook.parse(self.sheet_name, dtype=object, keep_default_na=False)
        except Exception as e:
            logger.exception(f"Could not parse {self.file_path}: {e}")
            raise StorageCorruptionError(
                f"{self.sheet_name} data could not be read", details=str(e)
            ) from e

        records: List[Record] = []
        for row in frame.to_dict(orient="records"):
            # Las celdas vacías se omiten: el campo queda ausente, no nulo.
            records.append({
                str(key): _clean_value(value)
                for key, value in row.items()
                if not _is_empty(value)
            })
        return records

    def _write_records(self, records: Sequence[Record]) -> None:
        self.file_path.parent.mkdir(parents=True, exist_ok=True)
        frame = pd.DataFrame([
            {key: _encode_text(value) if isinstance(value, str) else value for key, value in record.items()}
            for record in records
        ])
        tmp_path = self.file_path.with_name(f".{self.file_path.stem}-{uuid.uuid4().hex}.xlsx")
        try:
            with pd.ExcelWriter(tmp_path, engine=EXCEL_ENGINE) as writer:
                frame.to_excel(writer, sheet_name=self.sheet_name, index=False)
                # Texto que empieza por "=" o "#" se guarda como texto, no como fórmula o error.
                for row in writer.sheets[self.sheet_name].iter_rows():
                    for cell in row:
                        if isinstance(cell.value, str):
                            cell.data_type = "s"
            os.replace(tmp_path, self.file_path)
        finally:
            if tmp_path.exists():
                tmp_path.unlink()

    def _stamp(self, fields: Record) -> Record:
        now = self._clock()
        return {"id": str(uuid.uuid4()), **fields, "createdAt": now, "updatedAt": now}

    # --- Operaciones de lectura (sin candado) ---

    def read_all(self) -> List[Record]:
        """
        Devuelve todos los registros leyendo el fichero desde cero.

        Returns:
            List[Record]: Lista vacía si el fichero o la hoja aún no existen.

        Raises:
            StorageCorruptionError: Si el fichero existe pero no se puede parsear.
        """
        return self._read_records()

    def find_by_id(self, record_id: str) -> Optional[Record]:
        return self.find_one(lambda r: r.get("id") == record_id)

    def find(self, predicate: Predicate) -> List[Record]:
        return [r for r in self.read_all() if predicate(r)]

    def find_one(self, predicate: Predicate) -> Optional[Record]:
        return next((r for r in self.read_all() if predicate(r)), None)

    def search(self, query: Optional[str], fields: Iterable[str]) -> List[Record]:
        """
        Búsqueda por subcadena, sin distinguir mayúsculas, en los campos indicados.

        Args:
            query (Optional[str]): Término a buscar. Vacío devuelve todo.
            fields (Iterable[str]): Campos en los que buscar.

        Returns:
            List[Record]: Registros con al menos un campo que contiene el término.
        """
        if not query:
            return self.read_all()
        q = query.lower()
        fields = list(fields)
        return self.find(
            lambda r: any(r.get(f) and q in str(r[f]).lower() for f in fields)
        )

    def count(self) -> int:
        return len(self.read_all())

    # --- Operaciones de escritura (bajo candado) ---

    def create(self, fields: Record) -> Record:
        """
        Crea un registro con id, createdAt y updatedAt generados.

        Args:
            fields (Record): Campos del nuevo registro.

        Returns:
            Record: El registro completo tal y como se guardó.
        """
        _check_cells([fields])
        with self._write_lock():
            records = self._read_records()
            new_record = self._stamp(fields)
            records.append(new_record)
            self._write_records(records)
        logger.debug(f"Created {self.sheet_name} record {new_record['id']}")
        return new_record

    def create_many(self, items: Sequence[Record]) -> List[Record]:
        """Crea varios registros con una sola reescritura del fichero."""
        _check_cells(items)
        with self._write_lock():
            records = self._read_records()
            new_records = [self._stamp(item) for item in items]
            records.extend(new_records)
            self._write_records(records)
        logger.debug(f"Created {len(new_records)} {self.sheet_name} records")
        return new_records

    def update(self, record_id: str, updates: Record) -> Optional[Record]:
        """
        Fusiona `updates` sobre el registro existente y refresca updatedAt.

        Args:
            record_id (str): ID del registro a modificar.
            updates (Record): Campos a sobrescribir; los omitidos se conservan.

        Returns:
            Optional[Record]: El registro actualizado, None si no existe.
        """
        _check_cells([updates])
        with self._write_lock():
            records = self._read_records()
            idx = next((i for i, r in enumerate(records) if r.get("id") == record_id), None)
            if idx is None:
                return None
            records[idx] = {**records[idx], **updates, "updatedAt": self._clock()}
            self._write_records(records)
            return records[idx]

    def delete(self, record_id: str) -> bool:
        """Borra físicamente el registro. Devuelve False si no existe."""
        with self._write_lock():
            records = self._read_records()
            remaining = [r for r in records if r.get("id") != record_id]
            if len(remaining) == len(records):
                return False
            self._write_records(remaining)
        return True

    def bulk_write(self, records: Sequence[Record]) -> None:
        """Sustituye la colección completa por `records`."""
        _check_cells(records)
        with self._write_lock():
            self._write_records(records)
