"""
Tipos y utilidades puras para el pipeline origen remoto -> cache.

Se mantienen libres de I/O para poder testearlos fácilmente.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Iterable, Mapping, Optional

# Registro tal como lo entrega el origen: nombre de campo -> valor escalar/None.
Record = dict[str, Any]

# Columnas gestionadas por NocoDB (identificador, fecha de creación y de actualización).
SYSTEM_FIELDS: frozenset[str] = frozenset({"Id", "CreatedAt", "UpdatedAt"})

# Columna sintética de identidad de cada tabla de cache.
IDENTITY_COLUMN = "id"

_TRUTHY_TEXT = frozenset({"true", "1", "yes", "y", "checked"})


def utc_now() -> datetime:
    """Retorna la hora actual en UTC, como datetime aware."""
    return datetime.now(timezone.utc)


def is_system_field(name: str) -> bool:
    return name in SYSTEM_FIELDS


def infer_fields(records: Iterable[Mapping[str, Any]]) -> set[str]:
    """
    Calcula el conjunto de campos presentes en algún registro del lote.

    Es la unión (no la intersección) de las claves de todos los registros,
    excluyendo los campos de sistema del proveedor.
    """
    fields: set[str] = set()
    for record in records:
        for name in record:
            if not is_system_field(name):
                fields.add(name)
    return fields


def strip_system_fields(record: Mapping[str, Any]) -> Record:
    """Copia del registro sin los campos de sistema."""
    return {k: v for k, v in record.items() if not is_system_field(k)}


def stringify_value(value: Any) -> Optional[str]:
    """
    Convierte un valor del origen a su representación TEXT en la cache.

    - None se mantiene como NULL.
    - bool -> "true"/"false" (antes que int, porque bool es subclase de int).
    - listas y dicts -> JSON compacto.
    - el resto -> str().
    """
    if value is None:
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple, dict)):
        return json.dumps(value, ensure_ascii=False, separators=(",", ":"), default=str)
    return str(value)


def is_truthy_text(value: Optional[str]) -> bool:
    """Interpreta un flag booleano almacenado como texto en la cache."""
    if value is None:
        return False
    return value.strip().lower() in _TRUTHY_TEXT


@dataclass(frozen=True)
class RefreshResult:
    """
    Resultado del refresco de una tabla.

    status: "success", "skipped" o "error".
    """

    table_name: str
    status: str
    rows: int = 0
    columns: tuple[str, ...] = field(default_factory=tuple)
    error: Optional[str] = None
    finished_at: datetime = field(default_factory=utc_now)

    @property
    def ok(self) -> bool:
        return self.status == "success"
