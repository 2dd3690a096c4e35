"""
Repositorio de la cache local (SQLAlchemy async) para:
- materializar tablas con esquema dinámico (una columna TEXT por campo)
- reemplazar el contenido completo de una tabla dentro de una transacción
- consultas genéricas (todas las filas / filtro por igualdad)

Los nombres de tabla y columna vienen de datos remotos no confiables:
se validan con validate_identifier y se citan siempre. Los valores se
pasan como parámetros ligados, nunca interpolados en el SQL.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Iterable, Mapping, Optional, Sequence

from loguru import logger
from sqlalchemy import Column, Integer, MetaData, Table, Text, delete, insert, inspect, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from app.shared.exceptions.sync import InvalidIdentifierException, StorageException

from .types import IDENTITY_COLUMN

MAX_IDENTIFIER_LENGTH = 255


def validate_identifier(name: str) -> str:
    """
    Allow-list mínima para identificadores derivados de datos remotos.

    Se rechazan nombres vacíos, demasiado largos o con caracteres de control
    (incluido NUL). Cualquier otro carácter es válido una vez citado.
    """
    if not isinstance(name, str) or not name.strip():
        raise InvalidIdentifierException(str(name), "nombre vacío")
    if len(name) > MAX_IDENTIFIER_LENGTH:
        raise InvalidIdentifierException(name[:40], f"supera {MAX_IDENTIFIER_LENGTH} caracteres")
    if any(ord(ch) < 32 or ord(ch) == 127 for ch in name):
        raise InvalidIdentifierException(name, "contiene caracteres de control")
    return name


def quote_identifier(name: str) -> str:
    """Cita un identificador estilo ANSI duplicando las comillas internas."""
    validate_identifier(name)
    return '"' + name.replace('"', '""') + '"'


def build_cache_table(table_name: str, columns: Sequence[str], metadata: Optional[MetaData] = None) -> Table:
    """Definición Core de una tabla de cache: identidad + columnas TEXT."""
    return Table(
        table_name,
        metadata or MetaData(),
        Column(IDENTITY_COLUMN, Integer, primary_key=True, autoincrement=True),
        *[Column(name, Text, nullable=True) for name in columns],
        sqlite_autoincrement=True,
    )


def _existing_columns(sync_conn, table_name: str) -> Optional[list[str]]:
    inspector = inspect(sync_conn)
    if not inspector.has_table(table_name):
        return None
    return [c["name"] for c in inspector.get_columns(table_name)]


def _reflect_table(sync_conn, table_name: str) -> Table:
    return Table(table_name, MetaData(), autoload_with=sync_conn)


class CacheRepository:
    """
    Acceso a las tablas de cache.

    Recibe el engine ya creado (lo posee la raíz de composición de la app)
    y nunca lo cierra.
    """

    def __init__(self, engine: AsyncEngine) -> None:
        self._engine = engine
        self._tables: dict[str, Table] = {}

    @property
    def engine(self) -> AsyncEngine:
        return self._engine

    @asynccontextmanager
    async def _storage_errors(self, action: str, table_name: str) -> AsyncIterator[None]:
        try:
            yield
        except StorageException:
            raise
        except (SQLAlchemyError, KeyError) as e:
            raise StorageException(
                f"Error {action} la tabla {table_name}: {e}",
                details={"table": table_name},
            ) from e

    async def table_exists(self, table_name: str) -> bool:
        validate_identifier(table_name)
        async with self._storage_errors("inspeccionando", table_name):
            async with self._engine.connect() as conn:
                columns = await conn.run_sync(_existing_columns, table_name)
        return columns is not None

    async def get_columns(self, table_name: str) -> list[str]:
        """Columnas de datos (sin la identidad) en orden de creación."""
        validate_identifier(table_name)
        async with self._storage_errors("inspeccionando", table_name):
            async with self._engine.connect() as conn:
                columns = await conn.run_sync(_existing_columns, table_name)
        if columns is None:
            raise StorageException(f"La tabla {table_name} no existe", details={"table": table_name})
        return [c for c in columns if c != IDENTITY_COLUMN]

    async def ensure_table(self, table_name: str, fields: Iterable[str]) -> list[str]:
        """
        Crea la tabla si no existe y agrega las columnas que falten.

        Nunca elimina ni modifica columnas existentes. Los campos nuevos se
        agregan ordenados alfabéticamente al final, de modo que el orden de
        columnas ya creado se mantiene estable.

        Returns:
            Lista de columnas de datos resultante (sin la identidad).
        """
        validate_identifier(table_name)
        async with self._storage_errors("materializando", table_name):
            async with self._engine.begin() as conn:
                existing = await conn.run_sync(_existing_columns, table_name)
                current = [c for c in (existing or []) if c != IDENTITY_COLUMN]
                new_columns = self._plan_new_columns(table_name, current, fields)

                if existing is None:
                    table = build_cache_table(table_name, new_columns)
                    await conn.run_sync(table.create, checkfirst=True)
                    logger.info(f"Tabla de cache creada: {table_name} ({len(new_columns)} columnas)")
                else:
                    for name in new_columns:
                        await conn.exec_driver_sql(
                            f"ALTER TABLE {quote_identifier(table_name)} "
                            f"ADD COLUMN {quote_identifier(name)} TEXT"
                        )
                    if new_columns:
                        logger.info(f"Tabla {table_name}: columnas agregadas {new_columns}")

        if new_columns or existing is None:
            self._tables.pop(table_name, None)
        return current + new_columns

    def _plan_new_columns(self, table_name: str, current: Sequence[str], fields: Iterable[str]) -> list[str]:
        # SQLite compara identificadores sin distinguir mayúsculas.
        taken = {c.lower() for c in current} | {IDENTITY_COLUMN}
        planned: list[str] = []
        for name in sorted(set(fields)):
            validate_identifier(name)
            if name.lower() in taken:
                if name not in current:
                    logger.warning(
                        f"Tabla {table_name}: el campo '{name}' colisiona con una columna existente, se omite"
                    )
                continue
            taken.add(name.lower())
            planned.append(name)
        return planned

    async def _get_table(self, table_name: str) -> Table:
        validate_identifier(table_name)
        table = self._tables.get(table_name)
        if table is None:
            async with self._storage_errors("reflejando", table_name):
                async with self._engine.connect() as conn:
                    table = await conn.run_sync(_reflect_table, table_name)
            self._tables[table_name] = table
        return table

    async def replace_rows(self, table_name: str, rows: Sequence[Mapping[str, Optional[str]]]) -> int:
        """
        Reemplaza todas las filas de la tabla: DELETE + INSERTs en una única
        transacción. Si cualquier inserción falla se revierte también el
        borrado y la tabla queda como estaba.

        Cada fila se completa con NULL en las columnas que no trae.
        """
        table = await self._get_table(table_name)
        columns = [c.name for c in table.columns if c.name != IDENTITY_COLUMN]
        params = [{name: row.get(name) for name in columns} for row in rows]

        async with self._storage_errors("reemplazando filas de", table_name):
            async with self._engine.begin() as conn:
                await conn.execute(delete(table))
                if params:
                    await conn.execute(insert(table), params)
        return len(params)

    async def select_all(self, table_name: str) -> list[dict[str, Any]]:
        """Todas las filas, en el orden natural del motor (sin ORDER BY)."""
        table = await self._get_table(table_name)
        async with self._storage_errors("consultando", table_name):
            async with self._engine.connect() as conn:
                result = await conn.execute(select(table))
                return [dict(row) for row in result.mappings()]

    async def select_filtered(self, table_name: str, column: str, value: Any) -> list[dict[str, Any]]:
        """Filas cuya columna es igual (como texto) al valor dado."""
        validate_identifier(column)
        table = await self._get_table(table_name)
        async with self._storage_errors("consultando", table_name):
            if column not in table.c:
                raise StorageException(
                    f"La tabla {table_name} no tiene la columna {column}",
                    details={"table": table_name, "column": column},
                )
            async with self._engine.connect() as conn:
                result = await conn.execute(select(table).where(table.c[column] == value))
                return [dict(row) for row in result.mappings()]
