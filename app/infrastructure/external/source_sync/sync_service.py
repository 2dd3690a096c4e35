"""
Servicio de refresco origen remoto -> cache local.

Diseño (resumen), por cada tabla:
- Resuelve identificador remoto y credencial (si faltan, se omite la tabla)
- Trae todos los registros (en un thread, el cliente HTTP es síncrono)
- Recalcula el conjunto de campos y materializa la tabla
- Reemplaza todas las filas en una única transacción (borrado + inserciones)

Estrategia de aislamiento:
- Un fallo en una tabla se loguea y no afecta al resto.
- Los fetch de distintas tablas corren concurrentemente; las escrituras se
  serializan con un lock porque la cache es un único archivo SQLite.
"""

from __future__ import annotations

import asyncio
from typing import Any, Optional, Sequence

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncEngine

from app.application.interfaces.remote_table_source import RemoteTableSource
from app.core.config import Settings
from app.shared.exceptions.sync import SyncConfigError, SyncException

from .airtable_client import AirtableClient
from .cache_repository import CacheRepository
from .nocodb_client import NocoDBClient
from .sync_config import TableBinding, build_table_bindings
from .types import RefreshResult, Record, infer_fields, strip_system_fields, stringify_value


def build_cache_row(record: Record) -> dict[str, Optional[str]]:
    """
    Mapea un registro remoto a una fila lista para insertar.

    Reglas:
    - Se descartan los campos de sistema del proveedor
    - Todos los valores se guardan como texto (None -> NULL)
    """
    return {name: stringify_value(value) for name, value in strip_system_fields(record).items()}


class CacheRefreshService:
    """
    Orquestador del refresco completo de las tablas configuradas.
    """

    def __init__(
        self,
        *,
        repository: CacheRepository,
        source: RemoteTableSource,
        bindings: Sequence[TableBinding],
        credential: Optional[str],
        schema_evolution: bool = True,
    ) -> None:
        self._repo = repository
        self._source = source
        self._bindings = list(bindings)
        self._credential = credential
        self._schema_evolution = schema_evolution
        self._write_lock = asyncio.Lock()
        self.last_results: dict[str, RefreshResult] = {}

    @property
    def bindings(self) -> list[TableBinding]:
        return list(self._bindings)

    def get_binding(self, logical_name: str) -> TableBinding:
        for binding in self._bindings:
            if binding.logical_name == logical_name:
                return binding
        raise SyncConfigError(f"No hay binding configurado para la tabla {logical_name}")

    def _resolve(self, binding: TableBinding) -> tuple[str, str]:
        if not binding.remote_identifier:
            raise SyncConfigError(
                f"Variable de entorno {binding.env_var or '?'} no configurada, se omite la tabla {binding.logical_name}"
            )
        if not self._credential:
            raise SyncConfigError(
                f"Credencial del origen no configurada, se omite la tabla {binding.logical_name}"
            )
        return binding.remote_identifier, self._credential

    async def fetch(self, binding: TableBinding) -> list[Record]:
        """Trae todos los registros remotos de un binding (sin tocar la cache)."""
        remote_id, credential = self._resolve(binding)
        return await asyncio.to_thread(self._source.fetch_records, remote_id, credential)

    async def refresh_one(self, binding: TableBinding) -> RefreshResult:
        """
        Ejecuta una corrida completa para una tabla.

        Raises:
            SyncConfigError: falta identificador o credencial
            RemoteNetworkException / RemoteDecodeException: fallo del fetch
            StorageException: fallo al materializar o escribir
        """
        logger.info(f"Refrescando tabla {binding.logical_name}...")
        records = await self.fetch(binding)
        result = await self._store(binding, records)
        self.last_results[binding.logical_name] = result
        return result

    async def _store(self, binding: TableBinding, records: list[Record]) -> RefreshResult:
        table_name = binding.logical_name
        fields = infer_fields(records)
        rows = [build_cache_row(record) for record in records]

        async with self._write_lock:
            if self._schema_evolution or not await self._repo.table_exists(table_name):
                columns = await self._repo.ensure_table(table_name, fields)
            else:
                columns = await self._repo.get_columns(table_name)
                unknown = sorted(fields - set(columns))
                if unknown:
                    logger.warning(
                        f"Tabla {table_name}: campos nuevos sin columna en la cache, se ignoran: {unknown}"
                    )
            inserted = await self._repo.replace_rows(table_name, rows)

        logger.info(f"Refresco completado para la tabla {table_name}: {inserted} filas")
        return RefreshResult(
            table_name=table_name,
            status="success",
            rows=inserted,
            columns=tuple(columns),
        )

    async def _refresh_isolated(self, binding: TableBinding) -> RefreshResult:
        try:
            return await self.refresh_one(binding)
        except SyncConfigError as e:
            logger.warning(e.message)
            result = RefreshResult(table_name=binding.logical_name, status="skipped", error=e.message)
        except SyncException as e:
            logger.error(f"Error refrescando la tabla {binding.logical_name}: {e.message}")
            result = RefreshResult(table_name=binding.logical_name, status="error", error=e.message)
        self.last_results[binding.logical_name] = result
        return result

    async def refresh_all(self) -> list[RefreshResult]:
        """
        Refresca todas las tablas (best-effort).

        Un éxito parcial es normal: cada tabla se aísla y el resultado de cada
        una queda en last_results.
        """
        results = await asyncio.gather(*(self._refresh_isolated(b) for b in self._bindings))
        ok = sum(1 for r in results if r.ok)
        logger.info(f"Refresco de cache finalizado: {ok}/{len(results)} tablas actualizadas")
        return list(results)

    async def bootstrap(self) -> list[RefreshResult]:
        """
        Pasada de arranque: refresca todo y crea vacía (solo identidad) cada
        tabla que aún no exista, para que las consultas devuelvan [] en vez
        de fallar. Los errores de almacenamiento aquí se propagan.
        """
        results = await self.refresh_all()
        for binding in self._bindings:
            if not await self._repo.table_exists(binding.logical_name):
                logger.warning(f"Tabla {binding.logical_name} sin datos iniciales, se crea vacía")
                await self._repo.ensure_table(binding.logical_name, set())
        return results

    def status(self) -> dict[str, Any]:
        """Resumen del último refresco por tabla."""
        return {
            name: {
                "status": r.status,
                "rows": r.rows,
                "error": r.error,
                "finished_at": r.finished_at.isoformat(),
            }
            for name, r in self.last_results.items()
        }


def build_source_client(settings: Settings) -> RemoteTableSource:
    """Cliente del proveedor configurado en SOURCE_PROVIDER."""
    provider = settings.SOURCE_PROVIDER.strip().lower()
    if provider == "nocodb":
        return NocoDBClient(
            base_url=settings.NOCODB_BASE_URL,
            timeout_s=settings.SOURCE_TIMEOUT_S,
            page_size=settings.NOCODB_PAGE_SIZE,
        )
    if provider == "airtable":
        return AirtableClient(timeout_s=settings.SOURCE_TIMEOUT_S)
    raise SyncConfigError(f"SOURCE_PROVIDER desconocido: {settings.SOURCE_PROVIDER}")


def build_from_settings(
    settings: Settings,
    engine: AsyncEngine,
    *,
    strict: bool = True,
) -> tuple[CacheRefreshService, CacheRepository, RemoteTableSource]:
    """
    Construye el pipeline completo a partir de la configuración.

    Con strict=True la falta de identificadores de tabla es un error fatal.
    """
    source = build_source_client(settings)
    repository = CacheRepository(engine)
    service = CacheRefreshService(
        repository=repository,
        source=source,
        bindings=build_table_bindings(settings, strict=strict),
        credential=settings.source_credential,
        schema_evolution=settings.CACHE_SCHEMA_EVOLUTION,
    )
    return service, repository, source
