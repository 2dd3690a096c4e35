"""
CLI: refresco manual de la cache (origen remoto -> base local).

Util para poblar la cache antes de levantar el API o para diagnosticar
una tabla concreta sin pasar por el endpoint interno.

Ejecución:
  python scripts/refresh_cache.py
  python scripts/refresh_cache.py --table Films --table Years
  python scripts/refresh_cache.py --schema-only
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

from loguru import logger
from dotenv import load_dotenv

# Permite ejecutar este script desde cualquier cwd sin configurar PYTHONPATH.
_PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(_PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(_PROJECT_ROOT))

load_dotenv(_PROJECT_ROOT / ".env", override=False)

from app.core.config import Settings
from app.infrastructure.database.session import close_engine, create_cache_engine
from app.infrastructure.external.source_sync.sync_config import BINDING_ENV_VARS
from app.infrastructure.external.source_sync.sync_service import build_from_settings
from app.infrastructure.external.source_sync.types import infer_fields
from app.shared.exceptions.sync import SyncException


async def _run(args: argparse.Namespace) -> int:
    settings = Settings()
    engine = create_cache_engine(settings.CACHE_DATABASE_URL)
    try:
        service, _repo, _source = build_from_settings(settings, engine, strict=False)
        bindings = service.bindings
        if args.table:
            bindings = [service.get_binding(name) for name in args.table]

        if args.schema_only:
            for binding in bindings:
                try:
                    records = await service.fetch(binding)
                except SyncException as e:
                    logger.error(f"{binding.logical_name}: {e.message}")
                    continue
                fields = sorted(infer_fields(records))
                print(f"{binding.logical_name} ({len(records)} registros): {', '.join(fields)}")
            return 0

        failed = 0
        for binding in bindings:
            try:
                result = await service.refresh_one(binding)
                logger.info(f"{result.table_name}: {result.rows} filas, {len(result.columns)} columnas")
            except SyncException as e:
                logger.error(f"{binding.logical_name}: {e.message}")
                failed += 1
        return 1 if failed else 0
    finally:
        await close_engine(engine)


def main() -> int:
    parser = argparse.ArgumentParser()
    parser.add_argument(
        "--table",
        action="append",
        choices=[name for name, _ in BINDING_ENV_VARS],
        help="Tabla a refrescar (repetible). Por defecto todas.",
    )
    parser.add_argument(
        "--schema-only",
        action="store_true",
        help="Solo imprime los campos inferidos de cada tabla (no escribe en la cache).",
    )
    args = parser.parse_args()
    return asyncio.run(_run(args))


if __name__ == "__main__":
    raise SystemExit(main())
