"""
Endpoints internos (administrativos).
"""
from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse
from loguru import logger

from app.api.v1.dependencies.repository_deps import get_refresh_service
from app.infrastructure.external.source_sync.sync_service import CacheRefreshService

router = APIRouter(tags=["Internal"])


@router.get("/refreshData", response_class=PlainTextResponse)
async def refresh_data(
    service: CacheRefreshService = Depends(get_refresh_service)
):
    """
    Refrescar todas las tablas de la cache.

    Responde 200 aunque alguna tabla falle: los fallos quedan en el log
    y en /health.
    """
    results = await service.refresh_all()
    failed = [r.table_name for r in results if not r.ok]
    if failed:
        logger.warning(f"refreshData: tablas sin actualizar {failed}")
    return "All tables updated successfully"
