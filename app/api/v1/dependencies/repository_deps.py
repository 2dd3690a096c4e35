"""
Dependencias para inyeccion de repositorios y servicios de infraestructura.

Las instancias viven en app.state: las crea el lifespan de la aplicacion.
"""
from fastapi import Request

from app.infrastructure.external.source_sync.cache_repository import CacheRepository
from app.infrastructure.external.source_sync.sync_service import CacheRefreshService


def get_cache_repository(request: Request) -> CacheRepository:
    """
    Dependencia para obtener el repositorio de la cache.

    Args:
        request: Peticion HTTP en curso

    Returns:
        CacheRepository: Repositorio compartido de la aplicacion
    """
    return request.app.state.cache_repository


def get_refresh_service(request: Request) -> CacheRefreshService:
    """Dependencia para obtener el servicio de refresco de la cache."""
    return request.app.state.refresh_service
