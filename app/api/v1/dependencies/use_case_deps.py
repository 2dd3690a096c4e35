"""
Dependencias para inyeccion de casos de uso.
"""
from fastapi import Depends, Request

from app.application.use_cases.cache_query_use_cases import CacheQueryUseCases
from app.application.use_cases.kit_use_cases import KitUseCases
from app.api.v1.dependencies.repository_deps import get_cache_repository
from app.core.config import Settings
from app.infrastructure.external.source_sync.cache_repository import CacheRepository


def get_query_use_cases(
    repository: CacheRepository = Depends(get_cache_repository)
) -> CacheQueryUseCases:
    """
    Dependencia para obtener los casos de uso de consulta.

    Args:
        repository: Repositorio de la cache

    Returns:
        CacheQueryUseCases: Instancia de casos de uso de consulta
    """
    return CacheQueryUseCases(repository)


def get_kit_use_cases(
    request: Request,
    repository: CacheRepository = Depends(get_cache_repository)
) -> KitUseCases:
    """
    Dependencia para obtener los casos de uso del kit.

    Args:
        request: Peticion HTTP (para leer configuracion y cliente remoto)
        repository: Repositorio de la cache

    Returns:
        KitUseCases: Instancia de casos de uso del kit
    """
    app_settings: Settings = request.app.state.settings
    return KitUseCases(
        repository,
        student_number_field=app_settings.KIT_STUDENT_NUMBER_FIELD,
        membership_field=app_settings.KIT_MEMBERSHIP_FIELD,
        source=getattr(request.app.state, "source", None),
        checkout_table_id=app_settings.NOCODB_TABLE_CHECKOUTS,
        credential=app_settings.source_credential,
    )
