"""
Ciclo de vida de la aplicacion (lifespan de FastAPI).

Es la raiz de composicion: crea el engine de la cache, el cliente del
origen remoto y los servicios, y los publica en app.state.
"""
import sys
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from fastapi import FastAPI
from loguru import logger

from app.core.config import Settings, settings as default_settings
from app.infrastructure.database.session import close_engine, create_cache_engine
from app.infrastructure.external.source_sync.sync_config import build_table_bindings
from app.infrastructure.external.source_sync.sync_service import (
    CacheRefreshService,
    build_from_settings,
)


def configure_logging(app_settings: Settings) -> None:
    """Consola + archivo rotado, ambos al nivel LOG_LEVEL."""
    logger.remove()
    logger.add(sys.stderr, level=app_settings.LOG_LEVEL)
    logger.add(
        app_settings.LOG_FILE,
        rotation="500 MB",
        retention="10 days",
        level=app_settings.LOG_LEVEL
    )


def _validate_config(app_settings: Settings) -> None:
    """
    Valida la configuracion critica.

    La falta de un identificador de tabla es fatal; la falta de credencial
    solo hace que el refresco se omita.

    Raises:
        SyncConfigError: Si falta algun identificador de tabla
    """
    build_table_bindings(app_settings, strict=True)

    if not app_settings.source_credential:
        logger.warning(
            f"CONFIG: credencial de {app_settings.SOURCE_PROVIDER} no configurada - "
            "las tablas no se refrescaran"
        )
    if not app_settings.NOCODB_TABLE_CHECKOUTS:
        logger.warning("CONFIG: NOCODB_TABLE_CHECKOUTS no configurada - los checkouts solo se loguean")


def _start_refresh_scheduler(
    service: CacheRefreshService, interval_minutes: int
) -> Optional[AsyncIOScheduler]:
    """Refresco periodico dentro del proceso (deshabilitado con 0)."""
    if interval_minutes <= 0:
        return None

    scheduler = AsyncIOScheduler()
    scheduler.add_job(
        service.refresh_all,
        trigger=IntervalTrigger(minutes=interval_minutes),
        id="cache_refresh",
        max_instances=1,
        coalesce=True,
    )
    scheduler.start()
    logger.info(f"Refresco periodico cada {interval_minutes} minutos")
    return scheduler


def _print_available_urls(app_settings: Settings) -> None:
    """Imprime las URLs disponibles de la aplicacion."""
    access_host = "localhost" if app_settings.HOST == "0.0.0.0" else app_settings.HOST
    base_url = f"http://{access_host}:{app_settings.PORT}"

    logger.opt(colors=True).info("<bold><green>" + "=" * 80 + "</green></bold>")
    logger.opt(colors=True).info("<bold><green>URLS DISPONIBLES:</green></bold>")
    logger.opt(colors=True).info(f"<cyan>  Swagger UI:  {base_url}/docs</cyan>")
    logger.opt(colors=True).info(f"<cyan>  Health:      {base_url}/health</cyan>")
    logger.opt(colors=True).info(f"<cyan>  Refresh:     {base_url}/api/v1/internal/refreshData</cyan>")
    logger.opt(colors=True).info("<bold><green>" + "=" * 80 + "</green></bold>")


def build_lifespan(app_settings: Settings = default_settings):
    """
    Construye el lifespan de la aplicacion para una configuracion dada.

    Args:
        app_settings: Configuracion a usar

    Returns:
        Callable: Context manager asincrono para FastAPI(lifespan=...)
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        configure_logging(app_settings)
        logger.info(f"Iniciando {app_settings.APP_NAME} v{app_settings.APP_VERSION}")
        logger.info(f"Entorno: {app_settings.ENVIRONMENT}")

        _validate_config(app_settings)

        engine = create_cache_engine(app_settings.CACHE_DATABASE_URL, echo=app_settings.DEBUG)
        scheduler = None
        try:
            service, repository, source = build_from_settings(app_settings, engine, strict=True)
            app.state.settings = app_settings
            app.state.cache_repository = repository
            app.state.refresh_service = service
            app.state.source = source

            # Pasada inicial: si falla el almacenamiento la app no puede servir
            await service.bootstrap()
            logger.info("Cache inicializada")

            scheduler = _start_refresh_scheduler(service, app_settings.REFRESH_INTERVAL_MINUTES)
            app.state.scheduler = scheduler

            logger.success("Aplicacion iniciada correctamente")
            _print_available_urls(app_settings)

            yield
        finally:
            logger.info("Cerrando aplicacion...")
            if scheduler is not None:
                scheduler.shutdown(wait=False)
                logger.info("Scheduler de refresco detenido")
            await close_engine(engine)
            logger.info("Conexiones de base de datos cerradas")
            logger.success("Aplicacion cerrada correctamente")

    return lifespan
