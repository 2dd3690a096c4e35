"""
Punto de entrada principal de la aplicación FastAPI.
Configura la aplicación, middlewares, rutas y ciclo de vida.
"""
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from app.core.config import Settings, settings, get_cors_origins
from app.core.events import build_lifespan
from app.api.v1.router import api_router
from app.api.middlewares.error_handler import ErrorHandlerMiddleware
from app.api.middlewares.request_logger import RequestLoggingMiddleware
from app.shared.exceptions.base import AppException


def create_application(app_settings: Optional[Settings] = None) -> FastAPI:
    """
    Factory para crear y configurar la aplicación FastAPI.

    Args:
        app_settings: Configuración a usar (por defecto la global)

    Returns:
        FastAPI: Instancia configurada de la aplicación
    """
    app_settings = app_settings or settings

    application = FastAPI(
        title=app_settings.APP_NAME,
        version=app_settings.APP_VERSION,
        description="Cache local de tablas NocoDB/Airtable para la web de la sociedad",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=build_lifespan(app_settings),
    )
    application.state.settings = app_settings

    # Middlewares personalizados
    application.add_middleware(ErrorHandlerMiddleware)
    application.add_middleware(RequestLoggingMiddleware)

    # CORS (cualquier origen), agregado al final para que envuelva a los demas middlewares
    application.add_middleware(
        CORSMiddleware,
        allow_origins=get_cors_origins(app_settings.CORS_ORIGINS),
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["X-Requested-With", "Content-Type", "Authorization"],
    )

    # Incluir routers de la API
    application.include_router(api_router, prefix="/api")

    # Manejador global de excepciones personalizadas
    @application.exception_handler(AppException)
    async def app_exception_handler(request: Request, exc: AppException):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path}: {exc.message}")
        return JSONResponse(
            status_code=exc.status_code,
            content=exc.to_response_body()
        )

    # Cuerpo o parametros mal formados -> 400
    @application.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content={
                "error": "VALIDATION_ERROR",
                "message": "Peticion invalida",
                "details": {"errors": jsonable_errors(exc)}
            }
        )

    # Health check endpoint
    @application.get("/health", tags=["Health"])
    async def health_check(request: Request):
        """Estado de la aplicación y resultado del último refresco por tabla."""
        service = getattr(request.app.state, "refresh_service", None)
        return {
            "status": "healthy",
            "app_name": app_settings.APP_NAME,
            "version": app_settings.APP_VERSION,
            "environment": app_settings.ENVIRONMENT,
            "tables": service.status() if service is not None else {}
        }

    return application


def jsonable_errors(exc: RequestValidationError) -> list:
    """Errores de validación sin objetos no serializables (p.ej. ctx con excepciones)."""
    return [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg", ""), "type": err.get("type", "")}
        for err in exc.errors()
    ]


# Crear instancia de la aplicación
app = create_application()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower()
    )
