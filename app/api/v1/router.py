"""
Router principal de la API v1.
Agrupa todos los endpoints de la version 1.
"""
from fastapi import APIRouter

from app.api.v1.endpoints import announcements, atvas, committee, internal, kit


# Endpoints publicos de lectura y del kit
http_router = APIRouter(prefix="/http")
http_router.include_router(committee.router)
http_router.include_router(announcements.router)
http_router.include_router(atvas.router)
http_router.include_router(kit.router)

# Endpoints administrativos
internal_router = APIRouter(prefix="/internal")
internal_router.include_router(internal.router)

# Router principal de la API v1
api_router = APIRouter(prefix="/v1")
api_router.include_router(http_router)
api_router.include_router(internal_router)
