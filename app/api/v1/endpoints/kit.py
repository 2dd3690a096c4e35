"""
Endpoints del kit: equipo disponible, membresia y solicitud de prestamo.
"""
from typing import Any, Dict, List
from fastapi import APIRouter, Depends

from app.application.dto.kit_dto import (
    AuthenticationResponseDTO,
    CheckoutRequestDTO,
    CheckoutResponseDTO,
)
from app.application.use_cases.cache_query_use_cases import CacheQueryUseCases
from app.application.use_cases.kit_use_cases import KitUseCases
from app.api.v1.dependencies.use_case_deps import get_kit_use_cases, get_query_use_cases

router = APIRouter(prefix="/kit", tags=["Kit"])


@router.get("/assets", response_model=List[Dict[str, Any]])
async def get_assets(
    use_cases: CacheQueryUseCases = Depends(get_query_use_cases)
):
    """
    Obtener el equipo disponible para prestamo.
    """
    return await use_cases.get_assets()


@router.get("/authenticate/", response_model=AuthenticationResponseDTO, include_in_schema=False)
@router.get("/authenticate/{studentnumber}", response_model=AuthenticationResponseDTO)
async def authenticate(
    studentnumber: str = "",
    use_cases: KitUseCases = Depends(get_kit_use_cases)
):
    """
    Verificar que un estudiante sea miembro activo.

    - 400 si el numero viene vacio
    - 404 si el estudiante no existe
    - 403 si la membresia no esta activa
    """
    return await use_cases.authenticate(studentnumber)


@router.post("/checkout", response_model=CheckoutResponseDTO)
async def checkout(
    request: CheckoutRequestDTO,
    use_cases: KitUseCases = Depends(get_kit_use_cases)
):
    """
    Solicitar el prestamo de equipo. El cuerpo debe traer exactamente un registro.
    """
    return await use_cases.checkout(request)
