"""
Endpoints del festival ATVAS: ediciones y peliculas por anio.
"""
from typing import Any, Dict, List
from fastapi import APIRouter, Depends

from app.application.use_cases.cache_query_use_cases import CacheQueryUseCases
from app.api.v1.dependencies.use_case_deps import get_query_use_cases

router = APIRouter(prefix="/atvas", tags=["ATVAS"])


@router.get("/years", response_model=List[Dict[str, Any]])
async def get_years(
    use_cases: CacheQueryUseCases = Depends(get_query_use_cases)
):
    """
    Obtener todas las ediciones del festival.
    """
    return await use_cases.get_years()


# "/films/" (segmento vacio) llega con year="" y el caso de uso responde 400
@router.get("/films/", response_model=List[Dict[str, Any]], include_in_schema=False)
@router.get("/films/{year}", response_model=List[Dict[str, Any]])
async def get_films_by_year(
    year: str = "",
    use_cases: CacheQueryUseCases = Depends(get_query_use_cases)
):
    """
    Obtener las peliculas de un anio (igualdad exacta sobre la columna Year).
    """
    return await use_cases.get_films_by_year(year)
