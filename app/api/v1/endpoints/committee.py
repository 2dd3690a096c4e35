from typing import Any, Dict, List
from fastapi import APIRouter, Depends

from app.application.use_cases.cache_query_use_cases import CacheQueryUseCases
from app.api.v1.dependencies.use_case_deps import get_query_use_cases

router = APIRouter(prefix="/committee", tags=["Committee"])


@router.get("", response_model=List[Dict[str, Any]])
async def get_committee(
    use_cases: CacheQueryUseCases = Depends(get_query_use_cases)
):
    """
    Obtener los miembros del comite (cacheados desde el origen remoto).
    """
    return await use_cases.get_committee()
