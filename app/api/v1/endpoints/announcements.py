from typing import Any, Dict, List
from fastapi import APIRouter, Depends

from app.application.use_cases.cache_query_use_cases import CacheQueryUseCases
from app.api.v1.dependencies.use_case_deps import get_query_use_cases

router = APIRouter(prefix="/announcements", tags=["Announcements"])


@router.get("", response_model=List[Dict[str, Any]])
async def get_announcements(
    use_cases: CacheQueryUseCases = Depends(get_query_use_cases)
):
    """
    Obtener todos los anuncios.
    """
    return await use_cases.get_announcements()
