"""
Casos de uso de consulta sobre la cache local.
Cada endpoint de lectura devuelve las filas de una tabla tal como estan cacheadas.
"""
from typing import Any, Dict, List
from loguru import logger

from app.infrastructure.external.source_sync.cache_repository import CacheRepository
from app.infrastructure.external.source_sync.sync_config import (
    TABLE_ANNOUNCEMENTS,
    TABLE_ASSETS,
    TABLE_COMMITTEE,
    TABLE_FILMS,
    TABLE_YEARS,
)
from app.shared.exceptions.domain import ValidationException

# Columna de la tabla Films por la que se filtra
FILMS_YEAR_COLUMN = "Year"


class CacheQueryUseCases:
    """
    Consultas de solo lectura sobre las tablas cacheadas.
    """

    def __init__(self, repository: CacheRepository):
        self.repository = repository

    async def get_committee(self) -> List[Dict[str, Any]]:
        """Miembros del comite."""
        return await self.repository.select_all(TABLE_COMMITTEE)

    async def get_announcements(self) -> List[Dict[str, Any]]:
        """Anuncios publicados."""
        return await self.repository.select_all(TABLE_ANNOUNCEMENTS)

    async def get_years(self) -> List[Dict[str, Any]]:
        """Ediciones (anios) del festival."""
        return await self.repository.select_all(TABLE_YEARS)

    async def get_films_by_year(self, year: str) -> List[Dict[str, Any]]:
        """
        Peliculas de un anio concreto.

        Args:
            year: Valor de la columna Year (se compara como texto)

        Returns:
            List[Dict[str, Any]]: Filas de Films cuyo Year coincide

        Raises:
            ValidationException: Si el anio viene vacio
        """
        if not year or not year.strip():
            raise ValidationException("El anio es obligatorio", field="year")

        films = await self.repository.select_filtered(TABLE_FILMS, FILMS_YEAR_COLUMN, year)
        logger.debug(f"Films {year}: {len(films)} resultados")
        return films

    async def get_assets(self) -> List[Dict[str, Any]]:
        """Equipo disponible para prestamo."""
        return await self.repository.select_all(TABLE_ASSETS)
