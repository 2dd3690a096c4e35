"""
Casos de uso de la aplicacion.
"""
from .cache_query_use_cases import CacheQueryUseCases
from .kit_use_cases import KitUseCases

__all__ = ["CacheQueryUseCases", "KitUseCases"]
