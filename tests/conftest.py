"""
Configuración de fixtures para pytest.
"""
from pathlib import Path
from typing import Any, AsyncGenerator, Dict, List, Mapping, Optional, Sequence

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine

from app.infrastructure.database.session import close_engine, create_cache_engine
from app.infrastructure.external.source_sync.cache_repository import CacheRepository


@pytest_asyncio.fixture
async def cache_engine(tmp_path: Path) -> AsyncGenerator[AsyncEngine, None]:
    """
    Engine sobre un archivo SQLite temporal por test.
    (Un :memory: no se comparte entre las conexiones del pool.)
    """
    engine = create_cache_engine(f"sqlite+aiosqlite:///{tmp_path / 'cache.db'}")
    yield engine
    await close_engine(engine)


@pytest.fixture
def repository(cache_engine: AsyncEngine) -> CacheRepository:
    return CacheRepository(cache_engine)


class FakeSource:
    """Origen remoto en memoria: tabla -> registros, o tabla -> excepción."""

    def __init__(self, tables: Optional[Dict[str, Any]] = None):
        self.tables: Dict[str, Any] = dict(tables or {})
        self.fetch_calls: List[tuple] = []
        self.created: List[tuple] = []

    def fetch_records(self, table_identifier: str, credential: str) -> List[Dict[str, Any]]:
        self.fetch_calls.append((table_identifier, credential))
        value = self.tables.get(table_identifier, [])
        if isinstance(value, Exception):
            raise value
        return [dict(r) for r in value]

    def create_records(self, table_identifier: str, credential: str, rows: Sequence[Mapping[str, Any]]) -> Any:
        self.created.append((table_identifier, credential, [dict(r) for r in rows]))
        return [{"Id": i + 1} for i, _ in enumerate(rows)]


@pytest.fixture
def fake_source() -> FakeSource:
    return FakeSource()
