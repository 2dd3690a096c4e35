"""
Tests del ciclo de vida de la aplicacion (arranque y cierre).
"""
from __future__ import annotations

import sys
from pathlib import Path

import pytest
from fastapi import FastAPI
from loguru import logger

from app.core.config import Settings
from app.core.events import build_lifespan
from app.infrastructure.external.source_sync.sync_config import BINDING_ENV_VARS
from app.shared.exceptions.sync import SyncConfigError


def _settings(tmp_path: Path, **overrides) -> Settings:
    values = {env_var: f"tbl_{name.lower()}" for name, env_var in BINDING_ENV_VARS}
    values.update(
        CACHE_DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'cache.db'}",
        LOG_FILE=str(tmp_path / "app.log"),
        NOCODB_API_TOKEN="",
        AIRTABLE_PAT="",
        REFRESH_INTERVAL_MINUTES=0,
    )
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture(autouse=True)
def restore_logger():
    yield
    # El lifespan reemplaza los sinks de loguru
    logger.remove()
    logger.add(sys.stderr)


@pytest.mark.asyncio
async def test_missing_table_identifier_is_fatal(tmp_path: Path) -> None:
    lifespan = build_lifespan(_settings(tmp_path, NOCODB_TABLE_ASSETS=""))
    app = FastAPI()

    with pytest.raises(SyncConfigError) as exc_info:
        async with lifespan(app):
            pass

    assert exc_info.value.details["missing"] == ["NOCODB_TABLE_ASSETS"]
    assert not hasattr(app.state, "refresh_service")


@pytest.mark.asyncio
async def test_startup_without_credential_creates_empty_tables(tmp_path: Path) -> None:
    lifespan = build_lifespan(_settings(tmp_path))
    app = FastAPI()

    async with lifespan(app):
        repository = app.state.cache_repository
        assert await repository.select_all("Films") == []
        assert {r["status"] for r in app.state.refresh_service.status().values()} == {"skipped"}
        assert app.state.scheduler is None
