"""
Tests unitarios del repositorio de la cache (materializacion de tablas,
reemplazo atomico y consultas) sobre un SQLite temporal.
"""
from __future__ import annotations

import pytest
from sqlalchemy import inspect

from app.infrastructure.external.source_sync.cache_repository import (
    CacheRepository,
    quote_identifier,
    validate_identifier,
)
from app.shared.exceptions.sync import InvalidIdentifierException, StorageException


async def _column_names(repository: CacheRepository, table_name: str) -> list[str]:
    def _read(sync_conn):
        return [c["name"] for c in inspect(sync_conn).get_columns(table_name)]

    async with repository.engine.connect() as conn:
        return await conn.run_sync(_read)


class TestIdentifiers:
    """Validacion y citado de identificadores."""

    def test_quote_doubles_embedded_quotes(self) -> None:
        assert quote_identifier("Films") == '"Films"'
        assert quote_identifier('Say "hi"') == '"Say ""hi"""'
        assert quote_identifier("Start Date") == '"Start Date"'

    @pytest.mark.parametrize("name", ["", "   ", "bad\x00name", "tab\tname", "x" * 256])
    def test_rejects_invalid(self, name: str) -> None:
        with pytest.raises(InvalidIdentifierException):
            validate_identifier(name)

    def test_invalid_identifier_is_storage_error(self) -> None:
        with pytest.raises(StorageException):
            quote_identifier("")


class TestEnsureTable:
    """Materializacion de tablas con esquema dinamico."""

    @pytest.mark.asyncio
    async def test_creates_identity_plus_text_columns(self, repository: CacheRepository) -> None:
        columns = await repository.ensure_table("Films", {"Title", "Year"})

        assert columns == ["Title", "Year"]
        assert await _column_names(repository, "Films") == ["id", "Title", "Year"]

    @pytest.mark.asyncio
    async def test_is_idempotent(self, repository: CacheRepository) -> None:
        await repository.ensure_table("Films", {"Title", "Year"})
        columns = await repository.ensure_table("Films", {"Title", "Year"})

        assert columns == ["Title", "Year"]
        assert await _column_names(repository, "Films") == ["id", "Title", "Year"]

    @pytest.mark.asyncio
    async def test_adds_new_columns_without_touching_existing(self, repository: CacheRepository) -> None:
        await repository.ensure_table("Films", {"Year", "Title"})
        columns = await repository.ensure_table("Films", {"Title", "Director", "Award"})

        # Las existentes conservan su orden, las nuevas se agregan ordenadas
        assert columns == ["Title", "Year", "Award", "Director"]
        assert await _column_names(repository, "Films") == ["id", "Title", "Year", "Award", "Director"]

    @pytest.mark.asyncio
    async def test_skips_identity_and_case_collisions(self, repository: CacheRepository) -> None:
        await repository.ensure_table("Users", {"Name"})
        columns = await repository.ensure_table("Users", {"ID", "name", "Email"})

        assert columns == ["Name", "Email"]

    @pytest.mark.asyncio
    async def test_quoted_identifiers_roundtrip(self, repository: CacheRepository) -> None:
        weird = 'Say "hi"; DROP TABLE x'
        await repository.ensure_table("Odd Table", {weird, "Start Date"})
        await repository.replace_rows("Odd Table", [{weird: "v", "Start Date": "2024-01-01"}])

        rows = await repository.select_filtered("Odd Table", weird, "v")
        assert rows == [{"id": 1, "Start Date": "2024-01-01", weird: "v"}]

    @pytest.mark.asyncio
    async def test_empty_field_set_creates_identity_only(self, repository: CacheRepository) -> None:
        assert await repository.ensure_table("Assets", set()) == []
        assert await repository.table_exists("Assets")
        assert await repository.select_all("Assets") == []


class TestReplaceRows:
    """Reemplazo completo del contenido de una tabla."""

    @pytest.mark.asyncio
    async def test_replaces_all_rows(self, repository: CacheRepository) -> None:
        await repository.ensure_table("Years", {"Year"})
        await repository.replace_rows("Years", [{"Year": "2019"}, {"Year": "2020"}])
        inserted = await repository.replace_rows("Years", [{"Year": "2021"}])

        rows = await repository.select_all("Years")
        assert inserted == 1
        assert [r["Year"] for r in rows] == ["2021"]

    @pytest.mark.asyncio
    async def test_missing_fields_become_null(self, repository: CacheRepository) -> None:
        await repository.ensure_table("Films", {"Title", "Year"})
        await repository.replace_rows("Films", [{"Title": "A"}, {"Title": "B", "Year": "2020", "Extra": "x"}])

        rows = await repository.select_all("Films")
        assert {r["Title"]: r["Year"] for r in rows} == {"A": None, "B": "2020"}

    @pytest.mark.asyncio
    async def test_failed_insert_rolls_back_delete(self, repository: CacheRepository) -> None:
        await repository.ensure_table("Years", {"Year"})
        await repository.replace_rows("Years", [{"Year": "2019"}, {"Year": "2020"}])

        # Un valor que el driver no sabe ligar hace fallar el INSERT
        with pytest.raises(StorageException):
            await repository.replace_rows("Years", [{"Year": "2021"}, {"Year": object()}])

        rows = await repository.select_all("Years")
        assert sorted(r["Year"] for r in rows) == ["2019", "2020"]

    @pytest.mark.asyncio
    async def test_empty_batch_clears_table(self, repository: CacheRepository) -> None:
        await repository.ensure_table("Years", {"Year"})
        await repository.replace_rows("Years", [{"Year": "2019"}])

        assert await repository.replace_rows("Years", []) == 0
        assert await repository.select_all("Years") == []


class TestQueries:
    """Consultas genericas sobre tablas cacheadas."""

    @pytest.mark.asyncio
    async def test_select_filtered_is_text_equality(self, repository: CacheRepository) -> None:
        await repository.ensure_table("Films", {"Title", "Year"})
        await repository.replace_rows(
            "Films",
            [
                {"Title": "A", "Year": "2020"},
                {"Title": "B", "Year": "2021"},
                {"Title": "C", "Year": "2020"},
            ],
        )

        rows = await repository.select_filtered("Films", "Year", "2020")
        assert sorted(r["Title"] for r in rows) == ["A", "C"]
        assert all(r["Year"] == "2020" for r in rows)

    @pytest.mark.asyncio
    async def test_rows_are_keyed_by_column_name(self, repository: CacheRepository) -> None:
        await repository.ensure_table("Committee", {"Name", "Role"})
        await repository.replace_rows("Committee", [{"Name": "Ana", "Role": "Chair"}])

        assert await repository.select_all("Committee") == [{"id": 1, "Name": "Ana", "Role": "Chair"}]

    @pytest.mark.asyncio
    async def test_missing_table_is_storage_error(self, repository: CacheRepository) -> None:
        with pytest.raises(StorageException):
            await repository.select_all("Nope")

    @pytest.mark.asyncio
    async def test_missing_column_is_storage_error(self, repository: CacheRepository) -> None:
        await repository.ensure_table("Films", {"Title"})
        with pytest.raises(StorageException):
            await repository.select_filtered("Films", "Year", "2020")

    @pytest.mark.asyncio
    async def test_sees_columns_added_after_first_query(self, repository: CacheRepository) -> None:
        await repository.ensure_table("Films", {"Title"})
        assert await repository.select_all("Films") == []

        await repository.ensure_table("Films", {"Title", "Year"})
        await repository.replace_rows("Films", [{"Title": "A", "Year": "2020"}])

        rows = await repository.select_filtered("Films", "Year", "2020")
        assert rows[0]["Title"] == "A"
