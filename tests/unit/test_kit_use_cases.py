"""
Tests unitarios de los casos de uso del kit (membresia y checkout).
"""
from __future__ import annotations

import pytest
import pytest_asyncio

from app.application.dto.kit_dto import CheckoutRequestDTO
from app.application.use_cases.kit_use_cases import KitUseCases
from app.infrastructure.external.source_sync.cache_repository import CacheRepository
from app.shared.exceptions.auth import ForbiddenException
from app.shared.exceptions.domain import EntityNotFoundException, ValidationException


def _checkout_body(*student_numbers: str) -> CheckoutRequestDTO:
    return CheckoutRequestDTO.model_validate(
        {
            "records": [
                {
                    "fields": {
                        "Student Number": number,
                        "Assets": ["Camera A"],
                        "Start Date": "2024-03-01",
                        "End Date": "2024-03-03",
                    }
                }
                for number in student_numbers
            ]
        }
    )


@pytest_asyncio.fixture
async def users_repository(repository: CacheRepository) -> CacheRepository:
    await repository.ensure_table("Users", {"Student Number", "Active Member"})
    await repository.replace_rows(
        "Users",
        [
            {"Student Number": "1001", "Active Member": "true"},
            {"Student Number": "1002", "Active Member": "false"},
            {"Student Number": "1003", "Active Member": None},
        ],
    )
    return repository


class TestAuthenticate:
    """Verificacion de membresia."""

    @pytest.mark.asyncio
    async def test_active_member(self, users_repository) -> None:
        result = await KitUseCases(users_repository).authenticate("1001")
        assert result.authenticated is True

    @pytest.mark.asyncio
    @pytest.mark.parametrize("number", ["1002", "1003"])
    async def test_inactive_or_unset_is_forbidden(self, users_repository, number: str) -> None:
        with pytest.raises(ForbiddenException):
            await KitUseCases(users_repository).authenticate(number)

    @pytest.mark.asyncio
    async def test_unknown_student(self, users_repository) -> None:
        with pytest.raises(EntityNotFoundException):
            await KitUseCases(users_repository).authenticate("9999")

    @pytest.mark.asyncio
    async def test_empty_input(self, users_repository) -> None:
        with pytest.raises(ValidationException):
            await KitUseCases(users_repository).authenticate("  ")

    @pytest.mark.asyncio
    async def test_custom_field_names(self, repository: CacheRepository) -> None:
        await repository.ensure_table("Users", {"Matricula", "Socio"})
        await repository.replace_rows("Users", [{"Matricula": "77", "Socio": "checked"}])
        use_cases = KitUseCases(repository, student_number_field="Matricula", membership_field="Socio")

        assert (await use_cases.authenticate("77")).authenticated


class TestCheckout:
    """Solicitudes de prestamo."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("numbers", [(), ("1001", "1001")])
    async def test_requires_exactly_one_record(self, users_repository, numbers) -> None:
        with pytest.raises(ValidationException):
            await KitUseCases(users_repository).checkout(_checkout_body(*numbers))

    @pytest.mark.asyncio
    async def test_reverifies_membership(self, users_repository) -> None:
        use_cases = KitUseCases(users_repository)
        with pytest.raises(EntityNotFoundException):
            await use_cases.checkout(_checkout_body("9999"))
        with pytest.raises(ForbiddenException):
            await use_cases.checkout(_checkout_body("1002"))

    @pytest.mark.asyncio
    async def test_without_checkout_table_only_logs(self, users_repository, fake_source) -> None:
        result = await KitUseCases(users_repository, source=fake_source).checkout(_checkout_body("1001"))

        assert result.success is True
        assert result.forwarded is False
        assert fake_source.created == []

    @pytest.mark.asyncio
    async def test_forwards_to_checkout_table(self, users_repository, fake_source) -> None:
        use_cases = KitUseCases(
            users_repository,
            source=fake_source,
            checkout_table_id="tbl_checkouts",
            credential="token",
        )

        result = await use_cases.checkout(_checkout_body("1001"))

        assert result.forwarded is True
        table_id, credential, rows = fake_source.created[0]
        assert (table_id, credential) == ("tbl_checkouts", "token")
        assert rows == [
            {
                "Student Number": "1001",
                "Assets": ["Camera A"],
                "Start Date": "2024-03-01",
                "End Date": "2024-03-03",
            }
        ]


def test_checkout_student_number_accepts_int() -> None:
    body = CheckoutRequestDTO.model_validate(
        {"records": [{"fields": {"Student Number": 1001, "Assets": "Tripod", "Start Date": "a", "End Date": "b"}}]}
    )
    assert body.records[0].fields.student_number == "1001"
