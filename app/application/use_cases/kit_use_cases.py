"""
Casos de uso del kit: verificacion de membresia y prestamo de equipo.

La membresia es un unico flag booleano (guardado como texto en la cache)
en la tabla de usuarios, buscado por numero de estudiante.
"""
import asyncio
from typing import Any, Dict, Optional
from loguru import logger

from app.application.dto.kit_dto import (
    AuthenticationResponseDTO,
    CheckoutRequestDTO,
    CheckoutResponseDTO,
)
from app.application.interfaces.remote_table_source import RemoteTableSource
from app.infrastructure.external.source_sync.cache_repository import CacheRepository
from app.infrastructure.external.source_sync.sync_config import TABLE_USERS
from app.infrastructure.external.source_sync.types import is_truthy_text
from app.shared.exceptions.auth import ForbiddenException
from app.shared.exceptions.domain import EntityNotFoundException, ValidationException


class KitUseCases:
    """
    Casos de uso para el prestamo de equipo a miembros activos.
    """

    def __init__(
        self,
        repository: CacheRepository,
        *,
        student_number_field: str = "Student Number",
        membership_field: str = "Active Member",
        source: Optional[RemoteTableSource] = None,
        checkout_table_id: str = "",
        credential: str = "",
    ):
        self.repository = repository
        self.student_number_field = student_number_field
        self.membership_field = membership_field
        self.source = source
        self.checkout_table_id = checkout_table_id
        self.credential = credential

    async def _verify_membership(self, student_number: str) -> Dict[str, Any]:
        """
        Busca al estudiante y comprueba que su membresia este activa.

        Raises:
            EntityNotFoundException: Si el numero de estudiante no existe
            ForbiddenException: Si el flag de membresia es nulo o falso
        """
        users = await self.repository.select_filtered(
            TABLE_USERS, self.student_number_field, student_number
        )
        if not users:
            raise EntityNotFoundException("Student", student_number)

        user = users[0]
        if not is_truthy_text(user.get(self.membership_field)):
            logger.info(f"Membresia inactiva para el estudiante {student_number}")
            raise ForbiddenException(
                "La membresia del estudiante no esta activa",
                details={"student_number": student_number},
            )
        return user

    async def authenticate(self, student_number: str) -> AuthenticationResponseDTO:
        """
        Verifica que un estudiante sea miembro activo.

        Args:
            student_number: Numero de estudiante

        Returns:
            AuthenticationResponseDTO: authenticated=True si la membresia esta activa

        Raises:
            ValidationException: Si el numero viene vacio
            EntityNotFoundException: Si el estudiante no existe
            ForbiddenException: Si la membresia no esta activa
        """
        if not student_number or not student_number.strip():
            raise ValidationException("El numero de estudiante es obligatorio", field="studentnumber")

        await self._verify_membership(student_number.strip())
        return AuthenticationResponseDTO(
            authenticated=True,
            message="Student is an active member",
        )

    async def checkout(self, request: CheckoutRequestDTO) -> CheckoutResponseDTO:
        """
        Registra un prestamo de equipo.

        Vuelve a verificar la membresia del estudiante. Si hay una tabla remota
        de prestamos configurada, el registro se reenvia alli.

        Raises:
            ValidationException: Si el cuerpo no trae exactamente un registro
            EntityNotFoundException / ForbiddenException: Ver authenticate
        """
        if len(request.records) != 1:
            raise ValidationException(
                f"Se esperaba exactamente un registro, se recibieron {len(request.records)}",
                field="records",
            )

        fields = request.records[0].fields
        student_number = fields.student_number.strip()
        if not student_number:
            raise ValidationException("El numero de estudiante es obligatorio", field="Student Number")

        await self._verify_membership(student_number)

        logger.info(
            f"Checkout: estudiante={student_number} assets={fields.assets} "
            f"desde={fields.start_date} hasta={fields.end_date}"
        )

        forwarded = await self._forward(fields.model_dump(by_alias=True))
        return CheckoutResponseDTO(
            success=True,
            message="Checkout request received",
            forwarded=forwarded,
        )

    async def _forward(self, row: Dict[str, Any]) -> bool:
        if not self.checkout_table_id or self.source is None:
            logger.warning("NOCODB_TABLE_CHECKOUTS no configurada: el checkout solo queda en el log")
            return False

        await asyncio.to_thread(
            self.source.create_records, self.checkout_table_id, self.credential, [row]
        )
        logger.info(f"Checkout registrado en la tabla remota {self.checkout_table_id}")
        return True
