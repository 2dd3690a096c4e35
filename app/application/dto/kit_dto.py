"""
DTOs del modulo de kit (membresia y prestamo de equipo).
El cuerpo de checkout usa el formato de registros de Airtable/NocoDB.
"""
from typing import Any, List, Optional, Union
from pydantic import BaseModel, ConfigDict, Field, field_validator


class CheckoutFieldsDTO(BaseModel):
    """Campos de una solicitud de prestamo, con los nombres de columna del origen."""
    model_config = ConfigDict(populate_by_name=True)

    student_number: str = Field(..., alias="Student Number", description="Numero de estudiante")
    assets: Union[List[str], str] = Field(..., alias="Assets", description="Equipo solicitado")
    start_date: str = Field(..., alias="Start Date", description="Inicio del prestamo")
    end_date: str = Field(..., alias="End Date", description="Fin del prestamo")

    @field_validator("student_number", mode="before")
    @classmethod
    def _number_as_text(cls, value: Any) -> Any:
        # Los formularios a veces envian el numero como entero
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value


class CheckoutRecordDTO(BaseModel):
    """Un registro {fields: {...}}."""
    fields: CheckoutFieldsDTO


class CheckoutRequestDTO(BaseModel):
    """Cuerpo de POST /kit/checkout. Debe traer exactamente un registro."""
    records: List[CheckoutRecordDTO] = Field(default_factory=list)


class AuthenticationResponseDTO(BaseModel):
    """Resultado de verificar la membresia de un estudiante."""
    authenticated: bool
    message: str


class CheckoutResponseDTO(BaseModel):
    """Resultado de una solicitud de prestamo."""
    success: bool
    message: str
    forwarded: Optional[bool] = Field(None, description="True si se registro en la tabla remota de prestamos")
