"""
Data Transfer Objects (DTOs) para la capa de aplicacion.
"""
from .kit_dto import (
    AuthenticationResponseDTO,
    CheckoutFieldsDTO,
    CheckoutRecordDTO,
    CheckoutRequestDTO,
    CheckoutResponseDTO,
)

__all__ = [
    "AuthenticationResponseDTO",
    "CheckoutFieldsDTO",
    "CheckoutRecordDTO",
    "CheckoutRequestDTO",
    "CheckoutResponseDTO",
]
