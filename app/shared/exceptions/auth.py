"""
Excepciones relacionadas con autorización.
"""
from app.shared.exceptions.base import AppException


class ForbiddenException(AppException):
    """Excepción para acceso prohibido (p.ej. membresía inactiva)."""
    
    def __init__(self, message: str = "Acceso prohibido", details=None):
        super().__init__(
            message=message,
            status_code=403,
            error_code="FORBIDDEN",
            details=details
        )
