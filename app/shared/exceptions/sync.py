"""
Excepciones del pipeline de sincronización origen remoto -> cache local.

Taxonomía:
- RemoteNetworkException: origen inaccesible o respuesta HTTP no exitosa.
- RemoteDecodeException: el cuerpo de la respuesta no tiene la forma esperada.
- StorageException: fallo al crear/consultar/escribir en la cache local.
- SyncConfigError: falta configuración (identificador de tabla o credencial).
"""
from typing import Any, Dict, Optional

from app.shared.exceptions.base import AppException


class SyncException(AppException):
    """Excepción base del pipeline de sincronización."""

    def __init__(
        self,
        message: str,
        error_code: str = "SYNC_ERROR",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            status_code=500,
            error_code=error_code,
            details=details,
        )


class RemoteNetworkException(SyncException):
    """El origen remoto no respondió o devolvió un estado no exitoso."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, error_code="REMOTE_NETWORK_ERROR", details=details)


class RemoteDecodeException(SyncException):
    """La respuesta del origen remoto no se pudo interpretar."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, error_code="REMOTE_DECODE_ERROR", details=details)


class StorageException(SyncException):
    """Fallo de la base de datos local de cache."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, error_code="STORAGE_ERROR", details=details)


class InvalidIdentifierException(StorageException):
    """Nombre de tabla o columna que no puede usarse de forma segura en SQL."""

    def __init__(self, identifier: str, reason: str):
        super().__init__(
            message=f"Identificador SQL inválido {identifier!r}: {reason}",
            details={"identifier": identifier, "reason": reason},
        )
        self.error_code = "INVALID_IDENTIFIER"


class SyncConfigError(SyncException):
    """Error de configuración del pipeline."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, error_code="SYNC_CONFIG_ERROR", details=details)
