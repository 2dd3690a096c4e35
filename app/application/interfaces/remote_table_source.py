"""
Interfaz de un origen remoto de tablas (NocoDB, Airtable).

Este contrato existe para:
- Que el motor de refresco no dependa de un proveedor concreto.
- Facilitar tests unitarios sin red (fakes en memoria).
"""

from __future__ import annotations

from typing import Any, Mapping, Protocol, Sequence


class RemoteTableSource(Protocol):
    """
    Lista (paginando hasta agotar) y crea registros de una tabla remota.

    Implementaciones:
    - NocoDBClient (paginación offset/limit con pageInfo.isLastPage).
    - AirtableClient (cursor opaco "offset").
    - Fakes para tests.
    """

    def fetch_records(self, table_identifier: str, credential: str) -> list[dict[str, Any]]:
        """
        Retorna todos los registros de la tabla, en el orden del origen.

        Raises:
            RemoteNetworkException: fallo de transporte o estado no exitoso.
            RemoteDecodeException: cuerpo con forma inesperada.
        """
        ...

    def create_records(
        self,
        table_identifier: str,
        credential: str,
        rows: Sequence[Mapping[str, Any]],
    ) -> Any:
        """Crea registros en la tabla remota y retorna la respuesta decodificada."""
        ...
