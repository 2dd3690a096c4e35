"""
Cliente mínimo de Airtable REST API (sin SDKs externos).

Proveedor alternativo a NocoDB. Requisitos cubiertos:
- requests
- paginación por cursor 'offset' (opaco) hasta que la respuesta no lo trae
- los registros se aplanan a su mapa 'fields'
"""

from __future__ import annotations

from typing import Any, Mapping, Optional, Sequence

import requests

from app.shared.exceptions.sync import (
    RemoteDecodeException,
    RemoteNetworkException,
    SyncConfigError,
)

from .types import Record


def split_table_identifier(identifier: str) -> tuple[str, str]:
    """
    Separa un identificador "<baseId>/<tabla>" en sus partes.

    Airtable necesita ambos valores; NocoDB solo el id de tabla.
    """
    base_id, sep, table_name = identifier.partition("/")
    if not sep or not base_id.strip() or not table_name.strip():
        raise SyncConfigError(
            f"Identificador Airtable inválido '{identifier}': se esperaba '<baseId>/<tabla>'"
        )
    return base_id.strip(), table_name.strip()


class AirtableClient:
    """
    Cliente HTTP de Airtable.

    Importante:
    - No hace cast de tipos de campos: la cache los guarda como texto.
    - Acumula todas las páginas en memoria antes de retornar.
    """

    def __init__(
        self,
        *,
        session: Optional[requests.Session] = None,
        base_url: str = "https://api.airtable.com/v0",
        timeout_s: int = 30,
        page_size: int = 100,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._session = session or requests.Session()
        self._timeout_s = timeout_s
        self._page_size = page_size

    def fetch_records(self, table_identifier: str, credential: str) -> list[Record]:
        """Itera todas las páginas de la tabla siguiendo el cursor 'offset'."""
        base_id, table_name = split_table_identifier(table_identifier)
        url = f"{self._base_url}/{base_id}/{table_name}"
        records: list[Record] = []
        offset: Optional[str] = None

        while True:
            params: dict[str, Any] = {"pageSize": self._page_size}
            if offset:
                params["offset"] = offset

            payload = self._request_json("GET", url, credential=credential, params=params)
            raw_records = payload.get("records") if isinstance(payload, dict) else None
            if not isinstance(raw_records, list):
                raise RemoteDecodeException(
                    f"Respuesta de Airtable sin 'records' para la tabla {table_identifier}"
                )

            for rec in raw_records:
                fields = rec.get("fields") if isinstance(rec, dict) else None
                if fields is None:
                    fields = {}
                if not isinstance(fields, dict):
                    raise RemoteDecodeException(
                        f"Airtable devolvió un record con 'fields' inválido en {table_identifier}"
                    )
                records.append(fields)

            offset = payload.get("offset")
            if not offset:
                break

        return records

    def create_records(
        self,
        table_identifier: str,
        credential: str,
        rows: Sequence[Mapping[str, Any]],
    ) -> Any:
        """Crea registros con el formato {"records": [{"fields": {...}}]}."""
        base_id, table_name = split_table_identifier(table_identifier)
        body = {"records": [{"fields": dict(r)} for r in rows]}
        return self._request_json(
            "POST",
            f"{self._base_url}/{base_id}/{table_name}",
            credential=credential,
            json_body=body,
        )

    def _request_json(
        self,
        method: str,
        url: str,
        *,
        credential: str,
        params: Optional[dict[str, Any]] = None,
        json_body: Any = None,
    ) -> Any:
        """
        Request HTTP sin reintentos.

        - Errores de transporte y estados no 2xx -> RemoteNetworkException.
        - Cuerpo que no es JSON -> RemoteDecodeException.
        """
        headers = {
            "Authorization": f"Bearer {credential}",
            "Content-Type": "application/json",
        }
        try:
            resp = self._session.request(
                method=method,
                url=url,
                params=params,
                json=json_body,
                headers=headers,
                timeout=self._timeout_s,
            )
        except requests.RequestException as e:
            raise RemoteNetworkException(
                f"Error de red consultando Airtable ({method} {url}): {e}",
                details={"url": url},
            ) from e

        if not 200 <= resp.status_code < 300:
            raise RemoteNetworkException(
                f"Airtable request falló {resp.status_code}: {resp.text[:500]}",
                details={"url": url, "status_code": resp.status_code},
            )

        try:
            return resp.json()
        except ValueError as e:
            raise RemoteDecodeException(
                f"No se pudo parsear la respuesta de Airtable ({url}): {e}",
                details={"url": url},
            ) from e
