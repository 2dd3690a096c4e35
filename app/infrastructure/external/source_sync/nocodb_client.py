"""
Cliente mínimo de la REST API v2 de NocoDB (sin SDKs externos).

Requisitos cubiertos:
- requests
- paginación offset/limit hasta pageInfo.isLastPage
- sin reintentos: si una página falla, falla todo el fetch y el caller
  decide (en la práctica, se reintenta en el siguiente ciclo de refresco)
"""

from __future__ import annotations

from typing import Any, Mapping, Optional, Sequence

import requests
from loguru import logger

from app.shared.exceptions.sync import RemoteDecodeException, RemoteNetworkException

from .types import Record


class NocoDBClient:
    """
    Cliente HTTP de NocoDB.

    Importante:
    - No hace cast de tipos: los valores se entregan tal cual al pipeline.
    - Acumula todas las páginas en memoria antes de retornar.
    """

    def __init__(
        self,
        *,
        base_url: str = "https://app.nocodb.com",
        session: Optional[requests.Session] = None,
        timeout_s: int = 30,
        page_size: int = 100,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._session = session or requests.Session()
        self._timeout_s = timeout_s
        self._page_size = page_size

    def _records_url(self, table_id: str) -> str:
        return f"{self._base_url}/api/v2/tables/{table_id}/records"

    def fetch_records(self, table_identifier: str, credential: str) -> list[Record]:
        """
        Trae todos los registros de una tabla NocoDB.

        Termina cuando pageInfo.isLastPage es true. Si el servidor no envía
        pageInfo, se detiene ante una página vacía o incompleta.
        """
        url = self._records_url(table_identifier)
        records: list[Record] = []
        offset = 0

        while True:
            payload = self._request_json(
                "GET",
                url,
                credential=credential,
                params={"offset": offset, "limit": self._page_size},
            )
            if not isinstance(payload, dict):
                raise RemoteDecodeException(
                    f"Respuesta de NocoDB inesperada para la tabla {table_identifier}: se esperaba un objeto JSON"
                )

            rows = payload.get("list")
            if not isinstance(rows, list):
                raise RemoteDecodeException(
                    f"Respuesta de NocoDB sin 'list' para la tabla {table_identifier}"
                )
            for row in rows:
                if not isinstance(row, dict):
                    raise RemoteDecodeException(
                        f"NocoDB devolvió un registro que no es un objeto en la tabla {table_identifier}"
                    )
            records.extend(rows)

            page_info = payload.get("pageInfo")
            is_last = page_info.get("isLastPage") if isinstance(page_info, dict) else None
            if not rows or is_last is True:
                break
            if is_last is None and len(rows) < self._page_size:
                break
            offset += len(rows)

        logger.debug(f"NocoDB {table_identifier}: {len(records)} registros obtenidos")
        return records

    def create_records(
        self,
        table_identifier: str,
        credential: str,
        rows: Sequence[Mapping[str, Any]],
    ) -> Any:
        """Inserta registros en la tabla (el cuerpo es una lista de mapas de campos)."""
        return self._request_json(
            "POST",
            self._records_url(table_identifier),
            credential=credential,
            json_body=[dict(r) for r in rows],
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
        headers = {
            "xc-token": credential,
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
                f"Error de red consultando NocoDB ({method} {url}): {e}",
                details={"url": url},
            ) from e

        if not 200 <= resp.status_code < 300:
            raise RemoteNetworkException(
                f"NocoDB request falló {resp.status_code}: {resp.text[:500]}",
                details={"url": url, "status_code": resp.status_code},
            )

        try:
            return resp.json()
        except ValueError as e:
            raise RemoteDecodeException(
                f"No se pudo parsear la respuesta de NocoDB ({url}): {e}",
                details={"url": url},
            ) from e
