"""
Configuración del sync (tablas remotas -> tablas de cache).

Cada TableBinding empareja una tabla remota con el nombre de su tabla local.
Los bindings se declaran al arrancar y son estáticos durante la vida del proceso.

Este módulo no realiza I/O: solo define configuración.
"""

from __future__ import annotations

from dataclasses import dataclass

from app.core.config import Settings
from app.shared.exceptions.sync import SyncConfigError

# Nombres lógicos de las tablas de cache
TABLE_COMMITTEE = "Committee"
TABLE_ANNOUNCEMENTS = "Announcements"
TABLE_YEARS = "Years"
TABLE_FILMS = "Films"
TABLE_ASSETS = "Assets"
TABLE_USERS = "Users"

# (nombre lógico, variable de entorno con el identificador remoto)
BINDING_ENV_VARS: tuple[tuple[str, str], ...] = (
    (TABLE_COMMITTEE, "NOCODB_TABLE_COMMITTEE"),
    (TABLE_ANNOUNCEMENTS, "NOCODB_TABLE_ANNOUNCEMENTS"),
    (TABLE_YEARS, "NOCODB_TABLE_YEARS"),
    (TABLE_FILMS, "NOCODB_TABLE_FILMS"),
    (TABLE_ASSETS, "NOCODB_TABLE_ASSETS"),
    (TABLE_USERS, "NOCODB_TABLE_USERS"),
)


@dataclass(frozen=True)
class TableBinding:
    """
    Config de una tabla remota -> una tabla de cache.

    - logical_name: nombre de la tabla local (y de los logs)
    - remote_identifier: id de tabla en NocoDB, o "<baseId>/<tabla>" en Airtable
    - env_var: variable de entorno de la que se leyó el identificador
    """

    logical_name: str
    remote_identifier: str
    env_var: str = ""


def build_table_bindings(settings: Settings, *, strict: bool = True) -> list[TableBinding]:
    """
    Construye los bindings a partir de la configuración.

    Con strict=True la ausencia de cualquier identificador es un error
    (se usa al arrancar: la cache no puede servir sin sus tablas).
    """
    bindings: list[TableBinding] = []
    missing: list[str] = []
    for logical_name, env_var in BINDING_ENV_VARS:
        remote_id = (getattr(settings, env_var, "") or "").strip()
        if not remote_id:
            missing.append(env_var)
        bindings.append(TableBinding(logical_name=logical_name, remote_identifier=remote_id, env_var=env_var))

    if strict and missing:
        raise SyncConfigError(
            f"Faltan variables de entorno obligatorias: {', '.join(missing)}",
            details={"missing": missing},
        )
    return bindings
