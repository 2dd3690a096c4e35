"""
Configuracion central de la aplicacion.
Gestiona variables de entorno y configuraciones globales.

Cada tabla remota cacheada tiene su propia variable con el identificador
de tabla (obligatoria al arrancar) y todas comparten una unica credencial
(opcional: si falta, el refresco de las tablas se omite en runtime).
"""
import json
from typing import List
from pydantic_settings import BaseSettings
from pydantic import Field, computed_field


class Settings(BaseSettings):
    """
    Clase de configuracion de la aplicacion.
    Lee variables de entorno y proporciona valores por defecto.
    """

    # Configuracion de la aplicacion
    APP_NAME: str = Field(default="Society Data Cache")
    APP_VERSION: str = Field(default="1.0.0")
    DEBUG: bool = Field(default=False)
    ENVIRONMENT: str = Field(default="production")

    # Configuracion del servidor
    HOST: str = Field(default="0.0.0.0")
    PORT: int = Field(default=8080)

    # CORS (acepta lista JSON o "*" para todos los origenes)
    CORS_ORIGINS: str = Field(default="*")

    # Cache local
    CACHE_DATABASE_URL: str = Field(default="sqlite+aiosqlite:///./cache.db")
    # Si True, las columnas nuevas que aparezcan en el origen se agregan en cada refresco
    CACHE_SCHEMA_EVOLUTION: bool = Field(default=True)

    # Origen remoto: "nocodb" o "airtable"
    SOURCE_PROVIDER: str = Field(default="nocodb")
    SOURCE_TIMEOUT_S: int = Field(default=30)

    # NocoDB
    NOCODB_BASE_URL: str = Field(default="https://app.nocodb.com")
    NOCODB_API_TOKEN: str = Field(default="")
    NOCODB_PAGE_SIZE: int = Field(default=100)

    # Airtable (proveedor alternativo, identificadores con formato "<baseId>/<tabla>")
    AIRTABLE_PAT: str = Field(default="")

    # Identificadores de tablas remotas (uno por tabla cacheada)
    NOCODB_TABLE_COMMITTEE: str = Field(default="")
    NOCODB_TABLE_ANNOUNCEMENTS: str = Field(default="")
    NOCODB_TABLE_YEARS: str = Field(default="")
    NOCODB_TABLE_FILMS: str = Field(default="")
    NOCODB_TABLE_ASSETS: str = Field(default="")
    NOCODB_TABLE_USERS: str = Field(default="")

    # Tabla remota donde se registran los prestamos de equipo (opcional)
    NOCODB_TABLE_CHECKOUTS: str = Field(default="")

    # Kit: columnas de la tabla de usuarios
    KIT_STUDENT_NUMBER_FIELD: str = Field(default="Student Number")
    KIT_MEMBERSHIP_FIELD: str = Field(default="Active Member")

    # Refresco periodico dentro del proceso API (0 = deshabilitado)
    REFRESH_INTERVAL_MINUTES: int = Field(default=0)

    # Proceso companero (cron -> webhook)
    CRON_CONFIG_PATH: str = Field(default="cron.conf")
    CRON_SHUTDOWN_GRACE_S: float = Field(default=5.0)

    # Logging
    LOG_LEVEL: str = Field(default="INFO")
    LOG_FILE: str = Field(default="logs/app.log")

    @computed_field
    @property
    def source_credential(self) -> str:
        """Credencial compartida del proveedor remoto configurado."""
        if self.SOURCE_PROVIDER.lower() == "airtable":
            return self.AIRTABLE_PAT
        return self.NOCODB_API_TOKEN

    class Config:
        """Configuracion de Pydantic."""
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"  # Ignorar campos extra del .env


def get_cors_origins(cors_string: str) -> List[str]:
    """
    Parsea la configuracion de CORS.
    Acepta "*" para todos los origenes o una lista JSON.
    """
    if cors_string == "*":
        return ["*"]
    try:
        return json.loads(cors_string)
    except json.JSONDecodeError:
        # Si no es JSON valido, retornar como lista simple
        return [origin.strip() for origin in cors_string.split(",")]


# Instancia global de configuracion
settings = Settings()
