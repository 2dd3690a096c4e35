"""
Gestión del engine de la base de datos de cache.

El engine no es un global del módulo: lo crea la raíz de composición de la
aplicación (lifespan de FastAPI o el script CLI) y lo libera al cerrar.
"""
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine


def _create_engine_args(database_url: str, echo: bool) -> dict:
    """
    Construye los argumentos del engine segun el tipo de base de datos.
    PostgreSQL usa pool de conexiones, SQLite espera el lock de escritura.
    """
    args = {
        "echo": echo,
    }

    if database_url.startswith("sqlite"):
        # Lectores concurrentes esperan al refresco en vez de fallar con "database is locked"
        args["connect_args"] = {"timeout": 30}
    elif "postgresql" in database_url:
        args.update({
            "pool_size": 5,
            "max_overflow": 10,
            "pool_pre_ping": True,  # Verifica conexion antes de usar
        })

    return args


def create_cache_engine(database_url: str, *, echo: bool = False) -> AsyncEngine:
    """
    Crea el engine async de la cache.

    Args:
        database_url: URL SQLAlchemy (p.ej. sqlite+aiosqlite:///./cache.db)
        echo: Si True, loguea el SQL emitido

    Returns:
        AsyncEngine: Engine listo para usar
    """
    engine = create_async_engine(database_url, **_create_engine_args(database_url, echo))

    if database_url.startswith("sqlite"):
        @event.listens_for(engine.sync_engine, "connect")
        def _sqlite_pragmas(dbapi_connection, connection_record):
            # WAL: los lectores ven el ultimo snapshot confirmado durante un refresco
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA journal_mode=WAL")
            cursor.close()

    return engine


async def close_engine(engine: AsyncEngine) -> None:
    """Cierra las conexiones de la base de datos."""
    await engine.dispose()
