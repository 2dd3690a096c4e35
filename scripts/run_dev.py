"""
Script para ejecutar el servidor en modo desarrollo (con recarga automatica).
"""
import sys
from pathlib import Path

import uvicorn

_PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(_PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(_PROJECT_ROOT))

from app.core.config import settings


if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=True,
        app_dir=str(_PROJECT_ROOT),
        log_level=settings.LOG_LEVEL.lower()
    )
