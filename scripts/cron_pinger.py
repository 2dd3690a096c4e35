"""
CLI: proceso companero que llama URLs segun un archivo tipo crontab.

Ejecución:
  python scripts/cron_pinger.py
  python scripts/cron_pinger.py --config /etc/society/cron.conf --grace 10
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from loguru import logger
from dotenv import load_dotenv

_PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(_PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(_PROJECT_ROOT))

load_dotenv(_PROJECT_ROOT / ".env", override=False)

from app.core.config import Settings
from app.infrastructure.scheduler.cron_pinger import run
from app.shared.exceptions.sync import SyncConfigError


def main() -> int:
    settings = Settings()
    parser = argparse.ArgumentParser()
    parser.add_argument("--config", default=settings.CRON_CONFIG_PATH, help="Archivo de configuracion")
    parser.add_argument(
        "--grace",
        type=float,
        default=settings.CRON_SHUTDOWN_GRACE_S,
        help="Segundos de espera para trabajos en curso al detenerse",
    )
    args = parser.parse_args()

    try:
        completed = run(args.config, grace_s=args.grace, timeout_s=settings.SOURCE_TIMEOUT_S)
    except SyncConfigError as e:
        logger.error(e.message)
        return 1
    return 0 if completed else 2


if __name__ == "__main__":
    raise SystemExit(main())
