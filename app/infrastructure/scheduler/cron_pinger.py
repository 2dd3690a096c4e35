"""
Proceso companero: lee un archivo tipo crontab y hace GET a URLs programadas.

Formato de cada linea: "<min> <hora> <dia> <mes> <dia_semana> <url>".
Las lineas vacias y las que empiezan con '#' se ignoran; las mal formadas
se omiten con un warning.
"""
from __future__ import annotations

import signal
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional

import requests
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.schedulers.base import BaseScheduler
from apscheduler.triggers.cron import CronTrigger
from loguru import logger

from app.shared.exceptions.sync import SyncConfigError

SCHEDULE_FIELDS = 5
DEFAULT_TIMEOUT_S = 30


@dataclass(frozen=True)
class CronJob:
    """Una linea valida del archivo de configuracion."""

    schedule: str
    url: str
    line_number: int


def parse_cron_lines(lines: Iterable[str]) -> list[CronJob]:
    """Convierte las lineas del archivo en trabajos, omitiendo las invalidas."""
    jobs: list[CronJob] = []
    for line_number, raw in enumerate(lines, start=1):
        line = raw.strip()
        if not line or line.startswith("#"):
            continue

        tokens = line.split()
        if len(tokens) < SCHEDULE_FIELDS + 1:
            logger.warning(f"Linea {line_number} invalida (se esperan 5 campos y una URL): {line}")
            continue

        jobs.append(
            CronJob(
                schedule=" ".join(tokens[:SCHEDULE_FIELDS]),
                url=" ".join(tokens[SCHEDULE_FIELDS:]),
                line_number=line_number,
            )
        )
    return jobs


def parse_cron_file(config_path: str | Path) -> list[CronJob]:
    """
    Lee y parsea el archivo de configuracion.

    Raises:
        SyncConfigError: Si el archivo no existe
    """
    path = Path(config_path)
    if not path.is_file():
        raise SyncConfigError(f"Archivo de cron no encontrado: {path}", details={"path": str(path)})
    with path.open(encoding="utf-8") as fh:
        return parse_cron_lines(fh)


# Dia de la semana en numeracion crontab (0 y 7 = domingo)
_CRONTAB_WEEKDAYS = ("sun", "mon", "tue", "wed", "thu", "fri", "sat", "sun")


def crontab_day_of_week(field: str) -> str:
    """
    Traduce el quinto campo de crontab a nombres de dia.

    APScheduler numera los dias desde el lunes (0 = mon); crontab desde el
    domingo (0 = sun, 7 tambien es sun). Rangos, listas y pasos numericos se
    expanden a una lista de nombres; los nombres se dejan como estan.

    Raises:
        ValueError: Si el campo tiene un valor fuera de 0-7 o mal formado
    """
    if not any(ch.isdigit() for ch in field):
        return field

    days: list[str] = []
    for item in field.split(","):
        if not any(ch.isdigit() for ch in item):
            days.append(item)
            continue

        span, _, step = item.partition("/")
        if span == "*":
            start, end = 0, 6
        elif "-" in span:
            first, last = span.split("-", 1)
            start, end = int(first), int(last)
        else:
            start = int(span)
            end = 6 if step else start

        stride = int(step) if step else 1
        if not 0 <= start <= end <= 7 or stride < 1:
            raise ValueError(f"Dia de la semana fuera de rango: '{item}'")

        for number in range(start, end + 1, stride):
            name = _CRONTAB_WEEKDAYS[number]
            if name not in days:
                days.append(name)
    return ",".join(days)


def build_cron_trigger(schedule: str, timezone=None) -> CronTrigger:
    """
    CronTrigger a partir de una expresion crontab de 5 campos.

    Raises:
        ValueError: Si la expresion es invalida
    """
    fields = schedule.split()
    if len(fields) != SCHEDULE_FIELDS:
        raise ValueError(f"Se esperan {SCHEDULE_FIELDS} campos, se recibieron {len(fields)}")
    fields[4] = crontab_day_of_week(fields[4])
    return CronTrigger.from_crontab(" ".join(fields), timezone=timezone)


def ping_url(url: str, timeout_s: int = DEFAULT_TIMEOUT_S, session: Optional[requests.Session] = None) -> Optional[int]:
    """
    Hace GET a la URL y loguea el estado.

    Un fallo de red se loguea y no se propaga: el scheduler sigue funcionando.

    Returns:
        Codigo de estado HTTP, o None si la peticion fallo
    """
    logger.info(f"Calling {url}")
    try:
        resp = (session or requests).get(url, timeout=timeout_s)
    except requests.RequestException as e:
        logger.error(f"Error llamando a {url}: {e}")
        return None
    logger.info(f"Response from {url}: {resp.status_code}")
    return resp.status_code


def register_jobs(scheduler: BaseScheduler, jobs: Iterable[CronJob], timeout_s: int = DEFAULT_TIMEOUT_S) -> int:
    """
    Agrega un trabajo por linea valida.

    Returns:
        Cantidad de trabajos registrados
    """
    registered = 0
    for job in jobs:
        try:
            trigger = build_cron_trigger(job.schedule)
        except ValueError as e:
            logger.warning(f"Linea {job.line_number}: expresion cron invalida '{job.schedule}': {e}")
            continue

        scheduler.add_job(
            ping_url,
            trigger=trigger,
            args=[job.url, timeout_s],
            id=f"line-{job.line_number}",
            name=job.url,
        )
        logger.info(f"Scheduled job: {job.schedule} => {job.url}")
        registered += 1
    return registered


def shutdown_gracefully(scheduler: BaseScheduler, grace_s: float) -> bool:
    """
    Deja de disparar trabajos y espera a los que estan corriendo.

    Returns:
        True si todos terminaron dentro de grace_s
    """
    scheduler.pause()
    waiter = threading.Thread(target=scheduler.shutdown, kwargs={"wait": True}, daemon=True)
    waiter.start()
    waiter.join(timeout=grace_s)

    if waiter.is_alive():
        logger.warning(f"Tiempo de espera agotado ({grace_s}s): quedan trabajos en curso")
        return False
    logger.info("Todos los trabajos finalizaron")
    return True


def run(config_path: str | Path, grace_s: float = 5.0, timeout_s: int = DEFAULT_TIMEOUT_S) -> bool:
    """
    Ejecuta el pinger hasta recibir SIGINT/SIGTERM.

    Raises:
        SyncConfigError: Si el archivo de configuracion no existe
    """
    jobs = parse_cron_file(config_path)
    scheduler = BackgroundScheduler()
    count = register_jobs(scheduler, jobs, timeout_s=timeout_s)
    if count == 0:
        logger.warning(f"No hay trabajos validos en {config_path}")

    stop = threading.Event()

    def _handle_signal(signum, frame):
        logger.info(f"Senal {signal.Signals(signum).name} recibida, deteniendo scheduler...")
        stop.set()

    signal.signal(signal.SIGINT, _handle_signal)
    signal.signal(signal.SIGTERM, _handle_signal)

    scheduler.start()
    logger.success(f"Cron pinger iniciado con {count} trabajos")

    while not stop.wait(timeout=1.0):
        pass

    return shutdown_gracefully(scheduler, grace_s)
