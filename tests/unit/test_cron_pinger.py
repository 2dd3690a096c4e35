"""
Tests unitarios del proceso companero cron -> webhook.
"""
from __future__ import annotations

import threading
from datetime import datetime, timezone
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
import requests
from apscheduler.schedulers.background import BackgroundScheduler

from app.infrastructure.scheduler.cron_pinger import (
    CronJob,
    build_cron_trigger,
    crontab_day_of_week,
    parse_cron_file,
    parse_cron_lines,
    ping_url,
    register_jobs,
    shutdown_gracefully,
)
from app.shared.exceptions.sync import SyncConfigError


def test_parse_skips_comments_blanks_and_short_lines() -> None:
    lines = [
        "# comentario",
        "",
        "   ",
        "*/5 * * * * http://localhost:8080/api/v1/internal/refreshData",
        "* * * * http://too-short",
        "0 3 * * 1   http://example.com/a b",
    ]

    jobs = parse_cron_lines(lines)

    assert jobs == [
        CronJob("*/5 * * * *", "http://localhost:8080/api/v1/internal/refreshData", 4),
        CronJob("0 3 * * 1", "http://example.com/a b", 6),
    ]


def test_parse_cron_file(tmp_path: Path) -> None:
    path = tmp_path / "cron.conf"
    path.write_text("* * * * * http://x\n", encoding="utf-8")

    assert parse_cron_file(path) == [CronJob("* * * * *", "http://x", 1)]
    with pytest.raises(SyncConfigError):
        parse_cron_file(tmp_path / "missing.conf")


def test_every_minute_fires_at_next_minute_boundary() -> None:
    trigger = build_cron_trigger("* * * * *", timezone=timezone.utc)
    now = datetime(2024, 1, 1, 12, 0, 30, tzinfo=timezone.utc)

    assert trigger.get_next_fire_time(None, now) == datetime(2024, 1, 1, 12, 1, tzinfo=timezone.utc)




@pytest.mark.parametrize(
    "field,expected",
    [
        ("*", "*"),
        ("0", "sun"),
        ("7", "sun"),
        ("1-5", "mon,tue,wed,thu,fri"),
        ("5-7", "fri,sat,sun"),
        ("0,6", "sun,sat"),
        ("*/2", "sun,tue,thu,sat"),
        ("mon-fri", "mon-fri"),
    ],
)
def test_crontab_day_of_week_uses_sunday_as_zero(field: str, expected: str) -> None:
    assert crontab_day_of_week(field) == expected


@pytest.mark.parametrize("field", ["8", "5-3", "1/0"])
def test_crontab_day_of_week_rejects_out_of_range(field: str) -> None:
    with pytest.raises(ValueError):
        crontab_day_of_week(field)


@pytest.mark.parametrize("schedule", ["0 9 * * 0", "0 9 * * 7", "0 9 * * sun"])
def test_day_zero_fires_on_sunday(schedule: str) -> None:
    trigger = build_cron_trigger(schedule, timezone=timezone.utc)
    saturday = datetime(2026, 10, 17, 12, 0, tzinfo=timezone.utc)

    next_fire = trigger.get_next_fire_time(None, saturday)

    assert next_fire == datetime(2026, 10, 18, 9, 0, tzinfo=timezone.utc)
    assert next_fire.strftime("%A") == "Sunday"


def test_registered_job_keeps_crontab_weekdays() -> None:
    scheduler = BackgroundScheduler(timezone=timezone.utc)

    register_jobs(scheduler, parse_cron_lines(["0 9 * * 1-5 http://x"]))

    trigger = scheduler.get_jobs()[0].trigger
    saturday = datetime(2026, 10, 17, 12, 0, tzinfo=timezone.utc)
    assert trigger.get_next_fire_time(None, saturday).strftime("%A") == "Monday"


def test_register_jobs_skips_invalid_expressions() -> None:
    scheduler = BackgroundScheduler()
    jobs = [
        CronJob("*/5 * * * *", "http://a", 1),
        CronJob("99 * * * *", "http://b", 2),
    ]

    assert register_jobs(scheduler, jobs) == 1
    registered = scheduler.get_jobs()
    assert [j.name for j in registered] == ["http://a"]
    assert registered[0].args[0] == "http://a"


def test_ping_url_logs_status() -> None:
    session = MagicMock()
    session.get.return_value = MagicMock(status_code=204)

    assert ping_url("http://a", timeout_s=3, session=session) == 204
    session.get.assert_called_once_with("http://a", timeout=3)


def test_ping_url_never_raises() -> None:
    session = MagicMock()
    session.get.side_effect = requests.ConnectionError("refused")

    assert ping_url("http://a", session=session) is None


def test_shutdown_waits_for_running_jobs() -> None:
    scheduler = MagicMock()

    assert shutdown_gracefully(scheduler, grace_s=1.0) is True
    scheduler.pause.assert_called_once()
    scheduler.shutdown.assert_called_once_with(wait=True)


def test_shutdown_times_out() -> None:
    release = threading.Event()
    scheduler = MagicMock()
    scheduler.shutdown.side_effect = lambda wait: release.wait(5)

    try:
        assert shutdown_gracefully(scheduler, grace_s=0.05) is False
    finally:
        release.set()


def test_run_requires_config_file(tmp_path: Path) -> None:
    from app.infrastructure.scheduler.cron_pinger import run

    with patch("app.infrastructure.scheduler.cron_pinger.BackgroundScheduler") as scheduler_cls:
        with pytest.raises(SyncConfigError):
            run(tmp_path / "missing.conf")
    scheduler_cls.assert_not_called()
