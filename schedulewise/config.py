"""
Runtime settings, read from environment variables with sensible defaults.

    SCHEDULEWISE_HOME        data directory (default ~/.schedulewise)
    SCHEDULEWISE_STORE       course store file (default <home>/courses.json)
    SCHEDULEWISE_EXPORT_DIR  where the .ics file is written (default: cwd)
    SCHEDULEWISE_TZ          local zone name for RRULE UNTIL, e.g. Europe/Berlin
                             (default: host local zone)
    SCHEDULEWISE_LOG_DIR     optional directory for a rotating log file
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

import pytz

APP_DIR_NAME = ".schedulewise"
STORE_FILENAME = "courses.json"


def get_app_dir() -> Path:
    return Path.home() / APP_DIR_NAME


@dataclass(frozen=True)
class Settings:
    data_dir: Path
    store_path: Path
    export_dir: Path
    timezone: Optional[str] = None
    log_dir: Optional[Path] = None


def validate_timezone(name: Optional[str]) -> Optional[str]:
    """Return the zone name unchanged, or raise ValueError if pytz does not know it."""
    if not name:
        return None
    if name not in pytz.all_timezones_set:
        raise ValueError(f"Unknown timezone: {name}")
    return name


def load_settings(env: Optional[Mapping[str, str]] = None) -> Settings:
    env = os.environ if env is None else env

    data_dir = Path(env["SCHEDULEWISE_HOME"]).expanduser() if env.get("SCHEDULEWISE_HOME") else get_app_dir()
    store = env.get("SCHEDULEWISE_STORE")
    export_dir = env.get("SCHEDULEWISE_EXPORT_DIR")
    log_dir = env.get("SCHEDULEWISE_LOG_DIR")

    return Settings(
        data_dir=data_dir,
        store_path=Path(store).expanduser() if store else data_dir / STORE_FILENAME,
        export_dir=Path(export_dir).expanduser() if export_dir else Path.cwd(),
        timezone=validate_timezone(env.get("SCHEDULEWISE_TZ")),
        log_dir=Path(log_dir).expanduser() if log_dir else None,
    )
