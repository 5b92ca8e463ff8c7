# src/task_organizer/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app (normal "settings layer").
- No secrets required at import time.
- A missing API URL is not an error: the app falls back to the offline gateway.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

ENV_PREFIX = "TASKORG"

load_dotenv(override=False)


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str

    # ---- Backend / reasoning service ----
    api_url: str
    connect_timeout_seconds: float
    read_timeout_seconds: float

    # ---- Behaviour ----
    persist_generated_subtasks: bool
    task_list_limit: int

    # ---- Local data paths (ignored by git) ----
    data_dir: Path

    @property
    def offline(self) -> bool:
        return not self.api_url

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "task-organizer").strip() or "task-organizer"
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        api_url = _env(_k("API_URL"), "").strip().rstrip("/")

        connect_timeout = _env_float(_k("CONNECT_TIMEOUT_SECONDS"), 5.0)
        read_timeout = _env_float(_k("READ_TIMEOUT_SECONDS"), 60.0)
        # keep read >= connect as a sane baseline
        read_timeout = max(read_timeout, connect_timeout)

        persist_generated_subtasks = _env_bool(_k("PERSIST_SUBTASKS"), True)
        task_list_limit = _env_int(_k("TASK_LIST_LIMIT"), 50)

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/task_organizer"))

        return Settings(
            app_name=app_name,
            log_level=log_level,
            api_url=api_url,
            connect_timeout_seconds=connect_timeout,
            read_timeout_seconds=read_timeout,
            persist_generated_subtasks=persist_generated_subtasks,
            task_list_limit=task_list_limit,
            data_dir=data_dir,
        )


_SETTINGS: Settings | None = None


def get_settings() -> Settings:
    global _SETTINGS
    if _SETTINGS is None:
        _SETTINGS = Settings.from_env()
    return _SETTINGS
