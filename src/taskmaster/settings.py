from __future__ import annotations

import os
from dataclasses import dataclass
from typing import List

from .models import DEFAULT_STORAGE_KEY


@dataclass(frozen=True)
class Settings:
    """
    Application settings loaded from environment variables.

    Env vars:
    - PERSISTENCE_BACKEND: 'memory' (default) or 'file'
    - TASKS_DATA_DIR: directory for the file backend. Default './data'
    - TASKS_STORAGE_KEY: name of the slot holding the task array. Default 'tasks'
    - SEED_SAMPLE_TASKS: 'true' to install demo tasks into an empty store (default: false)
    - CORS_ALLOW_ORIGINS: comma-separated list of allowed origins; '*' by default
    - LOG_LEVEL: logging level name (default: INFO)
    """

    persistence_backend: str
    data_dir: str
    storage_key: str
    seed_sample_tasks: bool
    cors_allow_origins: List[str]
    log_level: str


def _get_env(name: str, default: str) -> str:
    value = os.getenv(name, default)
    if value is None or value == "":
        return default
    return value


def _parse_bool(value: str, default: bool = False) -> bool:
    v = value.strip().lower()
    if v in {"1", "true", "yes", "on"}:
        return True
    if v in {"0", "false", "no", "off"}:
        return False
    return default


def _parse_origins(origins_value: str) -> List[str]:
    """
    Parse CORS origins from env. Supports:
    - '*' to allow all origins
    - Comma-separated list of origins
    """
    value = origins_value.strip()
    if value == "*":
        return ["*"]
    return [o.strip() for o in value.split(",") if o.strip()]


# PUBLIC_INTERFACE
def get_settings() -> Settings:
    """Return application settings loaded from environment variables."""
    backend = _get_env("PERSISTENCE_BACKEND", "memory").strip().lower()
    if backend not in {"memory", "file"}:
        # Fallback to memory if unsupported
        backend = "memory"

    log_level = _get_env("LOG_LEVEL", "INFO").strip().upper()

    return Settings(
        persistence_backend=backend,
        data_dir=_get_env("TASKS_DATA_DIR", "./data").strip(),
        storage_key=_get_env("TASKS_STORAGE_KEY", DEFAULT_STORAGE_KEY).strip(),
        seed_sample_tasks=_parse_bool(_get_env("SEED_SAMPLE_TASKS", "false"), False),
        cors_allow_origins=_parse_origins(_get_env("CORS_ALLOW_ORIGINS", "*")),
        log_level=log_level,
    )
