# todosvc/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

- One Settings object for the whole process (API listeners, pool, logging).
- Variable names match the deployment environment (DB_*, GRPC_PORT, HTTP_PORT).
- Integers that fail to parse fall back to their defaults.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None or v.strip() == "" else v


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


@dataclass(frozen=True)
class Settings:
    # Store
    db_host: str = "localhost"
    db_port: int = 5432
    db_user: str = "todo"
    db_password: str = "todo"
    db_name: str = "todo_db"
    db_sslmode: str = "disable"
    database_url: str | None = None

    # Connection pool
    max_idle_conns: int = 10
    max_open_conns: int = 100
    conn_max_lifetime_min: int = 30

    # Listeners
    grpc_port: int = 50051
    http_port: int = 8080

    # Requests / shutdown
    request_timeout: float | None = None
    shutdown_grace: float = 10.0

    log_level: str = "INFO"

    @classmethod
    def from_env(cls, *, dotenv: bool = True) -> Settings:
        """Build settings from the process environment. Existing variables win over .env."""
        if dotenv:
            load_dotenv(override=False)

        timeout = _env_float("REQUEST_TIMEOUT_SECONDS", 0.0)
        return cls(
            db_host=_env("DB_HOST", cls.db_host),
            db_port=_env_int("DB_PORT", cls.db_port),
            db_user=_env("DB_USER", cls.db_user),
            db_password=_env("DB_PASSWORD", cls.db_password),
            db_name=_env("DB_NAME", cls.db_name),
            db_sslmode=_env("DB_SSLMODE", cls.db_sslmode),
            database_url=_env("DATABASE_URL") or None,
            max_idle_conns=_env_int("DB_MAX_IDLE_CONNS", cls.max_idle_conns),
            max_open_conns=_env_int("DB_MAX_OPEN_CONNS", cls.max_open_conns),
            conn_max_lifetime_min=_env_int("DB_CONN_MAX_LIFETIME_MIN", cls.conn_max_lifetime_min),
            grpc_port=_env_int("GRPC_PORT", cls.grpc_port),
            http_port=_env_int("HTTP_PORT", cls.http_port),
            request_timeout=timeout if timeout > 0 else None,
            shutdown_grace=_env_float("SHUTDOWN_GRACE_SECONDS", cls.shutdown_grace),
            log_level=_env("LOG_LEVEL", cls.log_level).upper(),
        )
