from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()


def _get_env(name: str, default: str | None = None) -> str | None:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return value


def _get_env_bool(name: str, default: bool) -> bool:
    raw = _get_env(name, None)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _get_env_int(name: str, default: int) -> int:
    raw = _get_env(name, None)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _get_env_list(name: str, default: list[str]) -> tuple[str, ...]:
    raw = _get_env(name, None)
    if raw is None:
        return tuple(default)
    values = [item.strip() for item in raw.split(",")]
    clean = [item for item in values if item]
    return tuple(clean) if clean else tuple(default)


@dataclass(frozen=True)
class Settings:
    api_key: str | None
    auth_mode: str
    rate_limit: str
    rate_limit_enabled: bool
    log_level: str
    sentry_dsn: str | None
    log_message_max_chars: int
    cors_allowed_origins: tuple[str, ...]
    cors_allow_origin_regex: str | None
    cors_allow_credentials: bool
    history_enabled: bool
    history_db_path: str
    history_retention_days: int
    max_upload_bytes: int
    max_job_description_chars: int
    default_job_title: str


settings = Settings(
    api_key=_get_env("API_KEY"),
    auth_mode=(_get_env("AUTH_MODE", "public") or "public").strip().lower(),
    rate_limit=_get_env("RATE_LIMIT", "10/minute") or "10/minute",
    rate_limit_enabled=_get_env_bool("RATE_LIMIT_ENABLED", True),
    log_level=_get_env("LOG_LEVEL", "INFO") or "INFO",
    sentry_dsn=_get_env("SENTRY_DSN"),
    log_message_max_chars=_get_env_int("LOG_MESSAGE_MAX_CHARS", 800),
    cors_allowed_origins=_get_env_list(
        "CORS_ALLOWED_ORIGINS",
        [
            "http://localhost:5173",
            "http://127.0.0.1:5173",
            "http://localhost:8080",
            "http://localhost:3000",
        ],
    ),
    cors_allow_origin_regex=_get_env("CORS_ALLOW_ORIGIN_REGEX"),
    cors_allow_credentials=_get_env_bool("CORS_ALLOW_CREDENTIALS", False),
    history_enabled=_get_env_bool("HISTORY_ENABLED", True),
    history_db_path=_get_env("HISTORY_DB_PATH", "data/analysis_history.db") or "data/analysis_history.db",
    history_retention_days=_get_env_int("HISTORY_RETENTION_DAYS", 365),
    max_upload_bytes=_get_env_int("MAX_UPLOAD_BYTES", 10 * 1024 * 1024),
    max_job_description_chars=_get_env_int("MAX_JOB_DESCRIPTION_CHARS", 50000),
    default_job_title=_get_env("DEFAULT_JOB_TITLE", "Job Position") or "Job Position",
)

if settings.auth_mode not in {"public", "protected"}:
    raise RuntimeError("AUTH_MODE must be either 'public' or 'protected'.")

if settings.auth_mode == "protected" and not settings.api_key:
    raise RuntimeError("AUTH_MODE=protected requires API_KEY to be set.")
