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


def _get_env_float(name: str, default: float) -> float:
    raw = _get_env(name, None)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    log_level: str
    sentry_dsn: str | None
    rate_limit: str
    rate_limit_enabled: bool
    scoring_strategy: str
    cache_backend: str
    cache_max_entries: int
    cache_db_path: str
    prompt_resume_chars: int
    prompt_jd_chars: int
    ai_timeout_s: float
    upload_dir: str
    max_upload_bytes: int


def load_settings() -> Settings:
    loaded = Settings(
        log_level=_get_env("LOG_LEVEL", "INFO") or "INFO",
        sentry_dsn=_get_env("SENTRY_DSN"),
        rate_limit=_get_env("RATE_LIMIT", "30/minute") or "30/minute",
        rate_limit_enabled=_get_env_bool("RATE_LIMIT_ENABLED", True),
        scoring_strategy=(_get_env("ATS_SCORING_STRATEGY", "five_factor") or "five_factor").strip().lower(),
        cache_backend=(_get_env("ATS_CACHE_BACKEND", "memory") or "memory").strip().lower(),
        cache_max_entries=max(1, _get_env_int("ATS_CACHE_MAX_ENTRIES", 256)),
        cache_db_path=_get_env("ATS_CACHE_DB_PATH", "data/ats_cache.db") or "data/ats_cache.db",
        prompt_resume_chars=max(200, _get_env_int("ATS_PROMPT_RESUME_CHARS", 3000)),
        prompt_jd_chars=max(200, _get_env_int("ATS_PROMPT_JD_CHARS", 2000)),
        ai_timeout_s=max(1.0, _get_env_float("ATS_AI_TIMEOUT_S", 60.0)),
        upload_dir=_get_env("ATS_UPLOAD_DIR", "uploads/temp") or "uploads/temp",
        max_upload_bytes=max(1, _get_env_int("ATS_MAX_UPLOAD_BYTES", 5 * 1024 * 1024)),
    )
    if loaded.scoring_strategy not in {"five_factor", "weighted"}:
        raise RuntimeError("ATS_SCORING_STRATEGY must be either 'five_factor' or 'weighted'.")
    if loaded.cache_backend not in {"memory", "sqlite"}:
        raise RuntimeError("ATS_CACHE_BACKEND must be either 'memory' or 'sqlite'.")
    return loaded


settings = load_settings()
