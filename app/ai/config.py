import os
from dataclasses import dataclass

from app.ai.types import GenerationParams


@dataclass(frozen=True)
class AIConfig:
    enabled: bool
    provider: str
    model: str
    api_key: str
    base_url: str | None
    timeout_s: float
    params: GenerationParams


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, str(default)))
    except ValueError:
        return default


def _looks_like_placeholder(value: str) -> bool:
    lower = value.strip().lower()
    return lower.startswith("your_") or lower.startswith("replace_") or lower in {"changeme", "todo"}


def load_ai_config() -> AIConfig:
    provider = os.getenv("AI_PROVIDER", "openai").strip().lower()
    api_key = (os.getenv("OPENAI_API_KEY") or "").strip()
    enabled = (
        _env_bool("AI_ENABLED", True)
        and provider != "none"
        and bool(api_key)
        and not _looks_like_placeholder(api_key)
    )
    return AIConfig(
        enabled=enabled,
        provider=provider,
        model=(os.getenv("AI_MODEL") or "gpt-4o-mini").strip(),
        api_key=api_key,
        base_url=(os.getenv("OPENAI_BASE_URL") or "").strip() or None,
        timeout_s=_env_float("OPENAI_TIMEOUT_S", 60.0),
        params=GenerationParams(
            temperature=_env_float("AI_TEMPERATURE", 0.0),
            top_p=_env_float("AI_TOP_P", 0.05),
            max_tokens=int(_env_float("AI_MAX_TOKENS", 2048)),
        ),
    )
