from app.ai.config import AIConfig, load_ai_config
from app.ai.types import TextGenerator

from app.ai.providers.openai_provider import OpenAIProvider


def get_text_generator(cfg: AIConfig | None = None) -> TextGenerator | None:
    cfg = cfg or load_ai_config()

    if not cfg.enabled:
        return None

    if cfg.provider == "openai":
        return OpenAIProvider(
            model=cfg.model,
            api_key=cfg.api_key,
            base_url=cfg.base_url,
            timeout_s=cfg.timeout_s,
        )

    raise ValueError(f"Unsupported AI_PROVIDER='{cfg.provider}'")
