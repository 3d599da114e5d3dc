from __future__ import annotations

import logging
import os
from typing import Optional

from openai import AsyncOpenAI

from app.ai.types import GenerationParams, GenerationResult

logger = logging.getLogger(__name__)


class OpenAIProvider:
    """Chat-completions client for OpenAI or any OpenAI-compatible proxy."""

    def __init__(
        self,
        model: str,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout_s: float = 60.0,
        max_retries: int = 0,
    ):
        self._model = model
        key = (api_key or os.getenv("OPENAI_API_KEY") or "").strip()
        if not key:
            raise RuntimeError("OPENAI_API_KEY is missing")

        # Retries are left to the transport's caller; the analyzer falls back instead.
        self._client = AsyncOpenAI(
            api_key=key,
            base_url=(base_url or os.getenv("OPENAI_BASE_URL") or None),
            timeout=timeout_s,
            max_retries=max_retries,
        )

    @property
    def model(self) -> str:
        return self._model

    async def generate(self, prompt: str, params: GenerationParams) -> GenerationResult:
        try:
            response = await self._client.chat.completions.create(
                model=self._model,
                messages=[{"role": "user", "content": prompt}],
                temperature=params.temperature,
                top_p=params.top_p,
                max_tokens=params.max_tokens,
                presence_penalty=params.presence_penalty,
                frequency_penalty=params.frequency_penalty,
            )
        except Exception as exc:  # noqa: BLE001 - every transport error maps to a failed result
            logger.warning("openai_generate_failed model=%s prompt_len=%s: %s", self._model, len(prompt), exc)
            return GenerationResult(success=False, error=str(exc))

        content = response.choices[0].message.content if response.choices else ""
        if not content:
            return GenerationResult(success=False, error="empty_response")
        return GenerationResult(success=True, text=str(content))
