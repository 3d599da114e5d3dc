from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class GenerationParams:
    temperature: float = 0.0
    top_p: float = 0.05
    max_tokens: int = 2048
    presence_penalty: float = 0.0
    frequency_penalty: float = 0.0


@dataclass(frozen=True)
class GenerationResult:
    success: bool
    text: str = ""
    error: str | None = None


class TextGenerator(Protocol):
    async def generate(self, prompt: str, params: GenerationParams) -> GenerationResult: ...
