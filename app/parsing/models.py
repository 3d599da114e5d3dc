from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, field_validator

SourceType = Literal["pdf", "docx", "txt"]


class ExtractedDocument(BaseModel):
    """Decoded text body plus the layout signals the format scorer reads."""

    raw_text: str
    page_count: int = Field(default=1, ge=0)
    fonts_used: frozenset[str] = Field(default_factory=frozenset)
    has_tables: bool = False
    has_images: bool = False
    has_complex_layout: bool = False
    source_type: SourceType = "txt"

    model_config = {"frozen": True}

    @field_validator("fonts_used")
    @classmethod
    def _drop_blank_fonts(cls, value: frozenset[str]) -> frozenset[str]:
        return frozenset(name.strip() for name in value if name and name.strip())
