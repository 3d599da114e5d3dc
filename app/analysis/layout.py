from __future__ import annotations

import re

from app.analysis.vocabulary import get_terms
from app.parsing.models import ExtractedDocument
from app.schemas.analysis import FontAnalysis, LayoutAnalysis, SectionMap

HEADERS_POINTS = 20
CONSISTENT_FORMATTING_POINTS = 15
NO_TABLES_POINTS = 10
NO_GRAPHICS_POINTS = 10
STANDARD_FORMAT_POINTS = 10
PROPER_SPACING_POINTS = 10
LAYOUT_MAX = (
    HEADERS_POINTS
    + CONSISTENT_FORMATTING_POINTS
    + NO_TABLES_POINTS
    + NO_GRAPHICS_POINTS
    + STANDARD_FORMAT_POINTS
    + PROPER_SPACING_POINTS
)

STANDARD_FONTS_POINTS = 20
CONSISTENT_FONTS_POINTS = 15
APPROPRIATE_SIZING_POINTS = 10
NO_FANCY_FORMATTING_POINTS = 10
FONT_MAX = (
    STANDARD_FONTS_POINTS
    + CONSISTENT_FONTS_POINTS
    + APPROPRIATE_SIZING_POINTS
    + NO_FANCY_FORMATTING_POINTS
)

MIN_HEADER_SECTIONS = 4
MAX_FONT_FAMILIES = 3
MAX_LINE_CHARS = 200
SHOUTING_LINE_CHARS = 60

_BULLET_GLYPH_RE = re.compile(r"[•·▪▫]")
_LEADING_DASH_RE = re.compile(r"^-", re.MULTILINE)
_BLANK_RUN_RE = re.compile(r"\n[ \t]*\n[ \t]*\n[ \t]*\n")
_EMOJI_RE = re.compile(r"[\u2600-\u27BF\U0001F300-\U0001FAFF]")
_RULER_RE = re.compile(r"^\s*([=_~*#─━═-])\1{4,}\s*$", re.MULTILINE)


def has_proper_headers(sections: SectionMap) -> bool:
    return sections.present_count() >= MIN_HEADER_SECTIONS


def has_consistent_formatting(text: str) -> bool:
    bullets = len(_BULLET_GLYPH_RE.findall(text))
    dashes = len(_LEADING_DASH_RE.findall(text))
    return abs(bullets - dashes) < 3


def has_proper_spacing(text: str) -> bool:
    if _BLANK_RUN_RE.search(text):
        return False
    return all(len(line) <= MAX_LINE_CHARS for line in text.splitlines())


def _font_key(name: str) -> str:
    return re.sub(r"[^a-z]", "", name.lower())


def uses_standard_fonts(fonts: frozenset[str]) -> bool:
    # Plain-text sources carry no font data; nothing non-standard was observed.
    if not fonts:
        return True
    standard = [_font_key(font) for font in get_terms("standard_fonts")]
    return any(_font_key(font).startswith(key) for font in fonts for key in standard)


def has_consistent_fonts(fonts: frozenset[str]) -> bool:
    return len(fonts) <= MAX_FONT_FAMILIES


def has_appropriate_sizing(text: str) -> bool:
    for line in text.splitlines():
        stripped = line.strip()
        if len(stripped) >= SHOUTING_LINE_CHARS and any(ch.isalpha() for ch in stripped) and stripped.isupper():
            return False
    return True


def has_no_fancy_formatting(text: str) -> bool:
    return not (_EMOJI_RE.search(text) or _RULER_RE.search(text))


def score_layout(document: ExtractedDocument, sections: SectionMap) -> LayoutAnalysis:
    text = document.raw_text
    analysis = LayoutAnalysis(
        has_proper_headers=has_proper_headers(sections),
        consistent_formatting=has_consistent_formatting(text.lower()),
        no_tables=not document.has_tables,
        no_graphics=not document.has_images,
        standard_format=not document.has_complex_layout,
        proper_spacing=has_proper_spacing(text),
    )
    score = 0
    if analysis.has_proper_headers:
        score += HEADERS_POINTS
    if analysis.consistent_formatting:
        score += CONSISTENT_FORMATTING_POINTS
    if analysis.no_tables:
        score += NO_TABLES_POINTS
    if analysis.no_graphics:
        score += NO_GRAPHICS_POINTS
    if analysis.standard_format:
        score += STANDARD_FORMAT_POINTS
    if analysis.proper_spacing:
        score += PROPER_SPACING_POINTS
    return analysis.model_copy(update={"score": score})


def score_fonts(document: ExtractedDocument) -> FontAnalysis:
    analysis = FontAnalysis(
        uses_standard_fonts=uses_standard_fonts(document.fonts_used),
        consistent_fonts=has_consistent_fonts(document.fonts_used),
        appropriate_sizing=has_appropriate_sizing(document.raw_text),
        no_fancy_formatting=has_no_fancy_formatting(document.raw_text),
    )
    score = 0
    if analysis.uses_standard_fonts:
        score += STANDARD_FONTS_POINTS
    if analysis.consistent_fonts:
        score += CONSISTENT_FONTS_POINTS
    if analysis.appropriate_sizing:
        score += APPROPRIATE_SIZING_POINTS
    if analysis.no_fancy_formatting:
        score += NO_FANCY_FORMATTING_POINTS
    return analysis.model_copy(update={"score": score})
