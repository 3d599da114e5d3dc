from __future__ import annotations

import logging
import re
from pathlib import Path

from app.analysis.errors import DecodeFailure

from .models import ExtractedDocument

logger = logging.getLogger(__name__)

_SUBSET_PREFIX_RE = re.compile(r"^[A-Z]{6}\+")
_FONT_SUFFIX_RE = re.compile(r"(?:PSMT|PS|MT)$")
_WIDE_GAP_RE = re.compile(r"\S {4,}\S")
_CONTACT_HINT_RE = re.compile(r"@|https?://|www\.|linkedin|github", re.IGNORECASE)

MIN_TABLE_ROWS = 2
MIN_COLUMN_LINES = 4


def font_family(base_font: str) -> str:
    """Reduce a PDF BaseFont such as ``/ABCDEF+TimesNewRomanPS-BoldMT`` to its family."""
    name = _SUBSET_PREFIX_RE.sub("", base_font.lstrip("/"))
    family = re.split(r"[-,]", name, maxsplit=1)[0]
    return _FONT_SUFFIX_RE.sub("", family) or family


def _is_table_row(line: str) -> bool:
    stripped = line.strip()
    if stripped.count("|") < 2:
        return False
    return not _CONTACT_HINT_RE.search(stripped)


def text_has_tables(text: str) -> bool:
    return sum(1 for line in text.splitlines() if _is_table_row(line)) >= MIN_TABLE_ROWS


def text_has_complex_layout(text: str) -> bool:
    wide_lines = [
        line
        for line in text.splitlines()
        if _WIDE_GAP_RE.search(line.strip()) and not _CONTACT_HINT_RE.search(line)
    ]
    return len(wide_lines) >= MIN_COLUMN_LINES


def _extract_txt(file_path: Path) -> ExtractedDocument:
    text = file_path.read_text(encoding="utf-8", errors="replace")
    return ExtractedDocument(
        raw_text=text,
        page_count=1,
        has_tables=text_has_tables(text),
        has_complex_layout=text_has_complex_layout(text),
        source_type="txt",
    )


def _pdf_page_fonts(page) -> set[str]:
    fonts: set[str] = set()
    if "/Resources" not in page:
        return fonts
    resources = page["/Resources"]
    if "/Font" not in resources:
        return fonts
    for font_ref in resources["/Font"].values():
        font = font_ref.get_object()
        base_font = font.get("/BaseFont")
        if base_font:
            fonts.add(font_family(str(base_font)))
    return fonts


def _pdf_page_has_images(page) -> bool:
    try:
        return len(page.images) > 0
    except Exception as exc:  # noqa: BLE001 - unsupported image filters only hide the image signal
        logger.debug("pdf_image_probe_failed: %s", exc)
        return False


def _extract_pdf(file_path: Path) -> ExtractedDocument:
    from pypdf import PdfReader

    reader = PdfReader(str(file_path))
    text_parts: list[str] = []
    fonts: set[str] = set()
    has_images = False
    for page in reader.pages:
        page_text = (page.extract_text() or "").strip()
        if page_text:
            text_parts.append(page_text)
        fonts |= _pdf_page_fonts(page)
        has_images = has_images or _pdf_page_has_images(page)

    text = "\n".join(text_parts)
    return ExtractedDocument(
        raw_text=text,
        page_count=len(reader.pages),
        fonts_used=frozenset(fonts),
        has_tables=text_has_tables(text),
        has_images=has_images,
        has_complex_layout=text_has_complex_layout(text),
        source_type="pdf",
    )


def _extract_docx(file_path: Path) -> ExtractedDocument:
    from docx import Document

    document = Document(str(file_path))
    paragraphs: list[str] = []
    fonts: set[str] = set()
    for paragraph in document.paragraphs:
        if paragraph.text and paragraph.text.strip():
            paragraphs.append(paragraph.text.strip())
        style_font = paragraph.style.font.name if paragraph.style is not None else None
        if style_font:
            fonts.add(style_font)
        for run in paragraph.runs:
            if run.font.name:
                fonts.add(run.font.name)

    text = "\n".join(paragraphs)
    return ExtractedDocument(
        raw_text=text,
        page_count=1,
        fonts_used=frozenset(fonts),
        has_tables=len(document.tables) > 0,
        has_images=len(document.inline_shapes) > 0,
        has_complex_layout=text_has_complex_layout(text),
        source_type="docx",
    )


_EXTRACTORS = {
    ".txt": _extract_txt,
    ".md": _extract_txt,
    ".pdf": _extract_pdf,
    ".docx": _extract_docx,
}


def extract(file_path: str) -> ExtractedDocument:
    path = Path(file_path)
    if not path.exists():
        raise DecodeFailure(f"Input document not found: '{path}'")

    extension = path.suffix.lower()
    extractor = _EXTRACTORS.get(extension)
    if extractor is None:
        raise DecodeFailure(
            f"Unsupported file type '{extension}'. Supported types: .txt, .md, .pdf, .docx"
        )

    try:
        document = extractor(path)
    except DecodeFailure:
        raise
    except Exception as exc:
        logger.warning("document_decode_failed path=%s: %s", path.name, exc)
        raise DecodeFailure(f"Unable to decode '{path.name}': {exc}") from exc

    if not document.raw_text.strip():
        raise DecodeFailure(f"No extractable text found in '{path.name}'")
    return document
