"""Pattern-based structural extraction of a resume text body.

Every rule here is a small pure function so it can be tested and swapped on
its own. Matching is shallow: case-folded substring tests and
line regexes, with no stemming and no backtracking.
"""

from __future__ import annotations

import re
from typing import Callable

from app.analysis.text_utils import find_terms
from app.analysis.vocabulary import get_term_groups, get_terms
from app.schemas.analysis import (
    ContactInfo,
    EducationEntry,
    ExperienceEntry,
    KeywordBundle,
    SectionMap,
    StructuralFacts,
)

EMAIL_RE = re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b")
PHONE_RE = re.compile(r"(?:\+?1[-.\s]?)?\(?\d{3}\)?[-.\s]?\d{3}[-.\s]?\d{4}")
LINKEDIN_RE = re.compile(r"linkedin\.com/in/[A-Za-z0-9-]+", re.IGNORECASE)
GITHUB_RE = re.compile(r"github\.com/[A-Za-z0-9-]+", re.IGNORECASE)

DURATION_RE = re.compile(r"\d{4}|\b(?:Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec)")
BULLET_GLYPHS = ("•", "-", "*", "·", "▪")


def _alternation(words: tuple[str, ...]) -> str:
    return "|".join(re.escape(word) for word in words)


TITLE_RE = re.compile(rf"^[A-Z][A-Za-z\s/&,.-]*\b(?:{_alternation(get_terms('title_nouns'))})\b")
ORGANIZATION_RE = re.compile(
    rf"^[A-Z][A-Za-z\s&.,'-]*\b(?:{_alternation(get_terms('organization_suffixes'))})\b"
)
DEGREE_RE = re.compile(rf"\b(?:{_alternation(get_terms('degree_markers'))})\b", re.IGNORECASE)
INSTITUTION_RE = re.compile(_alternation(get_terms("institution_markers")), re.IGNORECASE)


def detect_sections(text: str) -> SectionMap:
    lowered = text.lower()
    found = {
        section: any(synonym in lowered for synonym in synonyms)
        for section, synonyms in get_term_groups("sections").items()
    }
    return SectionMap(**found)


def _first_match(pattern: re.Pattern[str], text: str) -> str | None:
    match = pattern.search(text)
    return match.group(0) if match else None


def extract_contact_info(text: str) -> ContactInfo:
    return ContactInfo(
        email=_first_match(EMAIL_RE, text),
        phone=_first_match(PHONE_RE, text),
        linkedin=_first_match(LINKEDIN_RE, text),
        github=_first_match(GITHUB_RE, text),
    )


def extract_keywords(text: str) -> KeywordBundle:
    lowered = text.lower()
    found = {
        category: find_terms(lowered, terms)
        for category, terms in get_term_groups("keywords").items()
    }
    return KeywordBundle(**found)


def extract_skills(text: str) -> list[str]:
    return find_terms(text.lower(), get_terms("skills"))


def header_section(line: str) -> str | None:
    """Return the canonical section a header line introduces, or None for body lines."""
    cleaned = line.strip().rstrip(":").strip().lower()
    words = cleaned.split()
    if not words or len(words) > 4:
        return None
    for section, synonyms in get_term_groups("sections").items():
        for synonym in synonyms:
            if cleaned == synonym or cleaned.endswith(" " + synonym):
                return section
    return None


def is_bullet_line(line: str) -> bool:
    return line.startswith(BULLET_GLYPHS)


def _strip_bullet(line: str) -> str:
    return line.lstrip("".join(BULLET_GLYPHS)).strip()


def _scan_section_entries(
    text: str,
    *,
    section: str,
    starts_entry: Callable[[str], bool],
    is_organization: Callable[[str], bool],
    make_entry: Callable[[str], dict[str, str]],
    organization_field: str,
) -> list[dict[str, str]]:
    entries: list[dict[str, str]] = []
    inside = False
    current: dict[str, str] | None = None

    def flush() -> None:
        nonlocal current
        if current is not None:
            current["description"] = current["description"].strip()
            entries.append(current)
            current = None

    for raw_line in text.split("\n"):
        line = raw_line.strip()
        if not line:
            continue

        header = header_section(line)
        if header == section:
            inside = True
            continue
        if header is not None:
            if inside:
                flush()
            inside = False
            continue
        if not inside:
            continue

        if starts_entry(line):
            flush()
            current = make_entry(line)
        elif current is not None and not current[organization_field] and is_organization(line):
            current[organization_field] = line
        elif current is not None and DURATION_RE.search(line):
            current["duration"] = line
        elif current is not None and is_bullet_line(line):
            current["description"] += _strip_bullet(line) + " "

    flush()
    return entries


def extract_experience(text: str) -> list[ExperienceEntry]:
    entries = _scan_section_entries(
        text,
        section="experience",
        starts_entry=lambda line: bool(TITLE_RE.match(line)),
        is_organization=lambda line: bool(ORGANIZATION_RE.match(line)),
        make_entry=lambda line: {"title": line, "company": "", "duration": "", "description": ""},
        organization_field="company",
    )
    return [ExperienceEntry(**entry) for entry in entries]


def extract_education(text: str) -> list[EducationEntry]:
    entries = _scan_section_entries(
        text,
        section="education",
        starts_entry=lambda line: bool(DEGREE_RE.search(line)),
        is_organization=lambda line: bool(INSTITUTION_RE.search(line)),
        make_entry=lambda line: {"degree": line, "institution": "", "duration": "", "description": ""},
        organization_field="institution",
    )
    return [EducationEntry(**entry) for entry in entries]


def extract_structure(text: str) -> StructuralFacts:
    return StructuralFacts(
        sections=detect_sections(text),
        contact_info=extract_contact_info(text),
        keywords=extract_keywords(text),
        experience=extract_experience(text),
        education=extract_education(text),
        skills=extract_skills(text),
    )
