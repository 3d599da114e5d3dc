from __future__ import annotations

import re

from app.analysis.text_utils import find_terms
from app.analysis.vocabulary import get_terms
from app.schemas.analysis import ContentAnalysis, StructuralFacts

SUMMARY_POINTS = 15
DETAILED_EXPERIENCE_POINTS = 20
RELEVANT_SKILLS_POINTS = 15
EDUCATION_POINTS = 10
CONTACT_POINTS = 15
KEYWORD_POINTS_PER_TERM = 2
KEYWORD_POINTS_CAP = 25
CONTENT_MAX = 100

SUMMARY_MIN_LINE_CHARS = 50
MIN_YEAR_TOKENS = 2
MIN_SKILL_WORDS = 10

_YEAR_RE = re.compile(r"\b(?:19|20)\d{2}\b")
_WORD_RE = re.compile(r"[a-zA-Z]+")


def has_professional_summary(text: str, facts: StructuralFacts) -> bool:
    if not facts.sections.summary:
        return False
    return any(len(line) > SUMMARY_MIN_LINE_CHARS for line in text.split("\n"))


def has_detailed_experience(text: str, facts: StructuralFacts) -> bool:
    return facts.sections.experience and len(_YEAR_RE.findall(text)) >= MIN_YEAR_TOKENS


def has_relevant_skills(text: str, facts: StructuralFacts) -> bool:
    return facts.sections.skills and len(_WORD_RE.findall(text)) > MIN_SKILL_WORDS


def has_education_info(facts: StructuralFacts) -> bool:
    return facts.sections.education or bool(facts.keywords.education)


def has_contact_info(facts: StructuralFacts) -> bool:
    return bool(facts.contact_info.email and facts.contact_info.phone)


def keyword_density(text: str) -> int:
    return len(find_terms(text.lower(), get_terms("density_terms")))


def score_content(text: str, facts: StructuralFacts) -> ContentAnalysis:
    analysis = ContentAnalysis(
        has_professional_summary=has_professional_summary(text, facts),
        has_detailed_experience=has_detailed_experience(text, facts),
        has_relevant_skills=has_relevant_skills(text, facts),
        has_education_info=has_education_info(facts),
        has_contact_info=has_contact_info(facts),
        keyword_density=keyword_density(text),
    )
    score = 0
    if analysis.has_professional_summary:
        score += SUMMARY_POINTS
    if analysis.has_detailed_experience:
        score += DETAILED_EXPERIENCE_POINTS
    if analysis.has_relevant_skills:
        score += RELEVANT_SKILLS_POINTS
    if analysis.has_education_info:
        score += EDUCATION_POINTS
    if analysis.has_contact_info:
        score += CONTACT_POINTS
    score += min(analysis.keyword_density * KEYWORD_POINTS_PER_TERM, KEYWORD_POINTS_CAP)
    return analysis.model_copy(update={"score": min(score, CONTENT_MAX)})
