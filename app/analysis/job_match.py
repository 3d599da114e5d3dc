"""Resume-versus-job-description overlap figures.

Matching is bidirectional substring containment in both the keyword and the
skill pass, so near-synonyms such as "react" and "reactjs" count as a match.
"""

from __future__ import annotations

import re

from app.analysis.text_utils import contains_either, dedupe, percent, round_half_up
from app.analysis.vocabulary import get_terms
from app.schemas.analysis import JobMatchResult

MIN_KEYWORD_CHARS = 4
MIN_SKILL_CHARS = 3
MAX_MISSING_KEYWORDS = 10
MAX_LISTED_KEYWORDS = 20

_EDGE_PUNCTUATION = ".,;:!?()[]{}\"'`"
_SKILL_PATTERNS = (
    re.compile(r"(?:skills?|technologies?|tools?|frameworks?|languages?)[:\s]+([^.\n]+)", re.IGNORECASE),
    re.compile(r"(?:proficient in|experienced with|expert in)[:\s]+([^.\n]+)", re.IGNORECASE),
    re.compile(r"(?:knowledge of|familiar with)[:\s]+([^.\n]+)", re.IGNORECASE),
)
_SKILL_SPLIT_RE = re.compile(r"[,;|&]")
_YEARS_RE = re.compile(r"(\d+)[\s-]*\+?\s*years?\s*of\s*experience", re.IGNORECASE)


def extract_match_keywords(text: str) -> list[str]:
    terms = get_terms("job_match_terms")
    keywords: list[str] = []
    for token in text.lower().split():
        if len(token) < MIN_KEYWORD_CHARS:
            continue
        word = token.strip(_EDGE_PUNCTUATION)
        if not word:
            continue
        if any(term in word or word in term for term in terms):
            keywords.append(word)
    return dedupe(keywords)


def extract_skill_phrases(text: str) -> list[str]:
    skills: list[str] = []
    for pattern in _SKILL_PATTERNS:
        for match in pattern.finditer(text):
            for part in _SKILL_SPLIT_RE.split(match.group(1)):
                skill = part.strip()
                if len(skill) >= MIN_SKILL_CHARS:
                    skills.append(skill)
    return dedupe(skills)


def match_terms(wanted: list[str], offered: list[str]) -> list[str]:
    return [term for term in wanted if any(contains_either(term, candidate) for candidate in offered)]


def stated_years_of_experience(text: str) -> int | None:
    match = _YEARS_RE.search(text)
    return int(match.group(1)) if match else None


def experience_match(resume_text: str, job_description: str) -> int:
    required = stated_years_of_experience(job_description) or 0
    if required == 0:
        return 100
    actual = stated_years_of_experience(resume_text) or 0
    if actual >= required:
        return 100
    return round_half_up(actual / required * 100)


def compare(resume_text: str, job_description: str) -> JobMatchResult:
    job_keywords = extract_match_keywords(job_description)
    resume_keywords = extract_match_keywords(resume_text)
    matched_keywords = match_terms(job_keywords, resume_keywords)
    missing_keywords = [keyword for keyword in job_keywords if keyword not in matched_keywords]

    job_skills = extract_skill_phrases(job_description)
    resume_skills = extract_skill_phrases(resume_text)
    matched_skills = match_terms(job_skills, resume_skills)

    keyword_score = percent(len(matched_keywords), len(job_keywords))
    skills_score = percent(len(matched_skills), len(job_skills))
    experience_score = experience_match(resume_text, job_description)
    overall = round_half_up((keyword_score + skills_score + experience_score) / 3)

    return JobMatchResult(
        keyword_match=keyword_score,
        skills_match=skills_score,
        experience_match=experience_score,
        overall_match=overall,
        matched_keywords=matched_keywords,
        missing_keywords=missing_keywords[:MAX_MISSING_KEYWORDS],
        job_keywords=job_keywords[:MAX_LISTED_KEYWORDS],
        resume_keywords=resume_keywords[:MAX_LISTED_KEYWORDS],
    )
