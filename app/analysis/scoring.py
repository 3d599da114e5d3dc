"""Score aggregation and letter grading.

Two strategies are kept side by side because they weigh evidence differently
and produce different numbers for the same resume:

* ``weighted``: layout + fonts + content axes, capped at 100, graded on seven bands.
* ``five_factor``: contact, sections, experience, education and skills buckets,
  capped at 100, graded on four bands.

Both are always computed; configuration only picks which one becomes the
headline ``ats_score``/``grade`` of a heuristic result.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from app.analysis.content import CONTENT_MAX
from app.analysis.layout import FONT_MAX, LAYOUT_MAX
from app.schemas.analysis import (
    ContentAnalysis,
    FontAnalysis,
    Grade,
    LayoutAnalysis,
    ScoreBreakdown,
    ScorePercentages,
    StructuralFacts,
)

TOTAL_MAX = 100

SEVEN_BAND_GRADES: tuple[tuple[int, Grade], ...] = (
    (90, "A+"),
    (80, "A"),
    (70, "B+"),
    (60, "B"),
    (50, "C+"),
    (40, "C"),
)
FOUR_BAND_GRADES: tuple[tuple[int, Grade], ...] = (
    (80, "A"),
    (60, "B"),
    (40, "C"),
)

CONTACT_POINTS = 20
SECTIONS_POINTS = 30
EXPERIENCE_POINTS = 25
EDUCATION_POINTS = 15
SKILLS_POINTS = 10
MIN_CONTACT_FIELDS = 2
MIN_SECTIONS = 4
MIN_SKILLS = 5


def _grade(score: int, bands: tuple[tuple[int, Grade], ...]) -> Grade:
    for threshold, grade in bands:
        if score >= threshold:
            return grade
    return "D"


def seven_band_grade(score: int) -> Grade:
    return _grade(score, SEVEN_BAND_GRADES)


def four_band_grade(score: int) -> Grade:
    return _grade(score, FOUR_BAND_GRADES)


def weighted_breakdown(layout: LayoutAnalysis, fonts: FontAnalysis, content: ContentAnalysis) -> ScoreBreakdown:
    total = min(layout.score + fonts.score + content.score, TOTAL_MAX)
    return ScoreBreakdown(
        layout=layout.score,
        fonts=fonts.score,
        content=content.score,
        total=total,
        breakdown=ScorePercentages(
            layout_percentage=round(layout.score / LAYOUT_MAX * 100, 2),
            font_percentage=round(fonts.score / FONT_MAX * 100, 2),
            content_percentage=round(content.score / CONTENT_MAX * 100, 2),
        ),
    )


def five_factor_score(facts: StructuralFacts) -> int:
    score = 0
    if facts.contact_info.found_count() >= MIN_CONTACT_FIELDS:
        score += CONTACT_POINTS
    if facts.sections.present_count() >= MIN_SECTIONS:
        score += SECTIONS_POINTS
    if facts.experience:
        score += EXPERIENCE_POINTS
    if facts.education:
        score += EDUCATION_POINTS
    if len(facts.skills) >= MIN_SKILLS:
        score += SKILLS_POINTS
    return min(score, TOTAL_MAX)


@dataclass(frozen=True)
class ScoringStrategy:
    name: str
    score: Callable[[StructuralFacts, ScoreBreakdown], int]
    grade: Callable[[int], Grade]

    def headline(self, facts: StructuralFacts, breakdown: ScoreBreakdown) -> tuple[int, Grade]:
        value = self.score(facts, breakdown)
        return value, self.grade(value)


STRATEGIES: dict[str, ScoringStrategy] = {
    "five_factor": ScoringStrategy(
        name="five_factor",
        score=lambda facts, _breakdown: five_factor_score(facts),
        grade=four_band_grade,
    ),
    "weighted": ScoringStrategy(
        name="weighted",
        score=lambda _facts, breakdown: breakdown.total,
        grade=seven_band_grade,
    ),
}


def get_strategy(name: str) -> ScoringStrategy:
    try:
        return STRATEGIES[name]
    except KeyError:
        raise ValueError(f"Unknown scoring strategy '{name}'") from None
