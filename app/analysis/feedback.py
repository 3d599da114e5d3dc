from __future__ import annotations

from typing import Callable

from app.schemas.analysis import (
    ContentAnalysis,
    FontAnalysis,
    JobMatchResult,
    LayoutAnalysis,
    ScoreBreakdown,
    StructuralFacts,
)

MIN_TECHNICAL_KEYWORDS = 5
MIN_ACTION_VERBS = 3
MIN_SKILLS = 5
STRONG_LAYOUT_SCORE = 60
STRONG_FONT_SCORE = 40
STRONG_CONTENT_SCORE = 70
LOW_JOB_MATCH = 50

FeedbackRule = tuple[Callable[[StructuralFacts], bool], str]

# Evaluated in order; each rule that fires appends its message once.
FEEDBACK_RULES: tuple[FeedbackRule, ...] = (
    (lambda f: not f.sections.summary, "ATS requires a professional summary section for better parsing"),
    (lambda f: not f.sections.experience, "Work experience section is critical for ATS compatibility"),
    (lambda f: not f.sections.education, "Education section helps ATS categorize your qualifications"),
    (lambda f: not f.sections.skills, "Dedicated skills section improves ATS keyword matching"),
    (lambda f: not f.contact_info.email, "Email address is required for ATS contact parsing"),
    (lambda f: not f.contact_info.phone, "Phone number helps ATS complete contact information"),
    (
        lambda f: len(f.keywords.technical) < MIN_TECHNICAL_KEYWORDS,
        "Include more industry-specific technical keywords for ATS matching",
    ),
    (
        lambda f: len(f.keywords.action) < MIN_ACTION_VERBS,
        "Add more action verbs (led, managed, developed) for ATS optimization",
    ),
    (lambda f: len(f.skills) < MIN_SKILLS, "List specific skills and technologies for better ATS recognition"),
    (lambda f: not f.contact_info.linkedin, "LinkedIn profile URL enhances ATS professional networking data"),
)


def generate_feedback(facts: StructuralFacts) -> list[str]:
    return [message for applies, message in FEEDBACK_RULES if applies(facts)]


def generate_weaknesses(
    layout: LayoutAnalysis,
    fonts: FontAnalysis,
    content: ContentAnalysis,
    job_match: JobMatchResult | None = None,
) -> list[str]:
    weaknesses: list[str] = []
    if not layout.has_proper_headers:
        weaknesses.append("Missing proper section headers (Summary, Experience, Education, Skills)")
    if not layout.consistent_formatting:
        weaknesses.append("Inconsistent bullet formatting throughout the resume")
    if not layout.no_tables:
        weaknesses.append("Contains tables which may not be ATS-friendly")
    if not layout.no_graphics:
        weaknesses.append("Contains graphics/images that ATS cannot read")
    if not layout.standard_format:
        weaknesses.append("Multi-column or complex layout may be read out of order")
    if not fonts.uses_standard_fonts:
        weaknesses.append("Using non-standard fonts - use Arial, Times New Roman, or Calibri")
    if not fonts.consistent_fonts:
        weaknesses.append("Too many different fonts used - maintain consistency")
    if not content.has_professional_summary:
        weaknesses.append("Missing or weak professional summary")
    if not content.has_detailed_experience:
        weaknesses.append("Work experience section needs more detail")
    if not content.has_relevant_skills:
        weaknesses.append("Skills section is missing or insufficient")
    if not content.has_contact_info:
        weaknesses.append("Missing complete contact information")
    if content.keyword_density < MIN_TECHNICAL_KEYWORDS:
        weaknesses.append("Low keyword density - add more industry-relevant terms")
    if job_match is not None and job_match.overall_match < LOW_JOB_MATCH:
        weaknesses.append(f"Weak alignment with the job description ({job_match.overall_match}% overall match)")
    return weaknesses


def generate_strengths(
    layout: LayoutAnalysis,
    fonts: FontAnalysis,
    content: ContentAnalysis,
    job_match: JobMatchResult | None = None,
) -> list[str]:
    strengths: list[str] = []
    if layout.score >= STRONG_LAYOUT_SCORE:
        strengths.append("Good resume structure and layout")
    if fonts.score >= STRONG_FONT_SCORE:
        strengths.append("Appropriate font choices and formatting")
    if content.score >= STRONG_CONTENT_SCORE:
        strengths.append("Strong content and keyword optimization")
    if content.has_contact_info:
        strengths.append("Complete contact information")
    if job_match is not None and job_match.overall_match >= LOW_JOB_MATCH:
        strengths.append(f"Solid alignment with the job description ({job_match.overall_match}% overall match)")
    return strengths


def generate_recommendations(
    scoring: ScoreBreakdown,
    content: ContentAnalysis,
    job_match: JobMatchResult | None = None,
) -> list[str]:
    recommendations: list[str] = []
    if scoring.layout < 50:
        recommendations.append("Restructure resume with clear section headers and consistent formatting")
    if scoring.fonts < 30:
        recommendations.append("Switch to standard fonts (Arial, Times New Roman, Calibri)")
    if scoring.content < 60:
        recommendations.append("Enhance content with more detailed experience and relevant keywords")
    if content.keyword_density < 8:
        recommendations.append("Add more industry-specific keywords and technical terms")
    if job_match is not None:
        if job_match.missing_keywords:
            missing = ", ".join(job_match.missing_keywords)
            recommendations.append(f"Work these job keywords into your resume where truthful: {missing}")
        if job_match.experience_match < 100:
            recommendations.append("Make your years of experience explicit, e.g. '5 years of experience in ...'")
    return recommendations
