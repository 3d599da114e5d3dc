"""Generative-text enrichment of a heuristic resume analysis.

One call walks ``Idle -> PromptBuilt -> Requested`` and ends in either
``Parsed`` (an :class:`Enriched` outcome) or ``FallbackTriggered`` (a
:class:`Fallback` outcome). No exception leaves :meth:`EnrichmentAdapter.enrich`
and no retries happen here.
"""

from __future__ import annotations

import json
import math
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union

from pydantic import BaseModel, Field

from app.ai.types import GenerationParams, TextGenerator
from app.analysis.errors import AIFormatFailure, AITransportFailure, ATSAnalysisError
from app.analysis.scoring import seven_band_grade
from app.schemas.analysis import Grade, JobMatchResult, ScoreBreakdown, StructuralFacts

logger = logging.getLogger(__name__)

MAX_LIST_ITEMS = 12
MAX_ITEM_CHARS = 400
VALID_GRADES = {"A+", "A", "B+", "B", "C+", "C", "D"}

REPLY_SCHEMA = """{
  "ats_score": <integer 0-100>,
  "grade": "<A+|A|B+|B|C+|C|D>",
  "feedback": ["<specific ATS feedback point>"],
  "strengths": ["<ATS-compatible strength>"],
  "weaknesses": ["<ATS compatibility issue>"],
  "recommendations": ["<specific improvement recommendation>"]
}"""

_GENERAL_TEMPLATE = """You are an expert ATS (Applicant Tracking System) analyst. Assess how well this resume will be parsed and ranked by an ATS.

ATS SCORING CRITERIA:
- Format compatibility (25 points): standard fonts, clear sections, no graphics/tables
- Content structure (25 points): proper headers, logical flow, professional presentation
- Keyword optimization (20 points): industry-relevant terms and action verbs
- Contact completeness (15 points): all required contact information
- Professional summary (15 points): clear, compelling summary section

FACTS ALREADY EXTRACTED:
{facts}

RESUME TEXT:
{resume}

Return ONLY a JSON object in this EXACT format:
{schema}
"""

_JOB_TEMPLATE = """You are an expert ATS (Applicant Tracking System) analyst specializing in job-resume matching. Assess this resume against the job description below.

JOB DESCRIPTION:
{job_description}

FACTS ALREADY EXTRACTED:
{facts}

RESUME TEXT:
{resume}

Focus on keyword matching, skills alignment, experience relevance and ATS format compatibility for this position.

Return ONLY a JSON object in this EXACT format:
{schema}
"""


class AdapterState(str, Enum):
    IDLE = "idle"
    PROMPT_BUILT = "prompt_built"
    REQUESTED = "requested"
    PARSED = "parsed"
    FALLBACK_TRIGGERED = "fallback_triggered"


class AIAssessment(BaseModel):
    ats_score: int = Field(ge=0, le=100)
    grade: Grade
    feedback: list[str] = Field(default_factory=list)
    strengths: list[str] = Field(default_factory=list)
    weaknesses: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)


@dataclass(frozen=True)
class Enriched:
    assessment: AIAssessment
    trail: tuple[AdapterState, ...] = ()


@dataclass(frozen=True)
class Fallback:
    kind: str
    reason: str
    trail: tuple[AdapterState, ...] = ()


EnrichmentOutcome = Union[Enriched, Fallback]


@dataclass(frozen=True)
class TruncationPolicy:
    resume_chars: int = 3000
    job_description_chars: int = 2000

    def resume(self, text: str) -> str:
        return text[: self.resume_chars]

    def job_description(self, text: str) -> str:
        return text[: self.job_description_chars]


def _describe_facts(
    facts: StructuralFacts,
    scoring: ScoreBreakdown,
    job_match: JobMatchResult | None,
) -> str:
    present = [name for name, found in facts.sections.model_dump().items() if found]
    contact = [name for name, value in facts.contact_info.model_dump().items() if value]
    lines = [
        f"- Sections present: {', '.join(present) or 'none'}",
        f"- Contact fields found: {', '.join(contact) or 'none'}",
        f"- Technical keywords: {', '.join(facts.keywords.technical) or 'none'}",
        f"- Action verbs: {', '.join(facts.keywords.action) or 'none'}",
        f"- Skills: {', '.join(facts.skills) or 'none'}",
        f"- Experience entries: {len(facts.experience)}; education entries: {len(facts.education)}",
        f"- Heuristic scores: layout {scoring.layout}/75, fonts {scoring.fonts}/55, content {scoring.content}/100",
    ]
    if job_match is not None:
        lines.append(
            f"- Job match: keywords {job_match.keyword_match}%, skills {job_match.skills_match}%, "
            f"experience {job_match.experience_match}%, overall {job_match.overall_match}%"
        )
        if job_match.missing_keywords:
            lines.append(f"- Missing job keywords: {', '.join(job_match.missing_keywords)}")
    return "\n".join(lines)


def build_prompt(
    resume_text: str,
    facts: StructuralFacts,
    scoring: ScoreBreakdown,
    *,
    policy: TruncationPolicy,
    job_description: str | None = None,
    job_match: JobMatchResult | None = None,
) -> str:
    described = _describe_facts(facts, scoring, job_match)
    if job_description:
        return _JOB_TEMPLATE.format(
            job_description=policy.job_description(job_description),
            facts=described,
            resume=policy.resume(resume_text),
            schema=REPLY_SCHEMA,
        )
    return _GENERAL_TEMPLATE.format(
        facts=described,
        resume=policy.resume(resume_text),
        schema=REPLY_SCHEMA,
    )


def extract_json_object(text: str) -> str:
    """Return the first balanced ``{...}`` span, skipping braces inside JSON strings."""
    start = text.find("{")
    while start != -1:
        depth = 0
        in_string = False
        escaped = False
        for index in range(start, len(text)):
            char = text[index]
            if in_string:
                if escaped:
                    escaped = False
                elif char == "\\":
                    escaped = True
                elif char == '"':
                    in_string = False
                continue
            if char == '"':
                in_string = True
            elif char == "{":
                depth += 1
            elif char == "}":
                depth -= 1
                if depth == 0:
                    return text[start : index + 1]
        start = text.find("{", start + 1)
    raise AIFormatFailure("No JSON object found in AI reply")


def _safe_str_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    items: list[str] = []
    for item in value:
        if isinstance(item, bool) or not isinstance(item, (str, int, float)):
            continue
        if str(item).strip():
            items.append(str(item).strip()[:MAX_ITEM_CHARS])
        if len(items) >= MAX_LIST_ITEMS:
            break
    return items


def _coerce_score(value: Any) -> int:
    if isinstance(value, bool):
        raise AIFormatFailure("ats_score must be a number")
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError) as exc:
        raise AIFormatFailure("ats_score must be a number") from exc
    if not math.isfinite(number):
        raise AIFormatFailure("ats_score must be a finite number")
    return max(0, min(100, int(round(number))))


def parse_reply(text: str) -> AIAssessment:
    raw = extract_json_object(text)
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise AIFormatFailure(f"AI reply is not valid JSON: {exc}") from exc
    if not isinstance(payload, dict):
        raise AIFormatFailure("AI reply must be a JSON object")
    if "ats_score" not in payload:
        raise AIFormatFailure("AI reply is missing 'ats_score'")

    score = _coerce_score(payload["ats_score"])
    grade = str(payload.get("grade") or "").strip().upper()
    if grade not in VALID_GRADES:
        grade = seven_band_grade(score)
    return AIAssessment(
        ats_score=score,
        grade=grade,
        feedback=_safe_str_list(payload.get("feedback")),
        strengths=_safe_str_list(payload.get("strengths")),
        weaknesses=_safe_str_list(payload.get("weaknesses")),
        recommendations=_safe_str_list(payload.get("recommendations")),
    )


@dataclass
class EnrichmentAdapter:
    generator: TextGenerator
    params: GenerationParams = field(default_factory=GenerationParams)
    policy: TruncationPolicy = field(default_factory=TruncationPolicy)

    async def enrich(
        self,
        resume_text: str,
        facts: StructuralFacts,
        scoring: ScoreBreakdown,
        *,
        job_description: str | None = None,
        job_match: JobMatchResult | None = None,
    ) -> EnrichmentOutcome:
        trail = [AdapterState.IDLE]
        try:
            prompt = build_prompt(
                resume_text,
                facts,
                scoring,
                policy=self.policy,
                job_description=job_description,
                job_match=job_match,
            )
            trail.append(AdapterState.PROMPT_BUILT)

            trail.append(AdapterState.REQUESTED)
            try:
                result = await self.generator.generate(prompt, self.params)
            except Exception as exc:  # noqa: BLE001 - any collaborator error is a transport failure
                raise AITransportFailure(str(exc) or exc.__class__.__name__) from exc
            if not result.success:
                raise AITransportFailure(result.error or "AI collaborator returned an error")

            assessment = parse_reply(result.text or "")
        except ATSAnalysisError as exc:
            trail.append(AdapterState.FALLBACK_TRIGGERED)
            logger.warning("ats_ai_enrichment_failed kind=%s error=%s", exc.code, exc)
            return Fallback(kind=exc.code, reason=str(exc), trail=tuple(trail))

        trail.append(AdapterState.PARSED)
        return Enriched(assessment=assessment, trail=tuple(trail))
