from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, field_validator, model_validator

AnalysisMode = Literal["general", "job-specific"]
Grade = Literal["A+", "A", "B+", "B", "C+", "C", "D"]
ScoringScheme = Literal["five_factor", "weighted", "ai"]

SECTION_NAMES = ("summary", "experience", "education", "skills", "projects", "certifications")


class SectionMap(BaseModel):
    summary: bool = False
    experience: bool = False
    education: bool = False
    skills: bool = False
    projects: bool = False
    certifications: bool = False

    def present_count(self) -> int:
        return sum(1 for name in SECTION_NAMES if getattr(self, name))


class ContactInfo(BaseModel):
    email: str | None = None
    phone: str | None = None
    linkedin: str | None = None
    github: str | None = None

    def found_count(self) -> int:
        return sum(1 for value in (self.email, self.phone, self.linkedin, self.github) if value)


class KeywordBundle(BaseModel):
    technical: list[str] = Field(default_factory=list)
    soft: list[str] = Field(default_factory=list)
    action: list[str] = Field(default_factory=list)
    education: list[str] = Field(default_factory=list)
    experience: list[str] = Field(default_factory=list)


class ExperienceEntry(BaseModel):
    title: str = ""
    company: str = ""
    duration: str = ""
    description: str = ""


class EducationEntry(BaseModel):
    degree: str = ""
    institution: str = ""
    duration: str = ""
    description: str = ""


class StructuralFacts(BaseModel):
    """Everything the extractor reads out of a resume body."""

    sections: SectionMap
    contact_info: ContactInfo
    keywords: KeywordBundle
    experience: list[ExperienceEntry] = Field(default_factory=list)
    education: list[EducationEntry] = Field(default_factory=list)
    skills: list[str] = Field(default_factory=list)


class LayoutAnalysis(BaseModel):
    has_proper_headers: bool = False
    consistent_formatting: bool = False
    no_tables: bool = False
    no_graphics: bool = False
    standard_format: bool = False
    proper_spacing: bool = False
    score: int = Field(default=0, ge=0, le=75)


class FontAnalysis(BaseModel):
    uses_standard_fonts: bool = False
    consistent_fonts: bool = False
    appropriate_sizing: bool = False
    no_fancy_formatting: bool = False
    score: int = Field(default=0, ge=0, le=55)


class ContentAnalysis(BaseModel):
    has_professional_summary: bool = False
    has_detailed_experience: bool = False
    has_relevant_skills: bool = False
    has_education_info: bool = False
    has_contact_info: bool = False
    keyword_density: int = Field(default=0, ge=0)
    score: int = Field(default=0, ge=0, le=100)


class ScorePercentages(BaseModel):
    layout_percentage: float = Field(ge=0.0, le=100.0)
    font_percentage: float = Field(ge=0.0, le=100.0)
    content_percentage: float = Field(ge=0.0, le=100.0)


class ScoreBreakdown(BaseModel):
    layout: int = Field(ge=0, le=75)
    fonts: int = Field(ge=0, le=55)
    content: int = Field(ge=0, le=100)
    total: int = Field(ge=0, le=100)
    breakdown: ScorePercentages


class JobMatchResult(BaseModel):
    keyword_match: int = Field(ge=0, le=100)
    skills_match: int = Field(ge=0, le=100)
    experience_match: int = Field(ge=0, le=100)
    overall_match: int = Field(ge=0, le=100)
    matched_keywords: list[str] = Field(default_factory=list)
    missing_keywords: list[str] = Field(default_factory=list, max_length=10)
    job_keywords: list[str] = Field(default_factory=list, max_length=20)
    resume_keywords: list[str] = Field(default_factory=list, max_length=20)


class AnalysisResult(BaseModel):
    ats_score: int = Field(ge=0, le=100)
    grade: Grade
    scoring_scheme: ScoringScheme
    analysis_mode: AnalysisMode
    sections: SectionMap
    contact_info: ContactInfo
    keywords: KeywordBundle
    experience: list[ExperienceEntry] = Field(default_factory=list)
    education: list[EducationEntry] = Field(default_factory=list)
    skills: list[str] = Field(default_factory=list)
    layout: LayoutAnalysis
    fonts: FontAnalysis
    content: ContentAnalysis
    scoring: ScoreBreakdown
    feedback: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)
    strengths: list[str] = Field(default_factory=list)
    weaknesses: list[str] = Field(default_factory=list)
    job_match: JobMatchResult | None = None
    ai_enhanced: bool = False
    ai_failure: str | None = None
    cached: bool = False


class AnalysisRequest(BaseModel):
    file_path: str = Field(min_length=1)
    mode: AnalysisMode = "general"
    job_description: str | None = None

    @field_validator("job_description")
    @classmethod
    def _strip_job_description(cls, value: str | None) -> str | None:
        if value is None:
            return None
        stripped = value.strip()
        return stripped or None

    @model_validator(mode="after")
    def _require_job_description(self) -> "AnalysisRequest":
        if self.mode == "job-specific" and not self.job_description:
            raise ValueError("job_description is required when mode is 'job-specific'")
        return self


class AnalysisSuccess(BaseModel):
    success: Literal[True] = True
    analysis: AnalysisResult


class AnalysisFailure(BaseModel):
    success: Literal[False] = False
    error: str
    code: str


class AnalyzeResponse(BaseModel):
    success: Literal[True] = True
    message: str
    analysis: AnalysisResult
