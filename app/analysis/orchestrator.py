from __future__ import annotations

import asyncio
import logging
import os
from contextlib import contextmanager
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Callable, Iterator

from pydantic import ValidationError

from app.ai.config import load_ai_config
from app.ai.enrichment import (
    EnrichmentAdapter,
    EnrichmentOutcome,
    Enriched,
    Fallback,
    TruncationPolicy,
)
from app.ai.factory import get_text_generator
from app.analysis.cache import AnalysisCache, InMemoryLRUBackend, SQLiteCacheBackend, fingerprint
from app.analysis.content import score_content
from app.analysis.errors import DecodeFailure, InvalidRequest
from app.analysis.extractor import extract_structure
from app.analysis.feedback import (
    generate_feedback,
    generate_recommendations,
    generate_strengths,
    generate_weaknesses,
)
from app.analysis.job_match import compare
from app.analysis.layout import score_fonts, score_layout
from app.analysis.scoring import ScoringStrategy, get_strategy, weighted_breakdown
from app.core.config import settings
from app.parsing.models import ExtractedDocument
from app.parsing.parse import extract
from app.schemas.analysis import (
    AnalysisFailure,
    AnalysisRequest,
    AnalysisResult,
    AnalysisSuccess,
    StructuralFacts,
)

logger = logging.getLogger(__name__)

Decoder = Callable[[str], ExtractedDocument]

AI_DISABLED = "ai_disabled"


@contextmanager
def owned_file(path: str, cleanup: bool) -> Iterator[None]:
    """Remove the request's temporary file on every way out of the block."""
    try:
        yield
    finally:
        if cleanup and path:
            try:
                os.unlink(path)
            except FileNotFoundError:
                pass
            except OSError as exc:
                logger.warning("ats_temp_cleanup_failed path=%s: %s", path, exc)


def run_heuristics(
    document: ExtractedDocument,
    request: AnalysisRequest,
    strategy: ScoringStrategy,
) -> AnalysisResult:
    text = document.raw_text
    facts = extract_structure(text)
    layout = score_layout(document, facts.sections)
    fonts = score_fonts(document)
    content = score_content(text, facts)
    scoring = weighted_breakdown(layout, fonts, content)
    job_match = compare(text, request.job_description or "") if request.mode == "job-specific" else None
    ats_score, grade = strategy.headline(facts, scoring)

    return AnalysisResult(
        ats_score=ats_score,
        grade=grade,
        scoring_scheme=strategy.name,
        analysis_mode=request.mode,
        sections=facts.sections,
        contact_info=facts.contact_info,
        keywords=facts.keywords,
        experience=facts.experience,
        education=facts.education,
        skills=facts.skills,
        layout=layout,
        fonts=fonts,
        content=content,
        scoring=scoring,
        feedback=generate_feedback(facts),
        recommendations=generate_recommendations(scoring, content, job_match),
        strengths=generate_strengths(layout, fonts, content, job_match),
        weaknesses=generate_weaknesses(layout, fonts, content, job_match),
        job_match=job_match,
    )


def merge_outcome(heuristic: AnalysisResult, outcome: EnrichmentOutcome) -> AnalysisResult:
    """Apply an enrichment outcome; sub-scores and job-match figures always stay heuristic."""
    if isinstance(outcome, Enriched):
        assessment = outcome.assessment
        return heuristic.model_copy(
            update={
                "ats_score": assessment.ats_score,
                "grade": assessment.grade,
                "scoring_scheme": "ai",
                "feedback": assessment.feedback or heuristic.feedback,
                "strengths": assessment.strengths or heuristic.strengths,
                "weaknesses": assessment.weaknesses or heuristic.weaknesses,
                "recommendations": assessment.recommendations or heuristic.recommendations,
                "ai_enhanced": True,
                "ai_failure": None,
            },
            deep=True,
        )
    if isinstance(outcome, Fallback):
        return heuristic.model_copy(update={"ai_enhanced": False, "ai_failure": outcome.kind}, deep=True)
    raise TypeError(f"Unhandled enrichment outcome: {outcome!r}")


@dataclass(frozen=True)
class _Computed:
    result: AnalysisResult
    canonical: bool


@dataclass
class _InFlight:
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    users: int = 0


class ATSAnalyzer:
    def __init__(
        self,
        *,
        cache: AnalysisCache | None = None,
        adapter: EnrichmentAdapter | None = None,
        decoder: Decoder = extract,
        strategy: ScoringStrategy | None = None,
        ai_timeout_s: float | None = None,
    ) -> None:
        self._cache = cache if cache is not None else AnalysisCache()
        self._adapter = adapter
        self._decoder = decoder
        self._strategy = strategy or get_strategy(settings.scoring_strategy)
        self._ai_timeout_s = ai_timeout_s if ai_timeout_s is not None else settings.ai_timeout_s
        self._inflight: dict[str, _InFlight] = {}

    @property
    def cache(self) -> AnalysisCache:
        return self._cache

    @property
    def ai_enabled(self) -> bool:
        return self._adapter is not None

    @staticmethod
    def build_request(file_path: str, mode: str, job_description: str | None) -> AnalysisRequest:
        try:
            return AnalysisRequest(file_path=file_path, mode=mode, job_description=job_description)
        except ValidationError as exc:
            first = exc.errors()[0] if exc.errors() else {}
            message = str(first.get("msg") or exc).removeprefix("Value error, ")
            raise InvalidRequest(message) from exc

    async def analyze_file(
        self,
        file_path: str,
        mode: str = "general",
        job_description: str | None = None,
        *,
        cleanup: bool = True,
    ) -> AnalysisResult:
        with owned_file(file_path, cleanup):
            request = self.build_request(file_path, mode, job_description)
            return await self._analyze(request)

    async def analyze(self, request: AnalysisRequest, *, cleanup: bool = True) -> AnalysisResult:
        with owned_file(request.file_path, cleanup):
            return await self._analyze(request)

    async def run_analysis(
        self,
        file_path: str,
        mode: str = "general",
        job_description: str | None = None,
        *,
        cleanup: bool = True,
    ) -> AnalysisSuccess | AnalysisFailure:
        try:
            result = await self.analyze_file(file_path, mode, job_description, cleanup=cleanup)
        except (InvalidRequest, DecodeFailure) as exc:
            logger.warning("ats_analysis_failed code=%s error=%s", exc.code, exc)
            return AnalysisFailure(error=str(exc), code=exc.code)
        return AnalysisSuccess(analysis=result)

    async def _analyze(self, request: AnalysisRequest) -> AnalysisResult:
        document = await asyncio.to_thread(self._decoder, request.file_path)
        key = fingerprint(document.raw_text, request.mode, request.job_description)

        entry = self._inflight.get(key)
        if entry is None:
            entry = self._inflight[key] = _InFlight()
        entry.users += 1
        try:
            async with entry.lock:
                cached = self._cache.get(key)
                if cached is not None:
                    logger.info("ats_cache_hit fingerprint=%s", key[:12])
                    return cached.model_copy(update={"cached": True})

                computed = await self._compute(document, request)
                if computed.canonical:
                    self._cache.put(key, computed.result)
                return computed.result
        finally:
            # Only the last request for a fingerprint, holder or waiter, retires the entry.
            entry.users -= 1
            if entry.users == 0:
                self._inflight.pop(key, None)

    async def _compute(self, document: ExtractedDocument, request: AnalysisRequest) -> _Computed:
        heuristic = run_heuristics(document, request, self._strategy)
        adapter = self._adapter
        if adapter is None:
            return _Computed(heuristic.model_copy(update={"ai_failure": AI_DISABLED}), canonical=True)

        outcome = await self._enrich(adapter, document, request, heuristic)
        merged = merge_outcome(heuristic, outcome)
        # A fallback result is not cached, so the next identical request retries the AI.
        return _Computed(merged, canonical=isinstance(outcome, Enriched))

    async def _enrich(
        self,
        adapter: EnrichmentAdapter,
        document: ExtractedDocument,
        request: AnalysisRequest,
        heuristic: AnalysisResult,
    ) -> EnrichmentOutcome:
        facts = StructuralFacts.model_validate(
            heuristic.model_dump(include={"sections", "contact_info", "keywords", "experience", "education", "skills"})
        )
        try:
            return await asyncio.wait_for(
                adapter.enrich(
                    document.raw_text,
                    facts,
                    heuristic.scoring,
                    job_description=request.job_description if request.mode == "job-specific" else None,
                    job_match=heuristic.job_match,
                ),
                timeout=self._ai_timeout_s,
            )
        except asyncio.TimeoutError:
            logger.warning("ats_ai_enrichment_timeout timeout_s=%s", self._ai_timeout_s)
            return Fallback(kind="ai_transport", reason=f"AI enrichment timed out after {self._ai_timeout_s}s")


def build_cache() -> AnalysisCache:
    if settings.cache_backend == "sqlite":
        return AnalysisCache(SQLiteCacheBackend(settings.cache_db_path, max_entries=settings.cache_max_entries))
    return AnalysisCache(InMemoryLRUBackend(max_entries=settings.cache_max_entries))


def build_analyzer() -> ATSAnalyzer:
    cfg = load_ai_config()
    generator = get_text_generator(cfg)
    adapter = None
    if generator is not None:
        adapter = EnrichmentAdapter(
            generator=generator,
            params=cfg.params,
            policy=TruncationPolicy(
                resume_chars=settings.prompt_resume_chars,
                job_description_chars=settings.prompt_jd_chars,
            ),
        )
    analyzer = ATSAnalyzer(cache=build_cache(), adapter=adapter)
    logger.info(
        "ats_analyzer_ready ai_enabled=%s strategy=%s cache=%s",
        analyzer.ai_enabled,
        settings.scoring_strategy,
        settings.cache_backend,
    )
    return analyzer


@lru_cache(maxsize=1)
def get_analyzer() -> ATSAnalyzer:
    return build_analyzer()
