import asyncio
import sys
import tempfile
import unittest
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from app.ai.enrichment import EnrichmentAdapter  # noqa: E402
from app.ai.types import GenerationResult  # noqa: E402
from app.analysis.cache import AnalysisCache  # noqa: E402
from app.analysis.errors import DecodeFailure, InvalidRequest  # noqa: E402
from app.analysis.orchestrator import ATSAnalyzer  # noqa: E402
from app.analysis.scoring import get_strategy  # noqa: E402
from app.parsing.models import ExtractedDocument  # noqa: E402
from app.schemas.analysis import AnalysisFailure, AnalysisSuccess  # noqa: E402

SAMPLE_RESUME = (PROJECT_ROOT / "tests" / "fixtures" / "sample_resume.txt").read_text(encoding="utf-8")
JOB_DESCRIPTION = "Looking for python and kubernetes experience"
AI_REPLY = (
    '{"ats_score": 72, "grade": "B+", "feedback": ["Tighten the summary"], '
    '"strengths": [], "weaknesses": ["No metrics"], "recommendations": ["Quantify results"]}'
)


class CountingGenerator:
    def __init__(self, text=AI_REPLY, delay=0.0, success=True):
        self.text = text
        self.delay = delay
        self.success = success
        self.calls = 0

    async def generate(self, prompt, params):
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if not self.success:
            return GenerationResult(success=False, error="upstream unavailable")
        return GenerationResult(success=True, text=self.text)


class InflightRecordingGenerator(CountingGenerator):
    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.analyzer = None
        self.inflight_sizes = []
        self.active = 0
        self.max_active = 0

    async def generate(self, prompt, params):
        self.inflight_sizes.append(len(self.analyzer._inflight))
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            return await super().generate(prompt, params)
        finally:
            self.active -= 1


class CountingDecoder:
    def __init__(self, text=SAMPLE_RESUME):
        self.text = text
        self.calls = 0

    def __call__(self, file_path):
        self.calls += 1
        return ExtractedDocument(raw_text=self.text)


class OrchestratorTests(unittest.TestCase):
    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.root = Path(self.tmpdir.name)

    def tearDown(self):
        self.tmpdir.cleanup()

    def _upload(self, name="resume.txt", content=SAMPLE_RESUME) -> Path:
        path = self.root / name
        path.write_text(content, encoding="utf-8")
        return path

    def _analyzer(self, generator=None, **kwargs):
        adapter = EnrichmentAdapter(generator=generator) if generator is not None else None
        kwargs.setdefault("strategy", get_strategy("five_factor"))
        return ATSAnalyzer(cache=AnalysisCache(), adapter=adapter, **kwargs)

    def test_general_analysis_end_to_end(self):
        path = self._upload()
        result = asyncio.run(self._analyzer().analyze_file(str(path)))

        self.assertEqual(result.ats_score, 100)
        self.assertEqual(result.grade, "A")
        self.assertEqual(result.scoring_scheme, "five_factor")
        self.assertEqual(result.analysis_mode, "general")
        self.assertEqual(result.sections.present_count(), 4)
        self.assertEqual(result.contact_info.email, "jane.doe@example.com")
        self.assertEqual(result.contact_info.phone, "555-123-4567")
        self.assertEqual(len(result.experience), 1)
        self.assertEqual(len(result.education), 1)
        self.assertEqual(result.scoring.total, 100)
        self.assertIsNone(result.job_match)
        self.assertFalse(result.ai_enhanced)
        self.assertFalse(result.cached)
        self.assertFalse(path.exists())

    def test_weighted_strategy_grades_on_seven_bands(self):
        path = self._upload()
        analyzer = self._analyzer(strategy=get_strategy("weighted"))
        result = asyncio.run(analyzer.analyze_file(str(path)))
        self.assertEqual(result.scoring_scheme, "weighted")
        self.assertEqual(result.ats_score, 100)
        self.assertEqual(result.grade, "A+")

    def test_job_specific_analysis_reports_missing_keywords(self):
        path = self._upload()
        result = asyncio.run(self._analyzer().analyze_file(str(path), "job-specific", JOB_DESCRIPTION))

        self.assertEqual(result.analysis_mode, "job-specific")
        self.assertIsNotNone(result.job_match)
        self.assertEqual(result.job_match.keyword_match, 50)
        self.assertEqual(result.job_match.missing_keywords, ["kubernetes"])
        self.assertEqual(result.job_match.overall_match, 50)
        self.assertEqual(result.ats_score, 100)
        self.assertTrue(any("kubernetes" in item for item in result.recommendations))

    def test_job_specific_without_description_is_rejected_and_file_removed(self):
        path = self._upload()
        with self.assertRaises(InvalidRequest):
            asyncio.run(self._analyzer().analyze_file(str(path), "job-specific", "   "))
        self.assertFalse(path.exists())

    def test_unknown_mode_is_rejected(self):
        path = self._upload()
        with self.assertRaises(InvalidRequest):
            asyncio.run(self._analyzer().analyze_file(str(path), "detailed"))

    def test_decode_failure_removes_the_file(self):
        path = self._upload(name="resume.png")
        with self.assertRaises(DecodeFailure):
            asyncio.run(self._analyzer().analyze_file(str(path)))
        self.assertFalse(path.exists())

    def test_run_analysis_wraps_failures(self):
        outcome = asyncio.run(self._analyzer().run_analysis(str(self.root / "missing.txt")))
        self.assertIsInstance(outcome, AnalysisFailure)
        self.assertFalse(outcome.success)
        self.assertEqual(outcome.code, "decode_failed")

        outcome = asyncio.run(self._analyzer().run_analysis(str(self._upload())))
        self.assertIsInstance(outcome, AnalysisSuccess)
        self.assertTrue(outcome.success)

    def test_ai_result_supersedes_headline_but_keeps_extracted_facts(self):
        path = self._upload()
        generator = CountingGenerator()
        result = asyncio.run(self._analyzer(generator).analyze_file(str(path), "job-specific", JOB_DESCRIPTION))

        self.assertTrue(result.ai_enhanced)
        self.assertEqual(result.scoring_scheme, "ai")
        self.assertEqual(result.ats_score, 72)
        self.assertEqual(result.grade, "B+")
        self.assertEqual(result.feedback, ["Tighten the summary"])
        self.assertEqual(result.weaknesses, ["No metrics"])
        self.assertTrue(result.strengths)
        self.assertEqual(result.layout.score, 75)
        self.assertEqual(result.contact_info.email, "jane.doe@example.com")
        self.assertEqual(result.job_match.keyword_match, 50)
        self.assertFalse(path.exists())

    def test_ai_failure_falls_back_to_heuristics(self):
        path = self._upload()
        analyzer = self._analyzer(CountingGenerator(success=False))
        result = asyncio.run(analyzer.analyze_file(str(path)))

        self.assertFalse(result.ai_enhanced)
        self.assertEqual(result.ai_failure, "ai_transport")
        self.assertEqual(result.scoring_scheme, "five_factor")
        self.assertEqual(result.ats_score, 100)
        self.assertEqual(len(analyzer.cache), 0)
        self.assertFalse(path.exists())

    def test_malformed_ai_reply_falls_back(self):
        analyzer = self._analyzer(CountingGenerator(text="no json here"))
        result = asyncio.run(analyzer.analyze_file(str(self._upload())))
        self.assertFalse(result.ai_enhanced)
        self.assertEqual(result.ai_failure, "ai_format")

    def test_non_finite_ai_score_falls_back(self):
        analyzer = self._analyzer(CountingGenerator(text='{"ats_score": NaN, "grade": "B"}'))
        result = asyncio.run(analyzer.analyze_file(str(self._upload())))
        self.assertFalse(result.ai_enhanced)
        self.assertEqual(result.ai_failure, "ai_format")
        self.assertEqual(result.ats_score, 100)

    def test_slow_ai_times_out_into_fallback(self):
        analyzer = self._analyzer(CountingGenerator(delay=1.0), ai_timeout_s=0.05)
        result = asyncio.run(analyzer.analyze_file(str(self._upload())))
        self.assertFalse(result.ai_enhanced)
        self.assertEqual(result.ai_failure, "ai_transport")

    def test_repeat_request_is_served_from_cache(self):
        generator = CountingGenerator()
        analyzer = self._analyzer(generator)
        first = asyncio.run(analyzer.analyze_file(str(self._upload("a.txt"))))
        second = asyncio.run(analyzer.analyze_file(str(self._upload("b.txt", SAMPLE_RESUME.replace("\n\n", "\n")))))

        self.assertFalse(first.cached)
        self.assertTrue(second.cached)
        self.assertEqual(generator.calls, 1)
        self.assertEqual(second.ats_score, first.ats_score)

    def test_different_job_description_is_a_cache_miss(self):
        analyzer = self._analyzer()
        asyncio.run(analyzer.analyze_file(str(self._upload("a.txt")), "job-specific", JOB_DESCRIPTION))
        result = asyncio.run(analyzer.analyze_file(str(self._upload("b.txt")), "job-specific", "Needs docker"))
        self.assertFalse(result.cached)
        self.assertEqual(len(analyzer.cache), 2)

    def test_concurrent_identical_requests_compute_once(self):
        generator = CountingGenerator(delay=0.05)
        decoder = CountingDecoder()
        analyzer = self._analyzer(generator, decoder=decoder)

        async def run_both():
            return await asyncio.gather(
                analyzer.analyze_file("first.txt", cleanup=False),
                analyzer.analyze_file("second.txt", cleanup=False),
            )

        first, second = asyncio.run(run_both())
        self.assertEqual(decoder.calls, 2)
        self.assertEqual(generator.calls, 1)
        self.assertEqual(sorted([first.cached, second.cached]), [False, True])

    def test_lock_stays_registered_while_a_queued_request_computes(self):
        generator = InflightRecordingGenerator(delay=0.05, success=False)
        analyzer = self._analyzer(generator, decoder=CountingDecoder())
        generator.analyzer = analyzer

        async def run_both():
            return await asyncio.gather(
                analyzer.analyze_file("first.txt", cleanup=False),
                analyzer.analyze_file("second.txt", cleanup=False),
            )

        asyncio.run(run_both())
        # A fallback is not cached, so the queued request computes too.
        self.assertEqual(generator.calls, 2)
        self.assertEqual(generator.inflight_sizes, [1, 1])
        self.assertEqual(generator.max_active, 1)
        self.assertEqual(analyzer._inflight, {})


SHORT_RESUME = (
    "John Doe\njohn@x.com\n555-123-4567\nSummary\nExperienced engineer.\nExperience\n"
    "Software Engineer\nAcme Inc\n2019-2022\n- built systems\nEducation\nBachelor of Science\n"
    "State University\n2015-2019\nSkills\njavascript python react sql docker"
)


class ReferenceScenarioTests(unittest.TestCase):
    def _analyze(self, text, *args):
        analyzer = ATSAnalyzer(cache=AnalysisCache(), decoder=CountingDecoder(text), strategy=get_strategy("five_factor"))
        return asyncio.run(analyzer.analyze_file("resume.txt", *args, cleanup=False))

    def test_short_resume_general_mode(self):
        result = self._analyze(SHORT_RESUME)
        sections = result.sections
        self.assertTrue(sections.summary and sections.experience and sections.education and sections.skills)
        self.assertEqual(result.contact_info.email, "john@x.com")
        self.assertEqual(result.contact_info.phone, "555-123-4567")
        for skill in ("javascript", "python", "react", "sql", "docker"):
            self.assertIn(skill, result.skills)
        self.assertGreaterEqual(result.ats_score, 60)
        self.assertIn(result.grade, {"A", "A+", "B", "B+"})
        self.assertEqual(result.experience[0].company, "Acme Inc")
        self.assertEqual(result.education[0].institution, "State University")

    def test_job_specific_years_met_but_docker_missing(self):
        resume = "Backend developer with 5 years of experience building services in python, sql and flask"
        job_description = "3 years of experience required. Skills: Python, SQL, Docker."
        job_match = self._analyze(resume, "job-specific", job_description).job_match
        self.assertEqual(job_match.experience_match, 100)
        self.assertIn("docker", job_match.missing_keywords)
        self.assertGreater(job_match.overall_match, 0)
        self.assertLess(job_match.overall_match, 100)


if __name__ == "__main__":
    unittest.main()
