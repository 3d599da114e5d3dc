import sys
import tempfile
import unittest
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from app.analysis.cache import (  # noqa: E402
    AnalysisCache,
    InMemoryLRUBackend,
    SQLiteCacheBackend,
    fingerprint,
)
from app.analysis.orchestrator import run_heuristics  # noqa: E402
from app.analysis.scoring import get_strategy  # noqa: E402
from app.parsing.models import ExtractedDocument  # noqa: E402
from app.schemas.analysis import AnalysisRequest  # noqa: E402

SAMPLE_RESUME = (PROJECT_ROOT / "tests" / "fixtures" / "sample_resume.txt").read_text(encoding="utf-8")


def _sample_result():
    request = AnalysisRequest(file_path="sample.txt")
    return run_heuristics(ExtractedDocument(raw_text=SAMPLE_RESUME), request, get_strategy("five_factor"))


class FingerprintTests(unittest.TestCase):
    def test_whitespace_differences_do_not_change_the_key(self):
        self.assertEqual(
            fingerprint("Jane  Doe\n\nPython ", "general", None),
            fingerprint("Jane Doe Python", "general", None),
        )

    def test_mode_and_job_description_are_part_of_the_key(self):
        base = fingerprint("Jane Doe", "general", None)
        self.assertNotEqual(base, fingerprint("Jane Doe", "job-specific", "python"))
        self.assertNotEqual(
            fingerprint("Jane Doe", "job-specific", "python"),
            fingerprint("Jane Doe", "job-specific", "docker"),
        )

    def test_missing_and_empty_job_description_are_equivalent(self):
        self.assertEqual(fingerprint("x", "general", None), fingerprint("x", "general", ""))

    def test_fields_cannot_bleed_into_each_other(self):
        self.assertNotEqual(
            fingerprint("resume general", "job-specific", "x"),
            fingerprint("resume", "general job-specific", "x"),
        )

    def test_key_is_stable_hex(self):
        key = fingerprint("Jane Doe", "general", None)
        self.assertEqual(key, fingerprint("Jane Doe", "general", None))
        self.assertEqual(len(key), 64)


class InMemoryBackendTests(unittest.TestCase):
    def test_least_recently_used_entry_is_evicted(self):
        backend = InMemoryLRUBackend(max_entries=2)
        backend.put("a", "1")
        backend.put("b", "2")
        self.assertEqual(backend.get("a"), "1")
        backend.put("c", "3")
        self.assertIsNone(backend.get("b"))
        self.assertEqual(backend.get("a"), "1")
        self.assertEqual(backend.get("c"), "3")
        self.assertEqual(len(backend), 2)

    def test_rejects_zero_capacity(self):
        with self.assertRaises(ValueError):
            InMemoryLRUBackend(max_entries=0)


class AnalysisCacheTests(unittest.TestCase):
    def test_returned_results_are_independent_copies(self):
        cache = AnalysisCache()
        cache.put("key", _sample_result())
        first = cache.get("key")
        first.feedback.append("mutated")
        first.skills.clear()
        second = cache.get("key")
        self.assertNotIn("mutated", second.feedback)
        self.assertTrue(second.skills)

    def test_miss_returns_none_and_clear_empties(self):
        cache = AnalysisCache(InMemoryLRUBackend(max_entries=4))
        self.assertIsNone(cache.get("missing"))
        cache.put("key", _sample_result())
        self.assertEqual(len(cache), 1)
        cache.clear()
        self.assertEqual(len(cache), 0)


class SQLiteBackendTests(unittest.TestCase):
    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.db_path = str(Path(self.tmpdir.name) / "cache" / "ats.db")

    def tearDown(self):
        self.tmpdir.cleanup()

    def test_round_trip_and_persistence(self):
        backend = SQLiteCacheBackend(self.db_path, max_entries=8)
        cache = AnalysisCache(backend)
        result = _sample_result()
        cache.put("key", result)
        backend.close()

        reopened = SQLiteCacheBackend(self.db_path, max_entries=8)
        try:
            self.assertEqual(AnalysisCache(reopened).get("key"), result)
        finally:
            reopened.close()

    def test_upsert_and_bounded_size(self):
        backend = SQLiteCacheBackend(self.db_path, max_entries=2)
        try:
            backend.put("a", "1")
            backend.put("a", "2")
            self.assertEqual(backend.get("a"), "2")
            backend.put("b", "3")
            backend.put("c", "4")
            self.assertLessEqual(len(backend), 2)
            backend.clear()
            self.assertEqual(len(backend), 0)
        finally:
            backend.close()


if __name__ == "__main__":
    unittest.main()
