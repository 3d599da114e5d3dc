from __future__ import annotations

import hashlib
import logging
import os
import sqlite3
import threading
from collections import OrderedDict
from datetime import datetime, timezone
from typing import Protocol

from app.analysis.text_utils import normalize_whitespace
from app.schemas.analysis import AnalysisResult

logger = logging.getLogger(__name__)


def fingerprint(text: str, mode: str, job_description: str | None) -> str:
    """Stable key over the whitespace-normalized request fields.

    Each field is length-prefixed so that moving characters between fields
    can never produce the same byte stream.
    """
    digest = hashlib.sha256()
    for field in (normalize_whitespace(text), mode, normalize_whitespace(job_description)):
        encoded = field.encode("utf-8", errors="surrogatepass")
        digest.update(str(len(encoded)).encode("ascii"))
        digest.update(b":")
        digest.update(encoded)
        digest.update(b"|")
    return digest.hexdigest()


class CacheBackend(Protocol):
    def get(self, key: str) -> str | None: ...

    def put(self, key: str, payload: str) -> None: ...

    def clear(self) -> None: ...

    def __len__(self) -> int: ...


class InMemoryLRUBackend:
    def __init__(self, max_entries: int = 256) -> None:
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self._max_entries = max_entries
        self._entries: OrderedDict[str, str] = OrderedDict()
        self._lock = threading.Lock()

    def get(self, key: str) -> str | None:
        with self._lock:
            payload = self._entries.get(key)
            if payload is not None:
                self._entries.move_to_end(key)
            return payload

    def put(self, key: str, payload: str) -> None:
        with self._lock:
            self._entries[key] = payload
            self._entries.move_to_end(key)
            while len(self._entries) > self._max_entries:
                evicted, _ = self._entries.popitem(last=False)
                logger.debug("ats_cache_evicted fingerprint=%s", evicted[:12])

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class SQLiteCacheBackend:
    def __init__(self, db_path: str, max_entries: int = 256) -> None:
        directory = os.path.dirname(db_path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        self._max_entries = max(1, max_entries)
        self._lock = threading.Lock()
        self._conn = sqlite3.connect(
            db_path,
            check_same_thread=False,
            timeout=5,
            isolation_level=None,
        )
        self._conn.execute("PRAGMA journal_mode=WAL;")
        self._conn.execute("PRAGMA synchronous=NORMAL;")
        self._conn.execute(
            """
            CREATE TABLE IF NOT EXISTS ats_analysis_cache (
                fingerprint TEXT PRIMARY KEY,
                payload_json TEXT NOT NULL,
                used_at TEXT NOT NULL
            );
            """
        )

    @staticmethod
    def _now() -> str:
        return datetime.now(timezone.utc).isoformat()

    def get(self, key: str) -> str | None:
        with self._lock:
            row = self._conn.execute(
                "SELECT payload_json FROM ats_analysis_cache WHERE fingerprint = ?",
                (key,),
            ).fetchone()
            if row is None:
                return None
            self._conn.execute(
                "UPDATE ats_analysis_cache SET used_at = ? WHERE fingerprint = ?",
                (self._now(), key),
            )
            return row[0]

    def put(self, key: str, payload: str) -> None:
        with self._lock:
            self._conn.execute(
                """
                INSERT INTO ats_analysis_cache (fingerprint, payload_json, used_at)
                VALUES (?, ?, ?)
                ON CONFLICT(fingerprint) DO UPDATE SET
                    payload_json = excluded.payload_json,
                    used_at = excluded.used_at
                """,
                (key, payload, self._now()),
            )
            self._conn.execute(
                """
                DELETE FROM ats_analysis_cache WHERE fingerprint NOT IN (
                    SELECT fingerprint FROM ats_analysis_cache ORDER BY used_at DESC LIMIT ?
                )
                """,
                (self._max_entries,),
            )

    def clear(self) -> None:
        with self._lock:
            self._conn.execute("DELETE FROM ats_analysis_cache")

    def __len__(self) -> int:
        with self._lock:
            row = self._conn.execute("SELECT COUNT(*) FROM ats_analysis_cache").fetchone()
            return int(row[0]) if row else 0

    def close(self) -> None:
        with self._lock:
            self._conn.close()


class AnalysisCache:
    """Fingerprint -> AnalysisResult map that never hands out its stored copy."""

    def __init__(self, backend: CacheBackend | None = None) -> None:
        self._backend = backend if backend is not None else InMemoryLRUBackend()

    def get(self, key: str) -> AnalysisResult | None:
        payload = self._backend.get(key)
        if payload is None:
            return None
        return AnalysisResult.model_validate_json(payload)

    def put(self, key: str, result: AnalysisResult) -> None:
        self._backend.put(key, result.model_dump_json())

    def clear(self) -> None:
        self._backend.clear()

    def __len__(self) -> int:
        return len(self._backend)
