from __future__ import annotations

import math
import re
from typing import Iterable

_WHITESPACE_RE = re.compile(r"\s+")


def normalize_whitespace(text: str | None) -> str:
    return _WHITESPACE_RE.sub(" ", text or "").strip()


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def percent(part: int, whole: int) -> int:
    if whole <= 0:
        return 0
    return round_half_up(part / whole * 100)


def dedupe(items: Iterable[str]) -> list[str]:
    """Drop repeats, keeping the first-seen order."""
    seen: set[str] = set()
    output: list[str] = []
    for item in items:
        if item in seen:
            continue
        seen.add(item)
        output.append(item)
    return output


def find_terms(lowered_text: str, terms: Iterable[str]) -> list[str]:
    return dedupe(term for term in terms if term in lowered_text)


def contains_either(left: str, right: str) -> bool:
    a = left.lower()
    b = right.lower()
    return a in b or b in a
