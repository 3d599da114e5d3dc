from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml

_VOCABULARY_PATH = Path(__file__).with_name("vocabulary.yaml")


@lru_cache(maxsize=1)
def get_vocabulary() -> dict[str, Any]:
    """Load the packaged term lists once and keep them for the process lifetime."""
    try:
        raw = _VOCABULARY_PATH.read_text(encoding="utf-8")
    except OSError as exc:
        raise RuntimeError(
            f"Failed to read vocabulary file '{_VOCABULARY_PATH}': {exc}"
        ) from exc

    try:
        parsed = yaml.safe_load(raw)
    except yaml.YAMLError as exc:
        raise RuntimeError(
            f"Invalid YAML in vocabulary file '{_VOCABULARY_PATH}': {exc}"
        ) from exc

    if not isinstance(parsed, dict):
        raise RuntimeError(
            f"Invalid vocabulary file '{_VOCABULARY_PATH}': expected a top-level mapping."
        )
    return parsed


def get_terms(path: str) -> tuple[str, ...]:
    """Get a term list by dot path, e.g. 'keywords.technical'."""
    current: Any = get_vocabulary()
    for key in path.split("."):
        if not isinstance(current, dict) or key not in current:
            raise KeyError(f"Unknown vocabulary path '{path}'")
        current = current[key]
    if not isinstance(current, list):
        raise KeyError(f"Vocabulary path '{path}' is not a term list")
    return tuple(str(item) for item in current)


def get_term_groups(path: str) -> dict[str, tuple[str, ...]]:
    current: Any = get_vocabulary()
    for key in path.split("."):
        if not isinstance(current, dict) or key not in current:
            raise KeyError(f"Unknown vocabulary path '{path}'")
        current = current[key]
    if not isinstance(current, dict):
        raise KeyError(f"Vocabulary path '{path}' is not a mapping")
    return {str(name): tuple(str(item) for item in terms) for name, terms in current.items()}
