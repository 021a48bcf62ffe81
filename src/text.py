"""Text normalization and string similarity used for project matching."""

from __future__ import annotations

import re
import unicodedata

from rapidfuzz.distance import Levenshtein

_APOSTROPHES = ("'", "’", "‘")
_WORD_RE = re.compile(r"\w+")


def fold_diacritics(text: str) -> str:
    """Drop combining marks so that ``café`` compares equal to ``cafe``."""
    decomposed = unicodedata.normalize("NFKD", text)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def normalize(text: str) -> str:
    """Lowercase, strip possessives and apostrophes, fold diacritics.

    ``"Acme's Café"`` becomes ``"acme cafe"``.
    """
    lowered = text.lower()
    for mark in _APOSTROPHES:
        lowered = lowered.replace(f"{mark}s", "").replace(mark, "")
    return fold_diacritics(lowered)


def normalize_alias(alias: str) -> str:
    return normalize(alias).strip()


def tokenize(text: str) -> list[str]:
    """Split already-normalized text into word tokens, punctuation dropped."""
    return _WORD_RE.findall(text)


def word_set(text: str) -> set[str]:
    return set(tokenize(text))


def levenshtein_distance(a: str, b: str) -> int:
    """Classic edit distance (insert, delete, substitute all cost 1)."""
    return Levenshtein.distance(a, b)


def levenshtein_similarity(a: str, b: str) -> float:
    """``1 - distance / max(len)``; 1.0 for two empty strings, 0.0 if one is empty."""
    return Levenshtein.normalized_similarity(a, b)
