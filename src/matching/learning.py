"""Alias learning from user corrections.

When the user moves a note to a project by hand, the words that most
likely named the project become aliases so the next capture matches on
layer 1.
"""

from __future__ import annotations

import logging
from datetime import datetime

from driftwatch.models import Project
from driftwatch.text import levenshtein_similarity, normalize, tokenize

logger = logging.getLogger(__name__)

MIN_ALIAS_LENGTH = 3
MIN_PAIR_LENGTH = 5
PAIR_SIMILARITY = 0.6
CONTEXT_RADIUS = 2

CONTEXT_WORDS = frozenset({"for", "about", "regarding"})

STOPWORDS = frozenset({
    "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for",
    "of", "with", "by", "from", "as", "is", "was", "are", "were", "been",
    "be", "have", "has", "had", "do", "does", "did", "will", "would",
    "could", "should", "may", "might", "must", "need", "want", "like",
    "this", "that", "these", "those", "i", "you", "he", "she", "it",
    "we", "they", "my", "your", "his", "her", "its", "our", "their",
    "about", "just", "also", "some", "new", "now", "get", "got", "going",
})


def candidate_aliases(text: str, project_name: str) -> list[str]:
    """Aliases suggested by ``text`` for a project called ``project_name``.

    Single words qualify when they sit within two words of "for",
    "about" or "regarding". Adjacent word pairs qualify when they
    closely resemble the project name.
    """
    words = tokenize(normalize(text))
    target = normalize(project_name).strip()
    found: list[str] = []

    for i, word in enumerate(words):
        if (
            len(word) >= MIN_ALIAS_LENGTH
            and word not in STOPWORDS
            and word not in CONTEXT_WORDS
        ):
            window = words[max(0, i - CONTEXT_RADIUS) : i + CONTEXT_RADIUS + 1]
            if CONTEXT_WORDS.intersection(window):
                found.append(word)

        if i < len(words) - 1:
            pair = f"{word} {words[i + 1]}"
            if len(pair) >= MIN_PAIR_LENGTH and levenshtein_similarity(pair, target) > PAIR_SIMILARITY:
                found.append(pair)

    return list(dict.fromkeys(found))


def learn_from_correction(text: str, project: Project, *, now: datetime | None = None) -> list[str]:
    """Append aliases learned from ``text`` to ``project`` in place.

    Returns the aliases that were actually new.
    """
    added = [
        alias
        for alias in candidate_aliases(text, project.name)
        if project.add_alias(alias, now=now)
    ]
    if added:
        logger.info("Learned aliases for %s: %s", project.name, ", ".join(added))
    return added
