"""Project matching: resolve captured text to a project.

Public API re-exports for the matching domain.
"""

from driftwatch.matching.learning import candidate_aliases, learn_from_correction
from driftwatch.matching.matcher import (
    AUTO_ASSIGN_THRESHOLD,
    HIGH_CONFIDENCE_THRESHOLD,
    MatchType,
    ProjectMatch,
    find_match,
    interpret_ai_answer,
    match_by_alias,
    match_by_fuzzy,
    match_with_ai,
    resolve_project,
)

__all__ = [
    "AUTO_ASSIGN_THRESHOLD",
    "HIGH_CONFIDENCE_THRESHOLD",
    "MatchType",
    "ProjectMatch",
    "candidate_aliases",
    "find_match",
    "interpret_ai_answer",
    "learn_from_correction",
    "match_by_alias",
    "match_by_fuzzy",
    "match_with_ai",
    "resolve_project",
]
