"""Project detection: aliases → fuzzy word overlap → AI fallback.

Layers 1 and 2 are pure and run on every capture. Layer 3 costs an AI
call and is only invoked explicitly, when the cheaper layers found
nothing or nothing confident enough to auto-assign.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from enum import StrEnum

from driftwatch.errors import NoCredentialError
from driftwatch.llm import SummaryClient
from driftwatch.matching.prompts import AI_MATCH_TEXT_LIMIT, build_ai_match_prompt
from driftwatch.models import Project
from driftwatch.text import normalize, tokenize, word_set

logger = logging.getLogger(__name__)

# Below this a match goes to the inbox instead of being auto-assigned.
AUTO_ASSIGN_THRESHOLD = 0.6
# At or above this no confirmation is shown.
HIGH_CONFIDENCE_THRESHOLD = 0.85

ALIAS_CONFIDENCE = 0.95

FUZZY_RECALL_WEIGHT = 0.6
FUZZY_SIGNIFICANT_WEIGHT = 0.15
FUZZY_SIGNIFICANT_LENGTH = 4
FUZZY_MIN_SCORE = 0.3
FUZZY_BASE_CONFIDENCE = 0.4
FUZZY_SCORE_WEIGHT = 0.5
FUZZY_MAX_CONFIDENCE = 0.75

AI_EXACT_CONFIDENCE = 0.7
AI_PARTIAL_CONFIDENCE = 0.65


class MatchType(StrEnum):
    ALIAS = "alias"
    FUZZY = "fuzzy"
    AI = "ai"


@dataclass(frozen=True)
class ProjectMatch:
    project: Project
    confidence: float
    match_type: MatchType

    @property
    def auto_assign(self) -> bool:
        return self.confidence >= AUTO_ASSIGN_THRESHOLD

    @property
    def needs_confirmation(self) -> bool:
        return self.confidence < HIGH_CONFIDENCE_THRESHOLD


def match_by_alias(normalized_text: str, projects: Sequence[Project]) -> ProjectMatch | None:
    """Layer 1: the project whose longest contained alias is longest overall."""
    best: Project | None = None
    best_length = 0
    for project in projects:
        hits = [len(alias) for alias in project.aliases if alias and alias in normalized_text]
        if not hits:
            continue
        length = max(hits)
        if length > best_length:
            best, best_length = project, length
    if best is None:
        return None
    return ProjectMatch(best, ALIAS_CONFIDENCE, MatchType.ALIAS)


def _project_words(project: Project) -> set[str]:
    words = word_set(normalize(project.name))
    for alias in project.aliases:
        words.update(tokenize(alias))
    return words


def fuzzy_score(text_words: set[str], project: Project) -> float:
    """Weighted recall of the project's words plus a bonus per long shared word."""
    project_words = _project_words(project)
    if not project_words:
        return 0.0
    overlap = text_words & project_words
    if not overlap:
        return 0.0
    recall = len(overlap) / len(project_words)
    significant = sum(1 for word in overlap if len(word) >= FUZZY_SIGNIFICANT_LENGTH)
    return recall * FUZZY_RECALL_WEIGHT + significant * FUZZY_SIGNIFICANT_WEIGHT


def fuzzy_confidence(value: float) -> float:
    return min(FUZZY_BASE_CONFIDENCE + value * FUZZY_SCORE_WEIGHT, FUZZY_MAX_CONFIDENCE)


def match_by_fuzzy(normalized_text: str, projects: Sequence[Project]) -> ProjectMatch | None:
    """Layer 2: best word-overlap score above the minimum threshold."""
    text_words = word_set(normalized_text)
    best: Project | None = None
    best_score = 0.0
    for project in projects:
        value = fuzzy_score(text_words, project)
        if value > FUZZY_MIN_SCORE and (best is None or value > best_score):
            best, best_score = project, value
    if best is None:
        return None
    return ProjectMatch(best, fuzzy_confidence(best_score), MatchType.FUZZY)


def find_match(text: str, projects: Sequence[Project]) -> ProjectMatch | None:
    """Run layers 1 and 2. ``None`` means the text belongs in the inbox."""
    if not projects:
        return None
    normalized = normalize(text)
    return match_by_alias(normalized, projects) or match_by_fuzzy(normalized, projects)


def _clean_answer(answer: str) -> str:
    return answer.strip().strip("\"'“”.").strip().lower()


def interpret_ai_answer(answer: str, projects: Sequence[Project]) -> ProjectMatch | None:
    """Map the model's bare project name (or "none") back onto a project."""
    cleaned = _clean_answer(answer)
    if not cleaned or cleaned == "none":
        return None
    for project in projects:
        if project.name.lower() == cleaned:
            return ProjectMatch(project, AI_EXACT_CONFIDENCE, MatchType.AI)
    for project in projects:
        name = project.name.lower()
        if name and (name in cleaned or cleaned in name):
            return ProjectMatch(project, AI_PARTIAL_CONFIDENCE, MatchType.AI)
    return None


def match_with_ai(
    text: str,
    projects: Sequence[Project],
    client: SummaryClient,
) -> ProjectMatch | None:
    """Layer 3: ask the AI service which project the text belongs to.

    Errors from the client propagate unchanged.
    """
    if not projects:
        return None
    system_prompt, user_prompt = build_ai_match_prompt(
        text[:AI_MATCH_TEXT_LIMIT], [p.name for p in projects]
    )
    answer = client.complete(system_prompt, user_prompt, label="project-match")
    match = interpret_ai_answer(answer, projects)
    logger.debug("AI project match answer=%r -> %s", answer, match.project.name if match else None)
    return match


def resolve_project(
    text: str,
    projects: Sequence[Project],
    *,
    client: SummaryClient | None = None,
) -> ProjectMatch | None:
    """Layered resolution: 1 and 2 always, 3 only when they are not confident.

    A missing credential degrades to the layer 1-2 result. Upstream and
    malformed-response errors propagate to the caller.
    """
    local = find_match(text, projects)
    if local is not None and local.auto_assign:
        return local
    if client is None:
        return local
    try:
        ai_match = match_with_ai(text, projects, client)
    except NoCredentialError:
        logger.info("AI project matching unavailable (no credential); using local match")
        return local
    return ai_match or local
