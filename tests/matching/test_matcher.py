"""Tests for driftwatch.matching.matcher: alias, fuzzy and AI layers."""

from __future__ import annotations

import pytest
from driftwatch.errors import NoCredentialError, UpstreamFailureError
from driftwatch.matching.matcher import (
    AUTO_ASSIGN_THRESHOLD,
    FUZZY_MAX_CONFIDENCE,
    MatchType,
    ProjectMatch,
    find_match,
    fuzzy_confidence,
    fuzzy_score,
    interpret_ai_answer,
    match_by_alias,
    match_by_fuzzy,
    match_with_ai,
    resolve_project,
)
from driftwatch.matching.prompts import AI_MATCH_TEXT_LIMIT
from driftwatch.models import Project
from driftwatch.text import word_set


class FakeClient:
    """SummaryClient stand-in that records prompts and replays an answer."""

    def __init__(self, answer: str = "none", error: Exception | None = None) -> None:
        self.answer = answer
        self.error = error
        self.calls: list[tuple[str, str]] = []

    def complete(self, system_prompt: str, user_prompt: str, *, label: str = "summary") -> str:
        self.calls.append((system_prompt, user_prompt))
        if self.error is not None:
            raise self.error
        return self.answer


class TestAliasLayer:
    def test_longer_alias_wins(self):
        board = Project(name="Board Ops", aliases=["board"])
        ops = Project(name="Operations", aliases=["op"])
        match = match_by_alias("board meeting notes about op costs", [ops, board])
        assert match is not None
        assert match.project is board
        assert match.confidence == 0.95
        assert match.match_type == MatchType.ALIAS

    def test_board_ops_example(self):
        board = Project(name="Board Ops", aliases=["board"])
        ops = Project(name="Other", aliases=["op"])
        match = find_match("board meeting notes", [ops, board])
        assert match is not None
        assert match.project is board
        assert match.confidence == 0.95

    def test_tie_goes_to_first_seen(self):
        first = Project(name="First", aliases=["acme"])
        second = Project(name="Second", aliases=["acme"])
        match = match_by_alias("acme pricing", [first, second])
        assert match.project is first

    def test_text_is_normalized(self):
        cafe = Project(name="Café Nova")
        match = find_match("Notes from CAFÉ NOVA's launch", [cafe])
        assert match is not None
        assert match.match_type == MatchType.ALIAS

    def test_no_alias_hit(self):
        assert match_by_alias("nothing here", [Project(name="Zeta", aliases=["zeta"])]) is None


class TestFuzzyLayer:
    def test_score_formula(self):
        project = Project(name="Mobile Launch", aliases=["xq"])
        words = word_set("planning the launch event")
        # project words: mobile, launch, xq -> recall 1/3, one long word
        assert fuzzy_score(words, project) == pytest.approx(1 / 3 * 0.6 + 0.15)

    def test_fuzzy_match_when_no_alias(self):
        project = Project(name="Mobile Launch", aliases=["xq"])
        match = find_match("planning the launch event", [project])
        assert match is not None
        assert match.match_type == MatchType.FUZZY
        assert match.confidence == pytest.approx(0.4 + (0.2 + 0.15) * 0.5)

    def test_confidence_capped(self):
        assert fuzzy_confidence(10.0) == FUZZY_MAX_CONFIDENCE

    def test_never_exceeds_cap(self):
        project = Project(name="Growth Marketing Strategy Sprint", aliases=["zz"])
        match = match_by_fuzzy("growth marketing strategy sprint review", [project])
        assert match is not None
        assert match.confidence <= 0.75

    def test_threshold_is_exclusive(self):
        # one short shared word out of two: recall 0.5 * 0.6 = 0.3, not above 0.3
        project = Project(name="Ad Ops", aliases=["ad ops"])
        words = word_set("ad spend")
        assert fuzzy_score(words, project) == pytest.approx(0.3)
        assert match_by_fuzzy("ad spend", [project]) is None

    def test_best_score_wins(self):
        weak = Project(name="Launch Party Planning", aliases=["zz"])
        strong = Project(name="Launch Review", aliases=["yy"])
        match = match_by_fuzzy("launch review tomorrow", [weak, strong])
        assert match.project is strong

    def test_no_projects(self):
        assert find_match("anything", []) is None


class TestProjectMatch:
    def test_auto_assign_threshold(self):
        project = Project(name="Acme")
        assert ProjectMatch(project, AUTO_ASSIGN_THRESHOLD, MatchType.FUZZY).auto_assign
        assert not ProjectMatch(project, 0.59, MatchType.FUZZY).auto_assign

    def test_needs_confirmation_below_high_confidence(self):
        project = Project(name="Acme")
        assert ProjectMatch(project, 0.7, MatchType.AI).needs_confirmation
        assert not ProjectMatch(project, 0.95, MatchType.ALIAS).needs_confirmation


class TestAILayer:
    def test_exact_answer(self):
        projects = [Project(name="Acme"), Project(name="Board Ops")]
        match = interpret_ai_answer('"board ops".', projects)
        assert match.project is projects[1]
        assert match.confidence == 0.7
        assert match.match_type == MatchType.AI

    def test_partial_answer(self):
        projects = [Project(name="Board Ops")]
        match = interpret_ai_answer("The Board Ops project", projects)
        assert match.confidence == 0.65

    def test_none_answer(self):
        assert interpret_ai_answer("None", [Project(name="Acme")]) is None

    def test_unknown_answer(self):
        assert interpret_ai_answer("Zeta", [Project(name="Acme")]) is None

    def test_prompt_truncates_text(self):
        client = FakeClient("Acme")
        match_with_ai("x" * 2000, [Project(name="Acme")], client)
        _system, user = client.calls[0]
        assert "x" * AI_MATCH_TEXT_LIMIT in user
        assert "x" * (AI_MATCH_TEXT_LIMIT + 1) not in user
        assert "Projects: Acme" in user

    def test_no_projects_skips_call(self):
        client = FakeClient("Acme")
        assert match_with_ai("text", [], client) is None
        assert client.calls == []


class TestResolveProject:
    def test_confident_local_match_skips_ai(self):
        client = FakeClient("Zeta")
        project = Project(name="Acme")
        match = resolve_project("acme pricing call", [project], client=client)
        assert match.match_type == MatchType.ALIAS
        assert client.calls == []

    def test_ai_used_when_nothing_local(self):
        project = Project(name="Acme")
        match = resolve_project("pricing call", [project], client=FakeClient("Acme"))
        assert match.match_type == MatchType.AI

    def test_no_client_returns_local(self):
        assert resolve_project("pricing call", [Project(name="Acme")]) is None

    def test_missing_credential_degrades(self):
        client = FakeClient(error=NoCredentialError("no key"))
        assert resolve_project("pricing call", [Project(name="Acme")], client=client) is None

    def test_upstream_failure_propagates(self):
        client = FakeClient(error=UpstreamFailureError("boom", status_code=500))
        with pytest.raises(UpstreamFailureError):
            resolve_project("pricing call", [Project(name="Acme")], client=client)

    def test_ai_none_keeps_weak_local_match(self):
        project = Project(name="Mobile Launch", aliases=["xq"])
        local = find_match("launch event", [project])
        assert local is not None and not local.auto_assign
        match = resolve_project("launch event", [project], client=FakeClient("none"))
        assert match == local
