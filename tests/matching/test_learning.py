"""Tests for alias learning from user corrections."""

from datetime import UTC, datetime

from driftwatch.matching.learning import candidate_aliases, learn_from_correction
from driftwatch.matching.matcher import MatchType, find_match
from driftwatch.models import Project

NOW = datetime(2026, 1, 21, 12, 0, tzinfo=UTC)


class TestCandidateAliases:
    def test_words_near_context_word(self):
        text = "Pinged the team yesterday; follow up regarding zephyr"
        assert candidate_aliases(text, "Zephyr") == ["follow", "zephyr"]

    def test_short_words_and_stopwords_skipped(self):
        assert candidate_aliases("fix for ui", "Acme") == ["fix"]

    def test_context_word_is_not_a_candidate(self):
        assert candidate_aliases("regarding", "Acme") == []

    def test_no_context_word(self):
        assert candidate_aliases("pricing review tomorrow", "Acme") == []

    def test_pair_similar_to_project_name(self):
        assert candidate_aliases("notes from boardd ops sync", "Board Ops") == ["boardd ops"]

    def test_text_is_normalized(self):
        assert candidate_aliases("Call about Zéphyr's pricing", "Zephyr") == [
            "call",
            "zephyr",
            "pricing",
        ]

    def test_candidates_deduplicated(self):
        assert candidate_aliases("for zephyr and for zephyr", "Acme") == ["zephyr"]


class TestLearnFromCorrection:
    def test_appends_new_aliases_only(self):
        project = Project(name="Zephyr")
        added = learn_from_correction("follow up regarding zephyr", project, now=NOW)
        assert added == ["follow"]
        assert project.aliases == ["zephyr", "follow"]
        assert project.updated_at == NOW

    def test_nothing_learned_leaves_project_untouched(self):
        project = Project(name="Zephyr", updated_at=NOW)
        assert learn_from_correction("pricing review", project) == []
        assert project.aliases == ["zephyr"]
        assert project.updated_at == NOW

    def test_learned_alias_matches_next_time(self):
        project = Project(name="Board Ops", aliases=["board ops"])
        assert find_match("investor update draft", [project]) is None
        learn_from_correction("draft for investor update", project, now=NOW)
        match = find_match("investor update draft v2", [project])
        assert match is not None
        assert match.match_type == MatchType.ALIAS
