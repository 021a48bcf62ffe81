"""Tests for driftwatch.text: normalization and Levenshtein similarity."""

import pytest
from driftwatch.text import (
    fold_diacritics,
    levenshtein_distance,
    levenshtein_similarity,
    normalize,
    normalize_alias,
    tokenize,
    word_set,
)


class TestNormalize:
    def test_lowercases(self):
        assert normalize("Board OPS") == "board ops"

    def test_strips_possessive(self):
        assert normalize("Acme's launch") == "acme launch"

    def test_strips_curly_possessive(self):
        assert normalize("Acme’s launch") == "acme launch"

    def test_strips_bare_apostrophes(self):
        assert normalize("rock'n'roll") == "rocknroll"

    def test_folds_diacritics(self):
        assert normalize("Café Résumé") == "cafe resume"

    def test_fold_diacritics_keeps_plain_ascii(self):
        assert fold_diacritics("plain") == "plain"

    def test_normalize_alias_trims(self):
        assert normalize_alias("  Acme  ") == "acme"


class TestTokenize:
    def test_drops_punctuation(self):
        assert tokenize("board, meeting: notes!") == ["board", "meeting", "notes"]

    def test_word_set_deduplicates(self):
        assert word_set("ops ops board") == {"ops", "board"}

    def test_empty(self):
        assert tokenize("") == []


class TestLevenshtein:
    def test_distance_identical(self):
        assert levenshtein_distance("kitten", "kitten") == 0

    def test_distance_classic(self):
        assert levenshtein_distance("kitten", "sitting") == 3

    def test_distance_to_empty(self):
        assert levenshtein_distance("", "abc") == 3

    def test_similarity_two_empty(self):
        assert levenshtein_similarity("", "") == 1.0

    def test_similarity_one_empty(self):
        assert levenshtein_similarity("", "x") == 0.0
        assert levenshtein_similarity("x", "") == 0.0

    def test_similarity_equal_non_empty(self):
        assert levenshtein_similarity("acme", "acme") == 1.0

    def test_similarity_value(self):
        # distance 3 over max length 7
        assert levenshtein_similarity("kitten", "sitting") == pytest.approx(1 - 3 / 7)

    @pytest.mark.parametrize(
        ("a", "b"),
        [
            ("kitten", "sitting"),
            ("board ops", "boardops"),
            ("", "x"),
            ("flaw", "lawn"),
            ("acme corp", "acme"),
        ],
    )
    def test_similarity_symmetric(self, a, b):
        assert levenshtein_similarity(a, b) == levenshtein_similarity(b, a)

    @pytest.mark.parametrize(
        ("a", "b"),
        [("acme", "acne"), ("launch", "lunch"), ("café", "cafe"), ("ops", "operations")],
    )
    def test_similarity_is_one_minus_normalized_distance(self, a, b):
        expected = 1 - levenshtein_distance(a, b) / max(len(a), len(b))
        assert levenshtein_similarity(a, b) == pytest.approx(expected)

    def test_similarity_at_fuzzy_cutoff(self):
        # one substitution in five characters
        assert levenshtein_similarity("pilot", "pilat") == pytest.approx(0.8)
