import pytest

from src.common.edit_distance import levenshtein_distance
from src.common.fuzzy_search import fuzzy_match


@pytest.mark.parametrize("word", ["", "bard", "Vicious Mockery"])
def test_distance_to_self_is_zero(word):
    assert levenshtein_distance(word, word) == 0


def test_distance_kitten_sitting():
    assert levenshtein_distance("kitten", "sitting") == 3
    assert levenshtein_distance("sitting", "kitten") == 3


def test_distance_empty_input_is_other_length():
    assert levenshtein_distance("", "lute") == 4
    assert levenshtein_distance("lute", "") == 4


def test_distance_is_case_sensitive():
    assert levenshtein_distance("Bard", "bard") == 1


def test_distance_triangle_inequality():
    a, b, c = "thunder", "wonder", "wander"
    assert levenshtein_distance(a, c) <= levenshtein_distance(a, b) + levenshtein_distance(b, c)


def test_distance_cutoff_does_not_change_results_within_cutoff():
    assert levenshtein_distance("vicous", "vicious", score_cutoff=2) == 1


def test_fuzzy_catches_transposed_letters():
    assert fuzzy_match("teh", "the quick fox", 2)


def test_fuzzy_rejects_unrelated_word():
    assert not fuzzy_match("xyz", "the quick fox", 2)


def test_fuzzy_exact_substring_ignores_case():
    assert fuzzy_match("MOCK", "Vicious Mockery")


def test_fuzzy_prefix_match():
    assert fuzzy_match("thunderw", "Thunderwave blast")


@pytest.mark.parametrize("needle,haystack", [("", "anything"), ("bard", ""), ("", "")])
def test_fuzzy_empty_input_never_matches(needle, haystack):
    assert not fuzzy_match(needle, haystack)


def test_fuzzy_length_prefilter_skips_distant_lengths():
    # Length gap of 4 exceeds the threshold, so no distance is computed
    assert not fuzzy_match("xb", "abcdef")


def test_fuzzy_threshold_zero_only_allows_exact_or_prefix():
    assert not fuzzy_match("vicous", "vicious mockery", 0)
    assert fuzzy_match("vicous", "vicious mockery", 1)
