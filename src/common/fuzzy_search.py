"""Fuzzy search utilities for matching queries against text content."""

from src.common.edit_distance import levenshtein_distance

DEFAULT_THRESHOLD = 2


def fuzzy_match(needle: str, haystack: str, threshold: int = DEFAULT_THRESHOLD) -> bool:
    """
    Check if a search term approximately matches text.

    Cheaper checks run first: exact substring, then word prefix, then edit
    distance against each word of similar length.

    Args:
        needle: The search term
        haystack: The text to search in
        threshold: Max edit distance for a word to count as a match

    Returns:
        True if any strategy matches. Empty needle or haystack never matches.
    """
    if not needle or not haystack:
        return False

    needle = needle.lower()
    haystack = haystack.lower()

    if needle in haystack:
        return True

    for word in haystack.split():
        if word.startswith(needle):
            return True

        # Length difference is a lower bound on the distance
        if abs(len(word) - len(needle)) <= threshold:
            if levenshtein_distance(needle, word, score_cutoff=threshold) <= threshold:
                return True

    return False
