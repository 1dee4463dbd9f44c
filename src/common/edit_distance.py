"""Levenshtein edit distance between two strings."""

from typing import Optional

from rapidfuzz.distance import Levenshtein


def levenshtein_distance(a: str, b: str, score_cutoff: Optional[int] = None) -> int:
    """
    Minimum number of single-character insertions, deletions or substitutions
    needed to turn `a` into `b`.

    Comparison is case-sensitive; callers lower-case beforehand.

    Args:
        a: First string
        b: Second string
        score_cutoff: Stop early once the distance exceeds this value. The
            result is then `score_cutoff + 1` rather than the exact distance.

    Returns:
        Edit distance (0 for identical strings, len of the other for empty input)
    """
    return Levenshtein.distance(a, b, score_cutoff=score_cutoff)
