# grammar_detector/infrastructure/adapters/recognition/functionality/edit_similarity.py

"""
Normalized Levenshtein similarity used to drop repeated utterances.
"""

from rapidfuzz.distance import Levenshtein


def edit_distance(s1: str, s2: str) -> int:
    """Unit-cost insert/delete/substitute distance, case-insensitive."""
    return Levenshtein.distance(s1.lower(), s2.lower())


def similarity(s1: str, s2: str) -> float:
    """
    1 - editDistance / len(longer), in [0, 1].

    Two empty strings are identical (1.0).
    """
    longer_length = max(len(s1), len(s2))
    if longer_length == 0:
        return 1.0
    return (longer_length - edit_distance(s1, s2)) / float(longer_length)


def is_same_sentence(previous: str, current: str, tolerance: float) -> bool:
    """True když je current jen ozvěna/opakování previous."""
    return similarity(previous, current) > tolerance
