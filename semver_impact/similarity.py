"""Name and signature similarity scores used for rename and reorder heuristics."""

from __future__ import annotations

import re

from rapidfuzz.distance import Levenshtein


def edit_distance(a: str, b: str) -> int:
    """Levenshtein distance between two strings."""
    return Levenshtein.distance(a, b)


def name_similarity(a: str, b: str) -> float:
    """Score how alike two identifiers are, in [0, 1].

    1.0 for identical names, 0.95 for a case-only difference, 0.85 when one
    name is a prefix or suffix of the other, otherwise one minus the
    normalized case-insensitive edit distance.
    """
    if a == b:
        return 1.0
    if not a or not b:
        return 0.0

    a_lower = a.lower()
    b_lower = b.lower()
    if a_lower == b_lower:
        return 0.95

    if (
        a_lower.startswith(b_lower)
        or b_lower.startswith(a_lower)
        or a_lower.endswith(b_lower)
        or b_lower.endswith(a_lower)
    ):
        return 0.85

    distance = edit_distance(a_lower, b_lower)
    return 1 - distance / max(len(a_lower), len(b_lower))


def is_abbreviation(a: str, b: str) -> bool:
    """True if the shorter name abbreviates the longer one.

    An abbreviation keeps the first letter and is an ordered subsequence of
    the longer name ("src" / "source", "dst" / "dest").
    """
    short, long_ = sorted((a.lower(), b.lower()), key=len)
    if len(short) < 2 or short == long_ or short[0] != long_[0]:
        return False
    it = iter(long_)
    return all(ch in it for ch in short)


def name_resemblance(a: str, b: str) -> float:
    """Similarity that also credits abbreviations at the prefix level (0.85)."""
    score = name_similarity(a, b)
    if score < 0.85 and is_abbreviation(a, b):
        return 0.85
    return score


def interpret_name_change(old_name: str, new_name: str, similarity: float) -> str:
    if old_name == new_name:
        return "unchanged"
    if similarity >= 0.95:
        return "case change only"

    old_lower = old_name.lower()
    new_lower = new_name.lower()
    if similarity >= 0.8:
        if old_lower.startswith(new_lower) or new_lower.startswith(old_lower):
            return "abbreviation expansion/contraction"
        return "minor spelling variation"
    if is_abbreviation(old_name, new_name):
        return "abbreviation expansion/contraction"
    if similarity >= 0.6:
        return "moderate name change"
    if similarity >= 0.4:
        return "significant name change"
    return "completely different name"


_WHITESPACE = re.compile(r"\s+")


def normalize_signature(signature: str) -> str:
    """Collapse whitespace runs so formatting-only edits compare equal."""
    return _WHITESPACE.sub(" ", signature).strip()


def signature_similarity(a: str, b: str) -> float:
    if a == b:
        return 1.0

    norm_a = normalize_signature(a)
    norm_b = normalize_signature(b)
    if norm_a == norm_b:
        return 0.95

    longest = max(len(norm_a), len(norm_b))
    if longest == 0:
        return 1.0
    return 1 - edit_distance(norm_a, norm_b) / longest


def modifier_similarity(a: frozenset[str], b: frozenset[str]) -> float:
    """Jaccard similarity of two modifier sets (1.0 when both are empty)."""
    if not a and not b:
        return 1.0
    return len(a & b) / len(a | b)
