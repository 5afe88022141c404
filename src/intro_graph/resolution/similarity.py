"""String similarity and identifier normalization for entity resolution."""

from __future__ import annotations

import re

from rapidfuzz.distance import Levenshtein

_NON_DIGITS = re.compile(r"\D")


def string_similarity(a: str, b: str) -> float:
    """Normalized Levenshtein similarity: ``1 - distance / max_length``.

    Comparison is case-insensitive and ignores surrounding whitespace.
    Returns 0.0 when either side is empty.
    """
    a_norm = a.strip().lower()
    b_norm = b.strip().lower()

    if not a_norm or not b_norm:
        return 0.0
    if a_norm == b_norm:
        return 1.0

    distance = Levenshtein.distance(a_norm, b_norm)
    return 1.0 - distance / max(len(a_norm), len(b_norm))


def best_pair_similarity(left: list[str], right: list[str]) -> tuple[float, str, str]:
    """Best similarity over all (left, right) pairs.

    Returns (similarity, left_value, right_value); the first best pair wins
    ties, so the result is stable for a given input order.
    """
    best = (0.0, "", "")
    for a in left:
        for b in right:
            similarity = string_similarity(a, b)
            if similarity > best[0]:
                best = (similarity, a, b)
    return best


def normalize_email(email: str) -> str:
    return email.strip().lower()


def normalize_phone(phone: str) -> str:
    """Keep digits only, so "+1 (555) 010-0000" equals "15550100000"."""
    return _NON_DIGITS.sub("", phone)


def normalize_handle(handle: str) -> str:
    return handle.strip().lstrip("@").lower()
