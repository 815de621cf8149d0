"""Edit-distance similarity for near-duplicate title detection.

Titles are compared after normalization (lowercase, alphanumerics only), so
the distance here is a plain character-level Levenshtein distance.
"""

from __future__ import annotations


def levenshtein_distance(a: str, b: str, max_distance: int | None = None) -> int:
    """Number of single-character insertions, deletions or substitutions turning ``a`` into ``b``.

    Keeps one DP row sized to the shorter string. With ``max_distance`` set,
    any result above the bound is reported as ``max_distance + 1``.

    Examples:
        >>> levenshtein_distance("kitten", "sitting")
        3
        >>> levenshtein_distance("", "abc")
        3
    """
    shorter, longer = sorted((a, b), key=len)
    if not shorter:
        return len(longer)
    if max_distance is not None and len(longer) - len(shorter) > max_distance:
        return max_distance + 1

    previous = list(range(len(shorter) + 1))
    for row, long_char in enumerate(longer, start=1):
        current = [row]
        for col, short_char in enumerate(shorter, start=1):
            substitution = previous[col - 1] + (short_char != long_char)
            current.append(min(previous[col] + 1, current[col - 1] + 1, substitution))
        if max_distance is not None and min(current) > max_distance:
            return max_distance + 1
        previous = current

    if max_distance is not None:
        return min(previous[-1], max_distance + 1)
    return previous[-1]


def similarity_ratio(a: str, b: str) -> float:
    """Return ``1 - distance / max(len(a), len(b))``; two empty strings are identical.

    Examples:
        >>> similarity_ratio("abcde", "abcdf")
        0.8
    """
    longest = max(len(a), len(b))
    if longest == 0:
        return 1.0
    return 1.0 - levenshtein_distance(a, b) / longest
