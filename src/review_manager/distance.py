"""Edit distance between reviewer names.

Classic Levenshtein distance with unit costs for insertion, deletion and
substitution. Comparison is case-insensitive for ASCII letters.

Implementation notes:
- The DP table is (m+1) x (n+1) in principle; only two rows are kept.
- The result is an absolute edit count, never a similarity ratio.
- A missing string (None) is not an error: it maps to UNREACHABLE_DISTANCE so
  that a single bad candidate cannot abort a whole search.
"""

from __future__ import annotations

from .normalization import fold_case

# Larger than any real distance between names a search would accept.
UNREACHABLE_DISTANCE = 999


def edit_distance(a: str | None, b: str | None) -> int:
    """Return the case-insensitive Levenshtein distance between two strings.

    Examples:
        edit_distance("kitten", "sitting") -> 3
        edit_distance("john", "jhon")      -> 2
        edit_distance("sarah", "sara")     -> 1
        edit_distance("HELLO", "hello")    -> 0

    Args:
        a: First string.
        b: Second string.

    Returns:
        Number of single-character edits, or UNREACHABLE_DISTANCE if either
        side is None.
    """
    if a is None or b is None:
        return UNREACHABLE_DISTANCE

    a = fold_case(a)
    b = fold_case(b)

    if a == b:
        return 0
    if not a:
        return len(b)
    if not b:
        return len(a)

    # previous[j] holds table[i-1][j]; current[j] is table[i][j].
    previous = list(range(len(b) + 1))
    for i, ch_a in enumerate(a, start=1):
        current = [i] + [0] * len(b)
        for j, ch_b in enumerate(b, start=1):
            if ch_a == ch_b:
                current[j] = previous[j - 1]
            else:
                current[j] = 1 + min(previous[j], current[j - 1], previous[j - 1])
        previous = current

    return previous[len(b)]
