"""Fuzzy name matching.

We use fuzzy matching to handle common user input issues when looking up a
reviewer:
- Typos ("Charlei" vs "Charlie")
- Transposed letters ("Jhon" vs "John")
- Case differences ("ALICE" vs "Alice")

Two layers live here:
- `match`: ranks candidates by edit distance under a caller-chosen tolerance
  and tags each survivor with a tier. Output order is deterministic.
- `suggest_names`: a looser "did you mean" pass built on `rapidfuzz`, used by
  the interfaces only when `match` finds nothing.

Tiers
-----
distance 0 -> exact, distance 2 -> close, any other accepted distance -> fuzzy.
Distance 1 lands in "fuzzy" while 2 is "close". Stored data and downstream
labels depend on this exact rule, so it is kept as is.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Hashable, Iterable, Sequence

from .distance import edit_distance

# Realistic upper bound for a tolerance on person names.
MAX_DISTANCE_LIMIT = 20

DEFAULT_MAX_DISTANCE = 2


class ConfigurationError(ValueError):
    """Raised when a matcher is configured with an unusable tolerance."""


class MatchTier(Enum):
    """Coarse confidence bucket for display."""

    EXACT = "exact"
    CLOSE = "close"
    FUZZY = "fuzzy"


@dataclass(frozen=True)
class Candidate:
    """A searchable name and an opaque id pointing back to its record."""

    candidate_id: Hashable
    name: str


@dataclass(frozen=True)
class MatchResult:
    """One surviving candidate of a `match` call."""

    candidate_id: Hashable
    distance: int
    tier: MatchTier

    def to_dict(self) -> dict[str, Any]:
        return {
            "candidate_id": self.candidate_id,
            "distance": self.distance,
            "tier": self.tier.value,
        }


def tier_for_distance(distance: int) -> MatchTier:
    """Map an accepted distance to its tier."""
    if distance == 0:
        return MatchTier.EXACT
    if distance == 2:
        return MatchTier.CLOSE
    return MatchTier.FUZZY


def validate_max_distance(value: Any) -> int:
    """Return `value` if it is a usable tolerance, otherwise raise.

    Accepted range is 0..MAX_DISTANCE_LIMIT. Values are never clamped.

    Raises:
        ConfigurationError: for negative, too large or non-integer values.
    """
    # bool is an int subclass; True is not a tolerance.
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigurationError(
            f"max_distance must be an integer, got {value!r}"
        )
    if value < 0 or value > MAX_DISTANCE_LIMIT:
        raise ConfigurationError(
            f"max_distance must be in range [0, {MAX_DISTANCE_LIMIT}], got {value}"
        )
    return value


def match(
    query: str | None,
    candidates: Iterable[Candidate],
    max_distance: int,
) -> list[MatchResult]:
    """Rank candidates by edit distance to `query`.

    Args:
        query: Search text. None or "" yields no results.
        candidates: Candidates in caller order; the order breaks ties.
        max_distance: Largest distance to keep (0 means exact matches only).

    Returns:
        Results sorted by distance ascending, stable on ties. Empty when
        nothing is within tolerance.

    Raises:
        ConfigurationError: if `max_distance` is out of range.
    """
    max_distance = validate_max_distance(max_distance)

    if not query:
        return []

    results: list[MatchResult] = []
    for candidate in candidates:
        # edit_distance folds case itself.
        distance = edit_distance(query, candidate.name)
        if distance > max_distance:
            continue
        results.append(
            MatchResult(
                candidate_id=candidate.candidate_id,
                distance=distance,
                tier=tier_for_distance(distance),
            )
        )

    # list.sort is stable, so equal distances keep input order.
    results.sort(key=lambda r: r.distance)
    return results


class FuzzyMatcher:
    """Holds a validated tolerance and applies `match` with it."""

    def __init__(self, max_distance: int = DEFAULT_MAX_DISTANCE):
        self.max_distance = validate_max_distance(max_distance)

    def match(
        self, query: str | None, candidates: Iterable[Candidate]
    ) -> list[MatchResult]:
        return match(query, candidates, self.max_distance)


def suggest_names(
    query: str,
    names: Sequence[str],
    *,
    threshold: float = 70.0,
    limit: int = 3,
) -> list[tuple[str, float]]:
    """Return "did you mean" names for a query that matched nothing.

    Args:
        query: Raw query string.
        names: Candidate names (duplicates allowed).
        threshold: Minimum score (0..100) to accept.
        limit: Maximum number of suggestions.

    Returns:
        [(name, score), ...] best first, each distinct name at most once.
    """
    if not 0.0 <= threshold <= 100.0:
        raise ConfigurationError("threshold must be in range [0, 100]")
    if not query or not names or limit <= 0:
        return []

    # Lazy import keeps the edit-distance path free of the rapidfuzz import cost.
    from rapidfuzz import fuzz, process, utils  # type: ignore

    unique_names = list(dict.fromkeys(names))

    # `extract` returns: [(match, score, index), ...]
    scored = process.extract(
        query,
        unique_names,
        scorer=fuzz.WRatio,
        processor=utils.default_process,
        score_cutoff=threshold,
        limit=limit,
    )
    return [(str(name), float(score)) for name, score, _idx in scored]
