"""Top-level package for the review manager."""

from .distance import UNREACHABLE_DISTANCE, edit_distance
from .fuzzy import (
    Candidate,
    ConfigurationError,
    FuzzyMatcher,
    MatchResult,
    MatchTier,
    match,
)
from .records import Review, ReviewValidationError
from .store import ReviewStatistics, ReviewStore

__all__ = [
    "Candidate",
    "ConfigurationError",
    "FuzzyMatcher",
    "MatchResult",
    "MatchTier",
    "Review",
    "ReviewStatistics",
    "ReviewStore",
    "ReviewValidationError",
    "UNREACHABLE_DISTANCE",
    "edit_distance",
    "match",
]
