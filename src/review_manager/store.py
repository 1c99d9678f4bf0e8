"""In-memory review collection backed by a data file.

`ReviewStore` owns the list of reviews. Callers get a store from
`ReviewStore.from_csv`, pass it around explicitly, and call `save` when they
want the file updated; nothing is written implicitly.

Indices
-------
Reviews are addressed by their 0-based position. Deleting a review shifts
every later review down by one, so an index taken before a deletion may point
at a different review afterwards. Interfaces should gather indices and act on
them in one synchronous step.

Searching
---------
- `find_by_name`: first exact (case-sensitive) name.
- `search_partial`: case-insensitive substring match.
- `search_fuzzy`: edit-distance ranking with tiers (see `fuzzy.match`).
- `suggest`: "did you mean" names for a query nothing else matched.
"""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterator

from .fuzzy import (
    DEFAULT_MAX_DISTANCE,
    Candidate,
    FuzzyMatcher,
    MatchResult,
    suggest_names,
)
from .normalization import fold_case
from .records import MAX_SCORE, MIN_SCORE, Review
from .storage import backup_file, read_reviews, restore_file, write_reviews

logger = logging.getLogger(__name__)

_UPDATABLE_FIELDS = {f.name for f in dataclasses.fields(Review)}


@dataclass(frozen=True)
class ReviewStatistics:
    """Summary numbers over the whole collection."""

    total: int
    average_score: float | None
    distribution: dict[int, int]  # score -> count, every score present
    earliest_date: str | None
    latest_date: str | None

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "average_score": (
                round(self.average_score, 2) if self.average_score is not None else None
            ),
            "distribution": {str(k): v for k, v in self.distribution.items()},
            "earliest_date": self.earliest_date,
            "latest_date": self.latest_date,
        }


class ReviewStore:
    """Holds all loaded reviews and the path they came from."""

    def __init__(
        self,
        reviews: list[Review] | None = None,
        path: str | Path | None = None,
    ):
        self._reviews: list[Review] = list(reviews or [])
        self.path = Path(path) if path is not None else None

    @classmethod
    def from_csv(cls, csv_path: str | Path, *, missing_ok: bool = False) -> "ReviewStore":
        """Load a data file into a store.

        Args:
            csv_path: Path to the data file. It becomes the store's save path.
            missing_ok: If True, a missing file gives an empty store instead of
                raising FileNotFoundError.
        """
        csv_path = Path(csv_path)
        try:
            reviews = read_reviews(csv_path)
        except FileNotFoundError:
            if not missing_ok:
                raise
            logger.info("No data file at %s, starting empty", csv_path)
            reviews = []
        return cls(reviews=reviews, path=csv_path)

    def __len__(self) -> int:
        return len(self._reviews)

    def __iter__(self) -> Iterator[Review]:
        return iter(list(self._reviews))

    @property
    def reviews(self) -> tuple[Review, ...]:
        """Snapshot of the current reviews."""
        return tuple(self._reviews)

    def get(self, index: int) -> Review:
        """Return the review at `index` (0-based)."""
        return self._reviews[self._check_index(index)]

    def candidates(self) -> list[Candidate]:
        """Reviewer names paired with their indices, in store order."""
        return [
            Candidate(candidate_id=i, name=r.reviewer_name)
            for i, r in enumerate(self._reviews)
        ]

    # -- create / update / delete ------------------------------------------

    def add(self, review: Review) -> int:
        """Append a review and return its index."""
        self._reviews.append(review)
        return len(self._reviews) - 1

    def update(self, index: int, **changes: Any) -> Review:
        """Replace fields of the review at `index`.

        Field names are the `Review` attribute names. The updated review is
        validated like a new one.

        Raises:
            TypeError: for unknown field names.
            ReviewValidationError: if a new value is invalid.
        """
        index = self._check_index(index)
        unknown = set(changes) - _UPDATABLE_FIELDS
        if unknown:
            raise TypeError(f"Unknown review fields: {sorted(unknown)}")

        updated = dataclasses.replace(self._reviews[index], **changes)
        self._reviews[index] = updated
        return updated

    def delete_at(self, index: int) -> Review:
        """Remove and return the review at `index`; later reviews shift down."""
        index = self._check_index(index)
        removed = self._reviews.pop(index)
        logger.info("Deleted review %d (%s)", index, removed.reviewer_name)
        return removed

    def delete_all_by_name(self, name: str) -> int:
        """Remove every review whose name equals `name` ignoring ASCII case.

        Returns:
            Number of reviews removed.
        """
        folded = fold_case(name.strip(" "))
        kept = [r for r in self._reviews if fold_case(r.reviewer_name) != folded]
        removed = len(self._reviews) - len(kept)
        self._reviews = kept
        if removed:
            logger.info("Deleted %d reviews by %s", removed, name)
        return removed

    # -- search -------------------------------------------------------------

    def find_by_name(self, name: str) -> int | None:
        """Index of the first review whose name equals `name` exactly."""
        for i, review in enumerate(self._reviews):
            if review.reviewer_name == name:
                return i
        return None

    def search_partial(self, term: str, *, limit: int | None = None) -> list[int]:
        """Indices of reviews whose name contains `term`, ignoring ASCII case.

        An empty term matches nothing.
        """
        if not term:
            return []

        folded = fold_case(term)
        found: list[int] = []
        for i, review in enumerate(self._reviews):
            if folded in fold_case(review.reviewer_name):
                found.append(i)
                if limit is not None and len(found) >= limit:
                    break
        return found

    def search_fuzzy(
        self, query: str | None, max_distance: int = DEFAULT_MAX_DISTANCE
    ) -> list[MatchResult]:
        """Rank reviews by edit distance between `query` and the reviewer name.

        `candidate_id` on each result is the review index.
        """
        return FuzzyMatcher(max_distance).match(query, self.candidates())

    def suggest(
        self, query: str, *, threshold: float = 70.0, limit: int = 3
    ) -> list[tuple[str, float]]:
        """Distinct reviewer names that look like `query`."""
        names = [r.reviewer_name for r in self._reviews]
        return suggest_names(query, names, threshold=threshold, limit=limit)

    # -- statistics ---------------------------------------------------------

    def statistics(self) -> ReviewStatistics:
        distribution = {score: 0 for score in range(MIN_SCORE, MAX_SCORE + 1)}
        for review in self._reviews:
            distribution[review.satisfaction_score] += 1

        total = len(self._reviews)
        if total == 0:
            return ReviewStatistics(
                total=0,
                average_score=None,
                distribution=distribution,
                earliest_date=None,
                latest_date=None,
            )

        # YYYY-MM-DD sorts chronologically as text.
        dates = [r.review_date for r in self._reviews]
        return ReviewStatistics(
            total=total,
            average_score=sum(r.satisfaction_score for r in self._reviews) / total,
            distribution=distribution,
            earliest_date=min(dates),
            latest_date=max(dates),
        )

    # -- persistence --------------------------------------------------------

    def save(self, path: str | Path | None = None) -> Path:
        """Write all reviews to `path` (default: the store's own path)."""
        target = self._resolve_path(path)
        write_reviews(target, self._reviews)
        return target

    def reload(self, path: str | Path | None = None) -> int:
        """Replace the in-memory reviews with the file contents."""
        target = self._resolve_path(path)
        self._reviews = read_reviews(target)
        self.path = target
        return len(self._reviews)

    def backup(self, destination: str | Path) -> Path:
        """Save the current reviews, then copy the data file to `destination`."""
        source = self.save()
        return backup_file(source, destination)

    def restore(self, source: str | Path) -> int:
        """Copy a backup over the data file and reload from it.

        Returns:
            Number of reviews after the restore.
        """
        target = self._resolve_path(None)
        restore_file(source, target)
        return self.reload(target)

    def _resolve_path(self, path: str | Path | None) -> Path:
        if path is not None:
            return Path(path)
        if self.path is None:
            raise ValueError("No data file path set for this store")
        return self.path

    def _check_index(self, index: int) -> int:
        # Negative indices would silently address from the end.
        if not 0 <= index < len(self._reviews):
            raise IndexError(
                f"Review index {index} out of range (have {len(self._reviews)})"
            )
        return index
