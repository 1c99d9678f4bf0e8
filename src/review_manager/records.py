"""Review record type and field validation."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .normalization import clean_reviewer_name, has_line_break

MIN_SCORE = 1
MAX_SCORE = 5

MAX_NAME_LENGTH = 255
MAX_FEEDBACK_LENGTH = 511

DATE_FORMAT_HINT = "YYYY-MM-DD"


class ReviewValidationError(ValueError):
    """Raised when a review field does not satisfy the record rules."""


def parse_score(text: str | None) -> int:
    """Parse a satisfaction score from user or file input.

    The whole string must be an integer in MIN_SCORE..MAX_SCORE. Surrounding
    whitespace is allowed; "4.5", "4x" and "" are not.
    """
    if text is None or not text.strip():
        raise ReviewValidationError("score is empty")

    raw = text.strip()
    try:
        score = int(raw, 10)
    except ValueError as e:
        raise ReviewValidationError(f"score is not a number: {text!r}") from e

    _check_score(score)
    return score


def is_valid_date(text: str | None) -> bool:
    """Check the YYYY-MM-DD shape: ten characters, dashes at 4 and 7, digits elsewhere.

    This is a format check only; "2024-13-45" passes.
    """
    if text is None or len(text) != 10:
        return False
    if text[4] != "-" or text[7] != "-":
        return False
    return all(ch in "0123456789" for i, ch in enumerate(text) if i not in (4, 7))


def _check_score(score: Any) -> None:
    if isinstance(score, bool) or not isinstance(score, int):
        raise ReviewValidationError(f"score must be an integer, got {score!r}")
    if not MIN_SCORE <= score <= MAX_SCORE:
        raise ReviewValidationError(
            f"score must be between {MIN_SCORE} and {MAX_SCORE}, got {score}"
        )


@dataclass(frozen=True)
class Review:
    """One customer review.

    Attributes:
        reviewer_name: Display name, already trimmed.
        satisfaction_score: 1..5.
        review_date: Date in YYYY-MM-DD form.
        feedback: Free text without leading spaces; may be empty and may
            contain commas.
    """

    reviewer_name: str
    satisfaction_score: int
    review_date: str
    feedback: str = ""

    def __post_init__(self):
        """Validate all fields."""
        name = self.reviewer_name
        if not isinstance(name, str) or clean_reviewer_name(name) != name:
            raise ReviewValidationError(
                f"reviewer name must be non-empty and trimmed, got {name!r}"
            )
        if len(name) > MAX_NAME_LENGTH:
            raise ReviewValidationError(
                f"reviewer name is longer than {MAX_NAME_LENGTH} characters"
            )
        if has_line_break(name):
            raise ReviewValidationError("reviewer name must be a single line")

        _check_score(self.satisfaction_score)

        if not is_valid_date(self.review_date):
            raise ReviewValidationError(
                f"review date must look like {DATE_FORMAT_HINT}, got {self.review_date!r}"
            )

        if not isinstance(self.feedback, str):
            raise ReviewValidationError("feedback must be a string")
        # Stored feedback has no leading spaces, matching what the file reader yields.
        object.__setattr__(self, "feedback", self.feedback.lstrip(" "))
        if len(self.feedback) > MAX_FEEDBACK_LENGTH:
            raise ReviewValidationError(
                f"feedback is longer than {MAX_FEEDBACK_LENGTH} characters"
            )
        if has_line_break(self.feedback):
            raise ReviewValidationError("feedback must be a single line")

    @classmethod
    def create(
        cls,
        reviewer_name: str | None,
        satisfaction_score: int | str,
        review_date: str,
        feedback: str = "",
    ) -> "Review":
        """Build a review from raw input: trims the name and parses a textual score."""
        name = clean_reviewer_name(reviewer_name)
        if name is None:
            raise ReviewValidationError("reviewer name is empty")

        if isinstance(satisfaction_score, str):
            satisfaction_score = parse_score(satisfaction_score)

        return cls(
            reviewer_name=name,
            satisfaction_score=satisfaction_score,
            review_date=review_date.strip(),
            feedback=feedback,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "reviewer_name": self.reviewer_name,
            "satisfaction_score": self.satisfaction_score,
            "review_date": self.review_date,
            "feedback": self.feedback,
        }
