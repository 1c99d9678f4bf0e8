"""Review data file reader/writer.

The data file is a flat comma-delimited text file:

    ReviewerName,SatisfactionScore,ReviewDate,Feedback
    Alice,5,2024-01-15,Excellent service
    Bob,4,2024-01-16,"Good product, fast delivery"

Compatibility notes
-------------------
Older files were written without any quoting, so feedback containing commas
appears as *extra fields* on the row. When a row has more than four fields we
re-join everything after the date back into the feedback. New files are
written with minimal quoting, which older readers see as the same text as
long as the feedback has no quote characters.

Rows that are too short or fail record validation are skipped (and logged)
rather than failing the whole load.
"""

from __future__ import annotations

import csv
import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import Iterable

from .records import Review, ReviewValidationError, parse_score

logger = logging.getLogger(__name__)

HEADER = ["ReviewerName", "SatisfactionScore", "ReviewDate", "Feedback"]


def read_reviews(path: str | Path) -> list[Review]:
    """Load reviews from a data file.

    Args:
        path: Path to the data file.

    Returns:
        Reviews in file order. An empty file yields an empty list.

    Raises:
        FileNotFoundError: if the file does not exist.
    """
    path = Path(path)

    reviews: list[Review] = []
    with path.open("r", encoding="utf-8", newline="") as f:
        reader = csv.reader(f)

        # The first line is always the header.
        header = next(reader, None)
        if header is None:
            logger.info("Data file %s is empty", path)
            return reviews
        if [h.strip() for h in header] != HEADER:
            logger.debug("Unexpected header in %s: %r", path, header)

        for row in reader:
            if not row:
                continue
            review = _parse_row(row)
            if review is None:
                logger.warning(
                    "Skipping malformed row %d in %s: %r", reader.line_num, path, row
                )
                continue
            reviews.append(review)

    logger.info("Loaded %d reviews from %s", len(reviews), path)
    return reviews


def write_reviews(path: str | Path, reviews: Iterable[Review]) -> int:
    """Write reviews to a data file, replacing it atomically.

    Returns:
        Number of rows written (header excluded).
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    count = 0
    fd, tmp_name = tempfile.mkstemp(
        prefix=f".{path.name}.", suffix=".tmp", dir=str(path.parent)
    )
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
            writer = csv.writer(f, lineterminator="\n")
            writer.writerow(HEADER)
            for review in reviews:
                writer.writerow(
                    [
                        review.reviewer_name,
                        review.satisfaction_score,
                        review.review_date,
                        review.feedback,
                    ]
                )
                count += 1
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise

    logger.info("Saved %d reviews to %s", count, path)
    return count


def backup_file(source: str | Path, destination: str | Path) -> Path:
    """Copy the data file byte for byte.

    Raises:
        FileNotFoundError: if `source` does not exist.
    """
    source = Path(source)
    destination = Path(destination)
    if not source.is_file():
        raise FileNotFoundError(f"No data file to back up: {source}")

    destination.parent.mkdir(parents=True, exist_ok=True)
    shutil.copyfile(source, destination)
    logger.info("Backed up %s to %s", source, destination)
    return destination


def restore_file(backup: str | Path, destination: str | Path) -> Path:
    """Copy a backup over the data file.

    Raises:
        FileNotFoundError: if `backup` does not exist.
    """
    backup = Path(backup)
    destination = Path(destination)
    if not backup.is_file():
        raise FileNotFoundError(f"Backup file not found: {backup}")

    destination.parent.mkdir(parents=True, exist_ok=True)
    shutil.copyfile(backup, destination)
    logger.info("Restored %s from %s", destination, backup)
    return destination


def _parse_row(row: list[str]) -> Review | None:
    """Turn one data row into a Review, or None if it is unusable."""
    if len(row) < 4:
        return None

    name, score_text, review_date = row[0], row[1], row[2]
    # Unquoted legacy feedback may have been split on its commas.
    feedback = ",".join(row[3:])

    try:
        return Review.create(name, parse_score(score_text), review_date, feedback)
    except ReviewValidationError as e:
        logger.debug("Row rejected: %s", e)
        return None
