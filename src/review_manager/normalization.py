"""Text normalization utilities.

Reviewer names are compared with lightweight normalization only:
- ASCII case folding ("ALICE" vs "alice")
- Surrounding spaces trimmed when a name is stored

Non-ASCII characters are compared verbatim. Accent stripping or Unicode
case folding would change which names count as equal, so it is left out.
"""

from __future__ import annotations

import re

# A-Z -> a-z, nothing else.
_ASCII_FOLD_TABLE = str.maketrans(
    "ABCDEFGHIJKLMNOPQRSTUVWXYZ", "abcdefghijklmnopqrstuvwxyz"
)

_LINE_BREAK_RE = re.compile(r"[\r\n]")


def fold_case(text: str) -> str:
    """Lower-case ASCII letters only.

    Examples:
        "HELLO"   -> "hello"
        "Zoë Ann" -> "zoë ann"
    """
    return text.translate(_ASCII_FOLD_TABLE)


def clean_reviewer_name(name: str | None) -> str | None:
    """Trim surrounding spaces from a reviewer name.

    Returns None when the input is None or nothing is left after trimming.
    Only the space character is stripped; tabs and other whitespace are kept
    so that stored names round-trip through the data file unchanged.
    """
    if name is None:
        return None

    cleaned = name.strip(" ")
    if not cleaned:
        return None
    return cleaned


def has_line_break(text: str) -> bool:
    """True if the text would span more than one line in the data file."""
    return _LINE_BREAK_RE.search(text) is not None
