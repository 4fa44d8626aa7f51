"""Text folding used to compare loosely formatted release fields."""

from __future__ import annotations

import re
from collections.abc import Iterable

_SEPARATOR_RE = re.compile(r"[^0-9a-z]+")
_WHITESPACE_RE = re.compile(r"\s+")
_PROPER_RE = re.compile(r"(?<![0-9a-z])(?:real[\s._-]+)?proper(?![0-9a-z])", re.IGNORECASE)
_REPACK_RE = re.compile(
    r"(?<![0-9a-z])(?:real[\s._-]+)?(?:repack\d?|rerip)(?![0-9a-z])",
    re.IGNORECASE,
)
_MARKER = r"(?:real[\s._-]+)?(?:proper|repack\d?|rerip)"
# A run of markers closing the text; a marker followed by more words is part of a name.
_TRAILING_MARKERS_RE = re.compile(
    rf"(?:^|(?<=[\s._-])){_MARKER}(?:[\s._-]+{_MARKER})*[\s._-]*$",
    re.IGNORECASE,
)


def normalize_text(value: str | None) -> str:
    """Case-fold and collapse punctuation/separator runs into single spaces."""

    if not value:
        return ""
    folded = value.casefold()
    return _SEPARATOR_RE.sub(" ", folded).strip()


def normalize_values(values: Iterable[str] | None) -> frozenset[str]:
    """Fold a multi-valued field into a set of normalized, non-empty entries."""

    if not values:
        return frozenset()
    folded = (normalize_text(value) for value in values)
    return frozenset(value for value in folded if value)


def trailing_markers(value: str | None) -> str:
    """The PROPER/REPACK/RERIP run that ends ``value``, or an empty string."""

    if not value:
        return ""
    match = _TRAILING_MARKERS_RE.search(value)
    return match.group(0) if match else ""


def has_proper_marker(value: str | None) -> bool:
    return _PROPER_RE.search(trailing_markers(value)) is not None


def has_repack_marker(value: str | None) -> bool:
    return _REPACK_RE.search(trailing_markers(value)) is not None


def strip_edition_markers(value: str) -> str:
    """Remove the trailing PROPER/REPACK/RERIP run, keeping title words intact."""

    if not value:
        return ""
    stripped = _TRAILING_MARKERS_RE.sub("", value)
    return _WHITESPACE_RE.sub(" ", stripped).strip(" ._-")


def find_edition_markers(value: str) -> tuple[bool, bool]:
    """``(proper, repack)`` for markers anywhere in ``value``."""

    return _PROPER_RE.search(value) is not None, _REPACK_RE.search(value) is not None


def strip_leading_title(name: str, title: str) -> str:
    """Folded ``name`` without the leading words that spell ``title``.

    Returns the whole folded name when it does not start with the title.
    """

    name_words = normalize_text(name).split()
    title_words = normalize_text(title).split()
    if title_words and name_words[: len(title_words)] == title_words:
        name_words = name_words[len(title_words) :]
    return " ".join(name_words)
