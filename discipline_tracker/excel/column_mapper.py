from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Any

from .reader import cell_text

"""Column mapping for class-list header rows.

Two layouts are recognised:

* structured: separate surname and first-name columns (typical school
  administration exports);
* fallback: one free-text name column plus an optional grade column.

Each lookup is an ordered pattern list. Patterns are tried in priority order
and, for each pattern, columns left to right, so a more specific pattern
("first name") wins over a generic one ("name") wherever it sits.
"""

__all__ = [
    "NOT_FOUND",
    "SURNAME_PATTERNS",
    "FIRST_NAME_PATTERNS",
    "NAME_PATTERNS",
    "GRADE_PATTERNS",
    "ColumnResolutionError",
    "ColumnMapping",
    "header_texts",
    "find_column",
    "find_structured_columns",
    "find_name_column",
    "find_grade_column",
    "map_columns",
]

logger = logging.getLogger(__name__)

NOT_FOUND = -1

SURNAME_PATTERNS = ("surname", "learner surname", "last name", "lastname")
FIRST_NAME_PATTERNS = ("first name", "firstname", "learner first name", "name", "given name")
NAME_PATTERNS = (
    "name", "student", "learner", "naam", "leerder",
    "surname", "firstname", "full name", "fullname",
)
GRADE_PATTERNS = ("grade", "class", "graad", "klas", "year", "level", "std", "standard")


class ColumnResolutionError(Exception):
    """Raised when no usable name column can be found in a header row."""


@dataclass(frozen=True)
class ColumnMapping:
    """Column indices resolved from a header row (-1 = not found)."""
    structured: bool
    surname_index: int = NOT_FOUND
    first_name_index: int = NOT_FOUND
    name_index: int = NOT_FOUND
    grade_index: int = NOT_FOUND


def header_texts(headers: Sequence[Any] | None) -> list[str]:
    return [cell_text(h).lower() for h in headers or []]


def find_column(
    texts: Sequence[str],
    patterns: Iterable[str],
    *,
    exact: bool = False,
    exclude: Iterable[int] = (),
) -> int:
    """Return the index of the first column matching the highest-priority pattern."""
    skip = set(exclude)
    for pattern in patterns:
        for idx, text in enumerate(texts):
            if idx in skip or not text:
                continue
            if (text == pattern) if exact else (pattern in text):
                return idx
    return NOT_FOUND


def find_structured_columns(headers: Sequence[Any] | None) -> tuple[int, int]:
    """Locate (surname, first name) columns; either may be -1.

    "Surname" contains "name", so the surname column is never reused as the
    first-name column.
    """
    texts = header_texts(headers)
    surname = find_column(texts, SURNAME_PATTERNS)
    exclude = (surname,) if surname != NOT_FOUND else ()
    first_name = find_column(texts, FIRST_NAME_PATTERNS, exclude=exclude)
    return surname, first_name


def find_name_column(headers: Sequence[Any] | None) -> int:
    texts = header_texts(headers)
    index = find_column(texts, NAME_PATTERNS, exact=True)
    if index == NOT_FOUND:
        index = find_column(texts, NAME_PATTERNS)
    if index == NOT_FOUND and texts:
        logger.debug("using first column %r as name column", texts[0])
        index = 0
    return index


def find_grade_column(headers: Sequence[Any] | None, name_index: int = NOT_FOUND) -> int:
    texts = header_texts(headers)
    exclude = (name_index,) if name_index != NOT_FOUND else ()
    index = find_column(texts, GRADE_PATTERNS, exclude=exclude)
    if index == NOT_FOUND and len(texts) > 1 and name_index != 1:
        # column 1 already holds the names, so the grade stays unresolved
        logger.debug("using second column %r as grade column", texts[1])
        index = 1
    return index


def map_columns(headers: Sequence[Any] | None) -> ColumnMapping:
    """Resolve the column layout of a header row.

    Raises:
        ColumnResolutionError: neither the structured layout nor a name column
            could be found (only possible for an empty header row)
    """
    surname, first_name = find_structured_columns(headers)
    if surname != NOT_FOUND and first_name != NOT_FOUND:
        logger.debug("structured layout surname=%d first_name=%d", surname, first_name)
        return ColumnMapping(structured=True, surname_index=surname, first_name_index=first_name)

    name = find_name_column(headers)
    if name == NOT_FOUND:
        available = ", ".join(cell_text(h) for h in headers or [])
        raise ColumnResolutionError(
            f"Name columns not found. Available columns: {available}. "
            "Please ensure columns contain 'Surname/Name' and 'First Name' or similar."
        )
    grade = find_grade_column(headers, name_index=name)
    logger.debug("fallback layout name=%d grade=%d", name, grade)
    return ColumnMapping(structured=False, name_index=name, grade_index=grade)
