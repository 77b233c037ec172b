from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any

from .column_mapper import NOT_FOUND, find_structured_columns
from .reader import cell_text

"""Header row detection for class-list worksheets.

Class-list exports often carry a title/metadata block above the real table.
The locator runs an ordered list of rules over the first ``scan_rows`` rows;
the first rule that accepts any row decides the header index.

1. keyword density: a row of at least 3 cells whose joined, lower-cased text
   contains at least 3 of ``HEADER_KEYWORDS``;
2. surname/first-name pair: a row below the first one that holds separate
   surname and first-name headings (short two-column exports with a title
   line such as "Grade 7A" above them).

-1 means no structured header: callers treat row 0 as the header row.
"""

__all__ = [
    "HEADER_KEYWORDS",
    "MIN_KEYWORD_MATCHES",
    "MIN_HEADER_CELLS",
    "DEFAULT_SCAN_ROWS",
    "HeaderRule",
    "HEADER_RULES",
    "keyword_matches",
    "locate_header_row",
]

logger = logging.getLogger(__name__)

HEADER_KEYWORDS = ("number", "accession", "learner", "surname", "firstname", "first name", "gender")
MIN_KEYWORD_MATCHES = 3
MIN_HEADER_CELLS = 3
DEFAULT_SCAN_ROWS = 10


@dataclass(frozen=True)
class HeaderRule:
    name: str
    accepts: Callable[[int, Sequence[Any]], bool]  # (row index, row) -> is header


def keyword_matches(row: Sequence[Any]) -> int:
    """Count how many header keywords occur in the joined row text."""
    text = " ".join(cell_text(c).lower() for c in row)
    return sum(1 for k in HEADER_KEYWORDS if k in text)


def _keyword_density(index: int, row: Sequence[Any]) -> bool:
    return len(row) >= MIN_HEADER_CELLS and keyword_matches(row) >= MIN_KEYWORD_MATCHES


def _surname_first_name_pair(index: int, row: Sequence[Any]) -> bool:
    if index == 0:
        return False
    surname, first_name = find_structured_columns(row)
    return surname != NOT_FOUND and first_name != NOT_FOUND


HEADER_RULES: tuple[HeaderRule, ...] = (
    HeaderRule("keyword_density", _keyword_density),
    HeaderRule("surname_first_name_pair", _surname_first_name_pair),
)


def locate_header_row(
    grid: Sequence[Sequence[Any] | None],
    scan_rows: int = DEFAULT_SCAN_ROWS,
    rules: Sequence[HeaderRule] = HEADER_RULES,
) -> int:
    """Return the index of the class-list header row, or -1 when none is found."""
    limit = min(len(grid), scan_rows)
    for rule in rules:
        for i in range(limit):
            row = grid[i]
            if not row:
                continue
            if rule.accepts(i, row):
                logger.debug("header row %d found by rule=%s: %r", i, rule.name, list(row))
                return i
    return NOT_FOUND
