from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from typing import Any

from .reader import cell_text

"""Grade token extraction from the title block above a class-list header.

Matches text such as "Grade 07", "Class: 7A" or "7A - NG NXUMALO". Patterns
are tried per cell in priority order; the first capture wins. Headers with
several numbers (dates, years) may match loosely.
"""

__all__ = [
    "GRADE_PATTERNS",
    "extract_grade",
    "extract_grade_from_text",
]

logger = logging.getLogger(__name__)

GRADE_PATTERNS: tuple[re.Pattern[str], ...] = (
    # "Grade 7A", "Class: 7A"
    re.compile(r"(?:grade|class)[:\s]*(\d+[a-z]?)", re.IGNORECASE),
    # "7A - NG NXUMALO", "7A Mathematics"
    re.compile(r"^(\d+[a-z]?)\s*[-\s]", re.IGNORECASE),
    # "Register 7A-NXUMALO"
    re.compile(r"(\d+[A-Za-z]?)\s*-\s*[A-Z]+"),
)


def extract_grade_from_text(text: str) -> str:
    for pattern in GRADE_PATTERNS:
        m = pattern.search(text)
        if m:
            return m.group(1)
    return ""


def extract_grade(header_rows: Sequence[Sequence[Any] | None]) -> str:
    """Return the first grade token found in the given rows, or ``""``."""
    for row in header_rows:
        if not row:
            continue
        for cell in row:
            text = cell_text(cell)
            if not text:
                continue
            grade = extract_grade_from_text(text)
            if grade:
                logger.debug("extracted grade %r from header %r", grade, text)
                return grade
    return ""
