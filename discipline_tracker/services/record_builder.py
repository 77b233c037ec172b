from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from ..excel.column_mapper import NOT_FOUND, ColumnMapping, map_columns
from ..excel.grade_extractor import extract_grade
from ..excel.header_locator import DEFAULT_SCAN_ROWS, locate_header_row
from ..excel.reader import cell_text
from ..models.learner import LearnerRecord, dedup_key, utc_now_iso
from ..store.learner_store import LearnerStore

"""Learner record construction from a decoded class list.

``import_grid`` runs the whole pipeline for one sheet:
header locator -> column mapper + grade extractor -> ``build_learners``.

New learners are staged while the rows are walked and inserted into the
store only once the sheet has been read, so a failure part-way through a
file leaves the store untouched. Re-importing an unchanged sheet creates
nothing (the dedup key of every row already exists).
"""

__all__ = [
    "MIN_NAME_LENGTH",
    "compose_name",
    "candidate_from_row",
    "build_learners",
    "import_grid",
]

logger = logging.getLogger(__name__)

MIN_NAME_LENGTH = 2  # shorter names are stray punctuation/initial cells


def _cell(row: Sequence[Any], index: int) -> str:
    if index == NOT_FOUND or index >= len(row):
        return ""
    return cell_text(row[index])


def compose_name(surname: str, first_name: str) -> str:
    """Compose "Surname, FirstName"; either part alone when the other is blank."""
    if surname and first_name:
        return f"{surname}, {first_name}"
    return surname or first_name


def candidate_from_row(
    row: Sequence[Any], mapping: ColumnMapping, header_grade: str = ""
) -> tuple[str, str] | None:
    """Return (name, grade) for a data row, or None when the row holds no learner."""
    if mapping.structured:
        name = compose_name(_cell(row, mapping.surname_index), _cell(row, mapping.first_name_index))
        grade = header_grade
    else:
        name = _cell(row, mapping.name_index)
        grade = header_grade
        if mapping.grade_index != NOT_FOUND:
            grade = _cell(row, mapping.grade_index) or header_grade
    if len(name) < MIN_NAME_LENGTH:
        return None
    return name, grade


def build_learners(
    grid: Sequence[Sequence[Any] | None],
    header_index: int,
    mapping: ColumnMapping,
    store: LearnerStore,
    header_grade: str = "",
) -> int:
    """Create learners for every data row below ``header_index``.

    Args:
        grid: Decoded cell grid
        header_index: Header row index, or -1 when row 0 is the header
        mapping: Column layout of the header row
        store: Learner store, mutated in place
        header_grade: Grade from the title block, used when a row has none

    Returns:
        Number of learners newly created in ``store``
    """
    start_row = header_index + 1 if header_index != NOT_FOUND else 1
    pending: dict[str, LearnerRecord] = {}
    for row in grid[start_row:]:
        if not row:
            continue
        candidate = candidate_from_row(row, mapping, header_grade)
        if candidate is None:
            continue
        name, grade = candidate
        key = dedup_key(name, grade)
        if key in store or key in pending:
            continue
        pending[key] = LearnerRecord(name=name, grade=grade, last_updated=utc_now_iso())

    created = 0
    for key, record in pending.items():
        if store.add_if_absent(key, record):
            created += 1
    logger.debug("created %d new learners", created)
    return created


def import_grid(
    grid: Sequence[Sequence[Any] | None],
    store: LearnerStore,
    scan_rows: int = DEFAULT_SCAN_ROWS,
) -> int:
    """Run header detection, column mapping and record building for one sheet.

    Raises:
        ColumnResolutionError: no usable name column in the header row
    """
    header_index = locate_header_row(grid, scan_rows=scan_rows)
    if header_index != NOT_FOUND:
        headers = grid[header_index]
    else:
        headers = grid[0] if grid else []
    logger.debug("header row=%d headers=%r", header_index, headers)

    mapping = map_columns(headers)
    header_grade = extract_grade(grid[:header_index]) if header_index > 0 else ""
    return build_learners(grid, header_index, mapping, store, header_grade)
