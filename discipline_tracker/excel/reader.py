from __future__ import annotations

import io
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import pandas as pd

"""Spreadsheet decoder.

Reads the first worksheet of an uploaded class list into a raw cell grid:
a list of rows, each a list of untyped cells (str, int, float or None).
Blank rows above the first populated row are skipped, so row 0 is the
first row of the used range. Trailing empty cells are dropped and blank rows
inside the table become ``[]``, so the import heuristics see the same shape
regardless of how the sheet was padded.

Pandas' default NaN conversion is switched off: learner names such as "NA"
or "Null" must survive as text.
"""

__all__ = [
    "DecodeError",
    "SheetGrid",
    "read_cell_grid",
    "frame_to_grid",
    "cell_text",
]


class DecodeError(Exception):
    """Raised when file bytes cannot be decoded as a spreadsheet."""


@dataclass
class SheetGrid:
    sheet_name: str
    rows: list[list[Any]]


def cell_text(value: Any) -> str:
    """Coerce a raw cell to trimmed text; empty and NaN cells become ``""``."""
    if value is None:
        return ""
    if isinstance(value, float):
        if math.isnan(value):
            return ""
        if value.is_integer():
            # numeric cells come back as floats when the column has blanks
            return str(int(value))
    return str(value).strip()


def _is_blank(value: Any) -> bool:
    return cell_text(value) == ""


def frame_to_grid(df: pd.DataFrame) -> list[list[Any]]:
    """Convert a header-less DataFrame into a cell grid."""
    grid: list[list[Any]] = []
    for raw in df.itertuples(index=False, name=None):
        row = [None if _is_blank(v) else v for v in raw]
        while row and row[-1] is None:
            row.pop()
        if not row and not grid:
            continue  # leading blank rows
        grid.append(row)
    return grid


def read_cell_grid(source: Path | bytes) -> SheetGrid:
    """Decode the first sheet of a workbook.

    Parameters
    ----------
    source: spreadsheet path, or the raw uploaded bytes

    Raises
    ------
    DecodeError: the bytes are not a readable workbook, or it has no sheets
    """
    target: Any = io.BytesIO(source) if isinstance(source, bytes) else source
    try:
        xls = pd.ExcelFile(target)
        if not xls.sheet_names:
            raise DecodeError("workbook has no sheets")
        first = xls.sheet_names[0]
        df = xls.parse(first, header=None, keep_default_na=False)
    except DecodeError:
        raise
    except Exception as e:
        raise DecodeError(f"cannot read spreadsheet: {e}") from e
    return SheetGrid(sheet_name=str(first), rows=frame_to_grid(df))
