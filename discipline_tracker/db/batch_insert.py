from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Any

from psycopg2.extras import execute_values

"""Batched INSERT / upsert helper built on ``psycopg2.extras.execute_values``."""

__all__ = [
    "BatchInsertError",
    "batch_insert",
]


class BatchInsertError(Exception):
    pass


def batch_insert(
    cursor: Any,
    table: str,
    columns: Sequence[str],
    rows: Iterable[Sequence[Any]],
    conflict_column: str | None = None,
    page_size: int = 1000,
) -> int:
    """Insert ``rows`` into ``table`` in pages; returns the number of rows sent.

    Parameters
    ----------
    cursor: psycopg2 cursor (transaction handled by the caller)
    table: target table name (trusted, not user input)
    columns: insert columns, in row order
    rows: row value sequences
    conflict_column: when set, existing rows with the same value are updated
        (``ON CONFLICT (...) DO UPDATE``) instead of failing
    page_size: execute_values page size
    """
    rows_list = list(rows)
    if not rows_list:
        return 0

    cols_sql = ",".join(f'"{c}"' for c in columns)
    sql = f"INSERT INTO {table} ({cols_sql}) VALUES %s"
    if conflict_column:
        updates = ",".join(f'"{c}"=EXCLUDED."{c}"' for c in columns if c != conflict_column)
        sql += f' ON CONFLICT ("{conflict_column}") DO UPDATE SET {updates}'

    try:
        execute_values(cursor, sql, rows_list, page_size=page_size)
    except Exception as e:
        raise BatchInsertError(str(e)) from e
    return len(rows_list)
