from __future__ import annotations

from ..models.import_result import ImportResult

"""SUMMARY line rendering for batch imports."""


def _format_seconds(value: float) -> str:
    if value == 0:
        return "0"
    if value == int(value):
        return str(int(value))
    if value < 0.01:
        # avoid scientific notation for very small values
        return f"{value:.6f}".rstrip("0").rstrip(".")
    return f"{value:.2f}"


def render_summary_line(result: ImportResult) -> str:
    """Render the batch SUMMARY line.

    Format:
    SUMMARY files={total} success={n} failed={n} new_learners={n} elapsed_sec={s}

    Examples:
        >>> from datetime import datetime, timezone
        >>> t = datetime(2024, 1, 1, tzinfo=timezone.utc)
        >>> result = ImportResult(
        ...     success_files=2, failed_files=[], total_new_learners=31,
        ...     start_time=t, end_time=t, elapsed_seconds=2.0,
        ... )
        >>> render_summary_line(result)
        'SUMMARY files=2 success=2 failed=0 new_learners=31 elapsed_sec=2'
    """
    total = result.total_files
    return (
        f"SUMMARY files={total} "
        f"success={result.success_files} "
        f"failed={len(result.failed_files)} "
        f"new_learners={result.total_new_learners} "
        f"elapsed_sec={_format_seconds(result.elapsed_seconds)}"
    )
