from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import UTC, datetime
from pathlib import Path

from ..excel.column_mapper import ColumnResolutionError
from ..excel.header_locator import DEFAULT_SCAN_ROWS
from ..excel.reader import DecodeError, read_cell_grid
from ..logging.error_log import ErrorLogBuffer
from ..models.error_record import ErrorRecord
from ..models.import_result import FailedFile, FileStat, ImportResult
from ..models.upload_file import FileStatus, UploadFile
from ..store.learner_store import LearnerStore
from .progress import ImportProgress
from .record_builder import import_grid

"""Batch import orchestration.

Files are processed one at a time, in the order given. Each file either
succeeds as a whole or fails as a whole (the record builder stages new
learners until the sheet is read); a failed file is recorded and the batch
moves on. Only problems with the batch itself (missing source directory)
raise ``ProcessingError``.
"""

__all__ = [
    "SPREADSHEET_SUFFIXES",
    "ProcessingError",
    "scan_class_lists",
    "import_files",
]

logger = logging.getLogger(__name__)

SPREADSHEET_SUFFIXES = (".xlsx", ".xlsm")


class ProcessingError(Exception):
    """Fatal batch error."""


def scan_class_lists(directory: Path) -> list[Path]:
    """List spreadsheets in ``directory`` (non-recursive, sorted by name).

    Raises:
        ProcessingError: the directory doesn't exist or can't be read
    """
    if not directory.exists():
        raise ProcessingError(f"Directory not found: {directory}")
    if not directory.is_dir():
        raise ProcessingError(f"Path is not a directory: {directory}")
    try:
        return sorted(
            p
            for p in directory.iterdir()
            if p.is_file() and p.suffix.lower() in SPREADSHEET_SUFFIXES and not p.name.startswith("~$")
        )
    except OSError as e:
        raise ProcessingError(f"Error reading directory {directory}: {e}") from e


def import_files(
    paths: Sequence[Path],
    store: LearnerStore,
    scan_rows: int = DEFAULT_SCAN_ROWS,
    error_log: ErrorLogBuffer | None = None,
) -> ImportResult:
    """Import class lists into ``store``.

    Args:
        paths: Spreadsheets to import, processed in order
        store: Learner store, mutated in place
        scan_rows: Leading rows inspected for a header row
        error_log: Buffer receiving one record per failed file (flushed here)

    Returns:
        ImportResult with per-file stats, failed files and the new learner count
    """
    start_time = datetime.now(UTC)
    error_log = error_log if error_log is not None else ErrorLogBuffer()

    file_stats: list[FileStat] = []
    failed: list[FailedFile] = []

    with ImportProgress(len(paths)) as progress:
        for path in paths:
            progress.begin(path)
            logger.info("processing file %d/%d: %s", progress.position, len(paths), path.name)

            upload = _import_single_file(path, store, scan_rows, error_log)
            ok = upload.status == FileStatus.SUCCESS
            if ok:
                logger.info("file %s processed: %d new learners", upload.name, upload.new_learners)
            else:
                failed.append(FailedFile(name=upload.name, reason=upload.error or "unknown error"))
                logger.error("file %s failed: %s", upload.name, upload.error)
            progress.done(ok, upload.new_learners)

            elapsed = 0.0
            if upload.start_time and upload.end_time:
                elapsed = (upload.end_time - upload.start_time).total_seconds()
            file_stats.append(
                FileStat(
                    file_name=upload.name,
                    status=upload.status.value,
                    new_learners=upload.new_learners,
                    elapsed_seconds=elapsed,
                )
            )

    try:
        log_path = error_log.flush()
        if log_path is not None:
            logger.info("import errors written to %s", log_path)
    except OSError as e:
        logger.warning("could not write import error log: %s", e)

    end_time = datetime.now(UTC)
    return ImportResult(
        success_files=progress.succeeded,
        failed_files=failed,
        total_new_learners=progress.new_learners,
        start_time=start_time,
        end_time=end_time,
        elapsed_seconds=(end_time - start_time).total_seconds(),
        file_stats=file_stats,
    )


def _import_single_file(
    path: Path, store: LearnerStore, scan_rows: int, error_log: ErrorLogBuffer
) -> UploadFile:
    start_time = datetime.now(UTC)
    sheet_name: str | None = None
    try:
        sheet = read_cell_grid(path)
        sheet_name = sheet.sheet_name
        created = import_grid(sheet.rows, store, scan_rows=scan_rows)
    except Exception as e:
        if isinstance(e, DecodeError):
            error_type = "DECODE_ERROR"
        elif isinstance(e, ColumnResolutionError):
            error_type = "COLUMN_RESOLUTION_ERROR"
        else:
            error_type = "UNEXPECTED_ERROR"
            logger.debug("unexpected error importing %s", path.name, exc_info=True)
        if sheet_name:
            record = ErrorRecord.create(path.name, error_type, str(e), sheet=sheet_name)
        else:
            record = ErrorRecord.create(path.name, error_type, str(e))
        error_log.append(record)
        return UploadFile(
            path=path,
            name=path.name,
            sheet=sheet_name,
            start_time=start_time,
            end_time=datetime.now(UTC),
            status=FileStatus.FAILED,
            error=str(e),
        )

    return UploadFile(
        path=path,
        name=path.name,
        sheet=sheet_name,
        start_time=start_time,
        end_time=datetime.now(UTC),
        status=FileStatus.SUCCESS,
        new_learners=created,
    )
