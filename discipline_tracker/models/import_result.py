from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

"""Batch import result models."""


@dataclass(frozen=True)
class FileStat:
    """Per-file import statistics."""
    file_name: str
    status: str  # success/failed
    new_learners: int
    elapsed_seconds: float


@dataclass(frozen=True)
class FailedFile:
    """A file skipped by the batch, with the reason it failed."""
    name: str
    reason: str


@dataclass(frozen=True)
class ImportResult:
    """Aggregated results of a batch import, used for the SUMMARY line."""
    success_files: int
    failed_files: list[FailedFile]
    total_new_learners: int
    start_time: datetime
    end_time: datetime
    elapsed_seconds: float
    file_stats: list[FileStat] = field(default_factory=list)

    @property
    def total_files(self) -> int:
        return self.success_files + len(self.failed_files)
