from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path

"""UploadFile domain model and FileStatus enum.

An UploadFile is the outcome of importing one class-list spreadsheet: the
whole file either succeeded or failed.
"""


class FileStatus(Enum):
    SUCCESS = "success"
    FAILED = "failed"


@dataclass(frozen=True)
class UploadFile:
    """Import outcome for a single uploaded spreadsheet."""
    path: Path                           # Full path to the spreadsheet
    name: str                            # File name shown in reports
    status: FileStatus
    sheet: str | None = None             # Name of the decoded (first) sheet
    start_time: datetime | None = None   # Processing start (UTC)
    end_time: datetime | None = None     # Processing end (UTC)
    new_learners: int = 0                # Learners created from this file
    error: str | None = None             # Failure reason summary
