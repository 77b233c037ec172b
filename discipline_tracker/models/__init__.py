"""Domain models for the discipline tracker."""

from .config_models import DatabaseConfig, TrackerConfig
from .import_result import FailedFile, FileStat, ImportResult
from .learner import Category, LearnerRecord, TransgressionEvent, dedup_key

__all__ = [
    # Configuration models
    "DatabaseConfig",
    "TrackerConfig",
    # Learner models
    "Category",
    "LearnerRecord",
    "TransgressionEvent",
    "dedup_key",
    # Import results
    "FailedFile",
    "FileStat",
    "ImportResult",
]
