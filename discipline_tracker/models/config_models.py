from __future__ import annotations

from dataclasses import dataclass, field

from .learner import DEFAULT_CATEGORIES, DEFAULT_FLAG_THRESHOLD, Category

"""Config dataclasses for the discipline tracker.

These are built by ``discipline_tracker.config.loader`` from the YAML file and
passed explicitly to the services that need them.
"""


@dataclass(frozen=True)
class DatabaseConfig:
    """Remote store connection configuration.

    Used as fallback when environment variables are not set.
    Environment variables take precedence over these values.
    """
    host: str | None = None
    port: int | None = None
    user: str | None = None
    password: str | None = None
    database: str | None = None
    dsn: str | None = None
    enabled: bool = True  # False = always run on local snapshots


@dataclass(frozen=True)
class TrackerConfig:
    """Root configuration object for a tracker session."""
    source_directory: str | None = None  # Directory scanned when no files are given
    snapshot_directory: str = "./snapshots"  # Local snapshot slots live here
    flag_threshold: int = DEFAULT_FLAG_THRESHOLD
    warning_ratio: float = 0.7  # fraction of flag_threshold shown as "warning"
    header_scan_rows: int = 10  # leading rows inspected for a class-list header
    categories: dict[str, Category] = field(default_factory=lambda: dict(DEFAULT_CATEGORIES))
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
