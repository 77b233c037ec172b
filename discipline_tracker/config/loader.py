from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from ..models.config_models import DatabaseConfig, TrackerConfig
from ..models.learner import DEFAULT_CATEGORIES, Category

"""Config loader.

Responsibilities:
- Load the YAML config (default ``config/tracker.yml``)
- Validate it against ``config_schema.json`` (unknown keys are rejected)
- Apply defaults and build a TrackerConfig
"""

__all__ = [
    "DEFAULT_CONFIG_PATH",
    "SCHEMA_PATH",
    "ConfigError",
    "load_config",
]

DEFAULT_CONFIG_PATH = Path("config/tracker.yml")
SCHEMA_PATH = Path(__file__).parent / "config_schema.json"


class ConfigError(Exception):
    pass


def _validate_config_schema(data: Any) -> None:
    """Validate config data against the JSON schema.

    Raises:
        ConfigError: the schema file is missing or unreadable, or the data
            violates it (unknown keys, wrong types, out-of-range values)
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")
    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def _build_categories(raw: dict[str, Any] | None) -> dict[str, Category]:
    categories = dict(DEFAULT_CATEGORIES)
    for key, spec in (raw or {}).items():
        k = str(key).strip().lower()
        categories[k] = Category(key=k, name=spec["name"], points=int(spec["points"]))
    return categories


def load_config(path: Path = DEFAULT_CONFIG_PATH) -> TrackerConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e

    _validate_config_schema(data)

    db_raw = data.get("database") or {}
    db = DatabaseConfig(
        host=db_raw.get("host"),
        port=db_raw.get("port"),
        user=db_raw.get("user"),
        password=db_raw.get("password"),
        database=db_raw.get("database"),
        dsn=db_raw.get("dsn"),
        enabled=db_raw.get("enabled", True),
    )
    defaults = TrackerConfig()
    return TrackerConfig(
        source_directory=data.get("source_directory"),
        snapshot_directory=data.get("snapshot_directory", defaults.snapshot_directory),
        flag_threshold=data.get("flag_threshold", defaults.flag_threshold),
        warning_ratio=float(data.get("warning_ratio", defaults.warning_ratio)),
        header_scan_rows=data.get("header_scan_rows", defaults.header_scan_rows),
        categories=_build_categories(data.get("categories")),
        database=db,
    )
