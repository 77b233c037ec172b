from __future__ import annotations

from pathlib import Path

import pytest

from discipline_tracker.config.loader import ConfigError, load_config


def _write(tmp_path: Path, text: str) -> Path:
    p = tmp_path / "tracker.yml"
    p.write_text(text, encoding="utf-8")
    return p


def test_loads_sample_config(write_config):
    cfg = load_config(write_config)
    assert cfg.source_directory == "./data"
    assert cfg.snapshot_directory == "./snapshots"
    assert cfg.flag_threshold == 50
    assert cfg.header_scan_rows == 10
    assert cfg.database.host == "localhost"
    assert cfg.database.port == 5432
    assert cfg.database.enabled is True
    assert set(cfg.categories) == {"homework", "late", "books", "behavior", "custom"}


def test_defaults_for_empty_file(tmp_path):
    cfg = load_config(_write(tmp_path, ""))
    assert cfg.source_directory is None
    assert cfg.flag_threshold == 50
    assert cfg.warning_ratio == 0.7
    assert cfg.database.enabled is True


def test_extra_categories_merge_with_defaults(tmp_path):
    cfg = load_config(
        _write(
            tmp_path,
            """categories:
  Uniform:
    name: Uniform not worn
    points: 5
  late:
    name: Late coming
    points: 20
""",
        )
    )
    assert cfg.categories["uniform"].points == 5
    assert cfg.categories["late"].points == 20
    assert cfg.categories["behavior"].points == 15


def test_missing_file(tmp_path):
    with pytest.raises(ConfigError, match="config file not found"):
        load_config(tmp_path / "nope.yml")


def test_invalid_yaml(tmp_path):
    with pytest.raises(ConfigError, match="invalid yaml"):
        load_config(_write(tmp_path, "source_directory: [unclosed\n"))


@pytest.mark.parametrize(
    "text",
    [
        "unknown_key: 1\n",
        "flag_threshold: 0\n",
        "flag_threshold: fifty\n",
        "warning_ratio: 1.5\n",
        "database:\n  sslmode: require\n",
        "categories:\n  uniform:\n    name: Uniform\n",
    ],
)
def test_schema_violations(tmp_path, text):
    with pytest.raises(ConfigError, match="config validation failed"):
        load_config(_write(tmp_path, text))
