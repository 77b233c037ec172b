# Shared pytest fixtures
from __future__ import annotations

from pathlib import Path
from typing import Any

import pandas as pd
import pytest

from discipline_tracker.logging.init import reset_logging
from discipline_tracker.models.learner import LearnerRecord, dedup_key
from discipline_tracker.store.learner_store import LearnerStore


@pytest.fixture()
def temp_workdir(tmp_path: Path, monkeypatch) -> Path:
    (tmp_path / "config").mkdir()
    (tmp_path / "data").mkdir()
    (tmp_path / "logs").mkdir()
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("DISABLE_DB_CONNECT", "1")
    reset_logging()
    yield tmp_path
    reset_logging()


@pytest.fixture()
def sample_config_yaml() -> str:
    return """source_directory: ./data
snapshot_directory: ./snapshots
flag_threshold: 50
header_scan_rows: 10
database:
  enabled: true
  host: localhost
  port: 5432
  user: tracker
  password: secret
  database: discipline
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "tracker.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


def _make_excel(directory: Path, name: str, rows: list[list[Any]], sheet: str = "Sheet1") -> Path:
    path = directory / name
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        pd.DataFrame(rows).to_excel(writer, sheet_name=sheet, header=False, index=False)
    return path


@pytest.fixture()
def make_excel():
    """Factory writing a header-less workbook, one list per row."""
    return _make_excel


@pytest.fixture()
def class_list_rows() -> list[list[Any]]:
    return [
        ["Grade 7A"],
        ["Surname", "First Name"],
        ["Nxumalo", "Mandla"],
        ["Dlamini", "Thando"],
    ]


@pytest.fixture()
def store_with_learner() -> tuple[LearnerStore, str]:
    store = LearnerStore(flag_threshold=50)
    learner = LearnerRecord(name="Nxumalo, Mandla", grade="7A")
    key = dedup_key(learner.name, learner.grade)
    store.add_if_absent(key, learner)
    return store, key
