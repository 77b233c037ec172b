from __future__ import annotations

import json
import re

from discipline_tracker.logging.error_log import ErrorLogBuffer
from discipline_tracker.models.error_record import FILE_LEVEL_SHEET, ErrorRecord


def test_record_defaults_to_file_level():
    rec = ErrorRecord.create("7A.xlsx", "DECODE_ERROR", "not a workbook")
    assert rec.sheet == FILE_LEVEL_SHEET
    assert rec.timestamp.endswith("Z")


def test_json_line_has_exact_keys():
    rec = ErrorRecord.create("7A.xlsx", "COLUMN_RESOLUTION_ERROR", "Name columns not found", sheet="Sheet1")
    data = json.loads(rec.to_json_line())
    assert set(data) == {"timestamp", "file", "sheet", "error_type", "message"}
    assert data["sheet"] == "Sheet1"


def test_flush_without_records_writes_nothing(tmp_path):
    buf = ErrorLogBuffer(logs_dir=tmp_path / "logs")
    assert buf.flush() is None
    assert not (tmp_path / "logs").exists()


def test_flush_writes_json_lines(tmp_path):
    buf = ErrorLogBuffer(logs_dir=tmp_path / "logs")
    buf.append(ErrorRecord.create("a.xlsx", "DECODE_ERROR", "bad zip"))
    buf.append(ErrorRecord.create("b.xlsx", "UNEXPECTED_ERROR", "boom"))
    assert len(buf) == 2

    path = buf.flush()
    assert re.fullmatch(r"import-errors-\d{8}-\d{6}\.log", path.name)
    lines = path.read_text(encoding="utf-8").splitlines()
    assert [json.loads(line)["file"] for line in lines] == ["a.xlsx", "b.xlsx"]
    assert len(buf) == 0 and buf.records == []


def test_flush_appends_to_same_file(tmp_path):
    buf = ErrorLogBuffer(logs_dir=tmp_path)
    buf.append(ErrorRecord.create("a.xlsx", "DECODE_ERROR", "x"))
    first = buf.flush()
    buf.append(ErrorRecord.create("b.xlsx", "DECODE_ERROR", "y"))
    assert buf.flush() == first
    assert len(first.read_text(encoding="utf-8").splitlines()) == 2
