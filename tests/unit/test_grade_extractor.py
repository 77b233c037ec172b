from __future__ import annotations

import pytest

from discipline_tracker.excel.grade_extractor import extract_grade, extract_grade_from_text


@pytest.mark.parametrize(
    "text, expected",
    [
        ("Class: 7A", "7A"),
        ("Grade 07", "07"),
        ("GRADE 12b", "12b"),
        ("7A - NG NXUMALO", "7A"),
        ("Register 7A-NXUMALO", "7A"),
        ("Learner list", ""),
        ("", ""),
    ],
)
def test_extract_grade_from_text(text: str, expected: str):
    assert extract_grade_from_text(text) == expected


def test_first_matching_cell_wins():
    rows = [["SUNNYSIDE PRIMARY", "Term 1"], ["Class: 6B"], ["Grade 7A"]]
    assert extract_grade(rows) == "6B"


def test_no_digit_token_returns_empty():
    assert extract_grade([["Class list"], [None, "Teacher: Mr Smith"]]) == ""


def test_blank_and_missing_rows():
    assert extract_grade([None, [], [None, "  "]]) == ""
