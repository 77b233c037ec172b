from __future__ import annotations

import pytest

from discipline_tracker.excel.column_mapper import (
    NOT_FOUND,
    ColumnResolutionError,
    find_column,
    find_grade_column,
    find_name_column,
    find_structured_columns,
    map_columns,
)


def test_structured_surname_and_first_name():
    mapping = map_columns(["Surname", "First Name", "Gender"])
    assert mapping.structured is True
    assert (mapping.surname_index, mapping.first_name_index) == (0, 1)


def test_structured_with_prefixed_headers():
    mapping = map_columns(["No", "Learner Surname", "Learner First Name", "Gender"])
    assert mapping.structured is True
    assert (mapping.surname_index, mapping.first_name_index) == (1, 2)


def test_surname_column_not_reused_as_first_name():
    # "surname" contains "name"
    assert find_structured_columns(["Surname", "Gender"]) == (0, NOT_FOUND)


def test_specific_first_name_pattern_beats_generic_name():
    assert find_structured_columns(["Surname", "Preferred Name", "First Name"]) == (0, 2)


def test_fallback_full_name_and_grade():
    mapping = map_columns(["Full Name", "Grade"])
    assert mapping.structured is False
    assert mapping.name_index == 0
    assert mapping.grade_index == 1


def test_fallback_exact_match_preferred_over_substring():
    assert find_name_column(["Learner number", "Name"]) == 1


def test_fallback_substring_match():
    assert find_name_column(["No", "Student name"]) == 1


def test_fallback_name_defaults_to_first_column():
    mapping = map_columns(["Pupil", "Klas"])
    assert mapping.name_index == 0
    assert mapping.grade_index == 1


def test_afrikaans_headers():
    mapping = map_columns(["Nr", "Naam", "Graad"])
    assert (mapping.name_index, mapping.grade_index) == (1, 2)


def test_grade_defaults_to_second_column():
    assert find_grade_column(["Name", "Teacher"], name_index=0) == 1


def test_grade_not_found_with_single_column():
    mapping = map_columns(["Name"])
    assert mapping.name_index == 0
    assert mapping.grade_index == NOT_FOUND


def test_grade_default_never_points_at_name_column():
    assert find_grade_column(["No", "Learner"], name_index=1) == NOT_FOUND


def test_empty_header_row_fails_with_available_columns():
    with pytest.raises(ColumnResolutionError, match="Name columns not found. Available columns: "):
        map_columns([])


def test_find_column_respects_exclusions():
    texts = ["surname", "first name"]
    assert find_column(texts, ["name"]) == 0
    assert find_column(texts, ["name"], exclude=[0]) == 1
    assert find_column(texts, ["name"], exact=True) == NOT_FOUND


def test_non_string_and_blank_header_cells():
    mapping = map_columns([None, 2024, "Name", float("nan")])
    assert mapping.structured is False
    assert mapping.name_index == 2
