from __future__ import annotations

import logging

import pytest

from rollcall.adapters.spreadsheet import (
    DEFAULT_ALIAS_TABLE,
    normalize_header,
    resolve_columns,
)
from rollcall.adapters.spreadsheet.headers import build_alias_table
from rollcall.domain.model import CanonicalField
from rollcall.domain.registry_import import MissingRequiredColumnsError


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("Roll No.", "rollno"),
        ("ROLL_NO", "rollno"),
        ("  E-mail ID ", "emailid"),
        ("UG CGPA", "ugcgpa"),
        (None, ""),
        (2024, "2024"),
    ],
)
def test_normalize_header(raw: object, expected: str) -> None:
    assert normalize_header(raw) == expected


def test_resolve_columns_recognises_aliases() -> None:
    header = ("Student Name", "H.T. No", "Email Address", "Branch", "GPA", "Year of Passing")

    column_map = resolve_columns(header)

    assert column_map.index_of(CanonicalField.NAME) == 0
    assert column_map.index_of(CanonicalField.ROLL_NUMBER) == 1
    assert column_map.index_of(CanonicalField.EMAIL) == 2
    assert column_map.index_of(CanonicalField.DEPARTMENT) == 3
    assert column_map.index_of(CanonicalField.CGPA) == 4
    assert column_map.index_of(CanonicalField.PASSOUT_YEAR) == 5
    assert CanonicalField.BACKLOGS not in column_map


def test_resolve_columns_first_match_wins() -> None:
    header = ("Name", "Roll No", "Email", "College Email")

    column_map = resolve_columns(header)

    assert column_map.index_of(CanonicalField.EMAIL) == 2


def test_resolve_columns_reports_every_missing_required_field() -> None:
    with pytest.raises(MissingRequiredColumnsError) as excinfo:
        resolve_columns(("Name", "Department"))

    assert excinfo.value.missing == (CanonicalField.ROLL_NUMBER, CanonicalField.EMAIL)
    assert str(excinfo.value) == "Missing columns: Roll Number, Email"


def test_resolve_columns_logs_ignored_columns(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.INFO, logger="rollcall.adapters.spreadsheet.headers"):
        resolve_columns(("Name", "Roll No", "Email", "Hostel"))

    assert "Hostel" in caplog.text


def test_custom_alias_table() -> None:
    table = build_alias_table(
        {
            **DEFAULT_ALIAS_TABLE,
            CanonicalField.ROLL_NUMBER: ("Registration No",),
        }
    )

    column_map = resolve_columns(("Name", "Registration No.", "Email"), table)

    assert column_map.index_of(CanonicalField.ROLL_NUMBER) == 1


@pytest.mark.parametrize("spelling", ["Roll No.", "ROLLNUMBER", "Roll_Number", "rollno", "HT No"])
def test_roll_number_spellings(spelling: str) -> None:
    column_map = resolve_columns(("Name", spelling, "Email"))

    assert column_map.index_of(CanonicalField.ROLL_NUMBER) == 1
