"""Write registry records to an XLSX workbook."""

from __future__ import annotations

from typing import TYPE_CHECKING

from openpyxl import Workbook

if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import Path

    from rollcall.domain.model import StudentRecord

SHEET_TITLE = "Student Registry"
EXPORT_HEADERS: tuple[str, ...] = (
    "Name",
    "Roll Number",
    "Email",
    "Department",
    "UG CGPA",
    "Backlogs",
    "Passout Year",
    "Whitelisted",
)


def export_row(student: StudentRecord) -> tuple[object, ...]:
    return (
        student.name,
        student.roll_number,
        student.email,
        student.department,
        student.cgpa,
        student.backlogs,
        student.passout_year,
        "Yes" if student.is_whitelisted else "No",
    )


def write_registry_workbook(students: Iterable[StudentRecord], path: Path) -> int:
    """Write ``students`` to ``path`` and return how many rows were written.

    The header row uses spellings the importer resolves, so an exported file
    can be edited and imported again.
    """

    workbook = Workbook(write_only=True)
    sheet = workbook.create_sheet(SHEET_TITLE)
    sheet.append(EXPORT_HEADERS)
    count = 0
    for student in students:
        sheet.append(export_row(student))
        count += 1
    workbook.save(path)
    return count
