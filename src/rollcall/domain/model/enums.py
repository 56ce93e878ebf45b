"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class CanonicalField(StrEnum):
    """Attributes every imported registry record ultimately populates."""

    NAME = "name"
    ROLL_NUMBER = "roll_number"
    EMAIL = "email"
    DEPARTMENT = "department"
    CGPA = "cgpa"
    BACKLOGS = "backlogs"
    PASSOUT_YEAR = "passout_year"

    @property
    def label(self) -> str:
        return _LABELS[self]


_LABELS: dict[CanonicalField, str] = {
    CanonicalField.NAME: "Name",
    CanonicalField.ROLL_NUMBER: "Roll Number",
    CanonicalField.EMAIL: "Email",
    CanonicalField.DEPARTMENT: "Department",
    CanonicalField.CGPA: "CGPA",
    CanonicalField.BACKLOGS: "Backlogs",
    CanonicalField.PASSOUT_YEAR: "Passout Year",
}

REQUIRED_FIELDS: tuple[CanonicalField, ...] = (
    CanonicalField.NAME,
    CanonicalField.ROLL_NUMBER,
    CanonicalField.EMAIL,
)


class AuditAction(StrEnum):
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    WHITELIST = "WHITELIST"


class AuditEntityType(StrEnum):
    STUDENT_REGISTRY = "student_registry"
    STUDENT = "student"
    DEPARTMENT = "department"


class FileFormat(StrEnum):
    CSV = "csv"
    XLSX = "xlsx"
