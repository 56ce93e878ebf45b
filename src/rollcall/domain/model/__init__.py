"""Domain model for the student registry."""

from __future__ import annotations

from .audit import AuditEntry
from .enums import REQUIRED_FIELDS, AuditAction, AuditEntityType, CanonicalField, FileFormat
from .student import StudentRecord, roll_number_key

__all__ = [
    "REQUIRED_FIELDS",
    "AuditAction",
    "AuditEntityType",
    "AuditEntry",
    "CanonicalField",
    "FileFormat",
    "StudentRecord",
    "roll_number_key",
]
