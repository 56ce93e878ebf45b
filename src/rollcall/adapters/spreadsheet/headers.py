"""Map human-authored header text onto canonical registry fields.

Comparison ignores case and every non-alphanumeric character, so ``"Roll No."``,
``"ROLL_NO"`` and ``"rollno"`` are the same header.
"""

from __future__ import annotations

import re
from logging import getLogger
from types import MappingProxyType
from typing import TYPE_CHECKING

from rollcall.domain.model import REQUIRED_FIELDS, CanonicalField
from rollcall.domain.registry_import.errors import MissingRequiredColumnsError
from rollcall.domain.registry_import.records import ColumnMap

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from rollcall.domain.registry_import.records import RawRow

log = getLogger(__name__)

_NON_ALPHANUMERIC = re.compile(r"[^a-z0-9]")

type AliasTable = Mapping[CanonicalField, frozenset[str]]


def normalize_header(value: object) -> str:
    if value is None:
        return ""
    return _NON_ALPHANUMERIC.sub("", str(value).lower())


def build_alias_table(spellings: Mapping[CanonicalField, Iterable[str]]) -> AliasTable:
    """Normalize every accepted spelling so tables can be written in any casing."""

    return MappingProxyType(
        {
            canonical: frozenset(normalize_header(alias) for alias in aliases)
            for canonical, aliases in spellings.items()
        }
    )


DEFAULT_ALIAS_TABLE: AliasTable = build_alias_table(
    {
        CanonicalField.NAME: ("name", "studentname", "fullname", "candidatename"),
        CanonicalField.ROLL_NUMBER: (
            "rollnumber",
            "rollno",
            "htno",
            "roll",
            "hallticketno",
            "htnumber",
        ),
        CanonicalField.EMAIL: ("email", "emailaddress", "emailid", "collegeemail"),
        CanonicalField.DEPARTMENT: ("department", "dept", "branch", "course", "stream"),
        CanonicalField.CGPA: ("cgpa", "ugcgpa", "gpa", "gradepoint"),
        CanonicalField.BACKLOGS: ("backlogs", "currentbacklogs", "activebacklogs"),
        CanonicalField.PASSOUT_YEAR: ("passoutyear", "ugpassoutyear", "yearofpassing", "batch"),
    }
)


def resolve_columns(header: RawRow, alias_table: AliasTable = DEFAULT_ALIAS_TABLE) -> ColumnMap:
    """Return the column index of each canonical field found in ``header``.

    The first matching column wins. Raises ``MissingRequiredColumnsError`` naming
    every required field that has no column; optional fields are simply left out.
    """

    normalized = [normalize_header(cell) for cell in header]
    indices: dict[CanonicalField, int] = {}
    for canonical, aliases in alias_table.items():
        for index, text in enumerate(normalized):
            if text and text in aliases:
                indices[canonical] = index
                break

    missing = [canonical for canonical in REQUIRED_FIELDS if canonical not in indices]
    if missing:
        raise MissingRequiredColumnsError(missing)

    unmatched = [
        str(header[index])
        for index, text in enumerate(normalized)
        if text and index not in indices.values()
    ]
    if unmatched:
        log.info("Ignoring unrecognised columns: %s", ", ".join(unmatched))
    log.debug("Resolved columns: %s", {str(key): value for key, value in indices.items()})
    return ColumnMap(indices=MappingProxyType(indices))
