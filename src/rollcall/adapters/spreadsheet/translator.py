"""Translate raw spreadsheet rows into candidate registry records."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from pydantic import ValidationError

from rollcall.domain.model import REQUIRED_FIELDS
from rollcall.domain.registry_import.records import CandidateRecord, NormalizedRows, RowDropped

from .schema import RegistryRowPayload

if TYPE_CHECKING:
    from collections.abc import Iterable

    from rollcall.domain.registry_import.records import ColumnMap, ImportContext, RawRow

log = getLogger(__name__)

MISSING_REQUIRED_FIELDS = "missing_required_fields"
INVALID_ROW = "invalid_row"


def normalize_row(
    row: RawRow,
    column_map: ColumnMap,
    context: ImportContext,
    *,
    row_index: int,
) -> CandidateRecord | RowDropped:
    raw = {
        canonical.value: column_map.cell(row, canonical)
        for canonical in column_map.provided_fields
    }
    try:
        payload = RegistryRowPayload.model_validate(raw)
    except ValidationError as exc:
        return RowDropped(row_index=row_index, reason=INVALID_ROW, detail=str(exc))

    name, roll_number, email = payload.name, payload.roll_number, payload.email
    if name is None or roll_number is None or email is None:
        return RowDropped(
            row_index=row_index,
            reason=MISSING_REQUIRED_FIELDS,
            missing_fields=tuple(
                canonical
                for canonical in REQUIRED_FIELDS
                if getattr(payload, canonical.value) is None
            ),
        )

    return CandidateRecord(
        row_index=row_index,
        name=name,
        roll_number=roll_number,
        email=email,
        institution=context.institution,
        department=context.department_for(payload.department),
        cgpa=payload.cgpa,
        backlogs=payload.backlogs,
        passout_year=payload.passout_year,
    )


def normalize_rows(
    rows: Iterable[RawRow],
    column_map: ColumnMap,
    context: ImportContext,
) -> NormalizedRows:
    """Normalize data rows (header excluded); ``row_index`` counts data rows from 1."""

    candidates: list[CandidateRecord] = []
    dropped: list[RowDropped] = []
    for row_index, row in enumerate(rows, start=1):
        outcome = normalize_row(row, column_map, context, row_index=row_index)
        if isinstance(outcome, RowDropped):
            dropped.append(outcome)
        else:
            candidates.append(outcome)
    if dropped:
        log.info("Dropped %s incomplete rows", len(dropped))
    return NormalizedRows(
        candidates=tuple(candidates),
        dropped=tuple(dropped),
        provided_fields=column_map.provided_fields,
    )

