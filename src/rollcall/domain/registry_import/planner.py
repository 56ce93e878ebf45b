"""Classify candidate records against a registry snapshot.

Planning is pure: it reads the snapshot handed in and writes nothing, so the
resulting plan can be reviewed before the registry is touched.
"""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from .identity import AmbiguousMatch, MatchedRecord, resolve_identity
from .plan import Classification, ImportFlags, StagedRecord, new_plan
from .records import RowDropped

if TYPE_CHECKING:
    from .plan import ImportPlan
    from .records import CandidateRecord, ImportContext, NormalizedRows
    from .snapshot import RegistrySnapshot

log = getLogger(__name__)

DUPLICATE_IN_FILE = "duplicate_in_file"


def plan_import(
    normalized: NormalizedRows,
    snapshot: RegistrySnapshot,
    *,
    context: ImportContext,
    flags: ImportFlags | None = None,
) -> ImportPlan:
    effective_flags = flags or ImportFlags()
    staged: list[StagedRecord] = []
    skipped: list[RowDropped] = list(normalized.dropped)
    seen_roll_keys: set[str] = set()
    seen_emails: set[str] = set()

    for candidate in normalized.candidates:
        if candidate.roll_key in seen_roll_keys or candidate.email in seen_emails:
            skipped.append(
                RowDropped(
                    row_index=candidate.row_index,
                    reason=DUPLICATE_IN_FILE,
                    detail=(
                        f"{candidate.roll_number} <{candidate.email}> appears earlier in the file"
                    ),
                )
            )
            continue
        seen_roll_keys.add(candidate.roll_key)
        seen_emails.add(candidate.email)

        record = _stage(candidate, snapshot, force_whitelist=effective_flags.whitelist)
        if isinstance(record, RowDropped):
            skipped.append(record)
            continue
        staged.append(record)

    skipped.sort(key=lambda row: row.row_index)
    plan = new_plan(
        context=context,
        staged=tuple(staged),
        skipped=tuple(skipped),
        total_rows=normalized.total_rows,
        snapshot_version=snapshot.version,
        provided_fields=normalized.provided_fields,
        flags=effective_flags,
    )
    log.info("Planned registry import for %s: %s", context.institution, plan.summary())
    return plan


def _stage(
    candidate: CandidateRecord,
    snapshot: RegistrySnapshot,
    *,
    force_whitelist: bool,
) -> StagedRecord | RowDropped:
    resolution = resolve_identity(candidate, snapshot)
    if isinstance(resolution, AmbiguousMatch):
        log.debug("Row %s held back: %s", candidate.row_index, resolution.describe())
        return RowDropped(
            row_index=candidate.row_index,
            reason=resolution.reason.value,
            detail=resolution.describe(),
        )
    if isinstance(resolution, MatchedRecord):
        return StagedRecord(
            candidate=candidate,
            classification=Classification.UPDATE,
            existing_id=resolution.existing_id,
            force_whitelist=force_whitelist,
        )
    return StagedRecord(
        candidate=candidate,
        classification=Classification.INSERT,
        force_whitelist=force_whitelist,
    )
