"""Write a confirmed import plan to the registry in bounded, sequential batches.

Each batch is one upsert call inside its own unit of work, so a batch is the
unit of atomicity. The first failing batch stops the import: later batches are
not attempted, earlier ones are not rolled back. Re-submitting the same file is
safe because every write is keyed by email.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from logging import getLogger
from typing import TYPE_CHECKING
from uuid import uuid4

from rollcall.config.importing import DEFAULT_IMPORT_BATCH_SIZE
from rollcall.domain.model import CanonicalField, roll_number_key

from .errors import StaleSnapshotError, WriteError
from .plan import Classification, ImportFlags
from .snapshot import RegistryScope, fingerprint
from .state import SessionState

if TYPE_CHECKING:
    from collections.abc import Collection
    from uuid import UUID

    from rollcall.domain.ports import RegistryUnitOfWork

    from .plan import ImportBatch, ImportPlan, StagedRecord
    from .records import Actor, CandidateRecord

type ProgressCallback = Callable[[int], None]
type UnitOfWorkFactory = Callable[[], RegistryUnitOfWork]

CONFLICT_KEY = "email"

log = getLogger(__name__)

_ALWAYS_UPDATED: tuple[str, ...] = (
    "name",
    "roll_number",
    "roll_number_key",
    "last_modified_by_id",
    "last_modified_by_name",
    "last_modified_at",
)
_OPTIONAL_COLUMNS: dict[CanonicalField, str] = {
    CanonicalField.CGPA: "cgpa",
    CanonicalField.BACKLOGS: "backlogs",
    CanonicalField.PASSOUT_YEAR: "passout_year",
}


@dataclass(frozen=True, slots=True)
class CommitOptions:
    flags: ImportFlags = field(default_factory=ImportFlags)
    verify_snapshot: bool = True


@dataclass(frozen=True, slots=True, kw_only=True)
class ImportResult:
    total: int
    inserted: int = 0
    updated: int = 0
    skipped: int = 0
    failed_at_batch_index: int | None = None
    failure_cause: str | None = None
    progress: int = 0
    state: SessionState = SessionState.COMPLETED
    flags: ImportFlags = field(default_factory=ImportFlags)
    error: WriteError | None = field(default=None, compare=False)
    audit_recorded: bool = False

    @property
    def committed(self) -> int:
        return self.inserted + self.updated

    @property
    def succeeded(self) -> bool:
        return self.failed_at_batch_index is None

    def message(self) -> str:
        text = f"{self.committed} of {self.total} records imported"
        if self.skipped:
            text = f"{text}; {self.skipped} rows skipped"
        if self.failed_at_batch_index is not None:
            text = (
                f"{text}; stopped at batch {self.failed_at_batch_index}; "
                f"cause: {self.failure_cause}"
            )
        return text


def commit_plan(
    plan: ImportPlan,
    *,
    unit_of_work_factory: UnitOfWorkFactory,
    actor: Actor,
    batch_size: int = DEFAULT_IMPORT_BATCH_SIZE,
    options: CommitOptions | None = None,
    on_progress: ProgressCallback | None = None,
) -> ImportResult:
    """Upsert ``plan`` batch by batch and report how far it got.

    Raises ``StaleSnapshotError`` before any write when the registry no longer
    matches the snapshot the plan was built from (unless verification is off).
    """

    if batch_size < 1:
        raise ValueError(f"Batch size must be at least 1, got {batch_size}")
    effective_options = options or CommitOptions()
    plan = plan.with_flags(effective_options.flags)

    if effective_options.verify_snapshot:
        _verify_snapshot(plan, unit_of_work_factory)

    total = plan.size
    inserted = 0
    updated = 0
    processed = 0
    progress = 100 if total == 0 else 0
    update_columns = _update_columns(plan)
    modified_at = datetime.now(tz=UTC)

    for batch in plan.batches(batch_size):
        payloads = [_payload(record, plan, actor, modified_at) for record in batch.records]
        try:
            _write_batch(unit_of_work_factory, payloads, update_columns)
        except Exception as exc:  # noqa: BLE001
            error = WriteError(batch.index, exc)
            log.error(  # noqa: TRY400
                "Registry import stopped at batch %s after %s of %s records: %s",
                batch.index,
                processed,
                total,
                exc,
            )
            return ImportResult(
                total=total,
                inserted=inserted,
                updated=updated,
                skipped=plan.skipped_count,
                failed_at_batch_index=error.batch_index,
                failure_cause=str(exc) or type(exc).__name__,
                progress=progress,
                state=SessionState.PARTIALLY_COMPLETED,
                flags=plan.flags,
                error=error,
            )

        batch_inserts = _count(batch, Classification.INSERT)
        inserted += batch_inserts
        updated += len(batch) - batch_inserts
        processed += len(batch)
        progress = processed * 100 // total
        log.info(
            "Committed batch %s (%s records, %s/%s, %s%%)",
            batch.index,
            len(batch),
            processed,
            total,
            progress,
        )
        if on_progress is not None:
            on_progress(progress)

    return ImportResult(
        total=total,
        inserted=inserted,
        updated=updated,
        skipped=plan.skipped_count,
        progress=progress,
        state=SessionState.COMPLETED,
        flags=plan.flags,
    )


def _verify_snapshot(plan: ImportPlan, unit_of_work_factory: UnitOfWorkFactory) -> None:
    with unit_of_work_factory() as uow:
        entries = uow.repositories.students.find_existing(
            RegistryScope(institution=plan.context.institution)
        )
    current = fingerprint(entries)
    if current != plan.snapshot_version:
        log.warning("Registry changed since planning; refusing to commit a stale plan")
        raise StaleSnapshotError(expected=plan.snapshot_version, actual=current)


def _write_batch(
    unit_of_work_factory: UnitOfWorkFactory,
    payloads: list[dict[str, object]],
    update_columns: tuple[str, ...],
) -> None:
    with unit_of_work_factory() as uow:
        uow.repositories.students.upsert(
            payloads,
            conflict_key=CONFLICT_KEY,
            update_columns=update_columns,
        )
        uow.commit()


def _count(batch: ImportBatch, classification: Classification) -> int:
    return sum(1 for record in batch.records if record.classification is classification)


def _update_columns(plan: ImportPlan) -> tuple[str, ...]:
    return update_columns_for(
        plan.provided_fields,
        department_scoped=bool(plan.context.department),
        whitelist=plan.flags.whitelist,
    )


def update_columns_for(
    provided_fields: Collection[CanonicalField],
    *,
    department_scoped: bool,
    whitelist: bool,
) -> tuple[str, ...]:
    """Columns an update may overwrite; anything the caller did not supply is left alone."""

    columns = list(_ALWAYS_UPDATED)
    if CanonicalField.DEPARTMENT in provided_fields or department_scoped:
        columns.append("department")
    columns.extend(
        column
        for canonical, column in _OPTIONAL_COLUMNS.items()
        if canonical in provided_fields
    )
    if whitelist:
        columns.append("is_whitelisted")
    return tuple(columns)


def _payload(
    record: StagedRecord,
    plan: ImportPlan,
    actor: Actor,
    modified_at: datetime,
) -> dict[str, object]:
    return registry_payload(
        record.candidate,
        record_id=record.existing_id or uuid4(),
        institution=plan.context.institution,
        whitelisted=record.force_whitelist,
        actor=actor,
        modified_at=modified_at,
    )


def registry_payload(
    candidate: CandidateRecord,
    *,
    record_id: UUID,
    institution: str,
    whitelisted: bool,
    actor: Actor,
    modified_at: datetime,
) -> dict[str, object]:
    """Column values for one registry row, as handed to ``upsert``."""

    return {
        "id": record_id,
        "name": candidate.name,
        "roll_number": candidate.roll_number,
        "roll_number_key": roll_number_key(candidate.roll_number),
        "email": candidate.email,
        "institution": institution,
        "department": candidate.department,
        "cgpa": candidate.cgpa,
        "backlogs": candidate.backlogs,
        "passout_year": candidate.passout_year,
        "is_whitelisted": whitelisted,
        "last_modified_by_id": actor.actor_id,
        "last_modified_by_name": actor.actor_name,
        "last_modified_at": modified_at,
    }
