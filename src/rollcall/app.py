"""Application orchestration entry points."""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime
from logging import getLogger
from typing import TYPE_CHECKING
from uuid import uuid4

from rollcall.adapters.spreadsheet import SpreadsheetParser, detect_format, write_registry_workbook
from rollcall.adapters.spreadsheet.translator import normalize_row
from rollcall.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyRegistryUnitOfWork,
    is_started,
    startup,
)
from rollcall.config import get_import_config
from rollcall.domain.model import (
    REQUIRED_FIELDS,
    AuditAction,
    AuditEntityType,
    AuditEntry,
    CanonicalField,
)
from rollcall.domain.registry_import import (
    AmbiguousMatch,
    ColumnMap,
    CommitOptions,
    IdentityConflictError,
    ImportSession,
    MatchedRecord,
    RegistryScope,
    RegistrySnapshot,
    RowDropped,
    SchemaError,
    registry_payload,
    resolve_identity,
    update_columns_for,
)
from rollcall.domain.registry_import.audit import record_audit

if TYPE_CHECKING:
    from pathlib import Path

    from rollcall.domain.model import StudentRecord
    from rollcall.domain.ports import RegistryFileParser, StudentRegistryRepository
    from rollcall.domain.registry_import import (
        Actor,
        ImportContext,
        ImportFlags,
        ImportPlan,
        ImportResult,
        StagedImport,
    )
    from rollcall.domain.registry_import.commit import ProgressCallback, UnitOfWorkFactory

type ConfirmCallback = Callable[[ImportPlan], bool]

log = getLogger(__name__)

_MANUAL_ENTRY_COLUMNS = ColumnMap(
    {canonical: index for index, canonical in enumerate(CanonicalField)}
)


def _default_unit_of_work_factory() -> UnitOfWorkFactory:
    if not is_started():
        startup()
    return SqlAlchemyRegistryUnitOfWork


def plan_registry_import(
    path: Path,
    *,
    context: ImportContext,
    actor: Actor,
    flags: ImportFlags | None = None,
    parser: RegistryFileParser | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> StagedImport:
    """Parse ``path`` and stage an import plan without writing anything."""

    file_format = detect_format(path.name)
    session = ImportSession(
        parser=parser or SpreadsheetParser(),
        unit_of_work_factory=unit_of_work_factory or _default_unit_of_work_factory(),
        context=context,
        actor=actor,
    )
    log.info("Planning registry import of %s (%s) for %s", path, file_format, context.institution)
    return session.stage(path.read_bytes(), file_format, flags=flags)


def import_registry_file(  # noqa: PLR0913
    path: Path,
    *,
    context: ImportContext,
    actor: Actor,
    flags: ImportFlags | None = None,
    batch_size: int | None = None,
    confirm: ConfirmCallback | None = None,
    on_progress: ProgressCallback | None = None,
    parser: RegistryFileParser | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> ImportResult | None:
    """Stage ``path``, ask ``confirm`` about the plan, then commit it.

    Returns ``None`` when the operator declines; the registry is untouched then.
    """

    staged = plan_registry_import(
        path,
        context=context,
        actor=actor,
        flags=flags,
        parser=parser,
        unit_of_work_factory=unit_of_work_factory,
    )
    if confirm is not None and not confirm(staged.plan):
        staged.cancel()
        return None

    effective_batch_size = batch_size or get_import_config().batch_size
    return staged.commit(
        options=CommitOptions(flags=staged.plan.flags),
        on_progress=on_progress,
        batch_size=effective_batch_size,
    )


def export_registry(
    path: Path,
    *,
    institution: str,
    department: str | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> int:
    """Write the registry of ``institution`` to an XLSX workbook at ``path``."""

    factory = unit_of_work_factory or _default_unit_of_work_factory()
    with factory() as uow:
        students = uow.repositories.students.list_students(
            RegistryScope(institution=institution),
            department=department,
        )
    count = write_registry_workbook(students, path)
    log.info("Exported %s registry records for %s to %s", count, institution, path)
    return count


def add_student(  # noqa: PLR0913
    *,
    name: str,
    roll_number: str,
    email: str,
    context: ImportContext,
    actor: Actor,
    department: str | None = None,
    cgpa: object = None,
    backlogs: object = None,
    passout_year: object = None,
    whitelisted: bool = False,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> StudentRecord:
    """Create or update one student by email and record who did it."""

    row = (name, roll_number, email, department, cgpa, backlogs, passout_year)
    outcome = normalize_row(row, _MANUAL_ENTRY_COLUMNS, context, row_index=1)
    if isinstance(outcome, RowDropped):
        labels = ", ".join(field.label for field in outcome.missing_fields)
        message = f"Missing fields: {labels}" if labels else f"Invalid entry: {outcome.detail}"
        raise SchemaError(message)

    factory = unit_of_work_factory or _default_unit_of_work_factory()
    scope = RegistryScope(institution=context.institution)
    modified_at = datetime.now(tz=UTC)
    with factory() as uow:
        snapshot = RegistrySnapshot.capture(scope, uow.repositories.students.find_existing(scope))
        resolution = resolve_identity(outcome, snapshot)
        if isinstance(resolution, AmbiguousMatch):
            raise IdentityConflictError(resolution.describe())
        record_id = resolution.existing_id if isinstance(resolution, MatchedRecord) else uuid4()
        payload = registry_payload(
            outcome,
            record_id=record_id,
            institution=context.institution,
            whitelisted=whitelisted,
            actor=actor,
            modified_at=modified_at,
        )
        uow.repositories.students.upsert(
            [payload],
            conflict_key="email",
            update_columns=update_columns_for(
                _supplied_fields(department, cgpa, backlogs, passout_year),
                department_scoped=bool(context.department),
                whitelist=whitelisted,
            ),
        )
        student = _stored_student(uow.repositories.students, scope, outcome.email)
        uow.commit()

    action = AuditAction.UPDATE if isinstance(resolution, MatchedRecord) else AuditAction.CREATE
    record_audit(
        factory,
        AuditEntry(
            actor_id=actor.actor_id,
            actor_name=actor.actor_name,
            action=action,
            entity_type=AuditEntityType.STUDENT,
            entity_id=str(record_id),
            details={
                "email": outcome.email,
                "roll_number": outcome.roll_number,
                "whitelisted": whitelisted,
            },
        ),
    )
    log.info("Recorded %s of student %s <%s>", action, outcome.roll_number, outcome.email)

    return student


def _supplied_fields(
    department: object,
    cgpa: object,
    backlogs: object,
    passout_year: object,
) -> frozenset[CanonicalField]:
    optional = {
        CanonicalField.DEPARTMENT: department,
        CanonicalField.CGPA: cgpa,
        CanonicalField.BACKLOGS: backlogs,
        CanonicalField.PASSOUT_YEAR: passout_year,
    }
    return frozenset(REQUIRED_FIELDS).union(
        canonical
        for canonical, value in optional.items()
        if value is not None and str(value).strip()
    )


def _stored_student(
    students: StudentRegistryRepository,
    scope: RegistryScope,
    email: str,
) -> StudentRecord:
    return next(student for student in students.list_students(scope) if student.email == email)
