"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

from typing import TYPE_CHECKING, cast

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError

from rollcall.adapters.sqlalchemy.mappings import student_registry_table
from rollcall.domain.model import AuditEntry, StudentRecord
from rollcall.domain.registry_import.errors import AuditError
from rollcall.domain.registry_import.snapshot import RegistryEntry

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from sqlalchemy.orm import InstrumentedAttribute, Session

    from rollcall.domain.registry_import.snapshot import RegistryScope

_CONFLICT_KEYS = frozenset({"email", "roll_number_key"})
_NEVER_UPDATED = frozenset({"id", "institution"})
_DIALECT_INSERTS = {
    "sqlite": sqlite_insert,
    "postgresql": postgresql_insert,
}


class SqlAlchemyStudentRegistryRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: StudentRecord) -> None:
        self.session.add(entity)

    def find_existing(self, scope: RegistryScope) -> list[RegistryEntry]:
        table = student_registry_table
        stmt = (
            select(table.c.id, table.c.roll_number, table.c.email)
            .where(table.c.institution == scope.institution)
            .order_by(table.c.roll_number_key)
        )
        return [
            RegistryEntry(id=row.id, roll_number=row.roll_number, email=row.email)
            for row in self.session.execute(stmt)
        ]

    def upsert(
        self,
        records: Sequence[Mapping[str, object]],
        *,
        conflict_key: str = "email",
        update_columns: Sequence[str] | None = None,
    ) -> None:
        if not records:
            return
        if conflict_key not in _CONFLICT_KEYS:
            raise ValueError(f"Unsupported conflict key: {conflict_key}")

        rows = [dict(record) for record in records]
        table = student_registry_table
        insert = self._dialect_insert()
        stmt = insert(table).values(rows)
        columns = (
            list(update_columns)
            if update_columns is not None
            else [name for name in rows[0] if name not in _NEVER_UPDATED | {conflict_key}]
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[table.c.institution, table.c[conflict_key]],
            set_={name: stmt.excluded[name] for name in columns},
        )
        self.session.execute(stmt)

    def list_students(
        self,
        scope: RegistryScope,
        *,
        department: str | None = None,
    ) -> list[StudentRecord]:
        roll_number_column = cast("InstrumentedAttribute[str]", StudentRecord.roll_number)
        stmt = (
            select(StudentRecord)
            .where(student_registry_table.c.institution == scope.institution)
            .order_by(roll_number_column.asc())
        )
        if department is not None:
            stmt = stmt.where(student_registry_table.c.department == department)
        return list(self.session.scalars(stmt))

    def _dialect_insert(self):  # noqa: ANN202
        dialect = self.session.get_bind().dialect.name
        try:
            return _DIALECT_INSERTS[dialect]
        except KeyError:
            raise NotImplementedError(f"Upsert is not supported on {dialect}") from None


class SqlAlchemyAuditLogRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: AuditEntry) -> None:
        self.session.add(entity)
        try:
            self.session.flush()
        except SQLAlchemyError as exc:
            raise AuditError(f"Could not store audit entry: {exc}") from exc


if TYPE_CHECKING:
    from rollcall.domain.ports.persistence import AuditLogRepository, StudentRegistryRepository

    _session_stub = cast("Session", object())
    _student_repo: StudentRegistryRepository = SqlAlchemyStudentRegistryRepository(_session_stub)
    _audit_repo: AuditLogRepository = SqlAlchemyAuditLogRepository(_session_stub)
