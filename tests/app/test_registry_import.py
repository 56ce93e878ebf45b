from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from openpyxl import load_workbook

from rollcall.adapters.sqlalchemy.unit_of_work import SqlAlchemyRegistryUnitOfWork
from rollcall.app import add_student, export_registry, import_registry_file, plan_registry_import
from rollcall.domain.model import AuditAction, AuditEntityType, AuditEntry, StudentRecord
from rollcall.domain.registry_import import (
    Classification,
    IdentityConflictError,
    ImportFlags,
    ImportPlan,
    RegistryScope,
    SchemaError,
    SessionState,
)
from tests.helpers.registry import ACTOR, CONTEXT, INSTITUTION, csv_bytes

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

type UnitOfWorkFactory = Callable[[], SqlAlchemyRegistryUnitOfWork]


def _write_file(tmp_path: Path, rows: list[tuple[object, ...]], name: str = "students.csv") -> Path:
    path = tmp_path / name
    path.write_bytes(csv_bytes(rows))
    return path


def _students(factory: UnitOfWorkFactory) -> list[StudentRecord]:
    with factory() as uow:
        students = uow.repositories.students.list_students(RegistryScope(institution=INSTITUTION))
        return list(students)


def _audit_entries(factory: UnitOfWorkFactory) -> list[AuditEntry]:
    with factory() as uow:
        return list(uow.session.query(AuditEntry).all())


def test_import_end_to_end(tmp_path: Path, sqlite_unit_of_work: UnitOfWorkFactory) -> None:
    path = _write_file(
        tmp_path,
        [
            ("Student Name", "Roll No.", "E-mail", "Dept", "UG CGPA"),
            ("Asha Rao", "R100", "asha@x.edu", "CSE", "8.4"),
            ("Ravi Kumar", "R101", "ravi@x.edu", "", "n/a"),
            ("No Email", "R102", "", "ECE", ""),
        ],
    )

    result = import_registry_file(
        path,
        context=CONTEXT,
        actor=ACTOR,
        unit_of_work_factory=sqlite_unit_of_work,
    )

    assert result is not None
    assert result.state is SessionState.COMPLETED
    assert result.inserted == 2
    assert result.skipped == 1
    assert result.audit_recorded
    students = _students(sqlite_unit_of_work)
    assert [(s.roll_number, s.department, s.cgpa) for s in students] == [
        ("R100", "CSE", 8.4),
        ("R101", "General", 0.0),
    ]
    entries = _audit_entries(sqlite_unit_of_work)
    assert len(entries) == 1
    assert entries[0].details["count"] == 2
    assert entries[0].details["type"] == "bulk_import_upsert"


def test_reimport_with_recased_roll_number_updates(
    tmp_path: Path,
    sqlite_unit_of_work: UnitOfWorkFactory,
) -> None:
    header = ("Name", "Roll No", "Email")
    first = _write_file(tmp_path, [header, ("Asha Rao", "R100", "asha@x.edu")], "first.csv")
    second = _write_file(tmp_path, [header, ("Asha R.", "r100", "asha@x.edu")], "second.csv")
    import_registry_file(
        first,
        context=CONTEXT,
        actor=ACTOR,
        unit_of_work_factory=sqlite_unit_of_work,
    )

    staged = plan_registry_import(
        second,
        context=CONTEXT,
        actor=ACTOR,
        unit_of_work_factory=sqlite_unit_of_work,
    )
    assert staged.plan.staged[0].classification is Classification.UPDATE
    result = staged.commit()

    assert result.updated == 1
    students = _students(sqlite_unit_of_work)
    assert len(students) == 1
    assert students[0].name == "Asha R."
    assert students[0].roll_number == "r100"


def test_declined_confirmation_writes_nothing(
    tmp_path: Path,
    sqlite_unit_of_work: UnitOfWorkFactory,
) -> None:
    path = _write_file(tmp_path, [("Name", "Roll No", "Email"), ("Asha", "R1", "a@x.edu")])
    seen: list[ImportPlan] = []

    def decline(plan: ImportPlan) -> bool:
        seen.append(plan)
        return False

    result = import_registry_file(
        path,
        context=CONTEXT,
        actor=ACTOR,
        confirm=decline,
        unit_of_work_factory=sqlite_unit_of_work,
    )

    assert result is None
    assert seen[0].size == 1
    assert _students(sqlite_unit_of_work) == []


def test_import_in_batches_with_whitelist(
    tmp_path: Path,
    sqlite_unit_of_work: UnitOfWorkFactory,
) -> None:
    rows: list[tuple[object, ...]] = [("Name", "Roll No", "Email")]
    rows.extend((f"Student {n}", f"R{n:03d}", f"s{n}@x.edu") for n in range(1, 8))
    path = _write_file(tmp_path, rows)
    progress: list[int] = []

    result = import_registry_file(
        path,
        context=CONTEXT,
        actor=ACTOR,
        flags=ImportFlags(whitelist=True),
        batch_size=3,
        on_progress=progress.append,
        unit_of_work_factory=sqlite_unit_of_work,
    )

    assert result is not None
    assert result.inserted == 7
    assert progress == [42, 85, 100]
    assert all(student.is_whitelisted for student in _students(sqlite_unit_of_work))
    assert _audit_entries(sqlite_unit_of_work)[0].details["whitelisted"] is True


def test_export_registry(tmp_path: Path, sqlite_unit_of_work: UnitOfWorkFactory) -> None:
    path = _write_file(
        tmp_path,
        [("Name", "Roll No", "Email"), ("Ravi", "R2", "r2@x.edu"), ("Asha", "R1", "r1@x.edu")],
    )
    import_registry_file(
        path,
        context=CONTEXT,
        actor=ACTOR,
        unit_of_work_factory=sqlite_unit_of_work,
    )
    output = tmp_path / "export.xlsx"

    count = export_registry(
        output,
        institution=INSTITUTION,
        unit_of_work_factory=sqlite_unit_of_work,
    )

    assert count == 2
    workbook = load_workbook(output, read_only=True)
    rolls = [row[1] for row in workbook.worksheets[0].iter_rows(min_row=2, values_only=True)]
    workbook.close()
    assert rolls == ["R1", "R2"]


def test_add_student_creates_then_updates(sqlite_unit_of_work: UnitOfWorkFactory) -> None:
    created = add_student(
        name="Asha Rao",
        roll_number="R100",
        email="asha@x.edu",
        context=CONTEXT,
        actor=ACTOR,
        cgpa="8.1",
        unit_of_work_factory=sqlite_unit_of_work,
    )
    updated = add_student(
        name="Asha Rao",
        roll_number="R100",
        email="asha@x.edu",
        context=CONTEXT,
        actor=ACTOR,
        whitelisted=True,
        unit_of_work_factory=sqlite_unit_of_work,
    )

    assert updated.id == created.id
    students = _students(sqlite_unit_of_work)
    assert len(students) == 1
    assert students[0].is_whitelisted
    actions = [entry.action for entry in _audit_entries(sqlite_unit_of_work)]
    assert sorted(actions) == [AuditAction.CREATE, AuditAction.UPDATE]
    assert {entry.entity_type for entry in _audit_entries(sqlite_unit_of_work)} == {
        AuditEntityType.STUDENT
    }


def test_add_student_requires_identity_fields(sqlite_unit_of_work: UnitOfWorkFactory) -> None:
    with pytest.raises(SchemaError, match="Email"):
        add_student(
            name="Asha Rao",
            roll_number="R100",
            email="  ",
            context=CONTEXT,
            actor=ACTOR,
            unit_of_work_factory=sqlite_unit_of_work,
        )


def test_add_student_refuses_conflicting_keys(sqlite_unit_of_work: UnitOfWorkFactory) -> None:
    add_student(
        name="Asha Rao",
        roll_number="R100",
        email="asha@x.edu",
        context=CONTEXT,
        actor=ACTOR,
        unit_of_work_factory=sqlite_unit_of_work,
    )

    with pytest.raises(IdentityConflictError):
        add_student(
            name="Someone Else",
            roll_number="R100",
            email="else@x.edu",
            context=CONTEXT,
            actor=ACTOR,
            unit_of_work_factory=sqlite_unit_of_work,
        )


def test_add_student_update_keeps_values_it_was_not_given(
    sqlite_unit_of_work: UnitOfWorkFactory,
) -> None:
    add_student(
        name="Asha Rao",
        roll_number="R100",
        email="asha@x.edu",
        context=CONTEXT,
        actor=ACTOR,
        department="ECE",
        cgpa="9.1",
        backlogs="1",
        passout_year="2025",
        whitelisted=True,
        unit_of_work_factory=sqlite_unit_of_work,
    )

    updated = add_student(
        name="Asha R.",
        roll_number="R100",
        email="asha@x.edu",
        context=CONTEXT,
        actor=ACTOR,
        unit_of_work_factory=sqlite_unit_of_work,
    )

    (stored,) = _students(sqlite_unit_of_work)
    assert stored.name == "Asha R."
    assert stored.department == "ECE"
    assert stored.cgpa == 9.1
    assert stored.backlogs == 1
    assert stored.passout_year == 2025
    assert stored.is_whitelisted
    assert updated.cgpa == 9.1
    assert updated.department == "ECE"
