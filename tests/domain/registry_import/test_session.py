from __future__ import annotations

import pytest

from rollcall.adapters.spreadsheet import SpreadsheetParser
from rollcall.domain.model import FileFormat
from rollcall.domain.registry_import import (
    ImportFlags,
    ImportSession,
    InvalidSessionStateError,
    MissingRequiredColumnsError,
    ParseError,
    SessionState,
    StaleSnapshotError,
)
from rollcall.domain.registry_import.state import can_transition
from tests.helpers.registry import (
    ACTOR,
    CONTEXT,
    FakeAuditLog,
    FakeStudentRegistry,
    csv_bytes,
    fake_unit_of_work_factory,
)

HEADER = ("Name", "Roll No", "Email")


def _session(registry: FakeStudentRegistry, audit_log: FakeAuditLog | None = None) -> ImportSession:
    return ImportSession(
        parser=SpreadsheetParser(),
        unit_of_work_factory=fake_unit_of_work_factory(registry, audit_log),
        context=CONTEXT,
        actor=ACTOR,
    )


def _file(count: int) -> bytes:
    return csv_bytes(
        [HEADER, *[(f"Student {n}", f"R{n}", f"r{n}@x.edu") for n in range(1, count + 1)]]
    )


def test_stage_then_commit(
    fake_registry: FakeStudentRegistry,
    fake_audit_log: FakeAuditLog,
) -> None:
    session = _session(fake_registry, fake_audit_log)

    staged = session.stage(_file(3), FileFormat.CSV)

    assert staged.state is SessionState.STAGED
    assert staged.plan.size == 3
    assert fake_registry.upsert_calls == []

    result = staged.commit()

    assert result.state is SessionState.COMPLETED
    assert session.state is SessionState.COMPLETED
    assert result.audit_recorded
    assert len(fake_registry.rows) == 3
    assert fake_audit_log.entries[0].details["count"] == 3


def test_cancel_writes_nothing(
    fake_registry: FakeStudentRegistry,
    fake_audit_log: FakeAuditLog,
) -> None:
    session = _session(fake_registry, fake_audit_log)
    staged = session.stage(_file(2), FileFormat.CSV)

    staged.cancel()

    assert session.state is SessionState.CANCELLED
    assert fake_registry.rows == {}
    assert fake_audit_log.entries == []
    with pytest.raises(InvalidSessionStateError):
        staged.commit()


def test_plan_cannot_be_committed_twice(fake_registry: FakeStudentRegistry) -> None:
    staged = _session(fake_registry).stage(_file(1), FileFormat.CSV)
    staged.commit()

    with pytest.raises(InvalidSessionStateError):
        staged.commit()


def test_session_stages_once(fake_registry: FakeStudentRegistry) -> None:
    session = _session(fake_registry)
    session.stage(_file(1), FileFormat.CSV)

    with pytest.raises(InvalidSessionStateError):
        session.stage(_file(1), FileFormat.CSV)


def test_missing_columns_fail_the_session(fake_registry: FakeStudentRegistry) -> None:
    session = _session(fake_registry)
    data = csv_bytes([("Name", "Email"), ("Asha", "asha@x.edu")])

    with pytest.raises(MissingRequiredColumnsError):
        session.stage(data, FileFormat.CSV)

    assert session.state is SessionState.FAILED


def test_empty_file_fails_the_session(fake_registry: FakeStudentRegistry) -> None:
    session = _session(fake_registry)

    with pytest.raises(ParseError):
        session.stage(csv_bytes([HEADER]), FileFormat.CSV)

    assert session.state is SessionState.FAILED


def test_store_error_while_staging_fails_the_session(
    fake_registry: FakeStudentRegistry,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    def unavailable(scope: object) -> None:
        _ = scope
        raise ConnectionError("registry unavailable")

    monkeypatch.setattr(fake_registry, "find_existing", unavailable)
    session = _session(fake_registry)

    with pytest.raises(ConnectionError):
        session.stage(_file(2), FileFormat.CSV)

    assert session.state is SessionState.FAILED


def test_partial_failure_ends_partially_completed(fake_registry: FakeStudentRegistry) -> None:
    fake_registry.fail_on_call = 1
    staged = _session(fake_registry).stage(_file(5), FileFormat.CSV)

    result = staged.commit(batch_size=2)

    assert staged.state is SessionState.PARTIALLY_COMPLETED
    assert result.committed == 2
    assert result.failed_at_batch_index == 1


def test_stale_snapshot_fails_the_session(fake_registry: FakeStudentRegistry) -> None:
    staged = _session(fake_registry).stage(_file(2), FileFormat.CSV)
    fake_registry.seed("X1", "late@x.edu")

    with pytest.raises(StaleSnapshotError):
        staged.commit()

    assert staged.state is SessionState.FAILED
    assert fake_registry.upsert_calls == []


def test_audit_failure_does_not_fail_the_import(fake_registry: FakeStudentRegistry) -> None:
    staged = _session(fake_registry, FakeAuditLog(fail=True)).stage(_file(2), FileFormat.CSV)

    result = staged.commit()

    assert result.state is SessionState.COMPLETED
    assert not result.audit_recorded


def test_whitelist_flag_at_stage_time(fake_registry: FakeStudentRegistry) -> None:
    staged = _session(fake_registry).stage(
        _file(2),
        FileFormat.CSV,
        flags=ImportFlags(whitelist=True),
    )

    staged.commit()

    assert all(row["is_whitelisted"] for row in fake_registry.rows.values())


@pytest.mark.parametrize(
    ("current", "target", "allowed"),
    [
        (SessionState.IDLE, SessionState.PARSED, True),
        (SessionState.IDLE, SessionState.STAGED, False),
        (SessionState.STAGED, SessionState.COMMITTING, True),
        (SessionState.COMMITTING, SessionState.PARTIALLY_COMPLETED, True),
        (SessionState.COMPLETED, SessionState.COMMITTING, False),
        (SessionState.CANCELLED, SessionState.COMMITTING, False),
    ],
)
def test_transitions(current: SessionState, target: SessionState, allowed: bool) -> None:
    assert can_transition(current, target) is allowed


def test_terminal_states() -> None:
    assert SessionState.PARTIALLY_COMPLETED.is_terminal
    assert not SessionState.STAGED.is_terminal


def test_documented_example_end_to_end(fake_registry: FakeStudentRegistry) -> None:
    data = csv_bytes(
        [
            ("Full Name", "HT No", "College Email", "CGPA"),
            ("Asha Rao", "CS101", "asha@x.edu", "8.9"),
            ("", "CS102", "bad@x.edu", "notanumber"),
        ]
    )
    staged = _session(fake_registry).stage(data, FileFormat.CSV)

    assert staged.plan.size == 1
    assert staged.plan.skipped_count == 1
    assert staged.plan.staged[0].candidate.name == "Asha Rao"
    assert staged.plan.staged[0].candidate.cgpa == 8.9

    result = staged.commit()

    assert result.inserted == 1
    assert result.skipped == 1
    stored = fake_registry.by_email("asha@x.edu")
    assert stored is not None
    assert stored["cgpa"] == 8.9
    assert fake_registry.by_email("bad@x.edu") is None
    assert result.message() == "1 of 1 records imported; 1 rows skipped"
