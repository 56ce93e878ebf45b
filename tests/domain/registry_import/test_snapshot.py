from __future__ import annotations

from uuid import uuid4

from rollcall.domain.registry_import import RegistryEntry, RegistryScope, RegistrySnapshot
from rollcall.domain.registry_import.snapshot import fingerprint

SCOPE = RegistryScope(institution="Example Institute")


def test_fingerprint_is_order_independent() -> None:
    first = RegistryEntry(id=uuid4(), roll_number="R1", email="r1@x.edu")
    second = RegistryEntry(id=uuid4(), roll_number="R2", email="r2@x.edu")

    assert fingerprint([first, second]) == fingerprint([second, first])


def test_fingerprint_changes_with_identity_keys() -> None:
    entry = RegistryEntry(id=uuid4(), roll_number="R1", email="r1@x.edu")
    moved = RegistryEntry(id=entry.id, roll_number="R1", email="new@x.edu")

    assert fingerprint([entry]) != fingerprint([moved])


def test_fingerprint_ignores_roll_number_case() -> None:
    entry = RegistryEntry(id=uuid4(), roll_number="R1", email="r1@x.edu")
    recased = RegistryEntry(id=entry.id, roll_number="r1", email="r1@x.edu")

    assert fingerprint([entry]) == fingerprint([recased])


def test_snapshot_lookups() -> None:
    entry = RegistryEntry(id=uuid4(), roll_number="CS-101", email="asha@x.edu")
    snapshot = RegistrySnapshot.capture(SCOPE, [entry])

    assert len(snapshot) == 1
    assert snapshot.by_roll_number(" cs-101 ") == entry
    assert snapshot.by_email("asha@x.edu") == entry
    assert snapshot.by_email("ASHA@x.edu") is None
    assert snapshot.by_roll_number("CS-102") is None


def test_snapshot_is_current() -> None:
    entry = RegistryEntry(id=uuid4(), roll_number="R1", email="r1@x.edu")
    snapshot = RegistrySnapshot.capture(SCOPE, [entry])
    added = RegistryEntry(id=uuid4(), roll_number="R2", email="r2@x.edu")

    assert snapshot.is_current([entry])
    assert not snapshot.is_current([entry, added])


def test_empty_registry_snapshot() -> None:
    snapshot = RegistrySnapshot.capture(SCOPE, [])

    assert len(snapshot) == 0
    assert snapshot.is_current([])
