"""Versioned, read-only view of the registry taken at planning time."""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from datetime import UTC, datetime
from types import MappingProxyType
from typing import TYPE_CHECKING

from rollcall.domain.model import roll_number_key

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping
    from uuid import UUID


@dataclass(frozen=True, slots=True)
class RegistryScope:
    """Uniqueness scope of the registry: roll numbers and emails are unique per institution."""

    institution: str


@dataclass(frozen=True, slots=True)
class RegistryEntry:
    id: UUID
    roll_number: str
    email: str

    @property
    def roll_key(self) -> str:
        return roll_number_key(self.roll_number)


def fingerprint(entries: Iterable[RegistryEntry]) -> str:
    """Stable digest over the identity keys of ``entries`` (order independent)."""

    digest = hashlib.sha256()
    for entry_id, roll_key, email in sorted(
        (str(entry.id), entry.roll_key, entry.email) for entry in entries
    ):
        digest.update(f"{entry_id}\x1f{roll_key}\x1f{email}\x1e".encode())
    return digest.hexdigest()


@dataclass(frozen=True, slots=True)
class RegistrySnapshot:
    """Existing registry identities, fetched once per session.

    ``version`` lets the committer check, before it writes anything, whether the
    registry still looks the way it did when the plan was produced.
    """

    scope: RegistryScope
    entries: tuple[RegistryEntry, ...]
    version: str
    taken_at: datetime = field(default_factory=lambda: datetime.now(tz=UTC))
    _by_roll_key: Mapping[str, RegistryEntry] = field(init=False, repr=False, compare=False)
    _by_email: Mapping[str, RegistryEntry] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        by_roll_key: dict[str, RegistryEntry] = {}
        by_email: dict[str, RegistryEntry] = {}
        for entry in self.entries:
            by_roll_key.setdefault(entry.roll_key, entry)
            by_email.setdefault(entry.email.strip(), entry)
        object.__setattr__(self, "_by_roll_key", MappingProxyType(by_roll_key))
        object.__setattr__(self, "_by_email", MappingProxyType(by_email))

    @classmethod
    def capture(cls, scope: RegistryScope, entries: Iterable[RegistryEntry]) -> RegistrySnapshot:
        frozen = tuple(entries)
        return cls(scope=scope, entries=frozen, version=fingerprint(frozen))

    def __len__(self) -> int:
        return len(self.entries)

    def by_roll_number(self, roll_number: str) -> RegistryEntry | None:
        return self._by_roll_key.get(roll_number_key(roll_number))

    def by_email(self, email: str) -> RegistryEntry | None:
        return self._by_email.get(email.strip())

    def is_current(self, entries: Iterable[RegistryEntry]) -> bool:
        return fingerprint(entries) == self.version
