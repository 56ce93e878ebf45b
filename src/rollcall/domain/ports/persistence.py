"""Ports for persisting the student registry and its audit trail."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

from rollcall.domain.model import AuditEntry, StudentRecord

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from rollcall.domain.registry_import.snapshot import RegistryEntry, RegistryScope


@runtime_checkable
class Repository[TEntity](Protocol):
    """Minimal repository contract for a persistent aggregate store."""

    def add(self, entity: TEntity) -> None: ...


@runtime_checkable
class StudentRegistryRepository(Repository[StudentRecord], Protocol):
    """Persistence contract for the keyed student registry."""

    def find_existing(self, scope: RegistryScope) -> Sequence[RegistryEntry]: ...

    def upsert(
        self,
        records: Sequence[Mapping[str, object]],
        *,
        conflict_key: str = "email",
        update_columns: Sequence[str] | None = None,
    ) -> None:
        """Insert or update ``records`` in one call keyed by ``conflict_key``.

        ``update_columns`` limits which columns an update overwrites; ``None``
        overwrites every column present in the payload.
        """
        ...

    def list_students(
        self,
        scope: RegistryScope,
        *,
        department: str | None = None,
    ) -> Sequence[StudentRecord]: ...


@runtime_checkable
class AuditLogRepository(Repository[AuditEntry], Protocol):
    """Persistence contract for the administrative audit trail."""
