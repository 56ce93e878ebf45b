"""Bulk registry import and reconciliation.

Flow for one session:
1) decode the uploaded file into rows (adapter)
2) resolve the header row onto canonical fields (adapter)
3) normalize rows into candidate records, counting dropped rows (adapter)
4) capture a versioned registry snapshot
5) resolve identities and stage an insert/update plan
6) on confirmation, commit the plan in sequential batches
7) record one best-effort audit entry
"""

from __future__ import annotations

from .commit import (
    CommitOptions,
    ImportResult,
    commit_plan,
    registry_payload,
    update_columns_for,
)
from .errors import (
    AuditError,
    IdentityConflictError,
    InvalidSessionStateError,
    MissingRequiredColumnsError,
    ParseError,
    RegistryImportError,
    SchemaError,
    StaleSnapshotError,
    WriteError,
)
from .identity import AmbiguousMatch, MatchedRecord, NewRecord, resolve_identity
from .plan import Classification, ImportBatch, ImportFlags, ImportPlan, StagedRecord
from .planner import plan_import
from .records import (
    Actor,
    CandidateRecord,
    ColumnMap,
    ImportContext,
    NormalizedRows,
    RawRow,
    RowDropped,
)
from .session import ImportSession, StagedImport
from .snapshot import RegistryEntry, RegistryScope, RegistrySnapshot
from .state import SessionState

__all__ = [
    "Actor",
    "AmbiguousMatch",
    "AuditError",
    "CandidateRecord",
    "Classification",
    "ColumnMap",
    "CommitOptions",
    "IdentityConflictError",
    "ImportBatch",
    "ImportContext",
    "ImportFlags",
    "ImportPlan",
    "ImportResult",
    "ImportSession",
    "InvalidSessionStateError",
    "MatchedRecord",
    "MissingRequiredColumnsError",
    "NewRecord",
    "NormalizedRows",
    "ParseError",
    "RawRow",
    "RegistryEntry",
    "RegistryImportError",
    "RegistryScope",
    "RegistrySnapshot",
    "RowDropped",
    "SchemaError",
    "SessionState",
    "StagedImport",
    "StaleSnapshotError",
    "WriteError",
    "commit_plan",
    "registry_payload",
    "plan_import",
    "resolve_identity",
    "update_columns_for",
]
