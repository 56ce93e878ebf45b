"""Error taxonomy for registry imports.

Parse and schema errors abort before planning with nothing written. Write
errors stop forward progress of a commit but never undo completed batches.
Audit errors are logged by the recorder and never reach the caller.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

    from rollcall.domain.model import CanonicalField


class RegistryImportError(Exception):
    """Base class for every failure raised by the import engine."""


class ParseError(RegistryImportError):
    """Raised when an uploaded file cannot be decoded or has no data rows."""


class SchemaError(RegistryImportError):
    """Raised when the header row cannot be mapped onto the registry schema."""


class MissingRequiredColumnsError(SchemaError):
    """Raised when one or more required columns are absent from the header row."""

    def __init__(self, missing: Iterable[CanonicalField]) -> None:
        self.missing: tuple[CanonicalField, ...] = tuple(missing)
        labels = ", ".join(field.label for field in self.missing)
        super().__init__(f"Missing columns: {labels}")


class WriteError(RegistryImportError):
    """Raised when one batch of an import could not be written."""

    def __init__(self, batch_index: int, cause: BaseException) -> None:
        self.batch_index = batch_index
        self.cause = cause
        super().__init__(f"Batch {batch_index} failed: {cause}")


class AuditError(RegistryImportError):
    """Raised by audit adapters when an entry cannot be stored."""


class StaleSnapshotError(RegistryImportError):
    """Raised when the registry changed between planning and commit."""

    def __init__(self, expected: str, actual: str) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__("Snapshot version mismatch, re-plan required")


class InvalidSessionStateError(RegistryImportError):
    """Raised when an import session transition is not allowed from its state."""


class IdentityConflictError(RegistryImportError):
    """Raised when a manual entry matches different registry rows by roll number and email."""
