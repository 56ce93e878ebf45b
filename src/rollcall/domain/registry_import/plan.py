"""Staged import plan shown to an operator before anything is written.

The plan is the contract between planning and committing. It is immutable and
can only be produced by ``plan_import``; committing consumes it as is and never
regenerates it.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field, replace
from enum import StrEnum
from typing import TYPE_CHECKING

from rollcall.domain.model import CanonicalField

if TYPE_CHECKING:
    from collections.abc import Iterator
    from uuid import UUID

    from .records import CandidateRecord, ImportContext, RowDropped

_PLANNER_TOKEN = object()


class Classification(StrEnum):
    INSERT = "insert"
    UPDATE = "update"


@dataclass(frozen=True, slots=True)
class ImportFlags:
    """Overrides applied uniformly to every record of an import."""

    whitelist: bool = False

    def merge(self, other: ImportFlags) -> ImportFlags:
        return ImportFlags(whitelist=self.whitelist or other.whitelist)

    def as_details(self) -> dict[str, object]:
        return {"whitelisted": self.whitelist}


@dataclass(frozen=True, slots=True, kw_only=True)
class StagedRecord:
    candidate: CandidateRecord
    classification: Classification
    existing_id: UUID | None = None
    force_whitelist: bool = False

    def __post_init__(self) -> None:
        if (self.classification is Classification.UPDATE) != (self.existing_id is not None):
            raise ValueError("Only updates carry an existing registry id")

    @property
    def row_index(self) -> int:
        return self.candidate.row_index


@dataclass(frozen=True, slots=True)
class ImportBatch:
    index: int
    records: tuple[StagedRecord, ...]

    def __len__(self) -> int:
        return len(self.records)


@dataclass(frozen=True, slots=True, kw_only=True)
class ImportPlan:
    context: ImportContext
    staged: tuple[StagedRecord, ...]
    skipped: tuple[RowDropped, ...]
    total_rows: int
    snapshot_version: str
    provided_fields: frozenset[CanonicalField]
    flags: ImportFlags = field(default_factory=ImportFlags)
    _token: object = field(default=None, repr=False, compare=False)

    def __post_init__(self) -> None:
        if self._token is not _PLANNER_TOKEN:
            raise TypeError("ImportPlan instances are created by plan_import()")
        if len(self.staged) + len(self.skipped) != self.total_rows:
            raise ValueError("Every data row must be either staged or skipped")

    @property
    def size(self) -> int:
        return len(self.staged)

    @property
    def skipped_count(self) -> int:
        return len(self.skipped)

    @property
    def insert_count(self) -> int:
        return sum(1 for record in self.staged if record.classification is Classification.INSERT)

    @property
    def update_count(self) -> int:
        return self.size - self.insert_count

    def skip_reasons(self) -> dict[str, int]:
        return dict(Counter(row.reason for row in self.skipped))

    def batches(self, batch_size: int) -> Iterator[ImportBatch]:
        """Consecutive, non-overlapping slices of the staged records, in plan order."""

        if batch_size < 1:
            raise ValueError(f"Batch size must be at least 1, got {batch_size}")
        for index, start in enumerate(range(0, self.size, batch_size)):
            yield ImportBatch(index=index, records=self.staged[start : start + batch_size])

    def with_flags(self, flags: ImportFlags) -> ImportPlan:
        """Return a copy with ``flags`` merged into the plan and every staged record."""

        merged = self.flags.merge(flags)
        if merged == self.flags:
            return self
        staged = tuple(
            replace(record, force_whitelist=merged.whitelist) for record in self.staged
        )
        return replace(self, staged=staged, flags=merged)

    def summary(self) -> str:
        text = (
            f"{self.size} of {self.total_rows} rows staged "
            f"({self.insert_count} new, {self.update_count} updates), "
            f"{self.skipped_count} skipped"
        )
        reasons = self.skip_reasons()
        if reasons:
            details = ", ".join(f"{reason}={count}" for reason, count in sorted(reasons.items()))
            text = f"{text} [{details}]"
        return text


def new_plan(**kwargs: object) -> ImportPlan:
    """Construct an ``ImportPlan``; reserved for the planner."""

    return ImportPlan(_token=_PLANNER_TOKEN, **kwargs)  # type: ignore[arg-type]
