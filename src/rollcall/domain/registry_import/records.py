"""Values produced while turning spreadsheet rows into candidate registry records."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from rollcall.config.importing import DEFAULT_DEPARTMENT
from rollcall.domain.model import REQUIRED_FIELDS, CanonicalField, roll_number_key

if TYPE_CHECKING:
    from collections.abc import Iterator, Mapping

type RawRow = tuple[object, ...]


@dataclass(frozen=True, slots=True, kw_only=True)
class ImportContext:
    """Ambient facts about who is importing into which registry scope.

    ``department`` is set when the operator is scoped to a single department; it
    then wins over whatever department the file states.
    """

    institution: str
    department: str | None = None
    default_department: str = DEFAULT_DEPARTMENT

    def department_for(self, row_value: str | None) -> str:
        return self.department or row_value or self.default_department


@dataclass(frozen=True, slots=True)
class ColumnMap:
    """Zero-based column index per resolved canonical field."""

    indices: Mapping[CanonicalField, int]

    def __post_init__(self) -> None:
        missing = [name for name in REQUIRED_FIELDS if name not in self.indices]
        if missing:
            raise ValueError(f"Column map lacks required fields: {missing}")

    def __contains__(self, canonical: object) -> bool:
        return canonical in self.indices

    def index_of(self, canonical: CanonicalField) -> int | None:
        return self.indices.get(canonical)

    def cell(self, row: RawRow, canonical: CanonicalField) -> object:
        index = self.indices.get(canonical)
        if index is None or index >= len(row):
            return None
        return row[index]

    @property
    def provided_fields(self) -> frozenset[CanonicalField]:
        return frozenset(self.indices)


@dataclass(frozen=True, slots=True, kw_only=True)
class CandidateRecord:
    """Normalized row that passed validation but has not been classified yet."""

    row_index: int
    name: str
    roll_number: str
    email: str
    institution: str
    department: str
    cgpa: float = 0.0
    backlogs: int = 0
    passout_year: int | None = None

    @property
    def roll_key(self) -> str:
        return roll_number_key(self.roll_number)


@dataclass(frozen=True, slots=True, kw_only=True)
class RowDropped:
    """A data row excluded from the plan, and why."""

    row_index: int
    reason: str
    missing_fields: tuple[CanonicalField, ...] = ()
    detail: str | None = None


@dataclass(frozen=True, slots=True)
class NormalizedRows:
    """Outcome of normalizing every data row of one file."""

    candidates: tuple[CandidateRecord, ...]
    dropped: tuple[RowDropped, ...]
    provided_fields: frozenset[CanonicalField] = field(
        default_factory=lambda: frozenset(REQUIRED_FIELDS)
    )

    @property
    def total_rows(self) -> int:
        return len(self.candidates) + len(self.dropped)

    def __iter__(self) -> Iterator[CandidateRecord]:
        return iter(self.candidates)


@dataclass(frozen=True, slots=True)
class Actor:
    """Operator performing an import; stamped on written rows and audit entries."""

    actor_id: str
    actor_name: str
