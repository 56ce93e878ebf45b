"""Identity resolution of candidate records against a registry snapshot.

Both keys the registry enforces uniqueness on are consulted in one step, and
the outcome is what planning and committing act on:

- neither roll number nor email known -> ``NewRecord``
- roll number and email both point at the same row -> ``MatchedRecord``
- the keys disagree -> ``AmbiguousMatch``; such rows are held back because an
  email-keyed write would either duplicate a roll number or silently rewrite a
  different student's roll number.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Literal

if TYPE_CHECKING:
    from uuid import UUID

    from .records import CandidateRecord
    from .snapshot import RegistryEntry, RegistrySnapshot


class IdentityStatus(StrEnum):
    NEW = "new"
    MATCHED = "matched"
    AMBIGUOUS = "ambiguous"


class AmbiguityReason(StrEnum):
    IDENTITY_CONFLICT = "identity_conflict"
    EMAIL_CHANGED = "email_changed"
    ROLL_NUMBER_CHANGED = "roll_number_changed"


@dataclass(frozen=True, slots=True)
class NewRecord:
    status: Literal[IdentityStatus.NEW] = IdentityStatus.NEW


@dataclass(frozen=True, slots=True)
class MatchedRecord:
    existing_id: UUID
    status: Literal[IdentityStatus.MATCHED] = IdentityStatus.MATCHED


@dataclass(frozen=True, slots=True)
class AmbiguousMatch:
    candidates: tuple[RegistryEntry, ...]
    reason: AmbiguityReason
    status: Literal[IdentityStatus.AMBIGUOUS] = IdentityStatus.AMBIGUOUS

    def __post_init__(self) -> None:
        if not self.candidates:
            raise ValueError("Ambiguous match must include at least one candidate")

    def describe(self) -> str:
        rolls = ", ".join(f"{entry.roll_number} <{entry.email}>" for entry in self.candidates)
        return f"{self.reason.value}: {rolls}"


type IdentityResolution = NewRecord | MatchedRecord | AmbiguousMatch


def resolve_identity(candidate: CandidateRecord, snapshot: RegistrySnapshot) -> IdentityResolution:
    by_roll = snapshot.by_roll_number(candidate.roll_number)
    by_email = snapshot.by_email(candidate.email)

    if by_email is None:
        if by_roll is None:
            return NewRecord()
        return AmbiguousMatch(candidates=(by_roll,), reason=AmbiguityReason.EMAIL_CHANGED)

    if by_roll is not None:
        if by_roll.id == by_email.id:
            return MatchedRecord(existing_id=by_roll.id)
        return AmbiguousMatch(
            candidates=(by_roll, by_email),
            reason=AmbiguityReason.IDENTITY_CONFLICT,
        )

    return AmbiguousMatch(candidates=(by_email,), reason=AmbiguityReason.ROLL_NUMBER_CHANGED)
