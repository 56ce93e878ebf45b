"""Student registry records."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime


def roll_number_key(roll_number: str) -> str:
    """Comparison key for roll numbers, which are unique regardless of case."""

    return roll_number.strip().casefold()


@dataclass(eq=False)
class StudentRecord:
    """One row of the authoritative student registry.

    ``roll_number`` keeps the spelling an administrator entered; ``roll_number_key``
    is what uniqueness and lookups are based on.
    """

    name: str
    roll_number: str
    email: str
    institution: str
    department: str
    cgpa: float = 0.0
    backlogs: int = 0
    passout_year: int | None = None
    is_whitelisted: bool = False
    last_modified_by_id: str | None = None
    last_modified_by_name: str | None = None
    last_modified_at: datetime = field(default_factory=lambda: datetime.now(tz=UTC))
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    roll_number_key: str = field(init=False)

    def __post_init__(self) -> None:
        self.roll_number_key = roll_number_key(self.roll_number)
