"""Pydantic model describing one spreadsheet row after column resolution.

Numeric leniency is part of the contract: CGPA and backlog cells that are
missing or not numbers become ``0`` instead of rejecting the row.
"""

from __future__ import annotations

import math

from pydantic import BaseModel, ConfigDict, field_validator


def cell_text(value: object) -> str | None:
    """Render a cell as trimmed text; blanks become ``None``.

    Spreadsheets hand whole numbers back as floats, so ``101.0`` renders as ``"101"``.
    """

    if value is None:
        return None
    if isinstance(value, bool):
        return str(value)
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    stripped = str(value).strip()
    return stripped or None


def _to_float(value: object) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        number = float(value)
    else:
        text = cell_text(value)
        if text is None:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    return number if math.isfinite(number) else None


def _to_int(value: object) -> int | None:
    number = _to_float(value)
    if number is None:
        return None
    return int(number)


class RegistryRowPayload(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    name: str | None = None
    roll_number: str | None = None
    email: str | None = None
    department: str | None = None
    cgpa: float = 0.0
    backlogs: int = 0
    passout_year: int | None = None

    @field_validator("name", "roll_number", "email", "department", mode="before")
    @classmethod
    def _normalize_text(cls, value: object) -> str | None:
        return cell_text(value)

    @field_validator("cgpa", mode="before")
    @classmethod
    def _lenient_cgpa(cls, value: object) -> float:
        number = _to_float(value)
        return 0.0 if number is None else number

    @field_validator("backlogs", mode="before")
    @classmethod
    def _lenient_backlogs(cls, value: object) -> int:
        number = _to_int(value)
        return 0 if number is None else number

    @field_validator("passout_year", mode="before")
    @classmethod
    def _lenient_passout_year(cls, value: object) -> int | None:
        return _to_int(value)
