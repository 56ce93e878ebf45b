"""Defaults for registry imports."""

from __future__ import annotations

import os
from dataclasses import dataclass

from .env import optional_positive_int, require_env_vars

DEFAULT_IMPORT_BATCH_SIZE = 100
DEFAULT_DEPARTMENT = "General"


@dataclass(frozen=True, slots=True)
class ImportConfig:
    batch_size: int = DEFAULT_IMPORT_BATCH_SIZE
    default_department: str = DEFAULT_DEPARTMENT


@dataclass(frozen=True, slots=True)
class ActorConfig:
    """Operator identity recorded on every write and audit entry."""

    actor_id: str
    actor_name: str

    @classmethod
    def from_environment(cls) -> ActorConfig:
        values = require_env_vars(("ROLLCALL_ACTOR_ID", "ROLLCALL_ACTOR_NAME"))
        return cls(actor_id=values["ROLLCALL_ACTOR_ID"], actor_name=values["ROLLCALL_ACTOR_NAME"])


def get_import_config() -> ImportConfig:
    department = os.getenv("ROLLCALL_DEFAULT_DEPARTMENT", "").strip()
    return ImportConfig(
        batch_size=optional_positive_int("ROLLCALL_IMPORT_BATCH_SIZE", DEFAULT_IMPORT_BATCH_SIZE),
        default_department=department or DEFAULT_DEPARTMENT,
    )
