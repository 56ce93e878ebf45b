"""Audit trail entries for administrative actions."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime

from .enums import AuditAction, AuditEntityType


@dataclass(eq=False)
class AuditEntry:
    """Forensic record of one administrative action."""

    actor_id: str
    actor_name: str
    action: AuditAction
    entity_type: AuditEntityType = AuditEntityType.STUDENT_REGISTRY
    entity_id: str | None = None
    details: dict[str, object] = field(default_factory=dict[str, object])
    created_at: datetime = field(default_factory=lambda: datetime.now(tz=UTC))
    id: uuid.UUID = field(default_factory=uuid.uuid4)
