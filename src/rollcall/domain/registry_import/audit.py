"""Best-effort audit trail for import sessions."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from rollcall.domain.model import AuditAction, AuditEntityType, AuditEntry

if TYPE_CHECKING:
    from .commit import ImportResult, UnitOfWorkFactory
    from .records import Actor, ImportContext

log = getLogger(__name__)

BULK_IMPORT_ENTITY_ID = "bulk_upload"
BULK_IMPORT_TYPE = "bulk_import_upsert"


def build_import_audit_entry(
    *,
    actor: Actor,
    result: ImportResult,
    context: ImportContext,
) -> AuditEntry:
    details: dict[str, object] = {
        "count": result.committed,
        "type": BULK_IMPORT_TYPE,
        "department": context.department or "All",
        **result.flags.as_details(),
    }
    if result.failed_at_batch_index is not None:
        details["failed_at_batch_index"] = result.failed_at_batch_index
    return AuditEntry(
        actor_id=actor.actor_id,
        actor_name=actor.actor_name,
        action=AuditAction.UPDATE,
        entity_type=AuditEntityType.STUDENT_REGISTRY,
        entity_id=BULK_IMPORT_ENTITY_ID,
        details=details,
    )


def record_audit(unit_of_work_factory: UnitOfWorkFactory, entry: AuditEntry) -> bool:
    """Store ``entry``; failures are logged and swallowed, never retried."""

    try:
        with unit_of_work_factory() as uow:
            uow.repositories.audit_log.add(entry)
            uow.commit()
    except Exception:  # noqa: BLE001
        log.warning(
            "Could not record audit entry %s for %s",
            entry.action,
            entry.entity_type,
            exc_info=True,
        )
        return False
    return True


def record_import_audit(
    unit_of_work_factory: UnitOfWorkFactory,
    *,
    actor: Actor,
    result: ImportResult,
    context: ImportContext,
) -> bool:
    entry = build_import_audit_entry(actor=actor, result=result, context=context)
    return record_audit(unit_of_work_factory, entry)
