"""SQLAlchemy mapping metadata for the registry domain model."""

from __future__ import annotations

import logging
import uuid
from datetime import UTC, datetime
from enum import StrEnum
from functools import cache

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Dialect,
    Enum,
    Float,
    Index,
    Integer,
    String,
    Table,
    TypeDecorator,
    UniqueConstraint,
    Uuid,
    orm,
)
from sqlalchemy.orm import configure_mappers

from rollcall.domain.model import AuditAction, AuditEntityType, AuditEntry, StudentRecord

log = logging.getLogger(__name__)

UUIDColumnType = Uuid[uuid.UUID]


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


def _value_enum(enum_cls: type[StrEnum]) -> Enum:
    """Store enum values (not member names) so rows read the same as the audit contract."""

    return Enum(
        enum_cls,
        native_enum=False,
        length=32,
        values_callable=lambda members: [member.value for member in members],
    )


mapper_registry = orm.registry()
mapper_registry.metadata.naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_N_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

student_registry_table = Table(
    "student_registry",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("name", String, nullable=False),
    Column("roll_number", String, nullable=False),
    Column("roll_number_key", String, nullable=False),
    Column("email", String, nullable=False),
    Column("institution", String, nullable=False),
    Column("department", String, nullable=False),
    Column("cgpa", Float, nullable=False, default=0.0),
    Column("backlogs", Integer, nullable=False, default=0),
    Column("passout_year", Integer, nullable=True),
    Column("is_whitelisted", Boolean, nullable=False, default=False),
    Column("last_modified_by_id", String, nullable=True),
    Column("last_modified_by_name", String, nullable=True),
    Column("last_modified_at", UTCDateTime(), nullable=False),
    UniqueConstraint("institution", "email"),
    UniqueConstraint("institution", "roll_number_key"),
    Index("ix_student_registry_institution_department", "institution", "department"),
)

admin_log_table = Table(
    "admin_logs",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("admin_id", String, nullable=False),
    Column("admin_name", String, nullable=False),
    Column("action", _value_enum(AuditAction), nullable=False),
    Column("entity_type", _value_enum(AuditEntityType), nullable=False),
    Column("entity_id", String, nullable=True),
    Column("details", JSON, nullable=False, default=dict),
    Column("created_at", UTCDateTime(), nullable=False),
)


@cache
def start_mappers() -> orm.registry:
    """Configure SQLAlchemy mappers for the domain model."""

    log.info("Starting SQLAlchemy mappers")

    mapper_registry.map_imperatively(StudentRecord, student_registry_table)
    mapper_registry.map_imperatively(
        AuditEntry,
        admin_log_table,
        properties={
            "actor_id": admin_log_table.c.admin_id,
            "actor_name": admin_log_table.c.admin_name,
        },
    )

    configure_mappers()
    return mapper_registry
