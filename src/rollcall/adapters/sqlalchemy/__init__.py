"""SQLAlchemy adapter package for the student registry."""

from __future__ import annotations

from .mappings import (
    admin_log_table,
    mapper_registry,
    start_mappers,
    student_registry_table,
)
from .repositories import SqlAlchemyAuditLogRepository, SqlAlchemyStudentRegistryRepository
from .unit_of_work import SqlAlchemyRegistryUnitOfWork, shutdown, startup

__all__ = [
    "SqlAlchemyAuditLogRepository",
    "SqlAlchemyRegistryUnitOfWork",
    "SqlAlchemyStudentRegistryRepository",
    "admin_log_table",
    "mapper_registry",
    "shutdown",
    "start_mappers",
    "startup",
    "student_registry_table",
]
