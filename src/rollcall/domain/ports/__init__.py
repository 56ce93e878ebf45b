"""Domain port definitions for adapters."""

from __future__ import annotations

from .parsing import RegistryFileParser
from .persistence import AuditLogRepository, Repository, StudentRegistryRepository
from .unit_of_work import (
    RegistryRepositories,
    RegistryUnitOfWork,
    RepositoryCollection,
    UnitOfWork,
)

__all__ = [
    "AuditLogRepository",
    "RegistryFileParser",
    "RegistryRepositories",
    "RegistryUnitOfWork",
    "Repository",
    "RepositoryCollection",
    "StudentRegistryRepository",
    "UnitOfWork",
]
