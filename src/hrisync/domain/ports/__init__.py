"""Domain port definitions for adapters."""

from __future__ import annotations

from .audit import AuditAction, AuditEntry, AuditResource, AuditSink
from .fetching import ConnectionCheck, EmployeeFilter, EmployeeSource
from .persistence import (
    ConflictRepository,
    IdentityRepository,
    Repository,
    SyncRunRepository,
    VillageRepository,
)
from .unit_of_work import (
    HrisRepositories,
    HrisUnitOfWork,
    RepositoryCollection,
    UnitOfWork,
    UnitOfWorkFactory,
)

__all__ = [
    "AuditAction",
    "AuditEntry",
    "AuditResource",
    "AuditSink",
    "ConflictRepository",
    "ConnectionCheck",
    "EmployeeFilter",
    "EmployeeSource",
    "HrisRepositories",
    "HrisUnitOfWork",
    "IdentityRepository",
    "Repository",
    "RepositoryCollection",
    "SyncRunRepository",
    "UnitOfWork",
    "UnitOfWorkFactory",
    "VillageRepository",
]
