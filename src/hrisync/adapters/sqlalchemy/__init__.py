"""SQLAlchemy adapter package for hrisync."""

from __future__ import annotations

from .mappings import mapper_registry, start_mappers
from .repositories import (
    SqlAlchemyConflictRepository,
    SqlAlchemyIdentityRepository,
    SqlAlchemySyncRunRepository,
    SqlAlchemyVillageRepository,
)
from .unit_of_work import SqlAlchemyHrisUnitOfWork, shutdown, startup

__all__ = [
    "SqlAlchemyConflictRepository",
    "SqlAlchemyHrisUnitOfWork",
    "SqlAlchemyIdentityRepository",
    "SqlAlchemySyncRunRepository",
    "SqlAlchemyVillageRepository",
    "mapper_registry",
    "shutdown",
    "start_mappers",
    "startup",
]
