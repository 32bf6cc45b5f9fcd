"""Domain model for HRIS identity reconciliation."""

from __future__ import annotations

from .base import Clock, Entity, new_id, today, utcnow
from .conflict import Conflict
from .employee import ExternalEmployee
from .enums import (
    ConflictStatus,
    ConflictType,
    EmployeeStatus,
    ResolutionKind,
    Role,
    SyncStatus,
    SyncType,
)
from .identity import (
    LocalIdentity,
    VillageHistory,
    VillageInterval,
    ensure_single_open_interval,
)
from .sync_run import RunCounters, SyncRun
from .village import Village

__all__ = [
    "Clock",
    "Conflict",
    "ConflictStatus",
    "ConflictType",
    "EmployeeStatus",
    "Entity",
    "ExternalEmployee",
    "LocalIdentity",
    "ResolutionKind",
    "Role",
    "RunCounters",
    "SyncRun",
    "SyncStatus",
    "SyncType",
    "Village",
    "VillageHistory",
    "VillageInterval",
    "ensure_single_open_interval",
    "new_id",
    "today",
    "utcnow",
]
