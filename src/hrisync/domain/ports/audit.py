"""Port for the external audit-logging sink."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Protocol, runtime_checkable


class AuditAction(StrEnum):
    USER_CREATED = "hris.user_created"
    USER_UPDATED = "hris.user_updated"
    VILLAGE_TRANSFER = "hris.village_transfer"
    CONFLICT_AUTO_RESOLVED = "hris.conflict_auto_resolved"
    CONFLICT_RESOLVED = "hris.conflict_resolved"
    CONFLICT_IGNORED = "hris.conflict_ignored"
    SYNC_COMPLETED = "hris.sync_completed"
    SYNC_FAILED = "hris.sync_failed"


class AuditResource(StrEnum):
    USER = "user"
    CONFLICT = "hris_conflict"
    SYNC = "hris_sync"


@dataclass(frozen=True, slots=True, kw_only=True)
class AuditEntry:
    action: AuditAction
    actor: str
    resource_id: str
    resource_type: AuditResource
    metadata: dict[str, object] = field(default_factory=dict[str, object])


@runtime_checkable
class AuditSink(Protocol):
    def record(self, entry: AuditEntry) -> None: ...
