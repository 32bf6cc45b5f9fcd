"""Conflicts detected while reconciling HRIS employees."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from hrisync.domain.errors import AlreadyResolvedError
from hrisync.domain.model.base import Entity
from hrisync.domain.model.employee import ExternalEmployee
from hrisync.domain.model.enums import ConflictStatus, ConflictType, ResolutionKind

if TYPE_CHECKING:
    from datetime import datetime
    from uuid import UUID


@dataclass(eq=False, kw_only=True)
class Conflict(Entity):
    """An ambiguity reconciliation could not settle on its own.

    ``hris_data`` and ``system_data`` are snapshots taken at detection time. Once the
    conflict leaves ``pending`` only the resolution metadata is ever written.
    """

    sync_id: UUID
    conflict_type: ConflictType
    hris_employee_id: str
    hris_data: dict[str, object] = field(default_factory=dict[str, object])
    hris_email: str | None = None
    existing_user_id: UUID | None = None
    system_data: dict[str, object] | None = None
    status: ConflictStatus = ConflictStatus.PENDING
    resolution: ResolutionKind | None = None
    resolved_by: str | None = None
    resolved_at: datetime | None = None
    resolution_notes: str | None = None
    created_at: datetime | None = None

    @property
    def is_pending(self) -> bool:
        return self.status is ConflictStatus.PENDING

    @property
    def employee(self) -> ExternalEmployee:
        return ExternalEmployee.from_snapshot(self.hris_data)

    def mark_auto_resolved(
        self,
        resolution: ResolutionKind,
        *,
        at: datetime,
        notes: str | None = None,
    ) -> None:
        self._close(ConflictStatus.AUTO_RESOLVED, resolution, resolved_by=None, at=at, notes=notes)

    def mark_manually_resolved(
        self,
        resolution: ResolutionKind,
        *,
        resolved_by: str,
        at: datetime,
        notes: str | None = None,
    ) -> None:
        self._close(
            ConflictStatus.MANUALLY_RESOLVED,
            resolution,
            resolved_by=resolved_by,
            at=at,
            notes=notes,
        )

    def mark_ignored(self, *, resolved_by: str, at: datetime, notes: str | None = None) -> None:
        self._close(ConflictStatus.IGNORED, None, resolved_by=resolved_by, at=at, notes=notes)

    def _close(
        self,
        status: ConflictStatus,
        resolution: ResolutionKind | None,
        *,
        resolved_by: str | None,
        at: datetime,
        notes: str | None,
    ) -> None:
        if not self.is_pending:
            raise AlreadyResolvedError(f"Conflict {self.id} already {self.status}")
        self.status = status
        self.resolution = resolution
        self.resolved_by = resolved_by
        self.resolved_at = at
        self.resolution_notes = notes
