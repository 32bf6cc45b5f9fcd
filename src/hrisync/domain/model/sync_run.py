"""Sync run records and their status state machine."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from hrisync.domain.errors import SyncRunStateError
from hrisync.domain.model.base import Entity
from hrisync.domain.model.enums import SyncStatus, SyncType

if TYPE_CHECKING:
    from datetime import datetime


@dataclass(slots=True, kw_only=True)
class RunCounters:
    records_processed: int = 0
    records_created: int = 0
    records_updated: int = 0
    records_unchanged: int = 0
    records_failed: int = 0
    conflicts_detected: int = 0
    conflicts_auto_resolved: int = 0

    def final_status(self) -> SyncStatus:
        if self.records_failed == 0:
            return SyncStatus.COMPLETED
        if self.records_failed >= self.records_processed:
            return SyncStatus.FAILED
        return SyncStatus.COMPLETED_WITH_ERRORS


@dataclass(eq=False, kw_only=True)
class SyncRun(Entity):
    """One batch execution of the reconciliation loop."""

    sync_type: SyncType
    started_at: datetime
    triggered_by: str | None = None
    status: SyncStatus = SyncStatus.IN_PROGRESS
    completed_at: datetime | None = None
    records_processed: int = 0
    records_created: int = 0
    records_updated: int = 0
    records_unchanged: int = 0
    records_failed: int = 0
    conflicts_detected: int = 0
    conflicts_auto_resolved: int = 0
    error_details: list[dict[str, str]] | None = None
    error_message: str | None = None
    options: dict[str, object] = field(default_factory=dict[str, object])

    @property
    def is_running(self) -> bool:
        return self.status is SyncStatus.IN_PROGRESS

    @property
    def counters(self) -> RunCounters:
        return RunCounters(
            records_processed=self.records_processed,
            records_created=self.records_created,
            records_updated=self.records_updated,
            records_unchanged=self.records_unchanged,
            records_failed=self.records_failed,
            conflicts_detected=self.conflicts_detected,
            conflicts_auto_resolved=self.conflicts_auto_resolved,
        )

    def complete(
        self,
        counters: RunCounters,
        *,
        completed_at: datetime,
        errors: list[dict[str, str]],
    ) -> SyncStatus:
        self._ensure_running()
        self._store_counters(counters)
        self.status = counters.final_status()
        self.completed_at = completed_at
        self.error_details = list(errors) or None
        return self.status

    def fail(self, message: str, *, completed_at: datetime) -> None:
        self._ensure_running()
        self.status = SyncStatus.FAILED
        self.completed_at = completed_at
        self.error_message = message

    def _ensure_running(self) -> None:
        if not self.is_running:
            raise SyncRunStateError(f"Sync run {self.id} already finalised as {self.status}")

    def _store_counters(self, counters: RunCounters) -> None:
        self.records_processed = counters.records_processed
        self.records_created = counters.records_created
        self.records_updated = counters.records_updated
        self.records_unchanged = counters.records_unchanged
        self.records_failed = counters.records_failed
        self.conflicts_detected = counters.conflicts_detected
        self.conflicts_auto_resolved = counters.conflicts_auto_resolved
