"""Ports for persisting identities, conflicts and sync runs."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence
    from uuid import UUID

    from hrisync.domain.model import (
        Conflict,
        ConflictStatus,
        LocalIdentity,
        SyncRun,
        Village,
    )


@runtime_checkable
class Repository[TEntity](Protocol):
    """Minimal repository contract for a persistent aggregate store."""

    def add(self, entity: TEntity) -> None: ...


@runtime_checkable
class IdentityRepository(Repository["LocalIdentity"], Protocol):
    """Identities are unique on ``employee_id`` and ``email``."""

    def get(self, identity_id: UUID) -> LocalIdentity | None: ...

    def get_by_employee_id(self, employee_id: str) -> LocalIdentity | None: ...

    def get_by_email(self, email: str) -> LocalIdentity | None: ...


@runtime_checkable
class ConflictRepository(Repository["Conflict"], Protocol):
    def get(self, conflict_id: UUID) -> Conflict | None: ...

    def query(
        self,
        *,
        sync_id: UUID | None = None,
        status: ConflictStatus | None = None,
    ) -> Sequence[Conflict]:
        """Return matching conflicts, newest first."""
        ...


@runtime_checkable
class SyncRunRepository(Repository["SyncRun"], Protocol):
    """Sync runs; ``add`` raises ``SyncAlreadyRunningError`` on a second in-progress run."""

    def get(self, sync_id: UUID) -> SyncRun | None: ...

    def in_progress(self) -> SyncRun | None: ...

    def latest(self) -> SyncRun | None: ...

    def list_recent(self, *, limit: int, offset: int = 0) -> Sequence[SyncRun]: ...

    def count(self) -> int: ...


@runtime_checkable
class VillageRepository(Repository["Village"], Protocol):
    def exists(self, village_id: str) -> bool: ...
