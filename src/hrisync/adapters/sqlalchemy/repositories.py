"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from hrisync.adapters.sqlalchemy.mappings import (
    conflict_table,
    identity_table,
    sync_run_table,
    village_table,
)
from hrisync.domain.errors import SyncAlreadyRunningError
from hrisync.domain.model import Conflict, LocalIdentity, SyncRun, SyncStatus, Village

if TYPE_CHECKING:
    from collections.abc import Sequence
    from uuid import UUID

    from sqlalchemy.orm import Session

    from hrisync.domain.model import ConflictStatus


class SqlAlchemyIdentityRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: LocalIdentity) -> None:
        self.session.add(entity)
        # surface uniqueness violations inside the caller's record boundary
        self.session.flush()

    def get(self, identity_id: UUID) -> LocalIdentity | None:
        return self.session.get(LocalIdentity, identity_id)

    def get_by_employee_id(self, employee_id: str) -> LocalIdentity | None:
        stmt = select(LocalIdentity).where(identity_table.c.employee_id == employee_id)
        return self.session.execute(stmt).scalar_one_or_none()

    def get_by_email(self, email: str) -> LocalIdentity | None:
        stmt = select(LocalIdentity).where(identity_table.c.email == email)
        return self.session.execute(stmt).scalar_one_or_none()


class SqlAlchemyConflictRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: Conflict) -> None:
        self.session.add(entity)
        self.session.flush()

    def get(self, conflict_id: UUID) -> Conflict | None:
        return self.session.get(Conflict, conflict_id)

    def query(
        self,
        *,
        sync_id: UUID | None = None,
        status: ConflictStatus | None = None,
    ) -> Sequence[Conflict]:
        stmt = select(Conflict).order_by(conflict_table.c.created_at.desc())
        if sync_id is not None:
            stmt = stmt.where(conflict_table.c.sync_id == sync_id)
        if status is not None:
            stmt = stmt.where(conflict_table.c.status == status)
        return self.session.execute(stmt).scalars().all()


class SqlAlchemySyncRunRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: SyncRun) -> None:
        self.session.add(entity)
        try:
            self.session.flush()
        except IntegrityError as exc:
            if entity.status is SyncStatus.IN_PROGRESS:
                raise SyncAlreadyRunningError("Another sync run is already in progress") from exc
            raise

    def get(self, sync_id: UUID) -> SyncRun | None:
        return self.session.get(SyncRun, sync_id)

    def in_progress(self) -> SyncRun | None:
        stmt = select(SyncRun).where(sync_run_table.c.status == SyncStatus.IN_PROGRESS).limit(1)
        return self.session.execute(stmt).scalar_one_or_none()

    def latest(self) -> SyncRun | None:
        stmt = select(SyncRun).order_by(sync_run_table.c.started_at.desc()).limit(1)
        return self.session.execute(stmt).scalar_one_or_none()

    def list_recent(self, *, limit: int, offset: int = 0) -> Sequence[SyncRun]:
        stmt = (
            select(SyncRun)
            .order_by(sync_run_table.c.started_at.desc())
            .offset(offset)
            .limit(limit)
        )
        return self.session.execute(stmt).scalars().all()

    def count(self) -> int:
        stmt = select(func.count()).select_from(sync_run_table)
        return self.session.execute(stmt).scalar_one()


class SqlAlchemyVillageRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: Village) -> None:
        self.session.add(entity)

    def exists(self, village_id: str) -> bool:
        stmt = select(village_table.c.id).where(village_table.c.id == village_id)
        return self.session.execute(stmt).first() is not None

