"""Session lifecycle for the identity store.

``startup`` binds one engine per process; every ``SqlAlchemyHrisUnitOfWork`` then
opens its own short-lived session from it. The sync orchestrator opens one unit of
work per employee so a failing record never rolls back its neighbours; a dry run
uses a single unit of work and rolls it back.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, Literal, Self

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from hrisync.adapters.sqlalchemy.mappings import start_mappers
from hrisync.adapters.sqlalchemy.migrations import upgrade_head
from hrisync.adapters.sqlalchemy.repositories import (
    SqlAlchemyConflictRepository,
    SqlAlchemyIdentityRepository,
    SqlAlchemySyncRunRepository,
    SqlAlchemyVillageRepository,
)
from hrisync.config import get_database_uri
from hrisync.domain.ports import HrisRepositories

if TYPE_CHECKING:
    from types import TracebackType

    from sqlalchemy.engine import Engine

log = getLogger(__name__)


class StartupError(RuntimeError):
    """Raised when the identity store is used before ``startup`` or twice started."""


@dataclass(slots=True)
class _StoreBinding:
    engine: Engine | None = None
    sessions: sessionmaker[Session] | None = field(default=None, repr=False)

    def bind(self, engine: Engine) -> None:
        self.engine = engine
        self.sessions = sessionmaker(bind=engine, expire_on_commit=False)

    def release(self) -> None:
        if self.engine is not None:
            self.engine.dispose()
        self.engine = None
        self.sessions = None

    def open_session(self) -> Session:
        if self.sessions is None:
            raise StartupError(
                "Identity store not started. Call hrisync.adapters.sqlalchemy.startup() "
                "before opening a unit of work."
            )
        return self.sessions()


_BINDING = _StoreBinding()


def startup(
    *,
    engine: Engine | None = None,
    database_uri: str | None = None,
    force: bool = False,
) -> None:
    """Bind the identity store: map the domain classes, migrate, and keep the engine."""

    if _BINDING.engine is not None and not force:
        raise StartupError("Identity store already started. Pass force=True to rebind.")

    resolved = engine or create_engine(database_uri or get_database_uri(), future=True)
    start_mappers()
    upgrade_head(engine=resolved)
    _BINDING.bind(resolved)
    log.debug("Identity store bound to %s", resolved.url.render_as_string(hide_password=True))


def is_started() -> bool:
    return _BINDING.engine is not None


def shutdown() -> None:
    """Dispose the engine and forget it (primarily for tests)."""

    _BINDING.release()


class SqlAlchemyHrisUnitOfWork:
    """One database transaction over identities, conflicts, sync runs, and villages.

    Leaving the ``with`` block without ``commit`` discards every change made in it.
    """

    def __init__(self) -> None:
        if not is_started():
            raise StartupError("Identity store not started; cannot create a unit of work.")
        self._session: Session | None = None
        self._repositories: HrisRepositories | None = None

    def __enter__(self) -> Self:
        if self._session is not None:
            raise StartupError("Unit of work is already open")
        session = _BINDING.open_session()
        self._session = session
        self._repositories = HrisRepositories(
            identities=SqlAlchemyIdentityRepository(session),
            conflicts=SqlAlchemyConflictRepository(session),
            sync_runs=SqlAlchemySyncRunRepository(session),
            villages=SqlAlchemyVillageRepository(session),
        )
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        session = self._require_session()
        try:
            # rollback is a no-op after commit, so uncommitted work never leaks
            session.rollback()
        finally:
            session.close()
            self._session = None
            self._repositories = None
        return False

    @property
    def repositories(self) -> HrisRepositories:
        if self._repositories is None:
            raise StartupError("Unit of work is not open")
        return self._repositories

    def commit(self) -> None:
        self._require_session().commit()

    def rollback(self) -> None:
        self._require_session().rollback()

    def _require_session(self) -> Session:
        if self._session is None:
            raise StartupError("Unit of work is not open")
        return self._session


if TYPE_CHECKING:
    from hrisync.domain.ports import HrisUnitOfWork

    _uow_check: HrisUnitOfWork = SqlAlchemyHrisUnitOfWork()
