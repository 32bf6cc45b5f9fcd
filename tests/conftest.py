from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine  # noqa: TC002
from sqlalchemy.pool import StaticPool

from hrisync.adapters.sqlalchemy import start_mappers
from hrisync.adapters.sqlalchemy.migrations import upgrade_head
from hrisync.adapters.sqlalchemy.unit_of_work import SqlAlchemyHrisUnitOfWork, shutdown, startup
from tests.helpers.hris import InMemoryStore, RecordingAuditSink

os.environ.setdefault("DATABASE_URI", "sqlite+pysqlite:///:memory:")

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator


@pytest.fixture(autouse=True)
def _isolated_hris_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "HRIS_API_URL",
        "HRIS_API_KEY",
        "HRIS_SYNC_ENABLED",
        "HRIS_USE_FIXTURES",
        "HRIS_TIMEOUT_SECONDS",
        "HRIS_PAGE_SIZE",
        "HRIS_MAX_CONCURRENT_PAGES",
        "HRIS_RETRY_TOTAL",
        "HRIS_MAX_REQUESTS_PER_SECOND",
        "HRIS_HISTORY_LIMIT",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def audit_sink() -> RecordingAuditSink:
    return RecordingAuditSink()


@pytest.fixture
def sqlite_engine() -> Iterator[Engine]:
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        future=True,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    start_mappers()
    upgrade_head(engine=engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def sqlite_unit_of_work(
    sqlite_engine: Engine,
) -> Iterator[Callable[[], SqlAlchemyHrisUnitOfWork]]:
    startup(engine=sqlite_engine, force=True)

    def factory() -> SqlAlchemyHrisUnitOfWork:
        return SqlAlchemyHrisUnitOfWork()

    try:
        yield factory
    finally:
        shutdown()
