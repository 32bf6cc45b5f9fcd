"""Application orchestration entry points."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from hrisync.adapters.audit import LoggingAuditSink
from hrisync.adapters.hris import FixtureHrisClient, HrisClient
from hrisync.adapters.sqlalchemy.unit_of_work import SqlAlchemyHrisUnitOfWork, is_started, startup
from hrisync.config import (
    ConfigurationError,
    get_hris_config,
    get_sync_config,
    is_sync_enabled,
    use_fixture_client,
)
from hrisync.domain import resolution, sync
from hrisync.domain.model import utcnow

if TYPE_CHECKING:
    from uuid import UUID

    from hrisync.domain.model import Clock, Conflict, SyncRun
    from hrisync.domain.ports import (
        AuditSink,
        ConnectionCheck,
        EmployeeSource,
        UnitOfWorkFactory,
    )
    from hrisync.domain.resolution import ConflictStats, ResolutionEffect, ResolutionRequest
    from hrisync.domain.sync import SyncHistory, SyncRequest, SyncResult

log = getLogger(__name__)


def build_employee_source() -> EmployeeSource:
    """Return the fixture source when ``HRIS_USE_FIXTURES`` is set, else the REST client."""

    if use_fixture_client():
        log.info("Using fixture HRIS client")
        return FixtureHrisClient()
    return HrisClient(get_hris_config())


def perform_hris_sync(
    request: SyncRequest | None = None,
    *,
    source: EmployeeSource | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    audit_sink: AuditSink | None = None,
    clock: Clock = utcnow,
) -> SyncResult:
    """Run one HRIS sync with the configured adapters.

    Raises:
        ConfigurationError: ``HRIS_SYNC_ENABLED`` is not set, or HRIS settings are missing.
    """

    if not is_sync_enabled():
        raise ConfigurationError("HRIS sync is disabled; set HRIS_SYNC_ENABLED=true to enable it")

    effective_request = request or sync.SyncRequest()
    log.info(
        "Starting HRIS sync: type=%s, dry_run=%s, since=%s, triggered_by=%s",
        effective_request.sync_type,
        effective_request.dry_run,
        effective_request.since,
        effective_request.triggered_by,
    )
    return sync.perform_sync(
        effective_request,
        source=source or build_employee_source(),
        unit_of_work_factory=_unit_of_work_factory(unit_of_work_factory),
        audit_sink=audit_sink or LoggingAuditSink(),
        clock=clock,
        system_actor=get_sync_config().system_actor,
    )


def test_hris_connection(*, source: EmployeeSource | None = None) -> ConnectionCheck:
    return (source or build_employee_source()).test_connection()


def get_pending_conflicts(
    sync_id: UUID | None = None,
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> list[Conflict]:
    return resolution.get_pending_conflicts(
        sync_id, unit_of_work_factory=_unit_of_work_factory(unit_of_work_factory)
    )


def get_conflict_stats(
    sync_id: UUID | None = None,
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> ConflictStats:
    return resolution.get_conflict_stats(
        sync_id, unit_of_work_factory=_unit_of_work_factory(unit_of_work_factory)
    )


def resolve_hris_conflict(
    conflict_id: UUID,
    request: ResolutionRequest,
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    audit_sink: AuditSink | None = None,
) -> ResolutionEffect:
    return resolution.resolve_conflict(
        conflict_id,
        request,
        unit_of_work_factory=_unit_of_work_factory(unit_of_work_factory),
        audit_sink=audit_sink or LoggingAuditSink(),
    )


def auto_resolve_hris_conflict(
    conflict_id: UUID,
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    audit_sink: AuditSink | None = None,
) -> bool:
    return resolution.auto_resolve_conflict(
        conflict_id,
        unit_of_work_factory=_unit_of_work_factory(unit_of_work_factory),
        audit_sink=audit_sink or LoggingAuditSink(),
        actor=get_sync_config().system_actor,
    )


def ignore_hris_conflict(
    conflict_id: UUID,
    *,
    resolved_by: str,
    notes: str | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    audit_sink: AuditSink | None = None,
) -> None:
    resolution.ignore_conflict(
        conflict_id,
        resolved_by=resolved_by,
        notes=notes,
        unit_of_work_factory=_unit_of_work_factory(unit_of_work_factory),
        audit_sink=audit_sink or LoggingAuditSink(),
    )


def get_sync_history(
    *,
    limit: int | None = None,
    offset: int = 0,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> SyncHistory:
    return sync.get_sync_history(
        unit_of_work_factory=_unit_of_work_factory(unit_of_work_factory),
        limit=get_sync_config().history_limit if limit is None else limit,
        offset=offset,
    )


def get_sync_status(
    sync_id: UUID,
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> SyncRun | None:
    return sync.get_sync_status(
        sync_id, unit_of_work_factory=_unit_of_work_factory(unit_of_work_factory)
    )


def get_latest_sync(*, unit_of_work_factory: UnitOfWorkFactory | None = None) -> SyncRun | None:
    return sync.get_latest_sync(unit_of_work_factory=_unit_of_work_factory(unit_of_work_factory))


def is_sync_running(*, unit_of_work_factory: UnitOfWorkFactory | None = None) -> bool:
    return sync.is_sync_running(unit_of_work_factory=_unit_of_work_factory(unit_of_work_factory))


def _unit_of_work_factory(factory: UnitOfWorkFactory | None) -> UnitOfWorkFactory:
    if factory is not None:
        return factory
    if not is_started():
        startup()
    return SqlAlchemyHrisUnitOfWork
