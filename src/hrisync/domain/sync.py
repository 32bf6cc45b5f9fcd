"""Sync orchestration: run lifecycle, per-employee processing and run inspection."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from logging import getLogger
from typing import TYPE_CHECKING

from hrisync.domain.errors import (
    FatalSyncError,
    IdentityNotFoundError,
    RecordError,
    SyncAlreadyRunningError,
    SyncRunStateError,
)
from hrisync.domain.model import (
    EmployeeStatus,
    ResolutionKind,
    RunCounters,
    SyncRun,
    SyncType,
    today,
    utcnow,
)
from hrisync.domain.ports import AuditAction, AuditEntry, AuditResource, EmployeeFilter
from hrisync.domain.reconciliation import (
    ConflictDecision,
    CreateDecision,
    ReconcileAction,
    ReconciliationEngine,
    SkipDecision,
    UpdateDecision,
    apply_identity_changes,
    identity_from_employee,
    plan_identity_update,
)
from hrisync.domain.resolution import apply_auto_resolution

if TYPE_CHECKING:
    from datetime import datetime
    from uuid import UUID

    from hrisync.domain.model import Clock, ExternalEmployee, SyncStatus
    from hrisync.domain.ports import (
        AuditSink,
        EmployeeSource,
        HrisRepositories,
        UnitOfWorkFactory,
    )
    from hrisync.domain.reconciliation import ReconcileOutcome

log = getLogger(__name__)

SYSTEM_ACTOR = "system"
DEFAULT_HISTORY_LIMIT = 20


@dataclass(frozen=True, slots=True, kw_only=True)
class SyncRequest:
    """Options for one sync run; ``since`` only applies to incremental syncs."""

    sync_type: SyncType = SyncType.FULL
    triggered_by: str | None = None
    dry_run: bool = False
    since: datetime | None = None

    def to_options(self) -> dict[str, object]:
        return {
            "sync_type": self.sync_type.value,
            "triggered_by": self.triggered_by,
            "dry_run": self.dry_run,
            "since": self.since.isoformat() if self.since is not None else None,
        }


@dataclass(frozen=True, slots=True, kw_only=True)
class SyncResult:
    sync_id: UUID
    status: SyncStatus
    dry_run: bool
    records_processed: int
    records_created: int
    records_updated: int
    records_unchanged: int
    records_failed: int
    conflicts_detected: int
    conflicts_auto_resolved: int
    duration_ms: int
    errors: tuple[dict[str, str], ...] = ()

    def to_summary(self) -> dict[str, object]:
        return {
            "sync_id": str(self.sync_id),
            "status": self.status.value,
            "dry_run": self.dry_run,
            "records_processed": self.records_processed,
            "records_created": self.records_created,
            "records_updated": self.records_updated,
            "records_unchanged": self.records_unchanged,
            "records_failed": self.records_failed,
            "conflicts_detected": self.conflicts_detected,
            "conflicts_auto_resolved": self.conflicts_auto_resolved,
            "duration_ms": self.duration_ms,
            "errors": list(self.errors),
        }


@dataclass(frozen=True, slots=True, kw_only=True)
class RecordOutcome:
    """Successful processing of one employee, as folded into the run counters."""

    employee_id: str
    action: ReconcileAction
    created: bool = False
    updated: bool = False
    auto_resolved: bool = False

    @property
    def unchanged(self) -> bool:
        return self.action is ReconcileAction.UPDATE and not self.updated


@dataclass(frozen=True, slots=True)
class SyncHistory:
    runs: list[SyncRun]
    total: int


def perform_sync(
    request: SyncRequest,
    *,
    source: EmployeeSource,
    unit_of_work_factory: UnitOfWorkFactory,
    audit_sink: AuditSink | None = None,
    clock: Clock = utcnow,
    system_actor: str = SYSTEM_ACTOR,
) -> SyncResult:
    """Run one sync over the employees ``source`` returns.

    Employees are processed sequentially in fetch order, each in its own unit of
    work; a failing record is counted and skipped. A dry run processes the whole
    batch in a single unit of work that is rolled back at the end, so later
    records see what earlier ones would have written and the counters match a
    real run.

    Raises:
        SyncAlreadyRunningError: Another run is still in progress.
        FatalSyncError: Employees could not be fetched; the run is marked failed.
    """

    started_at = clock()
    run = _start_run(request, started_at, unit_of_work_factory)
    actor = request.triggered_by or system_actor
    log.info("Sync %s started (%s, dry_run=%s)", run.id, request.sync_type, request.dry_run)

    try:
        employees = _fetch_employees(source, request)
    except Exception as exc:
        message = str(exc) or type(exc).__name__
        log.error("Sync %s aborted: fetch failed: %s", run.id, message)
        _fail_run(run.id, message, unit_of_work_factory, audit_sink, actor=actor, clock=clock)
        raise FatalSyncError(message, sync_id=run.id) from exc

    log.info("Fetched %d employees from HRIS", len(employees))
    processor = _EmployeeProcessor(
        sync_id=run.id,
        dry_run=request.dry_run,
        unit_of_work_factory=unit_of_work_factory,
        audit_sink=audit_sink,
        clock=clock,
        actor=system_actor,
    )
    try:
        counters = RunCounters()
        errors: list[dict[str, str]] = []
        for record in processor.process_all(employees):
            _tally(counters, errors, record)
        result = _complete_run(
            run.id,
            counters,
            errors,
            dry_run=request.dry_run,
            started_at=started_at,
            completed_at=clock(),
            unit_of_work_factory=unit_of_work_factory,
        )
    except Exception as exc:
        log.exception("Sync %s aborted while processing", run.id)
        _abandon_run(
            run.id,
            str(exc) or type(exc).__name__,
            unit_of_work_factory,
            audit_sink,
            actor=actor,
            clock=clock,
        )
        raise

    if audit_sink is not None:
        audit_sink.record(
            AuditEntry(
                action=AuditAction.SYNC_COMPLETED,
                actor=actor,
                resource_id=str(run.id),
                resource_type=AuditResource.SYNC,
                metadata=result.to_summary(),
            )
        )
    log.info(
        "Sync %s finished as %s: %d processed, %d created, %d updated, %d failed, %d conflicts",
        run.id,
        result.status,
        counters.records_processed,
        counters.records_created,
        counters.records_updated,
        counters.records_failed,
        counters.conflicts_detected,
    )
    return result


def get_sync_history(
    *,
    unit_of_work_factory: UnitOfWorkFactory,
    limit: int = DEFAULT_HISTORY_LIMIT,
    offset: int = 0,
) -> SyncHistory:
    """Runs newest first, with the total number of runs for paging."""

    if limit < 0 or offset < 0:
        raise ValueError("limit and offset must be non-negative")
    with unit_of_work_factory() as uow:
        runs = uow.repositories.sync_runs
        return SyncHistory(
            runs=list(runs.list_recent(limit=limit, offset=offset)),
            total=runs.count(),
        )


def get_sync_status(sync_id: UUID, *, unit_of_work_factory: UnitOfWorkFactory) -> SyncRun | None:
    with unit_of_work_factory() as uow:
        return uow.repositories.sync_runs.get(sync_id)


def get_latest_sync(*, unit_of_work_factory: UnitOfWorkFactory) -> SyncRun | None:
    with unit_of_work_factory() as uow:
        return uow.repositories.sync_runs.latest()


def is_sync_running(*, unit_of_work_factory: UnitOfWorkFactory) -> bool:
    with unit_of_work_factory() as uow:
        return uow.repositories.sync_runs.in_progress() is not None
@dataclass(slots=True, kw_only=True)
class _EmployeeProcessor:
    sync_id: UUID
    dry_run: bool
    unit_of_work_factory: UnitOfWorkFactory
    audit_sink: AuditSink | None = None
    clock: Clock = field(default=utcnow)
    actor: str = SYSTEM_ACTOR

    def process_all(self, employees: list[ExternalEmployee]) -> list[RecordOutcome | RecordError]:
        if not self.dry_run:
            return [self.process(employee) for employee in employees]
        with self.unit_of_work_factory() as uow:
            records = [self._guarded(employee, uow.repositories) for employee in employees]
            uow.rollback()
        return records

    def process(self, employee: ExternalEmployee) -> RecordOutcome | RecordError:
        try:
            with self.unit_of_work_factory() as uow:
                record = self._reconcile(employee, uow.repositories)
                if isinstance(record, RecordOutcome):
                    uow.commit()
        except Exception as exc:  # noqa: BLE001
            return self._failed(employee, exc)
        return record

    def _guarded(
        self,
        employee: ExternalEmployee,
        repositories: HrisRepositories,
    ) -> RecordOutcome | RecordError:
        try:
            return self._reconcile(employee, repositories)
        except Exception as exc:  # noqa: BLE001
            return self._failed(employee, exc)

    def _failed(self, employee: ExternalEmployee, exc: Exception) -> RecordError:
        log.warning("Error processing employee %s: %s", employee.employee_id, exc)
        return RecordError(employee.employee_id, str(exc) or type(exc).__name__)

    def _reconcile(
        self,
        employee: ExternalEmployee,
        repositories: HrisRepositories,
    ) -> RecordOutcome | RecordError:
        engine = ReconciliationEngine(repositories, clock=self.clock)
        outcome = engine.reconcile(employee, self.sync_id)
        match outcome:
            case CreateDecision():
                return self._create(employee, repositories)
            case UpdateDecision():
                return self._update(outcome, employee, repositories)
            case ConflictDecision():
                return self._conflict(outcome, employee, repositories)
            case SkipDecision():
                return RecordError(employee.employee_id, outcome.reason)

    def _create(self, employee: ExternalEmployee, repositories: HrisRepositories) -> RecordOutcome:
        identity = identity_from_employee(employee, on=today(self.clock), at=self.clock())
        repositories.identities.add(identity)
        self._audit(AuditAction.USER_CREATED, identity.id, employee)
        return RecordOutcome(
            employee_id=employee.employee_id,
            action=ReconcileAction.CREATE,
            created=True,
        )

    def _update(
        self,
        decision: UpdateDecision,
        employee: ExternalEmployee,
        repositories: HrisRepositories,
    ) -> RecordOutcome:
        identity = repositories.identities.get(decision.user_id)
        if identity is None:
            raise IdentityNotFoundError(decision.user_id)
        changes = plan_identity_update(identity, employee, on=today(self.clock))
        move = changes.village
        if move is not None and not repositories.villages.exists(move.village_id):
            log.info(
                "Keeping %s in village %s: HRIS village %s does not exist",
                employee.employee_id,
                identity.current_village_id,
                move.village_id,
            )
            changes = replace(changes, village=None)
        if changes.is_empty:
            return RecordOutcome(employee_id=employee.employee_id, action=ReconcileAction.UPDATE)

        previous_village = identity.current_village_id
        apply_identity_changes(identity, changes, at=self.clock())
        self._audit(
            AuditAction.USER_UPDATED,
            identity.id,
            employee,
            changed_fields=list(changes.changed_fields),
        )
        if changes.village is not None:
            self._audit(
                AuditAction.VILLAGE_TRANSFER,
                identity.id,
                employee,
                from_village_id=previous_village,
                to_village_id=changes.village.village_id,
                effective=changes.village.effective.isoformat(),
            )
        return RecordOutcome(
            employee_id=employee.employee_id,
            action=ReconcileAction.UPDATE,
            updated=True,
        )

    def _conflict(
        self,
        decision: ConflictDecision,
        employee: ExternalEmployee,
        repositories: HrisRepositories,
    ) -> RecordOutcome:
        log.info(
            "Conflict detected for %s: %s (%s)",
            employee.employee_id,
            decision.reason,
            decision.conflict_type,
        )
        effect = apply_auto_resolution(decision.conflict, repositories, clock=self.clock)
        resolution = effect.resolution if effect is not None else None
        if effect is not None and effect.identity_id is not None:
            self._audit(
                AuditAction.USER_CREATED if effect.created else AuditAction.USER_UPDATED,
                effect.identity_id,
                employee,
                conflict_id=str(decision.conflict_id),
                resolution=effect.resolution.value,
                changed_fields=list(effect.changed_fields),
            )
        return RecordOutcome(
            employee_id=employee.employee_id,
            action=ReconcileAction.CONFLICT,
            created=resolution is ResolutionKind.CREATE_NEW,
            updated=resolution is ResolutionKind.USE_HRIS,
            auto_resolved=resolution is not None,
        )

    def _audit(
        self,
        action: AuditAction,
        identity_id: UUID,
        employee: ExternalEmployee,
        **extra: object,
    ) -> None:
        # dry-run writes are rolled back, so nothing happened worth auditing
        if self.audit_sink is None or self.dry_run:
            return
        metadata: dict[str, object] = {
            "sync_id": str(self.sync_id),
            "employee": employee.to_snapshot(),
        }
        metadata.update(extra)
        self.audit_sink.record(
            AuditEntry(
                action=action,
                actor=self.actor,
                resource_id=str(identity_id),
                resource_type=AuditResource.USER,
                metadata=metadata,
            )
        )


def _start_run(
    request: SyncRequest,
    started_at: datetime,
    unit_of_work_factory: UnitOfWorkFactory,
) -> SyncRun:
    with unit_of_work_factory() as uow:
        runs = uow.repositories.sync_runs
        running = runs.in_progress()
        if running is not None:
            raise SyncAlreadyRunningError(f"Sync {running.id} is already in progress")
        run = SyncRun(
            sync_type=request.sync_type,
            started_at=started_at,
            triggered_by=request.triggered_by,
            options=request.to_options(),
        )
        runs.add(run)
        uow.commit()
    return run


def _fetch_employees(source: EmployeeSource, request: SyncRequest) -> list[ExternalEmployee]:
    if request.sync_type is SyncType.INCREMENTAL and request.since is not None:
        return list(source.fetch_since(request.since))
    return list(source.fetch_all(EmployeeFilter(status=EmployeeStatus.ACTIVE)))


def _complete_run(
    sync_id: UUID,
    counters: RunCounters,
    errors: list[dict[str, str]],
    *,
    dry_run: bool,
    started_at: datetime,
    completed_at: datetime,
    unit_of_work_factory: UnitOfWorkFactory,
) -> SyncResult:
    with unit_of_work_factory() as uow:
        run = _load_run(sync_id, uow.repositories)
        status = run.complete(counters, completed_at=completed_at, errors=errors)
        uow.commit()
    return SyncResult(
        sync_id=sync_id,
        status=status,
        dry_run=dry_run,
        records_processed=counters.records_processed,
        records_created=counters.records_created,
        records_updated=counters.records_updated,
        records_unchanged=counters.records_unchanged,
        records_failed=counters.records_failed,
        conflicts_detected=counters.conflicts_detected,
        conflicts_auto_resolved=counters.conflicts_auto_resolved,
        duration_ms=_elapsed_ms(started_at, completed_at),
        errors=tuple(errors),
    )


def _fail_run(
    sync_id: UUID,
    message: str,
    unit_of_work_factory: UnitOfWorkFactory,
    audit_sink: AuditSink | None,
    *,
    actor: str,
    clock: Clock,
) -> None:
    with unit_of_work_factory() as uow:
        run = _load_run(sync_id, uow.repositories)
        run.fail(message, completed_at=clock())
        uow.commit()
    if audit_sink is not None:
        audit_sink.record(
            AuditEntry(
                action=AuditAction.SYNC_FAILED,
                actor=actor,
                resource_id=str(sync_id),
                resource_type=AuditResource.SYNC,
                metadata={"sync_id": str(sync_id), "error": message},
            )
        )


def _abandon_run(
    sync_id: UUID,
    message: str,
    unit_of_work_factory: UnitOfWorkFactory,
    audit_sink: AuditSink | None,
    *,
    actor: str,
    clock: Clock,
) -> None:
    """Mark the run failed on the way out of an unexpected error.

    The original error is what the caller re-raises, so a second failure here is
    logged rather than allowed to replace it.
    """

    try:
        _fail_run(sync_id, message, unit_of_work_factory, audit_sink, actor=actor, clock=clock)
    except Exception:
        log.exception("Could not mark sync %s as failed", sync_id)


def _load_run(sync_id: UUID, repositories: HrisRepositories) -> SyncRun:
    run = repositories.sync_runs.get(sync_id)
    if run is None:
        raise SyncRunStateError(f"Sync run {sync_id} disappeared while running")
    return run


def _tally(
    counters: RunCounters,
    errors: list[dict[str, str]],
    result: RecordOutcome | RecordError,
) -> None:
    counters.records_processed += 1
    match result:
        case RecordError():
            counters.records_failed += 1
            errors.append({"employee_id": result.employee_id, "error": result.message})
        case RecordOutcome():
            counters.records_created += int(result.created)
            counters.records_updated += int(result.updated)
            counters.records_unchanged += int(result.unchanged)
            if result.action is ReconcileAction.CONFLICT:
                counters.conflicts_detected += 1
                counters.conflicts_auto_resolved += int(result.auto_resolved)


def _elapsed_ms(started_at: datetime, completed_at: datetime) -> int:
    return max(0, int((completed_at - started_at).total_seconds() * 1000))
