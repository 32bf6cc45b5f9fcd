"""Automatic and operator-driven resolution of HRIS conflicts."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from hrisync.domain.errors import (
    AlreadyResolvedError,
    ConflictNotFoundError,
    IdentityNotFoundError,
    InvalidResolutionError,
)
from hrisync.domain.model import (
    ConflictStatus,
    ConflictType,
    ResolutionKind,
    today,
    utcnow,
)
from hrisync.domain.ports import AuditAction, AuditEntry, AuditResource
from hrisync.domain.reconciliation import (
    IdentityChanges,
    apply_identity_changes,
    identity_from_employee,
    plan_identity_merge,
    plan_identity_update,
)

if TYPE_CHECKING:
    from uuid import UUID

    from hrisync.domain.model import Clock, Conflict, ExternalEmployee, LocalIdentity
    from hrisync.domain.ports import AuditSink, HrisRepositories, UnitOfWorkFactory

log = getLogger(__name__)

EMAIL_UPDATED_NOTE = "Auto-resolved: Email updated from HRIS"
CREATED_WITHOUT_VILLAGE_NOTE = "Auto-resolved: Create user without village assignment"


@dataclass(frozen=True, slots=True)
class AutoResolution:
    resolution: ResolutionKind
    notes: str


@dataclass(frozen=True, slots=True, kw_only=True)
class ResolutionRequest:
    resolution: ResolutionKind
    resolved_by: str
    notes: str | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class ResolutionEffect:
    """What applying a resolution did to the identity store."""

    resolution: ResolutionKind
    identity_id: UUID | None = None
    created: bool = False
    changed_fields: tuple[str, ...] = ()


@dataclass(slots=True, kw_only=True)
class ConflictStats:
    total: int = 0
    pending: int = 0
    auto_resolved: int = 0
    manually_resolved: int = 0
    ignored: int = 0
    by_type: dict[ConflictType, int] = field(default_factory=dict[ConflictType, int])


def decide_auto_resolution(
    conflict: Conflict,
    repositories: HrisRepositories,
) -> AutoResolution | None:
    """Return the automatic resolution for ``conflict`` without applying it.

    ``duplicate_email`` is never decided automatically. ``email_change`` only when
    the new address is not held by another identity. ``village_not_found`` creates
    the identity without a village, unless its keys were claimed since detection.
    """

    if not conflict.is_pending:
        return None
    employee = conflict.employee
    identities = repositories.identities
    match conflict.conflict_type:
        case ConflictType.EMAIL_CHANGE:
            if conflict.existing_user_id is None:
                return None
            holder = identities.get_by_email(employee.email)
            if holder is not None and holder.id != conflict.existing_user_id:
                return None
            return AutoResolution(ResolutionKind.USE_HRIS, EMAIL_UPDATED_NOTE)
        case ConflictType.VILLAGE_NOT_FOUND:
            if _claimed(employee, repositories):
                return None
            return AutoResolution(ResolutionKind.CREATE_NEW, CREATED_WITHOUT_VILLAGE_NOTE)
        case ConflictType.DUPLICATE_EMAIL:
            return None


def apply_auto_resolution(
    conflict: Conflict,
    repositories: HrisRepositories,
    *,
    clock: Clock = utcnow,
) -> ResolutionEffect | None:
    """Decide and apply the automatic resolution inside an open unit of work."""

    decision = decide_auto_resolution(conflict, repositories)
    if decision is None:
        return None
    now = clock()
    if decision.resolution is ResolutionKind.USE_HRIS:
        # only the address moves; other fields are left for the next sync
        identity = _existing_identity(conflict, repositories)
        changes = IdentityChanges(email=conflict.employee.email)
        apply_identity_changes(identity, changes, at=now)
        effect = ResolutionEffect(
            resolution=decision.resolution,
            identity_id=identity.id,
            changed_fields=changes.changed_fields,
        )
    else:
        effect = _apply_resolution(decision.resolution, conflict, repositories, clock=clock)
    conflict.mark_auto_resolved(decision.resolution, at=now, notes=decision.notes)
    return effect


def auto_resolve_conflict(
    conflict_id: UUID,
    *,
    unit_of_work_factory: UnitOfWorkFactory,
    audit_sink: AuditSink | None = None,
    clock: Clock = utcnow,
    actor: str = "system",
) -> bool:
    """Auto-resolve a stored conflict; ``False`` when missing, closed, or ineligible."""

    with unit_of_work_factory() as uow:
        conflict = uow.repositories.conflicts.get(conflict_id)
        if conflict is None or not conflict.is_pending:
            return False
        effect = apply_auto_resolution(conflict, uow.repositories, clock=clock)
        if effect is None:
            return False
        if audit_sink is not None:
            audit_sink.record(
                _conflict_entry(AuditAction.CONFLICT_AUTO_RESOLVED, conflict, effect, actor=actor)
            )
        uow.commit()
    return True


def resolve_conflict(
    conflict_id: UUID,
    request: ResolutionRequest,
    *,
    unit_of_work_factory: UnitOfWorkFactory,
    audit_sink: AuditSink | None = None,
    clock: Clock = utcnow,
) -> ResolutionEffect:
    """Apply an operator's resolution to a pending conflict.

    Raises:
        ConflictNotFoundError: No conflict with ``conflict_id`` exists.
        AlreadyResolvedError: The conflict is no longer pending.
        InvalidResolutionError: The resolution cannot be applied to this conflict.
    """

    with unit_of_work_factory() as uow:
        conflict = _pending_conflict(conflict_id, uow.repositories)
        effect = _apply_resolution(request.resolution, conflict, uow.repositories, clock=clock)
        conflict.mark_manually_resolved(
            request.resolution,
            resolved_by=request.resolved_by,
            at=clock(),
            notes=request.notes,
        )
        if audit_sink is not None:
            audit_sink.record(
                _conflict_entry(
                    AuditAction.CONFLICT_RESOLVED,
                    conflict,
                    effect,
                    actor=request.resolved_by,
                )
            )
        uow.commit()
    log.info("Conflict %s resolved as %s by %s", conflict_id, request.resolution, request.resolved_by)
    return effect


def ignore_conflict(
    conflict_id: UUID,
    *,
    resolved_by: str,
    notes: str | None = None,
    unit_of_work_factory: UnitOfWorkFactory,
    audit_sink: AuditSink | None = None,
    clock: Clock = utcnow,
) -> None:
    """Close a pending conflict without touching any identity."""

    with unit_of_work_factory() as uow:
        conflict = _pending_conflict(conflict_id, uow.repositories)
        conflict.mark_ignored(resolved_by=resolved_by, at=clock(), notes=notes)
        if audit_sink is not None:
            audit_sink.record(
                AuditEntry(
                    action=AuditAction.CONFLICT_IGNORED,
                    actor=resolved_by,
                    resource_id=str(conflict.id),
                    resource_type=AuditResource.CONFLICT,
                    metadata={"sync_id": str(conflict.sync_id), "notes": notes},
                )
            )
        uow.commit()


def get_pending_conflicts(
    sync_id: UUID | None = None,
    *,
    unit_of_work_factory: UnitOfWorkFactory,
) -> list[Conflict]:
    """Pending conflicts, newest first, optionally limited to one run."""

    with unit_of_work_factory() as uow:
        return list(
            uow.repositories.conflicts.query(sync_id=sync_id, status=ConflictStatus.PENDING)
        )


def get_conflict_stats(
    sync_id: UUID | None = None,
    *,
    unit_of_work_factory: UnitOfWorkFactory,
) -> ConflictStats:
    with unit_of_work_factory() as uow:
        conflicts = uow.repositories.conflicts.query(sync_id=sync_id)
    statuses = Counter(conflict.status for conflict in conflicts)
    return ConflictStats(
        total=len(conflicts),
        pending=statuses[ConflictStatus.PENDING],
        auto_resolved=statuses[ConflictStatus.AUTO_RESOLVED],
        manually_resolved=statuses[ConflictStatus.MANUALLY_RESOLVED],
        ignored=statuses[ConflictStatus.IGNORED],
        by_type=dict(Counter(conflict.conflict_type for conflict in conflicts)),
    )


def _apply_resolution(
    resolution: ResolutionKind,
    conflict: Conflict,
    repositories: HrisRepositories,
    *,
    clock: Clock,
) -> ResolutionEffect:
    now = clock()
    employee = conflict.employee
    match resolution:
        case ResolutionKind.KEEP_SYSTEM:
            return ResolutionEffect(resolution=resolution, identity_id=conflict.existing_user_id)
        case ResolutionKind.USE_HRIS:
            identity = _existing_identity(conflict, repositories)
            changes = plan_identity_update(identity, employee, on=today(clock))
            _ensure_unclaimed(identity, changes, repositories)
        case ResolutionKind.MERGE:
            identity = _existing_identity(conflict, repositories)
            changes = plan_identity_merge(identity, employee, on=today(clock))
        case ResolutionKind.CREATE_NEW:
            if _claimed(employee, repositories):
                raise InvalidResolutionError(
                    f"Cannot create identity for {employee.employee_id}: "
                    "employee_id or email already in use"
                )
            village_id = employee.village_id
            identity = identity_from_employee(
                employee,
                on=today(clock),
                at=now,
                assign_village=bool(village_id) and repositories.villages.exists(village_id),
            )
            repositories.identities.add(identity)
            return ResolutionEffect(resolution=resolution, identity_id=identity.id, created=True)
    apply_identity_changes(identity, changes, at=now)
    return ResolutionEffect(
        resolution=resolution,
        identity_id=identity.id,
        changed_fields=changes.changed_fields,
    )


def _pending_conflict(conflict_id: UUID, repositories: HrisRepositories) -> Conflict:
    conflict = repositories.conflicts.get(conflict_id)
    if conflict is None:
        raise ConflictNotFoundError(conflict_id)
    if not conflict.is_pending:
        raise AlreadyResolvedError(f"Conflict {conflict_id} already {conflict.status}")
    return conflict


def _existing_identity(conflict: Conflict, repositories: HrisRepositories) -> LocalIdentity:
    if conflict.existing_user_id is None:
        raise InvalidResolutionError(
            f"Conflict {conflict.id} ({conflict.conflict_type}) has no existing identity"
        )
    identity = repositories.identities.get(conflict.existing_user_id)
    if identity is None:
        raise IdentityNotFoundError(conflict.existing_user_id)
    return identity


def _ensure_unclaimed(
    identity: LocalIdentity,
    changes: IdentityChanges,
    repositories: HrisRepositories,
) -> None:
    identities = repositories.identities
    if changes.email is not None:
        holder = identities.get_by_email(changes.email)
        if holder is not None and holder.id != identity.id:
            raise InvalidResolutionError(f"Email {changes.email} belongs to identity {holder.id}")
    if changes.employee_id is not None:
        holder = identities.get_by_employee_id(changes.employee_id)
        if holder is not None and holder.id != identity.id:
            raise InvalidResolutionError(
                f"Employee {changes.employee_id} belongs to identity {holder.id}"
            )


def _claimed(employee: ExternalEmployee, repositories: HrisRepositories) -> bool:
    identities = repositories.identities
    return (
        identities.get_by_employee_id(employee.employee_id) is not None
        or identities.get_by_email(employee.email) is not None
    )


def _conflict_entry(
    action: AuditAction,
    conflict: Conflict,
    effect: ResolutionEffect,
    *,
    actor: str,
) -> AuditEntry:
    return AuditEntry(
        action=action,
        actor=actor,
        resource_id=str(conflict.id),
        resource_type=AuditResource.CONFLICT,
        metadata={
            "sync_id": str(conflict.sync_id),
            "conflict_type": conflict.conflict_type.value,
            "resolution": effect.resolution.value,
            "identity_id": str(effect.identity_id) if effect.identity_id else None,
            "created": effect.created,
            "changed_fields": list(effect.changed_fields),
        },
    )
