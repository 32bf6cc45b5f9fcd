from __future__ import annotations

from datetime import UTC, date, datetime
from uuid import uuid4

import pytest

from hrisync.domain.errors import (
    AlreadyResolvedError,
    ConflictNotFoundError,
    InvalidResolutionError,
)
from hrisync.domain.model import (
    Conflict,
    ConflictStatus,
    ConflictType,
    ResolutionKind,
    VillageInterval,
)
from hrisync.domain.ports import AuditAction, AuditResource
from hrisync.domain.resolution import (
    CREATED_WITHOUT_VILLAGE_NOTE,
    EMAIL_UPDATED_NOTE,
    ResolutionRequest,
    auto_resolve_conflict,
    decide_auto_resolution,
    get_conflict_stats,
    get_pending_conflicts,
    ignore_conflict,
    resolve_conflict,
)
from tests.helpers.hris import (
    FixedClock,
    InMemoryStore,
    RecordingAuditSink,
    make_employee,
    make_identity,
)

SYNC_ID = uuid4()


def _conflict(
    conflict_type: ConflictType,
    *,
    employee_id: str = "E1",
    email: str | None = None,
    village_id: str | None = "V1",
    existing_user_id: object = None,
    created_at: datetime | None = None,
    sync_id: object = SYNC_ID,
) -> Conflict:
    employee = make_employee(employee_id, email=email, village_id=village_id)
    return Conflict(
        sync_id=sync_id,  # type: ignore[arg-type]
        conflict_type=conflict_type,
        hris_employee_id=employee.employee_id,
        hris_email=employee.email,
        hris_data=employee.to_snapshot(),
        existing_user_id=existing_user_id,  # type: ignore[arg-type]
        created_at=created_at or datetime(2024, 6, 1, tzinfo=UTC),
    )


def _stored(store: InMemoryStore, conflict: Conflict) -> Conflict:
    return store.state.conflicts[conflict.id]


class TestDecideAutoResolution:
    def test_email_change_with_free_address_uses_hris(self, store: InMemoryStore) -> None:
        identity = make_identity("E1", email="old@example.com")
        conflict = _conflict(
            ConflictType.EMAIL_CHANGE, email="new@example.com", existing_user_id=identity.id
        )
        store.seed(identities=[identity])

        with store.factory()() as uow:
            decision = decide_auto_resolution(conflict, uow.repositories)

        assert decision is not None
        assert decision.resolution is ResolutionKind.USE_HRIS
        assert decision.notes == EMAIL_UPDATED_NOTE

    def test_email_change_with_taken_address_stays_pending(self, store: InMemoryStore) -> None:
        identity = make_identity("E1", email="old@example.com")
        holder = make_identity("E2", email="new@example.com")
        conflict = _conflict(
            ConflictType.EMAIL_CHANGE, email="new@example.com", existing_user_id=identity.id
        )
        store.seed(identities=[identity, holder])

        with store.factory()() as uow:
            assert decide_auto_resolution(conflict, uow.repositories) is None

    def test_village_not_found_creates_without_village(self, store: InMemoryStore) -> None:
        conflict = _conflict(ConflictType.VILLAGE_NOT_FOUND, village_id="V404")

        with store.factory()() as uow:
            decision = decide_auto_resolution(conflict, uow.repositories)

        assert decision is not None
        assert decision.resolution is ResolutionKind.CREATE_NEW
        assert decision.notes == CREATED_WITHOUT_VILLAGE_NOTE

    def test_village_not_found_skipped_once_keys_are_claimed(self, store: InMemoryStore) -> None:
        store.seed(identities=[make_identity("E1")])
        conflict = _conflict(ConflictType.VILLAGE_NOT_FOUND, village_id="V404")

        with store.factory()() as uow:
            assert decide_auto_resolution(conflict, uow.repositories) is None

    def test_duplicate_email_is_never_auto_resolved(self, store: InMemoryStore) -> None:
        holder = make_identity("E2", email="e1@example.com")
        store.seed(identities=[holder])
        conflict = _conflict(ConflictType.DUPLICATE_EMAIL, existing_user_id=holder.id)

        with store.factory()() as uow:
            assert decide_auto_resolution(conflict, uow.repositories) is None


def test_auto_resolve_email_change_updates_only_email(
    store: InMemoryStore,
    audit_sink: RecordingAuditSink,
) -> None:
    identity = make_identity("E1", email="old@example.com", display_name="Local Name")
    conflict = _conflict(
        ConflictType.EMAIL_CHANGE, email="new@example.com", existing_user_id=identity.id
    )
    store.seed(identities=[identity], conflicts=[conflict])

    applied = auto_resolve_conflict(
        conflict.id,
        unit_of_work_factory=store.factory(),
        audit_sink=audit_sink,
        clock=FixedClock(),
    )

    assert applied is True
    stored_identity = store.state.identities[identity.id]
    assert stored_identity.email == "new@example.com"
    assert stored_identity.display_name == "Local Name"
    stored = _stored(store, conflict)
    assert stored.status is ConflictStatus.AUTO_RESOLVED
    assert stored.resolution is ResolutionKind.USE_HRIS
    assert stored.resolution_notes == EMAIL_UPDATED_NOTE
    [entry] = audit_sink.entries
    assert entry.action is AuditAction.CONFLICT_AUTO_RESOLVED
    assert entry.actor == "system"
    assert entry.resource_type is AuditResource.CONFLICT
    assert entry.metadata["changed_fields"] == ["email"]


def test_auto_resolve_returns_false_for_ineligible_conflict(store: InMemoryStore) -> None:
    holder = make_identity("E2", email="e1@example.com")
    conflict = _conflict(ConflictType.DUPLICATE_EMAIL, existing_user_id=holder.id)
    store.seed(identities=[holder], conflicts=[conflict])

    assert auto_resolve_conflict(conflict.id, unit_of_work_factory=store.factory()) is False
    assert _stored(store, conflict).is_pending
    assert auto_resolve_conflict(uuid4(), unit_of_work_factory=store.factory()) is False


def test_resolve_keep_system_leaves_identity_untouched(
    store: InMemoryStore,
    audit_sink: RecordingAuditSink,
) -> None:
    identity = make_identity("E1", email="old@example.com")
    conflict = _conflict(
        ConflictType.EMAIL_CHANGE, email="new@example.com", existing_user_id=identity.id
    )
    store.seed(identities=[identity], conflicts=[conflict])

    effect = resolve_conflict(
        conflict.id,
        ResolutionRequest(resolution=ResolutionKind.KEEP_SYSTEM, resolved_by="admin", notes="ok"),
        unit_of_work_factory=store.factory(),
        audit_sink=audit_sink,
    )

    assert effect.identity_id == identity.id
    assert effect.changed_fields == ()
    assert store.state.identities[identity.id].email == "old@example.com"
    stored = _stored(store, conflict)
    assert stored.status is ConflictStatus.MANUALLY_RESOLVED
    assert stored.resolved_by == "admin"
    assert stored.resolution_notes == "ok"
    assert audit_sink.actions() == [AuditAction.CONFLICT_RESOLVED]
    assert audit_sink.entries[0].actor == "admin"


def test_resolve_use_hris_overwrites_identity(store: InMemoryStore) -> None:
    store.seed(villages=["V1", "V2"])
    identity = make_identity("E1", email="old@example.com", village_id="V1")
    conflict = _conflict(
        ConflictType.EMAIL_CHANGE,
        email="new@example.com",
        village_id="V2",
        existing_user_id=identity.id,
    )
    store.seed(identities=[identity], conflicts=[conflict])

    effect = resolve_conflict(
        conflict.id,
        ResolutionRequest(resolution=ResolutionKind.USE_HRIS, resolved_by="admin"),
        unit_of_work_factory=store.factory(),
        clock=FixedClock(),
    )

    assert effect.changed_fields == ("email", "village")
    stored_identity = store.state.identities[identity.id]
    assert stored_identity.email == "new@example.com"
    assert stored_identity.current_village_id == "V2"
    assert stored_identity.village_history[-1] == VillageInterval("V2", date(2024, 6, 1))


def test_resolve_use_hris_rejects_claimed_email(store: InMemoryStore) -> None:
    identity = make_identity("E1", email="old@example.com")
    holder = make_identity("E2", email="new@example.com")
    conflict = _conflict(
        ConflictType.EMAIL_CHANGE, email="new@example.com", existing_user_id=identity.id
    )
    store.seed(identities=[identity, holder], conflicts=[conflict])

    with pytest.raises(InvalidResolutionError):
        resolve_conflict(
            conflict.id,
            ResolutionRequest(resolution=ResolutionKind.USE_HRIS, resolved_by="admin"),
            unit_of_work_factory=store.factory(),
        )

    assert _stored(store, conflict).is_pending
    assert store.state.identities[identity.id].email == "old@example.com"


def test_resolve_merge_keeps_email_and_takes_village(store: InMemoryStore) -> None:
    identity = make_identity("E1", email="old@example.com", village_id="V1")
    conflict = _conflict(
        ConflictType.EMAIL_CHANGE,
        email="new@example.com",
        village_id="V2",
        existing_user_id=identity.id,
    )
    store.seed(identities=[identity], conflicts=[conflict])

    effect = resolve_conflict(
        conflict.id,
        ResolutionRequest(resolution=ResolutionKind.MERGE, resolved_by="admin"),
        unit_of_work_factory=store.factory(),
    )

    assert effect.changed_fields == ("village",)
    stored_identity = store.state.identities[identity.id]
    assert stored_identity.email == "old@example.com"
    assert stored_identity.current_village_id == "V2"


def test_resolve_create_new_assigns_only_known_villages(store: InMemoryStore) -> None:
    conflict = _conflict(ConflictType.VILLAGE_NOT_FOUND, village_id="V404")
    store.seed(conflicts=[conflict])

    effect = resolve_conflict(
        conflict.id,
        ResolutionRequest(resolution=ResolutionKind.CREATE_NEW, resolved_by="admin"),
        unit_of_work_factory=store.factory(),
    )

    assert effect.created is True
    created = store.identity_by_employee_id("E1")
    assert created is not None
    assert created.id == effect.identity_id
    assert created.current_village_id is None
    assert created.village_history == ()


def test_resolve_create_new_rejects_claimed_email(store: InMemoryStore) -> None:
    holder = make_identity("E2", email="e1@example.com")
    conflict = _conflict(ConflictType.DUPLICATE_EMAIL, existing_user_id=holder.id)
    store.seed(identities=[holder], conflicts=[conflict])

    with pytest.raises(InvalidResolutionError):
        resolve_conflict(
            conflict.id,
            ResolutionRequest(resolution=ResolutionKind.CREATE_NEW, resolved_by="admin"),
            unit_of_work_factory=store.factory(),
        )


def test_resolve_merge_requires_existing_identity(store: InMemoryStore) -> None:
    conflict = _conflict(ConflictType.VILLAGE_NOT_FOUND, village_id="V404")
    store.seed(conflicts=[conflict])

    with pytest.raises(InvalidResolutionError):
        resolve_conflict(
            conflict.id,
            ResolutionRequest(resolution=ResolutionKind.MERGE, resolved_by="admin"),
            unit_of_work_factory=store.factory(),
        )


def test_resolve_unknown_conflict_raises_not_found(store: InMemoryStore) -> None:
    with pytest.raises(ConflictNotFoundError):
        resolve_conflict(
            uuid4(),
            ResolutionRequest(resolution=ResolutionKind.KEEP_SYSTEM, resolved_by="admin"),
            unit_of_work_factory=store.factory(),
        )


def test_resolve_closed_conflict_raises_already_resolved(store: InMemoryStore) -> None:
    conflict = _conflict(ConflictType.VILLAGE_NOT_FOUND, village_id="V404")
    conflict.mark_ignored(resolved_by="admin", at=datetime(2024, 6, 1, tzinfo=UTC))
    store.seed(conflicts=[conflict])

    with pytest.raises(AlreadyResolvedError):
        resolve_conflict(
            conflict.id,
            ResolutionRequest(resolution=ResolutionKind.CREATE_NEW, resolved_by="admin"),
            unit_of_work_factory=store.factory(),
        )


def test_ignore_conflict_closes_without_touching_identities(
    store: InMemoryStore,
    audit_sink: RecordingAuditSink,
) -> None:
    conflict = _conflict(ConflictType.VILLAGE_NOT_FOUND, village_id="V404")
    store.seed(conflicts=[conflict])

    ignore_conflict(
        conflict.id,
        resolved_by="admin",
        notes="not relevant",
        unit_of_work_factory=store.factory(),
        audit_sink=audit_sink,
    )

    stored = _stored(store, conflict)
    assert stored.status is ConflictStatus.IGNORED
    assert stored.resolution is None
    assert store.identities == []
    assert audit_sink.actions() == [AuditAction.CONFLICT_IGNORED]


def test_pending_conflicts_are_filtered_and_newest_first(store: InMemoryStore) -> None:
    other_sync = uuid4()
    older = _conflict(
        ConflictType.VILLAGE_NOT_FOUND, employee_id="E1", created_at=datetime(2024, 1, 1, tzinfo=UTC)
    )
    newer = _conflict(
        ConflictType.VILLAGE_NOT_FOUND, employee_id="E2", created_at=datetime(2024, 2, 1, tzinfo=UTC)
    )
    elsewhere = _conflict(ConflictType.VILLAGE_NOT_FOUND, employee_id="E3", sync_id=other_sync)
    closed = _conflict(ConflictType.VILLAGE_NOT_FOUND, employee_id="E4")
    closed.mark_ignored(resolved_by="admin", at=datetime(2024, 6, 1, tzinfo=UTC))
    store.seed(conflicts=[older, newer, elsewhere, closed])

    pending = get_pending_conflicts(SYNC_ID, unit_of_work_factory=store.factory())

    assert [c.id for c in pending] == [newer.id, older.id]
    assert len(get_pending_conflicts(unit_of_work_factory=store.factory())) == 3


def test_conflict_stats_count_statuses_and_types(store: InMemoryStore) -> None:
    at = datetime(2024, 6, 1, tzinfo=UTC)
    pending = _conflict(ConflictType.VILLAGE_NOT_FOUND, employee_id="E1")
    auto = _conflict(ConflictType.EMAIL_CHANGE, employee_id="E2")
    auto.mark_auto_resolved(ResolutionKind.USE_HRIS, at=at)
    manual = _conflict(ConflictType.DUPLICATE_EMAIL, employee_id="E3")
    manual.mark_manually_resolved(ResolutionKind.KEEP_SYSTEM, resolved_by="admin", at=at)
    ignored = _conflict(ConflictType.DUPLICATE_EMAIL, employee_id="E4")
    ignored.mark_ignored(resolved_by="admin", at=at)
    store.seed(conflicts=[pending, auto, manual, ignored])

    stats = get_conflict_stats(unit_of_work_factory=store.factory())

    assert stats.total == 4
    assert (stats.pending, stats.auto_resolved, stats.manually_resolved, stats.ignored) == (
        1,
        1,
        1,
        1,
    )
    assert stats.by_type == {
        ConflictType.VILLAGE_NOT_FOUND: 1,
        ConflictType.EMAIL_CHANGE: 1,
        ConflictType.DUPLICATE_EMAIL: 2,
    }
    assert get_conflict_stats(uuid4(), unit_of_work_factory=store.factory()).total == 0
