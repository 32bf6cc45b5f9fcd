from __future__ import annotations

from datetime import UTC, date, datetime
from uuid import uuid4

import pytest

from hrisync.domain.errors import AlreadyResolvedError, SyncRunStateError, VillageHistoryError
from hrisync.domain.model import (
    Conflict,
    ConflictStatus,
    ConflictType,
    LocalIdentity,
    ResolutionKind,
    RunCounters,
    SyncRun,
    SyncStatus,
    SyncType,
    VillageInterval,
    ensure_single_open_interval,
)
from tests.helpers.hris import make_employee, make_identity

NOW = datetime(2024, 6, 1, 9, 0, tzinfo=UTC)


def test_move_to_village_closes_open_interval_and_opens_new_one() -> None:
    identity = make_identity("E1", village_id="V1", since=date(2020, 1, 1))

    moved = identity.move_to_village("V3", effective=date(2024, 3, 1))

    assert moved is True
    assert identity.current_village_id == "V3"
    assert identity.village_history == (
        VillageInterval("V1", date(2020, 1, 1), date(2024, 3, 1)),
        VillageInterval("V3", date(2024, 3, 1)),
    )
    assert identity.open_interval == VillageInterval("V3", date(2024, 3, 1))


def test_move_to_same_village_is_a_no_op() -> None:
    identity = make_identity("E1", village_id="V1")
    before = identity.village_history

    assert identity.move_to_village("V1", effective=date(2024, 3, 1)) is False
    assert identity.village_history == before


def test_first_village_assignment_opens_single_interval() -> None:
    identity = make_identity("E1", village_id=None)

    identity.move_to_village("V2", effective=date(2024, 1, 1))

    assert identity.village_history == (VillageInterval("V2", date(2024, 1, 1)),)


def test_identity_rejects_history_with_two_open_intervals() -> None:
    with pytest.raises(VillageHistoryError):
        LocalIdentity(
            email="a@example.com",
            display_name="A",
            village_history=(
                VillageInterval("V1", date(2020, 1, 1)),
                VillageInterval("V2", date(2021, 1, 1)),
            ),
        )


def test_ensure_single_open_interval_accepts_closed_history() -> None:
    history = [
        VillageInterval("V1", date(2020, 1, 1), date(2021, 1, 1)),
        VillageInterval("V2", date(2021, 1, 1)),
    ]

    assert ensure_single_open_interval(history) == tuple(history)


def test_village_interval_snapshot_round_trips_legacy_timestamps() -> None:
    interval = VillageInterval.from_snapshot(
        {"village_id": "V1", "from": "2020-01-01T00:00:00Z", "to": None}
    )

    assert interval == VillageInterval("V1", date(2020, 1, 1))
    assert interval.to_snapshot() == {"village_id": "V1", "from": "2020-01-01", "to": None}


def test_employee_full_name_falls_back_to_first_and_last_name() -> None:
    assert make_employee("E1", first_name="Ada", last_name="Lovelace").full_name == "Ada Lovelace"
    assert make_employee("E1", display_name="Countess").full_name == "Countess"


def test_conflict_employee_is_rebuilt_from_snapshot() -> None:
    employee = make_employee("E9", village_id="V9", start_date=date(2023, 5, 1))
    conflict = Conflict(
        sync_id=uuid4(),
        conflict_type=ConflictType.VILLAGE_NOT_FOUND,
        hris_employee_id=employee.employee_id,
        hris_email=employee.email,
        hris_data=employee.to_snapshot(),
    )

    assert conflict.employee == employee


def _conflict() -> Conflict:
    return Conflict(
        sync_id=uuid4(),
        conflict_type=ConflictType.EMAIL_CHANGE,
        hris_employee_id="E1",
        hris_data=make_employee("E1").to_snapshot(),
    )


def test_conflict_manual_resolution_records_metadata() -> None:
    conflict = _conflict()

    conflict.mark_manually_resolved(
        ResolutionKind.KEEP_SYSTEM, resolved_by="admin", at=NOW, notes="checked"
    )

    assert conflict.status is ConflictStatus.MANUALLY_RESOLVED
    assert conflict.resolution is ResolutionKind.KEEP_SYSTEM
    assert conflict.resolved_by == "admin"
    assert conflict.resolved_at == NOW
    assert conflict.resolution_notes == "checked"


def test_conflict_cannot_be_resolved_twice() -> None:
    conflict = _conflict()
    conflict.mark_auto_resolved(ResolutionKind.USE_HRIS, at=NOW)

    with pytest.raises(AlreadyResolvedError):
        conflict.mark_ignored(resolved_by="admin", at=NOW)
    assert conflict.status is ConflictStatus.AUTO_RESOLVED
    assert conflict.resolved_by is None


@pytest.mark.parametrize(
    ("processed", "failed", "expected"),
    [
        (0, 0, SyncStatus.COMPLETED),
        (4, 0, SyncStatus.COMPLETED),
        (4, 1, SyncStatus.COMPLETED_WITH_ERRORS),
        (4, 4, SyncStatus.FAILED),
    ],
)
def test_run_counters_final_status(processed: int, failed: int, expected: SyncStatus) -> None:
    counters = RunCounters(records_processed=processed, records_failed=failed)

    assert counters.final_status() is expected


def test_sync_run_is_finalised_exactly_once() -> None:
    run = SyncRun(sync_type=SyncType.FULL, started_at=NOW)

    status = run.complete(
        RunCounters(records_processed=2, records_created=2), completed_at=NOW, errors=[]
    )

    assert status is SyncStatus.COMPLETED
    assert run.records_created == 2
    assert run.error_details is None
    assert not run.is_running
    with pytest.raises(SyncRunStateError):
        run.fail("late failure", completed_at=NOW)


def test_sync_run_failure_keeps_message() -> None:
    run = SyncRun(sync_type=SyncType.INCREMENTAL, started_at=NOW)

    run.fail("HRIS unreachable", completed_at=NOW)

    assert run.status is SyncStatus.FAILED
    assert run.error_message == "HRIS unreachable"
    assert run.completed_at == NOW
