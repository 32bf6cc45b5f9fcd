from __future__ import annotations

from datetime import UTC, datetime
from uuid import uuid4

import pytest

from hrisync.domain.errors import ConflictNotFoundError, FatalSyncError
from hrisync.domain.model import ResolutionKind, SyncRun, SyncStatus, SyncType
from hrisync.domain.ports import ConnectionCheck
from hrisync.domain.resolution import ResolutionEffect, ResolutionRequest
from hrisync.domain.sync import SyncHistory, SyncRequest, SyncResult
from hrisync.ui import cli


def _result(**overrides: object) -> SyncResult:
    values: dict[str, object] = {
        "sync_id": uuid4(),
        "status": SyncStatus.COMPLETED_WITH_ERRORS,
        "dry_run": False,
        "records_processed": 3,
        "records_created": 1,
        "records_updated": 1,
        "records_unchanged": 0,
        "records_failed": 1,
        "conflicts_detected": 0,
        "conflicts_auto_resolved": 0,
        "duration_ms": 42,
        "errors": ({"employee_id": "E3", "error": "boom"},),
    }
    values.update(overrides)
    return SyncResult(**values)  # type: ignore[arg-type]


def test_sync_defaults(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    captured: list[SyncRequest] = []

    def fake_sync(request: SyncRequest) -> SyncResult:
        captured.append(request)
        return _result()

    monkeypatch.setattr(cli.app, "perform_hris_sync", fake_sync)

    cli.main(["sync"])

    assert captured == [SyncRequest()]
    out = capsys.readouterr().out
    assert "completed_with_errors" in out
    assert "E3: boom" in out


def test_sync_with_flags(monkeypatch: pytest.MonkeyPatch) -> None:
    captured: list[SyncRequest] = []

    def fake_sync(request: SyncRequest) -> SyncResult:
        captured.append(request)
        return _result(dry_run=True)

    monkeypatch.setattr(cli.app, "perform_hris_sync", fake_sync)

    cli.main(
        [
            "sync",
            "--type",
            "incremental",
            "--since",
            "2024-05-01T03:00:00+03:00",
            "--dry-run",
            "--triggered-by",
            "ops",
        ]
    )

    assert captured == [
        SyncRequest(
            sync_type=SyncType.INCREMENTAL,
            triggered_by="ops",
            dry_run=True,
            since=datetime(2024, 5, 1, 0, 0, tzinfo=UTC),
        )
    ]


@pytest.mark.parametrize(
    "argv",
    [
        ["sync", "--type", "incremental", "--since", "not-a-date"],
        ["sync", "--since", "2024-05-01T00:00:00Z"],
        ["status", "--sync-id", "not-a-uuid"],
        ["history", "--offset", "-1"],
    ],
)
def test_invalid_arguments_exit_with_code_2(argv: list[str]) -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli.main(argv)

    assert excinfo.value.code == 2


def test_fatal_sync_error_exits_with_code_1(monkeypatch: pytest.MonkeyPatch) -> None:
    def fake_sync(_: SyncRequest) -> SyncResult:
        raise FatalSyncError("HRIS unreachable", sync_id=uuid4())

    monkeypatch.setattr(cli.app, "perform_hris_sync", fake_sync)

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["sync"])

    assert excinfo.value.code == 1


def test_status_without_runs_exits_with_code_1(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(cli.app, "get_latest_sync", lambda: None)

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["status"])

    assert excinfo.value.code == 1


def test_status_prints_requested_run(
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    run = SyncRun(sync_type=SyncType.FULL, started_at=datetime(2024, 6, 1, tzinfo=UTC))
    run.fail("HRIS unreachable", completed_at=datetime(2024, 6, 1, 0, 1, tzinfo=UTC))
    requested: list[object] = []

    def fake_status(sync_id: object) -> SyncRun:
        requested.append(sync_id)
        return run

    monkeypatch.setattr(cli.app, "get_sync_status", fake_status)

    cli.main(["status", "--sync-id", str(run.id)])

    assert requested == [run.id]
    out = capsys.readouterr().out
    assert str(run.id) in out
    assert "error: HRIS unreachable" in out


def test_history_passes_paging(
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    captured: dict[str, object] = {}

    def fake_history(**kwargs: object) -> SyncHistory:
        captured.update(kwargs)
        return SyncHistory(runs=[], total=7)

    monkeypatch.setattr(cli.app, "get_sync_history", fake_history)

    cli.main(["history", "--limit", "5", "--offset", "2"])

    assert captured == {"limit": 5, "offset": 2}
    assert "0 of 7 sync run(s)" in capsys.readouterr().out


def test_conflicts_resolve_builds_request(monkeypatch: pytest.MonkeyPatch) -> None:
    conflict_id = uuid4()
    captured: list[tuple[object, ResolutionRequest]] = []

    def fake_resolve(cid: object, request: ResolutionRequest) -> ResolutionEffect:
        captured.append((cid, request))
        return ResolutionEffect(resolution=request.resolution)

    monkeypatch.setattr(cli.app, "resolve_hris_conflict", fake_resolve)

    cli.main(
        [
            "conflicts",
            "resolve",
            str(conflict_id),
            "--resolution",
            "use_hris",
            "--resolved-by",
            "admin",
            "--notes",
            "confirmed with HR",
        ]
    )

    assert captured == [
        (
            conflict_id,
            ResolutionRequest(
                resolution=ResolutionKind.USE_HRIS,
                resolved_by="admin",
                notes="confirmed with HR",
            ),
        )
    ]


def test_conflicts_resolve_unknown_conflict_exits_with_code_2(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    def fake_resolve(cid: object, _: ResolutionRequest) -> ResolutionEffect:
        raise ConflictNotFoundError(cid)  # type: ignore[arg-type]

    monkeypatch.setattr(cli.app, "resolve_hris_conflict", fake_resolve)

    with pytest.raises(SystemExit) as excinfo:
        cli.main(
            ["conflicts", "resolve", str(uuid4()), "--resolution", "merge", "--resolved-by", "a"]
        )

    assert excinfo.value.code == 2


def test_test_connection_failure_exits_with_code_1(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(
        cli.app, "test_hris_connection", lambda: ConnectionCheck(success=False, error="down")
    )

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["test-connection"])

    assert excinfo.value.code == 1
