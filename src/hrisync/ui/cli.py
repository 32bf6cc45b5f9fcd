# ruff: noqa: T201

from __future__ import annotations

import argparse
import logging
import sys
from datetime import UTC, datetime
from signal import SIGINT, signal
from typing import TYPE_CHECKING
from uuid import UUID

from dotenv import load_dotenv

from hrisync import __version__, app
from hrisync.config import ConfigurationError, configure_logging
from hrisync.domain.errors import HrisSyncError, InvalidResolutionError, NotFoundError
from hrisync.domain.model import ResolutionKind, SyncType
from hrisync.domain.resolution import ResolutionRequest
from hrisync.domain.sync import SyncRequest

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from hrisync.domain.model import Conflict, SyncRun
    from hrisync.domain.sync import SyncResult

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Synchronise HRIS employees with local identities")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    subparsers = parser.add_subparsers(dest="command", required=True)

    sync = subparsers.add_parser("sync", help="Run an HRIS sync")
    sync.add_argument(
        "--type",
        dest="sync_type",
        choices=[member.value for member in SyncType],
        default=SyncType.FULL.value,
        help="Sync type (default: full)",
    )
    sync.add_argument(
        "--since",
        type=str,
        help="ISO-8601 timestamp (UTC); incremental syncs fetch records changed since then",
    )
    sync.add_argument(
        "--dry-run",
        action="store_true",
        help="Classify and count without writing identities or conflicts",
    )
    sync.add_argument(
        "--triggered-by",
        type=str,
        help="Actor recorded on the run and its summary audit entry",
    )

    status = subparsers.add_parser("status", help="Show a sync run (latest by default)")
    status.add_argument("--sync-id", type=str, help="Sync run id")

    history = subparsers.add_parser("history", help="List recent sync runs")
    history.add_argument("--limit", type=int, help="Number of runs to show (defaults to config)")
    history.add_argument("--offset", type=int, default=0, help="Runs to skip")

    conflicts = subparsers.add_parser("conflicts", help="Conflict management commands")
    conflicts_sub = conflicts.add_subparsers(dest="conflicts_command", required=True)

    conflicts_list = conflicts_sub.add_parser("list", help="List pending conflicts")
    conflicts_list.add_argument("--sync-id", type=str, help="Limit to one sync run")

    conflicts_stats = conflicts_sub.add_parser("stats", help="Show conflict statistics")
    conflicts_stats.add_argument("--sync-id", type=str, help="Limit to one sync run")

    conflicts_resolve = conflicts_sub.add_parser("resolve", help="Resolve a pending conflict")
    conflicts_resolve.add_argument("conflict_id", type=str, help="Conflict id")
    conflicts_resolve.add_argument(
        "--resolution",
        choices=[member.value for member in ResolutionKind],
        required=True,
        help="How to apply the HRIS record",
    )
    conflicts_resolve.add_argument("--resolved-by", type=str, required=True, help="Operator")
    conflicts_resolve.add_argument("--notes", type=str, help="Optional resolution notes")

    conflicts_ignore = conflicts_sub.add_parser("ignore", help="Ignore a pending conflict")
    conflicts_ignore.add_argument("conflict_id", type=str, help="Conflict id")
    conflicts_ignore.add_argument("--resolved-by", type=str, required=True, help="Operator")
    conflicts_ignore.add_argument("--notes", type=str, help="Optional notes")

    subparsers.add_parser("test-connection", help="Check that the HRIS API is reachable")

    return parser.parse_args(list(argv))


def _parse_iso_datetime(value: str) -> datetime:
    try:
        normalized = value.strip()
        if normalized.endswith("Z"):
            normalized = normalized[:-1] + "+00:00"
        dt = datetime.fromisoformat(normalized)
    except ValueError as exc:
        raise ValueError(f"Invalid ISO timestamp: {value}") from exc
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def _parse_uuid(value: str | None) -> UUID | None:
    if value is None:
        return None
    try:
        return UUID(value)
    except ValueError as exc:
        raise ValueError(f"Invalid UUID: {value}") from exc


def _build_sync_request(args: argparse.Namespace) -> SyncRequest:
    sync_type = SyncType(args.sync_type)
    since = _parse_iso_datetime(args.since) if args.since else None
    if since is not None and sync_type is not SyncType.INCREMENTAL:
        raise ValueError("--since only applies to --type incremental")
    return SyncRequest(
        sync_type=sync_type,
        triggered_by=args.triggered_by,
        dry_run=args.dry_run,
        since=since,
    )


def _validate(args: argparse.Namespace) -> None:
    if args.command == "sync":
        args.request = _build_sync_request(args)
    elif args.command == "status":
        args.sync_uuid = _parse_uuid(args.sync_id)
    elif args.command == "history":
        if (args.limit is not None and args.limit < 0) or args.offset < 0:
            raise ValueError("--limit and --offset must be non-negative")
    elif args.command == "conflicts":
        args.sync_uuid = _parse_uuid(getattr(args, "sync_id", None))
        args.conflict_uuid = _parse_uuid(getattr(args, "conflict_id", None))


def _print_result(result: SyncResult) -> None:
    prefix = "[dry run] " if result.dry_run else ""
    print(f"{prefix}Sync {result.sync_id}: {result.status}")
    print(f"  processed:      {result.records_processed}")
    print(f"  created:        {result.records_created}")
    print(f"  updated:        {result.records_updated}")
    print(f"  unchanged:      {result.records_unchanged}")
    print(f"  failed:         {result.records_failed}")
    print(f"  conflicts:      {result.conflicts_detected}")
    print(f"  auto-resolved:  {result.conflicts_auto_resolved}")
    print(f"  duration:       {result.duration_ms} ms")
    for error in result.errors:
        print(f"  ! {error['employee_id']}: {error['error']}")


def _describe_run(run: SyncRun) -> str:
    completed = run.completed_at.isoformat() if run.completed_at else "-"
    return (
        f"{run.id}  {run.sync_type:<11} {run.status:<21} started={run.started_at.isoformat()} "
        f"completed={completed} processed={run.records_processed} "
        f"created={run.records_created} updated={run.records_updated} "
        f"failed={run.records_failed} conflicts={run.conflicts_detected}"
    )


def _describe_conflict(conflict: Conflict) -> str:
    return (
        f"{conflict.id}  {conflict.conflict_type:<17} employee={conflict.hris_employee_id} "
        f"email={conflict.hris_email or '-'} existing={conflict.existing_user_id or '-'} "
        f"sync={conflict.sync_id}"
    )


def _run_command(args: argparse.Namespace) -> int:  # noqa: C901, PLR0912
    if args.command == "sync":
        result = app.perform_hris_sync(args.request)
        _print_result(result)
    elif args.command == "status":
        run = (
            app.get_sync_status(args.sync_uuid)
            if args.sync_uuid is not None
            else app.get_latest_sync()
        )
        if run is None:
            print("No sync run found")
            return 1
        print(_describe_run(run))
        if run.error_message:
            print(f"  error: {run.error_message}")
        for error in run.error_details or ():
            print(f"  ! {error.get('employee_id')}: {error.get('error')}")
    elif args.command == "history":
        history = app.get_sync_history(limit=args.limit, offset=args.offset)
        print(f"{len(history.runs)} of {history.total} sync run(s)")
        for run in history.runs:
            print(_describe_run(run))
    elif args.command == "conflicts":
        if args.conflicts_command == "list":
            conflicts = app.get_pending_conflicts(args.sync_uuid)
            print(f"{len(conflicts)} pending conflict(s)")
            for conflict in conflicts:
                print(_describe_conflict(conflict))
        elif args.conflicts_command == "stats":
            stats = app.get_conflict_stats(args.sync_uuid)
            print(
                f"total={stats.total} pending={stats.pending} "
                f"auto_resolved={stats.auto_resolved} "
                f"manually_resolved={stats.manually_resolved} ignored={stats.ignored}"
            )
            for conflict_type, count in sorted(stats.by_type.items()):
                print(f"  {conflict_type}: {count}")
        elif args.conflicts_command == "resolve":
            effect = app.resolve_hris_conflict(
                args.conflict_uuid,
                ResolutionRequest(
                    resolution=ResolutionKind(args.resolution),
                    resolved_by=args.resolved_by,
                    notes=args.notes,
                ),
            )
            print(f"Conflict {args.conflict_uuid} resolved as {effect.resolution}")
        elif args.conflicts_command == "ignore":
            app.ignore_hris_conflict(
                args.conflict_uuid,
                resolved_by=args.resolved_by,
                notes=args.notes,
            )
            print(f"Conflict {args.conflict_uuid} ignored")
    elif args.command == "test-connection":
        check = app.test_hris_connection()
        if not check.success:
            print(f"HRIS connection failed: {check.error}")
            return 1
        print("HRIS connection OK")
    else:
        raise ValueError(f"Unsupported command: {args.command}")
    return 0


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    configure_logging()
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    try:
        parsed_args = _parse_args(args_list)
        _validate(parsed_args)
    except ValueError:
        log.exception("CLI validation error")
        sys.exit(2)

    try:
        exit_code = _run_command(parsed_args)
    except (ConfigurationError, NotFoundError, InvalidResolutionError):
        log.exception("Request rejected")
        sys.exit(2)
    except HrisSyncError:
        log.exception("HRIS sync failed")
        sys.exit(1)
    except Exception:
        log.exception("Fatal error")
        sys.exit(1)
    if exit_code:
        sys.exit(exit_code)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    """Console-script entry point: load ``.env`` and install the SIGINT handler."""
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
