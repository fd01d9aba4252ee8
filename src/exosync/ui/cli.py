# ruff: noqa: T201

from __future__ import annotations

import argparse
import logging
import sys
import threading
from signal import SIGINT, signal
from typing import TYPE_CHECKING, Final

from dotenv import load_dotenv

from exosync.app import MAX_LOG_LIMIT, build_sync_service
from exosync.config import ConfigurationError, configure_logging
from exosync.config.scheduler import DEFAULT_TIMEZONE
from exosync.domain.sync import SyncConflictError
from exosync.scheduling import build_trigger

if TYPE_CHECKING:
    from collections.abc import Sequence
    from datetime import datetime
    from types import FrameType

    from exosync.app import SyncService
    from exosync.domain.model import CandidateRecord, SyncPass
    from exosync.domain.naming import SystemSummary
    from exosync.domain.sync import SyncStatistics

log = logging.getLogger(__name__)

EXIT_FAILURE: Final[int] = 1
EXIT_USAGE: Final[int] = 2
EXIT_CONFLICT: Final[int] = 3


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Synchronise the exoplanet candidate store")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("run", help="Run one synchronization pass now")
    subparsers.add_parser("serve", help="Run passes on the configured schedule until Ctrl+C")
    subparsers.add_parser("status", help="Show scheduler state and the latest passes")

    logs = subparsers.add_parser("logs", help="List the most recent pass records")
    logs.add_argument(
        "--limit",
        type=int,
        default=20,
        help=f"Number of passes to show, 1..{MAX_LOG_LIMIT} (default: %(default)s)",
    )

    subparsers.add_parser("stats", help="Aggregate statistics over recent passes")

    show = subparsers.add_parser("show", help="Show one stored record")
    show.add_argument("identity", type=str, help="Archive identity, e.g. K00752.01")

    systems = subparsers.add_parser("systems", help="List named planetary systems")
    systems.add_argument("--search", type=str, default="", help="Filter on planet names")
    systems.add_argument(
        "--limit",
        type=int,
        default=50,
        help=f"Number of systems to show, 1..{MAX_LOG_LIMIT} (default: %(default)s)",
    )

    validate = subparsers.add_parser("validate-cron", help="Check a cron pattern")
    validate.add_argument("pattern", type=str, help="Five-field crontab expression")
    validate.add_argument(
        "--timezone",
        type=str,
        default=DEFAULT_TIMEZONE,
        help="IANA timezone the pattern is evaluated in (default: %(default)s)",
    )

    return parser.parse_args(list(argv))


def _format_time(value: datetime | None) -> str:
    return value.isoformat(timespec="seconds") if value else "-"


def format_pass(sync_pass: SyncPass) -> str:
    counters = sync_pass.counters
    duration = (
        f"{sync_pass.duration_seconds:.1f}s" if sync_pass.duration_seconds is not None else "-"
    )
    line = (
        f"{_format_time(sync_pass.started_at)} {sync_pass.state:<9} {duration:>8} "
        f"fetched={counters.fetched} new={counters.new} confirmed={counters.confirmed} "
        f"false_positive={counters.false_positive} candidates={counters.candidate} "
        f"other={counters.other} errors={counters.errors}"
    )
    if sync_pass.error:
        line += f" error={sync_pass.error!r}"
    return line


def format_statistics(stats: SyncStatistics) -> list[str]:
    return [
        f"passes:            {stats.total_passes}",
        f"successful:        {stats.successful_passes}",
        f"failed:            {stats.failed_passes}",
        f"new records:       {stats.total_new}",
        f"confirmed:         {stats.total_confirmed}",
        f"candidates:        {stats.total_candidates}",
        f"false positives:   {stats.total_false_positive}",
        f"average duration:  {stats.average_duration_seconds:.1f}s",
    ]


def format_system(summary: SystemSummary) -> str:
    return f"{summary.name:<14} {len(summary.planets):>2} planets: {', '.join(summary.planets)}"


def format_candidate(record: CandidateRecord) -> list[str]:
    lines = [
        f"identity:   {record.identity}",
        f"status:     {record.status}",
        f"name:       {record.assigned_name or '-'}",
        f"automated:  {'yes' if record.classified_by_automation else 'no'}",
    ]
    if record.confidence is not None:
        lines.append(f"confidence: {record.confidence:.3f}")
    lines.append(f"synced at:  {_format_time(record.synced_at)}")
    return lines


def _show_candidate(service: SyncService, identity: str) -> None:
    record = service.get_candidate(identity)
    if record is None:
        print(f"No stored record for {identity}", file=sys.stderr)
        sys.exit(EXIT_FAILURE)
    for line in format_candidate(record):
        print(line)


def _print_status(service: SyncService) -> None:
    status = service.get_status()
    scheduler = status.scheduler
    print(f"state:     {status.state}")
    print(f"scheduler: {'active' if scheduler.active else 'stopped'}")
    print(f"schedule:  {scheduler.pattern} ({scheduler.timezone})")
    print(f"last run:  {_format_time(scheduler.last_run_at)}")
    print(f"next run:  {_format_time(scheduler.next_run_at)}")
    print(f"archive:   {status.archive_url}")
    print(f"inference: {status.classifier_url}")
    for sync_pass in status.recent_passes:
        print(f"  {format_pass(sync_pass)}")


def _serve(service: SyncService) -> None:
    service.start()
    try:
        threading.Event().wait()
    finally:
        if service.scheduler.active:
            service.stop()


def _validate_cron(args: argparse.Namespace) -> None:
    try:
        trigger = build_trigger(args.pattern, args.timezone)
    except ConfigurationError as exc:
        print(f"Invalid: {exc}", file=sys.stderr)
        sys.exit(EXIT_USAGE)
    print(f"Valid: {args.pattern} ({args.timezone}) -> {trigger}")


def main(argv: Sequence[str] | None = None) -> None:
    """Run one exosync command, exiting non-zero when it cannot complete."""
    configure_logging()
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args = _parse_args(args_list)
    if parsed_args.command in {"logs", "systems"} and parsed_args.limit < 1:
        log.error("--limit must be a positive integer")
        sys.exit(EXIT_USAGE)

    if parsed_args.command == "validate-cron":
        _validate_cron(parsed_args)
        return

    try:
        service = build_sync_service()
        if parsed_args.command == "run":
            print(format_pass(service.run_now()))
        elif parsed_args.command == "serve":
            _serve(service)
        elif parsed_args.command == "status":
            _print_status(service)
        elif parsed_args.command == "logs":
            for sync_pass in service.get_logs(parsed_args.limit):
                print(format_pass(sync_pass))
        elif parsed_args.command == "stats":
            for line in format_statistics(service.get_stats()):
                print(line)
        elif parsed_args.command == "show":
            _show_candidate(service, parsed_args.identity)
        elif parsed_args.command == "systems":
            for summary in service.get_systems(parsed_args.search, parsed_args.limit):
                print(format_system(summary))
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301
    except SyncConflictError as exc:
        log.warning(str(exc))
        sys.exit(EXIT_CONFLICT)
    except ConfigurationError:
        log.exception("Invalid configuration")
        sys.exit(EXIT_USAGE)
    except Exception:
        log.exception(f"{parsed_args.command} failed")
        sys.exit(EXIT_FAILURE)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Exit quietly on Ctrl+C, also while `serve` is waiting."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
