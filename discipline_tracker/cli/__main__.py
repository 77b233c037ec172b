from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path

import psycopg2
from dotenv import load_dotenv

from discipline_tracker.config.loader import DEFAULT_CONFIG_PATH, ConfigError, load_config
from discipline_tracker.db.connection import connect
from discipline_tracker.db.remote_store import RemoteRecordStore, RemoteStoreError
from discipline_tracker.logging.init import log_summary, set_debug, setup_logging
from discipline_tracker.models.config_models import TrackerConfig
from discipline_tracker.services.demerits import DemeritValidationError
from discipline_tracker.services.orchestrator import ProcessingError, scan_class_lists
from discipline_tracker.services.queries import STATUS_FILTERS, learner_label
from discipline_tracker.services.summary import render_summary_line
from discipline_tracker.services.tracker import DisciplineTracker
from discipline_tracker.store.snapshot import LocalSnapshotStore

"""Command line entrypoint.

    python -m discipline_tracker.cli [--config PATH] [--debug] [--offline] <command> ...

Commands: import, learners, add, records, clear.
"""

EXIT_SUCCESS_ALL = 0
EXIT_FATAL = 1
EXIT_PARTIAL_FAILURE = 2

RECENT_EVENTS_SHOWN = 3


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env with python-dotenv; its values take precedence over the environment."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="discipline-tracker", description="School discipline tracker")
    p.add_argument("--config", type=Path, default=DEFAULT_CONFIG_PATH, help="YAML config file")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    p.add_argument("--offline", action="store_true", help="Use local snapshots only")
    sub = p.add_subparsers(dest="command", required=True)

    imp = sub.add_parser("import", help="Import class-list spreadsheets")
    imp.add_argument("files", nargs="*", type=Path, help="Spreadsheets (default: scan source_directory)")

    lrn = sub.add_parser("learners", help="List learners (sorted by name)")
    lrn.add_argument("--search", default=None, help="Filter by name or grade")

    add = sub.add_parser("add", help="Record a transgression")
    add.add_argument("learner", help="Learner key (see 'learners')")
    add.add_argument("category", help="homework | late | books | behavior | custom")
    add.add_argument("--description", default=None, help="Required for the custom category")

    rec = sub.add_parser("records", help="Show discipline records")
    rec.add_argument("--search", default="", help="Filter by learner name")
    rec.add_argument("--status", choices=STATUS_FILTERS, default="all")

    clr = sub.add_parser("clear", help="Delete ALL learners and records")
    clr.add_argument("--yes", action="store_true", help="Answer yes to both confirmations")
    return p.parse_args(argv)


def _open_remote(cfg: TrackerConfig, offline: bool, logger: logging.Logger) -> RemoteRecordStore | None:
    if offline or not cfg.database.enabled or os.getenv("DISABLE_DB_CONNECT") == "1":
        logger.debug("remote store disabled -> offline mode")
        return None
    try:
        remote = RemoteRecordStore(connect(cfg.database), flag_threshold=cfg.flag_threshold)
        remote.ensure_schema()
        return remote
    except (psycopg2.Error, RemoteStoreError) as e:
        logger.info(f"remote store connection failed -> offline mode: {e}")
        return None


def _cmd_import(tracker: DisciplineTracker, args: argparse.Namespace, logger: logging.Logger) -> int:
    files: list[Path] = list(args.files)
    if not files:
        if not tracker.config.source_directory:
            logger.error("no files given and no source_directory configured")
            return EXIT_FATAL
        try:
            files = scan_class_lists(Path(tracker.config.source_directory))
        except ProcessingError as e:
            logger.error(f"processing: {e}")
            return EXIT_FATAL
    logger.info(f"Processing {len(files)} file{'s' if len(files) != 1 else ''}")

    result = tracker.import_files(files)
    for failed in result.failed_files:
        logger.error(f"failed file {failed.name}: {failed.reason}")
    log_summary(render_summary_line(result)[len("SUMMARY "):])
    return EXIT_PARTIAL_FAILURE if result.failed_files else EXIT_SUCCESS_ALL


def _cmd_learners(tracker: DisciplineTracker, args: argparse.Namespace) -> int:
    options = tracker.search(args.search) if args.search else tracker.dropdown()
    for opt in options:
        print(f"{opt.key}\t{opt.label}")
    return EXIT_SUCCESS_ALL


def _cmd_add(tracker: DisciplineTracker, args: argparse.Namespace, logger: logging.Logger) -> int:
    try:
        outcome = tracker.add_transgression(args.learner, args.category, args.description)
    except DemeritValidationError as e:
        logger.error(str(e))
        return EXIT_FATAL
    learner = outcome.learner
    print(f"{learner_label(learner)}: {learner.total_points} points [{tracker.status_of(learner)}]")
    if outcome.newly_flagged:
        print(f"WARNING {learner.name} has been flagged with {learner.total_points} demerit points!")
    return EXIT_SUCCESS_ALL


def _cmd_records(tracker: DisciplineTracker, args: argparse.Namespace) -> int:
    rows = tracker.records(args.search, args.status)
    if not rows:
        print("No records found")
        return EXIT_SUCCESS_ALL
    for _, learner in rows:
        marker = " [FLAGGED]" if learner.flagged else ""
        print(f"{learner_label(learner)} - {learner.total_points} points{marker}")
        for event in learner.demerits[-RECENT_EVENTS_SHOWN:]:
            print(f"    {event.description} ({event.points} points) {event.date[:10]}")
        hidden = len(learner.demerits) - RECENT_EVENTS_SHOWN
        if hidden > 0:
            print(f"    ... and {hidden} more")
    return EXIT_SUCCESS_ALL


def _confirm(message: str) -> bool:
    print(message)
    return input("Type 'yes' to continue: ").strip().lower() in ("y", "yes")


def _cmd_clear(tracker: DisciplineTracker, args: argparse.Namespace, logger: logging.Logger) -> int:
    confirm = (lambda _msg: True) if args.yes else _confirm
    if tracker.clear_all(confirm):
        logger.info("Database cleared successfully! Ready for new data.")
    else:
        logger.info("clear cancelled; no data was changed")
    return EXIT_SUCCESS_ALL


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # only read sys.argv when no explicit list is given (tests pass [])
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    _load_env_file(Path(".env"), override=True)

    if args.debug:
        set_debug(True)
        logger.debug("debug mode enabled")

    try:
        cfg = load_config(args.config)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    remote = _open_remote(cfg, args.offline, logger)
    tracker = DisciplineTracker(cfg, LocalSnapshotStore(cfg.snapshot_directory), remote=remote)
    source = tracker.start()
    logger.info(f"mode={'online' if tracker.online else 'offline'} source={source} learners={len(tracker.store)}")

    try:
        if args.command == "import":
            return _cmd_import(tracker, args, logger)
        if args.command == "learners":
            return _cmd_learners(tracker, args)
        if args.command == "add":
            return _cmd_add(tracker, args, logger)
        if args.command == "records":
            return _cmd_records(tracker, args)
        return _cmd_clear(tracker, args, logger)
    finally:
        if remote is not None:
            remote.close()


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
