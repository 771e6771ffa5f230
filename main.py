"""CLI entry point for the marketplace acquisition queue."""

import argparse
import asyncio
import json
import logging
import os
import sys
from pathlib import Path

from src.browser.session import BrowserSession
from src.core.config import Settings
from src.core.errors import InvalidInput, PersistenceFailure
from src.core.store import JsonQueueStore, ResultStore
from src.pipeline.queue_manager import JobOutcome, JobReport, QueueManager
from src.platforms.registry import build_adapters
from src.publish.git import build_publisher

EXIT_OK = 0
EXIT_FATAL = 1
EXIT_INVALID_INPUT = 2

TERM_ENV = "HUNT_TERM"
POSTAL_CODE_ENV = "HUNT_POSTAL_CODE"


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Marketplace hunter - queue searches across listing sources and publish the best results",
    )
    parser.add_argument(
        "--config",
        default="config/settings.yaml",
        help="Path to settings YAML file (default: config/settings.yaml)",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose (DEBUG) logging",
    )
    subparsers = parser.add_subparsers(dest="command")

    for name, help_text in (
        ("submit", "Sanitize and queue a search"),
        ("run", "Queue a search and process the queue once"),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("term", nargs="?", help=f"Search term (default: ${TERM_ENV})")
        sub.add_argument("postal_code", nargs="?", help=f"5-digit postal code (default: ${POSTAL_CODE_ENV})")
        sub.add_argument(
            "--source",
            action="append",
            dest="sources",
            help="Source to query (repeatable; default: all enabled sources)",
        )

    subparsers.add_parser("process", help="Process the next queued search (cron trigger)")

    recover_parser = subparsers.add_parser("recover", help="Clear a job abandoned by a dead process")
    recover_parser.add_argument(
        "--force",
        action="store_true",
        help="Clear the processing entry even if it is not yet stale",
    )

    subparsers.add_parser("status", help="Print the queue state as JSON")

    args = parser.parse_args(argv)
    if args.command is None:
        args.command = "process"
    return args


def setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def load_settings(path: str) -> Settings:
    """Load settings, falling back to defaults when the default file is absent."""
    if not Path(path).exists() and path == "config/settings.yaml":
        return Settings()
    return Settings.from_yaml(path)


def build_manager(settings: Settings, session: BrowserSession) -> QueueManager:
    store = JsonQueueStore(settings.storage.queue_path)
    results = ResultStore(settings.storage.results_path)
    return QueueManager(
        store,
        results,
        build_adapters(settings, session),
        settings=settings,
        publisher=build_publisher(settings.publisher),
        publish_paths=[results.path, store.path],
    )


def cmd_submit(manager: QueueManager, args: argparse.Namespace) -> None:
    term = args.term if args.term is not None else os.environ.get(TERM_ENV, "")
    postal_code = args.postal_code if args.postal_code is not None else os.environ.get(POSTAL_CODE_ENV, "")
    request = manager.submit(term, postal_code, args.sources)
    print(f"Queued '{request.term}' in {request.postal_code} as {request.id}")


async def cmd_process(manager: QueueManager, session: BrowserSession) -> JobReport:
    async with session:
        manager.recover_abandoned()
        report = await manager.process_next()

    if report.outcome is JobOutcome.IDLE:
        print("No pending searches.")
    elif report.outcome is JobOutcome.BUSY:
        print("Already processing a search, skipping.")
    elif report.request is not None:
        print(f"'{report.request.term}': {report.outcome.value}, {report.result_count} results"
              + (f" ({report.message})" if report.message else ""))
    return report


def cmd_status(manager: QueueManager) -> None:
    state = manager.status()
    print(json.dumps(state.model_dump(mode="json", by_alias=True), indent=2))


def cmd_recover(manager: QueueManager, force: bool) -> None:
    request = manager.recover_abandoned(force=force)
    if request is None:
        print("Nothing to recover.")
    else:
        print(f"Cleared abandoned job {request.id} ('{request.term}')")


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    setup_logging(args.verbose)

    try:
        settings = load_settings(args.config)
    except (FileNotFoundError, ValueError) as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        return EXIT_FATAL

    session = BrowserSession(settings.browser)
    manager = build_manager(settings, session)

    try:
        if args.command == "submit":
            cmd_submit(manager, args)
        elif args.command == "run":
            cmd_submit(manager, args)
            asyncio.run(cmd_process(manager, session))
        elif args.command == "recover":
            cmd_recover(manager, args.force)
        elif args.command == "status":
            cmd_status(manager)
        else:
            asyncio.run(cmd_process(manager, session))
    except InvalidInput as e:
        print(f"Invalid input: {e}", file=sys.stderr)
        return EXIT_INVALID_INPUT
    except PersistenceFailure as e:
        print(f"Storage error: {e}", file=sys.stderr)
        return EXIT_FATAL
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
