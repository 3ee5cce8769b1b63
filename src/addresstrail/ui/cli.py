from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from addresstrail.app import (
    clean_address_history,
    download_registry_export,
    ingest_registry_export,
)
from addresstrail.config import configure_logging
from addresstrail.domain.errors import IngestError
from addresstrail.domain.ingest_pipeline import RecordRange

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Ingest business registry exports into the company address history"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    ingest = subparsers.add_parser("ingest", help="Stream an export into the store")
    ingest.add_argument(
        "start",
        type=int,
        nargs="?",
        default=None,
        help="Index of the first record to ingest (inclusive, default 0)",
    )
    ingest.add_argument(
        "end",
        type=int,
        nargs="?",
        default=None,
        help="Index of the record to stop before (exclusive, default end of file)",
    )
    ingest.add_argument(
        "--file",
        type=Path,
        default=None,
        help="Export file to read, plain or .gz JSON (defaults to config)",
    )
    ingest.add_argument(
        "--batch-size",
        type=int,
        default=None,
        help="Records per committed batch (defaults to config)",
    )
    ingest.add_argument(
        "--resume-from-store",
        action="store_true",
        help="Start after the number of companies already stored, if verifiable",
    )

    download = subparsers.add_parser("download", help="Download the registry bulk export")
    download.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Destination file (defaults to the data directory)",
    )

    cleanup = subparsers.add_parser(
        "cleanup-history",
        help="Report (and optionally delete) duplicate address history rows",
    )
    cleanup.add_argument(
        "--jurisdiction",
        type=str,
        default=None,
        help="Restrict to one municipality code",
    )
    cleanup.add_argument(
        "--apply",
        action="store_true",
        help="Delete duplicates instead of only reporting them",
    )

    return parser.parse_args(list(argv))


def _build_record_range(args: argparse.Namespace) -> RecordRange | None:
    if args.start is None and args.end is None:
        return None
    return RecordRange(start=args.start or 0, end=args.end)


def _validate_ingest_args(args: argparse.Namespace) -> None:
    if args.batch_size is not None and args.batch_size <= 0:
        raise ValueError(f"Batch size must be positive, got {args.batch_size}")
    if args.resume_from_store and args.start:
        raise ValueError("--resume-from-store cannot be combined with an explicit start")


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    configure_logging()
    parsed_args: argparse.Namespace
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    record_range: RecordRange | None = None
    try:
        parsed_args = _parse_args(args_list)
        if parsed_args.command == "ingest":
            record_range = _build_record_range(parsed_args)
            _validate_ingest_args(parsed_args)
    except ValueError:
        log.exception("CLI validation error")
        sys.exit(2)

    try:
        if parsed_args.command == "ingest":
            summary = ingest_registry_export(
                input_path=parsed_args.file,
                record_range=record_range,
                batch_size=parsed_args.batch_size,
                resume_from_store=parsed_args.resume_from_store,
            )
            log.info(
                "Ingest finished: processed=%s, saved=%s, errors=%s (%s)",
                summary.processed,
                summary.saved,
                summary.errors,
                ", ".join(f"{kind}={count}" for kind, count in summary.errors_by_kind.items())
                or "none",
            )
        elif parsed_args.command == "download":
            result = download_registry_export(output=parsed_args.output)
            log.info("Export saved to %s (%s bytes)", result.path, result.bytes_written)
        elif parsed_args.command == "cleanup-history":
            report = clean_address_history(
                jurisdiction_code=parsed_args.jurisdiction,
                apply=parsed_args.apply,
            )
            for pattern in report.top_patterns:
                log.info(
                    "Duplicate pattern: %s x %s '%s', %s %s",
                    pattern.occurrences,
                    pattern.role,
                    pattern.address_line,
                    pattern.postal_code,
                    pattern.city,
                )
            if report.dry_run and report.duplicate_rows:
                log.info("Dry run: re-run with --apply to delete %s rows", report.duplicate_rows)
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301

    except IngestError as exc:
        log.error("Cannot run %s: %s", parsed_args.command, exc)  # noqa: TRY400
        sys.exit(1)
    except Exception:
        log.exception("Fatal error during %s", parsed_args.command)
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    """Console-script entry point: load ``.env``, install the SIGINT handler, run."""
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
