from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from structsync.app import InMemoryBaselineStore, sync_frame_loads, sync_point_coordinates
from structsync.config import (
    ConfigurationError,
    configure_logging,
    get_reconcile_settings,
    parse_duplicate_policy,
)
from structsync.domain.session import InMemorySessionStateStore

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from structsync.domain.reconciliation import RunOutput

log = logging.getLogger(__name__)

_TRIGGERS = {"pulse": None, "on": True, "off": False}


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Reconcile workbook sheets with a structural model"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    loads = subparsers.add_parser("loads", help="Assign frame distributed loads from a sheet")
    _add_common_arguments(loads)
    loads.add_argument(
        "--no-replace",
        action="store_true",
        help="Add loads instead of replacing existing loads for the same pattern",
    )
    loads.add_argument(
        "--no-auto-remove",
        action="store_true",
        help="Keep loads whose frame/pattern combo disappeared from the sheet",
    )

    points = subparsers.add_parser("points", help="Move model points to sheet coordinates")
    _add_common_arguments(points)
    points.add_argument(
        "--start-row",
        type=int,
        default=2,
        help="First data row; the header sits on the row above (default: %(default)s)",
    )
    points.add_argument(
        "--scale",
        type=float,
        default=1.0,
        help="Factor applied to sheet coordinates before writing (default: %(default)s)",
    )
    points.add_argument(
        "--tolerance",
        type=float,
        default=1e-6,
        help="Coordinate differences at or below this are left alone (default: %(default)s)",
    )

    return parser.parse_args(list(argv))


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("workbook", type=str, help="Path to the .xlsx workbook")
    parser.add_argument("--sheet", type=str, help="Worksheet name (defaults per command)")
    parser.add_argument(
        "--trigger",
        choices=tuple(_TRIGGERS),
        default="pulse",
        help="Trigger value fed to the edge-triggered run (default: %(default)s)",
    )
    parser.add_argument(
        "--duplicate-policy",
        type=str,
        help="first_wins, last_wins, reject or keep_all (defaults to config)",
    )
    parser.add_argument(
        "--no-state",
        action="store_true",
        help="Keep baseline and trigger state in memory instead of the state database",
    )


def _report(output: RunOutput) -> None:
    for message in output.messages:
        log.info(message)
    for removal in output.removed:
        log.info(removal)
    log.info(
        "Output table: %s row(s) x %s column(s)",
        output.table.row_count,
        len(output.table.headers),
    )


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    parsed_args: argparse.Namespace
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    try:
        parsed_args = _parse_args(args_list)
        configure_logging(verbose=parsed_args.verbose)
        settings = get_reconcile_settings()
        if parsed_args.duplicate_policy:
            policy = parse_duplicate_policy(parsed_args.duplicate_policy)
        else:
            policy = settings.duplicate_policy
    except (ValueError, ConfigurationError):
        log.exception("CLI validation error")
        sys.exit(2)

    trigger = _TRIGGERS[parsed_args.trigger]
    try:
        if parsed_args.command == "loads":
            output = sync_frame_loads(
                path=parsed_args.workbook,
                sheet_name=parsed_args.sheet,
                trigger=trigger,
                settings=replace(
                    settings,
                    duplicate_policy=policy,
                    replace=not parsed_args.no_replace,
                    auto_remove=not parsed_args.no_auto_remove,
                ),
                baseline_store=InMemoryBaselineStore() if parsed_args.no_state else None,
                state_store=InMemorySessionStateStore() if parsed_args.no_state else None,
            )
        elif parsed_args.command == "points":
            output = sync_point_coordinates(
                path=parsed_args.workbook,
                sheet_name=parsed_args.sheet,
                trigger=trigger,
                start_row=parsed_args.start_row,
                scale=parsed_args.scale,
                tolerance=parsed_args.tolerance,
                duplicate_policy=policy,
                state_store=InMemorySessionStateStore() if parsed_args.no_state else None,
            )
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301
    except Exception:
        log.exception("Fatal error during sync")
        sys.exit(1)

    _report(output)
    if output.error is not None:
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


if __name__ == "__main__":
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()
