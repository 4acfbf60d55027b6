"""Command-line interface for the PLDG data layer.

Loads cohort datasets and reports source health from the terminal.

Usage:
    pldg load 2
    pldg load 1 --source csv --format json
    pldg health
    pldg health --watch 30 --count 10
"""

import argparse
import asyncio
import json
import logging
import sys
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Optional

from pldg import __version__
from pldg.config import Settings, settings
from pldg.pipeline import AttemptOutcome, RefreshController
from pldg.sources import AggregateSourceFailureError, SourceType

logger = logging.getLogger(__name__)

_executor = ThreadPoolExecutor(max_workers=1)

_SOURCE_CHOICES = [s.value for s in SourceType]


def create_parser() -> argparse.ArgumentParser:
    """Create the CLI argument parser.

    Returns:
        Configured ArgumentParser with all commands and arguments.
    """
    parser = argparse.ArgumentParser(
        prog="pldg",
        description="PLDG dashboard — cohort engagement data sources",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  pldg load 2
  pldg load 1 --format json
  pldg health --watch 30
        """,
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Options shared by commands that touch sources
    source_opts = argparse.ArgumentParser(add_help=False)
    source_opts.add_argument(
        "--base-url",
        type=str,
        default=None,
        help="File server base URL (default: DATA_BASE_URL or http://localhost:3000)",
    )
    source_opts.add_argument(
        "--data-dir",
        type=str,
        default=None,
        help="Read cohort-N/ folders from this directory instead of over HTTP",
    )
    source_opts.add_argument(
        "--format",
        type=str,
        choices=["text", "json"],
        default="text",
        help="Output format (default: text)",
    )

    # load command
    load_parser = subparsers.add_parser(
        "load",
        parents=[source_opts],
        help="Load a cohort dataset with failover",
        description="Fetch a cohort's engagement export and show what was loaded",
    )
    load_parser.add_argument(
        "cohort",
        type=str,
        help="Cohort identifier (e.g., 1, 2)",
    )
    load_parser.add_argument(
        "--source",
        type=str,
        choices=_SOURCE_CHOICES,
        default=None,
        help="Source to try first (default: DEFAULT_SOURCE or csv)",
    )
    load_parser.add_argument(
        "--rows",
        type=int,
        default=5,
        help="Rows to preview in text output (default: 5)",
    )

    # health command
    health_parser = subparsers.add_parser(
        "health",
        parents=[source_opts],
        help="Check every registered source",
    )
    health_parser.add_argument(
        "--watch",
        type=float,
        default=None,
        metavar="SECONDS",
        help="Repeat the check every SECONDS",
    )
    health_parser.add_argument(
        "--count",
        type=int,
        default=None,
        help="Stop after this many checks when watching (default: forever)",
    )

    # version command
    subparsers.add_parser(
        "version",
        help="Show version information",
    )

    return parser


def _run_async(coro):
    """Run an async coroutine from synchronous CLI context.

    Spins up a new event loop in a dedicated thread to avoid conflicts
    with any existing event loop.
    """
    def _target():
        loop = asyncio.new_event_loop()
        try:
            return loop.run_until_complete(coro)
        finally:
            loop.close()

    future = _executor.submit(_target)
    return future.result()


def _settings_for(args: argparse.Namespace) -> Settings:
    """Apply command-line overrides on top of environment settings."""
    update: dict[str, Any] = {}
    if args.base_url:
        update["data_base_url"] = args.base_url
        update["data_dir"] = None
    if args.data_dir:
        update["data_dir"] = args.data_dir
    return settings.model_copy(update=update)


def _format_attempts(attempts: tuple[AttemptOutcome, ...] | list[AttemptOutcome]) -> list[str]:
    lines = []
    for a in attempts:
        line = f"  {a.source.value:<9} {a.status}"
        if a.error:
            line += f" — {a.error}"
        lines.append(line)
    return lines


def cmd_load(args: argparse.Namespace) -> int:
    """Execute the load command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    try:
        config = _settings_for(args)
        controller = RefreshController.from_settings(config)
        if args.source:
            controller.orchestrator.switch_adapter(SourceType(args.source))

        logger.info(
            "Loading cohort %s (source=%s)",
            args.cohort, controller.orchestrator.current_type.value,
        )
        df = _run_async(controller.refresh(args.cohort))
        attempts = controller.state.last_attempts
        served_by = next((a.source.value for a in attempts if a.succeeded), None)

        if args.format == "json":
            print(json.dumps({
                "cohort_id": args.cohort,
                "source": served_by,
                "rows": len(df),
                "columns": list(df.columns),
                "attempts": [a.to_dict() for a in attempts],
            }, indent=2))
        else:
            print(
                f"Cohort {args.cohort}: {len(df)} rows x {len(df.columns)} columns "
                f"(source: {served_by})"
            )
            print("Attempts:")
            print("\n".join(_format_attempts(attempts)))
            if args.rows > 0 and not df.empty:
                print()
                print(df.head(args.rows).to_string(index=False))

        return 0

    except AggregateSourceFailureError as e:
        logger.error("Load failed: %s", e)
        print(f"Error: {e}", file=sys.stderr)
        print("\n".join(_format_attempts(e.attempts)), file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        logger.warning("Interrupted by user")
        return 130
    except Exception as e:
        logger.error("Load failed: %s", e, exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1


def _print_health(health: dict[SourceType, bool], fmt: str) -> None:
    if fmt == "json":
        print(json.dumps({s.value: ok for s, ok in health.items()}))
    else:
        for source, ok in health.items():
            print(f"{source.value:<9} {'healthy' if ok else 'unavailable'}")


def cmd_health(args: argparse.Namespace) -> int:
    """Execute the health command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 if every check ran, non-zero for failure)
    """
    if args.count is not None and args.watch is None:
        print("Error: --count requires --watch", file=sys.stderr)
        return 1

    try:
        controller = RefreshController.from_settings(_settings_for(args))

        if args.watch is None:
            health = _run_async(controller.check_health())
            _print_health(health, args.format)
        else:
            _run_async(controller.monitor_health(
                interval=args.watch,
                iterations=args.count,
                on_report=lambda h: _print_health(h, args.format),
            ))
        return 0

    except KeyboardInterrupt:
        logger.warning("Interrupted by user")
        return 130
    except Exception as e:
        logger.error("Health check failed: %s", e, exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_version(args: argparse.Namespace) -> int:
    """Execute the version command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success)
    """
    print(f"PLDG dashboard data layer v{__version__}")
    print("Sources: " + ", ".join(_SOURCE_CHOICES))
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    """Main CLI entry point.

    Args:
        argv: Command-line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    parser = create_parser()
    args = parser.parse_args(argv)

    # Route to command handler
    if args.command == "load":
        return cmd_load(args)
    elif args.command == "health":
        return cmd_health(args)
    elif args.command == "version":
        return cmd_version(args)
    else:
        # No command specified
        parser.print_help()
        return 0


def cli_entry() -> None:
    """Console script entry point for setuptools."""
    sys.exit(main())


if __name__ == "__main__":
    cli_entry()
