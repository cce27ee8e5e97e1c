# src/main.py — v1
"""CLI entry point — batch, watch, check commands.

Usage:
    acrocheck batch [--batch-id ID] [--directory DIR] [--concurrency N]
    acrocheck watch [--directory DIR]
    acrocheck check <file> [--batch-id ID]

Connection settings come from ACROLINX_* environment variables (or .env).
"""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import logging
import signal
import sys
from pathlib import Path

from pydantic import ValidationError

from acrocheck.config.settings import ConfigurationError, Settings, load_settings
from acrocheck.version import __version__

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    try:
        settings = load_settings(**_settings_overrides(args))
    except ValidationError as exc:
        print(f"Invalid settings:\n{exc}", file=sys.stderr)
        return 1

    try:
        _setup_logging(settings, args.verbose)
    except (OSError, ValueError) as exc:
        print(f"Cannot set up logging: {exc}", file=sys.stderr)
        return 1

    try:
        return asyncio.run(args.func(args, settings))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except ConfigurationError as exc:
        _print_config_errors(exc)
        return 1
    except Exception as exc:
        logger.error("Fatal error: %s", exc, exc_info=args.verbose)
        return 1


def run() -> None:
    """Console-script entry point."""
    sys.exit(main())


def _build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="acrocheck",
        description=f"acrocheck v{__version__} — Acrolinx batch and watch-mode checker",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command")

    # --- batch ---
    p_batch = subparsers.add_parser(
        "batch", help="Check every supported file of the content directory as one batch",
    )
    p_batch.add_argument(
        "--batch-id", default=None,
        help="Batch ID (default: batch-YYYYMMDD-HHMMSS)",
    )
    p_batch.add_argument(
        "-d", "--directory", type=Path, default=None,
        help="Content directory (default: ACROLINX_CONTENT_DIR)",
    )
    p_batch.add_argument(
        "-c", "--concurrency", type=int, default=None,
        help="Maximum concurrent checks (default: ACROLINX_MAX_CONCURRENCY or 2)",
    )
    p_batch.add_argument(
        "--no-browser", action="store_true",
        help="Do not open the dashboard link in a browser",
    )
    p_batch.set_defaults(func=_cmd_batch)

    # --- watch ---
    p_watch = subparsers.add_parser(
        "watch", help="Watch the content directory and check files as they change",
    )
    p_watch.add_argument(
        "-d", "--directory", type=Path, default=None,
        help="Content directory (default: ACROLINX_CONTENT_DIR)",
    )
    p_watch.add_argument(
        "--no-browser", action="store_true",
        help="Do not open scorecards in a browser",
    )
    p_watch.set_defaults(func=_cmd_watch)

    # --- check ---
    p_check = subparsers.add_parser(
        "check", help="Check a single file",
    )
    p_check.add_argument("file", type=Path, help="Path to the file")
    p_check.add_argument(
        "--batch-id", default=None,
        help="Submit as part of this batch instead of an automated check",
    )
    p_check.add_argument(
        "--no-browser", action="store_true",
        help="Do not open the report link in a browser",
    )
    p_check.set_defaults(func=_cmd_check)

    return parser


def _settings_overrides(args: argparse.Namespace) -> dict[str, object]:
    overrides: dict[str, object] = {}
    directory = getattr(args, "directory", None)
    if directory is not None:
        overrides["content_dir"] = str(directory)
    concurrency = getattr(args, "concurrency", None)
    if concurrency is not None:
        overrides["max_concurrency"] = concurrency
    if getattr(args, "no_browser", False):
        overrides["open_browser"] = False
    return overrides


async def _cmd_batch(args: argparse.Namespace, settings: Settings) -> int:
    """Run one batch over the content directory."""
    from acrocheck.batch.runner import BatchRunner
    from acrocheck.client.client_factory import create_check_client
    from acrocheck.reporting.browser import open_url_in_browser
    from acrocheck.reporting.summary import print_summary

    settings.ensure_valid()
    cancel_event = asyncio.Event()
    _install_signal_handlers(cancel_event)

    async with create_check_client(settings) as client:
        runner = BatchRunner(settings, client)
        result = await runner.run(batch_id=args.batch_id, cancel_event=cancel_event)

    if result.files_found == 0:
        print(f"No supported files found in {settings.content_dir}.")
        return 0

    print_summary(
        result.summary, sys.stdout,
        duration_seconds=result.duration_seconds, cancelled=result.cancelled,
    )
    if settings.open_browser and result.summary.representative_link:
        open_url_in_browser(result.summary.representative_link)
    return 130 if result.cancelled else 0


async def _cmd_watch(args: argparse.Namespace, settings: Settings) -> int:
    """Monitor the content directory until interrupted."""
    from acrocheck.check.invoker import CheckInvoker
    from acrocheck.client.client_factory import create_check_client
    from acrocheck.watch.monitor import DirectoryMonitor

    settings.ensure_valid()
    stop_event = asyncio.Event()
    _install_signal_handlers(stop_event)

    async with create_check_client(settings) as client:
        monitor = DirectoryMonitor(settings, CheckInvoker(settings, client))
        print(f"[AutoCheck] Watching '{settings.content_dir}' for file changes...")
        print("Press Ctrl+C to quit.")
        await monitor.run(stop_event)

    print("Monitoring stopped. Exiting program.")
    return 0


async def _cmd_check(args: argparse.Namespace, settings: Settings) -> int:
    """Check a single file and print its report link."""
    from acrocheck.check.invoker import CheckInvoker
    from acrocheck.client.client_factory import create_check_client
    from acrocheck.core.models import CheckMode
    from acrocheck.reporting.browser import open_url_in_browser

    file_path: Path = args.file
    if not file_path.is_file():
        logger.error("File not found: %s", file_path)
        return 1

    settings.ensure_valid(require_content_dir=False)
    mode = CheckMode.BATCH if args.batch_id else CheckMode.AUTOMATED
    cancel_event = asyncio.Event()
    _install_signal_handlers(cancel_event)

    async with create_check_client(settings) as client:
        invoker = CheckInvoker(settings, client)
        link = await invoker.check(
            str(file_path), batch_id=args.batch_id, check_mode=mode, cancel_event=cancel_event,
        )

    if link is None:
        print(f"Check failed for {file_path}")
        return 1
    print(f"Report: {link}")
    if settings.open_browser:
        open_url_in_browser(link)
    return 0


def _install_signal_handlers(event: asyncio.Event) -> None:
    """Turn SIGINT / SIGTERM into a set cancellation event."""
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        # Not available on Windows; Ctrl+C then surfaces as KeyboardInterrupt.
        with contextlib.suppress(NotImplementedError, RuntimeError, ValueError):
            loop.add_signal_handler(sig, event.set)


def _print_config_errors(exc: ConfigurationError) -> None:
    print("Invalid configuration. Please check environment variables:", file=sys.stderr)
    for error in exc.errors:
        print(f"  - {error}", file=sys.stderr)


def _setup_logging(settings: Settings, verbose: bool) -> None:
    """Configure logging for CLI usage."""
    from acrocheck.logging.logger import setup_logging

    setup_logging(
        level="DEBUG" if verbose else settings.log_level,
        log_format=settings.log_format,
        log_file=str(settings.log_file) if settings.log_file else None,
        rotation=settings.log_rotation,
        retention=settings.log_retention,
    )


if __name__ == "__main__":
    sys.exit(main())
