"""pushnotify command-line entry point.

Usage::

    pushnotify -c /etc/pushnotify/config.yaml
    pushnotify -c config.yaml --validate-only
    pushnotify -c config.yaml serve
    pushnotify -c config.yaml check-store
    python -m pushnotify -c config.yaml
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

log = logging.getLogger(__name__)


def _get_version() -> str:
    from pushnotify import __version__  # noqa: PLC0415

    return __version__


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pushnotify",
        description="pushnotify: scheduled push reminders with anchored retries",
    )
    parser.add_argument(
        "-c",
        "--config",
        required=True,
        metavar="PATH",
        help="Path to the configuration file (YAML or JSON).",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        default=False,
        help="Enable debug output (full tracebacks, verbose logging).",
    )
    parser.add_argument(
        "--validate-only",
        action="store_true",
        default=False,
        help="Validate the configuration file and exit.",
    )
    parser.add_argument(
        "-v",
        "--version",
        action="version",
        version=f"%(prog)s {_get_version()}",
    )

    subparsers = parser.add_subparsers(dest="command")
    subparsers.add_parser("serve", help="Start the scheduler and the HTTP API")
    subparsers.add_parser(
        "check-store",
        help="Load the store file, report its contents and exit",
    )

    return parser


def _print_error(message: str) -> None:
    """Print a user-facing error to stderr."""
    sys.stderr.write(f"pushnotify: error: {message}\n")
    sys.stderr.flush()


def main(argv: list[str] | None = None) -> None:
    """CLI entry point.  Parses arguments, loads config, starts server."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    # -- resolve config path ---
    config_path = Path(args.config)
    if not config_path.is_file():
        _print_error(f"configuration file not found: {config_path}")
        sys.exit(1)

    # -- bootstrap logging early (basic stderr until config is loaded) ---
    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.WARNING,
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )

    # -- load & validate config ---
    from pushnotify.config import ConfigValidationError, PushNotifyConfig  # noqa: PLC0415

    try:
        config = PushNotifyConfig(config_file=config_path)
    except ConfigValidationError as exc:
        _print_error(str(exc))
        sys.exit(1)
    except Exception as exc:
        if args.debug:
            raise
        _print_error(f"failed to load configuration: {exc}")
        sys.exit(1)

    # -- replace bootstrap logging with structured logging ---
    from pushnotify.logging import configure_logging  # noqa: PLC0415

    configure_logging(config.settings.logging)
    if args.debug:
        logging.getLogger("pushnotify").setLevel(logging.DEBUG)

    if args.validate_only:
        _print_settings_summary(config)
        sys.exit(0)

    # -- dispatch subcommand ---
    if args.command == "check-store":
        from pushnotify.cli.commands.check_store import run_check_store  # noqa: PLC0415

        sys.exit(run_check_store(config, args))

    # Default: serve
    from pushnotify.cli.commands.serve import run_serve  # noqa: PLC0415

    _print_settings_summary(config)
    sys.exit(run_serve(config, args))


def _print_settings_summary(config) -> None:
    """Print a short summary of the loaded configuration."""
    s = config.settings
    lines = [
        f"pushnotify {_get_version()}",
        f"  config:    {config.data.get('_source', '?')}",
        f"  server:    {s.server.bind}:{s.server.port}",
        f"  store:     {s.storage.file_path}",
        f"  scheduler: {'enabled' if s.scheduler.enabled else 'disabled'} "
        f"(failure retry {s.scheduler.failure_retry_seconds}s)",
        f"  logging:   {s.logging.level} / {s.logging.format}",
    ]
    sys.stderr.write("\n".join(lines) + "\n")
    sys.stderr.flush()
