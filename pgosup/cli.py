"""
Command line for the supervisor.

Usage:
    pgosup run [options] -- ./prover-worker --port 8080
    pgosup run -c etc/pgosup.yaml
    pgosup upload --bucket pgo-profiles --profile-dir /var/lib/pgo
    pgosup --version
"""

from __future__ import annotations

import argparse
import sys
from collections.abc import Sequence
from typing import Any

from . import __version__
from .config import load_config
from .exceptions import ConfigError
from .log import LogConfig, LoggerFactory
from .supervisor import ExitCode, Supervisor, upload_pending
from .version import VersionAction

WORKER_SEPARATOR = "--"


class DefaultsHelpFormatter(argparse.HelpFormatter):
    """Help formatter that appends non-empty defaults to help text."""

    def _get_help_string(self, action: argparse.Action) -> str:
        help_text = action.help or ""
        if action.default is not argparse.SUPPRESS and action.default is not None:
            return help_text + f" (default: {action.default})"
        return help_text


def split_worker_argv(argv: Sequence[str]) -> tuple[list[str], list[str]]:
    """
    Split supervisor arguments from the worker command at the first `--`.

    Examples:
        >>> split_worker_argv(["run", "--", "./worker", "-v"])
        (['run'], ['./worker', '-v'])
        >>> split_worker_argv(["upload"])
        (['upload'], [])
    """
    argv = list(argv)
    if WORKER_SEPARATOR not in argv:
        return argv, []
    i = argv.index(WORKER_SEPARATOR)
    return argv[:i], argv[i + 1 :]


def _add_log_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-l",
        "--log-level",
        default=None,
        metavar="LEVEL",
        help="log level (default: from config or 'info')",
    )
    parser.add_argument(
        "--log-location",
        type=int,
        default=None,
        metavar="DEPTH",
        help="show file locations in logs (depth)",
    )
    parser.add_argument(
        "--log-micros",
        action="store_true",
        default=None,
        help="show microseconds timestamps",
    )
    parser.add_argument(
        "-q", "--quiet", action="store_true", help="disable logging"
    )


def _add_upload_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--bucket", default=None, help="destination bucket name, without scheme prefix"
    )
    parser.add_argument(
        "--profile-dir", default=None, help="directory holding profiling artifacts"
    )
    parser.add_argument(
        "--transport",
        choices=["s3", "command", "local"],
        default=None,
        help="upload transport",
    )
    parser.add_argument(
        "--report", action="store_true", default=None, help="print an upload summary table"
    )


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with the run and upload commands."""
    parser = argparse.ArgumentParser(
        prog="pgosup",
        description="Run an instrumented worker and upload its PGO profiles",
        formatter_class=DefaultsHelpFormatter,
    )
    parser.add_argument(
        "--version", action=VersionAction, app_name="pgosup", app_version=__version__
    )
    parser.add_argument(
        "-c",
        "--config",
        default=None,
        metavar="FILE",
        help="YAML configuration file (default: $PGOSUP_CONFIG)",
    )
    _add_log_args(parser)

    sub = parser.add_subparsers(dest="cmd", metavar="COMMAND", required=True)

    run = sub.add_parser(
        "run",
        help="launch the worker (command after '--') and upload its profiles",
        formatter_class=DefaultsHelpFormatter,
    )
    _add_upload_args(run)
    run.add_argument(
        "--grace-period",
        default=None,
        metavar="DURATION",
        help="time the worker gets after a relayed signal before SIGKILL (e.g. 30s, 2m)",
    )
    run.add_argument(
        "--no-upload",
        dest="upload",
        action="store_false",
        default=None,
        help="skip uploading profiles",
    )

    upload = sub.add_parser(
        "upload",
        help="upload artifacts left in the profile directory without running a worker",
        formatter_class=DefaultsHelpFormatter,
    )
    _add_upload_args(upload)

    return parser


def build_overrides(args: argparse.Namespace) -> dict[str, Any]:
    """Map parsed arguments onto configuration overrides; None means unset."""
    level: str | bool | None = args.log_level
    if args.quiet:
        level = False

    overrides: dict[str, Any] = {
        "logging": {
            "level": level,
            "location": args.log_location,
            "micros": args.log_micros,
        },
        "worker": {"profile_dir": args.profile_dir},
        "upload": {
            "bucket": args.bucket,
            "transport": args.transport,
            "report": args.report,
        },
    }
    if args.cmd == "run":
        overrides["relay"] = {"grace_period": args.grace_period}
        overrides["upload"]["enabled"] = args.upload
    else:
        overrides["upload"]["enabled"] = True
    return overrides


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point; returns the process exit status."""
    cli_args, worker_argv = split_worker_argv(sys.argv[1:] if argv is None else argv)
    parser = build_parser()
    args = parser.parse_args(cli_args)
    if worker_argv and args.cmd != "run":
        parser.error(f"a worker command is only accepted by 'run', not '{args.cmd}'")

    try:
        config = load_config(args.config, overrides=build_overrides(args))
    except ConfigError as e:
        print(f"pgosup: {e}", file=sys.stderr)
        return int(ExitCode.CONFIG_INVALID)

    lg = LoggerFactory.create_root(LogConfig.from_config(config.logging))

    if args.cmd == "upload":
        try:
            return int(upload_pending(config, lg))
        except ConfigError as e:
            lg.error("cannot upload", extra={"exception": e})
            return int(ExitCode.CONFIG_INVALID)

    if not worker_argv and not config.worker.executable:
        lg.error("no worker command: pass it after '--' or set worker.executable")
        return int(ExitCode.CONFIG_INVALID)

    return int(Supervisor(config, lg).run(worker_argv or None))


if __name__ == "__main__":
    sys.exit(main())
