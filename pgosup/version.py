"""
Version reporting.

`--version` prints the package version plus the commit it was built from,
when setup.py stamped a _build_info module into the installed package.
"""

from __future__ import annotations

import argparse
import importlib
import sys
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class BuildInfo:
    commit: str | None = None
    build_time: str | None = None
    modified: bool = False


def get_build_info() -> BuildInfo:
    """Read the generated _build_info module, if the package has one."""
    try:
        mod = importlib.import_module("pgosup._build_info")
    except ImportError:
        return BuildInfo()
    return BuildInfo(
        commit=getattr(mod, "COMMIT_SHORT", None) or None,
        build_time=getattr(mod, "BUILD_TIME", None) or None,
        modified=bool(getattr(mod, "MODIFIED", False)),
    )


def format_version(app_name: str, app_version: str, build_info: BuildInfo) -> str:
    """
    Format the version line.

    Examples:
        >>> format_version("pgosup", "0.3.0", BuildInfo())
        'pgosup 0.3.0'
        >>> format_version("pgosup", "0.3.0", BuildInfo("abc123f", modified=True))
        'pgosup 0.3.0 (abc123f*)'
    """
    if build_info.commit:
        dirty = "*" if build_info.modified else ""
        return f"{app_name} {app_version} ({build_info.commit}{dirty})"
    return f"{app_name} {app_version}"


class VersionAction(argparse.Action):
    """argparse action for --version that includes the build commit."""

    def __init__(
        self,
        option_strings: list[str],
        dest: str = argparse.SUPPRESS,
        default: Any = argparse.SUPPRESS,
        app_name: str = "pgosup",
        app_version: str = "0.0.0",
        **kwargs: Any,
    ):
        super().__init__(
            option_strings=option_strings,
            dest=dest,
            default=default,
            nargs=0,
            **kwargs,
        )
        self.app_name = app_name
        self.app_version = app_version

    def __call__(
        self,
        parser: argparse.ArgumentParser,
        namespace: argparse.Namespace,
        values: Any,
        option_string: str | None = None,
    ) -> None:
        line = format_version(self.app_name, self.app_version, get_build_info())
        print(line, file=sys.stdout)
        parser.exit()
