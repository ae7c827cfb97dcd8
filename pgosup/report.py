"""
Upload summary table rendered with rich.
"""

from __future__ import annotations

import os
import sys
from typing import TextIO

from rich.console import Console
from rich.table import Table

from .artifacts import UploadSummary
from .size import size_str
from .time import delta_str


def _should_use_color(stream: TextIO) -> bool:
    # Respect NO_COLOR environment variable (https://no-color.org/)
    if os.environ.get("NO_COLOR"):
        return False
    if os.environ.get("FORCE_COLOR"):
        return True
    return stream.isatty()


def build_table(summary: UploadSummary, title: str = "Profile uploads") -> Table:
    """One row per artifact with its outcome, plus a totals caption."""
    table = Table(title=title)
    table.add_column("Artifact")
    table.add_column("Size", justify="right")
    table.add_column("Status")
    table.add_column("Time", justify="right")
    table.add_column("Destination / cause", overflow="fold")

    for r in summary.results:
        if r.ok:
            status = "[green]uploaded[/]"
            detail = r.location or r.key
        else:
            status = "[red]failed[/]"
            detail = r.error.cause if r.error else ""
        table.add_row(
            r.artifact.name,
            size_str(r.artifact.size),
            status,
            delta_str(r.elapsed),
            detail,
        )

    table.caption = (
        f"{summary.uploaded}/{summary.found} uploaded, "
        f"{size_str(summary.bytes_uploaded)}"
    )
    return table


def print_report(summary: UploadSummary, stream: TextIO | None = None) -> None:
    """Print the summary table, to stderr unless a stream is given."""
    stream = stream if stream is not None else sys.stderr
    console = Console(file=stream, no_color=not _should_use_color(stream))
    console.print(build_table(summary))
