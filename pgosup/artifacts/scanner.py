"""
Discovery of profiling artifacts in the worker's profile directory.
"""

from __future__ import annotations

import enum
import fnmatch
import os
import stat
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

from ..exceptions import UploadError
from ..log import Logger

# Filesystem timestamps can trail the worker's recorded start slightly
CLOCK_SLACK = 2.0


class ArtifactState(enum.Enum):
    PENDING = "pending"
    UPLOADED = "uploaded"


@dataclass
class ProfileArtifact:
    """A profiling data file produced by the worker. Never deleted locally."""

    path: Path
    size: int
    mtime: float
    state: ArtifactState = ArtifactState.PENDING

    @property
    def name(self) -> str:
        return self.path.name

    @classmethod
    def from_path(cls, path: str | Path) -> ProfileArtifact:
        path = Path(path)
        st = path.stat()
        return cls(path=path, size=st.st_size, mtime=st.st_mtime)


def _matches(name: str, patterns: Iterable[str]) -> bool:
    return any(fnmatch.fnmatchcase(name, p) for p in patterns)


def discover_artifacts(
    directory: str | Path,
    patterns: Iterable[str] = ("*.profraw",),
    newer_than: float | None = None,
    lg: Logger | None = None,
) -> list[ProfileArtifact]:
    """
    Find profiling artifacts in a directory.

    Only regular files directly inside the directory are considered;
    subdirectories and symlinks are skipped.

    Args:
        directory: Directory the worker writes profiles into
        patterns: Glob patterns matched against file names
        newer_than: Epoch seconds; skip files last modified before this
            (minus CLOCK_SLACK), so leftovers from earlier runs are ignored
        lg: Optional logger for skipped files and a missing directory

    Returns:
        Artifacts sorted by file name

    Raises:
        UploadError: If the directory exists but cannot be listed
    """
    directory = Path(directory)
    patterns = list(patterns)
    cutoff = newer_than - CLOCK_SLACK if newer_than is not None else None

    try:
        entries = list(os.scandir(directory))
    except FileNotFoundError:
        if lg is not None:
            lg.warning("profile directory does not exist", extra={"dir": str(directory)})
        return []
    except OSError as e:
        raise UploadError(str(directory), f"{e.__class__.__name__}: {e}") from e

    found = []
    for entry in entries:
        if not _matches(entry.name, patterns):
            continue
        try:
            st = entry.stat(follow_symlinks=False)
        except OSError as e:
            # Removed or made unreadable between listing and stat
            if lg is not None:
                lg.warning(
                    "skipping unreadable artifact",
                    extra={"file": entry.name, "exception": e},
                )
            continue
        if not stat.S_ISREG(st.st_mode):
            continue
        if cutoff is not None and st.st_mtime < cutoff:
            if lg is not None:
                lg.debug("skipping stale artifact", extra={"file": entry.name})
            continue
        found.append(
            ProfileArtifact(path=Path(entry.path), size=st.st_size, mtime=st.st_mtime)
        )

    found.sort(key=lambda a: a.name)
    if lg is not None:
        lg.debug(
            "scanned profile directory",
            extra={"dir": str(directory), "found": len(found)},
        )
    return found
