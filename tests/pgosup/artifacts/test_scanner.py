"""
Tests for profiling artifact discovery.
"""

import os
import time

import pytest

from pgosup.artifacts import CLOCK_SLACK, ArtifactState, ProfileArtifact, discover_artifacts
from pgosup.exceptions import UploadError


def _touch(path, content=b"data", mtime=None):
    path.write_bytes(content)
    if mtime is not None:
        os.utime(path, (mtime, mtime))
    return path


@pytest.mark.unit
class TestDiscoverArtifacts:
    """Test discover_artifacts."""

    def test_finds_matching_files_sorted(self, profile_dir):
        """Test matching files are returned sorted by name."""
        _touch(profile_dir / "worker-2.profraw")
        _touch(profile_dir / "worker-1.profraw")
        _touch(profile_dir / "notes.txt")

        found = discover_artifacts(profile_dir)

        assert [a.name for a in found] == ["worker-1.profraw", "worker-2.profraw"]
        assert all(a.state is ArtifactState.PENDING for a in found)

    def test_records_size(self, profile_dir):
        """Test artifact size comes from the file."""
        _touch(profile_dir / "w.profraw", b"x" * 100)
        assert discover_artifacts(profile_dir)[0].size == 100

    def test_not_recursive(self, profile_dir):
        """Test subdirectories are not searched."""
        sub = profile_dir / "old"
        sub.mkdir()
        _touch(sub / "w.profraw")

        assert discover_artifacts(profile_dir) == []

    def test_directory_matching_pattern_skipped(self, profile_dir):
        """Test only regular files count."""
        (profile_dir / "dir.profraw").mkdir()
        assert discover_artifacts(profile_dir) == []

    def test_symlink_skipped(self, profile_dir, temp_dir):
        """Test symlinks are not followed."""
        target = _touch(temp_dir / "outside.profraw")
        (profile_dir / "link.profraw").symlink_to(target)

        assert discover_artifacts(profile_dir) == []

    def test_multiple_patterns(self, profile_dir):
        """Test every configured pattern is matched."""
        _touch(profile_dir / "a.profraw")
        _touch(profile_dir / "b.profdata")

        found = discover_artifacts(profile_dir, ["*.profraw", "*.profdata"])
        assert [a.name for a in found] == ["a.profraw", "b.profdata"]

    def test_missing_directory(self, temp_dir, lg, log_stream):
        """Test a missing directory yields nothing and is logged."""
        assert discover_artifacts(temp_dir / "absent", lg=lg) == []
        assert "profile directory does not exist" in log_stream.getvalue()

    def test_not_a_directory(self, temp_dir):
        """Test a profile path naming a regular file raises UploadError."""
        not_a_dir = _touch(temp_dir / "profiles")

        with pytest.raises(UploadError, match="NotADirectoryError") as exc_info:
            discover_artifacts(not_a_dir)
        assert exc_info.value.artifact == str(not_a_dir)

    def test_file_vanishing_during_scan(self, profile_dir, lg, log_stream, monkeypatch):
        """Test a file removed between listing and stat is skipped."""
        _touch(profile_dir / "kept.profraw")
        gone = _touch(profile_dir / "gone.profraw")
        entries = list(os.scandir(profile_dir))
        gone.unlink()
        monkeypatch.setattr("pgosup.artifacts.scanner.os.scandir", lambda d: iter(entries))

        found = discover_artifacts(profile_dir, lg=lg)

        assert [a.name for a in found] == ["kept.profraw"]
        assert "skipping unreadable artifact" in log_stream.getvalue()

    def test_newer_than_skips_stale(self, profile_dir):
        """Test files older than the cutoff are skipped."""
        now = time.time()
        _touch(profile_dir / "stale.profraw", mtime=now - 3600)
        _touch(profile_dir / "fresh.profraw", mtime=now)

        found = discover_artifacts(profile_dir, newer_than=now)
        assert [a.name for a in found] == ["fresh.profraw"]

    def test_newer_than_allows_slack(self, profile_dir):
        """Test files just before the cutoff are kept."""
        now = time.time()
        _touch(profile_dir / "w.profraw", mtime=now - CLOCK_SLACK / 2)

        assert len(discover_artifacts(profile_dir, newer_than=now)) == 1


@pytest.mark.unit
class TestProfileArtifact:
    """Test ProfileArtifact."""

    def test_from_path(self, profile_dir):
        """Test building an artifact from a file."""
        path = _touch(profile_dir / "w.profraw", b"abc")
        artifact = ProfileArtifact.from_path(path)

        assert artifact.name == "w.profraw"
        assert artifact.size == 3
        assert artifact.state is ArtifactState.PENDING
