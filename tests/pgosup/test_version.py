"""
Tests for version reporting.
"""

import argparse

import pytest

from pgosup.version import BuildInfo, VersionAction, format_version


@pytest.mark.unit
class TestFormatVersion:
    """Test format_version."""

    def test_plain(self):
        assert format_version("pgosup", "1.2.0", BuildInfo()) == "pgosup 1.2.0"

    def test_with_commit(self):
        info = BuildInfo(commit="abc123f")
        assert format_version("pgosup", "1.2.0", info) == "pgosup 1.2.0 (abc123f)"

    def test_modified(self):
        info = BuildInfo(commit="abc123f", modified=True)
        assert format_version("pgosup", "1.2.0", info) == "pgosup 1.2.0 (abc123f*)"


@pytest.mark.unit
class TestVersionAction:
    """Test the --version action."""

    def test_prints_and_exits(self, capsys, monkeypatch):
        monkeypatch.setattr(
            "pgosup.version.get_build_info", lambda: BuildInfo(commit="deadbee")
        )
        parser = argparse.ArgumentParser()
        parser.add_argument("--version", action=VersionAction, app_version="9.9.9")

        with pytest.raises(SystemExit) as exc_info:
            parser.parse_args(["--version"])

        assert exc_info.value.code == 0
        assert capsys.readouterr().out.strip() == "pgosup 9.9.9 (deadbee)"
