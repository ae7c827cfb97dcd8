"""
Tests for the command line.
"""

import sys

import pytest

from pgosup.cli import build_overrides, build_parser, main, split_worker_argv
from tests.helpers import workers


@pytest.mark.unit
class TestSplitWorkerArgv:
    """Test splitting supervisor arguments from the worker command."""

    def test_split(self):
        assert split_worker_argv(["run", "--bucket", "b", "--", "./w", "--port", "1"]) == (
            ["run", "--bucket", "b"],
            ["./w", "--port", "1"],
        )

    def test_no_separator(self):
        assert split_worker_argv(["upload"]) == (["upload"], [])

    def test_only_first_separator(self):
        """Test later separators belong to the worker."""
        assert split_worker_argv(["run", "--", "./w", "--", "x"]) == (
            ["run"],
            ["./w", "--", "x"],
        )


@pytest.mark.unit
class TestBuildOverrides:
    """Test mapping arguments onto configuration overrides."""

    def test_unset_options_are_none(self):
        """Test options not given leave configuration untouched."""
        overrides = build_overrides(build_parser().parse_args(["run"]))

        assert overrides["worker"]["profile_dir"] is None
        assert overrides["upload"]["bucket"] is None
        assert overrides["upload"]["enabled"] is None
        assert overrides["relay"]["grace_period"] is None

    def test_run_options(self):
        args = build_parser().parse_args(
            ["-l", "debug", "run", "--bucket", "b", "--grace-period", "30s", "--no-upload"]
        )
        overrides = build_overrides(args)

        assert overrides["logging"]["level"] == "debug"
        assert overrides["upload"]["bucket"] == "b"
        assert overrides["upload"]["enabled"] is False
        assert overrides["relay"]["grace_period"] == "30s"

    def test_quiet(self):
        """Test --quiet disables logging."""
        overrides = build_overrides(build_parser().parse_args(["-q", "run"]))
        assert overrides["logging"]["level"] is False

    def test_upload_forces_enabled(self):
        """Test the upload command always uploads."""
        overrides = build_overrides(build_parser().parse_args(["upload"]))
        assert overrides["upload"]["enabled"] is True
        assert "relay" not in overrides


@pytest.mark.integration
@pytest.mark.usefixtures("clean_env")
class TestMain:
    """Test main's exit statuses."""

    def _upload_args(self, temp_dir):
        return [
            "--bucket",
            "pgo-test",
            "--profile-dir",
            str(temp_dir / "profiles"),
            "--transport",
            "local",
        ]

    def test_run(self, temp_dir, monkeypatch):
        """Test a full run through the command line."""
        monkeypatch.setenv("PGOSUP_UPLOAD_LOCAL_ROOT", str(temp_dir / "remote"))
        argv = ["-q", "run", *self._upload_args(temp_dir), "--", *workers.writer(2)]

        assert main(argv) == 0
        assert len(list((temp_dir / "remote" / "pgo-test").rglob("*.profraw"))) == 2

    def test_run_worker_failure(self, temp_dir, monkeypatch):
        monkeypatch.setenv("PGOSUP_UPLOAD_LOCAL_ROOT", str(temp_dir / "remote"))
        argv = ["-q", "run", *self._upload_args(temp_dir), "--", *workers.writer(1, 9)]

        assert main(argv) == 4

    def test_run_without_upload(self, temp_dir):
        """Test --no-upload needs no bucket."""
        argv = ["-q", "run", "--no-upload", "--profile-dir", str(temp_dir), "--"]
        argv += workers.writer(0)

        assert main(argv) == 0

    def test_run_without_command(self, temp_dir):
        """Test run needs a worker command."""
        assert main(["-q", "run", "--no-upload"]) == 7

    def test_launch_failure(self, temp_dir):
        argv = ["-q", "run", "--no-upload", "--", str(temp_dir / "missing")]
        assert main(argv) == 6

    def test_bucket_with_scheme(self, capsys):
        """Test a scheme-prefixed bucket is rejected before launch."""
        code = main(["run", "--bucket", "s3://pgo", "--", sys.executable, "-c", "pass"])

        assert code == 7
        assert "without a scheme prefix" in capsys.readouterr().err

    def test_missing_config_file(self, temp_dir, capsys):
        code = main(["-c", str(temp_dir / "absent.yaml"), "run", "--", "true"])

        assert code == 7
        assert "not found" in capsys.readouterr().err

    def test_config_file(self, temp_dir, monkeypatch):
        """Test settings come from the YAML file."""
        config_file = temp_dir / "pgosup.yaml"
        config_file.write_text(
            f"""
logging:
  level: false
worker:
  profile_dir: {temp_dir / "profiles"}
upload:
  transport: local
  bucket: from-file
  local_root: {temp_dir / "remote"}
"""
        )

        assert main(["-c", str(config_file), "run", "--", *workers.writer(1)]) == 0
        assert len(list((temp_dir / "remote" / "from-file").rglob("*.profraw"))) == 1

    def test_config_file_from_environment(self, temp_dir, monkeypatch):
        """Test PGOSUP_CONFIG names the YAML file when -c is not given."""
        config_file = temp_dir / "pgosup.yaml"
        config_file.write_text(
            f"""
worker:
  profile_dir: {temp_dir / "profiles"}
upload:
  transport: local
  bucket: from-env-file
  local_root: {temp_dir / "remote"}
"""
        )
        monkeypatch.setenv("PGOSUP_CONFIG", str(config_file))

        assert build_parser().parse_args(["run"]).config is None
        assert main(["-q", "run", "--", *workers.writer(1)]) == 0
        assert len(list((temp_dir / "remote" / "from-env-file").rglob("*.profraw"))) == 1

    def test_upload_command(self, temp_dir, monkeypatch):
        """Test uploading leftovers."""
        profiles = temp_dir / "profiles"
        profiles.mkdir()
        (profiles / "left-1.profraw").write_bytes(b"x")
        monkeypatch.setenv("PGOSUP_UPLOAD_LOCAL_ROOT", str(temp_dir / "remote"))

        assert main(["-q", "upload", *self._upload_args(temp_dir)]) == 0
        assert len(list((temp_dir / "remote").rglob("left-1.profraw"))) == 1

    def test_upload_rejects_worker(self):
        """Test the upload command takes no worker command."""
        with pytest.raises(SystemExit) as exc_info:
            main(["upload", "--", "./worker"])
        assert exc_info.value.code == 2

    def test_version(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(["--version"])

        assert exc_info.value.code == 0
        assert capsys.readouterr().out.startswith("pgosup ")
