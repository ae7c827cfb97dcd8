"""
End-to-end tests running the supervisor as its own process.

Signals are sent to the supervisor's pid, the way an orchestrator stops a
container, and the worker's view of them is checked through the files it
writes.
"""

import os
import signal
import subprocess
import sys
import time
from pathlib import Path

import pytest

from tests.helpers import workers

ROOT = Path(__file__).resolve().parents[2]


def _wait_for(path: Path, timeout: float = 10.0) -> None:
    deadline = time.monotonic() + timeout
    while not path.exists():
        if time.monotonic() > deadline:
            raise AssertionError(f"{path.name} did not appear")
        time.sleep(0.02)


@pytest.fixture
def supervisor_env(clean_env, temp_dir):
    env = dict(os.environ)
    env["PYTHONPATH"] = os.pathsep.join(filter(None, [str(ROOT), env.get("PYTHONPATH")]))
    env["PGOSUP_UPLOAD_LOCAL_ROOT"] = str(temp_dir / "remote")
    env["PGOSUP_UPLOAD_HOST"] = "e2e-host"
    env["PGOSUP_RELAY_POLL_INTERVAL"] = "0.05"
    return env


def _start(temp_dir: Path, env: dict, worker: list[str], *extra: str) -> subprocess.Popen:
    args = [
        sys.executable,
        "-m",
        "pgosup",
        "-l",
        "debug",
        "run",
        "--bucket",
        "pgo-e2e",
        "--transport",
        "local",
        "--profile-dir",
        str(temp_dir / "profiles"),
        *extra,
        "--",
        *worker,
    ]
    return subprocess.Popen(
        args, env=env, stdout=subprocess.PIPE, stderr=subprocess.PIPE, text=True
    )


def _uploaded(temp_dir: Path) -> list[Path]:
    return sorted((temp_dir / "remote" / "pgo-e2e").rglob("*.profraw"))


@pytest.mark.e2e
class TestSupervisorProcess:
    """Test complete supervisor runs in a subprocess."""

    def test_natural_exit(self, temp_dir, supervisor_env):
        """Test a worker exiting on its own gets all artifacts uploaded."""
        proc = _start(temp_dir, supervisor_env, workers.writer(3))
        _, err = proc.communicate(timeout=30)

        assert proc.returncode == 0, err
        uploaded = _uploaded(temp_dir)
        assert len(uploaded) == 3
        assert all("/pgo/e2e-host/" in str(p) for p in uploaded)
        assert "all artifacts uploaded" in err

    def test_sigterm_forwarded_once(self, temp_dir, supervisor_env):
        """Test repeated SIGTERMs reach the worker once and uploads still run."""
        ready = temp_dir / "ready"
        proc = _start(temp_dir, supervisor_env, workers.graceful(ready, count=2, linger=0.5))
        _wait_for(ready)

        for _ in range(3):
            proc.send_signal(signal.SIGTERM)
            time.sleep(0.05)
        _, err = proc.communicate(timeout=30)

        assert proc.returncode == 0, err
        assert (temp_dir / "ready.signals").read_text().split() == [str(int(signal.SIGTERM))]
        assert len(_uploaded(temp_dir)) == 2
        assert "ignoring repeated signal" in err

    def test_worker_failure_and_upload_failure(self, temp_dir, supervisor_env):
        """Test combined failures report the combined status."""
        # A file where the remote directory tree should go breaks every copy
        (temp_dir / "remote").write_text("")
        proc = _start(temp_dir, supervisor_env, workers.writer(1, exit_code=7))
        _, err = proc.communicate(timeout=30)

        assert proc.returncode == 5, err
        assert err.count("upload failed") == 1

    @pytest.mark.slow
    def test_escalation(self, temp_dir, supervisor_env):
        """Test a worker ignoring SIGTERM is killed once the grace period ends."""
        ready = temp_dir / "ready"
        supervisor_env["PGOSUP_UPLOAD_FORCED_PREFIX"] = "pgo-forced"
        proc = _start(
            temp_dir, supervisor_env, workers.stubborn(ready), "--grace-period", "300ms"
        )
        _wait_for(ready)

        proc.send_signal(signal.SIGTERM)
        _, err = proc.communicate(timeout=30)

        assert proc.returncode == 4, err
        uploaded = _uploaded(temp_dir)
        assert len(uploaded) == 1
        assert "/pgo-forced/" in str(uploaded[0])
        assert "killed worker" in err

    def test_no_upload(self, temp_dir, supervisor_env):
        """Test --no-upload leaves artifacts local."""
        proc = _start(temp_dir, supervisor_env, workers.writer(1), "--no-upload")
        _, err = proc.communicate(timeout=30)

        assert proc.returncode == 0, err
        assert _uploaded(temp_dir) == []
        assert len(list((temp_dir / "profiles").glob("*.profraw"))) == 1
