"""
Signal relay between the host and the worker.

The relay turns externally delivered termination signals into a single,
deterministic shutdown of the worker:

    RUNNING --signal--> SHUTTING_DOWN --child exit--> TERMINATED
    RUNNING --------------child exit----------------> TERMINATED

The first intercepted signal is forwarded to the worker exactly once; any
later signal is logged and dropped. SIGKILL sent to the supervisor itself
cannot be intercepted, so nothing is uploaded in that case.
"""

from __future__ import annotations

import enum
import signal
import threading
import time
from dataclasses import dataclass, field
from types import FrameType
from typing import TYPE_CHECKING, Any

from ..config import RelayConfig
from ..exceptions import RelayStateError
from ..log import Logger

if TYPE_CHECKING:
    from .launcher import ChildProcess


class RelayState(enum.Enum):
    RUNNING = "running"
    SHUTTING_DOWN = "shutting_down"
    TERMINATED = "terminated"


_TRANSITIONS: dict[RelayState, frozenset[RelayState]] = {
    RelayState.RUNNING: frozenset({RelayState.SHUTTING_DOWN, RelayState.TERMINATED}),
    RelayState.SHUTTING_DOWN: frozenset({RelayState.TERMINATED}),
    RelayState.TERMINATED: frozenset(),
}


class ShutdownKind(enum.Enum):
    """Kinds of shutdown request, valued by the signal that carries them."""

    INTERRUPT = signal.SIGINT
    TERMINATE = signal.SIGTERM
    HANGUP = signal.SIGHUP
    KILL = signal.SIGKILL

    @classmethod
    def from_signal(cls, signum: int) -> ShutdownKind:
        return cls(signal.Signals(signum))

    @property
    def signal_name(self) -> str:
        return self.value.name


@dataclass(frozen=True)
class ShutdownRequest:
    """A shutdown request and when it was received (monotonic seconds)."""

    kind: ShutdownKind
    received_at: float = field(default_factory=time.monotonic)

    @property
    def signum(self) -> int:
        return int(self.kind.value)


class SignalRelay:
    """
    Forwards termination signals to the worker exactly once.

    Used as a context manager: handlers for the configured signals are
    installed on entry and the previous handlers restored on exit. Handlers
    are installed before the worker is launched so no signal is lost; a
    signal arriving before attach() is forwarded when the worker is attached.

    Example:
        with SignalRelay(config.relay, lg) as relay:
            child = launcher.launch(argv)
            relay.attach(child)
            returncode = relay.wait()
    """

    def __init__(self, config: RelayConfig, lg: Logger) -> None:
        self._config = config
        self._lg = lg
        self._state = RelayState.RUNNING
        # Held forever by the first signal; later signals fail to acquire it
        self._once = threading.Lock()
        self._child: ChildProcess | None = None
        self._request: ShutdownRequest | None = None
        self._escalation: ShutdownRequest | None = None
        self._forwarded = 0
        self._ignored = 0
        self._deadline: float | None = None
        self._original_handlers: dict[signal.Signals, Any] = {}

    def __enter__(self) -> SignalRelay:
        self.install()
        return self

    def __exit__(self, *args: object) -> None:
        self.restore()

    @property
    def signals(self) -> list[signal.Signals]:
        return [signal.Signals[name] for name in self._config.signals]

    @property
    def state(self) -> RelayState:
        return self._state

    @property
    def request(self) -> ShutdownRequest | None:
        """The shutdown request that was acted on, if any."""
        return self._request

    @property
    def shutdown_requested(self) -> bool:
        return self._request is not None

    @property
    def forwarded_count(self) -> int:
        return self._forwarded

    @property
    def ignored_count(self) -> int:
        return self._ignored

    @property
    def shutdown_elapsed(self) -> float | None:
        """Seconds since the acted-on shutdown request was received."""
        if self._request is None:
            return None
        return time.monotonic() - self._request.received_at

    @property
    def escalated(self) -> bool:
        """Whether the worker had to be killed after the grace period."""
        return self._escalation is not None

    def install(self) -> None:
        """Register the relay as handler for the configured signals."""
        for sig in self.signals:
            self._original_handlers[sig] = signal.signal(sig, self.handle)
        self._lg.debug(
            "signal handlers installed",
            extra={"signals": ",".join(s.name for s in self.signals)},
        )

    def restore(self) -> None:
        """Put back the handlers that were active before install()."""
        for sig, handler in self._original_handlers.items():
            signal.signal(sig, handler)
        self._original_handlers.clear()

    def attach(self, child: ChildProcess) -> None:
        """
        Attach the launched worker.

        Raises:
            RelayStateError: If a worker is already attached
        """
        if self._child is not None:
            raise RelayStateError(
                "worker already attached", pid=self._child.pid, new_pid=child.pid
            )
        self._child = child
        if self._request is not None and self._forwarded == 0:
            self._forward()

    def handle(self, signum: int, frame: FrameType | None = None) -> None:
        """Signal handler: act on the first signal only."""
        sig_name = signal.Signals(signum).name
        if not self._once.acquire(blocking=False):
            self._ignored += 1
            self._lg.info(
                "ignoring repeated signal, shutdown already in progress",
                extra={"signal": sig_name, "state": self._state.value},
            )
            return

        if self._state is not RelayState.RUNNING:
            self._ignored += 1
            self._lg.debug(
                "ignoring signal, worker already exited", extra={"signal": sig_name}
            )
            return

        self._request = ShutdownRequest(ShutdownKind.from_signal(signum))
        self._transition(RelayState.SHUTTING_DOWN)
        self._lg.info("shutdown requested", extra={"signal": sig_name})

        if self._child is not None:
            self._forward()
        else:
            self._lg.debug("no worker attached yet, forwarding deferred")

    def wait(self) -> int:
        """
        Block until the worker's exit status is available.

        Without a grace period this waits indefinitely. With one, the worker
        is sent SIGKILL once the period after forwarding has elapsed (when
        escalation is enabled).

        Returns:
            The worker's exit status

        Raises:
            RelayStateError: If no worker is attached
        """
        if self._child is None:
            raise RelayStateError("no worker attached")

        while True:
            rc = self._child.wait(timeout=self._config.poll_interval)
            if rc is not None:
                break
            if self._deadline is not None and time.monotonic() >= self._deadline:
                self._grace_expired()

        self._transition(RelayState.TERMINATED)
        self._lg.info(
            "worker exited",
            extra={
                "returncode": rc,
                "signal": self._child.killed_by,
                "requested": self.shutdown_requested,
                "after": self._child.uptime,
            },
        )
        return rc

    def _forward(self) -> None:
        assert self._child is not None and self._request is not None
        sig_name = self._request.kind.signal_name
        if not self._child.send_signal(self._request.signum):
            self._lg.debug(
                "worker already exited, nothing to forward", extra={"signal": sig_name}
            )
            return
        self._forwarded += 1
        if self._config.grace_period is not None:
            self._deadline = time.monotonic() + self._config.grace_period
        self._lg.info(
            "forwarded signal to worker",
            extra={"signal": sig_name, "pid": self._child.pid},
        )

    def _grace_expired(self) -> None:
        assert self._child is not None
        self._deadline = None
        if not self._config.escalate:
            self._lg.warning(
                "grace period expired, still waiting for worker",
                extra={"pid": self._child.pid, "after": self.shutdown_elapsed},
            )
            return
        self._escalation = ShutdownRequest(ShutdownKind.KILL)
        self._child.kill()
        self._lg.warning(
            "grace period expired, killed worker",
            extra={"pid": self._child.pid, "after": self.shutdown_elapsed},
        )

    def _transition(self, new_state: RelayState) -> None:
        if new_state not in _TRANSITIONS[self._state]:
            raise RelayStateError(
                "illegal relay state transition",
                current=self._state.value,
                requested=new_state.value,
            )
        self._lg.trace(
            "relay state",
            extra={"from": self._state.value, "to": new_state.value},
        )
        self._state = new_state
