"""
Worker process lifecycle: launching and signal relaying.
"""

from .launcher import PROFILE_ENV, ChildProcess, ProcessLauncher
from .relay import RelayState, ShutdownKind, ShutdownRequest, SignalRelay

__all__ = [
    "PROFILE_ENV",
    "ChildProcess",
    "ProcessLauncher",
    "RelayState",
    "ShutdownKind",
    "ShutdownRequest",
    "SignalRelay",
]
