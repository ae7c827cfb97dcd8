"""
Remote naming of uploaded artifacts.

Every run gets a RunIdentity; keys are `<prefix>/<host>/<run_id>/<file>`.
The run id combines a UTC stamp with random hex, so two runs never share a
key even on the same host within the same second.
"""

from __future__ import annotations

import datetime
import socket
import uuid
from dataclasses import dataclass

from ..time import utc_stamp


def _clean(component: str) -> str:
    return component.strip("/").replace("/", "_")


@dataclass(frozen=True)
class RunIdentity:
    host: str
    run_id: str

    @classmethod
    def create(
        cls, host: str | None = None, now: datetime.datetime | None = None
    ) -> RunIdentity:
        """New identity for this run; host defaults to the machine's hostname."""
        return cls(
            host=_clean(host or socket.gethostname()),
            run_id=f"{utc_stamp(now)}-{uuid.uuid4().hex[:8]}",
        )


def remote_key(prefix: str | None, identity: RunIdentity, name: str) -> str:
    """
    Build the object key for an artifact.

    Examples:
        >>> remote_key("pgo", RunIdentity("node-1", "20261018T120000Z-1a2b3c4d"), "w.profraw")
        'pgo/node-1/20261018T120000Z-1a2b3c4d/w.profraw'
        >>> remote_key("", RunIdentity("node-1", "r1"), "w.profraw")
        'node-1/r1/w.profraw'
    """
    parts = [prefix or "", identity.host, identity.run_id, name]
    return "/".join(p.strip("/") for p in parts if p and p.strip("/"))
