"""
Profiling artifact discovery, naming and upload.
"""

from .naming import RunIdentity, remote_key
from .scanner import CLOCK_SLACK, ArtifactState, ProfileArtifact, discover_artifacts
from .transport import (
    CommandTransport,
    LocalTransport,
    S3Transport,
    Transport,
    create_transport,
)
from .uploader import ArtifactUploader, UploadResult, UploadSummary

__all__ = [
    # Discovery
    "CLOCK_SLACK",
    "ArtifactState",
    "ProfileArtifact",
    "discover_artifacts",
    # Naming
    "RunIdentity",
    "remote_key",
    # Transports
    "Transport",
    "S3Transport",
    "CommandTransport",
    "LocalTransport",
    "create_transport",
    # Upload
    "ArtifactUploader",
    "UploadResult",
    "UploadSummary",
]
