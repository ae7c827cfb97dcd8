"""
Storage transports for artifact uploads.

A transport copies one local file to `<bucket>/<key>` and returns the remote
location, or raises UploadError. Transports never retry; credentials come
from the ambient environment (instance role, workload identity, env vars).

- S3Transport: boto3 against S3 or any S3-compatible endpoint, including
  Google Cloud Storage's interoperability endpoint
- CommandTransport: an external copy command such as `gsutil cp`
- LocalTransport: a directory tree standing in for the bucket
"""

from __future__ import annotations

import shutil
import subprocess
from collections.abc import Sequence
from pathlib import Path
from typing import Any, Protocol

import boto3
from boto3.exceptions import S3UploadFailedError
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from ..config import UploadConfig
from ..exceptions import ConfigError, UploadError

# Connection setup is bounded separately from the transfer itself
CONNECT_TIMEOUT = 10.0

# Keep the tail of a failing command's stderr for the log
STDERR_TAIL = 400


class Transport(Protocol):
    name: str

    def put(self, path: Path, bucket: str, key: str) -> str: ...


class S3Transport:
    """Uploads through the boto3 S3 client."""

    name = "s3"

    def __init__(
        self,
        endpoint_url: str | None = None,
        region: str | None = None,
        timeout: float = 300.0,
        client: Any = None,
    ) -> None:
        self._endpoint_url = endpoint_url
        if client is None:
            client = boto3.client(
                "s3",
                endpoint_url=endpoint_url,
                region_name=region,
                config=BotoConfig(
                    connect_timeout=min(CONNECT_TIMEOUT, timeout),
                    read_timeout=timeout,
                    retries={"total_max_attempts": 1},
                ),
            )
        self._client = client

    def location(self, bucket: str, key: str) -> str:
        if self._endpoint_url:
            return f"{self._endpoint_url.rstrip('/')}/{bucket}/{key}"
        return f"s3://{bucket}/{key}"

    def put(self, path: Path, bucket: str, key: str) -> str:
        try:
            self._client.upload_file(str(path), bucket, key)
        except (ClientError, BotoCoreError, S3UploadFailedError, OSError) as e:
            raise UploadError(path.name, f"{e.__class__.__name__}: {e}", key=key) from e
        return self.location(bucket, key)


class CommandTransport:
    """
    Uploads by running an external copy command per file.

    Arguments are templates filled with `{src}`, `{bucket}` and `{key}`, e.g.
    `["gsutil", "-q", "cp", "{src}", "gs://{bucket}/{key}"]`.
    """

    name = "command"

    def __init__(self, command: Sequence[str], timeout: float = 300.0) -> None:
        if not command:
            raise ConfigError("upload command is empty")
        self._command = list(command)
        self._timeout = timeout

    def render(self, path: Path, bucket: str, key: str) -> list[str]:
        return [arg.format(src=str(path), bucket=bucket, key=key) for arg in self._command]

    def put(self, path: Path, bucket: str, key: str) -> str:
        args = self.render(path, bucket, key)
        try:
            proc = subprocess.run(
                args,
                stdin=subprocess.DEVNULL,
                capture_output=True,
                text=True,
                timeout=self._timeout,
                check=False,
            )
        except subprocess.TimeoutExpired as e:
            raise UploadError(path.name, f"timed out after {self._timeout}s") from e
        except OSError as e:
            raise UploadError(path.name, f"cannot run {args[0]}: {e}") from e

        if proc.returncode != 0:
            stderr = (proc.stderr or "").strip()[-STDERR_TAIL:]
            raise UploadError(
                path.name,
                f"{args[0]} exited with status {proc.returncode}",
                stderr=stderr,
            )

        # The destination is the last argument that mentions the key
        for arg in reversed(args):
            if key in arg:
                return arg
        return f"{bucket}/{key}"


class LocalTransport:
    """Copies artifacts into `<root>/<bucket>/<key>`."""

    name = "local"

    def __init__(self, root: str | Path) -> None:
        self._root = Path(root)

    def put(self, path: Path, bucket: str, key: str) -> str:
        dest = self._root / bucket / key
        try:
            dest.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(path, dest)
        except OSError as e:
            raise UploadError(path.name, f"{e.__class__.__name__}: {e}") from e
        return str(dest)


def create_transport(config: UploadConfig) -> Transport:
    """
    Create the transport named by the upload configuration.

    Raises:
        ConfigError: If the transport's required settings are missing
    """
    if config.transport == "s3":
        return S3Transport(
            endpoint_url=config.endpoint_url,
            region=config.region,
            timeout=config.timeout,
        )
    if config.transport == "command":
        return CommandTransport(config.command, timeout=config.timeout)
    if config.transport == "local":
        if config.local_root is None:
            raise ConfigError("local transport requires upload.local_root")
        return LocalTransport(config.local_root)
    raise ConfigError("unknown transport", transport=config.transport)
