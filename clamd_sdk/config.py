"""Connection settings shared by the sync and async clients."""

from __future__ import annotations

import os
from dataclasses import dataclass

from clamd_sdk.exceptions import ClamdInvalidArgumentError

DEFAULT_PORT = 3310
DEFAULT_MAX_CHUNK_SIZE = 131_072  # 128 KiB
DEFAULT_MAX_STREAM_SIZE = 26_214_400  # 25 MiB
DEFAULT_CONNECT_TIMEOUT_MS = 30_000
DEFAULT_READ_WRITE_TIMEOUT_MS = 300_000


@dataclass
class ClamdConfig:
    """Settings for talking to a clamd daemon over TCP.

    Attributes:
        host: Hostname or IP address of the daemon.
        port: TCP port the daemon listens on (1-65535).
        max_chunk_size: Largest INSTREAM chunk sent in one frame, in bytes.
        max_stream_size: Largest payload an INSTREAM upload may read, in bytes.
            Should not exceed the daemon's ``StreamMaxLength``.
        connect_timeout_ms: Bound on establishing the connection.
        read_write_timeout_ms: Bound on every individual read or write.

    Values are validated on construction and on every assignment. They may
    be changed between calls, but not while a call is in flight.
    """

    host: str
    port: int = DEFAULT_PORT
    max_chunk_size: int = DEFAULT_MAX_CHUNK_SIZE
    max_stream_size: int = DEFAULT_MAX_STREAM_SIZE
    connect_timeout_ms: int = DEFAULT_CONNECT_TIMEOUT_MS
    read_write_timeout_ms: int = DEFAULT_READ_WRITE_TIMEOUT_MS

    def __setattr__(self, name: str, value: object) -> None:
        _validate(name, value)
        super().__setattr__(name, value)

    @property
    def connect_timeout(self) -> float:
        """Connect timeout in seconds."""
        return self.connect_timeout_ms / 1000

    @property
    def read_write_timeout(self) -> float:
        """Read/write timeout in seconds."""
        return self.read_write_timeout_ms / 1000

    @classmethod
    def from_env(cls, prefix: str = "CLAMD_") -> ClamdConfig:
        """Build a config from ``<prefix>HOST``, ``<prefix>PORT`` and friends.

        Unset variables fall back to the defaults; the host defaults to
        ``localhost``.
        """
        return cls(
            host=os.getenv(f"{prefix}HOST", "localhost").strip(),
            port=_env_int(f"{prefix}PORT", DEFAULT_PORT),
            max_chunk_size=_env_int(f"{prefix}MAX_CHUNK_SIZE", DEFAULT_MAX_CHUNK_SIZE),
            max_stream_size=_env_int(f"{prefix}MAX_STREAM_SIZE", DEFAULT_MAX_STREAM_SIZE),
            connect_timeout_ms=_env_int(f"{prefix}CONNECT_TIMEOUT_MS", DEFAULT_CONNECT_TIMEOUT_MS),
            read_write_timeout_ms=_env_int(f"{prefix}READ_WRITE_TIMEOUT_MS", DEFAULT_READ_WRITE_TIMEOUT_MS),
        )


_POSITIVE_FIELDS = frozenset(
    {"max_chunk_size", "max_stream_size", "connect_timeout_ms", "read_write_timeout_ms"}
)


def _is_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _validate(name: str, value: object) -> None:
    if name == "host":
        if not isinstance(value, str) or not value.strip():
            raise ClamdInvalidArgumentError("host", "Server address cannot be empty.")
    elif name == "port":
        if not _is_int(value) or not 1 <= value <= 65535:  # type: ignore[operator]
            raise ClamdInvalidArgumentError("port", f"Port must be an integer between 1 and 65535, got {value!r}.")
    elif name in _POSITIVE_FIELDS:
        if not _is_int(value) or value <= 0:  # type: ignore[operator]
            raise ClamdInvalidArgumentError(name, f"{name} must be an integer greater than 0, got {value!r}.")


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ClamdInvalidArgumentError(name, f"{name} must be an integer, got {raw!r}") from exc
