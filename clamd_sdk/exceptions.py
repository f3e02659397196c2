"""Exception hierarchy for the clamd SDK.

Every error carries a :class:`ClamdErrorKind` so callers can branch on
``exc.kind`` instead of catching individual classes.
"""

from __future__ import annotations

from enum import Enum


class ClamdErrorKind(str, Enum):
    """Discriminant shared by all :class:`ClamdError` subclasses."""

    INVALID_ARGUMENT = "invalid_argument"
    NOT_FOUND = "not_found"
    CONNECTION = "connection"
    TIMEOUT = "timeout"
    STREAM_SIZE_EXCEEDED = "stream_size_exceeded"


class ClamdError(Exception):
    """Base exception for all clamd SDK errors."""

    kind: ClamdErrorKind


class ClamdInvalidArgumentError(ClamdError, ValueError):
    """Raised before any I/O when an argument or setting is invalid."""

    kind = ClamdErrorKind.INVALID_ARGUMENT

    def __init__(self, argument: str, message: str) -> None:
        super().__init__(message)
        self.argument = argument


class ClamdFileNotFoundError(ClamdError, FileNotFoundError):
    """Raised when a local file handed to ``scan_file`` does not exist."""

    kind = ClamdErrorKind.NOT_FOUND

    def __init__(self, path: str) -> None:
        super().__init__(f"File not found: {path}")
        self.path = path


class ClamdConnectionError(ClamdError):
    """Raised when the daemon cannot be reached.

    Covers refused connections, unreachable hosts and name resolution
    failures, and connections dropped mid-exchange. The underlying
    ``OSError`` is available as ``__cause__``.
    """

    kind = ClamdErrorKind.CONNECTION

    def __init__(self, host: str, port: int, cause: BaseException | None = None) -> None:
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"Connection to clamd at {host}:{port} failed{detail}")
        self.host = host
        self.port = port


class ClamdTimeoutError(ClamdError):
    """Raised when connecting, reading or writing exceeds its bound.

    Attributes:
        operation: ``"connect"``, ``"read"`` or ``"write"``.
        timeout_ms: The configured bound in milliseconds.
    """

    kind = ClamdErrorKind.TIMEOUT

    def __init__(self, operation: str, timeout_ms: int, target: str = "") -> None:
        where = f" to {target}" if target else ""
        super().__init__(f"clamd {operation}{where} timed out after {timeout_ms}ms")
        self.operation = operation
        self.timeout_ms = timeout_ms


class ClamdStreamSizeExceededError(ClamdError):
    """Raised when an INSTREAM upload reads more than the configured maximum."""

    kind = ClamdErrorKind.STREAM_SIZE_EXCEEDED

    def __init__(self, max_stream_size: int) -> None:
        super().__init__(f"Stream exceeds the maximum size of {max_stream_size} bytes")
        self.max_stream_size = max_stream_size
