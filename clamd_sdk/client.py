"""Synchronous client for the clamd TCP protocol."""

from __future__ import annotations

import io
import logging
import time
from collections.abc import Callable
from pathlib import Path
from typing import Any, BinaryIO, Union

from clamd_sdk import protocol
from clamd_sdk.config import DEFAULT_PORT, ClamdConfig
from clamd_sdk.exceptions import ClamdFileNotFoundError, ClamdInvalidArgumentError
from clamd_sdk.models import ScanResult, ServerStats
from clamd_sdk.parsers import parse_scan_result, parse_stats
from clamd_sdk.streaming import send_instream
from clamd_sdk.transport import ClamdSession

logger = logging.getLogger(__name__)


class ClamdClient:
    """Blocking client for a clamd daemon listening on TCP.

    Every call opens its own connection, sends one command and reads the
    reply until clamd closes the connection. Nothing is retried.

    Args:
        host: Hostname or IP address of the daemon.
        port: TCP port of the daemon.
        config: Complete settings; when given, *host*, *port* and the
            keyword options are ignored.
        **options: Any other :class:`ClamdConfig` field, e.g.
            ``max_stream_size`` or ``read_write_timeout_ms``.

    Example::

        client = ClamdClient("localhost", 3310)
        result = client.scan_file("/tmp/sample.txt")
        print(result.verdict)
    """

    def __init__(
        self,
        host: str = "localhost",
        port: int = DEFAULT_PORT,
        config: ClamdConfig | None = None,
        **options: Any,
    ) -> None:
        self.config = config or ClamdConfig(host=host, port=port, **options)

    def version(self) -> str:
        """Return the daemon's program and database version string."""
        return self._execute(protocol.VERSION)

    def ping(self) -> bool:
        """Return ``True`` when the daemon answers ``PONG``."""
        return _is_pong(self._execute(protocol.PING))

    def scan(self, path: str) -> ScanResult:
        """Scan a file or directory on the daemon's filesystem (SCAN).

        Args:
            path: Absolute path as seen by the daemon; sent verbatim.

        Raises:
            ClamdInvalidArgumentError: If *path* is empty.
        """
        return self._scan_on_server(protocol.SCAN, path)

    def multiscan(self, path: str) -> ScanResult:
        """Scan a path on the daemon using its thread pool (MULTISCAN)."""
        return self._scan_on_server(protocol.MULTISCAN, path)

    def contscan(self, path: str) -> ScanResult:
        """Scan a path on the daemon without stopping at the first hit (CONTSCAN)."""
        return self._scan_on_server(protocol.CONTSCAN, path)

    def allmatchscan(self, path: str) -> ScanResult:
        """Scan a path on the daemon reporting every matching signature (ALLMATCHSCAN)."""
        return self._scan_on_server(protocol.ALLMATCHSCAN, path)

    def scan_bytes(self, data: bytes) -> ScanResult:
        """Upload in-memory bytes with INSTREAM and scan them.

        Raises:
            ClamdInvalidArgumentError: If *data* is ``None``.
            ClamdStreamSizeExceededError: If *data* exceeds ``max_stream_size``.
        """
        _require_payload(data, "data")
        return self.scan_stream(io.BytesIO(data))

    def scan_stream(self, stream: BinaryIO) -> ScanResult:
        """Upload a readable binary stream with INSTREAM and scan it.

        The stream is read from its current position to its end; it is not
        closed.
        """
        _require_payload(stream, "stream")
        cfg = self.config
        raw = self._execute(
            protocol.INSTREAM,
            lambda session: send_instream(stream, session, cfg.max_chunk_size, cfg.max_stream_size),
        )
        return parse_scan_result(raw)

    def scan_file(self, file_path: Union[str, Path]) -> ScanResult:
        """Upload a local file with INSTREAM and scan it.

        Raises:
            ClamdInvalidArgumentError: If *file_path* is empty.
            ClamdFileNotFoundError: If *file_path* does not exist.
        """
        path = _require_local_file(file_path)
        with open(path, "rb") as fh:
            return self.scan_stream(fh)

    def stats(self) -> ServerStats:
        """Return parsed output of the STATS command."""
        return parse_stats(self._execute(protocol.STATS))

    def reload(self) -> bool:
        """Ask the daemon to reload its signature database."""
        return _is_reloaded(self._execute(protocol.RELOAD))

    def close(self) -> None:
        """Nothing to release; connections never outlive a call."""

    def __enter__(self) -> ClamdClient:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _scan_on_server(self, command: str, path: str) -> ScanResult:
        _require_path(path)
        return parse_scan_result(self._execute(f"{command} {path}"))

    def _execute(self, command: str, payload: Callable[[ClamdSession], object] | None = None) -> str:
        cfg = self.config
        started = time.monotonic()
        with ClamdSession(cfg.host, cfg.port, cfg.connect_timeout_ms, cfg.read_write_timeout_ms) as session:
            logger.debug("Sending command: %s", command)
            session.write(protocol.format_command(command))
            if payload is not None:
                payload(session)
            session.flush()
            response = protocol.decode_response(session.read_to_end())
        logger.debug(
            "Command %s answered with %d chars in %.3fs", command, len(response), time.monotonic() - started
        )
        return response


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------


def _require_path(path: str | None) -> None:
    if path is None or not str(path).strip():
        raise ClamdInvalidArgumentError("path", "File path cannot be empty.")


def _require_payload(value: object, name: str) -> None:
    if value is None:
        raise ClamdInvalidArgumentError(name, f"{name} cannot be None.")


def _require_local_file(file_path: Union[str, Path, None]) -> Path:
    _require_path(None if file_path is None else str(file_path))
    path = Path(file_path)  # type: ignore[arg-type]
    if not path.exists():
        raise ClamdFileNotFoundError(str(path))
    return path


def _is_pong(response: str) -> bool:
    return response.lower() == "pong"


def _is_reloaded(response: str) -> bool:
    lowered = response.lower()
    return "reload" in lowered or lowered == "ok"
