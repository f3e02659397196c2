"""Asynchronous client for the clamd TCP protocol (asyncio)."""

from __future__ import annotations

import io
import logging
import time
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any, BinaryIO, Union

from clamd_sdk import protocol
from clamd_sdk.cancellation import CancellationToken
from clamd_sdk.client import (
    _is_pong,
    _is_reloaded,
    _require_local_file,
    _require_path,
    _require_payload,
)
from clamd_sdk.config import DEFAULT_PORT, ClamdConfig
from clamd_sdk.models import ScanResult, ServerStats
from clamd_sdk.parsers import parse_scan_result, parse_stats
from clamd_sdk.streaming import send_instream_async
from clamd_sdk.transport import AsyncClamdSession

logger = logging.getLogger(__name__)

PayloadSender = Callable[[AsyncClamdSession, Union[CancellationToken, None]], Awaitable[object]]


class AsyncClamdClient:
    """Asynchronous client for a clamd daemon listening on TCP.

    Each coroutine opens its own connection, so calls may run concurrently
    on one instance. Every operation accepts an optional
    :class:`~clamd_sdk.cancellation.CancellationToken`; cancelling the
    awaiting task works as well. Either way the connection is closed.

    Args:
        host: Hostname or IP address of the daemon.
        port: TCP port of the daemon.
        config: Complete settings; when given, *host*, *port* and the
            keyword options are ignored.
        **options: Any other :class:`ClamdConfig` field.

    Example::

        async with AsyncClamdClient("localhost", 3310) as client:
            result = await client.scan_file("/tmp/sample.txt")
            if result.is_infected:
                print(result.infected_files)
    """

    def __init__(
        self,
        host: str = "localhost",
        port: int = DEFAULT_PORT,
        config: ClamdConfig | None = None,
        **options: Any,
    ) -> None:
        self.config = config or ClamdConfig(host=host, port=port, **options)

    async def version(self, *, cancel_token: CancellationToken | None = None) -> str:
        """Return the daemon's program and database version string."""
        return await self._execute(protocol.VERSION, cancel_token)

    async def ping(self, *, cancel_token: CancellationToken | None = None) -> bool:
        """Return ``True`` when the daemon answers ``PONG``."""
        return _is_pong(await self._execute(protocol.PING, cancel_token))

    async def scan(self, path: str, *, cancel_token: CancellationToken | None = None) -> ScanResult:
        """Scan a file or directory on the daemon's filesystem (SCAN).

        Args:
            path: Absolute path as seen by the daemon; sent verbatim.

        Raises:
            ClamdInvalidArgumentError: If *path* is empty.
            ClamdConnectionError: If the daemon cannot be reached.
            ClamdTimeoutError: If connecting or reading times out.
        """
        return await self._scan_on_server(protocol.SCAN, path, cancel_token)

    async def multiscan(self, path: str, *, cancel_token: CancellationToken | None = None) -> ScanResult:
        """Scan a path on the daemon using its thread pool (MULTISCAN)."""
        return await self._scan_on_server(protocol.MULTISCAN, path, cancel_token)

    async def contscan(self, path: str, *, cancel_token: CancellationToken | None = None) -> ScanResult:
        """Scan a path on the daemon without stopping at the first hit (CONTSCAN)."""
        return await self._scan_on_server(protocol.CONTSCAN, path, cancel_token)

    async def allmatchscan(self, path: str, *, cancel_token: CancellationToken | None = None) -> ScanResult:
        """Scan a path on the daemon reporting every matching signature (ALLMATCHSCAN)."""
        return await self._scan_on_server(protocol.ALLMATCHSCAN, path, cancel_token)

    async def scan_bytes(self, data: bytes, *, cancel_token: CancellationToken | None = None) -> ScanResult:
        """Upload in-memory bytes with INSTREAM and scan them.

        Raises:
            ClamdInvalidArgumentError: If *data* is ``None``.
            ClamdStreamSizeExceededError: If *data* exceeds ``max_stream_size``.
        """
        _require_payload(data, "data")
        return await self.scan_stream(io.BytesIO(data), cancel_token=cancel_token)

    async def scan_stream(self, stream: BinaryIO | Any, *, cancel_token: CancellationToken | None = None) -> ScanResult:
        """Upload a readable stream with INSTREAM and scan it.

        *stream* needs a ``read(n)`` method, which may be a coroutine
        function. It is read from its current position and not closed.

        Raises:
            ClamdInvalidArgumentError: If *stream* is ``None``.
            ClamdStreamSizeExceededError: If more than ``max_stream_size``
                bytes are read; the upload is aborted before its terminator.
        """
        _require_payload(stream, "stream")
        cfg = self.config
        chunk_size, max_stream_size = cfg.max_chunk_size, cfg.max_stream_size

        async def payload(session: AsyncClamdSession, token: CancellationToken | None) -> None:
            await send_instream_async(stream, session, chunk_size, max_stream_size, token)

        return parse_scan_result(await self._execute(protocol.INSTREAM, cancel_token, payload))

    async def scan_file(
        self, file_path: Union[str, Path], *, cancel_token: CancellationToken | None = None
    ) -> ScanResult:
        """Upload a local file with INSTREAM and scan it.

        Raises:
            ClamdInvalidArgumentError: If *file_path* is empty.
            ClamdFileNotFoundError: If *file_path* does not exist.
        """
        path = _require_local_file(file_path)
        with open(path, "rb") as fh:
            return await self.scan_stream(fh, cancel_token=cancel_token)

    async def stats(self, *, cancel_token: CancellationToken | None = None) -> ServerStats:
        """Return parsed output of the STATS command."""
        return parse_stats(await self._execute(protocol.STATS, cancel_token))

    async def reload(self, *, cancel_token: CancellationToken | None = None) -> bool:
        """Ask the daemon to reload its signature database."""
        return _is_reloaded(await self._execute(protocol.RELOAD, cancel_token))

    async def close(self) -> None:
        """Nothing to release; connections never outlive a call."""

    async def __aenter__(self) -> AsyncClamdClient:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _scan_on_server(
        self, command: str, path: str, cancel_token: CancellationToken | None
    ) -> ScanResult:
        _require_path(path)
        return parse_scan_result(await self._execute(f"{command} {path}", cancel_token))

    async def _execute(
        self,
        command: str,
        cancel_token: CancellationToken | None,
        payload: PayloadSender | None = None,
    ) -> str:
        """Run one request/response exchange on a fresh connection.

        Sends the framed *command*, lets *payload* write onto the same
        connection, flushes, then reads the reply until clamd closes the
        connection.
        """
        cfg = self.config
        started = time.monotonic()
        async with AsyncClamdSession(
            cfg.host, cfg.port, cfg.connect_timeout_ms, cfg.read_write_timeout_ms, cancel_token
        ) as session:
            logger.debug("Sending command: %s", command)
            await session.write(protocol.format_command(command))
            if payload is not None:
                await payload(session, cancel_token)
            await session.flush()
            response = protocol.decode_response(await session.read_to_end())
        logger.debug(
            "Command %s answered with %d chars in %.3fs", command, len(response), time.monotonic() - started
        )
        return response
