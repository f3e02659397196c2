"""One TCP connection per clamd command.

:class:`AsyncClamdSession` and :class:`ClamdSession` own their socket for
the lifetime of a ``with`` block and close it on every exit path. clamd
closes its end after answering, so a reply is read until end of stream.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import socket
from collections.abc import Awaitable
from typing import TypeVar

from clamd_sdk.cancellation import CancellationToken
from clamd_sdk.exceptions import ClamdConnectionError, ClamdTimeoutError

logger = logging.getLogger(__name__)

T = TypeVar("T")

_READ_SIZE = 4096


class AsyncClamdSession:
    """Asyncio connection to clamd.

    Args:
        host: Daemon host.
        port: Daemon TCP port.
        connect_timeout_ms: Bound on establishing the connection.
        read_write_timeout_ms: Bound on each read, write and flush.
        cancel_token: Optional token raced against every await.

    Example::

        async with AsyncClamdSession("localhost", 3310, 30_000, 300_000) as session:
            await session.write(b"zPING\\0")
            await session.flush()
            reply = await session.read_to_end()
    """

    def __init__(
        self,
        host: str,
        port: int,
        connect_timeout_ms: int,
        read_write_timeout_ms: int,
        cancel_token: CancellationToken | None = None,
    ) -> None:
        self.host = host
        self.port = port
        self.connect_timeout_ms = connect_timeout_ms
        self.read_write_timeout_ms = read_write_timeout_ms
        self.cancel_token = cancel_token
        self._reader: asyncio.StreamReader | None = None
        self._writer: asyncio.StreamWriter | None = None

    async def __aenter__(self) -> AsyncClamdSession:
        await self.connect()
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.close()

    @property
    def target(self) -> str:
        return f"{self.host}:{self.port}"

    async def connect(self) -> None:
        """Open the connection, racing it against the connect timeout."""
        logger.debug("Connecting to clamd at %s", self.target)
        self._reader, self._writer = await self._bounded(
            asyncio.open_connection(self.host, self.port),
            self.connect_timeout_ms,
            "connect",
        )

    async def write(self, data: bytes | bytearray | memoryview) -> None:
        """Queue *data* and wait until the transport buffer drains."""
        writer = self._require_writer()
        writer.write(data)
        await self._bounded(writer.drain(), self.read_write_timeout_ms, "write")

    async def flush(self) -> None:
        writer = self._require_writer()
        await self._bounded(writer.drain(), self.read_write_timeout_ms, "write")

    async def read_to_end(self) -> bytes:
        """Read until the daemon closes its side of the connection."""
        if self._reader is None:
            raise RuntimeError("session is not connected")
        received = bytearray()
        while True:
            data = await self._bounded(
                self._reader.read(_READ_SIZE), self.read_write_timeout_ms, "read"
            )
            if not data:
                return bytes(received)
            received.extend(data)

    async def close(self) -> None:
        writer, self._writer, self._reader = self._writer, None, None
        if writer is None:
            return
        writer.close()
        with contextlib.suppress(OSError):
            await writer.wait_closed()

    def _require_writer(self) -> asyncio.StreamWriter:
        if self._writer is None:
            raise RuntimeError("session is not connected")
        return self._writer

    async def _bounded(self, aw: Awaitable[T], timeout_ms: int, operation: str) -> T:
        """Await *aw* unless the timeout elapses or the token fires first."""
        token = self.cancel_token
        if token is not None and token.cancelled:
            if asyncio.iscoroutine(aw):
                aw.close()
            token.raise_if_cancelled()

        task = asyncio.ensure_future(aw)
        waiters: set[asyncio.Future] = {task}
        cancelled = None
        if token is not None:
            cancelled = asyncio.ensure_future(token.wait())
            waiters.add(cancelled)

        try:
            done, _ = await asyncio.wait(
                waiters, timeout=timeout_ms / 1000, return_when=asyncio.FIRST_COMPLETED
            )
        finally:
            if cancelled is not None:
                cancelled.cancel()
            if not task.done():
                task.cancel()

        if task in done:
            try:
                return task.result()
            except TimeoutError as exc:
                raise ClamdTimeoutError(operation, timeout_ms, self.target) from exc
            except OSError as exc:
                raise ClamdConnectionError(self.host, self.port, exc) from exc
        if cancelled is not None and cancelled in done:
            raise asyncio.CancelledError(f"clamd {operation} cancelled by token")
        raise ClamdTimeoutError(operation, timeout_ms, self.target)


class ClamdSession:
    """Blocking counterpart of :class:`AsyncClamdSession`."""

    def __init__(
        self,
        host: str,
        port: int,
        connect_timeout_ms: int,
        read_write_timeout_ms: int,
    ) -> None:
        self.host = host
        self.port = port
        self.connect_timeout_ms = connect_timeout_ms
        self.read_write_timeout_ms = read_write_timeout_ms
        self._sock: socket.socket | None = None

    def __enter__(self) -> ClamdSession:
        self.connect()
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    @property
    def target(self) -> str:
        return f"{self.host}:{self.port}"

    def connect(self) -> None:
        """Open the TCP connection.

        ``connect_timeout_ms`` bounds each connection attempt. Name
        resolution is not covered by it, and a host resolving to several
        addresses is tried address by address, each with the full timeout.
        """
        logger.debug("Connecting to clamd at %s", self.target)
        try:
            sock = socket.create_connection(
                (self.host, self.port), timeout=self.connect_timeout_ms / 1000
            )
        except socket.timeout as exc:
            raise ClamdTimeoutError("connect", self.connect_timeout_ms, self.target) from exc
        except OSError as exc:
            raise ClamdConnectionError(self.host, self.port, exc) from exc
        sock.settimeout(self.read_write_timeout_ms / 1000)
        self._sock = sock

    def write(self, data: bytes | bytearray | memoryview) -> None:
        sock = self._require_sock()
        try:
            sock.sendall(data)
        except socket.timeout as exc:
            raise ClamdTimeoutError("write", self.read_write_timeout_ms, self.target) from exc
        except OSError as exc:
            raise ClamdConnectionError(self.host, self.port, exc) from exc

    def flush(self) -> None:
        # sendall() returns only once everything is handed to the kernel
        self._require_sock()

    def read_to_end(self) -> bytes:
        sock = self._require_sock()
        received = bytearray()
        try:
            data = sock.recv(_READ_SIZE)
            while data:
                received.extend(data)
                data = sock.recv(_READ_SIZE)
        except socket.timeout as exc:
            raise ClamdTimeoutError("read", self.read_write_timeout_ms, self.target) from exc
        except OSError as exc:
            raise ClamdConnectionError(self.host, self.port, exc) from exc
        return bytes(received)

    def close(self) -> None:
        sock, self._sock = self._sock, None
        if sock is not None:
            sock.close()

    def _require_sock(self) -> socket.socket:
        if self._sock is None:
            raise RuntimeError("session is not connected")
        return self._sock
