"""Shared test fixtures, including an in-process fake clamd daemon."""

from __future__ import annotations

import asyncio
import socket
import socketserver
import struct
import threading

import pytest

from clamd_sdk.protocol import read_instream

EICAR = b"X5O!P%@AP[4\\PZX54(P^)7CC)7}$EICAR-STANDARD-ANTIVIRUS-TEST-FILE!$H+H*"

SAMPLE_STATS = (
    "POOLS: 1\n"
    "\n"
    "STATE: VALID PRIMARY\n"
    "THREADS: live 1  idle 0 max 10 idle-timeout 30\n"
    "QUEUE: 0 items\n"
    "\tSTATS 0.000041 \n"
    "\n"
    "MEMSTATS: heap N/A mmap N/A used N/A free N/A releasable N/A pools 1 "
    "pools_used 1306.837M pools_total 1306.882M\n"
    "END"
)


class FakeClamd:
    """Stand-in for clamd speaking the NUL-terminated TCP protocol.

    Records every command and every completed INSTREAM payload. Replies
    are keyed by command verb and can be overridden per test through
    :attr:`replies`. With :attr:`hang` set the daemon never answers and
    waits for the client to hang up.
    """

    def __init__(self) -> None:
        self.replies: dict[str, str] = {
            "PING": "PONG",
            "VERSION": "ClamAV 1.4.2/27500/Sat Oct 17 09:00:00 2026",
            "STATS": SAMPLE_STATS,
            "RELOAD": "RELOADING",
        }
        self.commands: list[str] = []
        self.payloads: list[bytes] = []
        self.aborted_uploads = 0
        self.hang = False
        self.host = "127.0.0.1"
        self.port = 0
        self._server: asyncio.AbstractServer | None = None
        self._writers: set[asyncio.StreamWriter] = set()

    def reply_for(self, command: str, payload: bytes | None = None) -> bytes:
        verb, _, argument = command.partition(" ")
        if verb in self.replies:
            text = self.replies[verb]
        elif verb == "INSTREAM":
            text = "stream: Win.Test.EICAR_HDB-1 FOUND" if payload and EICAR in payload else "stream: OK"
        elif verb in ("SCAN", "MULTISCAN", "CONTSCAN", "ALLMATCHSCAN"):
            text = f"{argument}: OK"
        else:
            text = "UNKNOWN COMMAND"
        return text.encode() + b"\0"

    # -- asyncio flavour ------------------------------------------------

    async def start(self) -> None:
        self._server = await asyncio.start_server(self._handle, self.host, 0)
        self.port = self._server.sockets[0].getsockname()[1]

    async def stop(self) -> None:
        for writer in list(self._writers):
            writer.close()
        if self._server is not None:
            self._server.close()
            await self._server.wait_closed()

    async def _handle(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        self._writers.add(writer)
        try:
            assert await reader.readexactly(1) == b"z"
            command = (await reader.readuntil(b"\0"))[:-1].decode()
            self.commands.append(command)

            payload = None
            if command == "INSTREAM":
                framed = bytearray()
                while True:
                    header = await reader.readexactly(4)
                    framed += header
                    (length,) = struct.unpack("!L", header)
                    if length == 0:
                        break
                    framed += await reader.readexactly(length)
                payload = read_instream(bytes(framed))
                self.payloads.append(payload)

            if self.hang:
                await reader.read()
                return
            writer.write(self.reply_for(command, payload))
            await writer.drain()
        except (asyncio.IncompleteReadError, ConnectionError):
            self.aborted_uploads += 1
        finally:
            self._writers.discard(writer)
            writer.close()

    # -- blocking flavour -------------------------------------------------

    def serve_sync(self, rfile, wfile) -> None:
        assert rfile.read(1) == b"z"
        command = bytearray()
        while (byte := rfile.read(1)) not in (b"\0", b""):
            command += byte
        command_text = command.decode()
        self.commands.append(command_text)

        payload = None
        if command_text == "INSTREAM":
            framed = bytearray()
            while True:
                header = rfile.read(4)
                if len(header) < 4:
                    self.aborted_uploads += 1
                    return
                framed += header
                (length,) = struct.unpack("!L", header)
                if length == 0:
                    break
                data = rfile.read(length)
                if len(data) < length:
                    self.aborted_uploads += 1
                    return
                framed += data
            payload = read_instream(bytes(framed))
            self.payloads.append(payload)

        if self.hang:
            rfile.read()
            return
        wfile.write(self.reply_for(command_text, payload))
        wfile.flush()


class _SyncHandler(socketserver.StreamRequestHandler):
    def handle(self) -> None:
        try:
            self.server.fake.serve_sync(self.rfile, self.wfile)  # type: ignore[attr-defined]
        except ConnectionError:
            self.server.fake.aborted_uploads += 1  # type: ignore[attr-defined]


@pytest.fixture()
def sample_bytes() -> bytes:
    return b"Hello, ClamAV!"


@pytest.fixture()
def eicar_bytes() -> bytes:
    """EICAR anti-malware test string (safe; every AV recognises it)."""
    return EICAR


@pytest.fixture()
async def fake_clamd():
    daemon = FakeClamd()
    await daemon.start()
    yield daemon
    await daemon.stop()


@pytest.fixture()
def threaded_clamd():
    daemon = FakeClamd()
    server = socketserver.ThreadingTCPServer((daemon.host, 0), _SyncHandler)
    server.daemon_threads = True
    server.fake = daemon  # type: ignore[attr-defined]
    daemon.port = server.server_address[1]
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    yield daemon
    server.shutdown()
    server.server_close()


@pytest.fixture()
def unused_port() -> int:
    """A local port with nothing listening on it."""
    with socket.socket() as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


@pytest.fixture()
def sample_stats() -> str:
    """STATS reply as sent by clamd 1.4."""
    return SAMPLE_STATS
