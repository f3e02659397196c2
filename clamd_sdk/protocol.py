"""Framing for the clamd TCP protocol.

See ``man clamd(8)``. Commands use the ``z`` prefix, so they are NUL
terminated and so are the replies. INSTREAM payloads are sent as
``<length:uint32 big-endian><data>`` frames closed by a zero-length frame.
"""

from __future__ import annotations

import struct

COMMAND_PREFIX = b"z"
COMMAND_TERMINATOR = b"\0"

_CHUNK_HEADER = struct.Struct("!L")
CHUNK_HEADER_SIZE = _CHUNK_HEADER.size

PING = "PING"
VERSION = "VERSION"
RELOAD = "RELOAD"
STATS = "STATS"
INSTREAM = "INSTREAM"
SCAN = "SCAN"
MULTISCAN = "MULTISCAN"
CONTSCAN = "CONTSCAN"
ALLMATCHSCAN = "ALLMATCHSCAN"


def format_command(command: str) -> bytes:
    """Encode *command* as a single NUL-terminated clamd frame."""
    return COMMAND_PREFIX + command.encode("utf-8") + COMMAND_TERMINATOR


def chunk_header(length: int) -> bytes:
    """Return the 4-byte network-order length prefix of an INSTREAM chunk."""
    return _CHUNK_HEADER.pack(length)


END_OF_STREAM = chunk_header(0)


def decode_response(raw: bytes) -> str:
    """Decode a reply read to end of stream, dropping the trailing NUL."""
    text = raw.decode("utf-8", errors="replace")
    if text:
        text = text.rstrip("\0")
    return text


def read_instream(data: bytes) -> bytes:
    """Reassemble an INSTREAM payload from its framed form.

    Stops at the first zero-length frame; anything after it is ignored.

    Raises:
        ValueError: If the frames are truncated or no terminator is present.
    """
    payload = bytearray()
    offset = 0
    while True:
        if offset + CHUNK_HEADER_SIZE > len(data):
            raise ValueError("INSTREAM data ended without a zero-length terminator")
        (length,) = _CHUNK_HEADER.unpack_from(data, offset)
        offset += CHUNK_HEADER_SIZE
        if length == 0:
            return bytes(payload)
        if offset + length > len(data):
            raise ValueError(f"INSTREAM chunk of {length} bytes is truncated")
        payload += data[offset : offset + length]
        offset += length
