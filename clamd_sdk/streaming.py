"""INSTREAM upload: send a byte source to clamd in length-prefixed chunks."""

from __future__ import annotations

import inspect
import logging
from typing import Any

from clamd_sdk.cancellation import CancellationToken
from clamd_sdk.exceptions import ClamdInvalidArgumentError, ClamdStreamSizeExceededError
from clamd_sdk.protocol import END_OF_STREAM, chunk_header
from clamd_sdk.transport import AsyncClamdSession, ClamdSession

logger = logging.getLogger(__name__)


async def send_instream_async(
    source: Any,
    session: AsyncClamdSession,
    chunk_size: int,
    max_stream_size: int,
    cancel_token: CancellationToken | None = None,
) -> int:
    """Stream *source* onto *session* using INSTREAM framing.

    Args:
        source: Object with a ``read(n)`` method. ``read`` may be a coroutine
            function, as on async file objects.
        session: Connected session the ``INSTREAM`` command was sent on.
        chunk_size: Largest chunk read from *source* and sent in one frame.
        max_stream_size: Abort once more than this many bytes were read.
        cancel_token: Polled before every chunk.

    Returns:
        Number of payload bytes sent.

    Raises:
        ClamdStreamSizeExceededError: If *source* yields more than
            *max_stream_size* bytes. The terminator is not sent.
        ClamdInvalidArgumentError: If *chunk_size* or *max_stream_size* is
            not a positive integer. Nothing is sent.
    """
    _check_limits(chunk_size, max_stream_size)
    total = 0
    with memoryview(bytearray(chunk_size)) as buf:
        while True:
            if cancel_token is not None:
                cancel_token.raise_if_cancelled()

            read = await _read_async(source, buf)
            if not read:
                break
            total += read
            if total > max_stream_size:
                logger.warning("Aborting INSTREAM upload after %d bytes (limit %d)", total, max_stream_size)
                raise ClamdStreamSizeExceededError(max_stream_size)

            # written data must not alias buf, the transport may keep a reference
            await session.write(chunk_header(read) + buf[:read])

    await session.write(END_OF_STREAM)
    logger.debug("Sent %d bytes via INSTREAM", total)
    return total


def send_instream(
    source: Any,
    session: ClamdSession,
    chunk_size: int,
    max_stream_size: int,
) -> int:
    """Blocking counterpart of :func:`send_instream_async`."""
    _check_limits(chunk_size, max_stream_size)
    total = 0
    with memoryview(bytearray(chunk_size)) as buf:
        while True:
            read = _read_sync(source, buf)
            if not read:
                break
            total += read
            if total > max_stream_size:
                logger.warning("Aborting INSTREAM upload after %d bytes (limit %d)", total, max_stream_size)
                raise ClamdStreamSizeExceededError(max_stream_size)

            session.write(chunk_header(read) + buf[:read])

    session.write(END_OF_STREAM)
    logger.debug("Sent %d bytes via INSTREAM", total)
    return total


def _check_limits(chunk_size: int, max_stream_size: int) -> None:
    # a zero-sized buffer would read nothing and upload an empty stream
    for name, value in (("chunk_size", chunk_size), ("max_stream_size", max_stream_size)):
        if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
            raise ClamdInvalidArgumentError(name, f"{name} must be an integer greater than 0, got {value!r}.")


async def _read_async(source: Any, buf: memoryview) -> int:
    data = source.read(len(buf))
    if inspect.isawaitable(data):
        data = await data
    return _copy_into(data, buf)


def _read_sync(source: Any, buf: memoryview) -> int:
    readinto = getattr(source, "readinto", None)
    if readinto is not None:
        return readinto(buf) or 0
    return _copy_into(source.read(len(buf)), buf)


def _copy_into(data: bytes | None, buf: memoryview) -> int:
    if not data:
        return 0
    size = len(data)
    buf[:size] = data
    return size
