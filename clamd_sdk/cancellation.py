"""Cooperative cancellation for the async client."""

from __future__ import annotations

import asyncio


class CancellationToken:
    """Signal shared between a caller and one or more in-flight operations.

    Operations poll :attr:`cancelled` between I/O steps and race every
    connect, read and write against :meth:`wait`. Once cancelled, a token
    stays cancelled.

    Example::

        token = CancellationToken()
        task = asyncio.create_task(client.scan_file("big.iso", cancel_token=token))
        token.cancel()
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        """Raise :class:`asyncio.CancelledError` if :meth:`cancel` was called."""
        if self._event.is_set():
            raise asyncio.CancelledError("operation cancelled by token")

    async def wait(self) -> None:
        await self._event.wait()
