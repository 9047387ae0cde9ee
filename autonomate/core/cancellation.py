"""
Cooperative cancellation for scenario runs.
"""

import asyncio
from typing import Optional


class CancellationToken:
    """
    Cancellation flag observed between script lines and before browser calls.

    An in-flight model call or browser operation is not interrupted; the run
    unwinds at the next check.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self.reason: Optional[str] = None

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self, reason: Optional[str] = None) -> None:
        """Request cancellation."""
        if not self._event.is_set():
            self.reason = reason
            self._event.set()

    def raise_if_cancelled(self) -> None:
        """Raise ``asyncio.CancelledError`` when cancellation was requested."""
        if self._event.is_set():
            raise asyncio.CancelledError(self.reason or "Run cancelled")

    async def wait(self) -> None:
        """Block until cancellation is requested."""
        await self._event.wait()


def check_cancelled(token: Optional[CancellationToken]) -> None:
    """Raise if ``token`` is set; no-op without a token."""
    if token is not None:
        token.raise_if_cancelled()
