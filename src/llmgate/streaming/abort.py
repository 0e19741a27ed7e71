"""Abort signal for cancelling an in-flight completion."""

import asyncio
from typing import Optional


class AbortSignal:
    """Cancellation request shared between a caller and one stream.

    The adapter checks ``is_aborted`` between events and races every pending
    read against ``wait``, so aborting also ends a stream whose provider has
    gone quiet.

    Example:
        signal = AbortSignal()
        task = asyncio.create_task(consume(gateway.stream_completion(..., abort=signal)))
        signal.abort("user pressed Ctrl+C")
    """

    def __init__(self):
        self._event = asyncio.Event()
        self._reason: Optional[str] = None

    def abort(self, reason: str = "cancelled by caller"):
        if not self._event.is_set():
            self._reason = reason
            self._event.set()

    def is_aborted(self) -> bool:
        return self._event.is_set()

    async def wait(self):
        await self._event.wait()

    @property
    def reason(self) -> Optional[str]:
        """Reason given to the first ``abort`` call."""
        return self._reason


__all__ = ["AbortSignal"]
