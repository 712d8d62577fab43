"""
Host readiness signal.

The synchronizer waits on this before touching the transport, mirroring
a host environment that finishes its own startup first.
"""

import asyncio
from typing import Optional

from ledger_sync.core import get_logger

logger = get_logger(__name__)


class ReadySignal:
    """
    One-shot readiness notification.

    Example:
        >>> ready = ReadySignal()
        >>> synchronizer = LedgerStateSynchronizer(connection, resolver, ready=ready)
        >>> synchronizer.start()
        >>> ready.fire()
    """

    def __init__(self, fired: bool = False):
        self._event: Optional[asyncio.Event] = None  # Lazy init inside the event loop
        self._fired = fired

    @classmethod
    def already_fired(cls) -> "ReadySignal":
        return cls(fired=True)

    @property
    def is_fired(self) -> bool:
        return self._fired

    def _get_event(self) -> asyncio.Event:
        if self._event is None:
            self._event = asyncio.Event()
            if self._fired:
                self._event.set()
        return self._event

    def fire(self) -> None:
        """Mark the host ready. Only the first call has an effect."""
        if self._fired:
            logger.debug("Ready signal already fired")
            return
        self._fired = True
        if self._event is not None:
            self._event.set()

    async def wait(self) -> None:
        """Suspend until the signal fires."""
        if self._fired:
            return
        await self._get_event().wait()
