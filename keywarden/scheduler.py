"""One-shot rotation timer running on the asyncio event loop."""

from __future__ import annotations

import asyncio
import logging
from datetime import timedelta
from typing import Awaitable, Callable, Optional

logger = logging.getLogger(__name__)


class RotationScheduler:
    """Arms a single pending callback at a time.

    Arming replaces any pending timer. Once closed, the scheduler ignores
    further ``arm`` calls, which keeps a rotation finishing after shutdown
    from scheduling another one.
    """

    def __init__(self, callback: Callable[[], Awaitable[None]]) -> None:
        self._callback = callback
        self._handle: Optional[asyncio.TimerHandle] = None
        self._task: Optional[asyncio.Task] = None
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def arm(self, delay: timedelta) -> None:
        if self._closed:
            logger.debug("Scheduler closed, not re-arming")
            return
        self.cancel()
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(delay.total_seconds(), self._fire)
        logger.debug(f"Next rotation in {delay}")

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def close(self) -> None:
        """Cancel the pending timer and refuse to arm again.

        A callback already running is left to finish.
        """
        self._closed = True
        self.cancel()

    async def wait_idle(self) -> None:
        """Wait until a fired callback, if any, has completed."""
        task = self._task
        if task is not None and not task.done():
            await asyncio.shield(task)

    def _fire(self) -> None:
        self._handle = None
        self._task = asyncio.ensure_future(self._callback())
