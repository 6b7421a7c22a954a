"""
Asyncio debouncer: bursts of triggers collapse into one call.
"""

import asyncio
from typing import Awaitable, Callable, Optional

from harmony.core.logger import setup_logger

logger = setup_logger(__name__)


class Debouncer:
    """Runs an async callback once, delay seconds after the last trigger."""

    def __init__(
        self,
        callback: Callable[[], Awaitable[None]],
        delay: float,
        suppress: Optional[Callable[[], bool]] = None,
    ):
        """
        Args:
            callback: Coroutine function to run
            delay: Quiet period in seconds
            suppress: Checked on trigger and again before running; True skips the call
        """
        self._callback = callback
        self._delay = delay
        self._suppress = suppress
        self._task: Optional[asyncio.Task] = None

    @property
    def pending(self) -> bool:
        return self._task is not None and not self._task.done()

    def trigger(self) -> None:
        if self._suppress and self._suppress():
            return
        self.cancel()
        self._task = asyncio.create_task(self._run())

    def cancel(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    async def flush(self) -> None:
        """Run a pending call now instead of waiting for the delay."""
        if not self.pending:
            return
        self.cancel()
        await self._invoke()

    async def _run(self) -> None:
        try:
            await asyncio.sleep(self._delay)
        except asyncio.CancelledError:
            return
        await self._invoke()

    async def _invoke(self) -> None:
        if self._suppress and self._suppress():
            logger.debug("Debounced call suppressed")
            return
        try:
            await self._callback()
        except Exception as exc:
            logger.error(f"Debounced call failed: {exc}", exc_info=True)
