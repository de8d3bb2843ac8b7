"""Cancellable one-shot timers used for idle-leave and socket-grace windows."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)


class GuildTimer:
    """Runs ``callback`` once after ``delay`` seconds unless cancelled first."""

    def __init__(
        self,
        delay: float,
        callback: Callable[[], Awaitable[None]],
        *,
        name: str,
    ) -> None:
        self.delay = delay
        self.name = name
        self._callback = callback
        self._task: asyncio.Task[None] | None = None

    def start(self) -> GuildTimer:
        if self._task is None:
            self._task = asyncio.create_task(self._run(), name=self.name)
        return self

    @property
    def active(self) -> bool:
        return self._task is not None and not self._task.done()

    def cancel(self) -> None:
        """Cancel the pending callback.

        A timer cancelling itself from inside its own callback (for example
        during the teardown it triggered) is left to finish.
        """
        if self._task is None or self._task.done():
            return
        if self._task is asyncio.current_task():
            return
        self._task.cancel()

    async def _run(self) -> None:
        await asyncio.sleep(self.delay)
        try:
            await self._callback()
        except Exception:
            logger.exception("Timer %s callback failed", self.name)


def start_timer(delay: float, callback: Callable[[], Awaitable[None]], *, name: str) -> GuildTimer:
    return GuildTimer(delay, callback, name=name).start()


def cancel_timer(timer: GuildTimer | None) -> None:
    if timer is not None:
        timer.cancel()
