"""In-memory implementation of the guild queue store."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from jefferson_player.domain.music.repository import QueueStateFactory, QueueStore
from jefferson_player.domain.shared.messages import LogTemplates

if TYPE_CHECKING:
    from jefferson_player.domain.music.entities import QueueState

logger = logging.getLogger(__name__)


class InMemoryQueueStore(QueueStore):
    """Dict-backed registry guarded by a single lightweight lock.

    The lock only covers inserting and removing whole entries; it is never
    held while a guild's own lock is awaited.
    """

    def __init__(self) -> None:
        self._states: dict[int, QueueState] = {}
        self._guard = asyncio.Lock()

    async def get(self, guild_id: int) -> QueueState | None:
        return self._states.get(guild_id)

    async def get_or_create(self, guild_id: int, factory: QueueStateFactory) -> QueueState:
        state = self._states.get(guild_id)
        if state is not None:
            return state

        async with self._guard:
            state = self._states.get(guild_id)
            if state is None:
                state = factory(guild_id)
                self._states[guild_id] = state
                logger.debug(LogTemplates.QUEUE_CREATED, guild_id)
            return state

    async def remove(self, guild_id: int, expected: QueueState | None = None) -> bool:
        async with self._guard:
            state = self._states.get(guild_id)
            if state is None:
                return False
            if expected is not None and state is not expected:
                return False
            del self._states[guild_id]
            logger.debug(LogTemplates.QUEUE_REMOVED, guild_id)
            return True

    async def all(self) -> list[QueueState]:
        return list(self._states.values())

    async def count(self) -> int:
        return len(self._states)
