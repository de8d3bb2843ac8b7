"""
Music Domain Repository Interfaces

Abstract base class defining the contract for the guild queue registry.
Implementations live in the infrastructure layer.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable

from jefferson_player.domain.music.entities import QueueState

QueueStateFactory = Callable[[int], QueueState]


class QueueStore(ABC):
    """Abstract registry mapping guild IDs to their ``QueueState``.

    At most one QueueState exists per guild. Creation and removal of whole
    entries are serialized by the store itself; mutation of an entry is
    serialized by the entry's own lock.
    """

    @abstractmethod
    async def get(self, guild_id: int) -> QueueState | None:
        """Retrieve the queue state for a guild.

        Args:
            guild_id: The Discord guild ID.

        Returns:
            The state if present, None otherwise.
        """
        ...

    @abstractmethod
    async def get_or_create(self, guild_id: int, factory: QueueStateFactory) -> QueueState:
        """Get the existing state or create one with *factory*.

        Two concurrent first calls for the same guild must yield the same
        instance.

        Args:
            guild_id: The Discord guild ID.
            factory: Builds a fresh state for ``guild_id``.

        Returns:
            The existing or newly created state.
        """
        ...

    @abstractmethod
    async def remove(self, guild_id: int, expected: QueueState | None = None) -> bool:
        """Remove the state for a guild.

        Args:
            guild_id: The Discord guild ID.
            expected: When given, only remove if the stored entry is this
                exact instance.

        Returns:
            True if an entry was removed.
        """
        ...

    @abstractmethod
    async def all(self) -> list[QueueState]:
        """Return every stored state."""
        ...

    @abstractmethod
    async def count(self) -> int:
        """Get the number of guilds with a queue state."""
        ...
