"""Port interface for the external audio endpoint (audio node)."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING

from jefferson_player.domain.shared.types import ChannelIdField, DiscordSnowflake, VolumePercent

if TYPE_CHECKING:
    from ...domain.music.events import EndpointEvent
    from ...domain.music.value_objects import ConnectionHandle, VoiceSession

EventListener = Callable[["EndpointEvent"], Awaitable[None]]


class AudioEndpoint(ABC):
    """Interface for a remote audio player that streams into a voice session.

    Lifecycle events are delivered asynchronously to every listener added
    with ``add_event_listener``.
    """

    @abstractmethod
    async def connect(
        self,
        guild_id: DiscordSnowflake,
        channel_id: ChannelIdField,
        session: "VoiceSession",
    ) -> "ConnectionHandle":
        """Open a session for *guild_id* and wait until it is ready.

        Raises:
            NoAvailableNodeError: No audio node can take the session.
            ConnectTimeoutError: The node never confirmed the session.
        """
        ...

    @abstractmethod
    async def play(self, handle: "ConnectionHandle", token: str, volume: VolumePercent) -> None:
        """Start playing *token*, replacing whatever is playing.

        Raises:
            PlaybackRejectedError: The endpoint refused the command.
        """
        ...

    @abstractmethod
    async def stop(self, handle: "ConnectionHandle") -> None:
        ...

    @abstractmethod
    async def pause(self, handle: "ConnectionHandle") -> None:
        ...

    @abstractmethod
    async def resume(self, handle: "ConnectionHandle") -> None:
        ...

    @abstractmethod
    async def set_volume(self, handle: "ConnectionHandle", volume: VolumePercent) -> None:
        ...

    @abstractmethod
    async def disconnect(self, handle: "ConnectionHandle") -> None:
        """Destroy the session. Must be safe to call on a dead session."""
        ...

    @abstractmethod
    def add_event_listener(self, listener: EventListener) -> None:
        ...

    async def recover(self, handle: "ConnectionHandle") -> "ConnectionHandle":
        """Move the session to a healthy node before a retry."""
        return handle

    @property
    def supports_live_volume(self) -> bool:
        return True
