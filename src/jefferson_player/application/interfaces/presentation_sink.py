"""Port interface for the user-facing "now playing" view."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from jefferson_player.domain.shared.types import ChannelIdField, DiscordSnowflake

if TYPE_CHECKING:
    from ...domain.music.entities import PlaybackSnapshot

PresentationHandle = Any


class PresentationSink(ABC):
    """Interface for rendering playback snapshots back to users."""

    @abstractmethod
    async def show(
        self,
        guild_id: DiscordSnowflake,
        snapshot: "PlaybackSnapshot",
        *,
        channel_id: ChannelIdField | None = None,
    ) -> PresentationHandle:
        """Render a new view and return a handle for later updates."""
        ...

    @abstractmethod
    async def update(self, handle: PresentationHandle, snapshot: "PlaybackSnapshot") -> PresentationHandle:
        """Re-render an existing view; returns the (possibly new) handle."""
        ...

    @abstractmethod
    async def clear(self, handle: PresentationHandle) -> None:
        """Remove a view so it is not left stale."""
        ...

    @abstractmethod
    async def notify_error(
        self,
        guild_id: DiscordSnowflake,
        message: str,
        *,
        channel_id: ChannelIdField | None = None,
    ) -> None:
        """Report an asynchronous playback failure."""
        ...
