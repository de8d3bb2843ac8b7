"""Port interface for the chat platform's voice handshake."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from jefferson_player.domain.shared.types import ChannelIdField, DiscordSnowflake

if TYPE_CHECKING:
    from ...domain.music.value_objects import VoiceSession


class VoiceGateway(ABC):
    """Interface for joining and leaving voice channels."""

    @abstractmethod
    async def join(self, guild_id: DiscordSnowflake, channel_id: ChannelIdField) -> "VoiceSession":
        """Join *channel_id* (moving if already elsewhere) and return the session.

        Raises:
            PermissionDeniedError: The bot may not connect or speak there.
            ConnectionFailedError: The guild or channel is unknown.
        """
        ...

    @abstractmethod
    async def leave(self, guild_id: DiscordSnowflake) -> None:
        """Leave voice in *guild_id*. No-op when not connected."""
        ...
