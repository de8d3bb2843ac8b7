"""Discord voice gateway: joins, moves and leaves voice channels for Lavalink."""

from __future__ import annotations

import logging

import discord

from jefferson_player.application.interfaces.voice_gateway import VoiceGateway
from jefferson_player.domain.music.value_objects import VoiceSession
from jefferson_player.domain.shared.exceptions import (
    ConnectionFailedError,
    ConnectTimeoutError,
    PermissionDeniedError,
)
from jefferson_player.domain.shared.messages import LogTemplates

from .lavalink_voice_client import LavalinkVoiceClient

logger = logging.getLogger(__name__)


class DiscordVoiceGateway(VoiceGateway):
    def __init__(self, bot: discord.Client, *, self_deaf: bool = True) -> None:
        self._bot = bot
        self._self_deaf = self_deaf

    def _get_guild(self, guild_id: int) -> discord.Guild:
        guild = self._bot.get_guild(guild_id)
        if guild is None:
            logger.warning(LogTemplates.VOICE_GUILD_NOT_FOUND, guild_id)
            raise ConnectionFailedError(f"Guild {guild_id} is not available")
        return guild

    def _get_channel(
        self, guild: discord.Guild, channel_id: int
    ) -> discord.VoiceChannel | discord.StageChannel:
        channel = guild.get_channel(channel_id)
        if not isinstance(channel, discord.VoiceChannel | discord.StageChannel):
            logger.warning(LogTemplates.VOICE_CHANNEL_NOT_VOICE, channel_id, guild.id)
            raise ConnectionFailedError(f"Channel {channel_id} is not a voice channel")
        return channel

    def _check_permissions(
        self, guild: discord.Guild, channel: discord.VoiceChannel | discord.StageChannel
    ) -> None:
        permissions = channel.permissions_for(guild.me)
        if not (permissions.connect and permissions.speak):
            logger.warning(LogTemplates.VOICE_NO_PERMISSION, channel.id)
            raise PermissionDeniedError()

    async def join(self, guild_id: int, channel_id: int) -> VoiceSession:
        guild = self._get_guild(guild_id)
        channel = self._get_channel(guild, channel_id)
        self._check_permissions(guild, channel)

        voice_client = guild.voice_client
        try:
            if isinstance(voice_client, LavalinkVoiceClient):
                if voice_client.channel is None or voice_client.channel.id != channel_id:
                    await guild.change_voice_state(channel=channel, self_deaf=self._self_deaf)
                    voice_client.channel = channel
            else:
                voice_client = await channel.connect(
                    cls=LavalinkVoiceClient, self_deaf=self._self_deaf
                )
        except discord.Forbidden as exc:
            logger.warning(LogTemplates.VOICE_NO_PERMISSION, channel_id)
            raise PermissionDeniedError() from exc
        except TimeoutError as exc:
            raise ConnectTimeoutError() from exc
        except discord.ClientException as exc:
            raise ConnectionFailedError(str(exc)) from exc

        return VoiceSession(
            guild_id=guild_id,
            channel_id=channel_id,
            session_id=getattr(voice_client, "session_id", None),
            token=getattr(voice_client, "token", None),
            endpoint=getattr(voice_client, "endpoint", None),
        )

    async def leave(self, guild_id: int) -> None:
        guild = self._bot.get_guild(guild_id)
        if guild is None or guild.voice_client is None:
            return
        await guild.voice_client.disconnect(force=True)
        logger.info(LogTemplates.VOICE_LEFT, guild_id)
