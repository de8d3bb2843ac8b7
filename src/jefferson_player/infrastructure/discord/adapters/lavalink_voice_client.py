"""discord.py voice protocol that forwards voice updates to Lavalink."""

from __future__ import annotations

import logging
from typing import Any

import discord
import lavalink

from jefferson_player.domain.shared.messages import ErrorMessages

logger = logging.getLogger(__name__)


class LavalinkVoiceClient(discord.VoiceProtocol):
    """Voice protocol that lets the Lavalink node own the audio connection.

    discord.py still performs the gateway handshake; the resulting
    VOICE_STATE_UPDATE and VOICE_SERVER_UPDATE payloads are handed to the
    bot's ``lavalink`` client instead of opening a local UDP socket.
    """

    def __init__(self, client: discord.Client, channel: discord.abc.Connectable) -> None:
        self.client = client
        self.channel = channel
        self.guild_id: int = channel.guild.id  # type: ignore[attr-defined]
        self.session_id: str | None = None
        self.token: str | None = None
        self.endpoint: str | None = None
        self._destroyed = False

        lavalink_client = getattr(client, "lavalink", None)
        if lavalink_client is None:
            raise RuntimeError(ErrorMessages.ENDPOINT_NOT_READY)
        self.lavalink: lavalink.Client = lavalink_client

    async def connect(
        self,
        *,
        timeout: float,
        reconnect: bool,
        self_deaf: bool = False,
        self_mute: bool = False,
    ) -> None:
        self.lavalink.player_manager.create(self.guild_id)
        await self.channel.guild.change_voice_state(  # type: ignore[attr-defined]
            channel=self.channel, self_deaf=self_deaf, self_mute=self_mute
        )

    async def on_voice_server_update(self, data: dict[str, Any]) -> None:
        if not self._is_guild(data.get("guild_id")):
            return
        self.token = data.get("token")
        self.endpoint = data.get("endpoint")
        await self.lavalink.voice_update_handler({"t": "VOICE_SERVER_UPDATE", "d": data})

    async def on_voice_state_update(self, data: dict[str, Any]) -> None:
        if not self._is_guild(data.get("guild_id")) or not self._is_self(data.get("user_id")):
            return

        channel_id = data.get("channel_id")
        if not channel_id:
            await self._destroy()
            return

        self.session_id = data.get("session_id")
        self.channel = self.client.get_channel(int(channel_id))  # type: ignore[assignment]
        await self.lavalink.voice_update_handler({"t": "VOICE_STATE_UPDATE", "d": data})

    async def disconnect(self, *, force: bool = False) -> None:
        player = self.lavalink.player_manager.get(self.guild_id)
        if not force and (player is None or not player.is_connected):
            return

        await self.channel.guild.change_voice_state(channel=None)  # type: ignore[attr-defined]
        if player is not None:
            player.channel_id = None
        await self._destroy()

    def _is_self(self, user_id: Any) -> bool:
        me = getattr(self.client, "user", None)
        if me is None or user_id is None:
            return False
        return str(user_id) == str(me.id)

    def _is_guild(self, guild_id: Any) -> bool:
        try:
            return guild_id is not None and int(guild_id) == self.guild_id
        except (TypeError, ValueError):
            return False

    async def _destroy(self) -> None:
        self.cleanup()
        if self._destroyed:
            return
        self._destroyed = True
        try:
            await self.lavalink.player_manager.destroy(self.guild_id)
        except lavalink.ClientError as exc:
            logger.debug("Player destroy for guild %s failed: %s", self.guild_id, exc)
