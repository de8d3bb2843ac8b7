"""
Unit Tests for LavalinkVoiceClient

Tests for:
- construction requires the bot's lavalink client
- voice server / state updates are forwarded to Lavalink for this guild only
- disconnect and destroy behaviour
"""

from unittest.mock import AsyncMock, MagicMock

import lavalink
import pytest

from jefferson_player.infrastructure.discord.adapters.lavalink_voice_client import LavalinkVoiceClient

GUILD_ID = 111111111111111111
CHANNEL_ID = 222222222222222222
BOT_USER_ID = 555555555555555555


@pytest.fixture
def lavalink_client():
    client = MagicMock()
    client.voice_update_handler = AsyncMock()
    client.player_manager.destroy = AsyncMock()
    client.player_manager.get.return_value = MagicMock(is_connected=True)
    return client


@pytest.fixture
def bot(lavalink_client):
    bot = MagicMock()
    bot.lavalink = lavalink_client
    bot.user.id = BOT_USER_ID
    return bot


@pytest.fixture
def channel():
    channel = MagicMock()
    channel.id = CHANNEL_ID
    channel.guild.id = GUILD_ID
    channel.guild.change_voice_state = AsyncMock()
    channel._get_voice_client_key.return_value = (GUILD_ID, "guild_id")
    return channel


@pytest.fixture
def voice_client(bot, channel):
    return LavalinkVoiceClient(bot, channel)


class TestConstruction:
    def test_requires_lavalink_client(self, channel):
        bot = MagicMock()
        bot.lavalink = None

        with pytest.raises(RuntimeError, match="not initialised"):
            LavalinkVoiceClient(bot, channel)

    @pytest.mark.asyncio
    async def test_connect_creates_player(self, voice_client, lavalink_client, channel):
        await voice_client.connect(timeout=10.0, reconnect=True, self_deaf=True)

        lavalink_client.player_manager.create.assert_called_once_with(GUILD_ID)
        channel.guild.change_voice_state.assert_awaited_once_with(
            channel=channel, self_deaf=True, self_mute=False
        )


class TestVoiceUpdates:
    @pytest.mark.asyncio
    async def test_server_update_forwarded(self, voice_client, lavalink_client):
        data = {"guild_id": str(GUILD_ID), "token": "tok", "endpoint": "eu.discord.media"}

        await voice_client.on_voice_server_update(data)

        lavalink_client.voice_update_handler.assert_awaited_once_with(
            {"t": "VOICE_SERVER_UPDATE", "d": data}
        )
        assert voice_client.token == "tok"
        assert voice_client.endpoint == "eu.discord.media"

    @pytest.mark.asyncio
    async def test_server_update_for_other_guild_ignored(self, voice_client, lavalink_client):
        await voice_client.on_voice_server_update({"guild_id": "1", "token": "tok"})

        lavalink_client.voice_update_handler.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_state_update_forwarded(self, voice_client, lavalink_client, bot):
        data = {
            "guild_id": str(GUILD_ID),
            "user_id": str(BOT_USER_ID),
            "channel_id": str(CHANNEL_ID),
            "session_id": "session-1",
        }

        await voice_client.on_voice_state_update(data)

        assert voice_client.session_id == "session-1"
        bot.get_channel.assert_called_once_with(CHANNEL_ID)
        lavalink_client.voice_update_handler.assert_awaited_once_with(
            {"t": "VOICE_STATE_UPDATE", "d": data}
        )

    @pytest.mark.asyncio
    async def test_state_update_for_other_user_ignored(self, voice_client, lavalink_client):
        await voice_client.on_voice_state_update(
            {"guild_id": str(GUILD_ID), "user_id": "42", "channel_id": str(CHANNEL_ID)}
        )

        lavalink_client.voice_update_handler.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_leaving_channel_destroys_player(self, voice_client, lavalink_client):
        await voice_client.on_voice_state_update(
            {"guild_id": str(GUILD_ID), "user_id": str(BOT_USER_ID), "channel_id": None}
        )

        lavalink_client.player_manager.destroy.assert_awaited_once_with(GUILD_ID)
        lavalink_client.voice_update_handler.assert_not_awaited()


class TestDisconnect:
    @pytest.mark.asyncio
    async def test_disconnect_leaves_and_destroys(self, voice_client, lavalink_client, channel):
        player = lavalink_client.player_manager.get.return_value

        await voice_client.disconnect()

        channel.guild.change_voice_state.assert_awaited_once_with(channel=None)
        assert player.channel_id is None
        lavalink_client.player_manager.destroy.assert_awaited_once_with(GUILD_ID)

    @pytest.mark.asyncio
    async def test_not_connected_without_force(self, voice_client, lavalink_client, channel):
        lavalink_client.player_manager.get.return_value = None

        await voice_client.disconnect()

        channel.guild.change_voice_state.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_force_disconnect_without_player(self, voice_client, lavalink_client, channel):
        lavalink_client.player_manager.get.return_value = None

        await voice_client.disconnect(force=True)

        channel.guild.change_voice_state.assert_awaited_once_with(channel=None)
        lavalink_client.player_manager.destroy.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_destroy_only_once(self, voice_client, lavalink_client):
        await voice_client.disconnect(force=True)
        await voice_client.disconnect(force=True)

        lavalink_client.player_manager.destroy.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_destroy_error_is_logged(self, voice_client, lavalink_client):
        lavalink_client.player_manager.destroy.side_effect = lavalink.ClientError("gone")

        await voice_client.disconnect(force=True)
