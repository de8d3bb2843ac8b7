"""
Unit Tests for LavalinkEndpoint

Tests for:
- client creation and node registration
- node selection, connect, play and player commands
- translation of Lavalink events into endpoint events
- listener fan-out

The lavalink.Client is replaced with a MagicMock; events are spec'd mocks
so isinstance checks against the real lavalink event classes still hold.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import aiohttp
import lavalink
import pytest
from lavalink.events import (
    PlayerUpdateEvent,
    TrackEndEvent,
    TrackExceptionEvent,
    TrackStartEvent,
    TrackStuckEvent,
    WebSocketClosedEvent,
)

from jefferson_player.config.settings import LavalinkNodeSettings, LavalinkSettings
from jefferson_player.domain.music.events import (
    SessionRecovered,
    SocketClosed,
    TrackEnded,
    TrackException,
    TrackStarted,
    TrackStuck,
)
from jefferson_player.domain.music.value_objects import ConnectionHandle, EndReason, VoiceSession
from jefferson_player.domain.shared.exceptions import NoAvailableNodeError, PlaybackRejectedError
from jefferson_player.infrastructure.audio.lavalink_endpoint import ControlledPlayer, LavalinkEndpoint

GUILD_ID = 111111111111111111
CHANNEL_ID = 222222222222222222


def _node(name: str, playing: int, *, available: bool = True) -> MagicMock:
    node = MagicMock()
    node.name = name
    node.available = available
    node.stats.playing_players = playing
    return node


def _event(cls, guild_id=GUILD_ID, token="tok-1", **attrs):
    event = MagicMock(spec=cls)
    event.player = MagicMock(guild_id=guild_id)
    event.track = MagicMock(track=token) if token is not None else None
    for key, value in attrs.items():
        setattr(event, key, value)
    return event


@pytest.fixture
def player():
    player = MagicMock()
    player.is_connected = True
    player.play = AsyncMock()
    player.stop = AsyncMock()
    player.set_pause = AsyncMock()
    player.set_volume = AsyncMock()
    player.change_node = AsyncMock()
    return player


@pytest.fixture
def client(player):
    client = MagicMock()
    client.node_manager.nodes = [_node("busy", 9), _node("quiet", 1), _node("down", 0, available=False)]
    client.player_manager.create.return_value = player
    client.player_manager.get.return_value = player
    client.player_manager.destroy = AsyncMock()
    client.decode_track = AsyncMock(return_value="decoded-track")
    client.close = AsyncMock()
    return client


@pytest.fixture
def lavalink_endpoint(client):
    endpoint = LavalinkEndpoint(LavalinkSettings(), ready_poll_interval=0.001)
    endpoint.attach(client)
    return endpoint


@pytest.fixture
def handle():
    return ConnectionHandle(guild_id=GUILD_ID, channel_id=CHANNEL_ID, node_name="quiet")


# =============================================================================
# Client lifecycle
# =============================================================================


class TestClientLifecycle:
    def test_client_before_attach_raises(self):
        with pytest.raises(RuntimeError, match="not initialised"):
            LavalinkEndpoint(LavalinkSettings()).client

    def test_create_client_registers_every_node(self):
        settings = LavalinkSettings(
            nodes=[
                LavalinkNodeSettings(name="eu", host="eu.example.com", port=443, ssl=True),
                LavalinkNodeSettings(name="us", host="us.example.com"),
            ]
        )
        endpoint = LavalinkEndpoint(settings)

        with patch("lavalink.Client") as client_cls:
            client = endpoint.create_client(987654321)

        client_cls.assert_called_once_with(987654321, player=ControlledPlayer)
        assert client is client_cls.return_value
        assert client.add_node.call_count == 2
        first = client.add_node.call_args_list[0].kwargs
        assert first["host"] == "eu.example.com"
        assert first["ssl"] is True
        assert first["password"] == "youshallnotpass"
        client.add_event_hooks.assert_called_once_with(endpoint)
        assert endpoint.client is client

    @pytest.mark.asyncio
    async def test_close(self, lavalink_endpoint, client):
        await lavalink_endpoint.close()

        client.close.assert_awaited_once()
        with pytest.raises(RuntimeError):
            lavalink_endpoint.client

    def test_live_volume_supported(self, lavalink_endpoint):
        assert lavalink_endpoint.supports_live_volume is True


# =============================================================================
# Connection and player commands
# =============================================================================


class TestConnect:
    def test_available_nodes_sorted_by_load(self, lavalink_endpoint):
        assert [n.name for n in lavalink_endpoint.available_nodes()] == ["quiet", "busy"]

    @pytest.mark.asyncio
    async def test_connect_uses_least_loaded_node(self, lavalink_endpoint, client, player):
        quiet = client.node_manager.nodes[1]
        player.node = quiet

        handle = await lavalink_endpoint.connect(GUILD_ID, CHANNEL_ID, VoiceSession(GUILD_ID, CHANNEL_ID))

        client.player_manager.create.assert_called_once_with(GUILD_ID, node=quiet)
        player.change_node.assert_not_awaited()
        assert handle == ConnectionHandle(GUILD_ID, CHANNEL_ID, "quiet")

    @pytest.mark.asyncio
    async def test_connect_moves_existing_player(self, lavalink_endpoint, client, player):
        player.node = client.node_manager.nodes[0]

        await lavalink_endpoint.connect(GUILD_ID, CHANNEL_ID, VoiceSession(GUILD_ID, CHANNEL_ID))

        player.change_node.assert_awaited_once_with(client.node_manager.nodes[1])

    @pytest.mark.asyncio
    async def test_connect_without_nodes(self, lavalink_endpoint, client):
        client.node_manager.nodes = [_node("down", 0, available=False)]

        with pytest.raises(NoAvailableNodeError):
            await lavalink_endpoint.connect(GUILD_ID, CHANNEL_ID, VoiceSession(GUILD_ID, CHANNEL_ID))

    @pytest.mark.asyncio
    async def test_recover_moves_to_other_node(self, lavalink_endpoint, client, player, handle):
        player.node = client.node_manager.nodes[1]

        recovered = await lavalink_endpoint.recover(handle)

        player.change_node.assert_awaited_once_with(client.node_manager.nodes[0])
        assert recovered.node_name == "busy"

    @pytest.mark.asyncio
    async def test_recover_without_alternative(self, lavalink_endpoint, client, player, handle):
        client.node_manager.nodes = [client.node_manager.nodes[1]]
        player.node = client.node_manager.nodes[0]

        assert await lavalink_endpoint.recover(handle) is handle


class TestPlayerCommands:
    @pytest.mark.asyncio
    async def test_play_decodes_and_plays(self, lavalink_endpoint, client, player, handle):
        await lavalink_endpoint.play(handle, "enc-token", 70)

        client.decode_track.assert_awaited_once_with("enc-token")
        player.play.assert_awaited_once_with("decoded-track", volume=70)

    @pytest.mark.asyncio
    async def test_play_client_error_is_rejected(self, lavalink_endpoint, client, handle):
        client.decode_track.side_effect = lavalink.ClientError("bad token")

        with pytest.raises(PlaybackRejectedError, match="bad token"):
            await lavalink_endpoint.play(handle, "enc-token", 70)

    @pytest.mark.asyncio
    async def test_play_without_player(self, lavalink_endpoint, client, handle):
        client.player_manager.get.return_value = None

        with pytest.raises(PlaybackRejectedError, match="No player"):
            await lavalink_endpoint.play(handle, "enc-token", 70)

    @pytest.mark.asyncio
    async def test_simple_commands(self, lavalink_endpoint, player, handle):
        await lavalink_endpoint.stop(handle)
        await lavalink_endpoint.pause(handle)
        await lavalink_endpoint.resume(handle)
        await lavalink_endpoint.set_volume(handle, 30)

        player.stop.assert_awaited_once()
        assert [c.args for c in player.set_pause.await_args_list] == [(True,), (False,)]
        player.set_volume.assert_awaited_once_with(30)

    @pytest.mark.asyncio
    async def test_pause_request_error_is_rejected(self, lavalink_endpoint, player, handle):
        player.set_pause.side_effect = aiohttp.ClientConnectionError("node went away")

        with pytest.raises(PlaybackRejectedError, match="node went away"):
            await lavalink_endpoint.pause(handle)

    @pytest.mark.asyncio
    async def test_stop_and_volume_client_errors_are_rejected(self, lavalink_endpoint, player, handle):
        player.stop.side_effect = lavalink.ClientError("no session")
        player.set_volume.side_effect = lavalink.ClientError("no session")

        with pytest.raises(PlaybackRejectedError):
            await lavalink_endpoint.stop(handle)
        with pytest.raises(PlaybackRejectedError):
            await lavalink_endpoint.set_volume(handle, 40)

    @pytest.mark.asyncio
    async def test_resume_without_player(self, lavalink_endpoint, client, handle):
        client.player_manager.get.return_value = None

        with pytest.raises(PlaybackRejectedError, match="No player"):
            await lavalink_endpoint.resume(handle)

    @pytest.mark.asyncio
    async def test_disconnect_destroys_player(self, lavalink_endpoint, client, handle):
        await lavalink_endpoint.disconnect(handle)

        client.player_manager.destroy.assert_awaited_once_with(GUILD_ID)

    @pytest.mark.asyncio
    async def test_disconnect_swallows_client_errors(self, lavalink_endpoint, client, handle):
        client.player_manager.destroy.side_effect = lavalink.ClientError("gone")

        await lavalink_endpoint.disconnect(handle)


class TestControlledPlayer:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("event_cls", [TrackStuckEvent, TrackExceptionEvent, TrackEndEvent])
    async def test_events_do_not_start_or_stop_tracks(self, event_cls):
        """The player leaves its current track alone so end events keep their track."""
        player = MagicMock(spec=ControlledPlayer)
        player.play = AsyncMock()
        player.stop = AsyncMock()

        await ControlledPlayer.handle_event(player, _event(event_cls))

        player.play.assert_not_awaited()
        player.stop.assert_not_awaited()

    def test_is_a_default_player(self):
        assert issubclass(ControlledPlayer, lavalink.DefaultPlayer)


# =============================================================================
# Event translation
# =============================================================================


class TestTranslate:
    def test_track_start(self, lavalink_endpoint):
        event = lavalink_endpoint.translate(_event(TrackStartEvent))

        assert event == TrackStarted(guild_id=GUILD_ID, track_token="tok-1", received_at=event.received_at)

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("FINISHED", EndReason.FINISHED),
            ("replaced", EndReason.REPLACED),
            ("stopped", EndReason.STOPPED),
            ("cleanup", EndReason.STOPPED),
            ("something-new", EndReason.STOPPED),
        ],
    )
    def test_track_end_reasons(self, lavalink_endpoint, raw, expected):
        event = lavalink_endpoint.translate(_event(TrackEndEvent, reason=raw))

        assert isinstance(event, TrackEnded)
        assert event.reason is expected

    def test_load_failed_end_is_dropped(self, lavalink_endpoint):
        assert lavalink_endpoint.translate(_event(TrackEndEvent, reason="loadFailed")) is None

    def test_enum_reason_value(self, lavalink_endpoint):
        reason = MagicMock(value="finished")

        event = lavalink_endpoint.translate(_event(TrackEndEvent, reason=reason))

        assert event.reason is EndReason.FINISHED

    def test_track_exception(self, lavalink_endpoint):
        event = lavalink_endpoint.translate(_event(TrackExceptionEvent, message="decoder broke"))

        assert isinstance(event, TrackException)
        assert event.detail == "decoder broke"

    def test_track_stuck(self, lavalink_endpoint):
        event = lavalink_endpoint.translate(_event(TrackStuckEvent, threshold=10000))

        assert isinstance(event, TrackStuck)
        assert event.threshold_ms == 10000

    def test_socket_closed_then_recovered(self, lavalink_endpoint):
        closed = lavalink_endpoint.translate(
            _event(WebSocketClosedEvent, token=None, code=4006, reason="session invalid", by_remote=True)
        )
        idle_update = lavalink_endpoint.translate(_event(PlayerUpdateEvent, token=None, connected=False))
        recovered = lavalink_endpoint.translate(_event(PlayerUpdateEvent, token=None, connected=True))
        repeat = lavalink_endpoint.translate(_event(PlayerUpdateEvent, token=None, connected=True))

        assert closed == SocketClosed(
            guild_id=GUILD_ID,
            code=4006,
            reason="session invalid",
            by_remote=True,
            received_at=closed.received_at,
        )
        assert idle_update is None
        assert isinstance(recovered, SessionRecovered)
        assert repeat is None

    def test_event_without_player_is_ignored(self, lavalink_endpoint):
        event = MagicMock(spec=TrackStartEvent)
        event.player = None

        assert lavalink_endpoint.translate(event) is None

    def test_unmapped_event(self, lavalink_endpoint):
        event = MagicMock()
        event.player.guild_id = GUILD_ID

        assert lavalink_endpoint.translate(event) is None


class TestListenerFanOut:
    @pytest.mark.asyncio
    async def test_every_listener_receives_event(self, lavalink_endpoint):
        first, second = AsyncMock(), AsyncMock()
        lavalink_endpoint.add_event_listener(first)
        lavalink_endpoint.add_event_listener(second)

        await lavalink_endpoint.on_lavalink_event(_event(TrackStartEvent))

        assert isinstance(first.await_args.args[0], TrackStarted)
        second.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_failing_listener_does_not_block_others(self, lavalink_endpoint):
        failing = AsyncMock(side_effect=RuntimeError("boom"))
        healthy = AsyncMock()
        lavalink_endpoint.add_event_listener(failing)
        lavalink_endpoint.add_event_listener(healthy)

        await lavalink_endpoint.on_lavalink_event(_event(TrackStartEvent))

        healthy.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_ignored_events_are_not_forwarded(self, lavalink_endpoint):
        listener = AsyncMock()
        lavalink_endpoint.add_event_listener(listener)

        await lavalink_endpoint.on_lavalink_event(_event(TrackEndEvent, reason="loadFailed"))

        listener.assert_not_awaited()
