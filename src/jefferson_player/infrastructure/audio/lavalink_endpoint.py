"""Audio endpoint backed by a Lavalink node cluster.

Players are created on the least-loaded available node. Lavalink's own
events are translated into ``EndpointEvent`` models and fanned out to every
registered listener.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable
from typing import TYPE_CHECKING, Any

import aiohttp
import lavalink
from lavalink.events import (
    PlayerUpdateEvent,
    TrackEndEvent,
    TrackExceptionEvent,
    TrackStartEvent,
    TrackStuckEvent,
    WebSocketClosedEvent,
)

from ...application.interfaces.audio_endpoint import AudioEndpoint, EventListener
from ...domain.music.events import (
    EndpointEvent,
    SessionRecovered,
    SocketClosed,
    TrackEnded,
    TrackException,
    TrackStarted,
    TrackStuck,
)
from ...domain.music.value_objects import ConnectionHandle, EndReason
from ...domain.shared.exceptions import NoAvailableNodeError, PlaybackRejectedError
from ...domain.shared.messages import ErrorMessages, LogTemplates

if TYPE_CHECKING:
    from ...config.settings import LavalinkSettings
    from ...domain.music.value_objects import VoiceSession

logger = logging.getLogger(__name__)

# Lavalink end reasons, lower-cased. ``loadfailed`` is always preceded by a
# TrackExceptionEvent, which is the one the controller acts on.
_END_REASONS: dict[str, EndReason | None] = {
    "finished": EndReason.FINISHED,
    "replaced": EndReason.REPLACED,
    "stopped": EndReason.STOPPED,
    "cleanup": EndReason.STOPPED,
    "loadfailed": None,
    "load_failed": None,
}

_LAVALINK_ERRORS = (lavalink.ClientError, aiohttp.ClientError)


def _node_load(node: Any) -> float:
    stats = getattr(node, "stats", None)
    if not stats:
        return 0.0
    playing = getattr(stats, "playing_players", None)
    if playing is not None:
        return float(playing)
    return float(getattr(stats, "players", 0))


def _track_token(track: Any) -> str | None:
    if track is None:
        return None
    return getattr(track, "track", None) or None


async def _rejected_on_error(command: Awaitable[Any]) -> None:
    try:
        await command
    except _LAVALINK_ERRORS as exc:
        raise PlaybackRejectedError(str(exc) or type(exc).__name__) from exc


class ControlledPlayer(lavalink.DefaultPlayer):
    """Player that never advances on its own.

    ``DefaultPlayer`` starts its next queued track (or stops) after every
    end, stuck or exception event. Track advance belongs to the queue
    controller, so those events are only forwarded.
    """

    async def handle_event(self, event: Any) -> None:
        return None


class LavalinkEndpoint(AudioEndpoint):
    """``AudioEndpoint`` over a ``lavalink.Client``."""

    def __init__(self, settings: LavalinkSettings, *, ready_poll_interval: float = 0.1) -> None:
        self._settings = settings
        self._ready_poll_interval = ready_poll_interval
        self._client: lavalink.Client | None = None
        self._listeners: list[EventListener] = []
        self._closed_guilds: set[int] = set()

    # ── Client lifecycle ───────────────────────────────────────────

    def create_client(self, user_id: int) -> lavalink.Client:
        """Build a client for *user_id* with every configured node registered."""
        client = lavalink.Client(user_id, player=ControlledPlayer)
        for node in self._settings.nodes:
            client.add_node(
                host=node.host,
                port=node.port,
                password=node.password.get_secret_value(),
                region=node.region,
                name=node.name,
                ssl=node.ssl,
            )
            logger.info(LogTemplates.LAVALINK_NODE_ADDED, node.name, node.host, node.port, node.region)
        self.attach(client)
        return client

    def attach(self, client: lavalink.Client) -> None:
        self._client = client
        client.add_event_hooks(self)

    @property
    def client(self) -> lavalink.Client:
        if self._client is None:
            raise RuntimeError(ErrorMessages.ENDPOINT_NOT_READY)
        return self._client

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()
            self._client = None

    def available_nodes(self, *, exclude: Any = None) -> list[Any]:
        """Available nodes, least loaded first."""
        nodes = [
            node
            for node in self.client.node_manager.nodes
            if node.available and node is not exclude
        ]
        nodes.sort(key=_node_load)
        return nodes

    # ── AudioEndpoint ──────────────────────────────────────────────

    async def connect(self, guild_id: int, channel_id: int, session: VoiceSession) -> ConnectionHandle:
        nodes = self.available_nodes()
        if not nodes:
            logger.warning(LogTemplates.LAVALINK_NO_NODES, guild_id)
            raise NoAvailableNodeError()

        node = nodes[0]
        player = self.client.player_manager.create(guild_id, node=node)
        if player.node is not node:
            await player.change_node(node)
        logger.info(LogTemplates.LAVALINK_NODE_PICKED, node.name, guild_id, _node_load(node))

        while not player.is_connected:
            await asyncio.sleep(self._ready_poll_interval)

        self._closed_guilds.discard(guild_id)
        return ConnectionHandle(guild_id=guild_id, channel_id=channel_id, node_name=node.name)

    async def play(self, handle: ConnectionHandle, token: str, volume: int) -> None:
        player = self._player(handle)
        try:
            track = await self.client.decode_track(token)
            await player.play(track, volume=volume)
        except _LAVALINK_ERRORS as exc:
            raise PlaybackRejectedError(str(exc) or type(exc).__name__) from exc

    async def stop(self, handle: ConnectionHandle) -> None:
        await _rejected_on_error(self._player(handle).stop())

    async def pause(self, handle: ConnectionHandle) -> None:
        await _rejected_on_error(self._player(handle).set_pause(True))

    async def resume(self, handle: ConnectionHandle) -> None:
        await _rejected_on_error(self._player(handle).set_pause(False))

    async def set_volume(self, handle: ConnectionHandle, volume: int) -> None:
        await _rejected_on_error(self._player(handle).set_volume(volume))

    async def disconnect(self, handle: ConnectionHandle) -> None:
        self._closed_guilds.discard(handle.guild_id)
        try:
            await self.client.player_manager.destroy(handle.guild_id)
        except _LAVALINK_ERRORS as exc:
            logger.warning(LogTemplates.VOICE_DISCONNECT_FAILED, handle.guild_id, exc)

    async def recover(self, handle: ConnectionHandle) -> ConnectionHandle:
        player = self._player(handle)
        candidates = self.available_nodes(exclude=player.node)
        if not candidates:
            return handle

        target = candidates[0]
        await player.change_node(target)
        logger.info(LogTemplates.LAVALINK_RECOVERED, handle.guild_id, target.name)
        return ConnectionHandle(
            guild_id=handle.guild_id, channel_id=handle.channel_id, node_name=target.name
        )

    def add_event_listener(self, listener: EventListener) -> None:
        self._listeners.append(listener)

    def _player(self, handle: ConnectionHandle) -> Any:
        player = self.client.player_manager.get(handle.guild_id)
        if player is None:
            raise PlaybackRejectedError(ErrorMessages.NO_PLAYER.format(guild_id=handle.guild_id))
        return player

    # ── Events ─────────────────────────────────────────────────────

    @lavalink.listener()
    async def on_lavalink_event(self, event: Any) -> None:
        translated = self.translate(event)
        if translated is None:
            return
        for listener in list(self._listeners):
            try:
                await listener(translated)
            except Exception:
                logger.exception(LogTemplates.EVENT_HANDLER_ERROR, type(translated).__name__, translated.guild_id)

    def translate(self, event: Any) -> EndpointEvent | None:
        """Map a Lavalink event onto an ``EndpointEvent``, or None to ignore it."""
        player = getattr(event, "player", None)
        guild_id = getattr(player, "guild_id", None)
        if guild_id is None:
            return None

        if isinstance(event, TrackStartEvent):
            return TrackStarted(guild_id=guild_id, track_token=_track_token(event.track))

        if isinstance(event, TrackEndEvent):
            raw = str(getattr(event.reason, "value", event.reason)).lower()
            reason = _END_REASONS.get(raw, EndReason.STOPPED)
            if reason is None:
                return None
            return TrackEnded(guild_id=guild_id, track_token=_track_token(event.track), reason=reason)

        if isinstance(event, TrackExceptionEvent):
            detail = getattr(event, "message", None) or str(getattr(event, "cause", "") or "")
            return TrackException(
                guild_id=guild_id, track_token=_track_token(event.track), detail=detail
            )

        if isinstance(event, TrackStuckEvent):
            return TrackStuck(
                guild_id=guild_id,
                track_token=_track_token(event.track),
                threshold_ms=int(getattr(event, "threshold", 0) or 0),
            )

        if isinstance(event, WebSocketClosedEvent):
            self._closed_guilds.add(guild_id)
            return SocketClosed(
                guild_id=guild_id,
                code=int(event.code),
                reason=str(getattr(event, "reason", "") or ""),
                by_remote=bool(event.by_remote),
            )

        if isinstance(event, PlayerUpdateEvent):
            if guild_id in self._closed_guilds and getattr(event, "connected", False):
                self._closed_guilds.discard(guild_id)
                return SessionRecovered(guild_id=guild_id)
            return None

        logger.debug(LogTemplates.EVENT_UNMAPPED, type(event).__name__)
        return None
