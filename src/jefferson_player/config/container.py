"""Dependency Injection Container

Manages the application's dependency graph, providing lazy initialization
and lifecycle management for the queue controller, its external ports and
the command/query handlers built on top of it. Components are created
on-demand and cached for reuse throughout the application.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from discord.ext.commands import Bot

    from ..application.commands.enqueue_track import EnqueueQueryHandler, EnqueueTrackHandler
    from ..application.commands.pause_resume import PauseResumeHandler
    from ..application.commands.set_loop import SetLoopHandler
    from ..application.commands.set_volume import SetVolumeHandler
    from ..application.commands.skip_track import SkipTrackHandler
    from ..application.commands.stop_playback import StopPlaybackHandler
    from ..application.interfaces.presentation_sink import PresentationSink
    from ..application.interfaces.track_resolver import TrackResolver
    from ..application.interfaces.voice_gateway import VoiceGateway
    from ..application.queries.get_queue import GetQueueHandler
    from ..application.services.queue_controller import QueueController
    from ..domain.music.repository import QueueStore
    from ..infrastructure.audio.lavalink_endpoint import LavalinkEndpoint
    from .settings import Settings


@dataclass
class Container:
    """Dependency injection container.

    External ports may be injected up front (tests pass fakes); anything left
    as None is created from settings when first accessed.
    """

    settings: Settings
    _bot: Bot | None = None

    # Store and external ports
    _queue_store: QueueStore | None = None
    _audio_endpoint: LavalinkEndpoint | None = None
    _track_resolver: TrackResolver | None = None
    _voice_gateway: VoiceGateway | None = None
    _presentation_sink: PresentationSink | None = None

    # Core
    _queue_controller: QueueController | None = None

    # Command handlers
    _enqueue_track_handler: EnqueueTrackHandler | None = None
    _enqueue_query_handler: EnqueueQueryHandler | None = None
    _skip_track_handler: SkipTrackHandler | None = None
    _stop_playback_handler: StopPlaybackHandler | None = None
    _set_volume_handler: SetVolumeHandler | None = None
    _set_loop_handler: SetLoopHandler | None = None
    _pause_resume_handler: PauseResumeHandler | None = None

    # Query handlers
    _get_queue_handler: GetQueueHandler | None = None

    def set_bot(self, bot: Bot) -> None:
        """Set the Discord bot instance."""
        self._bot = bot

    @property
    def bot(self) -> Bot:
        """Get the Discord bot instance."""
        if self._bot is None:
            raise RuntimeError("Bot not initialized. Call set_bot() first.")
        return self._bot

    # === Store ===

    @property
    def queue_store(self) -> QueueStore:
        if self._queue_store is None:
            from ..infrastructure.persistence.memory_store import InMemoryQueueStore

            self._queue_store = InMemoryQueueStore()
        return self._queue_store

    # === External Ports ===

    @property
    def audio_endpoint(self) -> LavalinkEndpoint:
        """Get the Lavalink audio endpoint."""
        if self._audio_endpoint is None:
            from ..infrastructure.audio.lavalink_endpoint import LavalinkEndpoint

            self._audio_endpoint = LavalinkEndpoint(self.settings.lavalink)
        return self._audio_endpoint

    @property
    def track_resolver(self) -> TrackResolver:
        if self._track_resolver is None:
            from ..infrastructure.audio.lavalink_resolver import LavalinkTrackResolver

            self._track_resolver = LavalinkTrackResolver(self.audio_endpoint, self.settings.lavalink)
        return self._track_resolver

    @property
    def voice_gateway(self) -> VoiceGateway:
        if self._voice_gateway is None:
            from ..infrastructure.discord.adapters.voice_gateway import DiscordVoiceGateway

            self._voice_gateway = DiscordVoiceGateway(
                self.bot, self_deaf=self.settings.discord.self_deaf
            )
        return self._voice_gateway

    @property
    def presentation_sink(self) -> PresentationSink:
        if self._presentation_sink is None:
            from ..infrastructure.discord.adapters.presentation_sink import (
                DiscordPresentationSink,
            )

            self._presentation_sink = DiscordPresentationSink(self.bot, self.settings.discord)
        return self._presentation_sink

    # === Core ===

    @property
    def queue_controller(self) -> QueueController:
        """Get the per-guild queue controller."""
        if self._queue_controller is None:
            from ..application.services.queue_controller import QueueController

            self._queue_controller = QueueController(
                store=self.queue_store,
                endpoint=self.audio_endpoint,
                voice_gateway=self.voice_gateway,
                presentation=self.presentation_sink,
                music=self.settings.music,
                timeouts=self.settings.timeouts,
                retry=self.settings.retry,
            )
        return self._queue_controller

    # === Command Handlers ===

    @property
    def enqueue_track_handler(self) -> EnqueueTrackHandler:
        if self._enqueue_track_handler is None:
            from ..application.commands.enqueue_track import EnqueueTrackHandler

            self._enqueue_track_handler = EnqueueTrackHandler(
                controller=self.queue_controller,
                resolver=self.track_resolver,
            )
        return self._enqueue_track_handler

    @property
    def enqueue_query_handler(self) -> EnqueueQueryHandler:
        if self._enqueue_query_handler is None:
            from ..application.commands.enqueue_track import EnqueueQueryHandler

            self._enqueue_query_handler = EnqueueQueryHandler(
                resolver=self.track_resolver,
                track_handler=self.enqueue_track_handler,
                enqueue_playlists=self.settings.music.enqueue_playlists,
            )
        return self._enqueue_query_handler

    @property
    def skip_track_handler(self) -> SkipTrackHandler:
        if self._skip_track_handler is None:
            from ..application.commands.skip_track import SkipTrackHandler

            self._skip_track_handler = SkipTrackHandler(self.queue_controller)
        return self._skip_track_handler

    @property
    def stop_playback_handler(self) -> StopPlaybackHandler:
        if self._stop_playback_handler is None:
            from ..application.commands.stop_playback import StopPlaybackHandler

            self._stop_playback_handler = StopPlaybackHandler(controller=self.queue_controller)
        return self._stop_playback_handler

    @property
    def set_volume_handler(self) -> SetVolumeHandler:
        if self._set_volume_handler is None:
            from ..application.commands.set_volume import SetVolumeHandler

            self._set_volume_handler = SetVolumeHandler(controller=self.queue_controller)
        return self._set_volume_handler

    @property
    def set_loop_handler(self) -> SetLoopHandler:
        if self._set_loop_handler is None:
            from ..application.commands.set_loop import SetLoopHandler

            self._set_loop_handler = SetLoopHandler(controller=self.queue_controller)
        return self._set_loop_handler

    @property
    def pause_resume_handler(self) -> PauseResumeHandler:
        if self._pause_resume_handler is None:
            from ..application.commands.pause_resume import PauseResumeHandler

            self._pause_resume_handler = PauseResumeHandler(controller=self.queue_controller)
        return self._pause_resume_handler

    # === Query Handlers ===

    @property
    def get_queue_handler(self) -> GetQueueHandler:
        if self._get_queue_handler is None:
            from ..application.queries.get_queue import GetQueueHandler

            self._get_queue_handler = GetQueueHandler(controller=self.queue_controller)
        return self._get_queue_handler

    # === Lifecycle ===

    async def initialize(self) -> None:
        """Connect the Lavalink client and route its events into the controller."""
        user = self.bot.user
        if user is None:
            raise RuntimeError("Bot must be logged in before the container is initialized.")

        self.audio_endpoint.create_client(user.id)
        self.audio_endpoint.add_event_listener(self.queue_controller.handle_event)

    async def shutdown(self) -> None:
        """Tear down every guild and close the Lavalink client."""
        if self._queue_controller is not None:
            try:
                await self._queue_controller.shutdown()
            except Exception as exc:
                logger.warning("Failed tearing down guild queues: %r", exc)

        if self._audio_endpoint is not None:
            await self._audio_endpoint.close()


def create_container(settings: Settings) -> Container:
    """Create a new dependency injection container."""
    return Container(settings)
