"""Queue Controller - per-guild playback state machine.

Owns every guild's ``QueueState`` through the injected store, drives the
audio endpoint and consumes its lifecycle events through ``handle_event``.

Locking rules:

- public coroutines acquire ``state.lock``; ``_``-prefixed helpers that take
  a ``state`` assume the caller already holds it;
- the store's own guard is only used for whole-entry create/remove and is
  never held while waiting on a guild lock;
- ``state.destroyed`` is re-checked after every lock acquisition because a
  teardown may have completed while the caller was waiting.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from ...domain.music.entities import PlaybackSnapshot, QueueState, Track, validate_volume
from ...domain.music.events import (
    EndpointEvent,
    SessionRecovered,
    SocketClosed,
    TrackEnded,
    TrackException,
    TrackStarted,
    TrackStuck,
)
from ...domain.music.value_objects import (
    ControllerState,
    EndReason,
    LoopMode,
    TeardownReason,
)
from ...domain.shared.exceptions import (
    ConnectionFailedError,
    ConnectTimeoutError,
    EntityNotFoundError,
    NoAvailableNodeError,
    PlaybackRejectedError,
)
from ...domain.shared.messages import DiscordUIMessages, ErrorMessages, LogTemplates
from ...domain.shared.types import ChannelIdField, DiscordSnowflake
from .guild_timers import cancel_timer, start_timer
from .retry_policy import RetryPolicy

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from ...config.settings import MusicSettings, RetrySettings, TimeoutSettings
    from ...domain.music.repository import QueueStore
    from ...domain.music.value_objects import ConnectionHandle
    from ..interfaces.audio_endpoint import AudioEndpoint
    from ..interfaces.presentation_sink import PresentationSink
    from ..interfaces.voice_gateway import VoiceGateway

logger = logging.getLogger(__name__)


class QueueController:
    """Coordinates queue state, the audio endpoint and the presentation sink."""

    def __init__(
        self,
        *,
        store: QueueStore,
        endpoint: AudioEndpoint,
        voice_gateway: VoiceGateway,
        presentation: PresentationSink,
        music: MusicSettings,
        timeouts: TimeoutSettings,
        retry: RetrySettings,
    ) -> None:
        self._store = store
        self._endpoint = endpoint
        self._voice = voice_gateway
        self._sink = presentation
        self._music = music
        self._timeouts = timeouts

        self._connect_retry = RetryPolicy.from_settings(
            retry, retry_on=(ConnectTimeoutError, NoAvailableNodeError)
        )
        self._play_retry = RetryPolicy.from_settings(
            retry, retry_on=(PlaybackRejectedError, TimeoutError)
        )

        self._background: set[asyncio.Task[None]] = set()

    # ── Queries ────────────────────────────────────────────────────

    async def get_state(self, guild_id: DiscordSnowflake) -> QueueState | None:
        return await self._store.get(guild_id)

    async def snapshot(self, guild_id: DiscordSnowflake) -> PlaybackSnapshot | None:
        state = await self._store.get(guild_id)
        if state is None or state.destroyed:
            return None
        return state.snapshot()

    # ── User actions ───────────────────────────────────────────────

    async def enqueue(
        self,
        guild_id: DiscordSnowflake,
        track: Track,
        *,
        text_channel_id: ChannelIdField | None = None,
    ) -> int:
        """Append *track* and return its zero-based position.

        Never waits on the network. When the guild is connected and idle an
        advance is scheduled in the background.

        Raises:
            BusinessRuleViolationError: duplicate, full queue, no token or
                too long.
        """
        while True:
            state = await self._store.get_or_create(guild_id, self._new_state)
            async with state.lock:
                if state.destroyed:
                    continue

                position = state.enqueue(track)
                if text_channel_id is not None:
                    state.text_channel_id = text_channel_id
                logger.info(LogTemplates.QUEUE_ENQUEUED, track.title, position, guild_id)

                self._cancel_idle_timer(state)
                if state.is_idle and state.current is None:
                    self._schedule_advance(guild_id)
                return position

    async def ensure_connected(
        self,
        guild_id: DiscordSnowflake,
        channel_id: ChannelIdField,
        *,
        text_channel_id: ChannelIdField | None = None,
    ) -> QueueState:
        """Make sure the guild has a ready voice session in *channel_id*.

        Raises:
            ConnectionFailedError: The session could not be established. The
                guild's queue state has been torn down.
        """
        while True:
            state = await self._store.get_or_create(guild_id, self._new_state)
            async with state.lock:
                if state.destroyed:
                    continue
                if text_channel_id is not None:
                    state.text_channel_id = text_channel_id
                await self._connect_locked(state, channel_id)
                return state

    async def advance(self, guild_id: DiscordSnowflake) -> None:
        """Start the next pending track if nothing is assigned to the endpoint."""
        state = await self._store.get(guild_id)
        if state is None:
            return
        if state.is_advancing:
            logger.debug(LogTemplates.ADVANCE_BUSY, guild_id)
            return

        async with state.lock:
            if state.destroyed:
                return
            await self._advance_locked(state)

    async def skip(self, guild_id: DiscordSnowflake) -> Track | None:
        """Discard the current track exactly once and advance.

        Returns:
            The skipped track, or None when nothing was playing.
        """
        state = await self._store.get(guild_id)
        if state is None:
            return None

        async with state.lock:
            if state.destroyed or state.current is None:
                return None

            track = state.current
            if track.token is not None:
                state.suppress_next_end(track.token)
            await self._stop_endpoint(state)
            self._release_current(state)

            if state.loop_mode is LoopMode.QUEUE:
                self._requeue(state, track, front=False)

            logger.info(LogTemplates.TRACK_SKIPPED, track.title, guild_id)
            await self._advance_locked(state)
            return track

    async def stop(self, guild_id: DiscordSnowflake) -> bool:
        """Clear everything, disconnect and remove the guild's queue state."""
        state = await self._store.get(guild_id)
        if state is None:
            return False

        async with state.lock:
            if state.destroyed:
                return False
            state.reset()
            logger.info(LogTemplates.QUEUE_STOPPED, guild_id)
            await self._teardown_locked(state, TeardownReason.STOPPED)
            return True

    async def set_volume(self, guild_id: DiscordSnowflake, percent: int) -> bool:
        """Set the guild volume.

        Returns:
            True if the change was applied to the playing track immediately.

        Raises:
            ValidationError: *percent* is outside 1..100.
            EntityNotFoundError: The guild has no queue.
        """
        validate_volume(percent)
        state = await self._require_state(guild_id)

        async with state.lock:
            if state.destroyed:
                raise self._not_found(guild_id)

            state.set_volume(percent)
            live = False
            if (
                state.current is not None
                and state.state.has_track
                and state.connection is not None
                and self._endpoint.supports_live_volume
            ):
                try:
                    await self._endpoint.set_volume(state.connection, percent)
                    live = True
                except Exception as exc:
                    logger.warning(LogTemplates.VOLUME_APPLY_FAILED, guild_id, exc)

            logger.info(LogTemplates.VOLUME_CHANGED, percent, guild_id, live)
            await self._refresh_presentation(state)
            return live

    async def set_loop(self, guild_id: DiscordSnowflake, mode: LoopMode | str) -> LoopMode:
        """Set the loop mode.

        Raises:
            ValueError: *mode* is not off/track/queue.
            EntityNotFoundError: The guild has no queue.
        """
        loop_mode = LoopMode.parse(mode)
        state = await self._require_state(guild_id)

        async with state.lock:
            if state.destroyed:
                raise self._not_found(guild_id)
            state.set_loop_mode(loop_mode)
            logger.info(LogTemplates.LOOP_MODE_CHANGED, loop_mode.value, guild_id)
            await self._refresh_presentation(state)
            return loop_mode

    async def pause(self, guild_id: DiscordSnowflake) -> bool:
        """Pause the playing track.

        Raises:
            PlaybackRejectedError: The endpoint refused; the state is unchanged.
        """
        state = await self._store.get(guild_id)
        if state is None:
            return False

        async with state.lock:
            if state.destroyed or state.state is not ControllerState.PLAYING:
                return False
            await self._control_endpoint(state, "pause", self._endpoint.pause)
            state.transition_to(ControllerState.PAUSED)
            logger.info(LogTemplates.PLAYBACK_PAUSED, guild_id)
            await self._refresh_presentation(state)
            return True

    async def resume(self, guild_id: DiscordSnowflake) -> bool:
        state = await self._store.get(guild_id)
        if state is None:
            return False

        async with state.lock:
            if state.destroyed or state.state is not ControllerState.PAUSED:
                return False
            await self._control_endpoint(state, "resume", self._endpoint.resume)
            state.transition_to(ControllerState.PLAYING)
            logger.info(LogTemplates.PLAYBACK_RESUMED, guild_id)
            await self._refresh_presentation(state)
            return True

    # ── Endpoint events ────────────────────────────────────────────

    async def handle_event(self, event: EndpointEvent) -> None:
        """Single entry point for audio endpoint events. Never raises."""
        event_name = type(event).__name__
        state = await self._store.get(event.guild_id)
        if state is None:
            logger.debug(LogTemplates.EVENT_UNKNOWN_GUILD, event_name, event.guild_id)
            return

        async with state.lock:
            if state.destroyed:
                logger.debug(LogTemplates.EVENT_UNKNOWN_GUILD, event_name, event.guild_id)
                return
            logger.debug(LogTemplates.EVENT_RECEIVED, event_name, event.guild_id, event.track_token)
            try:
                await self._dispatch(state, event)
            except Exception:
                self._release_current(state)
                logger.exception(LogTemplates.EVENT_HANDLER_ERROR, event_name, event.guild_id)

    async def _dispatch(self, state: QueueState, event: EndpointEvent) -> None:
        if isinstance(event, TrackStarted):
            await self._on_track_started(state, event)
        elif isinstance(event, TrackEnded):
            await self._on_track_ended(state, event)
        elif isinstance(event, TrackException | TrackStuck):
            await self._on_track_failed(state, event)
        elif isinstance(event, SocketClosed):
            self._on_socket_closed(state, event)
        elif isinstance(event, SessionRecovered):
            self._cancel_grace_timer(state)
            logger.info(LogTemplates.SOCKET_RECOVERED, state.guild_id)

    def _is_stale(self, state: QueueState, event: EndpointEvent) -> bool:
        if event.track_token is None:
            return False
        if state.current is None or state.current.token != event.track_token:
            logger.debug(LogTemplates.EVENT_STALE, type(event).__name__, state.guild_id)
            return True
        return False

    async def _on_track_started(self, state: QueueState, event: TrackStarted) -> None:
        if event.track_token is not None:
            state.discard_end_suppression(event.track_token)
        if self._is_stale(state, event) or state.current is None:
            return

        state.playing = True
        self._cancel_idle_timer(state)
        self._cancel_grace_timer(state)
        logger.info(LogTemplates.TRACK_STARTED, state.current.title, state.guild_id)
        await self._refresh_presentation(state)

    async def _on_track_ended(self, state: QueueState, event: TrackEnded) -> None:
        if state.consume_end_suppression(event.track_token):
            logger.debug(LogTemplates.EVENT_SUPPRESSED, state.guild_id)
            return
        if event.reason is EndReason.REPLACED:
            return
        if event.track_token is None and state.current is not None:
            # The endpoint can report a stop after dropping its own track
            # reference; such an end cannot be matched to the current track.
            logger.debug(LogTemplates.EVENT_UNTAGGED_END, state.guild_id, event.reason.value)
            return
        if self._is_stale(state, event) or state.current is None:
            return

        track = state.current
        self._release_current(state)

        if event.is_natural:
            logger.info(LogTemplates.TRACK_FINISHED, track.title, state.guild_id)
            state.clear_failures(track)
            if state.loop_mode is LoopMode.TRACK:
                self._requeue(state, track, front=True)
            elif state.loop_mode is LoopMode.QUEUE:
                self._requeue(state, track, front=False)

        await self._advance_locked(state)

    async def _on_track_failed(self, state: QueueState, event: TrackException | TrackStuck) -> None:
        if self._is_stale(state, event) or state.current is None:
            return

        track = state.current
        detail = event.detail if isinstance(event, TrackException) else "playback stalled"
        logger.warning(LogTemplates.TRACK_FAILED, track.title, state.guild_id, detail)
        self._release_current(state)

        await self._notify_error(
            state, DiscordUIMessages.ERROR_PLAYBACK_FAILED.format(title=track.title, detail=detail)
        )
        await self._requeue_failed(state, track)
        await self._advance_locked(state)

    def _on_socket_closed(self, state: QueueState, event: SocketClosed) -> None:
        logger.warning(LogTemplates.SOCKET_CLOSED, state.guild_id, event.code, event.by_remote)
        state.playing = False
        timer = start_timer(
            self._timeouts.socket_grace,
            lambda: self._on_grace_expired(state),
            name=f"socket-grace-{state.guild_id}",
        )
        cancel_timer(state.replace_grace_timer(timer))

    # ── Timers ─────────────────────────────────────────────────────

    def _start_idle_timer(self, state: QueueState) -> None:
        if self._music.stay_in_channel:
            return
        delay = self._music.leave_timeout_seconds
        timer = start_timer(delay, lambda: self._on_idle_timeout(state), name=f"idle-{state.guild_id}")
        cancel_timer(state.replace_idle_timer(timer))
        logger.debug(LogTemplates.IDLE_TIMER_STARTED, state.guild_id, delay)

    def _cancel_idle_timer(self, state: QueueState) -> None:
        cancel_timer(state.replace_idle_timer(None))

    def _cancel_grace_timer(self, state: QueueState) -> None:
        cancel_timer(state.replace_grace_timer(None))

    async def _on_idle_timeout(self, state: QueueState) -> None:
        async with state.lock:
            if state.destroyed:
                return
            if state.is_idle and not state.playing and state.current is None:
                logger.info(LogTemplates.IDLE_TIMEOUT, state.guild_id)
                await self._teardown_locked(state, TeardownReason.INACTIVITY)

    async def _on_grace_expired(self, state: QueueState) -> None:
        async with state.lock:
            if state.destroyed or state.playing:
                return
            logger.warning(LogTemplates.SOCKET_GRACE_EXPIRED, self._timeouts.socket_grace, state.guild_id)
            await self._teardown_locked(state, TeardownReason.CONNECTION_LOST)

    # ── Connection management ──────────────────────────────────────

    async def _connect_locked(self, state: QueueState, channel_id: ChannelIdField) -> None:
        guild_id = state.guild_id
        if state.is_connected:
            if state.voice_target == channel_id:
                return
            logger.info(LogTemplates.VOICE_MOVING, guild_id, state.voice_target, channel_id)
            await self._release_session(state)

        state.transition_to(ControllerState.CONNECTING)
        attempt_no = 0

        async def attempt() -> None:
            nonlocal attempt_no
            attempt_no += 1
            logger.info(
                LogTemplates.VOICE_CONNECTING,
                guild_id,
                channel_id,
                attempt_no,
                self._connect_retry.max_attempts,
            )
            state.connection = await self._open_session(guild_id, channel_id)

        try:
            await self._connect_retry.run(attempt, description=f"connect guild {guild_id}")
        except Exception as exc:
            logger.error(LogTemplates.VOICE_CONNECT_FAILED, guild_id, channel_id, exc)
            await self._teardown_locked(state, TeardownReason.CONNECT_FAILED)
            if isinstance(exc, ConnectionFailedError):
                raise
            raise ConnectionFailedError(str(exc) or type(exc).__name__) from exc

        state.voice_target = channel_id
        state.transition_to(ControllerState.IDLE)
        logger.info(LogTemplates.VOICE_CONNECTED, guild_id, channel_id, state.connection)
        if not state.pending:
            self._start_idle_timer(state)

    async def _open_session(
        self, guild_id: DiscordSnowflake, channel_id: ChannelIdField
    ) -> ConnectionHandle:
        try:
            async with asyncio.timeout(self._timeouts.connect):
                session = await self._voice.join(guild_id, channel_id)
                return await self._endpoint.connect(guild_id, channel_id, session)
        except TimeoutError:
            raise ConnectTimeoutError() from None

    async def _release_session(self, state: QueueState) -> None:
        """Drop the current endpoint session before reconnecting elsewhere.

        The current track goes back to the head of the queue so it resumes
        first on the new session.
        """
        track = state.current
        if track is not None:
            if track.token is not None:
                state.suppress_next_end(track.token)
            self._release_current(state)
            self._requeue(state, track, front=True)

        self._cancel_idle_timer(state)
        self._cancel_grace_timer(state)
        handle, state.connection = state.connection, None
        if handle is not None:
            try:
                await self._endpoint.disconnect(handle)
            except Exception as exc:
                logger.warning(LogTemplates.VOICE_DISCONNECT_FAILED, state.guild_id, exc)

    async def _teardown_locked(self, state: QueueState, reason: TeardownReason) -> None:
        """Destroy *state*: cancel timers, clear presentation, disconnect, unregister."""
        if state.destroyed:
            return
        state.destroyed = True
        logger.info(LogTemplates.TEARDOWN_STARTED, state.guild_id, reason.value)

        self._cancel_idle_timer(state)
        self._cancel_grace_timer(state)
        state.reset()
        state.transition_to(ControllerState.DISCONNECTED)
        handle, state.connection = state.connection, None

        try:
            async with asyncio.timeout(self._timeouts.teardown):
                await self._clear_presentation(state)
                if handle is not None:
                    try:
                        await self._endpoint.disconnect(handle)
                    except Exception as exc:
                        logger.warning(LogTemplates.VOICE_DISCONNECT_FAILED, state.guild_id, exc)
                try:
                    await self._voice.leave(state.guild_id)
                except Exception as exc:
                    logger.warning(LogTemplates.VOICE_DISCONNECT_FAILED, state.guild_id, exc)
        except TimeoutError:
            logger.warning(LogTemplates.TEARDOWN_TIMEOUT, state.guild_id, self._timeouts.teardown)
        finally:
            await self._store.remove(state.guild_id, expected=state)

    # ── Track advance ──────────────────────────────────────────────

    def _schedule_advance(self, guild_id: DiscordSnowflake) -> None:
        task = asyncio.create_task(self.advance(guild_id), name=f"advance-{guild_id}")
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def _advance_locked(self, state: QueueState) -> None:
        if state.current is not None:
            return
        if not state.is_idle:
            return

        state.transition_to(ControllerState.ADVANCING)
        self._cancel_idle_timer(state)
        try:
            while True:
                track = state.pop_next()
                if track is None:
                    state.transition_to(ControllerState.IDLE)
                    logger.info(LogTemplates.QUEUE_EXHAUSTED, state.guild_id)
                    await self._clear_presentation(state)
                    self._start_idle_timer(state)
                    return

                state.current = track
                try:
                    await self._play(state, track)
                except Exception as exc:
                    logger.warning(LogTemplates.PLAY_FAILED, track.title, state.guild_id, exc)
                    state.current = None
                    await self._notify_error(
                        state,
                        DiscordUIMessages.ERROR_PLAYBACK_FAILED.format(
                            title=track.title, detail=str(exc) or type(exc).__name__
                        ),
                    )
                    await self._requeue_failed(state, track)
                    continue

                state.transition_to(ControllerState.PLAYING)
                await self._refresh_presentation(state)
                return
        finally:
            if state.is_advancing:
                state.current = None
                state.transition_to(ControllerState.IDLE)

    async def _play(self, state: QueueState, track: Track) -> None:
        guild_id = state.guild_id

        async def attempt() -> None:
            await asyncio.wait_for(
                self._endpoint.play(state.connection, track.token, state.volume),
                timeout=self._timeouts.play_ack,
            )

        async def recover() -> None:
            state.connection = await self._endpoint.recover(state.connection)

        await self._play_retry.run(
            attempt,
            description=f"play '{track.title}' in guild {guild_id}",
            before_retry=recover,
        )
        logger.info(LogTemplates.PLAY_ISSUED, track.title, guild_id, state.volume)

    async def _control_endpoint(
        self,
        state: QueueState,
        action: str,
        call: Callable[[ConnectionHandle], Awaitable[None]],
    ) -> None:
        if state.connection is None:
            raise PlaybackRejectedError(ErrorMessages.NO_PLAYER.format(guild_id=state.guild_id))
        try:
            await asyncio.wait_for(call(state.connection), timeout=self._timeouts.play_ack)
        except TimeoutError:
            logger.warning(LogTemplates.PLAYBACK_CONTROL_FAILED, action, state.guild_id, "timed out")
            raise PlaybackRejectedError(f"{action} timed out") from None
        except PlaybackRejectedError as exc:
            logger.warning(LogTemplates.PLAYBACK_CONTROL_FAILED, action, state.guild_id, exc)
            raise

    async def _stop_endpoint(self, state: QueueState) -> None:
        if state.connection is None:
            return
        try:
            await self._endpoint.stop(state.connection)
        except Exception as exc:
            logger.warning(LogTemplates.PLAYBACK_STOP_FAILED, state.guild_id, exc)

    # ── Queue bookkeeping ──────────────────────────────────────────

    def _release_current(self, state: QueueState) -> None:
        """Clear the current track and fall back to ``IDLE`` if a track was assigned."""
        state.current = None
        state.playing = False
        if state.state in (ControllerState.PLAYING, ControllerState.PAUSED, ControllerState.ADVANCING):
            state.transition_to(ControllerState.IDLE)

    def _requeue(self, state: QueueState, track: Track, *, front: bool) -> None:
        accepted = state.requeue_front(track) if front else state.requeue_back(track)
        if not accepted:
            logger.warning(LogTemplates.TRACK_LOOP_DROPPED, state.guild_id, track.title)

    async def _requeue_failed(self, state: QueueState, track: Track) -> None:
        """Re-queue a failed track at the back when looping, dropping repeat offenders."""
        if state.loop_mode is LoopMode.OFF:
            return

        failures = state.record_failure(track)
        if failures >= self._music.max_track_failures:
            logger.warning(
                LogTemplates.TRACK_DROPPED_AFTER_FAILURES, track.title, state.guild_id, failures
            )
            state.clear_failures(track)
            await self._notify_error(state, DiscordUIMessages.ERROR_TRACK_DROPPED.format(title=track.title))
            return

        self._requeue(state, track, front=False)

    # ── Presentation ───────────────────────────────────────────────

    async def _refresh_presentation(self, state: QueueState) -> None:
        if state.current is None and state.presentation is None:
            return
        snapshot = state.snapshot()
        try:
            if state.presentation is None:
                state.presentation = await self._sink.show(
                    state.guild_id, snapshot, channel_id=state.text_channel_id
                )
            else:
                state.presentation = await self._sink.update(state.presentation, snapshot)
        except Exception as exc:
            logger.warning(LogTemplates.PRESENTATION_FAILED, "refresh", state.guild_id, exc)

    async def _clear_presentation(self, state: QueueState) -> None:
        handle, state.presentation = state.presentation, None
        if handle is None:
            return
        try:
            await self._sink.clear(handle)
        except Exception as exc:
            logger.warning(LogTemplates.PRESENTATION_FAILED, "clear", state.guild_id, exc)

    async def _notify_error(self, state: QueueState, message: str) -> None:
        try:
            await self._sink.notify_error(state.guild_id, message, channel_id=state.text_channel_id)
        except Exception as exc:
            logger.warning(LogTemplates.PRESENTATION_FAILED, "notify_error", state.guild_id, exc)

    # ── Helpers ────────────────────────────────────────────────────

    def _new_state(self, guild_id: int) -> QueueState:
        return QueueState(
            guild_id=guild_id,
            volume=self._music.default_volume,
            max_size=self._music.max_queue_size,
            allow_duplicates=self._music.allow_duplicates,
            max_track_length_ms=self._music.max_track_length_ms,
        )

    async def _require_state(self, guild_id: DiscordSnowflake) -> QueueState:
        state = await self._store.get(guild_id)
        if state is None:
            raise self._not_found(guild_id)
        return state

    @staticmethod
    def _not_found(guild_id: int) -> EntityNotFoundError:
        return EntityNotFoundError(
            "QueueState", guild_id, ErrorMessages.QUEUE_NOT_FOUND.format(guild_id=guild_id)
        )

    async def wait_for_background(self) -> None:
        """Wait for scheduled advances to finish."""
        while self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    async def shutdown(self) -> None:
        """Tear down every guild. Used on process exit."""
        for state in await self._store.all():
            async with state.lock:
                await self._teardown_locked(state, TeardownReason.STOPPED)
        await self.wait_for_background()
