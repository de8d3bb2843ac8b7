"""Core domain entities for the music bounded context."""

from __future__ import annotations

import asyncio
from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr

from jefferson_player.domain.music.value_objects import (
    ControllerState,
    LoopMode,
    TrackIdentity,
)
from jefferson_player.domain.shared.exceptions import (
    BusinessRuleViolationError,
    InvalidOperationError,
    ValidationError,
)
from jefferson_player.domain.shared.messages import ErrorMessages
from jefferson_player.domain.shared.types import (
    ChannelIdField,
    DiscordSnowflake,
    DurationMs,
    MaxQueueSize,
    NonEmptyStr,
    NonNegativeInt,
    TrackTitleStr,
    VolumePercent,
)

DEFAULT_MAX_QUEUE_SIZE = 100
DEFAULT_VOLUME = 50


def validate_volume(percent: object) -> int:
    """Return *percent* if it is an integer in 1..100, else raise ``ValidationError``."""
    if isinstance(percent, bool) or not isinstance(percent, int) or not 1 <= percent <= 100:
        raise ValidationError(ErrorMessages.INVALID_VOLUME.format(value=percent), field="volume")
    return percent


def format_duration_ms(duration_ms: int | None) -> str:
    """Format a millisecond duration as M:SS or H:MM:SS."""
    if duration_ms is None:
        return "Live"

    hours, remainder = divmod(duration_ms // 1000, 3600)
    minutes, seconds = divmod(remainder, 60)
    if hours > 0:
        return f"{hours}:{minutes:02d}:{seconds:02d}"
    return f"{minutes}:{seconds:02d}"


class TrackDraft(BaseModel):
    """Resolver candidate that has not been given a playable token yet."""

    model_config = ConfigDict(frozen=True, strict=True)

    title: TrackTitleStr
    source_uri: NonEmptyStr
    duration_ms: DurationMs | None = None
    thumbnail_url: str | None = None
    catalog_id: NonEmptyStr | None = None
    origin: NonEmptyStr = "unknown"

    @property
    def identity(self) -> TrackIdentity:
        return TrackIdentity.for_track(self.source_uri, self.catalog_id)


class Track(BaseModel):
    """Immutable value object representing a queued, playable track."""

    model_config = ConfigDict(frozen=True, strict=True)

    title: TrackTitleStr
    source_uri: NonEmptyStr
    requester_id: DiscordSnowflake
    origin: NonEmptyStr = "unknown"
    token: NonEmptyStr | None = None
    duration_ms: DurationMs | None = None
    thumbnail_url: str | None = None
    catalog_id: NonEmptyStr | None = None
    requester_name: NonEmptyStr | None = None

    @classmethod
    def from_draft(
        cls,
        draft: TrackDraft,
        *,
        token: str | None,
        requester_id: int,
        requester_name: str | None = None,
    ) -> Track:
        return cls(
            title=draft.title,
            source_uri=draft.source_uri,
            duration_ms=draft.duration_ms,
            thumbnail_url=draft.thumbnail_url,
            catalog_id=draft.catalog_id,
            origin=draft.origin,
            token=token,
            requester_id=requester_id,
            requester_name=requester_name,
        )

    @property
    def identity(self) -> TrackIdentity:
        return TrackIdentity.for_track(self.source_uri, self.catalog_id)

    @property
    def is_playable(self) -> bool:
        return self.token is not None

    @property
    def is_stream(self) -> bool:
        return self.duration_ms is None

    @property
    def duration_formatted(self) -> str:
        return format_duration_ms(self.duration_ms)

    @property
    def display_title(self) -> str:
        """Get display title with duration if available."""
        if self.duration_ms:
            return f"{self.title} [{self.duration_formatted}]"
        return self.title

    def is_duplicate_of(self, other: Track) -> bool:
        return self.identity == other.identity


class PlaybackSnapshot(BaseModel):
    """Read-only view of a guild's queue handed to the presentation sink."""

    model_config = ConfigDict(frozen=True)

    guild_id: DiscordSnowflake
    current: Track | None = None
    queue_length: NonNegativeInt = 0
    loop_mode: LoopMode = LoopMode.OFF
    volume: VolumePercent = DEFAULT_VOLUME
    paused: bool = False
    playing: bool = False
    upcoming: tuple[Track, ...] = ()


class QueueState(BaseModel):
    """Aggregate root owning one guild's queue and playback bookkeeping.

    Only the queue controller mutates an instance, and only while holding
    ``lock``.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    SNAPSHOT_UPCOMING: ClassVar[int] = 10

    guild_id: DiscordSnowflake
    pending: list[Track] = Field(default_factory=list)
    current: Track | None = None
    playing: bool = False
    loop_mode: LoopMode = LoopMode.OFF
    volume: VolumePercent = DEFAULT_VOLUME
    state: ControllerState = ControllerState.DISCONNECTED

    max_size: MaxQueueSize = DEFAULT_MAX_QUEUE_SIZE
    allow_duplicates: bool = False
    max_track_length_ms: DurationMs | None = None

    voice_target: ChannelIdField | None = None
    text_channel_id: ChannelIdField | None = None
    connection: Any = None
    presentation: Any = None

    destroyed: bool = False

    _lock: asyncio.Lock = PrivateAttr(default_factory=asyncio.Lock)
    _failures: dict[str, int] = PrivateAttr(default_factory=dict)
    _suppressed_ends: list[str] = PrivateAttr(default_factory=list)
    _idle_timer: Any = PrivateAttr(default=None)
    _grace_timer: Any = PrivateAttr(default=None)

    # ── Read-only views ────────────────────────────────────────────

    @property
    def lock(self) -> asyncio.Lock:
        return self._lock

    @property
    def queue_length(self) -> int:
        return len(self.pending)

    @property
    def is_full(self) -> bool:
        return self.queue_length >= self.max_size

    @property
    def is_connected(self) -> bool:
        return self.connection is not None and self.state.is_connected

    @property
    def is_advancing(self) -> bool:
        return self.state is ControllerState.ADVANCING

    @property
    def is_idle(self) -> bool:
        return self.state is ControllerState.IDLE

    @property
    def is_paused(self) -> bool:
        return self.state is ControllerState.PAUSED

    def snapshot(self) -> PlaybackSnapshot:
        return PlaybackSnapshot(
            guild_id=self.guild_id,
            current=self.current,
            queue_length=self.queue_length,
            loop_mode=self.loop_mode,
            volume=self.volume,
            paused=self.is_paused,
            playing=self.playing,
            upcoming=tuple(self.pending[: self.SNAPSHOT_UPCOMING]),
        )

    # ── State machine ──────────────────────────────────────────────

    def transition_to(self, new_state: ControllerState) -> None:
        if new_state is self.state:
            return
        if not self.state.can_transition_to(new_state):
            raise InvalidOperationError(
                operation=f"transition to {new_state.value}",
                current_state=self.state.value,
                message=f"Cannot transition from {self.state.value} to {new_state.value}",
            )
        self.state = new_state

    # ── Queue mutation ─────────────────────────────────────────────

    def is_duplicate(self, track: Track) -> bool:
        """Check if a track with the same identity is queued or currently playing."""
        if self.current is not None and self.current.is_duplicate_of(track):
            return True
        return any(queued.is_duplicate_of(track) for queued in self.pending)

    def check_can_enqueue(self, track: Track) -> None:
        """Raise ``BusinessRuleViolationError`` if *track* may not be queued."""
        if not track.is_playable:
            raise BusinessRuleViolationError(
                rule="UNPLAYABLE",
                message=ErrorMessages.TRACK_HAS_NO_TOKEN.format(title=track.title),
            )
        if not self.allow_duplicates and self.is_duplicate(track):
            raise BusinessRuleViolationError(
                rule="NO_DUPLICATES",
                message=ErrorMessages.DUPLICATE_TRACK.format(title=track.title),
            )
        if self.is_full:
            raise BusinessRuleViolationError(
                rule="MAX_QUEUE_SIZE",
                message=ErrorMessages.QUEUE_FULL.format(max_size=self.max_size),
            )
        if (
            self.max_track_length_ms is not None
            and track.duration_ms is not None
            and track.duration_ms > self.max_track_length_ms
        ):
            raise BusinessRuleViolationError(
                rule="MAX_TRACK_LENGTH",
                message=ErrorMessages.TRACK_TOO_LONG.format(
                    title=track.title, limit=format_duration_ms(self.max_track_length_ms)
                ),
            )

    def enqueue(self, track: Track) -> int:
        """Append a track and return its zero-based position."""
        self.check_can_enqueue(track)
        self.pending.append(track)
        return len(self.pending) - 1

    def pop_next(self) -> Track | None:
        if not self.pending:
            return None
        return self.pending.pop(0)

    def requeue_front(self, track: Track) -> bool:
        """Put a looped track back at the head. Returns False when the queue is full."""
        if self.is_full:
            return False
        self.pending.insert(0, track)
        return True

    def requeue_back(self, track: Track) -> bool:
        """Put a looped or failed track back at the tail. Returns False when full."""
        if self.is_full:
            return False
        self.pending.append(track)
        return True

    def reset(self) -> None:
        """Clear queue, current track and loop mode (the stop contract)."""
        self.pending.clear()
        self.current = None
        self.playing = False
        self.loop_mode = LoopMode.OFF
        self._failures.clear()

    # ── Settings ───────────────────────────────────────────────────

    def set_volume(self, percent: int) -> None:
        self.volume = validate_volume(percent)

    def set_loop_mode(self, mode: LoopMode) -> None:
        self.loop_mode = mode

    # ── Failure bookkeeping ────────────────────────────────────────

    def record_failure(self, track: Track) -> int:
        key = track.identity.value
        self._failures[key] = self._failures.get(key, 0) + 1
        return self._failures[key]

    def clear_failures(self, track: Track) -> None:
        self._failures.pop(track.identity.value, None)

    # ── Deliberate-stop markers ────────────────────────────────────

    def suppress_next_end(self, token: str) -> None:
        """Mark that the controller itself is ending the track with *token*."""
        self._suppressed_ends.append(token)

    def consume_end_suppression(self, token: str | None) -> bool:
        if not self._suppressed_ends:
            return False
        if token is None:
            self._suppressed_ends.pop(0)
            return True
        if token in self._suppressed_ends:
            self._suppressed_ends.remove(token)
            return True
        return False

    def discard_end_suppression(self, token: str) -> None:
        if token in self._suppressed_ends:
            self._suppressed_ends.remove(token)

    # ── Timers ─────────────────────────────────────────────────────

    @property
    def idle_timer(self) -> Any:
        return self._idle_timer

    @property
    def grace_timer(self) -> Any:
        return self._grace_timer

    def replace_idle_timer(self, timer: Any) -> Any:
        """Install *timer* as the idle timer and return the previous one."""
        previous, self._idle_timer = self._idle_timer, timer
        return previous

    def replace_grace_timer(self, timer: Any) -> Any:
        """Install *timer* as the socket-grace timer and return the previous one."""
        previous, self._grace_timer = self._grace_timer, timer
        return previous
