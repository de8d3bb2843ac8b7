"""Commands and handlers for putting tracks on a guild's queue."""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, field_validator

from jefferson_player.domain.music.entities import Track, TrackDraft
from jefferson_player.domain.shared.exceptions import (
    BusinessRuleViolationError,
    ConnectionFailedError,
    ResolutionError,
    TrackNotFoundError,
    UnplayableTrackError,
)
from jefferson_player.domain.shared.messages import DiscordUIMessages
from jefferson_player.domain.shared.types import (
    ChannelIdField,
    DiscordSnowflake,
    NonEmptyStr,
    NonNegativeInt,
)
from jefferson_player.utils.reply import truncate

if TYPE_CHECKING:
    from ..interfaces.track_resolver import TrackResolver
    from ..services.queue_controller import QueueController


class EnqueueStatus(Enum):
    """Status codes for enqueue results."""

    QUEUED = "queued"
    NOW_PLAYING = "now_playing"
    PLAYLIST_QUEUED = "playlist_queued"
    DUPLICATE = "duplicate"
    QUEUE_FULL = "queue_full"
    TRACK_TOO_LONG = "track_too_long"
    NO_VOICE_TARGET = "no_voice_target"
    UNPLAYABLE = "unplayable"
    TRACK_NOT_FOUND = "track_not_found"
    RESOLUTION_ERROR = "resolution_error"
    CONNECT_TIMEOUT = "connect_timeout"
    NO_AVAILABLE_NODE = "no_available_node"
    PERMISSION_DENIED = "permission_denied"


_RULE_STATUS: dict[str, EnqueueStatus] = {
    "NO_DUPLICATES": EnqueueStatus.DUPLICATE,
    "MAX_QUEUE_SIZE": EnqueueStatus.QUEUE_FULL,
    "MAX_TRACK_LENGTH": EnqueueStatus.TRACK_TOO_LONG,
    "UNPLAYABLE": EnqueueStatus.UNPLAYABLE,
}

_CONNECT_STATUS: dict[str, tuple[EnqueueStatus, str]] = {
    "CONNECT_TIMEOUT": (EnqueueStatus.CONNECT_TIMEOUT, DiscordUIMessages.ERROR_CONNECT_TIMEOUT),
    "NO_AVAILABLE_NODE": (EnqueueStatus.NO_AVAILABLE_NODE, DiscordUIMessages.ERROR_NO_AVAILABLE_NODE),
    "PERMISSION_DENIED": (EnqueueStatus.PERMISSION_DENIED, DiscordUIMessages.ERROR_PERMISSION_DENIED),
}

# Statuses after which a playlist keeps going with its next entry.
_SKIPPABLE = frozenset(
    {EnqueueStatus.DUPLICATE, EnqueueStatus.UNPLAYABLE, EnqueueStatus.TRACK_TOO_LONG}
)


class EnqueueTrackCommand(BaseModel):
    """Request to queue an already-resolved draft and make sure it gets played."""

    model_config = ConfigDict(frozen=True, strict=True)

    guild_id: DiscordSnowflake
    draft: TrackDraft
    requester_id: DiscordSnowflake
    voice_target: ChannelIdField | None = None
    text_channel_id: ChannelIdField | None = None
    requester_name: NonEmptyStr | None = None


class EnqueueQueryCommand(BaseModel):
    """Request to resolve a free-text query or URL and queue the results."""

    model_config = ConfigDict(frozen=True, strict=True)

    guild_id: DiscordSnowflake
    query: NonEmptyStr
    requester_id: DiscordSnowflake
    voice_target: ChannelIdField | None = None
    text_channel_id: ChannelIdField | None = None
    requester_name: NonEmptyStr | None = None

    @field_validator("query", mode="before")
    @classmethod
    def _strip_query(cls, v: str) -> str:
        if isinstance(v, str):
            return v.strip()
        return v

    def for_draft(self, draft: TrackDraft) -> EnqueueTrackCommand:
        return EnqueueTrackCommand(
            guild_id=self.guild_id,
            draft=draft,
            requester_id=self.requester_id,
            voice_target=self.voice_target,
            text_channel_id=self.text_channel_id,
            requester_name=self.requester_name,
        )


class EnqueueResult(BaseModel):
    """Result of an enqueue command."""

    model_config = ConfigDict(frozen=True)

    status: EnqueueStatus
    message: str
    track: Track | None = None
    queue_position: NonNegativeInt | None = None
    tracks_queued: NonNegativeInt = 0
    tracks_skipped: NonNegativeInt = 0

    @property
    def is_success(self) -> bool:
        return self.status in {
            EnqueueStatus.QUEUED,
            EnqueueStatus.NOW_PLAYING,
            EnqueueStatus.PLAYLIST_QUEUED,
        }

    @classmethod
    def queued(cls, track: Track, position: int, *, now_playing: bool) -> EnqueueResult:
        if now_playing:
            status = EnqueueStatus.NOW_PLAYING
            message = DiscordUIMessages.SUCCESS_NOW_PLAYING.format(title=track.title)
        else:
            status = EnqueueStatus.QUEUED
            message = DiscordUIMessages.SUCCESS_QUEUED.format(title=track.title, position=position + 1)
        return cls(
            status=status, message=message, track=track, queue_position=position, tracks_queued=1
        )

    @classmethod
    def playlist(cls, first: EnqueueResult, queued: int, skipped: int) -> EnqueueResult:
        return cls(
            status=EnqueueStatus.PLAYLIST_QUEUED,
            message=DiscordUIMessages.SUCCESS_PLAYLIST_QUEUED.format(count=queued, skipped=skipped),
            track=first.track,
            queue_position=first.queue_position,
            tracks_queued=queued,
            tracks_skipped=skipped,
        )

    @classmethod
    def error(cls, status: EnqueueStatus, message: str) -> EnqueueResult:
        return cls(status=status, message=message)


class EnqueueTrackHandler:
    """Resolves the playable token, queues the track, connects and triggers playback."""

    def __init__(self, *, controller: QueueController, resolver: TrackResolver) -> None:
        self._controller = controller
        self._resolver = resolver

    async def handle(self, command: EnqueueTrackCommand) -> EnqueueResult:
        draft = command.draft

        state = await self._controller.get_state(command.guild_id)
        connected = state is not None and state.is_connected
        if command.voice_target is None and not connected:
            return EnqueueResult.error(
                EnqueueStatus.NO_VOICE_TARGET, DiscordUIMessages.ERROR_NO_VOICE_TARGET
            )

        try:
            token = await self._resolver.get_playable_token(draft)
        except (UnplayableTrackError, ResolutionError):
            return EnqueueResult.error(
                EnqueueStatus.UNPLAYABLE, DiscordUIMessages.ERROR_UNPLAYABLE.format(title=draft.title)
            )

        track = Track.from_draft(
            draft,
            token=token,
            requester_id=command.requester_id,
            requester_name=command.requester_name,
        )

        try:
            position = await self._controller.enqueue(
                command.guild_id, track, text_channel_id=command.text_channel_id
            )
        except BusinessRuleViolationError as exc:
            return self._rejected(exc, track)

        if command.voice_target is not None:
            try:
                await self._controller.ensure_connected(
                    command.guild_id, command.voice_target, text_channel_id=command.text_channel_id
                )
            except ConnectionFailedError as exc:
                status, message = _CONNECT_STATUS.get(
                    exc.code, (EnqueueStatus.CONNECT_TIMEOUT, DiscordUIMessages.ERROR_CONNECT_TIMEOUT)
                )
                return EnqueueResult.error(status, message)

        await self._controller.advance(command.guild_id)

        snapshot = await self._controller.snapshot(command.guild_id)
        now_playing = (
            snapshot is not None
            and snapshot.current is not None
            and snapshot.current.token == track.token
        )
        return EnqueueResult.queued(track, position, now_playing=now_playing)

    def _rejected(self, exc: BusinessRuleViolationError, track: Track) -> EnqueueResult:
        status = _RULE_STATUS.get(exc.rule, EnqueueStatus.UNPLAYABLE)
        if status is EnqueueStatus.DUPLICATE:
            return EnqueueResult.error(status, DiscordUIMessages.ERROR_DUPLICATE.format(title=track.title))
        return EnqueueResult.error(status, f"❌ {exc.message}")


class EnqueueQueryHandler:
    """Resolves a query and queues the first hit, or every entry of a playlist.

    Playlist entries that are duplicates, too long or unplayable are skipped;
    a full queue ends the run early.
    """

    def __init__(
        self,
        *,
        resolver: TrackResolver,
        track_handler: EnqueueTrackHandler,
        enqueue_playlists: bool = True,
    ) -> None:
        self._resolver = resolver
        self._track_handler = track_handler
        self._enqueue_playlists = enqueue_playlists

    async def handle(self, command: EnqueueQueryCommand) -> EnqueueResult:
        try:
            drafts = await self._resolver.resolve(command.query)
        except TrackNotFoundError:
            return EnqueueResult.error(
                EnqueueStatus.TRACK_NOT_FOUND,
                DiscordUIMessages.ERROR_TRACK_NOT_FOUND.format(query=truncate(command.query, 100)),
            )
        except ResolutionError:
            return EnqueueResult.error(
                EnqueueStatus.RESOLUTION_ERROR, DiscordUIMessages.ERROR_RESOLUTION_FAILED
            )

        if not self._enqueue_playlists:
            drafts = drafts[:1]
        if len(drafts) == 1:
            return await self._track_handler.handle(command.for_draft(drafts[0]))

        first: EnqueueResult | None = None
        last: EnqueueResult | None = None
        queued = skipped = 0
        for draft in drafts:
            last = await self._track_handler.handle(command.for_draft(draft))
            if last.is_success:
                first = first or last
                queued += 1
            elif last.status in _SKIPPABLE:
                skipped += 1
            elif last.status is EnqueueStatus.QUEUE_FULL:
                skipped += len(drafts) - queued - skipped
                break
            else:
                return last

        if first is None:
            return last or EnqueueResult.error(
                EnqueueStatus.TRACK_NOT_FOUND,
                DiscordUIMessages.ERROR_TRACK_NOT_FOUND.format(query=truncate(command.query, 100)),
            )
        return EnqueueResult.playlist(first, queued, skipped)
