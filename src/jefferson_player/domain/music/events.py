"""Lifecycle events emitted by the audio endpoint for one guild's session."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from jefferson_player.domain.shared.types import DiscordSnowflake, NonEmptyStr, UtcDatetimeField, utcnow

from .value_objects import EndReason


class EndpointEvent(BaseModel):
    """Base class for all audio endpoint events.

    ``track_token`` identifies the track the event refers to when the
    endpoint reports it; events whose token does not match the guild's
    current track are treated as stale.
    """

    model_config = ConfigDict(frozen=True)

    guild_id: DiscordSnowflake
    track_token: NonEmptyStr | None = None
    received_at: UtcDatetimeField = Field(default_factory=utcnow)


class TrackStarted(EndpointEvent):
    event_type: Literal["TrackStarted"] = "TrackStarted"


class TrackEnded(EndpointEvent):
    event_type: Literal["TrackEnded"] = "TrackEnded"
    reason: EndReason = EndReason.FINISHED

    @property
    def is_natural(self) -> bool:
        return self.reason is EndReason.FINISHED


class TrackException(EndpointEvent):
    event_type: Literal["TrackException"] = "TrackException"
    detail: str = ""


class TrackStuck(EndpointEvent):
    """Playback stalled for longer than the endpoint's threshold."""

    event_type: Literal["TrackStuck"] = "TrackStuck"
    threshold_ms: int = 0


class SocketClosed(EndpointEvent):
    event_type: Literal["SocketClosed"] = "SocketClosed"
    code: int = 0
    reason: str = ""
    by_remote: bool = False


class SessionRecovered(EndpointEvent):
    """The endpoint re-established a voice session after a socket close."""

    event_type: Literal["SessionRecovered"] = "SessionRecovered"
