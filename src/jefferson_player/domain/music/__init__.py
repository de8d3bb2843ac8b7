"""
Music Bounded Context

Domain logic for the per-guild playback queue and its lifecycle events.
"""

from jefferson_player.domain.music.entities import (
    PlaybackSnapshot,
    QueueState,
    Track,
    TrackDraft,
)
from jefferson_player.domain.music.events import (
    EndpointEvent,
    SessionRecovered,
    SocketClosed,
    TrackEnded,
    TrackException,
    TrackStarted,
    TrackStuck,
)
from jefferson_player.domain.music.repository import QueueStore
from jefferson_player.domain.music.value_objects import (
    ConnectionHandle,
    ControllerState,
    EndReason,
    LoopMode,
    TeardownReason,
    TrackIdentity,
    VoiceSession,
)

__all__ = [
    # Entities
    "Track",
    "TrackDraft",
    "QueueState",
    "PlaybackSnapshot",
    # Value Objects
    "TrackIdentity",
    "ConnectionHandle",
    "VoiceSession",
    "ControllerState",
    "EndReason",
    "LoopMode",
    "TeardownReason",
    # Events
    "EndpointEvent",
    "TrackStarted",
    "TrackEnded",
    "TrackException",
    "TrackStuck",
    "SocketClosed",
    "SessionRecovered",
    # Repository
    "QueueStore",
]
