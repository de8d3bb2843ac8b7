"""Immutable value objects for the music bounded context."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from jefferson_player.domain.shared.messages import ErrorMessages

# Query parameters that vary per share link without changing the track.
_TRACKING_PARAMS = frozenset({"si", "feature", "context", "nd", "pp"})


@dataclass(frozen=True)
class TrackIdentity:
    """Key used for duplicate detection between queued tracks.

    Tracks resolved through a secondary search carry a catalog id because
    their source URI differs between resolutions; everything else is keyed
    by its normalized source URI.
    """

    value: str

    def __post_init__(self) -> None:
        if not self.value or not self.value.strip():
            raise ValueError(ErrorMessages.EMPTY_TRACK_IDENTITY)

    def __str__(self) -> str:
        return self.value

    @classmethod
    def for_track(cls, source_uri: str, catalog_id: str | None = None) -> TrackIdentity:
        if catalog_id and catalog_id.strip():
            return cls(f"catalog:{catalog_id.strip()}")
        return cls(f"uri:{normalize_source_uri(source_uri)}")


def normalize_source_uri(uri: str) -> str:
    """Normalize a source URI so that share-link variants compare equal."""
    uri = uri.strip()
    parts = urlsplit(uri)
    if not parts.scheme or not parts.netloc:
        return uri

    query = urlencode(
        [
            (key, value)
            for key, value in parse_qsl(parts.query, keep_blank_values=True)
            if key not in _TRACKING_PARAMS and not key.startswith("utm_")
        ]
    )
    path = parts.path.rstrip("/") or ""
    return urlunsplit((parts.scheme.lower(), parts.netloc.lower(), path, query, ""))


@dataclass(frozen=True)
class ConnectionHandle:
    """Ownership token for one guild's audio endpoint session."""

    guild_id: int
    channel_id: int
    node_name: str | None = None

    def __str__(self) -> str:
        node = self.node_name or "default"
        return f"{self.guild_id}@{self.channel_id} ({node})"


@dataclass(frozen=True)
class VoiceSession:
    """Credentials produced by the chat platform's voice handshake."""

    guild_id: int
    channel_id: int
    session_id: str | None = None
    token: str | None = None
    endpoint: str | None = None


class ControllerState(Enum):
    """Per-guild controller state with enforced transitions.

    State transitions:
    - DISCONNECTED -> CONNECTING (ensure_connected)
    - CONNECTING -> IDLE (session ready)
    - IDLE -> ADVANCING (advance picked a track)
    - ADVANCING -> PLAYING (play command accepted)
    - ADVANCING -> IDLE (every candidate failed)
    - PLAYING -> PAUSED -> PLAYING (pause/resume)
    - PLAYING/PAUSED -> IDLE (track ended, skipped or failed)
    - IDLE/PLAYING/PAUSED -> CONNECTING (moved to another voice target)
    - Any -> DISCONNECTED (stop, idle timeout, connection loss)
    """

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    IDLE = "idle"
    ADVANCING = "advancing"
    PLAYING = "playing"
    PAUSED = "paused"

    def can_transition_to(self, target: ControllerState) -> bool:
        """Check if transition to target state is valid."""
        if target is ControllerState.DISCONNECTED:
            return True
        valid_transitions = {
            ControllerState.DISCONNECTED: {ControllerState.CONNECTING},
            ControllerState.CONNECTING: {ControllerState.IDLE},
            ControllerState.IDLE: {ControllerState.ADVANCING, ControllerState.CONNECTING},
            ControllerState.ADVANCING: {ControllerState.PLAYING, ControllerState.IDLE},
            ControllerState.PLAYING: {
                ControllerState.PAUSED,
                ControllerState.IDLE,
                ControllerState.CONNECTING,
            },
            ControllerState.PAUSED: {
                ControllerState.PLAYING,
                ControllerState.IDLE,
                ControllerState.CONNECTING,
            },
        }
        return target in valid_transitions.get(self, set())

    @property
    def is_connected(self) -> bool:
        return self in {
            ControllerState.IDLE,
            ControllerState.ADVANCING,
            ControllerState.PLAYING,
            ControllerState.PAUSED,
        }

    @property
    def has_track(self) -> bool:
        return self in {ControllerState.PLAYING, ControllerState.PAUSED}


class EndReason(Enum):
    """Why the audio endpoint reports that a track ended."""

    FINISHED = "finished"
    REPLACED = "replaced"
    STOPPED = "stopped"


class LoopMode(Enum):
    """Loop mode settings for queue playback."""

    OFF = "off"
    TRACK = "track"  # Loop current track
    QUEUE = "queue"  # Loop entire queue

    @classmethod
    def parse(cls, value: str | LoopMode) -> LoopMode:
        if isinstance(value, LoopMode):
            return value
        try:
            return cls(value.strip().lower())
        except ValueError:
            raise ValueError(ErrorMessages.INVALID_LOOP_MODE.format(value=value)) from None


class TeardownReason(Enum):
    """Reasons a guild's queue state can be destroyed."""

    STOPPED = "stopped"
    INACTIVITY = "inactivity"
    CONNECTION_LOST = "connection_lost"
    CONNECT_FAILED = "connect_failed"
