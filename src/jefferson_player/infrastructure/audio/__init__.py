"""Audio infrastructure - Lavalink endpoint and track resolver."""

from jefferson_player.infrastructure.audio.lavalink_endpoint import LavalinkEndpoint
from jefferson_player.infrastructure.audio.lavalink_resolver import LavalinkTrackResolver

__all__ = [
    "LavalinkEndpoint",
    "LavalinkTrackResolver",
]
