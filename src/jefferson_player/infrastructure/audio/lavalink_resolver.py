"""Track resolver that searches through the Lavalink node's source managers."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import aiohttp
import lavalink

from ...application.interfaces.track_resolver import TrackResolver
from ...domain.music.entities import TrackDraft
from ...domain.shared.exceptions import ResolutionError, TrackNotFoundError, UnplayableTrackError
from ...utils.reply import is_url, truncate

if TYPE_CHECKING:
    from ...config.settings import LavalinkSettings
    from .lavalink_endpoint import LavalinkEndpoint

logger = logging.getLogger(__name__)

_PLAYLIST_LOAD_TYPES = frozenset({"playlist", "playlist_loaded"})
_ERROR_LOAD_TYPES = frozenset({"error", "load_failed"})


def _load_type(result: Any) -> str:
    raw = getattr(result, "load_type", "")
    return str(getattr(raw, "value", raw)).lower()


class LavalinkTrackResolver(TrackResolver):
    """Resolves URLs directly and free text through the configured search prefixes.

    Encoded tracks seen during ``resolve`` are remembered by source URI so
    ``get_playable_token`` normally needs no second lookup.
    """

    def __init__(self, endpoint: LavalinkEndpoint, settings: LavalinkSettings) -> None:
        self._endpoint = endpoint
        self._prefixes = settings.search_prefixes
        self._tokens: dict[str, str] = {}

    async def resolve(self, query: str) -> list[TrackDraft]:
        query = query.strip()
        candidates = [query] if is_url(query) else [f"{prefix}:{query}" for prefix in self._prefixes]

        for candidate in candidates:
            result = await self._load(candidate)
            tracks = list(getattr(result, "tracks", None) or [])
            if not tracks:
                continue
            if _load_type(result) not in _PLAYLIST_LOAD_TYPES:
                tracks = tracks[:1]
            logger.debug("Resolved %r to %d track(s)", truncate(candidate, 60), len(tracks))
            return [self._to_draft(track) for track in tracks]

        raise TrackNotFoundError(query)

    async def get_playable_token(self, draft: TrackDraft) -> str:
        token = self._tokens.get(draft.source_uri)
        if token:
            return token

        result = await self._load(draft.source_uri)
        tracks = list(getattr(result, "tracks", None) or [])
        token = _token_of(tracks[0]) if tracks else None
        if not token:
            raise UnplayableTrackError(draft.title)
        self._tokens[draft.source_uri] = token
        return token

    async def _load(self, query: str) -> Any:
        try:
            result = await self._endpoint.client.get_tracks(query)
        except (lavalink.ClientError, aiohttp.ClientError) as exc:
            raise ResolutionError(f"Lookup failed for '{truncate(query, 60)}': {exc}") from exc
        if _load_type(result) in _ERROR_LOAD_TYPES:
            raise ResolutionError(f"Lavalink could not load '{truncate(query, 60)}'")
        return result

    def _to_draft(self, track: Any) -> TrackDraft:
        source_uri = getattr(track, "uri", None) or getattr(track, "identifier", "")
        token = _token_of(track)
        if token:
            self._tokens[source_uri] = token

        source_name = getattr(track, "source_name", None) or "lavalink"
        identifier = getattr(track, "identifier", None)
        return TrackDraft(
            title=truncate(getattr(track, "title", None) or source_uri, 500),
            source_uri=source_uri,
            duration_ms=None if getattr(track, "stream", False) else int(getattr(track, "duration", 0)),
            thumbnail_url=getattr(track, "artwork_url", None),
            catalog_id=f"{source_name}:{identifier}" if identifier else None,
            origin=source_name,
        )


def _token_of(track: Any) -> str | None:
    return getattr(track, "track", None) or None
