"""Port interface for turning queries into playable track candidates."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from jefferson_player.domain.shared.types import NonEmptyStr

if TYPE_CHECKING:
    from ...domain.music.entities import TrackDraft


class TrackResolver(ABC):
    """Interface for resolving URLs and search queries to track drafts."""

    @abstractmethod
    async def resolve(self, query: NonEmptyStr) -> list["TrackDraft"]:
        """Resolve a query or URL to zero or more candidates.

        Raises:
            TrackNotFoundError: Nothing matched the query.
            ResolutionError: The backing service failed.
        """
        ...

    @abstractmethod
    async def get_playable_token(self, draft: "TrackDraft") -> str:
        """Return the opaque playable-source token for *draft*.

        Raises:
            UnplayableTrackError: No playable source exists for the draft.
        """
        ...
