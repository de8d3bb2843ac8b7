"""Query for retrieving one page of a guild's queue."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field

from jefferson_player.domain.music.entities import Track, format_duration_ms
from jefferson_player.domain.music.value_objects import LoopMode
from jefferson_player.domain.shared.types import DiscordSnowflake, NonNegativeInt, PositiveInt
from jefferson_player.utils.reply import paginate

if TYPE_CHECKING:
    from ..services.queue_controller import QueueController

DEFAULT_PAGE_SIZE = 10


class GetQueueQuery(BaseModel):
    model_config = ConfigDict(frozen=True)

    guild_id: DiscordSnowflake
    page: PositiveInt = 1
    per_page: PositiveInt = DEFAULT_PAGE_SIZE


class QueueInfo(BaseModel):
    """One page of a guild queue plus the now-playing track."""

    guild_id: DiscordSnowflake
    tracks: list[Track] = Field(default_factory=list)
    current_track: Track | None = None
    total_tracks: NonNegativeInt = 0
    total_duration_ms: NonNegativeInt = 0
    page: PositiveInt = 1
    total_pages: PositiveInt = 1
    start_index: NonNegativeInt = 0
    loop_mode: LoopMode = LoopMode.OFF
    volume: int | None = None
    paused: bool = False

    @property
    def is_empty(self) -> bool:
        return self.total_tracks == 0 and self.current_track is None

    @property
    def total_duration_formatted(self) -> str:
        return format_duration_ms(self.total_duration_ms)


class GetQueueHandler:
    """Handles queue page queries."""

    def __init__(self, *, controller: QueueController) -> None:
        self._controller = controller

    async def handle(self, query: GetQueueQuery) -> QueueInfo:
        state = await self._controller.get_state(query.guild_id)
        if state is None or state.destroyed:
            return QueueInfo(guild_id=query.guild_id)

        pending = list(state.pending)
        page, total_pages, start = paginate(len(pending), query.page, query.per_page)
        # Live streams have no duration and are left out of the total.
        total_duration = sum(t.duration_ms for t in pending if t.duration_ms is not None)

        return QueueInfo(
            guild_id=query.guild_id,
            tracks=pending[start : start + query.per_page],
            current_track=state.current,
            total_tracks=len(pending),
            total_duration_ms=total_duration,
            page=page,
            total_pages=total_pages,
            start_index=start,
            loop_mode=state.loop_mode,
            volume=state.volume,
            paused=state.is_paused,
        )
