"""
Skip Track Command

Command and handler for skipping the current track.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from jefferson_player.domain.shared.messages import DiscordUIMessages

if TYPE_CHECKING:
    from ...domain.music.entities import Track
    from ..services.queue_controller import QueueController


class SkipStatus(Enum):
    """Status codes for skip results."""

    SUCCESS = "success"
    NOTHING_PLAYING = "nothing_playing"


@dataclass(frozen=True)
class SkipTrackCommand:
    """Command to skip the current track."""

    guild_id: int

    def __post_init__(self) -> None:
        if self.guild_id <= 0:
            raise ValueError("Guild ID must be positive")


@dataclass
class SkipResult:
    """Result of a skip track command."""

    status: SkipStatus
    message: str
    skipped_track: Track | None = None

    @property
    def is_success(self) -> bool:
        return self.status == SkipStatus.SUCCESS

    @classmethod
    def success(cls, skipped_track: Track) -> SkipResult:
        return cls(
            status=SkipStatus.SUCCESS,
            message=DiscordUIMessages.ACTION_SKIPPED.format(track_title=skipped_track.title),
            skipped_track=skipped_track,
        )

    @classmethod
    def error(cls, status: SkipStatus, message: str) -> SkipResult:
        return cls(status=status, message=message)


class SkipTrackHandler:
    """Handler for SkipTrackCommand.

    The controller discards the current track exactly once and starts the
    next one before this returns.
    """

    def __init__(self, controller: QueueController) -> None:
        self._controller = controller

    async def handle(self, command: SkipTrackCommand) -> SkipResult:
        skipped = await self._controller.skip(command.guild_id)
        if skipped is None:
            return SkipResult.error(SkipStatus.NOTHING_PLAYING, DiscordUIMessages.STATE_NOTHING_PLAYING)
        return SkipResult.success(skipped)
