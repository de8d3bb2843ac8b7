"""Commands and handler for pausing and resuming the current track."""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict

from jefferson_player.domain.shared.exceptions import PlaybackRejectedError
from jefferson_player.domain.shared.messages import DiscordUIMessages
from jefferson_player.domain.shared.types import DiscordSnowflake

if TYPE_CHECKING:
    from ..services.queue_controller import QueueController


class PauseResumeStatus(Enum):
    SUCCESS = "success"
    NOTHING_PLAYING = "nothing_playing"
    NOTHING_PAUSED = "nothing_paused"
    FAILED = "failed"


class PauseResumeCommand(BaseModel):
    model_config = ConfigDict(frozen=True)

    guild_id: DiscordSnowflake
    pause: bool = True


class PauseResumeResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: PauseResumeStatus
    message: str

    @property
    def is_success(self) -> bool:
        return self.status == PauseResumeStatus.SUCCESS


class PauseResumeHandler:
    def __init__(self, *, controller: QueueController) -> None:
        self._controller = controller

    async def handle(self, command: PauseResumeCommand) -> PauseResumeResult:
        action = "pause" if command.pause else "resume"
        try:
            if command.pause:
                changed = await self._controller.pause(command.guild_id)
            else:
                changed = await self._controller.resume(command.guild_id)
        except PlaybackRejectedError as exc:
            return PauseResumeResult(
                status=PauseResumeStatus.FAILED,
                message=DiscordUIMessages.ERROR_PLAYBACK_CONTROL.format(
                    action=action, detail=exc.message
                ),
            )

        if command.pause:
            if changed:
                return PauseResumeResult(
                    status=PauseResumeStatus.SUCCESS, message=DiscordUIMessages.ACTION_PAUSED
                )
            return PauseResumeResult(
                status=PauseResumeStatus.NOTHING_PLAYING,
                message=DiscordUIMessages.STATE_NOTHING_PLAYING_OR_PAUSED,
            )

        if changed:
            return PauseResumeResult(
                status=PauseResumeStatus.SUCCESS, message=DiscordUIMessages.ACTION_RESUMED
            )
        return PauseResumeResult(
            status=PauseResumeStatus.NOTHING_PAUSED, message=DiscordUIMessages.STATE_NOTHING_PAUSED
        )
