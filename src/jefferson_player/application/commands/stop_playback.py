"""Command and handler for stopping playback, clearing the queue and leaving voice."""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict

from jefferson_player.domain.shared.messages import DiscordUIMessages
from jefferson_player.domain.shared.types import DiscordSnowflake

if TYPE_CHECKING:
    from ..services.queue_controller import QueueController


class StopStatus(Enum):
    """Status codes for stop results."""

    SUCCESS = "success"
    NOT_CONNECTED = "not_connected"


class StopPlaybackCommand(BaseModel):
    model_config = ConfigDict(frozen=True)

    guild_id: DiscordSnowflake


class StopResult(BaseModel):
    """Result of a stop command."""

    status: StopStatus
    message: str

    @property
    def is_success(self) -> bool:
        return self.status == StopStatus.SUCCESS

    @classmethod
    def success(cls) -> StopResult:
        return cls(status=StopStatus.SUCCESS, message=DiscordUIMessages.ACTION_STOPPED)

    @classmethod
    def error(cls, status: StopStatus, message: str) -> StopResult:
        return cls(status=status, message=message)


class StopPlaybackHandler:
    """Handles stopping playback and leaving voice."""

    def __init__(self, *, controller: QueueController) -> None:
        self._controller = controller

    async def handle(self, command: StopPlaybackCommand) -> StopResult:
        if not await self._controller.stop(command.guild_id):
            return StopResult.error(
                StopStatus.NOT_CONNECTED, DiscordUIMessages.STATE_NOT_CONNECTED_TO_VOICE
            )
        return StopResult.success()
