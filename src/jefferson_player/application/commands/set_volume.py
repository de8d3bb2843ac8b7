"""Command and handler for changing a guild's playback volume."""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict

from jefferson_player.domain.shared.exceptions import EntityNotFoundError, ValidationError
from jefferson_player.domain.shared.messages import DiscordUIMessages
from jefferson_player.domain.shared.types import DiscordSnowflake

if TYPE_CHECKING:
    from ..services.queue_controller import QueueController


class SetVolumeStatus(Enum):
    SUCCESS = "success"
    INVALID_VOLUME = "invalid_volume"
    NOT_CONNECTED = "not_connected"


class SetVolumeCommand(BaseModel):
    """Volume is range-checked by the controller so the caller gets a typed result."""

    model_config = ConfigDict(frozen=True)

    guild_id: DiscordSnowflake
    volume: int


class SetVolumeResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: SetVolumeStatus
    message: str
    volume: int | None = None
    applied_live: bool = False

    @property
    def is_success(self) -> bool:
        return self.status == SetVolumeStatus.SUCCESS

    @classmethod
    def success(cls, volume: int, *, applied_live: bool) -> SetVolumeResult:
        return cls(
            status=SetVolumeStatus.SUCCESS,
            message=DiscordUIMessages.ACTION_VOLUME_SET.format(volume=volume),
            volume=volume,
            applied_live=applied_live,
        )

    @classmethod
    def error(cls, status: SetVolumeStatus, message: str) -> SetVolumeResult:
        return cls(status=status, message=message)


class SetVolumeHandler:
    def __init__(self, *, controller: QueueController) -> None:
        self._controller = controller

    async def handle(self, command: SetVolumeCommand) -> SetVolumeResult:
        try:
            live = await self._controller.set_volume(command.guild_id, command.volume)
        except ValidationError:
            return SetVolumeResult.error(
                SetVolumeStatus.INVALID_VOLUME, DiscordUIMessages.ERROR_INVALID_VOLUME
            )
        except EntityNotFoundError:
            return SetVolumeResult.error(
                SetVolumeStatus.NOT_CONNECTED, DiscordUIMessages.STATE_NOT_CONNECTED_TO_VOICE
            )
        return SetVolumeResult.success(command.volume, applied_live=live)
