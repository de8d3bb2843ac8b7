"""Command and handler for changing a guild's loop mode."""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict

from jefferson_player.domain.music.value_objects import LoopMode
from jefferson_player.domain.shared.exceptions import EntityNotFoundError
from jefferson_player.domain.shared.messages import DiscordUIMessages
from jefferson_player.domain.shared.types import DiscordSnowflake

if TYPE_CHECKING:
    from ..services.queue_controller import QueueController


class SetLoopStatus(Enum):
    SUCCESS = "success"
    INVALID_LOOP_MODE = "invalid_loop_mode"
    NOT_CONNECTED = "not_connected"


class SetLoopCommand(BaseModel):
    model_config = ConfigDict(frozen=True)

    guild_id: DiscordSnowflake
    mode: LoopMode | str


class SetLoopResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: SetLoopStatus
    message: str
    mode: LoopMode | None = None

    @property
    def is_success(self) -> bool:
        return self.status == SetLoopStatus.SUCCESS

    @classmethod
    def success(cls, mode: LoopMode) -> SetLoopResult:
        return cls(
            status=SetLoopStatus.SUCCESS,
            message=DiscordUIMessages.ACTION_LOOP_MODE_SET.format(mode=mode.value),
            mode=mode,
        )

    @classmethod
    def error(cls, status: SetLoopStatus, message: str) -> SetLoopResult:
        return cls(status=status, message=message)


class SetLoopHandler:
    def __init__(self, *, controller: QueueController) -> None:
        self._controller = controller

    async def handle(self, command: SetLoopCommand) -> SetLoopResult:
        try:
            mode = await self._controller.set_loop(command.guild_id, command.mode)
        except EntityNotFoundError:
            return SetLoopResult.error(
                SetLoopStatus.NOT_CONNECTED, DiscordUIMessages.STATE_NOT_CONNECTED_TO_VOICE
            )
        except ValueError:
            return SetLoopResult.error(
                SetLoopStatus.INVALID_LOOP_MODE, DiscordUIMessages.ERROR_INVALID_LOOP_MODE
            )
        return SetLoopResult.success(mode)
