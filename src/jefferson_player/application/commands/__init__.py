"""
Application Commands (CQRS Write Side)

Command objects and their handlers for write operations.
Commands represent intent to change the system state.
"""

from jefferson_player.application.commands.enqueue_track import (
    EnqueueQueryCommand,
    EnqueueResult,
    EnqueueStatus,
    EnqueueTrackCommand,
)
from jefferson_player.application.commands.pause_resume import (
    PauseResumeCommand,
    PauseResumeResult,
)
from jefferson_player.application.commands.set_loop import SetLoopCommand, SetLoopResult
from jefferson_player.application.commands.set_volume import SetVolumeCommand, SetVolumeResult
from jefferson_player.application.commands.skip_track import SkipResult, SkipTrackCommand
from jefferson_player.application.commands.stop_playback import StopPlaybackCommand, StopResult

__all__ = [
    # Enqueue
    "EnqueueTrackCommand",
    "EnqueueQueryCommand",
    "EnqueueResult",
    "EnqueueStatus",
    # Skip
    "SkipTrackCommand",
    "SkipResult",
    # Stop
    "StopPlaybackCommand",
    "StopResult",
    # Volume / Loop
    "SetVolumeCommand",
    "SetVolumeResult",
    "SetLoopCommand",
    "SetLoopResult",
    # Pause / Resume
    "PauseResumeCommand",
    "PauseResumeResult",
]
