"""Discord presentation sink: renders playback snapshots as a single embed message."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import discord

from jefferson_player.application.interfaces.presentation_sink import PresentationSink
from jefferson_player.domain.music.value_objects import LoopMode
from jefferson_player.domain.shared.messages import DiscordUIMessages, EmojiConstants, LogTemplates
from jefferson_player.utils.reply import format_requester, truncate

if TYPE_CHECKING:
    from jefferson_player.config.settings import DiscordSettings
    from jefferson_player.domain.music.entities import PlaybackSnapshot

logger = logging.getLogger(__name__)

UP_NEXT_LIMIT = 3

_LOOP_EMOJI: dict[LoopMode, str] = {
    LoopMode.OFF: EmojiConstants.LOOP_OFF,
    LoopMode.TRACK: EmojiConstants.LOOP_TRACK,
    LoopMode.QUEUE: EmojiConstants.LOOP_QUEUE,
}


def build_playback_embed(snapshot: PlaybackSnapshot, *, color: int) -> discord.Embed:
    """Render *snapshot* as a now-playing embed, or a finished notice when idle."""
    track = snapshot.current
    if track is None:
        return discord.Embed(title=DiscordUIMessages.EMBED_QUEUE_FINISHED, color=color)

    title = f"{EmojiConstants.PAUSE} Paused" if snapshot.paused else DiscordUIMessages.EMBED_NOW_PLAYING
    embed = discord.Embed(
        title=title,
        description=f"[{truncate(track.title, 200)}]({track.source_uri})",
        color=color,
    )
    if track.thumbnail_url:
        embed.set_thumbnail(url=track.thumbnail_url)

    embed.add_field(name=DiscordUIMessages.FIELD_DURATION, value=track.duration_formatted, inline=True)
    embed.add_field(
        name=DiscordUIMessages.FIELD_REQUESTED_BY,
        value=format_requester(track.requester_id, track.requester_name),
        inline=True,
    )
    embed.add_field(
        name=DiscordUIMessages.FIELD_LOOP,
        value=f"{_LOOP_EMOJI[snapshot.loop_mode]} {snapshot.loop_mode.value}",
        inline=True,
    )
    embed.add_field(
        name=DiscordUIMessages.FIELD_VOLUME,
        value=f"{EmojiConstants.SPEAKER} {snapshot.volume}%",
        inline=True,
    )

    if snapshot.upcoming:
        lines = [
            f"{index}. {truncate(upcoming.display_title, 70)}"
            for index, upcoming in enumerate(snapshot.upcoming[:UP_NEXT_LIMIT], start=1)
        ]
        hidden = snapshot.queue_length - len(lines)
        if hidden > 0:
            lines.append(f"…and {hidden} more")
        embed.add_field(name=DiscordUIMessages.FIELD_UP_NEXT, value="\n".join(lines), inline=False)

    return embed


class DiscordPresentationSink(PresentationSink):
    """Keeps one now-playing message per guild; the handle is the ``discord.Message``."""

    def __init__(self, bot: discord.Client, settings: DiscordSettings) -> None:
        self._bot = bot
        self._color = settings.embed_color
        self._error_color = settings.error_color

    def _channel(self, channel_id: int | None) -> discord.abc.Messageable | None:
        if channel_id is None:
            return None
        channel = self._bot.get_channel(channel_id)
        if isinstance(channel, discord.abc.Messageable):
            return channel
        return None

    async def show(
        self,
        guild_id: int,
        snapshot: PlaybackSnapshot,
        *,
        channel_id: int | None = None,
    ) -> discord.Message | None:
        channel = self._channel(channel_id)
        if channel is None:
            logger.debug(LogTemplates.PRESENTATION_NO_CHANNEL, guild_id)
            return None
        return await channel.send(embed=build_playback_embed(snapshot, color=self._color))

    async def update(
        self, handle: discord.Message | None, snapshot: PlaybackSnapshot
    ) -> discord.Message | None:
        if handle is None:
            return None
        embed = build_playback_embed(snapshot, color=self._color)
        try:
            return await handle.edit(embed=embed)
        except discord.NotFound:
            # Someone deleted the message; post a fresh one in the same channel.
            return await handle.channel.send(embed=embed)

    async def clear(self, handle: discord.Message | None) -> None:
        if handle is None:
            return
        try:
            await handle.delete()
        except discord.NotFound:
            return

    async def notify_error(
        self,
        guild_id: int,
        message: str,
        *,
        channel_id: int | None = None,
    ) -> None:
        channel = self._channel(channel_id)
        if channel is None:
            logger.debug(LogTemplates.PRESENTATION_NO_CHANNEL, guild_id)
            return
        embed = discord.Embed(
            title=DiscordUIMessages.EMBED_PLAYBACK_ERROR,
            description=message,
            color=self._error_color,
        )
        await channel.send(embed=embed)
