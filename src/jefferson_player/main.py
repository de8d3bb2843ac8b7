#!/usr/bin/env python3
"""Main entry point for the Jefferson player bot."""

from __future__ import annotations

import logging
import sys

from pydantic import ValidationError

from jefferson_player.domain.shared.messages import ErrorMessages, LogTemplates
from jefferson_player.utils.logging import setup_logging

logger = logging.getLogger(__name__)


def main() -> int:
    from jefferson_player.config.settings import get_settings

    try:
        settings = get_settings()
    except ValidationError as exc:
        setup_logging()
        logger.error(LogTemplates.SETTINGS_INVALID, exc)
        return 1
    setup_logging(settings.log_level)

    token_value = settings.discord.token.get_secret_value()
    if not token_value:
        logger.error(ErrorMessages.DISCORD_TOKEN_REQUIRED)
        return 1

    logger.info(LogTemplates.BOT_STARTING.format(environment=settings.environment))
    logger.info(LogTemplates.LAVALINK_NODES_CONFIGURED, len(settings.lavalink.nodes))

    from jefferson_player.config.container import create_container
    from jefferson_player.infrastructure.discord.bot import create_bot

    bot = create_bot(create_container(settings), settings)

    try:
        bot.run_with_graceful_shutdown(token_value)
    except KeyboardInterrupt:
        logger.info(LogTemplates.BOT_KEYBOARD_INTERRUPT)
    except Exception as e:
        logger.exception(LogTemplates.BOT_FATAL_ERROR, e)
        return 1

    logger.info(LogTemplates.BOT_STOPPED)
    return 0


def cli() -> None:
    """Console script entry point (used by pyproject.toml [project.scripts])."""
    sys.exit(main())


if __name__ == "__main__":
    cli()  # pragma: no cover
