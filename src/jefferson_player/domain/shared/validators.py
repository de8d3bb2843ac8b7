"""Shared validators for settings and domain models.

This module provides reusable validators for common validation patterns,
particularly for Discord-specific data types like snowflake IDs.
"""

import re

from jefferson_player.domain.shared.messages import ErrorMessages

_HEX_COLOR = re.compile(r"^(?:#|0x)?([0-9a-fA-F]{6})$")


def validate_discord_snowflake(value: int) -> int:
    """Validate a Discord snowflake ID.

    Discord snowflake IDs are 64-bit unsigned integers representing unique
    identifiers for users, guilds, channels, messages, etc.

    Args:
        value: The snowflake ID to validate.

    Returns:
        The validated snowflake ID.

    Raises:
        ValueError: If the snowflake ID is invalid.
    """
    if value <= 0:
        raise ValueError(ErrorMessages.INVALID_SNOWFLAKE)
    if value >= 2**64:
        raise ValueError(ErrorMessages.SNOWFLAKE_TOO_LARGE)
    return value


def validate_non_empty_string(value: str, field_name: str = "value") -> str:
    """Validate that a string is not empty or whitespace-only.

    Args:
        value: The string to validate.
        field_name: Name of the field for error messages.

    Returns:
        The validated string.

    Raises:
        ValueError: If the string is empty or whitespace-only.
    """
    if not value or not value.strip():
        raise ValueError(ErrorMessages.FIELD_CANNOT_BE_EMPTY.format(field_name=field_name))
    return value


def parse_hex_color(value: int | str) -> int:
    """Parse an embed color into an RGB integer.

    Accepts ``"#1DB954"``, ``"0x1DB954"``, ``"1DB954"`` or an int.

    Args:
        value: The color as a hex string or an integer.

    Returns:
        The color as an integer in 0..0xFFFFFF.

    Raises:
        ValueError: If the value is not a six-digit hex color.
    """
    if isinstance(value, int):
        if not 0 <= value <= 0xFFFFFF:
            raise ValueError(ErrorMessages.INVALID_HEX_COLOR.format(value=value))
        return value
    match = _HEX_COLOR.match(value.strip())
    if match is None:
        raise ValueError(ErrorMessages.INVALID_HEX_COLOR.format(value=value))
    return int(match.group(1), 16)
