"""Application Settings and Configuration

Pydantic-based settings management using environment variables.
Settings are loaded from environment variables with support for .env files,
type validation, and sensible defaults. All settings are frozen and immutable
after initialization.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import AliasChoices, BaseModel, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..domain.shared.messages import ErrorMessages
from ..domain.shared.validators import (
    parse_hex_color,
    validate_discord_snowflake,
    validate_non_empty_string,
)


class DiscordSettings(BaseModel):
    """Discord bot configuration."""

    model_config = SettingsConfigDict(frozen=True, strict=True, populate_by_name=True)

    token: SecretStr = Field(
        default=SecretStr(""), validation_alias=AliasChoices("token", "bot_token", "discord_token")
    )
    guild_ids: tuple[int, ...] = Field(
        default_factory=tuple, validation_alias=AliasChoices("guild_ids", "guilds")
    )
    embed_color: int = Field(default=0x1DB954, validation_alias=AliasChoices("embed_color", "color"))
    error_color: int = 0xE74C3C
    self_deaf: bool = True

    @field_validator("guild_ids", mode="before")
    @classmethod
    def validate_snowflake_ids(cls, v: tuple[int, ...] | list[int]) -> tuple[int, ...]:
        """Validate Discord snowflake IDs and convert lists to tuples."""
        if isinstance(v, list):
            v = tuple(v)
        for snowflake in v:
            validate_discord_snowflake(snowflake)
        return v

    @field_validator("embed_color", "error_color", mode="before")
    @classmethod
    def validate_color(cls, v: int | str) -> int:
        return parse_hex_color(v)


class LavalinkNodeSettings(BaseModel):
    """A single Lavalink audio node."""

    model_config = SettingsConfigDict(frozen=True, strict=True, populate_by_name=True)

    name: str = "default"
    host: str = "127.0.0.1"
    port: int = Field(default=2333, ge=1, le=65535)
    password: SecretStr = SecretStr("youshallnotpass")
    region: str = "auto"
    ssl: bool = Field(default=False, validation_alias=AliasChoices("ssl", "https"))

    @field_validator("name", "host")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        return validate_non_empty_string(v, "name/host")


class LavalinkSettings(BaseModel):
    """Lavalink client configuration."""

    model_config = SettingsConfigDict(frozen=True, strict=True)

    nodes: tuple[LavalinkNodeSettings, ...] = Field(
        default_factory=lambda: (LavalinkNodeSettings(),)
    )
    search_prefixes: tuple[str, ...] = ("ytsearch", "scsearch")

    @field_validator("nodes", mode="before")
    @classmethod
    def validate_nodes(
        cls, v: tuple[LavalinkNodeSettings | dict, ...] | list[LavalinkNodeSettings | dict]
    ) -> tuple[LavalinkNodeSettings, ...]:
        """Accept node dicts (from a JSON env var) and convert lists to tuples."""
        nodes = tuple(
            node if isinstance(node, LavalinkNodeSettings) else LavalinkNodeSettings.model_validate(node)
            for node in v
        )
        if not nodes:
            raise ValueError(ErrorMessages.NO_LAVALINK_NODES)
        return nodes

    @field_validator("search_prefixes", mode="before")
    @classmethod
    def validate_prefixes(cls, v: tuple[str, ...] | list[str]) -> tuple[str, ...]:
        return tuple(v)


class MusicSettings(BaseModel):
    """Queue and playback policy."""

    model_config = SettingsConfigDict(frozen=True, strict=True)

    max_queue_size: int = Field(default=100, ge=1, le=1000)
    default_volume: int = Field(default=50, ge=1, le=100)
    leave_timeout_seconds: float = Field(default=300.0, ge=0.0)
    stay_in_channel: bool = False
    max_track_length_minutes: int | None = Field(default=180, ge=1)
    allow_duplicates: bool = False
    max_track_failures: int = Field(default=3, ge=1)
    enqueue_playlists: bool = True

    @property
    def max_track_length_ms(self) -> int | None:
        if self.max_track_length_minutes is None:
            return None
        return self.max_track_length_minutes * 60_000


class TimeoutSettings(BaseModel):
    """Bounds on every suspension point of the queue controller, in seconds."""

    model_config = SettingsConfigDict(frozen=True, strict=True)

    connect: float = Field(default=20.0, gt=0.0)
    play_ack: float = Field(default=10.0, gt=0.0)
    socket_grace: float = Field(default=5.0, ge=0.0)
    teardown: float = Field(default=5.0, gt=0.0)


class RetrySettings(BaseModel):
    """Retry policy for endpoint commands."""

    model_config = SettingsConfigDict(frozen=True, strict=True)

    max_attempts: int = Field(default=2, ge=1, le=5)
    backoff_seconds: float = Field(default=0.5, ge=0.0)
    backoff_multiplier: float = Field(default=2.0, ge=1.0)


class Settings(BaseSettings):
    """Application settings container.

    Automatically loads configuration from environment variables.

    Environment variable naming:
    - ENVIRONMENT, DEBUG, LOG_LEVEL (top-level)
    - DISCORD__TOKEN, DISCORD__EMBED_COLOR, etc. (nested with ``__``)
    - MUSIC__MAX_QUEUE_SIZE, TIMEOUTS__CONNECT, RETRY__MAX_ATTEMPTS
    - LAVALINK__NODES as a JSON array of node objects
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
        strict=True,
    )

    environment: Literal["development", "production", "test"] = "development"
    debug: bool = False
    log_level: str = "INFO"

    discord: DiscordSettings = Field(default_factory=DiscordSettings)
    lavalink: LavalinkSettings = Field(default_factory=LavalinkSettings)
    music: MusicSettings = Field(default_factory=MusicSettings)
    timeouts: TimeoutSettings = Field(default_factory=TimeoutSettings)
    retry: RetrySettings = Field(default_factory=RetrySettings)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(
                ErrorMessages.INVALID_LOG_LEVEL.format(level=v, valid_levels=valid_levels)
            )
        return v_upper


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached application settings.

    Settings are automatically loaded from:
    1. .env file (if present)
    2. Environment variables
    3. Default values
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache (useful for testing)."""
    get_settings.cache_clear()
