"""
Unit Tests for Application Settings Configuration

Tests for:
- Default values of every settings group
- Loading settings from environment variables (nested with ``__``)
- Custom validators (colors, snowflakes, Lavalink nodes, log level)
- Settings caching and clearing
"""

import pytest
from pydantic import SecretStr, ValidationError

from jefferson_player.config.settings import (
    DiscordSettings,
    LavalinkNodeSettings,
    LavalinkSettings,
    MusicSettings,
    RetrySettings,
    Settings,
    TimeoutSettings,
    clear_settings_cache,
    get_settings,
)

# =============================================================================
# DiscordSettings Tests
# =============================================================================


class TestDiscordSettings:
    """Unit tests for DiscordSettings configuration."""

    def test_create_with_defaults(self):
        discord = DiscordSettings()

        assert discord.token.get_secret_value() == ""
        assert discord.guild_ids == ()
        assert discord.embed_color == 0x1DB954
        assert discord.self_deaf is True

    def test_token_aliases(self):
        """Should accept token under its aliases."""
        assert DiscordSettings(bot_token=SecretStr("a")).token.get_secret_value() == "a"
        assert DiscordSettings(discord_token=SecretStr("b")).token.get_secret_value() == "b"

    def test_token_is_hidden_in_repr(self):
        discord = DiscordSettings(token=SecretStr("my-secret-token"))

        assert "my-secret-token" not in repr(discord)

    @pytest.mark.parametrize("value", ["#FF0000", "0xFF0000", "ff0000", 0xFF0000])
    def test_color_formats(self, value):
        assert DiscordSettings(embed_color=value).embed_color == 0xFF0000

    def test_invalid_color(self):
        with pytest.raises(ValidationError, match="Invalid hex color"):
            DiscordSettings(error_color="not-a-color")

    def test_guild_ids_list_becomes_tuple(self):
        discord = DiscordSettings(guild_ids=[111111111111111111, 222222222222222222])

        assert discord.guild_ids == (111111111111111111, 222222222222222222)

    def test_invalid_guild_id(self):
        with pytest.raises(ValidationError, match="must be positive"):
            DiscordSettings(guild_ids=(0,))

    def test_frozen(self):
        discord = DiscordSettings()

        with pytest.raises(ValidationError):
            discord.self_deaf = False


# =============================================================================
# LavalinkSettings Tests
# =============================================================================


class TestLavalinkSettings:
    """Unit tests for Lavalink node configuration."""

    def test_default_node(self):
        lavalink = LavalinkSettings()

        assert len(lavalink.nodes) == 1
        node = lavalink.nodes[0]
        assert (node.host, node.port, node.name) == ("127.0.0.1", 2333, "default")
        assert node.password.get_secret_value() == "youshallnotpass"
        assert node.ssl is False

    def test_nodes_from_dicts(self):
        lavalink = LavalinkSettings(
            nodes=[
                {"name": "eu", "host": "eu.example.com", "port": 443, "https": True},
                {"name": "us", "host": "us.example.com"},
            ]
        )

        assert [n.name for n in lavalink.nodes] == ["eu", "us"]
        assert lavalink.nodes[0].ssl is True
        assert isinstance(lavalink.nodes[1], LavalinkNodeSettings)

    def test_empty_nodes_rejected(self):
        with pytest.raises(ValidationError, match="At least one Lavalink node"):
            LavalinkSettings(nodes=[])

    def test_blank_host_rejected(self):
        with pytest.raises(ValidationError, match="cannot be empty"):
            LavalinkNodeSettings(host="  ")

    def test_port_range(self):
        with pytest.raises(ValidationError):
            LavalinkNodeSettings(port=70000)


# =============================================================================
# Music / Timeout / Retry Settings Tests
# =============================================================================


class TestMusicSettings:
    def test_defaults(self):
        music = MusicSettings()

        assert music.max_queue_size == 100
        assert music.default_volume == 50
        assert music.leave_timeout_seconds == 300.0
        assert music.stay_in_channel is False
        assert music.allow_duplicates is False
        assert music.max_track_failures == 3
        assert music.max_track_length_ms == 180 * 60_000

    def test_unlimited_track_length(self):
        assert MusicSettings(max_track_length_minutes=None).max_track_length_ms is None

    @pytest.mark.parametrize("volume", [0, 101])
    def test_default_volume_range(self, volume):
        with pytest.raises(ValidationError):
            MusicSettings(default_volume=volume)

    def test_queue_size_must_be_positive(self):
        with pytest.raises(ValidationError):
            MusicSettings(max_queue_size=0)


class TestTimeoutAndRetrySettings:
    def test_timeout_defaults(self):
        timeouts = TimeoutSettings()

        assert timeouts.connect == 20.0
        assert timeouts.play_ack == 10.0
        assert timeouts.socket_grace == 5.0
        assert timeouts.teardown == 5.0

    def test_connect_timeout_must_be_positive(self):
        with pytest.raises(ValidationError):
            TimeoutSettings(connect=0.0)

    def test_retry_defaults(self):
        retry = RetrySettings()

        assert retry.max_attempts == 2
        assert retry.backoff_seconds == 0.5

    def test_retry_attempts_bounded(self):
        with pytest.raises(ValidationError):
            RetrySettings(max_attempts=0)


# =============================================================================
# Settings Tests
# =============================================================================


class TestSettings:
    """Unit tests for the top-level Settings container."""

    def test_create_with_defaults(self):
        settings = Settings()

        assert settings.environment == "development"
        assert settings.debug is False
        assert settings.log_level == "INFO"
        assert isinstance(settings.discord, DiscordSettings)
        assert isinstance(settings.lavalink, LavalinkSettings)
        assert isinstance(settings.music, MusicSettings)
        assert isinstance(settings.timeouts, TimeoutSettings)
        assert isinstance(settings.retry, RetrySettings)

    def test_load_from_environment_variables(self, monkeypatch):
        monkeypatch.setenv("ENVIRONMENT", "production")
        monkeypatch.setenv("DEBUG", "true")
        monkeypatch.setenv("LOG_LEVEL", "WARNING")

        settings = Settings()

        assert settings.environment == "production"
        assert settings.debug is True
        assert settings.log_level == "WARNING"

    def test_load_nested_settings_from_env(self, monkeypatch):
        """Should load nested settings using env_nested_delimiter."""
        monkeypatch.setenv("DISCORD__TOKEN", "env-token")
        monkeypatch.setenv("MUSIC__MAX_QUEUE_SIZE", "25")
        monkeypatch.setenv("TIMEOUTS__CONNECT", "7.5")
        monkeypatch.setenv("RETRY__MAX_ATTEMPTS", "3")

        settings = Settings()

        assert settings.discord.token.get_secret_value() == "env-token"
        assert settings.music.max_queue_size == 25
        assert settings.timeouts.connect == 7.5
        assert settings.retry.max_attempts == 3

    def test_log_level_is_normalized(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "debug")

        assert Settings().log_level == "DEBUG"

    def test_invalid_log_level(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "INVALID")

        with pytest.raises(ValidationError, match="Invalid log level"):
            Settings()

    def test_environment_validation(self, monkeypatch):
        monkeypatch.setenv("ENVIRONMENT", "invalid")

        with pytest.raises(ValidationError, match="Input should be"):
            Settings()


class TestSettingsCaching:
    """Unit tests for settings caching mechanism."""

    def test_get_settings_returns_cached_instance(self, monkeypatch):
        clear_settings_cache()
        monkeypatch.setenv("ENVIRONMENT", "test")

        assert get_settings() is get_settings()

    def test_clear_settings_cache(self, monkeypatch):
        clear_settings_cache()
        monkeypatch.setenv("ENVIRONMENT", "test")
        settings1 = get_settings()

        clear_settings_cache()
        monkeypatch.setenv("ENVIRONMENT", "production")
        settings2 = get_settings()

        assert settings1 is not settings2
        assert settings2.environment == "production"
        clear_settings_cache()
