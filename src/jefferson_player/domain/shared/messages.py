"""Centralized message constants for error messages, validation, and user feedback."""

from __future__ import annotations


class ErrorMessages:
    """Error messages for exceptions and validation failures."""

    # Track Validation Errors
    EMPTY_TRACK_IDENTITY = "Track identity cannot be empty"
    TRACK_HAS_NO_TOKEN = "Track '{title}' has no playable token"
    DUPLICATE_TRACK = "'{title}' is already in the queue"
    QUEUE_FULL = "Queue is full ({max_size} tracks)"
    TRACK_TOO_LONG = "'{title}' is longer than the {limit} limit"

    # Playback Setting Errors
    INVALID_VOLUME = "Volume must be an integer between 1 and 100, got {value!r}"
    INVALID_LOOP_MODE = "Invalid loop mode {value!r}. Must be one of: off, track, queue"

    # Controller Errors
    NO_VOICE_TARGET = "A voice channel is required to start playback"
    NOTHING_PLAYING = "Nothing is playing in guild {guild_id}"
    NOT_CONNECTED = "Guild {guild_id} has no active voice session"
    QUEUE_NOT_FOUND = "No queue exists for guild {guild_id}"

    # Field Validation Errors
    INVALID_SNOWFLAKE = "Discord snowflake ID must be positive"
    SNOWFLAKE_TOO_LARGE = "Discord snowflake ID exceeds maximum value (2^64)"
    FIELD_CANNOT_BE_EMPTY = "{field_name} cannot be empty"

    # Configuration Errors
    INVALID_LOG_LEVEL = "Invalid log level: {level}. Must be one of {valid_levels}"
    INVALID_HEX_COLOR = "Invalid hex color: {value}"
    NO_LAVALINK_NODES = "At least one Lavalink node must be configured"
    DISCORD_TOKEN_REQUIRED = "DISCORD_TOKEN environment variable is required"

    # Endpoint Errors
    ENDPOINT_NOT_READY = "Lavalink client is not initialised; call attach() first"
    NO_PLAYER = "No player exists for guild {guild_id}"


class LogTemplates:
    """Log message templates for structured logging.

    Use these with logger.info(), logger.error(), etc. and pass values as parameters
    for proper log formatting and structured logging support.
    """

    # Store Lifecycle
    QUEUE_CREATED = "Created queue state for guild %s"
    QUEUE_REMOVED = "Removed queue state for guild %s"

    # Voice/Session Operations
    VOICE_CONNECTING = "Connecting guild %s to voice channel %s (attempt %d/%d)"
    VOICE_CONNECTED = "Connected guild %s to voice channel %s via %s"
    VOICE_CONNECT_FAILED = "Failed to connect guild %s to channel %s: %s"
    VOICE_MOVING = "Guild %s moving from channel %s to %s"
    VOICE_DISCONNECT_FAILED = "Failed to disconnect guild %s: %r"
    VOICE_NO_PERMISSION = "No permission to connect to channel %s"
    VOICE_GUILD_NOT_FOUND = "Guild %s is not visible to the bot"
    VOICE_CHANNEL_NOT_VOICE = "Channel %s in guild %s is not a voice channel"
    VOICE_LEFT = "Left voice in guild %s"

    # Playback Operations
    PLAY_ISSUED = "Issued play for '%s' in guild %s (volume=%d)"
    PLAY_FAILED = "Play command for '%s' failed in guild %s: %s"
    PLAYBACK_PAUSED = "Paused playback in guild %s"
    PLAYBACK_RESUMED = "Resumed playback in guild %s"
    PLAYBACK_STOP_FAILED = "Failed to stop endpoint player in guild %s: %r"
    PLAYBACK_CONTROL_FAILED = "Endpoint refused %s in guild %s: %s"
    VOLUME_CHANGED = "Volume set to %d in guild %s (live=%s)"
    VOLUME_APPLY_FAILED = "Failed to apply live volume in guild %s: %r"
    LOOP_MODE_CHANGED = "Loop mode changed to %s in guild %s"

    # Track Operations
    TRACK_STARTED = "Started playing '%s' in guild %s"
    TRACK_FINISHED = "Track finished: '%s' in guild %s"
    TRACK_SKIPPED = "Skipped track '%s' in guild %s"
    TRACK_FAILED = "Track '%s' failed in guild %s: %s"
    TRACK_DROPPED_AFTER_FAILURES = "Dropping '%s' in guild %s after %d failures"
    TRACK_LOOP_DROPPED = "Queue full in guild %s, dropping looped track '%s'"

    # Queue Operations
    QUEUE_ENQUEUED = "Enqueued track '%s' at position %s in guild %s"
    QUEUE_EXHAUSTED = "Queue exhausted in guild %s, going idle"
    QUEUE_STOPPED = "Stopped playback and cleared queue in guild %s"

    # Event Handling
    EVENT_RECEIVED = "Received %s for guild %s (token=%s)"
    EVENT_UNKNOWN_GUILD = "Ignoring %s for unknown guild %s"
    EVENT_STALE = "Ignoring stale %s in guild %s"
    EVENT_SUPPRESSED = "Suppressed deliberate track end in guild %s"
    EVENT_UNTAGGED_END = "Ignoring track end without a token in guild %s (reason=%s)"
    EVENT_HANDLER_ERROR = "Error handling %s in guild %s"
    EVENT_UNMAPPED = "Ignoring unmapped Lavalink event %s"
    ADVANCE_BUSY = "Advance already in flight for guild %s"

    # Timers
    IDLE_TIMER_STARTED = "Idle timer started for guild %s (%ss)"
    IDLE_TIMEOUT = "Idle timeout reached in guild %s, leaving voice"
    SOCKET_CLOSED = "Voice socket closed in guild %s (code=%s, by_remote=%s)"
    SOCKET_RECOVERED = "Voice session recovered in guild %s"
    SOCKET_GRACE_EXPIRED = "No recovery within %ss for guild %s, tearing down"

    # Teardown
    TEARDOWN_STARTED = "Tearing down guild %s (%s)"
    TEARDOWN_TIMEOUT = "Teardown of guild %s did not finish within %ss"

    # Presentation
    PRESENTATION_FAILED = "Presentation %s failed for guild %s: %r"
    PRESENTATION_NO_CHANNEL = "No text channel to render into for guild %s"

    # Retry
    RETRY_SCHEDULED = "%s failed (attempt %d/%d), retrying in %.2fs: %s"

    # Lavalink Nodes
    LAVALINK_NODE_ADDED = "Registered Lavalink node %s (%s:%s, region=%s)"
    LAVALINK_NODE_PICKED = "Using Lavalink node %s for guild %s (load=%s)"
    LAVALINK_NO_NODES = "No Lavalink nodes available for guild %s"
    LAVALINK_RECOVERED = "Moved guild %s to Lavalink node %s"

    # Application Lifecycle
    BOT_STARTING = "Starting Jefferson player in {environment} mode"
    BOT_CONTAINER_INITIALIZED = "Container initialized successfully"
    BOT_CONTAINER_SHUTDOWN = "Container shutdown complete"
    BOT_SETUP = "Setting up bot"
    BOT_CONTAINER_INIT_FAILED = "Container initialization failed: %s"
    BOT_CONTAINER_SHUTDOWN_ERROR = "Error during container shutdown: %r"
    BOT_READY = "Bot ready as %s (%s)"
    BOT_CONNECTED_GUILDS = "Connected to %d guild(s)"
    BOT_SHUTTING_DOWN = "Shutting down bot"
    BOT_SHUTDOWN_COMPLETE = "Bot shutdown complete"
    BOT_SHUTDOWN_TIMEOUT = "Graceful shutdown did not finish within %ss"
    SETTINGS_INVALID = "Invalid configuration: %s"
    LAVALINK_NODES_CONFIGURED = "%d Lavalink node(s) configured"
    BOT_STOPPED = "Bot stopped"
    BOT_KEYBOARD_INTERRUPT = "Interrupted, shutting down"
    BOT_FATAL_ERROR = "Fatal error: %s"


class DiscordUIMessages:
    """User-facing Discord messages and responses.

    These strings are shown directly to users in Discord interactions.
    Keep them concise, friendly, and include appropriate emoji.
    """

    # Success Messages
    SUCCESS_QUEUED = "✅ Queued **{title}** at position {position}."
    SUCCESS_NOW_PLAYING = "🎵 Now playing **{title}**."
    SUCCESS_PLAYLIST_QUEUED = "✅ Queued {count} tracks ({skipped} skipped)."

    # Error Messages
    ERROR_DUPLICATE = "❌ **{title}** is already in the queue."
    ERROR_NO_VOICE_TARGET = "You need to be in a voice channel first."
    ERROR_UNPLAYABLE = "❌ Couldn't get a playable source for **{title}**."
    ERROR_TRACK_NOT_FOUND = "Couldn't find a track for: {query}"
    ERROR_RESOLUTION_FAILED = "❌ Search failed, try again later."
    ERROR_CONNECT_TIMEOUT = "❌ Timed out joining your voice channel."
    ERROR_NO_AVAILABLE_NODE = "❌ No audio server is available right now."
    ERROR_PERMISSION_DENIED = "❌ I don't have permission to join or speak in that channel."
    ERROR_INVALID_VOLUME = "❌ Volume must be between 1 and 100."
    ERROR_INVALID_LOOP_MODE = "❌ Loop mode must be one of: off, track, queue."
    ERROR_PLAYBACK_FAILED = "⚠️ Couldn't play **{title}**: {detail}"
    ERROR_TRACK_DROPPED = "⚠️ Removed **{title}** from the queue after repeated failures."
    ERROR_PLAYBACK_CONTROL = "❌ Couldn't {action} playback: {detail}"

    # Action Messages
    ACTION_SKIPPED = "⏭️ Skipped: **{track_title}**"
    ACTION_STOPPED = "⏹️ Stopped playback and cleared the queue."
    ACTION_PAUSED = "⏸️ Paused playback."
    ACTION_RESUMED = "▶️ Resumed playback."
    ACTION_VOLUME_SET = "🔊 Volume set to {volume}%."
    ACTION_LOOP_MODE_SET = "🔁 Loop mode set to: {mode}"

    # State Messages
    STATE_NOTHING_PLAYING = "Nothing is playing."
    STATE_NOTHING_PLAYING_OR_PAUSED = "Nothing is playing or already paused."
    STATE_NOTHING_PAUSED = "Nothing is paused."
    STATE_NOT_CONNECTED_TO_VOICE = "Not connected to a voice channel."

    # Embed Titles
    EMBED_NOW_PLAYING = "🎵 Now Playing"
    EMBED_QUEUE_FINISHED = "✅ Queue finished"
    EMBED_PLAYBACK_ERROR = "⚠️ Playback error"

    # Embed Fields
    FIELD_DURATION = "Duration"
    FIELD_REQUESTED_BY = "Requested By"
    FIELD_LOOP = "Loop"
    FIELD_VOLUME = "Volume"
    FIELD_UP_NEXT = "Up Next"


class EmojiConstants:
    """Emoji constants for consistent visual feedback."""

    # Media Controls
    PAUSE = "⏸️"

    # Loop Modes
    LOOP_OFF = "➡️"
    LOOP_TRACK = "🔂"
    LOOP_QUEUE = "🔁"

    # Music/Audio
    SPEAKER = "🔊"
