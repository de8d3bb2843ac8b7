from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio

USER_ID = 444444444444444444


# ============================================================================
# Settings Fixtures
# ============================================================================


@pytest.fixture
def music_settings():
    """Music settings with a short idle timeout."""
    from jefferson_player.config.settings import MusicSettings

    return MusicSettings(max_queue_size=10, leave_timeout_seconds=60.0)


@pytest.fixture
def timeout_settings():
    """Timeouts small enough to exercise expiry in tests."""
    from jefferson_player.config.settings import TimeoutSettings

    return TimeoutSettings(connect=0.2, play_ack=0.2, socket_grace=0.05, teardown=0.5)


@pytest.fixture
def retry_settings():
    """One retry, no backoff."""
    from jefferson_player.config.settings import RetrySettings

    return RetrySettings(max_attempts=2, backoff_seconds=0.0)


# ============================================================================
# External Port Fakes
# ============================================================================


@pytest.fixture
def endpoint():
    """Audio endpoint mock whose connect returns a real handle."""
    from jefferson_player.application.interfaces.audio_endpoint import AudioEndpoint
    from jefferson_player.domain.music.value_objects import ConnectionHandle

    mock = MagicMock(spec=AudioEndpoint)
    mock.supports_live_volume = True
    mock.connect = AsyncMock(
        side_effect=lambda guild_id, channel_id, session: ConnectionHandle(
            guild_id=guild_id, channel_id=channel_id, node_name="node-1"
        )
    )
    mock.recover = AsyncMock(side_effect=lambda handle: handle)
    return mock


@pytest.fixture
def voice_gateway():
    """Voice gateway mock returning a bare session."""
    from jefferson_player.application.interfaces.voice_gateway import VoiceGateway
    from jefferson_player.domain.music.value_objects import VoiceSession

    mock = MagicMock(spec=VoiceGateway)
    mock.join = AsyncMock(
        side_effect=lambda guild_id, channel_id: VoiceSession(guild_id=guild_id, channel_id=channel_id)
    )
    mock.leave = AsyncMock()
    return mock


@pytest.fixture
def presentation():
    """Presentation sink mock; ``update`` keeps the handle it was given."""
    from jefferson_player.application.interfaces.presentation_sink import PresentationSink

    mock = MagicMock(spec=PresentationSink)
    mock.show = AsyncMock(return_value="now-playing-message")
    mock.update = AsyncMock(side_effect=lambda handle, snapshot: handle)
    mock.clear = AsyncMock()
    mock.notify_error = AsyncMock()
    return mock


@pytest.fixture
def queue_store():
    from jefferson_player.infrastructure.persistence.memory_store import InMemoryQueueStore

    return InMemoryQueueStore()


@pytest_asyncio.fixture
async def controller(
    queue_store,
    endpoint,
    voice_gateway,
    presentation,
    music_settings,
    timeout_settings,
    retry_settings,
):
    """Queue controller wired to mocks; every guild is torn down afterwards."""
    from jefferson_player.application.services.queue_controller import QueueController

    ctrl = QueueController(
        store=queue_store,
        endpoint=endpoint,
        voice_gateway=voice_gateway,
        presentation=presentation,
        music=music_settings,
        timeouts=timeout_settings,
        retry=retry_settings,
    )
    yield ctrl
    await ctrl.shutdown()


# ============================================================================
# Domain Entity Fixtures
# ============================================================================


@pytest.fixture
def make_track():
    """Factory for playable tracks keyed by a short name."""
    from jefferson_player.domain.music.entities import Track

    def _make(name: str = "a", **overrides):
        fields = {
            "title": f"Track {name.upper()}",
            "source_uri": f"https://www.youtube.com/watch?v={name}",
            "requester_id": USER_ID,
            "token": f"token-{name}",
            "duration_ms": 180_000,
            "origin": "youtube",
        }
        fields.update(overrides)
        return Track(**fields)

    return _make


@pytest.fixture
def sample_track(make_track):
    return make_track("a")


@pytest.fixture
def sample_draft():
    from jefferson_player.domain.music.entities import TrackDraft

    return TrackDraft(
        title="Test Track",
        source_uri="https://www.youtube.com/watch?v=test123",
        duration_ms=210_000,
        thumbnail_url="https://i.ytimg.com/vi/test123/hqdefault.jpg",
        origin="youtube",
    )
