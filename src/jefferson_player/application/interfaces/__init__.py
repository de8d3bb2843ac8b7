"""
Application Interfaces (Ports)

Abstract interfaces that define contracts between the application
layer and infrastructure adapters. These are the "ports" in
hexagonal architecture.
"""

from jefferson_player.application.interfaces.audio_endpoint import AudioEndpoint, EventListener
from jefferson_player.application.interfaces.presentation_sink import PresentationSink
from jefferson_player.application.interfaces.track_resolver import TrackResolver
from jefferson_player.application.interfaces.voice_gateway import VoiceGateway

__all__ = [
    "AudioEndpoint",
    "EventListener",
    "PresentationSink",
    "TrackResolver",
    "VoiceGateway",
]
