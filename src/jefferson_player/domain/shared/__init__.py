"""
Shared Domain Kernel

Contains types and exceptions shared across the package.
"""

from jefferson_player.domain.shared.exceptions import (
    BusinessRuleViolationError,
    ConnectionFailedError,
    ConnectTimeoutError,
    DomainError,
    EndpointError,
    EntityNotFoundError,
    InvalidOperationError,
    NoAvailableNodeError,
    PermissionDeniedError,
    PlaybackRejectedError,
    ResolutionError,
    ResolverError,
    TrackNotFoundError,
    UnplayableTrackError,
    ValidationError,
)

__all__ = [
    "DomainError",
    "ValidationError",
    "EntityNotFoundError",
    "BusinessRuleViolationError",
    "InvalidOperationError",
    "EndpointError",
    "ConnectionFailedError",
    "ConnectTimeoutError",
    "NoAvailableNodeError",
    "PermissionDeniedError",
    "PlaybackRejectedError",
    "ResolverError",
    "TrackNotFoundError",
    "ResolutionError",
    "UnplayableTrackError",
]
