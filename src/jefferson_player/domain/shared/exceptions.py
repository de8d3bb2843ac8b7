"""Base exception classes for domain-level and collaborator errors."""

from __future__ import annotations


class DomainError(Exception):
    """Base exception for all domain-level errors."""

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__


class ValidationError(DomainError):
    """Raised when domain validation fails."""

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message, code="VALIDATION_ERROR")
        self.field = field


class EntityNotFoundError(DomainError):
    """Raised when a requested entity does not exist."""

    def __init__(self, entity_type: str, identifier: str | int, message: str | None = None) -> None:
        msg = message or f"{entity_type} with id '{identifier}' not found"
        super().__init__(msg, code="ENTITY_NOT_FOUND")
        self.entity_type = entity_type
        self.identifier = identifier


class BusinessRuleViolationError(DomainError):
    """Raised when a business rule is violated."""

    def __init__(self, rule: str, message: str | None = None) -> None:
        msg = message or f"Business rule violated: {rule}"
        super().__init__(msg, code="BUSINESS_RULE_VIOLATION")
        self.rule = rule


class InvalidOperationError(DomainError):
    """Raised when an operation is invalid in the current state."""

    def __init__(self, operation: str, current_state: str, message: str | None = None) -> None:
        msg = message or f"Cannot perform '{operation}' in state '{current_state}'"
        super().__init__(msg, code="INVALID_OPERATION")
        self.operation = operation
        self.current_state = current_state


# === Audio endpoint errors ===


class EndpointError(DomainError):
    """Base class for failures reported by the audio endpoint."""


class ConnectionFailedError(EndpointError):
    """Raised when a voice session could not be established."""

    def __init__(self, message: str, code: str = "CONNECTION_FAILED") -> None:
        super().__init__(message, code=code)


class ConnectTimeoutError(ConnectionFailedError):
    def __init__(self, message: str = "Timed out waiting for the voice session") -> None:
        super().__init__(message, code="CONNECT_TIMEOUT")


class NoAvailableNodeError(ConnectionFailedError):
    def __init__(self, message: str = "No audio node is available") -> None:
        super().__init__(message, code="NO_AVAILABLE_NODE")


class PermissionDeniedError(ConnectionFailedError):
    def __init__(self, message: str = "Missing permission to join or speak") -> None:
        super().__init__(message, code="PERMISSION_DENIED")


class PlaybackRejectedError(EndpointError):
    """Raised when the endpoint refuses a play or player-control command."""

    def __init__(self, message: str = "The audio endpoint rejected the track") -> None:
        super().__init__(message, code="PLAY_REJECTED")


# === Resolver errors ===


class ResolverError(DomainError):
    """Base class for track resolver failures."""


class TrackNotFoundError(ResolverError):
    def __init__(self, query: str) -> None:
        super().__init__(f"No results for '{query}'", code="NOT_FOUND")
        self.query = query


class ResolutionError(ResolverError):
    def __init__(self, message: str) -> None:
        super().__init__(message, code="RESOLUTION_ERROR")


class UnplayableTrackError(ResolverError):
    def __init__(self, title: str, reason: str | None = None) -> None:
        msg = f"'{title}' cannot be played" + (f": {reason}" if reason else "")
        super().__init__(msg, code="UNPLAYABLE")
        self.title = title
