"""
Additional Exceptions Tests for Coverage

Tests default messages, codes and the class hierarchy of domain exceptions.
"""

import pytest

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


class TestDomainExceptionEdgeCases:
    """Tests for domain exception edge cases."""

    def test_domain_error_with_message(self):
        """Should create DomainError with message."""
        error = DomainError("Something went wrong")

        assert str(error) == "Something went wrong"
        assert error.message == "Something went wrong"
        assert error.code == "DomainError"

    def test_domain_error_with_custom_code(self):
        error = DomainError("Custom error", code="CUSTOM_CODE")

        assert error.code == "CUSTOM_CODE"

    def test_validation_error_with_field(self):
        """Should include field name in ValidationError."""
        error = ValidationError("Volume must be between 1 and 100", field="volume")

        assert error.field == "volume"
        assert error.code == "VALIDATION_ERROR"

    def test_entity_not_found_error_default_message(self):
        error = EntityNotFoundError("QueueState", 111111111111111111)

        assert str(error) == "QueueState with id '111111111111111111' not found"
        assert error.entity_type == "QueueState"
        assert error.identifier == 111111111111111111
        assert error.code == "ENTITY_NOT_FOUND"

    def test_entity_not_found_error_custom_message(self):
        error = EntityNotFoundError("QueueState", 1, message="Nothing is playing")

        assert str(error) == "Nothing is playing"

    def test_business_rule_violation_default_message(self):
        error = BusinessRuleViolationError("MAX_QUEUE_SIZE")

        assert str(error) == "Business rule violated: MAX_QUEUE_SIZE"
        assert error.rule == "MAX_QUEUE_SIZE"
        assert error.code == "BUSINESS_RULE_VIOLATION"

    def test_business_rule_violation_custom_message(self):
        error = BusinessRuleViolationError("MAX_QUEUE_SIZE", "Queue is full (10 tracks)")

        assert str(error) == "Queue is full (10 tracks)"

    def test_invalid_operation_error_default_message(self):
        error = InvalidOperationError("advance", "disconnecting")

        assert str(error) == "Cannot perform 'advance' in state 'disconnecting'"
        assert error.operation == "advance"
        assert error.current_state == "disconnecting"


class TestEndpointErrors:
    """Tests for audio endpoint failures."""

    @pytest.mark.parametrize(
        "error_type,code",
        [
            (ConnectTimeoutError, "CONNECT_TIMEOUT"),
            (NoAvailableNodeError, "NO_AVAILABLE_NODE"),
            (PermissionDeniedError, "PERMISSION_DENIED"),
        ],
    )
    def test_connection_failures(self, error_type, code):
        error = error_type()

        assert error.code == code
        assert isinstance(error, ConnectionFailedError)
        assert isinstance(error, EndpointError)
        assert error.message

    def test_connection_failed_default_code(self):
        assert ConnectionFailedError("Guild 1 is not available").code == "CONNECTION_FAILED"

    def test_playback_rejected(self):
        error = PlaybackRejectedError()

        assert error.code == "PLAY_REJECTED"
        assert isinstance(error, EndpointError)
        assert not isinstance(error, ConnectionFailedError)


class TestResolverErrors:
    """Tests for track resolver failures."""

    def test_track_not_found(self):
        error = TrackNotFoundError("asdfghjkl")

        assert str(error) == "No results for 'asdfghjkl'"
        assert error.query == "asdfghjkl"
        assert error.code == "NOT_FOUND"

    def test_resolution_error(self):
        assert ResolutionError("node unreachable").code == "RESOLUTION_ERROR"

    def test_unplayable_with_reason(self):
        error = UnplayableTrackError("Track A", "region locked")

        assert str(error) == "'Track A' cannot be played: region locked"
        assert error.title == "Track A"

    def test_unplayable_without_reason(self):
        assert str(UnplayableTrackError("Track A")) == "'Track A' cannot be played"

    @pytest.mark.parametrize(
        "error",
        [TrackNotFoundError("q"), ResolutionError("m"), UnplayableTrackError("t")],
    )
    def test_hierarchy(self, error):
        assert isinstance(error, ResolverError)
        assert isinstance(error, DomainError)
        assert not isinstance(error, EndpointError)

    def test_exceptions_can_be_raised_and_caught(self):
        with pytest.raises(DomainError):
            raise TrackNotFoundError("q")
