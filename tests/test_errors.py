"""Tests for structured error types."""
from encounter_engine.core.errors import (
    EncounterGenerationError,
    ErrorCode,
    GameError,
    InvalidContextError,
    NotFoundError,
    ValidationError,
)


class TestGameError:
    """Tests for the base error."""

    def test_to_dict_shape(self):
        error = GameError(ErrorCode.UNKNOWN, "Boom", details={"a": 1}, recovery_hint="Retry")
        data = error.to_dict()
        assert data["error"]["code"] == "UNKNOWN"
        assert data["error"]["message"] == "Boom"
        assert data["error"]["details"] == {"a": 1}
        assert data["error"]["recoverable"] is True
        assert data["error"]["recovery_hint"] == "Retry"

    def test_message_is_exception_text(self):
        assert str(GameError(message="Broken")) == "Broken"


class TestSubclasses:
    """Tests for specialized errors."""

    def test_validation_error(self):
        error = ValidationError("party_size", "Too small", 0)
        assert error.http_status == 400
        assert error.details == {"field": "party_size", "value": "0"}

    def test_invalid_context_error(self):
        error = InvalidContextError("party_level", "Out of range", 25)
        assert isinstance(error, ValidationError)
        assert error.code == ErrorCode.ENCOUNTER_INVALID_CONTEXT
        assert error.http_status == 400

    def test_not_found_error(self):
        error = NotFoundError("Template", "volcano-rim")
        assert error.http_status == 404
        assert error.message == "Template not found"
        assert error.details["identifier"] == "volcano-rim"

    def test_generation_error(self):
        error = EncounterGenerationError("hazards", "No hazards")
        assert error.code == ErrorCode.ENCOUNTER_GENERATION_FAILED
        assert error.details == {"stage": "hazards"}
        assert error.recoverable is False
        assert error.http_status == 500
