"""
Tactical Encounter Engine - Custom Error Types
Structured exceptions for encounter-generation errors with recovery hints.
"""
from typing import Dict, Any, Optional
from enum import Enum


class ErrorCode(str, Enum):
    """Standard error codes for the encounter engine."""
    # General errors
    UNKNOWN = "UNKNOWN"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"

    # Encounter errors
    ENCOUNTER_INVALID_CONTEXT = "ENCOUNTER_INVALID_CONTEXT"
    ENCOUNTER_GENERATION_FAILED = "ENCOUNTER_GENERATION_FAILED"


class GameError(Exception):
    """
    Base exception for all engine errors.

    Provides structured error information with:
    - Error code for programmatic handling
    - Human-readable message
    - Additional context details
    - Recovery hints for the frontend
    """

    def __init__(
        self,
        code: ErrorCode = ErrorCode.UNKNOWN,
        message: str = "An unexpected error occurred",
        details: Optional[Dict[str, Any]] = None,
        recoverable: bool = True,
        recovery_hint: Optional[str] = None,
        http_status: int = 500
    ):
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}
        self.recoverable = recoverable
        self.recovery_hint = recovery_hint
        self.http_status = http_status

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for JSON response."""
        return {
            "error": {
                "code": self.code.value,
                "message": self.message,
                "details": self.details,
                "recoverable": self.recoverable,
                "recovery_hint": self.recovery_hint
            }
        }

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code.value}, message={self.message!r})"


# =============================================================================
# Validation Errors
# =============================================================================

class ValidationError(GameError):
    """Input validation errors."""

    def __init__(
        self,
        field: str,
        message: str,
        value: Any = None,
        code: ErrorCode = ErrorCode.VALIDATION_ERROR
    ):
        details = {"field": field}
        if value is not None:
            details["value"] = str(value)
        super().__init__(
            code=code,
            message=message,
            details=details,
            http_status=400,
            recovery_hint=f"Check the value for '{field}'"
        )


class InvalidContextError(ValidationError):
    """Raised when the party context cannot produce a sensible battlefield."""

    def __init__(self, field: str, message: str, value: Any = None):
        super().__init__(
            field=field,
            message=message,
            value=value,
            code=ErrorCode.ENCOUNTER_INVALID_CONTEXT
        )


class NotFoundError(GameError):
    """Generic not found error."""

    def __init__(self, resource: str, identifier: Optional[str] = None):
        details = {"resource": resource}
        if identifier:
            details["identifier"] = identifier
        super().__init__(
            code=ErrorCode.NOT_FOUND,
            message=f"{resource} not found",
            details=details,
            http_status=404
        )


# =============================================================================
# Encounter Errors
# =============================================================================

class EncounterError(GameError):
    """Encounter generation errors."""

    def __init__(
        self,
        code: ErrorCode = ErrorCode.ENCOUNTER_GENERATION_FAILED,
        message: str = "Encounter error",
        **kwargs
    ):
        kwargs.setdefault("http_status", 500)
        super().__init__(code=code, message=message, **kwargs)


class EncounterGenerationError(EncounterError):
    """Raised when a generation stage fails unexpectedly."""

    def __init__(self, stage: str, reason: str = "Encounter generation failed"):
        super().__init__(
            code=ErrorCode.ENCOUNTER_GENERATION_FAILED,
            message=reason,
            details={"stage": stage},
            recoverable=False,
            recovery_hint="Try a different seed or report the failing parameters"
        )
