"""
Tactical Encounter Engine - Error Handlers
Renders engine errors, request validation failures and unexpected
exceptions in one JSON envelope.
"""
import traceback
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from encounter_engine.core.errors import EncounterError, ErrorCode, GameError

logger = logging.getLogger("encounter_engine.errors")

# Request fields that describe the party rather than the encounter
PARTY_CONTEXT_FIELDS = frozenset({
    "party_size", "party_level", "preferred_complexity", "time_constraints", "environmental_preferences",
})

HTTP_ERROR_CODES = {
    400: ErrorCode.VALIDATION_ERROR,
    404: ErrorCode.NOT_FOUND,
    422: ErrorCode.VALIDATION_ERROR,
    500: ErrorCode.UNKNOWN,
}


def error_envelope(
    code: ErrorCode,
    message: str,
    details: Optional[Dict[str, Any]] = None,
    recoverable: bool = True,
    recovery_hint: Optional[str] = None,
    error_id: Optional[str] = None
) -> Dict[str, Any]:
    """Build the {"error": {...}} body every handler returns."""
    return {
        "error": {
            "code": code.value,
            "message": message,
            "details": details or {},
            "recoverable": recoverable,
            "recovery_hint": recovery_hint,
            "error_id": error_id or str(uuid.uuid4())[:8],
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
    }


def _field_errors(exc: RequestValidationError) -> List[Dict[str, str]]:
    errors = []
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", [])]
        errors.append({
            "field": " -> ".join(loc),
            "name": loc[-1] if loc else "",
            "message": error.get("msg", "Invalid value"),
            "type": error.get("type", "validation_error"),
        })
    return errors


def setup_error_handlers(app: FastAPI, debug: bool = False):
    """
    Register the engine's exception handlers on a FastAPI app.

    Engine errors keep their own code and status. Request validation
    failures on party fields report ENCOUNTER_INVALID_CONTEXT, the same
    code the generator raises for an unusable party.
    """

    @app.exception_handler(GameError)
    async def game_error_handler(request: Request, exc: GameError):
        body = error_envelope(exc.code, exc.message, exc.details, exc.recoverable, exc.recovery_hint)
        error_id = body["error"]["error_id"]
        path = str(request.url.path)

        if isinstance(exc, EncounterError) and not exc.recoverable:
            stage = exc.details.get("stage", "unknown")
            logger.error(
                f"[{error_id}] Encounter generation failed at stage '{stage}': {exc.message}",
                extra={"error_id": error_id, "error_code": exc.code.value, "stage": stage, "path": path}
            )
        else:
            logger.warning(
                f"[{error_id}] {exc.code.value} - {exc.message}",
                extra={"error_id": error_id, "error_code": exc.code.value, "path": path}
            )

        return JSONResponse(status_code=exc.http_status, content=body)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        errors = _field_errors(exc)
        party_fields = sorted({e["name"] for e in errors if e["name"] in PARTY_CONTEXT_FIELDS})

        if party_fields:
            body = error_envelope(
                ErrorCode.ENCOUNTER_INVALID_CONTEXT,
                f"Invalid party context: {', '.join(party_fields)}",
                {"errors": errors, "fields": party_fields},
                recovery_hint="Use a party of 1-8 characters of level 1-20",
            )
        else:
            body = error_envelope(
                ErrorCode.VALIDATION_ERROR,
                "Request validation failed",
                {"errors": errors},
                recovery_hint="Check the request data and correct any invalid fields",
            )
        logger.debug(f"Rejected {request.method} {request.url.path}: {body['error']['message']}")
        return JSONResponse(status_code=422, content=body)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content=error_envelope(
                HTTP_ERROR_CODES.get(exc.status_code, ErrorCode.UNKNOWN),
                str(exc.detail) if exc.detail else "An error occurred",
                recoverable=exc.status_code < 500,
            )
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        body = error_envelope(
            ErrorCode.UNKNOWN,
            "An unexpected error occurred",
            recoverable=False,
            recovery_hint="Please try again or report the request parameters",
        )
        error_id = body["error"]["error_id"]
        logger.error(
            f"[{error_id}] Unhandled exception: {type(exc).__name__}: {exc}",
            extra={"error_id": error_id, "path": str(request.url.path), "method": request.method},
            exc_info=True
        )

        if debug:
            body["error"]["debug"] = {
                "exception_type": type(exc).__name__,
                "exception_message": str(exc),
                "traceback": traceback.format_exception(type(exc), exc, exc.__traceback__)
            }

        return JSONResponse(status_code=500, content=body)

    return app
