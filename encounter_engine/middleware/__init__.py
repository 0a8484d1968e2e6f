"""Middleware package for the Tactical Encounter Engine."""

from encounter_engine.middleware.error_handler import setup_error_handlers

__all__ = [
    "setup_error_handlers",
]
