"""Tactical combat encounter generation engine."""
