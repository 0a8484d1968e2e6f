"""
Tactical Encounter Engine - Test Configuration and Fixtures
Shared test utilities and fixtures for pytest.
"""
import pytest
import random
import sys
import os

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from encounter_engine.core.tactical_combat.models import (
    EncounterContext,
    EncounterDifficulty,
    TerrainComplexity,
    Theme,
)
from encounter_engine.core.tactical_combat.templates import get_battlefield_template
from encounter_engine.core.tactical_combat.battlefield import generate_battlefield


# ==================== Random Source ====================

@pytest.fixture
def rng() -> random.Random:
    """Seeded random source so placements are reproducible."""
    return random.Random(42)


# ==================== Context Fixtures ====================

@pytest.fixture
def default_context() -> EncounterContext:
    """Four level 1 characters, no preferences."""
    return EncounterContext()


@pytest.fixture
def large_party_context() -> EncounterContext:
    """Six level 8 characters."""
    return EncounterContext(party_size=6, party_level=8)


@pytest.fixture
def complex_context() -> EncounterContext:
    """A party that asked for complex terrain and tight deadlines."""
    return EncounterContext(
        party_size=4,
        party_level=5,
        preferred_complexity=TerrainComplexity.COMPLEX,
        time_constraints=True,
    )


# ==================== Battlefield Fixtures ====================

@pytest.fixture
def forest_battlefield(default_context):
    """Easy forest clearing for a party of four."""
    template = get_battlefield_template(Theme.FOREST)
    return generate_battlefield(template, EncounterDifficulty.EASY, default_context, random.Random(7))


@pytest.fixture
def ruins_battlefield(large_party_context):
    """Deadly ruins for a party of six."""
    template = get_battlefield_template(Theme.RUINS)
    return generate_battlefield(template, EncounterDifficulty.DEADLY, large_party_context, random.Random(11))


def assert_area_in_bounds(area, width: int, height: int):
    """Both corners of a grid area lie on the map."""
    assert 0 <= area.top_left.x <= area.bottom_right.x < width
    assert 0 <= area.top_left.y <= area.bottom_right.y < height


def assert_location_in_bounds(location, width: int, height: int):
    assert 0 <= location.x < width
    assert 0 <= location.y < height
