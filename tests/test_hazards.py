"""Tests for environmental hazard generation."""
import dataclasses
import random

import pytest

from conftest import assert_area_in_bounds
from encounter_engine.core.tactical_combat.battlefield import generate_battlefield
from encounter_engine.core.tactical_combat.hazards import (
    HAZARD_CATALOG,
    compatible_hazards,
    generate_environmental_hazards,
)
from encounter_engine.core.tactical_combat.models import (
    ElevationVariation,
    EncounterContext,
    EncounterDifficulty,
    HazardSeverity,
    Theme,
)
from encounter_engine.core.tactical_combat.scaling import calculate_hazard_count
from encounter_engine.core.tactical_combat.templates import get_battlefield_template


def spec(key: str):
    return next(s for s in HAZARD_CATALOG if s.key == key)


class TestCompatibility:
    """Tests for catalog filtering against the battlefield."""

    def test_elevation_hazards_need_elevation(self, forest_battlefield):
        flat = dataclasses.replace(forest_battlefield, elevation=())
        keys = {s.key for s in compatible_hazards(flat, EncounterDifficulty.EASY)}
        assert "crumbling-ledge" not in keys
        assert "rockfall" not in keys
        assert "spike-trap" in keys

    def test_minimum_difficulty(self, ruins_battlefield):
        assert "temporal-rift" not in {s.key for s in compatible_hazards(ruins_battlefield, EncounterDifficulty.DEADLY)}
        assert "temporal-rift" in {s.key for s in compatible_hazards(ruins_battlefield, EncounterDifficulty.LEGENDARY)}

    def test_environment_restriction(self, forest_battlefield):
        assert not spec("snapping-ropes").is_compatible(forest_battlefield, EncounterDifficulty.LEGENDARY)

    def test_spike_trap_fits_anywhere(self, forest_battlefield):
        flat = dataclasses.replace(forest_battlefield, elevation=(), terrain=(), environment="void")
        assert [s.key for s in compatible_hazards(flat, EncounterDifficulty.EASY)] == ["spike-trap"]

    def test_preference_matching(self):
        trap = spec("spike-trap")
        assert trap.matches_preference(["Spike-Trap"])
        assert not trap.matches_preference(["nothing-like-it"])
        assert spec("temporal-rift").matches_preference(["time"])


class TestGenerateHazards:
    """Tests for generated hazards."""

    def test_count_follows_area(self, rng, default_context, forest_battlefield):
        hazards = generate_environmental_hazards(forest_battlefield, EncounterDifficulty.EASY, default_context, rng)
        assert len(hazards) == calculate_hazard_count(forest_battlefield.dimensions.total_area,
                                                      EncounterDifficulty.EASY)

    def test_hazard_shape(self, rng, default_context, forest_battlefield):
        hazards = generate_environmental_hazards(forest_battlefield, EncounterDifficulty.EASY, default_context, rng)
        width, height = forest_battlefield.dimensions.width, forest_battlefield.dimensions.height
        for i, hazard in enumerate(hazards):
            assert hazard.id == f"hazard-{hazard.kind}-{i}"
            assert hazard.severity == HazardSeverity.MILD
            assert hazard.escalation is None
            assert hazard.counterplay[-1].method == "detect"
            assert hazard.effects[0].mechanical_rule.startswith("DC 10 ")
            assert_area_in_bounds(hazard.area, width, height)
            assert hazard.area.contains(hazard.location.x, hazard.location.y)

    def test_escalation_at_deadly(self, rng, large_party_context, ruins_battlefield):
        hazards = generate_environmental_hazards(ruins_battlefield, EncounterDifficulty.DEADLY,
                                                 large_party_context, rng)
        assert hazards
        for hazard in hazards:
            assert hazard.escalation is not None
            assert "8d6" in hazard.escalation.mechanical_change

    def test_only_compatible_hazards_drawn(self, large_party_context, ruins_battlefield):
        allowed = {s.key for s in compatible_hazards(ruins_battlefield, EncounterDifficulty.HARD)}
        for seed in range(5):
            hazards = generate_environmental_hazards(ruins_battlefield, EncounterDifficulty.HARD,
                                                     large_party_context, random.Random(seed))
            assert {h.kind for h in hazards} <= allowed

    @pytest.mark.parametrize("seed", [1, 2, 3])
    def test_same_seed_same_hazards(self, seed, forest_battlefield):
        context = EncounterContext(environmental_preferences=("spikes",))
        first = generate_environmental_hazards(forest_battlefield, EncounterDifficulty.MEDIUM, context,
                                               random.Random(seed))
        second = generate_environmental_hazards(forest_battlefield, EncounterDifficulty.MEDIUM, context,
                                                random.Random(seed))
        assert first == second


class TestFlatBattlefieldHazards:
    """Fall hazards disappear when the template has no elevation."""

    FALL_HAZARDS = {"crumbling-ledge", "rockfall"}

    @pytest.fixture
    def flat_ruins(self, large_party_context):
        template = dataclasses.replace(get_battlefield_template(Theme.RUINS),
                                       elevation_variation=ElevationVariation.NONE)
        return generate_battlefield(template, EncounterDifficulty.DEADLY, large_party_context, random.Random(11))

    def test_fall_hazards_offered_with_elevation(self, ruins_battlefield):
        keys = {s.key for s in compatible_hazards(ruins_battlefield, EncounterDifficulty.DEADLY)}
        assert self.FALL_HAZARDS <= keys

    def test_fall_hazards_excluded_without_elevation(self, flat_ruins):
        assert flat_ruins.elevation == ()
        keys = {s.key for s in compatible_hazards(flat_ruins, EncounterDifficulty.DEADLY)}
        assert not self.FALL_HAZARDS & keys

    @pytest.mark.parametrize("seed", [1, 2, 3])
    def test_generated_hazards_skip_fall_hazards(self, flat_ruins, seed):
        context = EncounterContext(party_size=6, environmental_preferences=("crumbling-ledge", "rockfall"))
        hazards = generate_environmental_hazards(flat_ruins, EncounterDifficulty.DEADLY, context,
                                                 random.Random(seed))
        assert hazards
        assert not self.FALL_HAZARDS & {h.kind for h in hazards}
