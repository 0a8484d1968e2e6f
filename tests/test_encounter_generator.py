"""Tests for end-to-end tactical encounter generation."""
import json
import random

import pytest

from encounter_engine.core.errors import EncounterGenerationError, InvalidContextError
from encounter_engine.core.tactical_combat import encounter_generator
from encounter_engine.core.tactical_combat.encounter_generator import (
    TacticalEncounterGenerator,
    generate_tactical_encounter,
    preview_encounter_parameters,
)
from encounter_engine.core.tactical_combat.models import (
    EncounterContext,
    EncounterDifficulty,
    ObjectivePriority,
    TacticalRole,
    TerrainType,
    Theme,
)


def canonical(encounter) -> str:
    return json.dumps(encounter.to_dict(), sort_keys=True)


class TestScenarios:
    """Full encounters for representative inputs."""

    def test_easy_forest(self):
        encounter = generate_tactical_encounter("forest", "easy", {"partySize": 4, "partyLevel": 1}, seed=1)
        battlefield = encounter.battlefield
        assert (battlefield.dimensions.width, battlefield.dimensions.height) == (30, 25)
        assert len(battlefield.terrain) == 3
        assert battlefield.terrain[0].type == TerrainType.DIFFICULT
        assert len(encounter.objectives) == 1
        assert encounter.primary_objective.priority == ObjectivePriority.PRIMARY
        assert len(encounter.enemies) == 2
        assert encounter.enemies[0].role == TacticalRole.FRONTLINE
        assert encounter.dynamic_elements == ()
        assert encounter.seed == 1
        assert encounter.id.startswith("tactical-encounter-")
        assert encounter.name.startswith("Woodland ")

    def test_deadly_ruins_large_party(self):
        context = EncounterContext(party_size=6, party_level=8)
        encounter = generate_tactical_encounter(Theme.RUINS, EncounterDifficulty.DEADLY, context, seed=2024)
        battlefield = encounter.battlefield
        assert (battlefield.dimensions.width, battlefield.dimensions.height) == (53, 45)
        assert len(encounter.enemies) == 8
        assert [e.role for e in encounter.enemies].count(TacticalRole.LEADER) == 1
        assert len(encounter.objectives) == 3
        assert all(h.escalation is not None for h in encounter.environmental_hazards)
        assert len(encounter.dynamic_elements) == 2
        assert len(encounter.defeat_consequences) == 4
        assert encounter.applied_scaling.party_size.size == 6
        assert encounter.applied_scaling.level.level_range == "5-10"

    def test_unknown_theme_and_difficulty_fall_back(self):
        encounter = generate_tactical_encounter("volcano", "apocalyptic", seed=5)
        assert encounter.theme == Theme.FOREST
        assert encounter.difficulty == EncounterDifficulty.MEDIUM
        assert encounter.battlefield.template_key == "forest-clearing"

    def test_legendary_has_two_objectives(self):
        encounter = generate_tactical_encounter("underground", "legendary", seed=9)
        assert [o.priority for o in encounter.objectives] == [ObjectivePriority.PRIMARY,
                                                              ObjectivePriority.SECONDARY]
        assert len(encounter.dynamic_elements) == 3

    def test_party_beyond_eight(self):
        encounter = generate_tactical_encounter("bridge", "deadly", {"party_size": 12}, seed=4)
        assert len(encounter.enemies) == 15
        assert encounter.battlefield.dimensions.scale_factor == 1.5
        squares = {e.positioning.preferred_location.as_tuple() for e in encounter.enemies}
        assert len(squares) == 15

    @pytest.mark.parametrize("theme", list(Theme))
    @pytest.mark.parametrize("difficulty", list(EncounterDifficulty))
    def test_every_combination_generates(self, theme, difficulty):
        encounter = generate_tactical_encounter(theme, difficulty, seed=77)
        ids = (
            [f.id for f in encounter.battlefield.terrain]
            + [c.id for c in encounter.battlefield.cover]
            + [e.id for e in encounter.battlefield.elevation]
            + [a.id for a in encounter.battlefield.special_areas]
            + [o.id for o in encounter.objectives]
            + [e.id for e in encounter.enemies]
            + [h.id for h in encounter.environmental_hazards]
            + [f.id for f in encounter.tactical_features]
        )
        assert len(ids) == len(set(ids))
        assert encounter.enemies
        json.dumps(encounter.to_dict())


class TestDeterminism:
    """The same seed always produces the same encounter."""

    def test_same_seed_same_encounter(self):
        context = {"party_size": 5, "party_level": 7, "environmental_preferences": ["fire"]}
        first = generate_tactical_encounter("indoor", "hard", context, seed=31337)
        second = generate_tactical_encounter("indoor", "hard", context, seed=31337)
        assert canonical(first) == canonical(second)

    def test_different_seeds_differ(self):
        first = generate_tactical_encounter("bridge", "medium", seed=1)
        second = generate_tactical_encounter("bridge", "medium", seed=2)
        assert canonical(first) != canonical(second)

    def test_injected_rng(self):
        first = TacticalEncounterGenerator(rng=random.Random(5)).generate("ruins", "easy", EncounterContext())
        second = TacticalEncounterGenerator(rng=random.Random(5)).generate("ruins", "easy", EncounterContext())
        assert first.seed is None
        assert canonical(first) == canonical(second)

    def test_seed_is_chosen_when_missing(self):
        generator = TacticalEncounterGenerator()
        assert isinstance(generator.seed, int)
        encounter = generator.generate("forest", "easy", EncounterContext())
        replay = generate_tactical_encounter("forest", "easy", seed=generator.seed)
        assert canonical(encounter) == canonical(replay)


class TestErrors:

    def test_invalid_context_is_rejected(self):
        with pytest.raises(InvalidContextError):
            generate_tactical_encounter("forest", "easy", {"party_size": 0})

    def test_invalid_level_is_rejected(self):
        with pytest.raises(InvalidContextError):
            generate_tactical_encounter("forest", "easy", EncounterContext(party_level=25))

    def test_context_type_is_checked(self):
        with pytest.raises(InvalidContextError):
            generate_tactical_encounter("forest", "easy", ["not", "a", "context"])

    def test_stage_failure_is_wrapped(self, monkeypatch):
        def broken(*args, **kwargs):
            raise RuntimeError("feature catalog unavailable")

        monkeypatch.setattr(encounter_generator, "generate_tactical_features", broken)
        with pytest.raises(EncounterGenerationError) as exc_info:
            generate_tactical_encounter("forest", "easy", seed=1)
        assert exc_info.value.details == {"stage": "features"}
        assert "feature catalog unavailable" in exc_info.value.message


class TestPreview:

    def test_preview_matches_generation(self):
        preview = preview_encounter_parameters("forest", "easy", {"party_size": 4})
        encounter = generate_tactical_encounter("forest", "easy", {"party_size": 4}, seed=3)
        assert preview["dimensions"]["width"] == encounter.battlefield.dimensions.width
        assert preview["terrain_count"] == len(encounter.battlefield.terrain)
        assert preview["cover_count"] == len(encounter.battlefield.cover)
        assert preview["hazard_count"] == len(encounter.environmental_hazards)
        assert preview["feature_count"] == len(encounter.tactical_features)
        assert preview["objective_count"] == len(encounter.objectives)
        assert preview["enemy_budget"] == len(encounter.enemies)
        assert preview["has_leader"] is False

    def test_preview_for_large_party(self):
        preview = preview_encounter_parameters("ruins", "deadly", EncounterContext(party_size=6))
        assert preview["template"] == "ancient-ruins"
        assert preview["enemy_budget"] == 8
        assert preview["has_leader"] is True
        assert preview["objective_priorities"] == ["primary", "secondary", "bonus"]
        assert preview["time_limit_rounds"] == 5
