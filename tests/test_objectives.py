"""Tests for objective generation."""
import random

import pytest

from encounter_engine.core.tactical_combat.models import (
    ConditionType,
    EncounterContext,
    EncounterDifficulty,
    ObjectivePriority,
    RewardType,
    TerrainComplexity,
    Theme,
)
from encounter_engine.core.tactical_combat.objectives import (
    calculate_time_limit,
    generate_objectives,
    plan_priorities,
)
from encounter_engine.core.tactical_combat.templates import OBJECTIVE_TEMPLATES

P = ObjectivePriority


class TestPlanPriorities:

    @pytest.mark.parametrize("difficulty,expected", [
        (EncounterDifficulty.EASY, [P.PRIMARY]),
        (EncounterDifficulty.MEDIUM, [P.PRIMARY]),
        (EncounterDifficulty.HARD, [P.PRIMARY, P.SECONDARY, P.BONUS]),
        (EncounterDifficulty.DEADLY, [P.PRIMARY, P.SECONDARY, P.BONUS]),
        (EncounterDifficulty.LEGENDARY, [P.PRIMARY, P.SECONDARY]),
    ])
    def test_priorities_by_difficulty(self, difficulty, expected):
        assert plan_priorities(difficulty, EncounterContext()) == expected

    def test_medium_with_complex_preference(self):
        context = EncounterContext(preferred_complexity=TerrainComplexity.COMPLEX)
        assert plan_priorities(EncounterDifficulty.MEDIUM, context) == [P.PRIMARY, P.SECONDARY]


class TestTimeLimit:

    def test_untimed_template(self):
        template = OBJECTIVE_TEMPLATES["retrieve-artifact"]
        assert calculate_time_limit(template, EncounterDifficulty.HARD, EncounterContext()) is None

    def test_timed_template(self):
        template = OBJECTIVE_TEMPLATES["protect-vip"]
        assert calculate_time_limit(template, EncounterDifficulty.MEDIUM, EncounterContext()) == 8

    def test_time_constraints_remove_a_round(self):
        template = OBJECTIVE_TEMPLATES["protect-vip"]
        context = EncounterContext(time_constraints=True)
        assert calculate_time_limit(template, EncounterDifficulty.MEDIUM, context) == 7
        assert calculate_time_limit(template, EncounterDifficulty.LEGENDARY, context) == 3


class TestGenerateObjectives:
    """Tests for full objective generation."""

    def test_single_primary_on_easy(self, rng, default_context):
        objectives = generate_objectives(Theme.FOREST, EncounterDifficulty.EASY, default_context, rng)
        assert len(objectives) == 1
        primary = objectives[0]
        assert primary.id == "objective-primary-0"
        assert primary.template_key in ("protect-vip", "retrieve-artifact")
        assert len(primary.complications) == 1

    def test_hard_layers_three_distinct_objectives(self, rng, default_context):
        objectives = generate_objectives(Theme.RUINS, EncounterDifficulty.HARD, default_context, rng)
        assert [o.priority for o in objectives] == [P.PRIMARY, P.SECONDARY, P.BONUS]
        assert [o.id for o in objectives] == ["objective-primary-0", "objective-secondary-1", "objective-bonus-2"]
        assert len({o.type for o in objectives}) == 3
        assert all(len(o.complications) == 2 for o in objectives)

    @pytest.mark.parametrize("seed", range(10))
    def test_types_never_repeat(self, seed):
        context = EncounterContext(party_size=6)
        for theme in Theme:
            objectives = generate_objectives(theme, EncounterDifficulty.DEADLY, context, random.Random(seed))
            assert len({o.type for o in objectives}) == len(objectives)

    def test_primary_rewards(self, rng, default_context):
        primary = generate_objectives(Theme.FOREST, EncounterDifficulty.EASY, default_context, rng)[0]
        assert primary.rewards[0].type == RewardType.EXPERIENCE
        assert primary.rewards[0].value == "100"
        assert len(primary.rewards) == 2

    def test_time_condition_added_for_timed_objectives(self, default_context):
        for seed in range(20):
            primary = generate_objectives(Theme.INDOOR, EncounterDifficulty.MEDIUM, default_context,
                                          random.Random(seed))[0]
            condition_types = [c.type for c in primary.success_conditions]
            if primary.time_limit is None:
                assert ConditionType.TIME not in condition_types
            else:
                assert condition_types[-1] == ConditionType.TIME
                assert primary.success_conditions[-1].time_limit == primary.time_limit
