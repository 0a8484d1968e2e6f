"""Tests for difficulty configuration and scaling rules."""
import pytest

from encounter_engine.core.tactical_combat.models import (
    EncounterContext,
    EncounterDifficulty,
    TerrainComplexity,
)
from encounter_engine.core.tactical_combat.scaling import (
    DIFFICULTY_CONFIGS,
    apply_scaling_rules,
    build_scaling_rules,
    calculate_enemy_budget,
    calculate_feature_count,
    calculate_hazard_count,
    calculate_objective_count,
    list_difficulty_levels,
    round_half_up,
)


class TestRounding:

    def test_half_rounds_up(self):
        assert round_half_up(2.5) == 3
        assert round_half_up(7.5) == 8
        assert round_half_up(0.49) == 0


class TestBudgets:
    """Tests for enemy, objective, hazard and feature counts."""

    @pytest.mark.parametrize("party_size,difficulty,expected", [
        (4, EncounterDifficulty.EASY, 2),
        (4, EncounterDifficulty.MEDIUM, 3),
        (4, EncounterDifficulty.HARD, 4),
        (6, EncounterDifficulty.DEADLY, 8),
        (4, EncounterDifficulty.LEGENDARY, 6),
        (3, EncounterDifficulty.EASY, 2),
        (1, EncounterDifficulty.EASY, 1),
    ])
    def test_enemy_budget(self, party_size, difficulty, expected):
        assert calculate_enemy_budget(party_size, difficulty) == expected

    def test_budget_never_decreases_with_difficulty(self):
        budgets = [calculate_enemy_budget(5, d) for d in EncounterDifficulty]
        assert budgets == sorted(budgets)

    def test_objective_count(self):
        context = EncounterContext()
        assert calculate_objective_count(EncounterDifficulty.EASY, context) == 1
        assert calculate_objective_count(EncounterDifficulty.MEDIUM, context) == 1
        assert calculate_objective_count(EncounterDifficulty.HARD, context) == 2

    def test_medium_gains_objective_for_complex_preference(self):
        for complexity in (TerrainComplexity.COMPLEX, TerrainComplexity.EXTREME):
            context = EncounterContext(preferred_complexity=complexity)
            assert calculate_objective_count(EncounterDifficulty.MEDIUM, context) == 2
        simple = EncounterContext(preferred_complexity=TerrainComplexity.SIMPLE)
        assert calculate_objective_count(EncounterDifficulty.MEDIUM, simple) == 1

    def test_hazard_count(self):
        assert calculate_hazard_count(750, EncounterDifficulty.EASY) == 2
        assert calculate_hazard_count(750, EncounterDifficulty.MEDIUM) == 3
        assert calculate_hazard_count(0, EncounterDifficulty.EASY) == 1
        assert calculate_hazard_count(100000, EncounterDifficulty.LEGENDARY) == 12

    def test_feature_count(self):
        assert calculate_feature_count(750, EncounterDifficulty.EASY) == 5
        assert calculate_feature_count(100, EncounterDifficulty.EASY) == 1
        assert calculate_feature_count(2385, EncounterDifficulty.DEADLY) == 10

    def test_time_limits_tighten(self):
        limits = [DIFFICULTY_CONFIGS[d].time_limit_rounds for d in EncounterDifficulty]
        assert limits == [10, 8, 6, 5, 4]


class TestScalingRules:
    """Tests for the declarative scaling tables."""

    def test_party_size_table(self):
        rules = build_scaling_rules(EncounterDifficulty.MEDIUM)
        sizes = [row.size for row in rules.party_size.adjustments]
        assert sizes == list(range(1, 9))
        assert rules.party_size.base_size == 4
        assert rules.party_size.adjustments[3].enemy_count_modifier == 0
        assert rules.party_size.adjustments[7].enemy_count_modifier > 0

    def test_level_tiers_cover_every_level(self):
        rules = build_scaling_rules(EncounterDifficulty.HARD)
        covered = set()
        for row in rules.level.adjustments:
            covered.update(range(row.min_level, row.max_level + 1))
        assert covered == set(range(1, 21))

    def test_difficulty_table_is_relative_to_base(self):
        rules = build_scaling_rules(EncounterDifficulty.MEDIUM)
        rows = {row.target_difficulty: row for row in rules.difficulty.adjustments}
        assert len(rows) == 5
        assert rows[EncounterDifficulty.MEDIUM].enemy_modification.number_adjustment == 0
        assert rows[EncounterDifficulty.EASY].enemy_modification.strength_modifier == -1
        assert rows[EncounterDifficulty.LEGENDARY].enemy_modification.new_capabilities == ("Legendary actions",)

    def test_terrain_base_follows_difficulty(self):
        assert build_scaling_rules(EncounterDifficulty.EASY).terrain.base_complexity == TerrainComplexity.SIMPLE
        assert build_scaling_rules(EncounterDifficulty.MEDIUM).terrain.base_complexity == TerrainComplexity.MODERATE

    def test_apply_picks_matching_rows(self):
        rules = build_scaling_rules(EncounterDifficulty.HARD)
        context = EncounterContext(party_size=5, party_level=12)
        applied = apply_scaling_rules(rules, EncounterDifficulty.HARD, context)
        assert applied.party_size.size == 5
        assert applied.level.level_range == "11-16"
        assert applied.difficulty.target_difficulty == EncounterDifficulty.HARD
        assert applied.terrain.target_complexity == TerrainComplexity.COMPLEX

    def test_apply_clamps_large_parties(self):
        rules = build_scaling_rules(EncounterDifficulty.EASY)
        applied = apply_scaling_rules(rules, EncounterDifficulty.EASY, EncounterContext(party_size=12))
        assert applied.party_size.size == 8

    def test_apply_honours_preferred_complexity(self):
        rules = build_scaling_rules(EncounterDifficulty.EASY)
        context = EncounterContext(preferred_complexity=TerrainComplexity.EXTREME)
        applied = apply_scaling_rules(rules, EncounterDifficulty.EASY, context)
        assert applied.terrain.target_complexity == TerrainComplexity.EXTREME

    def test_list_difficulty_levels(self):
        levels = list_difficulty_levels()
        assert [level["rank"] for level in levels] == [0, 1, 2, 3, 4]
        assert levels[0]["difficulty"] == "easy"
