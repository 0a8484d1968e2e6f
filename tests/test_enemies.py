"""Tests for tactical enemy generation."""
import dataclasses
import random

import pytest

from conftest import assert_location_in_bounds
from encounter_engine.core.tactical_combat.encounter_generator import generate_tactical_encounter
from encounter_engine.core.tactical_combat.enemies import (
    _PositionFinder,
    _tactics,
    assign_roles,
    build_stat_block,
    calculate_challenge_rating,
    format_challenge_rating,
    generate_tactical_enemies,
)
from encounter_engine.core.tactical_combat.models import (
    AreaSize,
    ChokePoint,
    CoverType,
    CoverValue,
    ElevationType,
    EncounterContext,
    EncounterDifficulty,
    FlankingDifficulty,
    FlankingOpportunity,
    GridArea,
    GridLocation,
    PositioningPreference,
    TacticalRole,
    TerrainType,
    Theme,
)


class TestChallengeRating:

    @pytest.mark.parametrize("cr,expected", [(0.125, "1/8"), (0.25, "1/4"), (0.5, "1/2"), (3.0, "3")])
    def test_format(self, cr, expected):
        assert format_challenge_rating(cr) == expected

    def test_floor(self):
        assert calculate_challenge_rating(TacticalRole.RANGED, EncounterDifficulty.EASY, 1) == 0.25

    def test_scales_with_difficulty_and_tier(self):
        assert calculate_challenge_rating(TacticalRole.FRONTLINE, EncounterDifficulty.LEGENDARY, 20) == 9.0
        assert calculate_challenge_rating(TacticalRole.CONTROLLER, EncounterDifficulty.MEDIUM, 5) == 4.0


class TestAssignRoles:

    def test_small_roster_has_frontline_and_no_leader(self, rng, default_context):
        roles = assign_roles(Theme.FOREST, EncounterDifficulty.EASY, default_context, rng)
        assert len(roles) == 2
        assert roles[0] == TacticalRole.FRONTLINE
        assert TacticalRole.LEADER not in roles

    def test_large_roster_has_leader(self, rng):
        context = EncounterContext(party_size=6)
        roles = assign_roles(Theme.RUINS, EncounterDifficulty.DEADLY, context, rng)
        assert len(roles) == 8
        assert roles[:2] == [TacticalRole.FRONTLINE, TacticalRole.LEADER]
        assert roles.count(TacticalRole.LEADER) == 1


class TestStatBlock:

    def test_frontline(self, default_context):
        block = build_stat_block("Woodland Guardian", TacticalRole.FRONTLINE, Theme.FOREST,
                                 EncounterDifficulty.EASY, default_context)
        assert block.challenge_rating == "1"
        assert block.armor_class == 12
        assert block.hit_points == 18
        assert block.proficiency_bonus == 2
        assert block.creature_type == "fey"
        assert block.reactions[0].name == "Parry"

    def test_legendary_leader(self, default_context):
        block = build_stat_block("Ancient Commander", TacticalRole.LEADER, Theme.RUINS,
                                 EncounterDifficulty.LEGENDARY, default_context)
        assert block.challenge_rating == "7"
        assert block.proficiency_bonus == 3
        assert block.armor_class == 15
        assert block.hit_points == 66
        assert len(block.legendary_actions) == 3
        assert block.damage_immunities == ("poison",)
        assert block.senses.darkvision == 60

    def test_saves_and_skills_include_proficiency(self, default_context):
        block = build_stat_block("Deep Scout", TacticalRole.SKIRMISHER, Theme.UNDERGROUND,
                                 EncounterDifficulty.MEDIUM, default_context)
        saves = dict(block.saving_throws)
        assert set(saves) == {"dexterity", "intelligence"}
        assert saves["dexterity"] == (block.abilities.dexterity - 10) // 2 + block.proficiency_bonus
        assert block.speed.climb == 20


class TestGenerateEnemies:
    """Tests for the full enemy roster."""

    def test_ids_and_names(self, rng, default_context, forest_battlefield):
        enemies = generate_tactical_enemies(Theme.FOREST, EncounterDifficulty.EASY, default_context,
                                            forest_battlefield, rng)
        assert len(enemies) == 2
        assert enemies[0].id == "enemy-frontline-0"
        assert enemies[0].name == "Woodland Guardian"
        assert enemies[0].stat_block.name == enemies[0].name
        assert enemies[1].id.endswith("-1")

    def test_positions_on_grid(self, rng, large_party_context, ruins_battlefield):
        enemies = generate_tactical_enemies(Theme.RUINS, EncounterDifficulty.DEADLY, large_party_context,
                                            ruins_battlefield, rng)
        width, height = ruins_battlefield.dimensions.width, ruins_battlefield.dimensions.height
        for enemy in enemies:
            assert_location_in_bounds(enemy.positioning.preferred_location, width, height)
            assert len(enemy.positioning.alternative_locations) == 2
            for location in enemy.positioning.alternative_locations:
                assert_location_in_bounds(location, width, height)

    def test_leader_has_escape_objective(self, rng, large_party_context, ruins_battlefield):
        enemies = generate_tactical_enemies(Theme.RUINS, EncounterDifficulty.DEADLY, large_party_context,
                                            ruins_battlefield, rng)
        leaders = [e for e in enemies if e.role == TacticalRole.LEADER]
        assert len(leaders) == 1
        assert len(leaders[0].objectives) == 2
        assert leaders[0].special_abilities[0].usage_limit == 1

    def test_elevated_preference_without_elevation(self, forest_battlefield):
        flat = dataclasses.replace(forest_battlefield, elevation=())
        assert _tactics(TacticalRole.RANGED, flat).positioning_preference == PositioningPreference.RANGED
        assert _tactics(TacticalRole.RANGED, forest_battlefield).positioning_preference == \
            PositioningPreference.ELEVATED

    def test_same_seed_same_roster(self, large_party_context, ruins_battlefield):
        first = generate_tactical_enemies(Theme.RUINS, EncounterDifficulty.HARD, large_party_context,
                                          ruins_battlefield, random.Random(8))
        second = generate_tactical_enemies(Theme.RUINS, EncounterDifficulty.HARD, large_party_context,
                                           ruins_battlefield, random.Random(8))
        assert [e.to_dict() for e in first] == [e.to_dict() for e in second]


# ==================== Positioning ====================

@pytest.fixture
def staged_battlefield(ruins_battlefield):
    """Ruins reduced to one platform, one low wall, one choke point and one flank."""
    platform = dataclasses.replace(
        ruins_battlefield.elevation[0],
        type=ElevationType.PLATFORM,
        location=GridLocation(10, 4, 10),
        size=AreaSize(3, 3),
        height=10,
    )
    wall = dataclasses.replace(
        ruins_battlefield.cover[0],
        type=CoverType.HALF,
        cover_value=CoverValue.LIGHT,
        location=GridLocation(30, 6),
        size=AreaSize(3, 1),
    )
    choke = ChokePoint(GridLocation(26, 20), 2, "Gap between two walls", ("Hold the gap",), ("wall-a", "wall-b"))
    flank = FlankingOpportunity(
        target_area=GridArea(GridLocation(24, 30), GridLocation(28, 34)),
        flanking_positions=(GridLocation(20, 32), GridLocation(32, 32)),
        difficulty=FlankingDifficulty.MODERATE,
        benefits=("Advantage on melee attacks",),
    )
    tactical_map = dataclasses.replace(ruins_battlefield.tactical_map, choke_points=(choke,), flanking=(flank,))
    return dataclasses.replace(
        ruins_battlefield,
        terrain=(),
        elevation=(platform,),
        cover=(wall,),
        tactical_map=tactical_map,
    )


class TestRolePositioning:
    """Each role picks the kind of square it prefers."""

    def test_ranged_takes_the_platform(self, staged_battlefield):
        finder = _PositionFinder(staged_battlefield, random.Random(1))
        location = finder.preferred(TacticalRole.RANGED)
        assert location.as_tuple() == (11, 5)
        assert location.z == 10

    def test_controller_falls_back_to_cover_when_platform_taken(self, staged_battlefield):
        finder = _PositionFinder(staged_battlefield, random.Random(1))
        finder.preferred(TacticalRole.RANGED)
        location = finder.preferred(TacticalRole.CONTROLLER)
        assert location.as_tuple() == (31, 5)
        assert location.z is None

    def test_support_stands_behind_cover_not_inside_it(self, staged_battlefield):
        finder = _PositionFinder(staged_battlefield, random.Random(1))
        wall = staged_battlefield.cover[0].footprint()
        location = finder.preferred(TacticalRole.SUPPORT)
        assert location.as_tuple() == (31, 5)
        assert not wall.contains(location.x, location.y)
        assert location.y < wall.top_left.y

    def test_leader_takes_elevation_once_cover_is_used(self, staged_battlefield):
        finder = _PositionFinder(staged_battlefield, random.Random(1))
        finder.preferred(TacticalRole.SUPPORT)
        assert finder.preferred(TacticalRole.LEADER).as_tuple() == (11, 5)

    def test_frontline_holds_the_choke_point(self, staged_battlefield):
        finder = _PositionFinder(staged_battlefield, random.Random(1))
        assert finder.preferred(TacticalRole.FRONTLINE).as_tuple() == (26, 20)
        assert finder.preferred(TacticalRole.FRONTLINE).as_tuple() == (26, 19)

    def test_frontline_uses_centre_line_without_choke_points(self, staged_battlefield):
        open_field = dataclasses.replace(
            staged_battlefield,
            tactical_map=dataclasses.replace(staged_battlefield.tactical_map, choke_points=()),
        )
        finder = _PositionFinder(open_field, random.Random(1))
        assert finder.preferred(TacticalRole.FRONTLINE).y == open_field.dimensions.height // 2 - 1

    def test_skirmishers_take_flanks(self, staged_battlefield):
        finder = _PositionFinder(staged_battlefield, random.Random(1))
        assert finder.preferred(TacticalRole.SKIRMISHER).as_tuple() == (20, 32)
        assert finder.preferred(TacticalRole.SKIRMISHER).as_tuple() == (32, 32)

    def test_impassable_terrain_is_skipped(self, staged_battlefield, ruins_battlefield):
        rubble = dataclasses.replace(
            ruins_battlefield.terrain[0],
            type=TerrainType.IMPASSABLE,
            location=GridLocation(10, 4),
            size=AreaSize(3, 3),
        )
        buried = dataclasses.replace(staged_battlefield, terrain=(rubble,))
        finder = _PositionFinder(buried, random.Random(1))
        assert finder.preferred(TacticalRole.RANGED).as_tuple() == (31, 5)

    def test_total_cover_is_never_occupied(self, staged_battlefield):
        rampart = dataclasses.replace(
            staged_battlefield.cover[0],
            type=CoverType.TOTAL,
            cover_value=CoverValue.TOTAL,
            location=GridLocation(25, 19),
            size=AreaSize(3, 3),
        )
        walled = dataclasses.replace(staged_battlefield, cover=(rampart,))
        finder = _PositionFinder(walled, random.Random(1))
        location = finder.preferred(TacticalRole.FRONTLINE)
        assert not rampart.footprint().contains(location.x, location.y)
        assert_location_in_bounds(location, walled.dimensions.width, walled.dimensions.height)


class TestDistinctPositions:
    """No two enemies are placed on the same square."""

    def test_finder_never_repeats_a_square(self, staged_battlefield):
        finder = _PositionFinder(staged_battlefield, random.Random(3))
        roles = list(TacticalRole) * 8
        squares = [finder.preferred(role).as_tuple() for role in roles]
        assert len(set(squares)) == len(squares)

    @pytest.mark.parametrize("seed", [0, 1, 2, 3, 4, 5])
    def test_generated_roster_has_distinct_squares(self, seed):
        encounter = generate_tactical_encounter("ruins", "deadly", {"partySize": 6, "partyLevel": 8}, seed=seed)
        squares = [e.positioning.preferred_location.as_tuple() for e in encounter.enemies]
        assert len(set(squares)) == len(squares)

    @pytest.mark.parametrize("theme", ["forest", "ruins", "underground", "indoor", "bridge"])
    def test_no_enemy_inside_blocking_footprints(self, theme):
        encounter = generate_tactical_encounter(theme, "legendary", {"partySize": 8}, seed=21)
        battlefield = encounter.battlefield
        blocking = [t.footprint() for t in battlefield.terrain if t.type == TerrainType.IMPASSABLE]
        blocking += [c.footprint() for c in battlefield.cover if c.cover_value == CoverValue.TOTAL]
        for enemy in encounter.enemies:
            location = enemy.positioning.preferred_location
            assert not any(area.contains(location.x, location.y) for area in blocking)
