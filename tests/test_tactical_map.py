"""Tests for tactical map derivation."""
from encounter_engine.core.tactical_combat.battlefield import _create_terrain_feature
from encounter_engine.core.tactical_combat.models import (
    BattlefieldDimensions,
    BattlefieldShape,
    FlankingDifficulty,
    GridLocation,
    PathDifficulty,
    TerrainType,
)
from encounter_engine.core.tactical_combat.tactical_map import (
    derive_tactical_map,
    find_choke_points,
    find_key_locations,
    line_cells,
)


def make_dimensions(width=30, height=25) -> BattlefieldDimensions:
    return BattlefieldDimensions(
        width=width,
        height=height,
        scale="5 feet per square",
        scale_factor=1.0,
        total_area=width * height,
        shape=BattlefieldShape.RECTANGULAR,
    )


def wall(feature_id: str, x: int, y: int):
    """A 3x3 impassable block that blocks line of sight."""
    return _create_terrain_feature(feature_id, TerrainType.IMPASSABLE, GridLocation(x, y))


class TestLineCells:

    def test_interior_cells(self):
        assert line_cells(GridLocation(0, 0), GridLocation(3, 0)) == [(1, 0), (2, 0)]

    def test_with_endpoints(self):
        cells = line_cells(GridLocation(0, 0), GridLocation(3, 0), include_endpoints=True)
        assert cells == [(0, 0), (1, 0), (2, 0), (3, 0)]

    def test_same_point(self):
        assert line_cells(GridLocation(2, 2), GridLocation(2, 2)) == []
        assert line_cells(GridLocation(2, 2), GridLocation(2, 2), include_endpoints=True) == [(2, 2)]

    def test_diagonal(self):
        assert line_cells(GridLocation(0, 0), GridLocation(3, 3)) == [(1, 1), (2, 2)]


class TestKeyLocations:

    def test_fixed_locations(self):
        locations = find_key_locations(make_dimensions(), [], [])
        by_name = {k.name: k.location.as_tuple() for k in locations}
        assert by_name == {
            "Objective Site": (15, 12),
            "Party Deployment": (15, 24),
            "Enemy Deployment": (15, 0),
        }

    def test_high_ground_is_limited(self, ruins_battlefield):
        high_ground = [
            k for k in ruins_battlefield.tactical_map.key_locations
            if k.source_id and k.source_id.startswith("elevation-")
        ]
        assert len(high_ground) <= 3
        assert all(k.location.z > 0 for k in high_ground)

    def test_locations_are_unique(self, ruins_battlefield):
        points = [k.location.as_tuple() for k in ruins_battlefield.tactical_map.key_locations]
        assert len(points) == len(set(points))


class TestChokePoints:

    def test_gap_between_walls(self):
        choke_points = find_choke_points([wall("terrain-0", 0, 0), wall("terrain-1", 5, 0)], [])
        assert len(choke_points) == 1
        choke = choke_points[0]
        assert choke.width == 2
        assert choke.location.as_tuple() == (3, 1)
        assert choke.between == ("terrain-0", "terrain-1")

    def test_wide_gap_is_not_a_choke_point(self):
        assert find_choke_points([wall("terrain-0", 0, 0), wall("terrain-1", 7, 0)], []) == []

    def test_touching_walls_leave_no_passage(self):
        assert find_choke_points([wall("terrain-0", 0, 0), wall("terrain-1", 3, 0)], []) == []

    def test_vertical_gap(self):
        choke_points = find_choke_points([wall("terrain-0", 4, 0), wall("terrain-1", 4, 4)], [])
        assert len(choke_points) == 1
        assert choke_points[0].width == 1
        assert choke_points[0].location.as_tuple() == (5, 3)


class TestDerivedMap:
    """Tests for sightlines, paths and flanking."""

    def test_open_field(self):
        tactical_map = derive_tactical_map(make_dimensions(), [], [], [], [])
        assert len(tactical_map.key_locations) == 3
        assert len(tactical_map.sight_lines) == 3
        assert all(line.clear for line in tactical_map.sight_lines)
        assert all(path.difficulty == PathDifficulty.EASY for path in tactical_map.movement_paths)
        assert tactical_map.choke_points == ()

    def test_flanking_in_open_field(self):
        tactical_map = derive_tactical_map(make_dimensions(), [], [], [], [])
        assert len(tactical_map.flanking) == 3
        centre = tactical_map.flanking[0]
        assert len(centre.flanking_positions) == 8
        assert centre.difficulty == FlankingDifficulty.EASY
        edge = tactical_map.flanking[1]
        assert len(edge.flanking_positions) == 5
        assert edge.difficulty == FlankingDifficulty.MODERATE

    def test_wall_blocks_sight_and_path(self):
        terrain = [wall("terrain-0", 14, 5)]
        tactical_map = derive_tactical_map(make_dimensions(), terrain, [], [], [])
        blocked = [
            line for line in tactical_map.sight_lines
            if line.origin.as_tuple() == (15, 12) and line.target.as_tuple() == (15, 0)
        ]
        assert len(blocked) == 1
        assert blocked[0].clear is False
        assert blocked[0].obstructions == ("terrain-0",)

        paths = {path.description: path for path in tactical_map.movement_paths}
        assert paths["Enemy advance on the objective"].difficulty == PathDifficulty.EXTREME
        assert paths["Party advance on the objective"].difficulty == PathDifficulty.EASY

    def test_derivation_is_pure(self, forest_battlefield):
        battlefield = forest_battlefield
        again = derive_tactical_map(
            battlefield.dimensions, battlefield.terrain, battlefield.cover,
            battlefield.elevation, battlefield.special_areas,
        )
        assert again == battlefield.tactical_map
