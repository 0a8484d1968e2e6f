"""
Tactical Map Derivation.

Annotates a placed battlefield with key locations, sightlines, choke points,
flanking opportunities and movement paths. Nothing here is sampled; the map
is a pure function of the features it is given.
"""
from typing import Iterable, List, Optional, Sequence, Tuple

from .models import (
    BattlefieldDimensions,
    ChokePoint,
    CoordinateSystem,
    CoverElement,
    CoverValue,
    ElevationFeature,
    FlankingDifficulty,
    FlankingOpportunity,
    GridArea,
    GridLocation,
    GridSystem,
    GridType,
    KeyLocation,
    LocationImportance,
    MovementPath,
    PathCover,
    PathDifficulty,
    SightLine,
    SpecialArea,
    TacticalMap,
    TerrainFeature,
    TerrainType,
)
from .scaling import round_half_up


FLANK_OFFSET = 3
MAX_CHOKE_GAP = 3
MAX_HIGH_GROUND = 3
COMPASS = ((0, -1), (1, -1), (1, 0), (1, 1), (0, 1), (-1, 1), (-1, 0), (-1, -1))


def line_cells(start: GridLocation, end: GridLocation, include_endpoints: bool = False) -> List[Tuple[int, int]]:
    """Squares along the straight line between two points."""
    dx = end.x - start.x
    dy = end.y - start.y
    steps = max(abs(dx), abs(dy))
    if steps == 0:
        return [start.as_tuple()] if include_endpoints else []
    first, last = (0, steps + 1) if include_endpoints else (1, steps)
    return [
        (round_half_up(start.x + dx * step / steps), round_half_up(start.y + dy * step / steps))
        for step in range(first, last)
    ]


class _Obstacles:
    """Footprint lookups for line-of-sight and cover checks."""

    def __init__(self, terrain: Sequence[TerrainFeature], cover: Sequence[CoverElement]):
        self.blocking = [(f.id, f.footprint()) for f in terrain if f.visibility.blocks_line_of_sight]
        self.cover = [(c.id, c.footprint()) for c in cover]

    def blockers_at(self, x: int, y: int) -> List[str]:
        return [fid for fid, area in self.blocking if area.contains(x, y)]

    def has_cover_at(self, x: int, y: int) -> bool:
        return any(area.contains(x, y) for _, area in self.cover)

    def sightline(self, origin: GridLocation, target: GridLocation) -> SightLine:
        obstructions: List[str] = []
        partial_cover = False
        for x, y in line_cells(origin, target):
            for fid in self.blockers_at(x, y):
                if fid not in obstructions:
                    obstructions.append(fid)
            if self.has_cover_at(x, y):
                partial_cover = True
        return SightLine(
            origin=origin,
            target=target,
            clear=not obstructions,
            obstructions=tuple(obstructions),
            partial_cover=partial_cover,
        )


# =============================================================================
# KEY LOCATIONS
# =============================================================================

def find_key_locations(
    dimensions: BattlefieldDimensions,
    elevation: Sequence[ElevationFeature],
    special_areas: Sequence[SpecialArea]
) -> List[KeyLocation]:
    """Objective site, deployment points, special areas and the highest ground."""
    width, height = dimensions.width, dimensions.height
    candidates = [
        KeyLocation("Objective Site", GridLocation(width // 2, height // 2), LocationImportance.CRITICAL,
                    "The contested heart of the battlefield", "Whoever holds it dictates the fight"),
        KeyLocation("Party Deployment", GridLocation(width // 2, height - 1), LocationImportance.IMPORTANT,
                    "Where the party enters the battlefield", "Safe staging ground for the first round"),
        KeyLocation("Enemy Deployment", GridLocation(width // 2, 0), LocationImportance.IMPORTANT,
                    "Where the enemy forces gather", "Enemy reinforcements arrive here"),
    ]
    for area in special_areas:
        candidates.append(KeyLocation(
            area.name, area.location.center, LocationImportance.USEFUL,
            area.description, area.mechanical_effects[0].mechanical_rule, source_id=area.id,
        ))

    raised = sorted((e for e in elevation if e.height > 0), key=lambda e: (-e.height, e.id))
    for feature in raised[:MAX_HIGH_GROUND]:
        center = feature.footprint().center
        candidates.append(KeyLocation(
            f"High Ground ({feature.type.value})",
            GridLocation(center.x, center.y, feature.height),
            LocationImportance.IMPORTANT,
            f"A {feature.height}-foot {feature.type.value}",
            "Ranged attackers here command the field",
            source_id=feature.id,
        ))

    seen = set()
    key_locations = []
    for key in candidates:
        point = key.location.as_tuple()
        if point in seen:
            continue
        seen.add(point)
        key_locations.append(key)
    return key_locations


# =============================================================================
# CHOKE POINTS
# =============================================================================

def _gap(a_low: int, a_high: int, b_low: int, b_high: int) -> Optional[Tuple[int, int]]:
    """Empty squares between two 1-D spans, with the span's first square."""
    if a_high < b_low:
        return b_low - a_high - 1, a_high + 1
    if b_high < a_low:
        return a_low - b_high - 1, b_high + 1
    return None


def find_choke_points(
    terrain: Sequence[TerrainFeature],
    cover: Sequence[CoverElement]
) -> List[ChokePoint]:
    """Narrow passages of 1-3 squares between two large obstacles."""
    masses: List[Tuple[str, GridArea]] = [
        (f.id, f.footprint()) for f in terrain
        if f.visibility.blocks_line_of_sight or f.type == TerrainType.IMPASSABLE
    ]
    masses.extend(
        (c.id, c.footprint()) for c in cover
        if c.cover_value in (CoverValue.HEAVY, CoverValue.TOTAL)
    )

    choke_points: List[ChokePoint] = []
    seen = set()
    for i, (a_id, a) in enumerate(masses):
        for b_id, b in masses[i + 1:]:
            overlap_y = (max(a.top_left.y, b.top_left.y), min(a.bottom_right.y, b.bottom_right.y))
            overlap_x = (max(a.top_left.x, b.top_left.x), min(a.bottom_right.x, b.bottom_right.x))
            location = None
            width = 0
            if overlap_y[0] <= overlap_y[1]:
                gap = _gap(a.top_left.x, a.bottom_right.x, b.top_left.x, b.bottom_right.x)
                if gap and 1 <= gap[0] <= MAX_CHOKE_GAP:
                    width = gap[0]
                    location = GridLocation(gap[1] + (width - 1) // 2, (overlap_y[0] + overlap_y[1]) // 2)
            if location is None and overlap_x[0] <= overlap_x[1]:
                gap = _gap(a.top_left.y, a.bottom_right.y, b.top_left.y, b.bottom_right.y)
                if gap and 1 <= gap[0] <= MAX_CHOKE_GAP:
                    width = gap[0]
                    location = GridLocation((overlap_x[0] + overlap_x[1]) // 2, gap[1] + (width - 1) // 2)
            if location is None or location.as_tuple() in seen:
                continue
            seen.add(location.as_tuple())
            choke_points.append(ChokePoint(
                location=location,
                width=width,
                tactical_value=f"A {width}-square passage between {a_id} and {b_id}",
                control_methods=(
                    "Hold the gap with a frontline defender",
                    "Catch bunched attackers with area spells",
                ),
                between=(a_id, b_id),
            ))
    return choke_points


# =============================================================================
# FLANKING AND PATHS
# =============================================================================

def find_flanking_opportunities(
    dimensions: BattlefieldDimensions,
    key_locations: Iterable[KeyLocation],
    obstacles: _Obstacles
) -> List[FlankingOpportunity]:
    """Key locations reachable with clear sight from at least two directions."""
    opportunities = []
    for key in key_locations:
        target = key.location
        positions = []
        for dx, dy in COMPASS:
            x, y = target.x + dx * FLANK_OFFSET, target.y + dy * FLANK_OFFSET
            if not (0 <= x < dimensions.width and 0 <= y < dimensions.height):
                continue
            if obstacles.blockers_at(x, y):
                continue
            position = GridLocation(x, y)
            if obstacles.sightline(position, target).clear:
                positions.append(position)
        if len(positions) < 2:
            continue
        if len(positions) >= 6:
            difficulty = FlankingDifficulty.EASY
        elif len(positions) >= 4:
            difficulty = FlankingDifficulty.MODERATE
        else:
            difficulty = FlankingDifficulty.DIFFICULT
        opportunities.append(FlankingOpportunity(
            target_area=GridArea.around(target, 1, dimensions.width, dimensions.height),
            flanking_positions=tuple(positions),
            difficulty=difficulty,
            benefits=(
                f"Surround the {key.name.lower()} from {len(positions)} directions",
                "Advantage on melee attacks when an ally is on the opposite side",
            ),
        ))
    return opportunities


def _rate_path(
    start: GridLocation,
    end: GridLocation,
    terrain: Sequence[TerrainFeature],
    cover: Sequence[CoverElement]
) -> Tuple[PathDifficulty, PathCover]:
    cells = line_cells(start, end, include_endpoints=True)
    crossed = {
        f.type for f in terrain
        if any(f.footprint().contains(x, y) for x, y in cells)
    }
    if TerrainType.IMPASSABLE in crossed:
        difficulty = PathDifficulty.EXTREME
    elif TerrainType.HAZARDOUS in crossed:
        difficulty = PathDifficulty.DIFFICULT
    elif TerrainType.DIFFICULT in crossed:
        difficulty = PathDifficulty.MODERATE
    else:
        difficulty = PathDifficulty.EASY

    nearby = 0
    for element in cover:
        area = element.footprint()
        if any(max(area.top_left.x - x, 0, x - area.bottom_right.x) <= 2 and
               max(area.top_left.y - y, 0, y - area.bottom_right.y) <= 2 for x, y in cells):
            nearby += 1
    if nearby == 0:
        path_cover = PathCover.NONE
    elif nearby == 1:
        path_cover = PathCover.PARTIAL
    elif nearby <= 3:
        path_cover = PathCover.GOOD
    else:
        path_cover = PathCover.EXCELLENT
    return difficulty, path_cover


def find_movement_paths(
    key_locations: Sequence[KeyLocation],
    terrain: Sequence[TerrainFeature],
    cover: Sequence[CoverElement]
) -> List[MovementPath]:
    by_name = {k.name: k.location for k in key_locations}
    routes = (
        ("Party Deployment", "Objective Site", "Party advance on the objective"),
        ("Enemy Deployment", "Objective Site", "Enemy advance on the objective"),
        ("Party Deployment", "Enemy Deployment", "Direct assault on the enemy line"),
    )
    paths = []
    for start_name, end_name, description in routes:
        start, end = by_name.get(start_name), by_name.get(end_name)
        if start is None or end is None:
            continue
        difficulty, path_cover = _rate_path(start, end, terrain, cover)
        paths.append(MovementPath(start, end, difficulty, path_cover, description))
    return paths


def derive_tactical_map(
    dimensions: BattlefieldDimensions,
    terrain: Sequence[TerrainFeature],
    cover: Sequence[CoverElement],
    elevation: Sequence[ElevationFeature],
    special_areas: Sequence[SpecialArea],
    feet_per_square: int = 5
) -> TacticalMap:
    """Derive every tactical annotation from the placed features."""
    obstacles = _Obstacles(terrain, cover)
    key_locations = find_key_locations(dimensions, elevation, special_areas)
    sight_lines = [
        obstacles.sightline(a.location, b.location)
        for i, a in enumerate(key_locations)
        for b in key_locations[i + 1:]
    ]
    return TacticalMap(
        grid_system=GridSystem(GridType.SQUARE, feet_per_square, CoordinateSystem.CARTESIAN),
        key_locations=tuple(key_locations),
        movement_paths=tuple(find_movement_paths(key_locations, terrain, cover)),
        sight_lines=tuple(sight_lines),
        choke_points=tuple(find_choke_points(terrain, cover)),
        flanking=tuple(find_flanking_opportunities(dimensions, key_locations, obstacles)),
    )
