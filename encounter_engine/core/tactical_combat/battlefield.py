"""
Battlefield Layout Generation.

Scales a battlefield template to the party, then places terrain, cover and
elevation features, lighting, movement zones and special areas. Every
footprint is sampled inside the grid, so bounds hold by construction.
"""
from typing import Dict, List, Optional, Tuple
import logging
import random

from .models import (
    AccessDifficulty,
    AccessMethod,
    AccessType,
    ActivationTrigger,
    AdvantageType,
    AreaShape,
    AreaSize,
    BattlefieldDimensions,
    BattlefieldLayout,
    ConcealmentLevel,
    CoverDensity,
    CoverDurability,
    CoverElement,
    CoverType,
    CoverValue,
    DisadvantageType,
    DurationType,
    EffectDuration,
    EffectType,
    ElevationAdvantage,
    ElevationDisadvantage,
    ElevationFeature,
    ElevationType,
    ElevationVariation,
    EncounterContext,
    EncounterDifficulty,
    FallDamageRule,
    GridArea,
    GridLocation,
    LightingChange,
    LightingCondition,
    LightingEffect,
    LightingType,
    MovementRestriction,
    MovementRule,
    MovementType,
    MovementZone,
    RestrictionType,
    SpecialArea,
    SpecialAreaEffect,
    SpecialAreaType,
    TerrainEffect,
    TerrainFeature,
    TerrainInteraction,
    TerrainType,
    TriggerType,
    VisibilityImpact,
)
from .scaling import clamp, round_half_up
from .tactical_map import derive_tactical_map
from .templates import BattlefieldTemplate

logger = logging.getLogger(__name__)


DEFAULT_FEET_PER_SQUARE = 5
MIN_PARTY_SCALE = 0.8
MAX_PARTY_SCALE = 1.5

# Footprints in squares (width, height)
TERRAIN_SIZES: Dict[TerrainType, Tuple[int, int]] = {
    TerrainType.DIFFICULT: (3, 3),
    TerrainType.HAZARDOUS: (2, 2),
    TerrainType.IMPASSABLE: (3, 3),
    TerrainType.SPECIAL: (2, 2),
    TerrainType.INTERACTIVE: (1, 1),
}

COVER_SIZES: Dict[CoverType, Tuple[int, int]] = {
    CoverType.HALF: (1, 1),
    CoverType.THREE_QUARTERS: (2, 1),
    CoverType.TOTAL: (2, 2),
    CoverType.PARTIAL: (1, 1),
    CoverType.MOBILE: (1, 1),
}

ELEVATION_SIZES: Dict[ElevationType, Tuple[int, int]] = {
    ElevationType.PLATFORM: (3, 3),
    ElevationType.TOWER: (2, 2),
    ElevationType.CLIFF: (4, 1),
    ElevationType.STAIRS: (1, 2),
    ElevationType.RAMP: (2, 1),
    ElevationType.PIT: (2, 2),
}

COVER_DENSITY_BASE: Dict[CoverDensity, int] = {
    CoverDensity.MINIMAL: 1,
    CoverDensity.LOW: 2,
    CoverDensity.MODERATE: 3,
    CoverDensity.HIGH: 5,
}

ELEVATION_VARIATION_BASE: Dict[ElevationVariation, int] = {
    ElevationVariation.NONE: 0,
    ElevationVariation.LOW: 1,
    ElevationVariation.MODERATE: 2,
    ElevationVariation.HIGH: 3,
    ElevationVariation.EXTREME: 4,
}

# Base heights in feet, multiplied by the variation factor
ELEVATION_HEIGHTS: Dict[ElevationType, int] = {
    ElevationType.PLATFORM: 10,
    ElevationType.TOWER: 20,
    ElevationType.CLIFF: 15,
    ElevationType.STAIRS: 5,
    ElevationType.RAMP: 5,
    ElevationType.PIT: -10,
}

ELEVATION_FACTORS: Dict[ElevationVariation, int] = {
    ElevationVariation.NONE: 0,
    ElevationVariation.LOW: 1,
    ElevationVariation.MODERATE: 1,
    ElevationVariation.HIGH: 2,
    ElevationVariation.EXTREME: 3,
}

TERRAIN_PROFILES = {
    TerrainType.DIFFICULT: {
        "description": "Dense undergrowth, loose rubble and uneven ground",
        "effects": (
            TerrainEffect(EffectType.MOVEMENT, "Difficult terrain", "Each square costs 2 squares of movement"),
        ),
        "interactions": (
            TerrainInteraction("clear", "Hack or kick a path through", ("Action", "DC 12 Strength (Athletics)"),
                               "One square becomes normal terrain"),
        ),
        "concealment": ConcealmentLevel.LIGHT,
        "movement": (MovementType.DIFFICULT, 0.5),
    },
    TerrainType.HAZARDOUS: {
        "description": "Jagged debris, scalding vents or slick drops",
        "effects": (
            TerrainEffect(EffectType.DAMAGE, "Harmful ground",
                          "A creature entering or starting its turn here takes 1d6 damage"),
            TerrainEffect(EffectType.MOVEMENT, "Treacherous footing", "Each square costs 2 squares of movement"),
        ),
        "interactions": (
            TerrainInteraction("shove", "Push an enemy into the hazard", ("Shove action", "Contested Athletics"),
                               "Target takes the hazard's damage"),
        ),
        "concealment": None,
        "movement": (MovementType.HAZARDOUS, 0.5),
    },
    TerrainType.IMPASSABLE: {
        "description": "Boulders, solid walls or a yawning gap",
        "effects": (
            TerrainEffect(EffectType.MOVEMENT, "Impassable",
                          "Cannot be entered without flying, climbing or teleporting"),
        ),
        "interactions": (
            TerrainInteraction("climb", "Scale the obstacle", ("DC 15 Strength (Athletics)",),
                               "Climber reaches the top at half speed"),
        ),
        "concealment": ConcealmentLevel.TOTAL,
        "movement": (MovementType.IMPOSSIBLE, 0.0),
    },
    TerrainType.SPECIAL: {
        "description": "Ground touched by lingering magic",
        "effects": (
            TerrainEffect(EffectType.MECHANICAL, "Lingering magic",
                          "Spells cast from here gain +1 to their save DC", ("Caster must start its turn here",)),
        ),
        "interactions": (
            TerrainInteraction("attune", "Draw on the lingering magic", ("Action", "DC 13 Intelligence (Arcana)"),
                               "Regain one expended spell slot of 1st level"),
        ),
        "concealment": None,
        "movement": (MovementType.SPECIAL, 1.0),
    },
    TerrainType.INTERACTIVE: {
        "description": "A lever, rope or loose support that can be worked",
        "effects": (
            TerrainEffect(EffectType.MECHANICAL, "Interactive object", "Can be manipulated as an object interaction"),
        ),
        "interactions": (
            TerrainInteraction("activate", "Pull, cut or topple the object", ("Object interaction",),
                               "Triggers a nearby environmental effect"),
            TerrainInteraction("sabotage", "Jam the mechanism", ("Action", "DC 12 Thieves' Tools"),
                               "The object can no longer be used"),
        ),
        "concealment": None,
        "movement": (MovementType.NORMAL, 1.0),
    },
}

COVER_PROFILES = {
    CoverType.HALF: ("A low wall or fallen log", CoverValue.LIGHT, CoverDurability(armor_class=15, hit_points=25), True, False),
    CoverType.THREE_QUARTERS: ("A thick trunk or heavy pillar", CoverValue.HEAVY,
                               CoverDurability(armor_class=17, hit_points=50, resistances=("piercing",)), True, False),
    CoverType.TOTAL: ("A solid stretch of wall", CoverValue.TOTAL,
                      CoverDurability(armor_class=18, hit_points=100, damage_threshold=10,
                                      immunities=("poison", "psychic")), False, False),
    CoverType.PARTIAL: ("Hanging foliage or tattered drapes", CoverValue.PARTIAL,
                        CoverDurability(armor_class=10, hit_points=5), True, False),
    CoverType.MOBILE: ("A crate or overturned table that can be dragged", CoverValue.LIGHT,
                       CoverDurability(armor_class=12, hit_points=15), True, True),
}

LIGHTING_EFFECTS = {
    LightingType.DIM: (
        LightingEffect(EffectType.VISIBILITY, "Lightly obscured",
                       "Disadvantage on Wisdom (Perception) checks that rely on sight"),
    ),
    LightingType.DARKNESS: (
        LightingEffect(EffectType.VISIBILITY, "Heavily obscured",
                       "Creatures without darkvision are effectively blinded",
                       ("Creatures without darkvision",)),
    ),
    LightingType.MAGICAL: (
        LightingEffect(EffectType.VISIBILITY, "Arcane glow",
                       "Invisible creatures within the light are outlined and lose invisibility"),
    ),
    LightingType.FLICKERING: (
        LightingEffect(EffectType.VISIBILITY, "Shifting shadows",
                       "Dexterity (Stealth) checks at the light's edge have advantage"),
    ),
}

SPECIAL_AREA_CATALOG = {
    "natural": (
        ("Fairy Ring", SpecialAreaType.MAGICAL, "A ring of pale mushrooms humming with fey magic",
         "Creatures entering the ring are teleported to another point of the ring", TriggerType.ENTRY),
        ("Hunter's Blind", SpecialAreaType.ENVIRONMENTAL, "A screen of woven branches",
         "Creatures inside are heavily obscured from outside", TriggerType.ENTRY),
        ("Sacred Grove", SpecialAreaType.OBJECTIVE, "An old oak that the druids revere",
         "Healing received here is increased by 2", TriggerType.CONDITION),
    ),
    "architectural": (
        ("Collapsed Vault", SpecialAreaType.TRAP, "A vault whose ceiling is one blow from falling",
         "Heavy impacts bring down the ceiling for 3d6 bludgeoning damage", TriggerType.DAMAGE),
        ("Rune Circle", SpecialAreaType.MAGICAL, "A circle of faded runes in the flagstones",
         "Spells cast inside the circle have their range doubled", TriggerType.ACTION),
        ("Ancient Altar", SpecialAreaType.OBJECTIVE, "A cracked altar still warm with power",
         "A creature touching the altar gains 5 temporary hit points", TriggerType.ACTION),
    ),
    "underground": (
        ("Echoing Gallery", SpecialAreaType.ENVIRONMENTAL, "A gallery where every sound carries",
         "Creatures inside have disadvantage on Dexterity (Stealth) checks", TriggerType.ENTRY),
        ("Fungal Bloom", SpecialAreaType.TRAP, "A carpet of puffball fungus",
         "Stepping here releases spores: DC 12 Constitution save or be poisoned", TriggerType.ENTRY),
        ("Underground Stream", SpecialAreaType.INTERACTIVE, "A cold, fast stream",
         "Creatures can be swept 10 feet downstream on a failed DC 12 Strength save", TriggerType.ENTRY),
    ),
    "ceremonial": (
        ("Throne Dais", SpecialAreaType.OBJECTIVE, "The raised dais before the throne",
         "A creature on the dais has advantage on Charisma checks", TriggerType.ENTRY),
        ("Hall of Banners", SpecialAreaType.INTERACTIVE, "Tall banners that can be cut down",
         "A cut banner falls and restrains a creature beneath it", TriggerType.ACTION),
        ("Warded Alcove", SpecialAreaType.MAGICAL, "An alcove sealed by a protective ward",
         "Creatures inside have resistance to force damage", TriggerType.ENTRY),
    ),
    "linear": (
        ("Gatehouse", SpecialAreaType.OBJECTIVE, "A fortified gatehouse anchoring the span",
         "Creatures inside have three-quarters cover from outside", TriggerType.ENTRY),
        ("Frayed Span", SpecialAreaType.TRAP, "A stretch where the planks are rotten",
         "More than one Medium creature here collapses the planks", TriggerType.CONDITION),
        ("Watch Platform", SpecialAreaType.ENVIRONMENTAL, "A platform jutting over the chasm",
         "Ranged attacks from the platform ignore half cover", TriggerType.ENTRY),
    ),
}


# =============================================================================
# COUNTS AND DIMENSIONS
# =============================================================================

def calculate_dimensions(
    template: BattlefieldTemplate,
    party_size: int,
    feet_per_square: int = DEFAULT_FEET_PER_SQUARE
) -> BattlefieldDimensions:
    """Scale the template's base size by party size (0.8x to 1.5x)."""
    scale_factor = clamp(party_size / 4, MIN_PARTY_SCALE, MAX_PARTY_SCALE)
    width = round_half_up(template.width * scale_factor)
    height = round_half_up(template.height * scale_factor)
    return BattlefieldDimensions(
        width=width,
        height=height,
        scale=f"{feet_per_square} feet per square",
        scale_factor=scale_factor,
        total_area=width * height,
        shape=template.shape,
    )


def calculate_terrain_count(template: BattlefieldTemplate, difficulty: EncounterDifficulty) -> int:
    return len(template.terrain_types) * (2 + difficulty.rank) // 2


def calculate_cover_count(template: BattlefieldTemplate, difficulty: EncounterDifficulty) -> int:
    return COVER_DENSITY_BASE[template.cover_density] + difficulty.rank


def calculate_elevation_count(template: BattlefieldTemplate, difficulty: EncounterDifficulty) -> int:
    base = ELEVATION_VARIATION_BASE[template.elevation_variation]
    if base == 0:
        return 0
    return base + difficulty.rank


def calculate_special_area_count(template: BattlefieldTemplate, difficulty: EncounterDifficulty) -> int:
    catalog = SPECIAL_AREA_CATALOG.get(template.environment, ())
    return min(len(catalog), 1 + difficulty.rank // 2)


def _sample_location(rng: random.Random, width: int, height: int,
                     footprint: Tuple[int, int], z: Optional[int] = None) -> GridLocation:
    """Top-left corner such that the whole footprint fits on the grid."""
    fw, fh = min(footprint[0], width), min(footprint[1], height)
    return GridLocation(
        x=rng.randint(0, width - fw),
        y=rng.randint(0, height - fh),
        z=z,
    )


# =============================================================================
# TERRAIN, COVER, ELEVATION
# =============================================================================

def _create_terrain_feature(feature_id: str, terrain_type: TerrainType, location: GridLocation) -> TerrainFeature:
    profile = TERRAIN_PROFILES[terrain_type]
    width, height = TERRAIN_SIZES[terrain_type]
    concealment = profile["concealment"]
    return TerrainFeature(
        id=feature_id,
        type=terrain_type,
        location=location,
        size=AreaSize(width, height),
        description=profile["description"],
        mechanical_effects=profile["effects"],
        interaction_options=profile["interactions"],
        visibility=VisibilityImpact(
            blocks_line_of_sight=terrain_type == TerrainType.IMPASSABLE and max(width, height) > 2,
            provides_concealment=concealment is not None,
            concealment_level=concealment,
        ),
    )


def generate_terrain(
    template: BattlefieldTemplate,
    difficulty: EncounterDifficulty,
    dimensions: BattlefieldDimensions,
    rng: random.Random
) -> List[TerrainFeature]:
    """Place terrain, required minimum types first."""
    count = calculate_terrain_count(template, difficulty)
    types: List[TerrainType] = []
    for terrain_type, minimum in template.minimum_terrain.items():
        types.extend([terrain_type] * minimum)
    while len(types) < count:
        types.append(rng.choice(template.terrain_types))

    features = []
    for i, terrain_type in enumerate(types):
        location = _sample_location(rng, dimensions.width, dimensions.height, TERRAIN_SIZES[terrain_type])
        features.append(_create_terrain_feature(f"terrain-{i}", terrain_type, location))
    return features


def generate_cover(
    template: BattlefieldTemplate,
    difficulty: EncounterDifficulty,
    dimensions: BattlefieldDimensions,
    rng: random.Random
) -> List[CoverElement]:
    elements = []
    for i in range(calculate_cover_count(template, difficulty)):
        cover_type = rng.choice(template.cover_types)
        width, height = COVER_SIZES[cover_type]
        description, value, durability, destructible, moveable = COVER_PROFILES[cover_type]
        elements.append(CoverElement(
            id=f"cover-{i}",
            type=cover_type,
            location=_sample_location(rng, dimensions.width, dimensions.height, (width, height)),
            size=AreaSize(width, height),
            description=description,
            cover_value=value,
            durability=durability,
            destructible=destructible,
            moveable=moveable,
        ))
    return elements


def _access_methods(elevation_type: ElevationType, height: int) -> Tuple[AccessMethod, ...]:
    climb_difficulty = AccessDifficulty.HARD if abs(height) >= 20 else AccessDifficulty.MODERATE
    climb_dc = 10 + abs(height) // 5
    if elevation_type in (ElevationType.STAIRS, ElevationType.RAMP):
        return (
            AccessMethod(AccessType.SPECIAL, "Walk up at normal speed", (), AccessDifficulty.TRIVIAL),
        )
    methods = [
        AccessMethod(AccessType.CLIMB, f"Climb {abs(height)} feet",
                     (f"DC {climb_dc} Strength (Athletics)",), climb_difficulty),
        AccessMethod(AccessType.FLY, "Fly up or down", ("Flying speed",), AccessDifficulty.TRIVIAL),
    ]
    if abs(height) <= 10:
        methods.append(AccessMethod(AccessType.JUMP, "Running high jump or drop",
                                    ("10 feet of run-up",), AccessDifficulty.EASY))
    return tuple(methods)


def _advantages(elevation_type: ElevationType, height: int) -> Tuple[ElevationAdvantage, ...]:
    if height < 0:
        return (
            ElevationAdvantage(AdvantageType.TACTICAL, "Hidden below ground level",
                               "Three-quarters cover against attacks from beyond 30 feet"),
        )
    advantages = [
        ElevationAdvantage(AdvantageType.COMBAT, "High ground",
                           "+2 to ranged attack rolls against creatures below", ("Target is lower",)),
        ElevationAdvantage(AdvantageType.VISIBILITY, "Commanding view",
                           "Advantage on Wisdom (Perception) checks to spot creatures below"),
    ]
    if elevation_type == ElevationType.TOWER:
        advantages.append(ElevationAdvantage(AdvantageType.TACTICAL, "Defensible position",
                                             "Only one creature can climb up per round"))
    return tuple(advantages)


def _disadvantages(elevation_type: ElevationType, height: int) -> Tuple[ElevationDisadvantage, ...]:
    if height < 0:
        return (
            ElevationDisadvantage(DisadvantageType.VULNERABILITY, "Trapped below",
                                  "Creatures above have advantage on ranged attacks into the pit"),
        )
    disadvantages = [
        ElevationDisadvantage(DisadvantageType.EXPOSURE, "Silhouetted",
                              "No cover from ranged attacks unless cover is placed on top"),
    ]
    if height >= 15:
        disadvantages.append(ElevationDisadvantage(DisadvantageType.ISOLATION, "Hard to reinforce",
                                                   "Allies need a full move to reach the top"))
    return tuple(disadvantages)


def calculate_fall_damage(height: int) -> FallDamageRule:
    """1d6 per 10 feet fallen, up to 20d6."""
    dice = clamp(abs(height) // 10, 1, 20)
    saving_throw = None
    if abs(height) >= 10:
        saving_throw = f"DC {10 + abs(height) // 10} Dexterity to catch the edge"
    return FallDamageRule(
        damage=f"{dice}d6 bludgeoning",
        maximum_damage="20d6",
        saving_throw=saving_throw,
        special_conditions=("Creature lands prone",),
    )


def generate_elevation(
    template: BattlefieldTemplate,
    difficulty: EncounterDifficulty,
    dimensions: BattlefieldDimensions,
    rng: random.Random
) -> List[ElevationFeature]:
    features = []
    factor = ELEVATION_FACTORS[template.elevation_variation]
    for i in range(calculate_elevation_count(template, difficulty)):
        elevation_type = rng.choice(template.elevation_types)
        width, height_squares = ELEVATION_SIZES[elevation_type]
        height = ELEVATION_HEIGHTS[elevation_type] * factor
        features.append(ElevationFeature(
            id=f"elevation-{i}",
            type=elevation_type,
            location=_sample_location(rng, dimensions.width, dimensions.height, (width, height_squares), z=height),
            size=AreaSize(width, height_squares, abs(height)),
            height=height,
            access_methods=_access_methods(elevation_type, height),
            advantages=_advantages(elevation_type, height),
            disadvantages=_disadvantages(elevation_type, height),
            fall_damage=calculate_fall_damage(height),
        ))
    return features


# =============================================================================
# LIGHTING, MOVEMENT, SPECIAL AREAS
# =============================================================================

def generate_lighting(
    template: BattlefieldTemplate,
    dimensions: BattlefieldDimensions,
    rng: random.Random
) -> List[LightingCondition]:
    """One ambient condition over the whole map plus the template's local lights."""
    whole_map = GridArea(
        top_left=GridLocation(0, 0),
        bottom_right=GridLocation(dimensions.width - 1, dimensions.height - 1),
    )
    conditions = [LightingCondition(
        area=whole_map,
        type=template.ambient_lighting,
        intensity=template.ambient_intensity,
        source=None,
        mechanical_effects=LIGHTING_EFFECTS.get(template.ambient_lighting, ()),
    )]

    for light in template.local_lights:
        for _ in range(light.count):
            center = GridLocation(rng.randrange(dimensions.width), rng.randrange(dimensions.height))
            changes = ()
            if light.type == LightingType.FLICKERING:
                changes = (LightingChange(
                    trigger="The source is knocked over or doused",
                    new_condition=LightingType.DARKNESS,
                    duration="Until relit",
                    description=f"The {light.source} gutter out",
                ),)
            conditions.append(LightingCondition(
                area=GridArea.around(center, light.radius, dimensions.width, dimensions.height, AreaShape.CIRCLE),
                type=light.type,
                intensity=light.intensity,
                source=light.source,
                mechanical_effects=LIGHTING_EFFECTS.get(light.type, ()),
                dynamic_changes=changes,
            ))
    return conditions


def generate_movement_zones(terrain: List[TerrainFeature]) -> List[MovementZone]:
    """Movement zones mirror each terrain footprint."""
    zones = []
    for feature in terrain:
        movement_type, speed_modifier = TERRAIN_PROFILES[feature.type]["movement"]
        restrictions = ()
        rules = ()
        if movement_type == MovementType.IMPOSSIBLE:
            restrictions = (MovementRestriction(
                RestrictionType.METHOD, "Walking creatures cannot enter",
                exceptions=("Flying creatures", "Teleportation"),
            ),)
        elif movement_type == MovementType.HAZARDOUS:
            rules = (MovementRule("careful-step", "Move at a quarter speed to avoid the hazard",
                                  "No damage from the hazard this turn"),)
        zones.append(MovementZone(
            area=feature.footprint(),
            type=movement_type,
            speed_modifier=speed_modifier,
            restrictions=restrictions,
            special_rules=rules,
            source_id=feature.id,
        ))
    return zones


def generate_special_areas(
    template: BattlefieldTemplate,
    difficulty: EncounterDifficulty,
    dimensions: BattlefieldDimensions,
    rng: random.Random
) -> List[SpecialArea]:
    catalog = SPECIAL_AREA_CATALOG.get(template.environment, ())
    count = calculate_special_area_count(template, difficulty)
    areas = []
    for i, entry in enumerate(rng.sample(catalog, count)):
        name, area_type, description, rule, trigger_type = entry
        center = GridLocation(rng.randrange(dimensions.width), rng.randrange(dimensions.height))
        areas.append(SpecialArea(
            id=f"special-area-{i}",
            name=name,
            location=GridArea.around(center, 2, dimensions.width, dimensions.height),
            type=area_type,
            description=description,
            mechanical_effects=(SpecialAreaEffect(
                type=EffectType.MECHANICAL,
                description=name,
                trigger=trigger_type.value,
                mechanical_rule=rule,
                duration="While inside the area",
            ),),
            activation_trigger=ActivationTrigger(trigger_type, rule),
            duration=EffectDuration(DurationType.CONDITIONAL, condition="While the area is intact"),
        ))
    return areas


# =============================================================================
# LAYOUT
# =============================================================================

def generate_battlefield(
    template: BattlefieldTemplate,
    difficulty: EncounterDifficulty,
    context: EncounterContext,
    rng: random.Random,
    feet_per_square: int = DEFAULT_FEET_PER_SQUARE
) -> BattlefieldLayout:
    """
    Generate the battlefield layout for an encounter.

    Args:
        template: Battlefield template for the theme
        difficulty: Encounter difficulty
        context: Party context (party size scales the grid)
        rng: Random source shared across the generation run
        feet_per_square: Grid scale

    Returns:
        BattlefieldLayout with its derived tactical map
    """
    dimensions = calculate_dimensions(template, context.party_size, feet_per_square)
    terrain = generate_terrain(template, difficulty, dimensions, rng)
    cover = generate_cover(template, difficulty, dimensions, rng)
    elevation = generate_elevation(template, difficulty, dimensions, rng)
    lighting = generate_lighting(template, dimensions, rng)
    movement = generate_movement_zones(terrain)
    special_areas = generate_special_areas(template, difficulty, dimensions, rng)

    logger.debug(
        f"Battlefield {template.key}: {dimensions.width}x{dimensions.height}, "
        f"{len(terrain)} terrain, {len(cover)} cover, {len(elevation)} elevation"
    )

    tactical_map = derive_tactical_map(
        dimensions, terrain, cover, elevation, special_areas, feet_per_square
    )

    return BattlefieldLayout(
        template_key=template.key,
        environment=template.environment,
        dimensions=dimensions,
        terrain=tuple(terrain),
        cover=tuple(cover),
        elevation=tuple(elevation),
        lighting=tuple(lighting),
        movement=tuple(movement),
        special_areas=tuple(special_areas),
        tactical_map=tactical_map,
    )
