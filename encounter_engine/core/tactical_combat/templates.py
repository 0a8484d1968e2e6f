"""
Battlefield and Objective Templates for Tactical Encounters.

Static lookup tables: theme → battlefield template, theme/priority →
objective candidates, objective key → objective template. Lookups with an
unknown key fall back to a documented default and log a warning.
"""
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple, Union
import logging

from .models import (
    BattlefieldShape,
    ConditionType,
    CoverDensity,
    CoverType,
    ElevationType,
    ElevationVariation,
    EncounterDifficulty,
    LightingIntensity,
    LightingType,
    ObjectivePriority,
    ObjectiveType,
    TacticalRole,
    TerrainType,
    Theme,
)

logger = logging.getLogger(__name__)


DEFAULT_THEME = Theme.FOREST
DEFAULT_DIFFICULTY = EncounterDifficulty.MEDIUM


@dataclass(frozen=True)
class LocalLight:
    """A light source placed around random points of the battlefield."""
    type: LightingType
    intensity: LightingIntensity
    source: str
    radius: int
    count: int


@dataclass(frozen=True)
class BattlefieldTemplate:
    """Template for a battlefield: base size, feature palette and flavor."""
    key: str
    name: str
    width: int
    height: int
    terrain_types: Tuple[TerrainType, ...]
    cover_density: CoverDensity
    elevation_variation: ElevationVariation
    environment: str
    shape: BattlefieldShape
    cover_types: Tuple[CoverType, ...]
    elevation_types: Tuple[ElevationType, ...]
    ambient_lighting: LightingType
    ambient_intensity: LightingIntensity
    enemy_adjective: str
    encounter_title: str
    role_weights: Dict[TacticalRole, int]
    minimum_terrain: Dict[TerrainType, int] = field(default_factory=dict)
    local_lights: Tuple[LocalLight, ...] = ()
    description: str = ""


@dataclass(frozen=True)
class ObjectiveTemplate:
    """Template for an objective type."""
    key: str
    name: str
    type: ObjectiveType
    description: str
    time_constraints: bool
    condition_type: ConditionType
    requirements: Tuple[str, ...]
    failure_effect: str
    failure_narrative: str
    complications: Tuple[Tuple[str, str, str], ...]  # (trigger, description, mechanical effect)


# =============================================================================
# BATTLEFIELD TEMPLATES
# =============================================================================

BATTLEFIELD_TEMPLATES: Dict[Theme, BattlefieldTemplate] = {
    Theme.FOREST: BattlefieldTemplate(
        key="forest-clearing",
        name="Forest Clearing",
        width=30,
        height=25,
        terrain_types=(TerrainType.DIFFICULT, TerrainType.IMPASSABLE, TerrainType.SPECIAL),
        minimum_terrain={TerrainType.DIFFICULT: 1},
        cover_density=CoverDensity.MODERATE,
        elevation_variation=ElevationVariation.LOW,
        environment="natural",
        shape=BattlefieldShape.CIRCULAR,
        cover_types=(CoverType.HALF, CoverType.THREE_QUARTERS, CoverType.PARTIAL),
        elevation_types=(ElevationType.PLATFORM, ElevationType.RAMP, ElevationType.CLIFF),
        ambient_lighting=LightingType.DIM,
        ambient_intensity=LightingIntensity.DIM,
        local_lights=(
            LocalLight(LightingType.BRIGHT, LightingIntensity.BRIGHT, "sunlight through the canopy", 3, 2),
        ),
        enemy_adjective="Woodland",
        encounter_title="Woodland",
        role_weights={
            TacticalRole.FRONTLINE: 2, TacticalRole.RANGED: 3, TacticalRole.SUPPORT: 1,
            TacticalRole.CONTROLLER: 1, TacticalRole.SKIRMISHER: 3,
        },
        description="A clearing ringed by dense trees, tangled undergrowth and fallen logs.",
    ),
    Theme.RUINS: BattlefieldTemplate(
        key="ancient-ruins",
        name="Ancient Ruins",
        width=35,
        height=30,
        terrain_types=(TerrainType.DIFFICULT, TerrainType.HAZARDOUS, TerrainType.INTERACTIVE),
        cover_density=CoverDensity.HIGH,
        elevation_variation=ElevationVariation.HIGH,
        environment="architectural",
        shape=BattlefieldShape.IRREGULAR,
        cover_types=(CoverType.HALF, CoverType.THREE_QUARTERS, CoverType.TOTAL),
        elevation_types=(ElevationType.PLATFORM, ElevationType.STAIRS, ElevationType.TOWER, ElevationType.PIT),
        ambient_lighting=LightingType.BRIGHT,
        ambient_intensity=LightingIntensity.NORMAL,
        local_lights=(
            LocalLight(LightingType.DIM, LightingIntensity.DIM, "collapsed vaults", 2, 2),
            LocalLight(LightingType.MAGICAL, LightingIntensity.DIM, "glowing runes", 1, 1),
        ),
        enemy_adjective="Ancient",
        encounter_title="Ancient",
        role_weights={
            TacticalRole.FRONTLINE: 3, TacticalRole.RANGED: 2, TacticalRole.SUPPORT: 1,
            TacticalRole.CONTROLLER: 3, TacticalRole.SKIRMISHER: 1,
        },
        description="Crumbling walls, toppled columns and half-buried stairways.",
    ),
    Theme.UNDERGROUND: BattlefieldTemplate(
        key="cavern-chamber",
        name="Underground Cavern",
        width=40,
        height=35,
        terrain_types=(TerrainType.DIFFICULT, TerrainType.HAZARDOUS, TerrainType.IMPASSABLE),
        cover_density=CoverDensity.LOW,
        elevation_variation=ElevationVariation.EXTREME,
        environment="underground",
        shape=BattlefieldShape.MULTI_LEVEL,
        cover_types=(CoverType.HALF, CoverType.TOTAL, CoverType.PARTIAL),
        elevation_types=(ElevationType.CLIFF, ElevationType.PLATFORM, ElevationType.PIT, ElevationType.RAMP),
        ambient_lighting=LightingType.DARKNESS,
        ambient_intensity=LightingIntensity.DARK,
        local_lights=(
            LocalLight(LightingType.DIM, LightingIntensity.DIM, "phosphorescent fungus", 2, 3),
        ),
        enemy_adjective="Deep",
        encounter_title="Cavern",
        role_weights={
            TacticalRole.FRONTLINE: 3, TacticalRole.RANGED: 1, TacticalRole.SUPPORT: 1,
            TacticalRole.CONTROLLER: 2, TacticalRole.SKIRMISHER: 3,
        },
        description="A vaulted cave of stalagmites, ledges and sudden drops.",
    ),
    Theme.INDOOR: BattlefieldTemplate(
        key="throne-room",
        name="Grand Throne Room",
        width=45,
        height=40,
        terrain_types=(TerrainType.SPECIAL, TerrainType.INTERACTIVE),
        cover_density=CoverDensity.LOW,
        elevation_variation=ElevationVariation.MODERATE,
        environment="ceremonial",
        shape=BattlefieldShape.RECTANGULAR,
        cover_types=(CoverType.HALF, CoverType.THREE_QUARTERS, CoverType.MOBILE),
        elevation_types=(ElevationType.PLATFORM, ElevationType.STAIRS),
        ambient_lighting=LightingType.BRIGHT,
        ambient_intensity=LightingIntensity.BRIGHT,
        local_lights=(
            LocalLight(LightingType.FLICKERING, LightingIntensity.BRIGHT, "braziers", 1, 4),
            LocalLight(LightingType.COLORED, LightingIntensity.NORMAL, "stained glass windows", 3, 1),
        ),
        enemy_adjective="Elite",
        encounter_title="Chamber",
        role_weights={
            TacticalRole.FRONTLINE: 3, TacticalRole.RANGED: 2, TacticalRole.SUPPORT: 3,
            TacticalRole.CONTROLLER: 1, TacticalRole.SKIRMISHER: 1,
        },
        description="A pillared hall leading up to a raised dais and throne.",
    ),
    Theme.BRIDGE: BattlefieldTemplate(
        key="bridge-crossing",
        name="Narrow Bridge",
        width=50,
        height=15,
        terrain_types=(TerrainType.HAZARDOUS, TerrainType.IMPASSABLE),
        minimum_terrain={TerrainType.IMPASSABLE: 1, TerrainType.HAZARDOUS: 1},
        cover_density=CoverDensity.MINIMAL,
        elevation_variation=ElevationVariation.EXTREME,
        environment="linear",
        shape=BattlefieldShape.LINEAR,
        cover_types=(CoverType.HALF, CoverType.PARTIAL),
        elevation_types=(ElevationType.TOWER, ElevationType.RAMP, ElevationType.CLIFF),
        ambient_lighting=LightingType.BRIGHT,
        ambient_intensity=LightingIntensity.NORMAL,
        enemy_adjective="Bridge",
        encounter_title="Bridge",
        role_weights={
            TacticalRole.FRONTLINE: 4, TacticalRole.RANGED: 3, TacticalRole.SUPPORT: 1,
            TacticalRole.CONTROLLER: 1, TacticalRole.SKIRMISHER: 1,
        },
        description="A long span over a chasm, anchored by gatehouses at either end.",
    ),
}


# =============================================================================
# OBJECTIVE TEMPLATES
# =============================================================================

OBJECTIVE_TEMPLATES: Dict[str, ObjectiveTemplate] = {
    "protect-vip": ObjectiveTemplate(
        key="protect-vip",
        name="Protect the VIP",
        type=ObjectiveType.PROTECT,
        description="Keep the VIP alive and safe",
        time_constraints=True,
        condition_type=ConditionType.PROTECTION,
        requirements=("The VIP is alive at the end of combat", "The VIP is not captured"),
        failure_effect="The VIP is slain or carried off",
        failure_narrative="Allies lose faith in the party and a key contact is lost",
        complications=(
            ("Round 2", "The VIP panics and bolts for cover", "VIP moves 30 feet in a random direction"),
            ("VIP takes damage", "Assassins single out the VIP", "One enemy gains advantage on attacks against the VIP"),
            ("Half the enemies remain", "The VIP is wounded and cannot walk", "VIP must be carried; carrier speed is halved"),
        ),
    ),
    "retrieve-artifact": ObjectiveTemplate(
        key="retrieve-artifact",
        name="Retrieve the Artifact",
        type=ObjectiveType.RETRIEVE,
        description="Secure the magical artifact",
        time_constraints=False,
        condition_type=ConditionType.POSITION,
        requirements=("A party member holds the artifact", "The artifact leaves the battlefield intact"),
        failure_effect="The enemy escapes with the artifact",
        failure_narrative="The artifact's power falls into hostile hands",
        complications=(
            ("Artifact is touched", "The artifact lashes out with raw magic", "DC 13 Constitution save or take 2d6 force damage"),
            ("Round 3", "The artifact's ward collapses the floor around it", "Squares adjacent to the artifact become difficult terrain"),
            ("Artifact is dropped", "The artifact rolls toward a hazard", "Artifact moves 10 feet toward the nearest hazard"),
        ),
    ),
    "control-points": ObjectiveTemplate(
        key="control-points",
        name="Hold the Points",
        type=ObjectiveType.CONTROL,
        description="Maintain control of strategic locations",
        time_constraints=True,
        condition_type=ConditionType.POSITION,
        requirements=("Occupy the control points at the end of a round", "No enemy contests a held point"),
        failure_effect="The enemy holds the strategic locations",
        failure_narrative="The enemy fortifies the area and cuts off the party's route",
        complications=(
            ("A point is captured", "Enemy reinforcements converge on the captured point", "Two enemies move toward the point at the start of the round"),
            ("Round 3", "A point becomes unstable", "Creatures on one point make a DC 12 Dexterity save each round"),
            ("Point contested for 2 rounds", "Signal fires call distant allies", "Reinforcements arrive one round earlier"),
        ),
    ),
    "escape-pursuit": ObjectiveTemplate(
        key="escape-pursuit",
        name="Escape the Pursuit",
        type=ObjectiveType.ESCAPE,
        description="Reach the exit while being pursued",
        time_constraints=True,
        condition_type=ConditionType.POSITION,
        requirements=("Every party member reaches the exit", "No party member is restrained at the exit"),
        failure_effect="The party is cornered and overwhelmed",
        failure_narrative="The pursuers capture stragglers for questioning",
        complications=(
            ("Round 2", "The exit starts to close", "Exit squares become difficult terrain"),
            ("A party member falls behind", "Pursuers attempt to grapple stragglers", "Pursuers gain advantage on grapple checks"),
            ("Half the party escapes", "A rear guard blocks the route", "One enemy appears adjacent to the exit"),
        ),
    ),
    "ritual-disruption": ObjectiveTemplate(
        key="ritual-disruption",
        name="Disrupt the Ritual",
        type=ObjectiveType.ACTIVATE,
        description="Disrupt the enemy ritual before completion",
        time_constraints=True,
        condition_type=ConditionType.ACTIVATION,
        requirements=("Destroy or deactivate the ritual focus", "Interrupt the ritual casters"),
        failure_effect="The ritual completes",
        failure_narrative="A dark power is unleashed upon the region",
        complications=(
            ("Ritual focus is attacked", "The focus releases a pulse of energy", "Creatures within 10 feet take 2d8 necrotic damage"),
            ("Round 3", "The ritual accelerates", "The time limit is reduced by 1 round"),
            ("A caster falls", "Another enemy takes over the chant", "The nearest enemy spends its action maintaining the ritual"),
        ),
    ),
}


OBJECTIVE_CANDIDATES: Dict[Theme, Dict[ObjectivePriority, Tuple[str, ...]]] = {
    Theme.FOREST: {
        ObjectivePriority.PRIMARY: ("protect-vip", "retrieve-artifact"),
        ObjectivePriority.SECONDARY: ("retrieve-artifact", "escape-pursuit"),
        ObjectivePriority.BONUS: ("control-points", "ritual-disruption"),
    },
    Theme.RUINS: {
        ObjectivePriority.PRIMARY: ("retrieve-artifact", "ritual-disruption"),
        ObjectivePriority.SECONDARY: ("control-points", "protect-vip"),
        ObjectivePriority.BONUS: ("escape-pursuit", "retrieve-artifact"),
    },
    Theme.UNDERGROUND: {
        ObjectivePriority.PRIMARY: ("escape-pursuit", "control-points"),
        ObjectivePriority.SECONDARY: ("retrieve-artifact", "ritual-disruption"),
        ObjectivePriority.BONUS: ("protect-vip", "control-points"),
    },
    Theme.INDOOR: {
        ObjectivePriority.PRIMARY: ("protect-vip", "ritual-disruption"),
        ObjectivePriority.SECONDARY: ("control-points", "retrieve-artifact"),
        ObjectivePriority.BONUS: ("escape-pursuit", "protect-vip"),
    },
    Theme.BRIDGE: {
        ObjectivePriority.PRIMARY: ("escape-pursuit", "control-points"),
        ObjectivePriority.SECONDARY: ("protect-vip", "control-points"),
        ObjectivePriority.BONUS: ("retrieve-artifact", "ritual-disruption"),
    },
}

GENERATED_PRIORITIES = (ObjectivePriority.PRIMARY, ObjectivePriority.SECONDARY, ObjectivePriority.BONUS)


def _validate_tables() -> None:
    """Fail at import if a theme is missing a template or candidate list."""
    for theme in Theme:
        template = BATTLEFIELD_TEMPLATES.get(theme)
        if template is None:
            raise RuntimeError(f"No battlefield template for theme '{theme.value}'")
        extra = set(template.minimum_terrain) - set(template.terrain_types)
        if extra:
            raise RuntimeError(f"Template '{template.key}' requires terrain it cannot place: {sorted(extra)}")
        if sum(template.minimum_terrain.values()) > len(template.terrain_types):
            raise RuntimeError(f"Template '{template.key}' minimum terrain exceeds its easy terrain count")
        candidates = OBJECTIVE_CANDIDATES.get(theme, {})
        for priority in GENERATED_PRIORITIES:
            keys = candidates.get(priority)
            if not keys:
                raise RuntimeError(f"No {priority.value} objectives for theme '{theme.value}'")
            unknown = [k for k in keys if k not in OBJECTIVE_TEMPLATES]
            if unknown:
                raise RuntimeError(f"Unknown objective templates for theme '{theme.value}': {unknown}")


_validate_tables()


# =============================================================================
# LOOKUPS
# =============================================================================

def resolve_theme(theme: Union[str, Theme, None]) -> Theme:
    """Resolve a theme key, falling back to forest for unknown values."""
    if isinstance(theme, Theme):
        return theme
    try:
        return Theme(str(theme).strip().lower())
    except ValueError:
        logger.warning(f"Unknown theme '{theme}', falling back to '{DEFAULT_THEME.value}'")
        return DEFAULT_THEME


def resolve_difficulty(difficulty: Union[str, EncounterDifficulty, None]) -> EncounterDifficulty:
    """Resolve a difficulty key, falling back to medium for unknown values."""
    if isinstance(difficulty, EncounterDifficulty):
        return difficulty
    try:
        return EncounterDifficulty(str(difficulty).strip().lower())
    except ValueError:
        logger.warning(f"Unknown difficulty '{difficulty}', falling back to '{DEFAULT_DIFFICULTY.value}'")
        return DEFAULT_DIFFICULTY


def get_battlefield_template(theme: Union[str, Theme, None]) -> BattlefieldTemplate:
    """Get the battlefield template for a theme (forest clearing if unknown)."""
    return BATTLEFIELD_TEMPLATES[resolve_theme(theme)]


def find_battlefield_template(key: str) -> Optional[BattlefieldTemplate]:
    """Find a battlefield template by its key (e.g. 'ancient-ruins')."""
    for template in BATTLEFIELD_TEMPLATES.values():
        if template.key == key:
            return template
    return None


def find_objective_template(key: str) -> Optional[ObjectiveTemplate]:
    """Find an objective template by its key (e.g. 'ritual-disruption')."""
    return OBJECTIVE_TEMPLATES.get(key)


def get_objective_candidates(
    theme: Theme,
    priority: ObjectivePriority,
    used_types: Optional[List[ObjectiveType]] = None
) -> List[ObjectiveTemplate]:
    """
    Get objective templates eligible for a priority slot.

    Theme candidates whose type has already been used are skipped. If none
    remain, every unused template is offered in key order.
    """
    used = set(used_types or [])
    keys = OBJECTIVE_CANDIDATES[theme].get(priority, OBJECTIVE_CANDIDATES[theme][ObjectivePriority.PRIMARY])
    candidates = [OBJECTIVE_TEMPLATES[k] for k in keys if OBJECTIVE_TEMPLATES[k].type not in used]
    if candidates:
        return candidates
    logger.debug(f"No unused {priority.value} candidates for {theme.value}, widening to all templates")
    return [
        OBJECTIVE_TEMPLATES[k] for k in sorted(OBJECTIVE_TEMPLATES)
        if OBJECTIVE_TEMPLATES[k].type not in used
    ]


def list_themes() -> List[Dict[str, str]]:
    """List available themes with their battlefield templates."""
    return [
        {
            "theme": theme.value,
            "template": template.key,
            "name": template.name,
            "description": template.description,
        }
        for theme, template in BATTLEFIELD_TEMPLATES.items()
    ]
