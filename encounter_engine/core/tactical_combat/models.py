"""
Data model for tactical combat encounters.

Every entity is a frozen value object produced once per generation call.
Collections are tuples so an encounter cannot be altered after assembly,
and every entity serializes to plain JSON-compatible data via to_dict().
"""
from dataclasses import dataclass, field, fields, is_dataclass
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple

from encounter_engine.core.errors import InvalidContextError


def to_serializable(value: Any) -> Any:
    """Recursively convert dataclasses, enums and tuples into JSON-safe data."""
    if isinstance(value, Enum):
        return value.value
    if is_dataclass(value) and not isinstance(value, type):
        return {f.name: to_serializable(getattr(value, f.name)) for f in fields(value)}
    if isinstance(value, (list, tuple)):
        return [to_serializable(item) for item in value]
    if isinstance(value, dict):
        return {str(to_serializable(k)): to_serializable(v) for k, v in value.items()}
    return value


class Serializable:
    """Mixin giving dataclasses a to_dict() for API responses."""

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return to_serializable(self)


# =============================================================================
# ENUMS
# =============================================================================

class EncounterDifficulty(str, Enum):
    """Encounter difficulty tiers, ordered easy → legendary."""
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"
    DEADLY = "deadly"
    LEGENDARY = "legendary"

    @property
    def rank(self) -> int:
        """Position on the difficulty ladder (0 for easy, 4 for legendary)."""
        return list(EncounterDifficulty).index(self)


class Theme(str, Enum):
    """Encounter themes with a dedicated battlefield template."""
    FOREST = "forest"
    RUINS = "ruins"
    UNDERGROUND = "underground"
    INDOOR = "indoor"
    BRIDGE = "bridge"


class BattlefieldShape(str, Enum):
    RECTANGULAR = "rectangular"
    CIRCULAR = "circular"
    IRREGULAR = "irregular"
    LINEAR = "linear"
    MULTI_LEVEL = "multi-level"


class TerrainType(str, Enum):
    """Terrain categories a battlefield template can draw from."""
    DIFFICULT = "difficult"
    HAZARDOUS = "hazardous"
    IMPASSABLE = "impassable"
    SPECIAL = "special"
    INTERACTIVE = "interactive"


class CoverType(str, Enum):
    HALF = "half"
    THREE_QUARTERS = "three-quarters"
    TOTAL = "total"
    PARTIAL = "partial"
    MOBILE = "mobile"


class CoverValue(str, Enum):
    LIGHT = "light"
    HEAVY = "heavy"
    TOTAL = "total"
    PARTIAL = "partial"


class CoverDensity(str, Enum):
    """Template hint for how much cover a battlefield carries."""
    MINIMAL = "minimal"
    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"


class ElevationType(str, Enum):
    PLATFORM = "platform"
    STAIRS = "stairs"
    RAMP = "ramp"
    CLIFF = "cliff"
    PIT = "pit"
    TOWER = "tower"


class ElevationVariation(str, Enum):
    """Template hint for how much the ground level changes."""
    NONE = "none"
    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"
    EXTREME = "extreme"


class TerrainComplexity(str, Enum):
    SIMPLE = "simple"
    MODERATE = "moderate"
    COMPLEX = "complex"
    EXTREME = "extreme"


class ConcealmentLevel(str, Enum):
    LIGHT = "light"
    HEAVY = "heavy"
    TOTAL = "total"


class AreaShape(str, Enum):
    SQUARE = "square"
    CIRCLE = "circle"
    LINE = "line"
    CONE = "cone"
    IRREGULAR = "irregular"


class EffectType(str, Enum):
    DAMAGE = "damage"
    CONDITION = "condition"
    MOVEMENT = "movement"
    VISIBILITY = "visibility"
    MECHANICAL = "mechanical"


class AccessType(str, Enum):
    CLIMB = "climb"
    JUMP = "jump"
    FLY = "fly"
    TELEPORT = "teleport"
    SPECIAL = "special"


class AccessDifficulty(str, Enum):
    TRIVIAL = "trivial"
    EASY = "easy"
    MODERATE = "moderate"
    HARD = "hard"
    EXTREME = "extreme"


class AdvantageType(str, Enum):
    COMBAT = "combat"
    MOVEMENT = "movement"
    VISIBILITY = "visibility"
    TACTICAL = "tactical"


class DisadvantageType(str, Enum):
    VULNERABILITY = "vulnerability"
    EXPOSURE = "exposure"
    ISOLATION = "isolation"
    TACTICAL = "tactical"


class LightingType(str, Enum):
    BRIGHT = "bright"
    DIM = "dim"
    DARKNESS = "darkness"
    MAGICAL = "magical"
    FLICKERING = "flickering"
    COLORED = "colored"


class LightingIntensity(str, Enum):
    BLINDING = "blinding"
    BRIGHT = "bright"
    NORMAL = "normal"
    DIM = "dim"
    DARK = "dark"
    PITCH_BLACK = "pitch-black"


class MovementType(str, Enum):
    NORMAL = "normal"
    DIFFICULT = "difficult"
    HAZARDOUS = "hazardous"
    IMPOSSIBLE = "impossible"
    SPECIAL = "special"


class RestrictionType(str, Enum):
    SPEED = "speed"
    DIRECTION = "direction"
    METHOD = "method"
    CREATURE_TYPE = "creature-type"


class SpecialAreaType(str, Enum):
    MAGICAL = "magical"
    TRAP = "trap"
    INTERACTIVE = "interactive"
    OBJECTIVE = "objective"
    ENVIRONMENTAL = "environmental"


class TriggerType(str, Enum):
    ENTRY = "entry"
    EXIT = "exit"
    ACTION = "action"
    TIME = "time"
    CONDITION = "condition"
    DAMAGE = "damage"


class DurationType(str, Enum):
    INSTANT = "instant"
    ROUNDS = "rounds"
    MINUTES = "minutes"
    PERMANENT = "permanent"
    CONDITIONAL = "conditional"


class GridType(str, Enum):
    SQUARE = "square"
    HEXAGONAL = "hexagonal"
    ABSTRACT = "abstract"


class CoordinateSystem(str, Enum):
    CARTESIAN = "cartesian"
    POLAR = "polar"
    RELATIVE = "relative"


class LocationImportance(str, Enum):
    CRITICAL = "critical"
    IMPORTANT = "important"
    USEFUL = "useful"
    MINOR = "minor"


class PathDifficulty(str, Enum):
    EASY = "easy"
    MODERATE = "moderate"
    DIFFICULT = "difficult"
    EXTREME = "extreme"


class PathCover(str, Enum):
    NONE = "none"
    PARTIAL = "partial"
    GOOD = "good"
    EXCELLENT = "excellent"


class FlankingDifficulty(str, Enum):
    EASY = "easy"
    MODERATE = "moderate"
    DIFFICULT = "difficult"
    IMPOSSIBLE = "impossible"


class ObjectiveType(str, Enum):
    """Non-elimination goals an encounter can be built around."""
    PROTECT = "protect"
    RETRIEVE = "retrieve"
    ACTIVATE = "activate"
    ESCAPE = "escape"
    CONTROL = "control"


class ObjectivePriority(str, Enum):
    PRIMARY = "primary"
    SECONDARY = "secondary"
    BONUS = "bonus"
    HIDDEN = "hidden"


class ConditionType(str, Enum):
    ELIMINATION = "elimination"
    PROTECTION = "protection"
    ACTIVATION = "activation"
    TIME = "time"
    POSITION = "position"


class RewardType(str, Enum):
    EXPERIENCE = "experience"
    TREASURE = "treasure"
    INFORMATION = "information"
    ACCESS = "access"
    REPUTATION = "reputation"


class TacticalRole(str, Enum):
    """Combat function archetype of an enemy."""
    FRONTLINE = "frontline"
    RANGED = "ranged"
    SUPPORT = "support"
    CONTROLLER = "controller"
    SKIRMISHER = "skirmisher"
    LEADER = "leader"


class FormationRole(str, Enum):
    VANGUARD = "vanguard"
    CENTER = "center"
    FLANK = "flank"
    REAR = "rear"
    MOBILE = "mobile"


class SpacingRequirement(str, Enum):
    TIGHT = "tight"
    NORMAL = "normal"
    LOOSE = "loose"
    SCATTERED = "scattered"


class TacticalStrategy(str, Enum):
    AGGRESSIVE = "aggressive"
    DEFENSIVE = "defensive"
    MOBILE = "mobile"
    CONTROL = "control"
    SUPPORT = "support"


class PositioningPreference(str, Enum):
    MELEE = "melee"
    RANGED = "ranged"
    ELEVATED = "elevated"
    COVERED = "covered"
    MOBILE = "mobile"


class EnemyObjectiveType(str, Enum):
    ELIMINATE_TARGET = "eliminate-target"
    PROTECT_ALLY = "protect-ally"
    CONTROL_AREA = "control-area"
    ACTIVATE_DEVICE = "activate-device"
    ESCAPE = "escape"


class EquipmentType(str, Enum):
    WEAPON = "weapon"
    ARMOR = "armor"
    TOOL = "tool"
    CONSUMABLE = "consumable"
    MAGICAL = "magical"


class AbilityType(str, Enum):
    OFFENSIVE = "offensive"
    DEFENSIVE = "defensive"
    UTILITY = "utility"
    MOVEMENT = "movement"
    CONTROL = "control"


class HazardType(str, Enum):
    ENVIRONMENTAL = "environmental"
    MAGICAL = "magical"
    MECHANICAL = "mechanical"
    CREATURE = "creature"
    TEMPORAL = "temporal"


class HazardSeverity(str, Enum):
    """Hazard severity tier, ordered mild → deadly."""
    MILD = "mild"
    MODERATE = "moderate"
    SEVERE = "severe"
    DEADLY = "deadly"


class CounterplayEffectiveness(str, Enum):
    COMPLETE = "complete"
    PARTIAL = "partial"
    MINIMAL = "minimal"
    SITUATIONAL = "situational"


class FeatureType(str, Enum):
    DEFENSIVE = "defensive"
    OFFENSIVE = "offensive"
    UTILITY = "utility"
    MOVEMENT = "movement"
    INFORMATION = "information"


class BenefitType(str, Enum):
    COMBAT = "combat"
    MOVEMENT = "movement"
    DEFENSE = "defense"
    UTILITY = "utility"
    INFORMATION = "information"


class ActivationType(str, Enum):
    AUTOMATIC = "automatic"
    ACTION = "action"
    BONUS_ACTION = "bonus-action"
    REACTION = "reaction"
    FREE = "free"


class UsageType(str, Enum):
    PER_ENCOUNTER = "per-encounter"
    PER_ROUND = "per-round"
    PER_DAY = "per-day"
    UNLIMITED = "unlimited"


class ValueImportance(str, Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MODERATE = "moderate"
    LOW = "low"


class TriggerTiming(str, Enum):
    START_OF_COMBAT = "start-of-combat"
    START_OF_ROUND = "start-of-round"
    END_OF_ROUND = "end-of-round"
    SPECIFIC_INITIATIVE = "specific-initiative"
    CONDITION_MET = "condition-met"


class CombatPhase(str, Enum):
    INITIATIVE = "initiative"
    ACTION = "action"
    MOVEMENT = "movement"
    END_OF_TURN = "end-of-turn"
    END_OF_ROUND = "end-of-round"


class VictoryType(str, Enum):
    ELIMINATION = "elimination"
    OBJECTIVE = "objective"
    SURVIVAL = "survival"
    ESCAPE = "escape"
    CONTROL = "control"
    TIME = "time"


class ConsequenceType(str, Enum):
    IMMEDIATE = "immediate"
    DELAYED = "delayed"
    ONGOING = "ongoing"
    PERMANENT = "permanent"


class ConsequenceSeverity(str, Enum):
    """Severity of a defeat consequence, ordered minor → critical."""
    MINOR = "minor"
    MODERATE = "moderate"
    MAJOR = "major"
    CRITICAL = "critical"


# Scaling-table modifiers

class HazardIntensity(str, Enum):
    REDUCED = "reduced"
    NORMAL = "normal"
    INCREASED = "increased"
    EXTREME = "extreme"


class ObjectiveComplexity(str, Enum):
    SIMPLIFIED = "simplified"
    STANDARD = "standard"
    COMPLEX = "complex"
    MULTI_LAYERED = "multi-layered"


class TacticalComplexity(str, Enum):
    BASIC = "basic"
    STANDARD = "standard"
    ADVANCED = "advanced"
    EXPERT = "expert"


class EnvironmentalIntensity(str, Enum):
    MINIMAL = "minimal"
    MODERATE = "moderate"
    HIGH = "high"
    EXTREME = "extreme"


class ObjectiveLayering(str, Enum):
    SINGLE = "single"
    DUAL = "dual"
    MULTIPLE = "multiple"
    LAYERED = "layered"


class TimePressure(str, Enum):
    RELAXED = "relaxed"
    MODERATE = "moderate"
    TIGHT = "tight"
    EXTREME = "extreme"


class FeatureDensity(str, Enum):
    FEW = "few"
    NORMAL = "normal"
    MANY = "many"
    ABUNDANT = "abundant"


class HazardDensity(str, Enum):
    SPARSE = "sparse"
    NORMAL = "normal"
    DENSE = "dense"
    OVERWHELMING = "overwhelming"


class TacticalOptions(str, Enum):
    LIMITED = "limited"
    STANDARD = "standard"
    VARIED = "varied"
    EXTENSIVE = "extensive"


# =============================================================================
# GRID PRIMITIVES
# =============================================================================

@dataclass(frozen=True)
class GridLocation(Serializable):
    """A square on the battle grid; z carries elevation in feet."""
    x: int
    y: int
    z: Optional[int] = None

    def as_tuple(self) -> Tuple[int, int]:
        return (self.x, self.y)

    def distance_to(self, other: "GridLocation") -> int:
        """Grid distance in squares (diagonals cost one square)."""
        return max(abs(self.x - other.x), abs(self.y - other.y))


@dataclass(frozen=True)
class AreaSize(Serializable):
    """Footprint of a feature in squares."""
    width: int
    height: int
    depth: Optional[int] = None


@dataclass(frozen=True)
class GridArea(Serializable):
    """A rectangular region, both corners inclusive."""
    top_left: GridLocation
    bottom_right: GridLocation
    shape: AreaShape = AreaShape.SQUARE

    def __post_init__(self):
        if self.top_left.x > self.bottom_right.x or self.top_left.y > self.bottom_right.y:
            raise ValueError(
                f"Inverted grid area: top_left={self.top_left.as_tuple()} "
                f"bottom_right={self.bottom_right.as_tuple()}"
            )

    @property
    def width(self) -> int:
        return self.bottom_right.x - self.top_left.x + 1

    @property
    def height(self) -> int:
        return self.bottom_right.y - self.top_left.y + 1

    @property
    def center(self) -> GridLocation:
        return GridLocation(
            x=(self.top_left.x + self.bottom_right.x) // 2,
            y=(self.top_left.y + self.bottom_right.y) // 2,
        )

    def contains(self, x: int, y: int) -> bool:
        """Check if a square is inside this area."""
        return (self.top_left.x <= x <= self.bottom_right.x and
                self.top_left.y <= y <= self.bottom_right.y)

    @classmethod
    def from_footprint(cls, location: GridLocation, size: AreaSize,
                       shape: AreaShape = AreaShape.SQUARE) -> "GridArea":
        """Area covered by a feature anchored at its top-left square."""
        return cls(
            top_left=GridLocation(location.x, location.y),
            bottom_right=GridLocation(location.x + size.width - 1, location.y + size.height - 1),
            shape=shape,
        )

    @classmethod
    def around(cls, center: GridLocation, radius: int, width: int, height: int,
               shape: AreaShape = AreaShape.SQUARE) -> "GridArea":
        """Square area of the given radius around a point, clipped to the map."""
        return cls(
            top_left=GridLocation(max(0, center.x - radius), max(0, center.y - radius)),
            bottom_right=GridLocation(min(width - 1, center.x + radius), min(height - 1, center.y + radius)),
            shape=shape,
        )


# =============================================================================
# BATTLEFIELD
# =============================================================================

@dataclass(frozen=True)
class BattlefieldDimensions(Serializable):
    width: int
    height: int
    scale: str
    scale_factor: float
    total_area: int
    shape: BattlefieldShape


@dataclass(frozen=True)
class TerrainEffect(Serializable):
    type: EffectType
    description: str
    mechanical_rule: str
    conditions: Tuple[str, ...] = ()


@dataclass(frozen=True)
class TerrainInteraction(Serializable):
    action: str
    description: str
    requirements: Tuple[str, ...]
    outcome: str


@dataclass(frozen=True)
class VisibilityImpact(Serializable):
    blocks_line_of_sight: bool
    provides_concealment: bool
    concealment_level: Optional[ConcealmentLevel] = None


@dataclass(frozen=True)
class TerrainFeature(Serializable):
    """A patch of terrain anchored at its top-left square."""
    id: str
    type: TerrainType
    location: GridLocation
    size: AreaSize
    description: str
    mechanical_effects: Tuple[TerrainEffect, ...]
    interaction_options: Tuple[TerrainInteraction, ...]
    visibility: VisibilityImpact

    def footprint(self) -> GridArea:
        return GridArea.from_footprint(self.location, self.size)


@dataclass(frozen=True)
class CoverDurability(Serializable):
    armor_class: int
    hit_points: Optional[int] = None
    damage_threshold: Optional[int] = None
    immunities: Tuple[str, ...] = ()
    resistances: Tuple[str, ...] = ()


@dataclass(frozen=True)
class CoverElement(Serializable):
    id: str
    type: CoverType
    location: GridLocation
    size: AreaSize
    description: str
    cover_value: CoverValue
    durability: CoverDurability
    destructible: bool
    moveable: bool

    def footprint(self) -> GridArea:
        return GridArea.from_footprint(self.location, self.size)


@dataclass(frozen=True)
class AccessMethod(Serializable):
    type: AccessType
    description: str
    requirements: Tuple[str, ...]
    difficulty: AccessDifficulty


@dataclass(frozen=True)
class ElevationAdvantage(Serializable):
    type: AdvantageType
    description: str
    mechanical_benefit: str
    conditions: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ElevationDisadvantage(Serializable):
    type: DisadvantageType
    description: str
    mechanical_penalty: str
    conditions: Tuple[str, ...] = ()


@dataclass(frozen=True)
class FallDamageRule(Serializable):
    damage: str
    maximum_damage: Optional[str] = None
    saving_throw: Optional[str] = None
    special_conditions: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ElevationFeature(Serializable):
    """Raised or sunken ground; location.z equals height (negative for pits)."""
    id: str
    type: ElevationType
    location: GridLocation
    size: AreaSize
    height: int
    access_methods: Tuple[AccessMethod, ...]
    advantages: Tuple[ElevationAdvantage, ...]
    disadvantages: Tuple[ElevationDisadvantage, ...]
    fall_damage: FallDamageRule

    def footprint(self) -> GridArea:
        return GridArea.from_footprint(self.location, self.size)


@dataclass(frozen=True)
class LightingEffect(Serializable):
    type: EffectType
    description: str
    mechanical_rule: str
    affected_creatures: Tuple[str, ...] = ()


@dataclass(frozen=True)
class LightingChange(Serializable):
    trigger: str
    new_condition: LightingType
    duration: str
    description: str


@dataclass(frozen=True)
class LightingCondition(Serializable):
    area: GridArea
    type: LightingType
    intensity: LightingIntensity
    source: Optional[str]
    mechanical_effects: Tuple[LightingEffect, ...] = ()
    dynamic_changes: Tuple[LightingChange, ...] = ()


@dataclass(frozen=True)
class MovementRestriction(Serializable):
    type: RestrictionType
    description: str
    affected_creatures: Tuple[str, ...] = ()
    exceptions: Tuple[str, ...] = ()


@dataclass(frozen=True)
class MovementRule(Serializable):
    rule: str
    description: str
    mechanical_effect: str


@dataclass(frozen=True)
class MovementZone(Serializable):
    area: GridArea
    type: MovementType
    speed_modifier: float
    restrictions: Tuple[MovementRestriction, ...] = ()
    special_rules: Tuple[MovementRule, ...] = ()
    source_id: Optional[str] = None


@dataclass(frozen=True)
class ActivationTrigger(Serializable):
    """What sets off an area, hazard or feature."""
    type: TriggerType
    condition: str
    delay: Optional[int] = None
    probability: Optional[float] = None


@dataclass(frozen=True)
class EffectDuration(Serializable):
    type: DurationType
    value: Optional[int] = None
    condition: Optional[str] = None


@dataclass(frozen=True)
class SpecialAreaEffect(Serializable):
    type: EffectType
    description: str
    trigger: str
    mechanical_rule: str
    duration: str


@dataclass(frozen=True)
class SpecialArea(Serializable):
    id: str
    name: str
    location: GridArea
    type: SpecialAreaType
    description: str
    mechanical_effects: Tuple[SpecialAreaEffect, ...]
    activation_trigger: Optional[ActivationTrigger] = None
    duration: Optional[EffectDuration] = None


@dataclass(frozen=True)
class GridSystem(Serializable):
    type: GridType
    size: int
    coordinates: CoordinateSystem


@dataclass(frozen=True)
class KeyLocation(Serializable):
    name: str
    location: GridLocation
    importance: LocationImportance
    description: str
    tactical_value: str
    source_id: Optional[str] = None


@dataclass(frozen=True)
class MovementPath(Serializable):
    start: GridLocation
    end: GridLocation
    difficulty: PathDifficulty
    cover: PathCover
    description: str


@dataclass(frozen=True)
class SightLine(Serializable):
    origin: GridLocation
    target: GridLocation
    clear: bool
    obstructions: Tuple[str, ...] = ()
    partial_cover: bool = False


@dataclass(frozen=True)
class ChokePoint(Serializable):
    location: GridLocation
    width: int
    tactical_value: str
    control_methods: Tuple[str, ...]
    between: Tuple[str, str]


@dataclass(frozen=True)
class FlankingOpportunity(Serializable):
    target_area: GridArea
    flanking_positions: Tuple[GridLocation, ...]
    difficulty: FlankingDifficulty
    benefits: Tuple[str, ...]


@dataclass(frozen=True)
class TacticalMap(Serializable):
    """Annotations derived from the battlefield features; never sampled."""
    grid_system: GridSystem
    key_locations: Tuple[KeyLocation, ...]
    movement_paths: Tuple[MovementPath, ...]
    sight_lines: Tuple[SightLine, ...]
    choke_points: Tuple[ChokePoint, ...]
    flanking: Tuple[FlankingOpportunity, ...]


@dataclass(frozen=True)
class BattlefieldLayout(Serializable):
    """The spatial grid and everything placed on it for one encounter."""
    template_key: str
    environment: str
    dimensions: BattlefieldDimensions
    terrain: Tuple[TerrainFeature, ...]
    cover: Tuple[CoverElement, ...]
    elevation: Tuple[ElevationFeature, ...]
    lighting: Tuple[LightingCondition, ...]
    movement: Tuple[MovementZone, ...]
    special_areas: Tuple[SpecialArea, ...]
    tactical_map: TacticalMap

    @property
    def has_elevation(self) -> bool:
        return len(self.elevation) > 0

    def terrain_types(self) -> Tuple[TerrainType, ...]:
        """Distinct terrain types present, in first-placed order."""
        seen = []
        for feature in self.terrain:
            if feature.type not in seen:
                seen.append(feature.type)
        return tuple(seen)


# =============================================================================
# OBJECTIVES
# =============================================================================

@dataclass(frozen=True)
class SuccessCondition(Serializable):
    type: ConditionType
    description: str
    requirements: Tuple[str, ...]
    time_limit: Optional[int] = None


@dataclass(frozen=True)
class FailureConsequence(Serializable):
    type: ConsequenceType
    description: str
    mechanical_effect: str
    narrative_impact: str


@dataclass(frozen=True)
class ObjectiveReward(Serializable):
    type: RewardType
    description: str
    value: Optional[str] = None
    conditions: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ObjectiveComplication(Serializable):
    trigger: str
    description: str
    mechanical_effect: str
    resolution: Tuple[str, ...]


@dataclass(frozen=True)
class EncounterObjective(Serializable):
    id: str
    template_key: str
    type: ObjectiveType
    description: str
    priority: ObjectivePriority
    time_limit: Optional[int]
    success_conditions: Tuple[SuccessCondition, ...]
    failure_consequences: Tuple[FailureConsequence, ...]
    rewards: Tuple[ObjectiveReward, ...]
    complications: Tuple[ObjectiveComplication, ...]


# =============================================================================
# ENEMIES
# =============================================================================

@dataclass(frozen=True)
class CreatureSpeed(Serializable):
    walk: int
    fly: Optional[int] = None
    swim: Optional[int] = None
    climb: Optional[int] = None
    burrow: Optional[int] = None


@dataclass(frozen=True)
class AbilityScores(Serializable):
    strength: int
    dexterity: int
    constitution: int
    intelligence: int
    wisdom: int
    charisma: int


@dataclass(frozen=True)
class CreatureSenses(Serializable):
    passive_perception: int
    darkvision: Optional[int] = None
    blindsight: Optional[int] = None
    tremorsense: Optional[int] = None
    truesight: Optional[int] = None


@dataclass(frozen=True)
class CreatureAction(Serializable):
    name: str
    description: str
    attack_bonus: Optional[int] = None
    damage: Optional[str] = None
    save_dc: Optional[int] = None
    recharge: Optional[str] = None


@dataclass(frozen=True)
class CreatureReaction(Serializable):
    name: str
    description: str
    trigger: str


@dataclass(frozen=True)
class LegendaryAction(Serializable):
    name: str
    description: str
    cost: int


@dataclass(frozen=True)
class EnemyStatBlock(Serializable):
    name: str
    size: str
    creature_type: str
    alignment: str
    armor_class: int
    hit_points: int
    speed: CreatureSpeed
    abilities: AbilityScores
    saving_throws: Tuple[Tuple[str, int], ...]
    skills: Tuple[Tuple[str, int], ...]
    damage_resistances: Tuple[str, ...]
    damage_immunities: Tuple[str, ...]
    condition_immunities: Tuple[str, ...]
    senses: CreatureSenses
    languages: Tuple[str, ...]
    challenge_rating: str
    proficiency_bonus: int
    actions: Tuple[CreatureAction, ...]
    reactions: Tuple[CreatureReaction, ...] = ()
    legendary_actions: Tuple[LegendaryAction, ...] = ()


@dataclass(frozen=True)
class InitialPositioning(Serializable):
    preferred_location: GridLocation
    alternative_locations: Tuple[GridLocation, ...]
    formation_role: FormationRole
    spacing: SpacingRequirement


@dataclass(frozen=True)
class TargetPriority(Serializable):
    target_type: str
    priority: int
    conditions: Tuple[str, ...] = ()


@dataclass(frozen=True)
class RetreatCondition(Serializable):
    trigger: str
    threshold: str
    method: str


@dataclass(frozen=True)
class TacticalBehavior(Serializable):
    primary_strategy: TacticalStrategy
    fallback_strategies: Tuple[TacticalStrategy, ...]
    target_priority: Tuple[TargetPriority, ...]
    positioning_preference: PositioningPreference
    retreat_conditions: Tuple[RetreatCondition, ...]


@dataclass(frozen=True)
class EnemyObjective(Serializable):
    type: EnemyObjectiveType
    description: str
    priority: ObjectivePriority
    conditions: Tuple[str, ...] = ()


@dataclass(frozen=True)
class TacticalEquipment(Serializable):
    name: str
    type: EquipmentType
    description: str
    tactical_use: str
    limitations: Tuple[str, ...] = ()


@dataclass(frozen=True)
class TacticalAbility(Serializable):
    name: str
    type: AbilityType
    description: str
    tactical_application: str
    cooldown: Optional[int] = None
    usage_limit: Optional[int] = None


@dataclass(frozen=True)
class TacticalEnemy(Serializable):
    id: str
    name: str
    stat_block: EnemyStatBlock
    role: TacticalRole
    positioning: InitialPositioning
    tactics: TacticalBehavior
    objectives: Tuple[EnemyObjective, ...]
    equipment: Tuple[TacticalEquipment, ...]
    special_abilities: Tuple[TacticalAbility, ...]


# =============================================================================
# HAZARDS AND FEATURES
# =============================================================================

@dataclass(frozen=True)
class HazardEffect(Serializable):
    type: EffectType
    description: str
    mechanical_rule: str
    area: GridArea
    duration: str


@dataclass(frozen=True)
class HazardCounterplay(Serializable):
    method: str
    description: str
    requirements: Tuple[str, ...]
    effectiveness: CounterplayEffectiveness


@dataclass(frozen=True)
class HazardEscalation(Serializable):
    trigger: str
    description: str
    new_effects: Tuple[HazardEffect, ...]
    mechanical_change: str


@dataclass(frozen=True)
class EnvironmentalHazard(Serializable):
    id: str
    kind: str
    name: str
    type: HazardType
    severity: HazardSeverity
    location: GridLocation
    area: GridArea
    description: str
    activation_trigger: ActivationTrigger
    effects: Tuple[HazardEffect, ...]
    duration: EffectDuration
    counterplay: Tuple[HazardCounterplay, ...]
    escalation: Optional[HazardEscalation] = None


@dataclass(frozen=True)
class FeatureBenefit(Serializable):
    type: BenefitType
    description: str
    mechanical_rule: str
    conditions: Tuple[str, ...] = ()


@dataclass(frozen=True)
class FeatureActivation(Serializable):
    type: ActivationType
    requirements: Tuple[str, ...]
    action_cost: str
    description: str


@dataclass(frozen=True)
class FeatureUsage(Serializable):
    type: UsageType
    limit: int
    reset_condition: str


@dataclass(frozen=True)
class StrategicValue(Serializable):
    importance: ValueImportance
    description: str
    tactical_applications: Tuple[str, ...]


@dataclass(frozen=True)
class TacticalFeature(Serializable):
    id: str
    name: str
    type: FeatureType
    location: GridLocation
    description: str
    mechanical_benefit: FeatureBenefit
    activation_method: FeatureActivation
    usage_limit: Optional[FeatureUsage]
    strategic_value: StrategicValue


# =============================================================================
# DYNAMIC ELEMENTS
# =============================================================================

@dataclass(frozen=True)
class CombatTrigger(Serializable):
    type: TriggerType
    condition: str
    timing: TriggerTiming


@dataclass(frozen=True)
class CombatEffect(Serializable):
    type: EffectType
    description: str
    mechanical_change: str
    affected_area: Optional[GridArea] = None


@dataclass(frozen=True)
class CombatTiming(Serializable):
    phase: CombatPhase
    duration: str
    initiative: Optional[int] = None


@dataclass(frozen=True)
class CombatDynamicElement(Serializable):
    trigger: CombatTrigger
    effect: CombatEffect
    timing: CombatTiming
    description: str
    mechanical_change: str
    narrative_impact: str
    duration: EffectDuration


# =============================================================================
# SCALING RULES
# =============================================================================

@dataclass(frozen=True)
class PartySizeAdjustment(Serializable):
    size: int
    enemy_count_modifier: int
    hazard_intensity: HazardIntensity
    objective_complexity: ObjectiveComplexity
    notes: Tuple[str, ...] = ()


@dataclass(frozen=True)
class PartySizeScaling(Serializable):
    base_size: int
    adjustments: Tuple[PartySizeAdjustment, ...]


@dataclass(frozen=True)
class EnemyUpgrade(Serializable):
    stat_increase: int
    new_abilities: Tuple[str, ...] = ()
    equipment_upgrade: Tuple[str, ...] = ()
    tactical_improvement: Tuple[str, ...] = ()


@dataclass(frozen=True)
class LevelAdjustment(Serializable):
    level_range: str
    min_level: int
    max_level: int
    enemy_upgrade: EnemyUpgrade
    tactical_complexity: TacticalComplexity
    hazard_severity: HazardSeverity
    additional_features: Tuple[str, ...] = ()


@dataclass(frozen=True)
class LevelScaling(Serializable):
    base_level: int
    adjustments: Tuple[LevelAdjustment, ...]


@dataclass(frozen=True)
class EnemyModification(Serializable):
    number_adjustment: int
    strength_modifier: int
    new_capabilities: Tuple[str, ...] = ()
    tactical_enhancements: Tuple[str, ...] = ()


@dataclass(frozen=True)
class DifficultyAdjustment(Serializable):
    target_difficulty: EncounterDifficulty
    enemy_modification: EnemyModification
    environmental_intensity: EnvironmentalIntensity
    objective_complexity: ObjectiveLayering
    time_constraints: TimePressure


@dataclass(frozen=True)
class DifficultyScaling(Serializable):
    base_difficulty: EncounterDifficulty
    adjustments: Tuple[DifficultyAdjustment, ...]


@dataclass(frozen=True)
class TerrainAdjustment(Serializable):
    target_complexity: TerrainComplexity
    feature_count: FeatureDensity
    hazard_density: HazardDensity
    tactical_options: TacticalOptions


@dataclass(frozen=True)
class TerrainScaling(Serializable):
    base_complexity: TerrainComplexity
    adjustments: Tuple[TerrainAdjustment, ...]


@dataclass(frozen=True)
class CombatScalingRules(Serializable):
    """Declarative tables; nothing here is applied to the encounter itself."""
    party_size: PartySizeScaling
    level: LevelScaling
    difficulty: DifficultyScaling
    terrain: TerrainScaling


@dataclass(frozen=True)
class AppliedScaling(Serializable):
    """The rows of each scaling table that match the generation context."""
    party_size: PartySizeAdjustment
    level: LevelAdjustment
    difficulty: DifficultyAdjustment
    terrain: TerrainAdjustment


# =============================================================================
# VICTORY AND DEFEAT
# =============================================================================

@dataclass(frozen=True)
class VictoryRequirement(Serializable):
    type: str
    description: str
    conditions: Tuple[str, ...] = ()


@dataclass(frozen=True)
class BonusCondition(Serializable):
    description: str
    requirements: Tuple[str, ...]
    reward: str


@dataclass(frozen=True)
class VictoryCondition(Serializable):
    type: VictoryType
    description: str
    requirements: Tuple[VictoryRequirement, ...]
    time_limit: Optional[int] = None
    bonus_conditions: Tuple[BonusCondition, ...] = ()


@dataclass(frozen=True)
class ConsequenceMitigation(Serializable):
    method: str
    description: str
    requirements: Tuple[str, ...]
    effectiveness: str


@dataclass(frozen=True)
class DefeatConsequence(Serializable):
    type: ConsequenceType
    description: str
    severity: ConsequenceSeverity
    mitigation: Tuple[ConsequenceMitigation, ...]
    narrative_impact: str
    objective_id: Optional[str] = None


# =============================================================================
# CONTEXT AND ENCOUNTER
# =============================================================================

_CONTEXT_ALIASES = {
    "partySize": "party_size",
    "partyLevel": "party_level",
    "preferredComplexity": "preferred_complexity",
    "timeConstraints": "time_constraints",
    "environmentalPreferences": "environmental_preferences",
}


@dataclass(frozen=True)
class EncounterContext(Serializable):
    """Party information the generator scales against."""
    party_size: int = 4
    party_level: int = 1
    preferred_complexity: Optional[TerrainComplexity] = None
    time_constraints: bool = False
    environmental_preferences: Tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "EncounterContext":
        """
        Build a context from request data.

        Accepts snake_case keys and the camelCase keys used by the
        adventure pipeline. An unrecognized complexity falls back to None.
        """
        values: Dict[str, Any] = {}
        for key, value in data.items():
            name = _CONTEXT_ALIASES.get(key, key)
            if name in ("party_size", "party_level", "preferred_complexity",
                        "time_constraints", "environmental_preferences"):
                values[name] = value

        complexity = values.get("preferred_complexity")
        if complexity is not None and not isinstance(complexity, TerrainComplexity):
            try:
                values["preferred_complexity"] = TerrainComplexity(str(complexity).lower())
            except ValueError:
                values["preferred_complexity"] = None

        preferences = values.get("environmental_preferences")
        if isinstance(preferences, str):
            preferences = (preferences,)
        if preferences is not None:
            values["environmental_preferences"] = tuple(str(p) for p in preferences)

        if "time_constraints" in values:
            values["time_constraints"] = bool(values["time_constraints"])

        return cls(**values)

    def validate(self) -> "EncounterContext":
        """
        Reject contexts that cannot describe a real party.

        Raises:
            InvalidContextError: party size below 1 or not an integer,
                or party level outside 1-20
        """
        if isinstance(self.party_size, bool) or not isinstance(self.party_size, int):
            raise InvalidContextError("party_size", "Party size must be a whole number", self.party_size)
        if self.party_size < 1:
            raise InvalidContextError("party_size", "Party size must be at least 1", self.party_size)
        if isinstance(self.party_level, bool) or not isinstance(self.party_level, int):
            raise InvalidContextError("party_level", "Party level must be a whole number", self.party_level)
        if not 1 <= self.party_level <= 20:
            raise InvalidContextError("party_level", "Party level must be between 1 and 20", self.party_level)
        return self


@dataclass(frozen=True)
class TacticalCombatEncounter(Serializable):
    """Root aggregate: a static blueprint of one tactical fight."""
    id: str
    name: str
    description: str
    theme: Theme
    difficulty: EncounterDifficulty
    seed: Optional[int]
    battlefield: BattlefieldLayout
    objectives: Tuple[EncounterObjective, ...]
    enemies: Tuple[TacticalEnemy, ...]
    environmental_hazards: Tuple[EnvironmentalHazard, ...]
    tactical_features: Tuple[TacticalFeature, ...]
    dynamic_elements: Tuple[CombatDynamicElement, ...]
    scaling_rules: CombatScalingRules
    applied_scaling: AppliedScaling
    victory_conditions: Tuple[VictoryCondition, ...]
    defeat_consequences: Tuple[DefeatConsequence, ...] = field(default_factory=tuple)

    def __post_init__(self):
        if not self.objectives or self.objectives[0].priority != ObjectivePriority.PRIMARY:
            raise ValueError("An encounter must lead with its primary objective")
        primaries = [o for o in self.objectives if o.priority == ObjectivePriority.PRIMARY]
        if len(primaries) != 1:
            raise ValueError(f"An encounter needs exactly one primary objective, got {len(primaries)}")
        if not self.enemies:
            raise ValueError("An encounter needs at least one enemy")

    @property
    def primary_objective(self) -> EncounterObjective:
        return self.objectives[0]
