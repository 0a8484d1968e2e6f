"""
Tactical Feature Generation.

Interactive battlefield elements the party can exploit. Easy fights lean
toward utility and information features, harder fights toward offensive and
defensive ones.
"""
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple
import logging
import random

from .models import (
    ActivationType,
    BattlefieldLayout,
    BenefitType,
    EncounterContext,
    EncounterDifficulty,
    FeatureActivation,
    FeatureBenefit,
    FeatureType,
    FeatureUsage,
    GridLocation,
    StrategicValue,
    TacticalFeature,
    UsageType,
    ValueImportance,
)
from .scaling import calculate_feature_count

logger = logging.getLogger(__name__)


# Weights in FeatureType order: defensive, offensive, utility, movement, information
FEATURE_TYPE_WEIGHTS: Dict[EncounterDifficulty, Tuple[int, int, int, int, int]] = {
    EncounterDifficulty.EASY: (2, 1, 4, 2, 4),
    EncounterDifficulty.MEDIUM: (3, 2, 3, 2, 3),
    EncounterDifficulty.HARD: (4, 4, 2, 2, 1),
    EncounterDifficulty.DEADLY: (5, 5, 1, 2, 1),
    EncounterDifficulty.LEGENDARY: (5, 6, 1, 2, 1),
}


@dataclass(frozen=True)
class FeatureSpec:
    name: str
    description: str
    benefit_type: BenefitType
    rule: str
    activation: ActivationType
    action_cost: str
    importance: ValueImportance
    applications: Tuple[str, ...]
    usage: Optional[Tuple[UsageType, int, str]] = None
    requirements: Tuple[str, ...] = ()


FEATURE_CATALOG: Dict[FeatureType, Tuple[FeatureSpec, ...]] = {
    FeatureType.DEFENSIVE: (
        FeatureSpec("Barricade", "A pile of crates that can be pushed into a wall", BenefitType.DEFENSE,
                    "Creates three-quarters cover along a 10-foot line", ActivationType.ACTION, "1 action",
                    ValueImportance.HIGH, ("Block a flanking route", "Shield a downed ally"),
                    (UsageType.PER_ENCOUNTER, 1, "Rebuilt after a short rest")),
        FeatureSpec("Shield Wall Post", "A heavy pavise planted in the ground", BenefitType.DEFENSE,
                    "+2 AC to a creature standing behind it", ActivationType.FREE, "none",
                    ValueImportance.MODERATE, ("Protect a spellcaster",)),
        FeatureSpec("Warding Stone", "A carved stone that hums when touched", BenefitType.DEFENSE,
                    "Allies within 10 feet gain resistance to one damage type until the end of the round",
                    ActivationType.BONUS_ACTION, "1 bonus action", ValueImportance.CRITICAL,
                    ("Blunt the enemy's strongest attack",), (UsageType.PER_ROUND, 1, "Start of each round"),
                    ("Touch the stone",)),
    ),
    FeatureType.OFFENSIVE: (
        FeatureSpec("Ballista", "A mounted siege crossbow", BenefitType.COMBAT,
                    "Ranged attack +6 to hit, 3d10 piercing damage, range 120/480 ft.", ActivationType.ACTION,
                    "1 action to aim, 1 to fire", ValueImportance.HIGH, ("Break an enemy leader",),
                    (UsageType.PER_ROUND, 1, "Reload with an action"), ("Adjacent to the ballista",)),
        FeatureSpec("Oil Barrels", "Barrels of lamp oil", BenefitType.COMBAT,
                    "Ignited barrels deal 2d6 fire damage in a 10-foot radius", ActivationType.ACTION, "1 action",
                    ValueImportance.HIGH, ("Punish grouped enemies", "Seal off a choke point"),
                    (UsageType.PER_ENCOUNTER, 2, "None")),
        FeatureSpec("Loose Boulder", "A boulder perched above a slope", BenefitType.COMBAT,
                    "Rolls in a 30-foot line: DC 13 Dexterity save or 2d10 bludgeoning and prone",
                    ActivationType.ACTION, "1 action", ValueImportance.MODERATE, ("Break an enemy formation",),
                    (UsageType.PER_ENCOUNTER, 1, "None"), ("DC 12 Athletics to push",)),
    ),
    FeatureType.UTILITY: (
        FeatureSpec("Supply Cache", "An abandoned pack with supplies", BenefitType.UTILITY,
                    "Contains a healing potion and 50 feet of rope", ActivationType.ACTION, "1 action",
                    ValueImportance.MODERATE, ("Restore a fallen ally",), (UsageType.PER_ENCOUNTER, 1, "None")),
        FeatureSpec("Lever Mechanism", "A lever tied to a gate or trapdoor", BenefitType.UTILITY,
                    "Opens or closes a nearby passage", ActivationType.ACTION, "1 action",
                    ValueImportance.HIGH, ("Split the enemy force", "Secure an escape route")),
        FeatureSpec("Bell Rope", "A rope connected to an alarm bell", BenefitType.UTILITY,
                    "Deafens creatures within 15 feet of the bell until the end of the round",
                    ActivationType.ACTION, "1 action", ValueImportance.LOW, ("Disrupt verbal spellcasting",),
                    (UsageType.PER_ROUND, 1, "Start of each round")),
    ),
    FeatureType.MOVEMENT: (
        FeatureSpec("Swing Rope", "A rope hanging from a beam or branch", BenefitType.MOVEMENT,
                    "Move 20 feet over obstacles without provoking opportunity attacks", ActivationType.FREE,
                    "Part of movement", ValueImportance.MODERATE, ("Cross difficult terrain", "Reach high ground")),
        FeatureSpec("Hidden Passage", "A narrow crawlspace", BenefitType.MOVEMENT,
                    "Connects two points 30 feet apart; Medium creatures squeeze through", ActivationType.ACTION,
                    "1 action to find", ValueImportance.HIGH, ("Outflank the enemy",),
                    requirements=("DC 14 Perception to notice",)),
    ),
    FeatureType.INFORMATION: (
        FeatureSpec("Lookout Post", "A vantage point with a clear view", BenefitType.INFORMATION,
                    "Reveals enemy positions within 60 feet, including hidden creatures on a DC 12 Perception",
                    ActivationType.ACTION, "1 action", ValueImportance.MODERATE, ("Spot ambushers",),
                    (UsageType.PER_ROUND, 1, "Start of each round")),
        FeatureSpec("Enemy Orders", "A dropped satchel of written orders", BenefitType.INFORMATION,
                    "Reveals the enemy's retreat conditions and objectives", ActivationType.ACTION, "1 action",
                    ValueImportance.LOW, ("Predict the enemy's retreat",), (UsageType.PER_ENCOUNTER, 1, "None")),
        FeatureSpec("Scrying Pool", "A still pool that shows distant places", BenefitType.INFORMATION,
                    "See through the eyes of one enemy until the end of your next turn", ActivationType.ACTION,
                    "1 action", ValueImportance.HIGH, ("Learn the leader's plan",),
                    (UsageType.PER_DAY, 1, "Dawn"), ("DC 13 Arcana check",)),
    ),
}


def feature_type_weights(difficulty: EncounterDifficulty) -> Dict[FeatureType, int]:
    """Relative likelihood of each feature type at a difficulty."""
    return dict(zip(FeatureType, FEATURE_TYPE_WEIGHTS[difficulty]))


def select_feature_type(difficulty: EncounterDifficulty, rng: random.Random) -> FeatureType:
    weights = feature_type_weights(difficulty)
    return rng.choices(list(weights.keys()), weights=list(weights.values()), k=1)[0]


def _create_feature(spec: FeatureSpec, feature_type: FeatureType, index: int,
                    location: GridLocation) -> TacticalFeature:
    usage = None
    if spec.usage is not None:
        usage_type, limit, reset = spec.usage
        usage = FeatureUsage(usage_type, limit, reset)
    return TacticalFeature(
        id=f"feature-{feature_type.value}-{index}",
        name=spec.name,
        type=feature_type,
        location=location,
        description=spec.description,
        mechanical_benefit=FeatureBenefit(spec.benefit_type, spec.description, spec.rule),
        activation_method=FeatureActivation(spec.activation, spec.requirements, spec.action_cost,
                                            f"Use the {spec.name.lower()}"),
        usage_limit=usage,
        strategic_value=StrategicValue(spec.importance, spec.rule, spec.applications),
    )


def generate_tactical_features(
    battlefield: BattlefieldLayout,
    difficulty: EncounterDifficulty,
    context: EncounterContext,
    rng: random.Random
) -> List[TacticalFeature]:
    """Generate interactive features scaled to battlefield area and difficulty."""
    count = calculate_feature_count(battlefield.dimensions.total_area, difficulty)
    width, height = battlefield.dimensions.width, battlefield.dimensions.height
    features = []
    for i in range(count):
        feature_type = select_feature_type(difficulty, rng)
        spec = rng.choice(FEATURE_CATALOG[feature_type])
        location = GridLocation(rng.randrange(width), rng.randrange(height))
        features.append(_create_feature(spec, feature_type, i, location))
    logger.debug(f"Features: {[f.type.value for f in features]}")
    return features
