"""
Difficulty Scaling for Tactical Encounters.

Holds every per-difficulty knob in one table and builds the declarative
scaling rules attached to each encounter.
"""
from dataclasses import dataclass
from typing import Dict, List, Optional
import math

from .models import (
    AppliedScaling,
    CombatScalingRules,
    ConsequenceSeverity,
    DifficultyAdjustment,
    DifficultyScaling,
    EncounterContext,
    EncounterDifficulty,
    EnemyModification,
    EnemyUpgrade,
    EnvironmentalIntensity,
    FeatureDensity,
    HazardDensity,
    HazardIntensity,
    HazardSeverity,
    LevelAdjustment,
    LevelScaling,
    ObjectiveComplexity,
    ObjectiveLayering,
    PartySizeAdjustment,
    PartySizeScaling,
    TacticalComplexity,
    TacticalOptions,
    TerrainAdjustment,
    TerrainComplexity,
    TerrainScaling,
    TimePressure,
)


BASE_PARTY_SIZE = 4
BASE_PARTY_LEVEL = 5
MAX_SCALED_PARTY_SIZE = 8


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positive values (2.5 -> 3)."""
    return int(math.floor(value + 0.5))


def clamp(value, low, high):
    return max(low, min(high, value))


@dataclass(frozen=True)
class DifficultyConfig:
    """Configuration for a difficulty level."""
    name: str
    headcount_multiplier: float
    cr_modifier: int
    hazard_multiplier: float
    feature_multiplier: float
    objective_count: int
    complication_count: int
    time_limit_rounds: int
    hazard_severity: HazardSeverity
    hazard_save_dc: int
    consequence_severity: ConsequenceSeverity
    environmental_intensity: EnvironmentalIntensity
    objective_layering: ObjectiveLayering
    time_pressure: TimePressure
    terrain_complexity: TerrainComplexity
    xp_per_level: int
    duration_base_minutes: int


# Difficulty configurations
DIFFICULTY_CONFIGS: Dict[EncounterDifficulty, DifficultyConfig] = {
    EncounterDifficulty.EASY: DifficultyConfig(
        name="Easy",
        headcount_multiplier=0.5,
        cr_modifier=-1,
        hazard_multiplier=0.5,
        feature_multiplier=1.0,
        objective_count=1,
        complication_count=1,
        time_limit_rounds=10,
        hazard_severity=HazardSeverity.MILD,
        hazard_save_dc=10,
        consequence_severity=ConsequenceSeverity.MINOR,
        environmental_intensity=EnvironmentalIntensity.MINIMAL,
        objective_layering=ObjectiveLayering.SINGLE,
        time_pressure=TimePressure.RELAXED,
        terrain_complexity=TerrainComplexity.SIMPLE,
        xp_per_level=25,
        duration_base_minutes=15,
    ),
    EncounterDifficulty.MEDIUM: DifficultyConfig(
        name="Medium",
        headcount_multiplier=0.75,
        cr_modifier=0,
        hazard_multiplier=1.0,
        feature_multiplier=1.2,
        objective_count=1,
        complication_count=1,
        time_limit_rounds=8,
        hazard_severity=HazardSeverity.MODERATE,
        hazard_save_dc=12,
        consequence_severity=ConsequenceSeverity.MODERATE,
        environmental_intensity=EnvironmentalIntensity.MODERATE,
        objective_layering=ObjectiveLayering.SINGLE,
        time_pressure=TimePressure.MODERATE,
        terrain_complexity=TerrainComplexity.MODERATE,
        xp_per_level=50,
        duration_base_minutes=25,
    ),
    EncounterDifficulty.HARD: DifficultyConfig(
        name="Hard",
        headcount_multiplier=1.0,
        cr_modifier=1,
        hazard_multiplier=1.5,
        feature_multiplier=1.5,
        objective_count=2,
        complication_count=2,
        time_limit_rounds=6,
        hazard_severity=HazardSeverity.SEVERE,
        hazard_save_dc=14,
        consequence_severity=ConsequenceSeverity.MAJOR,
        environmental_intensity=EnvironmentalIntensity.HIGH,
        objective_layering=ObjectiveLayering.DUAL,
        time_pressure=TimePressure.TIGHT,
        terrain_complexity=TerrainComplexity.COMPLEX,
        xp_per_level=75,
        duration_base_minutes=35,
    ),
    EncounterDifficulty.DEADLY: DifficultyConfig(
        name="Deadly",
        headcount_multiplier=1.25,
        cr_modifier=2,
        hazard_multiplier=2.0,
        feature_multiplier=1.8,
        objective_count=2,
        complication_count=2,
        time_limit_rounds=5,
        hazard_severity=HazardSeverity.DEADLY,
        hazard_save_dc=16,
        consequence_severity=ConsequenceSeverity.CRITICAL,
        environmental_intensity=EnvironmentalIntensity.EXTREME,
        objective_layering=ObjectiveLayering.MULTIPLE,
        time_pressure=TimePressure.EXTREME,
        terrain_complexity=TerrainComplexity.EXTREME,
        xp_per_level=100,
        duration_base_minutes=45,
    ),
    EncounterDifficulty.LEGENDARY: DifficultyConfig(
        name="Legendary",
        headcount_multiplier=1.5,
        cr_modifier=3,
        hazard_multiplier=2.5,
        feature_multiplier=2.0,
        objective_count=3,
        complication_count=3,
        time_limit_rounds=4,
        hazard_severity=HazardSeverity.DEADLY,
        hazard_save_dc=18,
        consequence_severity=ConsequenceSeverity.CRITICAL,
        environmental_intensity=EnvironmentalIntensity.EXTREME,
        objective_layering=ObjectiveLayering.LAYERED,
        time_pressure=TimePressure.EXTREME,
        terrain_complexity=TerrainComplexity.EXTREME,
        xp_per_level=150,
        duration_base_minutes=55,
    ),
}


def _validate_configs() -> None:
    """Every difficulty has a config and counts never shrink as difficulty rises."""
    missing = [d.value for d in EncounterDifficulty if d not in DIFFICULTY_CONFIGS]
    if missing:
        raise RuntimeError(f"Missing difficulty configs: {missing}")
    ordered = [DIFFICULTY_CONFIGS[d] for d in EncounterDifficulty]
    for lower, higher in zip(ordered, ordered[1:]):
        if (higher.headcount_multiplier < lower.headcount_multiplier
                or higher.hazard_multiplier < lower.hazard_multiplier
                or higher.feature_multiplier < lower.feature_multiplier
                or higher.objective_count < lower.objective_count
                or higher.time_limit_rounds > lower.time_limit_rounds):
            raise RuntimeError(f"Difficulty '{higher.name}' scales below '{lower.name}'")


_validate_configs()


def get_difficulty_config(difficulty: EncounterDifficulty) -> DifficultyConfig:
    return DIFFICULTY_CONFIGS[difficulty]


# =============================================================================
# BUDGETS
# =============================================================================

def calculate_enemy_budget(party_size: int, difficulty: EncounterDifficulty) -> int:
    """Enemy headcount: party size times the difficulty multiplier, at least 1."""
    multiplier = DIFFICULTY_CONFIGS[difficulty].headcount_multiplier
    return max(1, round_half_up(party_size * multiplier))


def calculate_objective_count(difficulty: EncounterDifficulty, context: EncounterContext) -> int:
    """
    Objective count policy.

    A medium encounter gains a second objective when the party asked for
    complex terrain.
    """
    count = DIFFICULTY_CONFIGS[difficulty].objective_count
    if difficulty == EncounterDifficulty.MEDIUM and context.preferred_complexity in (
            TerrainComplexity.COMPLEX, TerrainComplexity.EXTREME):
        count = 2
    return count


def calculate_hazard_count(total_area: int, difficulty: EncounterDifficulty) -> int:
    multiplier = DIFFICULTY_CONFIGS[difficulty].hazard_multiplier
    return clamp(round_half_up((total_area // 200) * multiplier), 1, 12)


def calculate_feature_count(total_area: int, difficulty: EncounterDifficulty) -> int:
    multiplier = DIFFICULTY_CONFIGS[difficulty].feature_multiplier
    return clamp(round_half_up((total_area // 150) * multiplier), 1, 10)


# =============================================================================
# SCALING RULES
# =============================================================================

LEVEL_TIERS = (
    (1, 4, -2, TacticalComplexity.BASIC, HazardSeverity.MILD,
     (), ("Simple terrain features",)),
    (5, 10, 0, TacticalComplexity.STANDARD, HazardSeverity.MODERATE,
     ("Multiattack",), ("Interactive terrain",)),
    (11, 16, 2, TacticalComplexity.ADVANCED, HazardSeverity.SEVERE,
     ("Multiattack", "Spellcasting"), ("Interactive terrain", "Magical hazards")),
    (17, 20, 4, TacticalComplexity.EXPERT, HazardSeverity.DEADLY,
     ("Multiattack", "Spellcasting", "Legendary resistance"),
     ("Interactive terrain", "Magical hazards", "Lair actions")),
)

TERRAIN_ADJUSTMENTS = {
    TerrainComplexity.SIMPLE: (FeatureDensity.FEW, HazardDensity.SPARSE, TacticalOptions.LIMITED),
    TerrainComplexity.MODERATE: (FeatureDensity.NORMAL, HazardDensity.NORMAL, TacticalOptions.STANDARD),
    TerrainComplexity.COMPLEX: (FeatureDensity.MANY, HazardDensity.DENSE, TacticalOptions.VARIED),
    TerrainComplexity.EXTREME: (FeatureDensity.ABUNDANT, HazardDensity.OVERWHELMING, TacticalOptions.EXTENSIVE),
}


def _party_size_band(size: int, values: List) -> object:
    if size <= 2:
        return values[0]
    if size <= 4:
        return values[1]
    if size <= 6:
        return values[2]
    return values[3]


def _build_party_size_scaling(difficulty: EncounterDifficulty) -> PartySizeScaling:
    base_budget = calculate_enemy_budget(BASE_PARTY_SIZE, difficulty)
    adjustments = []
    for size in range(1, MAX_SCALED_PARTY_SIZE + 1):
        modifier = calculate_enemy_budget(size, difficulty) - base_budget
        notes = ()
        if size == 1:
            notes = ("Consider a sidekick or allied NPC",)
        elif size >= 7:
            notes = ("Split enemies into multiple groups",)
        adjustments.append(PartySizeAdjustment(
            size=size,
            enemy_count_modifier=modifier,
            hazard_intensity=_party_size_band(size, list(HazardIntensity)),
            objective_complexity=_party_size_band(size, list(ObjectiveComplexity)),
            notes=notes,
        ))
    return PartySizeScaling(base_size=BASE_PARTY_SIZE, adjustments=tuple(adjustments))


def _build_level_scaling() -> LevelScaling:
    adjustments = []
    for low, high, stat_increase, complexity, severity, abilities, features in LEVEL_TIERS:
        adjustments.append(LevelAdjustment(
            level_range=f"{low}-{high}",
            min_level=low,
            max_level=high,
            enemy_upgrade=EnemyUpgrade(
                stat_increase=stat_increase,
                new_abilities=abilities,
                equipment_upgrade=("Magic weapons",) if low >= 11 else (),
                tactical_improvement=("Coordinated focus fire",) if low >= 5 else (),
            ),
            tactical_complexity=complexity,
            hazard_severity=severity,
            additional_features=features,
        ))
    return LevelScaling(base_level=BASE_PARTY_LEVEL, adjustments=tuple(adjustments))


def _build_difficulty_scaling(difficulty: EncounterDifficulty) -> DifficultyScaling:
    current = DIFFICULTY_CONFIGS[difficulty]
    current_budget = calculate_enemy_budget(BASE_PARTY_SIZE, difficulty)
    adjustments = []
    for target in EncounterDifficulty:
        config = DIFFICULTY_CONFIGS[target]
        step = target.rank - difficulty.rank
        enhancements = ()
        if step > 0:
            enhancements = ("Improved positioning", "Focus fire on weakened targets")[:step]
        adjustments.append(DifficultyAdjustment(
            target_difficulty=target,
            enemy_modification=EnemyModification(
                number_adjustment=calculate_enemy_budget(BASE_PARTY_SIZE, target) - current_budget,
                strength_modifier=config.cr_modifier - current.cr_modifier,
                new_capabilities=("Legendary actions",) if target == EncounterDifficulty.LEGENDARY else (),
                tactical_enhancements=enhancements,
            ),
            environmental_intensity=config.environmental_intensity,
            objective_complexity=config.objective_layering,
            time_constraints=config.time_pressure,
        ))
    return DifficultyScaling(base_difficulty=difficulty, adjustments=tuple(adjustments))


def _build_terrain_scaling(difficulty: EncounterDifficulty) -> TerrainScaling:
    adjustments = tuple(
        TerrainAdjustment(
            target_complexity=complexity,
            feature_count=feature_count,
            hazard_density=hazard_density,
            tactical_options=options,
        )
        for complexity, (feature_count, hazard_density, options) in TERRAIN_ADJUSTMENTS.items()
    )
    return TerrainScaling(
        base_complexity=DIFFICULTY_CONFIGS[difficulty].terrain_complexity,
        adjustments=adjustments,
    )


def build_scaling_rules(difficulty: EncounterDifficulty) -> CombatScalingRules:
    """Build the four declarative scaling tables for a difficulty."""
    return CombatScalingRules(
        party_size=_build_party_size_scaling(difficulty),
        level=_build_level_scaling(),
        difficulty=_build_difficulty_scaling(difficulty),
        terrain=_build_terrain_scaling(difficulty),
    )


def apply_scaling_rules(
    rules: CombatScalingRules,
    difficulty: EncounterDifficulty,
    context: EncounterContext
) -> AppliedScaling:
    """
    Pick the row of each table that matches the generation context.

    Party sizes beyond the table use its last row.
    """
    size = clamp(context.party_size, 1, len(rules.party_size.adjustments))
    party_row = rules.party_size.adjustments[size - 1]

    level_row = rules.level.adjustments[-1]
    for row in rules.level.adjustments:
        if row.min_level <= context.party_level <= row.max_level:
            level_row = row
            break

    difficulty_row = next(
        row for row in rules.difficulty.adjustments if row.target_difficulty == difficulty
    )

    complexity: Optional[TerrainComplexity] = context.preferred_complexity or rules.terrain.base_complexity
    terrain_row = next(
        row for row in rules.terrain.adjustments if row.target_complexity == complexity
    )

    return AppliedScaling(
        party_size=party_row,
        level=level_row,
        difficulty=difficulty_row,
        terrain=terrain_row,
    )


def list_difficulty_levels() -> List[Dict[str, object]]:
    """Reference data for each difficulty level."""
    return [
        {
            "difficulty": difficulty.value,
            "name": config.name,
            "rank": difficulty.rank,
            "headcount_multiplier": config.headcount_multiplier,
            "hazard_severity": config.hazard_severity.value,
            "objective_count": config.objective_count,
            "time_limit_rounds": config.time_limit_rounds,
        }
        for difficulty, config in DIFFICULTY_CONFIGS.items()
    ]
