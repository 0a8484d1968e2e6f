"""
Encounter Analysis.

Summarizes how complex a generated encounter is and roughly how long it
will take at the table, individually or across a set of encounters.
"""
from dataclasses import dataclass
from typing import Dict, Sequence, Tuple

from encounter_engine.core.errors import ValidationError

from .models import Serializable, TacticalCombatEncounter
from .scaling import DIFFICULTY_CONFIGS


MAX_SCORE = 100
DURATION_SPREAD_MINUTES = 15
THEME_VARIETY_POINTS = 20


@dataclass(frozen=True)
class EncounterAnalysis(Serializable):
    """Complexity and pacing estimates for one encounter."""
    encounter_id: str
    difficulty: str
    tactical_complexity: int
    strategic_depth: int
    estimated_duration: str
    role_breakdown: Dict[str, int]
    hazard_count: int
    escalating_hazards: int
    choke_points: int
    flanking_opportunities: int


@dataclass(frozen=True)
class EncounterSetSummary(Serializable):
    """Aggregate view over several encounters."""
    total_encounters: int
    average_difficulty: float
    tactical_complexity: float
    environmental_variety: int
    strategic_depth: float
    encounters: Tuple[EncounterAnalysis, ...]


def calculate_tactical_complexity(encounter: TacticalCombatEncounter) -> int:
    tactical_map = encounter.battlefield.tactical_map
    score = (
        5 * len(encounter.tactical_features)
        + 4 * len(encounter.environmental_hazards)
        + 3 * len(tactical_map.choke_points)
        + 2 * len(tactical_map.flanking)
        + 5 * len(encounter.dynamic_elements)
        + 10 * len(encounter.objectives)
    )
    return min(MAX_SCORE, score)


def calculate_strategic_depth(encounter: TacticalCombatEncounter) -> int:
    score = (
        15 * len(encounter.objectives)
        + 3 * len(encounter.environmental_hazards)
        + 3 * len(encounter.tactical_features)
        + 5 * len(encounter.battlefield.special_areas)
    )
    return min(MAX_SCORE, score)


def estimate_duration(encounter: TacticalCombatEncounter) -> str:
    """Table time as a range, e.g. '60-75 minutes'."""
    base = DIFFICULTY_CONFIGS[encounter.difficulty].duration_base_minutes
    elements = len(encounter.tactical_features) + len(encounter.dynamic_elements)
    minutes = base + 5 * len(encounter.enemies) + 3 * elements
    return f"{minutes}-{minutes + DURATION_SPREAD_MINUTES} minutes"


def analyze_encounter(encounter: TacticalCombatEncounter) -> EncounterAnalysis:
    roles: Dict[str, int] = {}
    for enemy in encounter.enemies:
        roles[enemy.role.value] = roles.get(enemy.role.value, 0) + 1
    return EncounterAnalysis(
        encounter_id=encounter.id,
        difficulty=encounter.difficulty.value,
        tactical_complexity=calculate_tactical_complexity(encounter),
        strategic_depth=calculate_strategic_depth(encounter),
        estimated_duration=estimate_duration(encounter),
        role_breakdown=roles,
        hazard_count=len(encounter.environmental_hazards),
        escalating_hazards=sum(1 for h in encounter.environmental_hazards if h.escalation is not None),
        choke_points=len(encounter.battlefield.tactical_map.choke_points),
        flanking_opportunities=len(encounter.battlefield.tactical_map.flanking),
    )


def summarize_encounters(encounters: Sequence[TacticalCombatEncounter]) -> EncounterSetSummary:
    """
    Summarize a set of encounters.

    Difficulty is averaged on a 1 (easy) to 5 (legendary) scale.

    Raises:
        ValidationError: If no encounters are given
    """
    if not encounters:
        raise ValidationError("encounters", "At least one encounter is required to summarize")

    analyses = tuple(analyze_encounter(e) for e in encounters)
    total = len(encounters)
    themes = {e.theme for e in encounters}
    return EncounterSetSummary(
        total_encounters=total,
        average_difficulty=round(sum(e.difficulty.rank + 1 for e in encounters) / total, 2),
        tactical_complexity=round(sum(a.tactical_complexity for a in analyses) / total, 2),
        environmental_variety=min(MAX_SCORE, len(themes) * THEME_VARIETY_POINTS),
        strategic_depth=round(sum(a.strategic_depth for a in analyses) / total, 2),
        encounters=analyses,
    )
