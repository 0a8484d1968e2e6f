"""
Victory and Defeat Conditions.

Derived from the generated objectives: the primary objective defines the
main victory condition, lesser objectives become bonus conditions, and each
objective maps to a defeat consequence.
"""
from typing import List, Sequence

from .models import (
    BonusCondition,
    ConsequenceMitigation,
    ConsequenceSeverity,
    ConsequenceType,
    DefeatConsequence,
    EncounterDifficulty,
    EncounterObjective,
    ObjectivePriority,
    ObjectiveType,
    VictoryCondition,
    VictoryRequirement,
    VictoryType,
)
from .objectives import PRIORITY_CONSEQUENCES
from .scaling import DIFFICULTY_CONFIGS


OBJECTIVE_VICTORY_TYPES = {
    ObjectiveType.PROTECT: VictoryType.OBJECTIVE,
    ObjectiveType.RETRIEVE: VictoryType.OBJECTIVE,
    ObjectiveType.ACTIVATE: VictoryType.OBJECTIVE,
    ObjectiveType.CONTROL: VictoryType.CONTROL,
    ObjectiveType.ESCAPE: VictoryType.ESCAPE,
}

PRIORITY_SEVERITY_STEPS = {
    ObjectivePriority.PRIMARY: 0,
    ObjectivePriority.SECONDARY: 1,
    ObjectivePriority.BONUS: 2,
    ObjectivePriority.HIDDEN: 2,
}


def _step_down(severity: ConsequenceSeverity, steps: int) -> ConsequenceSeverity:
    ladder = list(ConsequenceSeverity)
    return ladder[max(0, ladder.index(severity) - steps)]


def generate_victory_conditions(
    objectives: Sequence[EncounterObjective],
    difficulty: EncounterDifficulty
) -> List[VictoryCondition]:
    primary = objectives[0]
    bonus_conditions = tuple(
        BonusCondition(
            description=objective.description,
            requirements=objective.success_conditions[0].requirements,
            reward=objective.rewards[0].description,
        )
        for objective in objectives[1:]
    )
    return [
        VictoryCondition(
            type=OBJECTIVE_VICTORY_TYPES[primary.type],
            description=f"Complete the primary objective: {primary.description}",
            requirements=tuple(
                VictoryRequirement(condition.type.value, condition.description, condition.requirements)
                for condition in primary.success_conditions
            ),
            time_limit=primary.time_limit,
            bonus_conditions=bonus_conditions,
        ),
        VictoryCondition(
            type=VictoryType.ELIMINATION,
            description="Defeat, capture or rout every enemy",
            requirements=(VictoryRequirement("elimination", "No enemy remains able to fight"),),
            bonus_conditions=bonus_conditions if difficulty.rank >= EncounterDifficulty.HARD.rank else (),
        ),
    ]


def generate_defeat_consequences(
    objectives: Sequence[EncounterObjective],
    difficulty: EncounterDifficulty
) -> List[DefeatConsequence]:
    base_severity = DIFFICULTY_CONFIGS[difficulty].consequence_severity
    consequences = []
    for objective in objectives:
        failure = objective.failure_consequences[0]
        consequences.append(DefeatConsequence(
            type=PRIORITY_CONSEQUENCES.get(objective.priority, ConsequenceType.ONGOING),
            description=failure.description,
            severity=_step_down(base_severity, PRIORITY_SEVERITY_STEPS[objective.priority]),
            mitigation=(
                ConsequenceMitigation(
                    "regroup", "Fall back and attempt the objective again later",
                    ("At least one party member escapes",), "partial",
                ),
            ),
            narrative_impact=failure.narrative_impact,
            objective_id=objective.id,
        ))

    consequences.append(DefeatConsequence(
        type=ConsequenceType.IMMEDIATE,
        description="The party is overwhelmed",
        severity=base_severity,
        mitigation=(
            ConsequenceMitigation("surrender", "Offer terms before the last hero falls",
                                  ("A conscious party member", "DC 15 Persuasion"), "partial"),
            ConsequenceMitigation("retreat", "Break off and flee the battlefield",
                                  ("A clear path to the party deployment",), "complete"),
        ),
        narrative_impact="The party is captured or left for dead",
    ))
    return consequences
