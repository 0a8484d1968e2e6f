"""
Objective Generation for Tactical Encounters.

Builds one primary objective plus optional secondary and bonus objectives
from the theme's candidate templates. No two objectives share a type.
"""
from typing import List, Optional, Tuple
import logging
import random

from .models import (
    ConditionType,
    ConsequenceSeverity,
    ConsequenceType,
    EncounterContext,
    EncounterDifficulty,
    EncounterObjective,
    FailureConsequence,
    ObjectiveComplication,
    ObjectivePriority,
    ObjectiveReward,
    ObjectiveType,
    RewardType,
    SuccessCondition,
    Theme,
)
from .scaling import DIFFICULTY_CONFIGS, calculate_objective_count, round_half_up
from .templates import ObjectiveTemplate, get_objective_candidates

logger = logging.getLogger(__name__)


MIN_TIME_LIMIT = 3

BONUS_DIFFICULTIES = (EncounterDifficulty.HARD, EncounterDifficulty.DEADLY)

PRIORITY_XP_FACTORS = {
    ObjectivePriority.PRIMARY: 1.0,
    ObjectivePriority.SECONDARY: 0.5,
    ObjectivePriority.BONUS: 0.25,
}

PRIORITY_CONSEQUENCES = {
    ObjectivePriority.PRIMARY: ConsequenceType.IMMEDIATE,
    ObjectivePriority.SECONDARY: ConsequenceType.DELAYED,
    ObjectivePriority.BONUS: ConsequenceType.ONGOING,
}

SEVERITY_EFFECTS = {
    ConsequenceSeverity.MINOR: "The objective's rewards are forfeited",
    ConsequenceSeverity.MODERATE: "Each party member gains one level of exhaustion",
    ConsequenceSeverity.MAJOR: "The enemy gains a surprise round in the next encounter",
    ConsequenceSeverity.CRITICAL: "The next act begins with the enemy fully prepared",
}

PRIMARY_REWARDS = {
    ObjectiveType.PROTECT: (RewardType.REPUTATION, "The rescued VIP vouches for the party"),
    ObjectiveType.RETRIEVE: (RewardType.TREASURE, "The recovered artifact"),
    ObjectiveType.CONTROL: (RewardType.ACCESS, "Safe passage through the held ground"),
    ObjectiveType.ESCAPE: (RewardType.INFORMATION, "Knowledge of the pursuers' plans"),
    ObjectiveType.ACTIVATE: (RewardType.INFORMATION, "The ritual's purpose and patron"),
}


def plan_priorities(difficulty: EncounterDifficulty, context: EncounterContext) -> List[ObjectivePriority]:
    """Primary always; secondary when the count allows; bonus for hard and deadly."""
    priorities = [ObjectivePriority.PRIMARY]
    if calculate_objective_count(difficulty, context) > 1:
        priorities.append(ObjectivePriority.SECONDARY)
    if difficulty in BONUS_DIFFICULTIES:
        priorities.append(ObjectivePriority.BONUS)
    return priorities


def calculate_time_limit(
    template: ObjectiveTemplate,
    difficulty: EncounterDifficulty,
    context: EncounterContext
) -> Optional[int]:
    """Rounds allowed; None for templates without time pressure."""
    if not template.time_constraints:
        return None
    rounds = DIFFICULTY_CONFIGS[difficulty].time_limit_rounds
    if context.time_constraints:
        rounds -= 1
    return max(MIN_TIME_LIMIT, rounds)


def _success_conditions(template: ObjectiveTemplate, time_limit: Optional[int]) -> Tuple[SuccessCondition, ...]:
    conditions = [SuccessCondition(template.condition_type, template.description, template.requirements, time_limit)]
    if time_limit is not None:
        conditions.append(SuccessCondition(
            ConditionType.TIME,
            f"Finish before the end of round {time_limit}",
            (f"Objective complete within {time_limit} rounds",),
            time_limit,
        ))
    return tuple(conditions)


def _rewards(
    template: ObjectiveTemplate,
    priority: ObjectivePriority,
    difficulty: EncounterDifficulty,
    context: EncounterContext
) -> Tuple[ObjectiveReward, ...]:
    xp = round_half_up(
        context.party_level * context.party_size
        * DIFFICULTY_CONFIGS[difficulty].xp_per_level
        * PRIORITY_XP_FACTORS[priority]
    )
    rewards = [ObjectiveReward(RewardType.EXPERIENCE, f"{xp} XP for completing '{template.name}'", str(xp))]
    if priority == ObjectivePriority.PRIMARY:
        reward_type, description = PRIMARY_REWARDS[template.type]
        rewards.append(ObjectiveReward(reward_type, description, conditions=("Objective fully completed",)))
    return tuple(rewards)


def _complications(
    template: ObjectiveTemplate,
    difficulty: EncounterDifficulty,
    rng: random.Random
) -> Tuple[ObjectiveComplication, ...]:
    config = DIFFICULTY_CONFIGS[difficulty]
    count = min(config.complication_count, len(template.complications))
    return tuple(
        ObjectiveComplication(
            trigger=trigger,
            description=description,
            mechanical_effect=effect,
            resolution=(f"DC {config.hazard_save_dc} skill check to counter", "Spend an action to address it"),
        )
        for trigger, description, effect in rng.sample(template.complications, count)
    )


def create_objective(
    template: ObjectiveTemplate,
    priority: ObjectivePriority,
    index: int,
    difficulty: EncounterDifficulty,
    context: EncounterContext,
    rng: random.Random
) -> EncounterObjective:
    time_limit = calculate_time_limit(template, difficulty, context)
    severity = DIFFICULTY_CONFIGS[difficulty].consequence_severity
    return EncounterObjective(
        id=f"objective-{priority.value}-{index}",
        template_key=template.key,
        type=template.type,
        description=template.description,
        priority=priority,
        time_limit=time_limit,
        success_conditions=_success_conditions(template, time_limit),
        failure_consequences=(FailureConsequence(
            type=PRIORITY_CONSEQUENCES[priority],
            description=template.failure_effect,
            mechanical_effect=SEVERITY_EFFECTS[severity],
            narrative_impact=template.failure_narrative,
        ),),
        rewards=_rewards(template, priority, difficulty, context),
        complications=_complications(template, difficulty, rng),
    )


def generate_objectives(
    theme: Theme,
    difficulty: EncounterDifficulty,
    context: EncounterContext,
    rng: random.Random
) -> List[EncounterObjective]:
    """
    Generate 1-3 objectives, primary first.

    Args:
        theme: Encounter theme (selects candidate templates)
        difficulty: Encounter difficulty
        context: Party context
        rng: Random source shared across the generation run

    Returns:
        Objectives ordered primary, secondary, bonus
    """
    objectives = []
    used_types: List[ObjectiveType] = []
    for index, priority in enumerate(plan_priorities(difficulty, context)):
        template = rng.choice(get_objective_candidates(theme, priority, used_types))
        used_types.append(template.type)
        objectives.append(create_objective(template, priority, index, difficulty, context, rng))
        logger.debug(f"Objective {priority.value}: {template.key}")
    return objectives
