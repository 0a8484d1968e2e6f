"""
Combat Dynamic Elements.

Trigger → effect events that change the fight mid-combat: a theme event
from medium difficulty, reinforcements from hard, and a lair surge at
legendary. Fully determined by theme and difficulty.
"""
from typing import List

from .models import (
    CombatDynamicElement,
    CombatEffect,
    CombatPhase,
    CombatTiming,
    CombatTrigger,
    DurationType,
    EffectDuration,
    EffectType,
    EncounterDifficulty,
    Theme,
    TriggerTiming,
    TriggerType,
)


THEME_EVENTS = {
    Theme.FOREST: (
        "A gale tears through the canopy",
        EffectType.VISIBILITY,
        "Falling leaves and branches lightly obscure the whole battlefield for 1 round",
        "The forest itself seems to take sides",
    ),
    Theme.RUINS: (
        "A weakened wall gives way",
        EffectType.MOVEMENT,
        "A 15-foot section of cover collapses into difficult terrain",
        "The ruins shift, opening new lines of attack",
    ),
    Theme.UNDERGROUND: (
        "A tremor shakes the cavern",
        EffectType.DAMAGE,
        "Every creature makes a DC 12 Dexterity save or falls prone",
        "Dust fills the air as the cave groans overhead",
    ),
    Theme.INDOOR: (
        "The great chandelier crashes down",
        EffectType.DAMAGE,
        "Creatures in a 10-foot radius of the hall's centre take 2d6 bludgeoning damage",
        "Candlelight scatters and the hall falls into shadow",
    ),
    Theme.BRIDGE: (
        "The bridge sways violently",
        EffectType.MOVEMENT,
        "Creatures not holding a rail make a DC 12 Dexterity save or are pushed 5 feet",
        "Planks tumble into the chasm below",
    ),
}

THEME_EVENT_MIN_RANK = EncounterDifficulty.MEDIUM.rank
REINFORCEMENT_MIN_RANK = EncounterDifficulty.HARD.rank


def generate_combat_dynamic_elements(theme: Theme, difficulty: EncounterDifficulty) -> List[CombatDynamicElement]:
    elements = []

    if difficulty.rank >= THEME_EVENT_MIN_RANK:
        description, effect_type, change, narrative = THEME_EVENTS[theme]
        elements.append(CombatDynamicElement(
            trigger=CombatTrigger(TriggerType.TIME, "Round 2", TriggerTiming.START_OF_ROUND),
            effect=CombatEffect(effect_type, description, change),
            timing=CombatTiming(CombatPhase.INITIATIVE, "1 round"),
            description=description,
            mechanical_change=change,
            narrative_impact=narrative,
            duration=EffectDuration(DurationType.ROUNDS, value=1),
        ))

    if difficulty.rank >= REINFORCEMENT_MIN_RANK:
        arrivals = "2-3" if difficulty == EncounterDifficulty.LEGENDARY else "1-2"
        elements.append(CombatDynamicElement(
            trigger=CombatTrigger(TriggerType.TIME, "Round 3 or later", TriggerTiming.START_OF_ROUND),
            effect=CombatEffect(EffectType.MECHANICAL, "Enemy reinforcements arrive",
                                f"Add {arrivals} additional enemies"),
            timing=CombatTiming(CombatPhase.INITIATIVE, "Permanent"),
            description="Additional enemies join the battle",
            mechanical_change="Reinforcements appear at the enemy deployment point",
            narrative_impact="The situation grows desperate as more foes arrive",
            duration=EffectDuration(DurationType.PERMANENT),
        ))

    if difficulty == EncounterDifficulty.LEGENDARY:
        elements.append(CombatDynamicElement(
            trigger=CombatTrigger(TriggerType.TIME, "Initiative count 20", TriggerTiming.SPECIFIC_INITIATIVE),
            effect=CombatEffect(EffectType.MECHANICAL, "The battlefield surges with power",
                                "One hazard triggers again or the enemy leader takes a lair action"),
            timing=CombatTiming(CombatPhase.INITIATIVE, "Each round", initiative=20),
            description="The lair itself fights back",
            mechanical_change="Lair action on initiative count 20, losing ties",
            narrative_impact="The place answers its master's call",
            duration=EffectDuration(DurationType.CONDITIONAL, condition="While the leader lives"),
        ))

    return elements
