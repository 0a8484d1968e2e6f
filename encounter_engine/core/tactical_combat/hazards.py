"""
Environmental Hazard Generation.

Draws hazards from a catalog filtered by what the battlefield actually
contains, so a ledge collapse never appears on a map without elevation.
"""
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple
import logging
import random

from .models import (
    ActivationTrigger,
    AreaShape,
    BattlefieldLayout,
    CounterplayEffectiveness,
    DurationType,
    EffectDuration,
    EffectType,
    EncounterContext,
    EncounterDifficulty,
    EnvironmentalHazard,
    GridArea,
    GridLocation,
    HazardCounterplay,
    HazardEffect,
    HazardEscalation,
    HazardSeverity,
    HazardType,
    TerrainType,
    TriggerType,
)
from .scaling import DIFFICULTY_CONFIGS, calculate_hazard_count

logger = logging.getLogger(__name__)


SEVERITY_DICE = {
    HazardSeverity.MILD: "1d6",
    HazardSeverity.MODERATE: "2d6",
    HazardSeverity.SEVERE: "4d6",
    HazardSeverity.DEADLY: "6d6",
}
ESCALATED_DICE = {
    HazardSeverity.MILD: "2d6",
    HazardSeverity.MODERATE: "4d6",
    HazardSeverity.SEVERE: "6d6",
    HazardSeverity.DEADLY: "8d6",
}
ESCALATING_DIFFICULTIES = (EncounterDifficulty.DEADLY, EncounterDifficulty.LEGENDARY)
PREFERENCE_WEIGHT_FACTOR = 2


@dataclass(frozen=True)
class HazardSpec:
    """Catalog entry describing a hazard and when it can appear."""
    key: str
    name: str
    type: HazardType
    description: str
    damage_type: str
    save: str
    trigger: TriggerType
    trigger_condition: str
    radius: int
    duration: EffectDuration
    counterplay: Tuple[Tuple[str, str, Tuple[str, ...], CounterplayEffectiveness], ...]
    condition: Optional[str] = None
    tags: Tuple[str, ...] = ()
    requires_elevation: bool = False
    requires_terrain: Optional[TerrainType] = None
    environments: Tuple[str, ...] = ()
    min_difficulty: EncounterDifficulty = EncounterDifficulty.EASY
    weight: int = 1

    def is_compatible(self, battlefield: BattlefieldLayout, difficulty: EncounterDifficulty) -> bool:
        if self.requires_elevation and not battlefield.has_elevation:
            return False
        if self.requires_terrain is not None and self.requires_terrain not in battlefield.terrain_types():
            return False
        if self.environments and battlefield.environment not in self.environments:
            return False
        return difficulty.rank >= self.min_difficulty.rank

    def matches_preference(self, preferences: Sequence[str]) -> bool:
        wanted = {p.strip().lower() for p in preferences}
        return bool(wanted & ({self.key, self.type.value, self.damage_type} | set(self.tags)))


HAZARD_CATALOG: Tuple[HazardSpec, ...] = (
    HazardSpec(
        key="crumbling-ledge",
        name="Crumbling Ledge",
        type=HazardType.ENVIRONMENTAL,
        description="The edge of the high ground gives way underfoot",
        damage_type="bludgeoning",
        save="Dexterity",
        trigger=TriggerType.ENTRY,
        trigger_condition="A creature ends its move at the edge",
        radius=1,
        duration=EffectDuration(DurationType.INSTANT),
        counterplay=(
            ("test", "Probe the edge before stepping", ("10-foot pole or DC 12 Investigation",), CounterplayEffectiveness.COMPLETE),
            ("rope", "Tie off with a rope", ("Rope", "An anchor point"), CounterplayEffectiveness.PARTIAL),
        ),
        condition="prone",
        tags=("falling", "collapse", "elevation"),
        requires_elevation=True,
    ),
    HazardSpec(
        key="rockfall",
        name="Rockfall",
        type=HazardType.ENVIRONMENTAL,
        description="Loose stone above comes crashing down",
        damage_type="bludgeoning",
        save="Dexterity",
        trigger=TriggerType.DAMAGE,
        trigger_condition="Thunder damage or a loud impact nearby",
        radius=2,
        duration=EffectDuration(DurationType.INSTANT),
        counterplay=(
            ("shelter", "Duck under solid cover", ("Adjacent total cover",), CounterplayEffectiveness.COMPLETE),
            ("quiet", "Avoid loud attacks nearby", (), CounterplayEffectiveness.SITUATIONAL),
        ),
        tags=("rocks", "collapse"),
        requires_elevation=True,
    ),
    HazardSpec(
        key="thorn-snare",
        name="Thorn Snare",
        type=HazardType.ENVIRONMENTAL,
        description="Barbed vines whip around passing legs",
        damage_type="piercing",
        save="Strength",
        trigger=TriggerType.ENTRY,
        trigger_condition="A creature enters the undergrowth",
        radius=1,
        duration=EffectDuration(DurationType.ROUNDS, value=1),
        counterplay=(
            ("cut", "Hack the vines apart", ("Slashing weapon", "Action"), CounterplayEffectiveness.COMPLETE),
            ("burn", "Set the vines alight", ("Fire damage",), CounterplayEffectiveness.PARTIAL),
        ),
        condition="restrained",
        tags=("plants", "vines", "nature"),
        requires_terrain=TerrainType.DIFFICULT,
        environments=("natural", "architectural"),
    ),
    HazardSpec(
        key="toxic-spores",
        name="Toxic Spores",
        type=HazardType.ENVIRONMENTAL,
        description="A cloud of choking spores bursts from the ground",
        damage_type="poison",
        save="Constitution",
        trigger=TriggerType.ENTRY,
        trigger_condition="A creature disturbs the fungus",
        radius=2,
        duration=EffectDuration(DurationType.ROUNDS, value=3),
        counterplay=(
            ("hold-breath", "Hold your breath while crossing", ("Declare before entering",), CounterplayEffectiveness.PARTIAL),
            ("disperse", "Blow the cloud away", ("Gust of wind or similar",), CounterplayEffectiveness.COMPLETE),
        ),
        condition="poisoned",
        tags=("fungus", "spores", "gas"),
        environments=("natural", "underground"),
    ),
    HazardSpec(
        key="spike-trap",
        name="Spike Trap",
        type=HazardType.MECHANICAL,
        description="A pressure plate releases a bed of spikes",
        damage_type="piercing",
        save="Dexterity",
        trigger=TriggerType.ENTRY,
        trigger_condition="Weight on the pressure plate",
        radius=0,
        duration=EffectDuration(DurationType.INSTANT),
        counterplay=(
            ("disarm", "Jam the pressure plate", ("DC 13 Thieves' Tools",), CounterplayEffectiveness.COMPLETE),
            ("avoid", "Step around the plate once spotted", ("Hazard detected",), CounterplayEffectiveness.COMPLETE),
        ),
        tags=("trap", "mechanism"),
    ),
    HazardSpec(
        key="collapsing-floor",
        name="Collapsing Floor",
        type=HazardType.ENVIRONMENTAL,
        description="Weakened ground drops into a hidden cavity",
        damage_type="bludgeoning",
        save="Dexterity",
        trigger=TriggerType.CONDITION,
        trigger_condition="More than 200 pounds on the weakened ground",
        radius=1,
        duration=EffectDuration(DurationType.PERMANENT),
        counterplay=(
            ("spread-out", "Cross one at a time", (), CounterplayEffectiveness.COMPLETE),
            ("brace", "Lay planks across the weak spot", ("Planks or a shield",), CounterplayEffectiveness.PARTIAL),
        ),
        condition="prone",
        tags=("collapse", "falling"),
        requires_terrain=TerrainType.HAZARDOUS,
    ),
    HazardSpec(
        key="arcane-ward",
        name="Arcane Ward",
        type=HazardType.MAGICAL,
        description="A glyph flares and lashes intruders with force",
        damage_type="force",
        save="Wisdom",
        trigger=TriggerType.ENTRY,
        trigger_condition="A creature not attuned to the ward enters",
        radius=2,
        duration=EffectDuration(DurationType.CONDITIONAL, condition="Until dispelled"),
        counterplay=(
            ("dispel", "Dispel the glyph", ("Dispel magic", "DC 14 Arcana check"), CounterplayEffectiveness.COMPLETE),
            ("deface", "Scratch out part of the glyph", ("Action", "Adjacent to the glyph"), CounterplayEffectiveness.PARTIAL),
        ),
        tags=("magic", "arcane", "glyph"),
        min_difficulty=EncounterDifficulty.HARD,
    ),
    HazardSpec(
        key="swarm-nest",
        name="Swarm Nest",
        type=HazardType.CREATURE,
        description="A nest of biting insects erupts when disturbed",
        damage_type="piercing",
        save="Constitution",
        trigger=TriggerType.ACTION,
        trigger_condition="The nest is struck or a creature lingers beside it",
        radius=1,
        duration=EffectDuration(DurationType.ROUNDS, value=2),
        counterplay=(
            ("smoke", "Smoke out the swarm", ("Fire or smoke",), CounterplayEffectiveness.COMPLETE),
            ("retreat", "Move away from the nest", (), CounterplayEffectiveness.PARTIAL),
        ),
        tags=("creature", "insects", "swarm"),
        min_difficulty=EncounterDifficulty.HARD,
    ),
    HazardSpec(
        key="burning-brazier",
        name="Burning Brazier",
        type=HazardType.ENVIRONMENTAL,
        description="A heavy brazier that spills burning coals when toppled",
        damage_type="fire",
        save="Dexterity",
        trigger=TriggerType.ACTION,
        trigger_condition="A creature topples the brazier",
        radius=1,
        duration=EffectDuration(DurationType.ROUNDS, value=3),
        counterplay=(
            ("douse", "Douse the coals", ("Water or create water",), CounterplayEffectiveness.COMPLETE),
            ("steady", "Brace the brazier", ("Object interaction",), CounterplayEffectiveness.SITUATIONAL),
        ),
        tags=("fire", "light"),
        environments=("ceremonial", "architectural"),
    ),
    HazardSpec(
        key="temporal-rift",
        name="Temporal Rift",
        type=HazardType.TEMPORAL,
        description="A tear in time where moments repeat and skip",
        damage_type="force",
        save="Wisdom",
        trigger=TriggerType.TIME,
        trigger_condition="At the start of each round",
        radius=2,
        duration=EffectDuration(DurationType.CONDITIONAL, condition="Until the rift is sealed"),
        counterplay=(
            ("seal", "Seal the rift with arcane power", ("Spell slot of 3rd level or higher",), CounterplayEffectiveness.COMPLETE),
            ("anchor", "Anchor yourself to the present", ("DC 15 Wisdom save",), CounterplayEffectiveness.PARTIAL),
        ),
        condition="slowed",
        tags=("time", "temporal", "magic"),
        min_difficulty=EncounterDifficulty.LEGENDARY,
    ),
    HazardSpec(
        key="snapping-ropes",
        name="Snapping Ropes",
        type=HazardType.MECHANICAL,
        description="Frayed support ropes snap and lash across the span",
        damage_type="bludgeoning",
        save="Strength",
        trigger=TriggerType.DAMAGE,
        trigger_condition="The ropes take slashing or fire damage",
        radius=1,
        duration=EffectDuration(DurationType.INSTANT),
        counterplay=(
            ("secure", "Knot the frayed ropes", ("Action", "DC 12 Sleight of Hand"), CounterplayEffectiveness.COMPLETE),
            ("hold-on", "Grab a railing", ("A free hand",), CounterplayEffectiveness.PARTIAL),
        ),
        condition="prone",
        tags=("bridge", "ropes"),
        environments=("linear",),
    ),
    HazardSpec(
        key="flooding-channel",
        name="Flooding Channel",
        type=HazardType.ENVIRONMENTAL,
        description="A surge of water sweeps through a channel",
        damage_type="bludgeoning",
        save="Strength",
        trigger=TriggerType.TIME,
        trigger_condition="Every other round",
        radius=2,
        duration=EffectDuration(DurationType.ROUNDS, value=1),
        counterplay=(
            ("anchor", "Brace against the current", ("DC 13 Athletics",), CounterplayEffectiveness.PARTIAL),
            ("divert", "Close the sluice", ("Reach the sluice", "Action"), CounterplayEffectiveness.COMPLETE),
        ),
        tags=("water", "flood"),
        environments=("underground", "linear", "architectural"),
    ),
)


def compatible_hazards(battlefield: BattlefieldLayout, difficulty: EncounterDifficulty) -> List[HazardSpec]:
    """Catalog entries the battlefield can host."""
    return [spec for spec in HAZARD_CATALOG if spec.is_compatible(battlefield, difficulty)]


def _create_hazard(
    spec: HazardSpec,
    index: int,
    battlefield: BattlefieldLayout,
    difficulty: EncounterDifficulty,
    rng: random.Random
) -> EnvironmentalHazard:
    config = DIFFICULTY_CONFIGS[difficulty]
    severity = config.hazard_severity
    width, height = battlefield.dimensions.width, battlefield.dimensions.height
    center = GridLocation(rng.randrange(width), rng.randrange(height))
    area = GridArea.around(center, spec.radius, width, height, AreaShape.CIRCLE)
    duration_text = spec.duration.type.value if spec.duration.value is None else f"{spec.duration.value} rounds"

    rule = (f"DC {config.hazard_save_dc} {spec.save} save or take {SEVERITY_DICE[severity]} "
            f"{spec.damage_type} damage, half on a success")
    effects = [HazardEffect(EffectType.DAMAGE, spec.description, rule, area, duration_text)]
    if spec.condition:
        effects.append(HazardEffect(
            EffectType.CONDITION,
            f"Creatures that fail are {spec.condition}",
            f"A failed save also leaves the creature {spec.condition} until the end of its next turn",
            area,
            duration_text,
        ))

    counterplay = [
        HazardCounterplay(method, description, requirements, effectiveness)
        for method, description, requirements, effectiveness in spec.counterplay
    ]
    counterplay.append(HazardCounterplay(
        "detect", "Spot the hazard before it triggers",
        (f"DC {config.hazard_save_dc} Wisdom (Perception)",), CounterplayEffectiveness.PARTIAL,
    ))

    escalation = None
    if difficulty in ESCALATING_DIFFICULTIES:
        wider = GridArea.around(center, spec.radius + 1, width, height, AreaShape.CIRCLE)
        escalated_rule = (f"DC {config.hazard_save_dc + 2} {spec.save} save or take {ESCALATED_DICE[severity]} "
                          f"{spec.damage_type} damage, half on a success")
        escalation = HazardEscalation(
            trigger="The hazard triggers a second time",
            description=f"The {spec.name.lower()} intensifies and spreads",
            new_effects=(HazardEffect(EffectType.DAMAGE, f"Intensified {spec.name.lower()}", escalated_rule,
                                      wider, duration_text),),
            mechanical_change=f"Damage rises to {ESCALATED_DICE[severity]} and the area grows by 5 feet",
        )

    return EnvironmentalHazard(
        id=f"hazard-{spec.key}-{index}",
        kind=spec.key,
        name=spec.name,
        type=spec.type,
        severity=severity,
        location=center,
        area=area,
        description=spec.description,
        activation_trigger=ActivationTrigger(spec.trigger, spec.trigger_condition),
        effects=tuple(effects),
        duration=spec.duration,
        counterplay=tuple(counterplay),
        escalation=escalation,
    )


def generate_environmental_hazards(
    battlefield: BattlefieldLayout,
    difficulty: EncounterDifficulty,
    context: EncounterContext,
    rng: random.Random
) -> List[EnvironmentalHazard]:
    """
    Generate hazards scaled to battlefield area and difficulty.

    Entries matching the party's environmental preferences are twice as likely.
    """
    count = calculate_hazard_count(battlefield.dimensions.total_area, difficulty)
    candidates = compatible_hazards(battlefield, difficulty)
    weights = [
        spec.weight * (PREFERENCE_WEIGHT_FACTOR if spec.matches_preference(context.environmental_preferences) else 1)
        for spec in candidates
    ]
    chosen = rng.choices(candidates, weights=weights, k=count)
    logger.debug(f"Hazards: {count} drawn from {len(candidates)} compatible entries")
    return [_create_hazard(spec, i, battlefield, difficulty, rng) for i, spec in enumerate(chosen)]
