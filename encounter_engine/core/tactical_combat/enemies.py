"""
Tactical Enemy Generation.

Spends a headcount budget on tactical roles, derives a stat block for each
enemy from its role and the encounter tier, and positions it according to
the role's preferences on the generated battlefield.
"""
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Set, Tuple
import logging
import random

from .models import (
    AbilityScores,
    AbilityType,
    BattlefieldLayout,
    CreatureAction,
    CreatureReaction,
    CreatureSenses,
    CoverValue,
    CreatureSpeed,
    EncounterContext,
    EncounterDifficulty,
    EnemyObjective,
    EnemyObjectiveType,
    EnemyStatBlock,
    EquipmentType,
    FormationRole,
    GridArea,
    GridLocation,
    InitialPositioning,
    LegendaryAction,
    ObjectivePriority,
    PositioningPreference,
    RetreatCondition,
    SpacingRequirement,
    TacticalAbility,
    TacticalBehavior,
    TacticalEnemy,
    TacticalEquipment,
    TacticalRole,
    TacticalStrategy,
    TargetPriority,
    TerrainType,
    Theme,
)
from .scaling import DIFFICULTY_CONFIGS, calculate_enemy_budget, clamp
from .templates import BATTLEFIELD_TEMPLATES

logger = logging.getLogger(__name__)


LEADER_THRESHOLD = 5
MIN_CHALLENGE_RATING = 0.25
ALTERNATIVE_COUNT = 2
ALTERNATIVE_SPREAD = 3
FALLBACK_ATTEMPTS = 8

# Away from the party first
NEIGHBOUR_OFFSETS = ((0, -1), (-1, -1), (1, -1), (-1, 0), (1, 0), (-1, 1), (0, 1), (1, 1))


@dataclass(frozen=True)
class RoleProfile:
    """How a tactical role fights and where it stands."""
    title: str
    base_cr: int
    formation: FormationRole
    preference: PositioningPreference
    spacing: SpacingRequirement
    strategy: TacticalStrategy
    fallbacks: Tuple[TacticalStrategy, ...]
    abilities: Tuple[int, int, int, int, int, int]  # str, dex, con, int, wis, cha
    saves: Tuple[str, str]
    skills: Tuple[str, ...]


ROLE_PROFILES: Dict[TacticalRole, RoleProfile] = {
    TacticalRole.FRONTLINE: RoleProfile(
        "Guardian", 2, FormationRole.VANGUARD, PositioningPreference.MELEE, SpacingRequirement.TIGHT,
        TacticalStrategy.AGGRESSIVE, (TacticalStrategy.DEFENSIVE,),
        (16, 12, 15, 8, 10, 9), ("strength", "constitution"), ("athletics",),
    ),
    TacticalRole.RANGED: RoleProfile(
        "Archer", 1, FormationRole.REAR, PositioningPreference.ELEVATED, SpacingRequirement.LOOSE,
        TacticalStrategy.AGGRESSIVE, (TacticalStrategy.MOBILE,),
        (10, 16, 12, 10, 13, 9), ("dexterity", "wisdom"), ("perception", "stealth"),
    ),
    TacticalRole.SUPPORT: RoleProfile(
        "Acolyte", 1, FormationRole.REAR, PositioningPreference.COVERED, SpacingRequirement.NORMAL,
        TacticalStrategy.SUPPORT, (TacticalStrategy.DEFENSIVE,),
        (10, 12, 13, 12, 16, 14), ("wisdom", "charisma"), ("medicine", "religion"),
    ),
    TacticalRole.CONTROLLER: RoleProfile(
        "Mage", 3, FormationRole.CENTER, PositioningPreference.ELEVATED, SpacingRequirement.LOOSE,
        TacticalStrategy.CONTROL, (TacticalStrategy.SUPPORT, TacticalStrategy.DEFENSIVE),
        (9, 14, 12, 17, 13, 11), ("intelligence", "wisdom"), ("arcana",),
    ),
    TacticalRole.SKIRMISHER: RoleProfile(
        "Scout", 1, FormationRole.FLANK, PositioningPreference.MOBILE, SpacingRequirement.SCATTERED,
        TacticalStrategy.MOBILE, (TacticalStrategy.AGGRESSIVE,),
        (12, 17, 13, 10, 12, 10), ("dexterity", "intelligence"), ("acrobatics", "stealth"),
    ),
    TacticalRole.LEADER: RoleProfile(
        "Commander", 4, FormationRole.CENTER, PositioningPreference.COVERED, SpacingRequirement.NORMAL,
        TacticalStrategy.CONTROL, (TacticalStrategy.AGGRESSIVE, TacticalStrategy.DEFENSIVE),
        (15, 13, 14, 13, 12, 16), ("constitution", "charisma"), ("intimidation", "insight"),
    ),
}

THEME_CREATURES = {
    Theme.FOREST: ("fey", "chaotic neutral", ("Common", "Sylvan")),
    Theme.RUINS: ("undead", "lawful evil", ("understands Common but can't speak",)),
    Theme.UNDERGROUND: ("aberration", "neutral evil", ("Deep Speech", "Undercommon")),
    Theme.INDOOR: ("humanoid", "lawful neutral", ("Common",)),
    Theme.BRIDGE: ("humanoid", "neutral", ("Common",)),
}

TARGET_PRIORITIES = {
    TacticalRole.FRONTLINE: (("closest enemy", 3), ("enemy threatening an ally", 2)),
    TacticalRole.RANGED: (("spellcasters", 3), ("lightly armored targets", 2)),
    TacticalRole.SUPPORT: (("wounded allies", 3), ("enemy healers", 2)),
    TacticalRole.CONTROLLER: (("grouped enemies", 3), ("enemy melee threats", 2)),
    TacticalRole.SKIRMISHER: (("isolated enemies", 3), ("enemy ranged attackers", 2)),
    TacticalRole.LEADER: (("enemy leader", 3), ("strongest melee threat", 2)),
}

RETREAT_CONDITIONS = {
    TacticalRole.FRONTLINE: ("Hit points below 25%", "25%", "Fighting withdrawal toward allies"),
    TacticalRole.RANGED: ("An enemy closes to melee", "melee contact", "Disengage and fall back to cover"),
    TacticalRole.SUPPORT: ("No allies left to support", "all allies down", "Flee toward the enemy deployment"),
    TacticalRole.CONTROLLER: ("Concentration broken twice", "2 failed saves", "Retreat behind the front line"),
    TacticalRole.SKIRMISHER: ("Hit points below 50%", "50%", "Dash to the nearest edge"),
    TacticalRole.LEADER: ("Half the force has fallen", "50% of allies", "Order a retreat and cover it"),
}

ENEMY_OBJECTIVES = {
    TacticalRole.FRONTLINE: (EnemyObjectiveType.ELIMINATE_TARGET, "Break the party's front line"),
    TacticalRole.RANGED: (EnemyObjectiveType.ELIMINATE_TARGET, "Pick off exposed spellcasters"),
    TacticalRole.SUPPORT: (EnemyObjectiveType.PROTECT_ALLY, "Keep the strongest ally standing"),
    TacticalRole.CONTROLLER: (EnemyObjectiveType.CONTROL_AREA, "Deny the party the objective site"),
    TacticalRole.SKIRMISHER: (EnemyObjectiveType.ELIMINATE_TARGET, "Harass stragglers and isolated targets"),
    TacticalRole.LEADER: (EnemyObjectiveType.CONTROL_AREA, "Hold the objective site"),
}

ROLE_EQUIPMENT = {
    TacticalRole.FRONTLINE: (("Shield", EquipmentType.ARMOR, "A heavy shield", "Holds a choke point"),),
    TacticalRole.RANGED: (("Longbow", EquipmentType.WEAPON, "A yew longbow", "Attacks from 150 feet"),),
    TacticalRole.SUPPORT: (("Healer's Kit", EquipmentType.TOOL, "Bandages and salves", "Stabilizes fallen allies"),),
    TacticalRole.CONTROLLER: (("Focus Orb", EquipmentType.MAGICAL, "A crystal orb", "Extends spell range by 30 feet"),),
    TacticalRole.SKIRMISHER: (("Smoke Pellets", EquipmentType.CONSUMABLE, "Three smoke pellets",
                               "Creates a 10-foot cloud of heavy obscurement"),),
    TacticalRole.LEADER: (("Signal Horn", EquipmentType.TOOL, "A brass war horn", "Calls reinforcements"),),
}

ROLE_ABILITIES = {
    TacticalRole.FRONTLINE: ("Shield Wall", AbilityType.DEFENSIVE, "Adjacent allies gain +2 AC",
                             "Anchor the line at a choke point"),
    TacticalRole.RANGED: ("Volley", AbilityType.OFFENSIVE, "Attack every creature in a 10-foot radius",
                          "Punish a bunched-up party"),
    TacticalRole.SUPPORT: ("Mending Prayer", AbilityType.UTILITY, "Heal one ally for 2d8 hit points",
                           "Keep the frontline standing"),
    TacticalRole.CONTROLLER: ("Grasping Earth", AbilityType.CONTROL, "A 15-foot square becomes difficult terrain",
                              "Cut off the party's advance"),
    TacticalRole.SKIRMISHER: ("Hit and Run", AbilityType.MOVEMENT, "Disengage as a bonus action",
                              "Strike and retreat without opportunity attacks"),
    TacticalRole.LEADER: ("Battle Orders", AbilityType.UTILITY, "Up to three allies move half their speed",
                          "Reposition the whole force at once"),
}


def format_challenge_rating(cr: float) -> str:
    """Render a challenge rating the way stat blocks print it (1/4, 1/2, 3)."""
    if cr == 0.125:
        return "1/8"
    if cr == 0.25:
        return "1/4"
    if cr == 0.5:
        return "1/2"
    return str(int(cr))


def calculate_challenge_rating(role: TacticalRole, difficulty: EncounterDifficulty, party_level: int) -> float:
    """Role base CR + difficulty modifier + party tier, floored at 1/4."""
    cr = ROLE_PROFILES[role].base_cr + DIFFICULTY_CONFIGS[difficulty].cr_modifier + (party_level - 1) // 4
    return max(MIN_CHALLENGE_RATING, float(cr))


def _modifier(score: int) -> int:
    return (score - 10) // 2


# =============================================================================
# ROLES
# =============================================================================

def assign_roles(theme: Theme, difficulty: EncounterDifficulty, context: EncounterContext,
                 rng: random.Random) -> List[TacticalRole]:
    """Frontline first, a leader once the budget allows, the rest theme-weighted."""
    budget = calculate_enemy_budget(context.party_size, difficulty)
    roles = [TacticalRole.FRONTLINE]
    if budget >= LEADER_THRESHOLD:
        roles.append(TacticalRole.LEADER)
    weights = BATTLEFIELD_TEMPLATES[theme].role_weights
    remaining = budget - len(roles)
    if remaining > 0:
        roles.extend(rng.choices(list(weights.keys()), weights=list(weights.values()), k=remaining))
    return roles


# =============================================================================
# STAT BLOCKS
# =============================================================================

def _actions(role: TacticalRole, cr: int, scores: AbilityScores, proficiency: int) -> Tuple[CreatureAction, ...]:
    dice = 1 + cr // 4
    strength, dexterity = _modifier(scores.strength), _modifier(scores.dexterity)
    intelligence, wisdom = _modifier(scores.intelligence), _modifier(scores.wisdom)
    charisma = _modifier(scores.charisma)
    if role == TacticalRole.FRONTLINE:
        return (CreatureAction("Longsword", "Melee Weapon Attack, reach 5 ft.", strength + proficiency,
                               f"{dice}d8+{strength} slashing"),)
    if role == TacticalRole.RANGED:
        return (
            CreatureAction("Longbow", "Ranged Weapon Attack, range 150/600 ft.", dexterity + proficiency,
                           f"{dice}d8+{dexterity} piercing"),
            CreatureAction("Shortsword", "Melee Weapon Attack, reach 5 ft.", dexterity + proficiency,
                           f"{dice}d6+{dexterity} piercing"),
        )
    if role == TacticalRole.SUPPORT:
        return (
            CreatureAction("Mace", "Melee Weapon Attack, reach 5 ft.", strength + proficiency,
                           f"{dice}d6+{strength} bludgeoning"),
            CreatureAction("Healing Word", f"One ally within 60 ft. regains {dice}d4+{wisdom} hit points"),
        )
    if role == TacticalRole.CONTROLLER:
        return (
            CreatureAction("Arcane Bolt", "Ranged Spell Attack, range 120 ft.", intelligence + proficiency,
                           f"{dice}d10 force"),
            CreatureAction("Entangling Hex", "Creatures in a 15-foot cube are restrained on a failed save",
                           save_dc=8 + proficiency + intelligence, recharge="5-6"),
        )
    if role == TacticalRole.SKIRMISHER:
        return (CreatureAction("Twin Daggers", "Two Melee Weapon Attacks, reach 5 ft.", dexterity + proficiency,
                               f"{dice}d4+{dexterity} piercing"),)
    return (
        CreatureAction("Multiattack", "Makes two Greatsword attacks"),
        CreatureAction("Greatsword", "Melee Weapon Attack, reach 5 ft.", strength + proficiency,
                       f"{dice * 2}d6+{strength} slashing"),
        CreatureAction("Rallying Cry", f"Allies within 30 ft. gain {dice}d6+{charisma} temporary hit points",
                       recharge="5-6"),
    )


def build_stat_block(
    name: str,
    role: TacticalRole,
    theme: Theme,
    difficulty: EncounterDifficulty,
    context: EncounterContext
) -> EnemyStatBlock:
    profile = ROLE_PROFILES[role]
    challenge = calculate_challenge_rating(role, difficulty, context.party_level)
    cr = int(challenge)
    bonus = cr // 2
    scores = AbilityScores(*(score + bonus for score in profile.abilities))
    proficiency = max(2, (cr - 1) // 4 + 2)
    creature_type, alignment, languages = THEME_CREATURES[theme]

    reactions = ()
    if role in (TacticalRole.FRONTLINE, TacticalRole.LEADER):
        reactions = (CreatureReaction("Parry", "Adds 2 to its AC against one melee attack",
                                      "A melee attack would hit it"),)
    elif role == TacticalRole.SKIRMISHER:
        reactions = (CreatureReaction("Slip Away", "Moves half its speed without provoking",
                                      "An enemy ends its turn adjacent"),)

    legendary = ()
    if role == TacticalRole.LEADER and difficulty == EncounterDifficulty.LEGENDARY:
        legendary = (
            LegendaryAction("Command Strike", "One ally makes a weapon attack", 1),
            LegendaryAction("Reposition", "Moves up to half its speed", 1),
            LegendaryAction("Inspiring Roar", "Allies within 30 ft. gain advantage on their next attack", 2),
        )

    abilities = dict(zip(
        ("strength", "dexterity", "constitution", "intelligence", "wisdom", "charisma"),
        (scores.strength, scores.dexterity, scores.constitution,
         scores.intelligence, scores.wisdom, scores.charisma),
    ))
    saving_throws = tuple((save, _modifier(abilities[save]) + proficiency) for save in profile.saves)
    skill_abilities = {
        "athletics": "strength", "acrobatics": "dexterity", "stealth": "dexterity",
        "arcana": "intelligence", "religion": "intelligence", "medicine": "wisdom",
        "perception": "wisdom", "insight": "wisdom", "intimidation": "charisma",
    }
    skills = tuple((skill, _modifier(abilities[skill_abilities[skill]]) + proficiency) for skill in profile.skills)

    perception_bonus = dict(skills).get("perception", _modifier(scores.wisdom))
    darkvision = 60 if theme in (Theme.UNDERGROUND, Theme.RUINS) else None

    return EnemyStatBlock(
        name=name,
        size="Medium",
        creature_type=creature_type,
        alignment=alignment,
        armor_class=12 + cr // 2,
        hit_points=int(10 + challenge * 8),
        speed=CreatureSpeed(walk=40, climb=20) if role == TacticalRole.SKIRMISHER else CreatureSpeed(walk=30),
        abilities=scores,
        saving_throws=saving_throws,
        skills=skills,
        damage_resistances=("necrotic",) if creature_type == "undead" else (),
        damage_immunities=("poison",) if creature_type == "undead" else (),
        condition_immunities=("poisoned",) if creature_type == "undead" else (),
        senses=CreatureSenses(passive_perception=10 + perception_bonus, darkvision=darkvision),
        languages=languages,
        challenge_rating=format_challenge_rating(challenge),
        proficiency_bonus=proficiency,
        actions=_actions(role, cr, scores, proficiency),
        reactions=reactions,
        legendary_actions=legendary,
    )


# =============================================================================
# POSITIONING
# =============================================================================

class _PositionFinder:
    """
    Candidate squares on one battlefield, grouped by what they offer.

    Every square handed out is recorded, so no two enemies share a
    preferred location. Squares inside impassable terrain or total cover
    are never handed out.
    """

    def __init__(self, battlefield: BattlefieldLayout, rng: random.Random):
        self.rng = rng
        self.width = battlefield.dimensions.width
        self.height = battlefield.dimensions.height
        self.occupied: Set[Tuple[int, int]] = set()
        self.blocked = [t.footprint() for t in battlefield.terrain if t.type == TerrainType.IMPASSABLE]
        self.blocked += [c.footprint() for c in battlefield.cover if c.cover_value == CoverValue.TOTAL]
        self.raised = [e for e in battlefield.elevation if e.height > 0]

        enemy_deployment = GridLocation(self.width // 2, 0)
        ordered = sorted(self.raised, key=lambda e: (-e.height, e.id))
        self.elevated = [e.footprint().center for e in ordered]
        # Behind each cover element, on the side away from the party
        cover = sorted(battlefield.cover, key=lambda c: (c.location.distance_to(enemy_deployment), c.id))
        self.covered = [self._behind(c.footprint()) for c in cover]
        self.chokes = [c.location for c in battlefield.tactical_map.choke_points]
        self.flanks = [p for f in battlefield.tactical_map.flanking for p in f.flanking_positions]

    def _behind(self, area: GridArea) -> GridLocation:
        if area.top_left.y > 0:
            return GridLocation(area.center.x, area.top_left.y - 1)
        return GridLocation(area.center.x, area.bottom_right.y + 1)

    def is_open(self, x: int, y: int) -> bool:
        if not (0 <= x < self.width and 0 <= y < self.height):
            return False
        if (x, y) in self.occupied:
            return False
        return not any(area.contains(x, y) for area in self.blocked)

    def height_at(self, x: int, y: int) -> Optional[int]:
        heights = [e.height for e in self.raised if e.footprint().contains(x, y)]
        return max(heights) if heights else None

    def _claim(self, x: int, y: int) -> GridLocation:
        self.occupied.add((x, y))
        return GridLocation(x, y, self.height_at(x, y))

    def _first_open(self, order: Sequence[List[GridLocation]]) -> Optional[GridLocation]:
        candidates = [c for candidates in order for c in candidates]
        for candidate in candidates:
            if self.is_open(candidate.x, candidate.y):
                return self._claim(candidate.x, candidate.y)
        for candidate in candidates:
            for dx, dy in NEIGHBOUR_OFFSETS:
                if self.is_open(candidate.x + dx, candidate.y + dy):
                    return self._claim(candidate.x + dx, candidate.y + dy)
        return None

    def rear(self) -> GridLocation:
        return GridLocation(self.rng.randrange(self.width), self.rng.randrange(max(1, self.height // 4)))

    def centre_line(self) -> GridLocation:
        return GridLocation(self.rng.randrange(self.width), max(0, self.height // 2 - 1))

    def edge(self) -> GridLocation:
        x = self.rng.choice((0, self.width - 1))
        return GridLocation(x, self.rng.randrange(max(1, self.height // 2)))

    def preferred(self, role: TacticalRole) -> GridLocation:
        if role in (TacticalRole.RANGED, TacticalRole.CONTROLLER):
            order, fallback = (self.elevated, self.covered), self.rear
        elif role in (TacticalRole.SUPPORT, TacticalRole.LEADER):
            order, fallback = (self.covered, self.elevated), self.rear
        elif role == TacticalRole.FRONTLINE:
            order, fallback = (self.chokes,), self.centre_line
        else:
            order, fallback = (self.flanks,), self.edge

        location = self._first_open(order)
        if location is None:
            location = self._first_open(([fallback() for _ in range(FALLBACK_ATTEMPTS)],))
        if location is None:
            every_square = [GridLocation(x, y) for y in range(self.height) for x in range(self.width)]
            location = self._first_open((every_square,))
        if location is None:
            raise ValueError(f"No open square left for a {role.value} on a {self.width}x{self.height} grid")
        return location

    def alternatives(self, preferred: GridLocation) -> Tuple[GridLocation, ...]:
        return tuple(
            GridLocation(
                clamp(preferred.x + self.rng.randint(-ALTERNATIVE_SPREAD, ALTERNATIVE_SPREAD), 0, self.width - 1),
                clamp(preferred.y + self.rng.randint(-ALTERNATIVE_SPREAD, ALTERNATIVE_SPREAD), 0, self.height - 1),
            )
            for _ in range(ALTERNATIVE_COUNT)
        )


def _tactics(role: TacticalRole, battlefield: BattlefieldLayout) -> TacticalBehavior:
    profile = ROLE_PROFILES[role]
    preference = profile.preference
    if preference == PositioningPreference.ELEVATED and not battlefield.has_elevation:
        preference = PositioningPreference.RANGED
    trigger, threshold, method = RETREAT_CONDITIONS[role]
    return TacticalBehavior(
        primary_strategy=profile.strategy,
        fallback_strategies=profile.fallbacks,
        target_priority=tuple(TargetPriority(t, p) for t, p in TARGET_PRIORITIES[role]),
        positioning_preference=preference,
        retreat_conditions=(RetreatCondition(trigger, threshold, method),),
    )


def generate_tactical_enemies(
    theme: Theme,
    difficulty: EncounterDifficulty,
    context: EncounterContext,
    battlefield: BattlefieldLayout,
    rng: random.Random
) -> List[TacticalEnemy]:
    """
    Generate the enemy roster.

    Args:
        theme: Encounter theme (role weights, creature flavor)
        difficulty: Encounter difficulty (budget, challenge rating)
        context: Party context (size sets the budget, level the tier)
        battlefield: Layout used to position enemies
        rng: Random source shared across the generation run

    Returns:
        Enemies, frontline first
    """
    adjective = BATTLEFIELD_TEMPLATES[theme].enemy_adjective
    roles = assign_roles(theme, difficulty, context, rng)
    finder = _PositionFinder(battlefield, rng)

    enemies = []
    for i, role in enumerate(roles):
        profile = ROLE_PROFILES[role]
        name = f"{adjective} {profile.title}"
        preferred = finder.preferred(role)

        objective_type, objective_description = ENEMY_OBJECTIVES[role]
        objectives = [EnemyObjective(objective_type, objective_description, ObjectivePriority.PRIMARY)]
        if role == TacticalRole.LEADER:
            objectives.append(EnemyObjective(EnemyObjectiveType.ESCAPE, "Survive to report back",
                                             ObjectivePriority.SECONDARY, ("Below half hit points",)))

        equipment_name, equipment_type, description, use = ROLE_EQUIPMENT[role][0]
        ability_name, ability_type, ability_description, application = ROLE_ABILITIES[role]

        enemies.append(TacticalEnemy(
            id=f"enemy-{role.value}-{i}",
            name=name,
            stat_block=build_stat_block(name, role, theme, difficulty, context),
            role=role,
            positioning=InitialPositioning(
                preferred_location=preferred,
                alternative_locations=finder.alternatives(preferred),
                formation_role=profile.formation,
                spacing=profile.spacing,
            ),
            tactics=_tactics(role, battlefield),
            objectives=tuple(objectives),
            equipment=(TacticalEquipment(equipment_name, equipment_type, description, use),),
            special_abilities=(TacticalAbility(
                ability_name, ability_type, ability_description, application,
                usage_limit=1 if role == TacticalRole.LEADER else None,
            ),),
        ))

    logger.debug(f"Enemy roster: {[e.role.value for e in enemies]}")
    return enemies
