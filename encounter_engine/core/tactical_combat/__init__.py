"""
Tactical Combat Encounter Generation.

Builds complete D&D 5e combat encounters from a theme, a difficulty
and a party context:
- Grid battlefields with terrain, cover, elevation, lighting and a tactical map
- Prioritized objectives with complications and rewards
- Enemy rosters with tactical roles, stat blocks and behavior
- Environmental hazards, interactive features and dynamic events
- Victory/defeat conditions and scaling rules

Every random choice is drawn from one seeded random.Random, so a seed
reproduces an encounter exactly.
"""

from .models import (
    BattlefieldLayout,
    EncounterContext,
    EncounterDifficulty,
    EncounterObjective,
    EnvironmentalHazard,
    GridArea,
    GridLocation,
    TacticalCombatEncounter,
    TacticalEnemy,
    TacticalFeature,
    TacticalRole,
    TerrainComplexity,
    Theme,
    to_serializable,
)
from .templates import (
    BATTLEFIELD_TEMPLATES,
    OBJECTIVE_TEMPLATES,
    BattlefieldTemplate,
    ObjectiveTemplate,
    find_battlefield_template,
    find_objective_template,
    get_battlefield_template,
    list_themes,
)
from .scaling import (
    DIFFICULTY_CONFIGS,
    DifficultyConfig,
    apply_scaling_rules,
    build_scaling_rules,
    calculate_enemy_budget,
    list_difficulty_levels,
)
from .battlefield import generate_battlefield
from .objectives import generate_objectives
from .enemies import generate_tactical_enemies
from .hazards import generate_environmental_hazards
from .features import generate_tactical_features
from .dynamics import generate_combat_dynamic_elements
from .conditions import generate_defeat_consequences, generate_victory_conditions
from .encounter_generator import (
    TacticalEncounterGenerator,
    generate_tactical_encounter,
    preview_encounter_parameters,
)
from .analysis import EncounterAnalysis, EncounterSetSummary, analyze_encounter, summarize_encounters

__all__ = [
    # Models
    "BattlefieldLayout",
    "EncounterContext",
    "EncounterDifficulty",
    "EncounterObjective",
    "EnvironmentalHazard",
    "GridArea",
    "GridLocation",
    "TacticalCombatEncounter",
    "TacticalEnemy",
    "TacticalFeature",
    "TacticalRole",
    "TerrainComplexity",
    "Theme",
    "to_serializable",
    # Templates
    "BATTLEFIELD_TEMPLATES",
    "OBJECTIVE_TEMPLATES",
    "BattlefieldTemplate",
    "ObjectiveTemplate",
    "find_battlefield_template",
    "find_objective_template",
    "get_battlefield_template",
    "list_themes",
    # Scaling
    "DIFFICULTY_CONFIGS",
    "DifficultyConfig",
    "apply_scaling_rules",
    "build_scaling_rules",
    "calculate_enemy_budget",
    "list_difficulty_levels",
    # Generators
    "generate_battlefield",
    "generate_objectives",
    "generate_tactical_enemies",
    "generate_environmental_hazards",
    "generate_tactical_features",
    "generate_combat_dynamic_elements",
    "generate_victory_conditions",
    "generate_defeat_consequences",
    "TacticalEncounterGenerator",
    "generate_tactical_encounter",
    "preview_encounter_parameters",
    # Analysis
    "EncounterAnalysis",
    "EncounterSetSummary",
    "analyze_encounter",
    "summarize_encounters",
]
