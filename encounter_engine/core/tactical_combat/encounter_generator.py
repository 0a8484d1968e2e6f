"""
Tactical Encounter Assembly.

Runs every generation stage in dependency order against one shared random
source and assembles the result into a TacticalCombatEncounter.
"""
from typing import Any, Dict, Mapping, Optional, Union
import logging
import random

from encounter_engine.core.errors import EncounterGenerationError, GameError, InvalidContextError

from .battlefield import (
    DEFAULT_FEET_PER_SQUARE,
    calculate_cover_count,
    calculate_dimensions,
    calculate_elevation_count,
    calculate_special_area_count,
    calculate_terrain_count,
    generate_battlefield,
)
from .conditions import generate_defeat_consequences, generate_victory_conditions
from .dynamics import generate_combat_dynamic_elements
from .enemies import LEADER_THRESHOLD, generate_tactical_enemies
from .features import generate_tactical_features
from .hazards import generate_environmental_hazards
from .models import (
    EncounterContext,
    EncounterDifficulty,
    ObjectiveType,
    TacticalCombatEncounter,
    Theme,
)
from .objectives import generate_objectives, plan_priorities
from .scaling import (
    apply_scaling_rules,
    build_scaling_rules,
    calculate_enemy_budget,
    calculate_feature_count,
    calculate_hazard_count,
    get_difficulty_config,
)
from .templates import get_battlefield_template, resolve_difficulty, resolve_theme

logger = logging.getLogger(__name__)


OBJECTIVE_TITLES = {
    ObjectiveType.PROTECT: "Defense",
    ObjectiveType.RETRIEVE: "Recovery",
    ObjectiveType.CONTROL: "Siege",
    ObjectiveType.ESCAPE: "Breakout",
    ObjectiveType.ACTIVATE: "Disruption",
}

ContextInput = Union[EncounterContext, Mapping[str, Any], None]


def _coerce_context(context: ContextInput) -> EncounterContext:
    if context is None:
        return EncounterContext()
    if isinstance(context, EncounterContext):
        return context
    if isinstance(context, Mapping):
        return EncounterContext.from_dict(context)
    raise InvalidContextError("context", "Context must be a mapping or EncounterContext", type(context).__name__)


class TacticalEncounterGenerator:
    """
    Generates complete tactical combat encounters.

    All randomness comes from one random.Random instance, so the same
    inputs and seed always produce the same encounter.
    """

    def __init__(
        self,
        rng: Optional[random.Random] = None,
        seed: Optional[int] = None,
        feet_per_square: int = DEFAULT_FEET_PER_SQUARE
    ):
        """
        Initialize the generator.

        Args:
            rng: Random source to draw from (takes precedence over seed)
            seed: Random seed for reproducibility
            feet_per_square: Grid scale recorded on the battlefield
        """
        if rng is None and seed is None:
            seed = random.randrange(2 ** 32)
        self.seed = seed if rng is None else None
        self.rng = rng if rng is not None else random.Random(seed)
        self.feet_per_square = feet_per_square

    def generate(
        self,
        theme: Union[str, Theme, None],
        difficulty: Union[str, EncounterDifficulty, None],
        context: EncounterContext
    ) -> TacticalCombatEncounter:
        """
        Generate a tactical encounter.

        Args:
            theme: Theme key (unknown values fall back to forest)
            difficulty: Difficulty key (unknown values fall back to medium)
            context: Validated party context

        Returns:
            TacticalCombatEncounter

        Raises:
            EncounterGenerationError: If a stage fails unexpectedly
        """
        theme = resolve_theme(theme)
        difficulty = resolve_difficulty(difficulty)
        rng = self.rng
        logger.info(
            f"Generating tactical encounter - theme: {theme.value}, difficulty: {difficulty.value}, "
            f"party: {context.party_size} x level {context.party_level}"
        )

        stage = "template"
        try:
            template = get_battlefield_template(theme)
            stage = "battlefield"
            battlefield = generate_battlefield(template, difficulty, context, rng, self.feet_per_square)
            stage = "objectives"
            objectives = generate_objectives(theme, difficulty, context, rng)
            stage = "enemies"
            enemies = generate_tactical_enemies(theme, difficulty, context, battlefield, rng)
            stage = "hazards"
            hazards = generate_environmental_hazards(battlefield, difficulty, context, rng)
            stage = "features"
            features = generate_tactical_features(battlefield, difficulty, context, rng)
            stage = "dynamic_elements"
            dynamic_elements = generate_combat_dynamic_elements(theme, difficulty)
            stage = "scaling"
            scaling_rules = build_scaling_rules(difficulty)
            applied_scaling = apply_scaling_rules(scaling_rules, difficulty, context)
            stage = "victory"
            victory_conditions = generate_victory_conditions(objectives, difficulty)
            stage = "defeat"
            defeat_consequences = generate_defeat_consequences(objectives, difficulty)

            stage = "assemble"
            primary = objectives[0]
            action = primary.description[0].lower() + primary.description[1:]
            encounter = TacticalCombatEncounter(
                id=f"tactical-encounter-{rng.getrandbits(32):08x}",
                name=f"{template.encounter_title} {OBJECTIVE_TITLES[primary.type]}",
                description=f"A tactical encounter in the {template.name.lower()} where the party must {action}.",
                theme=theme,
                difficulty=difficulty,
                seed=self.seed,
                battlefield=battlefield,
                objectives=tuple(objectives),
                enemies=tuple(enemies),
                environmental_hazards=tuple(hazards),
                tactical_features=tuple(features),
                dynamic_elements=tuple(dynamic_elements),
                scaling_rules=scaling_rules,
                applied_scaling=applied_scaling,
                victory_conditions=tuple(victory_conditions),
                defeat_consequences=tuple(defeat_consequences),
            )
        except GameError:
            raise
        except Exception as e:
            logger.exception(f"Tactical encounter generation failed at stage '{stage}'")
            raise EncounterGenerationError(stage, f"Encounter generation failed: {e}") from e

        dimensions = battlefield.dimensions
        logger.info(
            f"Generated '{encounter.name}' ({encounter.id}): {dimensions.width}x{dimensions.height}, "
            f"{len(objectives)} objectives, {len(enemies)} enemies, {len(hazards)} hazards, "
            f"{len(features)} features"
        )
        return encounter


def generate_tactical_encounter(
    theme: Union[str, Theme, None] = "forest",
    difficulty: Union[str, EncounterDifficulty, None] = "medium",
    context: ContextInput = None,
    seed: Optional[int] = None,
    rng: Optional[random.Random] = None,
    feet_per_square: int = DEFAULT_FEET_PER_SQUARE
) -> TacticalCombatEncounter:
    """
    Convenience function to generate a tactical encounter.

    Args:
        theme: "forest", "ruins", "underground", "indoor" or "bridge"
        difficulty: "easy", "medium", "hard", "deadly" or "legendary"
        context: EncounterContext or a mapping such as {"partySize": 4}
        seed: Random seed for reproducibility
        rng: Random source to use instead of a seed
        feet_per_square: Grid scale

    Returns:
        TacticalCombatEncounter

    Raises:
        InvalidContextError: If the party size or level is invalid
    """
    encounter_context = _coerce_context(context).validate()
    generator = TacticalEncounterGenerator(rng=rng, seed=seed, feet_per_square=feet_per_square)
    return generator.generate(theme, difficulty, encounter_context)


def preview_encounter_parameters(
    theme: Union[str, Theme, None] = "forest",
    difficulty: Union[str, EncounterDifficulty, None] = "medium",
    context: ContextInput = None
) -> Dict[str, Any]:
    """
    Preview the deterministic sizes of an encounter without generating it.

    Returns:
        Dictionary of dimensions and element counts
    """
    encounter_context = _coerce_context(context).validate()
    theme = resolve_theme(theme)
    difficulty = resolve_difficulty(difficulty)
    template = get_battlefield_template(theme)
    dimensions = calculate_dimensions(template, encounter_context.party_size)
    priorities = plan_priorities(difficulty, encounter_context)
    enemy_budget = calculate_enemy_budget(encounter_context.party_size, difficulty)

    return {
        "theme": theme.value,
        "difficulty": difficulty.value,
        "template": template.key,
        "template_name": template.name,
        "dimensions": {
            "width": dimensions.width,
            "height": dimensions.height,
            "total_area": dimensions.total_area,
            "scale_factor": dimensions.scale_factor,
            "shape": dimensions.shape.value,
        },
        "terrain_count": calculate_terrain_count(template, difficulty),
        "cover_count": calculate_cover_count(template, difficulty),
        "elevation_count": calculate_elevation_count(template, difficulty),
        "special_area_count": calculate_special_area_count(template, difficulty),
        "hazard_count": calculate_hazard_count(dimensions.total_area, difficulty),
        "feature_count": calculate_feature_count(dimensions.total_area, difficulty),
        "objective_count": len(priorities),
        "objective_priorities": [p.value for p in priorities],
        "enemy_budget": enemy_budget,
        "has_leader": enemy_budget >= LEADER_THRESHOLD,
        "time_limit_rounds": get_difficulty_config(difficulty).time_limit_rounds,
    }
