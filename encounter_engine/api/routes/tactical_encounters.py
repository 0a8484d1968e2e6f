"""
Tactical Encounter API Routes.

Handles tactical combat encounter generation and the reference data
(themes, difficulty levels, templates) behind it.
"""
from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel, Field
from typing import Dict, Any, List, Optional

from encounter_engine.config import get_settings
from encounter_engine.core.errors import GameError, NotFoundError
from encounter_engine.core.tactical_combat import (
    EncounterContext,
    analyze_encounter,
    find_battlefield_template,
    find_objective_template,
    generate_tactical_encounter,
    list_difficulty_levels as list_difficulty_configs,
    list_themes as list_theme_templates,
    preview_encounter_parameters,
    summarize_encounters,
    to_serializable,
)

router = APIRouter(prefix="/tactical", tags=["tactical_encounters"])


# =============================================================================
# REQUEST/RESPONSE MODELS
# =============================================================================

class GenerateEncounterRequest(BaseModel):
    """Request to generate a tactical encounter."""
    theme: str = Field(default="forest", description="Encounter theme")
    difficulty: str = Field(default="medium", description="Encounter difficulty")
    party_size: int = Field(default=4, ge=1, le=8, description="Number of party members")
    party_level: int = Field(default=1, ge=1, le=20, description="Average party level")
    preferred_complexity: Optional[str] = Field(default=None, description="simple, moderate, complex or extreme")
    time_constraints: bool = Field(default=False, description="Tighten objective deadlines")
    environmental_preferences: List[str] = Field(default_factory=list, description="Preferred hazard themes")
    seed: Optional[int] = Field(default=None, description="Random seed")

    def to_context(self) -> EncounterContext:
        return EncounterContext.from_dict({
            "party_size": self.party_size,
            "party_level": self.party_level,
            "preferred_complexity": self.preferred_complexity,
            "time_constraints": self.time_constraints,
            "environmental_preferences": self.environmental_preferences,
        })


class GenerateSeriesRequest(BaseModel):
    """Request to generate several encounters, e.g. one adventuring day."""
    encounters: List[GenerateEncounterRequest] = Field(
        ..., min_length=1, max_length=get_settings().MAX_SERIES_LENGTH, description="One entry per encounter"
    )


class EncounterResponse(BaseModel):
    """Response containing a generated encounter."""
    success: bool
    encounter: Dict[str, Any]
    analysis: Dict[str, Any]
    message: str = ""


class SeriesResponse(BaseModel):
    """Response containing several encounters and their combined summary."""
    success: bool
    encounters: List[Dict[str, Any]]
    summary: Dict[str, Any]
    message: str = ""


class ThemesResponse(BaseModel):
    """Response listing available themes."""
    success: bool
    themes: List[Dict[str, str]]


class DifficultyLevelsResponse(BaseModel):
    """Response listing available difficulty levels."""
    success: bool
    difficulty_levels: List[Dict[str, Any]]


class TemplateResponse(BaseModel):
    """Response containing one template."""
    success: bool
    kind: str
    template: Dict[str, Any]


# =============================================================================
# ENDPOINTS
# =============================================================================

@router.post("/generate", response_model=EncounterResponse)
async def generate_encounter(request: GenerateEncounterRequest):
    """
    Generate a tactical combat encounter.

    Builds a battlefield scaled to the party with:
    - Terrain, cover, elevation, lighting and a derived tactical map
    - Objectives, an enemy roster with tactical roles
    - Environmental hazards, interactive features and dynamic events
    - Victory/defeat conditions and scaling rules

    Pass a seed to get the same encounter back every time.
    """
    try:
        encounter = generate_tactical_encounter(
            theme=request.theme,
            difficulty=request.difficulty,
            context=request.to_context(),
            seed=request.seed,
            feet_per_square=get_settings().FEET_PER_SQUARE,
        )

        return EncounterResponse(
            success=True,
            encounter=encounter.to_dict(),
            analysis=analyze_encounter(encounter).to_dict(),
            message=(
                f"Generated {encounter.difficulty.value} {encounter.theme.value} encounter "
                f"'{encounter.name}' for {request.party_size} level {request.party_level} characters"
            )
        )

    except GameError:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Encounter generation failed: {str(e)}")


@router.get("/generate", response_model=EncounterResponse)
async def generate_encounter_get(
    theme: str = Query(default="forest"),
    difficulty: str = Query(default="medium"),
    party_size: int = Query(default=4, ge=1, le=8),
    party_level: int = Query(default=1, ge=1, le=20),
    preferred_complexity: Optional[str] = Query(default=None),
    time_constraints: bool = Query(default=False),
    environmental_preferences: List[str] = Query(default=[]),
    seed: Optional[int] = Query(default=None),
):
    """
    Generate a tactical combat encounter (GET version for convenience).
    """
    request = GenerateEncounterRequest(
        theme=theme,
        difficulty=difficulty,
        party_size=party_size,
        party_level=party_level,
        preferred_complexity=preferred_complexity,
        time_constraints=time_constraints,
        environmental_preferences=environmental_preferences,
        seed=seed,
    )
    return await generate_encounter(request)


@router.post("/series", response_model=SeriesResponse)
async def generate_series(request: GenerateSeriesRequest):
    """
    Generate several encounters and summarize them together.

    The summary averages difficulty, tactical complexity and strategic
    depth across the series and scores how varied its themes are.
    """
    feet_per_square = get_settings().FEET_PER_SQUARE
    try:
        encounters = [
            generate_tactical_encounter(
                theme=item.theme,
                difficulty=item.difficulty,
                context=item.to_context(),
                seed=item.seed,
                feet_per_square=feet_per_square,
            )
            for item in request.encounters
        ]
        summary = summarize_encounters(encounters)

    except GameError:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Encounter series generation failed: {str(e)}")

    return SeriesResponse(
        success=True,
        encounters=[encounter.to_dict() for encounter in encounters],
        summary=summary.to_dict(),
        message=f"Generated {summary.total_encounters} encounters across "
                f"{len({e.theme for e in encounters})} themes"
    )


@router.post("/preview", response_model=Dict[str, Any])
async def preview_encounter(request: GenerateEncounterRequest):
    """
    Preview encounter parameters without generating an encounter.

    Returns the battlefield size and every element count the
    generator would use for these inputs.
    """
    preview = preview_encounter_parameters(
        theme=request.theme,
        difficulty=request.difficulty,
        context=request.to_context(),
    )

    return {
        "success": True,
        "preview": preview,
        "message": (
            f"Preview for {preview['difficulty']} {preview['theme']} encounter "
            f"(level {request.party_level}, {request.party_size} players)"
        )
    }


@router.get("/themes", response_model=ThemesResponse)
async def list_themes():
    """
    List all available themes.

    Each theme maps to a battlefield template with its own
    terrain palette, lighting and enemy flavor.
    """
    return ThemesResponse(
        success=True,
        themes=list_theme_templates()
    )


@router.get("/difficulty-levels", response_model=DifficultyLevelsResponse)
async def list_difficulty_levels():
    """
    List all available difficulty levels.

    Difficulty affects enemy headcount and strength, hazard density,
    objective count and deadlines.
    """
    return DifficultyLevelsResponse(
        success=True,
        difficulty_levels=list_difficulty_configs()
    )


@router.get("/templates/{template_key}", response_model=TemplateResponse)
async def get_template(template_key: str):
    """
    Get a battlefield or objective template by key.

    Examples: 'ancient-ruins', 'bridge-crossing', 'ritual-disruption'.
    """
    battlefield_template = find_battlefield_template(template_key)
    if battlefield_template is not None:
        return TemplateResponse(success=True, kind="battlefield", template=to_serializable(battlefield_template))

    objective_template = find_objective_template(template_key)
    if objective_template is not None:
        return TemplateResponse(success=True, kind="objective", template=to_serializable(objective_template))

    raise NotFoundError("Template", template_key)
