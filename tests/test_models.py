"""Tests for tactical encounter models and context validation."""
import pytest

from encounter_engine.core.errors import ErrorCode, InvalidContextError
from encounter_engine.core.tactical_combat.models import (
    AreaSize,
    EncounterContext,
    EncounterDifficulty,
    GridArea,
    GridLocation,
    TerrainComplexity,
    Theme,
    to_serializable,
)


class TestGridPrimitives:
    """Tests for grid locations and areas."""

    def test_distance_counts_diagonals_as_one(self):
        assert GridLocation(0, 0).distance_to(GridLocation(3, 5)) == 5

    def test_footprint_area(self):
        area = GridArea.from_footprint(GridLocation(2, 3), AreaSize(3, 2))
        assert area.bottom_right.as_tuple() == (4, 4)
        assert area.width == 3
        assert area.height == 2
        assert area.contains(4, 4)
        assert not area.contains(5, 4)

    def test_around_is_clipped_to_map(self):
        area = GridArea.around(GridLocation(0, 9), 2, 10, 10)
        assert area.top_left.as_tuple() == (0, 7)
        assert area.bottom_right.as_tuple() == (2, 9)

    def test_inverted_area_raises(self):
        with pytest.raises(ValueError):
            GridArea(GridLocation(5, 5), GridLocation(4, 5))

    def test_center(self):
        area = GridArea(GridLocation(0, 0), GridLocation(4, 2))
        assert area.center.as_tuple() == (2, 1)


class TestSerialization:
    """Tests for to_dict / to_serializable."""

    def test_enums_become_values(self):
        assert to_serializable(Theme.RUINS) == "ruins"

    def test_enum_dict_keys_become_strings(self):
        assert to_serializable({Theme.FOREST: (1, 2)}) == {"forest": [1, 2]}

    def test_dataclass_to_dict(self):
        location = GridLocation(1, 2, 10)
        assert location.to_dict() == {"x": 1, "y": 2, "z": 10}

    def test_difficulty_rank(self):
        assert EncounterDifficulty.EASY.rank == 0
        assert EncounterDifficulty.HARD.rank == 2
        assert EncounterDifficulty.LEGENDARY.rank == 4


class TestEncounterContext:
    """Tests for party context parsing and validation."""

    def test_defaults(self):
        context = EncounterContext()
        assert context.party_size == 4
        assert context.party_level == 1
        assert context.preferred_complexity is None
        assert context.time_constraints is False

    def test_from_dict_accepts_camel_case(self):
        context = EncounterContext.from_dict({
            "partySize": 6,
            "partyLevel": 3,
            "preferredComplexity": "COMPLEX",
            "timeConstraints": True,
            "environmentalPreferences": ["fire"],
        })
        assert context.party_size == 6
        assert context.party_level == 3
        assert context.preferred_complexity == TerrainComplexity.COMPLEX
        assert context.time_constraints is True
        assert context.environmental_preferences == ("fire",)

    def test_from_dict_ignores_unknown_keys(self):
        context = EncounterContext.from_dict({"party_size": 5, "favourite_colour": "blue"})
        assert context.party_size == 5

    def test_single_preference_string_is_one_preference(self):
        context = EncounterContext.from_dict({"environmentalPreferences": "fire"})
        assert context.environmental_preferences == ("fire",)

    def test_unknown_complexity_becomes_none(self):
        context = EncounterContext.from_dict({"preferred_complexity": "baroque"})
        assert context.preferred_complexity is None

    def test_validate_returns_self(self):
        context = EncounterContext(party_size=3, party_level=20)
        assert context.validate() is context

    @pytest.mark.parametrize("party_size", [0, -2, True, "4", 2.5])
    def test_invalid_party_size(self, party_size):
        with pytest.raises(InvalidContextError) as exc_info:
            EncounterContext(party_size=party_size).validate()
        assert exc_info.value.details["field"] == "party_size"
        assert exc_info.value.code == ErrorCode.ENCOUNTER_INVALID_CONTEXT

    @pytest.mark.parametrize("party_level", [0, 21, False, "5"])
    def test_invalid_party_level(self, party_level):
        with pytest.raises(InvalidContextError) as exc_info:
            EncounterContext(party_level=party_level).validate()
        assert exc_info.value.details["field"] == "party_level"
