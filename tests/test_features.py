"""Tests for interactive tactical features."""
import random

from conftest import assert_location_in_bounds
from encounter_engine.core.tactical_combat.features import (
    FEATURE_CATALOG,
    feature_type_weights,
    generate_tactical_features,
    select_feature_type,
)
from encounter_engine.core.tactical_combat.models import EncounterDifficulty, FeatureType
from encounter_engine.core.tactical_combat.scaling import calculate_feature_count


class TestFeatureTypes:

    def test_weights_cover_every_type(self):
        for difficulty in EncounterDifficulty:
            weights = feature_type_weights(difficulty)
            assert set(weights) == set(FeatureType)
            assert all(w > 0 for w in weights.values())

    def test_offense_grows_with_difficulty(self):
        easy = feature_type_weights(EncounterDifficulty.EASY)
        legendary = feature_type_weights(EncounterDifficulty.LEGENDARY)
        assert legendary[FeatureType.OFFENSIVE] > easy[FeatureType.OFFENSIVE]
        assert legendary[FeatureType.INFORMATION] < easy[FeatureType.INFORMATION]

    def test_every_type_has_catalog_entries(self):
        for feature_type in FeatureType:
            assert FEATURE_CATALOG[feature_type]

    def test_select_returns_a_type(self, rng):
        assert isinstance(select_feature_type(EncounterDifficulty.HARD, rng), FeatureType)


class TestGenerateFeatures:

    def test_count_and_ids(self, rng, default_context, forest_battlefield):
        features = generate_tactical_features(forest_battlefield, EncounterDifficulty.MEDIUM, default_context, rng)
        expected = calculate_feature_count(forest_battlefield.dimensions.total_area, EncounterDifficulty.MEDIUM)
        assert len(features) == expected
        for i, feature in enumerate(features):
            assert feature.id == f"feature-{feature.type.value}-{i}"
            assert feature.name in {spec.name for spec in FEATURE_CATALOG[feature.type]}

    def test_locations_on_grid(self, rng, large_party_context, ruins_battlefield):
        features = generate_tactical_features(ruins_battlefield, EncounterDifficulty.DEADLY, large_party_context, rng)
        assert len(features) == 10
        for feature in features:
            assert_location_in_bounds(feature.location, ruins_battlefield.dimensions.width,
                                      ruins_battlefield.dimensions.height)

    def test_same_seed_same_features(self, default_context, forest_battlefield):
        first = generate_tactical_features(forest_battlefield, EncounterDifficulty.EASY, default_context,
                                           random.Random(4))
        second = generate_tactical_features(forest_battlefield, EncounterDifficulty.EASY, default_context,
                                            random.Random(4))
        assert first == second
