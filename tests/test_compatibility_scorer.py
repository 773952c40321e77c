import math

import pytest

from urban_garden_core import (
    CompatibilityScorer,
    Config,
    EnvironmentalConditions,
    PlantProfile,
    parse_range,
    priority_for,
    score,
    tag_light_requirements,
)


def _conditions(temperature=24, humidity=55, soil_moisture=65, light_hours=8):
    return EnvironmentalConditions(temperature, humidity, soil_moisture, light_hours)


def _compatibility(plant, conditions, weights=Config.STANDARD_WEIGHTS):
    frame = CompatibilityScorer(weights).score_frame(conditions, [plant])
    return int(frame['compatibility'].iloc[0])


def test_tomato_inside_all_ranges_scores_high(tomato, conditions):
    recommendations = score(conditions, [tomato])
    assert len(recommendations) == 1
    rec = recommendations[0]
    assert rec.compatibility >= 90
    assert "Easy to care for" in rec.reason
    assert "Fast growing" in rec.reason
    assert rec.priority == 'high'


def test_full_reason_lists_every_earned_label(tomato, conditions):
    rec = score(conditions, [tomato])[0]
    assert rec.reason == (
        "Perfect temperature range, Ideal humidity level, Excellent light conditions, "
        "Optimal soil moisture, Easy to care for, Fast growing"
    )


def test_missing_range_uses_neutral_fallback(conditions):
    plant = PlantProfile(id="plant_mystery", name="Mystery", humidity_range=(40, 70),
                         care_difficulty="easy", growth_rate="fast")
    rec = score(conditions, [plant])[0]
    assert rec.compatibility == 70
    assert rec.reason == "Generally suitable for typical urban conditions"


@pytest.mark.parametrize("temperature", [-40, 0, 24, 60])
def test_fallback_ignores_conditions(temperature):
    plant = PlantProfile(id="p", name="Fern", temperature_range=None, humidity_range=None)
    assert _compatibility(plant, _conditions(temperature=temperature)) == 70


def test_malformed_range_takes_fallback_path(conditions):
    plant = PlantProfile.from_record({
        'plant_name': 'Fern',
        'temperature_range': {'min': 'cold', 'max': 30},
        'humidity_range': '[40, 70]',
    })
    assert plant.temperature_range is None
    assert plant.humidity_range == (40.0, 70.0)
    rec = score(conditions, [plant])[0]
    assert rec.compatibility == 70


def test_low_scores_are_filtered(desert_plant, tomato, conditions):
    assert _compatibility(desert_plant, conditions) == 53
    names = [rec.name for rec in score(conditions, [desert_plant, tomato])]
    assert names == ["Tomato"]


def test_empty_catalog_returns_empty_list(conditions):
    assert score(conditions, []) == []
    assert CompatibilityScorer().environmental_match(conditions, []) == []


def test_ties_keep_catalog_order(catalog, conditions):
    names = [rec.name for rec in score(conditions, catalog)]
    assert names == ["Tomato", "Basil", "Lettuce", "Eggplant", "Pepper"]


@pytest.mark.parametrize("temperature,humidity,light_hours", [
    (5, 55, 8), (12, 35, 3), (28, 80, 5), (34, 20, 1), (16, 65, 2),
])
def test_results_sorted_and_above_threshold(catalog, temperature, humidity, light_hours):
    recommendations = score(_conditions(temperature, humidity, 65, light_hours), catalog)
    values = [rec.compatibility for rec in recommendations]
    assert values == sorted(values, reverse=True)
    assert all(value >= Config.MIN_COMPATIBILITY for value in values)


def test_scoring_is_deterministic(catalog, conditions):
    first = score(conditions, catalog)
    second = score(conditions, catalog)
    assert [(r.name, r.compatibility, r.reason) for r in first] == \
           [(r.name, r.compatibility, r.reason) for r in second]


@pytest.mark.parametrize("weights", [Config.STANDARD_WEIGHTS, Config.SPACE_AWARE_WEIGHTS])
def test_compatibility_is_bounded(catalog, desert_plant, weights):
    scorer = CompatibilityScorer(weights)
    plants = catalog + [desert_plant]
    for temperature in (-100, -10, 0, 20, 45, 1000):
        for humidity in (-50, 0, 50, 100, 250):
            for light_hours in (-3, 0, 3, 12, 24):
                frame = scorer.score_frame(_conditions(temperature, humidity, 65, light_hours), plants)
                assert frame['compatibility'].between(0, 100).all()


def test_non_finite_readings_do_not_raise(catalog):
    for value in (math.nan, math.inf, -math.inf):
        frame = CompatibilityScorer().score_frame(_conditions(value, value, value, value), catalog)
        assert frame['compatibility'].between(0, 100).all()


def test_moving_toward_range_never_lowers_score(tomato):
    below = [_compatibility(tomato, _conditions(temperature=t)) for t in range(-20, 19)]
    assert below == sorted(below)

    above = [_compatibility(tomato, _conditions(temperature=t)) for t in range(60, 29, -1)]
    assert above == sorted(above)


@pytest.mark.parametrize("light_hours,expected", [(8, 100), (6, 100), (5, 80), (3, 60), (1, 40)])
def test_light_step_curve(tomato, light_hours, expected):
    frame = CompatibilityScorer().score_frame(_conditions(light_hours=light_hours), [tomato])
    assert frame['light_score'].iloc[0] == expected


@pytest.mark.parametrize("soil_moisture,expected", [(65, 100), (80, 100), (85, 80), (40, 80), (95, 60), (30, 60)])
def test_soil_moisture_bands(tomato, soil_moisture, expected):
    frame = CompatibilityScorer().score_frame(_conditions(soil_moisture=soil_moisture), [tomato])
    assert frame['soil_score'].iloc[0] == expected


def test_standard_and_space_aware_weights_differ(tomato):
    cold = _conditions(temperature=5)

    standard = CompatibilityScorer(Config.STANDARD_WEIGHTS).environmental_match(cold, [tomato])
    assert standard == [(98, "Good temperature match, Ideal humidity level, Excellent light conditions, "
                             "Optimal soil moisture, Easy to care for, Fast growing")]

    space_aware = CompatibilityScorer(Config.SPACE_AWARE_WEIGHTS).environmental_match(cold, [tomato])
    assert space_aware == [(84, "Good environmental conditions")]


def test_space_aware_light_depends_on_light_needs():
    shade_plant = PlantProfile(id="p", name="Fern", temperature_range=(18, 30), humidity_range=(40, 70),
                               light_requirements="Partial shade")
    sun_plant = PlantProfile(id="q", name="Sunflower", temperature_range=(18, 30), humidity_range=(40, 70),
                             light_requirements="Full sun")
    frame = CompatibilityScorer(Config.SPACE_AWARE_WEIGHTS).score_frame(
        _conditions(light_hours=4), [shade_plant, sun_plant])
    assert list(frame['light_score']) == [100, 60]


def test_priority_thresholds():
    assert priority_for(100) == 'high'
    assert priority_for(85) == 'high'
    assert priority_for(84) == 'medium'
    assert priority_for(75) == 'medium'
    assert priority_for(74) == 'low'


def test_light_requirements_are_tagged_once():
    plant = PlantProfile(id="p", name="Basil", light_requirements="Full sun to partial shade")
    assert plant.light_tags == frozenset({'full', 'partial', 'shade'})
    assert tag_light_requirements(None) == frozenset()
    assert tag_light_requirements("Bright indirect light") == frozenset({'direct', 'indirect'})


@pytest.mark.parametrize("value,expected", [
    ({'min': 18, 'max': 30}, (18.0, 30.0)),
    ("18-30", (18.0, 30.0)),
    ("-5 to 10", (-5.0, 10.0)),
    ("[30, 18]", (18.0, 30.0)),
    ((10, 20), (10.0, 20.0)),
    ({'min': None, 'max': 30}, None),
    (float('nan'), None),
    ([1, float('inf')], None),
    ("warm", None),
    ("", None),
    (None, None),
])
def test_parse_range(value, expected):
    assert parse_range(value) == expected


@pytest.mark.parametrize("difficulty", ["very-easy", "Very Easy", "very_easy", "easy"])
def test_easy_care_spellings_earn_bonus(difficulty):
    mint = PlantProfile(id="plant_mint", name="Mint", care_difficulty=difficulty,
                        temperature_range=(18, 30), humidity_range=(40, 70))
    rec = score(_conditions(temperature=5), [mint])[0]
    assert rec.compatibility == 95
    assert rec.reason.endswith("Optimal soil moisture, Easy to care for")


def test_medium_difficulty_earns_no_bonus():
    mint = PlantProfile(id="plant_mint", name="Mint", care_difficulty="medium",
                        temperature_range=(18, 30), humidity_range=(40, 70))
    assert score(_conditions(temperature=5), [mint])[0].compatibility == 90
