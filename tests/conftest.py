import matplotlib

matplotlib.use("Agg")

import pytest

from urban_garden_core import (
    DEFAULT_PLANTS,
    ClimateDataFetcher,
    EnvironmentalConditions,
    PlantProfile,
    UrbanGardenPlanner,
)


@pytest.fixture
def conditions():
    return EnvironmentalConditions(temperature=24, humidity=55, soil_moisture=65, light_hours=8)


@pytest.fixture
def catalog():
    return list(DEFAULT_PLANTS)


@pytest.fixture
def tomato():
    return PlantProfile(
        id="plant_tomato",
        name="Tomato",
        care_difficulty="easy",
        temperature_range={"min": 18, "max": 30},
        humidity_range={"min": 40, "max": 70},
        light_requirements="Full sun",
        growth_rate="fast",
    )


@pytest.fixture
def desert_plant():
    return PlantProfile(
        id="plant_desert",
        name="Desert Oddity",
        care_difficulty="hard",
        temperature_range=(60, 70),
        humidity_range=(95, 100),
        light_requirements="Full sun",
        growth_rate="slow",
    )


class StubClimateFetcher(ClimateDataFetcher):
    def __init__(self):
        super().__init__(api_key=None)
        self.calls = []

    def fetch_current(self, lat, lon):
        self.calls.append((lat, lon))
        return self.simulated_reading(lat, lon)


@pytest.fixture
def planner(tmp_path, stub_fetcher):
    planner = UrbanGardenPlanner(db_path=str(tmp_path / "garden.db"), climate_fetcher=stub_fetcher)
    planner.initialize()
    return planner


@pytest.fixture
def stub_fetcher():
    return StubClimateFetcher()
