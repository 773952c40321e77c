import matplotlib.pyplot as plt
import pandas as pd
import pytest

from urban_garden_core import (
    EnvironmentalConditions,
    RecommendationReport,
    SpaceMeasurement,
    score,
)


@pytest.fixture
def report_df(catalog, conditions):
    return RecommendationReport.to_frame(score(conditions, catalog))


def test_to_frame_columns_and_order(report_df):
    assert list(report_df.columns) == RecommendationReport.COLUMNS
    assert list(report_df['name']) == ["Tomato", "Basil", "Lettuce", "Eggplant", "Pepper"]
    assert report_df['scientific_name'].iloc[0] == 'Solanum lycopersicum'


def test_to_frame_of_nothing_keeps_columns():
    df = RecommendationReport.to_frame([])
    assert df.empty
    assert list(df.columns) == RecommendationReport.COLUMNS


def test_plot_scores(report_df):
    fig = RecommendationReport.plot_scores(report_df, "Scores")
    ax = fig.axes[0]
    assert ax.get_title() == "Scores"
    assert len(ax.patches) == len(report_df)
    plt.close(fig)


def test_export_to_excel(tmp_path, report_df):
    fig = RecommendationReport.plot_scores(report_df, "Scores")
    path = tmp_path / "garden_results.xlsx"
    RecommendationReport.export_to_excel(report_df, ["Add grow lights"], fig, "Garden", str(path))
    plt.close(fig)

    assert path.exists()
    assert path.stat().st_size > 0


def test_planner_recommendations_use_defaults(planner, conditions):
    names = [rec.name for rec in planner.get_recommendations(conditions)]
    assert names == ["Tomato", "Basil", "Lettuce", "Eggplant", "Pepper"]


def test_planner_respects_hidden_plants(planner, conditions):
    names = [rec.name for rec in planner.get_recommendations(conditions, frozenset({'plant_basil'}))]
    assert "Basil" not in names


def test_planner_current_conditions(planner):
    reading, conditions = planner.current_conditions(52.52, 13.405, soil_moisture=50)
    assert planner.climate_fetcher.calls == [(52.52, 13.405)]
    assert reading.source == 'simulated'
    assert conditions == EnvironmentalConditions(22.0, 45.0, 50, 8.0)


def test_planner_scan_space_saves_history(planner, conditions):
    space, advice, recommendations = planner.scan_space(
        SpaceMeasurement(area=3, surface_type='balcony', light_access='direct'), conditions)

    assert space.suitability == 'excellent'
    assert "Excellent space for diverse vegetable garden" in advice
    assert len(recommendations) == 5

    scans = planner.catalog.recent_scans()
    assert len(scans) == 1
    assert scans['suitability'].iloc[0] == 'excellent'


def test_planner_scan_without_saving(planner, conditions):
    planner.scan_space(SpaceMeasurement(area=1, surface_type='floor', light_access='direct'),
                       conditions, save=False)
    assert planner.catalog.recent_scans().empty


def test_planner_companions(planner, conditions):
    names = [rec.name for rec in planner.get_companions("Basil", conditions)]
    assert names == ["Eggplant", "Tomato", "Pepper", "Lettuce"]


def test_planner_export_csv(tmp_path, planner, conditions):
    path = tmp_path / "recommendations.csv"
    planner.export_recommendations(planner.get_recommendations(conditions), str(path))

    df = pd.read_csv(path)
    assert list(df.columns) == RecommendationReport.COLUMNS
    assert len(df) == 5
