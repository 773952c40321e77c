#!/usr/bin/env python3
"""
Urban Garden Planner - Plant and Space Recommendation System
Main executable script with user input
Usage: urban-garden  (or python urban_garden_main.py)
"""

import logging
from pathlib import Path
from typing import Optional, Sequence, Tuple

import matplotlib.pyplot as plt

from urban_garden_core import (
    Config,
    RecommendationReport,
    SpaceMeasurement,
    UrbanGardenPlanner,
)

# ============================================================================
# USER INPUT FUNCTIONS
# ============================================================================

def prompt_float(prompt: str, default: Optional[float] = None,
                 min_value: Optional[float] = None, max_value: Optional[float] = None) -> float:
    """Ask for a number until a valid one is entered"""
    while True:
        raw = input(prompt).strip()
        if not raw and default is not None:
            return default
        try:
            value = float(raw)
        except ValueError:
            print("   ❌ Please enter a valid number")
            continue
        if min_value is not None and value < min_value:
            print(f"   ❌ Value must be at least {min_value}")
            continue
        if max_value is not None and value > max_value:
            print(f"   ❌ Value must be at most {max_value}")
            continue
        return value


def prompt_choice(prompt: str, options: Sequence[str], default: str) -> str:
    """Ask for one of ``options``; accepts the option text or its number"""
    listing = ", ".join(f"{i}={option}" for i, option in enumerate(options, 1))
    while True:
        raw = input(f"{prompt} [{listing}] (default {default}): ").strip().lower()
        if not raw:
            return default
        if raw in options:
            return raw
        if raw.isdigit() and 1 <= int(raw) <= len(options):
            return options[int(raw) - 1]
        print(f"   ❌ Choose one of: {', '.join(options)}")


def get_user_location() -> Tuple[str, float, float]:
    """Get garden location from user input"""
    print("\n" + "="*60)
    print("🌱 URBAN GARDEN PLANNER - LOCATION SETUP")
    print("="*60)

    garden_name = input("\n📝 Enter your garden name: ").strip()
    if not garden_name:
        garden_name = "My Garden"

    print("\n📍 Enter location coordinates:")
    print("   (You can find these on any map by right-clicking)")
    lat = prompt_float("   Latitude (e.g., 52.5200): ", min_value=-90, max_value=90)
    lon = prompt_float("   Longitude (e.g., 13.4050): ", min_value=-180, max_value=180)

    return garden_name, lat, lon


def get_space_measurement() -> SpaceMeasurement:
    """Get the growing space from user input"""
    print("\n" + "="*60)
    print("📐 GROWING SPACE")
    print("="*60)

    width = prompt_float("\n   Width in meters (default 1.0): ", default=1.0, min_value=0)
    depth = prompt_float("   Depth in meters (default 1.0): ", default=1.0, min_value=0)
    surface = prompt_choice("   Surface type", Config.SURFACE_TYPES, 'balcony')
    light = prompt_choice("   Light access", Config.LIGHT_ACCESS, 'indirect')

    return SpaceMeasurement.from_dimensions(width, depth, surface_type=surface, light_access=light)


def print_recommendations(title: str, recommendations) -> None:
    print(f"\n🎯 {title}:")
    if not recommendations:
        print("   No compatible plants for these conditions.")
        return
    for rec in recommendations:
        print(f"   {rec.compatibility:3d}%  {rec.name:<15} [{rec.priority}]  {rec.reason}")


# ============================================================================
# MAIN EXECUTION
# ============================================================================

def main():
    """Main execution function"""
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    print("\n" + "="*60)
    print("🌱 WELCOME TO URBAN GARDEN PLANNER")
    print("="*60)
    print("This tool will help you:")
    print("  • Score plants against your local climate")
    print("  • Analyze a balcony, table or shelf for growing")
    print("  • Find companion plants")
    print("  • Generate CSV and Excel reports")

    plant_db = "plant_care_data.csv"
    if not Path(plant_db).exists():
        print(f"\n⚠️  Plant catalog '{plant_db}' not found, using built-in plants.")
        plant_db = None

    try:
        garden_name, lat, lon = get_user_location()
        space_measurement = get_space_measurement()
        soil_moisture = prompt_float(
            f"\n💧 Soil moisture % (default {Config.DEFAULT_SOIL_MOISTURE:g}): ",
            default=Config.DEFAULT_SOIL_MOISTURE, min_value=0, max_value=100)
        detected = input("🔎 Plant already growing there (optional): ").strip()

        print("\n" + "="*60)
        print("🚀 INITIALIZING URBAN GARDEN PLANNER")
        print("="*60)

        planner = UrbanGardenPlanner()
        planner.initialize(plant_db)

        print("\n" + "="*60)
        print("🌡️ FETCHING CLIMATE DATA")
        print("="*60)

        reading, conditions = planner.current_conditions(lat, lon, soil_moisture)
        print(f"   {reading.city}, {reading.country}: {reading.temperature:.1f}°C, "
              f"{reading.humidity:.0f}% humidity, {reading.light_hours:.1f}h light ({reading.source})")

        print("\n" + "="*60)
        print("🌱 CALCULATING PLANT RECOMMENDATIONS")
        print("="*60)

        recommendations = planner.get_recommendations(conditions)
        print_recommendations("TOP RECOMMENDATIONS", recommendations)

        space, advice, space_recommendations = planner.scan_space(space_measurement, conditions)
        print(f"\n📐 {space.area:g}m² {space.surface_type}, {space.light_access} light: "
              f"{space.suitability} ({space.suitability_score}/100), "
              f"room for about {space.recommended_plants} plant(s)")
        for line in advice:
            print(f"   • {line}")
        print_recommendations("PLANTS FOR THIS SPACE", space_recommendations)

        if detected:
            companions = planner.get_companions(detected, conditions)
            print_recommendations(f"COMPANIONS FOR {detected.upper()}", companions)

        print("\n" + "="*60)
        print("📊 GENERATING REPORTS")
        print("="*60)

        csv_filename = f"{garden_name.replace(' ', '_')}_recommendations.csv"
        planner.export_recommendations(recommendations, csv_filename)
        print(f"\n✅ Recommendations saved to: {csv_filename}")

        excel_filename = f"{garden_name.replace(' ', '_')}_results.xlsx"
        report_df = RecommendationReport.to_frame(space_recommendations or recommendations)
        fig = RecommendationReport.plot_scores(report_df, f"Plant compatibility - {garden_name}")
        RecommendationReport.export_to_excel(report_df, advice, fig, garden_name, excel_filename)
        plt.close(fig)
        print(f"✅ Full report saved to: {excel_filename}")

        print("\n" + "="*60)
        print("✨ SUMMARY")
        print("="*60)
        print(f"Garden: {garden_name}")
        print(f"Location: ({lat:.4f}, {lon:.4f})")
        print(f"Plants recommended: {len(recommendations)}")
        print(f"Plants for the space: {len(space_recommendations)}")

        print("\n" + "="*60)
        print("🎉 URBAN GARDEN PLANNER COMPLETE!")
        print("="*60)

    except KeyboardInterrupt:
        print("\n\n⚠️  Process interrupted by user")
    except Exception as e:
        print(f"\n\n❌ Error: {e}")
        import traceback
        traceback.print_exc()


if __name__ == "__main__":
    main()
