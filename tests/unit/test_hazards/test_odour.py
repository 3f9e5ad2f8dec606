import pytest
from hazards.levels import RiskLevel
from hazards.odour import (
    Landfill, OdourAnalyzer, OdourSources, WastewaterPlant, calculate_odour_score, determine_odour_level,
    generate_summary, is_odour_related,
)

LANDFILLS = "open-data-platform:vlr_point"
WASTEWATER = "Wastewater_Treatment_Facilities:National_Wastewater_Treatment_Facilities"
EPA = "open-data-platform:epa_licence_point"
LAT, LON = -37.8136, 144.9631


def _landfill(distance_km, name="Clayton South"):
    return Landfill(name, "Operating", None, None, None, distance_km)


def _plant(distance_km):
    return WastewaterPlant("Western Treatment Plant", None, None, None, None, "VIC", distance_km)


def test_odour_keywords():
    """Verify activity or premises text is matched case-insensitively."""
    assert is_odour_related("Food Processing", None)
    assert is_odour_related(None, "Smith Poultry Farm")
    assert not is_odour_related("Printing", "Office")


@pytest.mark.parametrize("landfill_km, plant_km, expected", [
    (1.5, None, 5.5),
    (4.0, None, 3.5),
    (8.0, None, 2.5),
    (12.0, None, 1.0),
    (None, 1.5, 4.5),
    (None, 7.0, 1.5),
    (None, 15.0, 0.0),
])
def test_distance_bands(landfill_km, plant_km, expected):
    """Verify closest-source bands plus the within-10km counts."""
    sources = OdourSources(
        closest_landfill=_landfill(landfill_km) if landfill_km is not None else None,
        closest_wastewater_plant=_plant(plant_km) if plant_km is not None else None,
        landfills_within_10km=1 if landfill_km is not None and landfill_km <= 10 else 0,
        wastewater_plants_within_10km=1 if plant_km is not None and plant_km <= 10 else 0,
    )
    assert calculate_odour_score(sources) == pytest.approx(expected)


def test_counts_are_capped():
    """Verify count contributions cap at two points each."""
    sources = OdourSources(landfills_within_10km=9, wastewater_plants_within_10km=9,
                           industrial_facilities_within_5km=2)
    assert calculate_odour_score(sources) == 6.0


def test_tiers():
    """Verify score thresholds."""
    assert determine_odour_level(7.0) == RiskLevel.VERY_HIGH
    assert determine_odour_level(5.0) == RiskLevel.HIGH
    assert determine_odour_level(3.0) == RiskLevel.MODERATE
    assert determine_odour_level(1.0) == RiskLevel.LOW
    assert determine_odour_level(0.5) == RiskLevel.MINIMAL


def test_summary_without_sources():
    """Verify the summary when nothing is nearby."""
    assert generate_summary(RiskLevel.MINIMAL, OdourSources()) == (
        "This location has minimal odour levels. No significant odour sources were identified nearby.")


def test_summary_with_close_landfill():
    """Verify close landfill wording."""
    sources = OdourSources(closest_landfill=_landfill(1.26), landfills_within_10km=2)
    summary = generate_summary(RiskLevel.HIGH, sources)
    assert "The nearest landfill (Clayton South) is 1.3km away." in summary
    assert "odour from the landfill may be noticeable" in summary
    assert "There are 2 landfills within 10km of the property." in summary


def test_analyzer_combines_sources(feature_source, point):
    """Verify all three sources feed the score and lists are sorted by distance."""
    source = feature_source({
        LANDFILLS: [
            point(LAT + 0.05, LON, site_name="Far Tip"),
            point(0, 0, site_name="Near Tip", latitude=str(LAT + 0.0135), longitude=str(LON)),
        ],
        WASTEWATER: [point(LAT - 0.009, LON, facility_name="Local WWTP")],
        EPA: [
            point(LAT + 0.01, LON, permission_activity="Meat processing", place_or_premises="Abattoir Pty"),
            point(LAT + 0.01, LON, permission_activity="Printing", place_or_premises="Print Co"),
        ],
    })

    report = OdourAnalyzer(source=source).analyze(LAT, LON)

    assert [l.landfill_name for l in report.landfills] == ["Near Tip", "Far Tip"]
    assert report.landfills[0].distance_km == pytest.approx(1.5, abs=0.05)
    assert report.odour_sources.industrial_facilities_within_5km == 1
    assert report.odour_sources.closest_industrial_facility.permission_activity == "Meat processing"
    # 5 landfill + 1 count + 4 plant + 0.5 count + 1 industrial
    assert report.overall_level == RiskLevel.VERY_HIGH
    assert "Review the landfill's operating hours and EPA license conditions" in report.considerations


def test_failed_source_is_dropped(feature_source, point):
    """Verify one failing layer only removes that source."""
    source = feature_source({
        LANDFILLS: [point(LAT + 0.0135, LON, site_name="Tip")],
        WASTEWATER: RuntimeError("GA down"),
        EPA: RuntimeError("EPA down"),
    })

    report = OdourAnalyzer(source=source).analyze(LAT, LON)

    assert report.wastewater_plants == []
    assert report.odour_sources.closest_wastewater_plant is None
    assert report.overall_level == RiskLevel.HIGH
