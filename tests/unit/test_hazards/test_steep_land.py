from hazards.levels import RiskLevel
from hazards.steep_land import (
    LandslideHazardZone, SteepLandAnalyzer, determine_risk_level, generate_recommendations,
    hazard_type_for, is_steep_land_overlay,
)

LAYER = "open-data-platform:plan_overlay"
LAT, LON = -37.8136, 144.9631


def test_overlay_selection():
    """Verify LSO/EMO always count and ESO only with slope-related wording."""
    assert is_steep_land_overlay("LSO1", "")
    assert is_steep_land_overlay("EMO", "")
    assert is_steep_land_overlay("ESO2", "Steep slopes protection")
    assert not is_steep_land_overlay("ESO2", "Habitat corridor")
    assert not is_steep_land_overlay("HO12", "landslip")

    assert hazard_type_for("LSO1", "") == "Landslip"
    assert hazard_type_for("ESO2", "Steep escarpment") == "Steep Slopes"
    assert hazard_type_for("ESO2", "Erosion area") == "Landslip Risk"


def test_two_band_tiers():
    """Verify steep land has no LOW band."""
    near = LandslideHazardZone("Landslip", "LSO1", None, False, 49.0)
    mid = LandslideHazardZone("Landslip", "LSO1", None, False, 50.0)
    far = LandslideHazardZone("Landslip", "LSO1", None, False, 100.0)
    assert determine_risk_level([near]) == RiskLevel.HIGH
    assert determine_risk_level([mid]) == RiskLevel.MODERATE
    assert determine_risk_level([far]) == RiskLevel.MINIMAL


def test_landslip_only_recommendations():
    """Verify landslip recommendations without any erosion strings."""
    zones = [LandslideHazardZone("Landslip", "LSO1", None, True, 0.0)]
    recommendations = generate_recommendations(RiskLevel.VERY_HIGH, zones)

    assert "Landslip Overlay applies - planning permit required for most development" in recommendations
    assert not any("Erosion Management Overlay" in r for r in recommendations)
    assert not any("erosion and sediment control plan" in r for r in recommendations)


def test_landslip_and_erosion_recommendations():
    """Verify both overlays produce exactly ten recommendations."""
    zones = [
        LandslideHazardZone("Landslip", "LSO1", None, True, 0.0),
        LandslideHazardZone("Erosion Management", "EMO1", None, True, 0.0),
    ]
    assert len(generate_recommendations(RiskLevel.VERY_HIGH, zones)) == 10


def test_analyzer_affected(feature_source, overlay):
    """Verify a containing landslip overlay gives VERY_HIGH with geotechnical wording."""
    source = feature_source({LAYER: [overlay("LSO1", "Landslip area"), overlay("HO5", "Heritage")]})

    report = SteepLandAnalyzer(source=source).analyze(LAT, LON)

    assert report.risk_level == RiskLevel.VERY_HIGH
    assert report.affected_by_landslide_risk
    assert report.requires_geotechnical_assessment
    assert len(report.landslide_hazard_zones) == 1
    assert "Significant geotechnical constraints apply." in report.description
    assert report.to_dict()["risk_level"] == "VERY_HIGH"


def test_analyzer_nearby(feature_source, overlay):
    """Verify an overlay ~30 m away gives HIGH."""
    source = feature_source({LAYER: [overlay("EMO1", offset_deg=0.00077)]})

    report = SteepLandAnalyzer(source=source).analyze(LAT, LON)

    assert report.risk_level == RiskLevel.HIGH
    assert not report.affected_by_landslide_risk
    assert report.description.startswith("High landslide risk")


def test_analyzer_empty_and_failure(feature_source):
    """Verify no features and a failing source both give the minimal report."""
    empty = SteepLandAnalyzer(source=feature_source({})).analyze(LAT, LON)
    assert empty.risk_level == RiskLevel.MINIMAL
    assert empty.description == "Minimal landslide risk - no identified landslide or steep land constraints."

    failing = SteepLandAnalyzer(source=feature_source({LAYER: RuntimeError("down")})).analyze(LAT, LON)
    assert failing.to_dict() == empty.to_dict()
