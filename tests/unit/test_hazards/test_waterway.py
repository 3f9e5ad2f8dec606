import pytest
from hazards.levels import RiskLevel
from hazards.waterway import (
    WaterwayAnalyzer, WaterwayFeature, determine_significance_level, feature_type_for,
    generate_description, generate_recommendations, is_waterway_overlay,
)

LAYER = "open-data-platform:plan_overlay"
LAT, LON = -37.8136, 144.9631


def test_overlay_selection():
    """Verify floodway, acquisition and water-related ESO overlays are selected."""
    assert is_waterway_overlay("FO", "")
    assert is_waterway_overlay("PAO3", "")
    assert is_waterway_overlay("ESO1", "Waterway corridor")
    assert not is_waterway_overlay("ESO1", "Vegetation")
    assert feature_type_for("ESO1", "Wetland habitat") == "Wetland"
    assert feature_type_for("PAO3", "") == "Waterway Reservation"


@pytest.mark.parametrize("distance, expected", [
    (49.999, RiskLevel.HIGH),
    (50.0, RiskLevel.MODERATE),
    (150.0, RiskLevel.LOW),
    (250.0, RiskLevel.MINIMAL),
])
def test_distance_bands(distance, expected):
    """Verify the 50/100/200 m bands with strict boundaries."""
    features = [WaterwayFeature("Floodway", None, distance, False)]
    assert determine_significance_level(features) == expected


def test_moderate_description_names_distance():
    """Verify the description rounds the nearest distance."""
    features = [WaterwayFeature("Floodway", None, 75.4, False)]
    description = generate_description(RiskLevel.MODERATE, features)
    assert description == ("Moderate waterway significance - property is 75m from Floodway. "
                           "Consider waterway impacts.")


def test_in_buffer_recommendations():
    """Verify floodway recommendations plus the general waterway set."""
    features = [WaterwayFeature("Floodway", "Yarra", 0.0, True)]
    recommendations = generate_recommendations(RiskLevel.VERY_HIGH, features)
    assert recommendations[0].startswith("Floodway Overlay applies")
    assert "Maintain riparian vegetation and waterway buffers" in recommendations
    assert len(recommendations) == 6


def test_analyzer_in_buffer(feature_source, overlay):
    """Verify a containing floodway overlay gives VERY_HIGH."""
    source = feature_source({LAYER: [overlay("FO", "Yarra River floodway"), overlay("NCO1")]})

    report = WaterwayAnalyzer(source=source).analyze(LAT, LON)

    assert report.significance_level == RiskLevel.VERY_HIGH
    assert report.in_waterway_buffer
    assert report.requires_waterway_assessment
    assert report.nearest_waterway_distance == 0.0
    assert [f.feature_type for f in report.waterway_features] == ["Floodway"]


def test_analyzer_nearby(feature_source, overlay):
    """Verify a floodway ~75 m away gives MODERATE."""
    source = feature_source({LAYER: [overlay("FO", offset_deg=0.00118)]})

    report = WaterwayAnalyzer(source=source).analyze(LAT, LON)

    assert report.significance_level == RiskLevel.MODERATE
    assert report.nearest_waterway_distance == pytest.approx(75, abs=2)
    assert "Property near waterway - implement setbacks and buffer zones" in report.recommendations
