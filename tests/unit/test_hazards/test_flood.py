from hazards.flood import FloodAnalyzer, FloodSource, determine_risk_level, generate_description
from hazards.levels import RiskLevel

HISTORY = "open-data-platform:vic_flood_history_public"
HUNDRED_YEAR = "open-data-platform:extent_100y_ari"
LAT, LON = -37.8136, 144.9631


def test_risk_level_precedence():
    """Verify historical beats modelled, which beats distance bands."""
    assert determine_risk_level(True, True, 0.0) == RiskLevel.VERY_HIGH
    assert determine_risk_level(False, True, 0.0) == RiskLevel.HIGH
    assert determine_risk_level(False, False, 99.0) == RiskLevel.MODERATE
    assert determine_risk_level(False, False, 100.0) == RiskLevel.LOW
    assert determine_risk_level(False, False, 500.0) == RiskLevel.MINIMAL
    assert determine_risk_level(False, False, None) == RiskLevel.MINIMAL


def test_description_names_closest_source():
    """Verify the closest source is appended to the tier sentence."""
    sources = [FloodSource("Flood A", "Historical", 320.4, False)]
    assert generate_description(RiskLevel.LOW, sources) == (
        "Low flood risk - property is in proximity to flood zones but outside high-risk areas. "
        "Nearest flood zone (Flood A) is 320m away")
    assert generate_description(RiskLevel.MINIMAL, []) == (
        "Minimal flood risk - no identified flood hazards in the immediate vicinity")


def test_historical_extent_contains_property(feature_source, polygon):
    """Verify a containing flood extent gives VERY_HIGH with the historical advice."""
    source = feature_source({HISTORY: [polygon()]})

    report = FloodAnalyzer(source=source, enable_100_year=False).analyze(LAT, LON)

    assert report.risk_level == RiskLevel.VERY_HIGH
    assert report.affected_by_historical_flood
    assert report.minimum_distance_to_flood_zone == 0.0
    assert report.flood_sources[0].source_name == "2022 October Flood Event"
    assert "Consider flood insurance and emergency preparedness planning" in report.recommendations
    assert len(report.recommendations) == 6
    assert report.description.endswith("Property is within 2022 October Flood Event flood extent")


def test_nearby_extent_is_low(feature_source, polygon):
    """Verify an extent ~300 m away gives LOW and counts as nearby."""
    source = feature_source({HISTORY: [polygon(lat=LAT + 0.0032, event_name="Upper Yarra")]})

    report = FloodAnalyzer(source=source, enable_100_year=False).analyze(LAT, LON)

    assert report.risk_level == RiskLevel.LOW
    assert report.nearby_flood_zones_count == 1
    assert "Nearest flood zone (Upper Yarra)" in report.description
    assert "Consider stormwater management and drainage in property design" in report.recommendations


def test_distant_extent_is_ignored(feature_source, polygon):
    """Verify extents beyond 1 km are not reported."""
    source = feature_source({HISTORY: [polygon(lat=LAT + 0.012)]})

    report = FloodAnalyzer(source=source, enable_100_year=False).analyze(LAT, LON)

    assert report.risk_level == RiskLevel.MINIMAL
    assert report.flood_sources == []
    assert report.minimum_distance_to_flood_zone is None


def test_hundred_year_extent(feature_source, polygon):
    """Verify the modelled layer is only queried when enabled."""
    source = feature_source({HUNDRED_YEAR: [polygon()]})

    disabled = FloodAnalyzer(source=source, enable_100_year=False).analyze(LAT, LON)
    assert disabled.risk_level == RiskLevel.MINIMAL

    enabled = FloodAnalyzer(source=source, enable_100_year=True).analyze(LAT, LON)
    assert enabled.risk_level == RiskLevel.HIGH
    assert enabled.within_100_year_flood_extent
    assert enabled.flood_sources[0].source_type == "Modelled"
    assert len(enabled.recommendations) == 4


def test_source_failure_gives_minimal(feature_source):
    """Verify a failing flood layer falls back to the minimal report."""
    source = feature_source({HISTORY: RuntimeError("timeout")})

    report = FloodAnalyzer(source=source, enable_100_year=False).analyze(LAT, LON)

    assert report.risk_level == RiskLevel.MINIMAL
    assert report.recommendations[0] == "Property appears to be outside identified flood risk areas"
