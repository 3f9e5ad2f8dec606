import pytest
from unittest.mock import MagicMock
from hazards.levels import RiskLevel
from hazards.noise import (
    NoiseAnalyzer, NoiseSource, classify_road, determine_noise_level, energy_sum_db, estimate_noise_level,
    traffic_contribution_db,
)

ROADS = "open-data-platform:tr_road"
LAT, LON = -37.8136, 144.9631


@pytest.mark.parametrize("name, kind, code, expected", [
    ("Monash Freeway", None, None, "FREEWAY"),
    ("Princes Hwy", None, None, "HIGHWAY"),
    ("Some Link", "Arterial", None, "ARTERIAL"),
    ("Unnamed", None, "2", "ARTERIAL"),
    ("Sydney Road", None, None, "MAIN_ROAD"),
    ("Beach Drive", None, None, "COLLECTOR"),
    ("Fire Track 7", None, None, "TRACK"),
    ("Smith", "Street", None, "LOCAL"),
    (None, None, None, "UNKNOWN"),
])
def test_classify_road(name, kind, code, expected):
    """Verify road classification precedence."""
    assert classify_road(name, kind, code) == expected


def test_estimate_noise_level():
    """Verify 6 dB per doubling from the 10 m reference, floored at background."""
    assert estimate_noise_level("FREEWAY", 10.0) == 78
    assert estimate_noise_level("FREEWAY", 5.0) == 78
    assert estimate_noise_level("FREEWAY", 20.0) == pytest.approx(72)
    assert estimate_noise_level("LOCAL", 1000.0) == 35.0


def test_energy_sum():
    """Verify levels combine logarithmically."""
    assert energy_sum_db([]) == 35.0
    assert energy_sum_db([60.0, 60.0]) == pytest.approx(63.01, abs=0.01)
    assert energy_sum_db([70.0]) == pytest.approx(70.0)


def test_traffic_contribution():
    """Verify the traffic term is zero below 1,000 vehicles and capped at 15 dB."""
    assert traffic_contribution_db(None) == 0.0
    assert traffic_contribution_db(500) == 0.0
    assert traffic_contribution_db(10000) == pytest.approx(10.0)
    assert traffic_contribution_db(1e9) == 15.0


def test_noise_level_rules():
    """Verify tiering by road class and distance."""
    def src(classification, distance):
        return NoiseSource("Road", "Road", classification, distance, 60.0)

    assert determine_noise_level([]) == RiskLevel.MINIMAL
    assert determine_noise_level([src("FREEWAY", 40)]) == RiskLevel.VERY_HIGH
    assert determine_noise_level([src("HIGHWAY", 150)]) == RiskLevel.HIGH
    assert determine_noise_level([src("ARTERIAL", 250)]) == RiskLevel.MODERATE
    assert determine_noise_level([src("MAIN_ROAD", 150)]) == RiskLevel.LOW
    assert determine_noise_level([src("COLLECTOR", 400)]) == RiskLevel.LOW
    assert determine_noise_level([src("LOCAL", 5)]) == RiskLevel.MINIMAL


def test_analyzer_near_freeway(feature_source, line):
    """Verify a freeway ~33 m away gives VERY_HIGH and leads the sources."""
    source = feature_source({ROADS: [
        line(LAT + 0.002, road_name="Smith", road_type="Street"),
        line(LAT + 0.0003, road_name="Monash Freeway", road_type="Freeway"),
    ]})

    report = NoiseAnalyzer(source=source).analyze(LAT, LON)

    assert report.noise_level == RiskLevel.VERY_HIGH
    assert report.noise_sources[0].road_name == "Monash Freeway"
    assert report.noise_sources[0].distance_m == pytest.approx(33.3, abs=1)
    assert report.traffic_volume_contribution == 0
    assert report.description.startswith(
        "Very high noise levels expected due to proximity to major highway or freeway. "
        "Primary source: Monash Freeway (33m away")


def test_analyzer_uses_store_traffic(feature_source, line):
    """Verify average SCATS volume from the store adds its contribution."""
    store = MagicMock()
    store.top_traffic_sites.return_value = [MagicMock(average_daily_volume=5000),
                                            MagicMock(average_daily_volume=15000)]
    source = feature_source({ROADS: [line(LAT + 0.0003, road_name="Sydney Road")]})

    report = NoiseAnalyzer(source=source, store=store).analyze(LAT, LON)

    assert report.traffic_volume_contribution == 10
    assert report.noise_level == RiskLevel.MODERATE


def test_analyzer_quiet_area(feature_source):
    """Verify no roads gives the background level."""
    report = NoiseAnalyzer(source=feature_source({})).analyze(LAT, LON)

    assert report.noise_level == RiskLevel.MINIMAL
    assert report.estimated_average_noise_level == 35
    assert report.description == "Minimal road noise pollution - quiet residential area"
