"""
End-to-end report for a central Melbourne point against a fake feature service.

The fake serves a floodway overlay covering the property, a heritage overlay
nearby, a road, and a transmission line; every other layer is empty.
"""

import json
from unittest.mock import MagicMock
from sources.geocoder import Address, GeocodedLocation
from hazards.aggregator import EnvironmentalDataAggregator
from hazards.config import ALL_CATEGORIES
from hazards.levels import BushfireRiskLevel, RiskLevel

LAT, LON = -37.8136, 144.9631


def _layers(overlay, line):
    return {
        "open-data-platform:plan_overlay": [
            overlay("FO", "Yarra River floodway"),
            overlay("HO12", "Collins Street precinct", offset_deg=0.00118),
        ],
        "open-data-platform:tr_road": [line(LAT + 0.0008, road_name="Flinders Street", road_type="Street")],
        "National_Electricity_Infrastructure:Electricity_Transmission_Lines": [
            line(LAT - 0.003, CAPACITYKV="220", TRANSMISSIONLINE_NAME="City feeder"),
        ],
    }


def test_waterway_scenario(feature_source, overlay, line):
    """Verify a property inside a floodway gets the full waterway treatment."""
    geocoder = MagicMock()
    geocoder.geocode.return_value = GeocodedLocation("1 Flinders St, VIC, Australia", LAT, LON, "Melbourne", "house")
    aggregator = EnvironmentalDataAggregator(
        source=feature_source(_layers(overlay, line)), geocoder=geocoder, categories=ALL_CATEGORIES)

    report = aggregator.fetch_all(Address("1 Flinders St"), parallel=True)

    waterway = report["waterway"]
    assert waterway.significance_level == RiskLevel.VERY_HIGH
    assert "Maintain riparian vegetation and waterway buffers" in waterway.recommendations
    assert report["heritage"].significance_level == RiskLevel.MODERATE
    assert report["coastal"].risk_level == RiskLevel.LOW
    assert report["bushfire"].overall_risk == BushfireRiskLevel.LOW
    assert report["electricity"].transmission_line_risk == RiskLevel.LOW
    assert "sewer" not in report
    assert report.data_complete


def test_report_serialises_to_json(feature_source, overlay, line):
    """Verify the composite report is plain JSON with one key per category."""
    aggregator = EnvironmentalDataAggregator(
        source=feature_source(_layers(overlay, line)), geocoder=MagicMock(), categories=ALL_CATEGORIES)

    payload = json.loads(json.dumps(aggregator.fetch_location(LAT, LON).to_dict()))

    assert payload["waterway"]["significance_level"] == "VERY_HIGH"
    assert payload["waterway"]["waterway_features"][0]["feature_type"] == "Floodway"
    assert payload["noise"]["noise_sources"][0]["road_name"] == "Flinders Street"
    assert payload["electricity"]["nearest_transmission_line"]["name"] == "City feeder"
    assert payload["latitude"] == LAT
    assert payload["fetch_errors"] == []
    assert set(ALL_CATEGORIES) - set(payload) == {"sewer"}
