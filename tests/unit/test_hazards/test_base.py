import pytest
import sqlite3
from dataclasses import dataclass
from enum import Enum
from typing import Optional
from unittest.mock import MagicMock
from geo.features import parse_feature
from sources.geocoder import Address, GeocodedLocation
from hazards.base import HazardAnalyzer, Report, locate, scheme_code, sort_by_proximity, zone_description

LAT, LON = -37.8136, 144.9631


class Colour(Enum):
    RED = 1


@dataclass
class Record(Report):
    name: str
    affects_property: bool
    distance_m: Optional[float]
    colour: Colour = Colour.RED


class EchoAnalyzer(HazardAnalyzer):
    KEY = "echo"

    def minimal_report(self):
        return "minimal"

    def _analyze(self, lat, lon):
        if lat > 0:
            raise RuntimeError("northern hemisphere")
        return (lat, lon)


def test_report_serialises_enums_by_name():
    """Verify to_dict converts enums to their names."""
    assert Record("a", False, 10.0).to_dict() == {
        "name": "a", "affects_property": False, "distance_m": 10.0, "colour": "RED"}


def test_locate_inside_and_outside(polygon):
    """Verify containment gives distance 0 and outside gives the edge distance."""
    inside = parse_feature(polygon())
    outside = parse_feature(polygon(lat=LAT + 0.002))

    assert locate(LAT, LON, inside) == (True, 0.0)
    affected, distance = locate(LAT, LON, outside)
    assert not affected
    assert distance == pytest.approx(166.5, rel=0.02)


def test_overlay_property_helpers(polygon):
    """Verify missing overlay codes read as empty strings."""
    feature = parse_feature(polygon(scheme_code="HO", zone_description=None))
    assert scheme_code(feature) == "HO"
    assert zone_description(feature) == ""


def test_sort_by_proximity():
    """Verify affecting records first, then distance, unknown distances last."""
    records = [Record("far", False, 90.0), Record("unknown", False, None),
               Record("inside", True, 0.0), Record("near", False, 10.0)]
    assert [r.name for r in sort_by_proximity(records)] == ["inside", "near", "far", "unknown"]


def test_analyze_falls_back_to_minimal():
    """Verify exceptions inside a category become the minimal report."""
    analyzer = EchoAnalyzer(source=MagicMock(), geocoder=MagicMock())
    assert analyzer.analyze(-37.0, 145.0) == (-37.0, 145.0)
    assert analyzer.analyze(37.0, 145.0) == "minimal"


def test_analyze_address_without_geocode():
    """Verify an unresolvable address yields the minimal report."""
    geocoder = MagicMock()
    geocoder.geocode.return_value = None
    analyzer = EchoAnalyzer(source=MagicMock(), geocoder=geocoder)

    assert analyzer.analyze_address(Address("Nowhere")) == "minimal"

    geocoder.geocode.return_value = GeocodedLocation("q", LAT, LON, "Melbourne", "city")
    assert analyzer.analyze_address(Address("Melbourne")) == (LAT, LON)


def test_run_concurrently_settle():
    """Verify settle=True turns failures into None while settle=False re-raises."""
    analyzer = EchoAnalyzer(source=MagicMock(), geocoder=MagicMock())

    def fail():
        raise ValueError("boom")

    results = analyzer.run_concurrently({"ok": lambda: 1, "bad": fail}, settle=True)
    assert results == {"ok": 1, "bad": None}

    with pytest.raises(ValueError):
        analyzer.run_concurrently({"ok": lambda: 1, "bad": fail})


def test_analyze_address_geocoder_error():
    """Verify a geocoder failure (e.g. an unwritable cache) yields the minimal report."""
    geocoder = MagicMock()
    geocoder.geocode.side_effect = sqlite3.OperationalError("unable to open database file")
    analyzer = EchoAnalyzer(source=MagicMock(), geocoder=geocoder)

    assert analyzer.analyze_address(Address("1 Spring St")) == "minimal"
