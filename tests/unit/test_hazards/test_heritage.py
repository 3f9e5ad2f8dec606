from hazards.heritage import (
    HeritageAnalyzer, HeritageInventoryItem, HeritageOverlay, determine_significance_level, heritage_listings,
)
from hazards.levels import RiskLevel

PLAN = "open-data-platform:plan_overlay"
INVENTORY = "open-data-platform:heritage_inventory"
LAT, LON = -37.8136, 144.9631


def _overlay(code, affects, distance):
    return HeritageOverlay(code, "Heritage Precinct", None, None, None, affects, distance)


def _item(number):
    return HeritageInventoryItem(number, "Old Mill", "Building")


def test_vhr_listing_dominates():
    """Verify a Victorian Heritage Register listing is VERY_HIGH regardless of overlays."""
    assert determine_significance_level([], [_item("vhr h0123")]) == RiskLevel.VERY_HIGH


def test_inventory_lifts_to_high():
    """Verify inventory items raise anything below HIGH to HIGH."""
    assert determine_significance_level([], [_item("H7822-0001")]) == RiskLevel.HIGH
    assert determine_significance_level([_overlay("HO1", False, 75.0)], [_item("H1")]) == RiskLevel.HIGH
    assert determine_significance_level([_overlay("HO1", True, 0.0)], [_item("H1")]) == RiskLevel.VERY_HIGH


def test_any_overlay_in_radius_is_at_least_low():
    """Verify overlays beyond the distance bands still count as LOW."""
    assert determine_significance_level([_overlay("HO1", False, 450.0)], []) == RiskLevel.LOW
    assert determine_significance_level([_overlay("HO1", False, None)], []) == RiskLevel.LOW
    assert determine_significance_level([_overlay("HO1", False, 75.0)], []) == RiskLevel.MODERATE
    assert determine_significance_level([], []) == RiskLevel.MINIMAL


def test_listings_format():
    """Verify affecting overlays and inventory items are listed."""
    listings = heritage_listings([_overlay("HO12", True, 0.0), _overlay("HO3", False, 40.0)], [_item("H1")])
    assert listings == ["HO12 - Heritage Precinct", "H1 - Old Mill (Building)"]


def test_analyzer_with_heritage_overlay(feature_source, overlay):
    """Verify a containing Heritage Overlay requires a permit."""
    source = feature_source({
        PLAN: [overlay("HO45", "Carlton Precinct"), overlay("NCO1"), overlay("VPO2", offset_deg=0.0032)],
        INVENTORY: [],
    })

    report = HeritageAnalyzer(source=source).analyze(LAT, LON)

    assert report.significance_level == RiskLevel.VERY_HIGH
    assert report.requires_heritage_permit
    assert [o.code for o in report.planning_overlays] == ["HO45", "VPO2"]
    assert report.heritage_listings == ["HO45 - Carlton Precinct"]
    assert "Retain and conserve heritage fabric where possible" in report.recommendations


def test_analyzer_with_vhr_item(feature_source):
    """Verify inventory properties are read under their alternate names."""
    source = feature_source({INVENTORY: [{
        "type": "Feature",
        "geometry": {"type": "Point", "coordinates": [LON, LAT]},
        "properties": {"hermes_number": "VHR H1234", "name": "Royal Exhibition Building", "object_type": "Hall"},
    }]})

    report = HeritageAnalyzer(source=source).analyze(LAT, LON)

    assert report.significance_level == RiskLevel.VERY_HIGH
    assert report.heritage_inventory_items == 1
    assert report.heritage_listings == ["VHR H1234 - Royal Exhibition Building (Hall)"]
    assert report.description.startswith("Very high heritage significance - property contains 1 Victorian")


def test_analyzer_failure_report(feature_source):
    """Verify a failing source yields the heritage-specific fallback."""
    source = feature_source({PLAN: RuntimeError("down")})

    report = HeritageAnalyzer(source=source).analyze(LAT, LON)

    assert report.significance_level == RiskLevel.MINIMAL
    assert report.description == "Unable to complete heritage analysis"
    assert report.recommendations[0] == "Consult with local council regarding heritage requirements"
