from hazards.character import CharacterAnalyzer, CharacterOverlay, generate_recommendations
from hazards.levels import RiskLevel

LAYER = "open-data-platform:plan_overlay"
LAT, LON = -37.8136, 144.9631


def _overlay(kind, affects, distance):
    return CharacterOverlay(f"{kind}1", kind, "Overlay", None, None, affects, distance)


def test_nco_and_slo_recommendations():
    """Verify both overlay types contribute their own recommendations."""
    recommendations = generate_recommendations(
        RiskLevel.VERY_HIGH, [_overlay("NCO", True, 0.0), _overlay("SLO", True, 0.0)])
    assert len(recommendations) == 7
    assert recommendations[-1] == "Review local character guidelines and preferred character statements"


def test_nearby_recommendations():
    """Verify nearby overlays give the context recommendations."""
    recommendations = generate_recommendations(RiskLevel.HIGH, [_overlay("NCO", False, 20.0)])
    assert recommendations == [
        "Consider neighbourhood character in development design even though not directly affected by overlay",
        "Respect existing building scale, setbacks, and landscape character",
    ]


def test_analyzer_affected(feature_source, overlay):
    """Verify a containing NCO gives VERY_HIGH and lists its code."""
    source = feature_source({LAYER: [overlay("NCO1", "Garden suburb"), overlay("SLO2", offset_deg=0.00185)]})

    report = CharacterAnalyzer(source=source).analyze(LAT, LON)

    assert report.significance_level == RiskLevel.VERY_HIGH
    assert report.affected_by_character_overlay
    assert report.character_overlays[0].overlay_code == "NCO1"
    assert report.character_overlays[0].lga == "MELBOURNE"
    assert "within 1 character overlay(s): NCO1" in report.description


def test_analyzer_low(feature_source, overlay):
    """Verify an overlay ~150 m away gives LOW."""
    source = feature_source({LAYER: [overlay("SLO2", offset_deg=0.00185)]})

    report = CharacterAnalyzer(source=source).analyze(LAT, LON)

    assert report.significance_level == RiskLevel.LOW
    assert not report.requires_character_assessment


def test_analyzer_no_overlays(feature_source, overlay):
    """Verify unrelated overlays give the minimal report."""
    report = CharacterAnalyzer(source=feature_source({LAYER: [overlay("HO1")]})).analyze(LAT, LON)
    assert report.significance_level == RiskLevel.MINIMAL
    assert report.character_overlays == []
