from hazards.biodiversity import (
    BiodiversityAnalyzer, FaunaRecord, FloraRecord, SensitivityLevel, determine_sensitivity_level,
    generate_summary,
)

FAUNA = "open-data-platform:vba_fauna25"
FLORA = "open-data-platform:vba_flora25"
LAT, LON = -37.8136, 144.9631


def _flora(name="River Red Gum", origin="Native", category=None):
    return FloraRecord("1", None, name, None, origin, category)


def _fauna(name="Koala"):
    return FaunaRecord("1", None, None, name, "Mammals")


def test_sensitivity_levels():
    """Verify threatened flora or record volume raise sensitivity."""
    assert determine_sensitivity_level([], []) == SensitivityLevel.NONE
    assert determine_sensitivity_level([], [_fauna()]) == SensitivityLevel.LOW
    assert determine_sensitivity_level([_flora()], []) == SensitivityLevel.MEDIUM
    assert determine_sensitivity_level([], [_fauna()] * 6) == SensitivityLevel.MEDIUM
    assert determine_sensitivity_level([_flora(origin="Introduced", category="Vulnerable")], []) \
        == SensitivityLevel.HIGH
    assert determine_sensitivity_level([], [_fauna()] * 21) == SensitivityLevel.HIGH


def test_summary_counts_distinct_species():
    """Verify species are counted by distinct common name."""
    flora = [_flora("Wattle"), _flora("Wattle"), _flora("Gum")]
    summary = generate_summary(flora, [_fauna()], SensitivityLevel.MEDIUM)
    assert summary == "Moderate biodiversity with 2 plant species and 1 animal species recorded in the vicinity."


def test_analyzer_with_threatened_flora(feature_source, point):
    """Verify threatened records produce the permit alert and a HIGH rating."""
    source = feature_source({
        FLORA: [point(LAT, LON, comm_name="Button Wrinklewort", origin="Native", vic_lf="Endangered")],
        FAUNA: [point(LAT, LON, comm_name="Growling Grass Frog", taxon_type="Amphibians")],
    })

    report = BiodiversityAnalyzer(source=source).analyze(LAT, LON)

    assert report.is_in_biodiversity_overlay
    assert report.sensitivity_level == SensitivityLevel.HIGH
    assert report.distance_to_nearest_habitat == 0.0
    assert report.alerts[0].startswith("Threatened plant species recorded nearby.")
    assert report.alerts[-1].startswith("Check if property is affected by Environmental Significance Overlay")
    assert report.to_dict()["sensitivity_level"] == "HIGH"


def test_analyzer_without_records(feature_source):
    """Verify an empty atlas gives the no-records report."""
    report = BiodiversityAnalyzer(source=feature_source({})).analyze(LAT, LON)

    assert not report.is_in_biodiversity_overlay
    assert report.sensitivity_level == SensitivityLevel.NONE
    assert report.distance_to_nearest_habitat is None
    assert report.summary == "No significant biodiversity records found in the immediate area."
    assert report.alerts == []
