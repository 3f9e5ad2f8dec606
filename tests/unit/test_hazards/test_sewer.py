from unittest.mock import MagicMock
from hazards.sewer import ConnectionType, SewerAnalyzer, assess, calculate_confidence, determine_connection_type
from sources.spatial_store import PipelineMatch

LAT, LON = -37.8136, 144.9631


def _pipe(distance_m, status="IN", width=225.0):
    return PipelineMatch("P1", "Main St Sewer", "GRAV", "Gravity Main", "PVC", width, 80.0,
                         status, "1975-01-01", distance_m)


def test_connection_type():
    """Verify direct needs proximity and an active status, septic needs distance."""
    assert determine_connection_type(30.0, "IN") == ConnectionType.DIRECT
    assert determine_connection_type(50.0, " active ") == ConnectionType.DIRECT
    assert determine_connection_type(30.0, "ABANDONED") == ConnectionType.UNKNOWN
    assert determine_connection_type(150.0, "IN") == ConnectionType.UNKNOWN
    assert determine_connection_type(201.0, "IN") == ConnectionType.SEPTIC


def test_confidence_adjustments():
    """Verify each adjustment and the 0-100 clamp."""
    assert calculate_confidence(20.0, "IN", 300.0, 5) == 100
    assert calculate_confidence(75.0, "IN", None, 0) == 50 + 20 + 25
    assert calculate_confidence(150.0, "OUT", 150.0, 3) == 50 + 10 - 15 + 10 + 5
    assert calculate_confidence(75.0, "IN", 150.0, 3) == 100
    assert calculate_confidence(500.0, None, None, 0) == 15
    assert calculate_confidence(180.0, "OUT", 100.0, 1) == 50 + 10 - 15 + 5


def test_assess_uses_nearest():
    """Verify the nearest pipeline drives the report."""
    report = assess([_pipe(20.0), _pipe(60.0), _pipe(90.0)])

    assert report.is_connected
    assert report.connection_type == ConnectionType.DIRECT
    assert report.nearby_pipeline_count == 3
    assert report.distance_to_nearest_pipeline == 20.0
    assert report.confidence == 100


def test_assess_without_pipelines():
    """Verify an empty search is UNKNOWN with zero confidence."""
    report = assess([])
    assert report.connection_type == ConnectionType.UNKNOWN
    assert report.confidence == 0
    assert report.to_dict()["connection_type"] == "UNKNOWN"


def test_analyzer_queries_store():
    """Verify the analyzer searches the store within its radius."""
    store = MagicMock()
    store.find_pipelines_within.return_value = [_pipe(400.0, status="IN")]

    report = SewerAnalyzer(store, source=MagicMock()).analyze(LAT, LON)

    store.find_pipelines_within.assert_called_once_with(LAT, LON, radius_km=5.0)
    assert report.connection_type == ConnectionType.SEPTIC
    assert not report.is_connected


def test_analyzer_store_failure():
    """Verify a store error falls back to the empty report."""
    store = MagicMock()
    store.find_pipelines_within.side_effect = RuntimeError("database is locked")

    report = SewerAnalyzer(store, source=MagicMock()).analyze(LAT, LON)

    assert report.connection_type == ConnectionType.UNKNOWN
    assert report.nearest_pipeline is None
