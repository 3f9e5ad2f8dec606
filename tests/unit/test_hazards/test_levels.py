from dataclasses import dataclass
from typing import Optional
from hazards.levels import (
    BUSHFIRE_TIERS, THREE_BAND_RULES, TWO_BAND_RULES, BushfireRiskLevel, CappedCount, RiskLevel,
    band_points, classify_proximity, nearest_known_distance, round_half_up, tier_for_distance, tier_for_score,
)


@dataclass
class Zone:
    affects_property: bool
    distance_m: Optional[float]


def test_round_half_up():
    """Verify halves round away from zero for positive values."""
    assert round_half_up(49.5) == 50
    assert round_half_up(50.5) == 51
    assert round_half_up(49.49) == 49


def test_tier_boundaries_are_strict():
    """Verify a value exactly on a limit falls into the milder tier."""
    assert tier_for_distance(49.999, THREE_BAND_RULES) == RiskLevel.HIGH
    assert tier_for_distance(50.0, THREE_BAND_RULES) == RiskLevel.MODERATE
    assert tier_for_distance(199.9, THREE_BAND_RULES) == RiskLevel.LOW
    assert tier_for_distance(200.0, THREE_BAND_RULES) == RiskLevel.MINIMAL
    assert tier_for_distance(150.0, TWO_BAND_RULES) == RiskLevel.MINIMAL
    assert tier_for_distance(None, THREE_BAND_RULES) == RiskLevel.MINIMAL


def test_nearest_known_distance_ignores_unknown():
    """Verify None and inf are skipped."""
    assert nearest_known_distance([None, float("inf"), 120.0, 80.0]) == 80.0
    assert nearest_known_distance([None]) is None


def test_affecting_record_wins():
    """Verify any affecting record yields VERY_HIGH regardless of order."""
    zones = [Zone(False, 10.0), Zone(True, 0.0)]
    assert classify_proximity(zones, THREE_BAND_RULES) == RiskLevel.VERY_HIGH
    assert classify_proximity(list(reversed(zones)), THREE_BAND_RULES) == RiskLevel.VERY_HIGH


def test_classify_uses_nearest():
    """Verify the nearest non-affecting record sets the tier."""
    zones = [Zone(False, 150.0), Zone(False, None), Zone(False, 75.0)]
    assert classify_proximity(zones, THREE_BAND_RULES) == RiskLevel.MODERATE
    assert classify_proximity([], THREE_BAND_RULES) == RiskLevel.MINIMAL


def test_score_helpers():
    """Verify capped counts, inclusive bands and score tiers."""
    assert CappedCount(per_item=2.0, cap=3.0).points(5) == 3.0
    assert CappedCount(per_item=0.5, cap=2.0).points(2) == 1.0

    bands = ((2.0, 5.0), (5.0, 3.0))
    assert band_points(2.0, bands) == 5.0
    assert band_points(4.0, bands) == 3.0
    assert band_points(9.0, bands, beyond=1.0) == 1.0
    assert band_points(None, bands, beyond=1.0) == 0.0

    assert tier_for_score(8.0, BUSHFIRE_TIERS, BushfireRiskLevel.LOW) == BushfireRiskLevel.EXTREME
    assert tier_for_score(4.9, BUSHFIRE_TIERS, BushfireRiskLevel.LOW) == BushfireRiskLevel.MEDIUM
    assert tier_for_score(0.0, BUSHFIRE_TIERS, BushfireRiskLevel.LOW) == BushfireRiskLevel.LOW
