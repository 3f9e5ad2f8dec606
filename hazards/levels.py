"""
Risk tiers, proximity classification and the weighted score tables.

Every distance classifier in the package is an ordered list of
(limit, tier) rules: first match wins, comparisons are strict, so a value
exactly on a boundary falls into the less severe tier.
"""

import math
from enum import Enum
from typing import Iterable, NamedTuple, Optional, Sequence, Tuple


class RiskLevel(Enum):
    """Five-step tier used by most categories. Higher value is worse."""
    MINIMAL = 1
    LOW = 2
    MODERATE = 3
    HIGH = 4
    VERY_HIGH = 5


class BushfireRiskLevel(Enum):
    LOW = 1
    MEDIUM = 2
    HIGH = 3
    EXTREME = 4


def round_half_up(value: float) -> int:
    """Round .5 upwards (49.5 -> 50), unlike Python's banker's rounding."""
    return int(math.floor(value + 0.5))


# ═══════════════════════════════════════════════════════════════════════════════
# PROXIMITY CLASSIFICATION
# ═══════════════════════════════════════════════════════════════════════════════

DistanceRules = Sequence[Tuple[float, RiskLevel]]

# nearest < 50 m -> HIGH, < 100 m -> MODERATE, < 200 m -> LOW
THREE_BAND_RULES: DistanceRules = (
    (50.0, RiskLevel.HIGH),
    (100.0, RiskLevel.MODERATE),
    (200.0, RiskLevel.LOW),
)

# Steep land has no LOW band
TWO_BAND_RULES: DistanceRules = (
    (50.0, RiskLevel.HIGH),
    (100.0, RiskLevel.MODERATE),
)

COASTAL_RULES: DistanceRules = (
    (100.0, RiskLevel.HIGH),
    (250.0, RiskLevel.MODERATE),
)

FLOOD_RULES: DistanceRules = (
    (100.0, RiskLevel.MODERATE),
    (500.0, RiskLevel.LOW),
)


def nearest_known_distance(distances: Iterable[Optional[float]]) -> Optional[float]:
    """Smallest finite distance, or None if none is known."""
    known = [d for d in distances if d is not None and math.isfinite(d)]
    return min(known) if known else None


def tier_for_distance(
    distance: Optional[float],
    rules: DistanceRules,
    default: RiskLevel = RiskLevel.MINIMAL,
) -> RiskLevel:
    if distance is None:
        return default
    for limit, level in rules:
        if distance < limit:
            return level
    return default


def classify_proximity(
    records: Sequence,
    rules: DistanceRules,
    flag: str = "affects_property",
    default: RiskLevel = RiskLevel.MINIMAL,
) -> RiskLevel:
    """
    Tier for a list of overlay-style records.

    Any record whose `flag` attribute is true yields VERY_HIGH. Otherwise the
    nearest known `distance_m` among the others is run through `rules`.
    Input order does not matter.
    """
    if any(getattr(r, flag) for r in records):
        return RiskLevel.VERY_HIGH
    nearest = nearest_known_distance(r.distance_m for r in records if not getattr(r, flag))
    return tier_for_distance(nearest, rules, default)


# ═══════════════════════════════════════════════════════════════════════════════
# WEIGHTED SCORES
# ═══════════════════════════════════════════════════════════════════════════════

class CappedCount(NamedTuple):
    """Points per counted item, capped."""
    per_item: float
    cap: float

    def points(self, count: int) -> float:
        return min(count * self.per_item, self.cap)


def band_points(distance: Optional[float], bands: Sequence[Tuple[float, float]], beyond: float = 0.0) -> float:
    """Points for the first band whose limit the distance is within (inclusive)."""
    if distance is None:
        return 0.0
    for limit, points in bands:
        if distance <= limit:
            return points
    return beyond


def tier_for_score(score: float, tiers: Sequence[Tuple[float, Enum]], default: Enum) -> Enum:
    for threshold, level in tiers:
        if score >= threshold:
            return level
    return default


# Bushfire
BUSHFIRE_PRONE_AREA_POINTS = 3.0
BUSHFIRE_ZONE_TYPE_POINTS = {
    1: 2.0,   # Asset Protection Zone
    2: 1.5,   # Bushfire Moderation Zone
    3: 1.0,   # Landscape Management Zone
}
BUSHFIRE_OTHER_ZONE_POINTS = 0.5
BUSHFIRE_FIRES_WITHIN_5KM = CappedCount(per_item=2.0, cap=4.0)
BUSHFIRE_RECENT_FIRES = CappedCount(per_item=2.0, cap=3.0)
BUSHFIRE_FIRES_WITHIN_10KM = CappedCount(per_item=0.5, cap=2.0)
BUSHFIRE_RECENT_YEARS = 10
BUSHFIRE_TIERS = (
    (8.0, BushfireRiskLevel.EXTREME),
    (5.0, BushfireRiskLevel.HIGH),
    (3.0, BushfireRiskLevel.MEDIUM),
)

# Odour (distances in km)
ODOUR_LANDFILL_BANDS = ((2.0, 5.0), (5.0, 3.0), (10.0, 2.0))
ODOUR_LANDFILL_BEYOND = 1.0
ODOUR_WASTEWATER_BANDS = ((2.0, 4.0), (5.0, 2.0), (10.0, 1.0))
ODOUR_LANDFILLS_WITHIN_10KM = CappedCount(per_item=0.5, cap=2.0)
ODOUR_WASTEWATER_WITHIN_10KM = CappedCount(per_item=0.5, cap=2.0)
ODOUR_INDUSTRIAL_POINTS = 1.0
ODOUR_TIERS = (
    (7.0, RiskLevel.VERY_HIGH),
    (5.0, RiskLevel.HIGH),
    (3.0, RiskLevel.MODERATE),
    (1.0, RiskLevel.LOW),
)


class ImpactLevel(Enum):
    """Impact of infrastructure on the property (easements, electricity)."""
    NONE = 0
    LOW = 1
    MODERATE = 2
    HIGH = 3
