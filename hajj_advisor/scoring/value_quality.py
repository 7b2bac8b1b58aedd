"""Preference-independent value score for a package."""
from __future__ import annotations

from hajj_advisor.schemas import HajjPackage

_CAMP_POINTS = {"majr": 1.0, "muaisim": 0.6}
_ZONE_POINTS = {"A": 1.0, "B": 0.7, "C": 0.4, "M": 0.2}

SHIFTING_POINTS = 0.5
MULTI_HOTEL_POINTS = 0.2
FLIGHT_POINTS = 0.15
_SCALE = 3.0


def score_value_quality(pkg: HajjPackage) -> float:
    score = _CAMP_POINTS.get(pkg.mina_camp, 0.0)
    score += _ZONE_POINTS.get(pkg.makkah_zone, 0.0)

    if pkg.is_shifting:
        score += SHIFTING_POINTS
    if len(pkg.hotels) >= 2:
        score += MULTI_HOTEL_POINTS
    if pkg.flight and pkg.flight.price_sar and pkg.flight.price_sar > 0:
        score += FLIGHT_POINTS

    return min(score / _SCALE, 1.0)
