"""Occupancy-aware per-person pricing for Hajj packages.

Prices are SAR per person. ``base_price_sar`` is the quad baseline; the Majr
camp surcharge is added for every occupancy whenever the package's camp is
Majr AlKabsh, and triple/double add the per-city upgrade fees on top.
"""
from __future__ import annotations

import math
from typing import Any, Optional

from hajj_advisor.config import DEFAULT_SCORING, ScoringConfig
from hajj_advisor.schemas import HajjPackage, OccupancyType, PriceBreakdown, UpgradeFees

_FEE_CITIES = ("makkah", "madinah", "aziziya")


def available_fee(value: Any) -> Optional[float]:
    """Return ``value`` as a fee when it is a positive finite number.

    Blank, zero, negative and non-numeric values all mean "not available".
    Shared with the CSV importer so both read upgrade fees the same way.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number) or number <= 0:
        return None
    return number


def camp_upgrade_fee(pkg: HajjPackage, config: ScoringConfig = DEFAULT_SCORING) -> float:
    return config.camp_upgrade_fee_sar if pkg.mina_camp == "majr" else 0.0


def _tier_fees(fees: UpgradeFees | None, occupancy: OccupancyType) -> list[float]:
    if fees is None or occupancy == "quad":
        return []
    found: list[float] = []
    for city in _FEE_CITIES:
        tier = getattr(fees, city)
        if tier is None:
            continue
        fee = available_fee(getattr(tier, occupancy))
        if fee is not None:
            found.append(fee)
    return found


def occupancy_available(pkg: HajjPackage, occupancy: OccupancyType) -> bool:
    if occupancy == "quad":
        # base price baseline always exists
        return True
    return bool(_tier_fees(pkg.upgrade_fees, occupancy))


def occupancy_upgrade(pkg: HajjPackage, occupancy: OccupancyType) -> float:
    """Sum of the available per-city upgrade fees for ``occupancy`` (0 for quad)."""
    return sum(_tier_fees(pkg.upgrade_fees, occupancy))


def price_for_occupancy(
    pkg: HajjPackage,
    occupancy: OccupancyType,
    config: ScoringConfig = DEFAULT_SCORING,
) -> Optional[float]:
    """All-in per-person price, or ``None`` when the package is unpriced for ``occupancy``."""
    base = pkg.base_price_sar
    if not math.isfinite(base) or base <= 0:
        return None

    camp = camp_upgrade_fee(pkg, config)
    if occupancy == "quad":
        return base + camp

    upgrade = occupancy_upgrade(pkg, occupancy)
    if upgrade <= 0:
        return None
    return base + camp + upgrade


def price_breakdown(
    pkg: HajjPackage,
    occupancy: OccupancyType,
    group_size: int = 1,
    config: ScoringConfig = DEFAULT_SCORING,
) -> Optional[PriceBreakdown]:
    """Itemised per-person price and group estimate, flight included when known."""
    per_person = price_for_occupancy(pkg, occupancy, config)
    if per_person is None:
        return None

    group = max(1, int(group_size))
    flight_pp = available_fee(pkg.flight.price_sar) if pkg.flight else None
    group_total = (per_person + (flight_pp or 0.0)) * group

    return PriceBreakdown(
        occupancy=occupancy,
        base=pkg.base_price_sar,
        camp_upgrade=camp_upgrade_fee(pkg, config),
        occupancy_upgrade=occupancy_upgrade(pkg, occupancy),
        per_person=per_person,
        flight_per_person=flight_pp,
        group_size=group,
        group_total=round(group_total, 2),
        includes_flight=flight_pp is not None,
    )
