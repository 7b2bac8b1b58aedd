"""Penalty for premium camps with very limited capacity."""
from __future__ import annotations

from typing import Dict

from hajj_advisor.config import DEFAULT_SCORING, ScoringConfig
from hajj_advisor.schemas import HajjPackage

# Approximate pilgrim capacity per Mina camp
MINA_CAPACITY: Dict[str, int] = {
    "majr": 5000,
    "muaisim": 44000,
}


def scarcity_penalty(pkg: HajjPackage, config: ScoringConfig = DEFAULT_SCORING) -> float:
    if pkg.mina_camp not in MINA_CAPACITY:
        return 0.0
    # Only Majr is scarce enough to penalise today.
    return config.scarcity_penalty if pkg.mina_camp == "majr" else 0.0
