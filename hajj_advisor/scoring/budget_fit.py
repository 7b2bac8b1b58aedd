"""How well a resolved per-person price sits against the user's budget."""
from __future__ import annotations

import math

from hajj_advisor.config import DEFAULT_SCORING, ScoringConfig
from hajj_advisor.schemas import Preferences


def budget_target(prefs: Preferences) -> float:
    """Per-person budget; 0 when the budget carries no usable signal."""
    amount = prefs.budget.amount
    if not math.isfinite(amount):
        return 0.0
    return amount / max(1, prefs.budget.headcount)


def score_budget_fit(
    price_per_person: float,
    prefs: Preferences,
    config: ScoringConfig = DEFAULT_SCORING,
) -> float:
    """Budget fit is not "cheapest wins".

    Anything at or under the per-person target scores at least
    ``under_budget_floor``; over the target the score decays linearly and
    hits 0 at twice the target.
    """
    target = budget_target(prefs)
    if target <= 0 or not math.isfinite(price_per_person):
        return 0.0

    ratio = price_per_person / target
    if ratio <= 1:
        return max(config.under_budget_floor, ratio)
    return max(0.0, 1.0 - (ratio - 1.0))
