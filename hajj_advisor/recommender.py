# hajj_advisor/recommender.py
from __future__ import annotations

import math
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from pydantic import ValidationError

from hajj_advisor.config import DEFAULT_SCORING, ScoringConfig, get_logger
from hajj_advisor.errors import InvalidInputError
from hajj_advisor.schemas import (
    HajjPackage,
    OccupancyType,
    Preferences,
    Recommendation,
    RecommendRequest,
    RecommendResponse,
    ScoreBreakdown,
)
from hajj_advisor.scoring.budget_fit import score_budget_fit
from hajj_advisor.scoring.preference_match import match_ratio, score_preferences
from hajj_advisor.scoring.pricing import occupancy_available, price_breakdown
from hajj_advisor.scoring.scarcity import scarcity_penalty
from hajj_advisor.scoring.value_quality import score_value_quality

logger = get_logger(__name__)

STRONG_MATCH_REASON = "Strong match to your preferences"
MAJR_CAPACITY_REASON = "Majr AlKabsh (high quality, very limited capacity)"
MUAISIM_REASON = "Al Muaisim (high capacity)"
SHIFTING_REASON = "Shifting structure (often better value)"
CLOSE_BUDGET_REASON = "Close to your target budget"


def majr_fee_reason(config: ScoringConfig = DEFAULT_SCORING) -> str:
    return f"Majr AlKabsh (includes +{config.camp_upgrade_fee_sar:.2f} SAR pp camp upgrade)"


def recommend_packages(
    packages: Sequence[HajjPackage] | None,
    prefs: Preferences | None,
    *,
    providers: Iterable[str] | None = None,
    config: ScoringConfig | None = None,
) -> List[Recommendation]:
    """Rank ``packages`` against ``prefs`` and return the top shortlist.

    Packages that cannot be priced for the requested occupancy are left out.
    Ties keep catalog order. Nothing in the inputs is modified, so the same
    inputs always produce the same list.
    """
    ranked, _ = _rank(packages, prefs, providers=providers, config=config)
    return ranked


def recommend_from_payload(
    payload: Dict[str, Any] | RecommendRequest,
    *,
    config: ScoringConfig | None = None,
) -> RecommendResponse:
    """Validate a raw request payload and run the recommender on it."""
    if isinstance(payload, RecommendRequest):
        req = payload
    elif isinstance(payload, dict):
        try:
            req = RecommendRequest.model_validate(payload)
        except ValidationError as exc:
            raise InvalidInputError(f"Invalid recommendation request: {exc.error_count()} error(s)") from exc
    else:
        raise InvalidInputError("Unsupported payload type for recommendation")

    options, excluded = _rank(req.packages, req.preferences, providers=req.providers, config=config)
    return RecommendResponse(
        preferences=req.preferences,
        options=options,
        considered=len(req.packages),
        excluded=excluded,
    )


# ---------- helpers ----------
def _rank(
    packages: Sequence[HajjPackage] | None,
    prefs: Preferences | None,
    *,
    providers: Iterable[str] | None,
    config: ScoringConfig | None,
) -> Tuple[List[Recommendation], int]:
    if packages is None:
        raise InvalidInputError("packages must be a list of HajjPackage, not None")
    if prefs is None:
        raise InvalidInputError("prefs must be a Preferences instance, not None")
    cfg = config or DEFAULT_SCORING

    candidates = list(packages)
    provider_filter = sorted({p for p in (providers or []) if p})
    if provider_filter:
        # An explicit provider selection replaces the single provider preference.
        candidates = [pkg for pkg in candidates if pkg.provider in provider_filter]
        prefs = prefs.model_copy(update={"provider": None})

    occupancy: OccupancyType = prefs.occupancy or "quad"
    logger.info(
        "Scoring %d package(s) for %s occupancy, budget %.2f %s for %d",
        len(candidates),
        occupancy,
        prefs.budget.amount,
        prefs.budget.currency,
        prefs.budget.headcount,
    )

    results: List[Recommendation] = []
    excluded = 0
    for pkg in candidates:
        rec = _score_package(pkg, prefs, occupancy, cfg)
        if rec is None:
            excluded += 1
            continue
        results.append(rec)

    # sorted() is stable, so equal totals keep catalog order
    ranked = sorted(results, key=lambda r: r.total_score, reverse=True)[: cfg.top_n]
    logger.info(
        "Ranked %d of %d package(s) (%d excluded); returning top %d",
        len(results),
        len(candidates),
        excluded,
        len(ranked),
    )
    return ranked, excluded


def _score_package(
    pkg: HajjPackage,
    prefs: Preferences,
    occupancy: OccupancyType,
    cfg: ScoringConfig,
) -> Optional[Recommendation]:
    if occupancy != "quad" and not occupancy_available(pkg, occupancy):
        logger.debug("Excluding %s/%s: no %s occupancy", pkg.provider, pkg.package_name, occupancy)
        return None

    price = price_breakdown(pkg, occupancy, prefs.budget.headcount, cfg)
    if price is None or price.per_person <= 0:
        logger.debug("Excluding %s/%s: unpriced for %s", pkg.provider, pkg.package_name, occupancy)
        return None

    pref_score = _finite(match_ratio(score_preferences(pkg, prefs, cfg)))
    value_score = _finite(score_value_quality(pkg))
    budget_score = _finite(score_budget_fit(price.per_person, prefs, cfg))
    scarcity = _finite(scarcity_penalty(pkg, cfg))

    total = (
        pref_score * cfg.preference_weight
        + value_score * cfg.value_weight
        + budget_score * cfg.budget_weight
        - scarcity
    )

    return Recommendation(
        package=pkg,
        total_score=round(total, 3),
        breakdown=ScoreBreakdown(
            preference_match=pref_score,
            value_quality=value_score,
            budget_fit=budget_score,
            scarcity_penalty=scarcity,
        ),
        price=price,
        reasons=_reasons(pkg, pref_score, budget_score, cfg),
    )


def _reasons(pkg: HajjPackage, pref_score: float, budget_score: float, cfg: ScoringConfig) -> List[str]:
    reasons: List[str] = []
    if pref_score > cfg.strong_match_threshold:
        reasons.append(STRONG_MATCH_REASON)
    if pkg.mina_camp == "majr":
        reasons.append(majr_fee_reason(cfg))
        reasons.append(MAJR_CAPACITY_REASON)
    if pkg.mina_camp == "muaisim":
        reasons.append(MUAISIM_REASON)
    if pkg.is_shifting:
        reasons.append(SHIFTING_REASON)
    if budget_score > cfg.close_budget_threshold:
        reasons.append(CLOSE_BUDGET_REASON)
    return reasons


def _finite(value: float) -> float:
    return value if math.isfinite(value) else 0.0
