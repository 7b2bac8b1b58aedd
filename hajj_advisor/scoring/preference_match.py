"""Field-by-field match between a package and the user's stated preferences."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from hajj_advisor.config import DEFAULT_SCORING, ScoringConfig
from hajj_advisor.schemas import HajjPackage, MakkahZone, MinaCamp, Preferences

# nearest -> farthest; partial credit is measured along this order
ZONE_ORDER: tuple[MakkahZone, ...] = ("A", "B", "C", "M")


@dataclass(frozen=True)
class PreferenceMatch:
    """Raw match score and the maximum it could have reached."""

    score: float = 0.0
    max: float = 0.0


def zone_score(preferred: MakkahZone, actual: MakkahZone, step: float = DEFAULT_SCORING.zone_step) -> float:
    if preferred == actual:
        return 1.0
    if preferred not in ZONE_ORDER or actual not in ZONE_ORDER:
        return 0.0
    distance = abs(ZONE_ORDER.index(preferred) - ZONE_ORDER.index(actual))
    return max(0.0, 1.0 - distance * step)


def camp_score(preferred: MinaCamp, actual: MinaCamp) -> float:
    return 1.0 if preferred == actual else 0.0


def parse_datetime(value: str | None) -> datetime | None:
    """Parse an ISO date or timestamp; ``None`` when it does not parse."""
    if not value:
        return None
    text = value.strip()
    # fromisoformat only learned the Z suffix in 3.11
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        try:
            parsed = datetime.strptime(text, "%Y-%m-%d")
        except ValueError:
            return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def date_window_score(
    pkg: HajjPackage,
    prefs: Preferences,
    window_days: float = DEFAULT_SCORING.date_window_days,
) -> Optional[float]:
    """Score the package dates against the preferred window.

    Returns ``None`` when either window is missing or does not parse, so the
    field is skipped rather than counted as a miss.
    """
    u_start, u_end = parse_datetime(prefs.start_date), parse_datetime(prefs.end_date)
    p_start, p_end = parse_datetime(pkg.start_date), parse_datetime(pkg.end_date)
    if not (u_start and u_end and p_start and p_end):
        return None

    if p_start >= u_start and p_end <= u_end:
        return 1.0
    gap = min(abs(p_start - u_start), abs(p_end - u_end))
    days = gap.total_seconds() / 86400.0
    return max(0.0, 1.0 - days / window_days)


def duration_score(
    actual_days: float,
    preferred_days: float,
    window_days: float = DEFAULT_SCORING.duration_window_days,
) -> float:
    diff = abs(actual_days - preferred_days)
    return max(0.0, 1.0 - diff / window_days)


def score_preferences(
    pkg: HajjPackage,
    prefs: Preferences,
    config: ScoringConfig = DEFAULT_SCORING,
) -> PreferenceMatch:
    score = 0.0
    max_score = 0.0

    if prefs.provider is not None:
        max_score += 1
        if pkg.provider == prefs.provider:
            score += 1

    first_stay = pkg.hotels[0].city if pkg.hotels else None
    last_stay = pkg.hotels[-1].city if pkg.hotels else None

    if prefs.first_stay is not None:
        max_score += 1
        if first_stay == prefs.first_stay:
            score += 1

    if prefs.last_stay is not None:
        max_score += 1
        if last_stay == prefs.last_stay:
            score += 1

    if prefs.makkah_zone is not None:
        max_score += 1
        score += zone_score(prefs.makkah_zone, pkg.makkah_zone, config.zone_step)

    if prefs.mina_camp is not None:
        max_score += 1
        score += camp_score(prefs.mina_camp, pkg.mina_camp)

    if prefs.shifting is not None:
        max_score += 1
        if prefs.shifting == pkg.is_shifting:
            score += 1

    dates = date_window_score(pkg, prefs, config.date_window_days)
    if dates is not None:
        max_score += 1
        score += dates

    if prefs.duration_days is not None:
        max_score += 1
        score += duration_score(pkg.duration_days, prefs.duration_days, config.duration_window_days)

    return PreferenceMatch(score=score, max=max_score)


def match_ratio(match: PreferenceMatch) -> float:
    # No active preferences scores 0, not 1: the preference term simply drops out.
    if match.max <= 0:
        return 0.0
    return match.score / match.max
