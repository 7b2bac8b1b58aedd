# hajj_advisor/config.py
from __future__ import annotations

import logging
import math
import os
from dataclasses import dataclass
from typing import List

from dotenv import load_dotenv

# Load .env file if present
load_dotenv()

_LOG_FORMAT = "[%(levelname)s] %(name)s: %(message)s"


def get_logger(name: str) -> logging.Logger:
    """Return a module logger wired the same way across the package."""
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_LOG_FORMAT))
        logger.addHandler(handler)
    level = os.getenv("HAJJ_ADVISOR_LOG_LEVEL", "INFO").upper()
    logger.setLevel(getattr(logging, level, logging.INFO))
    logger.propagate = False
    return logger


logger = get_logger(__name__)

# Majr AlKabsh camp upgrade fee (SAR per person)
DEFAULT_CAMP_UPGRADE_FEE_SAR = 4673.42
DEFAULT_TOP_N = 5


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning("Ignoring %s=%r (not a number); using %s", name, raw, default)
        return default
    if not math.isfinite(value) or value < 0:
        logger.warning("Ignoring %s=%r (must be a finite non-negative number); using %s", name, raw, default)
        return default
    return value


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("Ignoring %s=%r (not an integer); using %s", name, raw, default)
        return default
    return value if value > 0 else default


@dataclass(frozen=True)
class ScoringConfig:
    """Named constants the scoring engine runs with.

    Passed explicitly into the pricing resolver and the orchestrator so tests
    can vary the camp surcharge or the weights without patching module state.
    """

    camp_upgrade_fee_sar: float = DEFAULT_CAMP_UPGRADE_FEE_SAR
    preference_weight: float = 0.6
    value_weight: float = 0.25
    budget_weight: float = 0.15
    scarcity_penalty: float = 0.15
    zone_step: float = 0.25
    date_window_days: float = 14.0
    duration_window_days: float = 3.0
    under_budget_floor: float = 0.6
    strong_match_threshold: float = 0.75
    close_budget_threshold: float = 0.85
    top_n: int = DEFAULT_TOP_N

    @classmethod
    def from_env(cls) -> "ScoringConfig":
        return cls(
            camp_upgrade_fee_sar=_env_float("HAJJ_ADVISOR_CAMP_UPGRADE_FEE_SAR", DEFAULT_CAMP_UPGRADE_FEE_SAR),
            top_n=_env_int("HAJJ_ADVISOR_TOP_N", DEFAULT_TOP_N),
        )


DEFAULT_SCORING = ScoringConfig()


def allowed_origins() -> List[str]:
    # The UI runs on the same device; only loopback origins by default.
    raw = os.getenv("HAJJ_ADVISOR_ALLOWED_ORIGINS") or "http://localhost:5173,http://127.0.0.1:5173"
    origins = [origin.strip() for origin in raw.split(",") if origin.strip()]
    return origins or ["http://localhost:5173"]


def store_path() -> str:
    return os.getenv("HAJJ_ADVISOR_STORE_PATH") or os.path.join(
        os.path.expanduser("~"), ".hajj_advisor", "store.json"
    )


def preloaded_path() -> str | None:
    """Workbook holding the curated catalog; unset means the built-in sample."""
    return os.getenv("HAJJ_ADVISOR_PRELOADED_PATH") or None
