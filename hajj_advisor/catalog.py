"""Preloaded demo catalog used when nothing else has been imported yet."""
from __future__ import annotations

import os
from typing import Any, Dict, List

from hajj_advisor.config import get_logger, preloaded_path
from hajj_advisor.schemas import HajjPackage
from hajj_advisor.tools.preloaded_loader import load_preloaded_packages

logger = get_logger(__name__)


def _stays(*entries: tuple[str, str, str]) -> List[Dict[str, str]]:
    return [{"city": city, "hotel_name": name, "check_in_date": check_in} for city, name, check_in in entries]


_SAMPLE_PACKAGES: List[Dict[str, Any]] = [
    {
        "id": "p1",
        "provider": "Al Bait",
        "package_name": "AB-MAJR-A",
        "start_date": "2026-05-18",
        "end_date": "2026-06-02",
        "duration_days": 15,
        "first_city": "madinah",
        "is_shifting": True,
        "makkah_zone": "A",
        "mina_camp": "majr",
        "hotels": _stays(
            ("madinah", "Madinah Hotel 1", "2026-05-18"),
            ("makkah", "Makkah Hotel A", "2026-05-24"),
            ("aziziya", "Aziziya Hotel 1", "2026-05-28"),
        ),
        "base_price_sar": 82000,
        "upgrade_fees": {
            "makkah": {"double": 0, "triple": 6000},
            "madinah": {"double": 0, "triple": 0},
            "aziziya": {"double": 0, "triple": 0},
        },
        "flight": {"gateway": "LHR", "price_sar": 0},
    },
    {
        "id": "p2",
        "provider": "Rawaf Mina",
        "package_name": "RM-MUA-B",
        "start_date": "2026-05-20",
        "end_date": "2026-06-03",
        "duration_days": 14,
        "first_city": "madinah",
        "is_shifting": True,
        "makkah_zone": "B",
        "mina_camp": "muaisim",
        "hotels": _stays(
            ("madinah", "Madinah Hotel 2", "2026-05-20"),
            ("makkah", "Makkah Hotel B", "2026-05-25"),
            ("aziziya", "Aziziya Hotel 2", "2026-05-29"),
        ),
        "base_price_sar": 76000,
        "upgrade_fees": {
            "makkah": {"double": 9000, "triple": 0},
            "madinah": {"double": 0, "triple": 0},
            "aziziya": {"double": 0, "triple": 0},
        },
        "flight": {"gateway": "LHR", "price_sar": 0},
    },
    {
        "id": "p3",
        "provider": "Seera Group",
        "package_name": "SR-NONSHIFT-C",
        "start_date": "2026-05-17",
        "end_date": "2026-06-05",
        "duration_days": 19,
        "first_city": "madinah",
        "is_shifting": False,
        "makkah_zone": "C",
        "mina_camp": "muaisim",
        "hotels": _stays(
            ("madinah", "Madinah Hotel 3", "2026-05-17"),
            ("makkah", "Makkah Hotel C (Non-shifting)", "2026-05-22"),
        ),
        "base_price_sar": 72000,
        # non-shifting: no aziziya fees
        "upgrade_fees": {
            "makkah": {"double": 0, "triple": 0},
            "madinah": {"double": 0, "triple": 0},
        },
        "flight": {"gateway": "LHR", "price_sar": 0},
    },
    {
        "id": "p4",
        "provider": "Dur Hospitality",
        "package_name": "DH-MAJR-B",
        "start_date": "2026-05-19",
        "end_date": "2026-06-01",
        "duration_days": 14,
        "first_city": "madinah",
        "is_shifting": True,
        "makkah_zone": "B",
        "mina_camp": "majr",
        "hotels": _stays(
            ("madinah", "Madinah Hotel 4", "2026-05-19"),
            ("makkah", "Makkah Hotel B+", "2026-05-24"),
            ("aziziya", "Aziziya Hotel 3", "2026-05-28"),
        ),
        "base_price_sar": 86000,
        "upgrade_fees": {
            "makkah": {"double": 12000, "triple": 6000},
            "madinah": {"double": 0, "triple": 0},
            "aziziya": {"double": 0, "triple": 0},
        },
        "flight": {"gateway": "LHR", "price_sar": 0},
    },
    {
        "id": "p5",
        "provider": "User Added",
        "package_name": "USER-MUA-A",
        "source": "user",
        "start_date": "2026-05-21",
        "end_date": "2026-06-02",
        "duration_days": 12,
        "first_city": "madinah",
        "is_shifting": True,
        "makkah_zone": "A",
        "mina_camp": "muaisim",
        "hotels": _stays(
            ("madinah", "Madinah Hotel X", "2026-05-21"),
            ("makkah", "Makkah Hotel A", "2026-05-26"),
            ("aziziya", "Aziziya Hotel X", "2026-05-30"),
        ),
        "base_price_sar": 79000,
        "flight": {"gateway": "MAN", "price_sar": 0},
    },
]


def sample_packages() -> List[HajjPackage]:
    return [HajjPackage.model_validate(raw) for raw in _SAMPLE_PACKAGES]


def preloaded_catalog() -> List[HajjPackage]:
    """The curated workbook when one is configured, otherwise the sample packages."""
    path = preloaded_path()
    if not path or not os.path.exists(path):
        if path:
            logger.warning("Preloaded workbook %s not found; using the sample catalog", path)
        return sample_packages()

    return load_preloaded_packages(path).packages
