from __future__ import annotations

from typing import Any, Callable

import pytest

from hajj_advisor.schemas import Budget, HajjPackage, Preferences


def _make_package(**overrides: Any) -> HajjPackage:
    data: dict[str, Any] = {
        "id": "pkg-1",
        "provider": "Al Bait",
        "package_name": "AB-TEST",
        "start_date": "2026-05-18",
        "end_date": "2026-06-02",
        "duration_days": 15,
        "first_city": "madinah",
        "is_shifting": False,
        "makkah_zone": "A",
        "mina_camp": "muaisim",
        "base_price_sar": 25000,
    }
    data.update(overrides)
    if "hotels" not in data:
        hotels = [
            {"city": "madinah", "hotel_name": "Madinah Hotel", "check_in_date": "2026-05-18"},
            {"city": "makkah", "hotel_name": "Makkah Hotel", "check_in_date": "2026-05-24"},
        ]
        if data["is_shifting"]:
            hotels.append({"city": "aziziya", "hotel_name": "Aziziya Hotel", "check_in_date": "2026-05-28"})
        data["hotels"] = hotels
    return HajjPackage.model_validate(data)


def _make_prefs(amount: float = 30000, headcount: int = 1, **filters: Any) -> Preferences:
    return Preferences(budget=Budget(amount=amount, headcount=headcount), **filters)


@pytest.fixture
def make_package() -> Callable[..., HajjPackage]:
    return _make_package


@pytest.fixture
def make_prefs() -> Callable[..., Preferences]:
    return _make_prefs
