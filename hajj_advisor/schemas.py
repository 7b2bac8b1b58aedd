from __future__ import annotations

import math
from typing import Any, List, Literal, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

# ------- Domain enums -------
StayLocation = Literal["madinah", "makkah", "aziziya"]
# Makkah proximity to the Haram: A = closest, M = farthest
MakkahZone = Literal["A", "B", "C", "M"]
# Mina camps; majr is the scarce premium camp
MinaCamp = Literal["majr", "muaisim"]
OccupancyType = Literal["quad", "triple", "double"]

_ANY = "any"


def _unset_any(value: Any) -> Any:
    """Map the UI's "any" / blank sentinels to ``None``."""
    if value is None:
        return None
    if isinstance(value, str) and (not value.strip() or value.strip().lower() == _ANY):
        return None
    return value


# ------- Catalog models -------
class HotelStay(BaseModel):
    model_config = ConfigDict(frozen=True)

    city: StayLocation
    hotel_name: str
    check_in_date: str


class TierFees(BaseModel):
    """Per-person upgrade fees vs quad. 0 or missing = not available."""

    model_config = ConfigDict(frozen=True)

    double: Optional[float] = None
    triple: Optional[float] = None


class UpgradeFees(BaseModel):
    model_config = ConfigDict(frozen=True)

    makkah: Optional[TierFees] = None
    madinah: Optional[TierFees] = None
    aziziya: Optional[TierFees] = None


class FlightInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    gateway: str
    price_sar: Optional[float] = None


class HajjPackage(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    provider: str
    package_name: str
    source: Literal["preloaded", "user"] = "preloaded"

    start_date: str
    end_date: str
    duration_days: int = Field(..., gt=0)

    first_city: StayLocation
    is_shifting: bool

    makkah_zone: MakkahZone
    mina_camp: MinaCamp

    hotels: List[HotelStay] = Field(default_factory=list)

    # quad baseline, SAR per person
    base_price_sar: float
    upgrade_fees: Optional[UpgradeFees] = None
    flight: Optional[FlightInfo] = None

    package_link: Optional[str] = None
    notes: Optional[str] = None
    last_updated: Optional[str] = None


# ------- Preference models -------
class Budget(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    amount: float = Field(0.0, validation_alias=AliasChoices("amount", "budget_amount"))
    currency: str = "SAR"
    headcount: int = Field(1, validation_alias=AliasChoices("headcount", "hujjaj_count"))

    @field_validator("amount", mode="before")
    @classmethod
    def _finite_amount(cls, value: Any) -> Any:
        if value is None:
            return 0.0
        try:
            number = float(value)
        except (TypeError, ValueError):
            return value
        return number if math.isfinite(number) else 0.0

    @field_validator("headcount", mode="before")
    @classmethod
    def _at_least_one(cls, value: Any) -> Any:
        try:
            number = float(value)
        except (TypeError, ValueError):
            return 1
        if not math.isfinite(number) or number < 1:
            return 1
        return int(number)


class Preferences(BaseModel):
    """What the user wants. Every filter left as ``None`` is ignored by scoring."""

    model_config = ConfigDict(frozen=True)

    budget: Budget = Budget()

    provider: Optional[str] = None
    first_stay: Optional[StayLocation] = None
    last_stay: Optional[StayLocation] = None
    makkah_zone: Optional[MakkahZone] = None
    mina_camp: Optional[MinaCamp] = None
    shifting: Optional[bool] = None
    occupancy: Optional[OccupancyType] = None

    start_date: Optional[str] = None
    end_date: Optional[str] = None
    duration_days: Optional[float] = None

    @field_validator(
        "provider",
        "first_stay",
        "last_stay",
        "makkah_zone",
        "mina_camp",
        "occupancy",
        "start_date",
        "end_date",
        mode="before",
    )
    @classmethod
    def _any_is_unset(cls, value: Any) -> Any:
        return _unset_any(value)

    @field_validator("shifting", mode="before")
    @classmethod
    def _parse_shifting(cls, value: Any) -> Any:
        value = _unset_any(value)
        if isinstance(value, str):
            lowered = value.strip().lower()
            if lowered in ("non-shifting", "nonshifting"):
                return False
            if lowered == "shifting":
                return True
        return value

    @field_validator("duration_days", mode="before")
    @classmethod
    def _positive_duration(cls, value: Any) -> Any:
        value = _unset_any(value)
        if value is None:
            return None
        try:
            number = float(value)
        except (TypeError, ValueError):
            return value
        if not math.isfinite(number) or number <= 0:
            return None
        return number


# ------- Response models -------
class ScoreBreakdown(BaseModel):
    preference_match: float
    value_quality: float
    budget_fit: float
    scarcity_penalty: float


class PriceBreakdown(BaseModel):
    occupancy: OccupancyType
    base: float
    camp_upgrade: float = 0.0
    occupancy_upgrade: float = 0.0
    per_person: float
    flight_per_person: Optional[float] = None
    group_size: int = 1
    group_total: float
    includes_flight: bool = False


class Recommendation(BaseModel):
    package: HajjPackage
    total_score: float
    breakdown: ScoreBreakdown
    price: PriceBreakdown
    reasons: List[str] = Field(default_factory=list)


class RecommendRequest(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    packages: List[HajjPackage] = Field(default_factory=list)
    preferences: Preferences = Field(
        default_factory=Preferences,
        validation_alias=AliasChoices("preferences", "prefs"),
    )
    # Restrict the shortlist to these providers; the provider preference is then ignored.
    providers: List[str] = Field(default_factory=list)


class RecommendResponse(BaseModel):
    preferences: Preferences
    options: List[Recommendation] = Field(default_factory=list)
    considered: int = 0
    excluded: int = 0
