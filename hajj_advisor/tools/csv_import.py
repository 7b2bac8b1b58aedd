"""Bulk package import from the CSV template.

Template rules:
- Leave a cell BLANK if not applicable
- Use 0 ONLY when an option is explicitly NOT AVAILABLE
- Prices are SAR per person
- Upgrade fees are differences vs quad
"""
from __future__ import annotations

import csv
import io
import math
import uuid
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from pydantic import ValidationError

from hajj_advisor.config import get_logger
from hajj_advisor.schemas import HajjPackage
from hajj_advisor.scoring.pricing import available_fee

logger = get_logger(__name__)

TEMPLATE_HEADERS: List[str] = [
    # Identity
    "Provider",
    "PackageName",
    # Dates & duration
    "StartDate",
    "EndDate",
    "DurationDays",
    # Structure
    "FirstCity",  # madinah | makkah | aziziya
    "Shifting",  # shifting | non-shifting
    # Location quality
    "MakkahZone",  # A | B | C | M
    "MinaCamp",  # majr | muaisim
    # Pricing
    "BasePriceSAR",  # quad baseline
    # Upgrade fees vs quad (SAR pp)
    "MakkahDoubleUpgrade",
    "MakkahTripleUpgrade",
    "MadinahDoubleUpgrade",
    "MadinahTripleUpgrade",
    "AziziyaDoubleUpgrade",
    "AziziyaTripleUpgrade",
    # Hotels
    "MadinahHotel",
    "MadinahCheckIn",
    "MakkahHotel",
    "MakkahCheckIn",
    "AziziyaHotel",
    "AziziyaCheckIn",
    # Flight (baseline)
    "FlightGateway",
    "FlightPriceSAR",
    # Meta
    "PackageLink",
]

REQUIRED_HEADERS: List[str] = [
    "Provider",
    "PackageName",
    "StartDate",
    "EndDate",
    "DurationDays",
    "FirstCity",
    "Shifting",
    "MakkahZone",
    "MinaCamp",
    "BasePriceSAR",
    "MadinahHotel",
    "MadinahCheckIn",
    "MakkahHotel",
    "MakkahCheckIn",
]

_EXAMPLE_ROW: List[str] = [
    "Example Provider",
    "Example Package",
    "2026-05-20",
    "2026-06-05",
    "17",
    "madinah",
    "shifting",
    "A",
    "muaisim",
    "25000",
    "3000",
    "2000",
    "",
    "",
    "",
    "",
    "Hotel Madinah",
    "2026-05-20",
    "Hotel Makkah",
    "2026-05-28",
    "Hotel Aziziya",
    "2026-06-01",
    "LHR",
    "3500",
    "https://hajj.nusuk.sa/",
]


@dataclass
class RowError:
    row: int
    message: str


@dataclass
class CsvImportResult:
    packages: List[HajjPackage] = field(default_factory=list)
    errors: List[RowError] = field(default_factory=list)


def template_csv() -> str:
    """Header plus one example row, ready to hand to the user as a file."""
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(TEMPLATE_HEADERS)
    writer.writerow(_EXAMPLE_ROW)
    return buf.getvalue()


def import_template_csv(text: str) -> CsvImportResult:
    rows = _parse_csv(text)
    if len(rows) < 2:
        return CsvImportResult(errors=[RowError(0, "CSV has no data rows.")])

    header = rows[0]
    for name in REQUIRED_HEADERS:
        if name not in header:
            return CsvImportResult(errors=[RowError(0, f"Missing required header: {name}")])
    columns: Dict[str, int] = {}
    for idx, name in enumerate(header):
        # first occurrence wins on duplicate headers
        columns.setdefault(name, idx)

    result = CsvImportResult()
    for offset, row in enumerate(rows[1:]):
        row_num = offset + 2
        cells = {name: (row[idx] if idx < len(row) else "") for name, idx in columns.items()}
        pkg, message = _package_from_row(cells)
        if message:
            result.errors.append(RowError(row_num, message))
            continue
        result.packages.append(pkg)

    logger.info(
        "Imported %d package(s) from CSV with %d rejected row(s)",
        len(result.packages),
        len(result.errors),
    )
    for err in result.errors:
        logger.debug("Row %d rejected: %s", err.row, err.message)
    return result


# ---------- helpers ----------
def _parse_csv(text: str) -> List[List[str]]:
    reader = csv.reader(io.StringIO(text.replace("\r\n", "\n").replace("\r", "\n")))
    return [[cell.strip() for cell in row] for row in reader if any(cell.strip() for cell in row)]


def _to_num(value: str) -> Optional[float]:
    if not value:
        return None
    try:
        number = float(value)
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def _parse_stay(value: str) -> Optional[str]:
    lowered = value.lower()
    return lowered if lowered in ("madinah", "makkah", "aziziya") else None


def _parse_zone(value: str) -> Optional[str]:
    upper = value.upper()
    return upper if upper in ("A", "B", "C", "M") else None


def _parse_camp(value: str) -> Optional[str]:
    lowered = value.lower()
    return lowered if lowered in ("majr", "muaisim") else None


def _parse_shifting(value: str) -> Optional[bool]:
    lowered = value.lower()
    if lowered == "shifting":
        return True
    if lowered in ("non-shifting", "nonshifting"):
        return False
    return None


def _package_from_row(cells: Dict[str, str]) -> tuple[Optional[HajjPackage], Optional[str]]:
    provider = cells.get("Provider", "")
    package_name = cells.get("PackageName", "")
    start_date = cells.get("StartDate", "")
    end_date = cells.get("EndDate", "")
    duration = _to_num(cells.get("DurationDays", ""))
    first_city = _parse_stay(cells.get("FirstCity", ""))
    is_shifting = _parse_shifting(cells.get("Shifting", ""))
    zone = _parse_zone(cells.get("MakkahZone", ""))
    camp = _parse_camp(cells.get("MinaCamp", ""))
    base = _to_num(cells.get("BasePriceSAR", ""))

    madinah_hotel = cells.get("MadinahHotel", "")
    madinah_check_in = cells.get("MadinahCheckIn", "")
    makkah_hotel = cells.get("MakkahHotel", "")
    makkah_check_in = cells.get("MakkahCheckIn", "")
    aziziya_hotel = cells.get("AziziyaHotel", "")
    aziziya_check_in = cells.get("AziziyaCheckIn", "")

    if not provider or not package_name:
        return None, "Provider and PackageName are required."
    if not start_date or not end_date or not duration or duration <= 0 or not duration.is_integer():
        return None, "StartDate/EndDate/DurationDays are required and must be valid."
    if not first_city or is_shifting is None:
        return None, "FirstCity must be madinah/makkah/aziziya and Shifting must be shifting/non-shifting."
    if not zone or not camp:
        return None, "MakkahZone must be A/B/C/M and MinaCamp must be majr/muaisim."
    if not base or base <= 0:
        return None, "BasePriceSAR must be a positive number."
    if not madinah_hotel or not madinah_check_in or not makkah_hotel or not makkah_check_in:
        return None, "Madinah/Makkah hotels and check-in dates are required."
    if is_shifting and (not aziziya_hotel or not aziziya_check_in):
        return None, "Aziziya hotel and check-in date are required for shifting packages."

    fees = {
        city: {
            "double": available_fee(cells.get(f"{label}DoubleUpgrade")),
            "triple": available_fee(cells.get(f"{label}TripleUpgrade")),
        }
        for city, label in (("makkah", "Makkah"), ("madinah", "Madinah"), ("aziziya", "Aziziya"))
    }
    has_any_upgrade = any(fee is not None for tiers in fees.values() for fee in tiers.values())

    hotels = [
        {"city": "madinah", "hotel_name": madinah_hotel, "check_in_date": madinah_check_in},
        {"city": "makkah", "hotel_name": makkah_hotel, "check_in_date": makkah_check_in},
    ]
    if is_shifting:
        hotels.append({"city": "aziziya", "hotel_name": aziziya_hotel, "check_in_date": aziziya_check_in})

    flight_gateway = cells.get("FlightGateway", "")
    raw: Dict[str, object] = {
        "id": str(uuid.uuid4()),
        "source": "user",
        "provider": provider,
        "package_name": package_name,
        "start_date": start_date,
        "end_date": end_date,
        "duration_days": int(duration),
        "first_city": first_city,
        "is_shifting": is_shifting,
        "makkah_zone": zone,
        "mina_camp": camp,
        "base_price_sar": base,
        "hotels": hotels,
        "upgrade_fees": fees if has_any_upgrade else None,
        "flight": (
            {"gateway": flight_gateway, "price_sar": _to_num(cells.get("FlightPriceSAR", ""))}
            if flight_gateway
            else None
        ),
        "package_link": cells.get("PackageLink") or None,
    }
    try:
        return HajjPackage.model_validate(raw), None
    except ValidationError as exc:
        return None, f"Row could not be read as a package ({exc.error_count()} error(s))."
