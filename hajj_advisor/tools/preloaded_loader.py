"""Read the preloaded package catalog from the curated workbook.

The workbook keeps one package per row on the ``APP_IMPORT`` sheet. Rows
that are incomplete are reported back rather than raising, so a single bad
row never hides the rest of the catalog.
"""
from __future__ import annotations

import math
import uuid
import zipfile
from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from openpyxl import load_workbook
from openpyxl.utils.datetime import from_excel
from openpyxl.utils.exceptions import InvalidFileException
from pydantic import ValidationError

from hajj_advisor.config import get_logger
from hajj_advisor.schemas import HajjPackage
from hajj_advisor.scoring.preference_match import parse_datetime
from hajj_advisor.scoring.pricing import available_fee

logger = get_logger(__name__)

SHEET_NAME = "APP_IMPORT"


@dataclass
class RejectedRow:
    row_index: int
    reason: str
    package_name: Optional[str] = None


@dataclass
class LoaderResult:
    packages: List[HajjPackage] = field(default_factory=list)
    rejected: List[RejectedRow] = field(default_factory=list)


def load_preloaded_packages(path: Path | str) -> LoaderResult:
    """Load every usable package row from the workbook at ``path``.

    A missing file or sheet is reported as a single rejection with
    ``row_index`` -1.
    """
    try:
        workbook = load_workbook(path, read_only=True, data_only=True)
    except (OSError, InvalidFileException, zipfile.BadZipFile) as exc:
        logger.warning("Could not open preloaded workbook %s: %s", path, exc)
        return LoaderResult(rejected=[RejectedRow(-1, f"Failed to read workbook ({exc})")])

    try:
        if SHEET_NAME not in workbook.sheetnames:
            logger.warning("Workbook %s has no %s sheet", path, SHEET_NAME)
            return LoaderResult(rejected=[RejectedRow(-1, f"{SHEET_NAME} sheet not found")])
        rows = list(workbook[SHEET_NAME].iter_rows(values_only=True))
    finally:
        workbook.close()

    result = LoaderResult()
    if not rows:
        return result

    header = [_text(cell) for cell in rows[0]]
    for row_index, values in enumerate(rows[1:], start=2):
        if all(_blank(cell) for cell in values):
            continue
        record: Dict[str, Any] = {}
        for name, cell in zip(header, values):
            if name:
                record.setdefault(name, cell)
        pkg, rejected = _package_from_record(record, row_index)
        if rejected is not None:
            result.rejected.append(rejected)
        else:
            result.packages.append(pkg)

    logger.info(
        "Loaded %d preloaded package(s) from %s, %d row(s) rejected",
        len(result.packages),
        path,
        len(result.rejected),
    )
    for row in result.rejected:
        logger.debug("Row %d rejected: %s", row.row_index, row.reason)
    return result


# ---------- cell parsing ----------
def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _text(value: Any) -> str:
    return "" if value is None else str(value).strip()


def _to_iso_date(value: Any) -> Optional[str]:
    """Cells may hold real dates, Excel serial numbers or date strings."""
    if _blank(value) or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, (int, float)):
        if not math.isfinite(value) or value <= 0:
            return None
        converted = from_excel(value)
        return converted.date().isoformat() if isinstance(converted, datetime) else None
    parsed = parse_datetime(str(value))
    return parsed.date().isoformat() if parsed else None


def _to_number(value: Any) -> Optional[float]:
    if _blank(value) or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _parse_stay(value: Any) -> Optional[str]:
    lowered = _text(value).lower()
    return lowered if lowered in ("madinah", "makkah", "aziziya") else None


def _parse_shifting(value: Any) -> Optional[bool]:
    # e.g. "Non Shifting", "Shifting (Aziziya)"
    lowered = _text(value).lower()
    if not lowered:
        return None
    if "non" in lowered:
        return False
    if "shift" in lowered:
        return True
    return None


def _parse_camp(value: Any) -> Optional[str]:
    lowered = _text(value).lower()
    if "majr" in lowered:
        return "majr"
    if "muai" in lowered:
        return "muaisim"
    return None


def _stable_id(provider: str, package_name: str, start_date: str, end_date: str) -> str:
    # Same row, same id across reloads, so stored edits and favourites still apply.
    key = "|".join(part.strip().lower() for part in (provider, package_name, start_date, end_date))
    return str(uuid.uuid5(uuid.NAMESPACE_URL, f"hajj-preloaded:{key}"))


# ---------- rows ----------
def _package_from_record(record: Dict[str, Any], row_index: int) -> tuple[Optional[HajjPackage], Optional[RejectedRow]]:
    provider = _text(record.get("Provider"))
    package_name = _text(record.get("PackageName"))
    package_link = _text(record.get("PackageLink"))

    start_date = _to_iso_date(record.get("StartDate"))
    end_date = _to_iso_date(record.get("EndDate"))
    duration = _to_number(record.get("DurationDays"))

    first_city = _parse_stay(record.get("FirstCity"))
    shifting = _parse_shifting(record.get("IsShifting"))
    is_shifting = True if shifting is None else shifting

    zone = _text(record.get("MakkahZone")).upper()
    camp = _parse_camp(record.get("MinaCamp"))
    base = _to_number(record.get("BasePriceSAR"))

    madinah_hotel = _text(record.get("MadinahHotel"))
    madinah_check_in = _to_iso_date(record.get("MadinahCheckIn"))
    makkah_hotel = _text(record.get("MakkahHotel"))
    makkah_check_in = _to_iso_date(record.get("MakkahCheckIn"))
    aziziya_hotel = _text(record.get("AziziyaHotel"))
    aziziya_check_in = _to_iso_date(record.get("AziziyaCheckIn"))

    missing: List[str] = []
    if not provider:
        missing.append("Provider")
    if not package_name:
        missing.append("PackageName")
    if not package_link:
        missing.append("PackageLink")
    if not start_date:
        missing.append("StartDate")
    if not end_date:
        missing.append("EndDate")
    if duration is None or duration <= 0 or not duration.is_integer():
        missing.append("DurationDays")
    if not first_city:
        missing.append("FirstCity")
    if zone not in ("A", "B", "C", "M"):
        missing.append("MakkahZone")
    if not camp:
        missing.append("MinaCamp")
    if base is None or base <= 0:
        missing.append("BasePriceSAR")
    if not madinah_hotel:
        missing.append("MadinahHotel")
    if not madinah_check_in:
        missing.append("MadinahCheckIn")
    if not makkah_hotel:
        missing.append("MakkahHotel")
    if not makkah_check_in:
        missing.append("MakkahCheckIn")
    if is_shifting:
        if not aziziya_hotel:
            missing.append("AziziyaHotel (required for shifting)")
        if not aziziya_check_in:
            missing.append("AziziyaCheckIn (required for shifting)")

    if missing:
        reason = f"Missing/invalid: {', '.join(missing)}"
        return None, RejectedRow(row_index, reason, package_name or None)

    hotels = [
        {"city": "madinah", "hotel_name": madinah_hotel, "check_in_date": madinah_check_in},
        {"city": "makkah", "hotel_name": makkah_hotel, "check_in_date": makkah_check_in},
    ]
    if is_shifting:
        hotels.append({"city": "aziziya", "hotel_name": aziziya_hotel, "check_in_date": aziziya_check_in})

    flight_gateway = _text(record.get("FlightGateway"))
    raw: Dict[str, Any] = {
        "id": _stable_id(provider, package_name, start_date, end_date),
        "source": "preloaded",
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
        "upgrade_fees": {
            city: {
                "double": available_fee(record.get(f"DoubleUpgrade{label}")),
                "triple": available_fee(record.get(f"TripleUpgrade{label}")),
            }
            for city, label in (("makkah", "Makkah"), ("madinah", "Madinah"), ("aziziya", "Aziziya"))
        },
        "flight": (
            {"gateway": flight_gateway, "price_sar": available_fee(record.get("FlightPriceSAR"))}
            if flight_gateway
            else None
        ),
        "package_link": package_link,
    }
    try:
        return HajjPackage.model_validate(raw), None
    except ValidationError as exc:
        reason = f"Row could not be read as a package ({exc.error_count()} error(s))"
        return None, RejectedRow(row_index, reason, package_name)
