"""Local-only storage.

- Preloaded packages are NEVER modified
- User edits are stored as overrides keyed by package id
- User-added packages are stored separately
- Saved/favourite packages are a list of package ids (max 5)
- Nothing leaves the device: everything lives in one JSON file
"""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Set

from pydantic import ValidationError

from hajj_advisor.config import get_logger, store_path
from hajj_advisor.schemas import HajjPackage, Preferences

logger = get_logger(__name__)

OVERRIDES_KEY = "hajj_pkg_overrides_v1"
USER_PACKAGES_KEY = "hajj_user_packages_v1"
FAVOURITES_KEY = "hajj_pkg_favourites_v1"
PREFERENCES_KEY = "hajj_preferences_v1"
MAX_FAVOURITES = 5


@dataclass
class ToggleResult:
    ok: bool
    message: Optional[str] = None


@dataclass
class MergeResult:
    packages: List[HajjPackage] = field(default_factory=list)
    edited_ids: Set[str] = field(default_factory=set)


def package_dedupe_key(pkg: HajjPackage) -> str:
    """Stable key for spotting the same package entered twice."""

    def norm(value: str | None) -> str:
        return (value or "").strip().lower()

    return f"{norm(pkg.provider)}|{norm(pkg.package_name)}|{norm(pkg.start_date)}|{norm(pkg.end_date)}"


class LocalStore:
    def __init__(self, path: Path | str | None = None) -> None:
        self.path = Path(path) if path is not None else Path(store_path())

    # ---------- raw document ----------
    def _read(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError):
            logger.warning("Local store at %s is unreadable; starting empty", self.path, exc_info=True)
            return {}
        return data if isinstance(data, dict) else {}

    def _get(self, key: str, default: Any) -> Any:
        value = self._read().get(key, default)
        return value if isinstance(value, type(default)) else default

    def _set(self, key: str, value: Any) -> None:
        data = self._read()
        data[key] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data, indent=2), encoding="utf-8")

    # ---------- favourites ----------
    def favourite_ids(self) -> List[str]:
        return [item for item in self._get(FAVOURITES_KEY, []) if isinstance(item, str)]

    def is_favourite(self, package_id: str) -> bool:
        return package_id in self.favourite_ids()

    def toggle_favourite(self, package_id: str) -> ToggleResult:
        """Add or remove ``package_id``; refuses to go past the favourites limit."""
        ids = self.favourite_ids()
        if package_id in ids:
            self._set(FAVOURITES_KEY, [item for item in ids if item != package_id])
            return ToggleResult(ok=True)

        if len(ids) >= MAX_FAVOURITES:
            return ToggleResult(ok=False, message=f"You can save up to {MAX_FAVOURITES} packages.")

        self._set(FAVOURITES_KEY, ids + [package_id])
        return ToggleResult(ok=True)

    def clear_favourites(self) -> None:
        self._set(FAVOURITES_KEY, [])

    # ---------- overrides (edits to preloaded packages) ----------
    def package_overrides(self) -> Dict[str, Dict[str, Any]]:
        raw = self._get(OVERRIDES_KEY, {})
        return {key: value for key, value in raw.items() if isinstance(value, dict)}

    def save_package_override(self, package_id: str, override: Dict[str, Any]) -> None:
        overrides = self.package_overrides()
        overrides[package_id] = {**overrides.get(package_id, {}), **override}
        self._set(OVERRIDES_KEY, overrides)

    def clear_package_override(self, package_id: str) -> None:
        overrides = self.package_overrides()
        overrides.pop(package_id, None)
        self._set(OVERRIDES_KEY, overrides)

    # ---------- user-added packages ----------
    def user_packages(self) -> List[HajjPackage]:
        packages: List[HajjPackage] = []
        for raw in self._get(USER_PACKAGES_KEY, []):
            try:
                packages.append(HajjPackage.model_validate(raw))
            except ValidationError:
                logger.warning("Skipping unreadable user package in local store", exc_info=True)
        return packages

    def user_package_keys(self) -> Set[str]:
        return {package_dedupe_key(pkg) for pkg in self.user_packages()}

    def _write_user_packages(self, packages: List[HajjPackage]) -> None:
        self._set(USER_PACKAGES_KEY, [pkg.model_dump(mode="json") for pkg in packages])

    def save_user_package(self, pkg: HajjPackage) -> None:
        self._write_user_packages(self.user_packages() + [pkg])

    def update_user_package(self, pkg: HajjPackage) -> bool:
        packages = self.user_packages()
        for idx, existing in enumerate(packages):
            if existing.id == pkg.id:
                packages[idx] = pkg
                self._write_user_packages(packages)
                return True
        return False

    def delete_user_package(self, package_id: str) -> None:
        self._write_user_packages([pkg for pkg in self.user_packages() if pkg.id != package_id])

    # ---------- preferences ----------
    def load_preferences(self) -> Preferences:
        raw = self._get(PREFERENCES_KEY, {})
        try:
            return Preferences.model_validate(raw)
        except ValidationError:
            logger.warning("Stored preferences are invalid; falling back to defaults", exc_info=True)
            return Preferences()

    def save_preferences(self, prefs: Preferences) -> None:
        self._set(PREFERENCES_KEY, prefs.model_dump(mode="json"))

    # ---------- merge ----------
    def merge_packages(self, preloaded: List[HajjPackage]) -> MergeResult:
        """Apply local overrides to ``preloaded`` and append the user's own packages."""
        overrides = self.package_overrides()
        merged: List[HajjPackage] = []
        for pkg in preloaded:
            override = overrides.get(pkg.id)
            if not override:
                merged.append(pkg)
                continue
            try:
                merged.append(HajjPackage.model_validate({**pkg.model_dump(), **override, "id": pkg.id}))
            except ValidationError:
                logger.warning("Ignoring invalid override for package %s", pkg.id, exc_info=True)
                merged.append(pkg)

        return MergeResult(packages=merged + self.user_packages(), edited_ids=set(overrides))
