from __future__ import annotations

from typing import Any, Dict

from fastapi import Body, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
from pydantic import ValidationError

from hajj_advisor.catalog import preloaded_catalog, sample_packages
from hajj_advisor.config import ScoringConfig, allowed_origins
from hajj_advisor.recommender import recommend_from_payload
from hajj_advisor.schemas import HajjPackage, Preferences, RecommendRequest
from hajj_advisor.tools.csv_import import import_template_csv, template_csv
from hajj_advisor.tools.local_store import LocalStore, MergeResult, package_dedupe_key

app = FastAPI(title="Hajj Package Advisor (local)")

# The UI is served from the same device; HAJJ_ADVISOR_ALLOWED_ORIGINS can
# widen this for a dev server on another port.
app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins(),
    allow_credentials=False,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["*"],
)

_SCORING = ScoringConfig.from_env()


def _store() -> LocalStore:
    # reads HAJJ_ADVISOR_STORE_PATH on every call
    return LocalStore()


def _merged(store: LocalStore) -> MergeResult:
    return store.merge_packages(preloaded_catalog())


def _validate(model: Any, payload: Dict[str, Any]) -> Any:
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail=exc.errors(include_url=False)) from exc


@app.post("/api/recommend")
def api_recommend(payload: Dict[str, Any] = Body(...)) -> Dict[str, Any]:
    """Rank packages against the submitted preferences.

    With no ``packages`` in the payload the local catalog is used: the
    preloaded packages with any saved edits, plus the user's own packages.
    """
    req = _validate(RecommendRequest, payload)
    if not req.packages:
        req = req.model_copy(update={"packages": _merged(_store()).packages})

    response = recommend_from_payload(req, config=_SCORING)
    return response.model_dump(mode="json")


@app.post("/api/import")
def api_import(csv_text: str = Body(..., embed=True, alias="csv")) -> Dict[str, Any]:
    result = import_template_csv(csv_text)
    return {
        "packages": [pkg.model_dump(mode="json") for pkg in result.packages],
        "errors": [{"row": err.row, "message": err.message} for err in result.errors],
    }


@app.get("/api/template", response_class=PlainTextResponse)
def api_template() -> str:
    return template_csv()


@app.get("/api/packages/sample")
def api_sample_packages() -> Dict[str, Any]:
    return {"packages": [pkg.model_dump(mode="json") for pkg in sample_packages()]}


# ---------- local catalog ----------
@app.get("/api/packages")
def api_packages() -> Dict[str, Any]:
    merged = _merged(_store())
    return {
        "packages": [pkg.model_dump(mode="json") for pkg in merged.packages],
        "edited_ids": sorted(merged.edited_ids),
    }


@app.post("/api/packages")
def api_save_package(payload: Dict[str, Any] = Body(...)) -> Dict[str, Any]:
    """Save a user-entered package; the same provider/name/dates twice is a conflict."""
    pkg = _validate(HajjPackage, {**payload, "source": "user"})
    store = _store()
    existing = {package_dedupe_key(other) for other in _merged(store).packages}
    if package_dedupe_key(pkg) in existing:
        raise HTTPException(status_code=409, detail="This package is already in your list.")

    store.save_user_package(pkg)
    return {"package": pkg.model_dump(mode="json")}


@app.delete("/api/packages/{package_id}")
def api_delete_package(package_id: str) -> Dict[str, Any]:
    store = _store()
    if not any(pkg.id == package_id for pkg in store.user_packages()):
        # preloaded packages are read-only; only user packages can be removed
        raise HTTPException(status_code=404, detail=f"No user package with id {package_id}")

    store.delete_user_package(package_id)
    if store.is_favourite(package_id):
        store.toggle_favourite(package_id)
    return {"deleted": package_id}


@app.put("/api/packages/{package_id}/override")
def api_save_override(package_id: str, override: Dict[str, Any] = Body(...)) -> Dict[str, Any]:
    store = _store()
    original = next((pkg for pkg in preloaded_catalog() if pkg.id == package_id), None)
    if original is None:
        raise HTTPException(status_code=404, detail=f"No preloaded package with id {package_id}")

    edited = {**original.model_dump(), **store.package_overrides().get(package_id, {}), **override}
    pkg = _validate(HajjPackage, {**edited, "id": package_id})
    store.save_package_override(package_id, override)
    return {"package": pkg.model_dump(mode="json")}


@app.delete("/api/packages/{package_id}/override")
def api_clear_override(package_id: str) -> Dict[str, Any]:
    _store().clear_package_override(package_id)
    return {"cleared": package_id}


# ---------- favourites ----------
@app.get("/api/favourites")
def api_favourites() -> Dict[str, Any]:
    return {"favourites": _store().favourite_ids()}


@app.post("/api/favourites/{package_id}")
def api_toggle_favourite(package_id: str) -> Dict[str, Any]:
    store = _store()
    result = store.toggle_favourite(package_id)
    return {"ok": result.ok, "message": result.message, "favourites": store.favourite_ids()}


# ---------- preferences ----------
@app.get("/api/preferences")
def api_load_preferences() -> Dict[str, Any]:
    return _store().load_preferences().model_dump(mode="json")


@app.put("/api/preferences")
def api_save_preferences(payload: Dict[str, Any] = Body(...)) -> Dict[str, Any]:
    prefs = _validate(Preferences, payload)
    _store().save_preferences(prefs)
    return prefs.model_dump(mode="json")
