import pytest
from fastapi.testclient import TestClient

from hajj_advisor.catalog import sample_packages
from hajj_advisor.main import app
from hajj_advisor.tools.csv_import import template_csv


def _sample_payload() -> dict:
    return {
        "packages": [pkg.model_dump(mode="json") for pkg in sample_packages()],
        "preferences": {
            "budget": {"amount": 170000, "currency": "SAR", "headcount": 2},
            "makkah_zone": "A",
            "shifting": "shifting",
            "occupancy": "any",
        },
    }


def test_api_recommend_endpoint():
    client = TestClient(app)
    response = client.post("/api/recommend", json=_sample_payload())

    assert response.status_code == 200
    body = response.json()
    assert body["considered"] == 5
    assert 0 < len(body["options"]) <= 5
    scores = [opt["total_score"] for opt in body["options"]]
    assert scores == sorted(scores, reverse=True)
    assert set(body["options"][0]["breakdown"]) == {
        "preference_match",
        "value_quality",
        "budget_fit",
        "scarcity_penalty",
    }


def test_api_recommend_rejects_invalid_preferences():
    client = TestClient(app)
    payload = _sample_payload()
    payload["preferences"]["makkah_zone"] = "Z"

    response = client.post("/api/recommend", json=payload)
    assert response.status_code == 422


def test_api_import_and_template():
    client = TestClient(app)

    template = client.get("/api/template")
    assert template.status_code == 200
    assert template.text.startswith("Provider,PackageName,")

    response = client.post("/api/import", json={"csv": template.text})
    assert response.status_code == 200
    body = response.json()
    assert body["errors"] == []
    assert body["packages"][0]["package_name"] == "Example Package"
    assert template.text == template_csv()


def test_api_sample_packages():
    client = TestClient(app)
    response = client.get("/api/packages/sample")

    assert response.status_code == 200
    assert [pkg["id"] for pkg in response.json()["packages"]] == ["p1", "p2", "p3", "p4", "p5"]


@pytest.fixture
def local_client(tmp_path, monkeypatch) -> TestClient:
    monkeypatch.setenv("HAJJ_ADVISOR_STORE_PATH", str(tmp_path / "store.json"))
    monkeypatch.delenv("HAJJ_ADVISOR_PRELOADED_PATH", raising=False)
    return TestClient(app)


def _user_package() -> dict:
    pkg = sample_packages()[2].model_dump(mode="json")
    pkg.update({"id": "mine-1", "provider": "My Agent", "package_name": "Family trip"})
    return pkg


def test_api_packages_merges_preloaded_with_store(local_client):
    assert local_client.post("/api/packages", json=_user_package()).status_code == 200
    override = local_client.put("/api/packages/p1/override", json={"base_price_sar": 90000})
    assert override.status_code == 200

    body = local_client.get("/api/packages").json()

    assert [pkg["id"] for pkg in body["packages"]] == ["p1", "p2", "p3", "p4", "p5", "mine-1"]
    assert body["packages"][0]["base_price_sar"] == 90000
    assert body["packages"][-1]["source"] == "user"
    assert body["edited_ids"] == ["p1"]

    assert local_client.delete("/api/packages/p1/override").status_code == 200
    assert local_client.get("/api/packages").json()["edited_ids"] == []


def test_api_save_package_rejects_duplicates_and_invalid(local_client):
    assert local_client.post("/api/packages", json=_user_package()).status_code == 200

    again = dict(_user_package(), id="mine-2")
    assert local_client.post("/api/packages", json=again).status_code == 409

    broken = dict(_user_package(), makkah_zone="Z")
    assert local_client.post("/api/packages", json=broken).status_code == 422


def test_api_delete_only_removes_user_packages(local_client):
    local_client.post("/api/packages", json=_user_package())
    local_client.post("/api/favourites/mine-1")

    assert local_client.delete("/api/packages/p1").status_code == 404
    assert local_client.delete("/api/packages/mine-1").status_code == 200

    ids = [pkg["id"] for pkg in local_client.get("/api/packages").json()["packages"]]
    assert "mine-1" not in ids
    assert local_client.get("/api/favourites").json()["favourites"] == []


def test_api_favourites_toggle_and_limit(local_client):
    for package_id in ["p1", "p2", "p3", "p4", "p5"]:
        assert local_client.post(f"/api/favourites/{package_id}").json()["ok"]

    refused = local_client.post("/api/favourites/p6").json()
    assert refused["ok"] is False
    assert refused["message"] == "You can save up to 5 packages."

    removed = local_client.post("/api/favourites/p1").json()
    assert removed["ok"] is True
    assert removed["favourites"] == ["p2", "p3", "p4", "p5"]
    assert local_client.get("/api/favourites").json()["favourites"] == ["p2", "p3", "p4", "p5"]


def test_api_preferences_round_trip_through_store(local_client):
    saved = local_client.put(
        "/api/preferences",
        json={"budget": {"amount": 90000, "headcount": 2}, "makkah_zone": "B"},
    )
    assert saved.status_code == 200

    loaded = local_client.get("/api/preferences").json()
    assert loaded["budget"]["amount"] == 90000
    assert loaded["budget"]["headcount"] == 2
    assert loaded["makkah_zone"] == "B"


def test_api_recommend_falls_back_to_local_catalog(local_client):
    local_client.post("/api/packages", json=_user_package())
    payload = _sample_payload()
    payload["packages"] = []

    body = local_client.post("/api/recommend", json=payload).json()

    assert body["considered"] == 6
    assert body["options"]
