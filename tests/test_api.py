import pytest
from fastapi.testclient import TestClient

from api.engine import get_orchestrator
from api.main import app


@pytest.fixture
def client(orchestrator):
    app.dependency_overrides[get_orchestrator] = lambda: orchestrator
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_health(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


def test_check_ingredients_for_food(client):
    response = client.post("/api/ingredients/check", json={
        "ingredients": ["Water", "Whey", "Unknown Chemical 123"],
        "productCategory": "CONVENTIONAL_FOOD",
    })
    assert response.status_code == 200
    body = response.json()
    assert body["ndi"] is None
    assert body["gras"]["nonGRASIngredients"] == ["Whey", "Unknown Chemical 123"]
    assert body["allergens"]["allergensDetected"][0]["name"] == "Milk"
    assert body["allergens"]["ingredientsWithAllergens"][0]["allergens"][0]["matchType"] == "derivative"
    assert "Major Food Allergens Detected: Milk" in body["allergenContext"]
    assert "1. Whey\n2. Unknown Chemical 123" in body["grasContext"]
    assert body["ndiContext"] is None


def test_check_with_explicit_checks(client):
    response = client.post("/api/ingredients/check", json={
        "ingredients": ["Astaxanthin"],
        "checks": ["ndi"],
    })
    assert response.status_code == 200
    assert response.json()["ndi"]["results"][0]["complianceNote"].startswith("NDI notification #1")
    assert "Astaxanthin: NDI Notification #1 (RPT-001)" in response.json()["ndiContext"]
    assert response.json()["grasContext"] is None


def test_unknown_check_name_is_rejected(client):
    response = client.post("/api/ingredients/check", json={"ingredients": ["Water"], "checks": ["vitamins"]})
    assert response.status_code == 422


def test_individual_reports(client):
    allergens = client.post("/api/ingredients/allergens", json={"ingredients": ["Shrimp Extract", None]})
    assert allergens.status_code == 200
    assert allergens.json()["summary"]["mediumConfidenceMatches"] == 1
    assert allergens.json()["summary"]["totalIngredients"] == 1

    gras = client.post("/api/ingredients/gras", json={"ingredients": ["Water"]})
    assert gras.json()["overallCompliant"] is True

    ndi = client.post("/api/ingredients/ndi", json={"ingredients": ["Ginseng"]})
    assert ndi.json()["summary"] == {
        "totalChecked": 1, "withNDI": 0, "withoutNDI": 1, "requiresNotification": 0,
    }


def test_invalidate_and_stats(client):
    client.post("/api/ingredients/gras", json={"ingredients": ["Water"]})
    stats = client.get("/api/admin/cache-stats").json()
    assert stats["success"] is True
    assert stats["stats"]["gras"]["count"] == 7
    assert stats["stats"]["ndi"] is None

    response = client.post("/api/admin/invalidate-cache", json={"corpora": ["gras"]})
    assert response.status_code == 200
    assert response.json()["success"] is True
    assert "gras" in response.json()["message"]
    assert client.get("/api/admin/cache-stats").json()["stats"]["gras"]["is_valid"] is False

    everything = client.post("/api/admin/invalidate-cache")
    assert everything.status_code == 200
    assert "allergens, gras, ndi, odi" in everything.json()["message"]


def test_invalidate_unknown_corpus(client):
    response = client.post("/api/admin/invalidate-cache", json={"corpora": ["vitamins"]})
    assert response.status_code == 400
