from fastapi.testclient import TestClient

from main import app

client = TestClient(app)


def test_health():
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json()["status"] == "ok"


def test_routes_registered():
    paths = set(app.openapi()["paths"])
    for p in (
        "/api/v1/users",
        "/api/v1/users/{user_id}/profile",
        "/api/v1/foods",
        "/api/v1/foods/categories",
        "/api/v1/entries",
        "/api/v1/analysis/{user_id}/today",
        "/api/v1/analysis/{user_id}/week",
        "/api/v1/charts/{user_id}",
        "/api/v1/interventions/{user_id}",
        "/api/v1/interventions/{record_id}/acknowledge",
    ):
        assert p in paths
