from fastapi.testclient import TestClient

from praxis.main import app


def test_health_ok():
    client = TestClient(app)
    r = client.get("/health")
    assert r.status_code == 200
    body = r.json()
    assert body["ok"] is True
    assert body["service"] == "api"
    assert isinstance(body["version"], str)
    assert body["db_ok"] is True
